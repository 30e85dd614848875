"""
Price matcher: decides whether a held position should be sold now.

Targets are relative to the entry quote amount (what we paid):

    take_profit_target = entry + entry * gain_target_pct / 100
    stop_loss_target   = entry - entry * stop_loss_pct / 100

Stop-loss is checked first. Both comparisons are strict, so a quote sitting
exactly on a target does not trigger.

A quote failure is not an error: evaluate() returns NoSell and the next
wallet event gets another chance.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Union

from sniper_bot.venue.models import SwapDirection

if TYPE_CHECKING:
    from sniper_bot.venue.models import VenueKeys
    from sniper_bot.venue.protocol import VenueQuote

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


# =============================================================================
# THRESHOLDS
# =============================================================================


@dataclass(frozen=True)
class TakeProfitTranche:
    """Sell sell_pct of the balance once proceeds exceed after_gain_pct gain."""

    after_gain_pct: Decimal
    sell_pct: Decimal

    def __post_init__(self) -> None:
        if self.after_gain_pct < 0:
            raise ValueError(f"after_gain_pct must be >= 0, got {self.after_gain_pct}")
        if not 0 <= self.sell_pct <= HUNDRED:
            raise ValueError(f"sell_pct must be within 0..100, got {self.sell_pct}")


@dataclass(frozen=True)
class TradeThresholds:
    """Exit thresholds. stop_loss_pct == 0 disables stop-loss."""

    stop_loss_pct: Decimal = Decimal("0")
    take_profit_enabled: bool = True
    take_profit_1: TakeProfitTranche = field(
        default_factory=lambda: TakeProfitTranche(Decimal("50"), Decimal("50"))
    )
    take_profit_2: TakeProfitTranche = field(
        default_factory=lambda: TakeProfitTranche(Decimal("100"), Decimal("100"))
    )
    fee_on_profit_pct: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if self.stop_loss_pct < 0:
            raise ValueError(f"stop_loss_pct must be >= 0, got {self.stop_loss_pct}")
        if self.fee_on_profit_pct < 0:
            raise ValueError(f"fee_on_profit_pct must be >= 0, got {self.fee_on_profit_pct}")

    @property
    def stop_loss_enabled(self) -> bool:
        return self.stop_loss_pct > 0


# =============================================================================
# RESULTS
# =============================================================================


class MatchAction(Enum):
    NO_SELL = "no_sell"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


@dataclass(frozen=True)
class NoSell:
    action: MatchAction = field(default=MatchAction.NO_SELL, init=False)

    @property
    def should_sell(self) -> bool:
        return False


@dataclass(frozen=True)
class SellStopLoss:
    quoted_out: int
    action: MatchAction = field(default=MatchAction.STOP_LOSS, init=False)

    @property
    def should_sell(self) -> bool:
        return True


@dataclass(frozen=True)
class SellTakeProfit:
    quoted_out: int
    profit: int
    action: MatchAction = field(default=MatchAction.TAKE_PROFIT, init=False)

    @property
    def should_sell(self) -> bool:
        return True


PriceMatchResult = Union[NoSell, SellStopLoss, SellTakeProfit]


def take_profit_target(entry_amount: int, gain_target_pct: Decimal) -> Decimal:
    return Decimal(entry_amount) + Decimal(entry_amount) * gain_target_pct / HUNDRED


def stop_loss_target(entry_amount: int, stop_loss_pct: Decimal) -> Decimal:
    return Decimal(entry_amount) - Decimal(entry_amount) * stop_loss_pct / HUNDRED


def match_price(
    quoted_out: int,
    entry_amount: int,
    thresholds: TradeThresholds,
    gain_target_pct: Decimal,
) -> PriceMatchResult:
    """
    Pure decision for a quoted sale.

    Args:
        quoted_out: Proceeds the venue quotes for selling the tranche
        entry_amount: Quote amount paid on entry
        thresholds: Configured exit thresholds
        gain_target_pct: Gain target of the tranche being evaluated

    Returns:
        SellStopLoss, SellTakeProfit, or NoSell
    """
    if thresholds.stop_loss_enabled:
        if quoted_out < stop_loss_target(entry_amount, thresholds.stop_loss_pct):
            return SellStopLoss(quoted_out=quoted_out)

    if thresholds.take_profit_enabled:
        if quoted_out > take_profit_target(entry_amount, gain_target_pct):
            return SellTakeProfit(quoted_out=quoted_out, profit=quoted_out - entry_amount)

    return NoSell()


def fee_for_profit(profit: int, fee_on_profit_pct: Decimal) -> int:
    """Fee owed on a realized profit, rounded down to whole base units."""
    if profit <= 0 or fee_on_profit_pct <= 0:
        return 0
    return int(Decimal(profit) * fee_on_profit_pct / HUNDRED)


class PriceMatcher:
    """
    Evaluates a live quote against the exit thresholds.

    Usage:
        matcher = PriceMatcher(venue, entry_amount, thresholds, slippage_pct)
        result = await matcher.evaluate(amount_in, keys, gain_target_pct)
        if result.should_sell:
            ...
    """

    def __init__(
        self,
        quote: "VenueQuote",
        entry_amount: int,
        thresholds: TradeThresholds,
        slippage_pct: Decimal,
    ) -> None:
        self._quote = quote
        self._entry_amount = entry_amount
        self._thresholds = thresholds
        self._slippage_pct = slippage_pct

    @property
    def thresholds(self) -> TradeThresholds:
        return self._thresholds

    async def evaluate(
        self,
        amount_in: int,
        keys: "VenueKeys",
        gain_target_pct: Decimal,
    ) -> PriceMatchResult:
        mint = str(keys.base_mint)
        try:
            quote = await self._quote.compute_amount_out(
                keys, SwapDirection.SELL, amount_in, self._slippage_pct
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Failed to check token price for {mint}: {e}")
            return NoSell()

        logger.debug(
            f"{mint} take profit: "
            f"{take_profit_target(self._entry_amount, gain_target_pct)} | "
            f"stop loss: {stop_loss_target(self._entry_amount, self._thresholds.stop_loss_pct)} | "
            f"current: {quote.amount_out}"
        )

        return match_price(quote.amount_out, self._entry_amount, self._thresholds, gain_target_pct)
