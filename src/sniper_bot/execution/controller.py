"""
Position controller: the buy and sell workflows.

Coordinates PositionGate, ExitLedger, PriceMatcher and a TransactionExecutor
to open and staged-close positions on an AMM.

Buy (per new eligible pool):
    gate -> risk score -> venue keys -> snipe list / filters -> delay
    -> submit with bounded retry -> release gate

Sell (per wallet balance change):
    active-sell count -> ledger tranche -> amount -> delay -> venue keys
    -> price match -> claim -> submit with bounded retry -> mark sold

Nothing escapes buy() or sell(). Every failure is logged with the mint and
turns into "this event produced no trade".

Error policy:
    - Submission failures: retried up to max retries, then abandoned.
    - Market / pool lookup failures: abort this event, no retry.
    - Price quote failures: no signal, no action this cycle.
    - Risk score failures: fail open, the buy proceeds.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from solana.rpc.commitment import Confirmed
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from sniper_bot.venue.models import (
    PoolState,
    SwapDirection,
    TokenAccount,
    VenueKeys,
    create_venue_keys,
)

from .executor import ExecutionOutcome, TransactionExecutor
from .exit_ledger import ExitLedger, TrancheDecision
from .gate import PositionGate
from .price_matcher import (
    HUNDRED,
    PriceMatcher,
    SellTakeProfit,
    TradeThresholds,
    fee_for_profit,
)
from .transactions import ComputeBudget, compose_transaction, fetch_blockhash

if TYPE_CHECKING:
    from sniper_bot.venue.protocol import (
        EligibilityFilter,
        MarketLookup,
        PoolLookup,
        RiskScoreProvider,
        Venue,
    )
    from sniper_bot.venue.snipe_list import SnipeList

logger = logging.getLogger(__name__)


@dataclass
class ControllerConfig:
    """Configuration for the position controller."""

    wallet: Keypair
    quote_mint: Pubkey
    quote_ata: Pubkey
    quote_amount: int  # raw quote units spent per buy; also the entry amount

    # Gate
    one_token_at_a_time: bool = True

    # Buy
    max_buy_retries: int = 10
    buy_slippage: Decimal = Decimal("20")
    auto_buy_delay_ms: int = 0

    # Sell
    max_sell_retries: int = 10
    sell_slippage: Decimal = Decimal("20")
    auto_sell_delay_ms: int = 0
    thresholds: TradeThresholds = field(default_factory=TradeThresholds)

    # Risk score
    risk_check: bool = False
    risk_max_score: float = 0

    # Snipe list bypasses filters
    use_snipe_list: bool = False

    # Priority fees
    compute_budget: ComputeBudget = field(default_factory=ComputeBudget)

    commitment: str = Confirmed

    def __post_init__(self) -> None:
        if self.max_buy_retries < 1:
            raise ValueError(f"max_buy_retries must be >= 1, got {self.max_buy_retries}")
        if self.max_sell_retries < 1:
            raise ValueError(f"max_sell_retries must be >= 1, got {self.max_sell_retries}")
        if self.buy_slippage < 0 or self.sell_slippage < 0:
            raise ValueError("Slippage percentages must be >= 0")


Composer = Callable[..., Any]


class PositionController:
    """
    Runs buy and sell workflows for one wallet.

    Usage:
        controller = PositionController(
            client=client,
            market_lookup=market_cache,
            pool_lookup=pool_cache,
            venue=venue,
            executor=executor,
            config=config,
        )

        if not await controller.validate():
            sys.exit(1)

        await controller.buy(pool_id, pool_state)
        await controller.sell(account_id, token_account)
    """

    def __init__(
        self,
        client: Any,
        market_lookup: "MarketLookup",
        pool_lookup: "PoolLookup",
        venue: "Venue",
        executor: TransactionExecutor,
        config: ControllerConfig,
        filters: Optional["EligibilityFilter"] = None,
        risk_provider: Optional["RiskScoreProvider"] = None,
        snipe_list: Optional["SnipeList"] = None,
        gate: Optional[PositionGate] = None,
        ledger: Optional[ExitLedger] = None,
        composer: Optional[Composer] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the controller.

        Args:
            client: solana AsyncClient (blockhash, account reads)
            market_lookup: Market keys by market id
            pool_lookup: Pools by base mint
            venue: Quote and swap-instruction provider
            executor: Transaction executor chosen at startup
            config: Controller configuration
            filters: Pool eligibility filters (None accepts every pool)
            risk_provider: External risk score source, used when risk_check is on
            snipe_list: Allow-list, used when use_snipe_list is on
            gate: Position gate (built from config if omitted)
            ledger: Exit ledger (built from config if omitted)
            composer: Transaction composer (compose_transaction by default)
            sleep: Awaitable sleep used for the configured delays
        """
        self._client = client
        self._market_lookup = market_lookup
        self._pool_lookup = pool_lookup
        self._venue = venue
        self._executor = executor
        self._config = config
        self._filters = filters
        self._risk_provider = risk_provider
        self._snipe_list = snipe_list
        self._gate = gate or PositionGate(single_position=config.one_token_at_a_time)
        self._ledger = ledger or ExitLedger(config.thresholds)
        self._compose = composer or compose_transaction
        self._sleep = sleep

        self._price_matcher = PriceMatcher(
            quote=venue,
            entry_amount=config.quote_amount,
            thresholds=config.thresholds,
            slippage_pct=config.sell_slippage,
        )

    @property
    def config(self) -> ControllerConfig:
        return self._config

    @property
    def gate(self) -> PositionGate:
        return self._gate

    @property
    def ledger(self) -> ExitLedger:
        return self._ledger

    @property
    def executor(self) -> TransactionExecutor:
        return self._executor

    @property
    def charges_fee(self) -> bool:
        """Whether take-profit exits carry a fee for the executor."""
        return self._executor.supports_fee

    async def validate(self) -> bool:
        """Pre-flight: the quote token account must exist in the wallet."""
        try:
            response = await self._client.get_account_info(
                self._config.quote_ata, commitment=self._config.commitment
            )
            exists = response.value is not None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to look up quote token account {self._config.quote_ata}: {e}")
            exists = False

        if not exists:
            logger.error(
                f"Quote token account not found in wallet: {self._config.wallet.pubkey()}"
            )
        return exists

    # =========================================================================
    # Buy
    # =========================================================================

    async def buy(self, pool_id: Pubkey, pool_state: PoolState) -> None:
        """Try to open a position in a newly discovered pool."""
        mint = str(pool_state.base_mint)
        logger.debug(f"Processing new pool {pool_id} for {mint}")

        with self._gate.buy_slot() as acquired:
            if not acquired:
                logger.debug(
                    f"Skipping buy of {mint}: one token at a time is on "
                    f"and a token is already being processed"
                )
                return

            try:
                await self._buy(pool_id, pool_state, mint)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Failed to buy {mint}: {e}")

    async def _buy(self, pool_id: Pubkey, pool_state: PoolState, mint: str) -> None:
        if self._config.risk_check and not await self._passes_risk_check(mint):
            return

        market = await self._market_lookup.get(str(pool_state.market_id))
        keys = create_venue_keys(pool_id, pool_state, market)

        if self._config.use_snipe_list:
            if self._snipe_list is None or mint not in self._snipe_list:
                logger.debug(f"Skipping buy of {mint}: not in snipe list")
                return
        elif self._filters is not None and not await self._filters.execute(keys):
            logger.debug(f"Skipping buy of {mint}: pool doesn't match filters")
            return

        if self._config.auto_buy_delay_ms > 0:
            logger.debug(f"Waiting {self._config.auto_buy_delay_ms} ms before buying {mint}")
            await self._sleep(self._config.auto_buy_delay_ms / 1000)

        logger.info(f"Processing buy of {mint}...")

        token_account_out = get_associated_token_address(
            self._config.wallet.pubkey(), pool_state.base_mint
        )

        outcome = await self._submit_with_retries(
            "buy",
            mint,
            self._config.max_buy_retries,
            lambda: self._swap(
                keys,
                SwapDirection.BUY,
                amount_in=self._config.quote_amount,
                slippage_pct=self._config.buy_slippage,
                token_account_in=self._config.quote_ata,
                token_account_out=token_account_out,
            ),
        )

        if outcome is None:
            logger.warning(
                f"Buy of {mint} not confirmed after {self._config.max_buy_retries} attempts"
            )

    async def _passes_risk_check(self, mint: str) -> bool:
        """Fail open: a provider error lets the buy continue."""
        if self._risk_provider is None:
            return True

        try:
            score = await self._risk_provider.fetch_score(mint)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info(
                f"Error fetching risk score for {mint}: {e}. Ignoring max score check."
            )
            return True

        if score > self._config.risk_max_score:
            logger.debug(
                f"Skipping buy of {mint}: risk score {score} > {self._config.risk_max_score}"
            )
            return False

        logger.debug(f"Risk score for {mint} is ok ({score})")
        return True

    # =========================================================================
    # Sell
    # =========================================================================

    async def sell(self, account_id: Pubkey, account: TokenAccount) -> None:
        """Check a held position and sell the next tranche if a target is hit."""
        mint = str(account.mint)

        with self._gate.sell_slot():
            try:
                await self._sell(account_id, account, mint)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Failed to sell {mint}: {e}")

    async def _sell(self, account_id: Pubkey, account: TokenAccount, mint: str) -> None:
        decision = self._ledger.classify(mint)
        if decision is None:
            logger.debug(f"Skipping sell of {mint}: both tranches already sold")
            return

        logger.debug(f"Processing {decision.tranche.value} tranche of {mint}...")

        pool = await self._pool_lookup.get(mint)
        if pool is None:
            logger.debug(f"Pool data for {mint} not found, can't sell")
            return

        amount_in = self.tranche_amount(account.amount, decision)
        if amount_in == 0:
            logger.info(f"Empty balance for {mint}, can't sell")
            return

        if self._config.auto_sell_delay_ms > 0:
            logger.debug(f"Waiting {self._config.auto_sell_delay_ms} ms before selling {mint}")
            await self._sleep(self._config.auto_sell_delay_ms / 1000)

        market = await self._market_lookup.get(str(pool.state.market_id))
        keys = create_venue_keys(pool.id, pool.state, market)

        result = await self._price_matcher.evaluate(amount_in, keys, decision.gain_target_pct)
        if not result.should_sell:
            logger.info(f"Price doesn't match for {mint}, skipping sell")
            return

        logger.info(f"Matched the price for {mint} ({result.action.value}), executing sale...")

        fee: Optional[int] = None
        if isinstance(result, SellTakeProfit) and self.charges_fee:
            fee = fee_for_profit(result.profit, self._config.thresholds.fee_on_profit_pct) or None
            logger.debug(f"Fee for take profit on {mint}: {fee}")

        if not self._ledger.try_claim(mint, decision.tranche):
            logger.info(
                f"Skipping sell of {mint}: {decision.tranche.value} tranche "
                f"already sold or being sold"
            )
            return

        try:
            outcome = await self._submit_with_retries(
                "sell",
                mint,
                self._config.max_sell_retries,
                lambda: self._swap(
                    keys,
                    SwapDirection.SELL,
                    amount_in=amount_in,
                    slippage_pct=self._config.sell_slippage,
                    token_account_in=account_id,
                    token_account_out=self._config.quote_ata,
                    fee=fee,
                ),
            )

            if outcome is not None:
                self._ledger.mark_sold(mint, decision.tranche)
            else:
                logger.warning(
                    f"Sell of {mint} not confirmed after {self._config.max_sell_retries} attempts"
                )
        finally:
            self._ledger.release_claim(mint)

    @staticmethod
    def tranche_amount(balance: int, decision: TrancheDecision) -> int:
        """Raw amount to sell for a tranche, rounded down."""
        return int(Decimal(balance) * decision.sell_pct / HUNDRED)

    # =========================================================================
    # Submission
    # =========================================================================

    async def _submit_with_retries(
        self,
        label: str,
        mint: str,
        max_retries: int,
        attempt: Callable[[], Awaitable[ExecutionOutcome]],
    ) -> Optional[ExecutionOutcome]:
        """
        Call attempt() until it confirms or max_retries is reached.

        Returns:
            The confirmed outcome, or None when every attempt failed.
        """
        for i in range(max_retries):
            logger.info(f"Send {label} transaction attempt {i + 1}/{max_retries} for {mint}")
            try:
                outcome = await attempt()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.debug(f"Error confirming {label} transaction for {mint}: {e}")
                continue

            if outcome.confirmed:
                logger.info(f"Confirmed {label} tx for {mint}: {outcome.signature}")
                return outcome

            logger.info(
                f"Error confirming {label} tx for {mint}: "
                f"signature={outcome.signature} error={outcome.error}"
            )

        return None

    async def _swap(
        self,
        keys: VenueKeys,
        direction: SwapDirection,
        amount_in: int,
        slippage_pct: Decimal,
        token_account_in: Pubkey,
        token_account_out: Pubkey,
        fee: Optional[int] = None,
    ) -> ExecutionOutcome:
        quote = await self._venue.compute_amount_out(keys, direction, amount_in, slippage_pct)
        blockhash = await fetch_blockhash(self._client, self._config.commitment)

        wallet = self._config.wallet
        swap = await self._venue.build_swap(
            keys,
            direction,
            amount_in,
            quote.min_amount_out,
            wallet.pubkey(),
            token_account_in,
            token_account_out,
        )

        transaction = self._compose(
            wallet,
            swap.instructions,
            blockhash,
            signers=swap.signers,
            compute_budget=self._config.compute_budget,
        )

        if fee:
            return await self._executor.execute_and_confirm(transaction, wallet, blockhash, fee)
        return await self._executor.execute_and_confirm(transaction, wallet, blockhash)
