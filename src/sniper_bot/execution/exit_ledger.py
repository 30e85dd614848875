"""
Exit ledger: which take-profit tranches have been sold per asset.

Each asset can be partially sold at most twice per process lifetime:
tranche one at the first gain target, tranche two at the second. Tranche
two is only considered once tranche one has a confirmed sale.

Sells are not mutually excluded by the position gate, so two wallet events
for the same asset can race. Before submitting, a sell must claim the
asset; only one claim per asset may be in flight. The claim re-checks the
tranche so a stale classification can never double-sell a tranche.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Set

from .price_matcher import TradeThresholds

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Raised when a tranche is marked out of order."""


class Tranche(Enum):
    FIRST = "first"
    SECOND = "second"


@dataclass(frozen=True)
class TrancheDecision:
    """Which tranche to sell next, its gain target and sell percentage."""

    tranche: Tranche
    gain_target_pct: Decimal
    sell_pct: Decimal


@dataclass
class LedgerEntry:
    sold_first: bool = False
    sold_second: bool = False

    @property
    def fully_exited(self) -> bool:
        return self.sold_first and self.sold_second


class ExitLedger:
    """
    Per-asset tranche state, owned by one controller.

    Usage:
        ledger = ExitLedger(thresholds)

        decision = ledger.classify(mint)
        if decision is None:
            return  # fully exited

        if ledger.try_claim(mint, decision.tranche):
            try:
                ...  # submit sale
                ledger.mark_sold(mint, decision.tranche)
            finally:
                ledger.release_claim(mint)
    """

    def __init__(self, thresholds: TradeThresholds) -> None:
        self._thresholds = thresholds
        self._entries: Dict[str, LedgerEntry] = {}
        self._claims: Set[str] = set()

    def entry(self, mint: str) -> LedgerEntry:
        """Snapshot of the ledger state for a mint."""
        entry = self._entries.get(mint)
        if entry is None:
            return LedgerEntry()
        return LedgerEntry(sold_first=entry.sold_first, sold_second=entry.sold_second)

    def is_fully_exited(self, mint: str) -> bool:
        return self.entry(mint).fully_exited

    def classify(self, mint: str) -> Optional[TrancheDecision]:
        """
        Pick the next tranche for a mint.

        Returns:
            The tranche decision, or None once both tranches are sold.
        """
        entry = self.entry(mint)

        if entry.fully_exited:
            return None

        if entry.sold_first:
            tp = self._thresholds.take_profit_2
            return TrancheDecision(Tranche.SECOND, tp.after_gain_pct, tp.sell_pct)

        tp = self._thresholds.take_profit_1
        return TrancheDecision(Tranche.FIRST, tp.after_gain_pct, tp.sell_pct)

    def is_claimed(self, mint: str) -> bool:
        return mint in self._claims

    def try_claim(self, mint: str, tranche: Tranche) -> bool:
        """
        Claim the right to sell a tranche of a mint.

        Fails if another sale of this mint is in flight, or if the tranche
        no longer matches the ledger (sold already, or tranche one not yet sold).
        """
        if mint in self._claims:
            return False

        decision = self.classify(mint)
        if decision is None or decision.tranche is not tranche:
            return False

        self._claims.add(mint)
        return True

    def release_claim(self, mint: str) -> None:
        self._claims.discard(mint)

    def mark_sold(self, mint: str, tranche: Tranche) -> bool:
        """
        Record a confirmed tranche sale.

        Returns:
            True if the ledger changed, False if the tranche was already sold.

        Raises:
            LedgerError: if tranche two is marked before tranche one.
        """
        entry = self._entries.setdefault(mint, LedgerEntry())

        if tranche is Tranche.FIRST:
            if entry.sold_first:
                logger.warning(f"Tranche one already marked sold for {mint}")
                return False
            entry.sold_first = True
            return True

        if not entry.sold_first:
            raise LedgerError(f"Tranche two marked before tranche one for {mint}")
        if entry.sold_second:
            logger.warning(f"Tranche two already marked sold for {mint}")
            return False
        entry.sold_second = True
        return True
