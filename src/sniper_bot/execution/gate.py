"""
Position gate: at most one position being opened at a time.

In single-position mode a buy may only start when no other buy holds the
gate AND no sell is in flight. Sells never block: they only bump a counter
that keeps new buys out until every sell has finished.

The gate never waits. A buy that cannot acquire it is skipped, not queued,
so the event-processing task is never blocked.

All methods must be called from the event loop thread. Check-and-set has
no await in between, so it is atomic with respect to other tasks.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator

logger = logging.getLogger(__name__)


class GateError(Exception):
    """Raised when the gate is released or exited more often than entered."""


class PositionGate:
    """
    Single-in-flight-position gate.

    Usage:
        gate = PositionGate(single_position=True)

        with gate.buy_slot() as acquired:
            if not acquired:
                return  # another position is being processed
            ...

        with gate.sell_slot():
            ...
    """

    def __init__(self, single_position: bool = True) -> None:
        self._single_position = single_position
        self._held = False
        self._active_sells = 0

    @property
    def single_position(self) -> bool:
        return self._single_position

    @property
    def is_held(self) -> bool:
        return self._held

    @property
    def active_sells(self) -> int:
        return self._active_sells

    def try_acquire_buy(self) -> bool:
        """
        Try to take the buy slot without waiting.

        Returns:
            True if the buy may proceed. Always True when single-position
            mode is off.
        """
        if not self._single_position:
            return True

        if self._held or self._active_sells > 0:
            return False

        self._held = True
        return True

    def release(self) -> None:
        """Give back the buy slot. No-op when single-position mode is off."""
        if not self._single_position:
            return

        if not self._held:
            raise GateError("Buy slot released while not held")

        self._held = False

    def enter_sell(self) -> None:
        self._active_sells += 1

    def exit_sell(self) -> None:
        if self._active_sells <= 0:
            raise GateError("Sell exited without a matching enter")
        self._active_sells -= 1

    @contextmanager
    def buy_slot(self) -> Generator[bool, None, None]:
        """Scoped buy slot; yields whether it was acquired, releases on exit."""
        acquired = self.try_acquire_buy()
        try:
            yield acquired
        finally:
            if acquired:
                self.release()

    @contextmanager
    def sell_slot(self) -> Generator[None, None, None]:
        """Scoped active-sell count."""
        self.enter_sell()
        try:
            yield
        finally:
            self.exit_sell()
