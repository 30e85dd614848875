"""
Collaborator contracts consumed by the position controller.

The controller never talks to a specific AMM directly. Venue-specific
liquidity math, instruction encoding and pool discovery live behind these
protocols so they can be swapped (or mocked) without touching core logic.

A venue adapter is loaded at startup from a ``module:factory`` path. The
factory receives the RPC client and the bot config and returns an object
implementing both ``Venue`` and ``EventSource``:

    class MyVenue:
        async def compute_amount_out(self, keys, direction, amount_in, slippage_pct):
            ...

        async def build_swap(self, keys, direction, amount_in, min_amount_out,
                             owner, token_account_in, token_account_out):
            ...

        async def stream(self):
            async for event in self._listener:
                yield event
"""
from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, AsyncIterator, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from solders.pubkey import Pubkey

    from .models import (
        DiscoveryEvent,
        MarketKeys,
        PoolRecord,
        PoolState,
        Quote,
        SwapDirection,
        SwapInstructions,
        VenueKeys,
    )


@runtime_checkable
class MarketLookup(Protocol):
    """Resolves order-book market accounts by market id."""

    async def get(self, market_id: str) -> "MarketKeys":
        """Return market keys or raise MarketNotFoundError."""
        ...


@runtime_checkable
class PoolLookup(Protocol):
    """Remembers pools we have seen, keyed by base mint."""

    async def get(self, mint: str) -> Optional["PoolRecord"]:
        ...

    async def save(self, pool_id: str, state: "PoolState") -> None:
        ...


@runtime_checkable
class EligibilityFilter(Protocol):
    """A static pre-buy check against a pool."""

    async def execute(self, keys: "VenueKeys") -> bool:
        ...


@runtime_checkable
class RiskScoreProvider(Protocol):
    """Looks up an external risk score for a mint. Higher is riskier."""

    async def fetch_score(self, mint: str) -> float:
        """Return the score or raise RiskScoreError."""
        ...


@runtime_checkable
class VenueQuote(Protocol):
    """Quotes swaps against a pool."""

    async def compute_amount_out(
        self,
        keys: "VenueKeys",
        direction: "SwapDirection",
        amount_in: int,
        slippage_pct: Decimal,
    ) -> "Quote":
        ...


@runtime_checkable
class SwapInstructionBuilder(Protocol):
    """
    Builds the unsigned swap instructions for a pool.

    The builder owns associated token account handling: a buy includes
    idempotent creation of the output account, a full-balance sell may
    append a close of the input account after the swap.
    """

    async def build_swap(
        self,
        keys: "VenueKeys",
        direction: "SwapDirection",
        amount_in: int,
        min_amount_out: int,
        owner: "Pubkey",
        token_account_in: "Pubkey",
        token_account_out: "Pubkey",
    ) -> "SwapInstructions":
        ...


@runtime_checkable
class Venue(VenueQuote, SwapInstructionBuilder, Protocol):
    """Everything venue-specific the controller needs."""


@runtime_checkable
class EventSource(Protocol):
    """Asynchronous stream of discovery events."""

    def stream(self) -> AsyncIterator["DiscoveryEvent"]:
        ...
