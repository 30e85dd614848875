"""
Data models shared between the controller and its venue collaborators.

Amounts are raw integer base units (lamports for WSOL, micro-units for USDC).
Percentages are Decimal. Keys are solders Pubkeys.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Union

from solders.pubkey import Pubkey


WSOL_MINT = Pubkey.from_string("So11111111111111111111111111111111111111112")
USDC_MINT = Pubkey.from_string("EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")

# SPL token account layout: mint (32) | owner (32) | amount (u64) | ...
TOKEN_ACCOUNT_MIN_SIZE = 72


class SwapDirection(Enum):
    """Which side of the pool we are trading."""

    BUY = "buy"  # quote -> base
    SELL = "sell"  # base -> quote


@dataclass(frozen=True)
class QuoteToken:
    """The token positions are entered with and exited into."""

    symbol: str
    mint: Pubkey
    decimals: int

    def to_raw(self, ui_amount: Union[str, Decimal]) -> int:
        """Convert a human amount ("0.1") into raw base units."""
        return int(Decimal(str(ui_amount)) * (Decimal(10) ** self.decimals))

    def to_ui(self, raw_amount: int) -> Decimal:
        """Convert raw base units back into a human amount."""
        return Decimal(raw_amount) / (Decimal(10) ** self.decimals)

    @classmethod
    def from_symbol(cls, symbol: str) -> "QuoteToken":
        """Resolve a supported quote token by symbol (WSOL or USDC)."""
        normalized = symbol.strip().upper()
        if normalized == "WSOL":
            return cls(symbol="WSOL", mint=WSOL_MINT, decimals=9)
        if normalized == "USDC":
            return cls(symbol="USDC", mint=USDC_MINT, decimals=6)
        raise ValueError(
            f'Unsupported quote mint "{symbol}". Supported values are USDC and WSOL'
        )


@dataclass(frozen=True)
class PoolState:
    """Decoded liquidity pool state delivered by the discovery layer."""

    base_mint: Pubkey
    quote_mint: Pubkey
    lp_mint: Pubkey
    market_id: Pubkey
    market_program_id: Pubkey
    base_vault: Pubkey
    quote_vault: Pubkey
    open_orders: Pubkey
    target_orders: Pubkey
    base_decimals: int
    quote_decimals: int
    pool_open_time: int = 0


@dataclass(frozen=True)
class MarketKeys:
    """Minimal order-book market accounts needed to route a swap."""

    event_queue: Pubkey
    bids: Pubkey
    asks: Pubkey

    @classmethod
    def from_bytes(cls, data: bytes) -> "MarketKeys":
        """Decode three consecutive pubkeys (event queue, bids, asks)."""
        if len(data) < 96:
            raise ValueError(f"Market data too short: {len(data)} bytes")
        return cls(
            event_queue=Pubkey.from_bytes(data[0:32]),
            bids=Pubkey.from_bytes(data[32:64]),
            asks=Pubkey.from_bytes(data[64:96]),
        )


@dataclass(frozen=True)
class VenueKeys:
    """Everything needed to price and execute a swap against one pool."""

    pool_id: Pubkey
    base_mint: Pubkey
    quote_mint: Pubkey
    lp_mint: Pubkey
    base_decimals: int
    quote_decimals: int
    base_vault: Pubkey
    quote_vault: Pubkey
    open_orders: Pubkey
    target_orders: Pubkey
    market_id: Pubkey
    market_program_id: Pubkey
    market_bids: Pubkey
    market_asks: Pubkey
    market_event_queue: Pubkey


def create_venue_keys(pool_id: Pubkey, state: PoolState, market: MarketKeys) -> VenueKeys:
    """Assemble venue keys from a pool state and its market accounts."""
    return VenueKeys(
        pool_id=pool_id,
        base_mint=state.base_mint,
        quote_mint=state.quote_mint,
        lp_mint=state.lp_mint,
        base_decimals=state.base_decimals,
        quote_decimals=state.quote_decimals,
        base_vault=state.base_vault,
        quote_vault=state.quote_vault,
        open_orders=state.open_orders,
        target_orders=state.target_orders,
        market_id=state.market_id,
        market_program_id=state.market_program_id,
        market_bids=market.bids,
        market_asks=market.asks,
        market_event_queue=market.event_queue,
    )


@dataclass(frozen=True)
class PoolRecord:
    """A cached pool: its account id plus decoded state."""

    id: Pubkey
    state: PoolState


@dataclass(frozen=True)
class TokenAccount:
    """The parts of an SPL token account the sell workflow reads."""

    mint: Pubkey
    owner: Pubkey
    amount: int

    @classmethod
    def from_bytes(cls, data: bytes) -> "TokenAccount":
        """Decode raw SPL token account data."""
        if len(data) < TOKEN_ACCOUNT_MIN_SIZE:
            raise ValueError(f"Token account data too short: {len(data)} bytes")
        (amount,) = struct.unpack_from("<Q", data, 64)
        return cls(
            mint=Pubkey.from_bytes(data[0:32]),
            owner=Pubkey.from_bytes(data[32:64]),
            amount=amount,
        )


@dataclass(frozen=True)
class Quote:
    """Venue quote for a swap: expected output and slippage-bounded minimum."""

    amount_out: int
    min_amount_out: int


@dataclass
class SwapInstructions:
    """Unsigned swap instructions plus any extra signers they need."""

    instructions: List[Any]
    signers: List[Any] = field(default_factory=list)


# =============================================================================
# DISCOVERY EVENTS
# =============================================================================


@dataclass(frozen=True)
class PoolDiscovered:
    """A new liquidity pool was seen on chain."""

    pool_id: Pubkey
    state: PoolState


@dataclass(frozen=True)
class WalletBalanceChanged:
    """A token account owned by the wallet changed."""

    account_id: Pubkey
    account: TokenAccount


@dataclass(frozen=True)
class MarketDiscovered:
    """An order-book market was created or updated."""

    market_id: Pubkey
    keys: MarketKeys


DiscoveryEvent = Union[PoolDiscovered, WalletBalanceChanged, MarketDiscovered]
