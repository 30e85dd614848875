"""
Venue Layer - Collaborators the position controller consumes.

This module provides:
    - Models: PoolState, MarketKeys, VenueKeys, TokenAccount, Quote, QuoteToken
    - Discovery events: PoolDiscovered, WalletBalanceChanged, MarketDiscovered
    - Protocols: MarketLookup, PoolLookup, EligibilityFilter, RiskScoreProvider,
      VenueQuote, SwapInstructionBuilder, Venue, EventSource
    - MarketCache / PoolCache: in-memory lookups
    - PoolFilters: LP burn, mint renounced / freeze, pool size
    - RugcheckClient: external risk score lookup
    - SnipeList: static allow-list that bypasses the filters

Venue-specific AMM math and instruction encoding are NOT implemented here;
they are supplied by a venue adapter implementing the Venue protocol.
"""
from .cache import MarketCache, MarketNotFoundError, PoolCache
from .filters import (
    BurnFilter,
    PoolFilterConfig,
    PoolFilters,
    PoolSizeFilter,
    RenouncedFreezeFilter,
)
from .models import (
    USDC_MINT,
    WSOL_MINT,
    DiscoveryEvent,
    MarketDiscovered,
    MarketKeys,
    PoolDiscovered,
    PoolRecord,
    PoolState,
    Quote,
    QuoteToken,
    SwapDirection,
    SwapInstructions,
    TokenAccount,
    VenueKeys,
    WalletBalanceChanged,
    create_venue_keys,
)
from .protocol import (
    EligibilityFilter,
    EventSource,
    MarketLookup,
    PoolLookup,
    RiskScoreProvider,
    SwapInstructionBuilder,
    Venue,
    VenueQuote,
)
from .risk import RiskReport, RiskScoreError, RugcheckClient
from .snipe_list import SnipeList

__all__ = [
    # Models
    "PoolState",
    "PoolRecord",
    "MarketKeys",
    "VenueKeys",
    "TokenAccount",
    "Quote",
    "QuoteToken",
    "SwapDirection",
    "SwapInstructions",
    "create_venue_keys",
    "WSOL_MINT",
    "USDC_MINT",
    # Events
    "DiscoveryEvent",
    "PoolDiscovered",
    "WalletBalanceChanged",
    "MarketDiscovered",
    # Protocols
    "MarketLookup",
    "PoolLookup",
    "EligibilityFilter",
    "RiskScoreProvider",
    "VenueQuote",
    "SwapInstructionBuilder",
    "Venue",
    "EventSource",
    # Caches
    "MarketCache",
    "MarketNotFoundError",
    "PoolCache",
    # Filters
    "PoolFilters",
    "PoolFilterConfig",
    "BurnFilter",
    "RenouncedFreezeFilter",
    "PoolSizeFilter",
    # Risk
    "RugcheckClient",
    "RiskReport",
    "RiskScoreError",
    # Snipe list
    "SnipeList",
]
