"""
Venue layer test fixtures.

RPC and HTTP calls MUST be mocked in tests - never hit a real node or API.
"""
import pytest
from unittest.mock import MagicMock

from solders.pubkey import Pubkey

from sniper_bot.venue import (
    WSOL_MINT,
    MarketKeys,
    PoolState,
    create_venue_keys,
)


@pytest.fixture
def pool_state():
    return PoolState(
        base_mint=Pubkey.new_unique(),
        quote_mint=WSOL_MINT,
        lp_mint=Pubkey.new_unique(),
        market_id=Pubkey.new_unique(),
        market_program_id=Pubkey.new_unique(),
        base_vault=Pubkey.new_unique(),
        quote_vault=Pubkey.new_unique(),
        open_orders=Pubkey.new_unique(),
        target_orders=Pubkey.new_unique(),
        base_decimals=6,
        quote_decimals=9,
        pool_open_time=1_700_000_000,
    )


@pytest.fixture
def market_keys():
    return MarketKeys(
        event_queue=Pubkey.new_unique(),
        bids=Pubkey.new_unique(),
        asks=Pubkey.new_unique(),
    )


@pytest.fixture
def venue_keys(pool_state, market_keys):
    return create_venue_keys(Pubkey.new_unique(), pool_state, market_keys)


@pytest.fixture
def mock_rpc_client():
    """Bare solana AsyncClient mock; tests set the calls they need."""
    return MagicMock()


class MockResponse:
    """Minimal aiohttp response usable as an async context manager."""

    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def make_session():
    """Factory for an aiohttp session mock returning a canned response."""

    def _make(status=200, payload=None, text="", side_effect=None):
        session = MagicMock()
        if side_effect is not None:
            session.get = MagicMock(side_effect=side_effect)
        else:
            session.get = MagicMock(return_value=MockResponse(status, payload, text))
        return session

    return _make
