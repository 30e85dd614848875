"""
Tests for venue data models.
"""
import struct
import pytest
from decimal import Decimal

from solders.pubkey import Pubkey

from sniper_bot.venue import (
    USDC_MINT,
    WSOL_MINT,
    MarketKeys,
    QuoteToken,
    TokenAccount,
    create_venue_keys,
)


class TestQuoteToken:
    """Tests for quote token resolution and unit conversion."""

    def test_wsol(self):
        token = QuoteToken.from_symbol("WSOL")

        assert token.mint == WSOL_MINT
        assert token.decimals == 9

    def test_usdc_case_insensitive(self):
        token = QuoteToken.from_symbol(" usdc ")

        assert token.mint == USDC_MINT
        assert token.decimals == 6

    def test_unsupported_symbol(self):
        with pytest.raises(ValueError):
            QuoteToken.from_symbol("BONK")

    def test_to_raw(self):
        token = QuoteToken.from_symbol("WSOL")

        assert token.to_raw("0.01") == 10_000_000
        assert token.to_raw(Decimal("1.5")) == 1_500_000_000

    def test_to_ui(self):
        token = QuoteToken.from_symbol("USDC")

        assert token.to_ui(2_500_000) == Decimal("2.5")


class TestMarketKeys:
    """Tests for decoding market accounts."""

    def test_from_bytes(self):
        event_queue, bids, asks = Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique()
        data = bytes(event_queue) + bytes(bids) + bytes(asks)

        keys = MarketKeys.from_bytes(data)

        assert keys.event_queue == event_queue
        assert keys.bids == bids
        assert keys.asks == asks

    def test_short_data_rejected(self):
        with pytest.raises(ValueError):
            MarketKeys.from_bytes(b"\x00" * 64)


class TestTokenAccount:
    """Tests for decoding SPL token accounts."""

    def test_from_bytes(self):
        mint, owner = Pubkey.new_unique(), Pubkey.new_unique()
        data = bytes(mint) + bytes(owner) + struct.pack("<Q", 123_456) + b"\x00" * 93

        account = TokenAccount.from_bytes(data)

        assert account.mint == mint
        assert account.owner == owner
        assert account.amount == 123_456

    def test_short_data_rejected(self):
        with pytest.raises(ValueError):
            TokenAccount.from_bytes(b"\x00" * 70)


class TestVenueKeys:
    """Tests for assembling venue keys."""

    def test_combines_pool_and_market(self, pool_state, market_keys):
        pool_id = Pubkey.new_unique()

        keys = create_venue_keys(pool_id, pool_state, market_keys)

        assert keys.pool_id == pool_id
        assert keys.base_mint == pool_state.base_mint
        assert keys.quote_vault == pool_state.quote_vault
        assert keys.market_bids == market_keys.bids
        assert keys.market_asks == market_keys.asks
        assert keys.market_event_queue == market_keys.event_queue
