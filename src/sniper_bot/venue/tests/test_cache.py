"""
Tests for the market and pool caches.
"""
import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from solders.pubkey import Pubkey

from sniper_bot.venue import MarketCache, MarketNotFoundError, PoolCache
from sniper_bot.venue.cache import (
    MARKET_EVENT_QUEUE_OFFSET,
    MARKET_KEYS_LENGTH,
    MARKET_QUOTE_MINT_OFFSET,
    MARKET_STATE_SIZE,
    OPENBOOK_PROGRAM_ID,
)


class TestMarketCache:
    """Tests for market key lookups."""

    @pytest.mark.asyncio
    async def test_saved_market_served_from_cache(self, mock_rpc_client, market_keys):
        mock_rpc_client.get_account_info = AsyncMock()
        cache = MarketCache(mock_rpc_client)
        cache.save("market_1", market_keys)

        assert await cache.get("market_1") == market_keys
        mock_rpc_client.get_account_info.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_miss_fetches_market_slice(self, mock_rpc_client, market_keys):
        data = bytes(market_keys.event_queue) + bytes(market_keys.bids) + bytes(market_keys.asks)
        mock_rpc_client.get_account_info = AsyncMock(
            return_value=SimpleNamespace(value=SimpleNamespace(data=data))
        )
        cache = MarketCache(mock_rpc_client)
        market_id = str(Pubkey.new_unique())

        keys = await cache.get(market_id)

        assert keys == market_keys
        assert len(cache) == 1
        data_slice = mock_rpc_client.get_account_info.call_args.kwargs["data_slice"]
        assert data_slice.offset == MARKET_EVENT_QUEUE_OFFSET
        assert data_slice.length == MARKET_KEYS_LENGTH

        # Second lookup is cached
        await cache.get(market_id)
        mock_rpc_client.get_account_info.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_account_raises(self, mock_rpc_client):
        mock_rpc_client.get_account_info = AsyncMock(return_value=SimpleNamespace(value=None))
        cache = MarketCache(mock_rpc_client)

        with pytest.raises(MarketNotFoundError):
            await cache.get(str(Pubkey.new_unique()))

    @pytest.mark.asyncio
    async def test_rpc_error_raises_not_found(self, mock_rpc_client):
        mock_rpc_client.get_account_info = AsyncMock(side_effect=RuntimeError("rpc down"))
        cache = MarketCache(mock_rpc_client)

        with pytest.raises(MarketNotFoundError):
            await cache.get(str(Pubkey.new_unique()))

    @pytest.mark.asyncio
    async def test_init_preloads_markets_for_quote_mint(self, mock_rpc_client, market_keys):
        data = bytes(market_keys.event_queue) + bytes(market_keys.bids) + bytes(market_keys.asks)
        market_id = Pubkey.new_unique()
        mock_rpc_client.get_program_accounts = AsyncMock(return_value=SimpleNamespace(value=[
            SimpleNamespace(pubkey=market_id, account=SimpleNamespace(data=data)),
        ]))
        mock_rpc_client.get_account_info = AsyncMock()
        cache = MarketCache(mock_rpc_client)
        quote_mint = Pubkey.new_unique()

        loaded = await cache.init(quote_mint)

        assert loaded == 1
        assert await cache.get(str(market_id)) == market_keys
        mock_rpc_client.get_account_info.assert_not_awaited()

        call = mock_rpc_client.get_program_accounts.call_args
        assert call.args[0] == OPENBOOK_PROGRAM_ID
        assert call.kwargs["data_slice"].offset == MARKET_EVENT_QUEUE_OFFSET
        size_filter, quote_filter = call.kwargs["filters"]
        assert size_filter == MARKET_STATE_SIZE
        assert quote_filter.offset == MARKET_QUOTE_MINT_OFFSET
        assert quote_filter.bytes == str(quote_mint)

    @pytest.mark.asyncio
    async def test_init_skips_short_accounts(self, mock_rpc_client):
        mock_rpc_client.get_program_accounts = AsyncMock(return_value=SimpleNamespace(value=[
            SimpleNamespace(pubkey=Pubkey.new_unique(), account=SimpleNamespace(data=b"\x00" * 10)),
        ]))
        cache = MarketCache(mock_rpc_client)

        assert await cache.init(Pubkey.new_unique()) == 0
        assert len(cache) == 0


class TestPoolCache:
    """Tests for pool lookups by base mint."""

    @pytest.mark.asyncio
    async def test_save_and_get_by_mint(self, pool_state):
        cache = PoolCache()
        pool_id = Pubkey.new_unique()

        await cache.save(str(pool_id), pool_state)
        record = await cache.get(str(pool_state.base_mint))

        assert record.id == pool_id
        assert record.state == pool_state

    @pytest.mark.asyncio
    async def test_unknown_mint(self):
        assert await PoolCache().get("unknown") is None

    @pytest.mark.asyncio
    async def test_first_pool_wins(self, pool_state):
        cache = PoolCache()
        first, second = Pubkey.new_unique(), Pubkey.new_unique()

        await cache.save(str(first), pool_state)
        await cache.save(str(second), pool_state)

        record = await cache.get(str(pool_state.base_mint))
        assert record.id == first
        assert len(cache) == 1
