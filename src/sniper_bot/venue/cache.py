"""
In-memory market and pool caches.

MarketCache is fed by market discovery events and falls back to an RPC read
on a miss. It can also be preloaded with every market quoted in the quote
token. PoolCache only knows pools the host has saved.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from solana.rpc.types import DataSliceOpts, MemcmpOpts
from solders.pubkey import Pubkey

from .models import MarketKeys, PoolRecord, PoolState

logger = logging.getLogger(__name__)

# Offset of the event queue in the v3 order-book market layout. Event queue,
# bids and asks follow as three consecutive pubkeys.
MARKET_EVENT_QUEUE_OFFSET = 253
MARKET_KEYS_LENGTH = 96

# OpenBook v3 market accounts: 388 bytes, quote mint at offset 85
OPENBOOK_PROGRAM_ID = Pubkey.from_string("srmqPvymJeFKQ4zGQed1GFppgkRHB9kaELCbyksJtPX")
MARKET_STATE_SIZE = 388
MARKET_QUOTE_MINT_OFFSET = 85


class MarketNotFoundError(Exception):
    """Raised when a market cannot be resolved from cache or chain."""

    def __init__(self, market_id: str):
        self.market_id = market_id
        super().__init__(f"Market {market_id} not found")


class MarketCache:
    """
    Market keys by market id.

    Usage:
        cache = MarketCache(client)
        cache.save(market_id, keys)          # from discovery events
        keys = await cache.get(market_id)    # fetches on miss
    """

    def __init__(self, client: Any, commitment: Optional[str] = None) -> None:
        self._client = client
        self._commitment = commitment
        self._keys: Dict[str, MarketKeys] = {}

    def __len__(self) -> int:
        return len(self._keys)

    async def init(
        self,
        quote_mint: Pubkey,
        program_id: Pubkey = OPENBOOK_PROGRAM_ID,
    ) -> int:
        """
        Preload every existing market quoted in ``quote_mint``.

        Returns:
            Number of markets loaded.
        """
        logger.debug(f"Fetching all existing markets quoted in {quote_mint}...")
        response = await self._client.get_program_accounts(
            program_id,
            commitment=self._commitment,
            data_slice=DataSliceOpts(
                offset=MARKET_EVENT_QUEUE_OFFSET,
                length=MARKET_KEYS_LENGTH,
            ),
            filters=[
                MARKET_STATE_SIZE,
                MemcmpOpts(offset=MARKET_QUOTE_MINT_OFFSET, bytes=str(quote_mint)),
            ],
        )

        loaded = 0
        for keyed in response.value or []:
            try:
                keys = MarketKeys.from_bytes(bytes(keyed.account.data))
            except ValueError as e:
                logger.debug(f"Skipping market {keyed.pubkey}: {e}")
                continue
            self._keys[str(keyed.pubkey)] = keys
            loaded += 1

        logger.debug(f"Cached {loaded} markets")
        return loaded

    def save(self, market_id: str, keys: MarketKeys) -> None:
        if market_id not in self._keys:
            logger.debug(f"Caching new market: {market_id}")
        self._keys[market_id] = keys

    async def get(self, market_id: str) -> MarketKeys:
        if market_id in self._keys:
            return self._keys[market_id]

        logger.debug(f"Fetching new market keys for {market_id}")
        keys = await self._fetch(market_id)
        self._keys[market_id] = keys
        return keys

    async def _fetch(self, market_id: str) -> MarketKeys:
        try:
            response = await self._client.get_account_info(
                Pubkey.from_string(market_id),
                commitment=self._commitment,
                data_slice=DataSliceOpts(
                    offset=MARKET_EVENT_QUEUE_OFFSET,
                    length=MARKET_KEYS_LENGTH,
                ),
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to fetch market {market_id}: {e}")
            raise MarketNotFoundError(market_id) from e

        account = response.value
        if account is None:
            raise MarketNotFoundError(market_id)

        return MarketKeys.from_bytes(bytes(account.data))


class PoolCache:
    """Pools keyed by base mint, as saved by the discovery host."""

    def __init__(self) -> None:
        self._pools: Dict[str, PoolRecord] = {}

    def __len__(self) -> int:
        return len(self._pools)

    async def save(self, pool_id: str, state: PoolState) -> None:
        mint = str(state.base_mint)
        if mint not in self._pools:
            logger.debug(f"Caching new pool for mint: {mint}")
            self._pools[mint] = PoolRecord(id=Pubkey.from_string(pool_id), state=state)

    async def get(self, mint: str) -> Optional[PoolRecord]:
        return self._pools.get(mint)
