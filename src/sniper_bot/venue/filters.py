"""
Pool eligibility filters.

These run BEFORE a buy is submitted. If any enabled filter rejects, the
pool is skipped. Filters are bypassed entirely when the snipe list is on.

Each filter returns a (passes, reason) tuple. A filter that cannot reach
the chain rejects: an unknown pool is never bought.
"""
from __future__ import annotations

import asyncio
import logging
import struct
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .models import VenueKeys

logger = logging.getLogger(__name__)

# SPL mint layout offsets: mint_authority COption (u32 tag at 0),
# freeze_authority COption (u32 tag at 46).
MINT_AUTHORITY_OPTION_OFFSET = 0
FREEZE_AUTHORITY_OPTION_OFFSET = 46
MINT_MIN_SIZE = 82


@dataclass
class PoolFilterConfig:
    """Which filters are enabled, and pool-size bounds in raw quote units."""

    check_burned: bool = False
    check_renounced: bool = False
    check_freezable: bool = False
    min_pool_size: int = 0  # 0 disables the bound
    max_pool_size: int = 0  # 0 disables the bound


# =============================================================================
# LP BURN FILTER
# =============================================================================


class BurnFilter:
    """Rejects pools whose LP tokens have not been burned."""

    def __init__(self, client: Any) -> None:
        self._client = client

    async def execute(self, keys: VenueKeys) -> Tuple[bool, str]:
        try:
            response = await self._client.get_token_supply(keys.lp_mint)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Freshly created LP mints can be missing for a slot or two
            logger.debug(f"Failed to check if LP is burned for {keys.base_mint}: {e}")
            return False, "Burned -> Failed to check if LP is burned"

        if int(response.value.amount) == 0:
            return True, ""
        return False, "Burned -> Creator didn't burn LP"


# =============================================================================
# MINT AUTHORITY / FREEZE FILTER
# =============================================================================


class RenouncedFreezeFilter:
    """Rejects mints whose creator can still mint or freeze."""

    def __init__(
        self,
        client: Any,
        check_renounced: bool = True,
        check_freezable: bool = True,
    ) -> None:
        self._client = client
        self._check_renounced = check_renounced
        self._check_freezable = check_freezable

    async def execute(self, keys: VenueKeys) -> Tuple[bool, str]:
        try:
            response = await self._client.get_account_info(keys.base_mint)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to check mint authority for {keys.base_mint}: {e}")
            return False, "RenouncedFreeze -> Failed to check if mint is renounced and freezable"

        account = response.value
        if account is None:
            return False, "RenouncedFreeze -> Failed to fetch account data"

        data = bytes(account.data)
        if len(data) < MINT_MIN_SIZE:
            return False, "RenouncedFreeze -> Failed to decode mint data"

        (mint_authority_option,) = struct.unpack_from("<I", data, MINT_AUTHORITY_OPTION_OFFSET)
        (freeze_authority_option,) = struct.unpack_from("<I", data, FREEZE_AUTHORITY_OPTION_OFFSET)

        renounced = not self._check_renounced or mint_authority_option == 0
        not_freezable = not self._check_freezable or freeze_authority_option == 0
        if renounced and not_freezable:
            return True, ""

        problems = []
        if not renounced:
            problems.append("mint")
        if not not_freezable:
            problems.append("freeze")
        return False, f"RenouncedFreeze -> Creator can {' and '.join(problems)} more tokens"


# =============================================================================
# POOL SIZE FILTER
# =============================================================================


class PoolSizeFilter:
    """Rejects pools whose quote reserve is outside [min_size, max_size]."""

    def __init__(self, client: Any, min_size: int = 0, max_size: int = 0) -> None:
        self._client = client
        self._min_size = min_size
        self._max_size = max_size

    async def execute(self, keys: VenueKeys) -> Tuple[bool, str]:
        try:
            response = await self._client.get_token_account_balance(keys.quote_vault)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to check pool size for {keys.base_mint}: {e}")
            return False, "PoolSize -> Failed to check pool size"

        pool_size = int(response.value.amount)

        if self._max_size and pool_size > self._max_size:
            return False, f"PoolSize -> Pool size {pool_size} > {self._max_size}"
        if self._min_size and pool_size < self._min_size:
            return False, f"PoolSize -> Pool size {pool_size} < {self._min_size}"
        return True, ""


# =============================================================================
# COMBINED FILTERS
# =============================================================================


class PoolFilters:
    """
    Runs every enabled filter concurrently; all must pass.

    Usage:
        filters = PoolFilters(client, PoolFilterConfig(check_burned=True))
        if await filters.execute(keys):
            ...
    """

    def __init__(
        self,
        client: Any,
        config: Optional[PoolFilterConfig] = None,
    ) -> None:
        self._config = config or PoolFilterConfig()
        self._filters: List[Any] = []

        if self._config.check_burned:
            self._filters.append(BurnFilter(client))

        if self._config.check_renounced or self._config.check_freezable:
            self._filters.append(
                RenouncedFreezeFilter(
                    client,
                    check_renounced=self._config.check_renounced,
                    check_freezable=self._config.check_freezable,
                )
            )

        if self._config.min_pool_size or self._config.max_pool_size:
            self._filters.append(
                PoolSizeFilter(
                    client,
                    min_size=self._config.min_pool_size,
                    max_size=self._config.max_pool_size,
                )
            )

    @property
    def filters(self) -> List[Any]:
        return list(self._filters)

    async def execute(self, keys: VenueKeys) -> bool:
        if not self._filters:
            return True

        results = await asyncio.gather(*(f.execute(keys) for f in self._filters))

        for passes, reason in results:
            if not passes:
                logger.debug(f"Pool {keys.pool_id} for {keys.base_mint} rejected: {reason}")
                return False

        return True
