"""
Snipe list: a static allow-list of mints to buy.

When the snipe list is active, only listed mints are bought and the pool
eligibility filters are skipped. The file holds one mint per line; blank
lines and lines starting with '#' are ignored. It is re-read on an interval
so entries can be added while the bot runs.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Set, Union

logger = logging.getLogger(__name__)


class SnipeList:
    def __init__(
        self,
        path: Union[str, Path] = "snipe-list.txt",
        refresh_interval_seconds: float = 30.0,
    ) -> None:
        self._path = Path(path)
        self._refresh_interval = refresh_interval_seconds
        self._mints: Set[str] = set()
        self._task: Optional[asyncio.Task] = None

    def __contains__(self, mint: object) -> bool:
        return str(mint) in self._mints

    def __len__(self) -> int:
        return len(self._mints)

    def load(self) -> None:
        """Read the file, keeping the previous list if it cannot be read."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read snipe list {self._path}: {e}")
            return

        mints = {
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        }
        if mints != self._mints:
            logger.info(f"Loaded snipe list: {len(mints)} mints")
        self._mints = mints

    async def start(self) -> None:
        self.load()
        if self._task is None:
            self._task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval)
            self.load()
