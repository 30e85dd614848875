"""
Risk score client for rugcheck.xyz token reports.

The controller treats any failure here as "no signal" and proceeds with the
buy, so this client raises RiskScoreError rather than returning a default.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class RiskScoreError(Exception):
    """Raised when a risk report cannot be fetched or parsed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RiskItem(BaseModel):
    """A single risk flagged by the report."""

    model_config = ConfigDict(extra="ignore")

    name: str
    score: float = 0
    level: Optional[str] = None
    description: Optional[str] = None


class RiskReport(BaseModel):
    """The subset of a rugcheck.xyz report the bot uses."""

    model_config = ConfigDict(extra="ignore")

    mint: Optional[str] = None
    score: float
    rugged: bool = False
    risks: Optional[List[RiskItem]] = None


class RugcheckClient:
    """
    Async client for the rugcheck.xyz report API.

    Usage:
        async with RugcheckClient() as client:
            score = await client.fetch_score(mint)
    """

    BASE_URL = "https://api.rugcheck.xyz/v1"

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
        base_url: Optional[str] = None,
    ):
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._base_url = base_url or self.BASE_URL

    async def __aenter__(self) -> "RugcheckClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def _request(self, url: str) -> Any:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        try:
            async with self._session.get(url) as response:
                if response.status != 200:
                    text = await response.text()
                    raise RiskScoreError(
                        f"API error: {response.status} - {text}",
                        status_code=response.status,
                    )
                return await response.json()
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            raise RiskScoreError("Request timed out") from e
        except aiohttp.ClientError as e:
            raise RiskScoreError(f"Request failed: {e}") from e

    async def fetch_report(self, mint: str) -> RiskReport:
        data = await self._request(f"{self._base_url}/tokens/{mint}/report")
        try:
            return RiskReport.model_validate(data)
        except Exception as e:
            raise RiskScoreError(f"Malformed report for {mint}: {e}") from e

    async def fetch_score(self, mint: str) -> float:
        report = await self.fetch_report(mint)
        return report.score
