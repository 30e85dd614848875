"""
Tests for the rugcheck.xyz risk score client.

Every failure must surface as RiskScoreError so the controller can fail open.
"""
import asyncio
import pytest

import aiohttp

from sniper_bot.venue import RiskReport, RiskScoreError, RugcheckClient


REPORT = {
    "mint": "Mint111",
    "score": 1250,
    "rugged": False,
    "risks": [
        {"name": "Low Liquidity", "score": 1000, "level": "warn", "description": "low"},
    ],
    "tokenMeta": {"name": "ignored"},
}


class TestFetchReport:
    """Tests for fetching and parsing reports."""

    @pytest.mark.asyncio
    async def test_parses_report(self, make_session):
        session = make_session(payload=REPORT)
        client = RugcheckClient(session=session)

        report = await client.fetch_report("Mint111")

        assert isinstance(report, RiskReport)
        assert report.score == 1250
        assert report.risks[0].name == "Low Liquidity"
        session.get.assert_called_once_with("https://api.rugcheck.xyz/v1/tokens/Mint111/report")

    @pytest.mark.asyncio
    async def test_fetch_score(self, make_session):
        client = RugcheckClient(session=make_session(payload=REPORT))

        assert await client.fetch_score("Mint111") == 1250

    @pytest.mark.asyncio
    async def test_custom_base_url(self, make_session):
        session = make_session(payload=REPORT)
        client = RugcheckClient(session=session, base_url="http://localhost:9999")

        await client.fetch_score("Mint111")

        session.get.assert_called_once_with("http://localhost:9999/tokens/Mint111/report")


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_http_error_status(self, make_session):
        client = RugcheckClient(session=make_session(status=429, text="rate limited"))

        with pytest.raises(RiskScoreError) as exc_info:
            await client.fetch_score("Mint111")

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout(self, make_session):
        client = RugcheckClient(session=make_session(side_effect=asyncio.TimeoutError()))

        with pytest.raises(RiskScoreError, match="timed out"):
            await client.fetch_score("Mint111")

    @pytest.mark.asyncio
    async def test_connection_error(self, make_session):
        client = RugcheckClient(
            session=make_session(side_effect=aiohttp.ClientConnectionError("refused"))
        )

        with pytest.raises(RiskScoreError):
            await client.fetch_score("Mint111")

    @pytest.mark.asyncio
    async def test_malformed_report(self, make_session):
        client = RugcheckClient(session=make_session(payload={"mint": "Mint111"}))

        with pytest.raises(RiskScoreError, match="Malformed"):
            await client.fetch_score("Mint111")


class TestSessionOwnership:
    """Tests for closing sessions."""

    @pytest.mark.asyncio
    async def test_injected_session_not_closed(self, make_session):
        session = make_session(payload=REPORT)

        async with RugcheckClient(session=session) as client:
            await client.fetch_score("Mint111")

        session.close.assert_not_called()
