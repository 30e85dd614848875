"""
Tests for the snipe list.
"""
import asyncio
import pytest

from solders.pubkey import Pubkey

from sniper_bot.venue import SnipeList


class TestLoad:
    """Tests for reading the list file."""

    def test_loads_mints(self, tmp_path):
        mint = Pubkey.new_unique()
        path = tmp_path / "snipe-list.txt"
        path.write_text(f"{mint}\n\n# comment\n  OtherMint  \n")

        snipe_list = SnipeList(path)
        snipe_list.load()

        assert len(snipe_list) == 2
        assert mint in snipe_list
        assert str(mint) in snipe_list
        assert "OtherMint" in snipe_list
        assert "# comment" not in snipe_list

    def test_missing_file_keeps_previous_list(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n")
        snipe_list = SnipeList(path)
        snipe_list.load()

        path.unlink()
        snipe_list.load()

        assert "MintA" in snipe_list

    def test_missing_file_starts_empty(self, tmp_path):
        snipe_list = SnipeList(tmp_path / "absent.txt")

        snipe_list.load()

        assert len(snipe_list) == 0

    def test_reload_replaces_entries(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n")
        snipe_list = SnipeList(path)
        snipe_list.load()

        path.write_text("MintB\n")
        snipe_list.load()

        assert "MintA" not in snipe_list
        assert "MintB" in snipe_list


class TestRefresh:
    """Tests for the background refresh task."""

    @pytest.mark.asyncio
    async def test_refresh_picks_up_changes(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n")
        snipe_list = SnipeList(path, refresh_interval_seconds=0.01)

        await snipe_list.start()
        try:
            path.write_text("MintA\nMintB\n")
            for _ in range(100):
                if "MintB" in snipe_list:
                    break
                await asyncio.sleep(0.01)

            assert "MintB" in snipe_list
        finally:
            await snipe_list.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, tmp_path):
        await SnipeList(tmp_path / "absent.txt").stop()  # Should not raise
