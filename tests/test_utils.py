from unittest.mock import AsyncMock
from decimal import Decimal
import pytest

from modules.utils import TgReport, async_sleeping, make_border, round_cut
from modules.utils.tg_report import split_message
import modules.utils.tg_report as tg_report
import modules.utils.utils as utils


class TestTgReport:
    def test_render(self):
        report = TgReport(title="0xabc")
        report.add("Claiming faucet", True)
        report.add("Minting", False)
        report.add("note <b>")

        text = report.render()
        assert text.startswith("👛 <b>0xabc</b>")
        assert "✅ Claiming faucet" in text
        assert "❌ Minting" in text
        assert "note &lt;b&gt;" in text
        assert text.endswith("Success rate 1/2")
        assert report.success_rate == (1, 2)

    def test_split_on_lines(self):
        text = "\n".join(["x" * 40] * 10)
        chunks = split_message(text, limit=100)
        assert "".join(chunks) == text
        assert all(len(chunk) <= 100 for chunk in chunks)
        assert all(chunk.rstrip("\n").endswith("x") for chunk in chunks)

    def test_split_long_line(self):
        assert split_message("y" * 250, limit=100) == ["y" * 100, "y" * 100, "y" * 50]

    def test_split_empty(self):
        assert split_message("") == []

    @pytest.mark.asyncio
    async def test_send_disabled_without_token(self, monkeypatch):
        session_cls = AsyncMock()
        monkeypatch.setattr(tg_report, "TG_BOT_TOKEN", "")
        monkeypatch.setattr(tg_report, "ClientSession", session_cls)
        await TgReport(title="0xabc").send()
        session_cls.assert_not_called()


class TestHelpers:
    def test_round_cut(self):
        assert round_cut(0.123456789, 4) == Decimal("0.1234")
        assert round_cut("1.99", 1) == Decimal("1.9")

    def test_make_border(self):
        table = make_border({"Claiming faucet": "done", "Balance": "0.5 A0GI"})
        assert "Claiming faucet" in table
        assert "0.5 A0GI" in table
        assert make_border({}) == "No text"

    @pytest.mark.asyncio
    async def test_async_sleeping(self, monkeypatch):
        sleep = AsyncMock()
        monkeypatch.setattr(utils.asyncio, "sleep", sleep)
        await async_sleeping([3, 3])
        assert sleep.await_count == 3

    def test_package_attribute_not_shadowed(self):
        import modules
        assert modules.utils.__name__ == "modules.utils"
        assert modules.utils.tg_report is tg_report
