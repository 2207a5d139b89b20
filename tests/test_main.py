"""
Tests for the application background tasks.
"""
import asyncio
import logging

import pytest

from app import main
from app.config import settings


@pytest.mark.asyncio
class TestBanSweep:
    """Test cases for the periodic ban expiry sweep."""

    async def test_sweep_survives_unexpected_errors(self, mocker, monkeypatch, caplog):
        monkeypatch.setattr(settings, "ban_sweep_interval_seconds", 0)
        mocker.patch.object(main, "AsyncSessionLocal")
        service_cls = mocker.patch.object(main, "ModerationService")
        sweep = service_cls.return_value.reactivate_expired_bans = mocker.AsyncMock(
            side_effect=[RuntimeError("boom"), 2, asyncio.CancelledError()]
        )

        with caplog.at_level(logging.ERROR, logger="app.main"):
            with pytest.raises(asyncio.CancelledError):
                await main.sweep_expired_bans()

        assert sweep.await_count == 3
        assert "Ban expiry sweep failed" in caplog.text
