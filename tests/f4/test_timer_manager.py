"""Tests for TimerManager (F4)."""

import asyncio

import pytest

from studytrack.backend.base import TIMER_SESSIONS_TABLE, BackendError
from studytrack.backend.memory import MemoryBackend
from studytrack.core.models import TimerSettings
from studytrack.web.timers import TimerManager, UserTimer


async def _signed_up(backend: MemoryBackend):
    response = await backend.sign_up("ana@example.com", "secret1", {"name": "Ana"})
    return response.user.id, response.session.access_token


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def manager(backend):
    """Create fresh timer manager."""
    return TimerManager(backend=backend, auto_start_delay=2)


class TestTimerManagerTimers:
    """Tests for timer lookup."""

    @pytest.mark.asyncio
    async def test_get_timer_creates_once(self, manager):
        first = await manager.get_timer("u1", "token")
        second = await manager.get_timer("u1", "token")
        assert isinstance(first, UserTimer)
        assert first is second
        assert await manager.get_timer_count() == 1

    @pytest.mark.asyncio
    async def test_get_timer_uses_settings(self, manager):
        entry = await manager.get_timer("u1", "token", TimerSettings(focus_time=10))
        assert entry.timer.time_left == 600

    @pytest.mark.asyncio
    async def test_changed_settings_applied(self, manager):
        await manager.get_timer("u1", "token", TimerSettings())
        entry = await manager.get_timer("u1", "token", TimerSettings(focus_time=30))
        assert entry.timer.time_left == 1800

    @pytest.mark.asyncio
    async def test_token_refreshed(self, manager):
        await manager.get_timer("u1", "old")
        entry = await manager.get_timer("u1", "new")
        assert entry.access_token == "new"

    @pytest.mark.asyncio
    async def test_remove_timer(self, manager):
        await manager.get_timer("u1", "token")
        assert await manager.remove_timer("u1") is True
        assert await manager.remove_timer("u1") is False
        assert await manager.get_timer_count() == 0


class TestTimerManagerTicks:
    """Tests for tick_all and the background loop."""

    @pytest.mark.asyncio
    async def test_tick_all_records_completed_session(self, manager, backend):
        user_id, token = await _signed_up(backend)
        entry = await manager.get_timer(user_id, token, TimerSettings(focus_time=1))
        entry.timer.start()

        recorded = []
        for _ in range(60):
            recorded.extend(await manager.tick_all())

        assert len(recorded) == 1
        assert entry.play_sound is True
        rows = await backend.select(TIMER_SESSIONS_TABLE, {"user_id": user_id})
        assert rows[0]["duration"] == 1
        assert rows[0]["completed"] is True

    @pytest.mark.asyncio
    async def test_failed_recording_is_not_returned(self, manager, backend, monkeypatch):
        user_id, token = await _signed_up(backend)
        entry = await manager.get_timer(user_id, token, TimerSettings(focus_time=1))
        entry.timer.start()

        async def fail(*args, **kwargs):
            raise BackendError("permission denied", status_code=403)

        monkeypatch.setattr(backend, "insert", fail)
        recorded = []
        for _ in range(60):
            recorded.extend(await manager.tick_all())

        assert recorded == []
        assert not entry.timer.is_running

    @pytest.mark.asyncio
    async def test_background_loop(self, manager, backend):
        user_id, token = await _signed_up(backend)
        entry = await manager.get_timer(user_id, token)
        entry.timer.start()

        manager.start(interval=0.01)
        manager.start(interval=0.01)
        await asyncio.sleep(0.1)
        await manager.stop()

        assert entry.timer.time_left < 1500
        left = entry.timer.time_left
        await asyncio.sleep(0.05)
        assert entry.timer.time_left == left

    @pytest.mark.asyncio
    async def test_stop_without_start(self, manager):
        await manager.stop()
