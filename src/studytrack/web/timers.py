"""Live focus timers for the Web API.

Keeps one ``FocusTimer`` per signed-in user and advances all of them from a
single background loop. Completed sessions are recorded through
``StudyService`` with the owner's access token. In-flight timer state is
not persisted: a server restart drops running timers.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from studytrack.backend.base import Backend
from studytrack.config.app_config import load_app_config
from studytrack.core.models import TimerSession, TimerSettings
from studytrack.core.timer import FocusTimer
from studytrack.services.study import StudyService
from studytrack.web.deps import get_backend

logger = structlog.get_logger(__name__)


@dataclass
class UserTimer:
    """A user's live timer."""

    user_id: str
    access_token: str
    timer: FocusTimer
    # Sound cue waiting to be picked up by the client
    play_sound: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {**self.timer.to_dict(), "play_sound": self.play_sound}


class TimerManager:
    """Manages live timers for all users."""

    def __init__(self, backend: Backend | None = None, auto_start_delay: int | None = None):
        self._backend = backend
        self._auto_start_delay = auto_start_delay
        self._timers: dict[str, UserTimer] = {}
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    def _get_backend(self) -> Backend:
        return self._backend or get_backend()

    async def get_timer(
        self,
        user_id: str,
        access_token: str,
        settings: TimerSettings | None = None,
    ) -> UserTimer:
        """Get the user's timer, creating it on first use.

        Args:
            user_id: Owner of the timer
            access_token: Token used to record completed sessions
            settings: Current settings; applied to an existing timer too

        Returns:
            The user's UserTimer
        """
        async with self._lock:
            entry = self._timers.get(user_id)
            if entry is None:
                delay = self._auto_start_delay
                if delay is None:
                    delay = load_app_config().timer.auto_start_delay
                entry = UserTimer(
                    user_id=user_id,
                    access_token=access_token,
                    timer=FocusTimer(settings, auto_start_delay=delay),
                )
                self._timers[user_id] = entry
                logger.info("timer_created", user_id=user_id)
            else:
                entry.access_token = access_token
                if settings is not None and settings != entry.timer.settings:
                    entry.timer.apply_settings(settings)
            return entry

    async def remove_timer(self, user_id: str) -> bool:
        async with self._lock:
            return self._timers.pop(user_id, None) is not None

    async def get_timer_count(self) -> int:
        async with self._lock:
            return len(self._timers)

    async def tick_all(self) -> list[TimerSession]:
        """Advance every timer by one interval.

        Returns:
            Sessions recorded during this tick.
        """
        async with self._lock:
            entries = list(self._timers.values())

        recorded: list[TimerSession] = []
        for entry in entries:
            result = entry.timer.tick()
            if result.play_sound:
                entry.play_sound = True
            if result.completed_session is None:
                continue

            study = StudyService(self._get_backend(), entry.user_id, entry.access_token)
            stored = await study.add_timer_session(result.completed_session)
            if stored is not None:
                recorded.append(stored)
        return recorded

    async def _run(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.tick_all()
            except Exception:
                logger.exception("timer_tick_failed")

    def start(self, interval: float = 1.0) -> None:
        """Start the background tick loop (idempotent)."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(interval))
            logger.info("timer_loop_started", interval=interval)

    async def stop(self) -> None:
        """Stop the background tick loop."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("timer_loop_stopped")


# Global timer manager instance
_timer_manager: TimerManager | None = None


def get_timer_manager() -> TimerManager:
    """Get the global timer manager instance."""
    global _timer_manager
    if _timer_manager is None:
        _timer_manager = TimerManager()
    return _timer_manager


def reset_timer_manager() -> None:
    """Reset the timer manager (for testing)."""
    global _timer_manager
    _timer_manager = None
