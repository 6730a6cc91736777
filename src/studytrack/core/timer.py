"""Focus/break countdown timer.

The timer is driven by ``tick()`` once per interval (one second). It does
not own a clock loop: the web layer and the CLI call ``tick()`` from their
own loops, which keeps the state machine deterministic.

States:
    idle      -> start()  -> running
    running   -> pause()  -> paused (session still started)
    paused    -> start()  -> running
    any       -> reset()  -> idle, full duration
    running   -> tick() reaching 0 -> idle + completed TimerSession
                 (and, with auto_start, the next mode starts after a delay)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable

import structlog

from studytrack.core.models import TimerSession, TimerSettings, utc_now

logger = structlog.get_logger(__name__)

# Seconds to wait after a completed session before auto-starting the next one
AUTO_START_DELAY = 2


class TimerMode(str, Enum):
    """Timer modes."""

    FOCUS = "focus"
    SHORT = "short"
    LONG = "long"


MODE_LABELS: dict[TimerMode, str] = {
    TimerMode.FOCUS: "Focus Session",
    TimerMode.SHORT: "Short Break",
    TimerMode.LONG: "Long Break",
}


def next_mode(mode: TimerMode) -> TimerMode:
    """Mode that follows ``mode`` when auto-start is on."""
    return TimerMode.SHORT if mode == TimerMode.FOCUS else TimerMode.FOCUS


def mode_minutes(settings: TimerSettings, mode: TimerMode) -> int:
    if mode == TimerMode.SHORT:
        return settings.short_break
    if mode == TimerMode.LONG:
        return settings.long_break
    return settings.focus_time


def format_clock(seconds: int) -> str:
    """Format seconds as ``MM:SS``."""
    mins, secs = divmod(max(seconds, 0), 60)
    return f"{mins:02d}:{secs:02d}"


@dataclass
class TickResult:
    """Side effects produced by a single tick."""

    completed_session: TimerSession | None = None
    play_sound: bool = False
    auto_started: bool = False


class FocusTimer:
    """Pomodoro-style countdown for one user."""

    def __init__(
        self,
        settings: TimerSettings | None = None,
        auto_start_delay: int = AUTO_START_DELAY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or TimerSettings()
        self.auto_start_delay = auto_start_delay
        self._clock = clock

        self.mode = TimerMode.FOCUS
        self.time_left = self.duration
        self.is_running = False
        self.session_started = False
        self.sound_enabled = self.settings.sound_enabled
        self.subject_id: str | None = None
        self.started_at: datetime | None = None
        self._auto_start_in: int | None = None

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def duration(self) -> int:
        """Full length of the current mode in seconds."""
        return mode_minutes(self.settings, self.mode) * 60

    @property
    def label(self) -> str:
        return MODE_LABELS[self.mode]

    @property
    def progress(self) -> float:
        """Elapsed share of the current mode as a percentage."""
        if self.duration <= 0:
            return 0.0
        return (self.duration - self.time_left) / self.duration * 100

    @property
    def auto_start_pending(self) -> bool:
        return self._auto_start_in is not None

    # -------------------------------------------------------------------------
    # Controls
    # -------------------------------------------------------------------------

    def start(self, subject_id: str | None = None) -> None:
        """Start or resume the countdown."""
        self._auto_start_in = None
        if self.is_running:
            return
        if not self.session_started:
            self.started_at = self._clock()
            self.subject_id = subject_id
        self.is_running = True
        self.session_started = True

    def pause(self) -> None:
        self.is_running = False

    def reset(self) -> None:
        """Abandon the current session and restore the full duration."""
        self._auto_start_in = None
        self.is_running = False
        self.session_started = False
        self.started_at = None
        self.subject_id = None
        self.time_left = self.duration

    def set_mode(self, mode: TimerMode | str) -> bool:
        """Switch mode. Ignored while a session is started.

        Returns:
            True if the mode was changed.
        """
        if self.session_started:
            return False
        self._auto_start_in = None
        self.mode = TimerMode(mode)
        self.time_left = self.duration
        return True

    def apply_settings(self, settings: TimerSettings) -> None:
        """Use new settings; an idle timer picks up the new duration."""
        self.settings = settings
        if not self.session_started:
            self.time_left = self.duration

    def toggle_sound(self) -> bool:
        self.sound_enabled = not self.sound_enabled
        return self.sound_enabled

    # -------------------------------------------------------------------------
    # Countdown
    # -------------------------------------------------------------------------

    def tick(self) -> TickResult:
        """Advance the timer by one interval."""
        if self._auto_start_in is not None:
            self._auto_start_in -= 1
            if self._auto_start_in <= 0:
                self._auto_start_in = None
                self.mode = next_mode(self.mode)
                self.time_left = self.duration
                self.start()
                logger.debug("timer_auto_started", mode=self.mode.value)
                return TickResult(auto_started=True)
            return TickResult()

        if self.is_running and self.time_left > 0:
            self.time_left -= 1

        if self.time_left == 0 and self.session_started:
            return self._complete()

        return TickResult()

    def _complete(self) -> TickResult:
        now = self._clock()
        session = TimerSession(
            type="focus" if self.mode == TimerMode.FOCUS else "custom",
            duration=mode_minutes(self.settings, self.mode),
            completed=True,
            start_time=self.started_at or now,
            end_time=now,
            subject_id=self.subject_id,
        )

        self.is_running = False
        self.session_started = False
        self.started_at = None
        self.subject_id = None
        self.time_left = self.duration

        if self.settings.auto_start:
            self._auto_start_in = self.auto_start_delay

        logger.debug(
            "timer_session_completed",
            mode=self.mode.value,
            duration=session.duration,
            auto_start=self.settings.auto_start,
        )
        return TickResult(completed_session=session, play_sound=self.sound_enabled)

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for API responses."""
        return {
            "mode": self.mode.value,
            "label": self.label,
            "time_left": self.time_left,
            "clock": format_clock(self.time_left),
            "duration": self.duration,
            "progress": self.progress,
            "is_running": self.is_running,
            "session_started": self.session_started,
            "sound_enabled": self.sound_enabled,
            "auto_start_pending": self.auto_start_pending,
            "subject_id": self.subject_id,
        }
