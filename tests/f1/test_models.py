"""Tests for domain records (F1)."""

from datetime import datetime, timezone

from studytrack.core.models import (
    DEFAULT_SUBJECT_COLOR,
    DEFAULT_USER_NAME,
    Subject,
    TimerSession,
    TimerSettings,
    User,
    parse_timestamp,
)


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_trailing_z(self):
        dt = parse_timestamp("2024-03-01T10:00:00Z")
        assert dt == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        dt = parse_timestamp("2024-03-01T10:00:00")
        assert dt.tzinfo == timezone.utc

    def test_empty_is_none(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestUser:
    def test_from_row_defaults_name(self):
        """Missing name falls back to the default profile name."""
        user = User.from_row({"id": "u1", "email": "a@b.co", "avatar_url": "x.png"})
        assert user.name == DEFAULT_USER_NAME
        assert user.avatar == "x.png"


class TestSubject:
    """Tests for Subject rows."""

    def test_from_row_sorts_embedded_topics(self):
        """Embedded topics are ordered by their order column."""
        subject = Subject.from_row(
            {
                "id": "s1",
                "name": "Math",
                "color": None,
                "progress": None,
                "topics": [
                    {"id": "t2", "subject_id": "s1", "title": "Second", "order": 1},
                    {"id": "t1", "subject_id": "s1", "title": "First", "order": 0, "completed": True},
                ],
            }
        )
        assert [t.id for t in subject.topics] == ["t1", "t2"]
        assert subject.color == DEFAULT_SUBJECT_COLOR
        assert subject.progress == 0.0
        assert subject.completed_topics == 1

    def test_to_dict_counts(self):
        subject = Subject.from_row({"id": "s1", "name": "Math"})
        data = subject.to_dict()
        assert data["total_topics"] == 0
        assert data["completed_topics"] == 0
        assert data["topics"] == []


class TestTimerSession:
    """Tests for TimerSession rows."""

    def test_row_round_trip_keeps_times(self):
        start = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        end = datetime(2024, 3, 1, 9, 25, tzinfo=timezone.utc)
        session = TimerSession(type="focus", duration=25, completed=True, start_time=start, end_time=end)

        row = session.to_row("u1")
        assert row["user_id"] == "u1"
        assert row["start_time"] == "2024-03-01T09:00:00+00:00"

        restored = TimerSession.from_row({**row, "id": "ts1"})
        assert restored.start_time == start
        assert restored.end_time == end
        assert restored.id == "ts1"

    def test_open_session_has_no_end(self):
        session = TimerSession.from_row(
            {"id": "ts1", "type": "custom", "duration": 5, "start_time": "2024-03-01T09:00:00Z"}
        )
        assert session.end_time is None
        assert session.completed is False
        assert session.to_dict()["end_time"] is None


class TestTimerSettings:
    """Tests for TimerSettings."""

    def test_defaults(self):
        settings = TimerSettings()
        assert settings.focus_time == 25
        assert settings.short_break == 5
        assert settings.long_break == 15
        assert settings.auto_start is False
        assert settings.sound_enabled is True
        assert settings.notification_sound == "bell"

    def test_from_row_fills_missing_columns(self):
        settings = TimerSettings.from_row({"user_id": "u1", "focus_time": 50})
        assert settings.focus_time == 50
        assert settings.short_break == 5

    def test_to_row_includes_user(self):
        row = TimerSettings().to_row("u1")
        assert row["user_id"] == "u1"
        assert row["fullscreen_mode"] is False

    def test_unknown_sound_falls_back_to_bell(self):
        settings = TimerSettings.from_row({"user_id": "u1", "notification_sound": "gong"})
        assert settings.notification_sound == "bell"


class TestSessionType:
    def test_known_type_kept(self):
        session = TimerSession.from_row(
            {"type": "pomodoro", "duration": 25, "start_time": "2024-03-01T09:00:00Z"}
        )
        assert session.type == "pomodoro"

    def test_unknown_type_is_focus(self):
        session = TimerSession.from_row(
            {"type": "nap", "duration": 25, "start_time": "2024-03-01T09:00:00Z"}
        )
        assert session.type == "focus"
