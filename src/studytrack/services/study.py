"""Per-user study state synchronized with the hosted backend.

``StudyService`` mirrors one user's subjects, topics, timer sessions and
settings. Each mutation is sent to the backend first and applied to the
local mirror only when it succeeds. Backend failures are logged and
swallowed: the method returns ``None`` (or ``False``) and the mirror is left
untouched. There is no retry and no rollback.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Any, Sequence

import structlog

from studytrack.backend.base import (
    SUBJECTS_TABLE,
    TIMER_SESSIONS_TABLE,
    TOPICS_TABLE,
    USER_SETTINGS_TABLE,
    Backend,
    BackendError,
)
from studytrack.core.models import (
    DEFAULT_SUBJECT_COLOR,
    Subject,
    TimerSession,
    TimerSettings,
    Topic,
    User,
    UserStats,
    utc_now,
    utc_now_iso,
)
from studytrack.core.progress import (
    compute_progress,
    move_topic,
    next_topic_order,
    renumber_topics,
    reorder_topics,
)
from studytrack.core.stats import build_analytics, calculate_stats

logger = structlog.get_logger(__name__)

SETTINGS_FIELDS = tuple(TimerSettings().to_dict())


class StudyService:
    """Study data for a single signed-in user."""

    def __init__(self, backend: Backend, user_id: str, access_token: str | None = None):
        self.backend = backend
        self.user_id = user_id
        self.access_token = access_token

        self.subjects: list[Subject] = []
        self.timer_sessions: list[TimerSession] = []
        self.timer_settings = TimerSettings()
        self.stats = UserStats()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def refresh(self) -> bool:
        """Reload subjects (with topics), sessions and settings.

        Returns:
            False if any backend call failed (state is partially refreshed).
        """
        ok = True
        try:
            rows = await self.backend.select(
                SUBJECTS_TABLE,
                {"user_id": self.user_id},
                order="created_at",
                embed=TOPICS_TABLE,
                access_token=self.access_token,
            )
            self.subjects = [Subject.from_row(r) for r in rows]

            rows = await self.backend.select(
                TIMER_SESSIONS_TABLE,
                {"user_id": self.user_id},
                order="created_at",
                desc=True,
                access_token=self.access_token,
            )
            self.timer_sessions = [TimerSession.from_row(r) for r in rows]

            rows = await self.backend.select(
                USER_SETTINGS_TABLE,
                {"user_id": self.user_id},
                access_token=self.access_token,
            )
            if rows:
                self.timer_settings = TimerSettings.from_row(rows[0])
        except BackendError as e:
            logger.error("refresh_failed", user_id=self.user_id, error=str(e))
            ok = False

        self.calculate_stats()
        return ok

    def get_subject(self, subject_id: str) -> Subject | None:
        for subject in self.subjects:
            if subject.id == subject_id:
                return subject
        return None

    def _replace_subject(self, subject: Subject) -> None:
        self.subjects = [subject if s.id == subject.id else s for s in self.subjects]

    # -------------------------------------------------------------------------
    # Subjects
    # -------------------------------------------------------------------------

    async def add_subject(self, name: str, color: str = DEFAULT_SUBJECT_COLOR) -> Subject | None:
        try:
            row = await self.backend.insert(
                SUBJECTS_TABLE,
                {"user_id": self.user_id, "name": name, "color": color, "progress": 0},
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("add_subject_failed", user_id=self.user_id, error=str(e))
            return None

        subject = Subject.from_row({**row, "topics": []})
        self.subjects.append(subject)
        self.calculate_stats()
        logger.info("subject_added", subject_id=subject.id)
        return subject

    async def update_subject(
        self,
        subject_id: str,
        name: str | None = None,
        color: str | None = None,
        progress: float | None = None,
    ) -> Subject | None:
        subject = self.get_subject(subject_id)
        if subject is None:
            return None

        changes: dict[str, Any] = {
            key: value
            for key, value in (("name", name), ("color", color), ("progress", progress))
            if value is not None
        }
        try:
            await self.backend.update(
                SUBJECTS_TABLE,
                {**changes, "updated_at": utc_now_iso()},
                {"id": subject_id},
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("update_subject_failed", subject_id=subject_id, error=str(e))
            return None

        updated = replace(subject, **changes)
        self._replace_subject(updated)
        self.calculate_stats()
        return updated

    async def delete_subject(self, subject_id: str) -> bool:
        try:
            await self.backend.delete(
                SUBJECTS_TABLE, {"id": subject_id}, access_token=self.access_token
            )
        except BackendError as e:
            logger.error("delete_subject_failed", subject_id=subject_id, error=str(e))
            return False

        self.subjects = [s for s in self.subjects if s.id != subject_id]
        self.calculate_stats()
        logger.info("subject_deleted", subject_id=subject_id)
        return True

    async def _store_topics(self, subject: Subject, topics: list[Topic]) -> Subject:
        """Apply a new topic list and persist the recomputed progress."""
        progress = compute_progress(topics)
        updated = replace(subject, topics=topics, progress=progress)
        self._replace_subject(updated)

        if progress != subject.progress:
            try:
                await self.backend.update(
                    SUBJECTS_TABLE,
                    {"progress": progress, "updated_at": utc_now_iso()},
                    {"id": subject.id},
                    access_token=self.access_token,
                )
            except BackendError as e:
                logger.error("update_progress_failed", subject_id=subject.id, error=str(e))

        self.calculate_stats()
        return updated

    # -------------------------------------------------------------------------
    # Topics
    # -------------------------------------------------------------------------

    async def add_topic(self, subject_id: str, title: str) -> Topic | None:
        subject = self.get_subject(subject_id)
        if subject is None:
            return None

        try:
            row = await self.backend.insert(
                TOPICS_TABLE,
                {
                    "subject_id": subject_id,
                    "title": title,
                    "completed": False,
                    "order": next_topic_order(subject.topics),
                },
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("add_topic_failed", subject_id=subject_id, error=str(e))
            return None

        topic = Topic.from_row(row)
        await self._store_topics(subject, [*subject.topics, topic])
        logger.info("topic_added", subject_id=subject_id, topic_id=topic.id)
        return topic

    async def update_topic(
        self,
        subject_id: str,
        topic_id: str,
        title: str | None = None,
        completed: bool | None = None,
        order: int | None = None,
    ) -> Topic | None:
        """Edit a topic.

        A new ``order`` moves the topic to that position (clamped to the
        last one) and the whole checklist is renumbered ``0..n-1``.
        """
        subject = self.get_subject(subject_id)
        topic = subject.get_topic(topic_id) if subject else None
        if subject is None or topic is None:
            return None

        changes: dict[str, Any] = {
            key: value
            for key, value in (("title", title), ("completed", completed))
            if value is not None
        }
        try:
            await self.backend.update(
                TOPICS_TABLE,
                {**changes, "updated_at": utc_now_iso()},
                {"id": topic_id},
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("update_topic_failed", topic_id=topic_id, error=str(e))
            return None

        topics = [replace(t, **changes) if t.id == topic_id else t for t in subject.topics]
        if order is not None:
            topics = move_topic(topics, topic_id, order)
            await self._persist_orders(subject.topics, topics)

        await self._store_topics(subject, topics)
        return next(t for t in topics if t.id == topic_id)

    async def _persist_orders(self, previous: Sequence[Topic], topics: Sequence[Topic]) -> None:
        """Write the ``order`` of every topic whose position changed."""
        before = {t.id: t.order for t in previous}
        for topic in topics:
            if before.get(topic.id) == topic.order:
                continue
            try:
                await self.backend.update(
                    TOPICS_TABLE,
                    {"order": topic.order},
                    {"id": topic.id},
                    access_token=self.access_token,
                )
            except BackendError as e:
                logger.error("renumber_topic_failed", topic_id=topic.id, error=str(e))

    async def delete_topic(self, subject_id: str, topic_id: str) -> bool:
        subject = self.get_subject(subject_id)
        if subject is None or subject.get_topic(topic_id) is None:
            return False

        try:
            await self.backend.delete(
                TOPICS_TABLE, {"id": topic_id}, access_token=self.access_token
            )
        except BackendError as e:
            logger.error("delete_topic_failed", topic_id=topic_id, error=str(e))
            return False

        remaining = renumber_topics([t for t in subject.topics if t.id != topic_id])
        await self._persist_orders(subject.topics, remaining)

        await self._store_topics(subject, remaining)
        logger.info("topic_deleted", subject_id=subject_id, topic_id=topic_id)
        return True

    async def toggle_topic_complete(self, subject_id: str, topic_id: str) -> Topic | None:
        subject = self.get_subject(subject_id)
        topic = subject.get_topic(topic_id) if subject else None
        if topic is None:
            return None
        return await self.update_topic(subject_id, topic_id, completed=not topic.completed)

    async def reorder_topics(
        self, subject_id: str, topic_ids: Sequence[str]
    ) -> list[Topic] | None:
        """Persist a new topic order.

        Raises:
            ValueError: If ``topic_ids`` is not a permutation of the topics.
        """
        subject = self.get_subject(subject_id)
        if subject is None:
            return None

        reordered = reorder_topics(subject.topics, topic_ids)
        try:
            for topic in reordered:
                await self.backend.update(
                    TOPICS_TABLE,
                    {"order": topic.order},
                    {"id": topic.id},
                    access_token=self.access_token,
                )
        except BackendError as e:
            logger.error("reorder_topics_failed", subject_id=subject_id, error=str(e))
            return None

        self._replace_subject(replace(subject, topics=reordered))
        return reordered

    # -------------------------------------------------------------------------
    # Timer sessions & settings
    # -------------------------------------------------------------------------

    async def add_timer_session(self, session: TimerSession) -> TimerSession | None:
        try:
            row = await self.backend.insert(
                TIMER_SESSIONS_TABLE,
                session.to_row(self.user_id),
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("add_timer_session_failed", user_id=self.user_id, error=str(e))
            return None

        stored = TimerSession.from_row(row)
        self.timer_sessions.insert(0, stored)
        self.calculate_stats()
        logger.info(
            "timer_session_added",
            session_id=stored.id,
            type=stored.type,
            duration=stored.duration,
        )
        return stored

    async def update_timer_settings(self, **changes: Any) -> TimerSettings | None:
        """Update timer settings; ``None`` values are ignored.

        Raises:
            TypeError: On unknown setting names.
        """
        unknown = set(changes) - set(SETTINGS_FIELDS)
        if unknown:
            raise TypeError(f"Unknown timer settings: {', '.join(sorted(unknown))}")
        changes = {k: v for k, v in changes.items() if v is not None}

        try:
            await self.backend.update(
                USER_SETTINGS_TABLE,
                {**changes, "updated_at": utc_now_iso()},
                {"user_id": self.user_id},
                access_token=self.access_token,
            )
        except BackendError as e:
            logger.error("update_timer_settings_failed", user_id=self.user_id, error=str(e))
            return None

        self.timer_settings = replace(self.timer_settings, **changes)
        return self.timer_settings

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def calculate_stats(self, today: date | None = None) -> UserStats:
        self.stats = calculate_stats(self.subjects, self.timer_sessions, today)
        return self.stats

    def analytics(self) -> dict[str, Any]:
        return build_analytics(self.subjects, self.timer_sessions, self.stats)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_data(self, user: User, exported_at: datetime | None = None) -> dict[str, Any]:
        """Snapshot of everything the user owns, ready for ``json.dumps``.

        Args:
            user: Profile of the signed-in user
            exported_at: Export timestamp (defaults to now, UTC)

        Returns:
            Dict with ``user``, ``subjects`` (with topics), ``timer_sessions``
            (newest first), ``timer_settings``, ``user_stats`` and
            ``export_date``.
        """
        exported_at = exported_at or utc_now()
        logger.info("study_data_exported", user_id=self.user_id, subjects=len(self.subjects))
        return {
            "user": user.to_dict(),
            "subjects": [s.to_dict() for s in self.subjects],
            "timer_sessions": [s.to_dict() for s in self.timer_sessions],
            "timer_settings": self.timer_settings.to_dict(),
            "user_stats": self.stats.to_dict(),
            "export_date": exported_at.isoformat(),
        }


def export_filename(exported_at: datetime) -> str:
    """Download name for an export, e.g. ``studytrack-data-2024-05-01.json``."""
    return f"studytrack-data-{exported_at.date().isoformat()}.json"
