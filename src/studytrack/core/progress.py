"""Checklist progress and topic ordering.

Progress is the percentage of completed topics; topic order is kept as a
dense integer sequence starting at 0.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

from studytrack.core.models import Subject, Topic

COMPLETE = 100.0


def compute_progress(topics: Sequence[Topic]) -> float:
    """Percentage of completed topics, 0 when there are none.

    Args:
        topics: Topics of a subject

    Returns:
        Float in [0, 100], unrounded.
    """
    if not topics:
        return 0.0
    completed = sum(1 for t in topics if t.completed)
    return completed / len(topics) * 100


def is_subject_complete(subject: Subject) -> bool:
    return subject.progress == COMPLETE


def next_topic_order(topics: Sequence[Topic]) -> int:
    """Order value for a topic appended to the end of the list."""
    return len(topics)


def sort_topics(topics: Iterable[Topic]) -> list[Topic]:
    return sorted(topics, key=lambda t: t.order)


def renumber_topics(topics: Sequence[Topic]) -> list[Topic]:
    """Return copies of ``topics`` with ``order`` reassigned to 0..n-1."""
    return [replace(topic, order=index) for index, topic in enumerate(topics)]


def reorder_topics(topics: Sequence[Topic], topic_ids: Sequence[str]) -> list[Topic]:
    """Arrange topics following ``topic_ids`` and renumber them.

    Args:
        topics: Current topics of a subject
        topic_ids: Desired sequence of topic IDs

    Returns:
        New list of topics in the requested order with dense ``order``.

    Raises:
        ValueError: If ``topic_ids`` is not a permutation of the topic IDs.
    """
    by_id = {t.id: t for t in topics}
    if len(topic_ids) != len(by_id) or set(topic_ids) != set(by_id):
        unknown = [tid for tid in topic_ids if tid not in by_id]
        if unknown:
            raise ValueError(f"Unknown topic ids: {', '.join(unknown)}")
        raise ValueError("Topic ids must list every topic exactly once")
    return renumber_topics([by_id[tid] for tid in topic_ids])


def move_topic(topics: Sequence[Topic], topic_id: str, position: int) -> list[Topic]:
    """Move one topic to ``position`` and renumber the list.

    Positions past the end place the topic last.

    Raises:
        ValueError: If ``topic_id`` is not among ``topics``.
    """
    moving = next((t for t in topics if t.id == topic_id), None)
    if moving is None:
        raise ValueError(f"Unknown topic id: {topic_id}")
    rest = [t for t in topics if t.id != topic_id]
    rest.insert(min(position, len(rest)), moving)
    return renumber_topics(rest)
