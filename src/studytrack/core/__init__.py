"""Core domain logic: records, progress, stats and the focus timer.

Modules:
- models: records mirrored from backend tables
- progress: checklist progress and dense topic ordering
- stats: user stats, streak and analytics aggregates
- timer: focus/break countdown state machine
"""

__all__ = [
    "models",
    "progress",
    "stats",
    "timer",
]
