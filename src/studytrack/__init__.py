"""Personal study tracker: subjects, topic checklists, focus timer and analytics."""

__version__ = "0.1.0"
