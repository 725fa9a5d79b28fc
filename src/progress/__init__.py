"""Lesson progress tracking module.

Provides:
- Per-user lesson progress and completion records
- Playback-driven tracking for a lesson view (throttled writes, one-shot
  completion, auto-advance)
- Course progress summaries
"""

from .models import PROGRESS_TABLES_CQL, LessonProgress, LessonProgressStatus


__all__ = [
    "PROGRESS_TABLES_CQL",
    "LessonProgress",
    "LessonProgressStatus",
]
