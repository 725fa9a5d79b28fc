"""Lesson navigation: ordering a course's lessons and finding neighbours."""

from .schemas import (
    LessonNavigation,
    LessonNavigationResponse,
    LessonRef,
    SequencedLesson,
)
from .sequencer import build_lesson_sequence, locate_lesson
from .service import navigation_response


__all__ = [
    "LessonNavigation",
    "LessonNavigationResponse",
    "LessonRef",
    "SequencedLesson",
    "build_lesson_sequence",
    "locate_lesson",
    "navigation_response",
]
