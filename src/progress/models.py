"""Database models for per-user lesson progress.

One row per (user, lesson). Writes are plain ``INSERT``s, which Cassandra
treats as upserts with last-write-wins per column, so a progress write
never clears an earlier ``completed = true``.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class LessonProgressStatus(str, Enum):
    """Lesson progress status derived from a stored record."""

    NOT_STARTED = "not_started"  # Nunca acessou
    IN_PROGRESS = "in_progress"  # Assistiu parcialmente
    COMPLETED = "completed"  # Concluiu


# ==============================================================================
# Helper Functions
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Progresso de aula por usuario
# Partition key: user_id, para buscar todo o progresso do aluno de uma vez
USER_PROGRESS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.user_progress (
    user_id UUID,
    lesson_id UUID,
    progress DOUBLE,
    completed BOOLEAN,
    last_watched TIMESTAMP,
    PRIMARY KEY (user_id, lesson_id)
)
"""

PROGRESS_TABLES_CQL = [
    USER_PROGRESS_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class LessonProgress:
    """Progress of one user on one lesson.

    Attributes:
        user_id: User UUID
        lesson_id: Lesson UUID
        progress: Percentage watched (0-100)
        completed: Whether the lesson was completed
        last_watched: Timestamp of the last recorded playback event
    """

    def __init__(
        self,
        user_id: UUID,
        lesson_id: UUID,
        progress: float = 0.0,
        completed: bool = False,
        last_watched: datetime | None = None,
    ):
        self.user_id = user_id
        self.lesson_id = lesson_id
        self.progress = progress
        self.completed = completed
        self.last_watched = ensure_utc_aware(last_watched) or datetime.now(UTC)

    @property
    def status(self) -> LessonProgressStatus:
        """Derived status of the record."""
        if self.completed:
            return LessonProgressStatus.COMPLETED
        if self.progress > 0:
            return LessonProgressStatus.IN_PROGRESS
        return LessonProgressStatus.NOT_STARTED

    @classmethod
    def from_row(cls, row: Any) -> "LessonProgress":
        """Create LessonProgress instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            lesson_id=row.lesson_id,
            progress=row.progress or 0.0,
            completed=bool(row.completed),
            last_watched=row.last_watched,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "lesson_id": self.lesson_id,
            "progress": self.progress,
            "completed": self.completed,
            "last_watched": self.last_watched,
        }

    def __repr__(self) -> str:
        return (
            f"<LessonProgress user={self.user_id} lesson={self.lesson_id} "
            f"{self.status.value} {self.progress}%>"
        )
