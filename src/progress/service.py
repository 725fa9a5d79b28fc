"""Lesson progress service layer.

Business logic for:
- Progress upserts keyed by (user, lesson)
- Lesson completion
- Course progress summaries in viewing order
"""

import math
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from cassandra import DriverException, OperationTimedOut
from cassandra.cluster import NoHostAvailable

from src.courses.schemas import CourseDetailResponse
from src.navigation.sequencer import build_lesson_sequence

from .models import LessonProgress
from .schemas import CourseProgressResponse, LessonProgressSummary


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)

COMPLETED_PROGRESS = 100.0

# Driver failures that mean "the write did not happen (or is unknown)"
CASSANDRA_ERRORS = (DriverException, OperationTimedOut, NoHostAvailable)


def should_persist_progress(percent: float, step: int = 5) -> bool:
    """Whether a playback position is worth writing.

    Writes happen when ``floor(percent)`` is a multiple of ``step``. Several
    events inside one band (5.0, 5.4, 5.9) all qualify.
    """
    return math.floor(percent) % step == 0


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error."""

    def __init__(self, message: str, code: str = "progress_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class LessonProgressNotFoundError(ProgressError):
    """Lesson progress not found."""

    def __init__(self, message: str = "Progresso da aula nao encontrado"):
        super().__init__(message, "progress_not_found")


class ProgressPersistError(ProgressError):
    """Progress could not be written."""

    def __init__(self, message: str = "Nao foi possivel salvar o progresso"):
        super().__init__(message, "progress_persist_failed")


# ==============================================================================
# Progress Service
# ==============================================================================


class ProgressService:
    """Service for per-user lesson progress."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_lesson_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.user_progress
            WHERE user_id = ? AND lesson_id = ?
        """)

        self._get_user_progress = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.user_progress WHERE user_id = ?
        """)

        # Only progress columns: never touches ``completed``
        self._upsert_progress = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_progress
            (user_id, lesson_id, progress, last_watched)
            VALUES (?, ?, ?, ?)
        """)

        self._upsert_completed = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.user_progress
            (user_id, lesson_id, progress, completed, last_watched)
            VALUES (?, ?, ?, ?, ?)
        """)

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def upsert_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        progress: float,
        last_watched: datetime | None = None,
    ) -> LessonProgress:
        """Create or overwrite the progress percentage of a lesson.

        Raises:
            ProgressPersistError: If the write fails
        """
        record = LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            progress=progress,
            last_watched=last_watched or datetime.now(UTC),
        )
        try:
            await self.session.aexecute(
                self._upsert_progress,
                [user_id, lesson_id, record.progress, record.last_watched],
            )
        except CASSANDRA_ERRORS as e:
            raise ProgressPersistError from e

        logger.debug(
            "progress_upserted",
            user_id=str(user_id),
            lesson_id=str(lesson_id),
            progress=progress,
        )
        return record

    async def mark_completed(
        self,
        user_id: UUID,
        lesson_id: UUID,
        completed_at: datetime | None = None,
    ) -> LessonProgress:
        """Mark a lesson completed (progress 100).

        Idempotent: repeating it rewrites the same values.

        Raises:
            ProgressPersistError: If the write fails
        """
        record = LessonProgress(
            user_id=user_id,
            lesson_id=lesson_id,
            progress=COMPLETED_PROGRESS,
            completed=True,
            last_watched=completed_at or datetime.now(UTC),
        )
        try:
            await self.session.aexecute(
                self._upsert_completed,
                [user_id, lesson_id, record.progress, True, record.last_watched],
            )
        except CASSANDRA_ERRORS as e:
            raise ProgressPersistError from e

        logger.info(
            "lesson_marked_completed",
            user_id=str(user_id),
            lesson_id=str(lesson_id),
        )
        return record

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_lesson_progress(
        self, user_id: UUID, lesson_id: UUID
    ) -> LessonProgress | None:
        """Get progress of a user on a lesson."""
        result = await self.session.aexecute(
            self._get_lesson_progress, [user_id, lesson_id]
        )
        row = result.one()
        return LessonProgress.from_row(row) if row else None

    async def get_user_progress(self, user_id: UUID) -> dict[UUID, LessonProgress]:
        """Get every progress record of a user, keyed by lesson id."""
        rows = await self.session.aexecute(self._get_user_progress, [user_id])
        return {row.lesson_id: LessonProgress.from_row(row) for row in rows}

    async def get_course_progress(
        self, user_id: UUID, course: CourseDetailResponse
    ) -> CourseProgressResponse:
        """Summarise a user's progress over a course in viewing order."""
        records = await self.get_user_progress(user_id)
        sequence = build_lesson_sequence(course)

        lessons: list[LessonProgressSummary] = []
        resume_lesson = None
        for item in sequence:
            record = records.get(item.lesson.id)
            summary = LessonProgressSummary(
                lesson_id=item.lesson.id,
                module_id=item.module_id,
                title=item.lesson.title,
            )
            if record:
                summary.status = record.status
                summary.progress = record.progress
                summary.completed = record.completed
                summary.last_watched = record.last_watched
            if resume_lesson is None and not summary.completed:
                resume_lesson = item.ref
            lessons.append(summary)

        total = len(lessons)
        completed = sum(1 for lesson in lessons if lesson.completed)
        return CourseProgressResponse(
            course_id=course.id,
            total_lessons=total,
            completed_lessons=completed,
            progress_percent=round(completed / total * 100, 2) if total else 0.0,
            resume_lesson=resume_lesson,
            lessons=lessons,
        )
