"""Per-viewer reads that decorate the navigation payload.

The stored completion flag and the lesson's attachments are extras: when
they cannot be read the viewer still gets its navigation, without them.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from src.courses.schemas import AttachmentResponse
from src.progress.service import CASSANDRA_ERRORS


if TYPE_CHECKING:
    from src.courses.service import CourseService
    from src.progress.service import ProgressService

logger = structlog.get_logger(__name__)


async def read_completed(
    progress_service: "ProgressService | None",
    user_id: UUID | None,
    lesson_id: UUID,
) -> bool | None:
    """Stored completion of a lesson for a user; None if unknown."""
    if user_id is None or progress_service is None:
        return None
    try:
        record = await progress_service.get_lesson_progress(user_id, lesson_id)
    except CASSANDRA_ERRORS as e:
        logger.warning(
            "lesson_view_progress_read_failed",
            lesson_id=str(lesson_id),
            error=str(e),
        )
        return None
    return bool(record and record.completed)


async def read_attachments(
    course_service: "CourseService", lesson_id: UUID
) -> list[AttachmentResponse]:
    try:
        attachments = await course_service.list_attachments(lesson_id)
    except CASSANDRA_ERRORS as e:
        logger.warning(
            "lesson_view_attachments_read_failed",
            lesson_id=str(lesson_id),
            error=str(e),
        )
        return []
    return [AttachmentResponse.from_entity(a) for a in attachments]
