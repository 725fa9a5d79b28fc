"""Lesson progress API endpoints.

Provides routes for:
- Progress reports from the player (throttled to every 5th percent)
- Lesson completion
- Progress queries per lesson and per course
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from src.auth.dependencies import CurrentUser
from src.config.settings import Settings, get_settings
from src.courses.dependencies import CourseServiceDep, handle_course_error
from src.courses.service import CourseError, LessonNotFoundError

from .dependencies import ProgressServiceDep, handle_progress_error
from .schemas import (
    CourseProgressResponse,
    LessonProgressResponse,
    ProgressUpdateResponse,
    UpdateProgressRequest,
)
from .service import (
    LessonProgressNotFoundError,
    ProgressError,
    should_persist_progress,
)


router = APIRouter(prefix="/v1/progress", tags=["progress"])

SettingsDep = Annotated[Settings, Depends(get_settings)]


async def _require_lesson(course_service: CourseServiceDep, lesson_id: UUID) -> None:
    if await course_service.get_lesson(lesson_id) is None:
        raise handle_course_error(LessonNotFoundError())


# ==============================================================================
# Lesson Progress
# ==============================================================================


@router.get("/lessons/{lesson_id}", response_model=LessonProgressResponse)
async def get_lesson_progress(
    lesson_id: UUID,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
) -> LessonProgressResponse:
    """Get the current user's progress on a lesson."""
    record = await progress_service.get_lesson_progress(user.id, lesson_id)
    if record is None:
        raise handle_progress_error(LessonProgressNotFoundError())
    return LessonProgressResponse.from_entity(record)


@router.put("/lessons/{lesson_id}", response_model=ProgressUpdateResponse)
async def update_lesson_progress(
    lesson_id: UUID,
    data: UpdateProgressRequest,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
    settings: SettingsDep,
) -> ProgressUpdateResponse:
    """Report playback progress.

    Only reports whose integer part is a multiple of the persist step are
    written; the others are acknowledged with ``persisted: false``.
    """
    await _require_lesson(course_service, lesson_id)

    if not should_persist_progress(data.progress, settings.progress_persist_step):
        return ProgressUpdateResponse(
            lesson_id=lesson_id, progress=data.progress, persisted=False
        )

    try:
        await progress_service.upsert_progress(user.id, lesson_id, data.progress)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return ProgressUpdateResponse(
        lesson_id=lesson_id, progress=data.progress, persisted=True
    )


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgressResponse)
async def complete_lesson(
    lesson_id: UUID,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
) -> LessonProgressResponse:
    """Mark a lesson completed. Repeating the call is harmless."""
    await _require_lesson(course_service, lesson_id)

    try:
        record = await progress_service.mark_completed(user.id, lesson_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return LessonProgressResponse.from_entity(record)


# ==============================================================================
# Course Progress
# ==============================================================================


@router.get("/courses/{course_id}", response_model=CourseProgressResponse)
async def get_course_progress(
    course_id: UUID,
    user: CurrentUser,
    progress_service: ProgressServiceDep,
    course_service: CourseServiceDep,
) -> CourseProgressResponse:
    """Progress over every lesson of a course, in viewing order."""
    try:
        course = await course_service.get_course_detail(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e

    return await progress_service.get_course_progress(user.id, course)
