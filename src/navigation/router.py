"""Lesson navigation API endpoints.

Provides routes for:
- Lesson viewer payload: lesson, neighbours, video URL, completion and
  attachments
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends

from src.auth.dependencies import OptionalUser
from src.config.settings import Settings, get_settings
from src.courses.dependencies import CourseServiceDep, handle_course_error
from src.courses.service import CourseError
from src.progress.dependencies import OptionalProgressServiceDep

from .schemas import LessonNavigationResponse
from .sequencer import locate_lesson
from .service import navigation_response
from .viewer import read_attachments, read_completed


router = APIRouter(prefix="/v1/courses", tags=["navigation"])


@router.get(
    "/{course_id}/lessons/{lesson_id}/navigation",
    response_model=LessonNavigationResponse,
    summary="Lesson viewer navigation",
)
async def get_lesson_navigation(
    course_id: UUID,
    lesson_id: UUID,
    course_service: CourseServiceDep,
    progress_service: OptionalProgressServiceDep,
    user: OptionalUser,
    settings: Annotated[Settings, Depends(get_settings)],
) -> LessonNavigationResponse:
    """Where a lesson sits in its course.

    A lesson that is not part of the course yields ``found: false`` rather
    than an error, so the viewer can render its "lesson not found" state.
    ``completed`` is only filled for authenticated users. Failed reads of
    completion or attachments leave them empty instead of failing the request.
    """
    try:
        course = await course_service.get_course_detail(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e

    navigation = locate_lesson(course, lesson_id)
    if not navigation.found:
        return navigation_response(course, navigation, settings)

    completed = await read_completed(
        progress_service, user.id if user else None, lesson_id
    )
    attachments = await read_attachments(course_service, lesson_id)
    return navigation_response(course, navigation, settings, completed, attachments)
