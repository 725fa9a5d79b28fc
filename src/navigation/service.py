"""Assemble the lesson viewer's navigation payload."""

from src.config.settings import Settings
from src.courses.schemas import AttachmentResponse, CourseDetailResponse
from src.storage.urls import lesson_video_url

from .schemas import LessonNavigation, LessonNavigationResponse


def navigation_response(
    course: CourseDetailResponse,
    navigation: LessonNavigation,
    settings: Settings,
    completed: bool | None = None,
    attachments: list[AttachmentResponse] | None = None,
) -> LessonNavigationResponse:
    """Build the response for an already located lesson."""
    current = navigation.current_lesson
    if current is None:
        return LessonNavigationResponse(
            course_id=course.id,
            found=False,
            total_lessons=navigation.total_lessons,
        )

    return LessonNavigationResponse(
        course_id=course.id,
        found=True,
        module_id=current.module_id,
        lesson=current.lesson,
        previous_lesson=navigation.previous_lesson,
        next_lesson=navigation.next_lesson,
        position=navigation.position,
        total_lessons=navigation.total_lessons,
        video_url=lesson_video_url(
            settings, course.id, current.lesson.id, current.lesson.video_url
        ),
        completed=completed,
        attachments=attachments or [],
    )
