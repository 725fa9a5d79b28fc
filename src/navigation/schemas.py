"""Pydantic schemas for lesson navigation."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.courses.schemas import AttachmentResponse, LessonResponse


class LessonRef(BaseModel):
    """Address of a lesson: enough to build its route."""

    model_config = ConfigDict(frozen=True)

    module_id: UUID
    lesson_id: UUID


class SequencedLesson(BaseModel):
    """A lesson in the flattened course sequence, tagged with its module."""

    module_id: UUID
    module_order_index: int
    lesson: LessonResponse

    @property
    def ref(self) -> LessonRef:
        """Route address of this lesson."""
        return LessonRef(module_id=self.module_id, lesson_id=self.lesson.id)


class LessonNavigation(BaseModel):
    """Where a lesson sits in its course.

    When the lesson is not part of the course, ``current_lesson`` and both
    neighbours are None and ``found`` is False.
    """

    current_lesson: SequencedLesson | None = None
    previous_lesson: LessonRef | None = None
    next_lesson: LessonRef | None = None
    position: int | None = Field(None, description="0-based index in the sequence")
    total_lessons: int = 0

    @property
    def found(self) -> bool:
        """Whether the lesson exists in the course."""
        return self.current_lesson is not None


class LessonNavigationResponse(BaseModel):
    """Navigation data for the lesson viewer."""

    course_id: UUID
    found: bool
    module_id: UUID | None = None
    lesson: LessonResponse | None = None
    previous_lesson: LessonRef | None = None
    next_lesson: LessonRef | None = None
    position: int | None = None
    total_lessons: int = 0
    video_url: str | None = None
    completed: bool | None = Field(
        None, description="Completion for the authenticated user (None if anonymous)"
    )
    attachments: list[AttachmentResponse] = Field(
        default_factory=list, description="Supporting material shown beside the player"
    )
