"""Pydantic schemas for lesson progress.

Request and response models for:
- Progress updates and lesson completion (REST)
- Course progress summaries
- Lesson-view WebSocket messages
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.navigation.schemas import LessonRef

from .models import LessonProgress, LessonProgressStatus


# ==============================================================================
# Progress Schemas
# ==============================================================================


class UpdateProgressRequest(BaseModel):
    """Playback progress reported by the player."""

    progress: float = Field(..., ge=0, le=100, description="Percentage watched")


class ProgressUpdateResponse(BaseModel):
    """Result of a progress report.

    Reports are only written when ``floor(progress)`` is a multiple of the
    configured step.
    """

    lesson_id: UUID
    progress: float
    persisted: bool


class LessonProgressResponse(BaseModel):
    """Lesson progress response."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    status: LessonProgressStatus
    progress: float = Field(description="0-100 percentage")
    completed: bool
    last_watched: datetime | None = None

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressResponse":
        """Create response from entity."""
        return cls(
            lesson_id=entity.lesson_id,
            status=entity.status,
            progress=entity.progress,
            completed=entity.completed,
            last_watched=entity.last_watched,
        )


class LessonProgressSummary(BaseModel):
    """Progress of one lesson inside a course summary."""

    lesson_id: UUID
    module_id: UUID
    title: str
    status: LessonProgressStatus = LessonProgressStatus.NOT_STARTED
    progress: float = 0.0
    completed: bool = False
    last_watched: datetime | None = None


class CourseProgressResponse(BaseModel):
    """Progress of a user across all lessons of a course, in viewing order."""

    course_id: UUID
    total_lessons: int
    completed_lessons: int
    progress_percent: float = Field(description="Completed lessons / total * 100")
    resume_lesson: LessonRef | None = Field(
        None, description="First lesson in order that is not completed"
    )
    lessons: list[LessonProgressSummary] = []


# ==============================================================================
# Lesson View Messages (client → server)
# ==============================================================================


class ProgressMessage(BaseModel):
    """Playback position update from the video player."""

    type: Literal["progress"]
    percent: float = Field(..., ge=0, le=100)
    playing: bool = True


class CompleteMessage(BaseModel):
    """Player signalled that playback finished."""

    type: Literal["complete"]


class PingMessage(BaseModel):
    """Keep-alive from the client."""

    type: Literal["ping"]


class PongMessage(BaseModel):
    """Reply to a server ping."""

    type: Literal["pong"]


LessonViewClientMessage = Annotated[
    ProgressMessage | CompleteMessage | PingMessage | PongMessage,
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[LessonViewClientMessage] = TypeAdapter(
    LessonViewClientMessage
)
