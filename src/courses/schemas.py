"""Pydantic schemas for the course catalogue.

Request and response models for:
- Courses, modules, lessons and attachments (admin CRUD)
- The nested course aggregate consumed by lesson navigation
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.courses.models import (
    Attachment,
    AttachmentType,
    Course,
    CourseLevel,
    Lesson,
    Module,
)


# ==============================================================================
# Course Schemas
# ==============================================================================


class CreateCourseRequest(BaseModel):
    """Course creation request."""

    title: str = Field(..., min_length=3, max_length=200, description="Course title")
    description: str | None = Field(
        None, max_length=5000, description="Course description"
    )
    thumbnail_url: str | None = Field(
        None, max_length=500, description="Thumbnail image URL"
    )
    category: str | None = Field(None, max_length=100, description="Category")
    level: CourseLevel = Field(CourseLevel.BEGINNER, description="Difficulty level")
    duration: int = Field(0, ge=0, description="Total duration in hours")
    instructor_id: UUID | None = Field(None, description="Instructor user id")
    prerequisites: list[str] = Field(default_factory=list)


class UpdateCourseRequest(BaseModel):
    """Course update request. Only fields that are sent are changed."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    thumbnail_url: str | None = Field(None, max_length=500)
    category: str | None = Field(None, max_length=100)
    level: CourseLevel | None = None
    duration: int | None = Field(None, ge=0)
    instructor_id: UUID | None = None
    prerequisites: list[str] | None = None
    rating: Decimal | None = Field(None, ge=0, le=5)
    students_count: int | None = Field(None, ge=0)


class CourseResponse(BaseModel):
    """Course response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    category: str | None = None
    level: CourseLevel = CourseLevel.BEGINNER
    duration: int = 0
    instructor_id: UUID | None = None
    prerequisites: list[str] = []
    rating: Decimal | None = None
    students_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, course: Course) -> "CourseResponse":
        """Create response from entity."""
        return cls.model_validate(course.to_dict())


class CourseListResponse(BaseModel):
    """List of courses."""

    items: list[CourseResponse]
    total: int


# ==============================================================================
# Module Schemas
# ==============================================================================


class CreateModuleRequest(BaseModel):
    """Module creation request.

    When ``order_index`` is omitted the module is appended after the last one.
    """

    title: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(None, max_length=5000)
    duration: int = Field(0, ge=0, description="Duration in hours")
    order_index: int | None = Field(None, description="Position inside the course")
    required_for_completion: bool = True


class UpdateModuleRequest(BaseModel):
    """Module update request."""

    title: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=5000)
    duration: int | None = Field(None, ge=0)
    order_index: int | None = None
    required_for_completion: bool | None = None


class ModuleResponse(BaseModel):
    """Module response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    course_id: UUID
    order_index: int
    title: str
    description: str | None = None
    duration: int = 0
    required_for_completion: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, module: Module) -> "ModuleResponse":
        """Create response from entity."""
        return cls.model_validate(module.to_dict())


# ==============================================================================
# Lesson Schemas
# ==============================================================================


class CreateLessonRequest(BaseModel):
    """Lesson creation request.

    When ``order_index`` is omitted the lesson is appended to the module.
    """

    title: str = Field(..., min_length=2, max_length=200)
    description: str | None = Field(None, max_length=5000)
    duration: int = Field(0, ge=0, description="Duration in minutes")
    video_url: str | None = Field(None, max_length=1000)
    thumbnail_url: str | None = Field(None, max_length=500)
    order_index: int | None = None
    required_for_completion: bool = True


class UpdateLessonRequest(BaseModel):
    """Lesson update request."""

    title: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, max_length=5000)
    duration: int | None = Field(None, ge=0)
    video_url: str | None = Field(None, max_length=1000)
    thumbnail_url: str | None = Field(None, max_length=500)
    order_index: int | None = None
    required_for_completion: bool | None = None


class LessonResponse(BaseModel):
    """Lesson response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    module_id: UUID
    course_id: UUID
    order_index: int
    title: str
    description: str | None = None
    duration: int = 0
    video_url: str | None = None
    thumbnail_url: str | None = None
    required_for_completion: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, lesson: Lesson) -> "LessonResponse":
        """Create response from entity."""
        return cls.model_validate(lesson.to_dict())


# ==============================================================================
# Attachment Schemas
# ==============================================================================


class CreateAttachmentRequest(BaseModel):
    """Attach a file (already uploaded to storage) to a lesson."""

    title: str = Field(..., min_length=1, max_length=200)
    type: AttachmentType = AttachmentType.OTHER
    url: str = Field(..., min_length=1, max_length=1000)
    size: int | None = Field(None, ge=0, description="Size in bytes")


class AttachmentResponse(BaseModel):
    """Attachment response."""

    id: UUID
    lesson_id: UUID
    title: str
    type: AttachmentType
    url: str
    size: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, attachment: Attachment) -> "AttachmentResponse":
        """Create response from entity."""
        return cls.model_validate(attachment.to_dict())


# ==============================================================================
# Course Aggregate (Nested)
# ==============================================================================


class ModuleInCourseResponse(ModuleResponse):
    """Module inside the course aggregate, with its lessons."""

    lessons: list[LessonResponse] = []


class CourseDetailResponse(CourseResponse):
    """Full course aggregate: the course, its modules and their lessons.

    Modules and lessons are returned sorted by ``order_index`` for display;
    lesson navigation does not rely on that and sorts on its own.
    """

    modules: list[ModuleInCourseResponse] = []

    @property
    def lesson_count(self) -> int:
        """Total number of lessons across all modules."""
        return sum(len(module.lessons) for module in self.modules)


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
