"""Database models for the course catalogue.

Cassandra table definitions for:
- Courses: main course table
- Modules: partitioned by course, ordered by ``order_index`` in the app
- Lessons: partitioned by course, clustered by module
- Lessons by id: lookup from a lesson id to its course and module
- Attachments: supporting files partitioned by lesson

Loading a full course aggregate costs three partition reads
(course, its modules, its lessons).
"""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class CourseLevel(str, Enum):
    """Course difficulty level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class AttachmentType(str, Enum):
    """Kind of file attached to a lesson."""

    PDF = "pdf"
    DOC = "doc"
    SPREADSHEET = "spreadsheet"
    IMAGE = "image"
    LINK = "link"
    OTHER = "other"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    category TEXT,
    level TEXT,
    duration INT,
    instructor_id UUID,
    prerequisites LIST<TEXT>,
    rating DECIMAL,
    students_count INT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

MODULE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.modules (
    course_id UUID,
    id UUID,
    order_index INT,
    title TEXT,
    description TEXT,
    duration INT,
    required_for_completion BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, id)
)
"""

# Aulas particionadas por curso: o agregado inteiro sai de uma particao
LESSON_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons (
    course_id UUID,
    module_id UUID,
    id UUID,
    order_index INT,
    title TEXT,
    description TEXT,
    duration INT,
    video_url TEXT,
    thumbnail_url TEXT,
    required_for_completion BOOLEAN,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, module_id, id)
)
"""

LESSONS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.lessons_by_id (
    id UUID PRIMARY KEY,
    course_id UUID,
    module_id UUID
)
"""

ATTACHMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.attachments (
    lesson_id UUID,
    id UUID,
    title TEXT,
    type TEXT,
    url TEXT,
    size BIGINT,
    created_at TIMESTAMP,
    PRIMARY KEY (lesson_id, id)
)
"""

COURSES_TABLES_CQL = [
    COURSE_TABLE_CQL,
    MODULE_TABLE_CQL,
    LESSON_TABLE_CQL,
    LESSONS_BY_ID_TABLE_CQL,
    ATTACHMENT_TABLE_CQL,
]


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
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Unique identifier (UUID)
        title: Course title
        description: Course description
        thumbnail_url: Cover image URL
        category: Free-form category slug (e.g. "pastagens")
        level: Difficulty level
        duration: Total duration in hours
        instructor_id: Instructor user id
        prerequisites: Human-readable prerequisites
        rating: Average rating (0-5)
        students_count: Number of enrolled students
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    def __init__(
        self,
        id: UUID | None = None,
        title: str = "",
        description: str | None = None,
        thumbnail_url: str | None = None,
        category: str | None = None,
        level: str = CourseLevel.BEGINNER.value,
        duration: int = 0,
        instructor_id: UUID | None = None,
        prerequisites: list[str] | None = None,
        rating: Decimal | None = None,
        students_count: int = 0,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id or uuid4()
        self.title = title.strip()
        self.description = description
        self.thumbnail_url = thumbnail_url
        self.category = category
        self.level = level
        self.duration = duration
        self.instructor_id = instructor_id
        self.prerequisites = list(prerequisites or [])
        self.rating = rating
        self.students_count = students_count
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            description=row.description,
            thumbnail_url=row.thumbnail_url,
            category=row.category,
            level=row.level or CourseLevel.BEGINNER.value,
            duration=row.duration or 0,
            instructor_id=row.instructor_id,
            prerequisites=row.prerequisites,
            rating=row.rating,
            students_count=row.students_count or 0,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "thumbnail_url": self.thumbnail_url,
            "category": self.category,
            "level": self.level,
            "duration": self.duration,
            "instructor_id": self.instructor_id,
            "prerequisites": self.prerequisites,
            "rating": self.rating,
            "students_count": self.students_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<Course {self.title} ({self.level})>"


class Module:
    """Module entity: an ordered group of lessons inside one course.

    ``order_index`` is not necessarily contiguous; only its relative order
    matters.
    """

    def __init__(
        self,
        course_id: UUID,
        id: UUID | None = None,
        order_index: int = 0,
        title: str = "",
        description: str | None = None,
        duration: int = 0,
        required_for_completion: bool = True,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.id = id or uuid4()
        self.order_index = order_index
        self.title = title.strip()
        self.description = description
        self.duration = duration
        self.required_for_completion = required_for_completion
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Module":
        """Create Module instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            id=row.id,
            order_index=row.order_index or 0,
            title=row.title or "",
            description=row.description,
            duration=row.duration or 0,
            required_for_completion=row.required_for_completion is not False,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "order_index": self.order_index,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "required_for_completion": self.required_for_completion,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Module {self.title} #{self.order_index}>"


class Lesson:
    """Lesson entity: one video lesson owned by exactly one module.

    Attributes:
        id: Unique identifier (UUID)
        course_id: Owning course (partition key)
        module_id: Owning module
        order_index: Position inside the module
        title: Lesson title
        description: Lesson description
        duration: Duration in minutes
        video_url: Explicit video URL (storage path is derived when empty)
        thumbnail_url: Poster image URL
        required_for_completion: Counts toward course completion
        created_at: Creation timestamp
    """

    def __init__(
        self,
        course_id: UUID,
        module_id: UUID,
        id: UUID | None = None,
        order_index: int = 0,
        title: str = "",
        description: str | None = None,
        duration: int = 0,
        video_url: str | None = None,
        thumbnail_url: str | None = None,
        required_for_completion: bool = True,
        created_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.module_id = module_id
        self.id = id or uuid4()
        self.order_index = order_index
        self.title = title.strip()
        self.description = description
        self.duration = duration
        self.video_url = video_url
        self.thumbnail_url = thumbnail_url
        self.required_for_completion = required_for_completion
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Lesson":
        """Create Lesson instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            module_id=row.module_id,
            id=row.id,
            order_index=row.order_index or 0,
            title=row.title or "",
            description=row.description,
            duration=row.duration or 0,
            video_url=row.video_url,
            thumbnail_url=row.thumbnail_url,
            required_for_completion=row.required_for_completion is not False,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "course_id": self.course_id,
            "module_id": self.module_id,
            "order_index": self.order_index,
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "required_for_completion": self.required_for_completion,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Lesson {self.title} #{self.order_index}>"


class Attachment:
    """Supporting file for a lesson (slides, spreadsheets, links)."""

    def __init__(
        self,
        lesson_id: UUID,
        id: UUID | None = None,
        title: str = "",
        type: str = AttachmentType.OTHER.value,
        url: str = "",
        size: int | None = None,
        created_at: datetime | None = None,
    ):
        self.lesson_id = lesson_id
        self.id = id or uuid4()
        self.title = title.strip()
        self.type = type
        self.url = url
        self.size = size
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Attachment":
        """Create Attachment instance from Cassandra row."""
        return cls(
            lesson_id=row.lesson_id,
            id=row.id,
            title=row.title or "",
            type=row.type or AttachmentType.OTHER.value,
            url=row.url or "",
            size=row.size,
            created_at=row.created_at,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "lesson_id": self.lesson_id,
            "title": self.title,
            "type": self.type,
            "url": self.url,
            "size": self.size,
            "created_at": self.created_at,
        }

    def __repr__(self) -> str:
        return f"<Attachment {self.title} ({self.type})>"
