"""Course catalogue service layer.

Business logic for:
- Course, module, lesson and attachment CRUD
- Loading the full course aggregate (course → modules → lessons)
- Read-through Redis cache of the aggregate, invalidated on every write
"""

from collections import defaultdict
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from src.core.redis import course_detail_key
from src.courses.models import Attachment, Course, CourseLevel, Lesson, Module
from src.courses.schemas import (
    CourseDetailResponse,
    CreateAttachmentRequest,
    CreateCourseRequest,
    CreateLessonRequest,
    CreateModuleRequest,
    LessonResponse,
    ModuleInCourseResponse,
    UpdateCourseRequest,
    UpdateLessonRequest,
    UpdateModuleRequest,
)


if TYPE_CHECKING:
    import redis.asyncio as redis
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    """Course not found."""

    def __init__(self, message: str = "Curso nao encontrado"):
        super().__init__(message, "course_not_found")


class ModuleNotFoundError(CourseError):
    """Module not found."""

    def __init__(self, message: str = "Modulo nao encontrado"):
        super().__init__(message, "module_not_found")


class LessonNotFoundError(CourseError):
    """Lesson not found."""

    def __init__(self, message: str = "Aula nao encontrada"):
        super().__init__(message, "lesson_not_found")


class AttachmentNotFoundError(CourseError):
    """Attachment not found."""

    def __init__(self, message: str = "Anexo nao encontrado"):
        super().__init__(message, "attachment_not_found")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for the course catalogue and the course aggregate."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "redis.Redis | None" = None,
        cache_ttl_seconds: int = 300,
    ):
        """Initialize with Cassandra session and optional Redis cache."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.cache_ttl_seconds = cache_ttl_seconds
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        # Courses
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)
        self._list_courses = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses
        """)
        self._upsert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, thumbnail_url, category, level, duration,
             instructor_id, prerequisites, rating, students_count,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_course = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.courses WHERE id = ?
        """)

        # Modules
        self._get_course_modules = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.modules WHERE course_id = ?
        """)
        self._get_module = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.modules WHERE course_id = ? AND id = ?
        """)
        self._upsert_module = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.modules
            (course_id, id, order_index, title, description, duration,
             required_for_completion, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_module = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.modules WHERE course_id = ? AND id = ?
        """)
        self._delete_course_modules = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.modules WHERE course_id = ?
        """)

        # Lessons
        self._get_course_lessons = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons WHERE course_id = ?
        """)
        self._get_module_lessons = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons
            WHERE course_id = ? AND module_id = ?
        """)
        self._get_lesson = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons
            WHERE course_id = ? AND module_id = ? AND id = ?
        """)
        self._upsert_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons
            (course_id, module_id, id, order_index, title, description, duration,
             video_url, thumbnail_url, required_for_completion, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_lesson = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lessons
            WHERE course_id = ? AND module_id = ? AND id = ?
        """)
        self._delete_module_lessons = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lessons WHERE course_id = ? AND module_id = ?
        """)
        self._delete_course_lessons = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lessons WHERE course_id = ?
        """)

        # Lesson lookup
        self._get_lesson_location = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.lessons_by_id WHERE id = ?
        """)
        self._insert_lesson_location = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.lessons_by_id (id, course_id, module_id)
            VALUES (?, ?, ?)
        """)
        self._delete_lesson_location = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.lessons_by_id WHERE id = ?
        """)

        # Attachments
        self._get_lesson_attachments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.attachments WHERE lesson_id = ?
        """)
        self._insert_attachment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.attachments
            (lesson_id, id, title, type, url, size, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)
        self._delete_attachment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.attachments WHERE lesson_id = ? AND id = ?
        """)
        self._delete_lesson_attachments = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.attachments WHERE lesson_id = ?
        """)

    # ==========================================================================
    # Course Operations
    # ==========================================================================

    async def _save_course(self, course: Course) -> None:
        await self.session.aexecute(
            self._upsert_course,
            [
                course.id,
                course.title,
                course.description,
                course.thumbnail_url,
                course.category,
                course.level,
                course.duration,
                course.instructor_id,
                course.prerequisites,
                course.rating,
                course.students_count,
                course.created_at,
                course.updated_at,
            ],
        )

    async def create_course(self, data: CreateCourseRequest) -> Course:
        """Create a new course."""
        course = Course(
            title=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            category=data.category,
            level=data.level.value,
            duration=data.duration,
            instructor_id=data.instructor_id,
            prerequisites=data.prerequisites,
        )
        await self._save_course(course)
        logger.info("course_created", course_id=str(course.id), title=course.title)
        return course

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def list_courses(
        self,
        category: str | None = None,
        level: str | None = None,
    ) -> list[Course]:
        """List courses, optionally filtered, sorted by title."""
        rows = await self.session.aexecute(self._list_courses)
        courses = [Course.from_row(row) for row in rows]
        if category:
            courses = [c for c in courses if c.category == category]
        if level:
            courses = [c for c in courses if c.level == level]
        return sorted(courses, key=lambda c: c.title.lower())

    async def update_course(self, course_id: UUID, data: UpdateCourseRequest) -> Course:
        """Update course fields that were sent in the request."""
        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        for field, value in data.model_dump(exclude_unset=True).items():
            if isinstance(value, CourseLevel):
                value = value.value
            elif field == "title" and value is not None:
                value = value.strip()
            setattr(course, field, value)
        course.updated_at = datetime.now(UTC)

        await self._save_course(course)
        await self.invalidate_course_cache(course_id)
        logger.info("course_updated", course_id=str(course_id))
        return course

    async def delete_course(self, course_id: UUID) -> None:
        """Delete a course with all of its modules, lessons and attachments."""
        if not await self.get_course(course_id):
            raise CourseNotFoundError

        rows = await self.session.aexecute(self._get_course_lessons, [course_id])
        for row in rows:
            await self._delete_lesson_side_tables(row.id)

        await self.session.aexecute(self._delete_course_lessons, [course_id])
        await self.session.aexecute(self._delete_course_modules, [course_id])
        await self.session.aexecute(self._delete_course, [course_id])
        await self.invalidate_course_cache(course_id)
        logger.info("course_deleted", course_id=str(course_id))

    # ==========================================================================
    # Module Operations
    # ==========================================================================

    async def _save_module(self, module: Module) -> None:
        await self.session.aexecute(
            self._upsert_module,
            [
                module.course_id,
                module.id,
                module.order_index,
                module.title,
                module.description,
                module.duration,
                module.required_for_completion,
                module.created_at,
            ],
        )

    async def get_course_modules(self, course_id: UUID) -> list[Module]:
        """Get modules of a course sorted by order_index."""
        rows = await self.session.aexecute(self._get_course_modules, [course_id])
        modules = [Module.from_row(row) for row in rows]
        return sorted(modules, key=lambda m: m.order_index)

    async def get_module(self, course_id: UUID, module_id: UUID) -> Module | None:
        """Get module by course and ID."""
        result = await self.session.aexecute(self._get_module, [course_id, module_id])
        row = result.one()
        return Module.from_row(row) if row else None

    async def create_module(self, course_id: UUID, data: CreateModuleRequest) -> Module:
        """Create a module, appending it after the last one by default."""
        if not await self.get_course(course_id):
            raise CourseNotFoundError

        order_index = data.order_index
        if order_index is None:
            modules = await self.get_course_modules(course_id)
            order_index = modules[-1].order_index + 1 if modules else 0

        module = Module(
            course_id=course_id,
            order_index=order_index,
            title=data.title,
            description=data.description,
            duration=data.duration,
            required_for_completion=data.required_for_completion,
        )
        await self._save_module(module)
        await self.invalidate_course_cache(course_id)
        logger.info(
            "module_created",
            course_id=str(course_id),
            module_id=str(module.id),
            order_index=order_index,
        )
        return module

    async def update_module(
        self, course_id: UUID, module_id: UUID, data: UpdateModuleRequest
    ) -> Module:
        """Update module fields that were sent in the request."""
        module = await self.get_module(course_id, module_id)
        if not module:
            raise ModuleNotFoundError

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(module, field, value)

        await self._save_module(module)
        await self.invalidate_course_cache(course_id)
        logger.info(
            "module_updated", course_id=str(course_id), module_id=str(module_id)
        )
        return module

    async def delete_module(self, course_id: UUID, module_id: UUID) -> None:
        """Delete a module and its lessons."""
        if not await self.get_module(course_id, module_id):
            raise ModuleNotFoundError

        rows = await self.session.aexecute(
            self._get_module_lessons, [course_id, module_id]
        )
        for row in rows:
            await self._delete_lesson_side_tables(row.id)

        await self.session.aexecute(self._delete_module_lessons, [course_id, module_id])
        await self.session.aexecute(self._delete_module, [course_id, module_id])
        await self.invalidate_course_cache(course_id)
        logger.info(
            "module_deleted", course_id=str(course_id), module_id=str(module_id)
        )

    # ==========================================================================
    # Lesson Operations
    # ==========================================================================

    async def _save_lesson(self, lesson: Lesson) -> None:
        await self.session.aexecute(
            self._upsert_lesson,
            [
                lesson.course_id,
                lesson.module_id,
                lesson.id,
                lesson.order_index,
                lesson.title,
                lesson.description,
                lesson.duration,
                lesson.video_url,
                lesson.thumbnail_url,
                lesson.required_for_completion,
                lesson.created_at,
            ],
        )

    async def get_module_lessons(
        self, course_id: UUID, module_id: UUID
    ) -> list[Lesson]:
        """Get lessons of a module sorted by order_index."""
        rows = await self.session.aexecute(
            self._get_module_lessons, [course_id, module_id]
        )
        lessons = [Lesson.from_row(row) for row in rows]
        return sorted(lessons, key=lambda lesson: lesson.order_index)

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        """Get lesson by ID (resolved through the lessons_by_id lookup)."""
        result = await self.session.aexecute(self._get_lesson_location, [lesson_id])
        location = result.one()
        if not location:
            return None

        result = await self.session.aexecute(
            self._get_lesson, [location.course_id, location.module_id, lesson_id]
        )
        row = result.one()
        return Lesson.from_row(row) if row else None

    async def create_lesson(
        self, course_id: UUID, module_id: UUID, data: CreateLessonRequest
    ) -> Lesson:
        """Create a lesson, appending it to the module by default."""
        if not await self.get_module(course_id, module_id):
            raise ModuleNotFoundError

        order_index = data.order_index
        if order_index is None:
            lessons = await self.get_module_lessons(course_id, module_id)
            order_index = lessons[-1].order_index + 1 if lessons else 0

        lesson = Lesson(
            course_id=course_id,
            module_id=module_id,
            order_index=order_index,
            title=data.title,
            description=data.description,
            duration=data.duration,
            video_url=data.video_url,
            thumbnail_url=data.thumbnail_url,
            required_for_completion=data.required_for_completion,
        )
        await self._save_lesson(lesson)
        await self.session.aexecute(
            self._insert_lesson_location, [lesson.id, course_id, module_id]
        )
        await self.invalidate_course_cache(course_id)
        logger.info(
            "lesson_created",
            course_id=str(course_id),
            module_id=str(module_id),
            lesson_id=str(lesson.id),
            order_index=order_index,
        )
        return lesson

    async def update_lesson(self, lesson_id: UUID, data: UpdateLessonRequest) -> Lesson:
        """Update lesson fields that were sent in the request."""
        lesson = await self.get_lesson(lesson_id)
        if not lesson:
            raise LessonNotFoundError

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(lesson, field, value)

        await self._save_lesson(lesson)
        await self.invalidate_course_cache(lesson.course_id)
        logger.info("lesson_updated", lesson_id=str(lesson_id))
        return lesson

    async def delete_lesson(self, lesson_id: UUID) -> None:
        """Delete a lesson and its attachments."""
        lesson = await self.get_lesson(lesson_id)
        if not lesson:
            raise LessonNotFoundError

        await self.session.aexecute(
            self._delete_lesson, [lesson.course_id, lesson.module_id, lesson_id]
        )
        await self._delete_lesson_side_tables(lesson_id)
        await self.invalidate_course_cache(lesson.course_id)
        logger.info("lesson_deleted", lesson_id=str(lesson_id))

    async def _delete_lesson_side_tables(self, lesson_id: UUID) -> None:
        await self.session.aexecute(self._delete_lesson_attachments, [lesson_id])
        await self.session.aexecute(self._delete_lesson_location, [lesson_id])

    # ==========================================================================
    # Attachment Operations
    # ==========================================================================

    async def list_attachments(self, lesson_id: UUID) -> list[Attachment]:
        """Get attachments of a lesson, oldest first."""
        rows = await self.session.aexecute(self._get_lesson_attachments, [lesson_id])
        attachments = [Attachment.from_row(row) for row in rows]
        return sorted(attachments, key=lambda a: a.created_at)

    async def add_attachment(
        self, lesson_id: UUID, data: CreateAttachmentRequest
    ) -> Attachment:
        """Attach a file to a lesson."""
        if not await self.get_lesson(lesson_id):
            raise LessonNotFoundError

        attachment = Attachment(
            lesson_id=lesson_id,
            title=data.title,
            type=data.type.value,
            url=data.url,
            size=data.size,
        )
        await self.session.aexecute(
            self._insert_attachment,
            [
                attachment.lesson_id,
                attachment.id,
                attachment.title,
                attachment.type,
                attachment.url,
                attachment.size,
                attachment.created_at,
            ],
        )
        logger.info(
            "attachment_added",
            lesson_id=str(lesson_id),
            attachment_id=str(attachment.id),
        )
        return attachment

    async def delete_attachment(self, lesson_id: UUID, attachment_id: UUID) -> None:
        """Remove an attachment from a lesson."""
        attachments = await self.list_attachments(lesson_id)
        if not any(a.id == attachment_id for a in attachments):
            raise AttachmentNotFoundError

        await self.session.aexecute(self._delete_attachment, [lesson_id, attachment_id])
        logger.info(
            "attachment_deleted",
            lesson_id=str(lesson_id),
            attachment_id=str(attachment_id),
        )

    # ==========================================================================
    # Course Aggregate
    # ==========================================================================

    async def get_course_detail(self, course_id: UUID) -> CourseDetailResponse:
        """Load the full course aggregate.

        Reads through the Redis cache when one is configured.

        Raises:
            CourseNotFoundError: If the course does not exist
        """
        cached = await self._get_cached_detail(course_id)
        if cached is not None:
            return cached

        course = await self.get_course(course_id)
        if not course:
            raise CourseNotFoundError

        modules = await self.get_course_modules(course_id)
        rows = await self.session.aexecute(self._get_course_lessons, [course_id])

        lessons_by_module: dict[UUID, list[Lesson]] = defaultdict(list)
        for row in rows:
            lesson = Lesson.from_row(row)
            lessons_by_module[lesson.module_id].append(lesson)

        orphaned = set(lessons_by_module) - {m.id for m in modules}
        if orphaned:
            logger.warning(
                "course_orphaned_lessons",
                course_id=str(course_id),
                module_ids=[str(m) for m in orphaned],
            )

        detail = CourseDetailResponse(
            **course.to_dict(),
            modules=[
                ModuleInCourseResponse(
                    **module.to_dict(),
                    lessons=[
                        LessonResponse.from_entity(lesson)
                        for lesson in sorted(
                            lessons_by_module.get(module.id, []),
                            key=lambda lesson: lesson.order_index,
                        )
                    ],
                )
                for module in modules
            ],
        )

        await self._set_cached_detail(detail)
        return detail

    async def _get_cached_detail(self, course_id: UUID) -> CourseDetailResponse | None:
        if self.redis is None or self.cache_ttl_seconds <= 0:
            return None
        try:
            payload = await self.redis.get(course_detail_key(str(course_id)))
            if payload is None:
                return None
            return CourseDetailResponse.model_validate_json(payload)
        except (RedisError, ValidationError) as e:
            logger.warning(
                "course_cache_read_failed", course_id=str(course_id), error=str(e)
            )
            return None

    async def _set_cached_detail(self, detail: CourseDetailResponse) -> None:
        if self.redis is None or self.cache_ttl_seconds <= 0:
            return
        try:
            await self.redis.set(
                course_detail_key(str(detail.id)),
                detail.model_dump_json(),
                ex=self.cache_ttl_seconds,
            )
        except RedisError as e:
            logger.warning(
                "course_cache_write_failed", course_id=str(detail.id), error=str(e)
            )

    async def invalidate_course_cache(self, course_id: UUID) -> None:
        """Drop the cached aggregate of a course after a catalogue write."""
        if self.redis is None:
            return
        try:
            await self.redis.delete(course_detail_key(str(course_id)))
        except RedisError as e:
            logger.warning(
                "course_cache_invalidate_failed", course_id=str(course_id), error=str(e)
            )
