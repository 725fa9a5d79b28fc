"""Course catalogue API endpoints.

Provides routes for:
- Courses: listing, aggregate, CRUD (admin)
- Modules and lessons: CRUD (admin)
- Attachments: listing and CRUD (admin)
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from src.auth.dependencies import AdminUser, OptionalUser
from src.courses.dependencies import CourseServiceDep, handle_course_error
from src.courses.models import CourseLevel
from src.courses.schemas import (
    AttachmentResponse,
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CreateAttachmentRequest,
    CreateCourseRequest,
    CreateLessonRequest,
    CreateModuleRequest,
    LessonResponse,
    MessageResponse,
    ModuleResponse,
    UpdateCourseRequest,
    UpdateLessonRequest,
    UpdateModuleRequest,
)
from src.courses.service import CourseError, LessonNotFoundError


router_courses = APIRouter(prefix="/v1/courses", tags=["courses"])
router_lessons = APIRouter(prefix="/v1/lessons", tags=["lessons"])


# ==============================================================================
# Course Endpoints
# ==============================================================================


@router_courses.get("", response_model=CourseListResponse, summary="List courses")
async def list_courses(
    course_service: CourseServiceDep,
    user: OptionalUser,
    category: str | None = Query(None, description="Filter by category"),
    level: CourseLevel | None = Query(None, description="Filter by level"),
) -> CourseListResponse:
    """List the catalogue. Public."""
    courses = await course_service.list_courses(
        category=category, level=level.value if level else None
    )
    return CourseListResponse(
        items=[CourseResponse.from_entity(c) for c in courses],
        total=len(courses),
    )


@router_courses.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CreateCourseRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> CourseResponse:
    """Create a course. Admin only."""
    course = await course_service.create_course(data)
    return CourseResponse.from_entity(course)


@router_courses.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Get course with modules and lessons",
)
async def get_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> CourseDetailResponse:
    """Get the full course aggregate. Public."""
    try:
        return await course_service.get_course_detail(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e


@router_courses.patch("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: UUID,
    data: UpdateCourseRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> CourseResponse:
    """Update a course. Admin only."""
    try:
        course = await course_service.update_course(course_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return CourseResponse.from_entity(course)


@router_courses.delete("/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: UUID,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> MessageResponse:
    """Delete a course with all modules, lessons and attachments. Admin only."""
    try:
        await course_service.delete_course(course_id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message="Curso removido")


# ==============================================================================
# Module Endpoints
# ==============================================================================


@router_courses.post(
    "/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    course_id: UUID,
    data: CreateModuleRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> ModuleResponse:
    """Add a module to a course. Admin only."""
    try:
        module = await course_service.create_module(course_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return ModuleResponse.from_entity(module)


@router_courses.patch(
    "/{course_id}/modules/{module_id}", response_model=ModuleResponse
)
async def update_module(
    course_id: UUID,
    module_id: UUID,
    data: UpdateModuleRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> ModuleResponse:
    """Update a module (title, order...). Admin only."""
    try:
        module = await course_service.update_module(course_id, module_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return ModuleResponse.from_entity(module)


@router_courses.delete(
    "/{course_id}/modules/{module_id}", response_model=MessageResponse
)
async def delete_module(
    course_id: UUID,
    module_id: UUID,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> MessageResponse:
    """Delete a module and its lessons. Admin only."""
    try:
        await course_service.delete_module(course_id, module_id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message="Modulo removido")


@router_courses.post(
    "/{course_id}/modules/{module_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_lesson(
    course_id: UUID,
    module_id: UUID,
    data: CreateLessonRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> LessonResponse:
    """Add a lesson to a module. Admin only."""
    try:
        lesson = await course_service.create_lesson(course_id, module_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return LessonResponse.from_entity(lesson)


# ==============================================================================
# Lesson Endpoints
# ==============================================================================


@router_lessons.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(
    lesson_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> LessonResponse:
    """Get a single lesson."""
    lesson = await course_service.get_lesson(lesson_id)
    if not lesson:
        raise handle_course_error(LessonNotFoundError())
    return LessonResponse.from_entity(lesson)


@router_lessons.patch("/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    lesson_id: UUID,
    data: UpdateLessonRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> LessonResponse:
    """Update a lesson. Admin only."""
    try:
        lesson = await course_service.update_lesson(lesson_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return LessonResponse.from_entity(lesson)


@router_lessons.delete("/{lesson_id}", response_model=MessageResponse)
async def delete_lesson(
    lesson_id: UUID,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> MessageResponse:
    """Delete a lesson. Admin only."""
    try:
        await course_service.delete_lesson(lesson_id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message="Aula removida")


@router_lessons.get(
    "/{lesson_id}/attachments", response_model=list[AttachmentResponse]
)
async def list_attachments(
    lesson_id: UUID,
    course_service: CourseServiceDep,
    user: OptionalUser,
) -> list[AttachmentResponse]:
    """List the supporting files of a lesson."""
    attachments = await course_service.list_attachments(lesson_id)
    return [AttachmentResponse.from_entity(a) for a in attachments]


@router_lessons.post(
    "/{lesson_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_attachment(
    lesson_id: UUID,
    data: CreateAttachmentRequest,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> AttachmentResponse:
    """Attach a file to a lesson. Admin only."""
    try:
        attachment = await course_service.add_attachment(lesson_id, data)
    except CourseError as e:
        raise handle_course_error(e) from e
    return AttachmentResponse.from_entity(attachment)


@router_lessons.delete(
    "/{lesson_id}/attachments/{attachment_id}", response_model=MessageResponse
)
async def delete_attachment(
    lesson_id: UUID,
    attachment_id: UUID,
    course_service: CourseServiceDep,
    admin: AdminUser,
) -> MessageResponse:
    """Remove an attachment. Admin only."""
    try:
        await course_service.delete_attachment(lesson_id, attachment_id)
    except CourseError as e:
        raise handle_course_error(e) from e
    return MessageResponse(message="Anexo removido")
