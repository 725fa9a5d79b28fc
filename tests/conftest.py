"""Shared fixtures for the API tests."""

import os
import tempfile
from collections.abc import Callable, Iterator
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest


# Must be set before the app (and its settings) are imported
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="aulaflix-logs-"))
os.environ.setdefault("LOG_REQUESTS", "false")

from fastapi.testclient import TestClient  # noqa: E402

from src.auth.permissions import UserRole  # noqa: E402
from src.auth.security import create_access_token  # noqa: E402
from src.config.settings import Settings, get_settings  # noqa: E402
from src.courses.schemas import (  # noqa: E402
    CourseDetailResponse,
    LessonResponse,
    ModuleInCourseResponse,
)
from src.main import app  # noqa: E402


CourseFactory = Callable[..., CourseDetailResponse]


@pytest.fixture
def make_course() -> CourseFactory:
    """Build a course aggregate from ``[(module_order, [lesson_orders]), ...]``.

    Lessons are titled ``m{module position}l{lesson position}`` after their
    position in the layout, not after their order keys.
    """

    def factory(layout: list[tuple[int, list[int]]], course_id: UUID | None = None):
        course_id = course_id or uuid4()
        modules = []
        for m_pos, (module_order, lesson_orders) in enumerate(layout):
            module_id = uuid4()
            lessons = [
                LessonResponse(
                    id=uuid4(),
                    module_id=module_id,
                    course_id=course_id,
                    order_index=lesson_order,
                    title=f"m{m_pos}l{l_pos}",
                )
                for l_pos, lesson_order in enumerate(lesson_orders)
            ]
            modules.append(
                ModuleInCourseResponse(
                    id=module_id,
                    course_id=course_id,
                    order_index=module_order,
                    title=f"Modulo {m_pos}",
                    lessons=lessons,
                )
            )
        return CourseDetailResponse(id=course_id, title="Curso de teste", modules=modules)

    return factory


@pytest.fixture
def two_by_two_course(make_course: CourseFactory) -> CourseDetailResponse:
    """Two modules with two lessons each, all keys in order."""
    return make_course([(0, [0, 1]), (1, [0, 1])])


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no auto-advance delay."""
    return Settings(progress_auto_advance_delay_ms=0)


@pytest.fixture
def client(test_settings: Settings) -> Iterator[TestClient]:
    """Test client without lifespan: no database or Redis connection."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def course_service() -> Mock:
    """Course service double with async methods."""
    service = Mock()
    service.get_course_detail = AsyncMock()
    service.get_lesson = AsyncMock()
    service.list_courses = AsyncMock(return_value=[])
    service.list_attachments = AsyncMock(return_value=[])
    return service


@pytest.fixture
def progress_service() -> Mock:
    """Progress service double with async methods."""
    service = Mock()
    service.upsert_progress = AsyncMock()
    service.mark_completed = AsyncMock()
    service.get_lesson_progress = AsyncMock(return_value=None)
    service.get_course_progress = AsyncMock()
    return service


@pytest.fixture
def wired_services(course_service: Mock, progress_service: Mock) -> Iterator[None]:
    """Install the service doubles on the app state."""
    app.state.course_service = course_service
    app.state.progress_service = progress_service
    yield
    del app.state.course_service
    del app.state.progress_service


@pytest.fixture
def student_id() -> UUID:
    return uuid4()


@pytest.fixture
def student_token(student_id: UUID) -> str:
    return create_access_token(
        {"sub": str(student_id), "email": "aluno@example.com", "role": UserRole.STUDENT.value}
    )


@pytest.fixture
def admin_token() -> str:
    return create_access_token(
        {"sub": str(uuid4()), "email": "admin@example.com", "role": UserRole.ADMIN.value}
    )
