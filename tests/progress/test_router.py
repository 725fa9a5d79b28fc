"""Tests for the lesson progress endpoints."""

from unittest.mock import Mock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from src.courses.models import Lesson
from src.progress.models import LessonProgress
from src.progress.schemas import CourseProgressResponse
from src.progress.service import ProgressPersistError


@pytest.fixture
def auth_headers(student_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {student_token}"}


@pytest.fixture
def known_lesson(course_service: Mock) -> Lesson:
    lesson = Lesson(course_id=uuid4(), module_id=uuid4(), title="Introdução - Aula 1")
    course_service.get_lesson.return_value = lesson
    return lesson


class TestUpdateProgress:
    """Tests for PUT /v1/progress/lessons/{lesson_id}."""

    def test_requires_authentication(self, client: TestClient, wired_services: None) -> None:
        """Anonymous reports are rejected."""
        response = client.put(f"/v1/progress/lessons/{uuid4()}", json={"progress": 10})
        assert response.status_code == 401

    def test_qualifying_report_is_written(
        self,
        client: TestClient,
        wired_services: None,
        progress_service: Mock,
        known_lesson: Lesson,
        auth_headers: dict[str, str],
        student_id,
    ) -> None:
        """Reports on a multiple of five are persisted."""
        response = client.put(
            f"/v1/progress/lessons/{known_lesson.id}",
            json={"progress": 25.4},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["persisted"] is True
        progress_service.upsert_progress.assert_awaited_once_with(
            student_id, known_lesson.id, 25.4
        )

    def test_other_reports_are_acknowledged(
        self,
        client: TestClient,
        wired_services: None,
        progress_service: Mock,
        known_lesson: Lesson,
        auth_headers: dict[str, str],
    ) -> None:
        """Reports between steps are accepted but not written."""
        response = client.put(
            f"/v1/progress/lessons/{known_lesson.id}",
            json={"progress": 27.0},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "lesson_id": str(known_lesson.id),
            "progress": 27.0,
            "persisted": False,
        }
        progress_service.upsert_progress.assert_not_awaited()

    @pytest.mark.parametrize("progress", [-1, 100.5])
    def test_out_of_range(
        self,
        client: TestClient,
        wired_services: None,
        auth_headers: dict[str, str],
        progress: float,
    ) -> None:
        """Progress is a percentage."""
        response = client.put(
            f"/v1/progress/lessons/{uuid4()}",
            json={"progress": progress},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_unknown_lesson(
        self,
        client: TestClient,
        wired_services: None,
        course_service: Mock,
        auth_headers: dict[str, str],
    ) -> None:
        """Progress on a lesson that does not exist is a 404."""
        course_service.get_lesson.return_value = None

        response = client.put(
            f"/v1/progress/lessons/{uuid4()}",
            json={"progress": 10},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_storage_failure(
        self,
        client: TestClient,
        wired_services: None,
        progress_service: Mock,
        known_lesson: Lesson,
        auth_headers: dict[str, str],
    ) -> None:
        """A failed write is reported as temporarily unavailable."""
        progress_service.upsert_progress.side_effect = ProgressPersistError()

        response = client.put(
            f"/v1/progress/lessons/{known_lesson.id}",
            json={"progress": 50},
            headers=auth_headers,
        )
        assert response.status_code == 503


class TestCompleteLesson:
    """Tests for POST /v1/progress/lessons/{lesson_id}/complete."""

    def test_complete(
        self,
        client: TestClient,
        wired_services: None,
        progress_service: Mock,
        known_lesson: Lesson,
        auth_headers: dict[str, str],
        student_id,
    ) -> None:
        """Completion is written and returned."""
        progress_service.mark_completed.return_value = LessonProgress(
            user_id=student_id, lesson_id=known_lesson.id, progress=100.0, completed=True
        )

        response = client.post(
            f"/v1/progress/lessons/{known_lesson.id}/complete", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["completed"] is True
        assert data["progress"] == 100.0
        assert data["status"] == "completed"


class TestReadProgress:
    """Tests for progress queries."""

    def test_lesson_without_progress(
        self, client: TestClient, wired_services: None, auth_headers: dict[str, str]
    ) -> None:
        """No record yet is a 404."""
        response = client.get(f"/v1/progress/lessons/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    def test_lesson_progress(
        self,
        client: TestClient,
        wired_services: None,
        progress_service: Mock,
        auth_headers: dict[str, str],
        student_id,
    ) -> None:
        """A stored record is returned with its derived status."""
        lesson_id = uuid4()
        progress_service.get_lesson_progress.return_value = LessonProgress(
            user_id=student_id, lesson_id=lesson_id, progress=35.0
        )

        response = client.get(f"/v1/progress/lessons/{lesson_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

    def test_course_progress(
        self,
        client: TestClient,
        wired_services: None,
        course_service: Mock,
        progress_service: Mock,
        two_by_two_course,
        auth_headers: dict[str, str],
        student_id,
    ) -> None:
        """Course progress is computed over the course aggregate."""
        course_service.get_course_detail.return_value = two_by_two_course
        progress_service.get_course_progress.return_value = CourseProgressResponse(
            course_id=two_by_two_course.id,
            total_lessons=4,
            completed_lessons=0,
            progress_percent=0.0,
        )

        response = client.get(
            f"/v1/progress/courses/{two_by_two_course.id}", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["total_lessons"] == 4
        progress_service.get_course_progress.assert_awaited_once_with(
            student_id, two_by_two_course
        )
