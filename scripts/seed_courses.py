"""Seed the catalogue with demo courses.

Creates two courses, each with two modules ("Introdução" and "Práticas
Avançadas") of two lessons. Courses whose title already exists are
skipped, so the script can be run repeatedly.

Usage:
    uv run python -m scripts.seed_courses
"""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import structlog

from src.config.settings import get_settings
from src.core.database.async_cassandra import (
    build_cluster,
    create_tables,
    init_async_keyspace,
)
from src.courses.models import COURSES_TABLES_CQL, CourseLevel
from src.courses.schemas import (
    CreateCourseRequest,
    CreateLessonRequest,
    CreateModuleRequest,
    UpdateCourseRequest,
)
from src.courses.service import CourseService
from src.progress.models import PROGRESS_TABLES_CQL


logger = structlog.get_logger(__name__)


SAMPLE_VIDEO_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"

MODULE_TITLES = ["Introdução", "Práticas Avançadas"]

LESSON_DURATIONS = [45, 40]

SEED_COURSES = [
    {
        "course": CreateCourseRequest(
            title="Gestão de Pastagens",
            description="Aprenda técnicas modernas de manejo de pastagens",
            category="pastagens",
            level=CourseLevel.INTERMEDIATE,
            duration=40,
        ),
        "rating": Decimal("4.8"),
        "students_count": 45,
    },
    {
        "course": CreateCourseRequest(
            title="Nutrição Animal",
            description="Fundamentos de nutrição para bovinos de corte e leite",
            category="nutricao",
            level=CourseLevel.ADVANCED,
            duration=35,
        ),
        "rating": Decimal("4.5"),
        "students_count": 32,
    },
]


async def seed_course(service: CourseService, entry: dict) -> bool:
    """Create one course with its modules and lessons.

    Returns:
        False if a course with the same title already exists
    """
    data: CreateCourseRequest = entry["course"]
    existing = await service.list_courses()
    if any(course.title == data.title for course in existing):
        logger.info("seed_course_skipped_exists", title=data.title)
        return False

    course = await service.create_course(data)
    await service.update_course(
        course.id,
        UpdateCourseRequest(
            rating=entry["rating"], students_count=entry["students_count"]
        ),
    )

    for module_index, module_title in enumerate(MODULE_TITLES):
        module = await service.create_module(
            course.id,
            CreateModuleRequest(
                title=module_title,
                description=f"Módulo {module_index + 1} de {data.title}",
                order_index=module_index,
            ),
        )
        for lesson_index, duration in enumerate(LESSON_DURATIONS):
            await service.create_lesson(
                course.id,
                module.id,
                CreateLessonRequest(
                    title=f"{module_title} - Aula {lesson_index + 1}",
                    description=f"Aula {lesson_index + 1} do módulo {module_title}",
                    duration=duration,
                    video_url=SAMPLE_VIDEO_URL,
                    order_index=lesson_index,
                ),
            )

    logger.info("seed_course_created", course_id=str(course.id), title=data.title)
    return True


async def run_seed() -> None:
    """Connect, make sure the schema exists and seed the catalogue."""
    settings = get_settings()
    keyspace = settings.cassandra_keyspace

    logger.info("seed_starting", keyspace=keyspace, hosts=settings.cassandra_hosts)

    cluster = build_cluster(settings)
    session = cluster.connect()

    try:
        await init_async_keyspace(session, keyspace, settings.is_production)
        session.set_keyspace(keyspace)
        await create_tables(session, keyspace, COURSES_TABLES_CQL, "courses")
        await create_tables(session, keyspace, PROGRESS_TABLES_CQL, "progress")

        service = CourseService(session=session, keyspace=keyspace)
        created = 0
        for entry in SEED_COURSES:
            if await seed_course(service, entry):
                created += 1

        logger.info("seed_completed", created=created, total=len(SEED_COURSES))
    finally:
        session.shutdown()
        cluster.shutdown()


if __name__ == "__main__":
    asyncio.run(run_seed())
