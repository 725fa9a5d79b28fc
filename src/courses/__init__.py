"""Course catalogue: courses, modules, lessons and attachments.

Provides:
- Cassandra tables and entities
- CourseService with the course aggregate provider
- Admin CRUD routes
"""

from .models import COURSES_TABLES_CQL, Attachment, Course, Lesson, Module


__all__ = [
    "COURSES_TABLES_CQL",
    "Attachment",
    "Course",
    "Lesson",
    "Module",
]
