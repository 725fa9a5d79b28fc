"""Flatten a course aggregate into one ordered lesson sequence.

Lessons are ordered by (module order_index, lesson order_index). Python's
sort is stable, so lessons with colliding keys keep the order in which the
aggregate lists them. Order keys need not be contiguous.

Both functions are pure: they read the aggregate and build new values.
A partially loaded aggregate yields a partial sequence without complaint.
"""

from uuid import UUID

from src.courses.schemas import CourseDetailResponse

from .schemas import LessonNavigation, SequencedLesson


def build_lesson_sequence(course: CourseDetailResponse) -> list[SequencedLesson]:
    """Return every lesson of the course in viewing order."""
    flattened = [
        SequencedLesson(
            module_id=module.id,
            module_order_index=module.order_index,
            lesson=lesson,
        )
        for module in course.modules
        for lesson in module.lessons
    ]
    return sorted(
        flattened,
        key=lambda item: (item.module_order_index, item.lesson.order_index),
    )


def locate_lesson(course: CourseDetailResponse, lesson_id: UUID) -> LessonNavigation:
    """Find a lesson in the course sequence together with its neighbours.

    Returns a navigation with ``found == False`` when the lesson is not part
    of the course.
    """
    sequence = build_lesson_sequence(course)

    for index, item in enumerate(sequence):
        if item.lesson.id != lesson_id:
            continue
        return LessonNavigation(
            current_lesson=item,
            previous_lesson=sequence[index - 1].ref if index > 0 else None,
            next_lesson=sequence[index + 1].ref if index + 1 < len(sequence) else None,
            position=index,
            total_lessons=len(sequence),
        )

    return LessonNavigation(total_lessons=len(sequence))
