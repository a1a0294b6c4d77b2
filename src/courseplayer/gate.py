"""Sequential unlock rules over the content tree.

Every function here is pure: it reads a course and a progress snapshot and never
mutates either. Unknown ids are never an error; they are simply not accessible.
Topics are not gated, only the lessons inside a topic and the modules inside a
lesson.
"""

from __future__ import annotations

from .models import Course
from .progress import UserProgress


def is_topic_accessible(course: Course, topic_id: str) -> bool:
    """Return whether a topic exists; all topics are open."""
    return course.find_topic(topic_id) is not None


def is_lesson_accessible(course: Course, progress: UserProgress, topic_id: str, lesson_id: str) -> bool:
    """Return whether the lesson is first in its topic or follows a completed lesson."""
    topic = course.find_topic(topic_id)
    if topic is None:
        return False
    index = topic.lesson_index(lesson_id)
    if index is None:
        return False
    if index == 0:
        return True
    previous = topic.lessons[index - 1]
    return progress.is_lesson_completed(topic_id, previous.id)


def is_module_accessible(
    course: Course, progress: UserProgress, topic_id: str, lesson_id: str, module_id: str
) -> bool:
    """Return whether the module is first in its lesson or follows a completed module."""
    lesson = course.find_lesson(topic_id, lesson_id)
    if lesson is None:
        return False
    index = lesson.module_index(module_id)
    if index is None:
        return False
    if index == 0:
        return True
    previous = lesson.modules[index - 1]
    return progress.is_module_completed(topic_id, lesson_id, previous.id)


def accessible_frontier(course: Course, progress: UserProgress, topic_id: str, lesson_id: str) -> int:
    """Return how many leading modules of a lesson are accessible."""
    lesson = course.find_lesson(topic_id, lesson_id)
    if lesson is None:
        return 0
    count = 0
    for module in lesson.modules:
        if not is_module_accessible(course, progress, topic_id, lesson_id, module.id):
            break
        count += 1
    return count
