"""Persisted per-learner course progress."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import AwareDatetime, BaseModel, Field, ValidationError

from .storage import RecordStore

PROGRESS_KEY_PREFIX = "user_progress"

Clock = Callable[[], datetime]

log = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


class ModuleProgress(BaseModel):
    """Completion record for one module."""

    module_id: str
    completed: bool = False
    score: int | None = Field(default=None, ge=0, le=100)
    points_earned: int = Field(default=0, ge=0)
    completed_at: AwareDatetime | None = None


class LessonProgress(BaseModel):
    """Module records for one lesson; ``completed`` is derived from the content tree."""

    lesson_id: str
    modules: dict[str, ModuleProgress] = Field(default_factory=dict)
    completed: bool = False


class TopicProgress(BaseModel):
    """Lesson records for one topic; ``completed`` is derived from the content tree."""

    topic_id: str
    lessons: dict[str, LessonProgress] = Field(default_factory=dict)
    completed: bool = False


class UserProgress(BaseModel):
    """Full progress record for one course."""

    course_id: str
    topics: dict[str, TopicProgress] = Field(default_factory=dict)
    total_points: int = Field(default=0, ge=0)
    last_accessed_at: AwareDatetime

    def get_topic_progress(self, topic_id: str) -> TopicProgress | None:
        return self.topics.get(topic_id)

    def get_lesson_progress(self, topic_id: str, lesson_id: str) -> LessonProgress | None:
        topic = self.topics.get(topic_id)
        if topic is None:
            return None
        return topic.lessons.get(lesson_id)

    def get_module_progress(self, topic_id: str, lesson_id: str, module_id: str) -> ModuleProgress | None:
        lesson = self.get_lesson_progress(topic_id, lesson_id)
        if lesson is None:
            return None
        return lesson.modules.get(module_id)

    def is_module_completed(self, topic_id: str, lesson_id: str, module_id: str) -> bool:
        record = self.get_module_progress(topic_id, lesson_id, module_id)
        return record is not None and record.completed

    def is_lesson_completed(self, topic_id: str, lesson_id: str) -> bool:
        record = self.get_lesson_progress(topic_id, lesson_id)
        return record is not None and record.completed

    def ensure_lesson(self, topic_id: str, lesson_id: str) -> LessonProgress:
        """Return lesson record, creating it and its topic record when missing."""
        topic = self.topics.setdefault(topic_id, TopicProgress(topic_id=topic_id))
        return topic.lessons.setdefault(lesson_id, LessonProgress(lesson_id=lesson_id))


class ProgressStore:
    """Load, save, and reset the progress record of one course."""

    def __init__(self, records: RecordStore, course_id: str, clock: Clock = utcnow) -> None:
        self._records = records
        self.course_id = course_id
        self._clock = clock

    @property
    def key(self) -> str:
        return f"{PROGRESS_KEY_PREFIX}:{self.course_id}"

    def empty(self) -> UserProgress:
        """Return a fresh record with no progress."""
        return UserProgress(course_id=self.course_id, last_accessed_at=self._clock())

    def load(self) -> UserProgress:
        """Return persisted progress, or an empty record when missing or malformed."""
        payload = self._records.get(self.key)
        if payload is None:
            return self.empty()
        try:
            progress = UserProgress.model_validate_json(payload)
        except ValidationError as exc:
            log.warning("discarding malformed progress record %s: %s", self.key, exc.error_count())
            return self.empty()
        if progress.course_id != self.course_id:
            log.warning("discarding progress record %s for course %s", self.key, progress.course_id)
            return self.empty()
        return progress

    def save(self, progress: UserProgress) -> None:
        """Persist the full record, replacing any prior value."""
        self._records.put(self.key, progress.model_dump_json())

    def reset(self) -> None:
        """Delete persisted progress."""
        if self._records.delete(self.key):
            log.info("progress reset for course %s", self.course_id)
