"""Module completion and reward points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from .events import ChangeKind, ProgressChange, ProgressEvents
from .models import Course, Module, ModuleType
from .progress import Clock, ModuleProgress, ProgressStore, UserProgress, utcnow

log = logging.getLogger(__name__)


class RewardPolicy(StrEnum):
    """How repeated quiz completions are rewarded.

    ``first-attempt-only`` pays out on the first completion call and never
    again. ``best-attempt`` pays out the improvement whenever a retry scores a
    larger award than any earlier attempt.
    """

    FIRST_ATTEMPT_ONLY = "first-attempt-only"
    BEST_ATTEMPT = "best-attempt"


DEFAULT_REWARD_POLICY = RewardPolicy.FIRST_ATTEMPT_ONLY


@dataclass(frozen=True)
class CompletionResult:
    """Points earned by one completion call and the new running total."""

    points_earned: int
    total_points: int


def calculate_points(module: Module, score: int | None = None) -> int:
    """Return the award for completing a module once.

    Info and flashcards modules pay their full value. Quizzes pay the floor of
    the score's share of the module value, and nothing below the passing score.
    """
    if module.type is not ModuleType.QUIZ:
        return module.points
    if score is None:
        raise ValueError(f"Quiz module '{module.id}' requires a score.")
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise ValueError(f"Quiz score must be an integer from 0 to 100, got {score!r}.")
    if score < module.passing_score:
        return 0
    return score * module.points // 100


class RewardEngine:
    """Records module completions, awards points, and re-derives completion flags."""

    def __init__(
        self,
        course: Course,
        store: ProgressStore,
        policy: RewardPolicy = DEFAULT_REWARD_POLICY,
        events: ProgressEvents | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.course = course
        self.store = store
        self.policy = RewardPolicy(policy)
        self.events = events if events is not None else ProgressEvents()
        self._clock = clock

    def complete_module(
        self, topic_id: str, lesson_id: str, module_id: str, score: int | None = None
    ) -> CompletionResult:
        """Mark a module completed and persist the updated progress record."""
        module = self.course.find_module(topic_id, lesson_id, module_id)
        if module is None:
            raise KeyError(f"{topic_id}/{lesson_id}/{module_id}")

        award = calculate_points(module, score)
        now = self._clock()
        progress = self.store.load()
        lesson_record = progress.ensure_lesson(topic_id, lesson_id)
        existing = lesson_record.modules.get(module_id)

        if existing is None or not existing.completed:
            lesson_record.modules[module_id] = ModuleProgress(
                module_id=module_id,
                completed=True,
                score=score if module.type is ModuleType.QUIZ else None,
                points_earned=award,
                completed_at=now,
            )
            earned = award
            changed = True
        elif module.type is ModuleType.QUIZ:
            earned = self._retry_quiz(existing, award, score)
            changed = earned > 0
        else:
            earned = 0
            changed = False

        self._refresh_completion(progress, topic_id, lesson_id)
        progress.total_points += earned
        progress.last_accessed_at = now
        self.store.save(progress)

        log.debug("completed %s: +%d points (total %d)", module_id, earned, progress.total_points)
        if changed:
            self.events.emit(
                ProgressChange(
                    kind=ChangeKind.COMPLETED,
                    module_id=module_id,
                    points_earned=earned,
                    total_points=progress.total_points,
                )
            )
        return CompletionResult(points_earned=earned, total_points=progress.total_points)

    def _retry_quiz(self, existing: ModuleProgress, award: int, score: int | None) -> int:
        """Apply a repeat quiz completion and return the points it earns."""
        if score is not None and (existing.score is None or score > existing.score):
            existing.score = score
        if self.policy is RewardPolicy.FIRST_ATTEMPT_ONLY:
            return 0
        improvement = max(0, award - existing.points_earned)
        existing.points_earned += improvement
        return improvement

    def _refresh_completion(self, progress: UserProgress, topic_id: str, lesson_id: str) -> None:
        """Recompute lesson and topic completion by scanning the content tree."""
        topic = self.course.find_topic(topic_id)
        lesson = self.course.find_lesson(topic_id, lesson_id)
        if topic is None or lesson is None:
            return

        lesson_record = progress.ensure_lesson(topic_id, lesson_id)
        lesson_record.completed = all(
            progress.is_module_completed(topic_id, lesson_id, module.id) for module in lesson.modules
        )

        topic_record = progress.topics[topic_id]
        if lesson_record.completed:
            topic_record.completed = all(progress.is_lesson_completed(topic_id, item.id) for item in topic.lessons)
        else:
            topic_record.completed = False

    def reset(self) -> None:
        """Delete all progress for the course and notify listeners."""
        self.store.reset()
        self.events.emit(ProgressChange(kind=ChangeKind.RESET, total_points=0))
