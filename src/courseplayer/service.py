"""Application service wiring content, progress, rewards, and flashcard memory."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from . import gate
from .content_loader import load_course, load_course_from_path
from .events import ProgressEvents
from .flashcards import FlashcardMemory, FlashcardStats
from .models import Course, Module, ModuleType
from .progress import Clock, ProgressStore, UserProgress, utcnow
from .rewards import DEFAULT_REWARD_POLICY, CompletionResult, RewardEngine, RewardPolicy
from .storage import RecordStore


@dataclass(frozen=True)
class ProgressSummary:
    """Module completion counts for a course or topic."""

    completed_modules: int
    total_modules: int
    percentage: int


@dataclass(frozen=True)
class DashboardSummary:
    """Headline numbers for the dashboard view."""

    course: ProgressSummary
    total_points: int
    available_points: int
    flashcards: FlashcardStats


class CourseService:
    """Coordinates the course document, learner progress, and flashcard memory."""

    def __init__(
        self,
        db_path: Path | str,
        course: Course | None = None,
        course_path: Path | str | None = None,
        reward_policy: RewardPolicy = DEFAULT_REWARD_POLICY,
        clock: Clock = utcnow,
    ) -> None:
        """Load the course once and open the record store."""
        if course is None:
            course = load_course_from_path(course_path) if course_path is not None else load_course()
        self.course = course
        self.records = RecordStore(db_path)
        self.events = ProgressEvents()
        self.progress = ProgressStore(self.records, course.id, clock=clock)
        self.rewards = RewardEngine(course, self.progress, policy=reward_policy, events=self.events, clock=clock)
        self.flashcards = FlashcardMemory(self.records, clock=clock)

    def get_progress(self) -> UserProgress:
        return self.progress.load()

    def is_topic_accessible(self, topic_id: str) -> bool:
        return gate.is_topic_accessible(self.course, topic_id)

    def is_lesson_accessible(self, topic_id: str, lesson_id: str) -> bool:
        return gate.is_lesson_accessible(self.course, self.progress.load(), topic_id, lesson_id)

    def is_module_accessible(self, topic_id: str, lesson_id: str, module_id: str) -> bool:
        return gate.is_module_accessible(self.course, self.progress.load(), topic_id, lesson_id, module_id)

    def complete_module(
        self, topic_id: str, lesson_id: str, module_id: str, score: int | None = None
    ) -> CompletionResult:
        return self.rewards.complete_module(topic_id, lesson_id, module_id, score)

    def submit_quiz(
        self, topic_id: str, lesson_id: str, module_id: str, answers: dict[str, list[str]]
    ) -> tuple[int, CompletionResult]:
        """Score selected answers, record the completion, and return (score, result)."""
        module = self.course.find_module(topic_id, lesson_id, module_id)
        if module is None or module.type is not ModuleType.QUIZ:
            raise KeyError(f"{topic_id}/{lesson_id}/{module_id}")
        score = score_quiz(module, answers)
        return score, self.rewards.complete_module(topic_id, lesson_id, module_id, score)

    def save_flashcard(self, topic_id: str, lesson_id: str, module_id: str, card_id: str) -> bool:
        """Save one card from a flashcards module into flashcard memory."""
        module = self.course.find_module(topic_id, lesson_id, module_id)
        if module is None:
            raise KeyError(f"{topic_id}/{lesson_id}/{module_id}")
        for card in module.cards:
            if card.id == card_id:
                return self.flashcards.save(card, topic_id, lesson_id, module_id)
        raise KeyError(card_id)

    def course_summary(self) -> ProgressSummary:
        """Return module completion across the whole course."""
        progress = self.progress.load()
        completed = 0
        total = 0
        for topic, lesson, module in self.course.iter_modules():
            total += 1
            if progress.is_module_completed(topic.id, lesson.id, module.id):
                completed += 1
        return ProgressSummary(completed, total, _percentage(completed, total))

    def topic_summary(self, topic_id: str) -> ProgressSummary:
        """Return module completion within one topic; zeros for unknown topics."""
        topic = self.course.find_topic(topic_id)
        if topic is None:
            return ProgressSummary(0, 0, 0)
        progress = self.progress.load()
        completed = 0
        total = 0
        for lesson in topic.lessons:
            for module in lesson.modules:
                total += 1
                if progress.is_module_completed(topic.id, lesson.id, module.id):
                    completed += 1
        return ProgressSummary(completed, total, _percentage(completed, total))

    def dashboard(self) -> DashboardSummary:
        progress = self.progress.load()
        return DashboardSummary(
            course=self.course_summary(),
            total_points=progress.total_points,
            available_points=self.course.total_points,
            flashcards=self.flashcards.stats(),
        )

    def reset_progress(self) -> None:
        self.rewards.reset()

    def close(self) -> None:
        """Close resources."""
        self.records.close()


def score_quiz(module: Module, answers: dict[str, list[str]]) -> int:
    """Return the percentage of questions answered exactly right.

    A question counts only when the selected option ids equal its set of correct
    option ids; missing answers count as wrong.
    """
    if not module.questions:
        return 0
    correct = 0
    for question in module.questions:
        selected = answers.get(question.id, [])
        if len(selected) == len(set(selected)) and set(selected) == question.correct_option_ids():
            correct += 1
    return _percentage(correct, len(module.questions))


def _percentage(part: int, whole: int) -> int:
    """Return part/whole as a whole percentage, rounding halves up."""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)
