"""Read-only content model: course, topics, lessons, and modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

DEFAULT_PASSING_SCORE = 65


class ModuleType(StrEnum):
    """Kind of learning module."""

    INFO = "info"
    QUIZ = "quiz"
    FLASHCARDS = "flashcards"


class QuizType(StrEnum):
    """Whether a question takes one or several selected options."""

    SINGLE = "single"
    MULTIPLE = "multiple"


@dataclass(frozen=True)
class QuizOption:
    """One selectable answer."""

    id: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class QuizQuestion:
    """One quiz question with ordered options."""

    id: str
    question: str
    type: QuizType
    options: list[QuizOption]
    explanation: str = ""

    def correct_option_ids(self) -> set[str]:
        """Return ids of every option flagged correct."""
        return {option.id for option in self.options if option.is_correct}


@dataclass(frozen=True)
class Flashcard:
    """One front/back card shown in a flashcards module."""

    id: str
    front: str
    back: str
    emoji: str = ""


@dataclass(frozen=True)
class Module:
    """Smallest unit of content.

    Only the payload fields matching ``type`` are populated: ``content`` for info
    modules, ``questions`` and ``passing_score`` for quizzes, ``cards`` for
    flashcards.
    """

    id: str
    type: ModuleType
    title: str
    points: int
    description: str = ""
    content: str = ""
    questions: list[QuizQuestion] = field(default_factory=list)
    passing_score: int = DEFAULT_PASSING_SCORE
    cards: list[Flashcard] = field(default_factory=list)


@dataclass(frozen=True)
class Lesson:
    """Ordered sequence of modules."""

    id: str
    title: str
    description: str
    modules: list[Module]

    def module_index(self, module_id: str) -> int | None:
        for index, module in enumerate(self.modules):
            if module.id == module_id:
                return index
        return None


@dataclass(frozen=True)
class Topic:
    """Ordered sequence of lessons."""

    id: str
    title: str
    description: str
    lessons: list[Lesson]
    icon: str = ""

    def lesson_index(self, lesson_id: str) -> int | None:
        for index, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return index
        return None


@dataclass(frozen=True)
class Course:
    """Root of the content tree."""

    id: str
    title: str
    description: str
    topics: list[Topic]
    total_points: int

    def find_topic(self, topic_id: str) -> Topic | None:
        """Return topic by id, or None when unknown."""
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    def find_lesson(self, topic_id: str, lesson_id: str) -> Lesson | None:
        """Return lesson by id within a topic, or None when unknown."""
        topic = self.find_topic(topic_id)
        if topic is None:
            return None
        index = topic.lesson_index(lesson_id)
        return None if index is None else topic.lessons[index]

    def find_module(self, topic_id: str, lesson_id: str, module_id: str) -> Module | None:
        """Return module by id within a lesson, or None when unknown."""
        lesson = self.find_lesson(topic_id, lesson_id)
        if lesson is None:
            return None
        index = lesson.module_index(module_id)
        return None if index is None else lesson.modules[index]

    def iter_modules(self) -> list[tuple[Topic, Lesson, Module]]:
        """Return every module with its parents in course order."""
        return [
            (topic, lesson, module) for topic in self.topics for lesson in topic.lessons for module in lesson.modules
        ]
