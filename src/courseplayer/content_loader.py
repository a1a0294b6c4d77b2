"""Load the declarative course document from bundled or on-disk JSON."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .models import (
    DEFAULT_PASSING_SCORE,
    Course,
    Flashcard,
    Lesson,
    Module,
    ModuleType,
    QuizOption,
    QuizQuestion,
    QuizType,
    Topic,
)

CONTENT_PACKAGE = "courseplayer.content"
COURSE_FILE = "course.json"

log = logging.getLogger(__name__)


def _option_from_dict(raw: dict[str, Any]) -> QuizOption:
    return QuizOption(id=str(raw["id"]), text=str(raw.get("text", "")), is_correct=bool(raw.get("is_correct", False)))


def _question_from_dict(module_id: str, raw: dict[str, Any]) -> QuizQuestion:
    """Build a quiz question from raw JSON content."""
    question_id = str(raw["id"])
    options = [_option_from_dict(item) for item in raw.get("options", [])]
    if not any(option.is_correct for option in options):
        raise ValueError(f"Question '{question_id}' in module '{module_id}' has no correct option.")
    try:
        question_type = QuizType(str(raw.get("type", QuizType.SINGLE)))
    except ValueError as exc:
        raise ValueError(f"Question '{question_id}' has unknown type '{raw.get('type')}'.") from exc
    return QuizQuestion(
        id=question_id,
        question=str(raw["question"]),
        type=question_type,
        options=options,
        explanation=str(raw.get("explanation", "")),
    )


def _card_from_dict(raw: dict[str, Any]) -> Flashcard:
    return Flashcard(
        id=str(raw["id"]),
        front=str(raw["front"]),
        back=str(raw["back"]),
        emoji=str(raw.get("emoji", "")),
    )


def _module_from_dict(raw: dict[str, Any]) -> Module:
    """Build a module from raw JSON content."""
    module_id = str(raw["id"])
    try:
        module_type = ModuleType(str(raw.get("type", "")))
    except ValueError as exc:
        raise ValueError(f"Module '{module_id}' has unknown type '{raw.get('type')}'.") from exc

    points = int(raw.get("points", 0))
    if points < 0:
        raise ValueError(f"Module '{module_id}' has negative points.")

    questions: list[QuizQuestion] = []
    cards: list[Flashcard] = []
    passing_score = int(raw.get("passing_score", DEFAULT_PASSING_SCORE))
    if module_type is ModuleType.QUIZ:
        questions = [_question_from_dict(module_id, item) for item in raw.get("questions", [])]
        if not questions:
            raise ValueError(f"Quiz module '{module_id}' has no questions.")
        if not 0 <= passing_score <= 100:
            raise ValueError(f"Quiz module '{module_id}' has passing score outside 0-100.")
    elif module_type is ModuleType.FLASHCARDS:
        cards = [_card_from_dict(item) for item in raw.get("cards", [])]
        if not cards:
            raise ValueError(f"Flashcards module '{module_id}' has no cards.")

    return Module(
        id=module_id,
        type=module_type,
        title=str(raw["title"]),
        points=points,
        description=str(raw.get("description", "")),
        content=str(raw.get("content", "")),
        questions=questions,
        passing_score=passing_score,
        cards=cards,
    )


def _lesson_from_dict(raw: dict[str, Any]) -> Lesson:
    lesson_id = str(raw["id"])
    modules = [_module_from_dict(item) for item in raw.get("modules", [])]
    _reject_duplicates("module", lesson_id, [module.id for module in modules])
    return Lesson(id=lesson_id, title=str(raw["title"]), description=str(raw.get("description", "")), modules=modules)


def _topic_from_dict(raw: dict[str, Any]) -> Topic:
    topic_id = str(raw["id"])
    lessons = [_lesson_from_dict(item) for item in raw.get("lessons", [])]
    _reject_duplicates("lesson", topic_id, [lesson.id for lesson in lessons])
    return Topic(
        id=topic_id,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        lessons=lessons,
        icon=str(raw.get("icon", "")),
    )


def course_from_dict(raw: dict[str, Any]) -> Course:
    """Build and validate a course from a parsed JSON document."""
    if not isinstance(raw, dict):
        raise ValueError("Course document root must be a JSON object.")
    course_id = str(raw["id"])
    topics = [_topic_from_dict(item) for item in raw.get("topics", [])]
    _reject_duplicates("topic", course_id, [topic.id for topic in topics])
    course = Course(
        id=course_id,
        title=str(raw["title"]),
        description=str(raw.get("description", "")),
        topics=topics,
        total_points=0,
    )
    _validate_unique_card_ids(course)

    # Documents may omit the total; it then equals the sum over modules.
    total_raw = raw.get("total_points")
    total_points = int(total_raw) if total_raw is not None else sum(module.points for _, _, module in course.iter_modules())
    return Course(
        id=course.id,
        title=course.title,
        description=course.description,
        topics=course.topics,
        total_points=total_points,
    )


def load_course() -> Course:
    """Load the bundled course."""
    entry = resources.files(CONTENT_PACKAGE).joinpath(COURSE_FILE)
    raw = json.loads(entry.read_text(encoding="utf-8-sig"))
    course = course_from_dict(raw)
    log.debug("loaded bundled course %s with %d topics", course.id, len(course.topics))
    return course


def load_course_from_path(path: Path | str) -> Course:
    """Load a course document from a JSON file."""
    raw = json.loads(Path(path).read_text(encoding="utf-8-sig"))
    course = course_from_dict(raw)
    log.debug("loaded course %s from %s", course.id, path)
    return course


def _reject_duplicates(kind: str, parent_id: str, ids: list[str]) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if item_id in seen:
            raise ValueError(f"Duplicate {kind} id '{item_id}' in '{parent_id}'.")
        seen.add(item_id)


def _validate_unique_card_ids(course: Course) -> None:
    """Validate that flashcard ids are unique across the course."""
    seen: dict[str, str] = {}
    for _, _, module in course.iter_modules():
        for card in module.cards:
            previous = seen.get(card.id)
            if previous is not None:
                raise ValueError(f"Duplicate card id: {card.id} (in {previous} and {module.id})")
            seen[card.id] = module.id
