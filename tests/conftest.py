from __future__ import annotations

import sys
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from courseplayer.content_loader import course_from_dict  # noqa: E402
from courseplayer.models import Course  # noqa: E402
from courseplayer.storage import RecordStore  # noqa: E402

COURSE_DOC = {
    "id": "demo",
    "title": "Demo",
    "topics": [
        {
            "id": "t1",
            "title": "Topic one",
            "lessons": [
                {
                    "id": "l1",
                    "title": "Lesson one",
                    "modules": [
                        {"id": "m-info", "type": "info", "title": "Read", "points": 10, "content": "Body"},
                        {
                            "id": "m-quiz",
                            "type": "quiz",
                            "title": "Quiz",
                            "points": 20,
                            "passing_score": 65,
                            "questions": [
                                {
                                    "id": "q1",
                                    "question": "Pick a",
                                    "type": "single",
                                    "options": [
                                        {"id": "a", "text": "A", "is_correct": True},
                                        {"id": "b", "text": "B", "is_correct": False},
                                    ],
                                },
                                {
                                    "id": "q2",
                                    "question": "Pick a and c",
                                    "type": "multiple",
                                    "options": [
                                        {"id": "a", "text": "A", "is_correct": True},
                                        {"id": "b", "text": "B", "is_correct": False},
                                        {"id": "c", "text": "C", "is_correct": True},
                                    ],
                                },
                            ],
                        },
                    ],
                },
                {
                    "id": "l2",
                    "title": "Lesson two",
                    "modules": [
                        {"id": "m-next", "type": "info", "title": "More", "points": 5, "content": "More body"},
                    ],
                },
            ],
        },
        {
            "id": "t2",
            "title": "Topic two",
            "lessons": [
                {
                    "id": "l3",
                    "title": "Cards",
                    "modules": [
                        {
                            "id": "m-cards",
                            "type": "flashcards",
                            "title": "Terms",
                            "points": 15,
                            "cards": [
                                {"id": "c1", "front": "F1", "back": "B1", "emoji": "*"},
                                {"id": "c2", "front": "F2", "back": "B2"},
                            ],
                        },
                    ],
                },
            ],
        },
    ],
}


class FakeClock:
    """Controllable UTC clock for schedule tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def course() -> Course:
    return course_from_dict(COURSE_DOC)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def records() -> Iterator[RecordStore]:
    store = RecordStore(":memory:")
    try:
        yield store
    finally:
        store.close()
