"""Saved flashcards and their two-tier spaced-repetition schedule.

Model:
- a saved card starts short-term and unscheduled, so it is due immediately.
- ``hard`` schedules the next recall 5 minutes out, ``easy`` 60 minutes out.
- two consecutive ``easy`` recalls promote the card to long-term memory, which
  takes it out of the recall queue until the learner demotes it.
- ``dont-remember`` clears the schedule and the easy streak.

This store is independent of course progress: saving or recalling a card never
affects unlocks or points.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import AwareDatetime, BaseModel, Field, ValidationError

from .models import Flashcard
from .progress import Clock, utcnow
from .storage import RecordStore

FLASHCARD_MEMORY_KEY = "flashcard_memory"
HARD_INTERVAL = timedelta(minutes=5)
EASY_INTERVAL = timedelta(minutes=60)
EASY_STREAK_FOR_LONG_TERM = 2

log = logging.getLogger(__name__)


class MemoryTier(StrEnum):
    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"


class RecallDifficulty(StrEnum):
    DONT_REMEMBER = "dont-remember"
    HARD = "hard"
    EASY = "easy"


class SavedFlashcard(BaseModel):
    """A learner-saved copy of a course flashcard."""

    id: str
    topic_id: str
    lesson_id: str
    module_id: str
    front: str
    back: str
    emoji: str = ""
    tier: MemoryTier = MemoryTier.SHORT_TERM
    saved_at: AwareDatetime
    last_recalled_at: AwareDatetime | None = None
    next_recall_at: AwareDatetime | None = None
    easy_count: int = Field(default=0, ge=0)
    recall_count: int = Field(default=0, ge=0)

    def is_due(self, now: datetime) -> bool:
        if self.tier is not MemoryTier.SHORT_TERM:
            return False
        return self.next_recall_at is None or self.next_recall_at <= now


class FlashcardMemoryRecord(BaseModel):
    """Persisted shape of the whole flashcard memory."""

    flashcards: dict[str, SavedFlashcard] = Field(default_factory=dict)


@dataclass(frozen=True)
class FlashcardStats:
    """Counts over all saved cards."""

    total: int
    short_term: int
    long_term: int
    due_now: int


class FlashcardMemory:
    """Store of saved flashcards and their recall schedule."""

    def __init__(self, records: RecordStore, clock: Clock = utcnow) -> None:
        self._records = records
        self._clock = clock

    def _load(self) -> FlashcardMemoryRecord:
        payload = self._records.get(FLASHCARD_MEMORY_KEY)
        if payload is None:
            return FlashcardMemoryRecord()
        try:
            return FlashcardMemoryRecord.model_validate_json(payload)
        except ValidationError as exc:
            log.warning("discarding malformed flashcard memory: %s errors", exc.error_count())
            return FlashcardMemoryRecord()

    def _save(self, memory: FlashcardMemoryRecord) -> None:
        self._records.put(FLASHCARD_MEMORY_KEY, memory.model_dump_json())

    def save(self, card: Flashcard, topic_id: str, lesson_id: str, module_id: str) -> bool:
        """Save a course card as short-term; return False if it was already saved."""
        memory = self._load()
        if card.id in memory.flashcards:
            return False
        memory.flashcards[card.id] = SavedFlashcard(
            id=card.id,
            topic_id=topic_id,
            lesson_id=lesson_id,
            module_id=module_id,
            front=card.front,
            back=card.back,
            emoji=card.emoji,
            saved_at=self._clock(),
        )
        self._save(memory)
        log.info("saved flashcard %s", card.id)
        return True

    def is_saved(self, card_id: str) -> bool:
        return card_id in self._load().flashcards

    def get(self, card_id: str) -> SavedFlashcard | None:
        return self._load().flashcards.get(card_id)

    def list_all(self) -> list[SavedFlashcard]:
        """Return saved cards in save order."""
        return sorted(self._load().flashcards.values(), key=lambda item: item.saved_at)

    def list_by_tier(self, tier: MemoryTier) -> list[SavedFlashcard]:
        return [card for card in self.list_all() if card.tier is tier]

    def due_queue(self) -> list[SavedFlashcard]:
        """Return short-term cards due now, earliest first.

        Cards with no schedule sort by their save time.
        """
        now = self._clock()
        due = [card for card in self._load().flashcards.values() if card.is_due(now)]
        due.sort(key=lambda card: card.next_recall_at or card.saved_at)
        return due

    def record_recall(self, card_id: str, difficulty: RecallDifficulty) -> SavedFlashcard | None:
        """Apply one recall outcome and return the updated card, or None if not saved."""
        memory = self._load()
        card = memory.flashcards.get(card_id)
        if card is None:
            return None

        difficulty = RecallDifficulty(difficulty)
        now = self._clock()
        card.last_recalled_at = now
        card.recall_count += 1

        if difficulty is RecallDifficulty.DONT_REMEMBER:
            card.next_recall_at = None
            card.easy_count = 0
            card.tier = MemoryTier.SHORT_TERM
        elif difficulty is RecallDifficulty.HARD:
            card.next_recall_at = now + HARD_INTERVAL
            card.easy_count = 0
        else:
            card.next_recall_at = now + EASY_INTERVAL
            card.easy_count += 1
            if card.easy_count >= EASY_STREAK_FOR_LONG_TERM:
                card.tier = MemoryTier.LONG_TERM
                card.next_recall_at = None

        self._save(memory)
        log.debug("recall %s: %s -> %s", card_id, difficulty, card.tier)
        return card

    def demote(self, card_id: str) -> SavedFlashcard | None:
        """Move a card back to short-term memory with a cleared schedule."""
        memory = self._load()
        card = memory.flashcards.get(card_id)
        if card is None:
            return None
        card.tier = MemoryTier.SHORT_TERM
        card.next_recall_at = None
        card.easy_count = 0
        self._save(memory)
        return card

    def remove(self, card_id: str) -> bool:
        """Delete a saved card permanently."""
        memory = self._load()
        if memory.flashcards.pop(card_id, None) is None:
            return False
        self._save(memory)
        log.info("removed flashcard %s", card_id)
        return True

    def stats(self) -> FlashcardStats:
        """Count cards by tier and due state with one full scan."""
        now = self._clock()
        cards = list(self._load().flashcards.values())
        return FlashcardStats(
            total=len(cards),
            short_term=len([card for card in cards if card.tier is MemoryTier.SHORT_TERM]),
            long_term=len([card for card in cards if card.tier is MemoryTier.LONG_TERM]),
            due_now=len([card for card in cards if card.is_due(now)]),
        )
