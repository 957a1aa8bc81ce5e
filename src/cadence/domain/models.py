"""
Domain models for FSRS scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum


class State(IntEnum):
    """Learning phase of a card."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Rating(IntEnum):
    """Learner's self-assessment of recall. MANUAL only tags forced transitions."""

    MANUAL = 0
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


# Ratings that drive the memory model, in ascending order.
GRADES = (Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY)


@dataclass(frozen=True)
class Card:
    """
    Scheduling state of a single learnable item.

    Attributes:
        due: When the card is next due.
        stability: Days until recall probability drops to 90% (0 while NEW).
        difficulty: Card difficulty on the 1-10 scale (0 while NEW).
        elapsed_days: Days between the previous two reviews.
        scheduled_days: Interval that produced `due`; fractional for learning steps.
        reps: Number of non-Again reviews.
        lapses: Number of Again ratings given in Review state.
        state: Current learning phase.
        last_review: Most recent review, None if never reviewed.
    """

    due: datetime
    stability: float
    difficulty: float
    elapsed_days: int
    scheduled_days: float
    reps: int
    lapses: int
    state: State
    last_review: datetime | None = None


@dataclass(frozen=True)
class ReviewLog:
    """
    Immutable record of one scheduling event.

    `state` is the card's state before the event; `due`, `stability`,
    `difficulty` and `scheduled_days` describe the card after it. The
    `last_*` snapshot holds the pre-event values and lets rollback restore
    the card exactly. It is optional so hand-built logs remain accepted.
    """

    rating: Rating
    state: State
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: int
    last_elapsed_days: int
    scheduled_days: float
    review: datetime

    # Pre-event snapshot
    last_due: datetime | None = None
    last_review: datetime | None = None
    last_stability: float | None = None
    last_difficulty: float | None = None
    last_scheduled_days: float | None = None


@dataclass(frozen=True)
class RecordLogItem:
    """One possible outcome of reviewing a card now."""

    card: Card
    log: ReviewLog


# Complete branching forecast for one review moment, keyed by grade.
RecordLog = Mapping[Rating, RecordLogItem]
