"""
Scheduling card: the four candidate outcomes of one review moment.

Given the current card and "now", holds one working outcome per grade,
applies the state transition table and learning steps, and assembles the
final (card, log) pairs. Never mutates the input card.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from cadence.application.utils.dates import date_diff, date_scheduler
from cadence.domain.constants import MINUTES_PER_DAY
from cadence.domain.models import GRADES, Card, Rating, RecordLog, RecordLogItem, ReviewLog, State

# Next state for each (current state, grade)
TRANSITIONS: dict[State, dict[Rating, State]] = {
    State.NEW: {
        Rating.AGAIN: State.LEARNING,
        Rating.HARD: State.LEARNING,
        Rating.GOOD: State.LEARNING,
        Rating.EASY: State.REVIEW,
    },
    State.LEARNING: {
        Rating.AGAIN: State.LEARNING,
        Rating.HARD: State.LEARNING,
        Rating.GOOD: State.REVIEW,
        Rating.EASY: State.REVIEW,
    },
    State.RELEARNING: {
        Rating.AGAIN: State.RELEARNING,
        Rating.HARD: State.RELEARNING,
        Rating.GOOD: State.REVIEW,
        Rating.EASY: State.REVIEW,
    },
    State.REVIEW: {
        Rating.AGAIN: State.RELEARNING,
        Rating.HARD: State.REVIEW,
        Rating.GOOD: State.REVIEW,
        Rating.EASY: State.REVIEW,
    },
}

# Short steps in minutes for outcomes that stay out of Review
LEARNING_STEPS: dict[State, dict[Rating, int]] = {
    State.NEW: {Rating.AGAIN: 1, Rating.HARD: 5, Rating.GOOD: 10},
    State.LEARNING: {Rating.AGAIN: 5, Rating.HARD: 10},
    State.RELEARNING: {Rating.AGAIN: 5, Rating.HARD: 10},
    State.REVIEW: {Rating.AGAIN: 5},
}


@dataclass
class _Outcome:
    state: State
    stability: float
    difficulty: float
    due: datetime | None = None
    scheduled_days: float = 0


class SchedulingCard:
    """
    Working set for one review of `card` at `now`.

    Attributes:
        card: The card being reviewed (unchanged).
        now: Review instant.
        last_elapsed_days: The card's own elapsed_days before this review.
        elapsed_days: Whole days since the card's last review (0 if NEW).
    """

    def __init__(self, card: Card, now: datetime):
        self.card = card
        self.now = now
        self.last_elapsed_days = card.elapsed_days
        if card.state == State.NEW or card.last_review is None:
            self.elapsed_days = 0
        else:
            self.elapsed_days = max(date_diff(now, card.last_review, "days"), 0)

        transitions = TRANSITIONS[card.state]
        self._outcomes = {
            grade: _Outcome(
                state=transitions[grade],
                stability=card.stability,
                difficulty=card.difficulty,
            )
            for grade in GRADES
        }

    def next_state(self, grade: Rating) -> State:
        return self._outcomes[grade].state

    def stability(self, grade: Rating) -> float:
        return self._outcomes[grade].stability

    def set_memory_state(self, grade: Rating, stability: float, difficulty: float) -> None:
        outcome = self._outcomes[grade]
        outcome.stability = stability
        outcome.difficulty = difficulty

    def schedule(self, review_intervals: Mapping[Rating, int]) -> "SchedulingCard":
        """
        Set due dates for every grade.

        Args:
            review_intervals: Interval in days for each grade that lands in
                Review. Grades that stay in (re)learning use the fixed step
                for the card's current state.
        """
        steps = LEARNING_STEPS[self.card.state]
        for grade, outcome in self._outcomes.items():
            if outcome.state == State.REVIEW:
                days = review_intervals[grade]
                outcome.scheduled_days = days
                outcome.due = date_scheduler(self.now, days, is_day=True)
            else:
                minutes = steps[grade]
                outcome.scheduled_days = minutes / MINUTES_PER_DAY
                outcome.due = date_scheduler(self.now, minutes)
        return self

    def record_log(self) -> RecordLog:
        """Assemble the (card, log) pair for every grade."""
        card = self.card
        record: dict[Rating, RecordLogItem] = {}

        for grade, outcome in self._outcomes.items():
            if outcome.due is None:
                raise RuntimeError("schedule() must run before record_log()")

            lapse = grade == Rating.AGAIN and card.state == State.REVIEW
            next_card = dataclasses.replace(
                card,
                due=outcome.due,
                stability=outcome.stability,
                difficulty=outcome.difficulty,
                elapsed_days=self.elapsed_days,
                scheduled_days=outcome.scheduled_days,
                reps=card.reps if grade == Rating.AGAIN else card.reps + 1,
                lapses=card.lapses + 1 if lapse else card.lapses,
                state=outcome.state,
                last_review=self.now,
            )
            log = ReviewLog(
                rating=grade,
                state=card.state,
                due=outcome.due,
                stability=outcome.stability,
                difficulty=outcome.difficulty,
                elapsed_days=self.elapsed_days,
                last_elapsed_days=self.last_elapsed_days,
                scheduled_days=outcome.scheduled_days,
                review=self.now,
                last_due=card.due,
                last_review=card.last_review,
                last_stability=card.stability,
                last_difficulty=card.difficulty,
                last_scheduled_days=card.scheduled_days,
            )
            record[grade] = RecordLogItem(card=next_card, log=log)

        return MappingProxyType(record)
