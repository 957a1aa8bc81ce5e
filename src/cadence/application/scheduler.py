"""
Scheduler: application layer facade.

Normalizes loosely typed inputs, drives the memory model and interval
calculator through a SchedulingCard, and returns fresh value objects.
Every operation accepts an optional `after_handler` that reshapes the
result just before it is returned.
"""

import dataclasses
import logging
import math
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

from cadence.application.config import SchedulerParameters, generate_parameters
from cadence.application.intervals import IntervalCalculator
from cadence.application.memory_model import MemoryModel
from cadence.application.scheduling_card import SchedulingCard
from cadence.application.utils.dates import date_diff, date_scheduler
from cadence.application.utils.normalize import (
    CardInput,
    DateInput,
    ReviewLogInput,
    fix_date,
    normalize_card,
    normalize_log,
)
from cadence.domain.errors import InvalidInputError
from cadence.domain.models import (
    Card,
    Rating,
    RecordLog,
    RecordLogItem,
    ReviewLog,
    State,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")


@dataclass(frozen=True)
class RescheduleOptions:
    """
    Options for batch rescheduling.

    Attributes:
        enable_fuzz: Fuzz the recomputed intervals.
        date_handler: Converts each new due datetime before it is stored,
            for collections that keep dates in another representation.
    """

    enable_fuzz: bool = True
    date_handler: Callable[[datetime], Any] | None = None


def create_empty_card(
    now: DateInput | None = None,
    after_handler: Callable[[Card], R] | None = None,
) -> Card | R:
    """Create a card that has never been reviewed, due at `now`."""
    card = Card(
        due=_resolve_now(now),
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0,
        scheduled_days=0,
        reps=0,
        lapses=0,
        state=State.NEW,
        last_review=None,
    )
    return after_handler(card) if after_handler else card


def _resolve_now(now: DateInput | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return fix_date(now, "now")


class Scheduler:
    """
    FSRS scheduler facade.

    Stateless between calls: parameters are fixed at construction and no
    call observes another call's inputs, unless a shared `rng` is injected.
    """

    def __init__(
        self,
        parameters: SchedulerParameters | Mapping[str, Any] | None = None,
        rng: random.Random | None = None,
    ):
        """
        Args:
            parameters: Validated parameters, a mapping of overrides, or None
                for defaults (plus environment and config file).
            rng: Optional shared random source for fuzz. When omitted, each
                call seeds its own generator from the card and review time,
                so identical inputs always fuzz identically.

        Raises:
            ConfigurationError: If the parameters are invalid.
        """
        if not isinstance(parameters, SchedulerParameters):
            parameters = generate_parameters(**dict(parameters or {}))
        self.parameters = parameters
        self.model = MemoryModel(parameters.w)
        self.intervals = IntervalCalculator(parameters)
        self._rng = rng

    def _fuzz_rng(self, card: Card, now: datetime) -> random.Random:
        if self._rng is not None:
            return self._rng
        seed = f"{now.timestamp()}_{card.reps}_{card.difficulty * card.stability}"
        return random.Random(seed)

    # ---------- Forward scheduling ----------

    def repeat(
        self,
        card: CardInput,
        now: DateInput | None = None,
        after_handler: Callable[[RecordLog], R] | None = None,
    ) -> RecordLog | R:
        """
        Forecast the outcome of every grade for a review at `now`.

        Args:
            card: Card (or mapping of card fields) to review.
            now: Review instant; defaults to the current time.
            after_handler: Optional transform applied to the result.

        Returns:
            Read-only mapping of each grade to its (card, log) outcome.
        """
        card = normalize_card(card)
        now = _resolve_now(now)
        s = SchedulingCard(card, now)
        rng = self._fuzz_rng(card, now)
        elapsed = s.elapsed_days

        def ivl(grade: Rating) -> int:
            return self.intervals.next_interval(s.stability(grade), elapsed, rng=rng)

        if card.state == State.NEW:
            self.model.init_ds(s)
            intervals = {Rating.EASY: ivl(Rating.EASY)}
        else:
            retrievability = self.model.forgetting_curve(elapsed, card.stability)
            self.model.next_ds(s, card.difficulty, card.stability, retrievability)

            if card.state == State.REVIEW:
                hard_interval = ivl(Rating.HARD)
                good_interval = ivl(Rating.GOOD)
                hard_interval = min(hard_interval, good_interval)
                good_interval = max(good_interval, hard_interval + 1)
                intervals = {Rating.HARD: hard_interval, Rating.GOOD: good_interval}
            else:
                good_interval = ivl(Rating.GOOD)
                intervals = {Rating.GOOD: good_interval}
            intervals[Rating.EASY] = max(ivl(Rating.EASY), good_interval + 1)

            # Ordering may push past the cap; ties at the cap are allowed
            cap = self.parameters.maximum_interval
            intervals = {g: min(days, cap) for g, days in intervals.items()}

        record_log = s.schedule(intervals).record_log()
        logger.debug(
            f"Scheduled {card.state.label} card at {now.isoformat()}: "
            + ", ".join(f"{g.label}={item.card.scheduled_days:g}d" for g, item in record_log.items())
        )
        return after_handler(record_log) if after_handler else record_log

    # ---------- Undo ----------

    def rollback(
        self,
        card: CardInput,
        log: ReviewLogInput,
        after_handler: Callable[[Card], R] | None = None,
    ) -> Card | R:
        """
        Restore the card as it was immediately before the event in `log`.

        Uses the log's pre-event snapshot when present. Logs without one get
        a structural undo only: state, counters and elapsed days are exact,
        due and last_review are reconstructed from the review time, and
        stability/difficulty stay at the logged values.

        Raises:
            InvalidInputError: If the log records a manual (forget) event.
        """
        card = normalize_card(card)
        log = normalize_log(log)
        if log.rating == Rating.MANUAL:
            raise InvalidInputError("rating", log.rating.label, "cannot roll back a manual rating")

        if log.state == State.NEW:
            last_review = None
        elif log.last_review is not None:
            last_review = log.last_review
        else:
            last_review = date_scheduler(log.review, -log.elapsed_days, is_day=True)

        reps = card.reps if log.rating == Rating.AGAIN else card.reps - 1
        lapses = card.lapses
        if log.rating == Rating.AGAIN and log.state == State.REVIEW:
            lapses -= 1

        prev_card = dataclasses.replace(
            card,
            due=log.last_due or log.review,
            stability=_first_set(log.last_stability, log.stability),
            difficulty=_first_set(log.last_difficulty, log.difficulty),
            elapsed_days=log.last_elapsed_days,
            scheduled_days=_first_set(log.last_scheduled_days, 0),
            reps=max(0, reps),
            lapses=max(0, lapses),
            state=log.state,
            last_review=last_review,
        )
        logger.debug(f"Rolled back {log.rating.label} review from {log.review.isoformat()}")
        return after_handler(prev_card) if after_handler else prev_card

    # ---------- Forced forget ----------

    def forget(
        self,
        card: CardInput,
        now: DateInput | None = None,
        reset_count: bool = False,
        after_handler: Callable[[RecordLogItem], R] | None = None,
    ) -> RecordLogItem | R:
        """
        Treat the card as forgotten at `now`.

        A card that was never reviewed, or any card when `reset_count` is
        set, goes back to New with empty memory state and zeroed counters.
        Otherwise it enters Relearning with the initial memory state of an
        Again rating and keeps its counters.
        """
        card = normalize_card(card)
        now = _resolve_now(now)

        if card.state == State.NEW or card.last_review is None:
            elapsed_days = 0
        else:
            elapsed_days = max(date_diff(now, card.last_review, "days"), 0)

        if reset_count or card.state == State.NEW:
            forgotten = dataclasses.replace(
                card,
                due=now,
                stability=0.0,
                difficulty=0.0,
                elapsed_days=0,
                scheduled_days=0,
                reps=0,
                lapses=0,
                state=State.NEW,
                last_review=None,
            )
        else:
            forgotten = dataclasses.replace(
                card,
                due=now,
                stability=self.model.init_stability(Rating.AGAIN),
                difficulty=self.model.init_difficulty(Rating.AGAIN),
                elapsed_days=0,
                scheduled_days=0,
                state=State.RELEARNING,
                last_review=now,
            )

        log = ReviewLog(
            rating=Rating.MANUAL,
            state=card.state,
            due=now,
            stability=forgotten.stability,
            difficulty=forgotten.difficulty,
            elapsed_days=elapsed_days,
            last_elapsed_days=card.elapsed_days,
            scheduled_days=0,
            review=now,
            last_due=card.due,
            last_review=card.last_review,
            last_stability=card.stability,
            last_difficulty=card.difficulty,
            last_scheduled_days=card.scheduled_days,
        )
        item = RecordLogItem(card=forgotten, log=log)
        logger.debug(f"Forgot {card.state.label} card -> {forgotten.state.label}")
        return after_handler(item) if after_handler else item

    # ---------- Batch ----------

    def reschedule(
        self,
        cards: Sequence[T],
        options: RescheduleOptions | None = None,
        after_handler: Callable[[list[T]], R] | None = None,
    ) -> list[T] | R:
        """
        Recompute due dates for reviewed cards, e.g. after re-tuning `w`.

        Only Review cards with a last review are touched; their `due` and
        `scheduled_days` are updated, everything else is kept. Untouched
        cards are returned as the same objects, in the same order.
        Mappings keep their extra keys and Card subclasses keep their type.

        Each rescheduled card's retrievability at its last elapsed interval
        is computed for the debug log only; it does not affect the result.
        """
        options = options or RescheduleOptions()
        result: list[T] = []
        changed = 0

        for raw in cards:
            card = normalize_card(raw)
            if card.state != State.REVIEW or card.last_review is None:
                result.append(raw)
                continue

            retrievability = self.model.forgetting_curve(card.elapsed_days, card.stability)
            next_ivl = self.intervals.next_interval(
                round(card.stability, 2),
                card.elapsed_days,
                enable_fuzz=options.enable_fuzz,
                rng=self._fuzz_rng(card, card.last_review),
            )
            if next_ivl == math.floor(card.scheduled_days):
                result.append(raw)
                continue

            new_due: Any = date_scheduler(card.last_review, next_ivl, is_day=True)
            if options.date_handler:
                new_due = options.date_handler(new_due)
            logger.debug(
                f"Rescheduled card (R={retrievability:.4f}): "
                f"{card.scheduled_days:g}d -> {next_ivl}d"
            )
            result.append(_with_schedule(raw, new_due, next_ivl))
            changed += 1

        logger.debug(f"Rescheduled {changed}/{len(result)} cards")
        return after_handler(result) if after_handler else result

    # ---------- Queries ----------

    def get_retrievability(self, card: CardInput, now: DateInput | None = None) -> str | None:
        """
        Current recall probability as a percentage string, e.g. '90.00%'.

        Returns None for cards that have never been reviewed.
        """
        card = normalize_card(card)
        if card.state == State.NEW or card.last_review is None:
            return None
        now = _resolve_now(now)
        t = max(date_diff(now, card.last_review, "days"), 0)
        r = self.model.forgetting_curve(t, round(card.stability, 2))
        return f"{r * 100:.2f}%"


def _first_set(value: float | None, fallback: float) -> float:
    return fallback if value is None else value


def _with_schedule(raw: Any, due: Any, scheduled_days: int) -> Any:
    if isinstance(raw, Mapping):
        return {**raw, "due": due, "scheduled_days": scheduled_days}
    return dataclasses.replace(raw, due=due, scheduled_days=scheduled_days)
