import logging
import random
from dataclasses import dataclass
from datetime import timedelta

import pytest

from cadence.application.scheduler import RescheduleOptions, Scheduler, create_empty_card
from cadence.domain.errors import ConfigurationError, InvalidInputError
from cadence.domain.models import GRADES, Card, Rating, State


@dataclass(frozen=True)
class TaggedCard(Card):
    cid: str = ""


def as_mapping(card: Card) -> dict:
    return {
        "due": card.due.isoformat(),
        "stability": card.stability,
        "difficulty": card.difficulty,
        "elapsed_days": card.elapsed_days,
        "scheduled_days": card.scheduled_days,
        "reps": card.reps,
        "lapses": card.lapses,
        "state": card.state.label,
        "last_review": card.last_review.isoformat() if card.last_review else None,
    }


# --- Construction ---


def test_default_parameters():
    scheduler = Scheduler()
    assert scheduler.parameters.request_retention == 0.95
    assert scheduler.parameters.maximum_interval == 36500
    assert scheduler.parameters.enable_fuzz is True
    assert len(scheduler.parameters.w) == 17


@pytest.mark.parametrize(
    "overrides",
    [
        {"w": [1.0, 2.0, 3.0]},
        {"request_retention": 0},
        {"request_retention": 1.5},
        {"maximum_interval": 0},
    ],
)
def test_invalid_parameters_rejected(overrides):
    with pytest.raises(ConfigurationError):
        Scheduler(overrides)


def test_retention_of_one_is_accepted():
    assert Scheduler({"request_retention": 1.0}).intervals.interval_modifier == 0


# --- create_empty_card ---


def test_create_empty_card(now):
    card = create_empty_card(now)
    assert card.state == State.NEW
    assert card.due == now
    assert (card.reps, card.lapses, card.elapsed_days, card.scheduled_days) == (0, 0, 0, 0)
    assert card.last_review is None


def test_create_empty_card_accepts_strings_and_handler():
    due = create_empty_card("2024-03-01T12:00:00+00:00", after_handler=lambda c: c.due.year)
    assert due == 2024


# --- repeat: new card ---


def test_new_card_forecast(scheduler, now):
    record_log = scheduler.repeat(create_empty_card(now), now)
    assert list(record_log) == list(GRADES)

    again = record_log[Rating.AGAIN]
    assert again.card.state == State.LEARNING
    assert again.card.due == now + timedelta(minutes=1)
    assert again.card.stability == pytest.approx(0.4)
    assert again.card.difficulty == pytest.approx(6.81)
    assert again.card.reps == 0

    good = record_log[Rating.GOOD]
    assert good.card.state == State.LEARNING
    assert good.card.due == now + timedelta(minutes=10)
    assert good.card.stability == pytest.approx(2.4)
    assert good.card.reps == 1

    easy = record_log[Rating.EASY]
    assert easy.card.state == State.REVIEW
    assert easy.card.scheduled_days == 6
    assert easy.card.due == now + timedelta(days=6)
    assert easy.card.difficulty == pytest.approx(3.99)

    for item in record_log.values():
        assert item.log.state == State.NEW
        assert item.log.review == now
        assert item.card.last_review == now
        assert item.card.lapses == 0


def test_new_card_easy_with_default_retention(now):
    scheduler = Scheduler({"enable_fuzz": False})
    easy = scheduler.repeat(create_empty_card(now), now)[Rating.EASY]
    assert easy.card.scheduled_days == 3


# --- repeat: review card ---


def test_review_card_lapse(scheduler, review_card, now):
    again = scheduler.repeat(review_card, now)[Rating.AGAIN]
    assert again.card.state == State.RELEARNING
    assert again.card.lapses == 1
    assert again.card.reps == 5
    assert again.card.stability == pytest.approx(2.87, abs=0.01)
    assert again.card.difficulty == pytest.approx(6.70)
    assert again.card.due == now + timedelta(minutes=5)
    assert again.log.rating == Rating.AGAIN
    assert again.log.state == State.REVIEW
    assert again.log.elapsed_days == 10
    assert again.log.last_elapsed_days == 8


def test_review_card_intervals(scheduler, review_card, now):
    record_log = scheduler.repeat(review_card, now)
    hard, good, easy = (record_log[g].card for g in (Rating.HARD, Rating.GOOD, Rating.EASY))
    assert (hard.scheduled_days, good.scheduled_days, easy.scheduled_days) == (16, 29, 60)
    assert hard.state == good.state == easy.state == State.REVIEW
    assert good.reps == 6
    assert good.elapsed_days == 10
    assert good.due == now + timedelta(days=29)


def test_review_intervals_strictly_ordered_with_fuzz(review_card, now):
    scheduler = Scheduler({"enable_fuzz": True})
    for days in range(0, 60, 3):
        record_log = scheduler.repeat(review_card, now + timedelta(days=days))
        hard = record_log[Rating.HARD].card.scheduled_days
        good = record_log[Rating.GOOD].card.scheduled_days
        easy = record_log[Rating.EASY].card.scheduled_days
        assert hard < good < easy


def test_learning_card_graduates(scheduler, now):
    card = Card(
        due=now,
        stability=2.4,
        difficulty=4.93,
        elapsed_days=0,
        scheduled_days=10 / 1440,
        reps=1,
        lapses=0,
        state=State.LEARNING,
        last_review=now - timedelta(minutes=10),
    )
    record_log = scheduler.repeat(card, now)
    assert record_log[Rating.HARD].card.state == State.LEARNING
    assert record_log[Rating.GOOD].card.scheduled_days == 2
    assert record_log[Rating.EASY].card.scheduled_days == 3


def test_repeat_is_deterministic(review_card, now):
    scheduler = Scheduler({"enable_fuzz": True})
    assert dict(scheduler.repeat(review_card, now)) == dict(scheduler.repeat(review_card, now))


def test_injected_rng_drives_fuzz(review_card, now):
    first = Scheduler({"enable_fuzz": True}, rng=random.Random(42)).repeat(review_card, now)
    second = Scheduler({"enable_fuzz": True}, rng=random.Random(42)).repeat(review_card, now)
    assert dict(first) == dict(second)


def test_repeat_accepts_mappings(scheduler, review_card, now):
    raw = as_mapping(review_card)
    raw["last_review"] = int(review_card.last_review.timestamp())
    raw["state"] = "review"
    from_mapping = scheduler.repeat(raw, now.isoformat())
    assert dict(from_mapping) == dict(scheduler.repeat(review_card, now))


def test_repeat_rejects_bad_state(scheduler, review_card, now):
    raw = as_mapping(review_card)
    raw["state"] = "Mastered"
    with pytest.raises(InvalidInputError) as excinfo:
        scheduler.repeat(raw, now)
    assert excinfo.value.field == "state"


def test_repeat_after_handler(scheduler, now):
    labels = scheduler.repeat(
        create_empty_card(now),
        now,
        after_handler=lambda rl: {g.label: item.card.state.label for g, item in rl.items()},
    )
    assert labels == {
        "Again": "Learning",
        "Hard": "Learning",
        "Good": "Learning",
        "Easy": "Review",
    }


# --- rollback ---


@pytest.mark.parametrize("grade", GRADES)
def test_rollback_restores_review_card(scheduler, review_card, now, grade):
    item = scheduler.repeat(review_card, now)[grade]
    assert scheduler.rollback(item.card, item.log) == review_card


@pytest.mark.parametrize("grade", GRADES)
def test_rollback_restores_new_card(scheduler, now, grade):
    card = create_empty_card(now)
    item = scheduler.repeat(card, now)[grade]
    assert scheduler.rollback(item.card, item.log) == card


def test_rollback_without_snapshot(scheduler, review_card, now):
    item = scheduler.repeat(review_card, now)[Rating.GOOD]
    log = {
        "rating": "Good",
        "state": "Review",
        "due": item.log.due.isoformat(),
        "stability": item.log.stability,
        "difficulty": item.log.difficulty,
        "elapsed_days": item.log.elapsed_days,
        "last_elapsed_days": item.log.last_elapsed_days,
        "scheduled_days": item.log.scheduled_days,
        "review": item.log.review.isoformat(),
    }
    prev = scheduler.rollback(item.card, log)
    assert prev.state == State.REVIEW
    assert prev.reps == 5
    assert prev.elapsed_days == 8
    assert prev.due == now
    assert prev.last_review == review_card.last_review


def test_rollback_of_manual_log_raises(scheduler, review_card, now):
    item = scheduler.forget(review_card, now)
    with pytest.raises(InvalidInputError):
        scheduler.rollback(item.card, item.log)


# --- forget ---


def test_forget_review_card(scheduler, review_card, now):
    item = scheduler.forget(review_card, now)
    assert item.card.state == State.RELEARNING
    assert item.card.due == now
    assert item.card.stability == pytest.approx(0.4)
    assert item.card.difficulty == pytest.approx(6.81)
    assert item.card.reps == 5
    assert item.card.last_review == now
    assert item.log.rating == Rating.MANUAL
    assert item.log.state == State.REVIEW
    assert item.log.elapsed_days == 10


def test_forget_with_reset_count(scheduler, now):
    card = Card(
        due=now,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=8,
        scheduled_days=10,
        reps=5,
        lapses=2,
        state=State.REVIEW,
        last_review=now - timedelta(days=10),
    )
    item = scheduler.forget(card, now, reset_count=True)
    assert item.card.state == State.NEW
    assert (item.card.reps, item.card.lapses) == (0, 0)
    assert item.card.stability == 0
    assert item.card.last_review is None


def test_forget_new_card_stays_new(scheduler, now):
    item = scheduler.forget(create_empty_card(now), now + timedelta(days=1))
    assert item.card.state == State.NEW
    assert item.log.elapsed_days == 0


def test_forgotten_card_can_be_reviewed(scheduler, review_card, now):
    forgotten = scheduler.forget(review_card, now).card
    later = now + timedelta(minutes=10)
    good = scheduler.repeat(forgotten, later)[Rating.GOOD]
    assert good.card.state == State.REVIEW
    assert good.card.scheduled_days >= 1


# --- reschedule ---


def test_reschedule_updates_review_cards(review_card, now):
    scheduler = Scheduler({"enable_fuzz": False, "request_retention": 0.85})
    new = as_mapping(create_empty_card(now))
    reviewed = {**as_mapping(review_card), "cid": 1234}

    result = scheduler.reschedule([new, reviewed], RescheduleOptions(enable_fuzz=False))
    assert len(result) == 2
    assert result[0] is new
    assert result[1]["cid"] == 1234
    assert result[1]["scheduled_days"] == 16
    assert result[1]["due"] == review_card.last_review + timedelta(days=16)


def test_reschedule_keeps_unchanged_cards(scheduler, review_card):
    result = scheduler.reschedule([review_card], RescheduleOptions(enable_fuzz=False))
    assert result[0] is review_card


def test_reschedule_preserves_card_subclass(review_card):
    scheduler = Scheduler({"enable_fuzz": False, "request_retention": 0.85})
    tagged = TaggedCard(**vars(review_card), cid="abc")
    (result,) = scheduler.reschedule([tagged], RescheduleOptions(enable_fuzz=False))
    assert isinstance(result, TaggedCard)
    assert result.cid == "abc"
    assert result.scheduled_days == 16


def test_reschedule_date_handler_and_after_handler(review_card):
    scheduler = Scheduler({"enable_fuzz": False, "request_retention": 0.85})
    options = RescheduleOptions(enable_fuzz=False, date_handler=lambda d: d.isoformat())
    result = scheduler.reschedule(
        [as_mapping(review_card)], options, after_handler=lambda cards: cards[0]["due"]
    )
    assert result == (review_card.last_review + timedelta(days=16)).isoformat()


def test_reschedule_logs_retrievability(review_card, caplog):
    scheduler = Scheduler({"enable_fuzz": False, "request_retention": 0.85})
    with caplog.at_level(logging.DEBUG, logger="cadence.application.scheduler"):
        (result,) = scheduler.reschedule([review_card], RescheduleOptions(enable_fuzz=False))
    # R(8, 10) = (1 + 19/81 * 0.8) ^ -0.5
    assert "R=0.9176" in caplog.text
    assert result.stability == review_card.stability


# --- maximum_interval cap ---


def test_review_intervals_respect_maximum_interval(now):
    scheduler = Scheduler({"enable_fuzz": False, "maximum_interval": 100})
    card = Card(
        due=now,
        stability=500.0,
        difficulty=5.0,
        elapsed_days=100,
        scheduled_days=100,
        reps=5,
        lapses=0,
        state=State.REVIEW,
        last_review=now - timedelta(days=100),
    )
    record_log = scheduler.repeat(card, now)
    days = {g.label: record_log[g].card.scheduled_days for g in GRADES[1:]}
    assert days == {"Hard": 100, "Good": 100, "Easy": 100}
    assert record_log[Rating.EASY].card.due == now + timedelta(days=100)


def test_learning_intervals_respect_maximum_interval(now):
    scheduler = Scheduler({"enable_fuzz": False, "maximum_interval": 1})
    record_log = scheduler.repeat(create_empty_card(now), now)
    assert record_log[Rating.EASY].card.scheduled_days == 1

    learning = record_log[Rating.GOOD].card
    graduated = scheduler.repeat(learning, now + timedelta(minutes=10))
    assert graduated[Rating.GOOD].card.scheduled_days == 1
    assert graduated[Rating.EASY].card.scheduled_days == 1


# --- get_retrievability ---


def test_get_retrievability(scheduler, review_card, now):
    assert scheduler.get_retrievability(review_card, now) == "90.00%"
    assert scheduler.get_retrievability(review_card, review_card.last_review) == "100.00%"


def test_get_retrievability_of_new_card(scheduler, now):
    assert scheduler.get_retrievability(create_empty_card(now), now) is None
