"""
Input normalization for loosely typed cards, logs, ratings, states and dates.

Everything crossing the scheduler boundary goes through here so the core
only ever sees canonical enum members and timezone-aware datetimes.
"""

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from cadence.domain.errors import InvalidInputError
from cadence.domain.models import Card, Rating, ReviewLog, State

DateInput = datetime | date | int | float | str
CardInput = Card | Mapping[str, Any]
ReviewLogInput = ReviewLog | Mapping[str, Any]


# ---------- Scalars ----------


def fix_date(value: Any, field: str = "date") -> datetime:
    """
    Coerce a date-like value into an aware datetime.

    Accepts datetimes (naive ones are taken as UTC), dates (midnight UTC),
    epoch seconds and ISO 8601 strings.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidInputError(field, value, "timestamp out of range") from e
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidInputError(field, value, "unparsable date") from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise InvalidInputError(field, value, "unsupported date type")


def _fix_enum(enum_cls, value: Any, field: str):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        token = value.strip()
        if token.isdigit():
            value = int(token)
        else:
            try:
                return enum_cls[token.upper()]
            except KeyError:
                raise InvalidInputError(field, value, f"unknown {field}") from None
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return enum_cls(value)
        except ValueError:
            raise InvalidInputError(field, value, f"unknown {field}") from None
    raise InvalidInputError(field, value, f"unknown {field}")


def fix_state(value: Any) -> State:
    """Coerce a state name ("Review"), ordinal (2) or member into a State."""
    return _fix_enum(State, value, "state")


def fix_rating(value: Any) -> Rating:
    """Coerce a rating name ("Good"), ordinal (3) or member into a Rating."""
    return _fix_enum(Rating, value, "rating")


def _fix_number(value: Any, field: str, kind: type = float):
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(field, value, "expected a number")
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(field, value, "expected a number") from e


def _require(data: Mapping[str, Any], field: str) -> Any:
    if field not in data:
        raise InvalidInputError(field, None, "missing field")
    return data[field]


def _optional_date(value: Any, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    return fix_date(value, field)


# ---------- Records ----------


def normalize_card(value: CardInput) -> Card:
    """
    Produce a canonical Card from a Card or a mapping of card fields.

    Card subclasses keep their type and extra fields; mappings are reduced
    to the Card fields.
    """
    if isinstance(value, Card):
        return dataclasses.replace(
            value,
            due=fix_date(value.due, "due"),
            state=fix_state(value.state),
            last_review=_optional_date(value.last_review, "last_review"),
        )
    if not isinstance(value, Mapping):
        raise InvalidInputError("card", value, "expected a Card or a mapping")

    return Card(
        due=fix_date(_require(value, "due"), "due"),
        stability=_fix_number(_require(value, "stability"), "stability"),
        difficulty=_fix_number(_require(value, "difficulty"), "difficulty"),
        elapsed_days=_fix_number(_require(value, "elapsed_days"), "elapsed_days", int),
        scheduled_days=_fix_number(_require(value, "scheduled_days"), "scheduled_days"),
        reps=_fix_number(_require(value, "reps"), "reps", int),
        lapses=_fix_number(_require(value, "lapses"), "lapses", int),
        state=fix_state(_require(value, "state")),
        last_review=_optional_date(value.get("last_review"), "last_review"),
    )


def normalize_log(value: ReviewLogInput) -> ReviewLog:
    """Produce a canonical ReviewLog from a ReviewLog or a mapping of log fields."""
    if isinstance(value, ReviewLog):
        return dataclasses.replace(
            value,
            rating=fix_rating(value.rating),
            state=fix_state(value.state),
            due=fix_date(value.due, "due"),
            review=fix_date(value.review, "review"),
            last_due=_optional_date(value.last_due, "last_due"),
            last_review=_optional_date(value.last_review, "last_review"),
        )
    if not isinstance(value, Mapping):
        raise InvalidInputError("log", value, "expected a ReviewLog or a mapping")

    def optional_number(field: str) -> float | None:
        raw = value.get(field)
        return None if raw is None else _fix_number(raw, field)

    return ReviewLog(
        rating=fix_rating(_require(value, "rating")),
        state=fix_state(_require(value, "state")),
        due=fix_date(_require(value, "due"), "due"),
        stability=_fix_number(_require(value, "stability"), "stability"),
        difficulty=_fix_number(_require(value, "difficulty"), "difficulty"),
        elapsed_days=_fix_number(_require(value, "elapsed_days"), "elapsed_days", int),
        last_elapsed_days=_fix_number(
            _require(value, "last_elapsed_days"), "last_elapsed_days", int
        ),
        scheduled_days=_fix_number(_require(value, "scheduled_days"), "scheduled_days"),
        review=fix_date(_require(value, "review"), "review"),
        last_due=_optional_date(value.get("last_due"), "last_due"),
        last_review=_optional_date(value.get("last_review"), "last_review"),
        last_stability=optional_number("last_stability"),
        last_difficulty=optional_number("last_difficulty"),
        last_scheduled_days=optional_number("last_scheduled_days"),
    )
