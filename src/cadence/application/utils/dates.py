"""Date arithmetic and formatting helpers."""

import math
from datetime import datetime, timedelta, timezone
from typing import Literal

from cadence.domain.constants import SECONDS_PER_DAY, TIME_UNIT_LABELS, TIME_UNITS

from .normalize import DateInput, fix_date

Unit = Literal["days", "minutes"]


def date_scheduler(now: DateInput, t: float, is_day: bool = False) -> datetime:
    """
    Offset a date by `t` days, or by `t` minutes when `is_day` is False.
    """
    now = fix_date(now)
    if is_day:
        return now + timedelta(days=t)
    return now + timedelta(minutes=t)


def date_diff(now: DateInput, pre: DateInput, unit: Unit) -> int:
    """Whole days or minutes from `pre` to `now`, rounded down."""
    seconds = (fix_date(now) - fix_date(pre)).total_seconds()
    if unit == "days":
        return math.floor(seconds / SECONDS_PER_DAY)
    return math.floor(seconds / 60)


def format_date(date_input: DateInput) -> str:
    """Render as 'YYYY-MM-DD HH:MM:SS' in UTC."""
    return fix_date(date_input).astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def show_diff_message(
    due: DateInput,
    last_review: DateInput,
    unit: bool = False,
    time_units: tuple[str, ...] | list[str] = TIME_UNIT_LABELS,
) -> str:
    """
    Human-readable distance between two dates, e.g. '10' or '10min'.

    Picks the largest unit (second, min, hour, day, month, year) that keeps
    the value at or above one. `time_units` relabels the units; a sequence of
    the wrong length falls back to the defaults.
    """
    if len(time_units) != len(TIME_UNIT_LABELS):
        time_units = TIME_UNIT_LABELS

    diff = (fix_date(due) - fix_date(last_review)).total_seconds()
    i = 0
    while i < len(TIME_UNITS) and diff >= TIME_UNITS[i]:
        diff /= TIME_UNITS[i]
        i += 1

    return f"{math.floor(diff)}{time_units[i] if unit else ''}"
