"""
Cadence: FSRS spaced-repetition scheduling engine.

Quick start:
    from cadence import Rating, Scheduler, create_empty_card

    scheduler = Scheduler({"enable_fuzz": False})
    card = create_empty_card()
    outcome = scheduler.repeat(card)[Rating.GOOD]
"""

from cadence.application import (
    RescheduleOptions,
    Scheduler,
    SchedulerParameters,
    create_empty_card,
    generate_parameters,
    get_fuzz_range,
)
from cadence.application.utils import (
    date_diff,
    date_scheduler,
    fix_date,
    fix_rating,
    fix_state,
    format_date,
    show_diff_message,
)
from cadence.consts import FSRS_VERSION, VERSION
from cadence.domain import (
    GRADES,
    Card,
    ConfigurationError,
    InvalidInputError,
    Rating,
    RecordLog,
    RecordLogItem,
    ReviewLog,
    SchedulerError,
    State,
)
from cadence.domain.constants import DECAY, DEFAULT_W, FACTOR

__version__ = VERSION

__all__ = [
    "Scheduler",
    "RescheduleOptions",
    "SchedulerParameters",
    "create_empty_card",
    "generate_parameters",
    "get_fuzz_range",
    "Card",
    "ReviewLog",
    "RecordLog",
    "RecordLogItem",
    "Rating",
    "State",
    "GRADES",
    "SchedulerError",
    "ConfigurationError",
    "InvalidInputError",
    "date_diff",
    "date_scheduler",
    "fix_date",
    "fix_rating",
    "fix_state",
    "format_date",
    "show_diff_message",
    "DECAY",
    "FACTOR",
    "DEFAULT_W",
    "FSRS_VERSION",
    "VERSION",
]
