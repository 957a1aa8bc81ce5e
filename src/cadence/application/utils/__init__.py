from .dates import date_diff, date_scheduler, format_date, show_diff_message
from .normalize import fix_date, fix_rating, fix_state, normalize_card, normalize_log

__all__ = [
    "date_diff",
    "date_scheduler",
    "format_date",
    "show_diff_message",
    "fix_date",
    "fix_rating",
    "fix_state",
    "normalize_card",
    "normalize_log",
]
