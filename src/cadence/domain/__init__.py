# Domain Package
from .errors import ConfigurationError, InvalidInputError, SchedulerError
from .models import GRADES, Card, Rating, RecordLog, RecordLogItem, ReviewLog, State

__all__ = [
    "Card",
    "ReviewLog",
    "RecordLogItem",
    "RecordLog",
    "Rating",
    "State",
    "GRADES",
    "SchedulerError",
    "ConfigurationError",
    "InvalidInputError",
]
