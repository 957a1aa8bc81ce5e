# Application Package
from .config import SchedulerParameters, generate_parameters
from .intervals import IntervalCalculator, get_fuzz_range
from .memory_model import MemoryModel
from .scheduler import RescheduleOptions, Scheduler, create_empty_card
from .scheduling_card import SchedulingCard

__all__ = [
    "Scheduler",
    "RescheduleOptions",
    "create_empty_card",
    "SchedulingCard",
    "MemoryModel",
    "IntervalCalculator",
    "get_fuzz_range",
    "SchedulerParameters",
    "generate_parameters",
]
