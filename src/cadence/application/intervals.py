"""
Interval calculation and fuzzing.

Turns a stability into a whole-day interval for the configured retention
target, then optionally spreads it over a small band so cards reviewed
together do not keep coming due on the same day.
"""

import logging
import math
import random

from cadence.application.config import SchedulerParameters
from cadence.domain.constants import FUZZ_MIN_INTERVAL, FUZZ_RANGES

logger = logging.getLogger(__name__)


def get_fuzz_range(interval: float, elapsed_days: int, maximum_interval: int) -> tuple[int, int]:
    """
    Compute the [min_ivl, max_ivl] band an interval may be fuzzed into.

    The band widens with the interval: 15% of the part between 2.5 and 7 days,
    10% between 7 and 20 days, 5% beyond. When the interval is longer than
    the elapsed time, the band never reaches back to `elapsed_days`.

    Returns:
        (min_ivl, max_ivl), both inclusive.
    """
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    interval = min(interval, maximum_interval)
    min_ivl = max(2, round(interval - delta))
    max_ivl = min(round(interval + delta), maximum_interval)
    if interval > elapsed_days:
        min_ivl = max(min_ivl, elapsed_days + 1)
    min_ivl = min(min_ivl, max_ivl)
    return min_ivl, max_ivl


class IntervalCalculator:
    """
    Converts stability into scheduled intervals.

    Holds no mutable state; randomness comes from the generator passed to
    each call.
    """

    def __init__(self, params: SchedulerParameters):
        self.request_retention = params.request_retention
        self.maximum_interval = params.maximum_interval
        self.enable_fuzz = params.enable_fuzz
        self.interval_modifier = 9 * (1 / params.request_retention - 1)

    def next_interval(
        self,
        s: float,
        elapsed_days: int,
        enable_fuzz: bool | None = None,
        rng: random.Random | None = None,
    ) -> int:
        """
        Interval in days at which recall probability falls to the retention target.

        Args:
            s: Stability in days.
            elapsed_days: Days since the previous review.
            enable_fuzz: Override the configured fuzz toggle.
            rng: Random source for the fuzz draw.
        """
        new_interval = min(max(1, round(s * self.interval_modifier)), self.maximum_interval)
        return self.apply_fuzz(new_interval, elapsed_days, enable_fuzz, rng)

    def apply_fuzz(
        self,
        ivl: float,
        elapsed_days: int,
        enable_fuzz: bool | None = None,
        rng: random.Random | None = None,
    ) -> int:
        """
        Draw a fuzzed interval uniformly from the fuzz band.

        Intervals shorter than 2.5 days, or any interval while fuzz is
        disabled, are only rounded.
        """
        if enable_fuzz is None:
            enable_fuzz = self.enable_fuzz
        if not enable_fuzz or ivl < FUZZ_MIN_INTERVAL:
            return round(ivl)

        fuzz_factor = (rng or random.Random()).random()
        min_ivl, max_ivl = get_fuzz_range(ivl, elapsed_days, self.maximum_interval)
        fuzzed = math.floor(fuzz_factor * (max_ivl - min_ivl + 1) + min_ivl)
        logger.debug(f"Fuzzed interval {ivl} -> {fuzzed} (band {min_ivl}..{max_ivl})")
        return fuzzed
