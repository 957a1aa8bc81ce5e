"""Centralized constants for the Cadence scheduler.

All magic numbers and parameter defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Forgetting curve ----------
DECAY = -0.5
FACTOR = 19 / 81  # R(t=S, S) == 0.9

# ---------- Default parameters ----------
DEFAULT_REQUEST_RETENTION = 0.95
DEFAULT_MAXIMUM_INTERVAL = 36500
DEFAULT_ENABLE_FUZZ = True
DEFAULT_W = (
    0.4,
    0.6,
    2.4,
    5.8,
    4.93,
    0.94,
    0.86,
    0.01,
    1.49,
    0.14,
    0.94,
    2.18,
    0.05,
    0.34,
    1.26,
    0.29,
    2.61,
)
WEIGHT_COUNT = len(DEFAULT_W)

# ---------- Memory state bounds ----------
D_MIN = 1.0
D_MAX = 10.0
S_INIT_MIN = 0.1
S_MIN = 0.01

# ---------- Fuzz ----------
FUZZ_MIN_INTERVAL = 2.5
# (start, end, factor): band widths grow with interval magnitude
FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)

# ---------- Time ----------
MINUTES_PER_DAY = 1440
SECONDS_PER_DAY = 86400

# ---------- Display ----------
TIME_UNITS = (60, 60, 24, 31, 12)
TIME_UNIT_LABELS = ("second", "min", "hour", "day", "month", "year")
