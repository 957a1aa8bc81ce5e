VERSION = "0.3.0"
FSRS_VERSION = "4.5"
