import os
from datetime import datetime, timedelta, timezone

import pytest

from cadence.application.scheduler import Scheduler
from cadence.domain.models import Card, State


@pytest.fixture(autouse=True)
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to a temp dir and drops CADENCE_* variables to isolate config."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in [k for k in os.environ if k.startswith("CADENCE_")]:
        monkeypatch.delenv(key)
    return home


@pytest.fixture
def now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def scheduler():
    """Deterministic scheduler: fuzz off, retention 0.9 so intervals equal stability."""
    return Scheduler({"enable_fuzz": False, "request_retention": 0.9})


@pytest.fixture
def review_card(now):
    """Review card with S=10, D=5, last reviewed exactly 10 days ago."""
    return Card(
        due=now,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=8,
        scheduled_days=10,
        reps=5,
        lapses=0,
        state=State.REVIEW,
        last_review=now - timedelta(days=10),
    )
