from datetime import datetime, timezone

import pytest

from fsrs_scheduler import Scheduler


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def now():
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def valid_raw_card():
    """A stored review-state card as it comes back from a JSON API."""
    return {
        "id": "cmdauwe2l0001vexwplv74vjf",
        "userId": "5NANdkHyQ1p0riBtDeHPOfdRwdv7y1DM",
        "cardId": "cmd4fgv3f0001veq4loisxygg",
        "due": "2025-07-25T22:52:36.294Z",
        "stability": 5.8,
        "difficulty": 3.99,
        "elapsedDays": 0,
        "reps": 1,
        "lapses": 0,
        "state": "REVIEW",
        "lastReview": "2025-07-19T22:52:36.294Z",
        "createdAt": "2025-07-19T23:05:41.949Z",
        "updatedAt": "2025-07-19T23:05:41.949Z",
    }
