"""
FSRS - Free Spaced Repetition Scheduler

Scheduling engine for a single flashcard.

This package implements the 19-weight FSRS model:
- Power forgetting curve: R = (1 + FACTOR * t / S) ^ DECAY
- Stability and difficulty updates driven by the learner's rating
- Strict validation of externally stored card records

Quick start:
    from fsrs_scheduler import Scheduler, Rating

    scheduler = Scheduler()
    card = scheduler.create_empty_card()

    # All four outcomes, keyed "again", "hard", "good", "easy"
    outcomes = scheduler.schedule(card)
    card, review_log = outcomes[Rating.GOOD.key]

    # From a stored record
    card = scheduler.convert_raw_card(row)
"""

import logging

# Core scheduler API
from fsrs_scheduler.scheduler import Scheduler

# Validation API
from fsrs_scheduler.validation import (
    BatchError,
    BatchResult,
    RawCardData,
    is_card_data_shape,
    validate_and_convert,
    validate_and_convert_batch,
)

# Constants and parameters
from fsrs_scheduler.constants import (
    Rating,
    State,
    DECAY,
    FACTOR,
    S_MIN,
    D_MIN,
    D_MAX,
    WEIGHT_COUNT,
    DEFAULT_WEIGHTS,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_MAXIMUM_INTERVAL,
)
from fsrs_scheduler.schemas import Parameters

# Memory state
from fsrs_scheduler.memory_state import (
    Card,
    ReviewLog,
    SchedulingInfo,
    create_empty_card,
)

# Errors
from fsrs_scheduler.exceptions import (
    FSRSError,
    CardValidationError,
    SchedulingError,
    ParameterError,
)

# Time helpers
from fsrs_scheduler.time_utils import calc_elapsed_days, is_valid_date


logging.getLogger(__name__).addHandler(logging.NullHandler())


__all__ = [
    # Core algorithm
    "Scheduler",

    # Validation
    "BatchError",
    "BatchResult",
    "RawCardData",
    "is_card_data_shape",
    "validate_and_convert",
    "validate_and_convert_batch",

    # Enums
    "Rating",
    "State",

    # Memory state
    "Card",
    "ReviewLog",
    "SchedulingInfo",
    "create_empty_card",

    # Parameters
    "Parameters",
    "DECAY",
    "FACTOR",
    "S_MIN",
    "D_MIN",
    "D_MAX",
    "WEIGHT_COUNT",
    "DEFAULT_WEIGHTS",
    "DEFAULT_REQUEST_RETENTION",
    "DEFAULT_MAXIMUM_INTERVAL",

    # Errors
    "FSRSError",
    "CardValidationError",
    "SchedulingError",
    "ParameterError",

    # Time helpers
    "calc_elapsed_days",
    "is_valid_date",
]
