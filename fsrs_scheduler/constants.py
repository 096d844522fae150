"""
FSRS Constants and Parameters

Enumerations and fixed values shared by every part of the scheduler.
The weight vector layout (19 entries) is part of the public contract:
changing its length or index meaning changes every schedule produced.
"""

from enum import IntEnum


# ---- Ratings ----

class Rating(IntEnum):
    """Learner's self-reported recall outcome."""
    AGAIN = 1  # Recall failed
    HARD = 2   # Recalled with high effort
    GOOD = 3   # Recalled normally
    EASY = 4   # Recalled trivially

    @property
    def key(self) -> str:
        """Lower-case name used as the scheduling result key."""
        return self.name.lower()


# ---- Card lifecycle ----

class State(IntEnum):
    """Lifecycle phase of a card."""
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# ---- Forgetting curve ----

DECAY = -0.5
FACTOR = 0.9 ** (1 / DECAY) - 1  # Makes R = 0.9 when t = S


# ---- Bounds ----

S_MIN = 0.1      # Minimum stability (days)
D_MIN = 1.0      # Minimum difficulty
D_MAX = 10.0     # Maximum difficulty


# ---- Default engine configuration ----

WEIGHT_COUNT = 19

DEFAULT_REQUEST_RETENTION = 0.9
DEFAULT_MAXIMUM_INTERVAL = 3650  # 10 years

DEFAULT_WEIGHTS = (
    0.4, 0.6, 2.4, 5.8,      # w0-w3: initial stability per rating
    4.93, 0.94,              # w4-w5: initial difficulty
    0.86, 0.01,              # w6: difficulty step, w7: mean reversion
    1.49, 0.14, 0.94,        # w8-w10: stability on success
    2.18, 0.05, 0.34, 1.26,  # w11-w14: stability on lapse
    0.29, 2.61,              # w15: hard penalty, w16: easy bonus
    0.0, 0.0,                # w17-w18: unused by this formula version
)


# ---- Validation ----

STATE_NAMES = {state.name: state for state in State}

REQUIRED_CARD_FIELDS = ("due", "stability", "difficulty", "state", "reps", "lapses")
