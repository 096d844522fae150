"""
Memory State - Card and Review Log Records

Defines the canonical card entity the scheduler operates on and the audit
record produced for every scheduling decision.

Key concepts:
- Stability (S): Days until recall probability decays to the target retention
- Difficulty (D): How hard the card is for this learner (1-10 scale)
- Retrievability (R): Probability of successful recall at time t

Cards are immutable. The scheduler never changes a card in place; every
review produces a new Card value.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional

from fsrs_scheduler.constants import Rating, State
from fsrs_scheduler.time_utils import ensure_utc, utc_now


@dataclass(frozen=True)
class Card:
    """
    Scheduling state for a single learning item.

    Invariants for a validated card:
    - 1 <= difficulty <= 10 and stability > 0 once reviewed
    - 0 <= lapses <= reps
    - state is NEW exactly when reps == 0 and last_review is None
    """
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: float
    scheduled_days: float
    reps: int
    lapses: int
    state: State
    last_review: Optional[datetime] = None

    def to_dict(self) -> dict:
        """
        Serialize to the raw record shape accepted by the validation layer.

        Instants become ISO-8601 strings and the state its upper-case name.
        """
        return {
            "due": self.due.isoformat(),
            "stability": self.stability,
            "difficulty": self.difficulty,
            "elapsed_days": self.elapsed_days,
            "scheduled_days": self.scheduled_days,
            "reps": self.reps,
            "lapses": self.lapses,
            "state": self.state.name,
            "last_review": self.last_review.isoformat() if self.last_review else None,
        }


@dataclass(frozen=True)
class ReviewLog:
    """
    Snapshot of a card right before a scheduling decision.

    Captures what the card looked like, the rating applied and when.
    The outcome lives on the new Card, not here.
    """
    rating: Rating
    state: State
    due: datetime
    stability: float
    difficulty: float
    elapsed_days: int           # Days since the previous review, at this review
    last_elapsed_days: float    # The card's elapsed_days before this review
    scheduled_days: float
    review: datetime

    def to_dict(self) -> dict:
        return {
            "rating": self.rating.name,
            "state": self.state.name,
            "due": self.due.isoformat(),
            "stability": self.stability,
            "difficulty": self.difficulty,
            "elapsed_days": self.elapsed_days,
            "last_elapsed_days": self.last_elapsed_days,
            "scheduled_days": self.scheduled_days,
            "review": self.review.isoformat(),
        }


class SchedulingInfo(NamedTuple):
    """One candidate outcome: the next card and the log of the decision."""
    card: Card
    review_log: ReviewLog


def create_empty_card(now: Optional[datetime] = None) -> Card:
    """
    Initialize a card that has never been reviewed.

    Args:
        now: Creation instant, used as the first due date (default: now)

    Returns:
        New Card in state NEW with all counters at zero
    """
    now = ensure_utc(now) if now is not None else utc_now()

    return Card(
        due=now,
        stability=0.0,
        difficulty=0.0,
        elapsed_days=0,
        scheduled_days=0,
        reps=0,
        lapses=0,
        state=State.NEW,
        last_review=None,
    )
