"""
Scheduler - FSRS Algorithm Logic

Pure FSRS scheduling (no storage, no I/O).

Main workflow:
1. Caller loads a card (or converts a raw record with convert_raw_card)
2. schedule() computes the next card for every rating
3. Caller picks the outcome for the rating the learner chose
4. Caller persists the new card and its review log

This module handles ONLY the algorithm logic.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from fsrs_scheduler import updates
from fsrs_scheduler.constants import Rating, State
from fsrs_scheduler.exceptions import SchedulingError
from fsrs_scheduler.memory_state import Card, ReviewLog, SchedulingInfo, create_empty_card
from fsrs_scheduler.schemas import Parameters
from fsrs_scheduler.time_utils import add_days, calc_elapsed_days, ensure_utc, utc_now
from fsrs_scheduler.validation import BatchResult, validate_and_convert, validate_and_convert_batch

logger = logging.getLogger(__name__)


ParametersInput = Optional[Union[Parameters, Mapping[str, Any]]]


class Scheduler:
    """
    FSRS scheduling engine.

    Holds one Parameters value. Scheduling calls read the current parameters
    once at entry and use that snapshot throughout, so a concurrent
    update_parameters() never yields a half-updated schedule. Updates are
    serialized by a lock and publish a new Parameters object; whether a
    given in-flight call sees the old or the new parameters is up to the
    caller's own ordering.
    """

    def __init__(self, parameters: ParametersInput = None):
        self._parameters = Parameters.build(parameters)
        self._lock = threading.Lock()

    # ---- Card creation and conversion ----

    def create_empty_card(self, now: Optional[datetime] = None) -> Card:
        return create_empty_card(now)

    def convert_raw_card(self, raw: Mapping[str, Any]) -> Card:
        """Validate an external record into a Card (see validation.validate_and_convert)."""
        return validate_and_convert(raw)

    def convert_raw_card_batch(self, records: Iterable[Any]) -> BatchResult:
        return validate_and_convert_batch(records)

    # ---- Scheduling ----

    def schedule(self, card: Optional[Card], now: Optional[datetime] = None) -> dict[str, SchedulingInfo]:
        """
        Compute the outcome of every possible rating.

        Args:
            card: Card to schedule
            now: Review instant (defaults to now)

        Returns:
            Mapping with keys "again", "hard", "good", "easy", each a
            SchedulingInfo(card, review_log)

        Raises:
            SchedulingError: card is None, or now is before card.last_review
        """
        if card is None:
            raise SchedulingError("card cannot be None")

        now = ensure_utc(now) if now is not None else utc_now()
        if card.last_review is not None and now < ensure_utc(card.last_review):
            raise SchedulingError(
                f"Current time {now.isoformat()} cannot be before the last review "
                f"{card.last_review.isoformat()}"
            )

        params = self._parameters
        outcomes = {
            rating.key: self._schedule_rating(params, card, rating, now)
            for rating in Rating
        }

        logger.debug(
            f"Scheduled {card.state.name} card (reps={card.reps}): "
            + ", ".join(f"{key}={info.card.scheduled_days}d" for key, info in outcomes.items())
        )
        return outcomes

    def review(self, card: Optional[Card], rating: Rating, now: Optional[datetime] = None) -> SchedulingInfo:
        """Apply a single rating: the outcome of schedule() for that rating."""
        return self.schedule(card, now)[Rating(rating).key]

    def schedule_raw_card(self, raw: Mapping[str, Any], now: Optional[datetime] = None) -> dict[str, SchedulingInfo]:
        """
        Validate an external record and schedule it.

        Raises:
            CardValidationError: record is malformed
            SchedulingError: now is before the record's last review
        """
        return self.schedule(self.convert_raw_card(raw), now)

    def _schedule_rating(self, params: Parameters, card: Card, rating: Rating, now: datetime) -> SchedulingInfo:
        elapsed_days = calc_elapsed_days(card.last_review, now)

        if card.state == State.NEW:
            next_card = self._first_review(params, card, rating, now)
        else:
            next_card = self._repeat_review(params, card, rating, now, elapsed_days)

        review_log = ReviewLog(
            rating=rating,
            state=card.state,
            due=card.due,
            stability=card.stability,
            difficulty=card.difficulty,
            elapsed_days=elapsed_days,
            last_elapsed_days=card.elapsed_days,
            scheduled_days=card.scheduled_days,
            review=now,
        )
        return SchedulingInfo(card=next_card, review_log=review_log)

    def _first_review(self, params: Parameters, card: Card, rating: Rating, now: datetime) -> Card:
        """New card: initial stability and difficulty straight from the weights."""
        stability = updates.initial_stability(params.w, rating)
        interval = updates.first_interval(stability, rating, params.maximum_interval)

        return replace(
            card,
            stability=stability,
            difficulty=updates.initial_difficulty(params.w, rating),
            scheduled_days=interval,
            reps=card.reps + 1,
            state=State.LEARNING if rating == Rating.AGAIN else State.REVIEW,
            due=add_days(now, interval),
            last_review=now,
        )

    def _repeat_review(
        self,
        params: Parameters,
        card: Card,
        rating: Rating,
        now: datetime,
        elapsed_days: int,
    ) -> Card:
        """Learning/Review/Relearning card: update S and D from their current values."""
        if rating == Rating.AGAIN:
            lapses = card.lapses + 1
            state = State.RELEARNING
        else:
            lapses = card.lapses
            state = State.REVIEW

        # Stability uses the difficulty from before this review
        stability = updates.next_stability(
            params.w, card.difficulty, card.stability, elapsed_days, rating
        )
        interval = updates.next_interval(
            stability, params.request_retention, params.maximum_interval
        )

        return replace(
            card,
            stability=stability,
            difficulty=updates.next_difficulty(params.w, card.difficulty, rating),
            elapsed_days=elapsed_days,
            scheduled_days=interval,
            reps=card.reps + 1,
            lapses=lapses,
            state=state,
            due=add_days(now, interval),
            last_review=now,
        )

    # ---- Queries ----

    def get_retrievability(self, card: Card, now: Optional[datetime] = None) -> Optional[float]:
        """
        Current probability of recall.

        Returns None for a card that has never been reviewed: no memory
        estimate exists yet.

        Raises:
            SchedulingError: card is None
        """
        if card is None:
            raise SchedulingError("card cannot be None")

        if card.state == State.NEW or card.last_review is None:
            return None

        now = ensure_utc(now) if now is not None else utc_now()
        elapsed_days = calc_elapsed_days(card.last_review, now)
        return updates.retrievability(elapsed_days, card.stability)

    # ---- Configuration ----

    def update_parameters(self, parameters: ParametersInput) -> None:
        """
        Merge new values into the current parameters.

        Fields present in parameters replace the current ones, the rest are
        kept. The merged result is validated before it is published.

        Raises:
            ParameterError: merged parameters are invalid; the current
                parameters are left untouched
        """
        with self._lock:
            self._parameters = Parameters.merge(self._parameters, parameters)
        logger.debug(f"Updated scheduler parameters: {self._parameters!r}")

    def get_parameters(self) -> Parameters:
        """Return a copy; changing it does not affect the scheduler."""
        return self._parameters.model_copy(deep=True)
