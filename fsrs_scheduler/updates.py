"""
Memory Updates - Stability, Difficulty and Interval Formulas

Implements the 19-weight FSRS formulas (factor/decay version).

Every function is pure and takes the weight vector explicitly so the
scheduler can read one consistent Parameters snapshot per call.

Key principles:
- Spaced success (low R at review time) produces the largest stability gains
- Difficulty drifts with ratings but reverts toward the baseline w[4]
- Intervals target the requested retention on the power forgetting curve
"""

from __future__ import annotations
import math
from typing import Sequence

from fsrs_scheduler.constants import (
    DECAY,
    D_MAX,
    D_MIN,
    FACTOR,
    S_MIN,
    Rating,
)


def _clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def initial_stability(w: Sequence[float], rating: Rating) -> float:
    """
    Stability after the first review.

    Formula: S0(r) = max(w[r-1], 0.1)
    """
    return max(w[rating - 1], S_MIN)


def initial_difficulty(w: Sequence[float], rating: Rating) -> float:
    """
    Difficulty after the first review.

    Formula: D0(r) = clamp(w[4] - (r-3) * w[5], 1, 10)
    """
    return _clamp(w[4] - (rating - 3) * w[5], D_MIN, D_MAX)


def mean_reversion(w: Sequence[float], target: float, current: float) -> float:
    return w[7] * target + (1 - w[7]) * current


def next_difficulty(w: Sequence[float], difficulty: float, rating: Rating) -> float:
    """
    Update difficulty after a review of an already-seen card.

    Formula:
        D' = clamp(w[7] * w[4] + (1 - w[7]) * (D - w[6] * (r-3)), 1, 10)

    Again/Hard push difficulty up, Easy pulls it down, and the mean
    reversion term keeps it from drifting to the extremes.

    Args:
        w: Weight vector
        difficulty: Current difficulty
        rating: Learner rating

    Returns:
        New difficulty, clipped to [1, 10]
    """
    stepped = difficulty - w[6] * (rating - 3)
    return _clamp(mean_reversion(w, w[4], stepped), D_MIN, D_MAX)


def retrievability(elapsed_days: float, stability: float) -> float:
    """
    Probability of recall after elapsed_days.

    Formula: R(t, S) = (1 + FACTOR * t / S) ^ DECAY

    Equals 0.9 when t == S and decreases monotonically with t.
    """
    return (1 + FACTOR * elapsed_days / stability) ** DECAY


def stability_on_success(
    w: Sequence[float],
    difficulty: float,
    stability: float,
    retrievability_now: float,
    rating: Rating,
) -> float:
    """
    Update stability after successful recall (Hard/Good/Easy).

    Formula:
        S' = S * (e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1)
                  * hard_penalty * easy_bonus + 1)

    Where hard_penalty = w15 for Hard (1 otherwise) and
    easy_bonus = w16 for Easy (1 otherwise).
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use stability_on_lapse for AGAIN ratings")

    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0

    growth = (
        math.exp(w[8])
        * (11 - difficulty)
        * stability ** -w[9]
        * (math.exp(w[10] * (1 - retrievability_now)) - 1)
        * hard_penalty
        * easy_bonus
    )
    return stability * (growth + 1)


def stability_on_lapse(
    w: Sequence[float],
    difficulty: float,
    stability: float,
    retrievability_now: float,
) -> float:
    """
    Update stability after failed recall (Again).

    Formula:
        S' = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))
    """
    return (
        w[11]
        * difficulty ** -w[12]
        * ((stability + 1) ** w[13] - 1)
        * math.exp(w[14] * (1 - retrievability_now))
    )


def next_stability(
    w: Sequence[float],
    difficulty: float,
    stability: float,
    elapsed_days: float,
    rating: Rating,
) -> float:
    """
    Stability after reviewing a previously-seen card.

    Difficulty and stability are the values before this review.
    """
    r = retrievability(elapsed_days, stability)
    if rating == Rating.AGAIN:
        return stability_on_lapse(w, difficulty, stability, r)
    return stability_on_success(w, difficulty, stability, r, rating)


def next_interval(stability: float, request_retention: float, maximum_interval: int) -> int:
    """
    Days until recall probability falls to request_retention.

    Formula:
        I = clamp(round((S / FACTOR) * (retention^(1/DECAY) - 1)), 1, maximum_interval)
    """
    interval = (stability / FACTOR) * (request_retention ** (1 / DECAY) - 1)
    # Cap first so very large stabilities never reach floor(inf)
    return int(_clamp(round_half_up(min(interval, maximum_interval)), 1, maximum_interval))


def first_interval(stability: float, rating: Rating, maximum_interval: int) -> int:
    """
    Interval after the first review of a new card.

    Again is always one day. Other ratings use the rounded initial stability.
    """
    if rating == Rating.AGAIN:
        return 1
    return int(_clamp(round_half_up(stability), 1, maximum_interval))
