"""
Card Validation - External Records to Canonical Cards

Converts loosely-typed records (strings from JSON, native values from an
ORM row, ...) into Card values that satisfy every card invariant.

Three entry points:
- validate_and_convert: strict, raises CardValidationError on the first problem
- validate_and_convert_batch: validates each record independently and
  collects failures instead of raising
- is_card_data_shape: cheap structural check, never raises
"""

from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import Any, Iterable, Mapping, NamedTuple, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, ValidationInfo
from pydantic import field_validator, model_validator

from fsrs_scheduler.constants import REQUIRED_CARD_FIELDS, STATE_NAMES, S_MIN, D_MAX, D_MIN, State
from fsrs_scheduler.exceptions import CardValidationError
from fsrs_scheduler.memory_state import Card
from fsrs_scheduler.time_utils import parse_instant

logger = logging.getLogger(__name__)


# ---- Field parsers ----

def _format_bound(bound: float) -> str:
    return f"{bound:g}"


def coerce_state(field: str, value: Any) -> State:
    """Parse a case-insensitive state name."""
    if not isinstance(value, str):
        raise CardValidationError(
            field, value, f"Invalid {field}: must be a string, got {type(value).__name__}"
        )

    state = STATE_NAMES.get(value.strip().upper())
    if state is None:
        allowed = ", ".join(STATE_NAMES)
        raise CardValidationError(
            field, value, f'Invalid {field}: "{value}". Must be one of: {allowed}'
        )
    return state


def coerce_instant(field: str, value: Any) -> datetime:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime."""
    if value is None or value == "":
        raise CardValidationError(field, value, f"Invalid {field}: value is required")

    try:
        return parse_instant(value)
    except TypeError as exc:
        raise CardValidationError(field, value, f"Invalid {field}: {exc}") from exc
    except ValueError as exc:
        raise CardValidationError(
            field, value, f'Invalid {field}: "{value}" is not a valid date'
        ) from exc


def _allowed_range(minimum: float, maximum: float) -> str:
    if math.isinf(maximum):
        return f"must be >= {_format_bound(minimum)}"
    return f"must be between {_format_bound(minimum)} and {_format_bound(maximum)}"


def _check_range(field: str, value: Any, number: float, minimum: float, maximum: float) -> None:
    if number < minimum or number > maximum:
        raise CardValidationError(
            field, value, f"Invalid {field}: {value} {_allowed_range(minimum, maximum)}"
        )


def coerce_number(
    field: str,
    value: Any,
    minimum: float = -math.inf,
    maximum: float = math.inf,
) -> float:
    """
    Parse a number, or a numeric string, and check it against [minimum, maximum].

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CardValidationError(
            field, value,
            f"Invalid {field}: must be a number or string, got {type(value).__name__}",
        )

    try:
        number = float(value)
    except ValueError:
        raise CardValidationError(
            field, value, f'Invalid {field}: "{value}" is not a valid number'
        ) from None
    except OverflowError:
        # int too large for a float
        raise CardValidationError(
            field, value,
            f"Invalid {field}: number is too large ({_allowed_range(minimum, maximum)})",
        ) from None

    if not math.isfinite(number):
        raise CardValidationError(field, value, f"Invalid {field}: {value} is not a finite number")

    _check_range(field, value, number, minimum, maximum)
    return number


def _exact_integer(value: Any) -> Optional[int]:
    """Native ints and integral strings, without a round trip through float."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def coerce_integer(
    field: str,
    value: Any,
    minimum: float = -math.inf,
    maximum: float = math.inf,
) -> int:
    exact = _exact_integer(value)
    if exact is not None:
        _check_range(field, value, exact, minimum, maximum)
        return exact

    number = coerce_number(field, value, minimum, maximum)
    if not number.is_integer():
        raise CardValidationError(field, value, f"Invalid {field}: {value} must be an integer")
    return int(number)


# ---- Raw record model ----

class RawCardData(BaseModel):
    """
    External card record.

    Accepts snake_case or camelCase keys. Unknown keys (ids, foreign keys,
    audit timestamps) are ignored. Fields are declared in the order they
    are checked; the first failing field is the one reported.
    """
    model_config = ConfigDict(extra="ignore")

    state: State
    due: datetime
    last_review: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("last_review", "lastReview")
    )
    stability: float
    difficulty: float
    elapsed_days: float = Field(validation_alias=AliasChoices("elapsed_days", "elapsedDays"))
    scheduled_days: float = Field(
        default=0.0, validation_alias=AliasChoices("scheduled_days", "scheduledDays")
    )
    reps: int
    lapses: int

    @field_validator("state", mode="before")
    @classmethod
    def parse_state(cls, value: Any, info: ValidationInfo) -> State:
        return coerce_state(info.field_name, value)

    @field_validator("due", mode="before")
    @classmethod
    def parse_due(cls, value: Any, info: ValidationInfo) -> datetime:
        return coerce_instant(info.field_name, value)

    @field_validator("last_review", mode="before")
    @classmethod
    def parse_last_review(cls, value: Any, info: ValidationInfo) -> Optional[datetime]:
        if value is None or value == "":
            return None
        return coerce_instant(info.field_name, value)

    @field_validator("stability", mode="before")
    @classmethod
    def parse_stability(cls, value: Any, info: ValidationInfo) -> float:
        return coerce_number(info.field_name, value, S_MIN)

    @field_validator("difficulty", mode="before")
    @classmethod
    def parse_difficulty(cls, value: Any, info: ValidationInfo) -> float:
        return coerce_number(info.field_name, value, D_MIN, D_MAX)

    @field_validator("elapsed_days", "scheduled_days", mode="before")
    @classmethod
    def parse_days(cls, value: Any, info: ValidationInfo) -> float:
        return coerce_number(info.field_name, value, 0)

    @field_validator("reps", "lapses", mode="before")
    @classmethod
    def parse_counter(cls, value: Any, info: ValidationInfo) -> int:
        return coerce_integer(info.field_name, value, 0)

    @model_validator(mode="after")
    def check_consistency(self) -> RawCardData:
        if self.state == State.NEW and self.reps > 0:
            raise CardValidationError(
                "reps", self.reps, f"Invalid reps: new cards must have 0 reps, got {self.reps}"
            )

        if self.state == State.NEW and self.last_review is not None:
            raise CardValidationError(
                "last_review", self.last_review,
                "Invalid last_review: new cards must not have a last review date",
            )

        if self.reps > 0 and self.last_review is None:
            raise CardValidationError(
                "last_review", None,
                f"Invalid last_review: cards with reps > 0 must have a last review date "
                f"(reps={self.reps})",
            )

        if self.lapses > self.reps:
            raise CardValidationError(
                "lapses", self.lapses,
                f"Invalid lapses: {self.lapses} cannot be greater than reps ({self.reps})",
            )

        return self

    def to_card(self) -> Card:
        return Card(
            due=self.due,
            stability=self.stability,
            difficulty=self.difficulty,
            elapsed_days=self.elapsed_days,
            scheduled_days=self.scheduled_days,
            reps=self.reps,
            lapses=self.lapses,
            state=self.state,
            last_review=self.last_review,
        )


def _first_error(exc: ValidationError) -> CardValidationError:
    """Pick the first failure pydantic collected and turn it into our error."""
    detail = exc.errors()[0]
    original = detail.get("ctx", {}).get("error")
    if isinstance(original, CardValidationError):
        return original

    field = str(detail["loc"][0]) if detail["loc"] else "record"
    if detail["type"] == "missing":
        return CardValidationError(field, None, f"Invalid {field}: value is required")
    return CardValidationError(field, detail.get("input"), f"Invalid {field}: {detail['msg']}")


# ---- Public API ----

def validate_and_convert(raw: Mapping[str, Any]) -> Card:
    """
    Validate an external record and convert it into a Card.

    Checks run field by field (state, due, last_review, stability,
    difficulty, elapsed_days, scheduled_days, reps, lapses), then the
    cross-field rules. The first failure is raised.

    Args:
        raw: Mapping of card fields, values as strings or native types

    Returns:
        Card with datetime instants and numeric fields

    Raises:
        CardValidationError: naming the field, the bad value and the rule
    """
    if not isinstance(raw, Mapping):
        raise CardValidationError(
            "record", raw, f"Invalid card data: must be a mapping, got {type(raw).__name__}"
        )

    try:
        record = RawCardData.model_validate(dict(raw))
    except ValidationError as exc:
        raise _first_error(exc) from None

    return record.to_card()


class BatchError(NamedTuple):
    index: int
    message: str
    data: Any


class BatchResult(NamedTuple):
    valid: list[Card]
    errors: list[BatchError]


def validate_and_convert_batch(records: Iterable[Any]) -> BatchResult:
    """
    Validate many records, keeping going past failures.

    Valid cards keep their relative order. Each failure is reported with
    the index of the offending record, the error message and the record
    itself.
    """
    valid: list[Card] = []
    errors: list[BatchError] = []

    for index, raw in enumerate(records):
        try:
            valid.append(validate_and_convert(raw))
        except CardValidationError as exc:
            logger.warning(f"Skipping card record at index {index}: {exc}")
            errors.append(BatchError(index=index, message=str(exc), data=raw))

    return BatchResult(valid=valid, errors=errors)


def is_card_data_shape(obj: Any) -> bool:
    """
    Loose check that obj looks like card data.

    Only tests that the mandatory keys are present; values are not parsed.
    """
    if not isinstance(obj, Mapping):
        return False
    return all(name in obj for name in REQUIRED_CARD_FIELDS)
