"""
Pydantic models for scheduler configuration.

Parameters is the only configuration the engine reads. It is validated on
construction and on every merge so a running engine never holds an
invalid weight vector.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, ValidationError

from fsrs_scheduler.constants import (
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_WEIGHTS,
    WEIGHT_COUNT,
)
from fsrs_scheduler.exceptions import ParameterError


# camelCase keys accepted from callers that mirror the external record style
_FIELD_ALIASES = {
    "requestRetention": "request_retention",
    "maximumInterval": "maximum_interval",
}


class Parameters(BaseModel):
    """
    Engine configuration.

    The weight vector must hold exactly 19 entries (the factor/decay formula
    version). Vectors of any other length are rejected, never reinterpreted.
    """
    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    request_retention: float = Field(
        default=DEFAULT_REQUEST_RETENTION,
        gt=0,
        lt=1,
        allow_inf_nan=False,
        description="Target recall probability at the scheduled interval",
    )
    maximum_interval: int = Field(
        default=DEFAULT_MAXIMUM_INTERVAL,
        ge=1,
        description="Cap on scheduled days",
    )
    w: list[FiniteFloat] = Field(
        default_factory=lambda: list(DEFAULT_WEIGHTS),
        min_length=WEIGHT_COUNT,
        max_length=WEIGHT_COUNT,
        description="Weight vector w0-w18",
    )

    @classmethod
    def build(cls, data: Optional[Union[Parameters, Mapping[str, Any]]] = None) -> Parameters:
        """
        Create validated parameters from a partial mapping.

        Missing fields take their defaults.

        Raises:
            ParameterError: a value is out of range or an unknown key is given
        """
        return cls.merge(cls(), data)

    @classmethod
    def merge(
        cls,
        current: Parameters,
        update: Optional[Union[Parameters, Mapping[str, Any]]],
    ) -> Parameters:
        """
        Field-by-field merge: every field present in update replaces the
        current value, everything else is kept. Returns a new instance.
        """
        if update is None:
            return current.model_copy(deep=True)

        if isinstance(update, Parameters):
            changes = update.model_dump(exclude_unset=True)
        else:
            changes = {_FIELD_ALIASES.get(key, key): value for key, value in update.items()}

        merged = current.model_dump()
        merged.update(changes)

        try:
            return cls.model_validate(merged)
        except ValidationError as exc:
            first = exc.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise ParameterError(
                f"Invalid parameter {location}: {first['msg']} (got {first.get('input')!r})"
            ) from exc
