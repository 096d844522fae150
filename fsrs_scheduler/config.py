"""
Environment configuration for applications embedding the scheduler.

The Scheduler itself never reads the environment. Applications call
load_parameters() once and pass the result in:

    from fsrs_scheduler import Scheduler
    from fsrs_scheduler.config import load_parameters

    scheduler = Scheduler(load_parameters())

Variables (all optional, read after loading a .env file):
    FSRS_REQUEST_RETENTION  target retention, e.g. 0.9
    FSRS_MAXIMUM_INTERVAL   cap on scheduled days, e.g. 3650
    FSRS_WEIGHTS            19 comma-separated floats
"""

from __future__ import annotations
import os
from typing import Optional

from dotenv import load_dotenv

from fsrs_scheduler.exceptions import ParameterError
from fsrs_scheduler.schemas import Parameters


ENV_REQUEST_RETENTION = "FSRS_REQUEST_RETENTION"
ENV_MAXIMUM_INTERVAL = "FSRS_MAXIMUM_INTERVAL"
ENV_WEIGHTS = "FSRS_WEIGHTS"


def _parse_weights(raw: str) -> list[float]:
    try:
        return [float(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise ParameterError(f"{ENV_WEIGHTS} must be comma-separated numbers: {exc}") from exc


def load_parameters(dotenv_path: Optional[str] = None) -> Parameters:
    """
    Build Parameters from environment variables.

    Args:
        dotenv_path: Explicit .env file (default: search from the working directory)

    Returns:
        Validated Parameters; unset variables keep their defaults

    Raises:
        ParameterError: a variable is set to an invalid value
    """
    load_dotenv(dotenv_path)

    overrides: dict = {}

    retention = os.getenv(ENV_REQUEST_RETENTION)
    if retention:
        overrides["request_retention"] = retention

    maximum_interval = os.getenv(ENV_MAXIMUM_INTERVAL)
    if maximum_interval:
        overrides["maximum_interval"] = maximum_interval

    weights = os.getenv(ENV_WEIGHTS)
    if weights:
        overrides["w"] = _parse_weights(weights)

    return Parameters.build(overrides)
