from datetime import datetime, timezone

import pytest

from fsrs_scheduler import (
    Card,
    CardValidationError,
    State,
    create_empty_card,
    is_card_data_shape,
    validate_and_convert,
    validate_and_convert_batch,
)

DUE = datetime(2025, 7, 25, 22, 52, 36, 294000, tzinfo=timezone.utc)
LAST_REVIEW = datetime(2025, 7, 19, 22, 52, 36, 294000, tzinfo=timezone.utc)


def new_record(raw, **overrides):
    record = {**raw, "state": "NEW", "reps": 0, "lastReview": None}
    record.update(overrides)
    return record


# ---- Successful conversion ----

def test_converts_valid_record(valid_raw_card):
    card = validate_and_convert(valid_raw_card)

    assert isinstance(card, Card)
    assert card.due == DUE
    assert card.stability == 5.8
    assert card.difficulty == 3.99
    assert card.elapsed_days == 0
    assert card.scheduled_days == 0
    assert card.reps == 1
    assert card.lapses == 0
    assert card.state == State.REVIEW
    assert card.last_review == LAST_REVIEW


def test_converts_string_numbers(valid_raw_card):
    record = {
        **valid_raw_card,
        "stability": "5.8",
        "difficulty": "3.99",
        "elapsedDays": "0",
        "reps": "1",
        "lapses": "0",
    }
    card = validate_and_convert(record)

    assert card.stability == 5.8
    assert isinstance(card.stability, float)
    assert card.difficulty == 3.99
    assert card.elapsed_days == 0
    assert card.reps == 1
    assert isinstance(card.reps, int)
    assert card.lapses == 0


def test_accepts_datetime_objects(valid_raw_card):
    card = validate_and_convert({**valid_raw_card, "due": DUE, "lastReview": LAST_REVIEW})
    assert card.due == DUE
    assert card.last_review == LAST_REVIEW


def test_naive_datetimes_are_utc(valid_raw_card):
    card = validate_and_convert({**valid_raw_card, "due": datetime(2025, 7, 25)})
    assert card.due == datetime(2025, 7, 25, tzinfo=timezone.utc)


def test_accepts_snake_case_keys():
    record = {
        "due": "2025-07-25T22:52:36.294Z",
        "stability": 5.8,
        "difficulty": 3.99,
        "elapsed_days": 2,
        "scheduled_days": 6,
        "reps": 1,
        "lapses": 0,
        "state": "review",
        "last_review": "2025-07-19T22:52:36.294Z",
    }
    card = validate_and_convert(record)
    assert card.elapsed_days == 2
    assert card.scheduled_days == 6
    assert card.last_review == LAST_REVIEW


def test_scheduled_days_when_provided(valid_raw_card):
    assert validate_and_convert({**valid_raw_card, "scheduledDays": 6}).scheduled_days == 6


@pytest.mark.parametrize(
    "text, expected",
    [
        ("NEW", State.NEW),
        ("new", State.NEW),
        ("LEARNING", State.LEARNING),
        ("learning", State.LEARNING),
        ("Review", State.REVIEW),
        ("relearning", State.RELEARNING),
    ],
)
def test_state_names_are_case_insensitive(valid_raw_card, text, expected):
    record = {**valid_raw_card, "state": text, "reps": 0, "lastReview": None}
    assert validate_and_convert(record).state == expected


@pytest.mark.parametrize("absent", [None, ""])
def test_new_card_without_last_review(valid_raw_card, absent):
    card = validate_and_convert(new_record(valid_raw_card, lastReview=absent))
    assert card.state == State.NEW
    assert card.last_review is None


def test_missing_last_review_key(valid_raw_card):
    record = new_record(valid_raw_card)
    del record["lastReview"]
    assert validate_and_convert(record).last_review is None


def test_round_trip_through_to_dict(valid_raw_card):
    card = validate_and_convert(valid_raw_card)
    assert validate_and_convert(card.to_dict()) == card


# ---- Field errors ----

@pytest.mark.parametrize("raw", [None, "card", 42, ["due"]])
def test_rejects_non_mapping(raw):
    with pytest.raises(CardValidationError, match="must be a mapping"):
        validate_and_convert(raw)


def test_rejects_unknown_state(valid_raw_card):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, "state": "INVALID"})

    assert excinfo.value.field == "state"
    assert '"INVALID"' in str(excinfo.value)
    assert "NEW, LEARNING, REVIEW, RELEARNING" in str(excinfo.value)


def test_rejects_non_string_state(valid_raw_card):
    with pytest.raises(CardValidationError, match="state: must be a string, got int"):
        validate_and_convert({**valid_raw_card, "state": 2})


@pytest.mark.parametrize("field, key", [("due", "due"), ("last_review", "lastReview")])
def test_rejects_invalid_dates(valid_raw_card, field, key):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, key: "invalid-date"})

    assert excinfo.value.field == field
    assert excinfo.value.value == "invalid-date"
    assert '"invalid-date" is not a valid date' in str(excinfo.value)


def test_rejects_non_date_types(valid_raw_card):
    with pytest.raises(CardValidationError, match="due: must be a datetime or string, got int"):
        validate_and_convert({**valid_raw_card, "due": 1700000000})


def test_due_is_required(valid_raw_card):
    record = dict(valid_raw_card)
    del record["due"]
    with pytest.raises(CardValidationError, match="due: value is required"):
        validate_and_convert(record)


def test_rejects_unparseable_numbers(valid_raw_card):
    with pytest.raises(CardValidationError, match='stability: "abc" is not a valid number'):
        validate_and_convert({**valid_raw_card, "stability": "abc"})


@pytest.mark.parametrize("value", [True, None, [5.8]])
def test_rejects_non_numeric_types(valid_raw_card, value):
    with pytest.raises(CardValidationError, match="stability: must be a number or string"):
        validate_and_convert({**valid_raw_card, "stability": value})


@pytest.mark.parametrize("value", ["nan", float("inf")])
def test_rejects_non_finite_numbers(valid_raw_card, value):
    with pytest.raises(CardValidationError, match="not a finite number"):
        validate_and_convert({**valid_raw_card, "stability": value})


def test_rejects_difficulty_out_of_range(valid_raw_card):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, "difficulty": 11})

    assert excinfo.value.field == "difficulty"
    assert excinfo.value.value == 11
    assert str(excinfo.value) == "Invalid difficulty: 11 must be between 1 and 10"


def test_rejects_low_difficulty(valid_raw_card):
    with pytest.raises(CardValidationError, match="difficulty: 0.5 must be between 1 and 10"):
        validate_and_convert({**valid_raw_card, "difficulty": 0.5})


def test_rejects_low_stability(valid_raw_card):
    with pytest.raises(CardValidationError, match=r"stability: 0.05 must be >= 0.1"):
        validate_and_convert({**valid_raw_card, "stability": 0.05})


@pytest.mark.parametrize("key, field", [("elapsedDays", "elapsed_days"), ("scheduledDays", "scheduled_days")])
def test_rejects_negative_days(valid_raw_card, key, field):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, key: -1})
    assert excinfo.value.field == field
    assert "must be >= 0" in str(excinfo.value)


@pytest.mark.parametrize("field", ["reps", "lapses"])
def test_rejects_non_integer_counters(valid_raw_card, field):
    with pytest.raises(CardValidationError, match=f"{field}: 1.5 must be an integer"):
        validate_and_convert({**valid_raw_card, field: 1.5})


def test_rejects_negative_reps(valid_raw_card):
    with pytest.raises(CardValidationError, match="reps: -1 must be >= 0"):
        validate_and_convert({**valid_raw_card, "reps": -1})


@pytest.mark.parametrize("key, field", [("stability", "stability"), ("elapsedDays", "elapsed_days")])
def test_rejects_numbers_too_large_for_float(valid_raw_card, key, field):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, key: 10**400})

    assert excinfo.value.field == field
    assert "number is too large" in str(excinfo.value)


def test_counters_keep_exact_integers(valid_raw_card):
    big = 9007199254740993
    card = validate_and_convert({**valid_raw_card, "reps": str(big), "lapses": big})
    assert card.reps == big
    assert card.lapses == big


def test_counter_strings_may_be_written_as_floats(valid_raw_card):
    assert validate_and_convert({**valid_raw_card, "reps": "2.0"}).reps == 2


def test_first_bad_field_wins(valid_raw_card):
    record = {**valid_raw_card, "difficulty": 11, "reps": 1.5}
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert(record)
    assert excinfo.value.field == "difficulty"


# ---- Cross-field errors ----

def test_new_card_must_have_zero_reps(valid_raw_card):
    with pytest.raises(CardValidationError, match="new cards must have 0 reps"):
        validate_and_convert({**valid_raw_card, "state": "NEW", "reps": 1})


def test_new_card_must_not_have_last_review(valid_raw_card):
    with pytest.raises(CardValidationError, match="new cards must not have a last review"):
        validate_and_convert({**valid_raw_card, "state": "NEW", "reps": 0})


def test_reviewed_card_needs_last_review(valid_raw_card):
    with pytest.raises(CardValidationError, match="reps > 0 must have a last review"):
        validate_and_convert({**valid_raw_card, "lastReview": None})


def test_lapses_cannot_exceed_reps(valid_raw_card):
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert({**valid_raw_card, "reps": 2, "lapses": 3})
    assert excinfo.value.field == "lapses"
    assert "cannot be greater than reps" in str(excinfo.value)


def test_cross_field_rules_apply_in_order(valid_raw_card):
    # Breaks both the zero-reps and lapses rules; zero-reps is checked first
    with pytest.raises(CardValidationError, match="new cards must have 0 reps"):
        validate_and_convert({**valid_raw_card, "state": "NEW", "reps": 1, "lapses": 2})


def test_empty_card_serialization_is_not_a_valid_record():
    # Fresh cards carry stability 0 and difficulty 0, below the stored-card bounds
    with pytest.raises(CardValidationError) as excinfo:
        validate_and_convert(create_empty_card().to_dict())
    assert excinfo.value.field == "stability"


# ---- Batch ----

def test_batch_all_valid(valid_raw_card):
    second = {**valid_raw_card, "stability": 10.0}
    result = validate_and_convert_batch([valid_raw_card, second])

    assert [card.stability for card in result.valid] == [5.8, 10.0]
    assert result.errors == []


def test_batch_collects_errors(valid_raw_card):
    bad_state = {**valid_raw_card, "state": "INVALID"}
    bad_difficulty = {**valid_raw_card, "difficulty": 15}
    records = [valid_raw_card, bad_state, {**valid_raw_card, "stability": 7.0}, bad_difficulty, None]

    result = validate_and_convert_batch(records)

    assert [card.stability for card in result.valid] == [5.8, 7.0]
    assert [error.index for error in result.errors] == [1, 3, 4]
    assert "Invalid state" in result.errors[0].message
    assert result.errors[0].data is bad_state
    assert "Invalid difficulty" in result.errors[1].message
    assert result.errors[2].data is None


def test_batch_continues_past_oversized_numbers(valid_raw_card):
    oversized = {**valid_raw_card, "stability": 10**400}
    result = validate_and_convert_batch([oversized, valid_raw_card])

    assert len(result.valid) == 1
    assert [error.index for error in result.errors] == [0]
    assert "Invalid stability" in result.errors[0].message


def test_batch_logs_each_failure(valid_raw_card, caplog):
    with caplog.at_level("WARNING", logger="fsrs_scheduler.validation"):
        validate_and_convert_batch([{**valid_raw_card, "reps": "x"}, valid_raw_card])
    assert "index 0" in caplog.text


def test_batch_accepts_generators(valid_raw_card):
    result = validate_and_convert_batch(record for record in [valid_raw_card])
    assert len(result.valid) == 1


# ---- Shape check ----

def test_shape_check_accepts_card_like_records(valid_raw_card):
    assert is_card_data_shape(valid_raw_card)
    # Values are not inspected
    assert is_card_data_shape(
        {"due": None, "stability": "x", "difficulty": -4, "state": 9, "reps": [], "lapses": {}}
    )


@pytest.mark.parametrize(
    "obj",
    [
        None,
        "string",
        123,
        ["due", "stability"],
        {},
        {"due": "2024-01-01"},
        {"due": 1, "stability": 1, "difficulty": 1, "state": "NEW", "reps": 0},
    ],
)
def test_shape_check_rejects_other_values(obj):
    assert is_card_data_shape(obj) is False
