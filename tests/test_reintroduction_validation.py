"""
Reintroduction Validation Tests

Two layers guard the engine:
- Schema boundary: malformed snapshots are rejected with path-qualified issues
- Consistency checks: well-formed but contradictory snapshots are reported,
  all problems at once

Version: reintroduction_engine_v1
"""

from datetime import datetime, timezone

import pytest

from app.reintroduction.models import ProtocolState, parse_iso_datetime
from app.reintroduction.schema import (
    SchemaIssue,
    SchemaValidationError,
    parse_protocol_state,
    parse_timestamp,
)
from app.reintroduction.validate import (
    MSG_COMPLETED_DOSES,
    MSG_COMPLETED_PHASE,
    MSG_CURRENT_DOSES,
    MSG_TEST_AND_WASHOUT,
    MSG_WASHOUT_DATES,
    MSG_WASHOUT_PHASE,
    validate_protocol_state,
)


# ============================================================================
# TEST FIXTURES
# ============================================================================

def dose(day: int, severity: str = "none") -> dict:
    return {
        "date": f"2024-01-0{day}T09:00:00Z",
        "dayNumber": day,
        "foodItem": "Honey",
        "portionSize": "1 tsp",
        "portionAmount": 5,
        "symptoms": [
            {"timestamp": f"2024-01-0{day}T12:00:00Z", "severity": severity, "type": "bloating"}
        ],
    }


def food_test(days=(1,), food: str = "Honey", group: str = "fructose") -> dict:
    return {
        "foodItem": food,
        "fodmapGroup": group,
        "doses": [dose(d) for d in days],
        "toleranceStatus": "tolerated",
        "startDate": "2024-01-01T09:00:00Z",
    }


def washout(start: str = "2024-01-04T09:00:00Z", end: str = "2024-01-07T09:00:00Z") -> dict:
    return {
        "startDate": start,
        "endDate": end,
        "durationDays": 3,
        "reason": "none symptoms require 3-day washout",
    }


def raw_state(**overrides) -> dict:
    state = {
        "userId": "user-1",
        "startDate": "2024-01-01T00:00:00Z",
        "completedTests": [],
        "phase": "testing",
    }
    state.update(overrides)
    return state


def parse(data: dict) -> ProtocolState:
    result = parse_protocol_state(data)
    assert result.ok, result.issues
    return result.value


def issue_paths(data) -> list:
    result = parse_protocol_state(data)
    assert result.ok is False
    return [issue.path for issue in result.issues]


# ============================================================================
# TIMESTAMPS
# ============================================================================

class TestParseIsoDatetime:
    """ISO-8601 datetimes only; naive values read as UTC."""

    def test_z_suffix(self):
        assert parse_iso_datetime("2024-01-01T08:00:00Z") == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)

    def test_offset_preserved_as_instant(self):
        value = parse_iso_datetime("2024-01-01T10:00:00+02:00")
        assert value == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)

    def test_space_separator_accepted(self):
        value = parse_iso_datetime("2024-01-01 08:00:00Z")
        assert value == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)

    def test_space_separator_without_offset_is_utc(self):
        value = parse_iso_datetime("2024-01-01 08:00:00")
        assert value == datetime(2024, 1, 1, 8, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_iso_datetime("2024-01-01T08:00:00").tzinfo is not None

    def test_datetime_passthrough(self):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert parse_iso_datetime(value) is value

    @pytest.mark.parametrize("bad", ["2024-01-01", "not a date", "", 1704067200, None])
    def test_rejects_non_datetimes(self, bad):
        with pytest.raises(ValueError):
            parse_iso_datetime(bad)


# ============================================================================
# SCHEMA BOUNDARY
# ============================================================================

class TestParseProtocolState:
    """Structural validation with JSON paths."""

    def test_minimal_state_ok(self):
        state = parse(raw_state())
        assert state.user_id == "user-1"
        assert state.group_sequence is None
        assert state.current_test is None

    def test_full_state_ok(self):
        state = parse(raw_state(
            currentTest=food_test(days=(1, 2)),
            completedTests=[food_test(group="lactose", food="Milk")],
            groupSequence=["lactose", "fructose"],
        ))
        assert state.current_test.doses[1].day_number == 2
        assert state.completed_tests[0].food_item == "Milk"

    def test_parsed_state_passes_through(self):
        state = parse(raw_state())
        assert parse_protocol_state(state).value is state

    def test_non_object_rejected(self):
        result = parse_protocol_state(["not", "a", "state"])
        assert result.ok is False
        assert result.issues == [SchemaIssue(path="", reason="expected an object, got list")]

    def test_missing_required_field(self):
        data = raw_state()
        del data["userId"]
        assert "userId" in issue_paths(data)

    def test_unknown_group(self):
        test = food_test()
        test["fodmapGroup"] = "sorbitol"
        assert "currentTest.fodmapGroup" in issue_paths(raw_state(currentTest=test))

    def test_unknown_severity(self):
        test = food_test()
        test["doses"][0]["symptoms"][0]["severity"] = "extreme"
        assert "currentTest.doses.0.symptoms.0.severity" in issue_paths(raw_state(currentTest=test))

    def test_day_number_out_of_range(self):
        test = food_test()
        test["doses"][0]["dayNumber"] = 4
        assert "currentTest.doses.0.dayNumber" in issue_paths(raw_state(currentTest=test))

    def test_empty_doses_rejected(self):
        test = food_test()
        test["doses"] = []
        assert "currentTest.doses" in issue_paths(raw_state(currentTest=test))

    def test_too_many_doses_rejected(self):
        test = food_test(days=(1, 2, 3))
        test["doses"].append(dose(3))
        assert "currentTest.doses" in issue_paths(raw_state(currentTest=test))

    def test_non_positive_portion_amount(self):
        test = food_test()
        test["doses"][0]["portionAmount"] = 0
        assert "currentTest.doses.0.portionAmount" in issue_paths(raw_state(currentTest=test))

    @pytest.mark.parametrize("days", [2, 8])
    def test_washout_duration_bounds(self, days):
        period = washout()
        period["durationDays"] = days
        assert "currentWashout.durationDays" in issue_paths(raw_state(currentWashout=period))

    def test_date_only_string_rejected(self):
        assert "startDate" in issue_paths(raw_state(startDate="2024-01-01"))

    def test_numeric_date_rejected(self):
        assert "startDate" in issue_paths(raw_state(startDate=1704067200))

    def test_unknown_phase(self):
        assert "phase" in issue_paths(raw_state(phase="paused"))

    def test_unknown_keys_ignored(self):
        """Persisted rows carry ids and audit columns; they are dropped."""
        test = food_test()
        test["id"] = 17
        test["doses"][0]["createdAt"] = "2024-01-01T09:00:00Z"
        state = parse(raw_state(id="row-1", currentTest=test))
        assert state.current_test.food_item == "Honey"
        assert "id" not in state.model_dump(by_alias=True)

    @pytest.mark.parametrize("value", ["1", True, 1.0])
    def test_day_number_must_be_integer(self, value):
        test = food_test()
        test["doses"][0]["dayNumber"] = value
        assert "currentTest.doses.0.dayNumber" in issue_paths(raw_state(currentTest=test))

    def test_portion_amount_string_rejected(self):
        test = food_test()
        test["doses"][0]["portionAmount"] = "5"
        assert "currentTest.doses.0.portionAmount" in issue_paths(raw_state(currentTest=test))

    def test_portion_amount_accepts_int_and_float(self):
        test = food_test()
        test["doses"][0]["portionAmount"] = 2.5
        assert parse(raw_state(currentTest=test)).current_test.doses[0].portion_amount == 2.5

    def test_washout_duration_float_rejected(self):
        period = washout()
        period["durationDays"] = 3.0
        assert "currentWashout.durationDays" in issue_paths(
            raw_state(phase="washout", currentWashout=period)
        )

    def test_numeric_user_id_rejected(self):
        assert "userId" in issue_paths(raw_state(userId=42))

    def test_numeric_food_item_rejected(self):
        test = food_test()
        test["foodItem"] = 7
        assert "currentTest.foodItem" in issue_paths(raw_state(currentTest=test))

    def test_numeric_symptom_type_rejected(self):
        test = food_test()
        test["doses"][0]["symptoms"][0]["type"] = 3
        assert "currentTest.doses.0.symptoms.0.type" in issue_paths(raw_state(currentTest=test))

    def test_all_issues_reported(self):
        data = raw_state(phase="paused", startDate="yesterday")
        paths = issue_paths(data)
        assert "phase" in paths
        assert "startDate" in paths


class TestSchemaValidationError:
    """Error carries the issue list and serializes for transport."""

    def test_message_and_dict(self):
        issues = [SchemaIssue(path="phase", reason="bad phase")]
        error = SchemaValidationError(issues)
        assert "phase: bad phase" in str(error)
        assert error.to_dict() == {
            "error": "SCHEMA_VALIDATION_ERROR",
            "subject": "ProtocolState",
            "issues": [{"path": "phase", "reason": "bad phase"}],
        }

    def test_is_value_error(self):
        assert issubclass(SchemaValidationError, ValueError)

    def test_long_issue_list_truncated_in_message(self):
        issues = [SchemaIssue(path=f"p{i}", reason="bad") for i in range(8)]
        assert "(+3 more)" in str(SchemaValidationError(issues))

    def test_parse_timestamp_rejects_date_only(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            parse_timestamp("2024-01-01")
        assert exc_info.value.subject == "now"
        assert exc_info.value.issues[0].path == "now"


# ============================================================================
# CONSISTENCY CHECKS
# ============================================================================

class TestValidateProtocolState:
    """Cross-field rules, accumulated in a fixed order."""

    def test_fresh_state_valid(self):
        result = validate_protocol_state(parse(raw_state()))
        assert result.valid is True
        assert result.errors == []

    def test_testing_without_current_test_is_valid(self):
        state = parse(raw_state(completedTests=[food_test()]))
        assert validate_protocol_state(state).valid is True

    def test_valid_washout(self):
        state = parse(raw_state(phase="washout", currentWashout=washout()))
        assert validate_protocol_state(state).valid is True

    def test_test_and_washout_conflict(self):
        state = parse(raw_state(currentTest=food_test(), currentWashout=washout()))
        result = validate_protocol_state(state)
        assert result.valid is False
        assert result.errors == [MSG_TEST_AND_WASHOUT]

    def test_current_doses_not_starting_at_one(self):
        state = parse(raw_state(currentTest=food_test(days=(2,))))
        assert validate_protocol_state(state).errors == [MSG_CURRENT_DOSES]

    def test_current_doses_with_gap(self):
        state = parse(raw_state(currentTest=food_test(days=(1, 3))))
        assert validate_protocol_state(state).errors == [MSG_CURRENT_DOSES]

    def test_current_doses_out_of_order(self):
        state = parse(raw_state(currentTest=food_test(days=(2, 1))))
        assert validate_protocol_state(state).errors == [MSG_CURRENT_DOSES]

    def test_completed_doses_name_the_food(self):
        state = parse(raw_state(completedTests=[
            food_test(food="Honey"),
            food_test(days=(1, 1), food="Mango"),
        ]))
        errors = validate_protocol_state(state).errors
        assert errors == [MSG_COMPLETED_DOSES.format(food="Mango")]
        assert "Mango" in errors[0]

    def test_washout_end_equal_to_start(self):
        period = washout(start="2024-01-04T09:00:00Z", end="2024-01-04T09:00:00Z")
        state = parse(raw_state(phase="washout", currentWashout=period))
        assert validate_protocol_state(state).errors == [MSG_WASHOUT_DATES]

    def test_washout_phase_without_washout(self):
        state = parse(raw_state(phase="washout"))
        assert validate_protocol_state(state).errors == [MSG_WASHOUT_PHASE]

    def test_completed_phase_with_active_test(self):
        state = parse(raw_state(phase="completed", currentTest=food_test()))
        assert validate_protocol_state(state).errors == [MSG_COMPLETED_PHASE]

    def test_completed_phase_with_washout(self):
        state = parse(raw_state(phase="completed", currentWashout=washout()))
        assert validate_protocol_state(state).errors == [MSG_COMPLETED_PHASE]

    def test_errors_accumulate_in_order(self):
        state = parse(raw_state(
            phase="completed",
            currentTest=food_test(days=(2,)),
            currentWashout=washout(end="2024-01-03T09:00:00Z"),
            completedTests=[food_test(days=(3,), food="Mango")],
        ))
        assert validate_protocol_state(state).errors == [
            MSG_TEST_AND_WASHOUT,
            MSG_CURRENT_DOSES,
            MSG_COMPLETED_DOSES.format(food="Mango"),
            MSG_WASHOUT_DATES,
            MSG_COMPLETED_PHASE,
        ]
