"""
Reintroduction Engine Models

Pydantic models for the protocol snapshot (input), the decision (output),
and the small result records shared by the engine helpers.

JSON field names are camelCase (the contract used by the mobile client and
the persistence layer); Python attributes are snake_case. Models accept
either form and serialize by alias.

Version: reintroduction_engine_v1
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class FodmapGroup(str, Enum):
    """Testable FODMAP groups."""
    FRUCTOSE = "fructose"
    LACTOSE = "lactose"
    FRUCTANS = "fructans"
    GALACTANS = "galactans"
    POLYOLS = "polyols"


class SymptomSeverity(str, Enum):
    """Severity of a logged symptom. Ordering lives in config.SEVERITY_ORDER."""
    NONE = "none"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class ToleranceStatus(str, Enum):
    """Post-hoc classification of a tested food."""
    TOLERATED = "tolerated"
    SENSITIVE = "sensitive"
    TRIGGER = "trigger"
    UNTESTED = "untested"


class ProtocolPhase(str, Enum):
    """Coarse state of the overall protocol."""
    TESTING = "testing"
    WASHOUT = "washout"
    COMPLETED = "completed"


class ActionType(str, Enum):
    """The single instruction the engine hands back to the caller."""
    START_DOSE = "start_dose"
    CONTINUE_WASHOUT = "continue_washout"
    START_NEXT_FOOD = "start_next_food"  # reserved, never emitted
    START_NEXT_GROUP = "start_next_group"
    PROTOCOL_COMPLETE = "protocol_complete"
    ERROR = "error"


# =============================================================================
# TIMESTAMPS
# =============================================================================

def parse_iso_datetime(value: Any) -> datetime:
    """
    Parse an ISO-8601 datetime string (or pass a datetime through).

    Date-only strings and numbers are rejected. Values without an offset
    are read as UTC so that all arithmetic happens on aware datetimes.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        if "T" not in value and " " not in value.strip():
            raise ValueError("must be an ISO-8601 datetime string")
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("must be an ISO-8601 datetime string")
    else:
        raise ValueError("must be an ISO-8601 datetime string")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class _Record(BaseModel):
    """Base for snapshot records: immutable. Unknown keys (row ids, audit columns) are dropped."""

    class Config:
        extra = "ignore"
        frozen = True
        populate_by_name = True


# =============================================================================
# INPUT RECORDS
# =============================================================================

class SymptomRecord(_Record):
    """One logged symptom."""
    timestamp: datetime
    severity: SymptomSeverity
    symptom_type: str = Field(
        alias="type",
        strict=True,
        description="Free-form symptom category e.g. 'bloating', 'pain'"
    )
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _iso_timestamp(cls, v):
        return parse_iso_datetime(v)


class DoseRecord(_Record):
    """One day's food exposure within a 3-day test."""
    date: datetime
    day_number: int = Field(alias="dayNumber", ge=1, le=3, strict=True)
    food_item: str = Field(alias="foodItem", strict=True)
    portion_size: str = Field(
        alias="portionSize",
        strict=True,
        description="Display string e.g. '1 tsp', '1/2 cup'"
    )
    portion_amount: float = Field(alias="portionAmount", gt=0, strict=True)
    symptoms: List[SymptomRecord]
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, v):
        return parse_iso_datetime(v)


class FoodTestResult(_Record):
    """A completed or in-progress test of a single food."""
    food_item: str = Field(alias="foodItem", strict=True)
    fodmap_group: FodmapGroup = Field(alias="fodmapGroup")
    doses: List[DoseRecord] = Field(min_length=1, max_length=3)
    tolerance_status: ToleranceStatus = Field(alias="toleranceStatus")
    max_tolerated_portion: Optional[str] = Field(default=None, alias="maxToleratedPortion")
    trigger_portion: Optional[str] = Field(default=None, alias="triggerPortion")
    start_date: datetime = Field(alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _iso_dates(cls, v):
        if v is None:
            return v
        return parse_iso_datetime(v)


class WashoutPeriod(_Record):
    """A mandatory recovery interval between food tests."""
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")
    duration_days: int = Field(alias="durationDays", ge=3, le=7, strict=True)
    reason: str = Field(strict=True)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _iso_dates(cls, v):
        return parse_iso_datetime(v)


class ProtocolState(_Record):
    """
    Complete, caller-owned snapshot of a patient's protocol.

    The engine never mutates it. current_test and current_washout are
    mutually exclusive; that rule is checked by the state validator so that
    a violation is reported alongside every other problem.
    """
    user_id: str = Field(alias="userId", strict=True)
    start_date: datetime = Field(alias="startDate")
    group_sequence: Optional[List[FodmapGroup]] = Field(
        default=None,
        alias="groupSequence",
        description="Custom group order. Standard order is used when absent."
    )
    completed_tests: List[FoodTestResult] = Field(alias="completedTests")
    current_test: Optional[FoodTestResult] = Field(default=None, alias="currentTest")
    current_washout: Optional[WashoutPeriod] = Field(default=None, alias="currentWashout")
    phase: ProtocolPhase

    @field_validator("start_date", mode="before")
    @classmethod
    def _iso_start(cls, v):
        return parse_iso_datetime(v)


# =============================================================================
# OUTPUT RECORDS
# =============================================================================

class Milestone(_Record):
    """The next date the patient should look forward to."""
    date: datetime
    description: str


class ProtocolSummary(_Record):
    """Final tally emitted with protocol_complete."""
    total_tests_completed: int = Field(alias="totalTestsCompleted", ge=0)
    groups_completed: List[FodmapGroup] = Field(alias="groupsCompleted")
    tolerated_foods: List[str] = Field(alias="toleratedFoods")
    sensitive_foods: List[str] = Field(alias="sensitiveFoods")
    trigger_foods: List[str] = Field(alias="triggerFoods")


class NextAction(_Record):
    """The engine's single decision."""
    action: ActionType
    phase: ProtocolPhase
    current_group: Optional[FodmapGroup] = Field(default=None, alias="currentGroup")
    current_food: Optional[str] = Field(default=None, alias="currentFood")
    current_day_number: Optional[int] = Field(default=None, alias="currentDayNumber", ge=1, le=3)
    recommended_portion: Optional[str] = Field(default=None, alias="recommendedPortion")
    message: str
    instructions: List[str]
    next_milestone: Optional[Milestone] = Field(default=None, alias="nextMilestone")
    washout_days_remaining: Optional[int] = Field(default=None, alias="washoutDaysRemaining", ge=0)
    summary: Optional[ProtocolSummary] = None
    errors: Optional[List[str]] = None

    def to_dict(self) -> dict:
        """JSON-ready dict with camelCase keys and absent optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# HELPER RESULTS
# =============================================================================

class WashoutStatus(_Record):
    """Progress of a washout against a given instant."""
    complete: bool
    days_remaining: int = Field(alias="daysRemaining", ge=0)


class ToleranceClassification(_Record):
    """Outcome of classifying one food test's doses."""
    status: ToleranceStatus
    max_tolerated_portion: Optional[str] = Field(default=None, alias="maxToleratedPortion")
    trigger_portion: Optional[str] = Field(default=None, alias="triggerPortion")


class StateValidationResult(_Record):
    """Accumulated consistency problems of a ProtocolState."""
    valid: bool
    errors: List[str] = Field(default_factory=list)
