"""
FODMAP Reintroduction Engine

Protocol decision engine: given the full history of a patient's
reintroduction protocol and the current instant, compute the single
next action (dose, washout, next group, or completion).

This module answers ONE question only:
"What should the patient do next?"

Design Principles:
- PURE: no persistence, no network, no clock reads
- STATELESS: the caller supplies the whole snapshot on every call
- DETERMINISTIC: same (state, now) -> same decision

Version: reintroduction_engine_v1
"""

from .config import (
    ENGINE_VERSION,
    PORTION_PROGRESSION,
    RECOMMENDED_FOODS,
    STANDARD_GROUP_SEQUENCE,
    WASHOUT_DURATION,
    get_group_protocol,
)
from .models import (
    ActionType,
    DoseRecord,
    FodmapGroup,
    FoodTestResult,
    NextAction,
    ProtocolPhase,
    ProtocolState,
    SymptomRecord,
    SymptomSeverity,
    ToleranceStatus,
    WashoutPeriod,
)
from .engine import calculate_next_action, evaluate_protocol, resolve_stage
from .schema import SchemaValidationError, parse_protocol_state
from .sequence import (
    InvalidDayNumberError,
    get_group_sequence,
    get_next_group,
    get_portion_for_day,
    get_recommended_foods,
)
from .symptoms import analyze_symptoms, should_stop_test
from .tolerance import classify_tolerance
from .validate import validate_protocol_state
from .washout import calculate_washout, check_washout_status
from .profile import build_tolerance_profile

__all__ = [
    # Models
    "ActionType",
    "DoseRecord",
    "FodmapGroup",
    "FoodTestResult",
    "NextAction",
    "ProtocolPhase",
    "ProtocolState",
    "SymptomRecord",
    "SymptomSeverity",
    "ToleranceStatus",
    "WashoutPeriod",
    # Tables
    "ENGINE_VERSION",
    "PORTION_PROGRESSION",
    "RECOMMENDED_FOODS",
    "STANDARD_GROUP_SEQUENCE",
    "WASHOUT_DURATION",
    "get_group_protocol",
    # Engine
    "calculate_next_action",
    "evaluate_protocol",
    "resolve_stage",
    "SchemaValidationError",
    "parse_protocol_state",
    "validate_protocol_state",
    # Helpers
    "analyze_symptoms",
    "should_stop_test",
    "calculate_washout",
    "check_washout_status",
    "classify_tolerance",
    "InvalidDayNumberError",
    "get_group_sequence",
    "get_next_group",
    "get_recommended_foods",
    "get_portion_for_day",
    "build_tolerance_profile",
]

__version__ = ENGINE_VERSION
