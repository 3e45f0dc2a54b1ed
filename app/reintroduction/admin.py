"""
Reintroduction Engine Endpoints

Stateless HTTP transport over the pure engine. Nothing is stored: every
request carries the full protocol snapshot and the current instant.

GET  /api/v1/reintroduction/health                 - Health check
GET  /api/v1/reintroduction/config                 - Static protocol tables
GET  /api/v1/reintroduction/portion/{group}/{day}  - Portion for a test day
POST /api/v1/reintroduction/next-action            - Main decision endpoint
POST /api/v1/reintroduction/validate               - Consistency check only
POST /api/v1/reintroduction/classify               - Tolerance classification
POST /api/v1/reintroduction/washout                - Washout from a severity
POST /api/v1/reintroduction/washout/status         - Washout progress
POST /api/v1/reintroduction/profile                - Per-group tolerance profile

Malformed snapshots are rejected with 422 and a path-qualified issue list.
An inconsistent but well-formed snapshot is NOT an HTTP error: it returns
200 with action = "error" so the client can show every problem.

Version: reintroduction_engine_v1
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from .config import ENGINE_VERSION, protocol_tables
from .engine import DecisionAudit, evaluate_protocol
from .models import (
    DoseRecord,
    FodmapGroup,
    NextAction,
    StateValidationResult,
    SymptomSeverity,
    ToleranceClassification,
    WashoutPeriod,
    WashoutStatus,
    parse_iso_datetime,
)
from .profile import ToleranceProfile, build_tolerance_profile
from .schema import SchemaValidationError, parse_protocol_state, parse_timestamp
from .sequence import InvalidDayNumberError, get_portion_for_day
from .tolerance import classify_tolerance
from .validate import validate_protocol_state
from .washout import calculate_washout, check_washout_status

logger = logging.getLogger(__name__)


# Router
router = APIRouter(
    prefix="/api/v1/reintroduction",
    tags=["reintroduction"],
)


# Request/Response models

class _Body(BaseModel):
    class Config:
        populate_by_name = True
        extra = "forbid"


class NextActionRequest(_Body):
    """Snapshot plus injected current time."""
    state: Dict[str, Any] = Field(description="ProtocolState in the camelCase contract")
    now: str = Field(description="Current instant, ISO-8601 datetime")


class StateRequest(_Body):
    state: Dict[str, Any] = Field(description="ProtocolState in the camelCase contract")


class NextActionResponse(BaseModel):
    """Decision plus audit fingerprints."""
    success: bool = True
    result: NextAction
    audit: DecisionAudit


class ClassifyRequest(_Body):
    doses: List[DoseRecord]


class WashoutRequest(_Body):
    max_severity: SymptomSeverity = Field(alias="maxSeverity")
    start_date: str = Field(alias="startDate", description="ISO-8601 datetime")


class WashoutStatusRequest(_Body):
    washout: WashoutPeriod
    now: str = Field(description="Current instant, ISO-8601 datetime")


class PortionResponse(BaseModel):
    fodmap_group: FodmapGroup = Field(alias="fodmapGroup")
    day_number: int = Field(alias="dayNumber")
    portion: str

    class Config:
        populate_by_name = True


class ReintroductionHealthResponse(BaseModel):
    """Health check response for the reintroduction module."""
    status: str = "ok"
    module: str = "reintroduction_engine"
    version: str = ENGINE_VERSION
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def _schema_error(exc: SchemaValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=exc.to_dict())


def _parse_state_or_422(raw: Dict[str, Any]):
    parsed = parse_protocol_state(raw)
    if not parsed.ok:
        raise _schema_error(SchemaValidationError(parsed.issues))
    return parsed.value


# Endpoints

@router.get("/health", response_model=ReintroductionHealthResponse)
async def reintroduction_health():
    """
    Health check for the reintroduction engine.

    Does not require authentication.
    """
    return ReintroductionHealthResponse()


@router.get("/config")
async def reintroduction_config():
    """Static protocol tables: group order, foods, portions, washout days."""
    return protocol_tables()


@router.get("/portion/{group}/{day_number}", response_model=PortionResponse)
async def portion_for_day(group: FodmapGroup, day_number: int):
    """Portion prescribed for a group on a test day (1-3)."""
    try:
        portion = get_portion_for_day(group, day_number)
    except InvalidDayNumberError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return PortionResponse(fodmap_group=group, day_number=day_number, portion=portion)


@router.post(
    "/next-action",
    response_model=NextActionResponse,
    response_model_exclude_none=True,
)
async def next_action_endpoint(request: NextActionRequest):
    """
    Compute the single next action for a protocol snapshot.

    The response carries audit hashes; equal requests give equal hashes.
    """
    try:
        decision = evaluate_protocol(request.state, request.now)
        return NextActionResponse(result=decision.result, audit=decision.audit)

    except SchemaValidationError as e:
        raise _schema_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Next-action evaluation failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Engine error: {str(e)}")


@router.post("/validate", response_model=StateValidationResult)
async def validate_state_endpoint(request: StateRequest):
    """Run structural then consistency validation without deciding anything."""
    state = _parse_state_or_422(request.state)
    return validate_protocol_state(state)


@router.post(
    "/classify",
    response_model=ToleranceClassification,
    response_model_exclude_none=True,
)
async def classify_endpoint(request: ClassifyRequest):
    """Classify a food test from its doses."""
    return classify_tolerance(request.doses)


@router.post("/washout", response_model=WashoutPeriod)
async def washout_endpoint(request: WashoutRequest):
    """Washout period for a worst severity starting at start_date."""
    try:
        start = parse_iso_datetime(request.start_date)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"startDate {e}")
    return calculate_washout(request.max_severity, start)


@router.post("/washout/status", response_model=WashoutStatus)
async def washout_status_endpoint(request: WashoutStatusRequest):
    """Remaining days of a washout at `now`."""
    try:
        now = parse_timestamp(request.now)
    except SchemaValidationError as e:
        raise _schema_error(e)
    return check_washout_status(request.washout, now)


@router.post("/profile", response_model=ToleranceProfile)
async def profile_endpoint(request: StateRequest):
    """Per-group tolerance profile of the completed tests."""
    state = _parse_state_or_422(request.state)
    return build_tolerance_profile(state)
