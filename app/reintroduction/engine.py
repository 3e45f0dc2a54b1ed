"""
Reintroduction Engine Orchestrator

Main entry point: (ProtocolState snapshot, now) -> NextAction.

Pipeline:
1. Structural validation (malformed input raises SchemaValidationError)
2. Consistency validation (problems become an `error` action, never raised)
3. Resolve the protocol stage: idle, dosing or washout
4. Dispatch to the matching handler

The engine is:
- PURE: no I/O, no clock reads, no mutation of the snapshot
- STATELESS: all history arrives with every call
- DETERMINISTIC: equal (state, now) -> equal NextAction

Version: reintroduction_engine_v1
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Union

from pydantic import BaseModel, Field

from app.shared.hashing import canonicalize_and_hash

from .config import ENGINE_VERSION
from .handlers import determine_next_test, handle_current_test, handle_washout_period
from .models import ActionType, FoodTestResult, NextAction, ProtocolState, WashoutPeriod
from .schema import SchemaValidationError, parse_protocol_state, parse_timestamp
from .validate import validate_protocol_state

logger = logging.getLogger(__name__)


# =============================================================================
# PROTOCOL STAGE
# =============================================================================

@dataclass(frozen=True)
class IdleStage:
    """Between tests: nothing running."""


@dataclass(frozen=True)
class DosingStage:
    """A food test is running."""
    test: FoodTestResult


@dataclass(frozen=True)
class WashoutStage:
    """A washout is running."""
    washout: WashoutPeriod


ProtocolStage = Union[IdleStage, DosingStage, WashoutStage]


def resolve_stage(state: ProtocolState) -> ProtocolStage:
    """
    Collapse the optional test/washout pair into one stage.

    Only meaningful for a state that passed validate_protocol_state, where
    at most one of the two is present. Washout wins otherwise.
    """
    if state.current_washout is not None:
        return WashoutStage(washout=state.current_washout)
    if state.current_test is not None:
        return DosingStage(test=state.current_test)
    return IdleStage()


# =============================================================================
# ENTRY POINT
# =============================================================================

def calculate_next_action(
    state: Union[ProtocolState, Dict[str, Any]],
    now: Union[datetime, str],
) -> NextAction:
    """
    Calculate the next action for a protocol snapshot.

    Args:
        state: ProtocolState, or a raw JSON-like dict in the camelCase contract
        now: Current instant, injected by the caller

    Returns:
        NextAction the patient should take

    Raises:
        SchemaValidationError: state or now is structurally malformed
    """
    parsed = parse_protocol_state(state)
    if not parsed.ok:
        logger.warning("Rejected malformed protocol state (%d issue(s))", len(parsed.issues))
        raise SchemaValidationError(parsed.issues)

    snapshot = parsed.value
    current_time = parse_timestamp(now)

    validation = validate_protocol_state(snapshot)
    if not validation.valid:
        logger.warning(
            "Inconsistent protocol state for user %s: %d error(s)",
            snapshot.user_id, len(validation.errors)
        )
        return NextAction(
            action=ActionType.ERROR,
            phase=snapshot.phase,
            message="Invalid protocol state detected",
            instructions=["Please review and correct the following errors:", *validation.errors],
            errors=list(validation.errors),
        )

    stage = resolve_stage(snapshot)
    logger.debug("Dispatching user %s in %s", snapshot.user_id, type(stage).__name__)

    if isinstance(stage, WashoutStage):
        result = handle_washout_period(snapshot, stage.washout, current_time)
    elif isinstance(stage, DosingStage):
        result = handle_current_test(snapshot, stage.test, current_time)
    else:
        result = determine_next_test(snapshot)

    logger.info("User %s -> %s (%s)", snapshot.user_id, result.action.value, result.phase.value)
    return result


# =============================================================================
# AUDITED DECISION
# =============================================================================

class DecisionAudit(BaseModel):
    """Fingerprints tying a decision to the exact snapshot and instant."""
    engine_version: str = ENGINE_VERSION
    evaluated_at: datetime = Field(description="The injected `now`, not the wall clock")
    input_hash: str
    output_hash: str
    action: ActionType

    class Config:
        frozen = True


class EngineDecision(BaseModel):
    """NextAction plus its audit trail."""
    result: NextAction
    audit: DecisionAudit

    class Config:
        frozen = True


def evaluate_protocol(
    state: Union[ProtocolState, Dict[str, Any]],
    now: Union[datetime, str],
) -> EngineDecision:
    """
    Run the engine and fingerprint input and output.

    Equal inputs give equal hashes, so callers can memoize decisions
    keyed on input_hash.

    Raises:
        SchemaValidationError: state or now is structurally malformed
    """
    parsed = parse_protocol_state(state)
    if not parsed.ok:
        raise SchemaValidationError(parsed.issues)
    current_time = parse_timestamp(now)

    result = calculate_next_action(parsed.value, current_time)

    audit = DecisionAudit(
        evaluated_at=current_time,
        input_hash=canonicalize_and_hash({"state": parsed.value, "now": current_time}),
        output_hash=canonicalize_and_hash(result),
        action=result.action,
    )
    return EngineDecision(result=result, audit=audit)
