"""
Protocol State Consistency Validation

Cross-field checks that a structurally valid ProtocolState must also pass.
All violations are collected; nothing is raised, so the caller can show
every problem at once.
"""

from typing import List, Sequence

from .models import DoseRecord, ProtocolPhase, ProtocolState, StateValidationResult

MSG_TEST_AND_WASHOUT = "Cannot have both active test and washout period"
MSG_CURRENT_DOSES = "Dose day numbers must be sequential starting from 1"
MSG_COMPLETED_DOSES = "Dose day numbers must be sequential starting from 1 in completed test for {food}"
MSG_WASHOUT_DATES = "Washout end date must be after start date"
MSG_WASHOUT_PHASE = 'Phase is "washout" but no current washout period exists'
MSG_COMPLETED_PHASE = 'Phase is "completed" but current test or washout still exists'


def _is_sequential(doses: Sequence[DoseRecord]) -> bool:
    """Day numbers read 1, 2, ... in list order."""
    return all(dose.day_number == i for i, dose in enumerate(doses, start=1))


def validate_protocol_state(state: ProtocolState) -> StateValidationResult:
    """
    Validate the protocol state for consistency.

    Checks:
    1. Active test and washout are mutually exclusive
    2. Dose numbering of the current test is 1, 2, ...
    3. Dose numbering of every completed test is 1, 2, ...
    4. Washout ends strictly after it starts
    5. Phase agrees with which sub-state is present

    Note: phase "testing" without a current test is legal (between tests).
    """
    errors: List[str] = []

    if state.current_test is not None and state.current_washout is not None:
        errors.append(MSG_TEST_AND_WASHOUT)

    if state.current_test is not None and not _is_sequential(state.current_test.doses):
        errors.append(MSG_CURRENT_DOSES)

    for test in state.completed_tests:
        if not _is_sequential(test.doses):
            errors.append(MSG_COMPLETED_DOSES.format(food=test.food_item))

    washout = state.current_washout
    if washout is not None and washout.end_date <= washout.start_date:
        errors.append(MSG_WASHOUT_DATES)

    if state.phase == ProtocolPhase.WASHOUT and washout is None:
        errors.append(MSG_WASHOUT_PHASE)

    if state.phase == ProtocolPhase.COMPLETED and (
        state.current_test is not None or washout is not None
    ):
        errors.append(MSG_COMPLETED_PHASE)

    return StateValidationResult(valid=not errors, errors=errors)
