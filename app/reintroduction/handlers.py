"""
Protocol Decision Handlers

The three decision procedures the orchestrator dispatches to:

- handle_washout_period: a washout is running
- handle_current_test:   a food test is running
- determine_next_test:   nothing is running; start the next group or finish

Each is a pure function of the snapshot and the injected `now`.
"""

import logging
from datetime import datetime
from typing import List

from .config import TEST_DURATION_DAYS
from .models import (
    ActionType,
    FodmapGroup,
    FoodTestResult,
    Milestone,
    NextAction,
    ProtocolPhase,
    ProtocolState,
    ProtocolSummary,
    ToleranceStatus,
    WashoutPeriod,
)
from .sequence import get_next_group, get_portion_for_day, get_recommended_foods
from .symptoms import analyze_symptoms, max_severity, should_stop_test
from .washout import calculate_washout, check_washout_status

logger = logging.getLogger(__name__)


# =============================================================================
# WASHOUT IN PROGRESS
# =============================================================================

def handle_washout_period(state: ProtocolState, washout: WashoutPeriod, now: datetime) -> NextAction:
    """
    Continue an unfinished washout, or move on once it has ended.

    Completion falls through to next-test determination regardless of
    whether the washout followed a full test or an early stop.
    """
    status = check_washout_status(washout, now)

    if not status.complete:
        return NextAction(
            action=ActionType.CONTINUE_WASHOUT,
            phase=ProtocolPhase.WASHOUT,
            message="Continue low-FODMAP diet during washout period",
            instructions=[
                f"Washout period: {status.days_remaining} days remaining",
                "Avoid all high-FODMAP foods",
                "Monitor symptoms daily",
                "Symptoms should resolve during this period",
            ],
            washout_days_remaining=status.days_remaining,
            next_milestone=Milestone(
                date=washout.end_date,
                description="Washout period ends, ready for next test",
            ),
        )

    logger.debug("Washout ended at %s, determining next test", washout.end_date.isoformat())
    return determine_next_test(state)


# =============================================================================
# TEST IN PROGRESS
# =============================================================================

def _washout_action(test: FoodTestResult, washout: WashoutPeriod, message: str,
                    instructions: List[str]) -> NextAction:
    return NextAction(
        action=ActionType.CONTINUE_WASHOUT,
        phase=ProtocolPhase.WASHOUT,
        current_group=test.fodmap_group,
        current_food=test.food_item,
        message=message,
        instructions=instructions,
        washout_days_remaining=washout.duration_days,
        next_milestone=Milestone(
            date=washout.end_date,
            description="Washout complete, ready for next food",
        ),
    )


def handle_current_test(state: ProtocolState, test: FoodTestResult, now: datetime) -> NextAction:
    """
    Decide the next step of a running food test.

    1. A stopping reaction on the latest dose abandons the test and starts
       a washout sized by that reaction.
    2. After all three doses, the test ends and the washout is sized by the
       worst reaction across the whole test.
    3. Otherwise the next dose is due.

    Washouts computed here start at `now`.
    """
    completed_doses = len(test.doses)

    if completed_doses > 0:
        last_dose = test.doses[-1]
        severity = analyze_symptoms(last_dose.symptoms)

        if should_stop_test(severity, last_dose.day_number):
            washout = calculate_washout(severity, now)
            logger.info(
                "Stopping %s test on day %d after %s symptoms",
                test.food_item, last_dose.day_number, severity.value
            )
            return _washout_action(
                test,
                washout,
                message=f"Test stopped due to {severity.value} symptoms. Starting washout period.",
                instructions=[
                    "Stop testing this food immediately",
                    "Return to low-FODMAP diet",
                    f"Washout period: {washout.duration_days} days",
                    "Symptoms should resolve during washout",
                ],
            )

    next_day_number = completed_doses + 1

    if next_day_number > TEST_DURATION_DAYS:
        worst = max_severity(analyze_symptoms(dose.symptoms) for dose in test.doses)
        washout = calculate_washout(worst, now)
        return _washout_action(
            test,
            washout,
            message=f"Test complete for {test.food_item}. Starting washout period.",
            instructions=[
                "All 3 doses completed",
                "Return to low-FODMAP diet",
                f"Washout period: {washout.duration_days} days",
            ],
        )

    portion = get_portion_for_day(test.fodmap_group, next_day_number)

    return NextAction(
        action=ActionType.START_DOSE,
        phase=ProtocolPhase.TESTING,
        current_group=test.fodmap_group,
        current_food=test.food_item,
        current_day_number=next_day_number,
        recommended_portion=portion,
        message=f"Day {next_day_number} of testing {test.food_item}",
        instructions=[
            f"Consume {portion} of {test.food_item}",
            "Monitor symptoms for 24 hours",
            "Record any symptoms immediately",
            "Continue low-FODMAP diet otherwise",
        ],
    )


# =============================================================================
# NEXT TEST / COMPLETION
# =============================================================================

def generate_summary(state: ProtocolState) -> ProtocolSummary:
    """
    Partition completed tests by tolerance status.

    Untested results are counted in the total but listed nowhere.
    Groups are listed once each, in order of first completion.
    """
    by_status = {
        ToleranceStatus.TOLERATED: [],
        ToleranceStatus.SENSITIVE: [],
        ToleranceStatus.TRIGGER: [],
    }
    groups_completed: List[FodmapGroup] = []

    for test in state.completed_tests:
        if test.tolerance_status in by_status:
            by_status[test.tolerance_status].append(test.food_item)
        if test.fodmap_group not in groups_completed:
            groups_completed.append(test.fodmap_group)

    return ProtocolSummary(
        total_tests_completed=len(state.completed_tests),
        groups_completed=groups_completed,
        tolerated_foods=by_status[ToleranceStatus.TOLERATED],
        sensitive_foods=by_status[ToleranceStatus.SENSITIVE],
        trigger_foods=by_status[ToleranceStatus.TRIGGER],
    )


def determine_next_test(state: ProtocolState) -> NextAction:
    """Start the next untested group, or complete the protocol."""
    next_group = get_next_group(state)

    if next_group is None:
        return NextAction(
            action=ActionType.PROTOCOL_COMPLETE,
            phase=ProtocolPhase.COMPLETED,
            message="Congratulations! FODMAP reintroduction protocol complete.",
            instructions=[
                "All FODMAP groups tested",
                "Review your tolerance results",
                "Consult with dietitian for personalized diet plan",
            ],
            summary=generate_summary(state),
        )

    first_food = get_recommended_foods(next_group)[0]
    portion = get_portion_for_day(next_group, 1)

    return NextAction(
        action=ActionType.START_NEXT_GROUP,
        phase=ProtocolPhase.TESTING,
        current_group=next_group,
        current_food=first_food,
        current_day_number=1,
        recommended_portion=portion,
        message=f"Starting new FODMAP group: {next_group.value}",
        instructions=[
            f"Testing {next_group.value} group",
            f"First food: {first_food}",
            f"Day 1: Consume {portion}",
            "Monitor symptoms for 24 hours",
        ],
    )
