"""
Group Sequence Manager

Resolves the active testing order and the next untested group, plus the
static food/portion lookups used when a group or dose starts.
"""

from typing import List, Optional

from .config import PORTION_PROGRESSION, RECOMMENDED_FOODS, STANDARD_GROUP_SEQUENCE, TEST_DURATION_DAYS
from .models import FodmapGroup, ProtocolState


class InvalidDayNumberError(ValueError):
    """Raised when a portion is requested for a day outside the 3-day test."""

    def __init__(self, day_number: int):
        self.day_number = day_number
        super().__init__(f"Invalid day number: {day_number}. Must be 1, 2, or 3.")


def get_group_sequence(state: ProtocolState) -> List[FodmapGroup]:
    """Custom sequence when the snapshot carries one, else the standard order."""
    if state.group_sequence is not None:
        return list(state.group_sequence)
    return list(STANDARD_GROUP_SEQUENCE)


def get_next_group(state: ProtocolState) -> Optional[FodmapGroup]:
    """
    First group in the active sequence without a completed test.

    Returns None once every group in the sequence has at least one
    completed test, meaning the protocol is finished.
    """
    completed_groups = {test.fodmap_group for test in state.completed_tests}

    for group in get_group_sequence(state):
        if group not in completed_groups:
            return group
    return None


def get_recommended_foods(group: FodmapGroup) -> List[str]:
    """Suggested test foods for a group, default first."""
    return list(RECOMMENDED_FOODS[FodmapGroup(group)])


def get_portion_for_day(group: FodmapGroup, day_number: int) -> str:
    """
    Portion to eat on a given test day.

    Raises:
        InvalidDayNumberError: day_number is not 1, 2 or 3
    """
    if not isinstance(day_number, int) or isinstance(day_number, bool) \
            or day_number < 1 or day_number > TEST_DURATION_DAYS:
        raise InvalidDayNumberError(day_number)
    return PORTION_PROGRESSION[FodmapGroup(group)][day_number - 1]
