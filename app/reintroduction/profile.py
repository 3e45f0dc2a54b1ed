"""
Tolerance Profile

Per-group view of a patient's results, for report and history screens.
Pure aggregation over completed tests; rendering lives elsewhere.

A group's overall status is the worst status among its tested foods
(trigger > sensitive > tolerated). A group with no completed test is
untested.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .models import FodmapGroup, ProtocolState, ToleranceStatus
from .sequence import get_group_sequence

# Higher = worse. Untested never outranks a real result.
_STATUS_RANK: Dict[ToleranceStatus, int] = {
    ToleranceStatus.UNTESTED: 0,
    ToleranceStatus.TOLERATED: 1,
    ToleranceStatus.SENSITIVE: 2,
    ToleranceStatus.TRIGGER: 3,
}


class ProfileFood(BaseModel):
    name: str
    status: ToleranceStatus
    max_tolerated_portion: Optional[str] = Field(default=None, alias="maxToleratedPortion")
    trigger_portion: Optional[str] = Field(default=None, alias="triggerPortion")

    class Config:
        populate_by_name = True
        frozen = True


class GroupTolerance(BaseModel):
    fodmap_group: FodmapGroup = Field(alias="fodmapGroup")
    status: ToleranceStatus
    tested_foods: List[ProfileFood] = Field(alias="testedFoods")

    class Config:
        populate_by_name = True
        frozen = True


class ToleranceProfileSummary(BaseModel):
    total_groups: int = Field(alias="totalGroups")
    tested_groups: int = Field(alias="testedGroups")
    tolerated_count: int = Field(alias="toleratedCount")
    sensitive_count: int = Field(alias="sensitiveCount")
    trigger_count: int = Field(alias="triggerCount")

    class Config:
        populate_by_name = True
        frozen = True


class ToleranceProfile(BaseModel):
    groups: List[GroupTolerance]
    summary: ToleranceProfileSummary
    recommendations: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True


def overall_status(statuses: List[ToleranceStatus]) -> ToleranceStatus:
    """Worst status in the list; untested for an empty list."""
    worst = ToleranceStatus.UNTESTED
    for status in statuses:
        if _STATUS_RANK[status] > _STATUS_RANK[worst]:
            worst = status
    return worst


def group_recommendation(group: GroupTolerance) -> Optional[str]:
    """
    One line of dietary guidance for a tested group; None when untested.

    The portion quoted comes from the foods that set the group's status,
    so a sensitive group quotes the comfortable portion of its sensitive food.
    """
    if group.status == ToleranceStatus.UNTESTED:
        return None

    portion = next(
        (
            food.max_tolerated_portion
            for food in group.tested_foods
            if food.status == group.status and food.max_tolerated_portion
        ),
        None,
    )
    if group.status != ToleranceStatus.TRIGGER and portion:
        return f"You can tolerate {group.fodmap_group.value} up to {portion}"
    return f"Consider avoiding {group.fodmap_group.value} or consulting with a dietitian"


def build_tolerance_profile(state: ProtocolState) -> ToleranceProfile:
    """
    Build the per-group tolerance profile.

    Groups follow the active sequence. Completed tests for groups outside
    a custom sequence are appended after it so no result is dropped.
    """
    groups_in_order: List[FodmapGroup] = list(dict.fromkeys(get_group_sequence(state)))
    for test in state.completed_tests:
        if test.fodmap_group not in groups_in_order:
            groups_in_order.append(test.fodmap_group)

    foods_by_group: Dict[FodmapGroup, List[ProfileFood]] = {g: [] for g in groups_in_order}
    for test in state.completed_tests:
        foods_by_group[test.fodmap_group].append(ProfileFood(
            name=test.food_item,
            status=test.tolerance_status,
            max_tolerated_portion=test.max_tolerated_portion,
            trigger_portion=test.trigger_portion,
        ))

    groups = [
        GroupTolerance(
            fodmap_group=group,
            status=overall_status([f.status for f in foods_by_group[group]]),
            tested_foods=foods_by_group[group],
        )
        for group in groups_in_order
    ]

    summary = ToleranceProfileSummary(
        total_groups=len(groups),
        tested_groups=sum(1 for g in groups if g.status != ToleranceStatus.UNTESTED),
        tolerated_count=sum(1 for g in groups if g.status == ToleranceStatus.TOLERATED),
        sensitive_count=sum(1 for g in groups if g.status == ToleranceStatus.SENSITIVE),
        trigger_count=sum(1 for g in groups if g.status == ToleranceStatus.TRIGGER),
    )

    return ToleranceProfile(
        groups=groups,
        summary=summary,
        recommendations=[
            line for line in (group_recommendation(g) for g in groups) if line is not None
        ],
    )
