"""
Reintroduction Protocol Tables

Static, read-only protocol data:
- Standard group testing order
- Recommended test foods per group
- Three-day portion progression per group
- Washout duration by worst symptom severity

Nothing here changes at runtime. Tables are exposed as tuples and
read-only mappings so that no caller can mutate them in place.

Version: reintroduction_engine_v1
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

from .models import FodmapGroup, SymptomSeverity


ENGINE_VERSION = "reintroduction_engine_v1"

# Days of exposure per food test (small, medium, large portion)
TEST_DURATION_DAYS = 3


# =============================================================================
# GROUP SEQUENCE
# =============================================================================

STANDARD_GROUP_SEQUENCE: Tuple[FodmapGroup, ...] = (
    FodmapGroup.FRUCTOSE,
    FodmapGroup.LACTOSE,
    FodmapGroup.FRUCTANS,
    FodmapGroup.GALACTANS,
    FodmapGroup.POLYOLS,
)


# =============================================================================
# FOODS AND PORTIONS
# =============================================================================

# First entry is the default food offered when a group starts
RECOMMENDED_FOODS: Mapping[FodmapGroup, Tuple[str, ...]] = MappingProxyType({
    FodmapGroup.FRUCTOSE: ("Honey", "Mango", "Asparagus"),
    FodmapGroup.LACTOSE: ("Milk", "Yogurt", "Ice cream"),
    FodmapGroup.FRUCTANS: ("Wheat bread", "Garlic", "Onion"),
    FodmapGroup.GALACTANS: ("Chickpeas", "Lentils", "Kidney beans"),
    FodmapGroup.POLYOLS: ("Avocado", "Mushrooms", "Cauliflower"),
})

# Day 1 (small), Day 2 (medium), Day 3 (large)
PORTION_PROGRESSION: Mapping[FodmapGroup, Tuple[str, str, str]] = MappingProxyType({
    FodmapGroup.FRUCTOSE: ("1 tsp", "2 tsp", "1 tbsp"),
    FodmapGroup.LACTOSE: ("1/4 cup", "1/2 cup", "1 cup"),
    FodmapGroup.FRUCTANS: ("1 slice", "2 slices", "3 slices"),
    FodmapGroup.GALACTANS: ("1/4 cup", "1/2 cup", "3/4 cup"),
    FodmapGroup.POLYOLS: ("1/4 cup", "1/2 cup", "1 cup"),
})


# =============================================================================
# SEVERITY AND WASHOUT
# =============================================================================

SEVERITY_ORDER: Mapping[SymptomSeverity, int] = MappingProxyType({
    SymptomSeverity.NONE: 0,
    SymptomSeverity.MILD: 1,
    SymptomSeverity.MODERATE: 2,
    SymptomSeverity.SEVERE: 3,
})

# None/Mild: 3-day minimum washout. Moderate/Severe: 7-day extended washout.
WASHOUT_DURATION: Mapping[SymptomSeverity, int] = MappingProxyType({
    SymptomSeverity.NONE: 3,
    SymptomSeverity.MILD: 3,
    SymptomSeverity.MODERATE: 7,
    SymptomSeverity.SEVERE: 7,
})


@dataclass(frozen=True)
class GroupProtocol:
    """Everything the protocol prescribes for one FODMAP group."""
    fodmap_group: FodmapGroup
    recommended_foods: Tuple[str, ...]
    portion_progression: Tuple[str, str, str]
    test_duration_days: int
    baseline_washout_days: int

    def to_dict(self) -> dict:
        return {
            "fodmapGroup": self.fodmap_group.value,
            "recommendedFoods": list(self.recommended_foods),
            "portionProgression": list(self.portion_progression),
            "testDurationDays": self.test_duration_days,
            "baselineWashoutDays": self.baseline_washout_days,
        }


def get_group_protocol(group: FodmapGroup) -> GroupProtocol:
    """Bundle the static tables for a single group."""
    group = FodmapGroup(group)
    return GroupProtocol(
        fodmap_group=group,
        recommended_foods=RECOMMENDED_FOODS[group],
        portion_progression=PORTION_PROGRESSION[group],
        test_duration_days=TEST_DURATION_DAYS,
        baseline_washout_days=WASHOUT_DURATION[SymptomSeverity.NONE],
    )


def protocol_tables() -> dict:
    """JSON-ready view of all protocol tables."""
    return {
        "version": ENGINE_VERSION,
        "groupSequence": [g.value for g in STANDARD_GROUP_SEQUENCE],
        "groups": [get_group_protocol(g).to_dict() for g in STANDARD_GROUP_SEQUENCE],
        "washoutDurationDays": {s.value: d for s, d in WASHOUT_DURATION.items()},
    }
