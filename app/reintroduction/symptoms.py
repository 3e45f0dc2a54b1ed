"""
Symptom Analysis

Aggregates a dose's logged symptoms into one overall severity and applies
the stop rule for an in-progress test.
"""

from typing import Iterable

from .config import SEVERITY_ORDER
from .models import SymptomRecord, SymptomSeverity


def max_severity(severities: Iterable[SymptomSeverity]) -> SymptomSeverity:
    """Highest severity by severe > moderate > mild > none. Empty -> none."""
    worst = SymptomSeverity.NONE
    for severity in severities:
        if SEVERITY_ORDER[severity] > SEVERITY_ORDER[worst]:
            worst = severity
    return worst


def analyze_symptoms(symptoms: Iterable[SymptomRecord]) -> SymptomSeverity:
    """
    Determine the overall severity of a dose.

    Args:
        symptoms: Symptom records logged for the dose

    Returns:
        The highest severity present, or none for an empty list
    """
    return max_severity(s.severity for s in symptoms)


def should_stop_test(severity: SymptomSeverity, day_number: int) -> bool:
    """
    Decide whether a reaction aborts the current test.

    Severe reactions stop the test on any day. Moderate reactions stop it
    only on day 1, the smallest and most cautious exposure.
    """
    if severity == SymptomSeverity.SEVERE:
        return True

    if severity == SymptomSeverity.MODERATE and day_number == 1:
        return True

    return False
