"""
Tolerance Classification

Post-hoc classification of a food test from its doses:

- no doses                      -> untested
- every dose none/mild          -> tolerated (largest portion reached)
- first problem dose severe     -> trigger   (portion that caused it)
- first problem dose moderate   -> sensitive (last comfortable portion + problem portion)

A "problem" dose is one whose overall severity is moderate or severe.
Doses are examined in day order.
"""

from typing import List, Optional, Sequence, Tuple

from .models import DoseRecord, SymptomSeverity, ToleranceClassification, ToleranceStatus
from .symptoms import analyze_symptoms

PROBLEM_SEVERITIES = frozenset({SymptomSeverity.MODERATE, SymptomSeverity.SEVERE})


def classify_tolerance(doses: Sequence[DoseRecord]) -> ToleranceClassification:
    """
    Classify food tolerance based on completed doses.

    Args:
        doses: Dose records of a single food test

    Returns:
        ToleranceClassification with status and supporting portions
    """
    if not doses:
        return ToleranceClassification(status=ToleranceStatus.UNTESTED)

    analysed: List[Tuple[str, SymptomSeverity]] = [
        (dose.portion_size, analyze_symptoms(dose.symptoms))
        for dose in sorted(doses, key=lambda d: d.day_number)
    ]

    problem_index: Optional[int] = next(
        (i for i, (_, severity) in enumerate(analysed) if severity in PROBLEM_SEVERITIES),
        None,
    )

    if problem_index is None:
        return ToleranceClassification(
            status=ToleranceStatus.TOLERATED,
            max_tolerated_portion=analysed[-1][0],
        )

    problem_portion, problem_severity = analysed[problem_index]

    if problem_severity == SymptomSeverity.SEVERE:
        return ToleranceClassification(
            status=ToleranceStatus.TRIGGER,
            trigger_portion=problem_portion,
        )

    # Every dose before the first problem is none/mild, so the most recent
    # one is the largest comfortable portion
    last_tolerated = analysed[problem_index - 1][0] if problem_index > 0 else None

    return ToleranceClassification(
        status=ToleranceStatus.SENSITIVE,
        max_tolerated_portion=last_tolerated,
        trigger_portion=problem_portion,
    )
