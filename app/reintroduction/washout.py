"""
Washout Calculator

Derives a washout period from the worst observed severity and reports
progress against an injected instant. Never reads the clock.
"""

import math
from datetime import datetime, timedelta

from .config import WASHOUT_DURATION
from .models import SymptomSeverity, WashoutPeriod, WashoutStatus, parse_iso_datetime

SECONDS_PER_DAY = 24 * 60 * 60


def calculate_washout(max_severity: SymptomSeverity, start_date: datetime) -> WashoutPeriod:
    """
    Build the washout period that follows a test.

    Args:
        max_severity: Worst symptom severity seen during the test
        start_date: When the washout starts (time of day is preserved)

    Returns:
        WashoutPeriod with end date, duration and a human-readable reason
    """
    severity = SymptomSeverity(max_severity)
    start = parse_iso_datetime(start_date)
    duration_days = WASHOUT_DURATION[severity]

    return WashoutPeriod(
        start_date=start,
        end_date=start + timedelta(days=duration_days),
        duration_days=duration_days,
        reason=f"{severity.value} symptoms require {duration_days}-day washout",
    )


def check_washout_status(washout: WashoutPeriod, now: datetime) -> WashoutStatus:
    """
    Report remaining days of a washout.

    Partial days round up: a washout ending in 20 hours still has 1 day
    remaining. The count never goes negative and reaches 0 exactly when
    now >= end date.
    """
    remaining_seconds = (washout.end_date - parse_iso_datetime(now)).total_seconds()
    days_remaining = max(0, math.ceil(remaining_seconds / SECONDS_PER_DAY))

    return WashoutStatus(
        complete=days_remaining == 0,
        days_remaining=days_remaining,
    )
