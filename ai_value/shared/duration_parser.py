"""
Duration parsing for quantified feedback impacts.

Normalizes free-text durations ("3 hours", "2 days") to minutes using
working-time conventions, so "before/after" pairs can be compared.
"""

import math
import re
from typing import Optional

from .utils import round_half_up

WORKDAY_HOURS = 8
WORKWEEK_DAYS = 5
WORKMONTH_DAYS = 20

MINUTES_PER_HOUR = 60
MINUTES_PER_WORKDAY = WORKDAY_HOURS * MINUTES_PER_HOUR
MINUTES_PER_WORKWEEK = WORKWEEK_DAYS * MINUTES_PER_WORKDAY
MINUTES_PER_WORKMONTH = WORKMONTH_DAYS * MINUTES_PER_WORKDAY

# Checked in order; first unit keyword found in the text wins.
UNIT_MINUTES = (
    (("day",), MINUTES_PER_WORKDAY),
    (("week",), MINUTES_PER_WORKWEEK),
    (("month",), MINUTES_PER_WORKMONTH),
    (("hr", "hour"), MINUTES_PER_HOUR),
    (("min",), 1),
    (("second",), 1 / 60),
)

NUMERIC_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

NOT_AVAILABLE = "N/A"


def _leading_number(text: str) -> Optional[float]:
    """Parse the numeric prefix of a string ('2.5 hours' -> 2.5)."""
    match = NUMERIC_PREFIX.match(text)
    if not match:
        return None
    return float(match.group(1))


def parse_duration_minutes(duration: Optional[str]) -> Optional[float]:
    """
    Convert a free-text duration to minutes.

    Args:
        duration: Text such as "3 hours", "2 days", "45 min"

    Returns:
        float: Minutes, or None if no unit matches or the number is unparseable
               or not finite
    """
    if not duration or not isinstance(duration, str):
        return None

    text = duration.lower()

    for keywords, minutes_per_unit in UNIT_MINUTES:
        if any(keyword in text for keyword in keywords):
            value = _leading_number(text)
            if value is None:
                return None
            minutes = value * minutes_per_unit
            return minutes if math.isfinite(minutes) else None

    return None


def calculate_reduction_percent(before: Optional[str], after: Optional[str]) -> Optional[int]:
    """
    Percentage of time removed going from `before` to `after`.

    Args:
        before: Duration before the tool was used
        after: Duration with the tool

    Returns:
        int: round((1 - after/before) * 100), or None if either side is
        unparseable or `before` is not positive
    """
    before_minutes = parse_duration_minutes(before)
    after_minutes = parse_duration_minutes(after)

    if before_minutes is None or after_minutes is None or before_minutes <= 0:
        return None

    ratio = after_minutes / before_minutes
    if not math.isfinite(ratio):
        return None

    return round_half_up((1 - ratio) * 100)


def describe_reduction(before: Optional[str], after: Optional[str], reduction: Optional[str] = None) -> str:
    """
    Reduction label for a quantified impact.

    An explicit reduction reported with the feedback is used as-is;
    otherwise it is computed from the before/after durations.

    Returns:
        str: e.g. "67%", or "N/A" when it cannot be determined
    """
    if reduction:
        return reduction

    percent = calculate_reduction_percent(before, after)
    if percent is None:
        return NOT_AVAILABLE
    return f"{percent}%"
