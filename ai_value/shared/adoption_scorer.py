"""
Department Adoption Scorer.

Composite 0-100 adoption score per department:

    Coverage    (0-30)  seats per employee
    Multi-tool  (0-25)  seats per employee beyond 0.5
    Intensity   (0-25)  percentile of activity per seat
    Impact      (0-20)  percentile of activity per employee
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .utils import round_half_up

COVERAGE_MAX = 30
MULTI_TOOL_MAX = 25
MULTI_TOOL_SLOPE = 16.67
MULTI_TOOL_OFFSET = 0.5
INTENSITY_MAX = 25
IMPACT_MAX = 20

TIER_EXCELLENT = "Excellent"
TIER_GOOD = "Good"
TIER_LOW = "Low"


@dataclass(frozen=True)
class DepartmentUsage:
    """Seats and activity for one department (all tools combined)."""
    department: str
    employees: int
    active_seats: int
    activity: float

    @classmethod
    def from_dict(cls, data: dict) -> "DepartmentUsage":
        return cls(
            department=data["department"],
            employees=int(data.get("employees", 0) or 0),
            active_seats=int(data.get("active_seats", 0) or 0),
            activity=float(data.get("activity", 0) or 0),
        )


@dataclass
class DepartmentAdoptionRecord:
    """Adoption score and its components for one department."""
    department: str
    employees: int
    active_seats: int
    activity: float
    seats_per_employee: float
    activity_per_seat: float
    activity_per_employee: float
    coverage_score: float
    multi_tool_score: float
    intensity_score: float
    impact_score: float
    adoption_score: int
    tier: str


def percentile_rank(value: float, values: Sequence[float]) -> float:
    """
    Fraction of values ranked below `value`.

    Index of the first element >= value in ascending order, divided by
    the count. Equal values share a percentile. A single value is at the
    100th percentile.

    Returns:
        float: 0.0 - 1.0
    """
    if not values:
        return 0.0
    if len(values) == 1:
        return 1.0

    ordered = sorted(values)
    for index, candidate in enumerate(ordered):
        if candidate >= value:
            return index / len(ordered)
    return 0.0


def adoption_tier(score: float) -> str:
    """Display tier for an adoption score."""
    if score >= 80:
        return TIER_EXCELLENT
    if score >= 60:
        return TIER_GOOD
    return TIER_LOW


def _ratios(usage: DepartmentUsage):
    seats_per_employee = usage.active_seats / usage.employees if usage.employees > 0 else 0.0
    activity_per_employee = usage.activity / usage.employees if usage.employees > 0 else 0.0
    activity_per_seat = usage.activity / usage.active_seats if usage.active_seats > 0 else 0.0
    return seats_per_employee, activity_per_seat, activity_per_employee


def score_departments(usages: Iterable[DepartmentUsage]) -> List[DepartmentAdoptionRecord]:
    """
    Score every department and rank them.

    Args:
        usages: One DepartmentUsage per department

    Returns:
        list: DepartmentAdoptionRecord sorted by adoption score, highest first
              (departments with equal scores keep their input order)
    """
    usages = list(usages)
    ratios = [_ratios(usage) for usage in usages]

    per_seat_values = [r[1] for r in ratios]
    per_employee_values = [r[2] for r in ratios]

    records = []
    for usage, (seats_per_employee, per_seat, per_employee) in zip(usages, ratios):
        coverage = min(seats_per_employee * COVERAGE_MAX, COVERAGE_MAX)
        multi_tool = min(
            max((seats_per_employee - MULTI_TOOL_OFFSET) * MULTI_TOOL_SLOPE, 0),
            MULTI_TOOL_MAX
        )
        intensity = percentile_rank(per_seat, per_seat_values) * INTENSITY_MAX
        impact = percentile_rank(per_employee, per_employee_values) * IMPACT_MAX

        score = min(max(round_half_up(coverage + multi_tool + intensity + impact), 0), 100)

        records.append(DepartmentAdoptionRecord(
            department=usage.department,
            employees=usage.employees,
            active_seats=usage.active_seats,
            activity=usage.activity,
            seats_per_employee=seats_per_employee,
            activity_per_seat=per_seat,
            activity_per_employee=per_employee,
            coverage_score=coverage,
            multi_tool_score=multi_tool,
            intensity_score=intensity,
            impact_score=impact,
            adoption_score=score,
            tier=adoption_tier(score),
        ))

    records.sort(key=lambda r: r.adoption_score, reverse=True)

    if records:
        logging.info(f"Department adoption: {len(records)} departments scored")
        for i, record in enumerate(records[:3], 1):
            logging.info(f"  {i}. {record.department}: {record.adoption_score} points ({record.tier})")

    return records


def rollup_department_usage(
    tool_breakdowns: Dict[str, List[dict]],
    headcounts: Dict[str, int]
) -> List[DepartmentUsage]:
    """
    Combine per-tool department usage into one DepartmentUsage per department.

    Args:
        tool_breakdowns: tool -> [{"department", "users", "activity"}]
        headcounts: department -> employees (0 when unknown)

    Returns:
        list: DepartmentUsage in order of first appearance
    """
    totals: Dict[str, Dict[str, float]] = {}

    for entries in tool_breakdowns.values():
        for entry in entries:
            department = entry.get("department")
            if not department:
                logging.warning(f"Skipping department usage entry without a department: {entry}")
                continue
            bucket = totals.setdefault(department, {"users": 0, "activity": 0})
            bucket["users"] += entry.get("users", 0) or 0
            bucket["activity"] += entry.get("activity", 0) or 0

    return [
        DepartmentUsage(
            department=department,
            employees=headcounts.get(department, 0),
            active_seats=int(bucket["users"]),
            activity=bucket["activity"],
        )
        for department, bucket in totals.items()
    ]


def calculate_mom_growth(series: Sequence[dict], metric: str) -> int:
    """
    Month-over-month growth of a metric, in whole percent.

    Args:
        series: Monthly data points in chronological order
        metric: Key to compare (e.g. "users", "prompts")

    Returns:
        int: Rounded growth %, 0 with fewer than 2 points or a zero previous value
    """
    if len(series) < 2:
        return 0

    current = series[-1].get(metric, 0) or 0
    previous = series[-2].get(metric, 0) or 0
    if previous == 0:
        return 0

    return round_half_up((current - previous) / previous * 100)


def top_departments_by_engagement(usages: Iterable[DepartmentUsage], limit: int = 5) -> List[DepartmentUsage]:
    """Departments with the most activity, highest first."""
    return sorted(usages, key=lambda u: u.activity, reverse=True)[:limit]
