"""
ROI Calculator for incremental tool comparisons.

Compares a baseline tool with a target tool under two peer scenarios:
additive (keep the baseline, add the target) and replacement (swap the
baseline for the target). Also aggregates industry benchmark studies
and computes the ROI of seats that are already licensed.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .utils import round_half_up, safe_ratio

ANALYST_AUTHORS = ("forrester", "gartner")
ACADEMIC_AUTHORS = ("academic", "university")
VENDOR_AUTHORS = ("microsoft", "github", "openai")

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

Z_95 = 1.96
RECENCY_HALF_LIFE_YEARS = 2


@dataclass(frozen=True)
class ToolEconomics:
    """Monthly seat cost and hours saved per user for one tool."""
    name: str
    seat_cost: float
    hours_saved_per_user: float

    @classmethod
    def from_dict(cls, data: dict) -> "ToolEconomics":
        return cls(
            name=data["name"],
            seat_cost=float(data.get("seat_cost", 0)),
            hours_saved_per_user=float(data.get("hours_saved_per_user", 0)),
        )


@dataclass
class ScenarioResult:
    """Cost and ROI of one adoption scenario."""
    incremental_cost: float
    incremental_roi: Optional[float]
    benchmark_roi: Optional[float] = None
    delta_percent: Optional[float] = None


@dataclass
class IncrementalROIResult:
    """Incremental value of moving from a baseline tool to a target tool."""
    baseline: str
    target: str
    incremental_hours: float
    incremental_value: float
    additive: ScenarioResult
    replacement: ScenarioResult
    hourly_rate: float = 0.0
    seats: int = 1


@dataclass
class BenchmarkStudy:
    """A published productivity study."""
    title: str
    author: str
    year: int
    sample_size: int
    hours_saved_per_month: float

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkStudy":
        return cls(
            title=data.get("title", ""),
            author=data.get("author", ""),
            year=int(data["year"]),
            sample_size=int(data["sample_size"]),
            hours_saved_per_month=float(data["hours_saved_per_month"]),
        )


@dataclass
class BenchmarkAggregate:
    """Weighted consensus of several benchmark studies."""
    hours_saved_per_month: float
    confidence_interval: List[float]
    confidence_level: str
    coefficient_of_variation: float
    study_count: int
    total_sample_size: int

    @property
    def low_confidence(self) -> bool:
        return self.confidence_level == CONFIDENCE_LOW


@dataclass
class CurrentStateROI:
    """Monthly economics of the seats already licensed."""
    licensed_users: int = 0
    premium_seats: int = 0
    standard_seats: int = 0
    monthly_cost: float = 0.0
    monthly_value: float = 0.0
    net_benefit: float = 0.0
    roi: Optional[float] = None
    hours_saved: float = 0.0
    costs: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ValueMetrics:
    """Hours saved per user per month and the hourly rate for a department."""
    hours_per_user_per_month: float
    hourly_rate: float


def _scenario(value: float, cost: float, benchmark_roi: Optional[float]) -> ScenarioResult:
    roi = value / cost if cost > 0 else None

    delta_percent = None
    if roi is not None and benchmark_roi:
        delta_percent = (roi - benchmark_roi) / benchmark_roi * 100

    return ScenarioResult(
        incremental_cost=cost,
        incremental_roi=roi,
        benchmark_roi=benchmark_roi,
        delta_percent=delta_percent,
    )


def calculate_incremental_roi(
    baseline: ToolEconomics,
    target: ToolEconomics,
    hourly_rate: float,
    incremental_hours: float = None,
    seats: int = 1,
    benchmarks: Dict[str, Optional[float]] = None
) -> IncrementalROIResult:
    """
    Incremental ROI of a target tool over a baseline tool.

    Args:
        baseline: Tool already in use
        target: Tool being evaluated
        hourly_rate: Value of one saved hour
        incremental_hours: Extra hours saved per seat; defaults to the
                           difference in hours_saved_per_user
        seats: Number of seats the comparison covers
        benchmarks: Optional industry benchmark ROI per scenario,
                    as {"additive": roi, "replacement": roi}

    Returns:
        IncrementalROIResult: Both scenarios side by side (no winner is picked)
    """
    if incremental_hours is None:
        incremental_hours = target.hours_saved_per_user - baseline.hours_saved_per_user

    benchmarks = benchmarks or {}
    incremental_value = incremental_hours * hourly_rate * seats

    additive = _scenario(
        incremental_value,
        target.seat_cost * seats,
        benchmarks.get("additive"),
    )
    replacement = _scenario(
        incremental_value,
        (target.seat_cost - baseline.seat_cost) * seats,
        benchmarks.get("replacement"),
    )

    return IncrementalROIResult(
        baseline=baseline.name,
        target=target.name,
        incremental_hours=incremental_hours,
        incremental_value=incremental_value,
        additive=additive,
        replacement=replacement,
        hourly_rate=hourly_rate,
        seats=seats,
    )


def benchmark_roi_from_hours(
    target_hours: float,
    benchmark_baseline_hours: float,
    hourly_rate: float,
    incremental_cost: float
) -> Optional[float]:
    """
    ROI implied by an industry hours-saved figure for the baseline tool.

    Args:
        target_hours: Hours saved per user per month by the target tool
        benchmark_baseline_hours: Industry hours saved by the baseline tool
        hourly_rate: Value of one saved hour
        incremental_cost: Scenario cost per seat

    Returns:
        float: Benchmark ROI, or None when the cost is not positive
    """
    if incremental_cost <= 0:
        return None
    benchmark_value = (target_hours - benchmark_baseline_hours) * hourly_rate
    return benchmark_value / incremental_cost


def credibility_factor(author: str) -> float:
    """Weight given to a study based on who published it."""
    author = (author or "").lower()
    if any(name in author for name in ANALYST_AUTHORS):
        return 1.2
    if any(name in author for name in ACADEMIC_AUTHORS):
        return 1.1
    if any(name in author for name in VENDOR_AUTHORS):
        return 0.8
    return 0.5


def study_weight(study: BenchmarkStudy, current_year: int) -> float:
    """sample size / 1000 x recency decay x credibility."""
    age = current_year - study.year
    recency = math.exp(-age / RECENCY_HALF_LIFE_YEARS)
    return study.sample_size / 1000 * recency * credibility_factor(study.author)


def aggregate_benchmark_studies(studies: List[BenchmarkStudy], current_year: int) -> Optional[BenchmarkAggregate]:
    """
    Combine benchmark studies into one weighted hours-saved estimate.

    Args:
        studies: Studies with hours saved per month and sample sizes
        current_year: Year used for the recency decay

    Returns:
        BenchmarkAggregate, or None when there are no usable studies
    """
    studies = [s for s in studies if s.sample_size > 0 and s.hours_saved_per_month]
    if not studies:
        return None

    weights = [study_weight(s, current_year) for s in studies]
    total_weight = sum(weights)
    hours = [s.hours_saved_per_month for s in studies]
    count = len(studies)

    if total_weight > 0:
        weighted_mean = sum(h * w for h, w in zip(hours, weights)) / total_weight
    else:
        weighted_mean = sum(hours) / count

    mean = sum(hours) / count
    variance = sum((h - mean) ** 2 for h in hours) / count
    std_dev = math.sqrt(variance)
    cv = std_dev / mean if mean else 0.0

    margin = Z_95 * std_dev / math.sqrt(count)

    if count < 3 or cv > 0.6:
        level = CONFIDENCE_LOW
    elif count < 5 or cv > 0.4:
        level = CONFIDENCE_MEDIUM
    else:
        level = CONFIDENCE_HIGH

    return BenchmarkAggregate(
        hours_saved_per_month=weighted_mean,
        confidence_interval=[max(0.0, weighted_mean - margin), weighted_mean + margin],
        confidence_level=level,
        coefficient_of_variation=cv,
        study_count=count,
        total_sample_size=sum(s.sample_size for s in studies),
    )


def productivity_multiplier(target_lines_per_user: float, baseline_lines_per_user: float) -> float:
    """How many times more code the target tool produces per user (0 without a baseline)."""
    if not baseline_lines_per_user or baseline_lines_per_user <= 0:
        return 0.0
    return target_lines_per_user / baseline_lines_per_user


def derive_coding_hours(baseline_hours: float, multiplier: float, conservative_factor: float = 2) -> int:
    """
    Hours saved per user by a coding tool, scaled from the baseline.

    The raw multiplier is divided by a conservative factor before scaling.

    Returns:
        int: round(baseline_hours * multiplier / conservative_factor)
    """
    if not conservative_factor or conservative_factor <= 0:
        conservative_factor = 1
    return round_half_up(baseline_hours * (multiplier / conservative_factor))


def calculate_current_state_roi(
    adoption: Dict[str, Dict[str, int]],
    seat_costs: Dict[str, float],
    value_metrics: Callable[[str], ValueMetrics]
) -> CurrentStateROI:
    """
    ROI of the seats that are already licensed.

    Args:
        adoption: department -> {"users", "premium", "standard"}
        seat_costs: Monthly cost per seat, keyed "premium" and "standard"
        value_metrics: department -> ValueMetrics

    Returns:
        CurrentStateROI
    """
    users = sum(d.get("users", 0) for d in adoption.values())
    premium = sum(d.get("premium", 0) for d in adoption.values())
    standard = sum(d.get("standard", 0) for d in adoption.values())

    premium_cost = premium * seat_costs.get("premium", 0)
    standard_cost = standard * seat_costs.get("standard", 0)
    total_cost = premium_cost + standard_cost

    value = 0.0
    hours_saved = 0.0
    for department, counts in adoption.items():
        metrics = value_metrics(department)
        department_hours = counts.get("users", 0) * metrics.hours_per_user_per_month
        hours_saved += department_hours
        value += department_hours * metrics.hourly_rate

    result = CurrentStateROI(
        licensed_users=users,
        premium_seats=premium,
        standard_seats=standard,
        monthly_cost=total_cost,
        monthly_value=value,
        net_benefit=value - total_cost,
        roi=safe_ratio(value, total_cost) if total_cost > 0 else None,
        hours_saved=hours_saved,
        costs={"premium": premium_cost, "standard": standard_cost, "total": total_cost},
    )

    logging.info(f"Current state: {users} licensed users, monthly cost {total_cost:.0f}, "
                 f"monthly value {value:.0f}")

    return result
