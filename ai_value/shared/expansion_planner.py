"""
Expansion Ranking & Phasing Planner.

Ranks department license-expansion opportunities by annual net benefit
and splits them into contiguous rollout phases with cumulative coverage
and pro-rated first-year cost.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .utils import safe_ratio

MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class ExpansionCandidate:
    """Seats a department needs to reach its target allocation."""
    department: str
    headcount: int
    current_seats: int
    standard_gap: int
    premium_gap: int
    upgrades_needed: int
    total_additional_monthly_cost: float
    monthly_opportunity_value: float

    @property
    def new_seats(self) -> int:
        return self.standard_gap + self.premium_gap

    @classmethod
    def from_dict(cls, data: dict) -> "ExpansionCandidate":
        return cls(
            department=data["department"],
            headcount=int(data.get("headcount", 0) or 0),
            current_seats=int(data.get("current_seats", 0) or 0),
            standard_gap=int(data.get("standard_gap", 0) or 0),
            premium_gap=int(data.get("premium_gap", 0) or 0),
            upgrades_needed=int(data.get("upgrades_needed", 0) or 0),
            total_additional_monthly_cost=float(data.get("total_additional_monthly_cost", 0) or 0),
            monthly_opportunity_value=float(data.get("monthly_opportunity_value", 0) or 0),
        )


@dataclass
class ExpansionOpportunity:
    """An evaluated candidate."""
    candidate: ExpansionCandidate
    monthly_net_benefit: float
    net_annual_benefit: float
    roi: Optional[float]

    @property
    def department(self) -> str:
        return self.candidate.department


@dataclass
class RolloutPhase:
    """One contiguous group of ranked opportunities."""
    phase: int
    departments: List[str]
    new_seats: int
    upgrades: int
    monthly_cost: float
    monthly_value: float
    roi: Optional[float]
    annual_cost: float
    annual_value: float
    deployment_months: float
    first_year_cost: float
    cumulative_seats: int
    coverage_percent: Optional[float]


@dataclass
class ExpansionPlan:
    """Ranked opportunities and their phased rollout."""
    opportunities: List[ExpansionOpportunity] = field(default_factory=list)
    phases: List[RolloutPhase] = field(default_factory=list)
    total_org_headcount: int = 0
    baseline_seats: int = 0
    total_new_seats: int = 0
    total_upgrades: int = 0
    total_monthly_cost: float = 0.0
    total_monthly_value: float = 0.0
    first_year_cost: float = 0.0
    annual_run_rate_cost: float = 0.0
    annual_value: float = 0.0
    net_annual_benefit: float = 0.0
    roi: Optional[float] = None

    @property
    def final_coverage_percent(self) -> Optional[float]:
        return self.phases[-1].coverage_percent if self.phases else None


def evaluate_candidate(candidate: ExpansionCandidate) -> ExpansionOpportunity:
    """Net benefit and ROI of one candidate (ROI is None when it costs nothing)."""
    cost = candidate.total_additional_monthly_cost
    value = candidate.monthly_opportunity_value
    monthly_net = value - cost

    return ExpansionOpportunity(
        candidate=candidate,
        monthly_net_benefit=monthly_net,
        net_annual_benefit=monthly_net * MONTHS_PER_YEAR,
        roi=value / cost if cost else None,
    )


def _ranking_key(opportunity: ExpansionOpportunity):
    has_roi = opportunity.roi is not None
    return (-opportunity.net_annual_benefit, not has_roi, -(opportunity.roi or 0.0))


def rank_opportunities(opportunities: Iterable[ExpansionOpportunity]) -> List[ExpansionOpportunity]:
    """
    Order opportunities by annual net benefit, then ROI, both descending.

    Undefined ROI ranks after any defined ROI. Remaining ties keep
    their input order.
    """
    return sorted(opportunities, key=_ranking_key)


def partition_phases(ranked: Sequence, phase_count: int = 4) -> List[list]:
    """
    Split a ranked list into contiguous groups of ceil(n / phase_count).

    The last group takes whatever remains; empty groups are dropped.
    """
    if phase_count < 1:
        raise ValueError(f"phase_count must be at least 1, got {phase_count}")

    items = list(ranked)
    if not items:
        return []

    size = math.ceil(len(items) / phase_count)
    groups = []
    for i in range(phase_count):
        start = i * size
        end = (i + 1) * size if i < phase_count - 1 else len(items)
        group = items[start:end]
        if group:
            groups.append(group)
    return groups


def deployment_midpoint_months(phase_count: int = 4) -> List[float]:
    """
    Months of the first year each phase is live, deploying mid-period.

    For 4 phases (quarters): [10.5, 7.5, 4.5, 1.5]
    """
    period = MONTHS_PER_YEAR / phase_count
    return [MONTHS_PER_YEAR - (i + 0.5) * period for i in range(phase_count)]


def build_rollout_plan(
    candidates: Iterable[ExpansionCandidate],
    total_org_headcount: int,
    baseline_seats: int = 0,
    phase_count: int = 4,
    deployment_months: Sequence[float] = None
) -> ExpansionPlan:
    """
    Rank candidates and build the phased rollout.

    Args:
        candidates: Department expansion candidates
        total_org_headcount: Employees in the organization (coverage denominator)
        baseline_seats: Seats already licensed before the first phase
        phase_count: Number of rollout phases
        deployment_months: Months each phase is live in the first year;
                           defaults to mid-period deployment

    Returns:
        ExpansionPlan

    Raises:
        ValueError: If fewer deployment months than phases are given
    """
    if deployment_months is None:
        deployment_months = deployment_midpoint_months(phase_count)
    if len(deployment_months) < phase_count:
        raise ValueError(
            f"{len(deployment_months)} deployment months configured for {phase_count} phases"
        )

    ranked = rank_opportunities(evaluate_candidate(c) for c in candidates)
    groups = partition_phases(ranked, phase_count)

    plan = ExpansionPlan(
        opportunities=ranked,
        total_org_headcount=total_org_headcount,
        baseline_seats=baseline_seats,
    )

    cumulative_seats = baseline_seats
    for index, group in enumerate(groups):
        new_seats = sum(o.candidate.new_seats for o in group)
        upgrades = sum(o.candidate.upgrades_needed for o in group)
        monthly_cost = sum(o.candidate.total_additional_monthly_cost for o in group)
        monthly_value = sum(o.candidate.monthly_opportunity_value for o in group)
        months_live = float(deployment_months[index])

        cumulative_seats += new_seats
        coverage = safe_ratio(cumulative_seats, total_org_headcount)

        plan.phases.append(RolloutPhase(
            phase=index + 1,
            departments=[o.department for o in group],
            new_seats=new_seats,
            upgrades=upgrades,
            monthly_cost=monthly_cost,
            monthly_value=monthly_value,
            roi=monthly_value / monthly_cost if monthly_cost else None,
            annual_cost=monthly_cost * MONTHS_PER_YEAR,
            annual_value=monthly_value * MONTHS_PER_YEAR,
            deployment_months=months_live,
            first_year_cost=monthly_cost * months_live,
            cumulative_seats=cumulative_seats,
            coverage_percent=coverage * 100 if coverage is not None else None,
        ))

    plan.total_new_seats = sum(p.new_seats for p in plan.phases)
    plan.total_upgrades = sum(p.upgrades for p in plan.phases)
    plan.total_monthly_cost = sum(p.monthly_cost for p in plan.phases)
    plan.total_monthly_value = sum(p.monthly_value for p in plan.phases)
    plan.first_year_cost = sum(p.first_year_cost for p in plan.phases)
    plan.annual_run_rate_cost = plan.total_monthly_cost * MONTHS_PER_YEAR
    plan.annual_value = plan.total_monthly_value * MONTHS_PER_YEAR
    plan.net_annual_benefit = plan.annual_value - plan.annual_run_rate_cost
    plan.roi = plan.total_monthly_value / plan.total_monthly_cost if plan.total_monthly_cost else None

    logging.info(f"Expansion plan: {len(ranked)} departments in {len(plan.phases)} phases, "
                 f"{plan.total_new_seats} new seats, first-year cost {plan.first_year_cost:.0f}")

    return plan


def build_candidate(
    department: str,
    headcount: int,
    current_standard: int,
    current_premium: int,
    target_standard: int,
    target_premium: int,
    pricing: Dict[str, float],
    hours_per_user: float,
    hourly_rate: float,
    incremental_hours_per_upgrade: float = 10.0
) -> ExpansionCandidate:
    """
    Derive an expansion candidate from current and target seat allocations.

    Surplus Standard seats are upgraded to Premium before any new Premium
    seat is bought.

    Args:
        department: Department name
        headcount: Employees in the department
        current_standard / current_premium: Seats licensed today
        target_standard / target_premium: Recommended allocation
        pricing: Monthly seat cost keyed "standard" and "premium"
        hours_per_user: Hours saved per new user per month
        hourly_rate: Value of one saved hour
        incremental_hours_per_upgrade: Extra hours per Standard -> Premium upgrade

    Returns:
        ExpansionCandidate
    """
    standard_price = pricing.get("standard", 0)
    premium_price = pricing.get("premium", 0)

    standard_gap = max(0, target_standard - current_standard)
    premium_additions = max(0, target_premium - current_premium)
    excess_standard = max(0, current_standard - target_standard)
    upgrades = min(excess_standard, premium_additions)
    premium_gap = premium_additions - upgrades

    cost = (
        upgrades * (premium_price - standard_price)
        + premium_gap * premium_price
        + standard_gap * standard_price
    )

    current_total = current_standard + current_premium
    new_users = max(0, (target_standard + target_premium) - current_total)
    value = (
        new_users * hours_per_user * hourly_rate
        + upgrades * incremental_hours_per_upgrade * hourly_rate
    )

    return ExpansionCandidate(
        department=department,
        headcount=headcount,
        current_seats=current_total,
        standard_gap=standard_gap,
        premium_gap=premium_gap,
        upgrades_needed=upgrades,
        total_additional_monthly_cost=cost,
        monthly_opportunity_value=value,
    )
