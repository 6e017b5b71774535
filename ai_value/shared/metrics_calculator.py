"""
Metrics Calculator for AI Value Analytics.

Runs every calculator over a loaded dataset and collects the results
into one dictionary for JSON output.
"""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from .adoption_scorer import calculate_mom_growth, score_departments, top_departments_by_engagement
from .analytics_config import AnalyticsConfig
from .dataset_loader import AnalyticsDataset, ROIScenario
from .expansion_planner import build_candidate, build_rollout_plan
from .fte_calculator import AgenticFTECalculator, MonthlyUsageRecord, distribute_fte_by_engagement
from .roi_calculator import (
    BenchmarkAggregate,
    ToolEconomics,
    ValueMetrics,
    aggregate_benchmark_studies,
    benchmark_roi_from_hours,
    calculate_current_state_roi,
    calculate_incremental_roi,
    derive_coding_hours,
    productivity_multiplier,
)
from .sentiment_calculator import SentimentCalculator
from .utils import get_reference_date, normalize_month_key, parse_month_key


def department_value_metrics(config: AnalyticsConfig) -> Callable[[str], ValueMetrics]:
    """Value metrics lookup: every department uses the configured baseline hours and rate."""
    metrics = ValueMetrics(
        hours_per_user_per_month=config.baseline_hours_saved,
        hourly_rate=config.hourly_rate,
    )
    return lambda department: metrics


def calculate_usage_growth(records: List[MonthlyUsageRecord]) -> Dict[str, Dict[str, int]]:
    """
    Month-over-month growth of each tool's usage counters.

    Returns:
        dict: tool -> {"active_users", "messages", "prompts", "lines_generated"} growth %
    """
    metrics = ("active_users", "messages", "prompts", "lines_generated")
    series: Dict[str, Dict[str, Dict[str, int]]] = {}

    for record in records:
        month = normalize_month_key(record.month)
        if month is None:
            continue
        months = series.setdefault(record.tool, {})
        totals = months.setdefault(month, {metric: 0 for metric in metrics})
        for metric in metrics:
            totals[metric] += getattr(record, metric)

    growth = {}
    for tool, months in series.items():
        ordered = [months[m] for m in sorted(months, key=parse_month_key)]
        growth[tool] = {metric: calculate_mom_growth(ordered, metric) for metric in metrics}
    return growth


def latest_lines_per_user(records: List[MonthlyUsageRecord], tool: str) -> Optional[float]:
    """Lines generated per active user in the tool's latest month with users, or None."""
    months: Dict[str, Dict[str, int]] = {}
    for record in records:
        month = normalize_month_key(record.month)
        if record.tool != tool or month is None:
            continue
        totals = months.setdefault(month, {"users": 0, "lines": 0})
        totals["users"] += record.active_users
        totals["lines"] += record.lines_generated

    for month in sorted(months, key=parse_month_key, reverse=True):
        if months[month]["users"] > 0:
            return months[month]["lines"] / months[month]["users"]
    return None


def derive_coding_productivity(
    scenario: ROIScenario,
    records: List[MonthlyUsageRecord],
    config: AnalyticsConfig
) -> Optional[Dict[str, Any]]:
    """
    Hours saved per user for a coding target, from lines per user against the baseline tool.

    Returns:
        dict: 'baseline', 'target', 'multiplier' and 'hours_saved_per_user',
        or None if either tool has no usage to compare
    """
    target_lines = latest_lines_per_user(records, scenario.target.name)
    baseline_lines = latest_lines_per_user(records, scenario.baseline.name)
    if target_lines is None or not baseline_lines:
        logging.warning(f"Cannot derive coding hours for {scenario.target.name}: "
                        f"no lines per user to compare with {scenario.baseline.name}")
        return None

    multiplier = productivity_multiplier(target_lines, baseline_lines)
    hours = derive_coding_hours(config.baseline_hours_saved, multiplier, config.conservative_factor)
    logging.info(f"{scenario.target.name}: {multiplier:.1f}x lines per user over {scenario.baseline.name} "
                 f"-> {hours} hrs/user/month")

    return {
        "baseline": scenario.baseline.name,
        "target": scenario.target.name,
        "multiplier": multiplier,
        "hours_saved_per_user": hours,
    }


def _scenario_benchmarks(
    scenario: ROIScenario,
    target: ToolEconomics,
    hourly_rate: float,
    aggregate: Optional[BenchmarkAggregate]
) -> Optional[Dict[str, Optional[float]]]:
    baseline_hours = scenario.benchmark_baseline_hours
    if baseline_hours is None and scenario.use_benchmark_studies and aggregate is not None:
        baseline_hours = aggregate.hours_saved_per_month
    if baseline_hours is None:
        return None

    target_hours = target.hours_saved_per_user
    return {
        "additive": benchmark_roi_from_hours(
            target_hours, baseline_hours, hourly_rate, target.seat_cost
        ),
        "replacement": benchmark_roi_from_hours(
            target_hours, baseline_hours, hourly_rate,
            target.seat_cost - scenario.baseline.seat_cost
        ),
    }


def calculate_roi_metrics(
    dataset: AnalyticsDataset,
    config: AnalyticsConfig,
    current_year: int
) -> Dict[str, Any]:
    """
    Incremental ROI for every scenario, the benchmark consensus and the current state.

    Scenarios flagged `derive_coding_hours` take the target's hours saved
    from usage data and default to the engineering hourly rate.

    Args:
        dataset: Loaded dataset
        config: Analytics configuration
        current_year: Year used to age benchmark studies

    Returns:
        dict: 'benchmark', 'benchmark_low_confidence', 'incremental_roi',
        'coding_productivity' and 'current_state'
    """
    aggregate = aggregate_benchmark_studies(dataset.benchmark_studies, current_year)
    if aggregate is not None:
        logging.info(f"Benchmark consensus: {aggregate.hours_saved_per_month:.1f} hrs/month "
                     f"from {aggregate.study_count} studies ({aggregate.confidence_level} confidence)")
        if aggregate.low_confidence:
            logging.warning(f"Low-confidence benchmark ({aggregate.study_count} studies, "
                            f"CV {aggregate.coefficient_of_variation:.2f}); treat benchmark deltas with caution")

    comparisons = []
    coding_productivity = []
    for scenario in dataset.roi_scenarios:
        target = scenario.target
        default_rate = config.hourly_rate

        if scenario.derive_coding_hours:
            default_rate = config.engineering_hourly_rate
            derived = derive_coding_productivity(scenario, dataset.usage, config)
            if derived is not None:
                coding_productivity.append(derived)
                target = replace(target, hours_saved_per_user=derived["hours_saved_per_user"])

        hourly_rate = scenario.hourly_rate if scenario.hourly_rate is not None else default_rate
        comparisons.append(calculate_incremental_roi(
            scenario.baseline,
            target,
            hourly_rate,
            incremental_hours=scenario.incremental_hours,
            seats=scenario.seats,
            benchmarks=_scenario_benchmarks(scenario, target, hourly_rate, aggregate),
        ))

    current_state = None
    if dataset.current_adoption:
        current_state = calculate_current_state_roi(
            dataset.current_adoption,
            config.pricing,
            department_value_metrics(config),
        )

    return {
        "benchmark": aggregate,
        "benchmark_low_confidence": aggregate.low_confidence if aggregate is not None else None,
        "incremental_roi": comparisons,
        "coding_productivity": coding_productivity,
        "current_state": current_state,
    }


def calculate_expansion_plan(dataset: AnalyticsDataset, config: AnalyticsConfig):
    """Build the ranked, phased expansion plan from candidates and seat allocations."""
    value_metrics = department_value_metrics(config)

    candidates = list(dataset.expansion_candidates)
    for allocation in dataset.license_allocations:
        metrics = value_metrics(allocation.department)
        candidates.append(build_candidate(
            allocation.department,
            allocation.headcount,
            allocation.current_standard,
            allocation.current_premium,
            allocation.target_standard,
            allocation.target_premium,
            config.pricing,
            metrics.hours_per_user_per_month,
            metrics.hourly_rate,
            config.expansion.incremental_hours_per_upgrade,
        ))

    return build_rollout_plan(
        candidates,
        dataset.total_org_headcount,
        baseline_seats=dataset.baseline_seats,
        phase_count=config.expansion.phase_count,
        deployment_months=config.expansion.deployment_months,
    )


def calculate_all_metrics(
    dataset: AnalyticsDataset,
    config: Dict[str, Any],
    reference_date: date = None
) -> Dict[str, Any]:
    """
    Calculate every analytics output for a dataset.

    Args:
        dataset: Loaded dataset
        config: Configuration dictionary (see ai_value/config.yaml)
        reference_date: Optional override for analysis.reference_date

    Returns:
        Dictionary with all calculated metrics and summary data.

    Raises:
        ValueError: If the configuration is invalid
    """
    analytics_config = AnalyticsConfig.from_dict(config)
    if reference_date is None:
        reference_date = get_reference_date(config)
    current_year = (reference_date or date.today()).year

    logging.info("Calculating perceived value...")
    sentiment = SentimentCalculator(
        analytics_config.tools,
        settings=analytics_config.sentiment,
    ).calculate(dataset.feedback)

    logging.info("Calculating Agentic FTEs...")
    ftes = AgenticFTECalculator(analytics_config).calculate(dataset.usage, reference_date)

    logging.info("Calculating department adoption...")
    departments = score_departments(dataset.department_usage)

    logging.info("Calculating ROI...")
    roi = calculate_roi_metrics(dataset, analytics_config, current_year)

    logging.info("Calculating expansion plan...")
    expansion = calculate_expansion_plan(dataset, analytics_config)

    current = ftes.current
    department_ftes = {}
    if current is not None:
        department_ftes = distribute_fte_by_engagement(
            current.total_agentic_ftes,
            {usage.department: usage.activity for usage in dataset.department_usage},
        )
    results = {
        "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "reference_date": reference_date,
        "summary": {
            "tools": analytics_config.tool_names,
            "feedback_messages": sentiment.total_messages,
            "feedback_items_analyzed": sentiment.total_feedback_analyzed,
            "usage_records": len(dataset.usage),
            "departments_scored": len(departments),
            "roi_scenarios": len(roi["incremental_roi"]),
            "expansion_departments": len(expansion.opportunities),
            "skipped_records": dataset.skipped_records,
            "current_month": current.month if current else None,
            "current_agentic_ftes": current.total_agentic_ftes if current else None,
        },
        "perceived_value": {
            "tools": sentiment.results,
            "total_feedback_analyzed": sentiment.total_feedback_analyzed,
            "attributed_messages": sentiment.attributed_messages,
            "unattributed_messages": sentiment.unattributed_messages,
            "multi_tool_messages": sentiment.multi_tool_messages,
            "explanation": sentiment.explanation,
        },
        "agentic_ftes": {
            "current": current,
            "month_over_month": ftes.month_over_month,
            "projection": ftes.projection,
            "projection_methodology": ftes.projection.methodology if ftes.projection else None,
            "monthly_trend": ftes.monthly_trend,
            "usage_growth": calculate_usage_growth(dataset.usage),
            "department_ftes": department_ftes,
        },
        "department_adoption": {
            "departments": departments,
            "top_by_engagement": top_departments_by_engagement(dataset.department_usage),
        },
        "roi": roi,
        "expansion": expansion,
    }

    return results
