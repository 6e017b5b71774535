"""
Agentic FTE Calculator.

Converts monthly per-tool usage into productivity-equivalent headcount
("Agentic FTEs"): productivity tools by active users x time savings,
coding tools by generated lines x hours per line.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from .analytics_config import AnalyticsConfig, ToolProfile
from .utils import days_in_month, format_month_label, normalize_month_key, parse_month_key


@dataclass(frozen=True)
class MonthlyUsageRecord:
    """One tool's usage totals for one month."""
    tool: str
    month: str
    active_users: int = 0
    messages: int = 0
    prompts: int = 0
    lines_generated: int = 0
    is_mtd: bool = False
    days_of_data: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "MonthlyUsageRecord":
        days_of_data = data.get("days_of_data")
        return cls(
            tool=data["tool"],
            month=str(data["month"]),
            active_users=int(data.get("active_users", 0) or 0),
            messages=int(data.get("messages", 0) or 0),
            prompts=int(data.get("prompts", 0) or 0),
            lines_generated=int(data.get("lines_generated", 0) or 0),
            is_mtd=bool(data.get("is_mtd", False)),
            days_of_data=int(days_of_data) if days_of_data is not None else None,
        )


@dataclass
class ToolFTE:
    """FTE contribution of one tool in one month."""
    tool: str
    kind: str
    ftes: float = 0.0
    productive_hours: float = 0.0
    active_users: int = 0
    lines_generated: int = 0
    manual_hours: Optional[float] = None


@dataclass
class FTEProjection:
    """Linear full-month projection of a partial month."""
    days_of_data: int
    days_in_month: int
    multiplier: float
    total_agentic_ftes: float
    total_productive_hours: float
    breakdown: Dict[str, float] = field(default_factory=dict)

    @property
    def methodology(self) -> str:
        return (
            f"Projected based on {self.days_of_data} days of data to {self.days_in_month} days "
            f"({self.multiplier:.2f}x multiplier)"
        )


@dataclass
class AgenticFTERecord:
    """Agentic FTEs for one month."""
    month: str
    breakdown: Dict[str, float] = field(default_factory=dict)
    tool_details: Dict[str, ToolFTE] = field(default_factory=dict)
    total_agentic_ftes: float = 0.0
    total_productive_hours: float = 0.0
    is_mtd: bool = False
    days_of_data: Optional[int] = None
    projection: Optional[FTEProjection] = None

    @property
    def month_label(self) -> str:
        return format_month_label(self.month)


@dataclass
class MonthOverMonth:
    """Change in total FTEs between the two latest months."""
    ftes_change: float
    percent_change: Optional[float]


@dataclass
class AgenticFTEReport:
    """Monthly FTE trend plus the current month summary."""
    monthly_trend: List[AgenticFTERecord] = field(default_factory=list)
    current: Optional[AgenticFTERecord] = None
    month_over_month: Optional[MonthOverMonth] = None

    @property
    def projection(self) -> Optional[FTEProjection]:
        return self.current.projection if self.current else None


def percent_change(current: float, previous: float) -> Optional[float]:
    """
    Percent change from previous to current.

    Returns:
        float: (current - previous) / previous * 100, or None if previous is not positive
    """
    if previous is None or previous <= 0:
        return None
    return (current - previous) / previous * 100


def distribute_fte_by_engagement(total_ftes: float, engagement: Dict[str, float]) -> Dict[str, float]:
    """
    Split a tool's FTEs across users in proportion to engagement.

    Args:
        total_ftes: FTEs to distribute
        engagement: user -> engagement score (messages, lines, ...)

    Returns:
        dict: user -> FTE share. All zeros when there is no engagement.
    """
    total_engagement = sum(max(score, 0) for score in engagement.values())

    if total_engagement <= 0:
        return {user: 0.0 for user in engagement}

    return {
        user: total_ftes * max(score, 0) / total_engagement
        for user, score in engagement.items()
    }


class AgenticFTECalculator:
    """
    Calculator that turns monthly usage records into Agentic FTE metrics.
    """

    def __init__(self, config: AnalyticsConfig):
        """
        Initialize the FTE calculator.

        Args:
            config: Analytics configuration (tool profiles and FTE constants)
        """
        self.config = config

    def calculate_tool_fte(self, tool: ToolProfile, active_users: int = 0, lines_generated: int = 0) -> ToolFTE:
        """
        FTEs contributed by one tool.

        Productivity: active_users * time_savings_fraction
        Coding: lines_generated * hours_per_line / hours_per_fte

        Returns:
            ToolFTE: FTEs, productive hours and (for coding tools) manual-equivalent hours
        """
        hours_per_fte = self.config.hours_per_fte

        if tool.is_coding:
            productive_hours = lines_generated * self.config.hours_per_line
            ftes = productive_hours / hours_per_fte if hours_per_fte else 0.0
            manual_hours = (
                lines_generated / self.config.manual_lines_per_hour
                if self.config.manual_lines_per_hour else None
            )
        else:
            ftes = active_users * tool.time_savings_fraction
            productive_hours = ftes * hours_per_fte
            manual_hours = None

        return ToolFTE(
            tool=tool.name,
            kind=tool.kind,
            ftes=ftes,
            productive_hours=productive_hours,
            active_users=active_users,
            lines_generated=lines_generated,
            manual_hours=manual_hours,
        )

    def calculate_month(self, month: str, records: Iterable[MonthlyUsageRecord]) -> AgenticFTERecord:
        """
        Agentic FTEs for one month.

        Every configured tool appears in the breakdown (0 without data).
        Duplicate records for a tool are summed; records for tools that
        are not configured are skipped.

        Args:
            month: Month key (YYYY-MM; "2024-1" is read as "2024-01")
            records: Usage records; only those for `month` are used

        Returns:
            AgenticFTERecord
        """
        month = normalize_month_key(month) or month
        users: Dict[str, int] = {name: 0 for name in self.config.tool_names}
        lines: Dict[str, int] = {name: 0 for name in self.config.tool_names}
        is_mtd = False
        days_of_data = None

        for record in records:
            if (normalize_month_key(record.month) or record.month) != month:
                continue
            if record.tool not in users:
                logging.warning(f"Skipping usage record for unknown tool '{record.tool}' ({record.month})")
                continue

            users[record.tool] += record.active_users
            lines[record.tool] += record.lines_generated

            if record.is_mtd:
                is_mtd = True
                if record.days_of_data is not None:
                    days_of_data = (
                        record.days_of_data if days_of_data is None
                        else min(days_of_data, record.days_of_data)
                    )

        tool_details = {}
        for tool in self.config.tools:
            tool_details[tool.name] = self.calculate_tool_fte(tool, users[tool.name], lines[tool.name])

        breakdown = {name: detail.ftes for name, detail in tool_details.items()}
        total_ftes = sum(breakdown.values())

        return AgenticFTERecord(
            month=month,
            breakdown=breakdown,
            tool_details=tool_details,
            total_agentic_ftes=total_ftes,
            total_productive_hours=total_ftes * self.config.hours_per_fte,
            is_mtd=is_mtd,
            days_of_data=days_of_data,
        )

    def project_month(self, record: AgenticFTERecord, reference_date: date = None) -> Optional[FTEProjection]:
        """
        Project a partial month to a full month linearly.

        The month is partial when reference_date falls inside it, or when it
        is flagged month-to-date with fewer days of data than the month has.

        Returns:
            FTEProjection, or None when the month is complete
        """
        month_days = days_in_month(record.month)
        if month_days is None:
            return None

        days_of_data = None
        year, month = parse_month_key(record.month)
        if reference_date is not None and (reference_date.year, reference_date.month) == (year, month):
            days_of_data = reference_date.day
        elif record.is_mtd:
            days_of_data = record.days_of_data

        if not days_of_data or days_of_data <= 0 or days_of_data >= month_days:
            return None

        multiplier = month_days / days_of_data

        return FTEProjection(
            days_of_data=days_of_data,
            days_in_month=month_days,
            multiplier=multiplier,
            total_agentic_ftes=record.total_agentic_ftes * multiplier,
            total_productive_hours=record.total_productive_hours * multiplier,
            breakdown={name: ftes * multiplier for name, ftes in record.breakdown.items()},
        )

    def calculate(self, records: Iterable[MonthlyUsageRecord], reference_date: date = None) -> AgenticFTEReport:
        """
        Calculate the monthly Agentic FTE trend.

        Args:
            records: Usage records for any number of months and tools
            reference_date: Optional "today" used to detect a partial latest month

        Returns:
            AgenticFTEReport: Chronological trend, current month and month-over-month change
        """
        records = list(records)

        by_month: Dict[str, List[MonthlyUsageRecord]] = OrderedDict()
        for record in records:
            month = normalize_month_key(record.month)
            if month is None:
                logging.warning(f"Skipping usage record with invalid month '{record.month}'")
                continue
            by_month.setdefault(month, []).append(record)

        months = sorted(by_month, key=parse_month_key)
        trend = [self.calculate_month(month, by_month[month]) for month in months]

        report = AgenticFTEReport(monthly_trend=trend)
        if not trend:
            logging.warning("No usage records - Agentic FTE trend is empty")
            return report

        latest = trend[-1]
        projection = self.project_month(latest, reference_date)
        if projection is not None:
            latest.is_mtd = True
            latest.days_of_data = projection.days_of_data
            latest.projection = projection
            logging.info(f"MTD projection for {latest.month_label}: {projection.methodology}")

        report.current = latest

        if len(trend) > 1:
            previous = trend[-2]
            report.month_over_month = MonthOverMonth(
                ftes_change=latest.total_agentic_ftes - previous.total_agentic_ftes,
                percent_change=percent_change(latest.total_agentic_ftes, previous.total_agentic_ftes),
            )

        logging.info(f"Agentic FTEs: {len(trend)} months, current {latest.month_label} "
                     f"= {latest.total_agentic_ftes:.1f} FTEs")

        return report
