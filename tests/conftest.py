"""Shared fixtures for the AI Value Analytics tests."""

import json

import pytest

from ai_value.shared.analytics_config import AnalyticsConfig, ToolProfile
from ai_value.shared.sentiment_calculator import FeedbackMessage, QuantifiedImpact


@pytest.fixture
def tools():
    return (
        ToolProfile("Claude Enterprise", "productivity", 0.28, ("claude enterprise", "enterprise search")),
        ToolProfile("Claude Code", "coding", keywords=("claude code",)),
        ToolProfile("M365 Copilot", "productivity", 0.14, ("m365 copilot",)),
    )


@pytest.fixture
def analytics_config(tools):
    return AnalyticsConfig(
        tools=tools,
        hours_per_fte=173,
        hours_per_line=0.08,
        manual_lines_per_hour=12.5,
        hourly_rate=77,
        baseline_hours_saved=11,
        pricing={"premium": 200, "standard": 40},
    )


@pytest.fixture
def make_message():
    """Factory for feedback messages with sensible defaults."""
    def _make(text="Claude Enterprise is useful", sentiment="positive",
              timestamp="2024-01-01T09:00:00Z", author="Alex", **kwargs):
        quantified = kwargs.pop("quantified", None)
        if isinstance(quantified, dict):
            quantified = QuantifiedImpact(**quantified)
        return FeedbackMessage(
            text=text,
            author=author,
            department=kwargs.pop("department", "Engineering"),
            timestamp=timestamp,
            sentiment=sentiment,
            quantified=quantified,
            **kwargs
        )
    return _make


@pytest.fixture
def sample_dataset():
    """A small upstream export exercising every section."""
    return {
        "organization": {
            "total_headcount": 200,
            "licensed_seats": 40,
            "headcounts": {"Engineering": 50, "Sales": 30},
        },
        "feedback": [
            {
                "text": "Claude Code cut my refactor time",
                "author": "Sam",
                "department": "Engineering",
                "timestamp": "2024-01-10T10:00:00Z",
                "sentiment": "positive",
                "theme": "refactoring",
                "quantified": {"before": "3 hours", "after": "1 hour"},
            },
            {
                "text": "Claude Enterprise search is slow sometimes",
                "author": "Jo",
                "department": "Sales",
                "timestamp": "2024-01-12T10:00:00Z",
                "sentiment": "negative",
                "challenge": "Latency on large workspaces",
            },
            {
                "text": "Using Claude Code and Claude Enterprise together every day",
                "author": "Kim",
                "department": "Engineering",
                "timestamp": "2024-02-02T10:00:00Z",
                "sentiment": "positive",
                "theme": "daily workflow",
            },
            {
                "text": "Weekly sync notes",
                "author": "Lee",
                "department": "Sales",
                "timestamp": "2024-02-03T10:00:00Z",
                "sentiment": "neutral",
            },
        ],
        "usage": [
            {"tool": "Claude Enterprise", "month": "2024-01", "active_users": 100},
            {"tool": "Claude Code", "month": "2024-01", "active_users": 20, "lines_generated": 17300},
            {"tool": "Claude Enterprise", "month": "2024-02", "active_users": 120,
             "is_mtd": True, "days_of_data": 10},
            {"tool": "Claude Code", "month": "2024-02", "active_users": 25, "lines_generated": 8650,
             "is_mtd": True, "days_of_data": 10},
        ],
        "department_usage": [
            {"department": "Engineering", "employees": 50, "active_seats": 60, "activity": 6000},
            {"department": "Sales", "employees": 30, "active_seats": 10, "activity": 500},
        ],
        "expansion": {
            "candidates": [
                {
                    "department": "Engineering",
                    "headcount": 50,
                    "current_standard": 10,
                    "current_premium": 2,
                    "target_standard": 6,
                    "target_premium": 8,
                },
                {
                    "department": "Sales",
                    "headcount": 30,
                    "current_seats": 10,
                    "standard_gap": 10,
                    "total_additional_monthly_cost": 400,
                    "monthly_opportunity_value": 8470,
                },
            ],
        },
        "roi_scenarios": [
            {
                "baseline": {"name": "GitHub Copilot", "seat_cost": 19, "hours_saved_per_user": 5},
                "target": {"name": "Claude Code", "seat_cost": 200, "hours_saved_per_user": 15},
                "hourly_rate": 72,
                "benchmark_baseline_hours": 8,
            },
            {
                "baseline": {"name": "M365 Copilot", "seat_cost": 30, "hours_saved_per_user": 6},
                "target": {"name": "Claude Enterprise", "seat_cost": 40, "hours_saved_per_user": 11},
                "use_benchmark_studies": True,
            },
        ],
        "benchmark_studies": [
            {"title": "TEI study", "author": "Forrester", "year": 2023, "sample_size": 1000,
             "hours_saved_per_month": 6},
            {"title": "Field trial", "author": "State University", "year": 2024, "sample_size": 500,
             "hours_saved_per_month": 8},
        ],
        "current_adoption": {
            "Engineering": {"users": 12, "premium": 2, "standard": 10},
        },
    }


@pytest.fixture
def dataset_file(tmp_path, sample_dataset):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(sample_dataset), encoding="utf-8")
    return path
