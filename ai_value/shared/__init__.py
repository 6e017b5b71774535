"""
Shared modules for AI Value Analytics.

Import modules individually to avoid circular imports:
    from ai_value.shared.utils import load_config
    from ai_value.shared.analytics_config import AnalyticsConfig
    from ai_value.shared.duration_parser import parse_duration_minutes
    from ai_value.shared.sentiment_calculator import SentimentCalculator
    from ai_value.shared.fte_calculator import AgenticFTECalculator
    from ai_value.shared.roi_calculator import calculate_incremental_roi
    from ai_value.shared.adoption_scorer import score_departments
    from ai_value.shared.expansion_planner import build_rollout_plan
    from ai_value.shared.dataset_loader import DatasetLoader
    from ai_value.shared.metrics_calculator import calculate_all_metrics
"""

__all__ = [
    "utils",
    "analytics_config",
    "duration_parser",
    "sentiment_calculator",
    "fte_calculator",
    "roi_calculator",
    "adoption_scorer",
    "expansion_planner",
    "dataset_loader",
    "metrics_calculator",
]
