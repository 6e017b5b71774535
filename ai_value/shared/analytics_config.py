"""
Analytics configuration.

Builds the single configuration structure passed into every calculator
from the YAML configuration dictionary.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

PRODUCTIVITY = "productivity"
CODING = "coding"
TOOL_KINDS = (PRODUCTIVITY, CODING)


@dataclass(frozen=True)
class ToolProfile:
    """A tracked AI tool: identity, FTE model and attribution keywords."""
    name: str
    kind: str
    time_savings_fraction: float = 0.0
    keywords: Tuple[str, ...] = ()

    @property
    def is_coding(self) -> bool:
        return self.kind == CODING


@dataclass(frozen=True)
class SentimentSettings:
    """Limits used when summarizing a tool's feedback."""
    max_impacts: int = 5
    max_challenges: int = 3
    excerpt_length: int = 100
    trend_threshold: float = 0.1
    min_trend_messages: int = 3


@dataclass(frozen=True)
class ExpansionSettings:
    """Rollout phasing parameters."""
    phase_count: int = 4
    deployment_months: Optional[Tuple[float, ...]] = None
    incremental_hours_per_upgrade: float = 10.0


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Every constant the calculators depend on.

    Built once from config.yaml (or a plain dict) and passed explicitly,
    so no calculator carries its own literals.
    """
    tools: Tuple[ToolProfile, ...] = ()
    hours_per_fte: float = 173.0
    hours_per_line: float = 0.08
    manual_lines_per_hour: float = 12.5
    hourly_rate: float = 77.0
    engineering_hourly_rate: float = 72.0
    baseline_hours_saved: float = 11.0
    conservative_factor: float = 2.0
    pricing: Dict[str, float] = field(default_factory=dict)
    sentiment: SentimentSettings = field(default_factory=SentimentSettings)
    expansion: ExpansionSettings = field(default_factory=ExpansionSettings)

    def get_tool(self, name: str) -> Optional[ToolProfile]:
        """Look up a tool profile by name."""
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    @property
    def tool_names(self) -> List[str]:
        return [tool.name for tool in self.tools]

    @classmethod
    def from_dict(cls, config: Optional[dict]) -> "AnalyticsConfig":
        """
        Build an AnalyticsConfig from the parsed YAML configuration.

        Args:
            config: Configuration dictionary (see ai_value/config.yaml)

        Returns:
            AnalyticsConfig with defaults for any missing key

        Raises:
            ValueError: If a tool entry is missing a name or has an unknown kind
        """
        config = config or {}
        fte_config = config.get("fte", {}) or {}
        roi_config = config.get("roi", {}) or {}
        sentiment_config = config.get("sentiment", {}) or {}
        expansion_config = config.get("expansion", {}) or {}

        tools = tuple(_build_tool(entry) for entry in config.get("tools", []) or [])

        deployment_months = expansion_config.get("deployment_months")
        if deployment_months is not None:
            deployment_months = tuple(float(m) for m in deployment_months)

        return cls(
            tools=tools,
            hours_per_fte=float(fte_config.get("hours_per_fte", 173)),
            hours_per_line=float(fte_config.get("hours_per_line", 0.08)),
            manual_lines_per_hour=float(fte_config.get("manual_lines_per_hour", 12.5)),
            hourly_rate=float(roi_config.get("hourly_rate", 77)),
            engineering_hourly_rate=float(roi_config.get("engineering_hourly_rate", 72)),
            baseline_hours_saved=float(roi_config.get("baseline_hours_saved", 11)),
            conservative_factor=float(roi_config.get("conservative_factor", 2)),
            pricing={k: float(v) for k, v in (config.get("pricing", {}) or {}).items()},
            sentiment=SentimentSettings(
                max_impacts=int(sentiment_config.get("max_impacts", 5)),
                max_challenges=int(sentiment_config.get("max_challenges", 3)),
                excerpt_length=int(sentiment_config.get("excerpt_length", 100)),
                trend_threshold=float(sentiment_config.get("trend_threshold", 0.1)),
                min_trend_messages=int(sentiment_config.get("min_trend_messages", 3)),
            ),
            expansion=ExpansionSettings(
                phase_count=int(expansion_config.get("phase_count", 4)),
                deployment_months=deployment_months,
                incremental_hours_per_upgrade=float(
                    expansion_config.get("incremental_hours_per_upgrade", 10)
                ),
            ),
        )


def _build_tool(entry: dict) -> ToolProfile:
    """Build a ToolProfile from one `tools:` entry."""
    name = entry.get("name")
    if not name:
        raise ValueError(f"Tool entry is missing a name: {entry}")

    kind = entry.get("kind", PRODUCTIVITY)
    if kind not in TOOL_KINDS:
        raise ValueError(f"Unknown kind '{kind}' for tool '{name}' (expected one of {TOOL_KINDS})")

    keywords = tuple(k.lower() for k in entry.get("keywords", []) or [])

    return ToolProfile(
        name=name,
        kind=kind,
        time_savings_fraction=float(entry.get("time_savings_fraction", 0.0)),
        keywords=keywords,
    )
