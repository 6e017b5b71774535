"""
Sentiment Calculator for perceived-value analytics.

Attributes feedback messages to tools and summarizes each tool's
feedback into a 0-100 perceived value score, themes, quantified
impacts, challenges, representative quotes and a trend label.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set

from .analytics_config import SentimentSettings, ToolProfile
from .duration_parser import calculate_reduction_percent, describe_reduction
from .utils import parse_timestamp, round_half_up

POSITIVE = "positive"
NEUTRAL = "neutral"
NEGATIVE = "negative"
SENTIMENTS = (POSITIVE, NEUTRAL, NEGATIVE)

NEUTRAL_SCORE = 50

TREND_IMPROVING = "improving"
TREND_DECLINING = "declining"
TREND_STABLE = "stable"
TREND_INSUFFICIENT = "insufficient_data"


@dataclass(frozen=True)
class QuantifiedImpact:
    """Before/after durations reported with a piece of feedback."""
    before: Optional[str] = None
    after: Optional[str] = None
    reduction: Optional[str] = None


@dataclass(frozen=True)
class FeedbackMessage:
    """A single piece of feedback with its pre-assigned sentiment label."""
    text: str
    author: str
    department: str
    timestamp: str
    sentiment: str
    tool: Optional[str] = None
    theme: Optional[str] = None
    challenge: Optional[str] = None
    quantified: Optional[QuantifiedImpact] = None
    message_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackMessage":
        quantified = data.get("quantified")
        if quantified:
            quantified = QuantifiedImpact(
                before=quantified.get("before"),
                after=quantified.get("after"),
                reduction=quantified.get("reduction"),
            )
        return cls(
            text=data.get("text", "") or "",
            author=data.get("author", "") or "",
            department=data.get("department", "") or "",
            timestamp=data.get("timestamp", "") or "",
            sentiment=(data.get("sentiment") or NEUTRAL).lower(),
            tool=data.get("tool"),
            theme=data.get("theme"),
            challenge=data.get("challenge"),
            quantified=quantified or None,
            message_id=data.get("id") or data.get("message_id"),
        )


@dataclass
class ImpactSummary:
    """A quantified impact surfaced for a tool."""
    task: Optional[str]
    reduction: str
    reduction_percent: Optional[int]
    source: str


@dataclass
class Quote:
    """A representative quote for a tool."""
    text: str
    author: str
    context: Optional[str] = None
    impact: Optional[QuantifiedImpact] = None
    type: Optional[str] = None


@dataclass
class ToolSentimentResult:
    """Perceived value summary for one tool."""
    tool: str
    score: int = NEUTRAL_SCORE
    total_feedback: int = 0
    sentiment_breakdown: Dict[str, int] = field(
        default_factory=lambda: {POSITIVE: 0, NEUTRAL: 0, NEGATIVE: 0}
    )
    themes: List[str] = field(default_factory=list)
    top_impacts: List[ImpactSummary] = field(default_factory=list)
    challenges: List[str] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)
    trend: str = TREND_INSUFFICIENT


@dataclass
class SentimentSummary:
    """Perceived value results for every configured tool."""
    results: Dict[str, ToolSentimentResult]
    total_messages: int = 0
    attributed_messages: int = 0
    unattributed_messages: int = 0
    total_feedback_analyzed: int = 0
    multi_tool_messages: int = 0

    @property
    def explanation(self) -> str:
        return (
            f"{self.attributed_messages} unique messages generated "
            f"{self.total_feedback_analyzed} tool-specific feedback items. "
            f"{self.multi_tool_messages} additional attributions came from messages "
            f"mentioning multiple tools."
        )


# A classifier maps a message to the names of the tools it is about.
ToolClassifier = Callable[[FeedbackMessage], Set[str]]


class KeywordClassifier:
    """
    Attribute messages by explicit tool tag or keyword match.

    A message belongs to a tool if its `tool` tag equals the tool name,
    or if any of the tool's keywords occurs in the text (case-insensitive).
    """

    def __init__(self, tools: Iterable[ToolProfile]):
        self.tools = list(tools)

    def __call__(self, message: FeedbackMessage) -> Set[str]:
        text = message.text.lower()
        matched = set()

        for tool in self.tools:
            if message.tool and message.tool == tool.name:
                matched.add(tool.name)
            elif any(keyword and keyword in text for keyword in tool.keywords):
                matched.add(tool.name)

        return matched


def count_sentiments(messages: Iterable[FeedbackMessage]) -> Dict[str, int]:
    """Raw positive/neutral/negative counts (other labels are ignored)."""
    breakdown = {POSITIVE: 0, NEUTRAL: 0, NEGATIVE: 0}
    for message in messages:
        if message.sentiment in breakdown:
            breakdown[message.sentiment] += 1
    return breakdown


def calculate_sentiment_score(breakdown: Dict[str, int]) -> int:
    """
    Weighted perceived value score: positive=100, neutral=50, negative=0.

    Args:
        breakdown: Sentiment counts

    Returns:
        int: Score in 0-100, or 50 when there is no feedback
    """
    positive = breakdown.get(POSITIVE, 0)
    neutral = breakdown.get(NEUTRAL, 0)
    negative = breakdown.get(NEGATIVE, 0)
    total = positive + neutral + negative

    if total == 0:
        return NEUTRAL_SCORE

    return round_half_up((positive * 100 + neutral * 50) / total)


def extract_themes(messages: Iterable[FeedbackMessage]) -> List[str]:
    """Theme tags present in the messages, deduplicated in order of first appearance."""
    themes = []
    seen = set()
    for message in messages:
        if message.theme and message.theme not in seen:
            seen.add(message.theme)
            themes.append(message.theme)
    return themes


def extract_top_impacts(messages: Iterable[FeedbackMessage], limit: int = 5) -> List[ImpactSummary]:
    """First `limit` quantified impacts, with their time reduction."""
    impacts = []
    for message in messages:
        if len(impacts) >= limit:
            break
        impact = message.quantified
        if impact is None:
            continue

        percent = calculate_reduction_percent(impact.before, impact.after)
        impacts.append(ImpactSummary(
            task=message.theme,
            reduction=describe_reduction(impact.before, impact.after, impact.reduction),
            reduction_percent=percent,
            source=message.author,
        ))
    return impacts


def extract_challenges(
    messages: Iterable[FeedbackMessage],
    limit: int = 3,
    excerpt_length: int = 100
) -> List[str]:
    """First `limit` challenges: explicit challenge text or a negative message excerpt."""
    challenges = []
    for message in messages:
        if len(challenges) >= limit:
            break
        if message.challenge:
            challenges.append(message.challenge)
        elif message.sentiment == NEGATIVE:
            challenges.append(message.text[:excerpt_length])
    return challenges


def select_representative_quotes(messages: Sequence[FeedbackMessage]) -> List[Quote]:
    """
    Pick up to three quotes in a fixed preference order.

    1. A positive message with a quantified impact
    2. A positive message without one
    3. A negative or challenge message

    Each slot is filled only if a matching message exists.
    """
    quotes = []

    quantified = next(
        (m for m in messages if m.sentiment == POSITIVE and m.quantified), None
    )
    if quantified:
        quotes.append(Quote(
            text=quantified.text,
            author=quantified.author,
            context=quantified.theme,
            impact=quantified.quantified,
        ))

    positive = next(
        (m for m in messages if m.sentiment == POSITIVE and not m.quantified), None
    )
    if positive:
        quotes.append(Quote(text=positive.text, author=positive.author, context=positive.theme))

    constructive = next(
        (m for m in messages if m.sentiment == NEGATIVE or m.challenge), None
    )
    if constructive:
        quotes.append(Quote(
            text=constructive.text,
            author=constructive.author,
            context=constructive.theme,
            type="challenge",
        ))

    return quotes


def _positive_ratio(messages: Sequence[FeedbackMessage]) -> float:
    if not messages:
        return 0.0
    return sum(1 for m in messages if m.sentiment == POSITIVE) / len(messages)


def determine_trend(
    messages: Sequence[FeedbackMessage],
    threshold: float = 0.1,
    min_messages: int = 3
) -> str:
    """
    Compare the positive ratio of the older and newer half of the feedback.

    Messages are ordered by timestamp (unparseable timestamps sort first,
    keeping their input order). The input sequence is not modified.

    Returns:
        str: improving, declining, stable or insufficient_data
    """
    if len(messages) < min_messages:
        return TREND_INSUFFICIENT

    ordered = sorted(
        messages,
        key=lambda m: parse_timestamp(m.timestamp) or datetime.min
    )

    mid = len(ordered) // 2
    first_ratio = _positive_ratio(ordered[:mid])
    second_ratio = _positive_ratio(ordered[mid:])

    if second_ratio > first_ratio + threshold:
        return TREND_IMPROVING
    if second_ratio < first_ratio - threshold:
        return TREND_DECLINING
    return TREND_STABLE


class SentimentCalculator:
    """
    Calculator that attributes feedback to tools and scores each tool.
    """

    def __init__(
        self,
        tools: Iterable[ToolProfile],
        classifier: Optional[ToolClassifier] = None,
        settings: Optional[SentimentSettings] = None
    ):
        """
        Initialize the sentiment calculator.

        Args:
            tools: Tools to report on (one result each, even with no feedback)
            classifier: Callable message -> set of tool names.
                        Defaults to KeywordClassifier over `tools`.
            settings: Limits for impacts, challenges and trend detection
        """
        self.tools = list(tools)
        self.classifier = classifier or KeywordClassifier(self.tools)
        self.settings = settings or SentimentSettings()

    def attribute_messages(
        self,
        messages: Sequence[FeedbackMessage],
        matches: Optional[List[Set[str]]] = None
    ) -> Dict[str, List[FeedbackMessage]]:
        """
        Group messages by the tools they are attributed to.

        A message contributes independently to every tool it matches.

        Args:
            messages: Feedback messages
            matches: Classifier output per message, if already computed

        Returns:
            dict: tool name -> messages, in input order
        """
        messages = list(messages)
        tool_names = [tool.name for tool in self.tools]
        by_tool: Dict[str, List[FeedbackMessage]] = {name: [] for name in tool_names}

        if matches is None:
            matches = [self.classifier(message) for message in messages]

        for message, matched in zip(messages, matches):
            for name in tool_names:
                if name in matched:
                    by_tool[name].append(message)

        return by_tool

    def summarize_tool(self, tool: str, messages: Sequence[FeedbackMessage]) -> ToolSentimentResult:
        """Build the perceived value result for one tool's messages."""
        breakdown = count_sentiments(messages)

        return ToolSentimentResult(
            tool=tool,
            score=calculate_sentiment_score(breakdown),
            total_feedback=len(messages),
            sentiment_breakdown=breakdown,
            themes=extract_themes(messages),
            top_impacts=extract_top_impacts(messages, self.settings.max_impacts),
            challenges=extract_challenges(
                messages,
                limit=self.settings.max_challenges,
                excerpt_length=self.settings.excerpt_length
            ),
            quotes=select_representative_quotes(messages),
            trend=determine_trend(
                messages,
                threshold=self.settings.trend_threshold,
                min_messages=self.settings.min_trend_messages
            ),
        )

    def calculate(self, messages: Sequence[FeedbackMessage]) -> SentimentSummary:
        """
        Calculate perceived value for every tool.

        Args:
            messages: Feedback messages with sentiment labels

        Returns:
            SentimentSummary: Per-tool results and multi-tool attribution counts
        """
        messages = list(messages)
        matches = [self.classifier(message) for message in messages]
        by_tool = self.attribute_messages(messages, matches)

        results = {
            name: self.summarize_tool(name, tool_messages)
            for name, tool_messages in by_tool.items()
        }

        tool_names = set(by_tool)
        attributed = sum(1 for matched in matches if set(matched) & tool_names)
        total_feedback = sum(r.total_feedback for r in results.values())

        summary = SentimentSummary(
            results=results,
            total_messages=len(messages),
            attributed_messages=attributed,
            unattributed_messages=len(messages) - attributed,
            total_feedback_analyzed=total_feedback,
            multi_tool_messages=total_feedback - attributed,
        )

        logging.info(f"Sentiment: {len(messages)} messages, {total_feedback} tool-specific feedback items")
        for name, result in results.items():
            logging.info(f"  {name}: {result.score}/100 ({result.total_feedback} feedback items, {result.trend})")
        if summary.unattributed_messages:
            logging.warning(f"{summary.unattributed_messages} feedback messages matched no configured tool")

        return summary
