import pytest

from ai_value.shared.analytics_config import SentimentSettings
from ai_value.shared.sentiment_calculator import (
    FeedbackMessage,
    KeywordClassifier,
    SentimentCalculator,
    calculate_sentiment_score,
    count_sentiments,
    determine_trend,
    extract_challenges,
    extract_themes,
    extract_top_impacts,
    select_representative_quotes,
)


class TestSentimentScore:
    def test_two_positive_one_negative(self, make_message):
        messages = [
            make_message(sentiment="positive"),
            make_message(sentiment="positive"),
            make_message(sentiment="negative"),
        ]
        breakdown = count_sentiments(messages)

        assert breakdown == {"positive": 2, "neutral": 0, "negative": 1}
        assert calculate_sentiment_score(breakdown) == 67

    def test_no_feedback_is_neutral(self):
        assert calculate_sentiment_score({"positive": 0, "neutral": 0, "negative": 0}) == 50
        assert calculate_sentiment_score({}) == 50

    def test_halves_round_up(self):
        # 100 / 8 = 12.5
        assert calculate_sentiment_score({"positive": 1, "neutral": 0, "negative": 7}) == 13

    def test_bounds(self):
        assert calculate_sentiment_score({"positive": 5}) == 100
        assert calculate_sentiment_score({"negative": 5}) == 0
        assert calculate_sentiment_score({"neutral": 5}) == 50


def test_themes_deduplicated_in_first_seen_order(make_message):
    messages = [
        make_message(theme="search"),
        make_message(theme=None),
        make_message(theme="drafting"),
        make_message(theme="search"),
    ]
    assert extract_themes(messages) == ["search", "drafting"]


def test_top_impacts_limited_and_computed(make_message):
    messages = [
        make_message(theme=f"task {i}", quantified={"before": "3 hours", "after": "1 hour"})
        for i in range(6)
    ]
    messages.insert(0, make_message(theme="no impact"))

    impacts = extract_top_impacts(messages, limit=5)

    assert len(impacts) == 5
    assert impacts[0].task == "task 0"
    assert impacts[0].reduction == "67%"
    assert impacts[0].reduction_percent == 67
    assert impacts[0].source == "Alex"


def test_top_impact_prefers_explicit_reduction(make_message):
    message = make_message(quantified={"before": "3 hours", "after": "1 hour", "reduction": "2 hours saved"})
    impact = extract_top_impacts([message])[0]
    assert impact.reduction == "2 hours saved"
    assert impact.reduction_percent == 67


def test_challenges(make_message):
    long_text = "x" * 150
    messages = [
        make_message(sentiment="positive"),
        make_message(sentiment="positive", challenge="Needs SSO"),
        make_message(sentiment="negative", text=long_text),
        make_message(sentiment="negative", text="third"),
        make_message(sentiment="negative", text="fourth"),
    ]

    challenges = extract_challenges(messages, limit=3, excerpt_length=100)

    assert challenges == ["Needs SSO", "x" * 100, "third"]


class TestRepresentativeQuotes:
    def test_all_three_slots(self, make_message):
        messages = [
            make_message(text="plain praise", sentiment="positive"),
            make_message(text="complaint", sentiment="negative"),
            make_message(text="saved hours", sentiment="positive",
                         quantified={"before": "3 hours", "after": "1 hour"}),
        ]

        quotes = select_representative_quotes(messages)

        assert [q.text for q in quotes] == ["saved hours", "plain praise", "complaint"]
        assert quotes[0].impact is not None
        assert quotes[2].type == "challenge"

    def test_missing_slots_are_skipped(self, make_message):
        quotes = select_representative_quotes([make_message(text="only praise")])
        assert [q.text for q in quotes] == ["only praise"]

    def test_no_messages(self):
        assert select_representative_quotes([]) == []


class TestTrend:
    def test_insufficient_data(self, make_message):
        assert determine_trend([make_message(), make_message()]) == "insufficient_data"

    def test_improving_sorts_chronologically_without_mutating(self, make_message):
        messages = [
            make_message(sentiment="positive", timestamp="2024-04-01T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-03-01T00:00:00Z"),
            make_message(sentiment="negative", timestamp="2024-02-01T00:00:00Z"),
            make_message(sentiment="negative", timestamp="2024-01-01T00:00:00Z"),
        ]
        original = list(messages)

        assert determine_trend(messages) == "improving"
        assert messages == original

    def test_declining(self, make_message):
        messages = [
            make_message(sentiment="positive", timestamp="2024-01-01T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-02T00:00:00Z"),
            make_message(sentiment="negative", timestamp="2024-01-03T00:00:00Z"),
            make_message(sentiment="neutral", timestamp="2024-01-04T00:00:00Z"),
        ]
        assert determine_trend(messages) == "declining"

    def test_stable(self, make_message):
        messages = [make_message(timestamp=f"2024-01-0{i}T00:00:00Z") for i in range(1, 5)]
        assert determine_trend(messages) == "stable"

    def test_odd_count_splits_at_floor(self, make_message):
        # first half = 2 messages (0.5 positive), second half = 3 messages (2/3 positive)
        messages = [
            make_message(sentiment="positive", timestamp="2024-01-01T00:00:00Z"),
            make_message(sentiment="negative", timestamp="2024-01-02T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-03T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-04T00:00:00Z"),
            make_message(sentiment="negative", timestamp="2024-01-05T00:00:00Z"),
        ]
        assert determine_trend(messages) == "improving"

    def test_unparseable_timestamps_sort_first(self, make_message):
        messages = [
            make_message(sentiment="positive", timestamp="2024-03-01T00:00:00Z"),
            make_message(sentiment="negative", timestamp="not a date"),
            make_message(sentiment="negative", timestamp="2024-01-01T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-04-01T00:00:00Z"),
        ]
        assert determine_trend(messages) == "improving"

    def test_custom_threshold(self, make_message):
        messages = [
            make_message(sentiment="negative", timestamp="2024-01-01T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-02T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-03T00:00:00Z"),
            make_message(sentiment="positive", timestamp="2024-01-04T00:00:00Z"),
        ]
        assert determine_trend(messages) == "improving"
        assert determine_trend(messages, threshold=0.6) == "stable"


class TestKeywordClassifier:
    def test_keyword_match_is_case_insensitive(self, tools, make_message):
        classifier = KeywordClassifier(tools)
        assert classifier(make_message(text="CLAUDE CODE wrote the tests")) == {"Claude Code"}

    def test_explicit_tool_tag(self, tools, make_message):
        classifier = KeywordClassifier(tools)
        assert classifier(make_message(text="great tool", tool="M365 Copilot")) == {"M365 Copilot"}

    def test_multiple_and_no_matches(self, tools, make_message):
        classifier = KeywordClassifier(tools)
        both = make_message(text="Claude Code plus Claude Enterprise")
        assert classifier(both) == {"Claude Code", "Claude Enterprise"}
        assert classifier(make_message(text="lunch was good")) == set()


class TestSentimentCalculator:
    def test_every_tool_reported(self, tools, make_message):
        summary = SentimentCalculator(tools).calculate([make_message(text="Claude Code rocks")])

        assert set(summary.results) == {"Claude Enterprise", "Claude Code", "M365 Copilot"}
        empty = summary.results["M365 Copilot"]
        assert empty.total_feedback == 0
        assert empty.score == 50
        assert empty.trend == "insufficient_data"
        assert empty.quotes == []

    def test_multi_tool_attribution(self, tools, make_message):
        messages = [
            make_message(text="Claude Code and Claude Enterprise both help"),
            make_message(text="Claude Code is fast"),
            make_message(text="unrelated chatter", sentiment="neutral"),
        ]

        summary = SentimentCalculator(tools).calculate(messages)

        assert summary.total_messages == 3
        assert summary.attributed_messages == 2
        assert summary.unattributed_messages == 1
        assert summary.total_feedback_analyzed == 3
        assert summary.multi_tool_messages == 1
        assert summary.results["Claude Code"].total_feedback == 2
        assert summary.results["Claude Enterprise"].total_feedback == 1
        assert "2 unique messages generated 3" in summary.explanation

    def test_scores_within_range(self, tools, make_message):
        messages = [
            make_message(text="claude code " + s, sentiment=s)
            for s in ("positive", "negative", "neutral", "negative", "positive")
        ]
        summary = SentimentCalculator(tools).calculate(messages)
        for result in summary.results.values():
            assert 0 <= result.score <= 100
            assert sum(result.sentiment_breakdown.values()) == result.total_feedback

    def test_custom_classifier(self, tools, make_message):
        calculator = SentimentCalculator(tools, classifier=lambda message: {"M365 Copilot"})
        summary = calculator.calculate([make_message(text="anything")])
        assert summary.results["M365 Copilot"].total_feedback == 1
        assert summary.results["Claude Code"].total_feedback == 0

    def test_settings_limit_output(self, tools, make_message):
        settings = SentimentSettings(max_challenges=1)
        messages = [make_message(text="claude code broke", sentiment="negative") for _ in range(3)]
        summary = SentimentCalculator(tools, settings=settings).calculate(messages)
        assert summary.results["Claude Code"].challenges == ["claude code broke"]

    def test_classifier_called_once_per_message(self, tools, make_message):
        calls = []
        answers = iter([{"Claude Code"}, set(), {"Claude Code", "M365 Copilot"}])

        def flaky_classifier(message):
            calls.append(message.text)
            return next(answers)

        messages = [make_message(text=t) for t in ("one", "two", "three")]
        summary = SentimentCalculator(tools, classifier=flaky_classifier).calculate(messages)

        assert calls == ["one", "two", "three"]
        assert summary.attributed_messages == 2
        assert summary.results["Claude Code"].total_feedback == 2
        assert summary.results["M365 Copilot"].total_feedback == 1
        assert summary.multi_tool_messages == 1

    def test_overflowing_duration_does_not_abort(self, tools, make_message):
        message = make_message(
            text="Claude Code made this instant",
            quantified={"before": "1 hour", "after": "1e309 hours"},
        )

        summary = SentimentCalculator(tools).calculate([message])

        impact = summary.results["Claude Code"].top_impacts[0]
        assert impact.reduction == "N/A"
        assert impact.reduction_percent is None


def test_feedback_message_from_dict():
    message = FeedbackMessage.from_dict({
        "id": "m1",
        "text": "Saved time",
        "author": "Pat",
        "department": "Legal",
        "timestamp": "2024-01-01T00:00:00Z",
        "sentiment": "Positive",
        "quantified": {"before": "2 hours", "after": "30 min"},
    })
    assert message.sentiment == "positive"
    assert message.message_id == "m1"
    assert message.quantified.before == "2 hours"
