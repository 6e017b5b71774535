import math

import pytest

from ai_value.shared.roi_calculator import (
    BenchmarkStudy,
    ToolEconomics,
    ValueMetrics,
    aggregate_benchmark_studies,
    benchmark_roi_from_hours,
    calculate_current_state_roi,
    calculate_incremental_roi,
    credibility_factor,
    derive_coding_hours,
    productivity_multiplier,
)

GITHUB_COPILOT = ToolEconomics("GitHub Copilot", seat_cost=19, hours_saved_per_user=5)
CLAUDE_CODE = ToolEconomics("Claude Code", seat_cost=200, hours_saved_per_user=15)


class TestIncrementalROI:
    def test_additive_and_replacement_scenarios(self):
        result = calculate_incremental_roi(GITHUB_COPILOT, CLAUDE_CODE, hourly_rate=72)

        assert result.incremental_hours == 10
        assert result.incremental_value == 720
        assert result.additive.incremental_cost == 200
        assert result.additive.incremental_roi == pytest.approx(3.6)
        assert result.replacement.incremental_cost == 181
        assert result.replacement.incremental_roi == pytest.approx(720 / 181)

    def test_replacement_cheaper_than_baseline_has_no_roi(self):
        expensive = ToolEconomics("Premium", seat_cost=200, hours_saved_per_user=10)
        cheaper = ToolEconomics("Lite", seat_cost=150, hours_saved_per_user=12)

        result = calculate_incremental_roi(expensive, cheaper, hourly_rate=50)

        assert result.replacement.incremental_cost == -50
        assert result.replacement.incremental_roi is None
        assert result.additive.incremental_roi == pytest.approx(100 / 150)

    def test_explicit_incremental_hours(self):
        result = calculate_incremental_roi(GITHUB_COPILOT, CLAUDE_CODE, hourly_rate=72, incremental_hours=5)
        assert result.incremental_value == 360

    def test_seats_scale_cost_and_value(self):
        result = calculate_incremental_roi(GITHUB_COPILOT, CLAUDE_CODE, hourly_rate=72, seats=10)
        assert result.additive.incremental_cost == 2000
        assert result.incremental_value == 7200
        assert result.additive.incremental_roi == pytest.approx(3.6)

    def test_benchmark_delta(self):
        result = calculate_incremental_roi(
            GITHUB_COPILOT, CLAUDE_CODE, hourly_rate=72, benchmarks={"additive": 3.0}
        )
        assert result.additive.benchmark_roi == 3.0
        assert result.additive.delta_percent == pytest.approx(20.0)
        assert result.replacement.benchmark_roi is None
        assert result.replacement.delta_percent is None

    def test_zero_benchmark_has_no_delta(self):
        result = calculate_incremental_roi(
            GITHUB_COPILOT, CLAUDE_CODE, hourly_rate=72, benchmarks={"additive": 0.0}
        )
        assert result.additive.delta_percent is None


def test_benchmark_roi_from_hours():
    assert benchmark_roi_from_hours(15, 8, 72, 200) == pytest.approx(7 * 72 / 200)
    assert benchmark_roi_from_hours(15, 8, 72, 0) is None


@pytest.mark.parametrize("author, factor", [
    ("Forrester Consulting", 1.2),
    ("Gartner", 1.2),
    ("Stanford University", 1.1),
    ("Academic consortium", 1.1),
    ("Microsoft WorkLab", 0.8),
    ("GitHub", 0.8),
    ("Some Blog", 0.5),
    ("", 0.5),
])
def test_credibility_factor(author, factor):
    assert credibility_factor(author) == factor


def study(author="Forrester", year=2024, sample_size=1000, hours=10.0):
    return BenchmarkStudy(title="study", author=author, year=year, sample_size=sample_size,
                          hours_saved_per_month=hours)


class TestBenchmarkAggregation:
    def test_no_studies(self):
        assert aggregate_benchmark_studies([], 2024) is None

    def test_weighted_mean(self):
        aggregate = aggregate_benchmark_studies(
            [study("Forrester", hours=10), study("Some Blog", hours=20)], 2024
        )
        # weights 1.2 and 0.5
        assert aggregate.hours_saved_per_month == pytest.approx((10 * 1.2 + 20 * 0.5) / 1.7)
        assert aggregate.coefficient_of_variation == pytest.approx(5 / 15)
        assert aggregate.study_count == 2
        assert aggregate.total_sample_size == 2000
        assert aggregate.confidence_level == "low"
        assert aggregate.low_confidence

        margin = 1.96 * 5 / math.sqrt(2)
        low, high = aggregate.confidence_interval
        assert low == pytest.approx(aggregate.hours_saved_per_month - margin)
        assert high == pytest.approx(aggregate.hours_saved_per_month + margin)

    def test_recency_decay(self):
        aggregate = aggregate_benchmark_studies(
            [study(year=2024, hours=10), study(year=2022, hours=20)], 2024
        )
        recent, old = 1.2, 1.2 * math.exp(-1)
        expected = (10 * recent + 20 * old) / (recent + old)
        assert aggregate.hours_saved_per_month == pytest.approx(expected)

    @pytest.mark.parametrize("count, level", [(1, "low"), (3, "medium"), (5, "high")])
    def test_confidence_by_study_count(self, count, level):
        aggregate = aggregate_benchmark_studies([study() for _ in range(count)], 2024)
        assert aggregate.confidence_level == level
        assert aggregate.confidence_interval == [pytest.approx(10.0), pytest.approx(10.0)]

    def test_high_variation_is_low_confidence(self):
        hours = [1, 2, 20, 30, 40]
        aggregate = aggregate_benchmark_studies([study(hours=h) for h in hours], 2024)
        assert aggregate.coefficient_of_variation > 0.6
        assert aggregate.confidence_level == "low"

    def test_interval_floor_at_zero(self):
        aggregate = aggregate_benchmark_studies([study(hours=1), study(hours=30)], 2024)
        assert aggregate.confidence_interval[0] == 0.0


def test_productivity_multiplier():
    assert productivity_multiplier(400, 100) == 4.0
    assert productivity_multiplier(400, 0) == 0.0


def test_derive_coding_hours():
    assert derive_coding_hours(11, 4, 2) == 22
    assert derive_coding_hours(11, 3, 2) == 17
    assert derive_coding_hours(11, 2, 0) == 22


class TestCurrentState:
    def test_cost_value_and_roi(self):
        adoption = {
            "Engineering": {"users": 10, "premium": 4, "standard": 6},
            "Sales": {"users": 5, "premium": 0, "standard": 5},
        }
        result = calculate_current_state_roi(
            adoption,
            {"premium": 200, "standard": 40},
            lambda department: ValueMetrics(hours_per_user_per_month=11, hourly_rate=77),
        )

        assert result.licensed_users == 15
        assert result.premium_seats == 4
        assert result.standard_seats == 11
        assert result.monthly_cost == 1240
        assert result.costs == {"premium": 800, "standard": 440, "total": 1240}
        assert result.hours_saved == 165
        assert result.monthly_value == pytest.approx(12705)
        assert result.net_benefit == pytest.approx(12705 - 1240)
        assert result.roi == pytest.approx(12705 / 1240)

    def test_no_seats(self):
        result = calculate_current_state_roi({}, {"premium": 200}, lambda d: ValueMetrics(11, 77))
        assert result.monthly_cost == 0
        assert result.roi is None
