"""Tests for the wellness index scoring engine."""

from __future__ import annotations

import pytest

from tests.support.tables import make_tables
from wellness_index.domain.scoring import (
    Assessment,
    DomainAggregate,
    ResponseRange,
    ScoreFailure,
    ScoreSuccess,
    aggregate_domain,
    calculate_from_assessments,
    calculate_wellness_index,
    clamp,
    evaluate_wellness_index,
    normalise_domain,
    score_metric,
    validate_inputs,
)
from wellness_index.domain.tables import MetricRule
from wellness_index.exceptions import ConfigurationError, MissingMetricRuleError

PHQ9 = MetricRule(max_impact=15.0, min_impact=-35.0)


class TestClamp:
    """Tests for the final clamp."""

    def test_within_range(self) -> None:
        assert clamp(42.0, 0.0, 100.0) == 42.0

    def test_below_and_above(self) -> None:
        assert clamp(-3.0, 0.0, 100.0) == 0.0
        assert clamp(180.0, 0.0, 100.0) == 100.0


class TestMetricScoring:
    """Tests for per-metric scoring."""

    def test_phq9_example(self) -> None:
        assert score_metric(12.0, PHQ9) == pytest.approx(-5.0)

    def test_endpoints_map_to_impacts(self) -> None:
        assert score_metric(0.0, PHQ9) == -35.0
        assert score_metric(20.0, PHQ9) == 15.0

    def test_reversed_rule_scores_down(self) -> None:
        rule = MetricRule(max_impact=-10.0, min_impact=10.0)
        assert score_metric(20.0, rule) == -10.0
        assert score_metric(0.0, rule) == 10.0


class TestDomainNormalisation:
    """Tests for domain aggregation and normalisation."""

    def test_phq9_domain_normalises_to_sixty(self) -> None:
        tables = make_tables()

        aggregate = aggregate_domain("MentalHealth", {"PHQ9": 12.0}, tables)

        assert aggregate.minimum == -35.0
        assert aggregate.maximum == 15.0
        assert normalise_domain(aggregate) == pytest.approx(60.0)

    def test_best_responses_normalise_to_hundred(self) -> None:
        tables = make_tables()

        aggregate = aggregate_domain(
            "PhysicalHealth", {"BodyMassIndex": 20.0, "SleepQuality": 20.0}, tables
        )

        assert normalise_domain(aggregate) == 100.0

    def test_worst_responses_normalise_to_zero(self) -> None:
        tables = make_tables()

        aggregate = aggregate_domain(
            "PhysicalHealth", {"BodyMassIndex": 0.0, "SleepQuality": 0.0}, tables
        )

        assert normalise_domain(aggregate) == 0.0

    def test_reversed_rule_uses_ordered_bounds(self) -> None:
        tables = make_tables(
            {"Stress": {"Cortisol": (-10.0, 10.0)}},
            {"Stress": 1.0},
        )

        aggregate = aggregate_domain("Stress", {"Cortisol": 20.0}, tables)

        assert aggregate == DomainAggregate(raw=-10.0, minimum=-10.0, maximum=10.0)
        assert normalise_domain(aggregate) == 0.0

    def test_zero_width_domain_normalises_to_zero(self) -> None:
        assert normalise_domain(DomainAggregate(raw=5.0, minimum=5.0, maximum=5.0)) == 0.0

    def test_domain_score_is_not_clamped(self) -> None:
        tables = make_tables()

        aggregate = aggregate_domain("MentalHealth", {"PHQ9": 30.0}, tables)

        assert normalise_domain(aggregate) == pytest.approx(150.0)

    def test_linear_in_each_response(self) -> None:
        tables = make_tables()

        def normalised(sleep: float) -> float:
            return normalise_domain(
                aggregate_domain(
                    "PhysicalHealth", {"BodyMassIndex": 7.0, "SleepQuality": sleep}, tables
                )
            )

        assert normalised(5.0) + normalised(15.0) == pytest.approx(2 * normalised(10.0))
        assert normalised(12.0) - normalised(8.0) == pytest.approx(
            normalised(8.0) - normalised(4.0)
        )

    def test_unknown_metric_names_the_pair(self) -> None:
        tables = make_tables()

        with pytest.raises(MissingMetricRuleError) as excinfo:
            aggregate_domain("MentalHealth", {"GAD7": 4.0}, tables)

        assert isinstance(excinfo.value, LookupError)
        assert excinfo.value.domain == "MentalHealth"
        assert excinfo.value.metric == "GAD7"
        assert "GAD7" in str(excinfo.value)


class TestCalculateWellnessIndex:
    """Tests for the full calculation."""

    def test_single_domain_final_score_equals_domain_score(self) -> None:
        tables = make_tables()

        result = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})

        assert result.final_score == pytest.approx(60.0)
        detail = result.domain_details["MentalHealth"]
        assert detail.raw == pytest.approx(-5.0)
        assert detail.normalized == pytest.approx(60.0)
        assert detail.centred == pytest.approx(10.0)

    def test_weighted_mean_of_domains(self) -> None:
        tables = make_tables(weights={"MentalHealth": 3.0, "PhysicalHealth": 1.0})

        result = calculate_wellness_index(
            tables,
            {
                "MentalHealth": {"PHQ9": 12.0},
                "PhysicalHealth": {"BodyMassIndex": 20.0, "SleepQuality": 20.0},
            },
        )

        assert result.final_score == pytest.approx(70.0)

    def test_final_score_clamped_high_and_low(self) -> None:
        tables = make_tables()

        high = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 30.0}})
        low = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": -10.0}})

        assert high.final_score == 100.0
        assert low.final_score == 0.0
        assert high.domain_details["MentalHealth"].normalized > 100.0
        assert low.domain_details["MentalHealth"].normalized < 0.0

    def test_out_of_range_response_warns_but_scores(self) -> None:
        tables = make_tables()

        result = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 25.0}})

        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert (warning.domain, warning.metric, warning.value) == ("MentalHealth", "PHQ9", 25.0)
        assert "outside the expected range" in warning.message

    def test_custom_response_range(self) -> None:
        tables = make_tables()

        result = calculate_wellness_index(
            tables,
            {"MentalHealth": {"PHQ9": 12.0}},
            response_range=ResponseRange(minimum=0.0, maximum=10.0),
        )

        assert [w.maximum for w in result.warnings] == [10.0]

    def test_idempotent(self) -> None:
        tables = make_tables()
        responses = {
            "MentalHealth": {"PHQ9": 9.0},
            "PhysicalHealth": {"BodyMassIndex": 3.0, "SleepQuality": 17.0},
        }

        first = calculate_wellness_index(tables, responses)
        second = calculate_wellness_index(tables, responses)

        assert first == second

    def test_zero_weight_domain_does_not_change_score(self) -> None:
        tables = make_tables(weights={"MentalHealth": 1.0, "PhysicalHealth": 0.0})
        physical = {"BodyMassIndex": 20.0, "SleepQuality": 20.0}

        with_domain = calculate_wellness_index(
            tables, {"MentalHealth": {"PHQ9": 12.0}, "PhysicalHealth": physical}
        )
        without_domain = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})

        assert with_domain.final_score == without_domain.final_score
        assert with_domain.domain_details["PhysicalHealth"].normalized == 100.0

    def test_missing_weight_domain_is_excluded(self) -> None:
        tables = make_tables(weights={"MentalHealth": 1.0})

        result = calculate_wellness_index(
            tables,
            {
                "MentalHealth": {"PHQ9": 12.0},
                "PhysicalHealth": {"BodyMassIndex": 0.0, "SleepQuality": 0.0},
            },
        )

        assert result.final_score == pytest.approx(60.0)
        assert result.domain_details["PhysicalHealth"].weight == 0.0

    def test_zero_total_weight_raises_by_default(self) -> None:
        tables = make_tables(weights={})

        with pytest.raises(ConfigurationError, match="total weight"):
            calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})

    def test_zero_total_weight_scores_zero_under_zero_policy(self) -> None:
        tables = make_tables(weights={})

        result = calculate_wellness_index(
            tables, {"MentalHealth": {"PHQ9": 12.0}}, zero_weight_policy="zero"
        )

        assert result.final_score == 0.0
        assert result.domain_details["MentalHealth"].normalized == pytest.approx(60.0)

    def test_negative_weight_raises(self) -> None:
        tables = make_tables(weights={"MentalHealth": -1.0})

        with pytest.raises(ConfigurationError, match="negative"):
            calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})

    def test_empty_tables_raise(self) -> None:
        with pytest.raises(ConfigurationError, match="response table is empty"):
            calculate_wellness_index(make_tables(), {})
        with pytest.raises(ConfigurationError, match="rule table is empty"):
            calculate_wellness_index(make_tables(rules={}), {"MentalHealth": {"PHQ9": 1.0}})

    def test_unknown_metric_raises_lookup_error(self) -> None:
        with pytest.raises(LookupError):
            calculate_wellness_index(make_tables(), {"Social": {"Loneliness": 3.0}})

    def test_does_not_mutate_inputs_and_result_is_read_only(self) -> None:
        tables = make_tables()
        responses = {"MentalHealth": {"PHQ9": 12.0}}

        result = calculate_wellness_index(tables, responses)

        assert responses == {"MentalHealth": {"PHQ9": 12.0}}
        details = result.domain_details
        with pytest.raises(TypeError):
            details["Other"] = details["MentalHealth"]  # type: ignore[index]

    def test_to_dict_shape(self) -> None:
        result = calculate_wellness_index(make_tables(), {"MentalHealth": {"PHQ9": 12.0}})

        payload = result.to_dict()

        assert payload["final_score"] == pytest.approx(60.0)
        assert payload["domain_details"] == {
            "MentalHealth": {
                "raw": pytest.approx(-5.0),
                "normalized": pytest.approx(60.0),
                "weight": 1.0,
            }
        }
        assert payload["warnings"] == []


class TestValidationAndOutcomes:
    """Tests for validation-first and discriminated outcomes."""

    def test_validate_collects_all_problems(self) -> None:
        tables = make_tables(weights={"MentalHealth": 1.0, "Social": -2.0})

        validation = validate_inputs(
            tables,
            {
                "MentalHealth": {"PHQ9": 21.0, "GAD7": 3.0},
                "Social": {"Loneliness": -1.0},
            },
        )

        assert not validation.ok
        missing = [e for e in validation.errors if isinstance(e, MissingMetricRuleError)]
        assert {(e.domain, e.metric) for e in missing} == {
            ("MentalHealth", "GAD7"),
            ("Social", "Loneliness"),
        }
        assert any("negative" in str(e) for e in validation.errors)
        assert [(w.metric, w.value) for w in validation.warnings] == [
            ("PHQ9", 21.0),
            ("Loneliness", -1.0),
        ]

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_response_is_an_error(self, value: float) -> None:
        responses = {"MentalHealth": {"PHQ9": value}}

        validation = validate_inputs(make_tables(), responses)

        assert not validation.ok
        assert "MentalHealth.PHQ9 is not a finite number" in str(validation.errors[0])
        assert validation.warnings == ()
        with pytest.raises(ConfigurationError, match="finite"):
            calculate_wellness_index(make_tables(), responses)

    def test_non_finite_weight_is_an_error(self) -> None:
        tables = make_tables(weights={"MentalHealth": float("nan")})

        with pytest.raises(ConfigurationError, match="'MentalHealth' is not a finite number"):
            calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})
        outcome = evaluate_wellness_index(
            tables, {"MentalHealth": {"PHQ9": 12.0}}, zero_weight_policy="zero"
        )
        assert isinstance(outcome, ScoreFailure)

    def test_domain_without_responses_is_an_error(self) -> None:
        responses: dict[str, dict[str, float]] = {"MentalHealth": {}}

        validation = validate_inputs(make_tables(), responses)

        assert not validation.ok
        with pytest.raises(ConfigurationError, match="'MentalHealth' has no responses"):
            calculate_wellness_index(make_tables(), responses)

    def test_validate_ok_for_clean_inputs(self) -> None:
        validation = validate_inputs(make_tables(), {"MentalHealth": {"PHQ9": 12.0}})

        assert validation.ok
        assert validation.warnings == ()

    def test_evaluate_returns_failure_instead_of_raising(self) -> None:
        outcome = evaluate_wellness_index(make_tables(), {"MentalHealth": {"GAD7": 5.0}})

        assert isinstance(outcome, ScoreFailure)
        assert outcome.ok is False
        assert isinstance(outcome.error, MissingMetricRuleError)

    def test_evaluate_returns_success(self) -> None:
        outcome = evaluate_wellness_index(make_tables(), {"MentalHealth": {"PHQ9": 12.0}})

        assert isinstance(outcome, ScoreSuccess)
        assert outcome.ok is True
        assert outcome.result.final_score == pytest.approx(60.0)


class TestAssessmentRows:
    """Tests for free-form assessment rows."""

    def test_rows_grouped_by_domain(self) -> None:
        rows = [
            Assessment(domain="Sleep", points=6.0, min_points=0.0, max_points=10.0),
            Assessment(domain="Sleep", points=4.0, min_points=0.0, max_points=10.0),
            Assessment(domain="Mood", points=5.0, min_points=-10.0, max_points=10.0),
        ]

        result = calculate_from_assessments(rows, {"Sleep": 1.0, "Mood": 3.0})

        assert result.domain_details["Sleep"].raw == 10.0
        assert result.domain_details["Sleep"].normalized == 50.0
        assert result.domain_details["Mood"].normalized == 75.0
        assert result.final_score == pytest.approx((50.0 + 75.0 * 3) / 4)

    def test_descending_row_keeps_max_points_as_best(self) -> None:
        rows = [Assessment(domain="Mood", points=8.0, min_points=10.0, max_points=0.0)]

        result = calculate_from_assessments(rows, {"Mood": 1.0})

        assert result.final_score == pytest.approx(20.0)

    def test_opposed_rows_cancel_to_zero_width(self) -> None:
        rows = [
            Assessment(domain="Mood", points=4.0, min_points=0.0, max_points=10.0),
            Assessment(domain="Mood", points=6.0, min_points=10.0, max_points=0.0),
        ]

        result = calculate_from_assessments(rows, {"Mood": 1.0})

        assert result.domain_details["Mood"].minimum == 10.0
        assert result.domain_details["Mood"].maximum == 10.0
        assert result.final_score == 0.0

    @pytest.mark.parametrize("field", ["points", "min_points", "max_points"])
    def test_non_finite_points_raise(self, field: str) -> None:
        values = {"points": 1.0, "min_points": 0.0, "max_points": 2.0, field: float("nan")}
        rows = [Assessment(domain="Mood", **values)]

        with pytest.raises(ConfigurationError, match="finite"):
            calculate_from_assessments(rows, {"Mood": 1.0})

    def test_zero_width_row_scores_zero(self) -> None:
        rows = [Assessment(domain="Mood", points=3.0, min_points=3.0, max_points=3.0)]

        result = calculate_from_assessments(rows, {"Mood": 1.0})

        assert result.final_score == 0.0

    def test_no_rows_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            calculate_from_assessments([], {"Mood": 1.0})

    def test_blank_domain_raises(self) -> None:
        rows = [Assessment(domain="  ", points=1.0, min_points=0.0, max_points=2.0)]

        with pytest.raises(ConfigurationError, match="domain name"):
            calculate_from_assessments(rows, {"Mood": 1.0})

    def test_unweighted_rows_follow_zero_weight_policy(self) -> None:
        rows = [Assessment(domain="Mood", points=1.0, min_points=0.0, max_points=2.0)]

        with pytest.raises(ConfigurationError):
            calculate_from_assessments(rows, {})
        assert calculate_from_assessments(rows, {}, zero_weight_policy="zero").final_score == 0.0
