"""Wellness index scoring engine.

Each metric response is mapped linearly onto its rule's impact range, metric
scores are summed per domain and normalised to a 0–100 domain scale, and the
domain scores are combined as a weighted mean clamped to 0–100.

Usage example:
    from wellness_index.domain.scoring import calculate_wellness_index
    from wellness_index.domain.tables import build_scoring_tables

    tables = build_scoring_tables(
        {"MentalHealth": {"PHQ9": (15.0, -35.0)}},
        {"MentalHealth": 1.0},
    )
    result = calculate_wellness_index(tables, {"MentalHealth": {"PHQ9": 12.0}})
    assert round(result.domain_details["MentalHealth"].normalized, 6) == 60.0
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

from ..exceptions import ConfigurationError, MissingMetricRuleError, WellnessIndexError
from .tables import MetricRule, ResponseTable, ScoringTables

# Responses are expressed on a fixed 0–20 scale.
RESPONSE_SCALE = 20.0
FINAL_SCORE_MIN = 0.0
FINAL_SCORE_MAX = 100.0
NORMALIZED_MIDPOINT = 50.0
DEFAULT_RESPONSE_MIN = 0.0
DEFAULT_RESPONSE_MAX = RESPONSE_SCALE

ZeroWeightPolicy = Literal["error", "zero"]
ZERO_WEIGHT_POLICIES: tuple[ZeroWeightPolicy, ...] = ("error", "zero")


@dataclass(frozen=True)
class ResponseRange:
    """Expected bounds for a response; values outside raise a range warning."""

    minimum: float = DEFAULT_RESPONSE_MIN
    maximum: float = DEFAULT_RESPONSE_MAX

    def contains(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class RangeWarning:
    """A response outside the expected range. Scoring still uses the value."""

    domain: str
    metric: str
    value: float
    minimum: float
    maximum: float

    @property
    def message(self) -> str:
        return (
            f"{self.domain}.{self.metric}={self.value:g} is outside the expected range "
            f"{self.minimum:g}–{self.maximum:g}"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "domain": self.domain,
            "metric": self.metric,
            "value": self.value,
            "minimum": self.minimum,
            "maximum": self.maximum,
        }


@dataclass(frozen=True)
class InputValidation:
    """Errors and range warnings found before any score is computed."""

    errors: tuple[WellnessIndexError, ...] = ()
    warnings: tuple[RangeWarning, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class DomainAggregate:
    """Summed metric scores for one domain with the attainable bounds."""

    raw: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class DomainDetail:
    """Per-domain diagnostic detail for display."""

    raw: float
    normalized: float
    minimum: float
    maximum: float
    weight: float

    @property
    def centred(self) -> float:
        """Normalised score re-centred onto the -50..+50 comparison scale."""
        return self.normalized - NORMALIZED_MIDPOINT

    def to_dict(self) -> dict[str, float]:
        return {"raw": self.raw, "normalized": self.normalized, "weight": self.weight}


@dataclass(frozen=True)
class WellnessIndexResult:
    """Final wellness index with its per-domain breakdown."""

    final_score: float
    domain_details: MappingProxyType[str, DomainDetail]
    warnings: tuple[RangeWarning, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "final_score": self.final_score,
            "domain_details": {
                domain: detail.to_dict() for domain, detail in self.domain_details.items()
            },
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


@dataclass(frozen=True)
class ScoreSuccess:
    result: WellnessIndexResult
    ok: Literal[True] = True


@dataclass(frozen=True)
class ScoreFailure:
    errors: tuple[WellnessIndexError, ...]
    warnings: tuple[RangeWarning, ...] = ()
    ok: Literal[False] = False

    @property
    def error(self) -> WellnessIndexError:
        return self.errors[0]


ScoreOutcome = ScoreSuccess | ScoreFailure


@dataclass(frozen=True)
class Assessment:
    """A free-form assessment row: points earned within a known range."""

    domain: str
    points: float
    min_points: float
    max_points: float


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value to the closed interval [low, high]."""
    return max(low, min(high, value))


def score_metric(response: float, rule: MetricRule) -> float:
    """Map a 0–20 response linearly from min_impact (0) to max_impact (20)."""
    return rule.min_impact + (response / RESPONSE_SCALE) * (rule.max_impact - rule.min_impact)


def aggregate_domain(
    domain: str,
    metric_responses: Mapping[str, float],
    tables: ScoringTables,
) -> DomainAggregate:
    """Sum metric scores and their attainable bounds for one domain."""
    raw = 0.0
    minimum = 0.0
    maximum = 0.0
    for metric, response in metric_responses.items():
        rule = tables.rule_for(domain, metric)
        raw += score_metric(response, rule)
        minimum += rule.lower
        maximum += rule.upper
    return DomainAggregate(raw=raw, minimum=minimum, maximum=maximum)


def normalise_domain(aggregate: DomainAggregate) -> float:
    """Rescale a domain sum onto 0–100. Zero-width domains score 0.

    Sums outside the attainable bounds are not clamped here.
    """
    if aggregate.maximum == aggregate.minimum:
        return 0.0
    span = aggregate.maximum - aggregate.minimum
    return (aggregate.raw - aggregate.minimum) / span * 100


def _weight_errors(
    domains: Iterable[str],
    weights: Mapping[str, float],
    zero_weight_policy: ZeroWeightPolicy,
) -> list[WellnessIndexError]:
    errors: list[WellnessIndexError] = []
    total_weight = 0.0
    for domain in domains:
        weight = weights.get(domain, 0.0)
        if not math.isfinite(weight):
            errors.append(
                ConfigurationError(f"weight for domain '{domain}' is not a finite number.")
            )
            continue
        if weight < 0:
            errors.append(ConfigurationError(f"weight for domain '{domain}' is negative."))
        total_weight += weight
    if total_weight == 0 and zero_weight_policy == "error":
        errors.append(ConfigurationError("total weight of the scored domains is zero."))
    return errors


def validate_inputs(
    tables: ScoringTables,
    responses: ResponseTable,
    *,
    response_range: ResponseRange | None = None,
    zero_weight_policy: ZeroWeightPolicy = "error",
) -> InputValidation:
    """Check tables and responses without computing a score."""
    bounds = response_range or ResponseRange()
    errors: list[WellnessIndexError] = []
    warnings: list[RangeWarning] = []

    if not tables.scoring_rules:
        errors.append(ConfigurationError("rule table is empty."))
    if not responses:
        errors.append(ConfigurationError("response table is empty."))

    for domain, metric_responses in responses.items():
        if not metric_responses:
            errors.append(ConfigurationError(f"domain '{domain}' has no responses."))
        for metric, value in metric_responses.items():
            try:
                tables.rule_for(domain, metric)
            except MissingMetricRuleError as exc:
                errors.append(exc)
            if not math.isfinite(value):
                errors.append(
                    ConfigurationError(f"response {domain}.{metric} is not a finite number.")
                )
                continue
            if not bounds.contains(value):
                warnings.append(
                    RangeWarning(
                        domain=domain,
                        metric=metric,
                        value=value,
                        minimum=bounds.minimum,
                        maximum=bounds.maximum,
                    )
                )

    if responses:
        errors.extend(_weight_errors(responses.keys(), tables.domain_weights, zero_weight_policy))
    return InputValidation(errors=tuple(errors), warnings=tuple(warnings))


def _combine(
    aggregates: Mapping[str, DomainAggregate],
    weights: Mapping[str, float],
    warnings: tuple[RangeWarning, ...],
) -> WellnessIndexResult:
    details: dict[str, DomainDetail] = {}
    total_score = 0.0
    total_weight = 0.0
    for domain, aggregate in aggregates.items():
        normalized = normalise_domain(aggregate)
        weight = weights.get(domain, 0.0)
        total_score += normalized * weight
        total_weight += weight
        details[domain] = DomainDetail(
            raw=aggregate.raw,
            normalized=normalized,
            minimum=aggregate.minimum,
            maximum=aggregate.maximum,
            weight=weight,
        )

    # Only reachable with a zero total weight under the "zero" policy.
    final_score = 0.0
    if total_weight != 0:
        final_score = clamp(total_score / total_weight, FINAL_SCORE_MIN, FINAL_SCORE_MAX)

    return WellnessIndexResult(
        final_score=final_score,
        domain_details=MappingProxyType(details),
        warnings=warnings,
    )


def calculate_wellness_index(
    tables: ScoringTables,
    responses: ResponseTable,
    *,
    response_range: ResponseRange | None = None,
    zero_weight_policy: ZeroWeightPolicy = "error",
) -> WellnessIndexResult:
    """Score responses against the tables.

    Inputs are validated before any arithmetic. The first validation error is
    raised; range warnings are carried on the result.

    Raises:
        ConfigurationError: Empty tables, negative weights, or zero total weight
            under the "error" policy.
        MissingMetricRuleError: A response names a metric with no rule.
    """
    validation = validate_inputs(
        tables,
        responses,
        response_range=response_range,
        zero_weight_policy=zero_weight_policy,
    )
    if not validation.ok:
        raise validation.errors[0]

    aggregates = {
        domain: aggregate_domain(domain, metric_responses, tables)
        for domain, metric_responses in responses.items()
    }
    return _combine(aggregates, tables.domain_weights, validation.warnings)


def evaluate_wellness_index(
    tables: ScoringTables,
    responses: ResponseTable,
    *,
    response_range: ResponseRange | None = None,
    zero_weight_policy: ZeroWeightPolicy = "error",
) -> ScoreOutcome:
    """Score responses, returning failures as values instead of raising."""
    validation = validate_inputs(
        tables,
        responses,
        response_range=response_range,
        zero_weight_policy=zero_weight_policy,
    )
    if not validation.ok:
        return ScoreFailure(errors=validation.errors, warnings=validation.warnings)
    result = calculate_wellness_index(
        tables,
        responses,
        response_range=response_range,
        zero_weight_policy=zero_weight_policy,
    )
    return ScoreSuccess(result=result)


def calculate_from_assessments(
    assessments: Sequence[Assessment],
    domain_weights: Mapping[str, float],
    *,
    zero_weight_policy: ZeroWeightPolicy = "error",
) -> WellnessIndexResult:
    """Score free-form assessment rows grouped by domain.

    Each row already carries its earned points and attainable range, so no
    rule table is involved; normalisation and weighting match the engine.
    Bounds are summed as given: ``max_points`` is always the best outcome,
    even when it is numerically below ``min_points``.
    """
    if not assessments:
        raise ConfigurationError("no assessments were supplied.")
    grouped: dict[str, list[Assessment]] = {}
    for assessment in assessments:
        domain = assessment.domain.strip()
        if not domain:
            raise ConfigurationError("every assessment needs a domain name.")
        values = (assessment.points, assessment.min_points, assessment.max_points)
        if not all(math.isfinite(value) for value in values):
            raise ConfigurationError(f"assessment points for '{domain}' must be finite numbers.")
        grouped.setdefault(domain, []).append(assessment)

    errors = _weight_errors(grouped.keys(), domain_weights, zero_weight_policy)
    if errors:
        raise errors[0]

    aggregates = {
        domain: DomainAggregate(
            raw=sum(row.points for row in rows),
            minimum=sum(row.min_points for row in rows),
            maximum=sum(row.max_points for row in rows),
        )
        for domain, rows in grouped.items()
    }
    return _combine(aggregates, domain_weights, ())
