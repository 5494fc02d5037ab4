"""Domain model for wellness scoring tables.

A rule table maps each domain to its metrics and each metric to the pair
``(max_impact, min_impact)``: the contribution at the best and the worst
possible response. Weights map each domain to its relative importance.

Usage example:
    from wellness_index.domain.tables import build_scoring_tables

    tables = build_scoring_tables(
        {"MentalHealth": {"PHQ9": (15.0, -35.0)}},
        {"MentalHealth": 1.0},
    )
    assert tables.rule_for("MentalHealth", "PHQ9").max_impact == 15.0
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from ..exceptions import ConfigurationError, MissingMetricRuleError


@dataclass(frozen=True)
class MetricRule:
    """Contribution range for one metric."""

    max_impact: float
    min_impact: float

    @property
    def lower(self) -> float:
        """Smallest contribution this metric can make."""
        return min(self.min_impact, self.max_impact)

    @property
    def upper(self) -> float:
        """Largest contribution this metric can make."""
        return max(self.min_impact, self.max_impact)


RuleInput = MetricRule | Sequence[float]
ResponseTable = Mapping[str, Mapping[str, float]]


@dataclass(frozen=True)
class ScoringTables:
    """Rule and weight tables for one scoring run."""

    scoring_rules: MappingProxyType[str, MappingProxyType[str, MetricRule]]
    domain_weights: MappingProxyType[str, float]

    def rule_for(self, domain: str, metric: str) -> MetricRule:
        """Return the rule for a (domain, metric) pair or fail naming the pair."""
        metrics = self.scoring_rules.get(domain)
        if metrics is None or metric not in metrics:
            raise MissingMetricRuleError(domain, metric)
        return metrics[metric]

    def weight_for(self, domain: str) -> float:
        """Return the domain weight; unweighted domains contribute nothing."""
        return self.domain_weights.get(domain, 0.0)

    def metric_count(self) -> int:
        return sum(len(metrics) for metrics in self.scoring_rules.values())


class RuleShapeError(ConfigurationError):
    """Raised when a rule is not a ``[max_impact, min_impact]`` pair."""

    def __init__(self, domain: str, metric: str) -> None:
        super().__init__(
            f"rule for '{domain}.{metric}' must be a [max_impact, min_impact] pair."
        )


def _to_rule(domain: str, metric: str, value: RuleInput) -> MetricRule:
    if isinstance(value, MetricRule):
        rule = value
    elif len(value) != 2:
        raise RuleShapeError(domain, metric)
    else:
        max_impact, min_impact = value
        rule = MetricRule(max_impact=float(max_impact), min_impact=float(min_impact))
    if not (math.isfinite(rule.max_impact) and math.isfinite(rule.min_impact)):
        raise ConfigurationError(f"rule for '{domain}.{metric}' must hold finite numbers.")
    return rule


def build_scoring_tables(
    scoring_rules: Mapping[str, Mapping[str, RuleInput]],
    domain_weights: Mapping[str, float],
) -> ScoringTables:
    """Build read-only scoring tables from plain mappings."""
    rules = {
        domain: MappingProxyType(
            {metric: _to_rule(domain, metric, value) for metric, value in metrics.items()}
        )
        for domain, metrics in scoring_rules.items()
    }
    weights = {domain: float(weight) for domain, weight in domain_weights.items()}
    return ScoringTables(
        scoring_rules=MappingProxyType(rules),
        domain_weights=MappingProxyType(weights),
    )


def freeze_responses(
    responses: ResponseTable,
) -> MappingProxyType[str, MappingProxyType[str, float]]:
    """Return a read-only snapshot of a response table."""
    return MappingProxyType(
        {
            domain: MappingProxyType({metric: float(value) for metric, value in metrics.items()})
            for domain, metrics in responses.items()
        }
    )


# Sample tables used when no tables file is configured.
SAMPLE_SCORING_RULES: Mapping[str, Mapping[str, tuple[float, float]]] = MappingProxyType(
    {
        "PhysicalHealth": MappingProxyType(
            {
                "BodyMassIndex": (10.0, -20.0),
                "RestingHeartRate": (10.0, -15.0),
                "SleepQuality": (15.0, -10.0),
            }
        ),
        "MentalHealth": MappingProxyType(
            {
                "PHQ9": (15.0, -35.0),
                "GAD7": (10.0, -25.0),
            }
        ),
        "SocialWellbeing": MappingProxyType(
            {
                "SocialSupport": (15.0, -5.0),
                "Loneliness": (10.0, -15.0),
            }
        ),
        "Lifestyle": MappingProxyType(
            {
                "PhysicalActivity": (15.0, -10.0),
                "Nutrition": (10.0, -10.0),
            }
        ),
    }
)

SAMPLE_DOMAIN_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "PhysicalHealth": 0.30,
        "MentalHealth": 0.35,
        "SocialWellbeing": 0.20,
        "Lifestyle": 0.15,
    }
)

SAMPLE_ASSESSMENT_RESPONSES: Mapping[str, Mapping[str, float]] = MappingProxyType(
    {
        "PhysicalHealth": MappingProxyType(
            {"BodyMassIndex": 14.0, "RestingHeartRate": 12.0, "SleepQuality": 10.0}
        ),
        "MentalHealth": MappingProxyType({"PHQ9": 12.0, "GAD7": 15.0}),
        "SocialWellbeing": MappingProxyType({"SocialSupport": 16.0, "Loneliness": 8.0}),
        "Lifestyle": MappingProxyType({"PhysicalActivity": 9.0, "Nutrition": 13.0}),
    }
)


def sample_scoring_tables() -> ScoringTables:
    """Return the bundled sample rule and weight tables."""
    return build_scoring_tables(SAMPLE_SCORING_RULES, SAMPLE_DOMAIN_WEIGHTS)
