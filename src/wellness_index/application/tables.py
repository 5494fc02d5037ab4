"""Loading and strict validation for scoring tables and response files."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..domain.scoring import Assessment
from ..domain.tables import (
    SAMPLE_ASSESSMENT_RESPONSES,
    SAMPLE_DOMAIN_WEIGHTS,
    SAMPLE_SCORING_RULES,
    ScoringTables,
    build_scoring_tables,
    freeze_responses,
)
from ..exceptions import ScoringTablesFileNotFoundError, ScoringTablesValidationError
from ..protocols import FileSystem

_SCHEMA_VERSION = 1


def _clean_key(value: str) -> str:
    text = value.strip()
    if not text:
        raise ValueError
    return text


def _clean_names(keys: Iterable[str]) -> list[str]:
    names: list[str] = []
    for key in keys:
        name = _clean_key(key)
        if name in names:
            raise ValueError(f"duplicate name '{name}' after trimming whitespace")
        names.append(name)
    return names


class _ScoringTablesModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    schema_version: int
    scoring_rules: dict[str, dict[str, tuple[float, float]]]
    domain_weights: dict[str, float]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value

    @field_validator("scoring_rules")
    @classmethod
    def _validate_rules(
        cls, value: dict[str, dict[str, tuple[float, float]]]
    ) -> dict[str, dict[str, tuple[float, float]]]:
        if not value:
            raise ValueError
        cleaned: dict[str, dict[str, tuple[float, float]]] = {}
        for domain, metrics in zip(_clean_names(value), value.values(), strict=True):
            if not metrics:
                raise ValueError
            cleaned[domain] = dict(zip(_clean_names(metrics), metrics.values(), strict=True))
        return cleaned

    @field_validator("domain_weights")
    @classmethod
    def _validate_weights(cls, value: dict[str, float]) -> dict[str, float]:
        if any(weight < 0.0 for weight in value.values()):
            raise ValueError
        return dict(zip(_clean_names(value), value.values(), strict=True))


class _ResponsesModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    schema_version: int
    responses: dict[str, dict[str, float]]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value

    @field_validator("responses")
    @classmethod
    def _validate_responses(
        cls, value: dict[str, dict[str, float]]
    ) -> dict[str, dict[str, float]]:
        if not value:
            raise ValueError
        cleaned: dict[str, dict[str, float]] = {}
        for domain, metrics in zip(_clean_names(value), value.values(), strict=True):
            if not metrics:
                raise ValueError(f"domain '{domain}' has no responses")
            cleaned[domain] = dict(zip(_clean_names(metrics), metrics.values(), strict=True))
        return cleaned


class _AssessmentModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    domain: str
    points: float
    min_points: float
    max_points: float

    @field_validator("domain")
    @classmethod
    def _validate_domain(cls, value: str) -> str:
        return _clean_key(value)


class _AssessmentsFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    schema_version: int
    assessments: tuple[_AssessmentModel, ...]
    domain_weights: dict[str, float]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value

    @field_validator("assessments")
    @classmethod
    def _validate_assessments(
        cls, value: tuple[_AssessmentModel, ...]
    ) -> tuple[_AssessmentModel, ...]:
        if not value:
            raise ValueError
        return value

    @field_validator("domain_weights")
    @classmethod
    def _validate_weights(cls, value: dict[str, float]) -> dict[str, float]:
        if any(weight < 0.0 for weight in value.values()):
            raise ValueError
        return dict(zip(_clean_names(value), value.values(), strict=True))


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_scoring_tables(*, path: Path, fs: FileSystem) -> ScoringTables:
    """Load and validate rule and weight tables from JSON."""
    if not fs.exists(path):
        raise ScoringTablesFileNotFoundError(str(path))

    payload = fs.read_text(path)
    try:
        model = _ScoringTablesModel.model_validate_json(payload)
    except ValidationError as exc:
        raise ScoringTablesValidationError(str(path), _format_validation_error(exc)) from exc

    return build_scoring_tables(model.scoring_rules, model.domain_weights)


def load_responses(
    *, path: Path, fs: FileSystem
) -> MappingProxyType[str, MappingProxyType[str, float]]:
    """Load and validate a response table from JSON."""
    if not fs.exists(path):
        raise ScoringTablesFileNotFoundError(str(path))

    payload = fs.read_text(path)
    try:
        model = _ResponsesModel.model_validate_json(payload)
    except ValidationError as exc:
        raise ScoringTablesValidationError(str(path), _format_validation_error(exc)) from exc

    return freeze_responses(model.responses)


def scoring_tables_payload(tables: ScoringTables) -> dict[str, object]:
    """Serialise tables into the JSON shape accepted by ``load_scoring_tables``."""
    return {
        "schema_version": _SCHEMA_VERSION,
        "scoring_rules": {
            domain: {
                metric: [rule.max_impact, rule.min_impact] for metric, rule in metrics.items()
            }
            for domain, metrics in tables.scoring_rules.items()
        },
        "domain_weights": dict(tables.domain_weights),
    }


def responses_payload(responses: Mapping[str, Mapping[str, float]]) -> dict[str, object]:
    """Serialise responses into the JSON shape accepted by ``load_responses``."""
    return {
        "schema_version": _SCHEMA_VERSION,
        "responses": {domain: dict(metrics) for domain, metrics in responses.items()},
    }


def write_sample_files(*, tables_path: Path, responses_path: Path, fs: FileSystem) -> None:
    """Write the bundled sample tables and responses as editable JSON files."""
    tables = build_scoring_tables(SAMPLE_SCORING_RULES, SAMPLE_DOMAIN_WEIGHTS)
    fs.write_json(scoring_tables_payload(tables), tables_path)
    fs.write_json(responses_payload(SAMPLE_ASSESSMENT_RESPONSES), responses_path)


def load_assessments(
    *, path: Path, fs: FileSystem
) -> tuple[tuple[Assessment, ...], MappingProxyType[str, float]]:
    """Load free-form assessment rows and their domain weights from JSON."""
    if not fs.exists(path):
        raise ScoringTablesFileNotFoundError(str(path))

    payload = fs.read_text(path)
    try:
        model = _AssessmentsFileModel.model_validate_json(payload)
    except ValidationError as exc:
        raise ScoringTablesValidationError(str(path), _format_validation_error(exc)) from exc

    assessments = tuple(
        Assessment(
            domain=row.domain,
            points=row.points,
            min_points=row.min_points,
            max_points=row.max_points,
        )
        for row in model.assessments
    )
    return assessments, MappingProxyType(dict(model.domain_weights))
