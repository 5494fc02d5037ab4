"""Calculate: resolve scoring tables and responses, then score them.

Tables and responses come from the configured JSON files, or from the bundled
sample tables when no path is configured. Interactive callers pass responses
directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from ..config import WellnessConfig
from ..domain.scoring import (
    InputValidation,
    WellnessIndexResult,
    calculate_from_assessments,
    calculate_wellness_index,
    validate_inputs,
)
from ..domain.tables import (
    SAMPLE_ASSESSMENT_RESPONSES,
    ResponseTable,
    ScoringTables,
    freeze_responses,
    sample_scoring_tables,
)
from ..observability import get_logger
from ..protocols import FileSystem
from .tables import load_assessments, load_responses, load_scoring_tables

SAMPLE_SOURCE = "<bundled sample>"


@dataclass(frozen=True)
class CalculationResult:
    """Outcome of a calculate run."""

    result: WellnessIndexResult
    tables_source: str
    responses_source: str
    output_path: Path | None = None


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of a validate run."""

    validation: InputValidation
    tables_source: str
    responses_source: str


def resolve_tables(config: WellnessConfig, fs: FileSystem) -> tuple[ScoringTables, str]:
    """Return the configured scoring tables and a label for their source."""
    if not config.tables_path:
        return sample_scoring_tables(), SAMPLE_SOURCE
    path = Path(config.tables_path)
    return load_scoring_tables(path=path, fs=fs), str(path)


def resolve_responses(
    config: WellnessConfig, fs: FileSystem
) -> tuple[MappingProxyType[str, MappingProxyType[str, float]], str]:
    """Return the configured responses and a label for their source."""
    if not config.responses_path:
        return freeze_responses(SAMPLE_ASSESSMENT_RESPONSES), SAMPLE_SOURCE
    path = Path(config.responses_path)
    return load_responses(path=path, fs=fs), str(path)


def run_calculation(
    *,
    config: WellnessConfig,
    fs: FileSystem,
    responses: ResponseTable | None = None,
    responses_source: str = "interactive",
    output_path: Path | None = None,
) -> CalculationResult:
    """Score responses against the configured tables.

    Args:
        config: Wellness configuration (load once at the entry point).
        fs: Filesystem used for tables, responses and the optional result file.
        responses: Responses collected by the caller; when omitted the
            configured responses file (or the bundled sample) is used.
        responses_source: Label for caller-supplied responses.
        output_path: Optional path for a JSON copy of the result.

    Returns:
        CalculationResult with the scored result and its sources.
    """
    logger = get_logger("wellness_index.calculate")
    tables, tables_source = resolve_tables(config, fs)
    if responses is None:
        snapshot, responses_source = resolve_responses(config, fs)
    else:
        snapshot = freeze_responses(responses)

    logger.info(
        "Scoring %s domains from %s against %s rules from %s",
        len(snapshot),
        responses_source,
        tables.metric_count(),
        tables_source,
    )
    result = calculate_wellness_index(
        tables,
        snapshot,
        response_range=config.response_range,
        zero_weight_policy=config.zero_weight_policy,
    )
    for warning in result.warnings:
        logger.warning("Response out of range: %s", warning.message)
    logger.info("Wellness index: %.*f", config.decimal_places, result.final_score)

    if output_path is not None:
        fs.write_json(result.to_dict(), output_path)
        logger.info("Result: %s", output_path)

    return CalculationResult(
        result=result,
        tables_source=tables_source,
        responses_source=responses_source,
        output_path=output_path,
    )


def run_validation(*, config: WellnessConfig, fs: FileSystem) -> ValidationReport:
    """Validate the configured tables and responses without scoring them."""
    logger = get_logger("wellness_index.validate")
    tables, tables_source = resolve_tables(config, fs)
    responses, responses_source = resolve_responses(config, fs)
    validation = validate_inputs(
        tables,
        responses,
        response_range=config.response_range,
        zero_weight_policy=config.zero_weight_policy,
    )
    for error in validation.errors:
        logger.error("%s", error)
    for warning in validation.warnings:
        logger.warning("Response out of range: %s", warning.message)
    logger.info(
        "Validation: %s errors, %s warnings", len(validation.errors), len(validation.warnings)
    )
    return ValidationReport(
        validation=validation,
        tables_source=tables_source,
        responses_source=responses_source,
    )


def run_assessment_rows(
    *,
    config: WellnessConfig,
    fs: FileSystem,
    assessments_path: Path,
    output_path: Path | None = None,
) -> CalculationResult:
    """Score a file of free-form assessment rows (points with their own range)."""
    logger = get_logger("wellness_index.assessment_rows")
    assessments, weights = load_assessments(path=assessments_path, fs=fs)
    logger.info("Scoring %s assessment rows from %s", len(assessments), assessments_path)
    result = calculate_from_assessments(
        assessments,
        weights,
        zero_weight_policy=config.zero_weight_policy,
    )
    logger.info("Wellness index: %.*f", config.decimal_places, result.final_score)

    if output_path is not None:
        fs.write_json(result.to_dict(), output_path)
        logger.info("Result: %s", output_path)

    return CalculationResult(
        result=result,
        tables_source=str(assessments_path),
        responses_source=str(assessments_path),
        output_path=output_path,
    )
