"""CLI for the wellness index.

Commands:
- calculate: Score a responses file against the scoring tables
- validate: Report missing rules and out-of-range responses without scoring
- assess: Prompt for each metric response, then score
- assessment-rows: Score free-form assessment rows (points with their own range)
- defaults: Write the bundled sample tables and responses as JSON files
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn, Protocol

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from .application.calculate import (
    CalculationResult,
    resolve_tables,
    run_assessment_rows,
    run_calculation,
    run_validation,
)
from .application.tables import write_sample_files
from .config import WellnessConfig, parse_zero_weight_policy
from .config_file import load_wellness_config_file
from .domain.scoring import WellnessIndexResult, ZeroWeightPolicy
from .exceptions import WellnessIndexError, ZeroWeightPolicyError
from .observability import LogLevelError, parse_log_level, set_log_level
from .protocols import FileSystem


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: WellnessConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    fs: FileSystem


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: WellnessConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: WellnessConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the wellness-index entry point.")


DEFAULT_REFERENCE_DIR = Path("data/reference")
TABLES_FILENAME = "wellness_tables.json"
RESPONSES_FILENAME = "wellness_responses.json"


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _zero_weight_policy(value: str | None) -> ZeroWeightPolicy | None:
    if value is None:
        return None
    try:
        return parse_zero_weight_policy(value)
    except ZeroWeightPolicyError as exc:
        raise typer.BadParameter(str(exc), param_hint="--zero-weight-policy") from exc


def _abort(exc: WellnessIndexError) -> NoReturn:
    rprint(f"[red]✗ {escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def build_result_table(result: WellnessIndexResult, decimal_places: int) -> Table:
    """Render per-domain detail as a Rich table."""
    table = Table(title="Domain breakdown")
    table.add_column("Domain")
    table.add_column("Weight", justify="right")
    table.add_column("Raw", justify="right")
    table.add_column("Normalised", justify="right")
    table.add_column("Centred", justify="right")
    for domain, detail in result.domain_details.items():
        table.add_row(
            domain,
            f"{detail.weight:g}",
            f"{detail.raw:.{decimal_places}f}",
            f"{detail.normalized:.{decimal_places}f}",
            f"{detail.centred:+.{decimal_places}f}",
        )
    return table


def _print_calculation(outcome: CalculationResult, decimal_places: int) -> None:
    result = outcome.result
    rprint(build_result_table(result, decimal_places))
    for warning in result.warnings:
        rprint(f"[yellow]! {escape(warning.message)}[/yellow]")
    rprint(
        "[green]✓ Wellness Index Score:[/green] "
        f"[bold]{result.final_score:.{decimal_places}f}[/bold]/100"
    )
    if outcome.output_path is not None:
        rprint(f"  Result: {outcome.output_path}")


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Wellness index: weighted domain assessments scored onto 0–100",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_file: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file (overrides environment values)",
            ),
        ] = None,
        log_level: Annotated[
            str,
            typer.Option(
                "--log-level",
                envvar="WELLNESS_LOG_LEVEL",
                help="Log threshold on stderr: DEBUG, INFO, WARNING or ERROR",
            ),
        ] = "INFO",
    ) -> None:
        """Initialise CLI context."""
        try:
            set_log_level(parse_log_level(log_level))
        except LogLevelError as exc:
            raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        try:
            config = WellnessConfig.from_env()
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        if config_file is not None:
            deps = deps_builder(config=config)
            try:
                file_config = load_wellness_config_file(path=config_file, fs=deps.fs)
                config = config.with_file_overrides(file_config)
            except WellnessIndexError as exc:
                _abort(exc)
            except ValueError as exc:
                raise typer.BadParameter(str(exc), param_hint="--config") from exc
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def calculate(
        ctx: typer.Context,
        tables_path: Annotated[
            Path | None,
            typer.Option(
                "--tables",
                "-t",
                help="Scoring tables JSON (default: WELLNESS_TABLES_PATH or bundled sample)",
            ),
        ] = None,
        responses_path: Annotated[
            Path | None,
            typer.Option(
                "--responses",
                "-r",
                help="Responses JSON (default: WELLNESS_RESPONSES_PATH or bundled sample)",
            ),
        ] = None,
        output: Annotated[
            Path | None,
            typer.Option(
                "--output",
                "-o",
                help="Write the result as JSON to this path",
            ),
        ] = None,
        zero_weight_policy: Annotated[
            str | None,
            typer.Option(
                "--zero-weight-policy",
                help="What to do when no scored domain carries weight: error or zero",
            ),
        ] = None,
    ) -> None:
        """Calculate the wellness index for a set of responses."""
        state = _get_context(ctx)
        config = state.config.with_overrides(
            tables_path=None if tables_path is None else str(tables_path),
            responses_path=None if responses_path is None else str(responses_path),
            zero_weight_policy=_zero_weight_policy(zero_weight_policy),
        )
        deps = state.build_dependencies(config=config)
        try:
            outcome = run_calculation(config=config, fs=deps.fs, output_path=output)
        except WellnessIndexError as exc:
            _abort(exc)
        _print_calculation(outcome, config.decimal_places)

    @app.command()
    def validate(
        ctx: typer.Context,
        tables_path: Annotated[
            Path | None,
            typer.Option("--tables", "-t", help="Scoring tables JSON"),
        ] = None,
        responses_path: Annotated[
            Path | None,
            typer.Option("--responses", "-r", help="Responses JSON"),
        ] = None,
    ) -> None:
        """Validate tables and responses without scoring them."""
        state = _get_context(ctx)
        config = state.config.with_overrides(
            tables_path=None if tables_path is None else str(tables_path),
            responses_path=None if responses_path is None else str(responses_path),
        )
        deps = state.build_dependencies(config=config)
        try:
            report = run_validation(config=config, fs=deps.fs)
        except WellnessIndexError as exc:
            _abort(exc)

        validation = report.validation
        for error in validation.errors:
            rprint(f"[red]✗ {escape(str(error))}[/red]")
        for warning in validation.warnings:
            rprint(f"[yellow]! {escape(warning.message)}[/yellow]")
        if not validation.ok:
            raise typer.Exit(code=1)
        rprint(
            f"[green]✓ Valid:[/green] {report.responses_source} against {report.tables_source}"
        )

    @app.command()
    def assess(
        ctx: typer.Context,
        tables_path: Annotated[
            Path | None,
            typer.Option("--tables", "-t", help="Scoring tables JSON"),
        ] = None,
        output: Annotated[
            Path | None,
            typer.Option("--output", "-o", help="Write the result as JSON to this path"),
        ] = None,
    ) -> None:
        """Prompt for a response (0–20) to every metric, then calculate the index."""
        state = _get_context(ctx)
        config = state.config.with_overrides(
            tables_path=None if tables_path is None else str(tables_path),
        )
        deps = state.build_dependencies(config=config)
        try:
            tables, _ = resolve_tables(config, deps.fs)
        except WellnessIndexError as exc:
            _abort(exc)

        responses: dict[str, Mapping[str, float]] = {}
        for domain, metrics in tables.scoring_rules.items():
            rprint(f"[bold]{domain}[/bold]")
            responses[domain] = {
                metric: float(typer.prompt(f"  {metric}", type=float)) for metric in metrics
            }

        try:
            outcome = run_calculation(
                config=config,
                fs=deps.fs,
                responses=responses,
                output_path=output,
            )
        except WellnessIndexError as exc:
            _abort(exc)
        _print_calculation(outcome, config.decimal_places)

    @app.command(name="assessment-rows")
    def assessment_rows(
        ctx: typer.Context,
        assessments_path: Annotated[
            Path,
            typer.Argument(help="JSON file of assessment rows and domain weights"),
        ],
        output: Annotated[
            Path | None,
            typer.Option("--output", "-o", help="Write the result as JSON to this path"),
        ] = None,
    ) -> None:
        """Score free-form assessment rows that carry their own min/max points."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        try:
            outcome = run_assessment_rows(
                config=state.config,
                fs=deps.fs,
                assessments_path=assessments_path,
                output_path=output,
            )
        except WellnessIndexError as exc:
            _abort(exc)
        _print_calculation(outcome, state.config.decimal_places)

    @app.command()
    def defaults(
        ctx: typer.Context,
        out_dir: Annotated[
            Path,
            typer.Option(
                "--output-dir",
                "-o",
                help="Directory for the sample tables and responses",
            ),
        ] = DEFAULT_REFERENCE_DIR,
    ) -> None:
        """Write the bundled sample tables and responses as editable JSON files."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        tables_out = out_dir / TABLES_FILENAME
        responses_out = out_dir / RESPONSES_FILENAME
        deps.fs.mkdir(out_dir, parents=True)
        write_sample_files(tables_path=tables_out, responses_path=responses_out, fs=deps.fs)
        rprint(f"[green]✓ Tables:[/green] {tables_out}")
        rprint(f"[green]✓ Responses:[/green] {responses_out}")

    _ = (main, calculate, validate, assess, assessment_rows, defaults)

    return app
