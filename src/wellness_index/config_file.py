"""Typed parsing and validation for wellness index config files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .domain.scoring import ZeroWeightPolicy
from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class WellnessConfigFile:
    """Validated wellness config values loaded from a TOML file."""

    tables_path: str | None = None
    responses_path: str | None = None
    response_min: float | None = None
    response_max: float | None = None
    zero_weight_policy: ZeroWeightPolicy | None = None
    decimal_places: int | None = None


class _WellnessSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, allow_inf_nan=False)

    tables_path: str | None = None
    responses_path: str | None = None
    response_min: float | None = None
    response_max: float | None = None
    zero_weight_policy: ZeroWeightPolicy | None = None
    decimal_places: int | None = None

    @field_validator("tables_path", "responses_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("decimal_places")
    @classmethod
    def _validate_decimal_places(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value

    @model_validator(mode="after")
    def _validate_range_order(self) -> _WellnessSectionModel:
        if (
            self.response_min is not None
            and self.response_max is not None
            and self.response_min > self.response_max
        ):
            raise ValueError
        return self


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    wellness: _WellnessSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_wellness_config_file(*, path: Path, fs: FileSystem) -> WellnessConfigFile:
    """Load and validate a wellness TOML config file."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.wellness
    return WellnessConfigFile(
        tables_path=section.tables_path,
        responses_path=section.responses_path,
        response_min=section.response_min,
        response_max=section.response_max,
        zero_weight_policy=section.zero_weight_policy,
        decimal_places=section.decimal_places,
    )
