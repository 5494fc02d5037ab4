"""Centralised, injectable configuration for the wellness index."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import WellnessConfigFile
from .domain.scoring import (
    DEFAULT_RESPONSE_MAX,
    DEFAULT_RESPONSE_MIN,
    ZERO_WEIGHT_POLICIES,
    ResponseRange,
    ZeroWeightPolicy,
)
from .exceptions import ZeroWeightPolicyError


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class NumberEnvVarError(ValueError):
    """Raised when an environment variable must be a number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a number.")


class ResponseRangeOrderError(ValueError):
    """Raised when the configured response range is inverted."""

    def __init__(self, minimum: float, maximum: float) -> None:
        super().__init__(
            f"Response range minimum ({minimum:g}) must not exceed maximum ({maximum:g})."
        )


@dataclass(frozen=True)
class WellnessConfig:
    """Immutable configuration for wellness index commands.

    Load from environment with `WellnessConfig.from_env()` or construct directly for testing.
    Empty table paths select the bundled sample tables.
    """

    tables_path: str = ""
    responses_path: str = ""

    # Range used for non-fatal response warnings
    response_min: float = DEFAULT_RESPONSE_MIN
    response_max: float = DEFAULT_RESPONSE_MAX

    zero_weight_policy: ZeroWeightPolicy = "error"
    decimal_places: int = 2

    def __post_init__(self) -> None:
        if self.response_min > self.response_max:
            raise ResponseRangeOrderError(self.response_min, self.response_max)

    @property
    def response_range(self) -> ResponseRange:
        return ResponseRange(minimum=self.response_min, maximum=self.response_max)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            WellnessConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            tables_path=os.getenv("WELLNESS_TABLES_PATH", "").strip(),
            responses_path=os.getenv("WELLNESS_RESPONSES_PATH", "").strip(),
            response_min=_parse_float(
                os.getenv("WELLNESS_RESPONSE_MIN", ""),
                default=DEFAULT_RESPONSE_MIN,
                env_name="WELLNESS_RESPONSE_MIN",
            ),
            response_max=_parse_float(
                os.getenv("WELLNESS_RESPONSE_MAX", ""),
                default=DEFAULT_RESPONSE_MAX,
                env_name="WELLNESS_RESPONSE_MAX",
            ),
            zero_weight_policy=parse_zero_weight_policy(
                os.getenv("WELLNESS_ZERO_WEIGHT_POLICY", "error")
            ),
            decimal_places=_parse_non_negative_int(
                os.getenv("WELLNESS_DECIMAL_PLACES", ""),
                default=2,
                env_name="WELLNESS_DECIMAL_PLACES",
            ),
        )

    def with_overrides(
        self,
        *,
        tables_path: str | None = None,
        responses_path: str | None = None,
        zero_weight_policy: ZeroWeightPolicy | None = None,
        decimal_places: int | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            tables_path=self.tables_path if tables_path is None else tables_path.strip(),
            responses_path=self.responses_path
            if responses_path is None
            else responses_path.strip(),
            zero_weight_policy=self.zero_weight_policy
            if zero_weight_policy is None
            else zero_weight_policy,
            decimal_places=self.decimal_places if decimal_places is None else decimal_places,
        )

    def with_file_overrides(self, file_config: WellnessConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            tables_path=self.tables_path
            if file_config.tables_path is None
            else file_config.tables_path,
            responses_path=self.responses_path
            if file_config.responses_path is None
            else file_config.responses_path,
            response_min=self.response_min
            if file_config.response_min is None
            else file_config.response_min,
            response_max=self.response_max
            if file_config.response_max is None
            else file_config.response_max,
            zero_weight_policy=self.zero_weight_policy
            if file_config.zero_weight_policy is None
            else file_config.zero_weight_policy,
            decimal_places=self.decimal_places
            if file_config.decimal_places is None
            else file_config.decimal_places,
        )


def parse_zero_weight_policy(value: str) -> ZeroWeightPolicy:
    """Parse a zero-weight policy name."""
    text = value.strip().lower() or "error"
    for policy in ZERO_WEIGHT_POLICIES:
        if policy == text:
            return policy
    raise ZeroWeightPolicyError(value)


def _parse_float(value: str, *, default: float, env_name: str) -> float:
    """Parse an optional float from an environment variable."""
    text = value.strip()
    if not text:
        return default
    try:
        return float(text)
    except ValueError as exc:
        raise NumberEnvVarError(env_name) from exc


def _parse_non_negative_int(value: str, *, default: int, env_name: str) -> int:
    """Parse an optional non-negative integer from an environment variable."""
    text = value.strip()
    if not text:
        return default
    try:
        parsed = int(text)
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed
