"""Custom exceptions for the wellness index.

These exceptions provide clear error handling and enable testing of error paths.
"""

from __future__ import annotations


class WellnessIndexError(Exception):
    """Base exception for all wellness index errors."""

    pass


class ConfigurationError(WellnessIndexError):
    """Raised when scoring tables cannot produce a defined score.

    Covers zero total weight, negative weights and empty rule/response tables.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid scoring configuration: {message}")


class MissingMetricRuleError(WellnessIndexError, LookupError):
    """Raised when a response references a metric absent from the rule table."""

    def __init__(self, domain: str, metric: str) -> None:
        self.domain = domain
        self.metric = metric
        super().__init__(f"No scoring rule for metric '{metric}' in domain '{domain}'.")


class ScoringTablesFileNotFoundError(WellnessIndexError):
    """Raised when a scoring tables or responses file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Scoring tables file not found: {path}")


class ScoringTablesValidationError(WellnessIndexError):
    """Raised when a scoring tables or responses file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid scoring tables file {path}: {detail}")


class ConfigFileNotFoundError(WellnessIndexError):
    """Raised when the TOML config file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(WellnessIndexError):
    """Raised when the TOML config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not parse config file {path}: {detail}")


class ConfigFileValidationError(WellnessIndexError):
    """Raised when the TOML config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid config file {path}: {detail}")


class ZeroWeightPolicyError(ValueError):
    """Raised when an unsupported zero-weight policy is configured."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Zero-weight policy must be 'error' or 'zero', got '{value}'.")
