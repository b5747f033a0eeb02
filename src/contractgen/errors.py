# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy raised by the generation pipeline."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from pydantic import ValidationError as PydanticValidationError


class GenerateError(RuntimeError):
    """Base class for failures raised while generating an artifact."""


class ConfigurationError(GenerateError):
    """Raised when the configuration is unusable (duplicate targets, names, missing files)."""


class ValidationError(GenerateError):
    """Raised when a contract definition fails schema validation."""

    prefix: str = "Invalid input"

    def __init__(self, issues: Sequence[str], *, contract: str | None = None) -> None:
        """Initialise the error with the collected schema violations.

        Args:
            issues: Human-readable violations reported by the validator.
            contract: Optional name of the contract being resolved.
        """

        self.issues: tuple[str, ...] = tuple(issues)
        self.contract = contract
        subject = f' for contract "{contract}"' if contract else ""
        detail = "; ".join(self.issues) if self.issues else "unknown error"
        super().__init__(f"{self.prefix}{subject}: {detail}")

    @classmethod
    def from_pydantic(cls, error: PydanticValidationError, *, contract: str | None = None) -> ValidationError:
        """Build an error from a pydantic ``ValidationError``.

        Args:
            error: Exception raised by pydantic while validating input.
            contract: Optional name of the contract being resolved.

        Returns:
            ValidationError: Instance of ``cls`` carrying formatted issues.
        """

        return cls(format_issues(error.errors()), contract=contract)


class InvalidAbiError(ValidationError):
    """Raised when an ABI does not satisfy the interface-descriptor schema."""

    prefix = "Invalid ABI"


class InvalidAddressError(ValidationError):
    """Raised when an address or chain-id address map is malformed."""

    prefix = "Invalid address"


class PluginError(GenerateError):
    """Base class for failures attributed to a specific plugin."""

    action: str = "failed"

    def __init__(self, plugin_name: str, cause: BaseException) -> None:
        """Initialise the error with the plugin name and originating exception.

        Args:
            plugin_name: Name of the plugin that failed.
            cause: Exception raised by the plugin.
        """

        self.plugin_name = plugin_name
        self.cause = cause
        super().__init__(f'Plugin "{plugin_name}" {self.action}: {cause}')


class PluginValidationError(PluginError):
    """Raised when a plugin's ``validate`` capability rejects the run."""

    action = "failed validation"


class PluginExecutionError(PluginError):
    """Raised when a plugin's ``contracts``, ``run`` or watch callback raises."""

    action = "raised an error"


class PersistenceError(GenerateError):
    """Raised when formatting or writing the artifact fails."""


_ROOT_LOCATION: Final[str] = "<root>"


def format_issues(errors: Iterable[object]) -> list[str]:
    """Return ``loc: message`` strings for pydantic error dictionaries.

    Args:
        errors: Entries produced by ``pydantic.ValidationError.errors()``.

    Returns:
        list[str]: Formatted issue strings preserving the validator's order.
    """

    issues: list[str] = []
    for entry in errors:
        if not isinstance(entry, dict):
            issues.append(str(entry))
            continue
        location = ".".join(str(part) for part in entry.get("loc", ())) or _ROOT_LOCATION
        issues.append(f"{location}: {entry.get('msg', 'invalid value')}")
    return issues


__all__ = [
    "ConfigurationError",
    "GenerateError",
    "InvalidAbiError",
    "InvalidAddressError",
    "PersistenceError",
    "PluginError",
    "PluginExecutionError",
    "PluginValidationError",
    "ValidationError",
    "format_issues",
]
