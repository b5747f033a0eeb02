# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Contract definitions, resolved contracts and per-pass fragment containers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from .abi import AbiItem, dump_abi

AddressValue: TypeAlias = str | Mapping[int | str, str]
ResolvedAddress: TypeAlias = str | dict[int, str]


class ContractDefinition(BaseModel):
    """Raw contract input supplied by configuration or a plugin's ``contracts``.

    ``abi`` is accepted as-is here and validated during resolution so schema
    problems surface as :class:`~contractgen.errors.InvalidAbiError`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    abi: Any
    address: AddressValue | None = None


class ContractMeta(BaseModel):
    """Identifiers of the constants rendered for a contract."""

    model_config = ConfigDict(frozen=True)

    abi_name: str
    address_name: str | None = None
    config_name: str | None = None


class Contract(BaseModel):
    """Resolved, immutable contract with its pre-rendered source fragment."""

    model_config = ConfigDict(frozen=True)

    name: str
    abi: tuple[AbiItem, ...]
    address: ResolvedAddress | None = None
    content: str
    meta: ContractMeta

    def abi_dicts(self) -> list[dict[str, Any]]:
        """Return the validated ABI as JSON-compatible dictionaries."""

        return dump_abi(self.abi)


@dataclass(frozen=True, slots=True)
class PluginResult:
    """Fragments contributed by one plugin's ``run`` capability."""

    imports: str | None = None
    prepend: str | None = None
    content: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when the plugin produced no fragment of any kind."""

        return not (self.imports or self.prepend or self.content)

    @classmethod
    def coerce(cls, value: PluginResult | Mapping[str, str | None] | None) -> PluginResult:
        """Return ``value`` as a :class:`PluginResult`.

        Args:
            value: Result returned by a plugin; mappings use the field names as keys.

        Returns:
            PluginResult: Normalised result, empty when ``value`` is ``None``.

        Raises:
            TypeError: If ``value`` is neither a result, a mapping nor ``None``.
        """

        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(
                imports=value.get("imports"),
                prepend=value.get("prepend"),
                content=value.get("content"),
            )
        raise TypeError(f"plugin run() returned unsupported value of type {type(value).__name__}")


@dataclass(slots=True)
class FragmentSet:
    """Ordered fragments accumulated across plugins during one regeneration pass."""

    imports: list[str] = field(default_factory=list)
    prepend: list[str] = field(default_factory=list)
    content: list[str] = field(default_factory=list)


__all__ = [
    "AddressValue",
    "Contract",
    "ContractDefinition",
    "ContractMeta",
    "FragmentSet",
    "PluginResult",
    "ResolvedAddress",
]
