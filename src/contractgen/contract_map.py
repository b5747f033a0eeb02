# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Authoritative, name-keyed store of resolved contracts for one output target."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence

from .errors import ConfigurationError
from .models import Contract, ContractDefinition
from .resolver import resolve_contract


def ensure_unique_names(definitions: Iterable[ContractDefinition]) -> None:
    """Raise when two definitions share a name.

    Raises:
        ConfigurationError: On the first repeated contract name.
    """

    seen: set[str] = set()
    for definition in definitions:
        if definition.name in seen:
            raise ConfigurationError(f'Contract name "{definition.name}" is not unique.')
        seen.add(definition.name)


class ContractMap:
    """Insertion-ordered mapping from contract name to :class:`Contract`.

    Keys always equal the ``name`` of the stored contract. Replacing an
    existing entry keeps its original position so regenerated artifacts stay
    stable while a watch session edits individual contracts.
    """

    def __init__(self, contracts: Iterable[Contract] = ()) -> None:
        """Initialise the map, rejecting duplicate names.

        Args:
            contracts: Contracts to insert in order.

        Raises:
            ConfigurationError: If two contracts share a name.
        """

        self._entries: dict[str, Contract] = {}
        for contract in contracts:
            if contract.name in self._entries:
                raise ConfigurationError(f'Contract name "{contract.name}" is not unique.')
            self._entries[contract.name] = contract

    @classmethod
    def from_definitions(
        cls,
        definitions: Sequence[ContractDefinition],
        *,
        is_typescript: bool,
        on_resolve: Callable[[str], None] | None = None,
    ) -> ContractMap:
        """Resolve ``definitions`` into a new map.

        Name uniqueness is checked before any definition is resolved.

        Args:
            definitions: Definitions gathered from configuration and plugins.
            is_typescript: Whether rendered constants carry ``as const``.
            on_resolve: Optional callback invoked with each name before it is resolved.

        Returns:
            ContractMap: Map populated in definition order.
        """

        ensure_unique_names(definitions)
        contracts: list[Contract] = []
        for definition in definitions:
            if on_resolve is not None:
                on_resolve(definition.name)
            contracts.append(resolve_contract(definition, is_typescript=is_typescript))
        return cls(contracts)

    def replace(self, contract: Contract) -> bool:
        """Insert ``contract`` or replace the entry with the same name.

        Returns:
            bool: ``True`` when an existing entry was replaced.
        """

        existed = contract.name in self._entries
        self._entries[contract.name] = contract
        return existed

    def remove(self, name: str) -> bool:
        """Delete the entry for ``name``.

        Returns:
            bool: ``True`` when an entry was removed, ``False`` when ``name`` was unknown.
        """

        return self._entries.pop(name, None) is not None

    def snapshot(self) -> tuple[Contract, ...]:
        """Return the current contracts in iteration order."""

        return tuple(self._entries.values())

    def get(self, name: str) -> Contract | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Contract]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ContractMap", "ensure_unique_names"]
