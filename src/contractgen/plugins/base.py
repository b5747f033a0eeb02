# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Plugin capability records consumed by the generation pipeline.

A plugin is a named bundle of optional capabilities. A capability that a
plugin does not provide is simply ``None``; the pipeline never probes plugin
types at runtime. Every callable may be synchronous or ``async``.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias, TypeVar, runtime_checkable

from ..models import Contract, ContractDefinition, PluginResult

T = TypeVar("T")

MaybeAwaitable: TypeAlias = T | Awaitable[T]
DefinitionLike: TypeAlias = ContractDefinition | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class RunContext:
    """Arguments handed to a plugin's ``run`` capability."""

    contracts: tuple[Contract, ...]
    is_typescript: bool


@runtime_checkable
class CommandHandle(Protocol):
    """Handle returned by a watch ``command`` so shutdown can stop it."""

    def close(self) -> MaybeAwaitable[None]:
        """Stop the side process started by the command."""

        raise NotImplementedError


PathsResolver: TypeAlias = Callable[[], MaybeAwaitable[Sequence[str]]]
DefinitionCallback: TypeAlias = Callable[[str], MaybeAwaitable[DefinitionLike | None]]
RemoveCallback: TypeAlias = Callable[[str], MaybeAwaitable[str | None]]
WatchCommand: TypeAlias = Callable[[], MaybeAwaitable[CommandHandle | None]]


@dataclass(frozen=True, slots=True)
class WatchDescriptor:
    """Filesystem locations a plugin wants watched and how to react to changes.

    ``paths`` entries are files, directories or glob patterns; a leading ``!``
    marks a pattern to exclude. ``on_add``/``on_change`` map a path to a new
    contract definition and ``on_remove`` maps a path to the contract name to
    delete. Returning ``None`` from any callback ignores the event.
    """

    paths: Sequence[str] | PathsResolver
    on_add: DefinitionCallback | None = None
    on_change: DefinitionCallback | None = None
    on_remove: RemoveCallback | None = None
    command: WatchCommand | None = None


@dataclass(frozen=True, slots=True)
class Plugin:
    """Named set of optional pipeline capabilities."""

    name: str
    validate: Callable[[], MaybeAwaitable[None]] | None = None
    contracts: Callable[[], MaybeAwaitable[Sequence[DefinitionLike]]] | None = None
    run: Callable[[RunContext], MaybeAwaitable[PluginResult | Mapping[str, str | None] | None]] | None = None
    watch: WatchDescriptor | None = None


async def resolve(value: MaybeAwaitable[T]) -> T:
    """Await ``value`` when a capability returned an awaitable, otherwise return it."""

    if inspect.isawaitable(value):
        return await value
    return value


def coerce_definition(value: DefinitionLike) -> ContractDefinition:
    """Return ``value`` as a :class:`ContractDefinition`."""

    if isinstance(value, ContractDefinition):
        return value
    return ContractDefinition.model_validate(dict(value))


__all__ = [
    "CommandHandle",
    "DefinitionLike",
    "MaybeAwaitable",
    "Plugin",
    "RunContext",
    "WatchDescriptor",
    "coerce_definition",
    "resolve",
]
