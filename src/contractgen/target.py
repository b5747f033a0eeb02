# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-output-target preparation and regeneration."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .config import Config
from .contract_map import ContractMap, ensure_unique_names
from .errors import PluginExecutionError, PluginValidationError
from .executor import execute_plugins
from .formatting import Formatter, PlainFormatter
from .logging import ConsoleLogger
from .models import ContractDefinition
from .plugins.base import Plugin, coerce_definition, resolve
from .writer import write_artifact


@dataclass(slots=True)
class TargetRuntime:
    """State owned by one output target for the lifetime of a ``generate`` call.

    The contract map is only ever touched from the event loop running this
    target, so no locking is involved.
    """

    config: Config
    base_dir: Path
    contracts: ContractMap
    is_typescript: bool
    logger: ConsoleLogger
    formatter: Formatter = field(default_factory=PlainFormatter)
    clock: Callable[[], datetime] = datetime.now

    @property
    def out_path(self) -> Path:
        """Return the absolute path of the generated artifact."""

        out = Path(self.config.out)
        return out if out.is_absolute() else self.base_dir / out

    async def regenerate(self) -> str:
        """Run every plugin over the current contracts and rewrite the artifact.

        Returns:
            str: Text written to :attr:`out_path`.

        Raises:
            PluginExecutionError: If a plugin's ``run`` raises.
            PersistenceError: If formatting or writing fails.
        """

        snapshot = self.contracts.snapshot()
        fragments = await execute_plugins(
            self.config.plugins,
            snapshot,
            is_typescript=self.is_typescript,
            logger=self.logger,
        )
        return await write_artifact(
            self.out_path,
            snapshot,
            fragments,
            formatter=self.formatter,
            clock=self.clock,
        )


async def validate_plugins(plugins: Sequence[Plugin], *, logger: ConsoleLogger) -> None:
    """Run every plugin's ``validate`` capability in declared order.

    Raises:
        PluginValidationError: On the first plugin that rejects the run.
    """

    for plugin in plugins:
        if plugin.validate is None:
            continue
        logger.info(f'Validating plugin "{plugin.name}"')
        try:
            await resolve(plugin.validate())
        except Exception as exc:
            raise PluginValidationError(plugin.name, exc) from exc


async def collect_definitions(config: Config, *, logger: ConsoleLogger) -> list[ContractDefinition]:
    """Return configured definitions followed by those contributed by plugins.

    Raises:
        PluginExecutionError: If a plugin's ``contracts`` capability raises or
            returns something that is not a contract definition.
    """

    definitions = list(config.contracts)
    for plugin in config.plugins:
        if plugin.contracts is None:
            continue
        logger.info(f'Getting contracts for plugin "{plugin.name}"')
        try:
            contributed = [coerce_definition(item) for item in await resolve(plugin.contracts())]
        except Exception as exc:
            raise PluginExecutionError(plugin.name, exc) from exc
        noun = "contract" if len(contributed) == 1 else "contracts"
        logger.info(f"Found {len(contributed)} {noun}")
        definitions.extend(contributed)
    return definitions


async def prepare_target(
    config: Config,
    *,
    base_dir: Path,
    is_typescript: bool,
    logger: ConsoleLogger,
    formatter: Formatter | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> TargetRuntime:
    """Validate plugins, gather definitions and resolve the initial contract map.

    Args:
        config: Output target configuration.
        base_dir: Directory that relative ``out`` and watch paths resolve against.
        is_typescript: Whether rendered constants carry ``as const``.
        logger: Logger for progress messages.
        formatter: Formatter for the artifact; plain whitespace cleanup by default.
        clock: Source of the artifact timestamp.

    Returns:
        TargetRuntime: Target ready for its first regeneration.

    Raises:
        PluginValidationError: If a plugin rejects the run.
        ConfigurationError: If two definitions share a name.
        ValidationError: If a definition's ABI or address is malformed.
    """

    await validate_plugins(config.plugins, logger=logger)
    definitions = await collect_definitions(config, logger=logger)
    ensure_unique_names(definitions)
    contracts = ContractMap.from_definitions(
        definitions,
        is_typescript=is_typescript,
        on_resolve=lambda name: logger.info(f'Resolving contract "{name}"'),
    )
    return TargetRuntime(
        config=config,
        base_dir=base_dir,
        contracts=contracts,
        is_typescript=is_typescript,
        logger=logger,
        formatter=formatter or PlainFormatter(),
        clock=clock,
    )


__all__ = ["TargetRuntime", "collect_definitions", "prepare_target", "validate_plugins"]
