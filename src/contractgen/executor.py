# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run plugin ``run`` capabilities in order and compose their fragments."""

from __future__ import annotations

from collections.abc import Sequence

from .errors import PluginExecutionError
from .logging import ConsoleLogger
from .models import Contract, FragmentSet, PluginResult
from .plugins.base import Plugin, RunContext, resolve
from .resolver import render_banner


async def execute_plugins(
    plugins: Sequence[Plugin],
    contracts: Sequence[Contract],
    *,
    is_typescript: bool,
    logger: ConsoleLogger | None = None,
) -> FragmentSet:
    """Run every plugin's ``run`` capability against the full contract set.

    Plugins run strictly in the order given. A plugin that contributes no
    fragment at all is left out of the artifact entirely, banner included.

    Args:
        plugins: Plugins in declared configuration order.
        contracts: Snapshot of the contract map for this pass.
        is_typescript: Output-language flag forwarded to each plugin.
        logger: Optional logger for progress messages.

    Returns:
        FragmentSet: Imports, prepended statements and body content in plugin order.

    Raises:
        PluginExecutionError: If any plugin raises; no fragments are returned.
    """

    fragments = FragmentSet()
    context = RunContext(contracts=tuple(contracts), is_typescript=is_typescript)
    for plugin in plugins:
        if plugin.run is None:
            continue
        if logger is not None:
            logger.info(f'Running plugin "{plugin.name}"')
        try:
            result = PluginResult.coerce(await resolve(plugin.run(context)))
        except Exception as exc:
            raise PluginExecutionError(plugin.name, exc) from exc
        if result.is_empty:
            continue
        fragments.content.append(render_banner(plugin.name))
        if result.imports:
            fragments.imports.append(result.imports)
        if result.prepend:
            fragments.prepend.append(result.prepend)
        if result.content:
            fragments.content.append(result.content)
    return fragments


__all__ = ["execute_plugins"]
