# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for ordered plugin execution."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from contractgen.errors import PluginExecutionError
from contractgen.executor import execute_plugins
from contractgen.models import Contract, ContractDefinition, PluginResult
from contractgen.plugins import Plugin, RunContext
from contractgen.resolver import render_banner, resolve_contract


@pytest.fixture
def contracts(transfer_abi: list[dict[str, Any]]) -> tuple[Contract, ...]:
    return (resolve_contract(ContractDefinition(name="Token", abi=transfer_abi), is_typescript=True),)


def test_fragments_compose_in_plugin_order(contracts: tuple[Contract, ...]) -> None:
    plugins = [
        Plugin(name="First", run=lambda context: {"content": "A"}),
        Plugin(name="Second", run=lambda context: PluginResult(imports="import x", content="B")),
    ]
    fragments = asyncio.run(execute_plugins(plugins, contracts, is_typescript=True))

    assert fragments.imports == ["import x"]
    assert fragments.prepend == []
    assert fragments.content == [render_banner("First"), "A", render_banner("Second"), "B"]


def test_plugin_without_fragments_is_omitted(contracts: tuple[Contract, ...]) -> None:
    plugins = [
        Plugin(name="Silent", run=lambda context: None),
        Plugin(name="Empty", run=lambda context: {"imports": None, "prepend": None, "content": None}),
        Plugin(name="NoRun"),
        Plugin(name="Prepender", run=lambda context: {"prepend": "const x = 1"}),
    ]
    fragments = asyncio.run(execute_plugins(plugins, contracts, is_typescript=False))

    assert fragments.prepend == ["const x = 1"]
    assert fragments.content == [render_banner("Prepender")]


def test_async_plugins_receive_full_context(contracts: tuple[Contract, ...]) -> None:
    seen: list[RunContext] = []

    async def run(context: RunContext) -> dict[str, str]:
        await asyncio.sleep(0)
        seen.append(context)
        return {"content": "// ok"}

    fragments = asyncio.run(execute_plugins([Plugin(name="Async", run=run)], contracts, is_typescript=True))

    assert fragments.content[-1] == "// ok"
    assert seen[0].contracts == contracts
    assert seen[0].is_typescript is True


def test_plugin_error_names_the_plugin(contracts: tuple[Contract, ...]) -> None:
    calls: list[str] = []

    def boom(context: RunContext) -> None:
        raise RuntimeError("kaboom")

    plugins = [
        Plugin(name="Broken", run=boom),
        Plugin(name="Later", run=lambda context: calls.append("later")),
    ]
    with pytest.raises(PluginExecutionError) as excinfo:
        asyncio.run(execute_plugins(plugins, contracts, is_typescript=False))

    assert excinfo.value.plugin_name == "Broken"
    assert "kaboom" in str(excinfo.value)
    assert calls == []


def test_unsupported_result_type_is_a_plugin_error(contracts: tuple[Contract, ...]) -> None:
    plugins = [Plugin(name="Weird", run=lambda context: 42)]
    with pytest.raises(PluginExecutionError, match='Plugin "Weird"'):
        asyncio.run(execute_plugins(plugins, contracts, is_typescript=False))
