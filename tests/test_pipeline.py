# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""End-to-end tests for the generate pipeline."""

from __future__ import annotations

import asyncio
import textwrap
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from contractgen.config import Config
from contractgen.errors import ConfigurationError, PersistenceError, PluginValidationError
from contractgen.formatting import PlainFormatter
from contractgen.logging import ConsoleLogger
from contractgen.pipeline import GenerateOptions, WatchSession, generate, run_generate
from contractgen.plugins import Plugin, WatchDescriptor
from contractgen.resolver import render_banner
from contractgen.target import prepare_target
from contractgen.watch import EventKind, FileEvent, WatchCoordinator


def _options(root: Path, clock: Callable[[], datetime], **overrides: Any) -> GenerateOptions:
    return GenerateOptions(root=root, cwd=root, formatter=PlainFormatter(), clock=clock, **overrides)


def test_token_contract_is_written(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    transfer_abi: list[dict[str, Any]],
    token_address_lower: str,
    token_address: str,
) -> None:
    definition = {"name": "Token", "abi": transfer_abi, "address": token_address_lower}
    config = Config(out="generated.js", contracts=[definition])
    report = asyncio.run(generate([config], options=_options(tmp_path, clock), logger=logger))

    assert report.ok
    text = (tmp_path / "generated.js").read_text(encoding="utf-8")
    assert text.startswith("// Generated by contractgen@")
    assert "export const tokenABI = [" in text
    assert f'export const tokenAddress = "{token_address}"' in text
    assert "export const tokenConfig = { address: tokenAddress, abi: tokenABI }" in text
    assert " as const" not in text


def test_typescript_project_gets_const_assertions(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    transfer_abi: list[dict[str, Any]],
) -> None:
    (tmp_path / "tsconfig.json").write_text("{}", encoding="utf-8")
    config = Config(out="generated.ts", contracts=[{"name": "Token", "abi": transfer_abi}])
    asyncio.run(generate([config], options=_options(tmp_path, clock), logger=logger))

    assert "] as const" in (tmp_path / "generated.ts").read_text(encoding="utf-8")


def test_plugin_sections_follow_contracts(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    transfer_abi: list[dict[str, Any]],
) -> None:
    plugins = [
        Plugin(name="First", run=lambda context: {"content": "// A"}),
        Plugin(name="Second", run=lambda context: {"imports": "import x from 'x'", "content": "// B"}),
    ]
    config = Config(out="generated.js", contracts=[{"name": "Token", "abi": transfer_abi}], plugins=plugins)
    asyncio.run(generate([config], options=_options(tmp_path, clock), logger=logger))

    text = (tmp_path / "generated.js").read_text(encoding="utf-8")
    assert text.count("import x from 'x'") == 1
    order = [
        text.index("import x from 'x'"),
        text.index("export const tokenABI"),
        text.index(render_banner("First")),
        text.index("// A"),
        text.index(render_banner("Second")),
        text.index("// B"),
    ]
    assert order == sorted(order)


def test_duplicate_outputs_fail_before_any_work(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
) -> None:
    validated: list[str] = []
    plugin = Plugin(name="Spy", validate=lambda: validated.append("spy"))
    configs = [Config(out="out.js", plugins=[plugin]), Config(out="out.js")]

    with pytest.raises(ConfigurationError, match="not unique"):
        asyncio.run(generate(configs, options=_options(tmp_path, clock), logger=logger))

    assert validated == []
    assert not (tmp_path / "out.js").exists()


def test_duplicate_contract_names_write_nothing(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    transfer_abi: list[dict[str, Any]],
) -> None:
    plugin = Plugin(name="Source", contracts=lambda: [{"name": "Token", "abi": transfer_abi}])
    config = Config(out="out.js", contracts=[{"name": "Token", "abi": transfer_abi}], plugins=[plugin])
    report = asyncio.run(generate([config], options=_options(tmp_path, clock), logger=logger))

    assert not report.ok
    assert isinstance(report.failures[0].error, ConfigurationError)
    assert not (tmp_path / "out.js").exists()


def test_every_plugin_validates_before_contracts_are_collected(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
) -> None:
    calls: list[str] = []

    def reject() -> None:
        calls.append("validate:Second")
        raise RuntimeError("missing dependency")

    plugins = [
        Plugin(
            name="First",
            validate=lambda: calls.append("validate:First"),
            contracts=lambda: calls.append("contracts:First") or [],
        ),
        Plugin(name="Second", validate=reject),
    ]
    config = Config(out="out.js", plugins=plugins)
    report = asyncio.run(generate([config], options=_options(tmp_path, clock), logger=logger))

    assert calls == ["validate:First", "validate:Second"]
    error = report.failures[0].error
    assert isinstance(error, PluginValidationError)
    assert error.plugin_name == "Second"


def test_failing_target_does_not_stop_others(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    transfer_abi: list[dict[str, Any]],
) -> None:
    broken = Config(out="broken.js", contracts=[{"name": "Bad", "abi": [{"type": "nonsense"}]}])
    healthy = Config(out="healthy.js", contracts=[{"name": "Token", "abi": transfer_abi}])
    report = asyncio.run(generate([broken, healthy], options=_options(tmp_path, clock), logger=logger))

    assert [failure.out for failure in report.failures] == ["broken.js"]
    assert [target.config.out for target in report.targets] == ["healthy.js"]
    assert (tmp_path / "healthy.js").exists()
    assert not (tmp_path / "broken.js").exists()


def test_run_generate_loads_config_file(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
) -> None:
    (tmp_path / "contractgen.config.py").write_text(
        textwrap.dedent(
            """
            from contractgen.config import Config

            config = Config(
                out="src/generated.js",
                contracts=[
                    {"name": "Counter", "abi": [{"type": "function", "name": "count", "stateMutability": "view"}]},
                ],
            )
            """
        ),
        encoding="utf-8",
    )
    report = asyncio.run(run_generate(_options(tmp_path, clock), logger=logger))

    assert report.ok
    assert "export const counterABI" in (tmp_path / "src" / "generated.js").read_text(encoding="utf-8")


def test_watch_without_watching_plugins_returns(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    capsys: pytest.CaptureFixture[str],
) -> None:
    (tmp_path / "contractgen.config.py").write_text(
        'from contractgen.config import Config\n\nconfig = Config(out="generated.js")\n',
        encoding="utf-8",
    )
    report = asyncio.run(run_generate(_options(tmp_path, clock, watch=True), logger=logger))

    assert report.ok
    assert 'no plugins are watching "generated.js"' in capsys.readouterr().out


def test_watch_session_reports_config_changes_and_stops(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
    watcher_factory: Any,
    capsys: pytest.CaptureFixture[str],
) -> None:
    config_path = tmp_path / "contractgen.config.py"
    config_path.write_text("config = None\n", encoding="utf-8")
    plugin = Plugin(name="Watcher", watch=WatchDescriptor(paths=["abis/*.json"]))

    async def scenario() -> None:
        runtime = await prepare_target(
            Config(out="out.js", plugins=[plugin]),
            base_dir=tmp_path,
            is_typescript=False,
            logger=logger,
            clock=clock,
        )
        coordinator = WatchCoordinator(target=runtime, delay=0.01, watcher_factory=watcher_factory)
        session = WatchSession([coordinator], logger=logger, config_path=config_path, watcher_factory=watcher_factory)
        await session.start()
        config_watcher = watcher_factory.watchers[-1]
        config_watcher.emit(FileEvent(kind=EventKind.CHANGED, path=str(config_path)))
        await config_watcher.drain()
        session.request_stop()
        await session.wait()
        await session.shutdown()
        assert [watcher.close_calls for watcher in watcher_factory.watchers] == [1, 1]

    asyncio.run(scenario())

    out = capsys.readouterr().out
    assert "Found a change in contractgen.config.py" in out
    assert "Shutting down watch" in out


def test_unwritable_plugin_content_is_a_target_failure(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
) -> None:
    plugin = Plugin(name="Broken", run=lambda context: {"content": "const s = '\ud800'"})
    configs = [Config(out="broken.js", plugins=[plugin]), Config(out="healthy.js")]
    report = asyncio.run(generate(configs, options=_options(tmp_path, clock), logger=logger))

    assert [failure.out for failure in report.failures] == ["broken.js"]
    assert isinstance(report.failures[0].error, PersistenceError)
    assert (tmp_path / "healthy.js").exists()
    assert not (tmp_path / "broken.js").exists()


def test_outputs_resolve_against_cwd_not_root(
    tmp_path: Path,
    logger: ConsoleLogger,
    clock: Callable[[], datetime],
) -> None:
    root = tmp_path / "elsewhere"
    root.mkdir()
    options = GenerateOptions(root=root, cwd=tmp_path, formatter=PlainFormatter(), clock=clock)
    report = asyncio.run(generate([Config(out="generated.js")], options=options, logger=logger))

    assert report.targets[0].out_path == tmp_path.resolve() / "generated.js"
    assert (tmp_path / "generated.js").exists()
    assert not (root / "generated.js").exists()
