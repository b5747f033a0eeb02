# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for artifact assembly and persistence."""

from __future__ import annotations

import asyncio
import os
import stat
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from contractgen.errors import PersistenceError
from contractgen.formatting import PlainFormatter
from contractgen.models import Contract, ContractDefinition, FragmentSet
from contractgen.resolver import resolve_contract
from contractgen.writer import assemble_artifact, render_generated_banner, write_artifact


@pytest.fixture
def contracts(transfer_abi: list[dict[str, Any]]) -> tuple[Contract, ...]:
    return tuple(
        resolve_contract(ContractDefinition(name=name, abi=transfer_abi), is_typescript=False)
        for name in ("Vault", "Token")
    )


class ExplodingFormatter:
    def format(self, text: str, *, filename: str) -> str:
        raise RuntimeError("formatter crashed")


def test_banner_names_tool_and_timestamp(clock: Callable[[], datetime]) -> None:
    banner = render_generated_banner(clock(), version="1.2.3")
    assert banner == "// Generated by contractgen@1.2.3 on 3/5/2024 at 2:07:09 PM"


def test_sections_follow_fixed_order(contracts: tuple[Contract, ...], clock: Callable[[], datetime]) -> None:
    fragments = FragmentSet(imports=["import a", "import b"], prepend=["const p = 1"], content=["// plugin"])
    text = assemble_artifact(contracts, fragments, generated_at=clock())

    positions = [
        text.index("// Generated by contractgen@"),
        text.index("import a"),
        text.index("import b"),
        text.index("const p = 1"),
        text.index("export const vaultABI"),
        text.index("export const tokenABI"),
        text.index("// plugin"),
    ]
    assert positions == sorted(positions)
    assert text.endswith("// plugin\n")


def test_empty_sections_are_skipped(clock: Callable[[], datetime]) -> None:
    text = assemble_artifact((), FragmentSet(), generated_at=clock())
    assert text == render_generated_banner(clock()) + "\n"


def test_write_creates_parent_directories(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "src" / "generated.ts"
    written = asyncio.run(write_artifact(out, contracts, FragmentSet(), formatter=PlainFormatter(), clock=clock))

    assert out.read_text(encoding="utf-8") == written
    assert "export const tokenABI" in written
    assert list(out.parent.iterdir()) == [out]


def test_repeated_writes_are_identical(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "generated.js"
    first = asyncio.run(write_artifact(out, contracts, FragmentSet(), clock=clock))
    second = asyncio.run(write_artifact(out, contracts, FragmentSet(), clock=clock))
    assert first == second


def test_formatter_failure_leaves_previous_artifact(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "generated.ts"
    out.write_text("// previous\n", encoding="utf-8")

    with pytest.raises(PersistenceError, match="formatter crashed"):
        asyncio.run(write_artifact(out, contracts, FragmentSet(), formatter=ExplodingFormatter(), clock=clock))

    assert out.read_text(encoding="utf-8") == "// previous\n"
    assert list(tmp_path.iterdir()) == [out]


def test_write_failure_raises_persistence_error(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(PersistenceError):
        asyncio.run(write_artifact(blocker / "generated.ts", contracts, FragmentSet(), clock=clock))

    assert blocker.read_text(encoding="utf-8") == "not a directory"


def test_plain_formatter_normalises_whitespace() -> None:
    text = "// a   \n\n\n\nconst x = 1\t\n"
    assert PlainFormatter().format(text, filename="out.ts") == "// a\n\nconst x = 1\n"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_new_artifact_follows_umask(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "generated.js"
    previous = os.umask(0o022)
    try:
        asyncio.run(write_artifact(out, contracts, FragmentSet(), clock=clock))
    finally:
        os.umask(previous)

    assert stat.S_IMODE(out.stat().st_mode) == 0o644


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_rewrite_keeps_existing_mode(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "generated.js"
    out.write_text("// previous\n", encoding="utf-8")
    out.chmod(0o640)

    asyncio.run(write_artifact(out, contracts, FragmentSet(), clock=clock))

    assert stat.S_IMODE(out.stat().st_mode) == 0o640
    assert "export const tokenABI" in out.read_text(encoding="utf-8")


def test_unencodable_content_raises_persistence_error(
    tmp_path: Path,
    contracts: tuple[Contract, ...],
    clock: Callable[[], datetime],
) -> None:
    out = tmp_path / "generated.js"
    out.write_text("// previous\n", encoding="utf-8")
    fragments = FragmentSet(content=["const s = '\ud800'"])

    with pytest.raises(PersistenceError, match="Failed to write"):
        asyncio.run(write_artifact(out, contracts, fragments, clock=clock))

    assert out.read_text(encoding="utf-8") == "// previous\n"
    assert list(tmp_path.iterdir()) == [out]
