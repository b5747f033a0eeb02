# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Assemble, format and atomically persist the generated artifact."""

from __future__ import annotations

import asyncio
import os
import stat
import tempfile
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from . import __version__
from .errors import PersistenceError
from .formatting import Formatter, PlainFormatter
from .models import Contract, FragmentSet

TOOL_NAME = "contractgen"


def render_generated_banner(generated_at: datetime, *, version: str = __version__) -> str:
    """Return the leading comment identifying the tool and generation time."""

    date = f"{generated_at.month}/{generated_at.day}/{generated_at.year}"
    time = generated_at.strftime("%I:%M:%S %p").lstrip("0")
    return f"// Generated by {TOOL_NAME}@{version} on {date} at {time}"


def assemble_artifact(
    contracts: Sequence[Contract],
    fragments: FragmentSet,
    *,
    generated_at: datetime,
) -> str:
    """Return the unformatted artifact text.

    Sections appear in a fixed order: banner, imports, prepended statements,
    contract fragments in map order, then plugin content. Empty sections are
    skipped so the artifact never carries blank placeholders.
    """

    sections = [
        render_generated_banner(generated_at),
        "\n\n".join(fragments.imports),
        "\n\n".join(fragments.prepend),
        *(contract.content for contract in contracts),
        "\n\n".join(fragments.content),
    ]
    return "\n\n".join(section for section in sections if section) + "\n"


def _artifact_mode(path: Path) -> int:
    """Return the permission bits for ``path``: its current mode, or what a plain create would get."""

    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _atomic_write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _artifact_mode(path)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    tmp_path = Path(handle.name)
    try:
        with handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


async def write_artifact(
    path: Path,
    contracts: Sequence[Contract],
    fragments: FragmentSet,
    *,
    formatter: Formatter | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> str:
    """Assemble, format and persist the artifact at ``path``.

    The whole file is regenerated on every call. Formatting and writing run in
    a worker thread so watchers on the event loop keep receiving events.

    Args:
        path: Destination file; any previous content is replaced.
        contracts: Contracts in contract-map iteration order.
        fragments: Plugin fragments for this pass.
        formatter: Formatter applied to the assembled text.
        clock: Source of the generation timestamp.

    Returns:
        str: The text that was written.

    Raises:
        PersistenceError: If formatting or writing fails; the previous file is left untouched.
    """

    active_formatter = formatter or PlainFormatter()
    code = assemble_artifact(contracts, fragments, generated_at=clock())
    try:
        formatted = await asyncio.to_thread(active_formatter.format, code, filename=path.name)
    except Exception as exc:
        raise PersistenceError(f'Failed to format "{path}": {exc}') from exc
    try:
        await asyncio.to_thread(_atomic_write, path, formatted)
    except (OSError, ValueError) as exc:
        raise PersistenceError(f'Failed to write "{path}": {exc}') from exc
    return formatted


__all__ = ["TOOL_NAME", "assemble_artifact", "render_generated_banner", "write_artifact"]
