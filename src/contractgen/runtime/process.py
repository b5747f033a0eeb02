# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run external tools such as prettier and the Hardhat CLI."""

from __future__ import annotations

import asyncio
import shlex
import shutil

# Bandit: commands are argument lists and never go through a shell.
import subprocess  # nosec B404
from collections.abc import Sequence
from pathlib import Path


class CommandFailedError(RuntimeError):
    """An external command exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str | None = None) -> None:
        detail = (stderr or "").strip() or "<no output>"
        super().__init__(f"{Path(argv[0]).name} exited with status {returncode}: {detail}")
        self.argv = tuple(argv)
        self.returncode = returncode
        self.stderr = stderr


def to_argv(command: str | Sequence[str]) -> list[str]:
    """Return ``command`` as an argument list, splitting strings shell-style."""

    return shlex.split(command) if isinstance(command, str) else list(command)


def locate_executable(argv: Sequence[str]) -> list[str]:
    """Return ``argv`` with its program resolved against ``PATH``.

    Raises:
        ValueError: If ``argv`` is empty.
        FileNotFoundError: If the program cannot be found.
    """

    if not argv:
        raise ValueError("cannot run an empty command")
    program, *rest = argv
    if Path(program).is_absolute():
        return [program, *rest]
    found = shutil.which(program)
    if found is None:
        raise FileNotFoundError(f"Executable '{program}' was not found on PATH")
    return [found, *rest]


def run_captured(
    argv: Sequence[str],
    *,
    stdin: str | None = None,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> str:
    """Run ``argv`` to completion, feeding ``stdin`` and returning its stdout.

    Raises:
        FileNotFoundError: If the program cannot be found.
        CommandFailedError: If the command fails or exceeds ``timeout`` seconds.
    """

    resolved = locate_executable(argv)
    try:
        completed = subprocess.run(  # nosec B603
            resolved,
            input=stdin,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandFailedError(resolved, -1, f"timed out after {exc.timeout}s") from exc
    if completed.returncode != 0:
        raise CommandFailedError(resolved, completed.returncode, completed.stderr)
    return completed.stdout


async def run_streaming(argv: Sequence[str], *, cwd: Path | None = None, check: bool = True) -> int:
    """Run ``argv`` with inherited output streams and return its exit status.

    Raises:
        CommandFailedError: If ``check`` is set and the command fails.
    """

    resolved = locate_executable(argv)
    process = await asyncio.create_subprocess_exec(*resolved, cwd=cwd)
    returncode = await process.wait()
    if check and returncode != 0:
        raise CommandFailedError(resolved, returncode)
    return returncode


__all__ = ["CommandFailedError", "locate_executable", "run_captured", "run_streaming", "to_argv"]
