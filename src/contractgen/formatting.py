# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatters applied to the assembled artifact before it is written."""

from __future__ import annotations

import re
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from .runtime.process import run_captured

_BLANK_RUNS: Final[re.Pattern[str]] = re.compile(r"\n{3,}")
PRETTIER_ARGS: Final[tuple[str, ...]] = (
    "--no-semi",
    "--single-quote",
    "--trailing-comma",
    "all",
    "--arrow-parens",
    "always",
)


@runtime_checkable
class Formatter(Protocol):
    """Transform generated source text into its final presentation."""

    def format(self, text: str, *, filename: str) -> str:
        """Return the formatted representation of ``text``."""

        raise NotImplementedError


class PlainFormatter:
    """Normalise whitespace without changing any tokens."""

    def format(self, text: str, *, filename: str) -> str:
        del filename
        lines = [line.rstrip() for line in text.strip().splitlines()]
        return _BLANK_RUNS.sub("\n\n", "\n".join(lines)) + "\n"


class PrettierFormatter:
    """Pipe the artifact through the ``prettier`` executable."""

    def __init__(self, executable: str = "prettier", *, args: Sequence[str] = PRETTIER_ARGS, cwd: Path | None = None):
        self._executable = executable
        self._args = tuple(args)
        self._cwd = cwd

    def format(self, text: str, *, filename: str) -> str:
        """Return ``text`` formatted by prettier, inferring the parser from ``filename``.

        Raises:
            CommandFailedError: If prettier exits with a non-zero status.
        """

        return run_captured(
            [self._executable, *self._args, "--stdin-filepath", filename],
            stdin=text,
            cwd=self._cwd,
        )


def default_formatter(root: Path | None = None) -> Formatter:
    """Return prettier when it is on ``PATH``, otherwise the plain formatter."""

    if shutil.which("prettier") is not None:
        return PrettierFormatter(cwd=root)
    return PlainFormatter()


__all__ = ["Formatter", "PlainFormatter", "PrettierFormatter", "default_formatter"]
