# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pieces every CLI command module needs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import typer

from .typer_ext import OrderedHelpCommand


class CLIError(Exception):
    """Failure that ends the command with ``exit_code`` once its message is printed."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def register_command(app: typer.Typer, callback: Callable[..., Any], *, name: str, help_text: str) -> None:
    """Attach ``callback`` to ``app`` as subcommand ``name`` with ordered help output."""

    app.command(name=name, help=help_text, cls=OrderedHelpCommand)(callback)


__all__ = ["CLIError", "register_command"]
