# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Generate CLI command package."""

from __future__ import annotations

import typer

from ...shared import register_command
from .command import generate_command

__all__ = ["register"]


def register(app: typer.Typer) -> None:
    """Register the generate command on the provided Typer application.

    Args:
        app: Typer application receiving the command.
    """

    register_command(app, generate_command, name="generate", help_text="Generate code based on configuration.")
