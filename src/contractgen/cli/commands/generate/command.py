# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command generating code from the configured contracts."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from ....errors import GenerateError
from ....logging import ConsoleLogger, build_logger
from ....pipeline import GenerateReport, run_generate
from ...shared import CLIError
from .params import GenerateCLIOptions, build_generate_options


def generate_command(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file.", dir_okay=False),
    ] = None,
    root: Annotated[
        Path | None,
        typer.Option("--root", "-r", help="Root path to resolve config from.", file_okay=False),
    ] = None,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Watch for changes.")] = False,
    no_emoji: Annotated[bool, typer.Option("--no-emoji", help="Disable emoji in output.")] = False,
    no_color: Annotated[bool, typer.Option("--no-color", help="Disable coloured output.")] = False,
    debug: Annotated[bool, typer.Option("--debug", help="Emit debug diagnostics.")] = False,
) -> None:
    """Generate code based on configuration.

    Raises:
        typer.Exit: Raised with status 1 when any target fails.
    """

    options = build_generate_options(
        config=config,
        root=root,
        watch=watch,
        no_emoji=no_emoji,
        no_color=no_color,
        debug=debug,
    )
    logger = build_logger(emoji=options.emoji, debug=options.debug, no_color=options.no_color)
    try:
        _run(options, logger=logger)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _run(options: GenerateCLIOptions, *, logger: ConsoleLogger) -> GenerateReport:
    try:
        report = asyncio.run(run_generate(options.to_generate_options(), logger=logger))
    except GenerateError as exc:
        raise CLIError(str(exc)) from exc
    except KeyboardInterrupt as exc:
        raise CLIError("Interrupted.", exit_code=130) from exc
    if not report.ok:
        failed = ", ".join(f'"{failure.out}"' for failure in report.failures)
        raise CLIError(f"Generation failed for {failed}.")
    return report


__all__ = ["generate_command"]
