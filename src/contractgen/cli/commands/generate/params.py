# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Structured options for the generate command."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ....pipeline import GenerateOptions


@dataclass(slots=True)
class GenerateCLIOptions:
    """Options collected from the ``generate`` command line."""

    config: Path | None
    root: Path
    watch: bool
    emoji: bool
    no_color: bool
    debug: bool

    def to_generate_options(self) -> GenerateOptions:
        """Return pipeline options for this invocation."""

        return GenerateOptions(root=self.root, config=self.config, watch=self.watch)


def build_generate_options(
    *,
    config: Path | None,
    root: Path | None,
    watch: bool,
    no_emoji: bool,
    no_color: bool,
    debug: bool,
) -> GenerateCLIOptions:
    """Return normalised options for the generate command.

    Args:
        config: Explicit config file path, if any.
        root: Root directory for config discovery; defaults to the cwd.
        watch: Whether to keep watching plugin paths after generating.
        no_emoji: Disable emoji glyphs in output.
        no_color: Disable colour output.
        debug: Enable debug output.

    Returns:
        GenerateCLIOptions: Resolved options.
    """

    resolved_root = (root or Path.cwd()).resolve()
    resolved_config = config.resolve() if config is not None else None
    return GenerateCLIOptions(
        config=resolved_config,
        root=resolved_root,
        watch=watch,
        emoji=not no_emoji,
        no_color=no_color,
        debug=debug,
    )


__all__ = ["GenerateCLIOptions", "build_generate_options"]
