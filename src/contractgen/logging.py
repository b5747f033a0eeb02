# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Progress output for the generate pipeline, rendered through rich."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Literal

from rich.text import Text

from .runtime.console import console_for

Level = Literal["info", "ok", "warn", "fail"]

# (emoji prefix, rich style) per level
_LEVELS: Final[dict[Level, tuple[str, str]]] = {
    "info": ("ℹ️ ", "cyan"),
    "ok": ("✅ ", "green"),
    "warn": ("⚠️ ", "yellow"),
    "fail": ("❌ ", "red"),
}
_PAIR_RE: Final[re.Pattern[str]] = re.compile(r"([\w-]+)=(\".*?\"|\S+)")


def highlight_pairs(message: str) -> Text:
    """Return ``message`` as rich text with ``key=value`` pairs emphasised."""

    text = Text()
    cursor = 0
    for match in _PAIR_RE.finditer(message):
        start, end = match.span()
        if start > cursor:
            text.append(message[cursor:start], style="dim")
        text.append(match.group(1), style="bold magenta")
        text.append("=", style="dim")
        text.append(match.group(2), style="bold green")
        cursor = end
    if cursor < len(message):
        text.append(message[cursor:], style="dim")
    return text


@dataclass(slots=True)
class ConsoleLogger:
    """Print pipeline progress with the caller's emoji, colour and debug settings.

    Components receive one of these rather than printing directly so the CLI
    and the tests decide how output looks.
    """

    use_emoji: bool = True
    use_color: bool | None = None
    debug_enabled: bool = False

    def emit(self, level: Level, message: str) -> None:
        """Print ``message`` decorated for ``level``."""

        prefix, style = _LEVELS[level]
        console = console_for(color=self.use_color, emoji=self.use_emoji)
        text = Text(f"{prefix if self.use_emoji else ''}{message}")
        if not console.no_color:
            text.stylize(style)
        console.print(text)

    def info(self, message: str) -> None:
        self.emit("info", message)

    def ok(self, message: str) -> None:
        self.emit("ok", message)

    def warn(self, message: str) -> None:
        self.emit("warn", message)

    def fail(self, message: str) -> None:
        self.emit("fail", message)

    def debug(self, message: str) -> None:
        """Print ``message`` under a ``[debug]`` tag when debug output is on."""

        if not self.debug_enabled:
            return
        text = Text("[debug] ", style="bold cyan")
        text.append_text(highlight_pairs(message))
        console_for(color=self.use_color, emoji=self.use_emoji).print(text)


def build_logger(*, emoji: bool = True, debug: bool = False, no_color: bool = False) -> ConsoleLogger:
    """Return a :class:`ConsoleLogger` for the given CLI flags.

    ``no_color`` forces plain output; otherwise colour follows the terminal.
    """

    return ConsoleLogger(use_emoji=emoji, use_color=False if no_color else None, debug_enabled=debug)


__all__ = ["ConsoleLogger", "Level", "build_logger", "highlight_pairs"]
