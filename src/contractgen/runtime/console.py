# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rich consoles shared by every logger with the same presentation settings."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from functools import lru_cache

from rich.console import Console


@dataclass(frozen=True, slots=True)
class ConsoleStyle:
    """Presentation settings a console is built for."""

    color: bool
    emoji: bool
    terminal: bool

    @property
    def colored(self) -> bool:
        """Return ``True`` when ANSI colour should actually be emitted."""

        return self.color and self.terminal


def stdout_is_terminal() -> bool:
    """Return ``True`` when ``sys.stdout`` is attached to a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


class ConsolePool:
    """Hand out one :class:`Console` per :class:`ConsoleStyle`."""

    def __init__(self) -> None:
        self._consoles: dict[ConsoleStyle, Console] = {}

    def console(self, style: ConsoleStyle) -> Console:
        """Return the console for ``style``, creating it on first use.

        The console writes to whatever ``sys.stdout`` is at print time, so
        output captured by test runners is still collected.
        """

        console = self._consoles.get(style)
        if console is None:
            console = Console(
                color_system="auto" if style.colored else None,
                force_terminal=style.terminal,
                no_color=not style.colored,
                emoji=style.emoji,
                highlight=False,
                soft_wrap=True,
            )
            self._consoles[style] = console
        return console


@lru_cache(maxsize=1)
def console_pool() -> ConsolePool:
    """Return the process-wide :class:`ConsolePool`."""

    return ConsolePool()


def console_for(*, color: bool | None, emoji: bool) -> Console:
    """Return a console honouring ``color`` (``None`` follows the terminal) and ``emoji``."""

    terminal = stdout_is_terminal()
    style = ConsoleStyle(color=terminal if color is None else color, emoji=emoji, terminal=terminal)
    return console_pool().console(style)


__all__ = ["ConsolePool", "ConsoleStyle", "console_for", "console_pool", "stdout_is_terminal"]
