# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Glob helpers shared by watch targets and artifact discovery."""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Final

GLOB_CHARS: Final[frozenset[str]] = frozenset("*?")


def has_glob(pattern: str) -> bool:
    """Return ``True`` when ``pattern`` contains a wildcard."""

    return any(char in pattern for char in GLOB_CHARS)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a ``**``-aware glob into an anchored regular expression.

    ``**/`` matches zero or more directories, ``*`` and ``?`` never cross a
    path separator.
    """

    parts: list[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("^" + "".join(parts) + "$")


def static_prefix(pattern: str) -> Path:
    """Return the longest leading directory of ``pattern`` without wildcards."""

    static: list[str] = []
    for part in Path(pattern).parts:
        if has_glob(part):
            break
        static.append(part)
    return Path(*static) if static else Path(".")


def iter_matching_files(directory: Path, *, include: Sequence[str], exclude: Sequence[str] = ()) -> Iterator[Path]:
    """Yield files under ``directory`` matching ``include`` and none of ``exclude``.

    Patterns are relative to ``directory`` and may match at any depth, so
    ``*.json`` finds JSON files in nested folders too. Results are sorted.
    """

    includes = [glob_to_regex(f"**/{pattern}") for pattern in include]
    excludes = [glob_to_regex(f"**/{pattern}") for pattern in exclude]
    for path in sorted(directory.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(directory).as_posix()
        if not any(pattern.match(relative) for pattern in includes):
            continue
        if any(pattern.match(relative) for pattern in excludes):
            continue
        yield path


__all__ = ["GLOB_CHARS", "glob_to_regex", "has_glob", "iter_matching_files", "static_prefix"]
