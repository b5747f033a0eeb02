# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Deterministic identifier derivation for generated constants."""

from __future__ import annotations

import re
from typing import Final

_LOWER_UPPER: Final[re.Pattern[str]] = re.compile(r"([\da-z])([A-Z])")
_UPPER_UPPER_LOWER: Final[re.Pattern[str]] = re.compile(r"([A-Z])([A-Z][a-z])")
_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z\d]+")


def split_words(value: str) -> list[str]:
    """Split ``value`` on case boundaries and non-alphanumeric separators.

    Args:
        value: Raw contract name.

    Returns:
        list[str]: Word fragments in their original casing.
    """

    spaced = _LOWER_UPPER.sub(r"\1 \2", value)
    spaced = _UPPER_UPPER_LOWER.sub(r"\1 \2", spaced)
    return [word for word in _SEPARATORS.split(spaced) if word]


def camel_case(value: str) -> str:
    """Return the camel-cased identifier for ``value``.

    ``ERC20Token`` becomes ``erc20Token`` and ``my-vault`` becomes ``myVault``.
    A word after the first that starts with a digit is prefixed with ``_`` so
    adjacent numbers stay readable.

    Args:
        value: Raw contract name.

    Returns:
        str: Camel-cased identifier, empty when ``value`` has no word characters.
    """

    parts: list[str] = []
    for index, word in enumerate(split_words(value)):
        if index == 0:
            parts.append(word.lower())
            continue
        head, rest = word[0], word[1:].lower()
        if head.isdigit():
            parts.append(f"_{head}{rest}")
        else:
            parts.append(f"{head.upper()}{rest}")
    return "".join(parts)


def constant_names(name: str) -> tuple[str, str, str]:
    """Return the ABI, address and config constant names for contract ``name``."""

    base = camel_case(name)
    if base[:1].isdigit():
        base = f"_{base}"
    return f"{base}ABI", f"{base}Address", f"{base}Config"


__all__ = ["camel_case", "constant_names", "split_words"]
