# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for generated identifier naming."""

from __future__ import annotations

import pytest

from contractgen.naming import camel_case, constant_names, split_words


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Token", "token"),
        ("ERC20Token", "erc20Token"),
        ("my-vault", "myVault"),
        ("Uniswap_V3_Pool", "uniswapV3Pool"),
        ("WETH", "weth"),
        ("Pool 2 Router", "pool_2Router"),
    ],
)
def test_camel_case(raw: str, expected: str) -> None:
    assert camel_case(raw) == expected


def test_split_words_breaks_acronym_boundaries() -> None:
    assert split_words("ENSRegistry") == ["ENS", "Registry"]


def test_constant_names_use_fixed_suffixes() -> None:
    assert constant_names("Token") == ("tokenABI", "tokenAddress", "tokenConfig")


def test_constant_names_prefix_leading_digit() -> None:
    assert constant_names("1inch") == ("_1inchABI", "_1inchAddress", "_1inchConfig")
