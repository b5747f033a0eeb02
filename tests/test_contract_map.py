# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the contract map."""

from __future__ import annotations

from typing import Any

import pytest

from contractgen.contract_map import ContractMap
from contractgen.errors import ConfigurationError
from contractgen.models import ContractDefinition
from contractgen.resolver import resolve_contract


def _definitions(abi: list[dict[str, Any]], *names: str) -> list[ContractDefinition]:
    return [ContractDefinition(name=name, abi=abi) for name in names]


def test_duplicate_names_are_fatal(transfer_abi: list[dict[str, Any]]) -> None:
    resolved: list[str] = []
    with pytest.raises(ConfigurationError, match='"Token" is not unique'):
        ContractMap.from_definitions(
            _definitions(transfer_abi, "Token", "Vault", "Token"),
            is_typescript=False,
            on_resolve=resolved.append,
        )
    assert resolved == []


def test_keys_follow_definition_order(transfer_abi: list[dict[str, Any]]) -> None:
    contracts = ContractMap.from_definitions(_definitions(transfer_abi, "Vault", "Token"), is_typescript=False)
    assert contracts.names() == ["Vault", "Token"]
    assert all(contracts.get(name).name == name for name in contracts.names())


def test_replace_keeps_position(transfer_abi: list[dict[str, Any]]) -> None:
    contracts = ContractMap.from_definitions(_definitions(transfer_abi, "A", "B", "C"), is_typescript=False)
    updated = resolve_contract(ContractDefinition(name="B", abi=transfer_abi[:1]), is_typescript=False)

    assert contracts.replace(updated) is True
    assert contracts.names() == ["A", "B", "C"]
    assert contracts.get("B") is updated


def test_replace_appends_new_names(transfer_abi: list[dict[str, Any]]) -> None:
    contracts = ContractMap.from_definitions(_definitions(transfer_abi, "A"), is_typescript=False)
    added = resolve_contract(ContractDefinition(name="B", abi=transfer_abi), is_typescript=False)

    assert contracts.replace(added) is False
    assert [contract.name for contract in contracts] == ["A", "B"]


def test_remove(transfer_abi: list[dict[str, Any]]) -> None:
    contracts = ContractMap.from_definitions(_definitions(transfer_abi, "A", "B"), is_typescript=False)

    assert contracts.remove("A") is True
    assert contracts.remove("Ghost") is False
    assert "A" not in contracts
    assert len(contracts) == 1


def test_snapshot_is_detached_from_later_mutations(transfer_abi: list[dict[str, Any]]) -> None:
    contracts = ContractMap.from_definitions(_definitions(transfer_abi, "A", "B"), is_typescript=False)
    snapshot = contracts.snapshot()
    contracts.remove("A")
    assert [contract.name for contract in snapshot] == ["A", "B"]
