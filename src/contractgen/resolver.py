# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve raw contract definitions into rendered :class:`Contract` records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Final

from .abi import abi_json, validate_abi
from .address import normalize_address
from .errors import ValidationError
from .models import Contract, ContractDefinition, ContractMeta, ResolvedAddress
from .naming import camel_case, constant_names

BANNER_RULE: Final[str] = "/" * 76

# chain id -> (explorer name, explorer url)
BLOCK_EXPLORERS: Final[Mapping[int, tuple[str, str]]] = {
    1: ("Etherscan", "https://etherscan.io"),
    5: ("Goerli Etherscan", "https://goerli.etherscan.io"),
    10: ("Optimism Explorer", "https://optimistic.etherscan.io"),
    56: ("BscScan", "https://bscscan.com"),
    100: ("Gnosisscan", "https://gnosisscan.io"),
    137: ("PolygonScan", "https://polygonscan.com"),
    8453: ("Basescan", "https://basescan.org"),
    42161: ("Arbiscan", "https://arbiscan.io"),
    43114: ("SnowTrace", "https://snowtrace.io"),
    11155111: ("Sepolia Etherscan", "https://sepolia.etherscan.io"),
}


def render_banner(title: str) -> str:
    """Return the comment banner that introduces a contract or plugin section."""

    return f"{BANNER_RULE}\n// {title}\n{BANNER_RULE}"


def address_doc_lines(address: ResolvedAddress) -> list[str]:
    """Return documentation lines describing where ``address`` is deployed.

    Args:
        address: Checksummed address or chain-id address map.

    Returns:
        list[str]: One line for a single address, one line per chain otherwise.
    """

    if isinstance(address, str):
        return [f"Deployed at {address}"]
    lines: list[str] = []
    for chain_id, value in sorted(address.items()):
        explorer = BLOCK_EXPLORERS.get(chain_id)
        if explorer is None:
            lines.append(f"- Chain {chain_id}: {value}")
            continue
        explorer_name, explorer_url = explorer
        lines.append(f"- [__View Contract on {explorer_name}__]({explorer_url}/address/{value})")
    return lines


def render_doc_comment(lines: list[str]) -> str:
    """Return ``lines`` wrapped in a JSDoc block, or an empty string."""

    if not lines:
        return ""
    body = "\n".join(f" * {line}" for line in lines)
    return f"/**\n{body}\n */\n"


def render_address(address: ResolvedAddress) -> str:
    """Return the source literal for ``address`` with chain ids as bare numeric keys."""

    if isinstance(address, str):
        return json.dumps(address)
    if not address:
        return "{}"
    entries = ",\n".join(f"  {chain_id}: {json.dumps(value)}" for chain_id, value in sorted(address.items()))
    return f"{{\n{entries},\n}}"


def resolve_contract(definition: ContractDefinition, *, is_typescript: bool) -> Contract:
    """Validate ``definition`` and render its constant declarations.

    Args:
        definition: Raw contract definition from configuration or a plugin.
        is_typescript: Whether constants receive an ``as const`` assertion.

    Returns:
        Contract: Immutable resolved contract.

    Raises:
        InvalidAbiError: If the ABI fails schema validation.
        InvalidAddressError: If the address or address map is malformed.
        ValidationError: If the name yields no usable identifier.
    """

    if not camel_case(definition.name):
        raise ValidationError(["name: must contain at least one letter or digit"], contract=definition.name)
    abi = validate_abi(definition.abi, contract=definition.name)
    address = (
        normalize_address(definition.address, contract=definition.name) if definition.address is not None else None
    )

    const_assertion = " as const" if is_typescript else ""
    abi_name, address_name, config_name = constant_names(definition.name)
    doc = render_doc_comment(address_doc_lines(address)) if address is not None else ""

    parts = [
        render_banner(definition.name),
        f"{doc}export const {abi_name} = {abi_json(abi)}{const_assertion}",
    ]
    meta = ContractMeta(abi_name=abi_name)
    if address is not None:
        parts.append(f"{doc}export const {address_name} = {render_address(address)}{const_assertion}")
        parts.append(
            f"{doc}export const {config_name} = {{ address: {address_name}, abi: {abi_name} }}{const_assertion}"
        )
        meta = ContractMeta(abi_name=abi_name, address_name=address_name, config_name=config_name)

    return Contract(
        name=definition.name,
        abi=abi,
        address=address,
        content="\n\n".join(parts),
        meta=meta,
    )


__all__ = [
    "BLOCK_EXPLORERS",
    "address_doc_lines",
    "render_address",
    "render_banner",
    "render_doc_comment",
    "resolve_contract",
]
