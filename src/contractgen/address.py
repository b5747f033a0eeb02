# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Address validation and EIP-55 checksum normalisation."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Annotated, Final, TypeAlias

from eth_utils import to_checksum_address
from pydantic import AfterValidator, BeforeValidator, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidAddressError

_ADDRESS_PATTERN: Final[re.Pattern[str]] = re.compile(r"^0x[a-fA-F0-9]{40}$")
_CHAIN_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d+$")


def checksum_address(value: str) -> str:
    """Return the EIP-55 checksummed form of ``value``.

    Args:
        value: Hex address supplied by the configuration.

    Returns:
        str: Checksummed address.

    Raises:
        ValueError: If ``value`` is malformed or mixed-case with a bad checksum.
    """

    if not isinstance(value, str) or not _ADDRESS_PATTERN.match(value):
        raise ValueError("Invalid address")
    checksummed = to_checksum_address(value)
    digits = value[2:]
    mixed_case = digits != digits.lower() and digits != digits.upper()
    if mixed_case and checksummed != value:
        raise ValueError("Bad address checksum")
    return checksummed


def _coerce_chain_id(value: object) -> object:
    if isinstance(value, str) and _CHAIN_ID_PATTERN.match(value.strip()):
        return int(value.strip())
    return value


Address: TypeAlias = Annotated[str, AfterValidator(checksum_address)]
ChainId: TypeAlias = Annotated[int, BeforeValidator(_coerce_chain_id)]
AddressInput: TypeAlias = Address | dict[ChainId, Address]

_ADDRESS_ADAPTER: Final[TypeAdapter[AddressInput]] = TypeAdapter(AddressInput)


def normalize_address(value: str | Mapping[int | str, str], *, contract: str | None = None) -> str | dict[int, str]:
    """Validate ``value`` and return its checksum-normalised form.

    Args:
        value: Single address or mapping of chain id to address.
        contract: Optional contract name used in error messages.

    Returns:
        str | dict[int, str]: Checksummed address, or chain-id map of checksummed addresses.

    Raises:
        InvalidAddressError: If the address or any chain-id entry is malformed.
    """

    if isinstance(value, Mapping):
        value = dict(value)
    try:
        return _ADDRESS_ADAPTER.validate_python(value, strict=False)
    except PydanticValidationError as exc:
        raise InvalidAddressError.from_pydantic(exc, contract=contract) from exc


def is_multichain(address: str | Mapping[int, str] | None) -> bool:
    """Return ``True`` when ``address`` is a chain-id to address mapping."""

    return isinstance(address, Mapping)


__all__ = ["Address", "AddressInput", "checksum_address", "is_multichain", "normalize_address"]
