# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pydantic schema for contract ABIs (interface descriptors).

The models accept the JSON emitted by Solidity/Vyper toolchains, including the
legacy ``constant``/``payable`` flags, and infer ``stateMutability`` where older
compilers omitted it. Validated ABIs dump back to JSON in a fixed field order
so repeated resolution renders byte-identical constants.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Annotated, Any, Final, Literal, TypeAlias, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidAbiError

_INT_SIZES: Final[str] = "|".join(str(bits) for bits in range(256, 7, -8))
_BYTES_SIZES: Final[str] = "|".join(str(size) for size in range(32, 0, -1))
_SOLIDITY_TYPE: Final[re.Pattern[str]] = re.compile(
    r"^(?:address|bool|string|function|tuple"
    rf"|bytes(?:{_BYTES_SIZES})?"
    rf"|u?int(?:{_INT_SIZES})?"
    r"|u?fixed(?:\d+x\d+)?)"
    r"(?:\[\d*\])*$"
)
_TUPLE_TYPE: Final[re.Pattern[str]] = re.compile(r"^tuple(?:\[\d*\])*$")

StateMutability: TypeAlias = Literal["pure", "view", "nonpayable", "payable"]


def _check_solidity_type(value: str) -> str:
    if not _SOLIDITY_TYPE.match(value):
        raise ValueError(f'Unknown Solidity type "{value}"')
    return value


SolidityType: TypeAlias = Annotated[str, AfterValidator(_check_solidity_type)]


class _AbiModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class AbiParameter(_AbiModel):
    """Function, error or constructor parameter."""

    name: str | None = None
    type: SolidityType
    internal_type: str | None = Field(default=None, alias="internalType")
    components: tuple[AbiParameter, ...] | None = None

    @model_validator(mode="after")
    def _require_components(self) -> AbiParameter:
        if _TUPLE_TYPE.match(self.type) and self.components is None:
            raise ValueError(f'Tuple parameter "{self.name or ""}" requires components')
        return self


class AbiEventParameter(AbiParameter):
    """Event parameter which may be indexed."""

    indexed: bool | None = None


def _infer_state_mutability(data: Any) -> Any:
    """Derive ``stateMutability`` from legacy ``constant``/``payable`` flags."""

    if not isinstance(data, dict) or data.get("stateMutability") is not None:
        return data
    inferred = "nonpayable"
    if data.get("constant"):
        inferred = "view"
    elif data.get("payable"):
        inferred = "payable"
    return {**data, "stateMutability": inferred}


class AbiFunction(_AbiModel):
    type: Literal["function"]
    name: str
    inputs: tuple[AbiParameter, ...] = ()
    outputs: tuple[AbiParameter, ...] = ()
    state_mutability: StateMutability = Field(alias="stateMutability")
    constant: bool | None = None
    payable: bool | None = None
    gas: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_state_mutability(cls, data: Any) -> Any:
        return _infer_state_mutability(data)


class AbiConstructor(_AbiModel):
    type: Literal["constructor"]
    inputs: tuple[AbiParameter, ...] = ()
    state_mutability: Literal["payable", "nonpayable"] = Field(alias="stateMutability")
    payable: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_state_mutability(cls, data: Any) -> Any:
        return _infer_state_mutability(data)


class AbiFallback(_AbiModel):
    type: Literal["fallback"]
    inputs: tuple[AbiParameter, ...] | None = None
    state_mutability: Literal["payable", "nonpayable"] = Field(alias="stateMutability")
    payable: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_state_mutability(cls, data: Any) -> Any:
        return _infer_state_mutability(data)


class AbiReceive(_AbiModel):
    type: Literal["receive"]
    state_mutability: Literal["payable"] = Field(default="payable", alias="stateMutability")


class AbiEvent(_AbiModel):
    type: Literal["event"]
    name: str
    inputs: tuple[AbiEventParameter, ...] = ()
    anonymous: bool | None = None


class AbiError(_AbiModel):
    type: Literal["error"]
    name: str
    inputs: tuple[AbiParameter, ...] = ()


AbiItem: TypeAlias = Annotated[
    Union[AbiFunction, AbiConstructor, AbiFallback, AbiReceive, AbiEvent, AbiError],
    Field(discriminator="type"),
]


def _default_item_type(items: Any) -> Any:
    """Entries without ``type`` default to functions, as the ABI JSON format specifies."""

    if not isinstance(items, (list, tuple)):
        return items
    return [
        {**item, "type": "function"} if isinstance(item, dict) and "type" not in item else item for item in items
    ]


_ABI_ADAPTER: Final[TypeAdapter[tuple[AbiItem, ...]]] = TypeAdapter(tuple[AbiItem, ...])


def validate_abi(abi: Any, *, contract: str | None = None) -> tuple[AbiItem, ...]:
    """Validate ``abi`` and return the parsed entries.

    Args:
        abi: Raw ABI (a JSON array) supplied by a contract definition.
        contract: Optional contract name used in error messages.

    Returns:
        tuple[AbiItem, ...]: Validated ABI entries in their original order.

    Raises:
        InvalidAbiError: If ``abi`` does not satisfy the schema.
    """

    try:
        return _ABI_ADAPTER.validate_python(_default_item_type(abi))
    except PydanticValidationError as exc:
        raise InvalidAbiError.from_pydantic(exc, contract=contract) from exc


def dump_abi(items: Sequence[AbiItem]) -> list[dict[str, Any]]:
    """Return ``items`` as JSON-compatible dictionaries using ABI field names."""

    return [item.model_dump(mode="json", by_alias=True, exclude_none=True) for item in items]


def abi_json(items: Sequence[AbiItem]) -> str:
    """Return the compact JSON rendering of ``items``."""

    return json.dumps(dump_abi(items), separators=(",", ":"), ensure_ascii=False)


__all__ = [
    "AbiConstructor",
    "AbiError",
    "AbiEvent",
    "AbiEventParameter",
    "AbiFallback",
    "AbiFunction",
    "AbiItem",
    "AbiParameter",
    "AbiReceive",
    "StateMutability",
    "abi_json",
    "dump_abi",
    "validate_abi",
]
