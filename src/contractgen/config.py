# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Output-target configuration and config-file discovery."""

from __future__ import annotations

import importlib.util
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Final

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError, format_issues
from .models import ContractDefinition
from .plugins.base import Plugin, resolve

DEFAULT_CONFIG_NAMES: Final[tuple[str, ...]] = ("contractgen.config.py",)
CONFIG_ATTRIBUTE: Final[str] = "config"
TSCONFIG_NAME: Final[str] = "tsconfig.json"


class Config(BaseModel):
    """One output target: the artifact path, its contracts and its plugins.

    Contract entries may be :class:`ContractDefinition` instances or plain
    mappings; every validation problem surfaces as :class:`ConfigurationError`.
    """

    model_config = ConfigDict(frozen=True)

    out: str
    contracts: tuple[ContractDefinition, ...] = ()
    # Plugin records, checked by _require_plugins
    plugins: tuple[Any, ...] = ()

    @model_validator(mode="wrap")
    @classmethod
    def _report_as_configuration_error(cls, data: Any, handler: ValidatorFunctionWrapHandler) -> Config:
        try:
            return handler(data)
        except PydanticValidationError as exc:
            out = data.get("out") if isinstance(data, Mapping) else None
            raise ConfigurationError(f'Invalid config "{out}": {"; ".join(format_issues(exc.errors()))}') from exc

    @field_validator("out")
    @classmethod
    def _require_out(cls, value: str) -> str:
        if not value:
            raise ConfigurationError('Config "out" must be a non-empty path.')
        return value

    @field_validator("contracts", mode="before")
    @classmethod
    def _coerce_contracts(cls, value: Any, info: ValidationInfo) -> tuple[ContractDefinition, ...]:
        out = info.data.get("out")
        contracts: list[ContractDefinition] = []
        for entry in value:
            if isinstance(entry, ContractDefinition):
                contracts.append(entry)
                continue
            try:
                contracts.append(ContractDefinition.model_validate(dict(entry)))
            except (PydanticValidationError, TypeError, ValueError) as exc:
                detail = "; ".join(format_issues(exc.errors())) if isinstance(exc, PydanticValidationError) else exc
                raise ConfigurationError(f'Invalid contract in config "{out}": {detail}') from exc
        return tuple(contracts)

    @field_validator("plugins", mode="before")
    @classmethod
    def _require_plugins(cls, value: Any, info: ValidationInfo) -> tuple[Plugin, ...]:
        out = info.data.get("out")
        for plugin in value:
            if not isinstance(plugin, Plugin):
                raise ConfigurationError(f'Config "{out}" lists a plugin that is not a Plugin: {plugin!r}')
        return tuple(value)


def define_config(config: Config | Sequence[Config]) -> Config | Sequence[Config]:
    """Return ``config`` unchanged; exists so config files read declaratively."""

    return config


def ensure_unique_outputs(configs: Iterable[Config]) -> None:
    """Raise when two targets share the same ``out`` path.

    Raises:
        ConfigurationError: On the first repeated ``out`` value.
    """

    seen: set[str] = set()
    for config in configs:
        if config.out in seen:
            raise ConfigurationError(f'out "{config.out}" is not unique.')
        seen.add(config.out)


def find_config(*, config: Path | None = None, root: Path | None = None) -> Path:
    """Locate the configuration file.

    Args:
        config: Explicit config path, relative to ``root`` when not absolute.
        root: Directory to search from; defaults to the working directory.

    Returns:
        Path: Resolved path of the config file.

    Raises:
        ConfigurationError: If no config file can be found.
    """

    base = (root or Path.cwd()).resolve()
    if config is not None:
        candidate = config if config.is_absolute() else base / config
        if not candidate.is_file():
            raise ConfigurationError(f'Config not found at "{candidate}"')
        return candidate.resolve()
    for directory in (base, *base.parents):
        for name in DEFAULT_CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    raise ConfigurationError(f'Config not found. Looked for {", ".join(DEFAULT_CONFIG_NAMES)} from "{base}"')


async def load_config(path: Path) -> list[Config]:
    """Import the config module at ``path`` and return its output targets.

    The module must expose ``config``: a :class:`Config`, a sequence of them,
    or a callable (optionally ``async``) returning either.

    Raises:
        ConfigurationError: If the module fails to import or exposes no valid config.
    """

    spec = importlib.util.spec_from_file_location(f"_contractgen_config_{abs(hash(path))}", path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f'Unable to load config "{path}"')
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(f'Failed to load config "{path}": {exc}') from exc

    value = getattr(module, CONFIG_ATTRIBUTE, None)
    if value is None:
        raise ConfigurationError(f'Config "{path}" does not define "{CONFIG_ATTRIBUTE}"')
    if callable(value):
        value = await resolve(value())
    configs = [value] if isinstance(value, Config) else list(value) if isinstance(value, Sequence) else []
    if not configs or not all(isinstance(item, Config) for item in configs):
        raise ConfigurationError(f'Config "{path}" must define Config instances in "{CONFIG_ATTRIBUTE}"')
    return configs


def is_using_typescript(root: Path) -> bool:
    """Return ``True`` when the project at ``root`` is a TypeScript project."""

    return (root / TSCONFIG_NAME).is_file()


__all__ = [
    "CONFIG_ATTRIBUTE",
    "Config",
    "DEFAULT_CONFIG_NAMES",
    "define_config",
    "ensure_unique_outputs",
    "find_config",
    "is_using_typescript",
    "load_config",
]
