# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Plugin resolving ABIs from a Hardhat project's compiled artifacts."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

from watchfiles import DefaultFilter, awatch

from ..globbing import iter_matching_files
from ..logging import ConsoleLogger, build_logger
from ..models import ContractDefinition
from ..runtime.process import run_streaming, to_argv
from .base import Plugin, WatchDescriptor

LOGGER = logging.getLogger(__name__)

PLUGIN_NAME: Final[str] = "Hardhat"
PACKAGE_NAME: Final[str] = "hardhat"
DEFAULT_INCLUDE: Final[tuple[str, ...]] = ("*.json",)
DEFAULT_EXCLUDE: Final[tuple[str, ...]] = ("build-info/**", "*.dbg.json")

PackageManager = Literal["npm", "pnpm", "yarn", "bun"]

_LOCKFILES: Final[tuple[tuple[str, PackageManager], ...]] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
)
_RUNNERS: Final[dict[PackageManager, str]] = {"npm": "npx", "pnpm": "pnpm", "yarn": "yarn", "bun": "bunx"}
_INSTALL_COMMANDS: Final[dict[PackageManager, tuple[str, ...]]] = {
    "npm": ("npm", "install", "--save-dev"),
    "pnpm": ("pnpm", "add", "-D"),
    "yarn": ("yarn", "add", "-D"),
    "bun": ("bun", "add", "-d"),
}


@dataclass(frozen=True, slots=True)
class HardhatCommands:
    """Commands run against the Hardhat project.

    ``True`` selects the default ``<runner> hardhat <task>`` command, ``False``
    disables the step and a string supplies a custom command line.
    """

    clean: str | bool = False
    build: str | bool = True
    rebuild: str | bool = True


def detect_package_manager(project: Path) -> PackageManager:
    """Return the package manager implied by the lockfiles in ``project`` or its parents."""

    for directory in (project.resolve(), *project.resolve().parents):
        for lockfile, manager in _LOCKFILES:
            if (directory / lockfile).is_file():
                return manager
    return "npm"


def is_package_installed(package: str, project: Path) -> bool:
    """Return ``True`` when ``package`` is resolvable from ``project``'s ``node_modules``."""

    for directory in (project.resolve(), *project.resolve().parents):
        if (directory / "node_modules" / package / "package.json").is_file():
            return True
    return False


def install_command(package: str, manager: PackageManager) -> str:
    """Return the command line that installs ``package`` as a dev dependency."""

    return " ".join((*_INSTALL_COMMANDS[manager], package))


def resolve_command(command: str | bool, task: str, project: Path) -> list[str] | None:
    """Return the argument list for ``command``, or ``None`` when the step is disabled."""

    if command is False:
        return None
    if command is True:
        return [_RUNNERS[detect_package_manager(project)], PACKAGE_NAME, task]
    return to_argv(command)


class _SourcesWatcher:
    """Rebuild the Hardhat project whenever a source file changes."""

    def __init__(self, sources: Path, command: Sequence[str], *, project: Path) -> None:
        self._sources = sources
        self._command = list(command)
        self._project = project
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    def start(self) -> _SourcesWatcher:
        self._task = asyncio.get_running_loop().create_task(self._run(), name="hardhat:rebuild")
        return self

    async def _run(self) -> None:
        async for _changes in awatch(self._sources, watch_filter=DefaultFilter(), stop_event=self._stop):
            returncode = await run_streaming(self._command, cwd=self._project, check=False)
            if returncode != 0:
                LOGGER.warning("hardhat rebuild exited with status %s", returncode)

    async def close(self) -> None:
        self._stop.set()
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)


def hardhat(
    project: str | Path,
    *,
    artifacts: str = "artifacts",
    sources: str = "contracts",
    include: Sequence[str] = DEFAULT_INCLUDE,
    exclude: Sequence[str] = DEFAULT_EXCLUDE,
    name_prefix: str = "",
    commands: HardhatCommands | None = None,
    logger: ConsoleLogger | None = None,
) -> Plugin:
    """Return a plugin resolving ABIs from a Hardhat project.

    Args:
        project: Path to the Hardhat project.
        artifacts: Artifacts directory relative to ``project``.
        sources: Sources directory relative to ``project``.
        include: Artifact file globs to include.
        exclude: Artifact file globs to exclude.
        name_prefix: Prefix prepended to every contract name.
        commands: Clean, build and rebuild commands.
        logger: Logger for progress messages.

    Returns:
        Plugin: Plugin providing ``validate``, ``contracts`` and ``watch``.
    """

    project_dir = Path(project)
    artifacts_dir = project_dir / artifacts
    sources_dir = project_dir / sources
    steps = commands or HardhatCommands()
    log = logger or build_logger()

    def contract_name(artifact: dict[str, Any]) -> str:
        return f"{name_prefix}{artifact['contractName']}"

    def read_definition(path: str | Path) -> ContractDefinition:
        artifact = json.loads(Path(path).read_text(encoding="utf-8"))
        return ContractDefinition(name=contract_name(artifact), abi=artifact.get("abi"))

    def artifact_paths() -> list[Path]:
        return list(iter_matching_files(artifacts_dir, include=include, exclude=exclude))

    async def validate() -> None:
        if not project_dir.exists():
            raise FileNotFoundError(f'Project "{project_dir}" not found.')
        if is_package_installed(PACKAGE_NAME, project_dir):
            return
        manager = detect_package_manager(project_dir)
        raise RuntimeError(
            f"{PACKAGE_NAME} must be installed to use {PLUGIN_NAME} plugin.\n"
            f"To install, run: {install_command(PACKAGE_NAME, manager)}"
        )

    async def contracts() -> list[ContractDefinition]:
        setup = (
            resolve_command(steps.clean, "clean", project_dir),
            resolve_command(steps.build, "compile", project_dir),
        )
        for command in setup:
            if command is not None:
                await run_streaming(command, cwd=project_dir)
        if not artifacts_dir.exists():
            raise FileNotFoundError("Artifacts not found.")
        definitions: list[ContractDefinition] = []
        for path in artifact_paths():
            definition = read_definition(path)
            if definition.abi:
                definitions.append(definition)
        return definitions

    def on_remove(path: str) -> str | None:
        removed = f"{name_prefix}{Path(path).stem}"
        # another artifact may still provide a contract with the same name
        for candidate in artifact_paths():
            if read_definition(candidate).name == removed:
                return None
        return removed

    def command() -> _SourcesWatcher | None:
        rebuild = resolve_command(steps.rebuild, "compile", project_dir)
        if rebuild is None:
            return None
        log.info(f'Watching {PLUGIN_NAME} project for changes at "{project_dir}".')
        return _SourcesWatcher(sources_dir, rebuild, project=project_dir).start()

    artifacts_root = artifacts_dir.as_posix()
    return Plugin(
        name=PLUGIN_NAME,
        validate=validate,
        contracts=contracts,
        watch=WatchDescriptor(
            paths=[
                *(f"{artifacts_root}/**/{pattern}" for pattern in include),
                *(f"!{artifacts_root}/**/{pattern}" for pattern in exclude),
            ],
            on_add=read_definition,
            on_change=read_definition,
            on_remove=on_remove,
            command=command if steps.rebuild else None,
        ),
    )


__all__ = [
    "DEFAULT_EXCLUDE",
    "DEFAULT_INCLUDE",
    "HardhatCommands",
    "detect_package_manager",
    "hardhat",
    "install_command",
    "is_package_installed",
    "resolve_command",
]
