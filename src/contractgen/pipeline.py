# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Top-level ``generate`` pipeline spanning every configured output target."""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .config import Config, ensure_unique_outputs, find_config, is_using_typescript, load_config
from .errors import GenerateError
from .formatting import Formatter, default_formatter
from .logging import ConsoleLogger
from .target import TargetRuntime, prepare_target
from .watch import (
    DEFAULT_DEBOUNCE_SECONDS,
    EventKind,
    FileWatcher,
    WatchCoordinator,
    WatcherFactory,
    WatchTargets,
    watchfiles_factory,
)


@dataclass(slots=True)
class GenerateOptions:
    """Options shared by every output target in one ``generate`` invocation.

    ``root`` is only where config discovery starts. Relative ``out`` paths,
    plugin watch paths and ``tsconfig.json`` detection use ``cwd``, the
    directory plugins resolve their own relative paths against.
    """

    root: Path = field(default_factory=Path.cwd)
    cwd: Path = field(default_factory=Path.cwd)
    config: Path | None = None
    watch: bool = False
    is_typescript: bool | None = None
    formatter: Formatter | None = None
    debounce: float = DEFAULT_DEBOUNCE_SECONDS
    watcher_factory: WatcherFactory = watchfiles_factory
    clock: Callable[[], datetime] = datetime.now


@dataclass(slots=True)
class TargetFailure:
    """Output target whose initial generation failed."""

    out: str
    error: GenerateError


@dataclass(slots=True)
class GenerateReport:
    """Outcome of generating every output target."""

    targets: list[TargetRuntime] = field(default_factory=list)
    failures: list[TargetFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when every target was generated."""

        return not self.failures


async def generate_target(
    config: Config,
    *,
    base_dir: Path,
    is_typescript: bool,
    logger: ConsoleLogger,
    formatter: Formatter | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> TargetRuntime:
    """Prepare one output target and write its artifact.

    Raises:
        GenerateError: If validation, resolution, plugin execution or persistence fails.
    """

    logger.info(f'Config "{config.out}"')
    runtime = await prepare_target(
        config,
        base_dir=base_dir,
        is_typescript=is_typescript,
        logger=logger,
        formatter=formatter,
        clock=clock,
    )
    logger.info(f'Saving to "{config.out}"')
    await runtime.regenerate()
    logger.ok(f'Saved to "{config.out}"')
    return runtime


async def generate(
    configs: Sequence[Config],
    *,
    options: GenerateOptions,
    logger: ConsoleLogger,
) -> GenerateReport:
    """Generate the artifact of every target.

    Duplicate ``out`` values are rejected before any target starts. Targets
    then run independently: a failing target is recorded in the report while
    the others complete.

    Raises:
        ConfigurationError: If two targets share an ``out`` value.
    """

    ensure_unique_outputs(configs)
    base_dir = options.cwd.resolve()
    is_typescript = is_using_typescript(base_dir) if options.is_typescript is None else options.is_typescript
    formatter = options.formatter or default_formatter(base_dir)
    logger.debug(f"cwd={base_dir} typescript={is_typescript} formatter={type(formatter).__name__}")

    outcomes = await asyncio.gather(
        *(
            generate_target(
                config,
                base_dir=base_dir,
                is_typescript=is_typescript,
                logger=logger,
                formatter=formatter,
                clock=options.clock,
            )
            for config in configs
        ),
        return_exceptions=True,
    )
    report = GenerateReport()
    for config, outcome in zip(configs, outcomes):
        if isinstance(outcome, GenerateError):
            logger.fail(str(outcome))
            report.failures.append(TargetFailure(out=config.out, error=outcome))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            report.targets.append(outcome)
    return report


class WatchSession:
    """Run watch coordinators for every target until shutdown is requested."""

    def __init__(
        self,
        coordinators: Sequence[WatchCoordinator],
        *,
        logger: ConsoleLogger,
        config_path: Path | None = None,
        watcher_factory: WatcherFactory = watchfiles_factory,
    ) -> None:
        self.coordinators = list(coordinators)
        self._logger = logger
        self._config_path = config_path
        self._watcher_factory = watcher_factory
        self._config_watcher: FileWatcher | None = None
        self._config_task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()
        self._shutdown: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start every coordinator and the config-file watcher."""

        for coordinator in self.coordinators:
            await coordinator.start()
        if self._config_path is not None:
            self._config_watcher = self._watcher_factory(WatchTargets(roots=(self._config_path,)))
            self._config_task = asyncio.create_task(self._watch_config(self._config_watcher), name="watch:config")

    async def _watch_config(self, watcher: FileWatcher) -> None:
        async for event in watcher.events():
            if event.kind is EventKind.CHANGED:
                self._logger.info(
                    f"> Found a change in {Path(event.path).name}. Restart process for changes to take effect."
                )

    def request_stop(self) -> None:
        """Ask :meth:`wait` to return; safe to call from a signal handler."""

        self._stop.set()

    async def wait(self) -> None:
        """Block until SIGINT/SIGTERM or :meth:`request_stop`, then shut down."""

        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.request_stop)
            except (NotImplementedError, RuntimeError):
                continue
            installed.append(signum)
        try:
            await self._stop.wait()
        finally:
            for signum in installed:
                loop.remove_signal_handler(signum)
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close every watcher and await in-flight regenerations; idempotent."""

        if self._shutdown is None:
            self._shutdown = asyncio.ensure_future(self._close())
        await self._shutdown

    async def _close(self) -> None:
        self._logger.info("Shutting down watch…")
        if self._config_watcher is not None:
            await self._config_watcher.close()
        if self._config_task is not None:
            self._config_task.cancel()
            await asyncio.gather(self._config_task, return_exceptions=True)
        await asyncio.gather(*(coordinator.shutdown() for coordinator in self.coordinators))


async def run_generate(options: GenerateOptions, *, logger: ConsoleLogger) -> GenerateReport:
    """Discover the config, generate every target and, in watch mode, keep them in sync.

    Raises:
        ConfigurationError: If the config cannot be found or loaded, or targets collide.
    """

    logger.info("Generating code…")
    config_path = find_config(config=options.config, root=options.root)
    logger.debug(f"config={config_path}")
    configs = await load_config(config_path)
    report = await generate(configs, options=options, logger=logger)
    if not options.watch:
        return report

    coordinators: list[WatchCoordinator] = []
    for runtime in report.targets:
        if not any(plugin.watch is not None for plugin in runtime.config.plugins):
            logger.info(f'Used --watch flag, but no plugins are watching "{runtime.config.out}".')
            continue
        coordinators.append(
            WatchCoordinator(
                target=runtime,
                delay=options.debounce,
                watcher_factory=options.watcher_factory,
                logger=logger,
            )
        )
    if not coordinators:
        return report

    session = WatchSession(
        coordinators,
        logger=logger,
        config_path=config_path,
        watcher_factory=options.watcher_factory,
    )
    try:
        await session.start()
    except BaseException:
        await session.shutdown()
        raise
    await session.wait()
    return report


__all__ = [
    "GenerateOptions",
    "GenerateReport",
    "TargetFailure",
    "WatchSession",
    "generate",
    "generate_target",
    "run_generate",
]
