# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Watch-driven incremental regeneration for a single output target.

A :class:`WatchCoordinator` owns one file watcher per plugin watch descriptor.
Filesystem events are translated into contract-map mutations; every mutation
(re)starts a single debounce timer, and when the timer fires the whole
artifact is regenerated from the current map. At most one regeneration runs
at a time: mutations that arrive while one is in flight are applied to the
map immediately and open a fresh debounce window once it completes.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Final, Protocol

from watchfiles import Change, DefaultFilter, awatch

from .errors import GenerateError, PluginExecutionError
from .globbing import glob_to_regex, has_glob, static_prefix
from .logging import ConsoleLogger
from .plugins.base import CommandHandle, WatchDescriptor, coerce_definition, resolve
from .resolver import resolve_contract
from .target import TargetRuntime

LOGGER = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS: Final[float] = 0.1


class WatchState(str, Enum):
    """Lifecycle states of a :class:`WatchCoordinator`."""

    IDLE = "idle"
    WATCHING = "watching"
    MUTATING = "mutating"
    DEBOUNCE_PENDING = "debounce_pending"
    REGENERATING = "regenerating"
    SHUTTING_DOWN = "shutting_down"


class EventKind(str, Enum):
    """Filesystem event kinds the coordinator reacts to."""

    ADDED = "add"
    CHANGED = "change"
    REMOVED = "unlink"


@dataclass(frozen=True, slots=True)
class FileEvent:
    """Single filesystem event observed by a watcher."""

    kind: EventKind
    path: str


@dataclass(frozen=True, slots=True)
class WatchTargets:
    """Directories to watch plus the include/exclude globs events must satisfy.

    Plain entries are watched as-is. Glob entries add their static prefix as
    a watched directory and restrict events to matching paths. Entries
    starting with ``!`` exclude matching paths.
    """

    roots: tuple[Path, ...]
    includes: tuple[re.Pattern[str], ...] = ()
    excludes: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def compile(cls, paths: Sequence[str], *, base: Path) -> WatchTargets:
        """Build targets from descriptor ``paths`` resolved against ``base``."""

        roots: list[Path] = []
        includes: list[re.Pattern[str]] = []
        excludes: list[re.Pattern[str]] = []
        for raw in paths:
            negated = raw.startswith("!")
            pattern = raw[1:] if negated else raw
            absolute = Path(pattern) if Path(pattern).is_absolute() else base / pattern
            if negated:
                excludes.append(glob_to_regex(absolute.as_posix()))
            elif has_glob(pattern):
                includes.append(glob_to_regex(absolute.as_posix()))
                roots.append(static_prefix(absolute.as_posix()))
            else:
                roots.append(absolute)
        return cls(roots=tuple(dict.fromkeys(roots)), includes=tuple(includes), excludes=tuple(excludes))

    def matches(self, path: str) -> bool:
        """Return ``True`` when ``path`` passes the include and exclude globs."""

        posix = Path(path).as_posix()
        if self.includes and not any(pattern.match(posix) for pattern in self.includes):
            return False
        return not any(pattern.match(posix) for pattern in self.excludes)


class FileWatcher(Protocol):
    """Source of filesystem events for one set of watch targets."""

    def events(self) -> AsyncIterator[FileEvent]:
        """Yield events in the order they were observed."""

        raise NotImplementedError

    async def close(self) -> None:
        """Stop watching; the :meth:`events` iterator then finishes."""

        raise NotImplementedError


WatcherFactory = Callable[[WatchTargets], FileWatcher]

_CHANGE_KINDS: Final[dict[Change, EventKind]] = {
    Change.added: EventKind.ADDED,
    Change.modified: EventKind.CHANGED,
    Change.deleted: EventKind.REMOVED,
}


async def _next_event(events: AsyncIterator[FileEvent]) -> FileEvent:
    return await anext(events)


class WatchfilesWatcher:
    """:class:`FileWatcher` backed by :func:`watchfiles.awatch`."""

    def __init__(self, targets: WatchTargets, *, step_ms: int = 50) -> None:
        self._targets = targets
        self._stop = asyncio.Event()
        self._step_ms = step_ms

    async def events(self) -> AsyncIterator[FileEvent]:
        roots = [root for root in self._targets.roots if root.exists()]
        missing = [root for root in self._targets.roots if not root.exists()]
        if missing:
            LOGGER.debug("skipping missing watch roots: %s", ", ".join(str(path) for path in missing))
        if not roots:
            return
        async for changes in awatch(
            *roots,
            watch_filter=DefaultFilter(),
            stop_event=self._stop,
            debounce=self._step_ms,
            step=self._step_ms,
            ignore_permission_denied=True,
        ):
            # watchfiles batches are unordered sets
            for change, path in sorted(changes, key=lambda item: (item[1], item[0].value)):
                kind = _CHANGE_KINDS.get(change)
                if kind is not None:
                    yield FileEvent(kind=kind, path=path)

    async def close(self) -> None:
        self._stop.set()


def watchfiles_factory(targets: WatchTargets) -> FileWatcher:
    """Default :data:`WatcherFactory` creating :class:`WatchfilesWatcher` instances."""

    return WatchfilesWatcher(targets)


@dataclass(slots=True)
class _ActiveWatch:
    plugin_name: str
    descriptor: WatchDescriptor
    targets: WatchTargets
    watcher: FileWatcher
    task: asyncio.Task[None] | None = None
    closed: bool = False


@dataclass(slots=True)
class _DebounceSlot:
    """Single pending-timer slot with cancel-and-restart semantics."""

    handle: asyncio.TimerHandle | None = None

    def restart(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self.handle = asyncio.get_running_loop().call_later(delay, callback)

    def cancel(self) -> None:
        handle, self.handle = self.handle, None
        if handle is not None:
            handle.cancel()

    @property
    def pending(self) -> bool:
        return self.handle is not None


@dataclass(slots=True)
class WatchCoordinator:
    """Keep one output target's artifact in sync with the filesystem.

    Attributes:
        target: Prepared output target whose contract map is mutated.
        delay: Debounce window in seconds.
        watcher_factory: Creates a :class:`FileWatcher` per descriptor.
        logger: Logger for progress and reported failures.
        regenerations: Number of completed regeneration passes.
    """

    target: TargetRuntime
    delay: float = DEFAULT_DEBOUNCE_SECONDS
    watcher_factory: WatcherFactory = watchfiles_factory
    logger: ConsoleLogger | None = None
    regenerations: int = 0
    _state: WatchState = field(default=WatchState.IDLE, init=False)
    _watches: list[_ActiveWatch] = field(default_factory=list, init=False)
    _handles: list[CommandHandle] = field(default_factory=list, init=False)
    _timer: _DebounceSlot = field(default_factory=_DebounceSlot, init=False)
    _inflight: asyncio.Task[None] | None = field(default=None, init=False)
    _rerun: bool = field(default=False, init=False)
    _idle: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _closed: asyncio.Event = field(default_factory=asyncio.Event, init=False)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = self.target.logger
        self._idle.set()

    @property
    def state(self) -> WatchState:
        """Return the current lifecycle state."""

        return self._state

    @property
    def watch_count(self) -> int:
        """Return the number of watchers created by :meth:`start`."""

        return len(self._watches)

    async def start(self) -> None:
        """Create one watcher per plugin watch descriptor and begin consuming events.

        Raises:
            RuntimeError: If the coordinator was already started.
            PluginExecutionError: If a ``paths`` resolver raises.
        """

        if self._state is not WatchState.IDLE:
            raise RuntimeError(f"watch coordinator for {self.target.config.out!r} already started")
        for plugin in self.target.config.plugins:
            descriptor = plugin.watch
            if descriptor is None:
                continue
            try:
                paths = await resolve(descriptor.paths()) if callable(descriptor.paths) else descriptor.paths
            except Exception as exc:
                raise PluginExecutionError(plugin.name, exc) from exc
            targets = WatchTargets.compile(list(paths), base=self.target.base_dir)
            missing = [root for root in targets.roots if not root.exists()]
            if missing:
                listed = ", ".join(f'"{root}"' for root in missing)
                self.logger.warn(f"Plugin \"{plugin.name}\" watches paths that do not exist: {listed}")
            watch = _ActiveWatch(
                plugin_name=plugin.name,
                descriptor=descriptor,
                targets=targets,
                watcher=self.watcher_factory(targets),
            )
            self._watches.append(watch)
            LOGGER.debug("watching %s for plugin %s", [str(root) for root in targets.roots], plugin.name)
        self._state = WatchState.WATCHING
        for watch in self._watches:
            watch.task = asyncio.create_task(self._consume(watch), name=f"watch:{watch.plugin_name}")

    async def _consume(self, watch: _ActiveWatch) -> None:
        events = watch.watcher.events()
        # step the watcher to its first suspension so it is subscribed before the command starts
        pending = asyncio.ensure_future(_next_event(events))
        try:
            await asyncio.sleep(0)
            if watch.descriptor.command is not None:
                await self._start_command(watch)
            while True:
                try:
                    event = await pending
                except StopAsyncIteration:
                    return
                if watch.targets.matches(event.path):
                    await self.handle_event(watch.plugin_name, watch.descriptor, event)
                pending = asyncio.ensure_future(_next_event(events))
        finally:
            pending.cancel()

    async def _start_command(self, watch: _ActiveWatch) -> None:
        command = watch.descriptor.command
        if command is None:
            return
        try:
            handle = await resolve(command())
        except Exception as exc:
            self._report(PluginExecutionError(watch.plugin_name, exc))
            return
        if handle is None:
            return
        if self._state is WatchState.SHUTTING_DOWN:
            await resolve(handle.close())
            return
        self._handles.append(handle)

    async def handle_event(self, plugin_name: str, descriptor: WatchDescriptor, event: FileEvent) -> bool:
        """Apply ``event`` to the contract map and schedule a regeneration.

        Callbacks that return ``None`` and removals of unknown names are
        ignored. Failures are reported and leave the coordinator watching.

        Args:
            plugin_name: Name of the plugin owning ``descriptor``.
            descriptor: Watch descriptor whose watcher observed the event.
            event: Filesystem event to apply.

        Returns:
            bool: ``True`` when the contract map changed.
        """

        if self._state in (WatchState.IDLE, WatchState.SHUTTING_DOWN):
            return False
        try:
            mutated = await self._apply(plugin_name, descriptor, event)
        except GenerateError as exc:
            self._report(exc)
            return False
        if mutated:
            self._schedule_regeneration()
        return mutated

    async def _apply(self, plugin_name: str, descriptor: WatchDescriptor, event: FileEvent) -> bool:
        contracts = self.target.contracts
        if event.kind is EventKind.REMOVED:
            if descriptor.on_remove is None:
                return False
            try:
                name = await resolve(descriptor.on_remove(event.path))
            except Exception as exc:
                raise PluginExecutionError(plugin_name, exc) from exc
            if not name or name not in contracts:
                return False
            self._state = WatchState.MUTATING
            contracts.remove(name)
            self.logger.info(f'Removed contract "{name}"')
            return True

        callback = descriptor.on_add if event.kind is EventKind.ADDED else descriptor.on_change
        if callback is None:
            return False
        try:
            value = await resolve(callback(event.path))
            definition = None if value is None else coerce_definition(value)
        except Exception as exc:
            raise PluginExecutionError(plugin_name, exc) from exc
        if definition is None:
            return False
        self.logger.info(f'Resolving contract "{definition.name}"')
        contract = resolve_contract(definition, is_typescript=self.target.is_typescript)
        if self._state is WatchState.SHUTTING_DOWN:
            return False
        self._state = WatchState.MUTATING
        contracts.replace(contract)
        return True

    def _schedule_regeneration(self) -> None:
        if self._state is WatchState.SHUTTING_DOWN:
            return
        self._idle.clear()
        if self._inflight is not None:
            self._rerun = True
            self._state = WatchState.REGENERATING
            return
        self._timer.restart(self.delay, self._on_timer)
        self._state = WatchState.DEBOUNCE_PENDING

    def _on_timer(self) -> None:
        self._timer.handle = None
        if self._state is WatchState.SHUTTING_DOWN:
            return
        self._state = WatchState.REGENERATING
        self._inflight = asyncio.get_running_loop().create_task(self._regenerate(), name="regenerate")

    async def _regenerate(self) -> None:
        try:
            await self.target.regenerate()
        except GenerateError as exc:
            self._report(exc)
        else:
            self.regenerations += 1
            self.logger.ok(f'Saved to "{self.target.config.out}"')
        finally:
            self._inflight = None
            if self._state is not WatchState.SHUTTING_DOWN:
                self._state = WatchState.WATCHING
                if self._rerun:
                    self._rerun = False
                    self._schedule_regeneration()
                else:
                    self._idle.set()

    def _report(self, error: GenerateError) -> None:
        LOGGER.debug("watch error for %s", self.target.config.out, exc_info=error)
        self.logger.fail(str(error))

    async def wait_idle(self) -> None:
        """Wait until no debounce timer is pending and no regeneration is running."""

        await self._idle.wait()

    async def shutdown(self) -> None:
        """Stop watching and release every resource exactly once.

        The pending debounce timer is cancelled, every watcher is closed, any
        command handles are closed, and an in-flight regeneration is awaited
        rather than interrupted. Calling this again waits for the first call.
        """

        if self._state is WatchState.SHUTTING_DOWN:
            await self._closed.wait()
            return
        self._state = WatchState.SHUTTING_DOWN
        self._timer.cancel()
        self._rerun = False

        for watch in self._watches:
            if watch.closed:
                continue
            watch.closed = True
            await watch.watcher.close()
        tasks = [watch.task for watch in self._watches if watch.task is not None]
        for task in tasks:
            task.cancel()
        for outcome in await asyncio.gather(*tasks, return_exceptions=True):
            if isinstance(outcome, Exception):
                LOGGER.warning("watcher task ended with %r", outcome)

        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                await resolve(handle.close())
            except Exception as exc:
                self.logger.warn(f"Failed to stop watch command: {exc}")

        if self._inflight is not None:
            await self._inflight
        self._idle.set()
        self._closed.set()


__all__ = [
    "DEFAULT_DEBOUNCE_SECONDS",
    "EventKind",
    "FileEvent",
    "FileWatcher",
    "WatchCoordinator",
    "WatchState",
    "WatchTargets",
    "WatcherFactory",
    "WatchfilesWatcher",
    "watchfiles_factory",
]
