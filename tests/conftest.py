# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from contractgen.logging import ConsoleLogger, build_logger
from contractgen.watch import FileEvent, WatchTargets

TOKEN_ADDRESS_LOWER = "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed"
TOKEN_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


class FakeWatcher:
    """In-memory watcher fed by tests through :meth:`emit`."""

    def __init__(self, targets: WatchTargets) -> None:
        self.targets = targets
        self.queue: asyncio.Queue[FileEvent | None] = asyncio.Queue()
        self.close_calls = 0
        self.subscribed = False

    async def events(self) -> AsyncIterator[FileEvent]:
        self.subscribed = True
        while True:
            event = await self.queue.get()
            try:
                if event is None:
                    return
                yield event
            finally:
                self.queue.task_done()

    def emit(self, event: FileEvent) -> None:
        self.queue.put_nowait(event)

    async def drain(self) -> None:
        await self.queue.join()

    async def close(self) -> None:
        self.close_calls += 1
        self.queue.put_nowait(None)


@dataclass
class FakeWatcherFactory:
    """Watcher factory recording every watcher it creates."""

    watchers: list[FakeWatcher] = field(default_factory=list)

    def __call__(self, targets: WatchTargets) -> FakeWatcher:
        watcher = FakeWatcher(targets)
        self.watchers.append(watcher)
        return watcher


@pytest.fixture
def logger() -> ConsoleLogger:
    """Return a logger without emoji or colour so output is easy to assert on."""

    return build_logger(emoji=False, no_color=True)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: datetime(2024, 3, 5, 14, 7, 9)


@pytest.fixture
def watcher_factory() -> FakeWatcherFactory:
    return FakeWatcherFactory()


@pytest.fixture
def transfer_abi() -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "name": "transfer",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "to", "type": "address"},
                {"name": "amount", "type": "uint256"},
            ],
            "outputs": [{"name": "", "type": "bool"}],
        },
        {
            "type": "event",
            "name": "Transfer",
            "inputs": [
                {"name": "from", "type": "address", "indexed": True},
                {"name": "to", "type": "address", "indexed": True},
                {"name": "value", "type": "uint256", "indexed": False},
            ],
        },
    ]


@pytest.fixture
def token_address() -> str:
    return TOKEN_ADDRESS


@pytest.fixture
def token_address_lower() -> str:
    return TOKEN_ADDRESS_LOWER
