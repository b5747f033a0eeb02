# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Plugin capability records and built-in plugins."""

from __future__ import annotations

from .base import CommandHandle, Plugin, RunContext, WatchDescriptor
from .hardhat import HardhatCommands, hardhat

__all__ = [
    "CommandHandle",
    "HardhatCommands",
    "Plugin",
    "RunContext",
    "WatchDescriptor",
    "hardhat",
]
