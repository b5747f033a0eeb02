# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer application and command classes with alphabetised ``--help`` options."""

from __future__ import annotations

from typing import Any

import click
import typer
from typer.core import TyperCommand, TyperGroup


def option_sort_key(param: click.Parameter) -> str:
    """Return the name ``param`` is listed under: its first long flag, lower-cased."""

    flags = [*getattr(param, "opts", ()), *getattr(param, "secondary_opts", ())]
    label = next((flag for flag in flags if flag.startswith("--")), None)
    if label is None:
        label = flags[0] if flags else param.name or ""
    return label.lstrip("-").lower()


class OrderedHelpCommand(TyperCommand):
    """Command whose help lists arguments in declaration order and options by name."""

    def format_options(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        arguments: list[tuple[str, str]] = []
        options: list[tuple[str, tuple[str, str]]] = []
        for param in self.get_params(ctx):
            record = param.get_help_record(ctx)
            if record is None:
                continue
            if isinstance(param, click.Argument):
                arguments.append(record)
            else:
                options.append((option_sort_key(param), record))
        options.sort(key=lambda entry: entry[0])
        for heading, rows in (("Arguments", arguments), ("Options", [record for _, record in options])):
            if rows:
                with formatter.section(heading):
                    formatter.write_dl(rows)


class OrderedHelpGroup(TyperGroup):
    """Group building :class:`OrderedHelpCommand` subcommands."""

    command_class = OrderedHelpCommand


def create_typer(**kwargs: Any) -> typer.Typer:
    """Return a :class:`typer.Typer` whose root group is :class:`OrderedHelpGroup`."""

    kwargs.setdefault("cls", OrderedHelpGroup)
    return typer.Typer(**kwargs)


__all__ = ["OrderedHelpCommand", "OrderedHelpGroup", "create_typer", "option_sort_key"]
