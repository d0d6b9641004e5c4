"""
Operator prompts.

Interactive selection returns an explicit ``Choice``: either ``Select`` with
the picked value or ``Cancel``. Engines talk to the operator only through a
``Prompter`` so that tests can script the answers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

import click
from rich.console import Console

T = TypeVar("T")


@dataclass(frozen=True)
class Select(Generic[T]):
    """The operator picked ``value``."""

    value: T


@dataclass(frozen=True)
class Cancel:
    """The operator backed out without picking anything."""


Choice = Union[Select[T], Cancel]


class Prompter(ABC):
    """Operator interaction used by the catalog and the engines."""

    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def ask(self, message: str, default: str = "") -> str:
        """Ask for a line of free text."""

    @abstractmethod
    def choose(self, title: str, options: Sequence[tuple[str, T]]) -> Choice[T]:
        """Pick one option from a numbered menu that ends with Cancel."""

    @abstractmethod
    def checklist(self, title: str, options: Sequence[tuple[str, T]]) -> Choice[list[T]]:
        """Pick any number of options; all are preselected."""

    @abstractmethod
    def notify(self, message: str, level: str = "info") -> None:
        """Show a notice (``info``, ``note``, ``warning``, ``error``, ``success``)."""


NOTICE_STYLES = {
    "info": "",
    "note": "dim",
    "warning": "yellow",
    "error": "red",
    "success": "green",
}


class ConsolePrompter(Prompter):
    """Prompter rendering on a rich console and reading replies via click."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def confirm(self, message: str, default: bool = False) -> bool:
        return click.confirm(message, default=default, err=True)

    def ask(self, message: str, default: str = "") -> str:
        return click.prompt(message, default=default, show_default=False, err=True)

    def choose(self, title: str, options: Sequence[tuple[str, T]]) -> Choice[T]:
        cancel_index = len(options) + 1
        self.console.print(title)
        for index, (label, _) in enumerate(options, 1):
            self.console.print(f"{index}) {label}", markup=False, highlight=False)
        self.console.print(f"{cancel_index}) Cancel")

        while True:
            reply = click.prompt("#?", default="", show_default=False, err=True).strip()
            if reply.isdigit() and 1 <= int(reply) <= cancel_index:
                index = int(reply)
                if index == cancel_index:
                    return Cancel()
                return Select(options[index - 1][1])
            self.notify(
                f"Invalid selection. Please enter a number between 1 and {cancel_index}.",
                "warning",
            )

    def checklist(self, title: str, options: Sequence[tuple[str, T]]) -> Choice[list[T]]:
        self.console.print(title)
        for index, (label, _) in enumerate(options, 1):
            self.console.print(f"[x] {index}) {label}", markup=False, highlight=False)

        reply = click.prompt(
            "Numbers to include (blank for all, 'c' to cancel)",
            default="",
            show_default=False,
            err=True,
        ).strip()
        if reply.lower() in ("c", "cancel", "q"):
            return Cancel()
        if not reply:
            return Select([value for _, value in options])

        selected: list[T] = []
        for tag in reply.replace(",", " ").split():
            if not tag.isdigit():
                self.notify(f"Warning: Non-numeric tag '{tag}' ignored", "warning")
                continue
            index = int(tag)
            if not 1 <= index <= len(options):
                self.notify(f"Warning: Invalid tag '{tag}' ignored", "warning")
                continue
            value = options[index - 1][1]
            if value not in selected:
                selected.append(value)
        return Select(selected)

    def notify(self, message: str, level: str = "info") -> None:
        style = NOTICE_STYLES.get(level, "")
        self.console.print(message, style=style or None, markup=False, highlight=False)
