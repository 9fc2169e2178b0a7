# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

ASCII_BANNER = r"""
 ____                        _____ _ _ _
/ ___| _ __   __ _ _ __ ___ |  ___(_) | |_ ___ _ __
\___ \| '_ \ / _` | '_ ` _ \| |_  | | | __/ _ \ '__|
 ___) | |_) | (_| | | | | | |  _| | | | ||  __/ |
|____/| .__/ \__,_|_| |_| |_|_|   |_|_|\__\___|_|
      |_|
"""

HISTORY_COLUMNS = ("timestamp", "source", "tp", "tn", "fp", "fn", "precision", "recall", "f1", "accuracy")


def configure_logging(level: str = "INFO", *, console: Console | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False, show_path=False)],
        force=True,
    )


@dataclass
class MLConsole:
    enabled: bool = True

    def __post_init__(self) -> None:
        self._console = Console(color_system="auto" if self.enabled else None, soft_wrap=True)

    @property
    def console(self) -> Console:
        return self._console

    def banner(self) -> None:
        self._console.print(Panel.fit(ASCII_BANNER.strip("\n"), title="Spam Filter", border_style="cyan"))

    def info(self, text: str) -> None:
        self._console.print(f"[bold cyan]INFO[/bold cyan] {text}")

    def warn(self, text: str) -> None:
        self._console.print(f"[bold yellow]WARN[/bold yellow] {text}")

    def success(self, text: str) -> None:
        self._console.print(f"[bold green]OK[/bold green] {text}")

    def error(self, text: str) -> None:
        self._console.print(f"[bold red]ERROR[/bold red] {text}")

    def metrics_table(self, metrics: Mapping[str, float], *, title: str) -> None:
        table = Table(title=title, show_lines=True)
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right")
        for key in sorted(metrics.keys()):
            value = metrics[key]
            table.add_row(key, str(value) if isinstance(value, int) else f"{float(value):.4f}")
        self._console.print(table)

    def epochs_table(self, history: Sequence[Any], *, title: str = "Validation accuracy") -> None:
        table = Table(title=title)
        table.add_column("Epoch", justify="right")
        table.add_column("Accuracy", justify="right")
        for item in history:
            table.add_row(str(item.epoch), f"{float(item.accuracy):.4f}")
        self._console.print(table)

    def history_table(self, entries: Sequence[Mapping[str, Any]], *, title: str = "Metrics history") -> None:
        table = Table(title=title)
        for column in HISTORY_COLUMNS:
            table.add_column(column, justify="left" if column in ("timestamp", "source") else "right")
        for entry in entries:
            row = []
            for column in HISTORY_COLUMNS:
                value = entry.get(column, "")
                row.append(f"{value:.4f}" if isinstance(value, float) else str(value))
            table.add_row(*row)
        self._console.print(table)

    def decisions_table(self, rows: Sequence[Mapping[str, Any]], *, title: str) -> None:
        table = Table(title=title)
        table.add_column("Email", style="bold")
        table.add_column("Decision")
        table.add_column("Detail", overflow="fold")
        for row in rows:
            decision = str(row.get("decision", ""))
            style = "green" if decision == "forward" else "red"
            table.add_row(str(row.get("email", "")), f"[{style}]{decision}[/{style}]", str(row.get("detail", "")))
        self._console.print(table)
