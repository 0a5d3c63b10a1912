"""
Console Reporter and Confirmer - rich renderers for the CLI.

Every finding and action outcome goes through ConsoleReporter, which prints
it and writes it to the run log. ConsoleConfirmer asks the operator's yes/no
questions during interactive remediation.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.text import Text

from dcshield.domain.models import Severity
from dcshield.infrastructure.logging_config import REPORT_LOGGER

report_log = logging.getLogger(REPORT_LOGGER)


class Icons:
    """UTF-8 Icons."""

    CHECK = "✅"
    CROSS = "❌"
    WARN = "⚠️"
    INFO = "ℹ️"


SEVERITY_STYLES = {
    Severity.SUCCESS: (Icons.CHECK, "green", logging.INFO),
    Severity.WARNING: (Icons.WARN, "yellow", logging.WARNING),
    Severity.ERROR: (Icons.CROSS, "bold red", logging.ERROR),
}


class ConsoleReporter:
    """Reporter that prints with rich and logs every line."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def record(self, severity: Severity, message: str) -> None:
        icon, style, level = SEVERITY_STYLES[severity]
        self.console.print(Text.assemble(f"{icon} ", (f"{severity.value:<8}", style), " ", message))
        report_log.log(level, "%s: %s", severity.value, message)

    def info(self, message: str) -> None:
        self.console.print(Text.assemble(f"{Icons.INFO}  ", (message, "cyan")))
        report_log.info(message)


class ConsoleConfirmer:
    """Shows the help text in a panel and asks yes/no. Default is no."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def ask(self, title: str, help_text: str) -> bool:
        self.console.print()
        self.console.print(Panel(Text(help_text), title=f"[bold]{title}[/bold]", border_style="cyan"))
        answer = Confirm.ask(f"[bold yellow]{title}[/bold yellow]", console=self.console, default=False)
        report_log.info("Operator answered %s to: %s", "yes" if answer else "no", title)
        return answer
