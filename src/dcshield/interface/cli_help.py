"""
Rich-formatted CLI help display.

Shown for ``help`` and when no mode is given. Never touches the domain.
"""

import sys
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dcshield.domain.constants import DC_POLICY_REF, PASSWORD_POLICY_REF


def _get_exe_name() -> str:
    """Get executable name - handles PyInstaller frozen mode."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).name
    return "dcshield"


EXE_NAME = _get_exe_name()


def print_main_help(console: Optional[Console] = None) -> None:
    """Print the main CLI help with rich formatting."""
    console = console or Console()

    banner = Text()
    banner.append("🛡️  DCShield", style="bold white")
    banner.append(" - Domain Controller & Privileged Account Hardening", style="bold cyan")
    console.print(Panel(banner, border_style="cyan", box=box.DOUBLE))

    console.print("[bold yellow]USAGE:[/bold yellow]")
    console.print(
        f"  {EXE_NAME} [dim][options][/dim] [bright_cyan]<mode>[/bright_cyan]\n"
    )

    modes = Table(show_header=True, header_style="bold magenta", box=box.SIMPLE, padding=(0, 2))
    modes.add_column("Mode", style="bright_cyan", width=14)
    modes.add_column("Description", style="white")
    modes.add_column("Writes", style="dim")

    modes.add_row("evaluate", "Grade the domain against the check set", "no")
    modes.add_row("remediate", "Ask before each hardening action", "yes, per answer")
    modes.add_row("deathblossom", "One confirmation, then every action", "yes")
    modes.add_row("undo", "Delete the policy objects DCShield created", "yes")
    modes.add_row("help", "Show this help", "no")

    console.print(Panel(modes, title="[bold green]📋 MODES[/bold green]", border_style="green"))

    options = Table(show_header=True, header_style="bold", box=box.ROUNDED)
    options.add_column("Option", style="bright_cyan", width=20)
    options.add_column("Description", style="white")
    options.add_column("Default", style="dim", width=22)
    options.add_row("--config, -c <file>", "JSON configuration file", "config/dcshield.json")
    options.add_row("--host <name>", "Domain controller to run on", "localhost")
    options.add_row("--log-file <file>", "Run log", "output/dcshield.log")
    options.add_row("--verbose, -v", "Debug output on the console", "-")
    options.add_row("evaluate --json <file>", "Also write findings as JSON", "-")
    options.add_row("evaluate --save-report", "Findings JSON in the report directory", "output/")
    options.add_row("deathblossom --yes", "Skip the single confirmation", "-")
    console.print(options)

    console.print("\n[bold yellow]MANAGED OBJECTS:[/bold yellow]")
    console.print(f"  [dim]Password policy:[/dim] {PASSWORD_POLICY_REF.name}")
    console.print(f"  [dim]Group policy:[/dim]    {DC_POLICY_REF.name}")
    console.print(
        "  [dim]Logon restrictions set on privileged accounts are not reverted by undo;\n"
        "  previous values are written to the run log.[/dim]"
    )

    console.print("\n[bold yellow]QUICK START:[/bold yellow]")
    examples = [
        ("Evaluate this domain controller:", f"{EXE_NAME} evaluate"),
        ("Evaluate and export findings:", f"{EXE_NAME} evaluate --json output/findings.json"),
        ("Remediate a remote DC:", f"{EXE_NAME} --host dc01.corp.example remediate"),
        ("Remove DCShield objects:", f"{EXE_NAME} undo"),
    ]
    for label, cmd in examples:
        console.print(f"  [dim]{label}[/dim]")
        console.print(f"    [bright_green]{cmd}[/bright_green]")
    console.print()
