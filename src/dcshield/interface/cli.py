"""
CLI Orchestrator - main entry point.

One mode per invocation. Global options come before the mode:

    dcshield [--config F] [--host H] [--log-file F] [--verbose] <mode>

Exit codes: 0 the mode ran, 1 aborted (prerequisites, collection or
configuration), 130 interrupted by the operator.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from dcshield import __version__
from dcshield.application.remediation import AlwaysConfirm
from dcshield.application.run_context import build_run_context
from dcshield.application.shield_service import ShieldService
from dcshield.domain.errors import DCShieldError
from dcshield.domain.models import RunMode
from dcshield.infrastructure.config_loader import ConfigLoader
from dcshield.infrastructure.logging_config import setup_logging
from dcshield.interface.cli_help import print_main_help
from dcshield.interface.console import ConsoleConfirmer, ConsoleReporter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_INTERRUPTED = 130

console = Console()

app = typer.Typer(
    name="dcshield",
    help="🛡️ Domain controller and privileged account hardening",
    add_completion=False,
    rich_markup_mode="rich",
    invoke_without_command=True,
)


@dataclass
class GlobalOptions:
    """Options shared by every mode."""

    config: Optional[Path] = None
    host: Optional[str] = None
    log_file: Optional[Path] = None
    verbose: bool = False


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="JSON configuration file (default: config/dcshield.json)"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Domain controller to run on (default: localhost)"
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Run log file (default: output/dcshield.log)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug output on the console"),
):
    """
    🛡️ DCShield - evaluate and harden privileged accounts and domain controllers.

    Run without a mode to see usage.
    """
    ctx.obj = GlobalOptions(config=config, host=host, log_file=log_file, verbose=verbose)
    if ctx.invoked_subcommand is None:
        print_main_help(console)
        raise typer.Exit(EXIT_OK)


def _execute(
    options: GlobalOptions,
    mode: RunMode,
    json_path: Optional[Path] = None,
    save_report: bool = False,
    unattended: bool = False,
) -> int:
    """Load config, gate on prerequisites and run one mode."""
    reporter = ConsoleReporter(console)
    confirmer = AlwaysConfirm() if unattended else ConsoleConfirmer(console)

    try:
        config = ConfigLoader(options.config).load({
            "target_host": options.host,
            "log_file": options.log_file,
        })
        setup_logging(logging.DEBUG if options.verbose else logging.WARNING, config.log_file)
        logger.info("DCShield %s starting in %s mode", __version__, mode.value)

        if save_report and json_path is None:
            stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
            json_path = config.report_dir / f"dcshield-findings-{stamp}.json"

        context = build_run_context(config, reporter, confirmer)
        try:
            ShieldService(context).run(mode, json_path)
        finally:
            context.close()

    except DCShieldError as e:
        logger.error("Run aborted: %s", e)
        console.print(f"[bold red]❌ Aborted ({type(e).__name__}):[/bold red] {escape(str(e))}")
        return EXIT_ABORTED
    except KeyboardInterrupt:
        logger.warning("Run interrupted by operator")
        console.print("\n[yellow]Interrupted by operator.[/yellow]")
        return EXIT_INTERRUPTED

    logger.info("DCShield %s mode finished", mode.value)
    return EXIT_OK


@app.command("evaluate")
def evaluate_command(
    ctx: typer.Context,
    json_path: Optional[Path] = typer.Option(
        None, "--json", help="Also write the findings to this JSON file"
    ),
    save_report: bool = typer.Option(
        False, "--save-report", help="Write the findings JSON into the configured report directory"
    ),
):
    """🔍 Grade the domain against the check set (read-only)."""
    raise typer.Exit(_execute(ctx.obj, RunMode.EVALUATE, json_path=json_path, save_report=save_report))


@app.command("remediate")
def remediate_command(ctx: typer.Context):
    """🔧 Ask before each hardening action."""
    raise typer.Exit(_execute(ctx.obj, RunMode.REMEDIATE))


@app.command("deathblossom")
def deathblossom_command(
    ctx: typer.Context,
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Skip the single confirmation (unattended runs)"
    ),
):
    """💥 One confirmation, then apply every hardening action."""
    raise typer.Exit(_execute(ctx.obj, RunMode.FORCED, unattended=yes))


@app.command("undo")
def undo_command(ctx: typer.Context):
    """🔄 Delete the policy objects DCShield created."""
    raise typer.Exit(_execute(ctx.obj, RunMode.UNDO))


@app.command("help")
def help_command():
    """📋 Show usage."""
    print_main_help(console)


def main() -> None:
    """Console-script entry point."""
    app(prog_name="dcshield")


if __name__ == "__main__":
    main()
