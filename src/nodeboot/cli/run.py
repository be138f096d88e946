"""The first-boot bootstrap command"""

import sys

import click
from rich.console import Console
from rich.table import Table

from nodeboot.bootstrap.orchestrator import BootstrapReport, Outcome, Toolkit, run_bootstrap
from nodeboot.cli.options import node_options, pop_overrides
from nodeboot.config.manager import apply_overrides
from nodeboot.config.node import NodeConfig, RuntimePaths, parse_bool
from nodeboot.errors import ConfigurationError

console = Console()

OUTCOME_STYLES = {
    Outcome.SUCCESS: "[green]✓ success[/green]",
    Outcome.WARNING: "[yellow]⚠ warning[/yellow]",
    Outcome.FATAL: "[red]✗ fatal[/red]",
    Outcome.SKIPPED: "[dim]- skipped[/dim]",
}


@click.command()
@node_options
@click.option("--strict", is_flag=True, help="Treat readiness and taint failures as fatal")
@click.pass_context
def run(ctx, strict, **params):
    """Bootstrap this machine into the cluster"""
    settings = apply_overrides(ctx.obj["config"], pop_overrides(params))

    try:
        cfg = NodeConfig.from_settings(settings)
        strict = strict or parse_bool(settings["bootstrap"].get("strict"), "bootstrap.strict")
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    toolkit = Toolkit(paths=RuntimePaths.from_dict(settings.get("paths", {})))

    report = run_bootstrap(cfg, toolkit, strict=strict)
    print_report(report)

    if not report.ok:
        sys.exit(1)


def print_report(report: BootstrapReport):
    """Print a per-phase summary table"""
    table = Table(title="Bootstrap Summary", show_header=True)
    table.add_column("Phase", style="cyan")
    table.add_column("Result")
    table.add_column("Time", justify="right")
    table.add_column("Detail", style="dim")

    for result in report.results:
        detail = str(result.error).splitlines()[0] if result.error else ""
        duration = f"{result.duration:.1f}s" if result.outcome is not Outcome.SKIPPED else ""
        table.add_row(result.name, OUTCOME_STYLES[result.outcome], duration, detail)

    console.print(table)

    if report.fatal is not None:
        console.print(f"\n[red]✗ Bootstrap failed at: {report.fatal.name}[/red]")
        console.print(str(report.fatal.error))
    elif report.warnings:
        console.print(f"\n[yellow]⚠ Bootstrap finished with {len(report.warnings)} warning(s)[/yellow]")
    else:
        console.print("\n[bold green]✓ Bootstrap complete![/bold green]")
