"""Kubernetes API readiness check"""

import sys

import click
from rich.console import Console

from nodeboot.bootstrap.readiness import PROBE_INTERVAL, ReadinessProber, normalize_health_url
from nodeboot.errors import ReadinessError

console = Console()


@click.command()
@click.argument("target")
@click.option("--attempts", type=click.IntRange(min=1), default=1, show_default=True, help="Number of probes")
@click.option("--interval", type=float, default=PROBE_INTERVAL, show_default=True, help="Seconds between probes")
def probe(target, attempts, interval):
    """Check that the API at TARGET answers /healthz"""
    try:
        url = normalize_health_url(target)
        console.print(f"[bold]Probing {url}...[/bold]")
        ReadinessProber(attempts=attempts, interval=interval).wait_for_api(target)
    except ReadinessError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)

    console.print("[green]✓[/green] API is healthy")
