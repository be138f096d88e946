#!/usr/bin/env python3
"""nodeboot CLI - Main entry point"""

from pathlib import Path

import click
from rich.console import Console

from nodeboot.config.manager import ConfigManager
from nodeboot.errors import ConfigurationError
from nodeboot.log import init_logging

console = Console()


@click.group()
@click.option("--config", type=click.Path(dir_okay=False), envvar="NODEBOOT_CONFIG", help="Config file path")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write a full debug log here")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config, log_file, verbose):
    """nodeboot - turn a fresh VM into a k3s cluster member"""
    ctx.ensure_object(dict)

    init_logging(verbose=verbose, log_file=Path(log_file) if log_file else None, console=console)

    # Load configuration
    config_manager = ConfigManager(Path(config) if config else None)
    try:
        cfg = config_manager.load()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.Abort()

    ctx.obj["config"] = cfg
    ctx.obj["verbose"] = verbose


@cli.command()
def version():
    """Show version information"""
    from nodeboot import __version__

    console.print(f"nodeboot version {__version__}")


# Import subcommands
from nodeboot.cli import probe, render, run

cli.add_command(run.run)
cli.add_command(render.render)
cli.add_command(probe.probe)


if __name__ == "__main__":
    cli()
