"""Offline rendering of the k3s config and manifests"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from nodeboot.bootstrap.manifests import load_embedded_templates, write_manifests
from nodeboot.bootstrap.runtime_config import write_runtime_config
from nodeboot.bootstrap.versions import validate_versions
from nodeboot.cli.options import node_options, pop_overrides
from nodeboot.config.manager import apply_overrides
from nodeboot.config.node import NodeConfig
from nodeboot.errors import BootstrapError

console = Console()


@click.command()
@node_options
@click.option("--private-ip", required=True, help="Private address to render with")
@click.option("--overlay-ip", required=True, help="Tailscale address to render with")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory for config.yaml and manifests/",
)
@click.pass_context
def render(ctx, private_ip, overlay_ip, output_dir, **params):
    """Render what a bootstrap would write, without touching the machine"""
    settings = apply_overrides(ctx.obj["config"], pop_overrides(params))
    out = Path(output_dir)

    try:
        cfg = NodeConfig.from_settings(settings)
        validate_versions(cfg.versions)
        cfg.private_ip = private_ip
        cfg.overlay_ip = overlay_ip

        out.mkdir(parents=True, exist_ok=True)
        written = [out / "config.yaml"]
        write_runtime_config(cfg, written[0])

        if cfg.is_server:
            manifest_dir = out / "manifests"
            manifest_dir.mkdir(exist_ok=True)
            written += write_manifests(cfg, load_embedded_templates(), manifest_dir)
    except BootstrapError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title=f"Rendered {cfg.role.value} files", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Bytes", justify="right")
    for path in written:
        table.add_row(str(path), str(path.stat().st_size))
    console.print(table)
