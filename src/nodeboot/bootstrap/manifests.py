"""Baseline workload manifests dropped into the k3s auto-apply directory.

k3s applies the directory in listing order, so templates are processed
sorted by filename and the output keeps the same names. The whole set is
rendered in memory before the first file is written.
"""

import logging
from importlib import resources
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from jinja2 import Environment, StrictUndefined, TemplateError

from nodeboot.config.node import NodeConfig
from nodeboot.errors import ManifestError
from nodeboot.fileio import write_private_file

log = logging.getLogger(__name__)

TEMPLATE_PACKAGE = "nodeboot.manifests"
MANIFEST_SUFFIX = ".yaml"

TemplateSet = Mapping[str, str]


def load_embedded_templates() -> Dict[str, str]:
    """Read the manifest templates shipped inside the package"""
    templates = {}
    for entry in resources.files(TEMPLATE_PACKAGE).iterdir():
        if entry.name.endswith(MANIFEST_SUFFIX):
            templates[entry.name] = entry.read_text(encoding="utf-8")
    return templates


def _environment() -> Environment:
    return Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


def render_manifests(cfg: NodeConfig, templates: TemplateSet) -> List[Tuple[str, str]]:
    """Render every template against the node config, sorted by filename."""
    env = _environment()
    rendered = []

    for name in sorted(templates):
        if not name.endswith(MANIFEST_SUFFIX):
            continue
        log.info("Processing manifest: %s", name)
        try:
            template = env.from_string(templates[name])
            rendered.append((name, template.render(node=cfg)))
        except TemplateError as e:
            raise ManifestError(f"failed to render manifest {name}: {e}") from e

    return rendered


def write_manifests(cfg: NodeConfig, templates: TemplateSet, manifest_dir: Path) -> List[Path]:
    log.info("--- Manifest Injection ---")
    rendered = render_manifests(cfg, templates)

    written = []
    for name, content in rendered:
        path = manifest_dir / name
        try:
            write_private_file(path, content)
        except OSError as e:
            raise ManifestError(f"failed to write manifest {path}: {e}") from e
        written.append(path)

    log.info("Wrote %d manifests to %s", len(written), manifest_dir)
    return written
