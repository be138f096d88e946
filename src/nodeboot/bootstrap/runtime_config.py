"""k3s configuration file generation.

``render_runtime_config`` only builds text; writing it out is a separate
step so the rendering can be exercised without root or a real machine.
"""

import logging
from pathlib import Path

from jinja2 import Environment, StrictUndefined, TemplateError

from nodeboot.config.node import NodeConfig
from nodeboot.errors import RenderError
from nodeboot.fileio import write_private_file

log = logging.getLogger(__name__)

API_PORT = 6443
SNAPSHOT_CRON = "0 */6 * * *"
SNAPSHOT_RETENTION = 10

RUNTIME_CONFIG_TEMPLATE = """\
token: {{ node.join_token | tojson }}
node-ip: {{ node.private_ip }}
node-external-ip: {{ node.overlay_ip }}
kubelet-arg:
  - "cloud-provider=external"
  - "container-log-max-files=3"
  - "container-log-max-size=10Mi"
{% if node.is_server %}
tls-san:
{% for san in tls_sans %}
  - {{ san | tojson }}
{% endfor %}
flannel-backend: none
disable-network-policy: true
disable:
  - traefik
  - servicelb
  - cloud-controller
etcd-s3: true
etcd-s3-endpoint: {{ node.etcd_s3_endpoint | tojson }}
etcd-s3-access-key: {{ node.etcd_s3_access_key | tojson }}
etcd-s3-secret-key: {{ node.etcd_s3_secret_key | tojson }}
etcd-s3-bucket: {{ node.etcd_s3_bucket | tojson }}
etcd-snapshot-schedule-cron: "{{ snapshot_cron }}"
etcd-snapshot-retention: {{ snapshot_retention }}
{% if node.is_init %}
cluster-init: true
{% else %}
server: {{ server_url | tojson }}
{% endif %}
{% else %}
server: {{ server_url | tojson }}
{% endif %}
"""

_env = Environment(
    undefined=StrictUndefined,
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
_template = _env.from_string(RUNTIME_CONFIG_TEMPLATE)


def normalize_join_url(url: str) -> str:
    """Make sure the agent's server URL uses https."""
    url = url.strip()
    if url.startswith("https://"):
        return url
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return "https://" + url


def render_runtime_config(cfg: NodeConfig) -> str:
    if not cfg.private_ip or not cfg.overlay_ip:
        raise RenderError("private and Tailscale addresses must be discovered before rendering")

    context = {
        "node": cfg,
        "snapshot_cron": SNAPSHOT_CRON,
        "snapshot_retention": SNAPSHOT_RETENTION,
    }
    if cfg.is_server:
        context["tls_sans"] = [
            san for san in (cfg.hostname, cfg.overlay_ip, cfg.load_balancer_address) if san
        ]
        if not cfg.is_init:
            context["server_url"] = f"https://{cfg.load_balancer_address}:{API_PORT}"
    else:
        if not cfg.cluster_join_url:
            raise RenderError("agent configuration needs a cluster URL")
        context["server_url"] = normalize_join_url(cfg.cluster_join_url)

    try:
        return _template.render(**context)
    except TemplateError as e:
        raise RenderError(f"failed to render k3s config: {e}") from e


def write_runtime_config(cfg: NodeConfig, path: Path) -> None:
    log.info("--- K3s Configuration ---")
    content = render_runtime_config(cfg)
    try:
        write_private_file(path, content)
    except OSError as e:
        raise RenderError(f"failed to write {path}: {e}") from e
    log.info("Wrote %s", path)
