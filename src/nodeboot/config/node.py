"""Typed node configuration threaded through every bootstrap phase"""

import socket
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from nodeboot.errors import ConfigurationError

# Environments where the control plane also schedules workloads
DEVELOPMENT_ENVIRONMENTS = frozenset({"dev", "development", "local"})

TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
FALSE_STRINGS = frozenset({"0", "false", "no", "off", ""})


def parse_bool(value: Any, name: str) -> bool:
    """Accept a real bool or one of the usual true/false spellings."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ConfigurationError([f"{name} must be true or false, got {value!r}"])


class Role(str, Enum):
    """Cluster role of this node"""

    SERVER = "server"
    AGENT = "agent"


@dataclass
class ComponentVersions:
    """Chart/application versions for the injected baseline workloads"""

    hcloud_ccm: str = ""
    hcloud_csi: str = ""
    cilium: str = ""
    ingress_nginx: str = ""
    cert_manager: str = ""
    nats: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComponentVersions":
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) if v is not None else "" for k, v in data.items() if k in known})

    def missing(self) -> List[str]:
        """Names of versions that are blank"""
        return [f.name for f in fields(self) if not getattr(self, f.name).strip()]


@dataclass
class RuntimePaths:
    """Filesystem locations touched during bootstrap"""

    runtime_config: Path = Path("/etc/rancher/k3s/config.yaml")
    manifest_dir: Path = Path("/var/lib/rancher/k3s/server/manifests")
    kubeconfig: Path = Path("/etc/rancher/k3s/k3s.yaml")
    mesh_join_log: Path = Path("/var/log/tailscale-join.log")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimePaths":
        known = {f.name for f in fields(cls)}
        return cls(**{k: Path(v) for k, v in data.items() if k in known and v})


@dataclass
class NodeConfig:
    """Everything the bootstrap needs to know about this node.

    Built once at startup. Network discovery fills in ``interface`` and
    ``private_ip``, the mesh join fills in ``overlay_ip``; nothing else
    changes afterwards.
    """

    role: Role
    hostname: str
    cloud_env: str = "dev"
    join_token: str = field(default="", repr=False)
    load_balancer_address: str = ""
    cluster_join_url: str = ""
    network_gateway: str = ""
    is_init: bool = False

    mesh_auth_key: str = field(default="", repr=False)
    mesh_tag: str = ""

    # Discovered at runtime
    interface: Optional[str] = None
    private_ip: Optional[str] = None
    overlay_ip: Optional[str] = None

    # Server only
    etcd_s3_bucket: str = ""
    etcd_s3_access_key: str = field(default="", repr=False)
    etcd_s3_secret_key: str = field(default="", repr=False)
    etcd_s3_endpoint: str = "storage.googleapis.com"
    hcloud_token: str = field(default="", repr=False)
    hcloud_network: str = ""
    letsencrypt_email: str = ""

    versions: ComponentVersions = field(default_factory=ComponentVersions)

    @property
    def is_server(self) -> bool:
        return self.role is Role.SERVER

    @property
    def is_development(self) -> bool:
        return self.cloud_env.strip().lower() in DEVELOPMENT_ENVIRONMENTS

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "NodeConfig":
        """Build a NodeConfig from a merged settings mapping"""
        node = settings.get("node") or {}
        mesh = settings.get("mesh") or {}
        server = settings.get("server") or {}

        raw_role = str(node.get("role") or Role.AGENT.value).lower()
        try:
            role = Role(raw_role)
        except ValueError:
            raise ConfigurationError([f"unknown role '{raw_role}' (expected server or agent)"])

        return cls(
            role=role,
            hostname=node.get("hostname") or socket.gethostname(),
            cloud_env=node.get("cloud_env") or "dev",
            join_token=node.get("join_token") or "",
            load_balancer_address=node.get("load_balancer_address") or "",
            cluster_join_url=node.get("cluster_join_url") or "",
            network_gateway=node.get("network_gateway") or "",
            is_init=parse_bool(node.get("is_init"), "node.is_init"),
            mesh_auth_key=mesh.get("auth_key") or "",
            mesh_tag=mesh.get("tag") or "",
            etcd_s3_bucket=server.get("etcd_s3_bucket") or "",
            etcd_s3_access_key=server.get("etcd_s3_access_key") or "",
            etcd_s3_secret_key=server.get("etcd_s3_secret_key") or "",
            etcd_s3_endpoint=server.get("etcd_s3_endpoint") or "storage.googleapis.com",
            hcloud_token=server.get("hcloud_token") or "",
            hcloud_network=server.get("hcloud_network") or "",
            letsencrypt_email=server.get("letsencrypt_email") or "",
            versions=ComponentVersions.from_dict(settings.get("versions") or {}),
        )
