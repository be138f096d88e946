"""Preflight checks that run before anything touches the machine."""

import logging
from typing import List

from nodeboot.config.node import ComponentVersions, NodeConfig
from nodeboot.errors import ConfigurationError, MissingVersionsError

log = logging.getLogger(__name__)

SERVER_REQUIRED = {
    "etcd_s3_bucket": "--s3-bucket",
    "etcd_s3_access_key": "--s3-access",
    "etcd_s3_secret_key": "--s3-secret",
    "hcloud_token": "--hcloud-token",
    "hcloud_network": "--hcloud-network-name",
    "letsencrypt_email": "--letsencrypt-email",
}


def validate_versions(versions: ComponentVersions) -> None:
    """Fail with every blank component version named, not just the first."""
    missing = versions.missing()
    if missing:
        raise MissingVersionsError(missing)
    log.debug("Component versions: %s", versions)


def validate_role_settings(cfg: NodeConfig) -> None:
    """Check that the settings the chosen role depends on were supplied."""
    problems: List[str] = []

    if not cfg.join_token:
        problems.append("k3s join token is required (--k3s-token)")
    if not cfg.mesh_auth_key:
        problems.append("Tailscale auth key is required (--tailscale-auth-key)")
    if not cfg.hostname:
        problems.append("hostname is required (--hostname)")

    if cfg.is_server:
        if not cfg.is_init and not cfg.load_balancer_address:
            problems.append("a joining server needs the load balancer address (--load-balancer-ip)")
        for attr, flag in SERVER_REQUIRED.items():
            if not getattr(cfg, attr):
                problems.append(f"server role requires {flag}")
    else:
        if cfg.is_init:
            problems.append("--init only applies to the server role")
        if not cfg.cluster_join_url:
            problems.append("agent role requires the cluster URL (--k3s-url)")

    if problems:
        raise ConfigurationError(problems, message=f"incomplete {cfg.role.value} configuration")
