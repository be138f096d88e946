"""Configuration management for nodeboot"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from nodeboot.config.node import parse_bool
from nodeboot.errors import ConfigurationError

# Component versions baked into the tool; callers may override each one
DEFAULT_VERSIONS = {
    "hcloud_ccm": "1.29.1",
    "hcloud_csi": "2.6.0",
    "cilium": "1.15.1",
    "ingress_nginx": "4.10.0",
    "cert_manager": "v1.14.0",
    "nats": "1.2.4",
}

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "NODEBOOT_ROLE": ("node", "role"),
    "NODEBOOT_HOSTNAME": ("node", "hostname"),
    "NODEBOOT_CLOUD_ENV": ("node", "cloud_env"),
    "NODEBOOT_K3S_TOKEN": ("node", "join_token"),
    "NODEBOOT_LOAD_BALANCER_IP": ("node", "load_balancer_address"),
    "NODEBOOT_K3S_URL": ("node", "cluster_join_url"),
    "NODEBOOT_TAILSCALE_AUTH_KEY": ("mesh", "auth_key"),
    "NODEBOOT_TAILSCALE_TAG": ("mesh", "tag"),
    "NODEBOOT_S3_BUCKET": ("server", "etcd_s3_bucket"),
    "NODEBOOT_S3_ACCESS": ("server", "etcd_s3_access_key"),
    "NODEBOOT_S3_SECRET": ("server", "etcd_s3_secret_key"),
    "NODEBOOT_S3_ENDPOINT": ("server", "etcd_s3_endpoint"),
    "NODEBOOT_HCLOUD_TOKEN": ("server", "hcloud_token"),
    "NODEBOOT_HCLOUD_NETWORK": ("server", "hcloud_network"),
    "NODEBOOT_LETSENCRYPT_EMAIL": ("server", "letsencrypt_email"),
}
ENV_OVERRIDES.update(
    {f"NODEBOOT_{name.upper()}_VERSION": ("versions", name) for name in DEFAULT_VERSIONS}
)


class ConfigManager:
    """Merge defaults, an optional YAML file and environment overrides"""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path

    def load(self) -> Dict[str, Any]:
        """Load configuration from file and environment"""
        config = self._load_defaults()

        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError([f"config file not found: {self.config_path}"])
            try:
                with open(self.config_path) as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError([f"invalid YAML in {self.config_path}: {e}"]) from e
            if not isinstance(file_config, dict):
                raise ConfigurationError([f"{self.config_path} must contain a mapping"])
            config = self._merge(config, file_config)

        config = self._apply_env_overrides(config)

        return config

    def _load_defaults(self) -> Dict[str, Any]:
        """Load default configuration"""
        return {
            "node": {
                "role": "agent",
                "hostname": "",
                "cloud_env": "dev",
                "join_token": "",
                "load_balancer_address": "",
                "cluster_join_url": "",
                "network_gateway": "",
                "is_init": False,
            },
            "mesh": {
                "auth_key": "",
                "tag": "",
            },
            "server": {
                "etcd_s3_bucket": "",
                "etcd_s3_access_key": "",
                "etcd_s3_secret_key": "",
                "etcd_s3_endpoint": "storage.googleapis.com",
                "hcloud_token": "",
                "hcloud_network": "",
                "letsencrypt_email": "",
            },
            "versions": dict(DEFAULT_VERSIONS),
            "paths": {
                "runtime_config": "/etc/rancher/k3s/config.yaml",
                "manifest_dir": "/var/lib/rancher/k3s/server/manifests",
                "kubeconfig": "/etc/rancher/k3s/k3s.yaml",
                "mesh_join_log": "/var/log/tailscale-join.log",
            },
            "bootstrap": {
                "strict": False,
            },
        }

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        """Merge two configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict):
                # A section with every key commented out loads as None
                if value is None:
                    continue
                if not isinstance(value, dict):
                    raise ConfigurationError([f"section '{prefix}{key}' must be a mapping, got {value!r}"])
                result[key] = self._merge(result[key], value, prefix=f"{prefix}{key}.")
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides"""
        for var, (section, key) in ENV_OVERRIDES.items():
            if (value := os.getenv(var)) is not None:
                config.setdefault(section, {})[key] = value

        if (init := os.getenv("NODEBOOT_INIT")) is not None:
            config["node"]["is_init"] = parse_bool(init, "NODEBOOT_INIT")

        return config


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Override config values with explicitly supplied ones, skipping None"""
    for section, values in overrides.items():
        for key, value in values.items():
            if value is not None:
                config.setdefault(section, {})[key] = value
    return config
