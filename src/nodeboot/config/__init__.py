"""Configuration for nodeboot."""

from .manager import DEFAULT_VERSIONS, ConfigManager, apply_overrides
from .node import ComponentVersions, NodeConfig, Role, RuntimePaths

__all__ = [
    "DEFAULT_VERSIONS",
    "ConfigManager",
    "apply_overrides",
    "ComponentVersions",
    "NodeConfig",
    "Role",
    "RuntimePaths",
]
