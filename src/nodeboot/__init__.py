"""nodeboot - first-boot bootstrap for k3s nodes"""

__version__ = "0.1.0"
