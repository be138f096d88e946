"""Tailscale mesh join.

Joining is the most common point of failure on a fresh node, and the reason
is usually invisible from the main bootstrap log. Every step is therefore
mirrored, with timestamps, into a dedicated join log that can be read on the
machine afterwards.
"""

import ipaddress
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from nodeboot.config.node import NodeConfig, Role
from nodeboot.errors import CommandError, MeshJoinError
from nodeboot.shell import Runner, run_command

log = logging.getLogger(__name__)

JOIN_ATTEMPTS = 60
JOIN_INTERVAL = 5
DAEMON_SETTLE = 2
# tailscale up otherwise waits forever for the control plane
UP_TIMEOUT = 60
UP_GRACE = 15

SERVER_TAG = "tag:k3s-server"
AGENT_TAG = "tag:k3s-agent"


def mesh_tag_for(role: Role, override: str = "") -> str:
    """Tag advertised by this node: the explicit override or the role default."""
    if override:
        return override if override.startswith("tag:") else f"tag:{override}"
    return SERVER_TAG if role is Role.SERVER else AGENT_TAG


class TailscaleMesh:
    """Drive tailscaled through its CLI"""

    def __init__(
        self,
        runner: Runner = run_command,
        sleep: Callable[[float], None] = time.sleep,
        join_log: Optional[Path] = None,
        attempts: int = JOIN_ATTEMPTS,
        interval: float = JOIN_INTERVAL,
    ):
        self.runner = runner
        self.sleep = sleep
        self.join_log = join_log
        self.attempts = attempts
        self.interval = interval

    def _open_join_log(self) -> Optional[logging.Handler]:
        if self.join_log is None:
            return None
        try:
            handler = logging.FileHandler(self.join_log)
        except OSError as e:
            log.warning("Could not open %s for writing: %s", self.join_log, e)
            return None
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%S%z"))
        log.addHandler(handler)
        return handler

    def _close_join_log(self, handler: Optional[logging.Handler]) -> None:
        if handler is not None:
            log.removeHandler(handler)
            handler.close()

    def start_daemon(self) -> None:
        log.info("Starting tailscaled service...")
        try:
            self.runner(["systemctl", "start", "tailscaled"])
        except CommandError as e:
            log.error("Failed to start tailscaled: %s", e)
            raise MeshJoinError(f"could not start tailscaled: {e}") from e
        self.sleep(DAEMON_SETTLE)

    def up(self, auth_key: str, hostname: str, tag: str) -> None:
        self.runner(
            [
                "tailscale",
                "up",
                f"--authkey={auth_key}",
                "--ssh",
                f"--hostname={hostname}",
                f"--advertise-tags={tag}",
                "--reset",
                f"--timeout={UP_TIMEOUT}s",
            ],
            timeout=UP_TIMEOUT + UP_GRACE,
        )

    def ip4(self) -> str:
        """Overlay IPv4 address assigned to this node"""
        try:
            result = self.runner(["tailscale", "ip", "-4"])
        except CommandError as e:
            raise MeshJoinError(f"joined the mesh but could not read the Tailscale IP: {e}") from e

        lines = (result.stdout or "").strip().splitlines()
        candidate = lines[0].strip() if lines else ""
        try:
            return str(ipaddress.IPv4Address(candidate))
        except ValueError:
            raise MeshJoinError(
                f"joined the mesh but 'tailscale ip -4' returned no usable address: {candidate!r}"
            )

    def join(self, auth_key: str, hostname: str, tag: str) -> str:
        """Join the tailnet, retrying with --reset, and return the overlay IP."""
        handler = self._open_join_log()
        try:
            log.info("--- Tailscale Setup Starting ---")
            self.start_daemon()

            last_error: Optional[CommandError] = None
            for attempt in range(1, self.attempts + 1):
                log.info("Join attempt %d/%d (tag %s)...", attempt, self.attempts, tag)
                try:
                    self.up(auth_key, hostname, tag)
                except CommandError as e:
                    last_error = e
                    log.warning("Join failed: %s", e)
                    if attempt < self.attempts:
                        log.info("Retrying in %ss...", self.interval)
                        self.sleep(self.interval)
                    continue

                log.info("Tailscale up succeeded")
                address = self.ip4()
                log.info("Tailscale IP acquired: %s", address)
                return address

            message = (
                f"CRITICAL: failed to join Tailscale after {self.attempts} attempts.\n"
                f"Last error: {last_error}"
            )
            log.error(message)
            raise MeshJoinError(
                f"{message}\n"
                "*** TROUBLESHOOTING ***\n"
                f"1. Run: cat {self.join_log or '/var/log/tailscale-join.log'}\n"
                "2. Check routes: ip route show default\n"
            ) from last_error
        finally:
            self._close_join_log(handler)


def join_mesh(cfg: NodeConfig, mesh: TailscaleMesh) -> None:
    tag = mesh_tag_for(cfg.role, cfg.mesh_tag)
    cfg.overlay_ip = mesh.join(cfg.mesh_auth_key, cfg.hostname, tag)
