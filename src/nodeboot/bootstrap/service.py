"""k3s systemd unit startup"""

import logging

from nodeboot.config.node import Role
from nodeboot.errors import CommandError, ServiceError
from nodeboot.shell import Runner, run_command

log = logging.getLogger(__name__)

SERVICE_NAMES = {
    Role.SERVER: "k3s",
    Role.AGENT: "k3s-agent",
}


def start_runtime(role: Role, runner: Runner = run_command) -> None:
    svc = SERVICE_NAMES[role]
    log.info("Starting service: %s", svc)

    for action in ("enable", "start"):
        try:
            runner(["systemctl", action, svc])
        except CommandError as e:
            raise ServiceError(f"systemctl {action} {svc} failed: {e}") from e

    log.info("Service %s enabled and started", svc)
