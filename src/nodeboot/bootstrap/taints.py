"""Post-start taint cleanup for server nodes"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Callable, List

from nodeboot.config.node import NodeConfig
from nodeboot.errors import CommandError, TaintError
from nodeboot.shell import Runner, run_command

log = logging.getLogger(__name__)

REGISTRATION_ATTEMPTS = 30
REGISTRATION_INTERVAL = 2

CLOUD_PROVIDER_TAINT = "node.cloudprovider.kubernetes.io/uninitialized:NoSchedule"
CONTROL_PLANE_TAINTS = (
    "node-role.kubernetes.io/master:NoSchedule",
    "node-role.kubernetes.io/control-plane:NoSchedule",
)

# kubectl's message for a taint that is not on the node; a missing node says
# 'nodes "x" not found' instead
ABSENT_TAINT = re.compile(r'taint "[^"]*" not found')


def taints_to_remove(cfg: NodeConfig) -> List[str]:
    taints = [CLOUD_PROVIDER_TAINT]
    if cfg.is_development:
        taints.extend(CONTROL_PLANE_TAINTS)
    return taints


class TaintFinalizer:
    """Wait for the node object, then strip scheduling taints with kubectl"""

    def __init__(
        self,
        kubeconfig: Path,
        runner: Runner = run_command,
        sleep: Callable[[float], None] = time.sleep,
        attempts: int = REGISTRATION_ATTEMPTS,
        interval: float = REGISTRATION_INTERVAL,
    ):
        self.kubeconfig = kubeconfig
        self.runner = runner
        self.sleep = sleep
        self.attempts = attempts
        self.interval = interval

    def _env(self):
        env = os.environ.copy()
        env["KUBECONFIG"] = str(self.kubeconfig)
        return env

    def wait_for_node(self, hostname: str) -> None:
        for attempt in range(1, self.attempts + 1):
            try:
                self.runner(["kubectl", "get", "node", hostname], env=self._env())
                log.info("Node %s registered", hostname)
                return
            except CommandError as e:
                log.debug("Node %s not registered yet (attempt %d/%d): %s", hostname, attempt, self.attempts, e)
            if attempt < self.attempts:
                self.sleep(self.interval)
        raise TaintError(f"node {hostname} did not register after {self.attempts} attempts")

    def remove_taint(self, hostname: str, taint: str) -> None:
        """Remove a taint; a taint that is already gone is not an error."""
        try:
            self.runner(["kubectl", "taint", "node", hostname, f"{taint}-"], env=self._env())
        except CommandError as e:
            if ABSENT_TAINT.search(e.output):
                log.debug("Taint %s already absent on %s", taint, hostname)
                return
            raise
        log.info("Removed taint %s from %s", taint, hostname)

    def finalize(self, cfg: NodeConfig) -> None:
        log.info("--- Taint Finalization ---")
        self.wait_for_node(cfg.hostname)

        failures = []
        for taint in taints_to_remove(cfg):
            try:
                self.remove_taint(cfg.hostname, taint)
            except CommandError as e:
                log.warning("Could not remove taint %s: %s", taint, e)
                failures.append(taint)

        if failures:
            raise TaintError(f"failed to remove taints from {cfg.hostname}: {', '.join(failures)}")
