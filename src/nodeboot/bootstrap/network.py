"""Primary interface and private address discovery."""

import ipaddress
import logging
import socket
import time
from typing import Callable, Dict, List, Optional

import psutil

from nodeboot.config.node import NodeConfig
from nodeboot.errors import CommandError, NetworkError
from nodeboot.shell import Runner, run_command

log = logging.getLogger(__name__)

ETHERNET_PREFIXES = ("eth", "en")
ADDRESS_ATTEMPTS = 60
ADDRESS_INTERVAL = 1

InterfaceLister = Callable[[], Dict[str, List]]


class NetworkDiscovery:
    """Find the ethernet interface and wait for DHCP to give it an address."""

    def __init__(
        self,
        list_interfaces: InterfaceLister = psutil.net_if_addrs,
        runner: Runner = run_command,
        sleep: Callable[[float], None] = time.sleep,
        attempts: int = ADDRESS_ATTEMPTS,
        interval: float = ADDRESS_INTERVAL,
    ):
        self.list_interfaces = list_interfaces
        self.runner = runner
        self.sleep = sleep
        self.attempts = attempts
        self.interval = interval

    def detect_interface(self) -> str:
        for name in self.list_interfaces():
            if name.startswith(ETHERNET_PREFIXES):
                return name
        raise NetworkError("no ethernet interface found")

    def ipv4_address(self, name: str) -> Optional[str]:
        """First non-loopback IPv4 address on the interface, if any"""
        for addr in self.list_interfaces().get(name, []):
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.IPv4Address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return str(ip)
        return None

    def _poll(self, name: str) -> Optional[str]:
        for attempt in range(1, self.attempts + 1):
            address = self.ipv4_address(name)
            if address:
                return address
            log.debug("No IPv4 address on %s yet (attempt %d/%d)", name, attempt, self.attempts)
            self.sleep(self.interval)
        return None

    def renew_lease(self, name: str) -> None:
        log.warning("Forcing a DHCP lease renewal on %s", name)
        try:
            self.runner(["networkctl", "renew", name])
        except CommandError as e:
            log.warning("DHCP renewal on %s failed: %s", name, e)

    def wait_for_address(self, name: str) -> str:
        address = self._poll(name)
        if address:
            return address

        log.warning("Timed out waiting for an address on %s", name)
        self.renew_lease(name)

        address = self._poll(name)
        if address:
            return address

        raise NetworkError(
            f"timeout waiting for an IPv4 address on {name} "
            f"(check cloud-init logs and DHCP)"
        )

    def discover(self, cfg: NodeConfig) -> None:
        log.info("--- Network Detection ---")

        cfg.interface = self.detect_interface()
        log.info("Detected interface: %s", cfg.interface)

        cfg.private_ip = self.wait_for_address(cfg.interface)
        log.info("Private IP: %s", cfg.private_ip)
        if cfg.network_gateway:
            log.info("Network gateway (informational): %s", cfg.network_gateway)
