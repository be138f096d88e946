"""Kubernetes API readiness probe"""

import logging
import time
from typing import Callable, Optional, Tuple
from urllib.parse import urlsplit

import httpx

from nodeboot.api.client import APIError, Client
from nodeboot.config.node import NodeConfig, Role
from nodeboot.errors import ReadinessError

log = logging.getLogger(__name__)

API_PORT = 6443
HEALTH_PATH = "/healthz"
PROBE_ATTEMPTS = 60
PROBE_INTERVAL = 5
PROBE_TIMEOUT = 2.0
LOCAL_API = "127.0.0.1"


def _split_health_url(target: str) -> Tuple[str, str]:
    target = target.strip()
    if "://" not in target:
        target = "https://" + target

    parts = urlsplit(target)
    if not parts.hostname:
        raise ReadinessError(f"no host in API target {target!r}")
    try:
        port = parts.port or API_PORT
    except ValueError as e:
        raise ReadinessError(f"invalid port in API target {target!r}") from e

    host = f"[{parts.hostname}]" if ":" in parts.hostname else parts.hostname
    path = parts.path.rstrip("/")
    if not path.endswith(HEALTH_PATH):
        path += HEALTH_PATH

    return f"https://{host}:{port}", path


def normalize_health_url(target: str) -> str:
    """Turn a host, host:port or URL into the https health-check URL."""
    base, path = _split_health_url(target)
    return base + path


def probe_target(cfg: NodeConfig) -> str:
    """API endpoint this node should wait for"""
    if cfg.role is Role.AGENT:
        return cfg.cluster_join_url
    if cfg.is_init:
        return LOCAL_API
    return cfg.load_balancer_address


class ReadinessProber:
    """Poll /healthz until it answers 200 or the attempts run out"""

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        attempts: int = PROBE_ATTEMPTS,
        interval: float = PROBE_INTERVAL,
        timeout: float = PROBE_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.sleep = sleep
        self.attempts = attempts
        self.interval = interval
        self.timeout = timeout
        self.transport = transport

    def wait_for_api(self, target: str) -> None:
        base, path = _split_health_url(target)
        log.info("Waiting for API at %s%s...", base, path)
        client = Client(base, timeout=self.timeout, verify=False, transport=self.transport)

        for attempt in range(1, self.attempts + 1):
            try:
                status = client.healthz(path)
            except APIError as e:
                log.info("API check attempt %d/%d: %s", attempt, self.attempts, e)
            else:
                if status == 200:
                    log.info("API is healthy")
                    return
                log.info("API check attempt %d/%d: status %d", attempt, self.attempts, status)

            if attempt < self.attempts:
                self.sleep(self.interval)

        raise ReadinessError(f"API at {base}{path} never became ready after {self.attempts} attempts")
