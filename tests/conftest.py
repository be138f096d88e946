"""Shared fixtures for nodeboot tests"""

import logging
import socket
import subprocess
from collections import namedtuple
from types import SimpleNamespace

import pytest

from nodeboot.config.manager import DEFAULT_VERSIONS
from nodeboot.config.node import ComponentVersions, NodeConfig, Role, RuntimePaths
from nodeboot.errors import CommandError
from nodeboot.shell import redact

Addr = namedtuple("Addr", "family address netmask broadcast ptp")


def ipv4(address):
    return Addr(socket.AF_INET, address, "255.255.255.0", None, None)


def ipv6(address):
    return Addr(socket.AF_INET6, address, None, None, None)


class FakeRunner:
    """Stand-in for run_command.

    ``responses`` maps a command prefix (tuple) to a ``(returncode, output)``
    pair, or to a list of pairs consumed one per call (the last one repeats).
    A returncode of ``None`` stands for a command killed at its timeout.
    Unmatched commands succeed with empty output.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.envs = []
        self.timeouts = []

    def __call__(self, cmd, check=True, env=None, timeout=None):
        self.calls.append(list(cmd))
        self.envs.append(env)
        self.timeouts.append(timeout)

        returncode, output = 0, ""
        for prefix, response in self.responses.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                if isinstance(response, list):
                    returncode, output = response.pop(0) if len(response) > 1 else response[0]
                else:
                    returncode, output = response
                break

        if returncode is None:
            raise CommandError(redact(cmd), None, output, timeout=timeout)
        if check and returncode != 0:
            raise CommandError(redact(cmd), returncode, output)
        return subprocess.CompletedProcess(cmd, returncode, stdout=output, stderr="")

    def commands(self, *prefix):
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def make_runner():
    """Factory for fake command runners"""
    return FakeRunner


@pytest.fixture
def sleeps():
    """Recorded sleep durations; the fake sleep never blocks"""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def interfaces():
    """Interface table of a typical cloud VM"""
    return {
        "lo": [ipv4("127.0.0.1")],
        "eth0": [ipv6("fe80::1"), ipv4("10.0.0.2")],
    }


@pytest.fixture
def runtime_paths(tmp_path):
    manifest_dir = tmp_path / "manifests"
    manifest_dir.mkdir()
    return RuntimePaths(
        runtime_config=tmp_path / "config.yaml",
        manifest_dir=manifest_dir,
        kubeconfig=tmp_path / "k3s.yaml",
        mesh_join_log=tmp_path / "tailscale-join.log",
    )


@pytest.fixture
def server_config():
    """Fully populated initial server, addresses already discovered"""
    return NodeConfig(
        role=Role.SERVER,
        hostname="server-01",
        cloud_env="dev",
        join_token="t1",
        load_balancer_address="1.1.1.1",
        mesh_auth_key="tskey-auth-secret",
        is_init=True,
        private_ip="10.0.0.2",
        overlay_ip="100.64.0.1",
        etcd_s3_bucket="bucket",
        etcd_s3_access_key="access",
        etcd_s3_secret_key="secret",
        hcloud_token="token",
        hcloud_network="network",
        letsencrypt_email="mail@example.com",
        versions=ComponentVersions(**DEFAULT_VERSIONS),
    )


@pytest.fixture
def agent_config():
    """Fully populated agent, addresses already discovered"""
    return NodeConfig(
        role=Role.AGENT,
        hostname="agent-01",
        cloud_env="prod",
        join_token="t1",
        cluster_join_url="1.1.1.1:6443",
        mesh_auth_key="tskey-auth-secret",
        private_ip="10.0.0.3",
        overlay_ip="100.64.0.2",
        versions=ComponentVersions(**DEFAULT_VERSIONS),
    )


@pytest.fixture
def addrs():
    """Builders for psutil-style address entries"""
    return SimpleNamespace(ipv4=ipv4, ipv6=ipv6)


@pytest.fixture(autouse=True)
def reset_logging():
    """init_logging detaches the package logger from the root; undo that between tests"""
    yield
    logger = logging.getLogger("nodeboot")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
