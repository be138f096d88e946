"""Ordered bootstrap phases and the loop that runs them.

Each phase is a descriptor carrying the callable and the severity of its
failure. Phases raise ``BootstrapError``; only the driver decides what a
failure means. A fatal failure stops the run, a warning is logged and the
next phase starts. With ``strict`` every failure is fatal.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

import httpx
import psutil

from nodeboot.bootstrap.manifests import TemplateSet, load_embedded_templates, write_manifests
from nodeboot.bootstrap.mesh import TailscaleMesh, join_mesh
from nodeboot.bootstrap.network import InterfaceLister, NetworkDiscovery
from nodeboot.bootstrap.readiness import ReadinessProber, probe_target
from nodeboot.bootstrap.runtime_config import write_runtime_config
from nodeboot.bootstrap.service import start_runtime
from nodeboot.bootstrap.taints import TaintFinalizer
from nodeboot.bootstrap.versions import validate_role_settings, validate_versions
from nodeboot.config.node import NodeConfig, RuntimePaths
from nodeboot.errors import BootstrapError, ManifestError
from nodeboot.shell import Runner, run_command

log = logging.getLogger(__name__)


class Severity(str, Enum):
    FATAL = "fatal"
    WARNING = "warning"


class Outcome(str, Enum):
    SUCCESS = "success"
    FATAL = "fatal"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Phase:
    name: str
    action: Callable[[NodeConfig], None]
    severity: Severity = Severity.FATAL
    server_only: bool = False

    def applies_to(self, cfg: NodeConfig) -> bool:
        return cfg.is_server or not self.server_only


@dataclass
class PhaseResult:
    name: str
    outcome: Outcome
    error: Optional[BootstrapError] = None
    duration: float = 0.0


@dataclass
class BootstrapReport:
    results: List[PhaseResult] = field(default_factory=list)

    @property
    def fatal(self) -> Optional[PhaseResult]:
        for result in self.results:
            if result.outcome is Outcome.FATAL:
                return result
        return None

    @property
    def warnings(self) -> List[PhaseResult]:
        return [r for r in self.results if r.outcome is Outcome.WARNING]

    @property
    def ok(self) -> bool:
        return self.fatal is None


@dataclass
class Toolkit:
    """External collaborators the phases talk to; swapped out in tests."""

    paths: RuntimePaths = field(default_factory=RuntimePaths)
    templates: Optional[TemplateSet] = None
    runner: Runner = run_command
    sleep: Callable[[float], None] = time.sleep
    list_interfaces: InterfaceLister = psutil.net_if_addrs
    transport: Optional[httpx.BaseTransport] = None

    def manifest_templates(self) -> TemplateSet:
        if self.templates is None:
            try:
                self.templates = load_embedded_templates()
            except OSError as e:
                raise ManifestError(f"could not read embedded manifest templates: {e}") from e
        return self.templates


def build_phases(toolkit: Toolkit) -> List[Phase]:
    paths = toolkit.paths
    network = NetworkDiscovery(toolkit.list_interfaces, toolkit.runner, toolkit.sleep)
    mesh = TailscaleMesh(toolkit.runner, toolkit.sleep, join_log=paths.mesh_join_log)
    prober = ReadinessProber(toolkit.sleep, transport=toolkit.transport)
    finalizer = TaintFinalizer(paths.kubeconfig, toolkit.runner, toolkit.sleep)

    return [
        Phase("version-guard", lambda cfg: validate_versions(cfg.versions)),
        Phase("role-settings", validate_role_settings),
        Phase("network-discovery", network.discover),
        Phase("mesh-join", lambda cfg: join_mesh(cfg, mesh)),
        Phase("runtime-config", lambda cfg: write_runtime_config(cfg, paths.runtime_config)),
        Phase(
            "manifests",
            lambda cfg: write_manifests(cfg, toolkit.manifest_templates(), paths.manifest_dir),
            server_only=True,
        ),
        Phase("service-start", lambda cfg: start_runtime(cfg.role, toolkit.runner)),
        Phase(
            "api-readiness",
            lambda cfg: prober.wait_for_api(probe_target(cfg)),
            severity=Severity.WARNING,
        ),
        Phase("taint-finalize", finalizer.finalize, severity=Severity.WARNING, server_only=True),
    ]


def run_phases(cfg: NodeConfig, phases: List[Phase], strict: bool = False) -> BootstrapReport:
    report = BootstrapReport()

    for phase in phases:
        if not phase.applies_to(cfg):
            log.debug("Skipping %s for role %s", phase.name, cfg.role.value)
            report.results.append(PhaseResult(phase.name, Outcome.SKIPPED))
            continue

        log.debug("Phase %s starting", phase.name)
        start = time.monotonic()
        try:
            phase.action(cfg)
        except BootstrapError as e:
            duration = round(time.monotonic() - start, 2)
            if phase.severity is Severity.FATAL or strict:
                log.error("Phase %s failed: %s", phase.name, e)
                report.results.append(PhaseResult(phase.name, Outcome.FATAL, e, duration))
                break
            log.warning("Phase %s failed: %s. Proceeding anyway...", phase.name, e)
            report.results.append(PhaseResult(phase.name, Outcome.WARNING, e, duration))
            continue

        duration = round(time.monotonic() - start, 2)
        report.results.append(PhaseResult(phase.name, Outcome.SUCCESS, None, duration))

    return report


def run_bootstrap(cfg: NodeConfig, toolkit: Optional[Toolkit] = None, strict: bool = False) -> BootstrapReport:
    log.info("=== Starting Node Bootstrap ===")
    log.info("Role: %s, Hostname: %s, Environment: %s", cfg.role.value, cfg.hostname, cfg.cloud_env)

    report = run_phases(cfg, build_phases(toolkit or Toolkit()), strict=strict)

    if report.ok:
        log.info("=== Bootstrap Complete ===")
    else:
        log.error("=== Bootstrap Failed at %s ===", report.fatal.name)
    return report
