"""Node bootstrap phases for nodeboot."""

from .orchestrator import (
    BootstrapReport,
    Outcome,
    Phase,
    PhaseResult,
    Severity,
    Toolkit,
    build_phases,
    run_bootstrap,
    run_phases,
)

__all__ = [
    "BootstrapReport",
    "Outcome",
    "Phase",
    "PhaseResult",
    "Severity",
    "Toolkit",
    "build_phases",
    "run_bootstrap",
    "run_phases",
]
