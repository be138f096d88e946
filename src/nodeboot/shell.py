"""Subprocess helpers shared by the bootstrap phases."""

import logging
import subprocess
from typing import Callable, Dict, List, Optional

from nodeboot.errors import CommandError

log = logging.getLogger(__name__)

# Flags whose values must never reach a log line
SECRET_FLAGS = ("--authkey=",)

Runner = Callable[..., subprocess.CompletedProcess]


def redact(cmd: List[str]) -> List[str]:
    """Mask the values of secret-bearing flags."""
    masked = []
    for arg in cmd:
        for flag in SECRET_FLAGS:
            if arg.startswith(flag):
                arg = flag + "****"
                break
        masked.append(arg)
    return masked


def run_command(
    cmd: List[str],
    check: bool = True,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """Run a command and return the result.

    A command still running after ``timeout`` seconds is killed and reported
    as a ``CommandError``.
    """
    shown = " ".join(redact(cmd))
    log.debug("Running: %s", shown)

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, env=env, timeout=timeout)
    except FileNotFoundError as e:
        raise CommandError(redact(cmd), None, str(e)) from e
    except subprocess.TimeoutExpired as e:
        log.debug("Command timed out after %ss: %s", timeout, shown)
        raise CommandError(redact(cmd), None, _as_text(e.stdout) + _as_text(e.stderr), timeout=timeout) from e

    if check and result.returncode != 0:
        output = (result.stdout or "") + (result.stderr or "")
        log.debug("Command failed with code %d: %s", result.returncode, shown)
        raise CommandError(redact(cmd), result.returncode, output)

    return result


def _as_text(data) -> str:
    # TimeoutExpired carries bytes even when the command ran in text mode
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data
