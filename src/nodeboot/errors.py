"""Exceptions raised by bootstrap phases"""

from typing import Iterable, Optional


class BootstrapError(Exception):
    """Base exception for bootstrap failures"""

    pass


class ConfigurationError(BootstrapError):
    """Invalid or incomplete node configuration"""

    def __init__(self, problems: Iterable[str], message: str = "invalid configuration"):
        self.problems = list(problems)
        super().__init__(f"{message}: {'; '.join(self.problems)}")


class MissingVersionsError(ConfigurationError):
    """One or more component versions were left blank"""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(self.missing, message="component versions are missing")


class CommandError(BootstrapError):
    """External command failed or could not be started"""

    def __init__(
        self,
        cmd: Iterable[str],
        returncode: Optional[int],
        output: str = "",
        timeout: Optional[float] = None,
    ):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        self.timeout = timeout
        if timeout is not None:
            status = f"timed out after {timeout:g}s"
        elif returncode is None:
            status = "could not be started"
        else:
            status = f"exited with {returncode}"
        message = f"command '{' '.join(self.cmd)}' {status}"
        if output:
            message += f"\nOutput: {output.strip()}"
        super().__init__(message)


class NetworkError(BootstrapError):
    """No usable network interface or address"""

    pass


class MeshJoinError(BootstrapError):
    """Joining the Tailscale mesh failed"""

    pass


class RenderError(BootstrapError):
    """k3s configuration could not be rendered or written"""

    pass


class ManifestError(BootstrapError):
    """A manifest template could not be rendered or written"""

    pass


class ServiceError(BootstrapError):
    """A systemd unit could not be enabled or started"""

    pass


class ReadinessError(BootstrapError):
    """The Kubernetes API never reported healthy"""

    pass


class TaintError(BootstrapError):
    """Node registration or taint removal did not complete"""

    pass
