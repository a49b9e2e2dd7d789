# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_TUNNEL_FAILED = 2
EXIT_SUBMIT_FAILED = 3
EXIT_STATUS_FAILED = 4
# sysexits EX_USAGE; 2 belongs to the tunnel
EXIT_USAGE = 64
EXIT_INTERRUPTED = 130


@dataclass
class RunError(Exception):
    """
    Fatal orchestration error.

    Carries the process exit code so the CLI can terminate with it, plus
    enough context to print a diagnostic without a traceback.
    """
    kind: str
    message: str
    exit_code: int
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


class TunnelStartError(RunError):
    def __init__(self, message: str, **details: Any):
        super().__init__("tunnel", message, EXIT_TUNNEL_FAILED, details)


class SubmitError(RunError):
    def __init__(self, message: str, **details: Any):
        super().__init__("submit", message, EXIT_SUBMIT_FAILED, details)


class StatusCheckError(RunError):
    def __init__(self, message: str, **details: Any):
        super().__init__("status", message, EXIT_STATUS_FAILED, details)


class ConfigError(RunError, ValueError):
    """An invalid setting, named by its RunConfig field."""

    def __init__(self, field_name: str, message: str):
        super().__init__("config", message, EXIT_USAGE, {"field": field_name})

    @property
    def option(self) -> str:
        """Command-line spelling of the offending field."""
        return "--" + self.details["field"].replace("_", "-")
