# model.py
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Platform:
    """A single remote test target: (os, browser, version)."""
    os: str
    browser: str
    version: str

    @property
    def version_number(self) -> float:
        """Numeric view of `version` used by the platform filters."""
        try:
            return float(self.version)
        except ValueError:
            return 0.0

    def to_list(self) -> List[str]:
        # the farm expects platforms as [os, browser, version] triples
        return [self.os, self.browser, self.version]

    def __str__(self) -> str:
        return f"{self.browser} {self.version} on {self.os}"


class JobState(str, enum.Enum):
    CREATED = "created"
    SUBMITTED = "submitted"
    POLLING = "polling"
    RETRYING = "retrying"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobState.PASSED, JobState.FAILED)


class PollOutcome(str, enum.Enum):
    """Classification of one status response."""
    ERROR = "error"
    INCOMPLETE = "incomplete"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class JobResult:
    """
    Final outcome of a Job, returned once by Job.run().

    `status` is the last farm status entry seen for the job (empty when the
    job passed without a snapshot being recorded).
    """
    platform: Platform
    failed: bool
    attempts: int
    job_id: Optional[str] = None
    url: Optional[str] = None
    status: Dict[str, Any] = field(default_factory=dict)
