# poller.py
from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from .errors import StatusCheckError
from .farm.api_client import FarmClient, FarmError
from .farm.models import StatusEntry, StatusResponse
from .model import PollOutcome
from .ui.console import Console, get_console

ERROR_RE = re.compile(r"\berror\b", re.IGNORECASE)


@dataclass(frozen=True)
class StatusReport:
    """One classified status response."""
    outcome: PollOutcome
    entry: StatusEntry = field(default_factory=StatusEntry)
    status_code: Optional[int] = None

    @property
    def failures(self) -> Optional[int]:
        return self.entry.result.failed if self.entry.result else None

    @property
    def message(self) -> Optional[str]:
        if self.entry.result is None or self.entry.result.message is None:
            return None
        return str(self.entry.result.message)

    def snapshot(self) -> Dict[str, Any]:
        return self.entry.model_dump(exclude_none=True)


def classify(status_code: Optional[int], body: Any) -> StatusReport:
    """
    Classify a status response.

    Order matters: request/farm errors win over completion, and an
    unfinished job is never judged on its (partial) result.
    """
    if status_code != 200 or not isinstance(body, dict):
        return StatusReport(PollOutcome.ERROR, status_code=status_code)
    try:
        response = StatusResponse.model_validate(body)
    except ValidationError:
        return StatusReport(PollOutcome.ERROR, status_code=status_code)

    entry = response.entry
    if entry.status == "test error":
        return StatusReport(PollOutcome.ERROR, entry, status_code)
    if not response.completed:
        return StatusReport(PollOutcome.INCOMPLETE, entry, status_code)

    result = entry.result
    if result is None or result.failed or (
        result.message is not None and ERROR_RE.search(str(result.message))
    ):
        return StatusReport(PollOutcome.FAILED, entry, status_code)
    return StatusReport(PollOutcome.PASSED, entry, status_code)


class StatusPoller:
    """Issues status requests for submitted jobs and classifies the answers."""

    def __init__(
        self,
        client: FarmClient,
        interval: float = 5.0,
        wait: Callable[[float], None] = time.sleep,
        console: Console | None = None,
    ):
        """
        Args:
            client: Farm API client
            interval: Seconds between status requests for an unfinished job
            wait: Blocking wait used between requests
            console: Output target for diagnostics
        """
        self.client = client
        self.interval = interval
        self._wait = wait
        self.console = console or get_console()

    def check(self, job_id: str) -> StatusReport:
        """
        Request and classify the status of `job_id`.

        Raises:
            StatusCheckError: transport failure, non-200 response, or an
                explicit farm-side test error
        """
        try:
            status_code, body = self.client.job_status(job_id)
        except FarmError as e:
            self.console.print_error(
                "Failed to check test status on Sauce Labs",
                str(e),
            )
            raise StatusCheckError(str(e), job_id=job_id) from e

        report = classify(status_code, body)
        if report.outcome is PollOutcome.ERROR:
            self.console.print_error(
                "Failed to check test status on Sauce Labs",
                f"status: {status_code}, body:",
                details=[json.dumps(body) if not isinstance(body, str) else body],
            )
            raise StatusCheckError(
                "status request failed",
                job_id=job_id,
                status_code=status_code,
            )
        return report

    def wait(self) -> None:
        self._wait(self.interval)
