# job.py
from __future__ import annotations

import copy
import json
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from .errors import SubmitError
from .farm.api_client import FarmClient, FarmError
from .farm.models import SubmitResponse
from .model import JobResult, JobState, Platform, PollOutcome
from .poller import StatusPoller, StatusReport
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# State machine
# ----------------------------------------------------------------------

def advance(
    state: JobState,
    outcome: PollOutcome,
    attempts: int,
    max_retries: int,
) -> Tuple[JobState, int]:
    """
    Pure transition function for a submitted job.

    Returns the next (state, attempts). `attempts` counts failed
    submissions, so a job is submitted at most `max_retries` times. Only a
    failing completion moves the counter; an unfinished job may be polled
    any number of times.

    Raises:
        ValueError: for outcomes that no state accepts (errors are fatal and
            handled by the poller) or for a job that is not being polled
    """
    if state not in (JobState.SUBMITTED, JobState.POLLING):
        raise ValueError(f"job in state {state.value!r} cannot take outcome {outcome.value!r}")

    if outcome is PollOutcome.INCOMPLETE:
        return JobState.POLLING, attempts
    if outcome is PollOutcome.PASSED:
        return JobState.PASSED, attempts
    if outcome is PollOutcome.FAILED:
        attempts += 1
        if attempts < max_retries:
            return JobState.RETRYING, attempts
        return JobState.FAILED, attempts
    raise ValueError(f"unexpected outcome {outcome.value!r}")


# ----------------------------------------------------------------------
# Job
# ----------------------------------------------------------------------

class Job:
    """
    One platform's test run on the farm, including all of its retries.

    The same Job object is re-submitted on retry; each submission gets a
    fresh job id from the farm.
    """

    def __init__(
        self,
        client: FarmClient,
        poller: StatusPoller,
        platform: Platform,
        defaults: Dict[str, Any],
        max_retries: int = 3,
        console: Console | None = None,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.client = client
        self.poller = poller
        self.platform = platform
        self.max_retries = max_retries
        self.console = console or get_console()

        self.options: Dict[str, Any] = copy.deepcopy(defaults)
        self.options["platforms"] = [platform.to_list()]

        self.job_id: Optional[str] = None
        self.attempts = 0
        self.state = JobState.CREATED
        self.failed = False
        self.status: Dict[str, Any] = {}
        self.url: Optional[str] = None
        self._result: Optional[JobResult] = None

    @property
    def done(self) -> bool:
        return self._result is not None

    def submit(self) -> str:
        """
        Submit this job's options to the farm and record the new job id.

        Raises:
            SubmitError: transport failure, non-200 response or no job id
        """
        self.console.print_job_start(self.options)
        try:
            status_code, body = self.client.submit_job(self.options)
        except FarmError as e:
            self.console.print_error("Failed to submit test to Sauce Labs", str(e))
            raise SubmitError(str(e), platform=str(self.platform)) from e

        job_id = None
        if status_code == 200 and isinstance(body, dict):
            try:
                job_id = SubmitResponse.model_validate(body).job_id
            except ValidationError:
                job_id = None

        if not job_id:
            self.console.print_error(
                "Failed to submit test to Sauce Labs",
                f"status: {status_code}, body:",
                details=[json.dumps(body) if not isinstance(body, str) else body],
            )
            raise SubmitError(
                "submission rejected",
                platform=str(self.platform),
                status_code=status_code,
            )

        self.job_id = job_id
        self.state = JobState.SUBMITTED
        return job_id

    def run(self) -> JobResult:
        """
        Submit, poll and retry until this job passes or runs out of retries.

        Returns the JobResult; this is the job's one and only completion.

        Raises:
            RuntimeError: if the job already completed
            SubmitError / StatusCheckError: fatal farm errors
        """
        if self.done or self.state is not JobState.CREATED:
            raise RuntimeError(f"job for {self.platform} has already run")

        self.submit()
        report: Optional[StatusReport] = None

        while not self.state.terminal:
            if self.state is JobState.RETRYING:
                self.console.print_debug(
                    f"retrying {self.platform} (attempt {self.attempts + 1} of {self.max_retries})"
                )
                self.submit()
                continue

            report = self.poller.check(self.job_id)
            self.state, self.attempts = advance(
                self.state, report.outcome, self.attempts, self.max_retries
            )
            if self.state is JobState.POLLING:
                self.poller.wait()

        if report is not None:
            self.url = report.entry.url
        if self.state is JobState.FAILED:
            self._finalize_failure(report)

        self._result = JobResult(
            platform=self.platform,
            failed=self.failed,
            attempts=self.attempts,
            job_id=self.job_id,
            url=self.url,
            status=dict(self.status),
        )
        return self._result

    def _finalize_failure(self, report: StatusReport) -> None:
        self.status = report.snapshot()
        self.failed = True

        details = f"See {self.url} for details."
        message = report.message
        if message is None:
            message = f"no results available. {details}"

        if report.failures:
            self.console.print_job_failed(str(self.platform), report.failures, details)
        else:
            self.console.print_job_failed(str(self.platform), None, message)
