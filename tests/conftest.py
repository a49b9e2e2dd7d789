from __future__ import annotations

import copy
from typing import Any, Callable, Optional

import pytest

from sauceci.config import RunConfig
from sauceci.ui.console import Console, set_console


# ---------------------------------------------------------------------
# Canned farm status responses
# ---------------------------------------------------------------------

def passed(job_id: str = "x") -> tuple[int, dict]:
    return 200, {
        "completed": True,
        "js tests": [{
            "id": job_id,
            "status": "test session finished",
            "url": f"https://saucelabs.com/jobs/{job_id}",
            "result": {"failed": 0, "passed": 12, "total": 12, "runtime": 840},
        }],
    }


def failed(failures: int = 2, message: Optional[str] = None) -> tuple[int, dict]:
    result: dict[str, Any] = {"failed": failures, "passed": 10, "total": 10 + failures}
    if message is not None:
        result["message"] = message
    return 200, {
        "completed": True,
        "js tests": [{
            "id": "x",
            "status": "test session finished",
            "url": "https://saucelabs.com/jobs/x",
            "result": result,
        }],
    }


def incomplete() -> tuple[int, dict]:
    return 200, {"completed": False, "js tests": [{"id": "x", "status": "test session in progress"}]}


def errored() -> tuple[int, dict]:
    return 200, {"completed": False, "js tests": [{"id": "x", "status": "test error"}]}


class FakeFarmClient:
    """
    Scripted stand-in for FarmClient.

    `plan` maps a browser name (or a full (os, browser, version) tuple) to a
    list with one entry per submission; each entry is the sequence of status
    responses that submission returns, the last one repeating. Platforms
    without a plan pass on the first poll.
    """

    def __init__(
        self,
        plan: Optional[dict] = None,
        submit: Optional[Callable[[dict], tuple[int, Any]]] = None,
    ):
        self.plan = {k: [list(polls) for polls in v] for k, v in (plan or {}).items()}
        self.submit_response = submit
        self.calls: list[tuple[str, Any]] = []
        self.submissions: list[dict] = []
        self.job_platforms: dict[str, tuple] = {}
        self._polls: dict[str, list] = {}

    def submit_job(self, options: dict) -> tuple[int, Any]:
        platform = tuple(options["platforms"][0])
        self.calls.append(("submit", platform))
        self.submissions.append(copy.deepcopy(options))
        if self.submit_response is not None:
            return self.submit_response(options)

        job_id = f"job-{len(self.submissions)}"
        queue = self.plan.get(platform) or self.plan.get(platform[1])
        self._polls[job_id] = queue.pop(0) if queue else [passed(job_id)]
        self.job_platforms[job_id] = platform
        return 200, {"js tests": [job_id]}

    def job_status(self, job_id: str) -> tuple[int, Any]:
        self.calls.append(("status", job_id))
        polls = self._polls[job_id]
        return polls.pop(0) if len(polls) > 1 else polls[0]

    def submitted_platforms(self) -> list[tuple]:
        return [value for kind, value in self.calls if kind == "submit"]


class FakeTunnel:
    def __init__(self, ok: bool = True, log: Optional[list] = None):
        self.ok = ok
        self.log = log if log is not None else []
        self.started = 0
        self.stopped = 0

    def start(self) -> bool:
        self.started += 1
        self.log.append(("tunnel", "start"))
        return self.ok

    def stop(self) -> None:
        self.stopped += 1
        self.log.append(("tunnel", "stop"))


@pytest.fixture
def console() -> Console:
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def config() -> RunConfig:
    return RunConfig(
        username="user",
        access_key="key",
        build="0123456789",
        tunnel_id="tunnel_42.1",
        status_interval=1000,
        max_retries=3,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable[[float], None]:
    return sleeps.append
