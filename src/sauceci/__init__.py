from .config import RunConfig
from .job import Job, advance
from .model import JobResult, JobState, Platform, PollOutcome
from .platforms import select_platforms
from .runner import PlatformRunner, run_suite
from .tunnel import SauceTunnel

__all__ = [
    "RunConfig",
    "Job",
    "advance",
    "JobResult",
    "JobState",
    "Platform",
    "PollOutcome",
    "select_platforms",
    "PlatformRunner",
    "run_suite",
    "SauceTunnel",
]
