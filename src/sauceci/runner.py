# runner.py
from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional, Sequence

from .config import RunConfig
from .errors import TunnelStartError
from .farm.api_client import FarmClient
from .job import Job
from .model import JobResult, Platform
from .poller import StatusPoller
from .tunnel import SauceTunnel
from .ui.console import Console, Throbber, get_console


# ----------------------------------------------------------------------
# Platform runner
# ----------------------------------------------------------------------

class PlatformRunner:
    """
    Runs one Job per platform, strictly one at a time, in list order.

    Jobs are created up front and addressed by their platform's position;
    job N+1 is only submitted after job N.run() has returned.
    """

    def __init__(
        self,
        config: RunConfig,
        client: FarmClient,
        tunnel: SauceTunnel,
        console: Console | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.client = client
        self.tunnel = tunnel
        self.console = console or get_console()
        self.throbber = Throbber(self.console, sleep=sleep)
        self.poller = StatusPoller(
            client,
            interval=config.status_interval / 1000.0,
            wait=self.throbber.wait,
            console=self.console,
        )

        self.jobs: List[Job] = []
        self.results: List[JobResult] = []
        self.position = 0
        self.failed = 0

    def build_jobs(self, platforms: Sequence[Platform]) -> List[Job]:
        defaults = self.config.job_options()
        return [
            Job(
                self.client,
                self.poller,
                platform,
                defaults,
                max_retries=self.config.max_retries,
                console=self.console,
            )
            for platform in platforms
        ]

    def run(self, platforms: Sequence[Platform]) -> int:
        """
        Run every platform and shut the tunnel down afterwards.

        Returns:
            Accumulated failure flags: 0 if every platform passed, 1 if any
            platform exhausted its retries.
        """
        self.jobs = self.build_jobs(platforms)
        self.results = []
        self.failed = 0
        summary: Dict[str, str] = {}

        self.throbber.start()
        try:
            for index, job in enumerate(self.jobs):
                self.position = index
                result = job.run()
                self.results.append(result)
                self.failed |= int(result.failed)
                if result.failed:
                    summary[str(result.platform)] = "failed"
                else:
                    summary[str(result.platform)] = "passed"
                    self.console.print_job_passed(str(result.platform))
        finally:
            self.throbber.stop()

        self.console.print_results(summary)
        self.console.print_info("Shutting down Sauce Connect tunnel...")
        self.tunnel.stop()
        return self.failed


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def run_suite(
    config: RunConfig,
    platforms: Sequence[Platform],
    *,
    client: Optional[FarmClient] = None,
    tunnel: Optional[SauceTunnel] = None,
    console: Optional[Console] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Open the tunnel, then run every platform through the farm.

    The platform runner is only created once the tunnel is up.

    Returns:
        Process exit status for a completed run (see PlatformRunner.run)

    Raises:
        TunnelStartError: the tunnel did not come up
        SubmitError / StatusCheckError: fatal farm errors mid-run
    """
    console = console or get_console()
    if client is None:
        client = FarmClient(config.api_url, config.username, config.access_key)
    if tunnel is None:
        tunnel = SauceTunnel(
            config.username,
            config.access_key,
            config.tunnel_id,
            tunneled=config.tunneled,
            timeout=config.tunnel_timeout,
            binary=config.sc_binary,
            console=console,
        )

    console.print_info("Opening Sauce Connect tunnel...")
    if not tunnel.start():
        console.print_error(
            "Failed to open Sauce Connect tunnel",
            f"Tunnel {config.tunnel_id!r} did not become ready.",
            suggestion="Check your Sauce Labs credentials and network access.",
        )
        raise TunnelStartError("tunnel did not start", tunnel_id=config.tunnel_id)
    console.print_info("Sauce Connect tunnel opened")

    console.print_run_started(
        build=config.build,
        runner_url=config.runner_url,
        platform_count=len(platforms),
    )
    runner = PlatformRunner(config, client, tunnel, console=console, sleep=sleep)
    return runner.run(platforms)
