# tunnel.py
# Start/stop wrapper around the Sauce Connect binary.
# The farm's browsers reach the locally served test page through it.

from __future__ import annotations

import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from .ui.console import Console, get_console


class SauceTunnel:
    """Sauce Connect tunnel lifecycle: start() once, stop() once."""

    def __init__(
        self,
        username: str,
        access_key: str,
        tunnel_id: str,
        tunneled: bool = True,
        timeout: float = 120,
        binary: str = "sc",
        poll_interval: float = 0.5,
        console: Console | None = None,
    ):
        """
        Args:
            username: Sauce Labs user name
            access_key: Sauce Labs access key
            tunnel_id: Identifier jobs use to bind to this tunnel
            tunneled: If False, start/stop do nothing and always succeed
            timeout: Seconds to wait for the tunnel to report ready
            binary: Sauce Connect executable
            poll_interval: Seconds between readiness checks
        """
        self.username = username
        self.access_key = access_key
        self.tunnel_id = tunnel_id
        self.tunneled = tunneled
        self.timeout = timeout
        self.binary = binary
        self.poll_interval = poll_interval
        self.console = console or get_console()

        self.process: Optional[subprocess.Popen] = None
        self._work_dir: Optional[Path] = None

    @property
    def readyfile(self) -> Optional[Path]:
        return self._work_dir / "sc.ready" if self._work_dir else None

    @property
    def logfile(self) -> Optional[Path]:
        return self._work_dir / "sc.log" if self._work_dir else None

    def command(self) -> List[str]:
        return [
            self.binary,
            "-u", self.username,
            "-k", self.access_key,
            "-i", self.tunnel_id,
            "--readyfile", str(self.readyfile),
            "--logfile", str(self.logfile),
        ]

    def start(self) -> bool:
        """
        Launch Sauce Connect and block until it is ready.

        Returns:
            True once the tunnel is up; False if the binary is missing, exits
            early, or doesn't become ready within `timeout` seconds.
        """
        if not self.tunneled:
            return True

        self._work_dir = Path(tempfile.mkdtemp(prefix="sauceci-tunnel-"))
        try:
            self.process = subprocess.Popen(
                self.command(),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            self.console.print_error(
                "Could not launch Sauce Connect",
                f"{self.binary}: {e}",
                suggestion="Install Sauce Connect or pass --sc-binary with its path.",
            )
            self._remove_work_dir()
            return False

        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if self.readyfile.exists():
                return True
            if self.process.poll() is not None:
                self.console.print_debug(f"Sauce Connect exited with code {self.process.returncode}")
                self._discard_log()
                return False
            time.sleep(self.poll_interval)

        self.console.print_debug(f"Sauce Connect not ready after {self.timeout}s")
        self._terminate()
        self._discard_log()
        return False

    def stop(self) -> None:
        """Shut the tunnel down and remove its scratch files."""
        if not self.tunneled:
            return
        self._terminate()
        self._remove_work_dir()

    def _discard_log(self) -> None:
        # the work dir goes away on failure; keep the log tail in debug output
        if self.logfile is not None and self.logfile.exists():
            tail = self.logfile.read_text(encoding="utf-8", errors="replace").splitlines()[-20:]
            for line in tail:
                self.console.print_debug(f"sc: {line}")
        self._remove_work_dir()

    def _remove_work_dir(self) -> None:
        if self._work_dir is not None:
            shutil.rmtree(self._work_dir, ignore_errors=True)
            self._work_dir = None

    def _terminate(self, grace: float = 30.0) -> None:
        if self.process is None or self.process.poll() is not None:
            return
        self.process.terminate()
        try:
            self.process.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
