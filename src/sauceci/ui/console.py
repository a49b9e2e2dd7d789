"""Console output formatting utilities for sauceci."""

from __future__ import annotations

import json
import sys
import time
from typing import Callable, Optional

INLINE_WIDTH = 40


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        self._prev_line = ""

    # ------------------------------------------------------------------
    # Inline output
    # ------------------------------------------------------------------

    def log_inline(self, text: str) -> None:
        """
        Write `text` over the current terminal line.

        Long text is truncated so the line never wraps; whatever the previous
        inline message left behind is blanked out.
        """
        if len(text) > INLINE_WIDTH:
            text = text[: INLINE_WIDTH - 3] + "..."
        blank_line = " " * len(self._prev_line)
        self._prev_line = text
        sys.stdout.write(text + blank_line[len(text):] + "\r")
        sys.stdout.flush()

    def clear_inline(self) -> None:
        """Erase any inline message so regular output starts on a clean line."""
        if self._prev_line:
            self.log_inline("")

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------

    def print_run_started(
        self,
        build: str,
        runner_url: str,
        platform_count: int,
    ) -> None:
        """Print run start information."""
        self.clear_inline()
        print("\nRUN STARTED")
        print(f"Build: {build or '(none)'}")
        print(f"Runner: {runner_url}")
        print(f"Platforms: {platform_count}")
        print()

    def print_job_start(self, options: dict) -> None:
        """Print job submission message with the full options payload."""
        self.clear_inline()
        print(f"Starting saucelabs test: {json.dumps(options)}")

    def print_job_passed(self, platform: str) -> None:
        self.clear_inline()
        print(f"Test passed on platform: {platform}")

    def print_job_failed(self, platform: str, failures: Optional[int], message: str) -> None:
        """
        Print an exhausted-failure diagnostic.

        Args:
            platform: Platform description
            failures: Failure count reported by the framework, if any
            message: Details line (usually points at the job URL)
        """
        self.clear_inline()
        if failures:
            print(f"There was {failures} failures on {platform}. {message}", file=sys.stderr)
        else:
            print(f"Testing on {platform} failed; {message}", file=sys.stderr)

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        self.clear_inline()
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        for platform, status in results.items():
            print(f"  {platform}: {status.upper()}")

    # ------------------------------------------------------------------
    # Errors / misc
    # ------------------------------------------------------------------

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        self.clear_inline()
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        self.clear_inline()
        if self.debug:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self.clear_inline()
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self.clear_inline()
            print(f"[DEBUG] {message}", file=sys.stderr)


class Throbber:
    """
    Cosmetic "Please wait..." indicator.

    Nothing runs in the background: the indicator advances whenever the run
    blocks in `wait()`.
    """

    def __init__(
        self,
        console: Console,
        delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.console = console
        self.delay = delay
        self._sleep = sleep
        self._count = -1
        self.running = False

    def tick(self) -> None:
        self._count += 1
        self.console.log_inline("Please wait" + "." * ((self._count % 3) + 1))

    def start(self) -> None:
        self.running = True
        self.tick()

    def wait(self, seconds: float) -> None:
        """Block for `seconds`, advancing the indicator every `delay`."""
        remaining = seconds
        while remaining > 0:
            step = min(self.delay, remaining)
            self._sleep(step)
            remaining -= step
            if self.running:
                self.tick()

    def stop(self) -> None:
        self.running = False
        self.console.clear_inline()


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
