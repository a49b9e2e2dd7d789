from __future__ import annotations

import os
import stat
import sys
import tempfile
from pathlib import Path

import pytest

from sauceci.tunnel import SauceTunnel
from sauceci.ui.console import Console

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as Sauce Connect")


def fake_sc(tmp_path: Path, body: str) -> str:
    script = tmp_path / "sc"
    script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


READY = """
while [ $# -gt 0 ]; do
  if [ "$1" = "--readyfile" ]; then touch "$2"; fi
  shift
done
exec sleep 30
"""


@pytest.fixture
def scratch(tmp_path, monkeypatch) -> Path:
    """Private temp root, so leftover tunnel work dirs can be seen."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


def test_untunneled_is_a_no_op(console) -> None:
    tunnel = SauceTunnel("user", "key", "t1", tunneled=False, binary="/does/not/exist", console=console)
    assert tunnel.start() is True
    tunnel.stop()
    assert tunnel.process is None


def test_start_waits_for_readyfile_and_stop_terminates(tmp_path, scratch, console) -> None:
    tunnel = SauceTunnel("user", "key", "t1", timeout=10, binary=fake_sc(tmp_path, READY), poll_interval=0.05, console=console)

    assert tunnel.start() is True
    process = tunnel.process
    assert tunnel.readyfile.parent.parent == scratch
    assert process.poll() is None
    assert "-i" in tunnel.command() and "t1" in tunnel.command()

    tunnel.stop()
    assert process.poll() is not None
    assert list(scratch.iterdir()) == []


EXIT_WITH_LOG = """
while [ $# -gt 0 ]; do
  if [ "$1" = "--logfile" ]; then echo "bad credentials" > "$2"; fi
  shift
done
exit 1
"""


def test_early_exit_is_failure_and_cleans_up(tmp_path, scratch, capsys) -> None:
    console = Console(debug=True)
    tunnel = SauceTunnel("user", "bad-key", "t1", timeout=10, binary=fake_sc(tmp_path, EXIT_WITH_LOG), poll_interval=0.05, console=console)

    assert tunnel.start() is False
    assert list(scratch.iterdir()) == []
    err = capsys.readouterr().err
    assert "exited with code 1" in err
    assert "sc: bad credentials" in err
    tunnel.stop()


def test_timeout_is_failure_and_kills_process(tmp_path, scratch, console) -> None:
    tunnel = SauceTunnel("user", "key", "t1", timeout=0.3, binary=fake_sc(tmp_path, "exec sleep 30\n"), poll_interval=0.05, console=console)
    assert tunnel.start() is False
    assert tunnel.process.poll() is not None
    assert list(scratch.iterdir()) == []
    tunnel.stop()


def test_missing_binary_is_failure(tmp_path, scratch, console, capsys) -> None:
    tunnel = SauceTunnel("user", "key", "t1", binary=os.fspath(tmp_path / "missing-sc"), console=console)
    assert tunnel.start() is False
    assert "Could not launch Sauce Connect" in capsys.readouterr().err
    assert list(scratch.iterdir()) == []
    tunnel.stop()
