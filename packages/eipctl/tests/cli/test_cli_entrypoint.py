from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest

SRC = Path(__file__).resolve().parents[2] / "src"


@pytest.mark.integration
def test_python_module_entrypoint_works_outside_git(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC)
    env.pop("CI", None)
    proc = subprocess.run(
        [sys.executable, "-m", "eipctl", "version"],
        cwd=tmp_path,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
    assert proc.returncode == 0
    assert proc.stdout.startswith("eipctl 0.1.0+")


@pytest.mark.integration
def test_help_lists_every_command(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(SRC)
    proc = subprocess.run(
        [sys.executable, "-m", "eipctl", "--help"],
        cwd=tmp_path,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
    assert proc.returncode == 0
    for name in ("version", "jobs", "run", "check", "corpus", "handoff", "allowlist", "site", "config"):
        assert name in proc.stdout
