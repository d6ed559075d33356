"""
Wspólne fixtures testów - fałszywy proces dla kolektorów strumieniowych.
"""
import io
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Dodaj główny katalog projektu do ścieżki
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Logi testów nie trafiają do katalogu projektu
os.environ.setdefault("HERMES_LOG_DIR", tempfile.mkdtemp(prefix="hermes-test-logs-"))

from utils import subprocess_helper  # noqa: E402


class FakeProcess:
    """Zastępuje subprocess.Popen: stdout z gotowych linii, kod wyjścia z konstruktora."""

    def __init__(self, lines, returncode=0):
        self.stdout = io.BytesIO(b"".join(
            line if isinstance(line, bytes) else (line + "\n").encode("utf-8")
            for line in lines))
        self._returncode = returncode
        self.killed = False
        self.waited = False

    def poll(self):
        return -9 if self.killed else None

    def kill(self):
        self.killed = True

    def wait(self):
        self.waited = True
        return -9 if self.killed else self._returncode


class FakePopen:
    def __init__(self):
        self.commands = []
        self.processes = []
        self.lines = []
        self.returncode = 0
        self.error = None

    def __call__(self, cmd, **kwargs):
        self.commands.append(cmd)
        if self.error is not None:
            raise self.error
        process = FakeProcess(self.lines, self.returncode)
        self.processes.append(process)
        return process


@pytest.fixture
def fake_popen(monkeypatch):
    fake = FakePopen()
    monkeypatch.setattr(subprocess_helper.subprocess, "Popen", fake)
    return fake
