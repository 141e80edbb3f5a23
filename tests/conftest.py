"""Shared fixtures for launcher tests.

Provides isolated settings, a capturing console, a fake policy-reporter-ui
checkout on disk, and a subprocess.run mock that records every command.
"""

import io
import sys
from pathlib import Path
from typing import Callable, List, Optional
from unittest.mock import MagicMock, patch

import pytest

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from prdev.config import Settings
from prdev.console import Console


def make_result(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    """Create a mock subprocess.CompletedProcess."""
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


@pytest.fixture
def settings():
    """Default settings, ignoring any .env file in the working directory."""
    return Settings(_env_file=None)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def console(output):
    """Console with color disabled that writes into ``output``."""
    return Console(color_enabled=False, stream=output)


@pytest.fixture
def project_root(tmp_path) -> Path:
    """tmp/policy-reporter-ui/{backend,frontend} next to tmp/policy-reporter."""
    root = tmp_path / "policy-reporter-ui"
    (root / "backend").mkdir(parents=True)
    (root / "frontend").mkdir()
    (tmp_path / "policy-reporter").mkdir()
    return root


class CommandRecorder:
    """Stands in for subprocess.run and remembers every command line.

    ``responses`` maps a command prefix (tuple) to a result; the longest
    matching prefix wins, everything else succeeds with empty output.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []
        self.responses = {}
        self.errors = {}

    def respond(self, prefix, returncode: int = 0, stdout: str = "", stderr: str = ""):
        self.responses[tuple(prefix)] = make_result(returncode, stdout, stderr)

    def raise_on(self, prefix, error: BaseException):
        self.errors[tuple(prefix)] = error

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        self.kwargs.append(kwargs)
        for prefix, error in self.errors.items():
            if tuple(cmd[:len(prefix)]) == prefix:
                raise error
        best: Optional[tuple] = None
        for prefix in self.responses:
            if tuple(cmd[:len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        if best is not None:
            return self.responses[best]
        return make_result()

    def commands_starting_with(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[:len(prefix)]) == prefix]


@pytest.fixture
def commands():
    """Patch prdev.shell's subprocess.run with a CommandRecorder."""
    recorder = CommandRecorder()
    with patch("prdev.shell.subprocess.run", side_effect=recorder):
        yield recorder


@pytest.fixture
def which_factory() -> Callable:
    """Build a shutil.which replacement where ``missing`` binaries are absent."""
    def _factory(missing=()):
        missing = set(missing)

        def _which(name):
            return None if name in missing else f"/usr/local/bin/{name}"
        return _which
    return _factory
