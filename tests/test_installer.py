"""Tests for DependencyInstaller. No real go/bun runs."""

import pytest

from prdev.installer import DependencyInstaller
from prdev.shell import CommandError


def test_installs_backend_then_frontend(settings, console, project_root, commands):
    DependencyInstaller(settings, console, project_root).install_all()

    assert commands.calls == [["go", "mod", "download"], ["bun", "install"]]
    assert commands.kwargs[0]["cwd"] == str(project_root / "backend")
    assert commands.kwargs[1]["cwd"] == str(project_root / "frontend")


def test_go_failure_stops_before_bun(settings, console, project_root, commands):
    commands.respond(["go", "mod", "download"], returncode=1)
    with pytest.raises(CommandError) as exc_info:
        DependencyInstaller(settings, console, project_root).install_all()

    assert exc_info.value.returncode == 1
    assert commands.commands_starting_with("bun") == []
