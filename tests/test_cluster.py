"""Tests for ClusterProvisioner. All k3d/kubectl calls go through the recorder."""

import json
import subprocess

import pytest
from unittest.mock import patch

from prdev.cluster import ClusterProvisioner
from prdev.shell import CommandError


def _cluster_list(*names: str) -> str:
    return json.dumps([{"name": name, "serversRunning": 1} for name in names])


class TestCreate:

    def test_creates_single_cluster_with_fixed_ports(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list())
        created = ClusterProvisioner(settings, console).setup()

        assert created is True
        creates = commands.commands_starting_with("k3d", "cluster", "create")
        assert creates == [[
            "k3d", "cluster", "create", "policy-reporter-dev",
            "--port", "8080:30080@loadbalancer",
            "--port", "8443:30443@loadbalancer",
            "--agents", "1",
        ]]
        assert commands.commands_starting_with("k3d", "cluster", "delete") == []

    def test_switches_context_after_create(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list())
        ClusterProvisioner(settings, console).setup()
        assert commands.calls[-1] == ["kubectl", "config", "use-context", "k3d-policy-reporter-dev"]

    def test_similarly_named_cluster_does_not_count(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list("policy-reporter-dev-old"))
        assert ClusterProvisioner(settings, console).exists() is False

    def test_create_failure_is_fatal(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list())
        commands.respond(["k3d", "cluster", "create"], returncode=1)
        with pytest.raises(CommandError):
            ClusterProvisioner(settings, console).setup()
        assert commands.commands_starting_with("kubectl") == []


class TestExistingCluster:

    def test_recreate(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list("policy-reporter-dev"))
        created = ClusterProvisioner(settings, console, recreate=True).setup()

        assert created is True
        assert commands.commands_starting_with("k3d", "cluster", "delete") == [
            ["k3d", "cluster", "delete", "policy-reporter-dev"]
        ]
        assert len(commands.commands_starting_with("k3d", "cluster", "create")) == 1

    def test_reuse(self, settings, console, commands, output):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list("policy-reporter-dev"))
        created = ClusterProvisioner(settings, console, recreate=False).setup()

        assert created is False
        assert commands.commands_starting_with("k3d", "cluster", "create") == []
        assert commands.commands_starting_with("kubectl", "config", "use-context") == [
            ["kubectl", "config", "use-context", "k3d-policy-reporter-dev"]
        ]
        assert "Using existing cluster" in output.getvalue()

    @pytest.mark.parametrize("answer, deleted", [(True, 1), (False, 0)])
    def test_prompts_when_undecided(self, settings, console, commands, answer, deleted):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list("policy-reporter-dev"))
        with patch.object(console, "confirm", return_value=answer) as confirm:
            ClusterProvisioner(settings, console).setup()
            confirm.assert_called_once()
        assert len(commands.commands_starting_with("k3d", "cluster", "delete")) == deleted

    def test_non_interactive_prompt_reuses(self, settings, console, commands):
        commands.respond(["k3d", "cluster", "list"], stdout=_cluster_list("policy-reporter-dev"))
        with patch("prdev.console.sys.stdin") as stdin:
            stdin.isatty.return_value = False
            ClusterProvisioner(settings, console).setup()
        assert commands.commands_starting_with("k3d", "cluster", "delete") == []


class TestEnsureRunning:

    def test_reachable_cluster_is_left_alone(self, settings, console, commands):
        ClusterProvisioner(settings, console).ensure_running()
        assert commands.calls == [["kubectl", "cluster-info"]]

    def test_unreachable_cluster_is_started(self, settings, console, commands):
        commands.respond(["kubectl", "cluster-info"], returncode=1)
        ClusterProvisioner(settings, console).ensure_running()
        assert commands.calls[1:] == [
            ["k3d", "cluster", "start", "policy-reporter-dev"],
            ["kubectl", "config", "use-context", "k3d-policy-reporter-dev"],
        ]

    def test_hanging_cluster_info_counts_as_unreachable(self, settings, console):
        started = []

        def fake_run(cmd, **kwargs):
            if cmd[:2] == ["kubectl", "cluster-info"]:
                raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])
            started.append(cmd)
            return subprocess.CompletedProcess(cmd, 0, "", "")

        with patch("prdev.shell.subprocess.run", side_effect=fake_run):
            ClusterProvisioner(settings, console).ensure_running()

        assert started == [
            ["k3d", "cluster", "start", "policy-reporter-dev"],
            ["kubectl", "config", "use-context", "k3d-policy-reporter-dev"],
        ]


def test_custom_cluster_name(console, commands):
    from prdev.config import Settings

    settings = Settings(_env_file=None, cluster_name="ui-sandbox", cluster_agents=2)
    provisioner = ClusterProvisioner(settings, console)
    assert provisioner.create_command()[:4] == ["k3d", "cluster", "create", "ui-sandbox"]
    assert provisioner.create_command()[-2:] == ["--agents", "2"]
    assert settings.kube_context == "k3d-ui-sandbox"
