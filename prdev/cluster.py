"""k3d cluster provisioning."""

import json
import logging
from typing import List, Optional

from prdev.config import Settings
from prdev.console import Console
from prdev.shell import CommandError, run_command

logger = logging.getLogger(__name__)

CLUSTER_INFO_TIMEOUT = 30  # seconds; an unreachable API server can hang kubectl


class ClusterProvisioner:
    """Creates, reuses or restarts the local k3d cluster.

    ``recreate`` answers the "delete and recreate?" question up front:
    True deletes an existing cluster, False reuses it, None asks.
    """

    def __init__(self, settings: Settings, console: Console, recreate: Optional[bool] = None):
        self.settings = settings
        self.console = console
        self.recreate = recreate

    @property
    def name(self) -> str:
        return self.settings.cluster_name

    def exists(self) -> bool:
        """True if k3d reports a cluster with exactly our name."""
        result = run_command(['k3d', 'cluster', 'list', '-o', 'json'], capture=True)
        try:
            clusters = json.loads(result.stdout or '[]')
        except json.JSONDecodeError:
            logger.warning("Unparseable k3d cluster list output: %r", result.stdout[:200])
            return False
        return any(cluster.get('name') == self.name for cluster in clusters)

    def create_command(self) -> List[str]:
        cmd = ['k3d', 'cluster', 'create', self.name]
        for mapping in self.settings.cluster_port_mappings:
            cmd.extend(['--port', mapping])
        cmd.extend(['--agents', str(self.settings.cluster_agents)])
        return cmd

    def setup(self) -> bool:
        """Make sure the cluster exists and is the active context.

        Returns True if a new cluster was created, False if an existing one
        was reused.
        """
        self.console.info(f"Setting up k3d cluster: {self.name}")

        if self.exists():
            self.console.warning(f"Cluster {self.name} already exists")
            if self._should_recreate():
                self.delete()
            else:
                self.console.info("Using existing cluster")
                self.use_context()
                return False

        run_command(self.create_command())
        self.use_context()
        self.console.success("k3d cluster created and configured")
        return True

    def _should_recreate(self) -> bool:
        if self.recreate is not None:
            return self.recreate
        return self.console.confirm("Do you want to delete and recreate it?", default=False)

    def delete(self):
        self.console.info(f"Deleting cluster {self.name}...")
        run_command(['k3d', 'cluster', 'delete', self.name])

    def use_context(self):
        run_command(['kubectl', 'config', 'use-context', self.settings.kube_context])

    def is_reachable(self) -> bool:
        """True if the current kube context answers ``kubectl cluster-info``."""
        try:
            result = run_command(['kubectl', 'cluster-info'], capture=True, check=False, timeout=CLUSTER_INFO_TIMEOUT)
        except CommandError:
            return False
        return result.returncode == 0

    def ensure_running(self):
        """Start a stopped cluster before services that need the API server."""
        if self.is_reachable():
            return
        self.console.info("Starting k3d cluster...")
        run_command(['k3d', 'cluster', 'start', self.name])
        self.use_context()
