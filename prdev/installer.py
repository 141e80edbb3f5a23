"""Go and Bun dependency downloads for the UI sub-projects."""

import logging
from pathlib import Path

from prdev.config import Settings
from prdev.console import Console
from prdev.shell import run_command

logger = logging.getLogger(__name__)


class DependencyInstaller:
    """Delegates dependency resolution to each ecosystem's package manager."""

    def __init__(self, settings: Settings, console: Console, root: Path):
        self.settings = settings
        self.console = console
        self.root = root

    def install_backend_deps(self):
        self.console.info("Installing Go dependencies for backend...")
        run_command(['go', 'mod', 'download'], cwd=self.root / self.settings.backend_dir)

    def install_frontend_deps(self):
        self.console.info("Installing frontend dependencies...")
        run_command(['bun', 'install'], cwd=self.root / self.settings.frontend_dir)

    def install_all(self):
        self.install_backend_deps()
        self.install_frontend_deps()
        self.console.success("Dependencies installed")
