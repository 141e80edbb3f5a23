"""Prerequisite and working-directory checks run before setup."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from prdev.config import Settings
from prdev.console import Color, Console

logger = logging.getLogger(__name__)

DOCKER_INFO_TIMEOUT = 10  # seconds


class CheckError(Exception):
    """Critical check failure that prevents setup."""
    pass


class CheckWarning(Exception):
    """Non-critical check failure that allows setup with warning."""
    pass


class PrerequisiteChecker:
    """Validates the environment before the cluster is touched."""

    def __init__(self, settings: Settings, console: Console, root: Optional[Path] = None):
        self.settings = settings
        self.console = console
        self.root = root if root is not None else Path.cwd()
        self.errors: List[Tuple[str, str]] = []
        self.warnings: List[Tuple[str, str]] = []

    def check_all(self) -> bool:
        """Run every check. Returns True if no critical check failed."""
        checks = [
            ("Required tools", self.check_binaries),
            ("Project directory", self.check_directory),
            ("Policy Reporter Core", self.check_core_checkout),
            ("Docker daemon", self.check_docker_daemon),
        ]

        self.console.info("Checking prerequisites...")
        for name, check_func in checks:
            try:
                check_func()
            except CheckError as e:
                self.errors.append((name, str(e)))
            except CheckWarning as e:
                self.warnings.append((name, str(e)))

        return len(self.errors) == 0

    def missing_binaries(self) -> List[str]:
        """Return the required binaries that are not on PATH, in order."""
        return [name for name in self.settings.required_binaries if shutil.which(name) is None]

    def check_binaries(self):
        missing = self.missing_binaries()
        if missing:
            raise CheckError(
                f"Missing required tools: {' '.join(missing)}\n"
                f"    Fix: Install the missing tools and run the setup again"
            )
        self.console.success("All prerequisites are installed")

    def check_directory(self):
        """The launcher must run from the policy-reporter-ui root."""
        backend = self.root / self.settings.backend_dir
        frontend = self.root / self.settings.frontend_dir
        if not backend.is_dir() or not frontend.is_dir():
            raise CheckError(
                "Please run this from the policy-reporter-ui root directory\n"
                f"    Expected structure: policy-reporter-ui/{{{self.settings.backend_dir},{self.settings.frontend_dir}}}"
            )
        self.console.success("Running from correct directory")

    def check_core_checkout(self):
        core_path = self.root / self.settings.core_path
        if not core_path.is_dir():
            raise CheckError(
                f"Policy Reporter Core not found at {self.settings.core_path}\n"
                f"    Fix: git clone {self.settings.core_repo_url} {self.settings.core_path}"
            )
        self.console.success("Policy Reporter Core found")

    def check_docker_daemon(self):
        """k3d needs a running Docker daemon, not just the CLI (warning only)."""
        if shutil.which('docker') is None:
            # Already reported by check_binaries
            return
        try:
            result = subprocess.run(
                ['docker', 'info'],
                capture_output=True,
                timeout=DOCKER_INFO_TIMEOUT,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug("docker info failed: %s", e)
            raise CheckWarning(
                "Could not query the Docker daemon\n"
                "    Note: k3d cluster creation will fail if Docker is not running"
            )
        if result.returncode != 0:
            raise CheckWarning(
                "Docker daemon is not running\n"
                "    Fix: Start Docker Desktop or run: sudo systemctl start docker"
            )

    def print_results(self):
        """Print check results with colored output."""
        if self.errors:
            for name, error in self.errors:
                self.console.error(error)
            self.console.info("Please fix the issues above and run the setup again")

        if self.warnings:
            for name, warning in self.warnings:
                self.console.warning(warning)

        if not self.errors and not self.warnings:
            self.console.line(self.console.colorize('✅ All checks passed', Color.GREEN + Color.BOLD))
        elif not self.errors:
            self.console.line(self.console.colorize('✅ All critical checks passed', Color.GREEN + Color.BOLD))
