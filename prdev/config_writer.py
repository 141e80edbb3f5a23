"""Configuration files for the UI backend and frontend.

Files are written once. If a developer has edited or replaced one, the
launcher leaves it alone.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

import yaml

from prdev.config import Settings
from prdev.console import Console

logger = logging.getLogger(__name__)


def atomic_write(target: Path, content: str):
    """Write content via a temp file + rename so readers never see a partial file.

    The temp file is removed if either step fails.
    """
    tmp_path = target.with_suffix(target.suffix + '.tmp')
    try:
        tmp_path.write_text(content)
        tmp_path.replace(target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


@dataclass
class ConfigFile:
    label: str
    path: Path
    content: str


def render_backend_config(settings: Settings) -> str:
    """backend/config.yaml pointing the UI backend at the local core."""
    config = {
        'clusters': [
            {'name': 'Default', 'host': f"http://localhost:{settings.core_port}"},
        ],
        'server': {
            'cors': True,
            'overwriteHost': True,
        },
        'tempDir': '/tmp',
    }
    return yaml.safe_dump(config, sort_keys=False, default_flow_style=False)


def render_frontend_env(settings: Settings) -> str:
    return f"NUXT_PUBLIC_CORE_API=http://localhost:{settings.ui_backend_port}\n"


class ConfigWriter:
    """Writes the backend config and frontend .env if they are absent."""

    def __init__(self, settings: Settings, console: Console, root: Path):
        self.settings = settings
        self.console = console
        self.root = root

    def files(self) -> List[ConfigFile]:
        return [
            ConfigFile(
                'Backend config.yaml',
                self.root / self.settings.backend_dir / 'config.yaml',
                render_backend_config(self.settings),
            ),
            ConfigFile(
                'Frontend .env',
                self.root / self.settings.frontend_dir / '.env',
                render_frontend_env(self.settings),
            ),
        ]

    def write(self, config_file: ConfigFile) -> bool:
        """Write one file. Returns False if it already existed."""
        if config_file.path.exists():
            self.console.warning(f"{config_file.label} already exists")
            return False
        atomic_write(config_file.path, config_file.content)
        logger.debug("Wrote %s", config_file.path)
        self.console.success(f"{config_file.label} created")
        return True

    def write_all(self) -> List[Path]:
        """Write every absent file and return the paths that were created."""
        self.console.info("Setting up backend and frontend configuration...")
        return [f.path for f in self.files() if self.write(f)]
