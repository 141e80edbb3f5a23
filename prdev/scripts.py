"""Shell wrappers so ``./start-dev-services.sh`` and ``./test-environment.sh`` keep working."""

import logging
import shlex
import sys
from pathlib import Path
from typing import List

from prdev.config_writer import atomic_write
from prdev.console import Console

logger = logging.getLogger(__name__)

# Directory holding the prdev package; works for a checkout run via run.py
# as well as an installed distribution.
PACKAGE_PARENT = Path(__file__).resolve().parent.parent

WRAPPER_SCRIPTS = {
    'start-dev-services.sh': ('start', 'Start all development services for Policy Reporter UI'),
    'test-environment.sh': ('verify', 'Test the Policy Reporter UI development environment'),
}

WRAPPER_TEMPLATE = """#!/bin/bash

# {description}
# Generated by prdev setup; re-running setup regenerates this file.

export PYTHONPATH={pythonpath}${{PYTHONPATH:+:$PYTHONPATH}}
exec {python} -m prdev {subcommand} "$@"
"""


def render_wrapper(
    subcommand: str,
    description: str,
    python: str = sys.executable,
    package_parent: Path = PACKAGE_PARENT,
) -> str:
    return WRAPPER_TEMPLATE.format(
        description=description,
        pythonpath=shlex.quote(str(package_parent)),
        python=shlex.quote(python),
        subcommand=subcommand,
    )


def write_wrapper_scripts(root: Path, console: Console) -> List[Path]:
    """(Re)generate the wrapper scripts in ``root`` and mark them executable."""
    written = []
    for filename, (subcommand, description) in WRAPPER_SCRIPTS.items():
        path = root / filename
        atomic_write(path, render_wrapper(subcommand, description))
        path.chmod(0o755)
        logger.debug("Wrote %s", path)
        console.success(f"Script created: {filename}")
        written.append(path)
    return written
