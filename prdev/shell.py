"""One-shot external command execution."""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

TIMEOUT_RETURNCODE = 124  # same code coreutils ``timeout`` uses


class CommandError(Exception):
    """An external command exited non-zero, could not be started, or timed out."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ''):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed ({returncode}): {shlex.join(cmd)}"
        if stderr.strip():
            message += f"\n    {stderr.strip()}"
        super().__init__(message)


def run_command(
    cmd: List[str],
    cwd: Optional[Union[str, Path]] = None,
    input_text: Optional[str] = None,
    capture: bool = False,
    check: bool = True,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """Run a command to completion.

    With ``check`` (the default) a non-zero exit raises CommandError, which is
    how every setup step stops on the first failure. A missing executable is
    reported the same way with return code 127, and an expired ``timeout``
    with 124. No timeout is applied unless one is given; dependency
    downloads and cluster creation take as long as they take.
    """
    logger.debug("Running %s (cwd=%s)", shlex.join(cmd), cwd or '.')
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            input=input_text,
            capture_output=capture,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise CommandError(cmd, 127, str(e)) from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(cmd, TIMEOUT_RETURNCODE, f"timed out after {e.timeout}s") from e

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stderr if capture else '')
    return result
