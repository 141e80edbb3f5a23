"""Colored terminal output for the launcher phases."""

import logging
import sys
from typing import Optional, TextIO


# ANSI color codes
class Color:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'
    GRAY = '\033[90m'


LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = 'warning', verbose: bool = False):
    """Configure root logging; --verbose forces DEBUG."""
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, stream=sys.stderr)


class Console:
    """Tagged, colored status lines: [INFO], [SUCCESS], [WARNING], [ERROR]."""

    def __init__(self, color_enabled: bool = True, stream: Optional[TextIO] = None):
        self.color_enabled = color_enabled
        self.stream = stream if stream is not None else sys.stdout

    def colorize(self, text: str, color: str) -> str:
        """Apply color to text if colors are enabled."""
        if not self.color_enabled:
            return text
        return f"{color}{text}{Color.RESET}"

    def _emit(self, tag: str, color: str, message: str):
        print(f"{self.colorize(f'[{tag}]', color)} {message}", file=self.stream, flush=True)

    def info(self, message: str):
        self._emit('INFO', Color.BLUE, message)

    def success(self, message: str):
        self._emit('SUCCESS', Color.GREEN, message)

    def warning(self, message: str):
        self._emit('WARNING', Color.YELLOW, message)

    def error(self, message: str):
        self._emit('ERROR', Color.RED, message)

    def line(self, message: str = ''):
        """Print an untagged line."""
        print(message, file=self.stream, flush=True)

    def confirm(self, prompt: str, default: bool = False) -> bool:
        """Ask a yes/no question.

        Non-interactive stdin (CI, pipes) returns the default without prompting.
        """
        if not sys.stdin.isatty():
            answer = 'y' if default else 'n'
            self.line(self.colorize(f"{prompt} ({answer}: non-interactive mode)", Color.GRAY))
            return default
        try:
            answer = input(f"{prompt} (y/n): ").strip().lower()
        except EOFError:
            return default
        return answer in ('y', 'yes')
