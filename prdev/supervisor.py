"""Run phase: start core, UI backend and UI frontend and keep them supervised.

Services are started in order with a fixed settle delay between them; there is
no readiness polling. On SIGINT/SIGTERM/SIGHUP, or when the launcher exits for
any other reason, every tracked process group is terminated, waited for, and
killed if it does not go away within the shutdown timeout. Services that exit
on their own are reported and never restarted.
"""

import asyncio
import logging
import os
import platform
import signal
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Dict, List, Optional, TextIO

from prdev.config import Settings
from prdev.console import Color
from prdev.shell import CommandError

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name) for name in ('SIGINT', 'SIGTERM', 'SIGHUP') if hasattr(signal, name)
)
STREAM_DRAIN_TIMEOUT = 1.0  # seconds


# ============================================================================
# Service records
# ============================================================================

@dataclass
class ServiceSpec:
    """One supervised process: what to run, where, and its live handle."""

    name: str
    command: List[str]
    cwd: Path
    env: Dict[str, str] = field(default_factory=dict)
    process: Optional[asyncio.subprocess.Process] = None

    @property
    def running(self) -> bool:
        return self.process is not None and self.process.returncode is None


def build_services(settings: Settings, root: Path) -> List[ServiceSpec]:
    """Core, UI backend and UI frontend, in start order."""
    kubeconfig = str(settings.kubeconfig.expanduser())
    return [
        ServiceSpec(
            name='core',
            command=[
                'go', 'run', 'main.go', 'run',
                '--kubeconfig', kubeconfig,
                '--port', str(settings.core_port),
                '--rest-enabled',
                '--metrics-enabled',
                '--dbfile', ':memory:',
            ],
            cwd=(root / settings.core_path).resolve(),
        ),
        ServiceSpec(
            name='backend',
            command=['go', 'run', 'main.go', 'run', '--port', str(settings.ui_backend_port)],
            cwd=(root / settings.backend_dir).resolve(),
        ),
        ServiceSpec(
            name='frontend',
            command=['bun', 'run', 'dev'],
            cwd=(root / settings.frontend_dir).resolve(),
            env={'PORT': str(settings.ui_frontend_port)},
        ),
    ]


# ============================================================================
# LogMultiplexer
# ============================================================================

class LogMultiplexer:
    """Writes the output of every service to one stream, one prefixed line at a time."""

    SERVICE_COLORS = {
        'system': Color.WHITE + Color.BOLD,
        'core': Color.CYAN,
        'backend': Color.BLUE,
        'frontend': Color.MAGENTA,
    }
    LEVEL_COLORS = {
        'error': Color.RED,
        'warning': Color.YELLOW,
        'success': Color.GREEN,
    }

    def __init__(self, color_enabled: bool = True, stream: Optional[TextIO] = None):
        self.color_enabled = color_enabled
        self.stream = stream if stream is not None else sys.stdout
        self.lock = asyncio.Lock()

    def _colorize(self, text: str, color: Optional[str]) -> str:
        if not self.color_enabled or not color:
            return text
        return f"{color}{text}{Color.RESET}"

    async def pump(self, service: str, reader: asyncio.StreamReader):
        """Copy a child's pipe into the log until EOF.

        The pipe must be drained to the end: a child blocks as soon as its
        pipe buffer is full. A line longer than the reader's limit is
        discarded by ``readline`` and replaced with a notice.
        """
        while True:
            try:
                line = await reader.readline()
            except ValueError:
                await self.warning(service, "(overlong output line dropped)")
                continue
            if not line:
                return
            message = line.decode('utf-8', errors='replace').rstrip()
            if message:
                await self.log(service, message)

    async def log(self, service: str, message: str, level: str = 'info'):
        prefix = self._colorize(f"[{service}]", self.SERVICE_COLORS.get(service, Color.WHITE))
        text = self._colorize(message, self.LEVEL_COLORS.get(level))
        async with self.lock:
            print(f"{prefix} {text}", file=self.stream, flush=True)

    async def info(self, service: str, message: str):
        await self.log(service, message)

    async def success(self, service: str, message: str):
        await self.log(service, message, 'success')

    async def warning(self, service: str, message: str):
        await self.log(service, message, 'warning')

    async def error(self, service: str, message: str):
        await self.log(service, message, 'error')


# ============================================================================
# ServiceManager
# ============================================================================

class ServiceManager:
    """Manages the lifecycle of the supervised services."""

    def __init__(
        self,
        services: List[ServiceSpec],
        logger: LogMultiplexer,
        settle_delay: float = 3.0,
        shutdown_timeout: float = 5.0,
    ):
        self.services = services
        self.logger = logger
        self.settle_delay = settle_delay
        self.shutdown_timeout = shutdown_timeout
        self.stream_tasks: List[asyncio.Task] = []
        self.failed: List[str] = []  # services that exited non-zero on their own

    async def start_all(self):
        """Start every service in order, sleeping between starts."""
        for index, service in enumerate(self.services):
            if index > 0 and self.settle_delay:
                await asyncio.sleep(self.settle_delay)
            await self.start(service)

    async def start(self, service: ServiceSpec):
        await self.logger.info(service.name, f"Starting {service.name} in {service.cwd}...")
        logger.debug("Launching %s: %s", service.name, service.command)

        env = os.environ.copy()
        env.update(service.env)
        try:
            process = await asyncio.create_subprocess_exec(
                *service.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(service.cwd),
                env=env,
                start_new_session=True,
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            raise CommandError(service.command, 127, str(e)) from e

        service.process = process

        for reader in (process.stdout, process.stderr):
            self.stream_tasks.append(asyncio.create_task(self.logger.pump(service.name, reader)))

    async def wait_for_exit(self):
        """Block until every started service has exited."""
        watchers = [self._watch(service) for service in self.services if service.process is not None]
        if watchers:
            await asyncio.gather(*watchers)

    async def _watch(self, service: ServiceSpec):
        returncode = await service.process.wait()
        if returncode == 0:
            await self.logger.info(service.name, "Exited")
        else:
            self.failed.append(service.name)
            await self.logger.error(service.name, f"Exited with code {returncode} (not restarting)")

    async def run(self, shutdown_event: asyncio.Event, on_ready=None):
        """Start everything, then wait for a shutdown signal or for all services to exit.

        Services are always stopped before this returns, including when
        starting one of them fails.
        """
        try:
            if not await self._until_shutdown(self.start_all(), shutdown_event):
                return
            if on_ready is not None:
                on_ready()
            await self._until_shutdown(self.wait_for_exit(), shutdown_event)
        finally:
            await self.stop_all()

    @staticmethod
    async def _until_shutdown(awaitable: Awaitable, shutdown_event: asyncio.Event) -> bool:
        """Await ``awaitable`` unless shutdown is requested first.

        Returns True if it completed, False if shutdown won (it is then cancelled).
        """
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(shutdown_event.wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
        if work.done():
            work.result()
            return True
        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        return False

    async def stop_all(self):
        """Terminate every service that is still running."""
        started = [service for service in self.services if service.process is not None]
        if not started:
            return

        await self.logger.info('system', "Stopping all services...")

        for service in started:
            await self._stop_process(service)

        # Let readers flush what the processes wrote before exiting
        if self.stream_tasks:
            _, pending = await asyncio.wait(self.stream_tasks, timeout=STREAM_DRAIN_TIMEOUT)
            for task in pending:
                task.cancel()
            await asyncio.gather(*self.stream_tasks, return_exceptions=True)
        self.stream_tasks = []

        await self.logger.success('system', "Shutdown complete")

    async def _stop_process(self, service: ServiceSpec):
        """Stop a process and its entire process group."""
        process = service.process
        if process.returncode is not None:
            return

        await self.logger.info(service.name, "Stopping...")

        self._signal_group(process, signal.SIGTERM)
        try:
            await asyncio.wait_for(process.wait(), timeout=self.shutdown_timeout)
            await self.logger.success(service.name, "Stopped")
        except asyncio.TimeoutError:
            await self.logger.warning(service.name, "Force killing...")
            self._signal_group(process, signal.SIGKILL)
            await process.wait()
            await self.logger.success(service.name, "Killed")

    @staticmethod
    def _signal_group(process: asyncio.subprocess.Process, sig: int):
        """Signal the child's whole process group (``go run`` and ``bun`` fork)."""
        try:
            if platform.system() != 'Windows':
                os.killpg(process.pid, sig)
                return
        except ProcessLookupError:
            return
        except (PermissionError, OSError):
            pass

        try:
            if sig == signal.SIGTERM:
                process.terminate()
            else:
                process.kill()
        except ProcessLookupError:
            pass


# ============================================================================
# SignalHandler
# ============================================================================

class SignalHandler:
    """Turns SIGINT/SIGTERM/SIGHUP into a shutdown event."""

    def __init__(self):
        self.shutdown_event = asyncio.Event()
        self._installed: List[int] = []

    def setup(self):
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
                self._installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # Windows event loops do not support add_signal_handler
                logger.debug("Cannot install handler for %s", sig)

    def _handle_signal(self, signum):
        logger.debug("Received signal %s", signum)
        self.shutdown_event.set()

    def teardown(self):
        loop = asyncio.get_running_loop()
        for sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed = []


# ============================================================================
# Banner
# ============================================================================

def print_ready_banner(settings: Settings, color_enabled: bool = True, stream: Optional[TextIO] = None):
    """Print ready banner with service URLs."""
    def colorize(text: str, color: str) -> str:
        if not color_enabled:
            return text
        return f"{color}{text}{Color.RESET}"

    out = stream if stream is not None else sys.stdout
    backend = f"http://localhost:{settings.ui_backend_port}"
    proxy = f"{backend}/proxy/{settings.proxy_cluster}/core/v2"

    lines = [
        '',
        colorize('=' * 60, Color.GREEN),
        colorize('  🚀 Policy Reporter UI Development Environment Ready!', Color.GREEN + Color.BOLD),
        colorize('=' * 60, Color.GREEN),
        f"  {colorize('Frontend:', Color.BOLD)}  http://localhost:{settings.ui_frontend_port}",
        f"  {colorize('Backend:', Color.BOLD)}   {backend}/healthz",
        f"  {colorize('Core API:', Color.BOLD)}  http://localhost:{settings.core_port}/healthz",
        '',
        f"  {colorize('Test API endpoints:', Color.BOLD)}",
        f"  curl {proxy}/namespaces",
        f"  curl {proxy}/policies",
        '',
        f"  {colorize('Press Ctrl+C to stop all services', Color.GRAY)}",
        colorize('=' * 60, Color.GREEN),
        '',
    ]
    print('\n'.join(lines), file=out, flush=True)
