"""Command-line entry point: ``setup``, ``start`` and ``verify``."""

import argparse
import asyncio
import logging
import sys
import traceback
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from prdev.checks import PrerequisiteChecker
from prdev.cluster import ClusterProvisioner
from prdev.config import Settings, get_settings
from prdev.config_writer import ConfigWriter
from prdev.console import Color, Console, configure_logging
from prdev.health import HealthVerifier
from prdev.installer import DependencyInstaller
from prdev.manifests import ManifestApplier
from prdev.scripts import write_wrapper_scripts
from prdev.shell import CommandError
from prdev.supervisor import (
    LogMultiplexer,
    ServiceManager,
    SignalHandler,
    build_services,
    print_ready_banner,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


# ============================================================================
# Setup phase
# ============================================================================

def print_setup_banner(console: Console):
    console.line(console.colorize("🚀 Policy Reporter UI Development Environment Setup", Color.BOLD))
    console.line("=" * 50)
    console.line('')


def print_next_steps(settings: Settings, console: Console):
    proxy = f"http://localhost:{settings.ui_backend_port}/proxy/{settings.proxy_cluster}/core/v2"
    console.line('')
    console.success("🎉 Development environment setup complete!")
    console.line('')
    console.line("📋 Next steps:")
    console.line("1. Start all services: ./start-dev-services.sh")
    console.line("2. Test environment: ./test-environment.sh")
    console.line(f"3. Open browser: http://localhost:{settings.ui_frontend_port}")
    console.line('')
    console.line("🔧 Development workflow:")
    console.line(f"- Edit Go code in {settings.backend_dir}/ - auto-reloads")
    console.line(f"- Edit Vue.js code in {settings.frontend_dir}/ - auto-reloads")
    console.line(f"- Test APIs via {proxy}/*")
    console.line('')
    console.line("📚 Useful commands:")
    console.line("- kubectl get policyreports -A")
    console.line("- k3d cluster list")
    console.line(f"- curl {proxy}/policies")


def run_setup(args: argparse.Namespace, settings: Settings, console: Console, root: Path) -> int:
    """Checks, cluster, CRDs, sample data, config files, dependencies, wrappers.

    Stops at the first failing step; CommandError propagates to main().
    """
    print_setup_banner(console)

    checker = PrerequisiteChecker(settings, console, root)
    checks_passed = checker.check_all()
    checker.print_results()
    if not checks_passed:
        return EXIT_FAILURE

    recreate = None
    if args.recreate_cluster:
        recreate = True
    elif args.reuse_cluster:
        recreate = False
    ClusterProvisioner(settings, console, recreate=recreate).setup()

    applier = ManifestApplier(settings, console)
    applier.install_crds()
    applier.create_sample_data()

    ConfigWriter(settings, console, root).write_all()

    if args.skip_deps:
        console.warning("Skipping dependency installation (--skip-deps)")
    else:
        DependencyInstaller(settings, console, root).install_all()

    write_wrapper_scripts(root, console)
    print_next_steps(settings, console)
    return EXIT_OK


# ============================================================================
# Run phase
# ============================================================================

async def run_start(settings: Settings, console: Console, root: Path) -> int:
    """Supervise core, backend and frontend until Ctrl+C or until they all exit."""
    ClusterProvisioner(settings, console).ensure_running()

    console.info("Starting development services...")
    console.info("Press Ctrl+C to stop all services")

    manager = ServiceManager(
        build_services(settings, root),
        LogMultiplexer(console.color_enabled),
        settle_delay=settings.settle_delay,
        shutdown_timeout=settings.shutdown_timeout,
    )
    signal_handler = SignalHandler()
    signal_handler.setup()
    try:
        await manager.run(
            signal_handler.shutdown_event,
            on_ready=lambda: print_ready_banner(settings, console.color_enabled),
        )
    finally:
        signal_handler.teardown()

    return EXIT_FAILURE if manager.failed else EXIT_OK


# ============================================================================
# Verify phase
# ============================================================================

async def run_verify(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    results = await HealthVerifier(settings, console).verify(show_samples=not args.no_samples)
    failed = [r for r in results if not r.passed]
    if failed and args.strict:
        return EXIT_FAILURE
    return EXIT_OK


# ============================================================================
# Argument parsing
# ============================================================================

def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog='prdev',
        description='Policy Reporter UI - Development Environment Launcher',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py setup                   # Cluster, CRDs, sample data, configs, deps
  python run.py setup --reuse-cluster   # Keep an existing cluster without asking
  python run.py start                   # Start core + UI backend + UI frontend
  python run.py verify                  # Smoke-test the running services

Run from the policy-reporter-ui root directory.
        """
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    setup = subparsers.add_parser('setup', help='Provision the cluster and prepare the sub-projects')
    cluster_group = setup.add_mutually_exclusive_group()
    cluster_group.add_argument(
        '--recreate-cluster',
        action='store_true',
        help='Delete and recreate an existing cluster without asking'
    )
    cluster_group.add_argument(
        '--reuse-cluster',
        action='store_true',
        help='Reuse an existing cluster without asking'
    )
    setup.add_argument(
        '--skip-deps',
        action='store_true',
        help='Do not run go mod download / bun install'
    )

    subparsers.add_parser('start', help='Start all development services')

    verify = subparsers.add_parser('verify', help='Test the running development environment')
    verify.add_argument(
        '--strict',
        action='store_true',
        help='Exit non-zero if any endpoint check fails'
    )
    verify.add_argument(
        '--no-samples',
        action='store_true',
        help='Do not print sample API responses'
    )

    return parser


# ============================================================================
# Main Entry Point
# ============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    color_enabled = not args.no_color and sys.stdout.isatty()
    console = Console(color_enabled)

    try:
        settings = get_settings()
    except ValidationError as e:
        console.error(f"Invalid PRDEV_* configuration:\n{e}")
        return EXIT_FAILURE

    configure_logging(settings.log_level, args.verbose)
    root = Path.cwd()

    try:
        if args.command == 'setup':
            return run_setup(args, settings, console, root)
        if args.command == 'start':
            return asyncio.run(run_start(settings, console, root))
        return asyncio.run(run_verify(args, settings, console))
    except CommandError as e:
        console.error(str(e))
        if args.verbose:
            traceback.print_exc()
        return EXIT_FAILURE
    except KeyboardInterrupt:
        console.line('')
        console.warning("Interrupted")
        return EXIT_INTERRUPTED


def run():
    sys.exit(main())
