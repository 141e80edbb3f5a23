#!/usr/bin/env python3
"""
Policy Reporter UI - Development Environment Launcher

Bootstraps a local development stack for policy-reporter-ui: a k3d cluster with
the PolicyReport CRDs and sample data, backend/frontend configuration, and the
three services (Policy Reporter Core, UI backend, UI frontend).

Usage:
    python run.py setup                  # Cluster, CRDs, sample data, configs, deps
    python run.py setup --reuse-cluster  # Keep an existing cluster without asking
    python run.py start                  # Start core + UI backend + UI frontend
    python run.py verify                 # Smoke-test the running services

Requirements:
    - go, bun, k3d, kubectl, docker on PATH
    - ../policy-reporter checkout (https://github.com/kyverno/policy-reporter)
    - Run from the policy-reporter-ui root directory (backend/ and frontend/)

Environment Variables:
    - PRDEV_CLUSTER_NAME: Defaults to policy-reporter-dev
    - PRDEV_CORE_PORT / PRDEV_UI_BACKEND_PORT / PRDEV_UI_FRONTEND_PORT: 8081 / 8082 / 3000
    - PRDEV_SETTLE_DELAY: Seconds between service starts (default 3)
    - PRDEV_LOG_LEVEL: Diagnostic log level (default warning, --verbose for debug)
"""

from prdev.cli import run


if __name__ == '__main__':
    run()
