"""PolicyReport CRDs and sample data."""

import logging
from typing import Any, Dict

import yaml

from prdev.config import Settings
from prdev.console import Console
from prdev.shell import run_command

logger = logging.getLogger(__name__)

POLICY_REPORT_API_VERSION = 'wgpolicyk8s.io/v1alpha2'


def _sample_result(
    policy: str,
    rule: str,
    message: str,
    severity: str,
    category: str,
    pod_name: str,
) -> Dict[str, Any]:
    return {
        'policy': policy,
        'rule': rule,
        'message': message,
        'result': 'fail',
        'severity': severity,
        'category': category,
        'source': 'kyverno',
        'scored': True,
        'resources': [
            {
                'apiVersion': 'v1',
                'kind': 'Pod',
                'name': pod_name,
                'namespace': 'default',
            },
        ],
    }


def sample_policy_report() -> Dict[str, Any]:
    """A PolicyReport with three failing kyverno results in ``default``."""
    return {
        'apiVersion': POLICY_REPORT_API_VERSION,
        'kind': 'PolicyReport',
        'metadata': {
            'name': 'kyverno-sample-report',
            'namespace': 'default',
        },
        'spec': {},
        'status': {
            'results': [
                _sample_result(
                    'disallow-privileged-containers', 'check-privileged',
                    'Privileged containers are not allowed',
                    'critical', 'Security', 'nginx-privileged',
                ),
                _sample_result(
                    'require-labels', 'check-labels',
                    "Required label 'app' is missing",
                    'medium', 'Best Practices', 'unlabeled-pod',
                ),
                _sample_result(
                    'require-pod-security-standards', 'baseline',
                    'Pod does not meet baseline security standards',
                    'high', 'Pod Security Standards', 'insecure-pod',
                ),
            ],
        },
    }


class ManifestApplier:
    """Applies CRDs and sample resources with ``kubectl apply``."""

    def __init__(self, settings: Settings, console: Console):
        self.settings = settings
        self.console = console

    def install_crds(self):
        self.console.info("Installing PolicyReport CRDs...")
        for url in self.settings.crd_urls:
            run_command(['kubectl', 'apply', '-f', url])
        self.console.success("PolicyReport CRDs installed")

    def create_sample_data(self):
        self.console.info("Creating sample PolicyReport data...")
        manifest = yaml.safe_dump(sample_policy_report(), sort_keys=False)
        run_command(['kubectl', 'apply', '-f', '-'], input_text=manifest)
        self.console.success("Sample PolicyReport created")
