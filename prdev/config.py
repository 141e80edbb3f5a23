"""Launcher configuration.

Every value can be overridden with a ``PRDEV_``-prefixed environment variable
or from a ``.env`` file in the working directory, e.g.
``PRDEV_CLUSTER_NAME=my-cluster`` or ``PRDEV_SETTLE_DELAY=5``.
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

CRD_BASE_URL = (
    "https://raw.githubusercontent.com/kubernetes-sigs/wg-policy-prototypes/"
    "master/policy-report/crd/v1alpha2"
)


class Settings(BaseSettings):
    """Launcher settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PRDEV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cluster
    cluster_name: str = "policy-reporter-dev"
    cluster_agents: int = Field(default=1, ge=0, le=10)
    cluster_port_mappings: List[str] = [
        "8080:30080@loadbalancer",
        "8443:30443@loadbalancer",
    ]
    crd_urls: List[str] = [
        f"{CRD_BASE_URL}/wgpolicyk8s.io_policyreports.yaml",
        f"{CRD_BASE_URL}/wgpolicyk8s.io_clusterpolicyreports.yaml",
    ]

    # Service ports
    core_port: int = Field(default=8081, ge=1, le=65535)
    ui_backend_port: int = Field(default=8082, ge=1, le=65535)
    ui_frontend_port: int = Field(default=3000, ge=1, le=65535)

    # Layout (relative to the working directory)
    backend_dir: Path = Path("backend")
    frontend_dir: Path = Path("frontend")
    core_path: Path = Path("../policy-reporter")
    core_repo_url: str = "https://github.com/kyverno/policy-reporter.git"
    kubeconfig: Path = Path("~/.kube/config")

    # Prerequisites
    required_binaries: List[str] = ["go", "bun", "k3d", "kubectl", "docker"]

    # Process supervision
    settle_delay: float = Field(default=3.0, ge=0)
    shutdown_timeout: float = Field(default=5.0, gt=0)

    # Health verification
    proxy_cluster: str = "default"
    health_request_timeout: float = Field(default=5.0, gt=0)
    health_accepted_statuses: List[int] = [200, 404]

    # Logging
    log_level: str = "warning"

    @property
    def kube_context(self) -> str:
        return f"k3d-{self.cluster_name}"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
