"""Installation steps for a fresh EKS cluster.

Each step is a short sequence of checked kubectl/helm calls. Steps must be
safe to run again against a cluster where they already (partially) ran:
manifests go through `kubectl apply` and charts through
`helm upgrade --install`, both of which converge instead of failing on
existing resources.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..shared.logging import get_logger
from .manifests import (
    CERT_MANAGER_CHART_VERSION,
    CERT_MANAGER_CRDS_URL,
    FLUX_VERSION,
    JETSTACK_REPO_URL,
    SEALED_SECRETS_CONTROLLER_URL,
    build_flux_deployment,
    build_issuer,
    build_tiller_role_binding,
    build_tiller_service_account,
    flux_manifest_url,
    to_yaml,
)
from .runner import ProcessRunner

if TYPE_CHECKING:
    from .secrets import SecretSynchronizer, SyncOutcome

logger = get_logger(__name__)

INGRESS_RELEASE = "default"
INGRESS_CHART = "stable/nginx-ingress"
INGRESS_SERVICE = f"{INGRESS_RELEASE}-nginx-ingress-controller"


def apply_documents(runner: ProcessRunner, documents: list[dict]) -> str:
    """Pipe documents to `kubectl apply -f -`."""
    return runner.check_with_input(to_yaml(documents), "kubectl", "apply", "-f", "-")


def apply_url(runner: ProcessRunner, url: str) -> str:
    return runner.check("kubectl", "apply", "-f", url)


def install_tiller(runner: ProcessRunner) -> None:
    """Create Tiller's service account and admin binding, then init helm."""
    apply_documents(runner, build_tiller_service_account())
    apply_documents(runner, build_tiller_role_binding())
    runner.check("helm", "init", "--service-account=tiller")
    runner.check("helm", "repo", "update")


def install_ingress(runner: ProcessRunner) -> None:
    """Install nginx-ingress.

    The load balancer address is resolved and published separately.
    """
    runner.check("helm", "upgrade", "--install", INGRESS_RELEASE, INGRESS_CHART)


def install_cert_manager(runner: ProcessRunner) -> None:
    """Install jetstack cert-manager into the cert-manager namespace."""
    apply_url(runner, CERT_MANAGER_CRDS_URL)
    runner.check("helm", "repo", "add", "jetstack", JETSTACK_REPO_URL)
    runner.check("helm", "repo", "update")
    runner.check(
        "helm",
        "upgrade",
        "--install",
        "cert-manager",
        "jetstack/cert-manager",
        "--namespace",
        "cert-manager",
        "--version",
        CERT_MANAGER_CHART_VERSION,
    )


def install_issuer(runner: ProcessRunner, email: str) -> None:
    """Install the Let's Encrypt issuer certificates are requested from."""
    apply_documents(runner, build_issuer(email))


def install_flux(runner: ProcessRunner, git_repo: str, version: str = FLUX_VERSION) -> None:
    """Install Flux, which deploys whatever is committed to git_repo."""
    apply_url(runner, flux_manifest_url("flux-account.yaml", version))
    apply_documents(runner, build_flux_deployment(git_repo, version))
    for name in ("flux-secret.yaml", "memcache-dep.yaml", "memcache-svc.yaml"):
        apply_url(runner, flux_manifest_url(name, version))
    logger.info("Flux installed", git_repo=git_repo, version=version)


def install_sealed_secrets(
    runner: ProcessRunner,
    synchronizer: SecretSynchronizer,
) -> SyncOutcome:
    """Install the sealed-secrets controller and reconcile its master key."""
    apply_url(runner, SEALED_SECRETS_CONTROLLER_URL)
    return synchronizer.sync()
