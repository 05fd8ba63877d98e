"""Bootstrap orchestration.

Runs the installation stages in their fixed dependency order with a short
settling delay in between. The orchestrator is the only place that catches
KnitError: the first failing stage ends the run, and whatever earlier stages
applied stays applied.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from ..config import BootstrapParams
from ..errors import KnitError
from ..shared.logging import get_logger
from . import steps
from .dns import ChangeStatus, DNSPublisher
from .loadbalancer import AddressResolver
from .runner import ProcessRunner
from .secrets import SecretSynchronizer, SyncOutcome

logger = get_logger(__name__)

DEFAULT_SETTLE_SECONDS = 1.0

# Stage names and summaries, in execution order
STAGES = (
    ("tiller", "Tiller service account, cluster-admin binding, helm init"),
    ("nginx-ingress", "nginx-ingress chart"),
    ("ingress-dns", "wait for the load balancer hostname, upsert Route 53 CNAME"),
    ("cert-manager", "cert-manager CRDs and chart"),
    ("letsencrypt-issuer", "Let's Encrypt issuer"),
    ("flux", "Flux account, deployment, secret and memcached"),
    ("sealed-secrets", "sealed-secrets controller, master key archive/restore"),
)


@dataclass
class BootstrapResult:
    """Result of a bootstrap run."""

    success: bool
    completed: list[str] = field(default_factory=list)
    failed_stage: str | None = None
    error: KnitError | None = None
    hostname: str | None = None
    dns_change: ChangeStatus | None = None
    sync: SyncOutcome | None = None


class BootstrapOrchestrator:
    """Run every bootstrap stage in order."""

    def __init__(
        self,
        params: BootstrapParams,
        runner: ProcessRunner,
        resolver: AddressResolver,
        publisher: DNSPublisher,
        synchronizer: SecretSynchronizer,
        sleep: Callable[[float], None] = time.sleep,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
    ):
        self.params = params
        self.runner = runner
        self.resolver = resolver
        self.publisher = publisher
        self.synchronizer = synchronizer
        self.sleep = sleep
        self.settle_seconds = settle_seconds

    @property
    def stages(self) -> list[tuple[str, Callable[[BootstrapResult], None]]]:
        """Ordered (name, callable) pairs."""
        handlers = [
            self._tiller,
            self._ingress,
            self._ingress_dns,
            self._cert_manager,
            self._issuer,
            self._flux,
            self._sealed_secrets,
        ]
        return [(name, handler) for (name, _), handler in zip(STAGES, handlers)]

    def run(self) -> BootstrapResult:
        """Execute all stages, stopping at the first failure."""
        result = BootstrapResult(success=False)
        stages = self.stages
        logger.info("Setting up cluster", dns_name=self.params.dns_name, stages=len(stages))

        for index, (name, stage) in enumerate(stages):
            if index > 0:
                self.sleep(self.settle_seconds)
            logger.info("Starting stage", stage=name, step=f"{index + 1}/{len(stages)}")
            try:
                stage(result)
            except KnitError as e:
                logger.error("Stage failed", stage=name, error=str(e))
                result.failed_stage = name
                result.error = e
                return result
            result.completed.append(name)

        result.success = True
        logger.info("Cluster bootstrap complete", completed=len(result.completed))
        return result

    def _tiller(self, result: BootstrapResult) -> None:
        steps.install_tiller(self.runner)

    def _ingress(self, result: BootstrapResult) -> None:
        steps.install_ingress(self.runner)

    def _ingress_dns(self, result: BootstrapResult) -> None:
        result.hostname = self.resolver.resolve(steps.INGRESS_SERVICE)
        result.dns_change = self.publisher.publish(
            self.params.dns_name,
            self.params.hosted_zone,
            result.hostname,
        )

    def _cert_manager(self, result: BootstrapResult) -> None:
        steps.install_cert_manager(self.runner)

    def _issuer(self, result: BootstrapResult) -> None:
        steps.install_issuer(self.runner, self.params.email)

    def _flux(self, result: BootstrapResult) -> None:
        steps.install_flux(self.runner, self.params.git_repo)

    def _sealed_secrets(self, result: BootstrapResult) -> None:
        result.sync = steps.install_sealed_secrets(self.runner, self.synchronizer)
