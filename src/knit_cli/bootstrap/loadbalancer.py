"""Wait for the ingress load balancer to get an external hostname."""

from __future__ import annotations

import time
from typing import Callable

from ..shared.logging import get_logger
from .runner import ProcessRunner

logger = get_logger(__name__)

HOSTNAME_JSONPATH = "jsonpath={.status.loadBalancer.ingress[0].hostname}"


def clean_hostname(raw: str) -> str:
    """Strip quoting artifacts and whitespace from a jsonpath result."""
    return raw.replace("'", "").replace('"', "").strip()


class AddressResolver:
    """Poll a LoadBalancer service until it reports an external hostname.

    Polls forever at a fixed interval. If the load balancer never comes up
    the operator has to abort the run.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        interval_seconds: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
        is_present: Callable[[str], bool] = bool,
    ):
        """Initialize resolver.

        Args:
            runner: Runner used for kubectl queries.
            interval_seconds: Seconds between queries.
            sleep: Sleep function (replaced in tests).
            is_present: Predicate deciding whether a cleaned value is an address.
        """
        self.runner = runner
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self.is_present = is_present

    def query(self, service: str) -> str:
        """Fetch the service's current hostname (may be empty)."""
        raw = self.runner.check("kubectl", "get", "svc", service, "-o", HOSTNAME_JSONPATH)
        return clean_hostname(raw)

    def resolve(self, service: str) -> str:
        """Block until the service has an external hostname and return it."""
        hostname = self.query(service)
        while not self.is_present(hostname):
            logger.info(
                "No external host name yet, waiting",
                service=service,
                interval_seconds=self.interval_seconds,
            )
            self.sleep(self.interval_seconds)
            hostname = self.query(service)
        logger.info("External host name found", service=service, hostname=hostname)
        return hostname
