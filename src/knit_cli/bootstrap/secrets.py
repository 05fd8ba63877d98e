"""Sealed-secrets master key persistence.

The sealed-secrets controller generates a fresh RSA key pair the first time
it starts in a cluster. SealedSecret manifests in git are encrypted against
that key, so recreating the cluster would make them undecryptable. On every
bootstrap the synchronizer reconciles the in-cluster key with a copy kept in
AWS Secrets Manager:

- nothing archived yet: harvest the controller's active key and archive it
- archive present: apply the archived key into the cluster and delete the
  controller pod so its replacement loads it
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import NOT_FOUND_CODE, KeyArchiveError, map_client_error
from ..shared.logging import get_logger
from .manifests import SEALED_SECRETS_NAMESPACE, build_sealed_secrets_key, to_yaml
from .runner import ProcessRunner

logger = get_logger(__name__)

PUBLIC_KEY_ID = "sealed-secrets/master-key/public"
PRIVATE_KEY_ID = "sealed-secrets/master-key/private"

ACTIVE_KEY_SELECTOR = "sealedsecrets.bitnami.com/sealed-secrets-key=active"
CONTROLLER_POD_SELECTOR = "name=sealed-secrets-controller"


@dataclass(frozen=True)
class MasterKey:
    """Base64-encoded certificate and private key of the controller."""

    public: str
    private: str


class SyncAction(Enum):
    """Which branch a synchronizer run took."""

    ARCHIVED = "archived"  # First bootstrap: in-cluster key copied to the archive
    RESTORED = "restored"  # Archived key applied into a recreated cluster


@dataclass
class SyncOutcome:
    """Result of a synchronizer run."""

    action: SyncAction
    public_ref: str | None = None
    private_ref: str | None = None


class KeyArchive:
    """Secrets Manager entries holding the archived master key."""

    def __init__(self, client: Any):
        """Initialize archive.

        Args:
            client: boto3 secretsmanager client.
        """
        self.client = client

    def get(self, secret_id: str) -> str | None:
        """Read an archived value.

        Returns:
            The secret string, or None if the entry does not exist.

        Raises:
            CloudAPIError: For any failure other than a missing entry.
        """
        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == NOT_FOUND_CODE:
                return None
            raise map_client_error(exc, "secretsmanager", "GetSecretValue") from exc
        except BotoCoreError as exc:
            raise map_client_error(exc, "secretsmanager", "GetSecretValue") from exc
        return response["SecretString"]

    def create(self, secret_id: str, value: str) -> str:
        """Create an archive entry and return its ARN."""
        try:
            response = self.client.create_secret(Name=secret_id, SecretString=value)
        except (BotoCoreError, ClientError) as exc:
            raise map_client_error(exc, "secretsmanager", "CreateSecret") from exc
        return response["ARN"]


class ClusterKeys(Protocol):
    """Cluster-side operations the synchronizer needs."""

    def active_key(self) -> MasterKey | None:
        ...

    def apply_key(self, key: MasterKey) -> None:
        ...

    def restart_controller(self) -> None:
        ...


class KubectlClusterKeys:
    """ClusterKeys backed by label-selector kubectl calls."""

    def __init__(self, runner: ProcessRunner, namespace: str = SEALED_SECRETS_NAMESPACE):
        self.runner = runner
        self.namespace = namespace

    def _active_field(self, field: str) -> str:
        output = self.runner.check(
            "kubectl",
            "-n",
            self.namespace,
            "get",
            "secret",
            "-l",
            ACTIVE_KEY_SELECTOR,
            "-o",
            f"jsonpath={{.items[*].data.{field}}}",
            redact=True,
        )
        # items[*] prints nothing when no secret matches; keep the first key otherwise
        values = output.replace("'", "").split()
        return values[0] if values else ""

    def active_key(self) -> MasterKey | None:
        public = self._active_field("tls\\.crt")
        private = self._active_field("tls\\.key")
        if not public or not private:
            return None
        return MasterKey(public, private)

    def apply_key(self, key: MasterKey) -> None:
        document = to_yaml(build_sealed_secrets_key(key.public, key.private))
        self.runner.check_with_input(document, "kubectl", "apply", "-f", "-", redact=True)

    def restart_controller(self) -> None:
        self.runner.check(
            "kubectl",
            "delete",
            "-n",
            self.namespace,
            "pod",
            "-l",
            CONTROLLER_POD_SELECTOR,
        )


class SecretSynchronizer:
    """Reconcile the archived master key with the cluster."""

    def __init__(self, archive: KeyArchive, cluster: ClusterKeys):
        self.archive = archive
        self.cluster = cluster

    def sync(self) -> SyncOutcome:
        """Archive or restore the master key.

        Raises:
            CloudAPIError: If the archive cannot be read or written.
            KeyArchiveError: If only half of the key pair is archived, or
                there is no active key to harvest.
            CommandError: If a kubectl call fails.
        """
        public = self.archive.get(PUBLIC_KEY_ID)
        private = self.archive.get(PRIVATE_KEY_ID)

        if public is None and private is None:
            return self._harvest()
        if public is not None and private is not None:
            return self._restore(MasterKey(public, private))

        present = PUBLIC_KEY_ID if public is not None else PRIVATE_KEY_ID
        raise KeyArchiveError(
            f"Only {present} is archived; refusing to guess which half of the key pair is valid"
        )

    def _harvest(self) -> SyncOutcome:
        logger.info("Master key for sealed-secrets is not archived, archiving the active key")
        key = self.cluster.active_key()
        if key is None:
            raise KeyArchiveError(
                f"No active sealed-secrets key found in namespace {SEALED_SECRETS_NAMESPACE}"
            )

        public_arn = self.archive.create(PUBLIC_KEY_ID, key.public)
        private_arn = self.archive.create(PRIVATE_KEY_ID, key.private)
        logger.info("Archived public key", arn=public_arn)
        logger.info("Archived private key", arn=private_arn)
        return SyncOutcome(SyncAction.ARCHIVED, public_arn, private_arn)

    def _restore(self, key: MasterKey) -> SyncOutcome:
        # Whatever key the new controller generated is overwritten unconditionally
        logger.info("Restoring sealed-secrets master key from Secrets Manager")
        self.cluster.apply_key(key)
        self.cluster.restart_controller()
        return SyncOutcome(SyncAction.RESTORED, PUBLIC_KEY_ID, PRIVATE_KEY_ID)
