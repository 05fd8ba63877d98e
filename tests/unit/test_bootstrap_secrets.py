"""Unit tests for bootstrap secrets module."""

from __future__ import annotations

import pytest
import yaml

from knit_cli.bootstrap import (
    KeyArchive,
    KubectlClusterKeys,
    MasterKey,
    SecretSynchronizer,
    SyncAction,
)
from knit_cli.bootstrap.secrets import PRIVATE_KEY_ID, PUBLIC_KEY_ID
from knit_cli.errors import CloudAPIError, KeyArchiveError
from tests.mocks import FakeClusterKeys, RecordingRunner


class TestKeyArchive:
    """Tests for KeyArchive."""

    def test_get_missing(self, secretsmanager):
        """Test a missing entry reads as None."""
        assert KeyArchive(secretsmanager).get(PUBLIC_KEY_ID) is None

    def test_get_present(self, secretsmanager):
        """Test a present entry returns its string."""
        secretsmanager.secrets[PUBLIC_KEY_ID] = "Y2VydA=="
        assert KeyArchive(secretsmanager).get(PUBLIC_KEY_ID) == "Y2VydA=="

    def test_get_other_error(self, secretsmanager):
        """Test errors other than not-found are raised."""
        secretsmanager.get_error = "AccessDeniedException"

        with pytest.raises(CloudAPIError) as exc_info:
            KeyArchive(secretsmanager).get(PUBLIC_KEY_ID)

        assert exc_info.value.code == "AccessDeniedException"

    def test_create_returns_arn(self, secretsmanager):
        """Test create returns the new entry's ARN."""
        arn = KeyArchive(secretsmanager).create(PRIVATE_KEY_ID, "a2V5")
        assert arn.endswith(":secret:sealed-secrets/master-key/private")

    def test_create_existing(self, secretsmanager):
        """Test creating an existing entry fails."""
        secretsmanager.secrets[PRIVATE_KEY_ID] = "old"
        with pytest.raises(CloudAPIError) as exc_info:
            KeyArchive(secretsmanager).create(PRIVATE_KEY_ID, "new")
        assert exc_info.value.code == "ResourceExistsException"


class TestSecretSynchronizer:
    """Tests for SecretSynchronizer."""

    def test_empty_archive_harvests(self, secretsmanager, cluster_key):
        """Test the active key is archived when nothing is archived yet."""
        cluster = FakeClusterKeys(active=cluster_key)

        outcome = SecretSynchronizer(KeyArchive(secretsmanager), cluster).sync()

        assert outcome.action == SyncAction.ARCHIVED
        assert secretsmanager.created == [
            {"Name": PUBLIC_KEY_ID, "SecretString": cluster_key.public},
            {"Name": PRIVATE_KEY_ID, "SecretString": cluster_key.private},
        ]
        assert outcome.public_ref.endswith(PUBLIC_KEY_ID)
        assert outcome.private_ref.endswith(PRIVATE_KEY_ID)
        assert cluster.applied == []
        assert cluster.restarts == 0

    def test_second_run_restores(self, secretsmanager, cluster_key):
        """Test a recreated cluster gets the archived key back."""
        archive = KeyArchive(secretsmanager)
        SecretSynchronizer(archive, FakeClusterKeys(active=cluster_key)).sync()
        created = len(secretsmanager.created)

        # New cluster, new self-generated key
        fresh = MasterKey(public="bmV3LWNlcnQ=", private="bmV3LWtleQ==")
        cluster = FakeClusterKeys(active=fresh)
        outcome = SecretSynchronizer(archive, cluster).sync()

        assert outcome.action == SyncAction.RESTORED
        assert len(secretsmanager.created) == created
        assert cluster.applied == [cluster_key]
        assert cluster.restarts == 1
        assert cluster.active == cluster_key

    def test_store_error_aborts(self, secretsmanager, cluster_key):
        """Test an unexpected store error neither creates nor restores."""
        secretsmanager.get_error = "AccessDeniedException"
        cluster = FakeClusterKeys(active=cluster_key)

        with pytest.raises(CloudAPIError):
            SecretSynchronizer(KeyArchive(secretsmanager), cluster).sync()

        assert secretsmanager.created == []
        assert cluster.applied == []
        assert cluster.restarts == 0

    @pytest.mark.parametrize("present", [PUBLIC_KEY_ID, PRIVATE_KEY_ID])
    def test_half_archived_aborts(self, secretsmanager, cluster_key, present):
        """Test a partial archive is refused."""
        secretsmanager.secrets[present] = "only-half"
        cluster = FakeClusterKeys(active=cluster_key)

        with pytest.raises(KeyArchiveError, match=present):
            SecretSynchronizer(KeyArchive(secretsmanager), cluster).sync()

        assert secretsmanager.created == []
        assert cluster.applied == []

    def test_no_active_key(self, secretsmanager):
        """Test harvesting fails when the controller has no active key."""
        with pytest.raises(KeyArchiveError):
            SecretSynchronizer(KeyArchive(secretsmanager), FakeClusterKeys()).sync()

        assert secretsmanager.created == []


class TestKubectlClusterKeys:
    """Tests for KubectlClusterKeys."""

    def test_active_key(self):
        """Test both halves are read from the active key secret."""
        runner = RecordingRunner(
            responses={"tls\\.crt": "'Y2VydA=='", "tls\\.key": "'a2V5'"},
        )

        key = KubectlClusterKeys(runner).active_key()

        assert key == MasterKey(public="Y2VydA==", private="a2V5")
        assert runner.command_lines[0] == (
            "kubectl -n kube-system get secret "
            "-l sealedsecrets.bitnami.com/sealed-secrets-key=active "
            "-o jsonpath={.items[*].data.tls\\.crt}"
        )

    def test_active_key_missing(self, runner):
        """Test an empty selection means no active key."""
        assert KubectlClusterKeys(runner).active_key() is None

    def test_active_key_first_of_several(self):
        """Test only the first key is used when several are active."""
        runner = RecordingRunner(
            responses={"tls\\.crt": "Y2VydA== bmV3LWNlcnQ=", "tls\\.key": "a2V5 bmV3LWtleQ=="},
        )

        assert KubectlClusterKeys(runner).active_key() == MasterKey(public="Y2VydA==", private="a2V5")

    def test_apply_key(self, runner):
        """Test the key secret is piped to kubectl apply."""
        KubectlClusterKeys(runner).apply_key(MasterKey("Y2VydA==", "a2V5"))

        assert runner.command_lines == ["kubectl apply -f -"]
        doc = yaml.safe_load(runner.stdin_payloads()[0])
        assert doc["metadata"]["name"] == "sealed-secrets-key"
        assert doc["data"]["tls.key"] == "a2V5"

    def test_restart_controller(self, runner):
        """Test the controller pods are deleted by label."""
        KubectlClusterKeys(runner).restart_controller()

        assert runner.command_lines == [
            "kubectl delete -n kube-system pod -l name=sealed-secrets-controller"
        ]
