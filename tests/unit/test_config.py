"""Unit tests for bootstrap parameter loading."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from knit_cli.bootstrap import ProcessRunner
from knit_cli.config import DEFAULT_REGION, BootstrapParams, load_params
from knit_cli.errors import ConfigError

FLAGS = {
    "git_repo": "git@github.com:org/repo",
    "email": "ops@example.com",
    "dns_name": "app.example.com",
    "hosted_zone": "Z123",
}


@pytest.fixture
def config_path(tmp_path) -> Path:
    return tmp_path / "config.yaml"


class TestLoadParams:
    """Tests for load_params."""

    def test_flags_only(self, config_path):
        """Test parameters from flags with default region."""
        params = load_params(FLAGS, config_path=config_path)

        assert params.git_repo == "git@github.com:org/repo"
        assert params.hosted_zone == "Z123"
        assert params.region == DEFAULT_REGION
        assert params.kubeconfig is None
        assert params.get_source("email") == "flag"
        assert params.get_source("region") == "default"

    def test_missing_required(self, config_path):
        """Test every missing parameter is reported by flag name."""
        with pytest.raises(ConfigError) as exc_info:
            load_params({"git_repo": "git@github.com:org/repo"}, config_path=config_path)

        assert exc_info.value.missing == ["email", "dns_name", "hosted_zone"]
        assert "--hosted-zone" in str(exc_info.value)

    def test_empty_value_is_missing(self, config_path):
        """Test empty strings do not satisfy a required parameter."""
        with pytest.raises(ConfigError):
            load_params({**FLAGS, "email": ""}, config_path=config_path)

    def test_environment(self, config_path, monkeypatch):
        """Test environment variables fill in missing flags."""
        monkeypatch.setenv("KNIT_HOSTED_ZONE", "ZENV")
        monkeypatch.setenv("KNIT_REGION", "eu-west-1")

        params = load_params({**FLAGS, "hosted_zone": None}, config_path=config_path)

        assert params.hosted_zone == "ZENV"
        assert params.region == "eu-west-1"
        assert params.get_source("hosted_zone") == "environment"

    def test_config_file(self, config_path):
        """Test the config file is the lowest-precedence source."""
        config_path.write_text(yaml.dump({**FLAGS, "region": "us-west-2"}))

        params = load_params(config_path=config_path)

        assert params.dns_name == "app.example.com"
        assert params.region == "us-west-2"
        assert params.get_source("dns_name") == "config file"

    def test_precedence(self, config_path, monkeypatch):
        """Test flags beat environment beats config file."""
        config_path.write_text(yaml.dump({**FLAGS, "email": "file@example.com"}))
        monkeypatch.setenv("KNIT_EMAIL", "env@example.com")

        assert load_params(config_path=config_path).email == "env@example.com"
        params = load_params({"email": "flag@example.com"}, config_path=config_path)
        assert params.email == "flag@example.com"

    def test_kubeconfig_from_environment(self, config_path, monkeypatch):
        """Test KNIT_KUBECONFIG is picked up."""
        monkeypatch.setenv("KNIT_KUBECONFIG", "/home/ops/.kube/eks")
        params = load_params(FLAGS, config_path=config_path)

        assert params.kubeconfig == "/home/ops/.kube/eks"
        assert params.get_source("kubeconfig") == "environment"

    def test_kubeconfig_list_left_to_tools(self, config_path, monkeypatch):
        """Test a multi-file KUBECONFIG never becomes a --kubeconfig argument."""
        monkeypatch.setenv("KUBECONFIG", "/home/ops/.kube/config:/home/ops/.kube/eks")
        params = load_params(FLAGS, config_path=config_path)

        assert params.kubeconfig is None
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stdout="")
            ProcessRunner(kubeconfig=params.kubeconfig).run("kubectl", "get", "svc")

        assert mock_run.call_args.args[0] == ["kubectl", "get", "svc"]

    def test_invalid_config_file(self, config_path):
        """Test a non-mapping config file is rejected."""
        config_path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_params(FLAGS, config_path=config_path)

    def test_malformed_config_file(self, config_path):
        """Test unparseable YAML is rejected."""
        config_path.write_text("email: [unclosed\n")
        with pytest.raises(ConfigError):
            load_params(FLAGS, config_path=config_path)


class TestBootstrapParams:
    """Tests for BootstrapParams dataclass."""

    def test_immutable(self, params):
        """Test parameters cannot change during a run."""
        with pytest.raises(AttributeError):
            params.email = "other@example.com"

    def test_sources_ignored_in_equality(self):
        """Test value equality ignores provenance."""
        a = BootstrapParams(**FLAGS, sources={"email": "flag"})
        b = BootstrapParams(**FLAGS)
        assert a == b
