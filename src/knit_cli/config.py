"""Bootstrap parameter loading.

Parameters are resolved once on startup into an immutable BootstrapParams
value that is handed to every component. Supports environment variable
overrides and an optional ~/.knit/config.yaml.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .shared.paths import CONFIG_FILE

DEFAULT_REGION = "us-east-1"

REQUIRED_KEYS = ("git_repo", "email", "dns_name", "hosted_zone")
OPTIONAL_KEYS = ("region", "kubeconfig")

# Environment variable mappings
ENV_VARS = {
    "git_repo": "KNIT_GIT_REPO",
    "email": "KNIT_EMAIL",
    "dns_name": "KNIT_DNS_NAME",
    "hosted_zone": "KNIT_HOSTED_ZONE",
    "region": "KNIT_REGION",
    "kubeconfig": "KNIT_KUBECONFIG",
}

# CLI flag spelling, used in error messages
FLAG_NAMES = {key: "--" + key.replace("_", "-") for key in REQUIRED_KEYS + OPTIONAL_KEYS}


@dataclass(frozen=True)
class BootstrapParams:
    """Inputs for one bootstrap run. Read-only for the lifetime of the run."""

    git_repo: str
    email: str
    dns_name: str
    hosted_zone: str
    region: str = DEFAULT_REGION
    kubeconfig: str | None = None

    # Track where each value came from
    sources: dict[str, str] = field(default_factory=dict, compare=False, repr=False)

    def get_source(self, key: str) -> str:
        """Get the source of a parameter value."""
        return self.sources.get(key, "default")


def get_config_path() -> Path:
    """Get the config file path.

    Returns:
        Path to ~/.knit/config.yaml
    """
    return CONFIG_FILE


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_params(
    overrides: dict[str, str | None] | None = None,
    config_path: Path | None = None,
) -> BootstrapParams:
    """Resolve bootstrap parameters.

    Precedence (highest to lowest):
    1. Explicit overrides (CLI flags)
    2. Environment variables
    3. Config file (~/.knit/config.yaml)
    4. Defaults

    Args:
        overrides: Values given on the command line; None entries are ignored
        config_path: Alternate config file location

    Returns:
        BootstrapParams with values and sources

    Raises:
        ConfigError: If a required parameter is missing or empty
    """
    values: dict[str, str | None] = {"region": DEFAULT_REGION, "kubeconfig": None}
    sources: dict[str, str] = {"region": "default"}

    file_config = _read_config_file(config_path or get_config_path())
    for key in REQUIRED_KEYS + OPTIONAL_KEYS:
        if file_config.get(key):
            values[key] = str(file_config[key])
            sources[key] = "config file"

    for key, env_var in ENV_VARS.items():
        if os.environ.get(env_var):
            values[key] = os.environ[env_var]
            sources[key] = "environment"

    for key, value in (overrides or {}).items():
        if value:
            values[key] = value
            sources[key] = "flag"

    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        flags = ", ".join(FLAG_NAMES[key] for key in missing)
        raise ConfigError(f"Missing required parameters: {flags}", missing=missing)

    return BootstrapParams(
        git_repo=values["git_repo"],
        email=values["email"],
        dns_name=values["dns_name"],
        hosted_zone=values["hosted_zone"],
        region=values["region"] or DEFAULT_REGION,
        kubeconfig=values.get("kubeconfig"),
        sources=sources,
    )
