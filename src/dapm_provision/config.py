"""Provisioning configuration.

Handles the optional config file ~/.dapm/config.yaml. Supports environment
variable overrides; each value remembers where it came from.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .scenario import DEFAULT_SCENARIO, DeploymentPlan, parse_scenario

# Default values
DEFAULT_USERNAME = "anna"
DEFAULT_PASSWORD = "dapm"
DEFAULT_DEPLOYMENTS = {
    "orga": "http://localhost:8081",
    "orgb": "http://localhost:8082",
}
DEFAULT_TIMEOUT: float | None = None  # httpx default
DEFAULT_TEMPLATES_DIR = ".."

# Environment variable mappings
ENV_VARS = {
    "username": "DAPM_USERNAME",
    "password": "DAPM_PASSWORD",
    "timeout": "DAPM_TIMEOUT",
    "templates_dir": "DAPM_TEMPLATES_DIR",
}


def deployment_env_var(name: str) -> str:
    """Environment variable overriding a deployment URL (e.g. DAPM_ORGA_URL)."""
    return f"DAPM_{name.upper()}_URL"


@dataclass
class ProvisionConfig:
    """Provisioning run configuration."""

    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    deployments: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DEPLOYMENTS))
    timeout: float | None = DEFAULT_TIMEOUT
    templates_dir: Path = Path(DEFAULT_TEMPLATES_DIR)
    scenario: tuple[DeploymentPlan, ...] = DEFAULT_SCENARIO

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")

    def deployment_url(self, name: str) -> str:
        try:
            return self.deployments[name]
        except KeyError:
            raise ConfigError(f"Unknown deployment '{name}'") from None


def get_config_path() -> Path:
    """Get the default config file path.

    Returns:
        Path to ~/.dapm/config.yaml
    """
    return Path.home() / ".dapm" / "config.yaml"


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _parse_timeout(value: Any, origin: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout from {origin}: {value!r}") from None


def load_config(config_path: str | Path | None = None) -> ProvisionConfig:
    """Load provisioning configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (--config, else ~/.dapm/config.yaml if present)
    3. Defaults

    Args:
        config_path: Explicit config file; must exist when given

    Returns:
        ProvisionConfig with values and sources

    Raises:
        ConfigError: If the file or any value in it is invalid
    """
    config = ProvisionConfig()
    sources: dict[str, str] = {}

    # Start with defaults
    for key in ["username", "password", "deployments", "timeout", "templates_dir", "scenario"]:
        sources[key] = "default"

    # Load from config file
    if config_path is not None:
        file_config = _read_config_file(Path(config_path))
    elif get_config_path().exists():
        file_config = _read_config_file(get_config_path())
    else:
        file_config = {}

    if "username" in file_config:
        config.username = str(file_config["username"])
        sources["username"] = "config file"
    if "password" in file_config:
        config.password = str(file_config["password"])
        sources["password"] = "config file"
    if "deployments" in file_config:
        deployments = file_config["deployments"]
        if not isinstance(deployments, dict) or not deployments:
            raise ConfigError("deployments must be a non-empty mapping of name to URL")
        config.deployments = {str(k): str(v) for k, v in deployments.items()}
        sources["deployments"] = "config file"
    if file_config.get("timeout") is not None:
        config.timeout = _parse_timeout(file_config["timeout"], "config file")
        sources["timeout"] = "config file"
    if "templates_dir" in file_config:
        config.templates_dir = Path(str(file_config["templates_dir"])).expanduser()
        sources["templates_dir"] = "config file"

    # Override with environment variables
    if os.environ.get(ENV_VARS["username"]):
        config.username = os.environ[ENV_VARS["username"]]
        sources["username"] = "environment"
    if os.environ.get(ENV_VARS["password"]):
        config.password = os.environ[ENV_VARS["password"]]
        sources["password"] = "environment"
    for name in config.deployments:
        if os.environ.get(deployment_env_var(name)):
            config.deployments[name] = os.environ[deployment_env_var(name)]
            sources["deployments"] = "environment"
    if os.environ.get(ENV_VARS["timeout"]):
        config.timeout = _parse_timeout(os.environ[ENV_VARS["timeout"]], "environment")
        sources["timeout"] = "environment"
    if os.environ.get(ENV_VARS["templates_dir"]):
        config.templates_dir = Path(os.environ[ENV_VARS["templates_dir"]]).expanduser()
        sources["templates_dir"] = "environment"

    # Scenario last, it is checked against the final deployment names
    if "scenario" in file_config:
        config.scenario = parse_scenario(file_config["scenario"], config.deployments)
        sources["scenario"] = "config file"
    else:
        for plan in config.scenario:
            if plan.deployment not in config.deployments:
                raise ConfigError(
                    f"Built-in scenario needs deployment '{plan.deployment}', "
                    "which is not configured"
                )

    config._sources = sources
    return config
