"""Locate and parse configuration, and collect overrides from the environment."""

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from jujuprep.config.models import ConfigOverrides, ProvisionConfig
from jujuprep.config.presets import get_preset
from jujuprep.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_FILE = Path("jujuprep.yaml")
ENV_PREFIX = "JUJUPREP_"


def load_config(
    config_file: str = "",
    preset: str = "",
    overrides: ConfigOverrides | None = None,
) -> ProvisionConfig:
    """Build the configuration for a run.

    A preset wins over a config file. With neither, ``jujuprep.yaml`` in the
    working directory is used if present, otherwise the ``dev`` preset.
    Overrides are attached as-is; they are resolved when the plan is built.

    Raises:
        ValueError: If both a preset and a file are given, or the file is invalid
        FileNotFoundError: If an explicit config file does not exist
    """
    if preset and config_file:
        raise ValueError("Cannot use a preset and a configuration file together")

    if preset:
        logger.info("Preset selected", preset=preset)
        config = get_preset(preset)
    elif config_file:
        config = _parse_file(Path(config_file))
    elif DEFAULT_CONFIG_FILE.exists():
        config = _parse_file(DEFAULT_CONFIG_FILE)
    else:
        logger.info("No config file found, falling back to 'dev' preset")
        config = get_preset("dev")

    if overrides is not None:
        config.overrides = overrides
        if overrides.disable_juju:
            config.juju.disable = True

    return config


def _parse_file(path: Path) -> ProvisionConfig:
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file '{path}': {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file '{path}' must contain a YAML mapping")

    try:
        config = ProvisionConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in '{path}': {e}") from e

    logger.info("Configuration file found", path=str(path))
    return config


def _env(key: str) -> str:
    return os.getenv(f"{ENV_PREFIX}{key.upper()}", "").strip()


def get_env_overrides() -> ConfigOverrides:
    """Read overrides from ``JUJUPREP_*`` environment variables.

    List values are comma-separated; booleans accept 1/true/yes.
    """

    def as_list(key: str) -> list[str]:
        return [item.strip() for item in _env(key).split(",") if item.strip()]

    return ConfigOverrides(
        disable_juju=_env("disable_juju").lower() in ("1", "true", "yes"),
        juju_channel=_env("juju_channel"),
        k8s_channel=_env("k8s_channel"),
        microk8s_channel=_env("microk8s_channel"),
        lxd_channel=_env("lxd_channel"),
        charmcraft_channel=_env("charmcraft_channel"),
        snapcraft_channel=_env("snapcraft_channel"),
        rockcraft_channel=_env("rockcraft_channel"),
        google_credential_file=_env("google_credential_file"),
        extra_snaps=as_list("extra_snaps"),
        extra_debs=as_list("extra_debs"),
    )


def merge_overrides(cli: ConfigOverrides, env: ConfigOverrides) -> ConfigOverrides:
    """Combine flag and environment overrides.

    Scalar flags win over the environment; extra snaps and debs from both
    sources are kept, flags first.
    """
    merged = {}
    for name, field in ConfigOverrides.model_fields.items():
        cli_value, env_value = getattr(cli, name), getattr(env, name)
        if field.annotation == list[str]:
            merged[name] = cli_value + [v for v in env_value if v not in cli_value]
        else:
            merged[name] = cli_value or env_value
    return ConfigOverrides(**merged)
