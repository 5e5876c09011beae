"""The ``prepare`` command."""

from jujuprep.config.loader import load_config
from jujuprep.config.models import ConfigOverrides
from jujuprep.core.logging import get_logger
from jujuprep.core.manager import Manager

logger = get_logger(__name__)


async def run_prepare(
    config_file: str,
    preset: str,
    overrides: ConfigOverrides,
    verbose: bool = False,
    trace: bool = False,
) -> None:
    config = load_config(config_file=config_file, preset=preset, overrides=overrides)
    config.verbose = verbose
    config.trace = trace

    enabled = [name for name, section in config.providers if section.enable]
    logger.info(
        "Configuration loaded",
        juju="disabled" if config.juju.disable else "enabled",
        providers=",".join(enabled) or "none",
    )

    await Manager(config).prepare()
    logger.info("Machine prepared")
