"""The ``restore`` command."""

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.core.manager import Manager

logger = get_logger(__name__)


async def run_restore(trace: bool = False) -> None:
    """Undo the last ``prepare``, using only the run-record it left behind."""
    await Manager(ProvisionConfig(trace=trace)).restore()
    logger.info("Machine restored")
