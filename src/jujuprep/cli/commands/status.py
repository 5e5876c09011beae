"""The ``status`` command."""

from jujuprep.config.models import ProvisionConfig, Status
from jujuprep.core.manager import Manager


async def run_status() -> Status:
    return await Manager(ProvisionConfig()).status()
