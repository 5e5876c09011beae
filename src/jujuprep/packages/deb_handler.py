"""Install and remove packages from the Ubuntu archive."""

from jujuprep.core.logging import get_logger
from jujuprep.system.command import Command
from jujuprep.system.models import Deb
from jujuprep.system.worker import Worker

logger = get_logger(__name__)


def _apt(*args: str) -> Command:
    return Command(executable="apt-get", args=list(args))


class DebHandler:
    """Manages a list of debs with apt-get, one invocation at a time."""

    def __init__(self, system: Worker, debs: list[Deb]) -> None:
        self.system = system
        self.debs = debs

    async def prepare(self) -> None:
        if not self.debs:
            return

        await self.system.run_exclusive(_apt("update"))

        for deb in self.debs:
            await self.system.run_exclusive(_apt("install", "-y", deb.name))
            logger.info("Installed apt package", package=deb.name)

    async def restore(self) -> None:
        if not self.debs:
            return

        for deb in self.debs:
            await self.system.run_exclusive(_apt("remove", "-y", deb.name))
            logger.info("Removed apt package", package=deb.name)

        await self.system.run_exclusive(_apt("autoremove", "-y"))
