"""Install, refresh and remove snaps."""

from jujuprep.core.logging import get_logger
from jujuprep.system.command import Command
from jujuprep.system.models import Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)


class SnapHandler:
    """Brings a list of snaps onto the machine, or takes them off again.

    Every ``snap`` invocation goes through ``run_exclusive``; snapd rejects
    or mangles overlapping changes.
    """

    def __init__(self, system: Worker, snaps: list[Snap]) -> None:
        self.system = system
        self.snaps = snaps

    async def prepare(self) -> None:
        for snap in self.snaps:
            await self._install(snap)
            await self._connect(snap)

    async def restore(self) -> None:
        for snap in self.snaps:
            await self.system.run_exclusive(
                Command(executable="snap", args=["remove", snap.name, "--purge"])
            )
            logger.info("Removed snap", snap=snap.name)

    async def _install(self, snap: Snap) -> None:
        """Install the snap, or refresh it when it is already present."""
        info = await self.system.snap_info(snap.name, snap.channel)
        verb = "refresh" if info.installed else "install"

        args = [verb, snap.name]
        if snap.channel:
            args += ["--channel", snap.channel]
        if info.classic:
            args.append("--classic")

        await self.system.run_exclusive(Command(executable="snap", args=args))
        logger.info(
            "Refreshed snap" if info.installed else "Installed snap",
            snap=snap.name,
            channel=snap.channel,
        )

    async def _connect(self, snap: Snap) -> None:
        """Connect each declared interface.

        A connection is ``<plug>`` or ``<plug> <slot>``, where each side may
        be written as ``snap:interface``.

        Raises:
            ValueError: If a connection has more than two parts
        """
        for connection in snap.connections:
            parts = connection.split()
            if not parts or len(parts) > 2:
                raise ValueError(f"Invalid snap connection '{connection}' for '{snap.name}'")

            await self.system.run_exclusive(Command(executable="snap", args=["connect", *parts]))
