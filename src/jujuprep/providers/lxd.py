"""LXD provider."""

from typing import Any

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.packages.snap_handler import SnapHandler
from jujuprep.system.command import Command
from jujuprep.system.models import Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

LXD_SOCKET = "/var/snap/lxd/common/lxd/unix.socket"


class LXD:
    """Installs LXD and makes it usable by the real user without sudo.

    Also clears the FORWARD chain so containers can reach the network when
    Docker has installed its own restrictive rules.
    """

    def __init__(self, system: Worker, config: ProvisionConfig) -> None:
        section = config.providers.lxd
        self.system = system
        self.channel = config.overrides.lxd_channel or section.channel
        self.snaps = [Snap(name="lxd", channel=self.channel)]

        self._bootstrap = section.bootstrap
        self._model_defaults = section.model_defaults
        self._bootstrap_constraints = section.bootstrap_constraints

    async def prepare(self) -> None:
        await self._install()
        await self.system.run_many(
            Command(executable="lxd", args=["waitready"]),
            Command(executable="lxd", args=["init", "--minimal"]),
            # IPv6 on the default bridge breaks some nested virtualisation setups.
            Command(executable="lxc", args=["network", "set", "lxdbr0", "ipv6.address", "none"]),
        )
        await self.system.run_many(
            Command(executable="chmod", args=["a+wr", LXD_SOCKET]),
            Command(executable="usermod", args=["-a", "-G", "lxd", self.system.user().username]),
        )
        await self.system.run_many(
            Command(executable="iptables", args=["-F", "FORWARD"]),
            Command(executable="iptables", args=["-P", "FORWARD", "ACCEPT"]),
        )
        logger.info("Prepared provider", provider=self.name())

    async def restore(self) -> None:
        await SnapHandler(self.system, self.snaps).restore()
        logger.info("Restored provider", provider=self.name())

    def name(self) -> str:
        return "lxd"

    def bootstrap(self) -> bool:
        return self._bootstrap

    def cloud_name(self) -> str:
        return "localhost"

    def group_name(self) -> str:
        return "lxd"

    def credentials(self) -> dict[str, Any] | None:
        return None

    def model_defaults(self) -> dict[str, str]:
        return self._model_defaults

    def bootstrap_constraints(self) -> dict[str, str]:
        return self._bootstrap_constraints

    async def _install(self) -> None:
        """Install or refresh the snap.

        Refreshing a running LXD can leave a stale socket behind, so an
        existing install is stopped first and started again afterwards.
        """
        info = await self.system.snap_info("lxd", self.channel)
        if info.installed:
            await self.system.run_exclusive(Command(executable="snap", args=["stop", "lxd"]))

        await SnapHandler(self.system, self.snaps).prepare()

        if info.installed:
            await self.system.run_exclusive(Command(executable="snap", args=["start", "lxd"]))
