"""MicroK8s provider."""

from pathlib import Path
from typing import Any

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.packages.snap_handler import SnapHandler
from jujuprep.providers.channels import compute_default_channel
from jujuprep.system.command import Command
from jujuprep.system.models import Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

DEFAULT_MICROK8S_CHANNEL = "1.32-strict/stable"
METALLB_RANGE = "10.64.140.43-10.64.140.49"
READY_TIMEOUT = 5 * 60


class MicroK8s:
    """Installs MicroK8s, enables addons and writes the user's kubeconfig."""

    def __init__(self, system: Worker, config: ProvisionConfig) -> None:
        section = config.providers.microk8s
        self.system = system
        # Empty until prepare() asks the store, unless set explicitly.
        self.channel = config.overrides.microk8s_channel or section.channel
        self.addons = list(section.addons)
        self.snaps = [
            Snap(name="microk8s", channel=self.channel),
            Snap(name="kubectl", channel="stable"),
        ]

        self._bootstrap = section.bootstrap
        self._model_defaults = section.model_defaults
        self._bootstrap_constraints = section.bootstrap_constraints

    async def prepare(self) -> None:
        if not self.channel:
            self.channel = await compute_default_channel(
                self.system, "microk8s", "strict", DEFAULT_MICROK8S_CHANNEL
            )
            self.snaps[0].channel = self.channel

        await SnapHandler(self.system, self.snaps).prepare()
        await self.system.run_with_retries(
            Command(executable="microk8s", args=["status", "--wait-ready", "--timeout", "270"]),
            READY_TIMEOUT,
        )
        await self._enable_addons()
        await self.system.run(
            Command(
                executable="usermod",
                args=["-a", "-G", self.group_name(), self.system.user().username],
            )
        )
        kubeconfig = await self.system.run(Command(executable="microk8s", args=["config"]))
        await self.system.write_home_file(Path(".kube/config"), kubeconfig)

        logger.info("Prepared provider", provider=self.name())

    async def restore(self) -> None:
        await SnapHandler(self.system, self.snaps).restore()
        await self.system.remove_all_home(Path(".kube"))
        logger.info("Removed provider", provider=self.name())

    def name(self) -> str:
        return "microk8s"

    def bootstrap(self) -> bool:
        return self._bootstrap

    def cloud_name(self) -> str:
        return "microk8s"

    def group_name(self) -> str:
        """Strictly confined MicroK8s uses a snap-specific group."""
        return "snap_microk8s" if "strict" in self.channel else "microk8s"

    def credentials(self) -> dict[str, Any] | None:
        return None

    def model_defaults(self) -> dict[str, str]:
        return self._model_defaults

    def bootstrap_constraints(self) -> dict[str, str]:
        return self._bootstrap_constraints

    async def _enable_addons(self) -> None:
        for addon in self.addons:
            arg = f"metallb:{METALLB_RANGE}" if addon == "metallb" else addon
            await self.system.run_with_retries(
                Command(executable="microk8s", args=["enable", arg]), READY_TIMEOUT
            )
