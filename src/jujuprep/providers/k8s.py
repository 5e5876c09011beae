"""Canonical Kubernetes (k8s snap) provider."""

import asyncio
from pathlib import Path
from typing import Any

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.packages.deb_handler import DebHandler
from jujuprep.packages.snap_handler import SnapHandler
from jujuprep.providers.channels import compute_default_channel
from jujuprep.system.command import Command, ExecError
from jujuprep.system.models import Deb, Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

DEFAULT_K8S_CHANNEL = "1.32-classic/stable"
READY_TIMEOUT = 5 * 60

# `k8s status` has no machine-readable way to report that the node was never
# bootstrapped; this message is the only signal.
NOT_IN_CLUSTER = "The node is not part of a Kubernetes cluster"


def not_in_cluster(output: str) -> bool:
    """Whether ``k8s status`` output says the node has no cluster yet."""
    return NOT_IN_CLUSTER in output


def feature_order(features: dict[str, dict[str, str]]) -> list[str]:
    """Sort feature names, with ``network`` first because others depend on it."""
    names = sorted(features)
    if "network" in names:
        names.remove("network")
        names.insert(0, "network")
    return names


def _k8s(*args: str) -> Command:
    return Command(executable="k8s", args=list(args))


class K8s:
    """Installs and bootstraps a single-node Canonical Kubernetes cluster."""

    def __init__(self, system: Worker, config: ProvisionConfig) -> None:
        section = config.providers.k8s
        self.system = system
        self.channel = config.overrides.k8s_channel or section.channel
        self.features = section.features
        self.debs = [Deb(name="iptables")]
        self.snaps = [
            Snap(name="k8s", channel=self.channel),
            Snap(name="kubectl", channel="stable"),
        ]

        self._bootstrap = section.bootstrap
        self._model_defaults = section.model_defaults
        self._bootstrap_constraints = section.bootstrap_constraints

    async def prepare(self) -> None:
        if not self.channel:
            self.channel = await compute_default_channel(
                self.system, "k8s", "classic", DEFAULT_K8S_CHANNEL
            )
            self.snaps[0].channel = self.channel

        await asyncio.gather(self._ensure_iptables(), SnapHandler(self.system, self.snaps).prepare())

        if await self._needs_bootstrap():
            await self.system.run_with_retries(_k8s("bootstrap"), READY_TIMEOUT)
        await self.system.run_with_retries(
            _k8s("status", "--wait-ready", "--timeout", "270s"), READY_TIMEOUT
        )

        await self._configure_features()

        kubeconfig = await self.system.run(_k8s("kubectl", "config", "view", "--raw"))
        await self.system.write_home_file(Path(".kube/config"), kubeconfig)

        logger.info("Prepared provider", provider=self.name())

    async def restore(self) -> None:
        await SnapHandler(self.system, self.snaps).restore()
        await self.system.remove_all_home(Path(".kube"))
        logger.info("Removed provider", provider=self.name())

    def name(self) -> str:
        return "k8s"

    def bootstrap(self) -> bool:
        return self._bootstrap

    def cloud_name(self) -> str:
        return "k8s"

    def group_name(self) -> str:
        return ""

    def credentials(self) -> dict[str, Any] | None:
        return None

    def model_defaults(self) -> dict[str, str]:
        return self._model_defaults

    def bootstrap_constraints(self) -> dict[str, str]:
        return self._bootstrap_constraints

    async def _ensure_iptables(self) -> None:
        """k8s needs iptables on the host; install it only when missing."""
        try:
            await self.system.run(Command(executable="which", args=["iptables"]))
        except ExecError:
            await DebHandler(self.system, self.debs).prepare()

    async def _needs_bootstrap(self) -> bool:
        try:
            await self.system.run(_k8s("status"))
        except ExecError as e:
            return not_in_cluster(e.output)
        return False

    async def _configure_features(self) -> None:
        for feature in feature_order(self.features):
            settings = self.features[feature]
            for key in sorted(settings):
                await self.system.run(_k8s("set", f"{feature}.{key}={settings[key]}"))

            await self.system.run_with_retries(_k8s("enable", feature), READY_TIMEOUT)
