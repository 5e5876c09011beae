"""Install Juju and bootstrap a controller onto each provider."""

import shlex
from pathlib import Path

import yaml

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.core.phase import run_phase
from jujuprep.juju.credentials import build_credentials
from jujuprep.packages.snap_handler import SnapHandler
from jujuprep.providers.base import Provider
from jujuprep.system.command import Command, ExecError
from jujuprep.system.models import Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

JUJU_DATA = Path(".local/share/juju")
BOOTSTRAP_TIMEOUT = 5 * 60


def controller_name(provider: Provider) -> str:
    return f"concierge-{provider.name()}"


def controller_missing(output: str) -> bool:
    """Whether ``juju show-controller`` output says there is no such controller.

    Juju reports this only as text on a failed command.
    """
    return "not found" in output


def merge(base: dict[str, str], override: dict[str, str]) -> dict[str, str]:
    """Merge two mappings, ``override`` winning on shared keys."""
    return {**base, **override}


def render_flags(flag: str, values: dict[str, str]) -> list[str]:
    """Render ``{k: v}`` as repeated ``<flag> k=v`` arguments, sorted by key."""
    args: list[str] = []
    for key in sorted(values):
        args += [flag, f"{key}={values[key]}"]
    return args


class JujuHandler:
    """Owns the Juju snap, its data directory, and the controllers.

    Controllers are named ``concierge-<provider>`` and every provider is
    bootstrapped independently and concurrently.
    """

    def __init__(
        self, system: Worker, config: ProvisionConfig, providers: list[Provider]
    ) -> None:
        self.system = system
        self.providers = providers

        juju = config.juju
        self.channel = config.overrides.juju_channel or juju.channel
        self.agent_version = juju.agent_version
        self.model_defaults = juju.model_defaults
        self.bootstrap_constraints = juju.bootstrap_constraints
        self.extra_bootstrap_args = shlex.split(juju.extra_bootstrap_args)
        self.snaps = [Snap(name="juju", channel=self.channel)]

    async def prepare(self) -> None:
        await SnapHandler(self.system, self.snaps).prepare()
        await self.system.mk_home_subdir(JUJU_DATA)
        await self._write_credentials()
        await run_phase(
            "juju bootstrap", [self._bootstrap(provider) for provider in self.providers]
        )

    async def restore(self) -> None:
        """Destroy controllers on credentialed clouds, then remove Juju.

        Controllers on local providers go away with the provider itself.
        """
        credentialed = [p for p in self.providers if p.credentials() is not None]
        await run_phase("juju kill-controller", [self._kill_controller(p) for p in credentialed])

        await self.system.remove_all_home(JUJU_DATA)
        await SnapHandler(self.system, self.snaps).restore()
        logger.info("Restored Juju")

    async def _write_credentials(self) -> None:
        credentials = build_credentials(self.providers)
        if not credentials:
            return

        content = yaml.safe_dump(credentials, default_flow_style=False)
        await self.system.write_home_file(JUJU_DATA / "credentials.yaml", content.encode())

    def _bootstrap_command(self, provider: Provider) -> Command:
        name = controller_name(provider)
        args = ["bootstrap", provider.cloud_name(), name, "--verbose"]
        if self.agent_version:
            args += ["--agent-version", self.agent_version]

        args += render_flags(
            "--model-default", merge(self.model_defaults, provider.model_defaults())
        )
        args += render_flags(
            "--bootstrap-constraints",
            merge(self.bootstrap_constraints, provider.bootstrap_constraints()),
        )
        args += self.extra_bootstrap_args

        return Command.as_user(self.system.user(), "juju", args, group=provider.group_name())

    async def _bootstrap(self, provider: Provider) -> None:
        if not provider.bootstrap():
            return

        name = controller_name(provider)
        if await self._controller_exists(name):
            logger.info("Previous Juju controller found", provider=provider.name())
            return

        logger.info("Bootstrapping Juju", provider=provider.name())
        await self.system.run_with_retries(self._bootstrap_command(provider), BOOTSTRAP_TIMEOUT)
        await self.system.run(
            Command.as_user(self.system.user(), "juju", ["add-model", "-c", name, "testing"])
        )
        logger.info("Bootstrapped Juju", provider=provider.name())

    async def _controller_exists(self, name: str) -> bool:
        """Treat anything but an explicit "not found" as an existing controller."""
        try:
            await self.system.run(
                Command.as_user(self.system.user(), "juju", ["show-controller", name])
            )
        except ExecError as e:
            return not controller_missing(e.output)
        return True

    async def _kill_controller(self, provider: Provider) -> None:
        name = controller_name(provider)
        if not await self._controller_exists(name):
            logger.info("No Juju controller found", provider=provider.name())
            return

        logger.info("Destroying Juju controller", provider=provider.name())
        await self.system.run(
            Command.as_user(
                self.system.user(),
                "juju",
                ["kill-controller", "--verbose", "--no-prompt", name],
            )
        )
        logger.info("Destroyed Juju controller", provider=provider.name())
