"""Turn a configuration into the packages, providers and controllers to act on."""

import asyncio

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.errors import PlanValidationError
from jujuprep.core.executable import Action, do_action
from jujuprep.core.logging import get_logger
from jujuprep.core.phase import run_phase
from jujuprep.core.validators import PLAN_VALIDATORS
from jujuprep.juju.handler import JujuHandler
from jujuprep.packages.deb_handler import DebHandler
from jujuprep.packages.snap_handler import SnapHandler
from jujuprep.providers.base import Provider
from jujuprep.providers.factory import SUPPORTED_PROVIDERS, create_provider
from jujuprep.system.models import Deb, Snap
from jujuprep.system.worker import Worker

logger = get_logger(__name__)


class Plan:
    """The set of snaps, debs and providers a run acts on.

    Built once per invocation. Execution happens in phases that each join
    before the next starts: packages, then providers, then Juju.
    """

    def __init__(self, config: ProvisionConfig, system: Worker) -> None:
        self.config = config
        self.system = system
        self.snaps: list[Snap] = []
        self.debs: list[Deb] = []
        self.providers: list[Provider] = []

        overrides = config.overrides

        for name, section in config.host.snaps.items():
            self.snaps.append(
                Snap(
                    name=name,
                    channel=overrides.channel_for(name) or section.channel,
                    connections=list(section.connections),
                )
            )

        for spec in overrides.extra_snaps:
            snap = Snap.parse(spec)
            snap.channel = overrides.channel_for(snap.name) or snap.channel
            self.snaps.append(snap)

        for name in [*config.host.packages, *overrides.extra_debs]:
            self.debs.append(Deb(name=name))

        for name in SUPPORTED_PROVIDERS:
            provider = create_provider(name, system, config)
            if provider is None:
                continue
            self.providers.append(provider)

            if overrides.disable_juju and provider.bootstrap():
                logger.warning(
                    "Provider will not be bootstrapped because Juju is disabled",
                    provider=name,
                )

        if overrides.disable_juju:
            config.juju.disable = True

    async def validate(self) -> None:
        """Run every plan validator concurrently.

        Raises:
            PlanValidationError: From the first validator that failed
        """
        results = await asyncio.gather(
            *(validator(self) for validator in PLAN_VALIDATORS), return_exceptions=True
        )
        for result in results:
            if isinstance(result, PlanValidationError):
                raise result
            if isinstance(result, Exception):
                raise PlanValidationError(str(result)) from result

    async def execute(self, action: Action | str) -> None:
        """Validate, then run every phase of ``action``.

        Raises:
            PlanValidationError: If the plan is inconsistent; nothing has run
            PhaseError: If any unit of a phase failed
        """
        action = Action(action)
        await self.validate()

        await run_phase(
            f"{action.value} packages",
            [
                do_action(SnapHandler(self.system, self.snaps), action),
                do_action(DebHandler(self.system, self.debs), action),
            ],
        )

        await run_phase(
            f"{action.value} providers",
            [do_action(provider, action) for provider in self.providers],
        )

        if self.config.juju.disable:
            logger.info("Juju is disabled, skipping")
            return

        await do_action(JujuHandler(self.system, self.config, self.providers), action)
