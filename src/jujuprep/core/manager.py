"""Entry point for prepare, restore and status, around a persisted run-record."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from jujuprep.config.models import ProvisionConfig, Status
from jujuprep.core.errors import RunRecordNotFoundError
from jujuprep.core.executable import Action
from jujuprep.core.logging import get_logger
from jujuprep.core.plan import Plan
from jujuprep.system.runner import System
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

RUN_RECORD = Path(".cache/jujuprep/jujuprep.yaml")


class Manager:
    """Drives a plan and keeps the run-record up to date.

    ``prepare`` saves the configuration it was given, with a status, into
    the real user's home. ``restore`` and ``status`` work from that record
    alone, so they need none of the original flags or files.
    """

    def __init__(self, config: ProvisionConfig, system: Worker | None = None) -> None:
        self.config = config
        self.system = system if system is not None else System(trace=config.trace)
        self.plan: Plan | None = None

    async def prepare(self) -> None:
        """Provision the machine.

        The record is marked as provisioning before anything runs, then as
        succeeded or failed.
        """
        await self._record(Status.PROVISIONING)
        try:
            await self._execute(Action.PREPARE)
        except Exception:
            await self._record(Status.FAILED)
            raise
        await self._record(Status.SUCCEEDED)

    async def restore(self) -> None:
        """Undo what the recorded ``prepare`` run did.

        Raises:
            RunRecordNotFoundError: If this machine was never prepared
        """
        self.config = await self._load_record()
        await self._execute(Action.RESTORE)

    async def status(self) -> Status:
        """Return the status of the last ``prepare`` run.

        Raises:
            RunRecordNotFoundError: If this machine was never prepared
        """
        record = await self._load_record()
        return record.status

    async def _execute(self, action: Action) -> None:
        self.plan = Plan(self.config, self.system)
        await self.plan.execute(action)

    async def _record(self, status: Status) -> None:
        self.config.status = status
        data = self.config.model_dump(mode="json", by_alias=True)
        content = yaml.safe_dump(data, default_flow_style=False)
        await self.system.write_home_file(RUN_RECORD, content.encode())
        logger.debug("Run-record saved", path=str(RUN_RECORD), status=status.value)

    async def _load_record(self) -> ProvisionConfig:
        try:
            contents = await self.system.read_home_file(RUN_RECORD)
        except FileNotFoundError:
            raise RunRecordNotFoundError(
                "jujuprep has not prepared this machine; run 'jujuprep prepare' first"
            ) from None

        try:
            record = ProvisionConfig.model_validate(yaml.safe_load(contents) or {})
        except (yaml.YAMLError, ValidationError) as e:
            raise ValueError(f"Run-record at ~/{RUN_RECORD} is corrupt: {e}") from e

        logger.debug("Loaded run-record", path=str(RUN_RECORD), status=record.status.value)
        return record
