"""Google Cloud provider."""

from pathlib import Path
from typing import Any

import yaml

from jujuprep.config.models import ProvisionConfig
from jujuprep.core.logging import get_logger
from jujuprep.system.worker import Worker

logger = get_logger(__name__)


class Google:
    """Supplies Google Cloud credentials to Juju.

    Nothing is installed locally; the provider only loads the credentials
    file so the Juju handler can write them into ``credentials.yaml``.
    """

    def __init__(self, system: Worker, config: ProvisionConfig) -> None:
        section = config.providers.google
        self.system = system
        self.credentials_file = (
            config.overrides.google_credential_file or section.credentials_file
        )

        self._bootstrap = section.bootstrap
        self._model_defaults = section.model_defaults
        self._bootstrap_constraints = section.bootstrap_constraints
        self._credentials: dict[str, Any] | None = None

    async def prepare(self) -> None:
        """Load the credentials file.

        Raises:
            FileNotFoundError: If the credentials file does not exist
            ValueError: If it is not a YAML mapping
        """
        self._credentials = await self._load()
        logger.info("Prepared provider", provider=self.name())

    async def restore(self) -> None:
        """Make the credentials known again, without touching the machine.

        An unreadable credentials file still leaves Google marked as a
        credentialed cloud, so its controller is looked for and destroyed.
        """
        try:
            self._credentials = await self._load()
        except (FileNotFoundError, ValueError) as e:
            logger.warning(
                "Could not load credentials file", path=self.credentials_file, error=str(e)
            )
            self._credentials = {}
        logger.info("Restored provider", provider=self.name())

    def name(self) -> str:
        return "google"

    def bootstrap(self) -> bool:
        return self._bootstrap

    def cloud_name(self) -> str:
        return "google"

    def group_name(self) -> str:
        return ""

    def credentials(self) -> dict[str, Any] | None:
        return self._credentials

    def model_defaults(self) -> dict[str, str]:
        return self._model_defaults

    def bootstrap_constraints(self) -> dict[str, str]:
        return self._bootstrap_constraints

    async def _load(self) -> dict[str, Any]:
        if not self.credentials_file:
            raise FileNotFoundError("no Google Cloud credentials file configured")

        contents = await self.system.read_file(Path(self.credentials_file))
        try:
            credentials = yaml.safe_load(contents)
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse Google Cloud credentials: {e}") from e

        if not isinstance(credentials, dict):
            raise ValueError("Google Cloud credentials file must contain a YAML mapping")
        return credentials
