"""Configuration schema, shared by config files, presets and the run-record."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Status(str, Enum):
    """Provisioning status of the machine, as kept in the run-record."""

    NOT_STARTED = "not started"
    PROVISIONING = "provisioning"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConfigOverrides(_Section):
    """Values coming from CLI flags and environment variables.

    These win over anything in a config file or preset.
    """

    disable_juju: bool = False
    juju_channel: str = ""
    k8s_channel: str = ""
    microk8s_channel: str = ""
    lxd_channel: str = ""
    charmcraft_channel: str = ""
    snapcraft_channel: str = ""
    rockcraft_channel: str = ""
    google_credential_file: str = ""
    extra_snaps: list[str] = Field(default_factory=list)
    extra_debs: list[str] = Field(default_factory=list)

    def channel_for(self, snap: str) -> str:
        """Return the overridden channel for a well-known snap, or ''."""
        return {
            "charmcraft": self.charmcraft_channel,
            "snapcraft": self.snapcraft_channel,
            "rockcraft": self.rockcraft_channel,
            "lxd": self.lxd_channel,
            "microk8s": self.microk8s_channel,
            "k8s": self.k8s_channel,
            "juju": self.juju_channel,
        }.get(snap, "")


class JujuConfig(_Section):
    disable: bool = False
    channel: str = ""
    agent_version: str = Field("", alias="agent-version")
    model_defaults: dict[str, str] = Field(default_factory=dict, alias="model-defaults")
    bootstrap_constraints: dict[str, str] = Field(
        default_factory=dict, alias="bootstrap-constraints"
    )
    extra_bootstrap_args: str = Field("", alias="extra-bootstrap-args")


class ProviderSection(_Section):
    """Settings every provider accepts."""

    enable: bool = False
    bootstrap: bool = False
    model_defaults: dict[str, str] = Field(default_factory=dict, alias="model-defaults")
    bootstrap_constraints: dict[str, str] = Field(
        default_factory=dict, alias="bootstrap-constraints"
    )


class LXDConfig(ProviderSection):
    channel: str = ""


class MicroK8sConfig(ProviderSection):
    channel: str = ""
    addons: list[str] = Field(default_factory=list)


class K8sConfig(ProviderSection):
    channel: str = ""
    features: dict[str, dict[str, str]] = Field(default_factory=dict)


class GoogleConfig(ProviderSection):
    credentials_file: str = Field("", alias="credentials-file")


class ProviderConfig(_Section):
    lxd: LXDConfig = Field(default_factory=LXDConfig)
    microk8s: MicroK8sConfig = Field(default_factory=MicroK8sConfig)
    k8s: K8sConfig = Field(default_factory=K8sConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)


class SnapConfig(_Section):
    channel: str = ""
    connections: list[str] = Field(default_factory=list)


class HostConfig(_Section):
    packages: list[str] = Field(default_factory=list)
    snaps: dict[str, SnapConfig] = Field(default_factory=dict)


class ProvisionConfig(_Section):
    """Fully resolved configuration for one run.

    Dumped verbatim, status included, as the run-record so that a later
    ``restore`` or ``status`` sees exactly what ``prepare`` did.
    """

    juju: JujuConfig = Field(default_factory=JujuConfig)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    host: HostConfig = Field(default_factory=HostConfig)

    overrides: ConfigOverrides = Field(default_factory=ConfigOverrides)
    status: Status = Status.NOT_STARTED
    verbose: bool = False
    trace: bool = False
