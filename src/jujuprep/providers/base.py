"""The capability set every provider offers."""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Provider(Protocol):
    """A substrate that can be installed, torn down, and bootstrapped onto.

    Providers share no base class; each one keeps only the state it needs.
    """

    async def prepare(self) -> None:
        """Install and configure the provider."""
        ...

    async def restore(self) -> None:
        """Undo ``prepare``."""
        ...

    def name(self) -> str:
        """Name used inside jujuprep, e.g. for controller names."""
        ...

    def bootstrap(self) -> bool:
        """Whether a Juju controller should be bootstrapped onto this provider."""
        ...

    def cloud_name(self) -> str:
        """The cloud name Juju knows this provider by."""
        ...

    def group_name(self) -> str:
        """POSIX group granting unprivileged access, or '' if none is needed."""
        ...

    def credentials(self) -> dict[str, Any] | None:
        """Credential material for Juju, or None when the cloud needs none."""
        ...

    def model_defaults(self) -> dict[str, str]: ...

    def bootstrap_constraints(self) -> dict[str, str]: ...
