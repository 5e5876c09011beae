"""Value types shared by the executor and the package handlers."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RealUser:
    """The user jujuprep acts on behalf of.

    When the process is elevated with sudo this is the invoking user, not
    root. Files written into the home directory are handed back to this
    uid/gid.
    """

    username: str
    uid: int
    gid: int
    home: Path

    @property
    def is_superuser(self) -> bool:
        return self.uid == 0


@dataclass
class SnapInfo:
    """What snapd knows about a snap: install state and confinement."""

    installed: bool
    classic: bool
    tracking_channel: str = ""


@dataclass
class Snap:
    """A snap to install, with the store channel and interface connections."""

    name: str
    channel: str = ""
    connections: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, spec: str) -> "Snap":
        """Build a snap from shorthand such as ``jhack`` or ``charmcraft/latest/edge``."""
        name, _, channel = spec.partition("/")
        return cls(name=name, channel=channel)


@dataclass(frozen=True)
class Deb:
    """A package from the Ubuntu archive."""

    name: str
