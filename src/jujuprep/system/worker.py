"""The Worker protocol: everything the engine needs from the host."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from jujuprep.system.command import Command
from jujuprep.system.models import RealUser, SnapInfo


@runtime_checkable
class Worker(Protocol):
    """Runs commands and touches files on behalf of the real user.

    ``System`` implements this against the host; ``MockSystem`` records
    calls in memory for tests.
    """

    def user(self) -> RealUser:
        """The invoking user, which is not root when elevated with sudo."""
        ...

    async def run(self, cmd: Command) -> bytes:
        """Run a command and return its combined output.

        Raises:
            ExecError: If the command exits non-zero or cannot be spawned
        """
        ...

    async def run_many(self, *cmds: Command) -> None:
        """Run commands one after another, stopping at the first failure."""
        ...

    async def run_exclusive(self, cmd: Command) -> bytes:
        """Run a command while holding the lock for its executable.

        Tools such as ``snap`` and ``apt-get`` misbehave when invoked
        concurrently, so calls sharing an executable are serialised.
        """
        ...

    async def run_with_retries(self, cmd: Command, max_duration: float) -> bytes:
        """Run a command, retrying with exponential backoff.

        Args:
            cmd: Command to run
            max_duration: Seconds after which no further attempt is started

        Raises:
            ExecError: The error from the final attempt
        """
        ...

    async def write_home_file(self, filepath: Path, contents: bytes) -> None:
        """Write a file relative to the real user's home directory."""
        ...

    async def mk_home_subdir(self, subdirectory: Path) -> None:
        """Create a directory tree relative to the real user's home directory."""
        ...

    async def remove_all_home(self, filepath: Path) -> None:
        """Recursively remove a path relative to the real user's home directory."""
        ...

    async def read_home_file(self, filepath: Path) -> bytes:
        """Read a file relative to the real user's home directory.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        ...

    async def read_file(self, filepath: Path) -> bytes:
        """Read a file from an arbitrary location.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        ...

    async def snap_info(self, snap: str, channel: str = "") -> SnapInfo:
        """Query snapd for install state and confinement of a snap."""
        ...

    async def snap_channels(self, snap: str) -> list[str]:
        """List the store channels published for a snap."""
        ...
