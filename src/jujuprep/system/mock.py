"""In-memory Worker that records what would have been done."""

import tempfile
from pathlib import Path

from jujuprep.system.command import Command, ExecError
from jujuprep.system.models import RealUser, SnapInfo


class MockSystem:
    """A Worker that runs nothing and remembers everything.

    Commands are rendered with the bare executable name so the recorded
    strings are stable across machines. Canned results can be registered per
    rendered command line.

    Attributes:
        executed_commands: Rendered command lines, in execution order
        created_files: Home-relative path to written contents
        created_directories: Home-relative directories created
        deleted: Home-relative paths removed
        exclusive_commands: Command lines run through ``run_exclusive``
        retried_commands: Command lines run through ``run_with_retries``, with
            the retry budget each was given
    """

    def __init__(self, username: str = "test-user") -> None:
        self.executed_commands: list[str] = []
        self.created_files: dict[str, str] = {}
        self.created_directories: list[str] = []
        self.deleted: list[str] = []
        self.exclusive_commands: list[str] = []
        self.retried_commands: list[tuple[str, float]] = []

        self._user = RealUser(
            username=username, uid=666, gid=666, home=Path(tempfile.gettempdir())
        )
        self._returns: dict[str, tuple[bytes, int]] = {}
        self._files: dict[str, bytes] = {}
        self._snap_info: dict[str, SnapInfo] = {}
        self._snap_channels: dict[str, list[str]] = {}

    def mock_command_return(self, command: str, output: bytes = b"", returncode: int = 0) -> None:
        """Make ``command`` produce ``output``; a non-zero code raises ExecError."""
        self._returns[command] = (output, returncode)

    def mock_file(self, filepath: str | Path, contents: bytes) -> None:
        """Provide contents for ``read_file``/``read_home_file`` at ``filepath``."""
        self._files[str(filepath)] = contents

    def remove_file(self, filepath: str | Path) -> None:
        self._files.pop(str(filepath), None)

    def mock_snap_info(
        self, snap: str, installed: bool = False, classic: bool = False, tracking: str = ""
    ) -> None:
        self._snap_info[snap] = SnapInfo(
            installed=installed, classic=classic, tracking_channel=tracking
        )

    def mock_snap_channels(self, snap: str, channels: list[str]) -> None:
        self._snap_channels[snap] = channels

    def user(self) -> RealUser:
        return self._user

    async def run(self, cmd: Command) -> bytes:
        command_line = cmd.render()
        self.executed_commands.append(command_line)

        output, returncode = self._returns.get(command_line, (b"", 0))
        if returncode != 0:
            raise ExecError(command_line, returncode, output.decode())
        return output

    async def run_many(self, *cmds: Command) -> None:
        for cmd in cmds:
            await self.run(cmd)

    async def run_exclusive(self, cmd: Command) -> bytes:
        self.exclusive_commands.append(cmd.render())
        return await self.run(cmd)

    async def run_with_retries(self, cmd: Command, max_duration: float) -> bytes:
        self.retried_commands.append((cmd.render(), max_duration))
        return await self.run(cmd)

    async def write_home_file(self, filepath: Path, contents: bytes) -> None:
        self.created_files[str(filepath)] = contents.decode()

    async def mk_home_subdir(self, subdirectory: Path) -> None:
        self.created_directories.append(str(subdirectory))

    async def remove_all_home(self, filepath: Path) -> None:
        self.deleted.append(str(filepath))

    async def read_home_file(self, filepath: Path) -> bytes:
        if str(filepath) in self.created_files:
            return self.created_files[str(filepath)].encode()
        return await self.read_file(filepath)

    async def read_file(self, filepath: Path) -> bytes:
        try:
            return self._files[str(filepath)]
        except KeyError:
            raise FileNotFoundError(f"file '{filepath}' does not exist") from None

    async def snap_info(self, snap: str, channel: str = "") -> SnapInfo:
        return self._snap_info.get(snap, SnapInfo(installed=False, classic=False))

    async def snap_channels(self, snap: str) -> list[str]:
        if snap not in self._snap_channels:
            raise LookupError(f"no channels known for snap '{snap}'")
        return self._snap_channels[snap]
