"""Host implementation of the Worker protocol."""

import asyncio
import os
import pwd
import shutil
from collections import defaultdict
from collections.abc import Awaitable, Callable
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_delay,
    wait_exponential,
)

from jujuprep.core.logging import get_logger
from jujuprep.system.command import Command, ExecError, ExecutableNotFoundError
from jujuprep.system.models import RealUser, SnapInfo
from jujuprep.system.snapd import SnapdClient

logger = get_logger(__name__)


def lookup_real_user() -> RealUser:
    """Work out who invoked jujuprep.

    Under sudo the process runs as root but ``SUDO_USER`` names the person
    who asked for it; that user owns the home directory being provisioned.
    """
    sudo_user = os.getenv("SUDO_USER")
    if sudo_user and os.geteuid() == 0:
        entry = pwd.getpwnam(sudo_user)
    else:
        entry = pwd.getpwuid(os.getuid())

    return RealUser(
        username=entry.pw_name,
        uid=entry.pw_uid,
        gid=entry.pw_gid,
        home=Path(entry.pw_dir),
    )


class System:
    """Runs commands and manages files on the local machine."""

    def __init__(
        self,
        trace: bool = False,
        user: RealUser | None = None,
        snapd: SnapdClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialise the System.

        Args:
            trace: Echo every command and its output to the terminal
            user: Override the detected real user
            snapd: Override the snapd client
            sleep: Coroutine used to wait between retries
        """
        self._trace = trace
        self._user = user or lookup_real_user()
        self._snapd = snapd or SnapdClient()
        self._sleep = sleep
        self._console = Console(highlight=False)
        # One lock per executable name, created on first use.
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def user(self) -> RealUser:
        return self._user

    async def run(self, cmd: Command) -> bytes:
        """Run a command, returning combined stdout/stderr.

        Raises:
            ExecutableNotFoundError: If the executable is not on PATH
            ExecError: If the command exits non-zero
        """
        path = shutil.which(cmd.executable)
        if path is None:
            raise ExecutableNotFoundError(cmd.render(), cmd.executable)

        argv = cmd.argv(path)
        command_line = cmd.render(path)
        logger.debug("Running command", command=command_line, user=cmd.user, group=cmd.group)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ExecutableNotFoundError(command_line, argv[0]) from e

        output, _ = await process.communicate()

        if self._trace:
            self._print_trace(command_line, output)

        if process.returncode != 0:
            raise ExecError(
                command_line, process.returncode or -1, output.decode("utf-8", errors="replace")
            )

        return output

    async def run_many(self, *cmds: Command) -> None:
        for cmd in cmds:
            await self.run(cmd)

    async def run_exclusive(self, cmd: Command) -> bytes:
        async with self._locks[cmd.executable]:
            return await self.run(cmd)

    async def run_with_retries(self, cmd: Command, max_duration: float) -> bytes:
        """Run a command with exponential backoff, starting at one second.

        No attempt is started once ``max_duration`` seconds have passed; a
        running attempt is never interrupted.
        """
        retrying = AsyncRetrying(
            sleep=self._sleep,
            wait=wait_exponential(multiplier=1, min=1),
            stop=stop_after_delay(max_duration),
            retry=(
                retry_if_exception_type(ExecError)
                & retry_if_not_exception_type(ExecutableNotFoundError)
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.run(cmd)
        raise AssertionError("unreachable")

    async def write_home_file(self, filepath: Path, contents: bytes) -> None:
        """Write ``contents`` to ``~/filepath`` and hand it to the real user.

        Raises:
            ValueError: If ``filepath`` is absolute
        """
        filepath = self._relative(filepath)
        await self.mk_home_subdir(filepath.parent)

        target = self._user.home / filepath
        target.write_bytes(contents)
        self._chown_tree(target)

        logger.debug("Wrote file", path=str(target))

    async def mk_home_subdir(self, subdirectory: Path) -> None:
        """Create ``~/subdirectory`` and hand the new tree to the real user.

        Ownership is fixed from the first path component down, so any
        intermediate directories created on the way are covered too.

        Raises:
            ValueError: If ``subdirectory`` is absolute
        """
        subdirectory = self._relative(subdirectory)
        target = self._user.home / subdirectory
        target.mkdir(parents=True, exist_ok=True)

        if subdirectory.parts:
            self._chown_tree(self._user.home / subdirectory.parts[0])

    async def remove_all_home(self, filepath: Path) -> None:
        target = self._user.home / self._relative(filepath)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            return
        logger.debug("Removed path", path=str(target))

    async def read_home_file(self, filepath: Path) -> bytes:
        return await self.read_file(self._user.home / self._relative(filepath))

    async def read_file(self, filepath: Path) -> bytes:
        if not filepath.is_file():
            raise FileNotFoundError(f"file '{filepath}' does not exist")
        return filepath.read_bytes()

    async def snap_info(self, snap: str, channel: str = "") -> SnapInfo:
        return await self._snapd.snap_info(snap, channel)

    async def snap_channels(self, snap: str) -> list[str]:
        return await self._snapd.snap_channels(snap)

    @staticmethod
    def _relative(path: Path) -> Path:
        path = Path(path)
        if path.is_absolute():
            raise ValueError(f"only paths relative to the home directory are supported: {path}")
        return path

    def _chown_tree(self, root: Path) -> None:
        """Recursively give ``root`` to the real user.

        Nothing to do unless elevated: an unprivileged process already
        creates files as the real user.
        """
        if os.geteuid() != 0 or self._user.is_superuser:
            return

        uid, gid = self._user.uid, self._user.gid
        os.chown(root, uid, gid)
        if root.is_dir():
            for item in root.rglob("*"):
                os.chown(item, uid, gid, follow_symlinks=False)

        logger.debug("Changed ownership", path=str(root), user=self._user.username)

    def _print_trace(self, command_line: str, output: bytes) -> None:
        self._console.print(f"[bold green underline]Command:[/] [bold]{escape(command_line)}[/]")
        text = output.decode("utf-8", errors="replace")
        if text:
            self._console.print("[bold green]Output:[/]")
            self._console.print(escape(text), markup=True)
