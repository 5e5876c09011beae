"""Command descriptors and the errors raised when running them."""

import shlex
from dataclasses import dataclass, field

from jujuprep.system.models import RealUser


@dataclass
class Command:
    """An external command, optionally run as another user and/or group.

    Nothing is spawned here; a worker turns the descriptor into a process.

    Attributes:
        executable: Name of the program to run
        args: Positional and flag arguments
        user: User to drop to via sudo, empty to run as the current user
        group: Group to drop to via sudo, empty to keep the current group
    """

    executable: str
    args: list[str] = field(default_factory=list)
    user: str = ""
    group: str = ""

    @classmethod
    def as_user(
        cls,
        real_user: RealUser,
        executable: str,
        args: list[str] | None = None,
        group: str = "",
    ) -> "Command":
        """Build a command that runs as ``real_user``.

        When the real user is the superuser there is nothing to drop to, so
        no sudo wrapper is added for the user.
        """
        user = "" if real_user.is_superuser else real_user.username
        return cls(executable=executable, args=list(args or []), user=user, group=group)

    def argv(self, executable_path: str = "") -> list[str]:
        """Assemble the argument vector, prefixed with ``sudo`` where needed.

        Args:
            executable_path: Resolved path of the executable; the bare
                executable name is used when empty.
        """
        argv: list[str] = []
        if self.user or self.group:
            argv.append("sudo")
            if self.user:
                argv += ["-u", self.user]
            if self.group:
                argv += ["-g", self.group]
        argv.append(executable_path or self.executable)
        argv += self.args
        return argv

    def render(self, executable_path: str = "") -> str:
        """Render the command as a shell-escaped string."""
        return shlex.join(self.argv(executable_path))


class ExecError(Exception):
    """A command exited non-zero or could not be started.

    Attributes:
        command: The rendered command line
        returncode: Exit status, or -1 when the process never ran
        output: Combined stdout/stderr
    """

    def __init__(self, command: str, returncode: int, output: str) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"command '{command}' failed with exit code {returncode}")


class ExecutableNotFoundError(ExecError):
    """The executable could not be found or spawned. Never retried."""

    def __init__(self, command: str, executable: str) -> None:
        super().__init__(command, -1, f"executable '{executable}' not found")
        self.executable = executable
