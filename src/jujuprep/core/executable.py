"""The prepare/restore contract shared by handlers and providers."""

from enum import Enum
from typing import Protocol, runtime_checkable


class Action(str, Enum):
    """Direction of a run."""

    PREPARE = "prepare"
    RESTORE = "restore"


@runtime_checkable
class Executable(Protocol):
    """Anything that can be set up and torn down again."""

    async def prepare(self) -> None: ...

    async def restore(self) -> None: ...


async def do_action(executable: Executable, action: Action | str) -> None:
    """Call ``prepare`` or ``restore`` on ``executable``.

    Raises:
        ValueError: If ``action`` is neither prepare nor restore
    """
    try:
        action = Action(action)
    except ValueError:
        raise ValueError(f"Unknown action: {action}") from None

    if action is Action.PREPARE:
        await executable.prepare()
    else:
        await executable.restore()
