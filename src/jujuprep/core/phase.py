"""Run a group of independent units concurrently and join them."""

import asyncio
from collections.abc import Awaitable

from jujuprep.core.errors import PhaseError
from jujuprep.core.logging import get_logger

logger = get_logger(__name__)


async def run_phase(phase: str, units: list[Awaitable[None]]) -> None:
    """Await every unit concurrently, then raise if any of them failed.

    Units are never cancelled when a sibling fails; the external processes
    they drive are left to finish so the phase joins cleanly.

    Raises:
        PhaseError: Carrying every failure, first-observed first
    """
    failures: list[Exception] = []

    async def _guard(unit: Awaitable[None]) -> None:
        try:
            await unit
        except Exception as e:
            failures.append(e)

    await asyncio.gather(*(_guard(unit) for unit in units))

    if failures:
        for failure in failures[1:]:
            logger.debug("Additional failure in phase", phase=phase, error=str(failure))
        raise PhaseError(phase, failures)
