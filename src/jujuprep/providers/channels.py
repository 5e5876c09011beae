"""Pick a default snap channel from what the store currently publishes."""

import re

from jujuprep.core.logging import get_logger
from jujuprep.system.worker import Worker

logger = get_logger(__name__)

_VERSION = re.compile(r"^(\d+(?:\.\d+)*)")


def _version_key(channel: str) -> tuple[int, ...]:
    match = _VERSION.match(channel)
    if not match:
        return ()
    return tuple(int(part) for part in match.group(1).split("."))


def newest_stable(channels: list[str], variant: str) -> str:
    """Return the highest-versioned ``<version>-<variant>/stable`` channel, or ''.

    Versions compare numerically, so ``1.10`` sorts above ``1.9``.
    """
    candidates = [c for c in channels if variant in c and c.endswith("/stable")]
    if not candidates:
        return ""
    return max(candidates, key=lambda c: (_version_key(c), c))


async def compute_default_channel(
    system: Worker, snap: str, variant: str, fallback: str
) -> str:
    """Ask the store for the newest stable channel of ``snap``'s variant.

    Falls back to ``fallback`` when the store cannot be reached or has no
    matching channel.
    """
    try:
        channels = await system.snap_channels(snap)
    except Exception as e:
        logger.warning("Could not query store channels", snap=snap, error=str(e))
        return fallback

    channel = newest_stable(channels, variant)
    if not channel:
        logger.debug("No matching store channel", snap=snap, variant=variant)
        return fallback

    logger.debug("Computed default channel", snap=snap, channel=channel)
    return channel
