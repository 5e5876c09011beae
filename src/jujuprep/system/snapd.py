"""Minimal async client for the snapd REST API on its unix socket."""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from jujuprep.core.logging import get_logger
from jujuprep.system.models import SnapInfo

logger = get_logger(__name__)

SNAPD_SOCKET = Path("/run/snapd.socket")

# snapd reports a missing snap with this error kind, both for the local
# snaps endpoint and for store lookups.
SNAP_NOT_FOUND = "snap-not-found"


class SnapdError(Exception):
    """An error response from snapd.

    Attributes:
        kind: snapd's machine-readable error kind, empty if none was given
        status_code: HTTP status reported in the response body
    """

    def __init__(self, message: str, kind: str = "", status_code: int = 0) -> None:
        super().__init__(f"snapd API error: {message}")
        self.kind = kind
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.kind == SNAP_NOT_FOUND


def _retryable(exc: BaseException) -> bool:
    if isinstance(exc, SnapdError):
        return not exc.not_found
    return isinstance(exc, (aiohttp.ClientError, OSError, TimeoutError))


class SnapdClient:
    """Queries snap install state and store metadata from snapd."""

    def __init__(
        self,
        socket_path: Path = SNAPD_SOCKET,
        attempts: int = 10,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.socket_path = socket_path
        self._attempts = attempts
        self._sleep = sleep

    async def snap_info(self, name: str, channel: str = "") -> SnapInfo:
        """Report whether ``name`` is installed and whether it needs ``--classic``.

        The confinement of ``channel`` is used when the store publishes that
        channel, otherwise the snap's default confinement.
        """
        installed, tracking = await self._installed(name)
        store = await self._find(name)

        confinement = store.get("confinement", "")
        channels = store.get("channels") or {}
        if channel in channels:
            confinement = channels[channel].get("confinement", confinement)

        info = SnapInfo(
            installed=installed, classic=confinement == "classic", tracking_channel=tracking
        )
        logger.debug(
            "Queried snapd API",
            snap=name,
            installed=info.installed,
            classic=info.classic,
            tracking=tracking,
        )
        return info

    async def snap_channels(self, name: str) -> list[str]:
        """Return every channel the store publishes for ``name``."""
        store = await self._find(name)
        return list((store.get("channels") or {}).keys())

    async def _installed(self, name: str) -> tuple[bool, str]:
        try:
            local = await self._get(f"/v2/snaps/{name}")
        except SnapdError as e:
            if e.not_found:
                return False, ""
            raise

        if local.get("status") != "active":
            return False, ""
        return True, local.get("tracking-channel") or local.get("channel", "")

    async def _find(self, name: str) -> dict[str, Any]:
        results = await self._get("/v2/find", params={"name": name})
        if not isinstance(results, list) or not results:
            raise SnapdError(f"snap '{name}' not found in the store", kind=SNAP_NOT_FOUND)

        for result in results:
            if result.get("name") == name:
                return result
        return results[0]

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        if not self.socket_path.exists():
            raise FileNotFoundError(f"snapd socket not found at '{self.socket_path}'")

        retrying = AsyncRetrying(
            sleep=self._sleep,
            wait=wait_exponential(multiplier=1, min=1, max=10),
            stop=stop_after_attempt(self._attempts),
            retry=retry_if_exception(_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request(path, params)

    async def _request(self, path: str, params: dict[str, str] | None) -> Any:
        connector = aiohttp.UnixConnector(path=str(self.socket_path))
        timeout = aiohttp.ClientTimeout(total=30)
        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            async with session.get(f"http://localhost{path}", params=params) as response:
                body = await response.json()

        if body.get("type") == "error":
            result = body.get("result") or {}
            raise SnapdError(
                result.get("message", "unknown error"),
                kind=result.get("kind", ""),
                status_code=body.get("status-code", 0),
            )
        return body.get("result")
