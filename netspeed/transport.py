"""
Timed network exchanges used by the probes.

``Transport`` is the contract the engine depends on; ``HttpTransport`` is the
stock implementation speaking the three-endpoint wire protocol::

    GET  /ping                  near-empty response, timing only
    GET  /download?size=<bytes> body of roughly <bytes> length
    POST /upload                body of <bytes> length, any 2xx

All HTTP work goes through a single ``aiohttp.ClientSession`` managed via
async-context-manager protocol (``async with HttpTransport(url) as t: ...``).
"""
from __future__ import annotations

import abc
import asyncio
import logging
import os
import time
from typing import AsyncIterator, Optional

import aiohttp

from .cancel import CancelToken
from .constants import (
    CHUNK_SIZE,
    COMMON_HEADERS,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    DOWNLOAD_PATH,
    PING_PATH,
    UPLOAD_BUFFER_SIZE,
    UPLOAD_PATH,
)
from .errors import SampleFailure

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class Transport(abc.ABC):
    """One timed exchange per call.  Returns elapsed milliseconds.

    Implementations raise ``SampleFailure`` for any network error, bad
    status, or timeout, and must give up promptly once *token* fires.
    """

    @abc.abstractmethod
    async def ping(self, token: CancelToken) -> float:
        ...

    @abc.abstractmethod
    async def download(self, size_bytes: int, token: CancelToken) -> float:
        ...

    @abc.abstractmethod
    async def upload(self, size_bytes: int, token: CancelToken) -> float:
        ...

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None


# ---------------------------------------------------------------------------
# HTTP implementation
# ---------------------------------------------------------------------------

class HttpTransport(Transport):
    """``Transport`` over plain HTTP(S) using aiohttp."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._data_buffer = os.urandom(UPLOAD_BUFFER_SIZE)

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> HttpTransport:
        self._session = aiohttp.ClientSession(
            headers=COMMON_HEADERS,
            timeout=aiohttp.ClientTimeout(total=self.timeout, connect=self.timeout),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "HttpTransport must be used as an async context manager "
                "(async with HttpTransport(url) as transport: ...)"
            )
        return self._session

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _timed(self, token: CancelToken, label: str, exchange) -> float:  # noqa: ANN001
        """Run *exchange* under the token and convert failures to ``SampleFailure``."""
        start = time.perf_counter()
        try:
            await token.guard(exchange())
        except asyncio.TimeoutError as exc:
            raise SampleFailure(f"{label} timed out after {self.timeout:.1f} s") from exc
        except aiohttp.ClientResponseError as exc:
            raise SampleFailure(f"{label} returned HTTP {exc.status}") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise SampleFailure(f"{label} failed: {exc}") from exc
        return (time.perf_counter() - start) * 1000

    def _payload(self, size_bytes: int) -> AsyncIterator[bytes]:
        buf = self._data_buffer

        async def _stream() -> AsyncIterator[bytes]:
            remaining = size_bytes
            while remaining > 0:
                n = min(remaining, len(buf))
                yield buf[:n]
                remaining -= n

        return _stream()

    # -- Public methods -----------------------------------------------------

    async def ping(self, token: CancelToken) -> float:
        session = self._ensure_session()

        async def _exchange() -> None:
            async with session.get(self._url(PING_PATH)) as resp:
                resp.raise_for_status()
                await resp.read()

        return await self._timed(token, "ping", _exchange)

    async def download(self, size_bytes: int, token: CancelToken) -> float:
        session = self._ensure_session()
        params = {"size": str(size_bytes)}
        headers = {"Accept-Encoding": "identity"}

        async def _exchange() -> None:
            received = 0
            async with session.get(self._url(DOWNLOAD_PATH), params=params, headers=headers) as resp:
                resp.raise_for_status()
                async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                    received += len(chunk)
            if received == 0:
                raise aiohttp.ClientPayloadError("empty download body")
            logger.debug("download: requested %d bytes, received %d", size_bytes, received)

        return await self._timed(token, "download", _exchange)

    async def upload(self, size_bytes: int, token: CancelToken) -> float:
        session = self._ensure_session()
        headers = {"Content-Type": "application/octet-stream"}

        async def _exchange() -> None:
            async with session.post(
                self._url(UPLOAD_PATH),
                data=self._payload(size_bytes),
                headers=headers,
            ) as resp:
                resp.raise_for_status()
                await resp.read()

        return await self._timed(token, "upload", _exchange)
