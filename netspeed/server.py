"""
Minimal aiohttp server implementing the measurement endpoints.

Handy for self-hosting a target on the far side of a link, and used by the
transport tests::

    GET  /ping                  204, empty body
    GET  /download?size=<bytes> streamed body of exactly <bytes> bytes
    POST /upload                drains the body, replies with the byte count
"""
from __future__ import annotations

import logging
import os

from aiohttp import web

from .constants import (
    CHUNK_SIZE,
    DOWNLOAD_PATH,
    MAX_DOWNLOAD_SIZE,
    PING_PATH,
    UPLOAD_PATH,
)

logger = logging.getLogger(__name__)

_NO_CACHE = {"Cache-Control": "no-store"}
_PAYLOAD = os.urandom(CHUNK_SIZE)


async def handle_ping(request: web.Request) -> web.Response:
    return web.Response(status=204, headers=_NO_CACHE)


async def handle_download(request: web.Request) -> web.StreamResponse:
    try:
        size = int(request.query.get("size", "0"))
    except ValueError:
        raise web.HTTPBadRequest(text="size must be an integer") from None
    if size <= 0:
        raise web.HTTPBadRequest(text="size must be positive")
    size = min(size, MAX_DOWNLOAD_SIZE)

    resp = web.StreamResponse(headers={**_NO_CACHE, "Content-Type": "application/octet-stream"})
    resp.content_length = size
    await resp.prepare(request)

    chunk = _PAYLOAD
    remaining = size
    while remaining > 0:
        n = min(remaining, len(chunk))
        await resp.write(chunk[:n])
        remaining -= n

    await resp.write_eof()
    return resp


async def handle_upload(request: web.Request) -> web.Response:
    received = 0
    async for data in request.content.iter_chunked(CHUNK_SIZE):
        received += len(data)
    logger.debug("upload: received %d bytes from %s", received, request.remote)
    return web.json_response({"received": received}, headers=_NO_CACHE)


def create_app() -> web.Application:
    app = web.Application(client_max_size=MAX_DOWNLOAD_SIZE)
    app.router.add_get(PING_PATH, handle_ping)
    app.router.add_get(DOWNLOAD_PATH, handle_download)
    app.router.add_post(UPLOAD_PATH, handle_upload)
    return app


def run_server(host: str = "0.0.0.0", port: int = 8080) -> None:
    """Serve until interrupted."""
    logger.info("Serving measurement endpoints on http://%s:%d", host, port)
    web.run_app(create_app(), host=host, port=port, print=None)
