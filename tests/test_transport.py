"""Tests for netspeed.transport against the bundled aiohttp server."""

import asyncio
import unittest

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from netspeed.cancel import CancelToken
from netspeed.errors import SampleFailure, TestCancelled
from netspeed.server import create_app
from netspeed.transport import HttpTransport


class TestHttpTransport(AioHTTPTestCase):
    async def get_application(self):
        return create_app()

    def _base_url(self):
        return str(self.server.make_url("/")).rstrip("/")

    async def test_ping(self):
        async with HttpTransport(self._base_url()) as transport:
            ms = await transport.ping(CancelToken())
        self.assertGreater(ms, 0)

    async def test_download(self):
        async with HttpTransport(self._base_url()) as transport:
            ms = await transport.download(300_000, CancelToken())
        self.assertGreater(ms, 0)

    async def test_upload(self):
        async with HttpTransport(self._base_url()) as transport:
            ms = await transport.upload(2_500_000, CancelToken())
        self.assertGreater(ms, 0)

    async def test_bad_status_is_sample_failure(self):
        async with HttpTransport(self._base_url() + "/missing") as transport:
            with self.assertRaises(SampleFailure) as ctx:
                await transport.ping(CancelToken())
        self.assertIn("404", str(ctx.exception))

    async def test_cancelled_token(self):
        token = CancelToken()
        token.cancel()
        async with HttpTransport(self._base_url()) as transport:
            with self.assertRaises(TestCancelled):
                await transport.download(1000, token)

    async def test_requires_context_manager(self):
        with self.assertRaises(RuntimeError):
            await HttpTransport(self._base_url()).ping(CancelToken())


class TestSlowServer(AioHTTPTestCase):
    async def get_application(self):
        async def stall(request):
            await asyncio.sleep(3)
            return web.Response(status=204)

        app = web.Application()
        app.router.add_get("/ping", stall)
        app.router.add_get("/download", stall)
        app.router.add_post("/upload", stall)
        return app

    async def test_timeout_is_sample_failure(self):
        base_url = str(self.server.make_url("/")).rstrip("/")
        async with HttpTransport(base_url, timeout=0.5) as transport:
            calls = {
                "ping": lambda: transport.ping(CancelToken()),
                "download": lambda: transport.download(1000, CancelToken()),
                "upload": lambda: transport.upload(1000, CancelToken()),
            }
            for name, call in calls.items():
                with self.subTest(name):
                    with self.assertRaises(SampleFailure) as ctx:
                        await call()
                    self.assertIn("timed out", str(ctx.exception))


class TestServerEndpoints(AioHTTPTestCase):
    async def get_application(self):
        return create_app()

    async def test_ping_no_content(self):
        resp = await self.client.get("/ping")
        self.assertEqual(resp.status, 204)
        self.assertEqual(resp.headers["Cache-Control"], "no-store")

    async def test_download_exact_size(self):
        resp = await self.client.get("/download", params={"size": "150000"})
        self.assertEqual(resp.status, 200)
        body = await resp.read()
        self.assertEqual(len(body), 150_000)

    async def test_download_bad_size(self):
        for size in ("abc", "0", "-5"):
            with self.subTest(size=size):
                resp = await self.client.get("/download", params={"size": size})
                self.assertEqual(resp.status, 400)

    async def test_upload_counts_bytes(self):
        resp = await self.client.post("/upload", data=b"x" * 12345)
        self.assertEqual(resp.status, 200)
        self.assertEqual(await resp.json(), {"received": 12345})


class TestUnreachable(unittest.IsolatedAsyncioTestCase):
    async def test_connection_refused(self):
        async with HttpTransport("http://127.0.0.1:1", timeout=1.0) as transport:
            with self.assertRaises(SampleFailure):
                await transport.ping(CancelToken())

    async def test_cancel_interrupts_request(self):
        # Unroutable address: the connect hangs until the token fires.
        async with HttpTransport("http://10.255.255.1", timeout=30.0) as transport:
            token = CancelToken()
            asyncio.get_running_loop().call_later(0.05, token.cancel)
            with self.assertRaises((TestCancelled, SampleFailure)):
                await asyncio.wait_for(transport.ping(token), timeout=5.0)


if __name__ == "__main__":
    unittest.main()
