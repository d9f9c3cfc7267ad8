"""Tests for netspeed.cancel."""

import asyncio
import unittest

from netspeed.cancel import CancelToken
from netspeed.errors import SampleFailure, TestCancelled


class TestCancelToken(unittest.IsolatedAsyncioTestCase):
    async def test_initial_state(self):
        token = CancelToken()
        self.assertFalse(token.cancelled)
        token.raise_if_cancelled()

    async def test_cancel_is_idempotent(self):
        token = CancelToken()
        token.cancel()
        token.cancel()
        self.assertTrue(token.cancelled)
        with self.assertRaises(TestCancelled):
            token.raise_if_cancelled()

    async def test_sleep_runs_out(self):
        await CancelToken().sleep(0.01)

    async def test_sleep_interrupted(self):
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        with self.assertRaises(TestCancelled):
            await asyncio.wait_for(token.sleep(10), timeout=1.0)

    async def test_sleep_after_cancel(self):
        token = CancelToken()
        token.cancel()
        with self.assertRaises(TestCancelled):
            await token.sleep(0)

    async def test_guard_returns_value(self):
        async def work():
            return 42

        self.assertEqual(await CancelToken().guard(work()), 42)

    async def test_guard_propagates_failure(self):
        async def work():
            raise SampleFailure("boom")

        with self.assertRaises(SampleFailure):
            await CancelToken().guard(work())

    async def test_guard_interrupts_hanging_request(self):
        token = CancelToken()
        finished = []

        async def hang():
            try:
                await asyncio.sleep(3600)
            finally:
                finished.append(True)

        asyncio.get_running_loop().call_later(0.01, token.cancel)
        with self.assertRaises(TestCancelled):
            await asyncio.wait_for(token.guard(hang()), timeout=1.0)
        self.assertEqual(finished, [True])

    async def test_guard_when_already_cancelled(self):
        token = CancelToken()
        token.cancel()
        started = []

        async def work():
            started.append(True)

        with self.assertRaises(TestCancelled):
            await token.guard(work())
        self.assertEqual(started, [])


if __name__ == "__main__":
    unittest.main()
