from __future__ import annotations

import asyncio
from unittest import IsolatedAsyncioTestCase

from quizgame.timers import TimerRegistry


class TimerRegistryTests(IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.timers = TimerRegistry()
        self.fired: list[str] = []

    async def asyncTearDown(self) -> None:
        self.timers.cancel_all()

    def _recorder(self, label: str):
        async def callback():
            self.fired.append(label)

        return callback

    async def test_fires_after_delay_and_clears_itself(self):
        task = self.timers.schedule(1, 0.01, self._recorder("a"))
        self.assertTrue(self.timers.pending(1))

        await task

        self.assertEqual(self.fired, ["a"])
        self.assertFalse(self.timers.pending(1))

    async def test_cancel_prevents_firing(self):
        self.timers.schedule(1, 0.05, self._recorder("a"))
        self.assertTrue(self.timers.cancel(1))
        await asyncio.sleep(0.1)

        self.assertEqual(self.fired, [])
        self.assertFalse(self.timers.cancel(1))

    async def test_schedule_replaces_pending_timer(self):
        first = self.timers.schedule(1, 0.05, self._recorder("first"))
        second = self.timers.schedule(1, 0.05, self._recorder("second"))
        await second
        await asyncio.sleep(0)

        self.assertTrue(first.cancelled())
        self.assertEqual(self.fired, ["second"])
        self.assertEqual(len(self.timers), 0)

    async def test_games_have_independent_timers(self):
        self.timers.schedule(1, 0.01, self._recorder("one"))
        task = self.timers.schedule(2, 0.02, self._recorder("two"))
        await task

        self.assertEqual(self.fired, ["one", "two"])

    async def test_cancel_all(self):
        self.timers.schedule(1, 0.05, self._recorder("one"))
        self.timers.schedule(2, 0.05, self._recorder("two"))
        self.timers.cancel_all()
        await asyncio.sleep(0.1)

        self.assertEqual(self.fired, [])
        self.assertEqual(len(self.timers), 0)

    async def test_callback_can_chain_next_timer(self):
        done = asyncio.Event()

        async def second():
            self.fired.append("second")
            done.set()

        async def first():
            self.fired.append("first")
            self.timers.cancel(1)
            self.timers.schedule(1, 0.01, second)

        self.timers.schedule(1, 0.01, first)
        await asyncio.wait_for(done.wait(), timeout=1)

        self.assertEqual(self.fired, ["first", "second"])

    async def test_failing_callback_is_logged_and_raised(self):
        async def boom():
            raise RuntimeError("disk full")

        with self.assertLogs("quizgame.timers", level="ERROR"):
            task = self.timers.schedule(1, 0.01, boom)
            with self.assertRaises(RuntimeError):
                await task

        self.assertFalse(self.timers.pending(1))
