"""CountdownTimer / format_remaining 테스트."""

import asyncio

import pytest

from timed_exam.services.countdown import CountdownTimer, format_remaining


class TestCountdownTimer:

    def test_ticks_until_stopped(self):
        ticks = []

        async def scenario():
            timer = CountdownTimer(lambda: ticks.append(1), interval=0.01)
            timer.start()
            assert timer.running
            while len(ticks) < 3:
                await asyncio.sleep(0.01)
            timer.stop()
            count = len(ticks)
            await asyncio.sleep(0.05)
            return timer, count

        timer, count = asyncio.run(scenario())
        assert not timer.running
        assert len(ticks) == count

    def test_stop_from_inside_callback(self):
        ticks = []

        async def scenario():
            def on_tick():
                ticks.append(1)
                timer.stop()

            timer = CountdownTimer(on_tick, interval=0.01)
            timer.start()
            await asyncio.sleep(0.1)
            return timer

        timer = asyncio.run(scenario())
        assert ticks == [1]
        assert not timer.running

    def test_start_is_idempotent(self):
        ticks = []

        async def scenario():
            timer = CountdownTimer(lambda: ticks.append(1), interval=0.05)
            timer.start()
            first = timer._task
            timer.start()
            assert timer._task is first
            timer.stop()

        asyncio.run(scenario())

    def test_callback_error_does_not_stop_timer(self):
        ticks = []

        async def scenario():
            def on_tick():
                ticks.append(1)
                if len(ticks) == 1:
                    raise RuntimeError("boom")

            timer = CountdownTimer(on_tick, interval=0.01)
            timer.start()
            while len(ticks) < 2:
                await asyncio.sleep(0.01)
            timer.stop()

        asyncio.run(scenario())
        assert len(ticks) >= 2

    def test_start_requires_running_loop(self):
        timer = CountdownTimer(lambda: None)
        with pytest.raises(RuntimeError):
            timer.start()


@pytest.mark.parametrize("seconds, expected", [
    (600, "10:00"),
    (59, "00:59"),
    (61, "01:01"),
    (0, "00:00"),
    (-5, "00:00"),
])
def test_format_remaining(seconds, expected):
    assert format_remaining(seconds) == expected
