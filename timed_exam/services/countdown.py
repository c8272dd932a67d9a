"""
services/countdown.py

1초 간격 반복 틱을 발생시키는 카운트다운 타이머.
실행 중인 asyncio 이벤트 루프 위의 취소 가능한 태스크로 동작한다.
남은 시간 계산과 만료 판정은 콜백(컨트롤러) 쪽 책임.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_TICK_SECONDS = 1.0


class CountdownTimer:
    """
    start() 이후 interval마다 on_tick()을 호출한다. stop()으로 취소.
    일시정지/재개 없음.
    """

    def __init__(self, on_tick: Callable[[], None], interval: float = _TICK_SECONDS):
        self.on_tick = on_tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            # 누적 지연 없이 일정 간격 유지
            next_at += self.interval
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            if self._task is not asyncio.current_task():
                return
            try:
                self.on_tick()
            except Exception:
                logger.exception("타이머 틱 처리 중 오류")


def format_remaining(seconds: int) -> str:
    """남은 시간을 MM:SS 형식으로."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"
