import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """
    周期计时器 - 在事件循环中每隔 interval 秒调用一次 callback

    start() 返回的 task 即取消句柄，stop() 负责取消。
    """

    def __init__(self, callback: Callable[[], object], interval: float = 1.0):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop."""
        if self.running:
            return self._task
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def stop(self):
        if self._task is not None:
            self._task.cancel()
        self._task = None

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.callback()
            except Exception:
                logger.exception("tick callback failed")
