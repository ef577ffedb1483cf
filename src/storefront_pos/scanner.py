from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Callable

from .log import get_logger, log_event

logger = get_logger("storefront_pos.scanner")

DEFAULT_SCAN_COOLDOWN_SECONDS = 1.5

ScanHandler = Callable[[str], Any]
ScanErrorHandler = Callable[[str, Exception], Any]

_CLOSED = object()


class ScanChannel:
    """Ordered hand-off from barcode callbacks to a single consumer coroutine.

    ``publish`` may be called from scanner callbacks at any rate; a code seen
    again inside the cooldown window is dropped there. ``run`` handles codes
    one at a time, so cart mutations never interleave.
    """

    def __init__(
        self,
        cooldown_seconds: float = DEFAULT_SCAN_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError("scan cooldown must be >= 0")
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._last_code: str | None = None
        self._last_at: float | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def publish(self, code: str) -> bool:
        """Queue ``code`` for the consumer. Returns ``False`` when it was dropped."""
        if self._closed:
            raise RuntimeError("scan channel is closed")
        code = code.strip()
        if not code:
            return False
        now = self._clock()
        if (
            code == self._last_code
            and self._last_at is not None
            and now - self._last_at < self.cooldown_seconds
        ):
            log_event(logger, module="scanner", action="publish", outcome="duplicate_dropped", level=logging.DEBUG)
            return False
        self._last_code = code
        self._last_at = now
        self._queue.put_nowait(code)
        return True

    def close(self) -> None:
        """Stop the consumer once the codes already queued have been handled."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def run(self, handler: ScanHandler, on_error: ScanErrorHandler | None = None) -> int:
        handled = 0
        while True:
            item = await self._queue.get()
            try:
                if item is _CLOSED:
                    return handled
                code = str(item)
                try:
                    result = handler(code)
                    if inspect.isawaitable(result):
                        await result
                    handled += 1
                except Exception as exc:
                    log_event(
                        logger,
                        module="scanner",
                        action="handle",
                        outcome="error",
                        level=logging.WARNING,
                        error_type=type(exc).__name__,
                    )
                    if on_error is not None:
                        on_error(code, exc)
            finally:
                self._queue.task_done()
