from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

from PySide6.QtCore import QObject, QTimer, Signal


T = TypeVar("T")


class _QtTimer:
    def __init__(self, owner: "QtLoop", delay: float, callback: Callable[[], None]) -> None:
        self._owner = owner
        self._callback = callback
        self._timer: QTimer | None = QTimer(owner)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)
        self._timer.start(max(0, int(delay * 1000)))

    def _fire(self) -> None:
        timer, self._timer = self._timer, None
        self._owner._timers.discard(self)
        if timer is not None:
            timer.deleteLater()
        self._callback()

    def cancel(self) -> None:
        timer, self._timer = self._timer, None
        self._owner._timers.discard(self)
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class QtLoop(QObject):
    """Run the client's cooperative loop on the Qt event loop.

    Timers are single-shot QTimers; blocking requests run on a thread pool and
    their outcome is marshalled back to the GUI thread through a queued signal.
    """

    _settled = Signal(object)

    def __init__(self, parent: QObject | None = None, max_workers: int = 4) -> None:
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stemsmith-io")
        self._timers: set[_QtTimer] = set()
        self._settled.connect(self._dispatch)

    def call_later(self, delay: float, callback: Callable[[], None]) -> _QtTimer:
        timer = _QtTimer(self, delay, callback)
        self._timers.add(timer)
        return timer

    def run_io(
        self,
        fn: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        fut = self._executor.submit(fn)
        # Emitted from the worker thread; delivered on the GUI thread
        fut.add_done_callback(lambda f: self._settled.emit(partial(self._settle, f, on_success, on_failure)))

    @staticmethod
    def _settle(fut: Future, on_success: Callable[[Any], None], on_failure: Callable[[BaseException], None]) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            on_failure(exc)
        else:
            on_success(fut.result())

    def _dispatch(self, callback: Callable[[], None]) -> None:
        callback()

    def close(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
        self._executor.shutdown(wait=False, cancel_futures=True)
