"""Single-threaded cooperative loop used to drive polling and one-shot requests.

All client state is mutated from loop callbacks only. Blocking HTTP calls run
on a worker pool and their outcome is queued back to the loop thread, so
callbacks never race each other.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from queue import Empty, SimpleQueue
from typing import Any, Callable, Optional, Protocol, TypeVar
import heapq
import itertools
import logging
import time


_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Loop(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...

    def run_io(
        self,
        fn: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[BaseException], None],
    ) -> None: ...


class _Timer:
    __slots__ = ("when", "callback", "cancelled")

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class EventLoop:
    """Blocking loop for command-line use.

    ``run_until`` processes due timers and settled I/O until the predicate holds
    or the timeout expires.
    """

    def __init__(self, max_workers: int = 4, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._timers: list[tuple[float, int, _Timer]] = []
        self._seq = itertools.count()
        self._settled: SimpleQueue[Callable[[], None]] = SimpleQueue()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stemclient-io")
        self._pending_io = 0

    @property
    def pending_io(self) -> int:
        return self._pending_io

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(self._clock() + max(0.0, delay), callback)
        heapq.heappush(self._timers, (timer.when, next(self._seq), timer))
        return timer

    def run_io(
        self,
        fn: Callable[[], T],
        on_success: Callable[[T], None],
        on_failure: Callable[[BaseException], None],
    ) -> None:
        self._pending_io += 1
        fut = self._executor.submit(fn)
        fut.add_done_callback(lambda f: self._settled.put(partial(self._settle, f, on_success, on_failure)))

    def _settle(self, fut: Future, on_success: Callable[[Any], None], on_failure: Callable[[BaseException], None]) -> None:
        self._pending_io -= 1
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            on_failure(exc)
        else:
            on_success(fut.result())

    def _run_due_timers(self) -> None:
        now = self._clock()
        while self._timers and self._timers[0][0] <= now:
            _, _, timer = heapq.heappop(self._timers)
            if not timer.cancelled:
                timer.callback()

    def _next_wait(self, deadline: Optional[float]) -> Optional[float]:
        while self._timers and self._timers[0][2].cancelled:
            heapq.heappop(self._timers)
        candidates = []
        if self._timers:
            candidates.append(self._timers[0][0])
        if deadline is not None:
            candidates.append(deadline)
        if not candidates:
            return None
        return max(0.0, min(candidates) - self._clock())

    def run_until(self, predicate: Callable[[], bool], timeout: Optional[float] = None) -> bool:
        """Run callbacks until ``predicate()`` is true; return False on timeout or idle."""

        deadline = self._clock() + timeout if timeout is not None else None
        while not predicate():
            self._run_due_timers()
            if predicate():
                break
            if deadline is not None and self._clock() >= deadline:
                return False
            has_timers = any(not t.cancelled for _, _, t in self._timers)
            if not has_timers and self._pending_io == 0:
                _LOGGER.debug("loop idle before predicate was satisfied")
                return False
            try:
                callback = self._settled.get(timeout=self._next_wait(deadline))
            except Empty:
                continue
            callback()
        return True

    def close(self) -> None:
        self._timers.clear()
        self._executor.shutdown(wait=False, cancel_futures=True)
