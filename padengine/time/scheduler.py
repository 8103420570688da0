"""
TickScheduler - The single periodic tick plus the event queue feeding it.

Work from other threads (MIDI callbacks, player notifications, UI) is
posted here and runs on the scheduler thread right before the next tick, so
engine state is only ever mutated from one place.
"""

from __future__ import annotations
from collections import deque
from typing import Callable, Deque, Optional, Tuple
import logging
import threading
import time

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Fixed-period loop: drain posted work, then tick.

    Usage:
        scheduler = TickScheduler(engine.tick, interval=0.05)
        engine.set_dispatcher(scheduler.post)
        scheduler.start()           # daemon thread
        ...
        scheduler.stop()

    `run()` drives the same loop on the calling thread. `clock` and `sleep`
    are injectable for tests.
    """

    def __init__(
        self,
        tick: Callable[[], None],
        interval: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._tick = tick
        self.interval = interval
        self._clock = clock
        self._sleep = sleep

        self._queue: Deque[Tuple[Callable, tuple]] = deque()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._loop_thread: Optional[threading.Thread] = None
        self._running = False

        self.tick_count = 0
        self.overruns = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    # =========================================================================
    # Queue
    # =========================================================================

    def post(self, fn: Callable, *args) -> None:
        """Queue `fn(*args)` for the scheduler thread. Non-blocking, thread-safe."""
        with self._lock:
            self._queue.append((fn, args))

    def call(self, fn: Callable, *args):
        """
        Run `fn(*args)` where the engine lives.

        Inline (returning its result) when no loop is running or the caller
        is the loop thread; otherwise queued for the next step and None is
        returned.
        """
        if self._running and threading.current_thread() is not self._loop_thread:
            self.post(fn, *args)
            return None
        return fn(*args)

    def drain(self) -> int:
        """Run queued work in FIFO order, including work queued while draining."""
        processed = 0
        while True:
            with self._lock:
                if not self._queue:
                    break
                fn, args = self._queue.popleft()
            try:
                fn(*args)
            except Exception as e:
                logger.exception(f"Scheduler: posted task {fn!r} failed: {e}")
            processed += 1
        return processed

    # =========================================================================
    # Loop
    # =========================================================================

    def step(self) -> None:
        self.drain()
        try:
            self._tick()
        except Exception as e:
            logger.exception(f"Scheduler: tick failed: {e}")
        self.tick_count += 1

    def run(self, duration: float = None, until: Callable[[], bool] = None) -> None:
        """Run on the calling thread until stopped, `until()` is true or `duration` elapses."""
        self._running = True
        self._loop(duration, until)

    def start(self) -> None:
        """Start the loop on a daemon thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._loop, name="TickScheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler: started ({self.interval * 1000:.0f} ms)")

    def stop(self) -> None:
        self._running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=2.0)
            self._thread = None
            logger.info("Scheduler: stopped")

    def _loop(self, duration: float = None, until: Callable[[], bool] = None) -> None:
        self._loop_thread = threading.current_thread()
        start = self._clock()
        deadline = start
        try:
            while self._running:
                self.step()
                now = self._clock()
                if until is not None and until():
                    break
                if duration is not None and now - start >= duration:
                    break

                deadline += self.interval
                delay = deadline - now
                if delay > 0:
                    self._sleep(delay)
                else:
                    # Overrun: resync instead of firing a burst of late ticks
                    self.overruns += 1
                    logger.debug(f"Scheduler: tick overran by {-delay * 1000:.1f} ms")
                    deadline = now
        finally:
            self._running = False
            self._loop_thread = None
