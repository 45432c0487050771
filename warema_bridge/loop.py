"""
EventLoop - the bridge's single execution timeline.

Gateway callbacks (driver thread), MQTT messages (paho network thread) and
timer fires (threading.Timer threads) never touch the registry themselves;
they enqueue a callable here. One worker thread runs the callables in arrival
order, so no two handlers ever run concurrently.

Threading:
  - submit(), call_later(), call_every(): safe from any thread
  - Handlers run on the worker thread; an exception is logged and the loop
    continues with the next item
"""

import logging
import queue
import threading
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)

_STOP = object()


class EventLoop:
    """
    Serialized work queue with timers.

    Example:
        loop = EventLoop()
        loop.start()
        loop.submit(reconciler.handle, event)
        loop.call_later(15.0, gateway.get_position, "AABBCC")
        loop.call_every(30.0, poller.poll)
        ...
        loop.stop()
    """

    def __init__(self, name: str = "warema-bridge"):
        self.name = name
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._timers: Set[threading.Timer] = set()
        self._timers_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()

    # ===== scheduling (any thread) =====

    def submit(self, fn: Callable, *args, **kwargs) -> None:
        """Enqueue fn(*args, **kwargs) on the timeline."""
        self._queue.put((fn, args, kwargs))

    def call_later(self, delay: float, fn: Callable, *args, **kwargs) -> Optional[threading.Timer]:
        """
        Enqueue fn once after delay seconds.

        Timers are cancelled only by stop(). Returns None (nothing scheduled)
        when the loop is not running.
        """
        return self._schedule(delay, lambda: self.submit(fn, *args, **kwargs))

    def call_every(self, interval: float, fn: Callable, *args, **kwargs) -> None:
        """Enqueue fn every interval seconds until stop()."""
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        def tick():
            self.submit(fn, *args, **kwargs)
            self._schedule(interval, tick)

        self._schedule(interval, tick)

    def _schedule(self, delay: float, action: Callable[[], None]) -> Optional[threading.Timer]:
        timer = threading.Timer(delay, self._fire)
        # The timer hands itself to _fire so it can be deregistered
        timer.args = (timer, action)
        timer.daemon = True
        with self._timers_lock:
            # Checked under the lock so a tick racing stop() cannot re-arm
            if not self._running.is_set():
                return None
            self._timers.add(timer)
            timer.start()
        return timer

    def _fire(self, timer: threading.Timer, action: Callable[[], None]) -> None:
        with self._timers_lock:
            self._timers.discard(timer)
        if self._running.is_set():
            action()

    # ===== worker =====

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._running.set()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("🔁 Event loop started")

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._execute(item)

    def _execute(self, item) -> None:
        fn, args, kwargs = item
        try:
            fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"❌ Handler {getattr(fn, '__qualname__', fn)} failed: {e}", exc_info=True)

    def run_pending(self) -> int:
        """
        Run queued items on the calling thread until the queue is empty.

        Used when no worker thread is running (tests, final drain).

        Returns:
            Number of items executed
        """
        executed = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return executed
            if item is _STOP:
                continue
            self._execute(item)
            executed += 1

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel timers, let queued work finish, stop the worker."""
        self._running.clear()
        with self._timers_lock:
            timers, self._timers = self._timers, set()
        for timer in timers:
            timer.cancel()

        if self._thread is not None:
            self._queue.put(_STOP)
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("✅ Event loop stopped")

    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def pending_timers(self) -> int:
        with self._timers_lock:
            return len(self._timers)
