import logging
import threading
from typing import Any, Callable


logger = logging.getLogger(__name__)


class TimerHandle:
    """Ownership token for one scheduled callback.

    Cancelling is idempotent: cancelling a fired or already cancelled
    handle does nothing.
    """

    def __init__(self, repeating: bool = False):
        self.repeating = repeating
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        if self.cancelled:
            return False
        return self.repeating or not self.fired

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundScheduler:
    """Runs deferred room work as Socket.IO background tasks.

    Callbacks run while holding ``lock``, the same lock inbound events are
    dispatched under, so a room is never mutated by two tasks at once. The
    handle is re-checked after the lock is taken: a timer cancelled while
    its task slept never fires.
    """

    def __init__(self, socketio, lock=None):
        self._socketio = socketio
        self.lock = lock if lock is not None else threading.RLock()

    def call_later(self, delay: float, fn: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle()
        self._socketio.start_background_task(self._run_once, handle, delay, fn, args)
        return handle

    def call_every(self, interval: float, fn: Callable[..., Any], *args) -> TimerHandle:
        handle = TimerHandle(repeating=True)
        self._socketio.start_background_task(self._run_every, handle, interval, fn, args)
        return handle

    def _run_once(self, handle: TimerHandle, delay: float, fn, args) -> None:
        self._socketio.sleep(delay)
        with self.lock:
            if handle.cancelled:
                return
            handle.fired = True
            self._invoke(fn, args)

    def _run_every(self, handle: TimerHandle, interval: float, fn, args) -> None:
        while True:
            self._socketio.sleep(interval)
            with self.lock:
                if handle.cancelled:
                    return
                self._invoke(fn, args)

    def _invoke(self, fn, args) -> None:
        # Errors are logged; a repeating timer keeps ticking.
        try:
            fn(*args)
        except Exception:
            logger.exception(f"[timer-error] callback={getattr(fn, '__qualname__', fn)}")
