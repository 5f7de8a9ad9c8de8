import logging
import time
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Wall-clock time in integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class TimerHandle:
    """A pending callback; ``cancel()`` is idempotent and wins over firing."""

    def __init__(self, name: str, delay_ms: int):
        self.name = name
        self.delay_ms = delay_ms
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def __repr__(self):
        return f"<TimerHandle {self.name} delay={self.delay_ms}ms pending={self.pending}>"


class Scheduler(Protocol):
    def schedule_after(self, delay_ms: int, callback: Callable[[], None], name: str = 'timer') -> TimerHandle: ...


def run_timer(handle: TimerHandle, callback: Callable[[], None]) -> None:
    """Fire ``callback`` for ``handle`` unless it was cancelled.

    Exceptions from the callback are logged; a broken callback must not kill
    the worker that runs it.
    """
    if handle.cancelled:
        logger.info(f"[timer-abort] name={handle.name} cancelled")
        return
    handle.fired = True
    logger.info(f"[timer-fire] name={handle.name}")
    try:
        callback()
    except Exception:
        logger.exception(f"[timer-error] name={handle.name}")


class SocketIOScheduler:
    """Runs each timer as a Flask-SocketIO background task.

    Uses ``socketio.sleep`` so timers cooperate with whichever async mode
    (threading, eventlet, gevent) the server picked.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def schedule_after(self, delay_ms: int, callback: Callable[[], None], name: str = 'timer') -> TimerHandle:
        handle = TimerHandle(name, delay_ms)
        logger.info(f"[timer-set] name={name} delay={delay_ms}ms")
        self.socketio.start_background_task(self._worker, handle, callback)
        return handle

    def _worker(self, handle: TimerHandle, callback: Callable[[], None]) -> None:
        self.socketio.sleep(handle.delay_ms / 1000.0)
        run_timer(handle, callback)


def cancel_quietly(handle: Optional[TimerHandle]) -> None:
    if handle is not None and handle.pending:
        handle.cancel()
        logger.info(f"[timer-cancel] name={handle.name}")
