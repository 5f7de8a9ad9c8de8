import logging
from typing import Callable, Optional

from .registry import ConnectionRegistry
from .scheduler import Scheduler, TimerHandle, cancel_quietly

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    """Periodic liveness sweep over the connection registry.

    The ping/pong itself belongs to the transport (Engine.IO pings every
    session and answers are automatic on the client). Each tick asks the
    transport which sessions are still up, marks those alive, and hands
    connections that stayed down for too many intervals to ``on_dead``.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        scheduler: Scheduler,
        is_connected: Callable[[str], bool],
        on_dead: Callable[[str], None],
        interval_sec: float = 30,
    ):
        self.registry = registry
        self.scheduler = scheduler
        self.is_connected = is_connected
        self.on_dead = on_dead
        self.interval_ms = int(interval_sec * 1000)
        self._timer: Optional[TimerHandle] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info(f"[heartbeat-start] interval={self.interval_ms}ms max_missed={self.registry.max_missed}")
        self._schedule()

    def stop(self) -> None:
        self._running = False
        cancel_quietly(self._timer)
        self._timer = None

    def _schedule(self) -> None:
        self._timer = self.scheduler.schedule_after(self.interval_ms, self._on_timer, name='heartbeat')

    def _on_timer(self) -> None:
        if not self._running:
            return
        try:
            self.tick()
        finally:
            if self._running:
                self._schedule()

    def tick(self) -> int:
        """Run one check-and-sweep cycle; returns the number of dead connections."""
        for conn in self.registry.open_connections():
            if self.is_connected(conn.handle):
                self.registry.mark_alive(conn.identity)
        dead = self.registry.sweep_dead()
        for identity in sorted(dead):
            self.on_dead(identity)
        return len(dead)
