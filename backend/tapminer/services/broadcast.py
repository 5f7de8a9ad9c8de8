import logging
import threading
from typing import Any, Dict, Protocol

from tapminer.exceptions import TransportError
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class Transport(Protocol):
    def send(self, handle: str, event: Dict[str, Any]) -> None: ...

    def close(self, handle: str) -> None: ...

    def is_connected(self, handle: str) -> bool: ...


class Broadcaster:
    """Fan-out of round events to registered connections.

    Sends are issued one event at a time under a single lock, so two events
    emitted in sequence reach every connection in that same order.
    """

    def __init__(self, registry: ConnectionRegistry, transport: Transport):
        self.registry = registry
        self.transport = transport
        self._lock = threading.RLock()

    def broadcast_all(self, event: Dict[str, Any]) -> int:
        """Deliver ``event`` to every open connection; returns how many got it."""
        delivered = 0
        with self._lock:
            for conn in self.registry.open_connections():
                if self._deliver(conn.handle, event):
                    delivered += 1
        return delivered

    def send_to(self, identity: str, event: Dict[str, Any]) -> bool:
        conn = self.registry.get(identity)
        if conn is None or not conn.open:
            logger.debug(f"[send-skip] id={identity} type={event.get('type')} not open")
            return False
        with self._lock:
            return self._deliver(conn.handle, event)

    def _deliver(self, handle: str, event: Dict[str, Any]) -> bool:
        try:
            self.transport.send(handle, event)
        except TransportError as exc:
            logger.warning(f"[send-fail] handle={handle} type={event.get('type')} error={exc}")
            return False
        return True
