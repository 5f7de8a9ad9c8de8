import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

logger = logging.getLogger(__name__)

IDENTITY_BYTES = 8


@dataclass
class Connection:
    identity: str
    handle: str
    # last name this connection joined with; survives roster resets
    display_name: Optional[str] = None
    missed_heartbeats: int = 0
    open: bool = True


class ConnectionRegistry:
    """Live connections, their server-issued identities and liveness.

    Independent of round state: a connection stays registered across rounds
    until it closes or stops answering heartbeats.
    """

    def __init__(self, max_missed: int = 1):
        self.max_missed = max_missed
        self._lock = threading.Lock()
        self._connections: Dict[str, Connection] = {}
        self._by_handle: Dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._connections

    def register(self, handle: str) -> str:
        """Issue a fresh identity for a newly opened transport handle."""
        with self._lock:
            identity = secrets.token_hex(IDENTITY_BYTES)
            while identity in self._connections:
                identity = secrets.token_hex(IDENTITY_BYTES)
            self._connections[identity] = Connection(identity=identity, handle=handle)
            self._by_handle[handle] = identity
        logger.info(f"[conn-open] id={identity} handle={handle}")
        return identity

    def remove(self, identity: str) -> Optional[Connection]:
        with self._lock:
            conn = self._connections.pop(identity, None)
            if conn is not None and self._by_handle.get(conn.handle) == identity:
                del self._by_handle[conn.handle]
        if conn is not None:
            conn.open = False
            logger.info(f"[conn-close] id={identity} handle={conn.handle}")
        return conn

    def get(self, identity: str) -> Optional[Connection]:
        with self._lock:
            return self._connections.get(identity)

    def identity_for(self, handle: str) -> Optional[str]:
        with self._lock:
            return self._by_handle.get(handle)

    def handle_for(self, identity: str) -> Optional[str]:
        conn = self.get(identity)
        return conn.handle if conn else None

    def open_connections(self) -> List[Connection]:
        """Snapshot of connections currently open, in registration order."""
        with self._lock:
            return [c for c in self._connections.values() if c.open]

    def bind_name(self, identity: str, display_name: str) -> None:
        with self._lock:
            conn = self._connections.get(identity)
            if conn is not None:
                conn.display_name = display_name

    def name_for(self, identity: str) -> Optional[str]:
        conn = self.get(identity)
        return conn.display_name if conn else None

    # ---- liveness ----

    def mark_alive(self, identity: str) -> None:
        with self._lock:
            conn = self._connections.get(identity)
            if conn is not None:
                conn.missed_heartbeats = 0

    def is_alive(self, identity: str) -> bool:
        with self._lock:
            conn = self._connections.get(identity)
            return bool(conn and conn.open)

    def sweep_dead(self) -> Set[str]:
        """Close connections that let too many heartbeat intervals pass unanswered.

        Called once per heartbeat interval. Every surviving connection is
        charged one missed beat, cleared again by ``mark_alive``. Dead
        connections are marked closed so broadcasts skip them; the caller
        finishes the cleanup with ``remove``.
        """
        dead: Set[str] = set()
        with self._lock:
            for identity, conn in self._connections.items():
                if not conn.open:
                    dead.add(identity)
                elif conn.missed_heartbeats >= self.max_missed:
                    conn.open = False
                    dead.add(identity)
                else:
                    conn.missed_heartbeats += 1
        if dead:
            logger.info(f"[heartbeat-sweep] dead={sorted(dead)}")
        return dead
