"""Transport-agnostic entry points for the game server.

The Socket.IO handlers only translate transport callbacks into the three
calls below (connection opened, message received, connection closed); all
round and registry state sits behind :class:`TapMinerGame`.
"""
import logging
from typing import Any, Callable, Dict, Optional

from tapminer import messages
from tapminer.exceptions import MalformedMessage, TransportError
from tapminer.services.broadcast import Broadcaster, Transport
from tapminer.services.heartbeat import HeartbeatMonitor
from tapminer.services.registry import ConnectionRegistry
from tapminer.services.rounds import RoundStateMachine
from tapminer.services.scheduler import Scheduler, now_ms

logger = logging.getLogger(__name__)

SHUTDOWN_MESSAGE = 'Server is shutting down'


class TapMinerGame:

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        clock: Callable[[], int] = now_ms,
        round_duration_ms: int = 120_000,
        inter_round_delay_ms: int = 10_000,
        heartbeat_interval_sec: float = 30,
        heartbeat_max_missed: int = 1,
    ):
        self.transport = transport
        self.clock = clock
        self.registry = ConnectionRegistry(max_missed=heartbeat_max_missed)
        self.broadcaster = Broadcaster(self.registry, transport)
        self.machine = RoundStateMachine(
            self.broadcaster,
            scheduler,
            clock=clock,
            round_duration_ms=round_duration_ms,
            inter_round_delay_ms=inter_round_delay_ms,
            name_fallback=self.registry.name_for,
        )
        self.heartbeat = HeartbeatMonitor(
            self.registry,
            scheduler,
            is_connected=transport.is_connected,
            on_dead=self.drop_dead,
            interval_sec=heartbeat_interval_sec,
        )

    @classmethod
    def from_config(cls, config, transport: Transport, scheduler: Scheduler,
                    clock: Optional[Callable[[], int]] = None) -> 'TapMinerGame':
        return cls(
            transport,
            scheduler,
            clock=clock or now_ms,
            round_duration_ms=int(config.get('ROUND_DURATION_MS', 120_000)),
            inter_round_delay_ms=int(config.get('INTER_ROUND_DELAY_MS', 10_000)),
            heartbeat_interval_sec=float(config.get('HEARTBEAT_INTERVAL_SEC', 30)),
            heartbeat_max_missed=int(config.get('HEARTBEAT_MAX_MISSED', 1)),
        )

    def start(self) -> None:
        """Kick off the first round and the heartbeat loop."""
        self.machine.start_round()
        self.heartbeat.start()

    def shutdown(self, message: str = SHUTDOWN_MESSAGE) -> None:
        self.machine.stop()
        self.heartbeat.stop()
        self.broadcaster.broadcast_all(messages.system(message))
        logger.info(f"[shutdown] notified={len(self.registry)}")

    # ---- transport events ----

    def handle_connect(self, handle: str) -> str:
        return self.registry.register(handle)

    def handle_message(self, identity: str, raw: Any, expected_type: Optional[str] = None) -> bool:
        """Apply one inbound record; returns False when it was dropped."""
        try:
            msg = messages.decode_inbound(raw, expected_type)
        except MalformedMessage as exc:
            logger.info(f"[msg-drop] id={identity} reason={exc.reason}")
            return False

        if identity not in self.registry:
            logger.info(f"[msg-drop] id={identity} reason=unknown connection")
            return False
        self.registry.mark_alive(identity)

        if msg.type == messages.JOIN:
            self.registry.bind_name(identity, msg.player_name)
            self.machine.join_player(identity, msg.player_name)
        elif msg.type == messages.TAP:
            self.machine.submit_tap(identity, msg.tap_count)
        return True

    def handle_close(self, identity: str) -> None:
        self.registry.remove(identity)
        self.machine.remove_player(identity)

    def drop_dead(self, identity: str) -> None:
        """Heartbeat timeout: close the transport, then clean up like a disconnect."""
        conn = self.registry.remove(identity)
        if conn is not None:
            try:
                self.transport.close(conn.handle)
            except TransportError as exc:
                logger.warning(f"[close-fail] id={identity} error={exc}")
        self.machine.remove_player(identity)

    # ---- read side ----

    def status(self) -> Dict[str, Any]:
        status = self.machine.status()
        status['connectionCount'] = len(self.registry)
        return status
