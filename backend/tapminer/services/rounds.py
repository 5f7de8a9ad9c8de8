"""Round lifecycle: INACTIVE -> ACTIVE -> SCORING -> INACTIVE -> ACTIVE ...

The state machine owns the only Round object. Every mutation happens under
one re-entrant lock and every event is handed to the broadcaster while that
lock is held, so events leave in the order the transitions happened.

Timers come from an injected scheduler:
- start_round schedules end_round after the round duration
- end_round schedules start_round after the inter-round delay
"""
import logging
import threading
from typing import Any, Callable, Dict, Optional

from tapminer import messages
from tapminer.models import Round, RoundPhase, Submission, Winner
from .broadcast import Broadcaster
from .digest import compute_digest, count_leading_zero_chars
from .scheduler import Scheduler, TimerHandle, cancel_quietly, now_ms
from .scoring import score_round

logger = logging.getLogger(__name__)

DEFAULT_ROUND_DURATION_MS = 120_000
DEFAULT_INTER_ROUND_DELAY_MS = 10_000


class RoundStateMachine:

    def __init__(
        self,
        broadcaster: Broadcaster,
        scheduler: Scheduler,
        clock: Callable[[], int] = now_ms,
        round_duration_ms: int = DEFAULT_ROUND_DURATION_MS,
        inter_round_delay_ms: int = DEFAULT_INTER_ROUND_DELAY_MS,
        name_fallback: Optional[Callable[[str], Optional[str]]] = None,
    ):
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.clock = clock
        self.round_duration_ms = round_duration_ms
        self.inter_round_delay_ms = inter_round_delay_ms
        self.name_fallback = name_fallback

        self._lock = threading.RLock()
        self._timer: Optional[TimerHandle] = None
        self._last_timestamp = 0
        self._stopped = False

        self.phase = RoundPhase.INACTIVE
        self.round_number = 0
        self.current = Round(duration_ms=round_duration_ms)

    @property
    def is_active(self) -> bool:
        return self.phase == RoundPhase.ACTIVE

    def _timestamp(self) -> int:
        # never hand out a timestamp older than the previous one
        ts = max(int(self.clock()), self._last_timestamp)
        self._last_timestamp = ts
        return ts

    # ---- transitions ----

    def start_round(self) -> bool:
        with self._lock:
            if self._stopped:
                logger.info("[round-start-skip] machine stopped")
                return False
            if self.phase == RoundPhase.ACTIVE:
                logger.warning(f"[round-start-skip] round={self.round_number} already active")
                return False

            cancel_quietly(self._timer)
            start_time = self._timestamp()
            self.round_number += 1
            self.current = Round(
                duration_ms=self.round_duration_ms,
                start_time=start_time,
                active=True,
            )
            self.phase = RoundPhase.ACTIVE
            logger.info(
                f"[round-start] round={self.round_number} start_time={start_time} duration={self.round_duration_ms}ms"
            )

            self.broadcaster.broadcast_all(messages.game_start(start_time))
            self._timer = self.scheduler.schedule_after(
                self.round_duration_ms, self.end_round, name=f"round-{self.round_number}-end"
            )
            return True

    def end_round(self) -> Optional[Winner]:
        with self._lock:
            if self.phase != RoundPhase.ACTIVE:
                logger.info(f"[round-end-skip] round={self.round_number} phase={self.phase.value}")
                return None

            self.phase = RoundPhase.SCORING
            rnd = self.current
            rnd.active = False
            rnd.submissions, winner = score_round(rnd.submissions)

            if winner:
                logger.info(
                    f"[round-end] round={self.round_number} entries={len(rnd.submissions)} "
                    f"winner={winner.player_id} zeros={winner.leading_zeros}"
                )
            else:
                logger.info(f"[round-end] round={self.round_number} entries=0 winner=None")

            self.broadcaster.broadcast_all(messages.game_end(winner, rnd.submissions))
            self.phase = RoundPhase.INACTIVE

            self._timer = None
            if not self._stopped:
                self._timer = self.scheduler.schedule_after(
                    self.inter_round_delay_ms, self.start_round, name=f"round-{self.round_number + 1}-start"
                )
            return winner

    # ---- player operations ----

    def join_player(self, identity: str, display_name: str) -> Dict[str, Any]:
        """Add or overwrite a roster entry and acknowledge the joiner.

        The joiner alone gets the ``joined`` snapshot; everyone, the joiner
        included, gets ``playerJoined``.
        """
        with self._lock:
            rnd = self.current
            rnd.roster[identity] = display_name
            snapshot = messages.joined(identity, rnd.active, rnd.start_time, self.round_duration_ms)
            logger.info(f"[player-join] id={identity} name={display_name!r} count={rnd.player_count}")

            self.broadcaster.send_to(identity, snapshot)
            self.broadcaster.broadcast_all(
                messages.player_joined(identity, display_name, rnd.player_count)
            )
            return snapshot

    def submit_tap(self, identity: str, tap_count: int) -> Optional[Submission]:
        """Record one tap; silently ignored outside an active round.

        ``tap_count`` is whatever the client reports. It feeds the digest and
        is echoed back, nothing more.
        """
        with self._lock:
            rnd = self.current
            if not rnd.active:
                logger.debug(f"[tap-drop] id={identity} no active round")
                return None

            timestamp = self._timestamp()
            digest = compute_digest(identity, timestamp, tap_count)
            submission = Submission(
                player_id=identity,
                player_name=self._name_for(identity),
                digest=digest,
                timestamp=timestamp,
                tap_count=tap_count,
            )
            rnd.submissions.append(submission)
            self.broadcaster.broadcast_all(
                messages.new_hash(submission, count_leading_zero_chars(digest))
            )
            return submission

    def remove_player(self, identity: str) -> bool:
        """Drop ``identity`` from the roster. Its submissions stay scored."""
        with self._lock:
            rnd = self.current
            if identity not in rnd.roster:
                return False
            del rnd.roster[identity]
            logger.info(f"[player-leave] id={identity} count={rnd.player_count}")
            self.broadcaster.broadcast_all(messages.player_left(identity, rnd.player_count))
            return True

    def _name_for(self, identity: str) -> Optional[str]:
        roster = self.current.roster
        if identity in roster:
            return roster[identity]
        if self.name_fallback is not None:
            return self.name_fallback(identity)
        return None

    # ---- read side ----

    def status(self) -> Dict[str, Any]:
        with self._lock:
            rnd = self.current
            return {
                'gameActive': rnd.active,
                'phase': self.phase.value,
                'round': self.round_number,
                'playerCount': rnd.player_count,
                'startTime': rnd.start_time,
                'duration': self.round_duration_ms,
                'timeRemaining': rnd.time_remaining(int(self.clock())),
            }

    def stop(self) -> None:
        """Cancel the pending transition and refuse to schedule new ones."""
        with self._lock:
            self._stopped = True
            cancel_quietly(self._timer)
            self._timer = None
            logger.info(f"[round-stop] round={self.round_number} phase={self.phase.value}")
