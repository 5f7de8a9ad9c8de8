"""Wire records exchanged with clients.

Every record is a plain dict with a ``type`` discriminator. Inbound records
are decoded into :class:`InboundMessage`; outbound events are built by the
helpers below so field names live in one place.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tapminer.exceptions import MalformedMessage
from tapminer.models import Submission, Winner

JOIN = 'join'
TAP = 'tap'
INBOUND_TYPES = (JOIN, TAP)


@dataclass(frozen=True)
class InboundMessage:
    type: str
    player_name: Optional[str] = None
    tap_count: Optional[int] = None


def decode_inbound(raw: Any, expected_type: Optional[str] = None) -> InboundMessage:
    """Validate one inbound record.

    ``raw`` may be a dict or JSON text. When the transport already knows the
    kind (named Socket.IO events) it passes ``expected_type`` and the record
    may omit ``type``.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedMessage(f'undecodable payload ({exc})', raw)
    if not isinstance(raw, dict):
        raise MalformedMessage('payload is not an object', raw)

    msg_type = raw.get('type', expected_type)
    if expected_type is not None and msg_type != expected_type:
        raise MalformedMessage(f'type {msg_type!r} sent on {expected_type!r} event', raw)
    if msg_type not in INBOUND_TYPES:
        raise MalformedMessage(f'unknown type {msg_type!r}', raw)

    if msg_type == JOIN:
        name = raw.get('playerName')
        if not isinstance(name, str):
            raise MalformedMessage('join requires a string playerName', raw)
        return InboundMessage(type=JOIN, player_name=name)

    count = raw.get('tapCount')
    # bool is an int subclass; a flag is not a counter
    if not isinstance(count, int) or isinstance(count, bool):
        raise MalformedMessage('tap requires an integer tapCount', raw)
    return InboundMessage(type=TAP, tap_count=count)


def joined(player_id: str, game_active: bool, start_time: Optional[int], duration: int) -> Dict[str, Any]:
    return {
        'type': 'joined',
        'playerId': player_id,
        'gameActive': game_active,
        'startTime': start_time,
        'duration': duration,
    }


def game_start(start_time: int) -> Dict[str, Any]:
    return {'type': 'gameStart', 'startTime': start_time}


def player_joined(player_id: str, player_name: str, player_count: int) -> Dict[str, Any]:
    return {
        'type': 'playerJoined',
        'playerId': player_id,
        'playerName': player_name,
        'playerCount': player_count,
    }


def player_left(player_id: str, player_count: int) -> Dict[str, Any]:
    return {'type': 'playerLeft', 'playerId': player_id, 'playerCount': player_count}


def new_hash(submission: Submission, leading_zeros: int) -> Dict[str, Any]:
    return {
        'type': 'newHash',
        'playerId': submission.player_id,
        'playerName': submission.player_name,
        'hash': submission.digest,
        'leadingZeros': leading_zeros,
    }


def game_end(winner: Optional[Winner], all_hashes: List[Submission]) -> Dict[str, Any]:
    return {
        'type': 'gameEnd',
        'winner': winner.to_dict() if winner else None,
        'allHashes': [s.to_dict() for s in all_hashes],
    }


def system(message: str) -> Dict[str, Any]:
    return {'type': 'system', 'message': message}
