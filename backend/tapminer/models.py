from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class RoundPhase(str, Enum):
    INACTIVE = 'inactive'  # before the first round and between rounds
    ACTIVE = 'active'
    SCORING = 'scoring'


@dataclass(frozen=True)
class Submission:
    player_id: str
    player_name: Optional[str]
    digest: str
    timestamp: int
    tap_count: int

    def to_dict(self):
        return {
            'playerId': self.player_id,
            'playerName': self.player_name,
            'hash': self.digest,
            'timestamp': self.timestamp,
            'tapCount': self.tap_count,
        }


@dataclass(frozen=True)
class Winner:
    player_id: str
    player_name: Optional[str]
    digest: str
    leading_zeros: int

    def to_dict(self):
        return {
            'playerId': self.player_id,
            'playerName': self.player_name,
            'hash': self.digest,
            'leadingZeros': self.leading_zeros,
        }


@dataclass
class Round:
    """One timed competitive cycle: roster plus append-only submissions."""
    duration_ms: int
    start_time: Optional[int] = None
    active: bool = False
    roster: Dict[str, str] = field(default_factory=dict)
    submissions: List[Submission] = field(default_factory=list)

    @property
    def player_count(self) -> int:
        return len(self.roster)

    def ends_at(self) -> Optional[int]:
        if self.start_time is None:
            return None
        return self.start_time + self.duration_ms

    def time_remaining(self, now: int) -> int:
        if not self.active or self.start_time is None:
            return 0
        return max(0, self.ends_at() - now)
