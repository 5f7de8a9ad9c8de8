from typing import List, Optional, Tuple

from tapminer.models import Submission, Winner
from .digest import count_leading_zero_chars


def sort_by_timestamp(submissions: List[Submission]) -> List[Submission]:
    # sorted() is stable: equal timestamps keep insertion order
    return sorted(submissions, key=lambda s: s.timestamp)


def pick_winner(submissions: List[Submission]) -> Optional[Winner]:
    """Return the winning submission of an already time-ordered sequence.

    A submission only takes the lead with a strictly greater leading-zero
    count, so ties go to whoever reached that score first. An empty
    sequence has no winner.
    """
    best: Optional[Tuple[Submission, int]] = None
    for sub in submissions:
        zeros = count_leading_zero_chars(sub.digest)
        if best is None or zeros > best[1]:
            best = (sub, zeros)
    if best is None:
        return None
    sub, zeros = best
    return Winner(
        player_id=sub.player_id,
        player_name=sub.player_name,
        digest=sub.digest,
        leading_zeros=zeros,
    )


def score_round(submissions: List[Submission]) -> Tuple[List[Submission], Optional[Winner]]:
    """Re-sort a round's submissions by timestamp and pick the winner."""
    ordered = sort_by_timestamp(submissions)
    return ordered, pick_winner(ordered)
