"""
Cascading invalidation of results that depended on an edited match.
"""
import logging
from collections import deque
from typing import List

from .errors import MatchAlreadyCompleted
from .graph import clone_matches, get_match
from .models import Match
from .propagation import outgoing_players

logger = logging.getLogger(__name__)


def _detach(match: Match) -> list:
    """Clear a match's result; return the (target_id, player_id) pairs it had sent onward."""
    sent = [(target_id, player_id) for target_id, _, player_id in outgoing_players(match)
            if target_id is not None and player_id is not None]
    match.clear_result()
    return sent


def reset_downstream(matches: List[Match], match_id: str) -> List[Match]:
    """
    Clear match_id's result and every result that was built on it.

    Walks winner and loser links breadth-first, pulling the previously
    advanced player out of whichever slot of the target holds them. Only
    targets that had a result of their own keep the walk going, so
    unaffected siblings are left alone. Calling it twice is the same as
    calling it once.
    """
    matches, index = clone_matches(matches)
    match = get_match(index, match_id)

    if match.is_bye:
        raise MatchAlreadyCompleted(f"Match {match_id} is a bye and cannot be edited", match_id=match_id)
    if not match.has_result:
        return matches

    cleared = [match.id]
    queue = deque([_detach(match)])
    while queue:
        for target_id, player_id in queue.popleft():
            target = get_match(index, target_id)
            had_result = target.has_result
            # Capture what the target sent onward before its slots change
            sent = _detach(target) if had_result else []
            slot = target.slot_of(player_id)
            if slot is not None:
                target.set_slot(slot, None)
            # A linked target can only be a bye through auto-resolution, never by generation
            target.is_bye = False
            if had_result:
                cleared.append(target.id)
                queue.append(sent)

    logger.debug("Reset %s and %d downstream match(es)", match_id, len(cleared) - 1)
    return matches
