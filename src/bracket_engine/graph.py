"""
Helpers shared by the propagator, the invalidator and the override engine.

Matches live in a flat list; next_match_id / loser_next_match_id are ids
into that same list. Every operation clones the list first so callers'
collections are never mutated.
"""
import logging
from collections import Counter
from typing import Dict, List, Tuple

from .errors import BracketIntegrityError, MatchNotFound
from .models import Match, WINNERS, LOSERS, GRAND_FINALS

logger = logging.getLogger(__name__)

WINNER_ROUTE = 'winner'
LOSER_ROUTE = 'loser'

# Stage order used to check that links only ever point forward.
STAGE_RANK = {
    WINNERS: 0,
    LOSERS: 1,
    GRAND_FINALS: 2,
}


def clone_matches(matches: List[Match]) -> Tuple[List[Match], Dict[str, Match]]:
    """Copy a match collection and return the copy plus an id index into it."""
    cloned = [m.copy() for m in matches]
    return cloned, {m.id: m for m in cloned}


def get_match(index: Dict[str, Match], match_id: str) -> Match:
    match = index.get(match_id)
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found", match_id=match_id)
    return match


def build_feeder_index(matches: List[Match]) -> Dict[Tuple[str, int], Tuple[str, str]]:
    """Map (target_id, slot) -> (source_id, route) for every linked slot."""
    feeders = {}
    for match in matches:
        if match.next_match_id:
            feeders[(match.next_match_id, match.next_match_slot)] = (match.id, WINNER_ROUTE)
        if match.loser_next_match_id:
            feeders[(match.loser_next_match_id, match.loser_next_match_slot)] = (match.id, LOSER_ROUTE)
    return feeders


def is_slot_dead(index: Dict[str, Match], feeders: Dict, match: Match, slot: int) -> bool:
    """
    True if the slot is empty and can never be filled.

    That happens for the empty side of a generated bye, for a slot fed by
    the loser of a bye (a bye has no loser), and for a slot fed by the
    winner of a match whose own two slots are both dead.
    """
    if match.get_slot(slot) is not None:
        return False
    source = feeders.get((match.id, slot))
    if source is None:
        return match.is_bye
    source_id, route = source
    source_match = index.get(source_id)
    if source_match is None:
        raise BracketIntegrityError(f"Match {match.id} is fed by missing match {source_id}")
    if route == LOSER_ROUTE:
        return source_match.is_bye
    return is_match_dead(index, feeders, source_match)


def is_match_dead(index: Dict[str, Match], feeders: Dict, match: Match) -> bool:
    return is_slot_dead(index, feeders, match, 1) and is_slot_dead(index, feeders, match, 2)


def place_player(target: Match, slot: int, player_id: str) -> int:
    """
    Write player_id into the designated slot of target.

    Falls back to the other slot when a manual override already occupies
    the designated one. Returns the slot actually written.
    """
    current = target.get_slot(slot)
    if current is None or current == player_id:
        target.set_slot(slot, player_id)
        return slot
    other = 2 if slot == 1 else 1
    if target.get_slot(other) is None:
        target.set_slot(other, player_id)
        return other
    logger.warning("Overwriting %s slot %d (%s) with %s", target.id, slot, current, player_id)
    target.set_slot(slot, player_id)
    return slot


def check_graph_integrity(matches: List[Match]):
    """
    Raise BracketIntegrityError if the match graph is structurally broken.

    The engine is the only writer of the graph, so any failure here is a
    programming error rather than bad user input.
    """
    duplicates = [match_id for match_id, count in Counter(m.id for m in matches).items() if count > 1]
    if duplicates:
        raise BracketIntegrityError(f"Duplicate match ids: {duplicates}")

    index = {m.id: m for m in matches}
    fed_slots = set()

    for match in matches:
        for target_id, slot in ((match.next_match_id, match.next_match_slot),
                                (match.loser_next_match_id, match.loser_next_match_slot)):
            if target_id is None:
                continue
            target = index.get(target_id)
            if target is None:
                raise BracketIntegrityError(f"Match {match.id} links to missing match {target_id}")
            if slot not in (1, 2):
                raise BracketIntegrityError(f"Match {match.id} links to invalid slot {slot!r}")
            if (target_id, slot) in fed_slots:
                raise BracketIntegrityError(f"Slot {slot} of {target_id} has more than one source")
            fed_slots.add((target_id, slot))
            if _stage_key(target) <= _stage_key(match):
                raise BracketIntegrityError(f"Link {match.id} -> {target_id} does not move forward")

        if match.winner_id is not None and match.winner_id not in (match.player1_id, match.player2_id):
            raise BracketIntegrityError(f"Winner of {match.id} is not one of its players")
        if match.player1_id is not None and match.player1_id == match.player2_id:
            raise BracketIntegrityError(f"Match {match.id} has the same player in both slots")
        scored = match.player1_score is not None and match.player2_score is not None
        if scored and match.player1_score != match.player2_score:
            expected = match.player1_id if match.player1_score > match.player2_score else match.player2_id
            if match.winner_id != expected:
                raise BracketIntegrityError(f"Winner of {match.id} does not match its scores")
        if match.is_bye and match.winner_id is None:
            raise BracketIntegrityError(f"Bye {match.id} has no winner")

    _check_acyclic(matches, index)


def _stage_key(match: Match) -> Tuple[int, int]:
    return STAGE_RANK.get(match.bracket, 0), match.round


def _check_acyclic(matches: List[Match], index: Dict[str, Match]):
    # Forward links are already checked to increase the stage key, which
    # rules out cycles; walk them anyway so a corrupt key cannot hide one.
    state = {}
    for start in matches:
        if start.id in state:
            continue
        stack = [(start.id, False)]
        while stack:
            match_id, done = stack.pop()
            if done:
                state[match_id] = 'done'
                continue
            if state.get(match_id) == 'done':
                continue
            if state.get(match_id) == 'visiting':
                raise BracketIntegrityError(f"Cycle through match {match_id}")
            state[match_id] = 'visiting'
            stack.append((match_id, True))
            match = index[match_id]
            for target_id in (match.next_match_id, match.loser_next_match_id):
                if target_id is None:
                    continue
                if state.get(target_id) == 'visiting':
                    raise BracketIntegrityError(f"Cycle through match {target_id}")
                if state.get(target_id) != 'done':
                    stack.append((target_id, False))
