"""
Manual overrides: organizers moving players between slots and deciding
matches without scores (walkovers, forfeits, disqualifications).
"""
import logging
from typing import List, Optional

from .errors import IncompletePrecondition, MatchAlreadyCompleted, SlotConflict
from .graph import build_feeder_index, clone_matches, get_match
from .models import Match
from .propagation import advance_match, resolve_pending_byes

logger = logging.getLogger(__name__)


def frontier_key(match: Match):
    """Matches with the same key are played against the same pool of players."""
    return (match.bracket, match.group_id, match.round)


def _check_slot_movable(index, feeders, match: Match, slot: int):
    """A player that a decided match sent into this slot has earned it and stays put."""
    source = feeders.get((match.id, slot))
    if source is None:
        return
    feeder = index.get(source[0])
    if feeder is not None and feeder.has_result:
        raise SlotConflict(
            f"Slot {slot} of {match.id} was filled by the result of {feeder.id}; edit that result instead",
            match_id=match.id)


def _find_in_frontier(matches: List[Match], match: Match, player_id: str):
    key = frontier_key(match)
    for other in matches:
        if other.id == match.id or frontier_key(other) != key:
            continue
        slot = other.slot_of(player_id)
        if slot is None:
            continue
        if other.has_result:
            raise SlotConflict(f"Player {player_id} has already played {other.id} this round", match_id=match.id)
        return other, slot
    return None, None


def swap_players(matches: List[Match], match_id: str, player1_id: Optional[str],
                 player2_id: Optional[str]) -> List[Match]:
    """
    Put player1_id / player2_id into the slots of an undecided match.

    A player pulled in from another undecided match of the same frontier
    trades places with the player they displace here, so nobody ends up
    booked into two matches at once.
    """
    matches, index = clone_matches(matches)
    match = get_match(index, match_id)

    if match.has_result:
        raise MatchAlreadyCompleted(f"Match {match_id} already has a result", match_id=match_id)
    if player1_id is not None and player1_id == player2_id:
        raise SlotConflict(f"Player {player1_id} cannot take both slots of {match_id}", match_id=match_id)

    old = [match.player1_id, match.player2_id]
    new = [player1_id, player2_id]
    feeders = build_feeder_index(matches)
    for slot in (1, 2):
        if old[slot - 1] != new[slot - 1]:
            _check_slot_movable(index, feeders, match, slot)
    leaving = [p for p in old if p is not None and p not in new]
    incoming = [p for p in new if p is not None and p not in old]

    for player_id in incoming:
        other, slot = _find_in_frontier(matches, match, player_id)
        if other is None:
            continue
        _check_slot_movable(index, feeders, other, slot)
        replacement = leaving.pop(0) if leaving else None
        other.set_slot(slot, replacement)
        if other.player1_id is not None and other.player1_id == other.player2_id:
            raise SlotConflict(f"Player {replacement} would take both slots of {other.id}", match_id=other.id)
        logger.info("Moved %s from %s to %s, %s takes their place", player_id, other.id, match_id, replacement)

    match.player1_id = player1_id
    match.player2_id = player2_id

    resolve_pending_byes(index, feeders, matches)
    return matches


def force_winner(matches: List[Match], match_id: str, winner_id: str, is_forfeited: bool = False) -> List[Match]:
    """Decide a match without scores and advance the winner as a normal result would."""
    matches, index = clone_matches(matches)
    match = get_match(index, match_id)

    if match.has_result:
        raise MatchAlreadyCompleted(f"Match {match_id} already has a result", match_id=match_id)
    if match.player1_id is None or match.player2_id is None:
        raise IncompletePrecondition(f"Match {match_id} is still waiting for players", match_id=match_id)
    if winner_id not in (match.player1_id, match.player2_id):
        raise SlotConflict(f"Player {winner_id} is not playing in {match_id}", match_id=match_id)

    match.player1_score = None
    match.player2_score = None
    match.winner_id = winner_id
    match.is_forfeited = is_forfeited
    logger.info("Forced %s as winner of %s%s", winner_id, match_id, " by forfeit" if is_forfeited else "")

    advance_match(index, build_feeder_index(matches), match)
    return matches
