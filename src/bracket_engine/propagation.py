"""
Result propagation: score a match, pick the winner, and push the winner
(and for double elimination the loser) into the linked downstream slots.
"""
import logging
from collections import deque
from typing import Dict, List

from .errors import BracketIntegrityError, IncompletePrecondition, InvalidScore, MatchAlreadyCompleted
from .graph import build_feeder_index, clone_matches, get_match, is_slot_dead, place_player, STAGE_RANK
from .models import Match, GRAND_FINALS, GROUP, ROUND_ROBIN

logger = logging.getLogger(__name__)

DRAWABLE_BRACKETS = (ROUND_ROBIN, GROUP)


def validate_scores(match: Match, player1_score, player2_score, allow_draws: bool = False):
    """Raise InvalidScore unless the pair of scores can decide (or draw) this match."""
    for score in (player1_score, player2_score):
        if score is None:
            raise InvalidScore("Both scores are required", match_id=match.id)
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidScore(f"Scores must be whole numbers, got {score!r}", match_id=match.id)
        if score < 0:
            raise InvalidScore(f"Scores cannot be negative, got {score}", match_id=match.id)
    if player1_score == player2_score and not (allow_draws and match.bracket in DRAWABLE_BRACKETS):
        raise InvalidScore("Scores cannot be equal, a match needs a winner", match_id=match.id)


def apply_result(matches: List[Match], match_id: str, player1_score: int, player2_score: int,
                 allow_draws: bool = False) -> List[Match]:
    """
    Record a scored result and advance the players it decides.

    Returns a new match collection; the input is not modified.
    """
    matches, index = clone_matches(matches)
    match = get_match(index, match_id)

    if match.has_result:
        raise MatchAlreadyCompleted(f"Match {match_id} already has a result", match_id=match_id)
    if match.player1_id is None or match.player2_id is None:
        raise IncompletePrecondition(f"Match {match_id} is still waiting for players", match_id=match_id)
    validate_scores(match, player1_score, player2_score, allow_draws)

    match.player1_score = player1_score
    match.player2_score = player2_score
    match.is_forfeited = False
    if player1_score == player2_score:
        match.winner_id = None
        logger.debug("Match %s drawn %d-%d", match_id, player1_score, player2_score)
        return matches

    match.winner_id = match.player1_id if player1_score > player2_score else match.player2_id
    logger.debug("Match %s won by %s (%d-%d)", match_id, match.winner_id, player1_score, player2_score)

    advance_match(index, build_feeder_index(matches), match)
    return matches


def outgoing_players(match: Match):
    """Yield (target_id, slot, player_id) for each player this match sends onward."""
    if match.bracket == GRAND_FINALS and match.round == 1:
        # The reset is only played when the losers-bracket champion (slot 2) wins;
        # both finalists move into it, the loser taking the slot the winner leaves free
        if match.winner_id is None or match.winner_id != match.player2_id or match.next_match_id is None:
            return
        yield match.next_match_id, match.next_match_slot, match.winner_id
        yield match.next_match_id, 1 if match.next_match_slot == 2 else 2, match.loser_id
        return
    yield match.next_match_id, match.next_match_slot, match.winner_id
    yield match.loser_next_match_id, match.loser_next_match_slot, match.loser_id


def _auto_resolve(index: Dict[str, Match], feeders: Dict, match: Match) -> bool:
    """Give the match to its only player when the other slot can never be filled."""
    if match.has_result:
        return False
    present = [slot for slot in (1, 2) if match.get_slot(slot) is not None]
    if len(present) != 1:
        return False
    empty_slot = 2 if present[0] == 1 else 1
    if not is_slot_dead(index, feeders, match, empty_slot):
        return False
    match.winner_id = match.get_slot(present[0])
    match.is_bye = True
    logger.debug("Match %s resolved as a bye for %s", match.id, match.winner_id)
    return True


def advance_match(index: Dict[str, Match], feeders: Dict, match: Match):
    """Push a decided match's winner and loser downstream, resolving byes they complete."""
    queue = deque([match])
    while queue:
        current = queue.popleft()
        if current.winner_id is None:
            continue
        for target_id, slot, player_id in outgoing_players(current):
            if target_id is None or player_id is None:
                continue
            target = index.get(target_id)
            if target is None:
                raise BracketIntegrityError(f"Match {current.id} links to missing match {target_id}")
            place_player(target, slot, player_id)
            if _auto_resolve(index, feeders, target):
                queue.append(target)


def resolve_pending_byes(index: Dict[str, Match], feeders: Dict, matches: List[Match]):
    """Resolve any match whose single player faces a slot that can never fill."""
    for match in matches:
        if _auto_resolve(index, feeders, match):
            advance_match(index, feeders, match)


def resolve_byes(matches: List[Match]):
    """Advance the winners of freshly generated byes. Mutates the given list."""
    index = {m.id: m for m in matches}
    feeders = build_feeder_index(matches)
    ordered = sorted(matches, key=lambda m: (STAGE_RANK.get(m.bracket, 0), m.round, m.position))
    for match in ordered:
        if match.is_bye and match.winner_id is not None:
            advance_match(index, feeders, match)
