"""
Single elimination bracket generation.
"""
import logging
import math
from typing import List, Optional

from .formats import check_player_count
from .models import Match, Player, WINNERS, SINGLE_ELIMINATION, seed_players
from .propagation import resolve_byes

logger = logging.getLogger(__name__)


def calculate_bracket_size(num_players: int) -> int:
    """Calculate the bracket size (next power of 2, at least 2)."""
    if num_players <= 0:
        return 0
    if num_players == 1:
        return 2
    return 2 ** math.ceil(math.log2(num_players))


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 players: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    if bracket_size == 2:
        return [1, 2]

    half_size = bracket_size // 2
    upper_half = _generate_bracket_order(half_size)

    # Lower half is the complement of each upper seed
    lower_half = [bracket_size + 1 - seed for seed in upper_half]

    result = []
    for u, l in zip(upper_half, lower_half):
        result.extend([u, l])

    return result


def winners_match_id(prefix: str, round_num: int, position: int) -> str:
    return f"{prefix}W{round_num}-M{position + 1}"


def build_winners_bracket(players: List[Player], prefix: str = "") -> List[Match]:
    """
    Build the linked winners bracket for a seeded roster.

    Round 1 pairs seeds in standard bracket order with byes for the top
    seeds; every later round is linked by halving the position. Byes get
    their winner here but are not yet propagated.
    """
    seeded = seed_players(players)
    bracket_size = calculate_bracket_size(len(seeded))
    total_rounds = int(math.log2(bracket_size))

    # Seeds are taken from the sorted order so gaps in seed numbers don't matter
    seed_to_player = {index + 1: player for index, player in enumerate(seeded)}
    bracket_order = _generate_bracket_order(bracket_size)

    matches = []
    for i in range(0, len(bracket_order), 2):
        player1 = seed_to_player.get(bracket_order[i])
        player2 = seed_to_player.get(bracket_order[i + 1])
        if player1 is None:
            # Standard ordering always puts the higher seed first, keep it that way
            player1, player2 = player2, None
        is_bye = player2 is None
        matches.append(Match(
            id=winners_match_id(prefix, 1, i // 2),
            bracket=WINNERS,
            round=1,
            position=i // 2,
            player1_id=player1.id,
            player2_id=player2.id if player2 else None,
            winner_id=player1.id if is_bye else None,
            is_bye=is_bye,
        ))

    matches_in_round = bracket_size // 4
    for round_num in range(2, total_rounds + 1):
        for position in range(matches_in_round):
            matches.append(Match(
                id=winners_match_id(prefix, round_num, position),
                bracket=WINNERS,
                round=round_num,
                position=position,
            ))
        matches_in_round //= 2

    for match in matches:
        if match.round < total_rounds:
            match.next_match_id = winners_match_id(prefix, match.round + 1, match.position // 2)
            match.next_match_slot = 1 + match.position % 2

    return matches


def generate_single_elimination(players: List[Player], format_config=None, prefix: str = "") -> List[Match]:
    """Generate a single elimination bracket with byes resolved and advanced."""
    check_player_count(SINGLE_ELIMINATION, len(players))
    matches = build_winners_bracket(players, prefix)
    resolve_byes(matches)
    logger.debug("Generated single elimination bracket: %d players, %d matches", len(players), len(matches))
    return matches


def get_final_match(matches: List[Match]) -> Optional[Match]:
    """The winners-bracket match that feeds nothing (the final)."""
    finals = [m for m in matches if m.bracket == WINNERS and m.next_match_id is None]
    if not finals:
        return None
    return max(finals, key=lambda m: m.round)
