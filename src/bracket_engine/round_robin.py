"""
Round robin schedule generation (circle method).
"""
import logging
from typing import List

from .formats import check_player_count
from .models import Match, Player, ROUND_ROBIN, ROUND_ROBIN_FORMAT, seed_players

logger = logging.getLogger(__name__)


def round_robin_match_id(round_num: int, position: int) -> str:
    return f"RR{round_num}-M{position + 1}"


def circle_rounds(player_ids: List[str]) -> List[List[tuple]]:
    """
    Pair every player with every other exactly once.

    The first player stays fixed while the rest rotate one place per round.
    With an odd count a None entry is added; whoever meets it sits out.
    """
    ids = list(player_ids)
    if len(ids) % 2:
        ids.append(None)
    n = len(ids)

    rounds = []
    for round_index in range(n - 1):
        pairs = []
        for i in range(n // 2):
            home, away = ids[i], ids[n - 1 - i]
            if i == 0 and round_index % 2 == 1:
                # Alternate the fixed player's side
                home, away = away, home
            pairs.append((home, away))
        rounds.append(pairs)
        ids = [ids[0], ids[-1]] + ids[1:-1]
    return rounds


def build_round_robin_matches(players: List[Player], bracket: str, match_id, group_id=None) -> List[Match]:
    """Lay circle rounds out as matches; match_id(round, position) names each one."""
    seeded = seed_players(players)
    matches = []
    for round_index, pairs in enumerate(circle_rounds([p.id for p in seeded])):
        round_num = round_index + 1
        # Real matches first, the sit-out last
        pairs = sorted(pairs, key=lambda pair: None in pair)
        for position, (home, away) in enumerate(pairs):
            is_bye = home is None or away is None
            if is_bye:
                home, away = home or away, None
            matches.append(Match(
                id=match_id(round_num, position),
                bracket=bracket,
                round=round_num,
                position=position,
                player1_id=home,
                player2_id=away,
                winner_id=home if is_bye else None,
                group_id=group_id,
                is_bye=is_bye,
            ))
    return matches


def generate_round_robin(players: List[Player], format_config=None) -> List[Match]:
    check_player_count(ROUND_ROBIN_FORMAT, len(players))
    matches = build_round_robin_matches(players, ROUND_ROBIN, round_robin_match_id)
    logger.debug("Generated round robin: %d players, %d matches", len(players), len(matches))
    return matches
