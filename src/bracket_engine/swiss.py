"""
Swiss system pairing.

Round 1 pairs the top half of the seeding against the bottom half. Every
later round ranks players by wins (byes count) then seed, pairs neighbours
so score groups stay together, and backtracks to avoid rematches. When no
rematch-free pairing exists the round is paired with rematches allowed
rather than stalling the event.
"""
import logging
import math
from typing import List, Optional, Set

from .errors import IncompletePrecondition
from .formats import check_player_count, SwissConfig, SwissQualificationConfig
from .models import Match, Player, SWISS, SWISS_FORMAT, seed_players
from .standings import calculate_standings, count_qualified, is_round_complete, swiss_win_counts

logger = logging.getLogger(__name__)

# Upper bound on pairing attempts per search before giving up on that mode
PAIRING_SEARCH_LIMIT = 50000


def swiss_match_id(round_num: int, position: int) -> str:
    return f"SW{round_num}-M{position + 1}"


def _round_matches(round_num: int, pairs: List[tuple], bye_player: Optional[Player]) -> List[Match]:
    matches = []
    for position, (player1, player2) in enumerate(pairs):
        matches.append(Match(
            id=swiss_match_id(round_num, position),
            bracket=SWISS,
            round=round_num,
            position=position,
            player1_id=player1.id,
            player2_id=player2.id,
        ))
    if bye_player is not None:
        matches.append(Match(
            id=swiss_match_id(round_num, len(pairs)),
            bracket=SWISS,
            round=round_num,
            position=len(pairs),
            player1_id=bye_player.id,
            winner_id=bye_player.id,
            is_bye=True,
        ))
    return matches


def generate_first_round(players: List[Player], format_config=None) -> List[Match]:
    """Seed i meets seed ceil(N/2)+i; with an odd count the middle seed gets the bye."""
    check_player_count(SWISS_FORMAT, len(players))
    seeded = seed_players(players)
    offset = math.ceil(len(seeded) / 2)
    pairs = [(seeded[i], seeded[i + offset]) for i in range(len(seeded) // 2)]
    bye_player = seeded[len(seeded) // 2] if len(seeded) % 2 else None
    matches = _round_matches(1, pairs, bye_player)
    logger.debug("Generated Swiss round 1: %d players, %d matches", len(players), len(matches))
    return matches


def _played_pairs(matches: List[Match]) -> Set[frozenset]:
    return {frozenset((m.player1_id, m.player2_id)) for m in matches
            if m.bracket == SWISS and m.player1_id is not None and m.player2_id is not None}


def _bye_history(matches: List[Match]) -> Set[str]:
    return {m.winner_id for m in matches if m.bracket == SWISS and m.is_bye and m.winner_id is not None}


def pair_players(ranked: List[Player], played: Set[frozenset], allow_rematch: bool = False,
                 limit: int = PAIRING_SEARCH_LIMIT) -> Optional[List[tuple]]:
    """
    Pair an even-sized ranked list, top player first against the nearest
    opponent they have not met. Returns None when no pairing is found
    within the search limit.
    """
    attempts = 0

    def search(remaining):
        nonlocal attempts
        if not remaining:
            return []
        first = remaining[0]
        for i in range(1, len(remaining)):
            opponent = remaining[i]
            if not allow_rematch and frozenset((first.id, opponent.id)) in played:
                continue
            attempts += 1
            if attempts > limit:
                return None
            rest = search(remaining[1:i] + remaining[i + 1:])
            if rest is not None:
                return [(first, opponent)] + rest
        return None

    return search(list(ranked))


def _pair_with_bye(ranked: List[Player], played: Set[frozenset], had_bye: Set[str]):
    """
    Pick the bye from the bottom of the ranking and pair the rest.

    Preference: a player without a previous bye and no rematches, then
    rematches allowed, then a repeat bye.
    """
    from_bottom = list(reversed(ranked))
    fresh = [p for p in from_bottom if p.id not in had_bye]
    for candidates, allow_rematch in ((fresh, False), (fresh, True), (from_bottom, False), (from_bottom, True)):
        for candidate in candidates:
            rest = [p for p in ranked if p.id != candidate.id]
            pairs = pair_players(rest, played, allow_rematch)
            if pairs is not None:
                if allow_rematch:
                    logger.warning("No rematch-free Swiss pairing found, allowing rematches")
                return pairs, candidate
    raise IncompletePrecondition("Unable to pair Swiss round")


def generate_next_round(players: List[Player], matches: List[Match], completed_round: int,
                        format_config=None) -> List[Match]:
    """
    Pair the round after completed_round.

    Returns only the new round's matches; the caller appends them.
    """
    latest = max((m.round for m in matches if m.bracket == SWISS), default=0)
    if completed_round != latest:
        raise IncompletePrecondition(f"Round {completed_round} is not the latest Swiss round ({latest})")
    if not is_round_complete(matches, SWISS, completed_round):
        raise IncompletePrecondition(f"Round {completed_round} still has undecided matches")
    if isinstance(format_config, SwissConfig) and completed_round >= format_config.number_of_rounds:
        raise IncompletePrecondition(f"All {format_config.number_of_rounds} Swiss rounds have been played")
    if isinstance(format_config, SwissQualificationConfig) and is_qualification_complete(players, matches,
                                                                                          format_config):
        raise IncompletePrecondition("Enough players have qualified, advance to the knockout stage")

    # Qualified players stay in the pairing pool
    wins = swiss_win_counts(players, matches)
    ranked = sorted(players, key=lambda p: (-wins[p.id], p.seed))
    played = _played_pairs(matches)

    bye_player = None
    if len(ranked) % 2:
        pairs, bye_player = _pair_with_bye(ranked, played, _bye_history(matches))
    else:
        pairs = pair_players(ranked, played)
        if pairs is None:
            logger.warning("No rematch-free Swiss pairing found, allowing rematches")
            pairs = pair_players(ranked, played, allow_rematch=True)

    round_num = completed_round + 1
    new_matches = _round_matches(round_num, pairs, bye_player)
    logger.info("Paired Swiss round %d: %d matches", round_num, len(new_matches))
    return new_matches


def is_qualification_complete(players: List[Player], matches: List[Match], format_config) -> bool:
    return count_qualified(players, matches, format_config.wins_to_qualify) >= format_config.qualifying_players


def select_qualifiers(players: List[Player], matches: List[Match], format_config) -> List[Player]:
    """Top qualifying_players by Swiss standings, reseeded 1..N for the knockout."""
    if not is_qualification_complete(players, matches, format_config):
        raise IncompletePrecondition(
            f"Only {count_qualified(players, matches, format_config.wins_to_qualify)} of "
            f"{format_config.qualifying_players} players have qualified")
    latest = max((m.round for m in matches if m.bracket == SWISS), default=0)
    if not is_round_complete(matches, SWISS, latest):
        raise IncompletePrecondition(f"Swiss round {latest} still has undecided matches")

    standings = calculate_standings(players, matches, brackets=[SWISS], count_byes=True)
    by_id = {p.id: p for p in players}
    qualifiers = []
    for seed, row in enumerate(standings[:format_config.qualifying_players], start=1):
        player = by_id[row['player_id']].copy()
        player.seed = seed
        qualifiers.append(player)
    return qualifiers
