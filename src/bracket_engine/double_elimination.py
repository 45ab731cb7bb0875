"""
Double elimination bracket generation.

In double elimination:
- Players must lose twice to be eliminated
- Winners Bracket: players that haven't lost yet
- Losers Bracket: players that have lost once
- Grand Final: Winners bracket champion (slot 1) vs Losers bracket champion (slot 2)
- Bracket Reset: if the losers bracket champion wins the Grand Final, a
  second match decides the champion. It is generated up front and only
  receives players when the reset is triggered.
"""
import logging
import math
from typing import List

from .elimination import build_winners_bracket, calculate_bracket_size
from .formats import check_player_count
from .models import Match, Player, LOSERS, GRAND_FINALS, DOUBLE_ELIMINATION
from .propagation import resolve_byes

logger = logging.getLogger(__name__)


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N players in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if bracket_size < 2:
        return 0
    winners_rounds = int(math.log2(bracket_size))
    return 2 * (winners_rounds - 1)


def losers_match_id(prefix: str, round_num: int, position: int) -> str:
    return f"{prefix}L{round_num}-M{position + 1}"


def grand_final_id(prefix: str, round_num: int) -> str:
    return f"{prefix}GF-{round_num}"


def _build_losers_bracket(bracket_size: int, winners: List[Match], prefix: str) -> List[Match]:
    """
    Build the losers bracket and wire winners-bracket losers into it.

    Losers rounds alternate between:
    - Minor rounds (odd: 1, 3, 5...): only losers bracket survivors compete;
      round 1 pairs off the losers of winners round 1
    - Major rounds (even: 2, 4, 6...): losers dropping from winners round
      r meet the survivors of the previous losers round

    For 8-player bracket:
    - L Round 1 (minor): 4 W-R1 losers pair off -> 2 matches
    - L Round 2 (major): 2 W-R2 losers + 2 L-R1 winners -> 2 matches
    - L Round 3 (minor): 2 L-R2 winners pair off -> 1 match
    - L Round 4 (major): W-Final loser + L-R3 winner -> 1 match (losers final)
    """
    total_losers_rounds = calculate_losers_bracket_rounds(bracket_size)
    losers = []

    matches_in_round = bracket_size // 4
    for round_num in range(1, total_losers_rounds + 1):
        is_major_round = (round_num % 2 == 0)
        if round_num > 1 and not is_major_round:
            matches_in_round //= 2
        for position in range(matches_in_round):
            losers.append(Match(
                id=losers_match_id(prefix, round_num, position),
                bracket=LOSERS,
                round=round_num,
                position=position,
            ))

    for match in losers:
        if match.round < total_losers_rounds:
            next_round = match.round + 1
            if next_round % 2 == 0:
                # Survivors keep their position and take slot 2 against a fresh drop
                match.next_match_id = losers_match_id(prefix, next_round, match.position)
                match.next_match_slot = 2
            else:
                match.next_match_id = losers_match_id(prefix, next_round, match.position // 2)
                match.next_match_slot = 1 + match.position % 2

    for match in winners:
        if match.round == 1:
            target_round, target_position, slot = 1, match.position // 2, 1 + match.position % 2
        else:
            target_round, target_position, slot = 2 * (match.round - 1), match.position, 1
        if target_round > total_losers_rounds:
            continue
        match.loser_next_match_id = losers_match_id(prefix, target_round, target_position)
        match.loser_next_match_slot = slot

    return losers


def generate_double_elimination(players: List[Player], format_config=None, prefix: str = "") -> List[Match]:
    """
    Generate the full double elimination graph: winners bracket, losers
    bracket, grand final and bracket reset, with byes resolved.
    """
    check_player_count(DOUBLE_ELIMINATION, len(players))
    bracket_size = calculate_bracket_size(len(players))
    total_winners_rounds = int(math.log2(bracket_size))

    winners = build_winners_bracket(players, prefix)
    losers = _build_losers_bracket(bracket_size, winners, prefix)

    grand_final = Match(
        id=grand_final_id(prefix, 1),
        bracket=GRAND_FINALS,
        round=1,
        position=0,
        notes='If the losers bracket champion wins, the bracket resets',
    )
    bracket_reset = Match(
        id=grand_final_id(prefix, 2),
        bracket=GRAND_FINALS,
        round=2,
        position=0,
        notes='Only played if the losers bracket champion wins the first grand final',
    )
    # Reset: the grand final's winner (losers champion) takes slot 2 and
    # its loser the other slot, see outgoing_players
    grand_final.next_match_id = bracket_reset.id
    grand_final.next_match_slot = 2

    winners_final = next(m for m in winners if m.round == total_winners_rounds)
    winners_final.next_match_id = grand_final.id
    winners_final.next_match_slot = 1
    if losers:
        losers_final = max(losers, key=lambda m: m.round)
        losers_final.next_match_id = grand_final.id
        losers_final.next_match_slot = 2
    else:
        # Two players: the winners final loser goes straight to the grand final
        winners_final.loser_next_match_id = grand_final.id
        winners_final.loser_next_match_slot = 2

    matches = winners + losers + [grand_final, bracket_reset]
    resolve_byes(matches)
    logger.debug("Generated double elimination bracket: %d players, %d matches", len(players), len(matches))
    return matches


def get_grand_finals(matches: List[Match]):
    """Return (grand_final, bracket_reset) or (None, None) when absent."""
    finals = {m.round: m for m in matches if m.bracket == GRAND_FINALS}
    return finals.get(1), finals.get(2)


def is_reset_required(matches: List[Match]) -> bool:
    grand_final, _ = get_grand_finals(matches)
    if grand_final is None or grand_final.winner_id is None:
        return False
    return grand_final.winner_id == grand_final.player2_id

