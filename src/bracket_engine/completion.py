"""
Per-format completion rules.

Each strategy takes a Tournament and returns (is_complete, champion_id).
"""
from typing import Optional, Tuple

from .double_elimination import get_grand_finals
from .elimination import get_final_match
from .formats import SwissConfig, SwissQualificationConfig
from .models import (
    Tournament,
    ELIMINATION_BRACKETS,
    ROUND_ROBIN,
    SWISS,
    SINGLE_ELIMINATION,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN_FORMAT,
    SWISS_FORMAT,
    GROUP_KNOCKOUT,
)
from .standings import calculate_standings, is_round_complete

NOT_COMPLETE = (False, None)


def _single_elimination_result(matches) -> Tuple[bool, Optional[str]]:
    final = get_final_match(matches)
    if final is None or final.winner_id is None:
        return NOT_COMPLETE
    return True, final.winner_id


def _double_elimination_result(matches) -> Tuple[bool, Optional[str]]:
    grand_final, bracket_reset = get_grand_finals(matches)
    if grand_final is None or grand_final.winner_id is None:
        return NOT_COMPLETE
    if grand_final.winner_id == grand_final.player1_id:
        # Winners bracket champion has not lost yet
        return True, grand_final.winner_id
    if bracket_reset is not None and bracket_reset.winner_id is not None:
        return True, bracket_reset.winner_id
    return NOT_COMPLETE


def _knockout_result(tournament: Tournament, knockout_format: str):
    knockout = [m for m in tournament.matches if m.bracket in ELIMINATION_BRACKETS]
    if knockout_format == DOUBLE_ELIMINATION:
        return _double_elimination_result(knockout)
    return _single_elimination_result(knockout)


def single_elimination_complete(tournament: Tournament):
    return _single_elimination_result(tournament.matches)


def double_elimination_complete(tournament: Tournament):
    return _double_elimination_result(tournament.matches)


def round_robin_complete(tournament: Tournament):
    matches = [m for m in tournament.matches if m.bracket == ROUND_ROBIN]
    if not matches or not all(m.has_result for m in matches):
        return NOT_COMPLETE
    return True, calculate_standings(tournament.players, matches)[0]['player_id']


def swiss_complete(tournament: Tournament):
    config = tournament.format_config
    if isinstance(config, SwissQualificationConfig):
        if not tournament.swiss_qualification_complete:
            return NOT_COMPLETE
        return _knockout_result(tournament, config.knockout_format)

    current = tournament.current_swiss_round or 0
    if not isinstance(config, SwissConfig) or current < config.number_of_rounds:
        return NOT_COMPLETE
    if not is_round_complete(tournament.matches, SWISS, current):
        return NOT_COMPLETE
    standings = calculate_standings(tournament.players, tournament.matches, brackets=[SWISS], count_byes=True)
    return True, standings[0]['player_id']


def group_knockout_complete(tournament: Tournament):
    if not tournament.group_stage_complete:
        return NOT_COMPLETE
    return _knockout_result(tournament, tournament.format_config.knockout_format)


COMPLETION_STRATEGIES = {
    SINGLE_ELIMINATION: single_elimination_complete,
    DOUBLE_ELIMINATION: double_elimination_complete,
    ROUND_ROBIN_FORMAT: round_robin_complete,
    SWISS_FORMAT: swiss_complete,
    GROUP_KNOCKOUT: group_knockout_complete,
}


def evaluate_completion(tournament: Tournament) -> Tuple[bool, Optional[str]]:
    """Return (is_complete, champion_id) for a tournament of any format."""
    if not tournament.matches:
        return NOT_COMPLETE
    strategy = COMPLETION_STRATEGIES.get(tournament.format)
    if strategy is None:
        return NOT_COMPLETE
    return strategy(tournament)
