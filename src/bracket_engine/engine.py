"""
Engine facade.

Every operation takes a Tournament snapshot and returns an OperationResult
holding a new snapshot; the input is never modified. Recoverable failures
(BracketError) come back as unsuccessful results. BracketIntegrityError is
left to propagate because it means the graph itself is broken.
"""
import logging
from datetime import datetime
from functools import wraps
from typing import Dict, Optional

from . import cascade, overrides, propagation
from .completion import evaluate_completion
from .double_elimination import generate_double_elimination
from .elimination import generate_single_elimination
from .errors import BracketError, IncompletePrecondition, InvalidFormatConfig, MatchAlreadyCompleted, SlotConflict
from .formats import allows_draws, check_player_count, parse_format_config, SwissQualificationConfig
from .graph import check_graph_integrity, get_match
from .groups import assign_groups, generate_group_stage, generate_knockout_stage, seed_from_groups
from .models import (
    Tournament,
    ACTIVE,
    COMPLETED,
    DRAFT,
    ELIMINATION_BRACKETS,
    GROUP,
    SWISS,
    SINGLE_ELIMINATION,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN_FORMAT,
    SWISS_FORMAT,
    GROUP_KNOCKOUT,
)
from .propagation import validate_scores
from .round_robin import generate_round_robin
from .standings import get_current_swiss_round, get_player_record
from .swiss import generate_first_round, generate_next_round, select_qualifiers

logger = logging.getLogger(__name__)

GENERATORS = {
    SINGLE_ELIMINATION: generate_single_elimination,
    DOUBLE_ELIMINATION: generate_double_elimination,
    ROUND_ROBIN_FORMAT: generate_round_robin,
    SWISS_FORMAT: generate_first_round,
    GROUP_KNOCKOUT: generate_group_stage,
}


class OperationResult:
    def __init__(self, success: bool, tournament: Optional[Tournament] = None,
                 error: Optional[str] = None, message: Optional[str] = None):
        self.success = success
        self.tournament = tournament
        self.error = error
        self.message = message

    def to_dict(self) -> Dict:
        data = {'success': self.success}
        if self.tournament is not None:
            data['tournament'] = self.tournament.to_dict()
        if not self.success:
            data['error'] = self.error
            data['message'] = self.message
        return data

    def __repr__(self):
        return f"OperationResult(success={self.success}, error={self.error})"


def _operation(func):
    """Run func on a copy of the tournament and wrap the outcome."""
    @wraps(func)
    def wrapper(tournament: Tournament, *args, **kwargs) -> OperationResult:
        try:
            updated = func(tournament.copy(), *args, **kwargs)
        except BracketError as e:
            logger.info("%s on %s rejected: %s", func.__name__, tournament.id, e.message)
            return OperationResult(False, tournament, error=e.code, message=e.message)
        return OperationResult(True, _finalize(updated))
    return wrapper


def _finalize(tournament: Tournament) -> Tournament:
    """Re-derive counters and status from the matches and check the graph."""
    check_graph_integrity(tournament.matches)

    for player in tournament.players:
        record = get_player_record(player.id, tournament.matches)
        player.wins = record['wins']
        player.losses = record['losses']

    if tournament.format == SWISS_FORMAT:
        tournament.current_swiss_round = get_current_swiss_round(tournament.matches)

    is_complete, champion = evaluate_completion(tournament)
    if is_complete:
        if tournament.status != COMPLETED:
            logger.info("Tournament %s complete, champion %s", tournament.id, champion)
        tournament.status = COMPLETED
        tournament.completed_at = tournament.completed_at or datetime.now()
    elif tournament.matches:
        tournament.status = ACTIVE
        tournament.completed_at = None
    return tournament


def _require_started(tournament: Tournament):
    if tournament.status == DRAFT or not tournament.matches:
        raise IncompletePrecondition(f"Tournament {tournament.id} has not been started")


def _has_knockout(tournament: Tournament) -> bool:
    return any(m.bracket in ELIMINATION_BRACKETS for m in tournament.matches)


def _check_editable(tournament: Tournament, match):
    """Earlier stages are frozen once a later stage has been built on them."""
    if match.bracket == GROUP and _has_knockout(tournament):
        raise MatchAlreadyCompleted(
            f"Match {match.id} belongs to the group stage, which is locked once the knockout exists",
            match_id=match.id)
    if match.bracket == SWISS:
        if _has_knockout(tournament):
            raise MatchAlreadyCompleted(
                f"Match {match.id} belongs to the Swiss stage, which is locked once the knockout exists",
                match_id=match.id)
        if match.round < (tournament.current_swiss_round or 0):
            raise MatchAlreadyCompleted(
                f"Match {match.id} is from Swiss round {match.round}; only the current round can be edited",
                match_id=match.id)


def _check_player(tournament: Tournament, player_id):
    if player_id is not None and tournament.get_player(player_id) is None:
        raise SlotConflict(f"Player {player_id} is not in tournament {tournament.id}")


@_operation
def generate(tournament: Tournament) -> Tournament:
    """Create the initial match graph for the tournament's format."""
    if tournament.matches:
        raise MatchAlreadyCompleted(f"Tournament {tournament.id} has already been generated")
    player_ids = [p.id for p in tournament.players]
    if len(set(player_ids)) != len(player_ids):
        raise InvalidFormatConfig("Player ids must be unique")

    check_player_count(tournament.format, len(tournament.players))
    raw_config = tournament.format_config.to_dict() if tournament.format_config else {}
    config = parse_format_config(tournament.format, raw_config, len(tournament.players))
    tournament.format_config = config

    if tournament.format == GROUP_KNOCKOUT:
        assignments = assign_groups(tournament.players, config.group_count)
        for player in tournament.players:
            player.group_id = assignments[player.id]

    generator = GENERATORS.get(tournament.format)
    if generator is None:
        raise InvalidFormatConfig(f"Unknown tournament format: {tournament.format!r}")
    tournament.matches = generator(tournament.players, config)
    tournament.status = ACTIVE
    if tournament.format == SWISS_FORMAT:
        tournament.current_swiss_round = 1
    logger.info("Generated %s tournament %s with %d matches", tournament.format, tournament.id,
                len(tournament.matches))
    return tournament


@_operation
def apply_result(tournament: Tournament, match_id: str, player1_score: int, player2_score: int) -> Tournament:
    _require_started(tournament)
    tournament.matches = propagation.apply_result(tournament.matches, match_id, player1_score, player2_score,
                                                  allow_draws=allows_draws(tournament.format_config))
    return tournament


@_operation
def edit_result(tournament: Tournament, match_id: str, player1_score: int, player2_score: int) -> Tournament:
    """Replace a recorded result, clearing everything that was built on the old one."""
    _require_started(tournament)
    match = get_match({m.id: m for m in tournament.matches}, match_id)
    _check_editable(tournament, match)
    validate_scores(match, player1_score, player2_score, allows_draws(tournament.format_config))

    matches = cascade.reset_downstream(tournament.matches, match_id)
    tournament.matches = propagation.apply_result(matches, match_id, player1_score, player2_score,
                                                  allow_draws=allows_draws(tournament.format_config))
    logger.info("Edited result of %s in %s", match_id, tournament.id)
    return tournament


@_operation
def reset_result(tournament: Tournament, match_id: str) -> Tournament:
    """Clear a recorded result and everything downstream of it."""
    _require_started(tournament)
    match = get_match({m.id: m for m in tournament.matches}, match_id)
    _check_editable(tournament, match)
    tournament.matches = cascade.reset_downstream(tournament.matches, match_id)
    return tournament


@_operation
def override_players(tournament: Tournament, match_id: str, player1_id: Optional[str],
                     player2_id: Optional[str]) -> Tournament:
    _require_started(tournament)
    _check_player(tournament, player1_id)
    _check_player(tournament, player2_id)
    match = get_match({m.id: m for m in tournament.matches}, match_id)
    _check_editable(tournament, match)
    tournament.matches = overrides.swap_players(tournament.matches, match_id, player1_id, player2_id)
    return tournament


@_operation
def force_winner(tournament: Tournament, match_id: str, winner_id: str, is_forfeited: bool = False) -> Tournament:
    _require_started(tournament)
    match = get_match({m.id: m for m in tournament.matches}, match_id)
    _check_editable(tournament, match)
    tournament.matches = overrides.force_winner(tournament.matches, match_id, winner_id, is_forfeited)
    return tournament


@_operation
def advance_swiss_round(tournament: Tournament) -> Tournament:
    """Pair and append the next Swiss round."""
    _require_started(tournament)
    if tournament.format != SWISS_FORMAT:
        raise InvalidFormatConfig(f"Tournament {tournament.id} is not a Swiss tournament")
    if tournament.swiss_qualification_complete:
        raise IncompletePrecondition("Swiss qualification is over, the knockout stage is under way")
    current = get_current_swiss_round(tournament.matches)
    new_round = generate_next_round(tournament.players, tournament.matches, current, tournament.format_config)
    tournament.matches = tournament.matches + new_round
    tournament.current_swiss_round = current + 1
    return tournament


@_operation
def advance_to_knockout(tournament: Tournament) -> Tournament:
    """Seed the knockout from group standings or Swiss qualifiers and append it."""
    _require_started(tournament)
    config = tournament.format_config

    if tournament.format == GROUP_KNOCKOUT:
        if tournament.group_stage_complete:
            raise MatchAlreadyCompleted("The knockout stage has already been generated")
        qualifiers = seed_from_groups(tournament.players, tournament.matches, config)
        tournament.matches = tournament.matches + generate_knockout_stage(qualifiers, config.knockout_format)
        tournament.group_stage_complete = True
    elif tournament.format == SWISS_FORMAT and isinstance(config, SwissQualificationConfig):
        if tournament.swiss_qualification_complete:
            raise MatchAlreadyCompleted("The knockout stage has already been generated")
        qualifiers = select_qualifiers(tournament.players, tournament.matches, config)
        tournament.matches = tournament.matches + generate_knockout_stage(qualifiers, config.knockout_format)
        tournament.swiss_qualification_complete = True
    else:
        raise InvalidFormatConfig(f"{tournament.format} tournaments have no knockout stage")

    logger.info("Tournament %s advanced to the knockout stage", tournament.id)
    return tournament


def get_champion(tournament: Tournament) -> Optional[str]:
    return evaluate_completion(tournament)[1]
