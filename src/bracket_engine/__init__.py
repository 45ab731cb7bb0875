from .engine import (
    OperationResult,
    generate,
    apply_result,
    edit_result,
    reset_result,
    override_players,
    force_winner,
    advance_swiss_round,
    advance_to_knockout,
    get_champion,
)
from .errors import (
    BracketError,
    BracketIntegrityError,
    IncompletePrecondition,
    InsufficientPlayers,
    InvalidFormatConfig,
    InvalidScore,
    MatchAlreadyCompleted,
    MatchNotFound,
    SlotConflict,
)
from .formats import parse_format_config
from .models import Match, Player, Tournament
