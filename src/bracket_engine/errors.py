"""
Error taxonomy for the bracket engine.

Recoverable failures derive from BracketError and are reported back to the
host by the engine facade. BracketIntegrityError signals a corrupted match
graph and is never caught by the engine.
"""


class BracketError(Exception):
    """Base class for failures the host can surface to the user."""

    code = 'bracket_error'

    def __init__(self, message: str, match_id: str = None):
        super().__init__(message)
        self.message = message
        self.match_id = match_id


class InvalidScore(BracketError):
    """Scores missing, negative, non-integer, or equal where draws are not allowed."""

    code = 'invalid_score'


class MatchAlreadyCompleted(BracketError):
    """The match has a result and must be edited through the cascade-reset path."""

    code = 'match_already_completed'


class MatchNotFound(BracketError):
    code = 'match_not_found'


class IncompletePrecondition(BracketError):
    """An operation was requested before the matches it depends on were decided."""

    code = 'incomplete_precondition'


class InsufficientPlayers(BracketError):
    code = 'insufficient_players'


class InvalidFormatConfig(BracketError):
    code = 'invalid_format_config'


class SlotConflict(BracketError):
    """A manual slot assignment would place one player in both slots of a match."""

    code = 'slot_conflict'


class BracketIntegrityError(Exception):
    """The match graph is structurally broken (cycle, dangling link, bad winner)."""
