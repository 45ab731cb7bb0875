"""
Format configuration, modelled as one config class per tournament format.

parse_format_config() turns the host's plain dict (YAML or JSON, camelCase
keys) into the variant for the tournament's format tag and validates it.
"""
import math
from typing import Dict, Optional

from .errors import InsufficientPlayers, InvalidFormatConfig
from .models import (
    SINGLE_ELIMINATION,
    DOUBLE_ELIMINATION,
    ROUND_ROBIN_FORMAT,
    SWISS_FORMAT,
    GROUP_KNOCKOUT,
)

KNOCKOUT_FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION)

MIN_PLAYERS = {
    SINGLE_ELIMINATION: 2,
    DOUBLE_ELIMINATION: 2,
    ROUND_ROBIN_FORMAT: 2,
    SWISS_FORMAT: 2,
    GROUP_KNOCKOUT: 4,
}

DEFAULT_GROUP_COUNT = 2
DEFAULT_ADVANCE_PER_GROUP = 2


class FormatConfig:
    format = None

    def to_dict(self) -> Dict:
        return {}

    def __eq__(self, other):
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"{type(self).__name__}({self.to_dict()})"


class SingleEliminationConfig(FormatConfig):
    format = SINGLE_ELIMINATION


class DoubleEliminationConfig(FormatConfig):
    format = DOUBLE_ELIMINATION


class RoundRobinConfig(FormatConfig):
    format = ROUND_ROBIN_FORMAT

    def __init__(self, allow_draws: bool = False):
        self.allow_draws = allow_draws

    def to_dict(self) -> Dict:
        return {'allowDraws': self.allow_draws}


class SwissConfig(FormatConfig):
    """Fixed number of Swiss rounds; the standings leader after the last round wins."""

    format = SWISS_FORMAT

    def __init__(self, number_of_rounds: int):
        self.number_of_rounds = number_of_rounds

    def to_dict(self) -> Dict:
        return {'numberOfRounds': self.number_of_rounds}


class SwissQualificationConfig(FormatConfig):
    """Swiss rounds until qualifying_players have reached wins_to_qualify, then a knockout."""

    format = SWISS_FORMAT

    def __init__(self, wins_to_qualify: int, qualifying_players: int, knockout_format: str = SINGLE_ELIMINATION):
        self.wins_to_qualify = wins_to_qualify
        self.qualifying_players = qualifying_players
        self.knockout_format = knockout_format

    def to_dict(self) -> Dict:
        return {
            'winsToQualify': self.wins_to_qualify,
            'qualifyingPlayers': self.qualifying_players,
            'knockoutFormat': self.knockout_format,
        }


class GroupKnockoutConfig(FormatConfig):
    format = GROUP_KNOCKOUT

    def __init__(self, group_count: int = DEFAULT_GROUP_COUNT, advance_per_group: int = DEFAULT_ADVANCE_PER_GROUP,
                 knockout_format: str = SINGLE_ELIMINATION, allow_draws: bool = False):
        self.group_count = group_count
        self.advance_per_group = advance_per_group
        self.knockout_format = knockout_format
        self.allow_draws = allow_draws

    def to_dict(self) -> Dict:
        return {
            'groupCount': self.group_count,
            'advancePerGroup': self.advance_per_group,
            'knockoutFormat': self.knockout_format,
            'allowDraws': self.allow_draws,
        }


def default_swiss_rounds(player_count: int) -> int:
    """Enough rounds to separate a single undefeated player: ceil(log2(N))."""
    if player_count < 2:
        return 1
    return math.ceil(math.log2(player_count))


def check_player_count(format: str, player_count: int):
    """Raise InsufficientPlayers if the format's structural minimum is not met."""
    minimum = MIN_PLAYERS.get(format, 2)
    if player_count < minimum:
        raise InsufficientPlayers(f"{format} needs at least {minimum} players, got {player_count}")


def _positive_int(data: Dict, key: str, default=None) -> Optional[int]:
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidFormatConfig(f"{key} must be a positive integer, got {value!r}")
    return value


def _knockout_format(data: Dict) -> str:
    value = data.get('knockoutFormat', SINGLE_ELIMINATION)
    if value not in KNOCKOUT_FORMATS:
        raise InvalidFormatConfig(f"knockoutFormat must be one of {KNOCKOUT_FORMATS}, got {value!r}")
    return value


def parse_format_config(format: str, data: Optional[Dict] = None, player_count: Optional[int] = None) -> FormatConfig:
    """
    Build the config variant for a format tag.

    player_count, when given, is used for defaults (Swiss round count) and
    for checks that depend on the roster size.
    """
    data = data or {}

    if format == SINGLE_ELIMINATION:
        return SingleEliminationConfig()
    if format == DOUBLE_ELIMINATION:
        return DoubleEliminationConfig()
    if format == ROUND_ROBIN_FORMAT:
        return RoundRobinConfig(allow_draws=bool(data.get('allowDraws', False)))

    if format == SWISS_FORMAT:
        if data.get('winsToQualify') is not None or data.get('qualifyingPlayers') is not None:
            wins_to_qualify = _positive_int(data, 'winsToQualify', 3)
            qualifying_players = _positive_int(data, 'qualifyingPlayers', 8)
            if qualifying_players < 2:
                raise InvalidFormatConfig("qualifyingPlayers must be at least 2")
            if player_count is not None and qualifying_players > player_count:
                raise InvalidFormatConfig(
                    f"qualifyingPlayers ({qualifying_players}) exceeds player count ({player_count})")
            return SwissQualificationConfig(wins_to_qualify, qualifying_players, _knockout_format(data))
        rounds = _positive_int(data, 'numberOfRounds')
        if rounds is None:
            rounds = default_swiss_rounds(player_count or 0)
        return SwissConfig(rounds)

    if format == GROUP_KNOCKOUT:
        group_count = _positive_int(data, 'groupCount', DEFAULT_GROUP_COUNT)
        advance_per_group = _positive_int(data, 'advancePerGroup', DEFAULT_ADVANCE_PER_GROUP)
        if group_count * advance_per_group < 2:
            raise InvalidFormatConfig("At least 2 players must advance to the knockout stage")
        if player_count is not None and player_count >= MIN_PLAYERS[GROUP_KNOCKOUT]:
            smallest_group = player_count // group_count
            if smallest_group < 2:
                raise InvalidFormatConfig(
                    f"{player_count} players cannot fill {group_count} groups of at least 2")
            if advance_per_group > smallest_group:
                raise InvalidFormatConfig(
                    f"advancePerGroup ({advance_per_group}) exceeds the smallest group size ({smallest_group})")
        return GroupKnockoutConfig(group_count, advance_per_group, _knockout_format(data),
                                   allow_draws=bool(data.get('allowDraws', False)))

    raise InvalidFormatConfig(f"Unknown tournament format: {format!r}")


def allows_draws(config: FormatConfig) -> bool:
    return bool(getattr(config, 'allow_draws', False))
