"""
Group stage plus knockout.

Players are snake-drafted into groups by seed, each group plays a round
robin, and the top finishers of every group are seeded into a single or
double elimination knockout.
"""
import logging
from typing import Dict, List

from .double_elimination import generate_double_elimination
from .elimination import generate_single_elimination
from .errors import IncompletePrecondition, InvalidFormatConfig
from .formats import check_player_count
from .models import Match, Player, GROUP, GROUP_KNOCKOUT, DOUBLE_ELIMINATION, SINGLE_ELIMINATION, seed_players
from .round_robin import build_round_robin_matches
from .standings import calculate_group_standings, is_group_stage_complete

logger = logging.getLogger(__name__)

KNOCKOUT_PREFIX = 'K'


def group_name(index: int) -> str:
    """'A', 'B', ... then 'G27', 'G28', ..."""
    if index < 26:
        return chr(ord('A') + index)
    return f"G{index + 1}"


def assign_groups(players: List[Player], group_count: int) -> Dict[str, str]:
    """
    Snake draft by seed: seeds 1..k go to groups A..K, seeds k+1..2k come
    back from K to A, and so on. Returns {player_id: group_id}.
    """
    assignments = {}
    for index, player in enumerate(seed_players(players)):
        row, column = divmod(index, group_count)
        if row % 2 == 1:
            column = group_count - 1 - column
        assignments[player.id] = group_name(column)
    return assignments


def generate_group_stage(players: List[Player], format_config) -> List[Match]:
    """Round robin inside every group. Players without a group_id are drafted first."""
    check_player_count(GROUP_KNOCKOUT, len(players))
    if any(p.group_id is None for p in players):
        assignments = assign_groups(players, format_config.group_count)
    else:
        assignments = {p.id: p.group_id for p in players}

    groups = {}
    for player in players:
        groups.setdefault(assignments[player.id], []).append(player)

    matches = []
    for group_id in sorted(groups):
        members = groups[group_id]
        if len(members) < 2:
            raise InvalidFormatConfig(f"Group {group_id} has fewer than 2 players")
        matches.extend(build_round_robin_matches(
            members,
            GROUP,
            lambda round_num, position, g=group_id: f"G{g}-R{round_num}-M{position + 1}",
            group_id=group_id,
        ))
    logger.debug("Generated group stage: %d groups, %d matches", len(groups), len(matches))
    return matches


def seed_from_groups(players: List[Player], matches: List[Match], format_config) -> List[Player]:
    """
    Create the seeded list of players advancing from the groups.

    Seeding is done by group finish position:
    - All group winners get the top seeds (in group order)
    - All runners-up get the next seeds
    - etc.
    """
    if not is_group_stage_complete(matches):
        raise IncompletePrecondition("The group stage still has undecided matches")

    standings = calculate_group_standings(players, matches)
    by_id = {p.id: p for p in players}
    qualifiers = []
    seed = 1
    for position in range(format_config.advance_per_group):
        for group_id in sorted(standings):
            rows = standings[group_id]
            if position >= len(rows):
                continue
            player = by_id[rows[position]['player_id']].copy()
            player.seed = seed
            qualifiers.append(player)
            seed += 1
    return qualifiers


def generate_knockout_stage(qualifiers: List[Player], knockout_format: str = SINGLE_ELIMINATION) -> List[Match]:
    """Knockout bracket for already-seeded qualifiers; ids are prefixed with 'K'."""
    if knockout_format == DOUBLE_ELIMINATION:
        matches = generate_double_elimination(qualifiers, prefix=KNOCKOUT_PREFIX)
    else:
        matches = generate_single_elimination(qualifiers, prefix=KNOCKOUT_PREFIX)
    logger.info("Generated %s knockout stage for %d players", knockout_format, len(qualifiers))
    return matches
