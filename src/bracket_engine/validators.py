"""
Validation of tournament snapshots loaded from storage.

Anything that fails to parse, or whose match graph does not hold together,
is reported and skipped so one bad file cannot take the host down.
"""
import logging
from typing import Dict, List, Optional

from .errors import BracketError, BracketIntegrityError
from .graph import check_graph_integrity
from .models import Tournament, TOURNAMENT_FORMATS, DRAFT, ACTIVE, COMPLETED

logger = logging.getLogger(__name__)

STATUSES = (DRAFT, ACTIVE, COMPLETED)


def validate_tournament(data) -> Optional[Tournament]:
    """Return a Tournament for a well-formed snapshot dict, or None."""
    if not isinstance(data, dict):
        logger.warning("Skipping tournament snapshot: expected a mapping, got %s", type(data).__name__)
        return None
    if data.get('format') not in TOURNAMENT_FORMATS:
        logger.warning("Skipping tournament %s: unknown format %r", data.get('id'), data.get('format'))
        return None
    if data.get('status', DRAFT) not in STATUSES:
        logger.warning("Skipping tournament %s: unknown status %r", data.get('id'), data.get('status'))
        return None

    try:
        tournament = Tournament.from_dict(data)
        check_graph_integrity(tournament.matches)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Skipping tournament %s: malformed snapshot (%s)", data.get('id'), e)
        return None
    except (BracketError, BracketIntegrityError) as e:
        logger.warning("Skipping tournament %s: %s", data.get('id'), e)
        return None

    player_ids = {p.id for p in tournament.players}
    for match in tournament.matches:
        for player_id in (match.player1_id, match.player2_id):
            if player_id is not None and player_id not in player_ids:
                logger.warning("Skipping tournament %s: match %s references unknown player %s",
                               tournament.id, match.id, player_id)
                return None
    return tournament


def validate_tournaments(items) -> List[Tournament]:
    """Validate a list of snapshots, dropping the invalid ones."""
    if not isinstance(items, list):
        logger.warning("Expected a list of tournaments, got %s", type(items).__name__)
        return []
    tournaments = []
    for item in items:
        tournament = validate_tournament(item)
        if tournament is not None:
            tournaments.append(tournament)
    return tournaments
