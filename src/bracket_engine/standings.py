"""
Standings, records and match statistics derived from a match collection.

Nothing here is stored: every figure is recomputed from the matches, so a
cascade reset or an override is reflected the next time standings are read.
"""
from typing import Dict, Iterable, List, Optional

from .models import Match, Player, GROUP, SWISS


def _is_walkover(match: Match) -> bool:
    """A bye: decided with only one player present."""
    return match.is_bye and (match.player1_id is None or match.player2_id is None)


def _empty_row(player: Player) -> Dict:
    return {
        'player_id': player.id,
        'player_name': player.name,
        'group_id': player.group_id,
        'seed': player.seed,
        'wins': 0,
        'losses': 0,
        'draws': 0,
        'byes': 0,
        'points_for': 0,
        'points_against': 0,
        'matches_played': 0,
    }


def calculate_standings(players: List[Player], matches: Iterable[Match], brackets: Optional[Iterable[str]] = None,
                        count_byes: bool = False) -> List[Dict]:
    """
    Calculate standings for the given players based on match results.

    Returns a list of rows: {'player_id', 'player_name', 'group_id', 'seed',
    'wins', 'losses', 'draws', 'byes', 'points_for', 'points_against',
    'point_diff', 'matches_played'}

    Only matches in `brackets` are counted when it is given. Byes are
    always tallied in 'byes'; with count_byes they also count as wins.

    Ranking: wins -> point_diff -> points_for -> seed
    """
    brackets = set(brackets) if brackets is not None else None
    rows = {player.id: _empty_row(player) for player in players}

    for match in matches:
        if brackets is not None and match.bracket not in brackets:
            continue
        if not match.has_result:
            continue

        if _is_walkover(match):
            row = rows.get(match.winner_id)
            if row is not None:
                row['byes'] += 1
                if count_byes:
                    row['wins'] += 1
            continue

        row1 = rows.get(match.player1_id)
        row2 = rows.get(match.player2_id)
        for row, scored, conceded in ((row1, match.player1_score, match.player2_score),
                                      (row2, match.player2_score, match.player1_score)):
            if row is None:
                continue
            row['matches_played'] += 1
            if scored is not None and conceded is not None:
                row['points_for'] += scored
                row['points_against'] += conceded

        if match.winner_id is None:
            for row in (row1, row2):
                if row is not None:
                    row['draws'] += 1
            continue

        winner_row = rows.get(match.winner_id)
        loser_row = rows.get(match.loser_id)
        if winner_row is not None:
            winner_row['wins'] += 1
        if loser_row is not None:
            loser_row['losses'] += 1

    for row in rows.values():
        row['point_diff'] = row['points_for'] - row['points_against']

    return sorted(
        rows.values(),
        key=lambda x: (-x['wins'], -x['point_diff'], -x['points_for'], x['seed'])
    )


def calculate_group_standings(players: List[Player], matches: Iterable[Match]) -> Dict[str, List[Dict]]:
    """Group-stage standings per group id: {group_id: [row, ...]}"""
    matches = list(matches)
    groups = {}
    for player in players:
        if player.group_id is not None:
            groups.setdefault(player.group_id, []).append(player)

    standings = {}
    for group_id in sorted(groups):
        group_matches = [m for m in matches if m.bracket == GROUP and m.group_id == group_id]
        standings[group_id] = calculate_standings(groups[group_id], group_matches)
    return standings


def get_player_record(player_id: str, matches: Iterable[Match], brackets: Optional[Iterable[str]] = None) -> Dict:
    """Win/loss/draw counts for one player (byes excluded)."""
    brackets = set(brackets) if brackets is not None else None
    record = {'wins': 0, 'losses': 0, 'draws': 0}
    for match in matches:
        if brackets is not None and match.bracket not in brackets:
            continue
        if not match.has_result or _is_walkover(match) or match.slot_of(player_id) is None:
            continue
        if match.winner_id is None:
            record['draws'] += 1
        elif match.winner_id == player_id:
            record['wins'] += 1
        else:
            record['losses'] += 1
    return record


def format_record(record: Dict) -> str:
    """'3-1' or '3-1-2' when there are draws."""
    text = f"{record.get('wins', 0)}-{record.get('losses', 0)}"
    if record.get('draws'):
        text += f"-{record['draws']}"
    return text


def get_head_to_head(player_a: str, player_b: str, matches: Iterable[Match]) -> Dict:
    """Decided meetings between two players: {'wins': {a: n, b: n}, 'draws': n, 'matches': [...]}"""
    result = {'wins': {player_a: 0, player_b: 0}, 'draws': 0, 'matches': []}
    for match in matches:
        if not match.has_result or {match.player1_id, match.player2_id} != {player_a, player_b}:
            continue
        result['matches'].append(match.id)
        if match.winner_id is None:
            result['draws'] += 1
        else:
            result['wins'][match.winner_id] += 1
    return result


def get_current_swiss_round(matches: Iterable[Match]) -> int:
    """Highest Swiss round generated so far, 0 before round 1 exists."""
    return max((m.round for m in matches if m.bracket == SWISS), default=0)


def is_round_complete(matches: Iterable[Match], bracket: str, round_num: int) -> bool:
    round_matches = [m for m in matches if m.bracket == bracket and m.round == round_num]
    return bool(round_matches) and all(m.has_result for m in round_matches)


def is_group_stage_complete(matches: Iterable[Match]) -> bool:
    group_matches = [m for m in matches if m.bracket == GROUP]
    return bool(group_matches) and all(m.has_result for m in group_matches)


def swiss_win_counts(players: List[Player], matches: Iterable[Match]) -> Dict[str, int]:
    """Swiss wins per player id; a bye counts as a win."""
    wins = {player.id: 0 for player in players}
    for match in matches:
        if match.bracket == SWISS and match.winner_id in wins:
            wins[match.winner_id] += 1
    return wins


def count_qualified(players: List[Player], matches: Iterable[Match], wins_to_qualify: int) -> int:
    return sum(1 for wins in swiss_win_counts(players, matches).values() if wins >= wins_to_qualify)


def calculate_match_stats(matches: Iterable[Match], players: Optional[List[Player]] = None) -> Optional[Dict]:
    """Calculate aggregate statistics across all scored matches.

    Args:
        matches: The match collection.
        players: Optional roster, used to show names instead of ids.

    Returns:
        Dict with total_points, closest_match, biggest_blowout, matches_completed,
        average_margin, or None if no scored matches.
    """
    names = {p.id: p.name for p in players} if players else {}
    all_matches = []

    for match in matches:
        if match.player1_score is None or match.player2_score is None:
            continue
        if match.winner_id is None:
            winner, loser = match.player1_id, match.player2_id
        else:
            winner, loser = match.winner_id, match.loser_id
        winner_score = match.player1_score if winner == match.player1_id else match.player2_score
        loser_score = match.player2_score if winner == match.player1_id else match.player1_score
        all_matches.append({
            'match_id': match.id,
            'winner': names.get(winner, winner),
            'loser': names.get(loser, loser),
            'margin': abs(match.player1_score - match.player2_score),
            'total_points': match.player1_score + match.player2_score,
            'score_line': f'{winner_score}-{loser_score}',
        })

    if not all_matches:
        return None

    closest = min(all_matches, key=lambda m: m['margin'])
    biggest = max(all_matches, key=lambda m: m['margin'])
    total_pts = sum(m['total_points'] for m in all_matches)
    avg_margin = sum(m['margin'] for m in all_matches) / len(all_matches)

    return {
        'total_points': total_pts,
        'matches_completed': len(all_matches),
        'average_margin': round(avg_margin, 1),
        'closest_match': {
            'match_id': closest['match_id'],
            'winner': closest['winner'],
            'loser': closest['loser'],
            'score': closest['score_line'],
            'margin': closest['margin'],
        },
        'biggest_blowout': {
            'match_id': biggest['match_id'],
            'winner': biggest['winner'],
            'loser': biggest['loser'],
            'score': biggest['score_line'],
            'margin': biggest['margin'],
        },
    }
