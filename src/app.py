"""
Flask JSON API hosting the bracket engine.

Tournaments are stored one YAML snapshot per file under
BRACKET_DATA_DIR/tournaments. Every write goes through a FileLock on the
data directory so two requests can never interleave edits.
"""
import os
import re
import uuid
import yaml
from filelock import FileLock
from flask import Flask, request, jsonify

from bracket_engine import engine
from bracket_engine.completion import evaluate_completion
from bracket_engine.errors import BracketError, BracketIntegrityError, MatchNotFound
from bracket_engine.formats import parse_format_config
from bracket_engine.models import Player, Tournament, GROUP_KNOCKOUT, SWISS, SWISS_FORMAT
from bracket_engine.standings import calculate_group_standings, calculate_match_stats, calculate_standings
from bracket_engine.validators import validate_tournament

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = 10

TOURNAMENT_ID_RE = re.compile(r'^[a-z0-9][a-z0-9-]{0,63}$')


def _data_lock() -> FileLock:
    """Lock guarding every read-modify-write of the data directory."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=LOCK_TIMEOUT)


def _tournament_path(tournament_id: str) -> str:
    return os.path.join(DATA_DIR, 'tournaments', f'{tournament_id}.yaml')


def slugify(name: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')
    return slug[:48] or 'tournament'


def load_tournament(tournament_id: str):
    """Load a tournament snapshot, or None if it is missing or invalid."""
    if not TOURNAMENT_ID_RE.match(tournament_id):
        return None
    path = _tournament_path(tournament_id)
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return None
    return validate_tournament(data)


def save_tournament(tournament: Tournament):
    """Save a tournament snapshot to its YAML file."""
    path = _tournament_path(tournament.id)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(tournament.to_dict(), f, default_flow_style=False, sort_keys=False)


def list_tournaments():
    directory = os.path.join(DATA_DIR, 'tournaments')
    if not os.path.isdir(directory):
        return []
    tournaments = []
    for filename in sorted(os.listdir(directory)):
        if not filename.endswith('.yaml'):
            continue
        tournament = load_tournament(filename[:-len('.yaml')])
        if tournament is not None:
            tournaments.append(tournament)
    return tournaments


def _error_response(code: str, message: str, status: int = 400):
    return jsonify({'success': False, 'error': code, 'message': message}), status


def _operation_response(result):
    if result.success:
        return jsonify(result.to_dict())
    status = 404 if result.error == MatchNotFound.code else 400
    return jsonify(result.to_dict()), status


def _run_operation(tournament_id: str, operation, *args):
    """Load, apply one engine operation and persist it, all under the data lock."""
    with _data_lock():
        tournament = load_tournament(tournament_id)
        if tournament is None:
            return _error_response('tournament_not_found', f'Tournament {tournament_id} not found.', 404)
        result = operation(tournament, *args)
        if result.success:
            save_tournament(result.tournament)
            app.logger.info(f'{operation.__name__} applied to {tournament_id}')
    return _operation_response(result)


def _parse_players(entries):
    if not isinstance(entries, list):
        raise ValueError('players must be a list')
    players = []
    for index, entry in enumerate(entries):
        if isinstance(entry, str):
            entry = {'name': entry}
        if not isinstance(entry, dict) or not str(entry.get('name', '')).strip():
            raise ValueError(f'Player #{index + 1} needs a name')
        players.append(Player(
            id=str(entry.get('id') or f'p{index + 1}'),
            name=str(entry['name']).strip(),
            seed=int(entry.get('seed') or index + 1),
        ))
    return players


@app.errorhandler(BracketIntegrityError)
def handle_integrity_error(e):
    app.logger.error(f'Bracket integrity failure: {e}')
    return _error_response('bracket_integrity', str(e), 500)


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    tournaments = list_tournaments()
    return jsonify({'success': True, 'tournaments': [
        {'id': t.id, 'name': t.name, 'format': t.format, 'status': t.status} for t in tournaments
    ]})


@app.route('/api/tournaments', methods=['POST'])
def api_create_tournament():
    """Create a draft tournament from a name, format, config and roster."""
    data = request.get_json(silent=True) or {}
    name = str(data.get('name', '')).strip()
    if not name:
        return _error_response('invalid_request', 'Tournament name is required.')

    try:
        players = _parse_players(data.get('players', []))
        format_config = parse_format_config(data.get('format'), data.get('formatConfig') or {}, len(players))
    except (TypeError, ValueError) as e:
        return _error_response('invalid_request', str(e))
    except BracketError as e:
        return _error_response(e.code, e.message)

    with _data_lock():
        tournament_id = data.get('id') or f'{slugify(name)}-{uuid.uuid4().hex[:6]}'
        if not TOURNAMENT_ID_RE.match(tournament_id):
            return _error_response('invalid_request', 'Tournament id may only contain a-z, 0-9 and dashes.')
        if os.path.exists(_tournament_path(tournament_id)):
            return _error_response('invalid_request', f'Tournament {tournament_id} already exists.')
        tournament = Tournament(
            id=tournament_id,
            name=name,
            format=data.get('format'),
            format_config=format_config,
            players=players,
        )
        save_tournament(tournament)
    app.logger.info(f'Created {tournament.format} tournament {tournament_id} with {len(players)} players')
    return jsonify({'success': True, 'tournament': tournament.to_dict()}), 201


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _error_response('tournament_not_found', f'Tournament {tournament_id} not found.', 404)
    return jsonify({'success': True, 'tournament': tournament.to_dict()})


@app.route('/api/tournaments/<tournament_id>/start', methods=['POST'])
def api_start_tournament(tournament_id):
    return _run_operation(tournament_id, engine.generate)


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/result', methods=['POST'])
def api_record_result(tournament_id, match_id):
    """Record a score. Pass "edit": true to replace an existing result."""
    data = request.get_json(silent=True) or {}
    operation = engine.edit_result if data.get('edit') else engine.apply_result
    return _run_operation(tournament_id, operation, match_id, data.get('player1Score'), data.get('player2Score'))


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/result', methods=['DELETE'])
def api_reset_result(tournament_id, match_id):
    return _run_operation(tournament_id, engine.reset_result, match_id)


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/override', methods=['POST'])
def api_override_players(tournament_id, match_id):
    data = request.get_json(silent=True) or {}
    return _run_operation(tournament_id, engine.override_players, match_id,
                          data.get('player1Id'), data.get('player2Id'))


@app.route('/api/tournaments/<tournament_id>/matches/<match_id>/force-winner', methods=['POST'])
def api_force_winner(tournament_id, match_id):
    data = request.get_json(silent=True) or {}
    winner_id = data.get('winnerId')
    if not winner_id:
        return _error_response('invalid_request', 'winnerId is required.')
    return _run_operation(tournament_id, engine.force_winner, match_id, winner_id,
                          bool(data.get('isForfeited', False)))


@app.route('/api/tournaments/<tournament_id>/swiss/next-round', methods=['POST'])
def api_next_swiss_round(tournament_id):
    return _run_operation(tournament_id, engine.advance_swiss_round)


@app.route('/api/tournaments/<tournament_id>/knockout', methods=['POST'])
def api_advance_to_knockout(tournament_id):
    return _run_operation(tournament_id, engine.advance_to_knockout)


@app.route('/api/tournaments/<tournament_id>/standings', methods=['GET'])
def api_standings(tournament_id):
    """Standings, match statistics and the champion once the event is decided."""
    tournament = load_tournament(tournament_id)
    if tournament is None:
        return _error_response('tournament_not_found', f'Tournament {tournament_id} not found.', 404)

    response = {'success': True}
    if tournament.format == SWISS_FORMAT:
        response['standings'] = calculate_standings(tournament.players, tournament.matches,
                                                    brackets=[SWISS], count_byes=True)
    elif tournament.format == GROUP_KNOCKOUT:
        response['groupStandings'] = calculate_group_standings(tournament.players, tournament.matches)
    else:
        response['standings'] = calculate_standings(tournament.players, tournament.matches)

    is_complete, champion = evaluate_completion(tournament)
    response['isComplete'] = is_complete
    response['championId'] = champion
    response['stats'] = calculate_match_stats(tournament.matches, tournament.players)
    return jsonify(response)


if __name__ == '__main__':
    app.run(debug=True, port=5000)
