"""
Tests for the Flask JSON API.
"""
import yaml


def _create(client, format='single-elimination', players=None, format_config=None, tournament_id='cup'):
    payload = {
        'id': tournament_id,
        'name': 'Spring Cup',
        'format': format,
        'players': players if players is not None else ['Alice', 'Bob', 'Carol', 'Dave'],
    }
    if format_config is not None:
        payload['formatConfig'] = format_config
    return client.post('/api/tournaments', json=payload)


def _start(client, tournament_id='cup'):
    return client.post(f'/api/tournaments/{tournament_id}/start')


def _record(client, match_id, score1, score2, tournament_id='cup', edit=False):
    return client.post(f'/api/tournaments/{tournament_id}/matches/{match_id}/result',
                       json={'player1Score': score1, 'player2Score': score2, 'edit': edit})


class TestCreateTournament:
    """Tests for POST /api/tournaments."""

    def test_create(self, client):
        response = _create(client)
        assert response.status_code == 201
        data = response.get_json()
        assert data['success']
        assert data['tournament']['status'] == 'draft'
        assert [p['id'] for p in data['tournament']['players']] == ['p1', 'p2', 'p3', 'p4']

    def test_snapshot_written_as_yaml(self, client, tmp_path):
        _create(client)
        path = tmp_path / 'tournaments' / 'cup.yaml'
        assert path.exists()
        data = yaml.safe_load(path.read_text())
        assert data['name'] == 'Spring Cup'

    def test_name_required(self, client):
        response = client.post('/api/tournaments', json={'format': 'swiss', 'players': []})
        assert response.status_code == 400

    def test_invalid_format(self, client):
        response = _create(client, format='ladder')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'invalid_format_config'

    def test_invalid_player_entry(self, client):
        response = _create(client, players=[{'seed': 1}])
        assert response.status_code == 400

    def test_duplicate_id(self, client):
        _create(client)
        assert _create(client).status_code == 400

    def test_generated_id(self, client):
        response = client.post('/api/tournaments', json={'name': 'Summer Open', 'format': 'round-robin',
                                                         'players': ['A', 'B']})
        assert response.get_json()['tournament']['id'].startswith('summer-open-')

    def test_list(self, client):
        _create(client)
        data = client.get('/api/tournaments').get_json()
        assert [t['id'] for t in data['tournaments']] == ['cup']


class TestTournamentRoutes:
    """Tests for operations on a stored tournament."""

    def test_missing_tournament(self, client):
        assert client.get('/api/tournaments/nope').status_code == 404
        assert _start(client, 'nope').status_code == 404

    def test_path_like_ids_are_not_found(self, client):
        assert client.get('/api/tournaments/..%2Fsecret').status_code == 404

    def test_start_and_record(self, client):
        _create(client)
        data = _start(client).get_json()
        assert data['tournament']['status'] == 'active'

        data = _record(client, 'W1-M1', 21, 19).get_json()
        assert data['success']
        final = next(m for m in data['tournament']['matches'] if m['id'] == 'W2-M1')
        assert final['player1Id'] == 'p1'

        stored = client.get('/api/tournaments/cup').get_json()['tournament']
        assert next(m for m in stored['matches'] if m['id'] == 'W1-M1')['winnerId'] == 'p1'

    def test_edit_result(self, client):
        _create(client)
        _start(client)
        _record(client, 'W1-M1', 21, 19)
        assert _record(client, 'W1-M1', 10, 21).status_code == 400
        data = _record(client, 'W1-M1', 10, 21, edit=True).get_json()
        final = next(m for m in data['tournament']['matches'] if m['id'] == 'W2-M1')
        assert final['player1Id'] == 'p4'

    def test_reset_result(self, client):
        _create(client)
        _start(client)
        _record(client, 'W1-M1', 21, 19)
        data = client.delete('/api/tournaments/cup/matches/W1-M1/result').get_json()
        match = next(m for m in data['tournament']['matches'] if m['id'] == 'W1-M1')
        assert match['winnerId'] is None

    def test_invalid_score(self, client):
        _create(client)
        _start(client)
        response = _record(client, 'W1-M1', 5, 5)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'invalid_score'

    def test_unknown_match(self, client):
        _create(client)
        _start(client)
        assert _record(client, 'W7-M7', 21, 19).status_code == 404

    def test_override_and_force_winner(self, client):
        _create(client)
        _start(client)
        response = client.post('/api/tournaments/cup/matches/W1-M1/override',
                               json={'player1Id': 'p3', 'player2Id': 'p4'})
        assert response.get_json()['success']
        response = client.post('/api/tournaments/cup/matches/W1-M1/force-winner',
                               json={'winnerId': 'p4', 'isForfeited': True})
        match = next(m for m in response.get_json()['tournament']['matches'] if m['id'] == 'W1-M1')
        assert match['winnerId'] == 'p4'
        assert match['isForfeited']

    def test_force_winner_requires_winner(self, client):
        _create(client)
        _start(client)
        response = client.post('/api/tournaments/cup/matches/W1-M1/force-winner', json={})
        assert response.status_code == 400

    def test_swiss_next_round(self, client):
        _create(client, format='swiss')
        _start(client)
        assert client.post('/api/tournaments/cup/swiss/next-round').status_code == 400
        _record(client, 'SW1-M1', 21, 10)
        _record(client, 'SW1-M2', 21, 10)
        data = client.post('/api/tournaments/cup/swiss/next-round').get_json()
        assert data['tournament']['currentSwissRound'] == 2

    def test_group_knockout(self, client):
        _create(client, format='group-knockout', format_config={'groupCount': 2, 'advancePerGroup': 1})
        data = _start(client).get_json()
        for match in data['tournament']['matches']:
            _record(client, match['id'], 21, 10)
        data = client.post('/api/tournaments/cup/knockout').get_json()
        assert data['success']
        assert data['tournament']['groupStageComplete']

    def test_standings(self, client):
        _create(client)
        _start(client)
        _record(client, 'W1-M1', 21, 19)
        data = client.get('/api/tournaments/cup/standings').get_json()
        assert data['standings'][0]['player_id'] == 'p1'
        assert data['isComplete'] is False
        assert data['stats']['matches_completed'] == 1

    def test_corrupt_snapshot_is_not_found(self, client, tmp_path):
        _create(client)
        (tmp_path / 'tournaments' / 'cup.yaml').write_text('id: [unclosed')
        assert client.get('/api/tournaments/cup').status_code == 404
