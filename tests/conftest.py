"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.models import Player, Tournament
from bracket_engine.propagation import apply_result


def make_players(count):
    """Players p1..pN named after their seed, seed 1 first."""
    return [Player(id=f"p{i}", name=f"Player {i}", seed=i) for i in range(1, count + 1)]


def by_id(matches):
    return {m.id: m for m in matches}


def play_out(matches, pick=None, allow_draws=False):
    """
    Decide every playable match until none is left.

    pick(match) returns the slot (1 or 2) that should win; by default the
    player in slot 1 wins 21-15.
    """
    while True:
        playable = [m for m in matches
                    if not m.has_result and m.player1_id is not None and m.player2_id is not None]
        if not playable:
            return matches
        match = playable[0]
        slot = pick(match) if pick else 1
        scores = (21, 15) if slot == 1 else (15, 21)
        matches = apply_result(matches, match.id, *scores, allow_draws=allow_draws)


@pytest.fixture
def four_players():
    """The A/B/C/D roster, seeded in name order."""
    return [
        Player(id="A", name="Alice", seed=1),
        Player(id="B", name="Bob", seed=2),
        Player(id="C", name="Carol", seed=3),
        Player(id="D", name="Dave", seed=4),
    ]


@pytest.fixture
def eight_players():
    return make_players(8)


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Flask test client writing to a temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def draft_tournament(four_players):
    def _make(format, format_config=None, players=None):
        from bracket_engine.formats import parse_format_config
        roster = players if players is not None else four_players
        return Tournament(
            id="t1",
            name="Test Cup",
            format=format,
            format_config=parse_format_config(format, format_config or {}, len(roster)),
            players=roster,
        )
    return _make
