"""
Tests for round robin schedule generation.
"""
from itertools import combinations

import pytest

from conftest import make_players

from bracket_engine.errors import InsufficientPlayers
from bracket_engine.graph import check_graph_integrity
from bracket_engine.models import ROUND_ROBIN
from bracket_engine.round_robin import circle_rounds, generate_round_robin


class TestCircleRounds:
    """Tests for the circle method."""

    def test_even_count_rounds(self):
        rounds = circle_rounds(['a', 'b', 'c', 'd'])
        assert len(rounds) == 3
        assert all(len(pairs) == 2 for pairs in rounds)

    def test_odd_count_gets_a_sit_out(self):
        rounds = circle_rounds(['a', 'b', 'c'])
        assert len(rounds) == 3
        sitting_out = [next(p for pair in pairs if None in pair for p in pair if p is not None)
                       for pairs in rounds]
        assert sorted(sitting_out) == ['a', 'b', 'c']


class TestGenerateRoundRobin:
    """Tests for the generated matches."""

    @pytest.mark.parametrize("count", [2, 3, 4, 5, 6, 7, 10])
    def test_every_pair_meets_once(self, count):
        players = make_players(count)
        matches = [m for m in generate_round_robin(players) if not m.is_bye]
        pairs = [frozenset(m.players) for m in matches]
        assert len(pairs) == count * (count - 1) // 2
        assert set(pairs) == {frozenset(pair) for pair in combinations([p.id for p in players], 2)}

    @pytest.mark.parametrize("count", [4, 5, 8, 9])
    def test_appearances_per_player(self, count):
        """N-1 matches each, plus one bye each when N is odd."""
        matches = generate_round_robin(make_players(count))
        expected = count - 1 if count % 2 == 0 else count
        for player in make_players(count):
            appearances = [m for m in matches if player.id in m.players]
            assert len(appearances) == expected

    @pytest.mark.parametrize("count", [4, 5, 7])
    def test_nobody_plays_twice_in_a_round(self, count):
        matches = generate_round_robin(make_players(count))
        for round_num in {m.round for m in matches}:
            seen = [p for m in matches if m.round == round_num for p in m.players if p is not None]
            assert len(seen) == len(set(seen))

    def test_byes_are_resolved(self):
        matches = generate_round_robin(make_players(5))
        byes = [m for m in matches if m.is_bye]
        assert len(byes) == 5
        for bye in byes:
            assert bye.player2_id is None
            assert bye.winner_id == bye.player1_id

    def test_matches_are_unlinked(self):
        matches = generate_round_robin(make_players(6))
        assert all(m.next_match_id is None and m.loser_next_match_id is None for m in matches)
        assert all(m.bracket == ROUND_ROBIN for m in matches)
        check_graph_integrity(matches)

    def test_ids(self):
        matches = generate_round_robin(make_players(4))
        assert matches[0].id == 'RR1-M1'
        assert matches[-1].id == 'RR3-M2'

    def test_one_player_is_rejected(self):
        with pytest.raises(InsufficientPlayers):
            generate_round_robin(make_players(1))
