"""
Tests for Swiss pairing.
"""
import logging

import pytest

from conftest import make_players, play_out

from bracket_engine.errors import IncompletePrecondition
from bracket_engine.formats import SwissConfig, SwissQualificationConfig
from bracket_engine.swiss import (
    generate_first_round,
    generate_next_round,
    is_qualification_complete,
    pair_players,
    select_qualifiers,
)


def _pairs(matches):
    return [tuple(m.players) for m in matches if not m.is_bye]


def _slot_two_wins(match):
    return 2


def _run_rounds(players, rounds, config):
    """Play `rounds` Swiss rounds with the slot 1 player always winning."""
    matches = play_out(generate_first_round(players))
    for completed in range(1, rounds):
        matches = play_out(matches + generate_next_round(players, matches, completed, config))
    return matches


class TestFirstRound:
    """Tests for the opening round."""

    def test_top_half_meets_bottom_half(self):
        matches = generate_first_round(make_players(8))
        assert _pairs(matches) == [('p1', 'p5'), ('p2', 'p6'), ('p3', 'p7'), ('p4', 'p8')]

    def test_odd_count_middle_seed_gets_bye(self):
        matches = generate_first_round(make_players(5))
        assert _pairs(matches) == [('p1', 'p4'), ('p2', 'p5')]
        bye = matches[-1]
        assert bye.is_bye
        assert bye.player1_id == 'p3'
        assert bye.winner_id == 'p3'

    def test_ids(self):
        matches = generate_first_round(make_players(4))
        assert [m.id for m in matches] == ['SW1-M1', 'SW1-M2']


class TestNextRound:
    """Tests for pairing later rounds."""

    def test_round_must_be_complete(self):
        players = make_players(4)
        with pytest.raises(IncompletePrecondition):
            generate_next_round(players, generate_first_round(players), 1, SwissConfig(3))

    def test_only_latest_round(self):
        players = make_players(4)
        matches = _run_rounds(players, 2, SwissConfig(3))
        with pytest.raises(IncompletePrecondition):
            generate_next_round(players, matches, 1, SwissConfig(3))

    def test_winners_meet_winners(self):
        players = make_players(4)
        matches = play_out(generate_first_round(players))
        round_two = generate_next_round(players, matches, 1, SwissConfig(3))
        assert _pairs(round_two) == [('p1', 'p2'), ('p3', 'p4')]
        assert all(m.round == 2 for m in round_two)

    def test_no_rematches_while_avoidable(self):
        players = make_players(4)
        matches = _run_rounds(players, 3, SwissConfig(3))
        pairs = [frozenset(m.players) for m in matches if not m.is_bye]
        assert len(pairs) == len(set(pairs)) == 6

    def test_fixed_round_count_is_enforced(self):
        players = make_players(4)
        matches = _run_rounds(players, 3, SwissConfig(3))
        with pytest.raises(IncompletePrecondition):
            generate_next_round(players, matches, 3, SwissConfig(3))

    def test_rematch_fallback(self, caplog):
        """Once every pairing has been used the round is still paired."""
        players = make_players(4)
        matches = _run_rounds(players, 3, SwissConfig(5))
        with caplog.at_level(logging.WARNING):
            round_four = generate_next_round(players, matches, 3, SwissConfig(5))
        assert len(round_four) == 2
        seen = [p for m in round_four for p in m.players]
        assert sorted(seen) == ['p1', 'p2', 'p3', 'p4']
        assert 'rematch' in caplog.text

    def test_bye_goes_to_lowest_ranked_without_one(self):
        players = make_players(5)
        matches = play_out(generate_first_round(players))
        round_two = generate_next_round(players, matches, 1, SwissConfig(3))
        assert round_two[-1].is_bye
        assert round_two[-1].player1_id == 'p5'
        assert _pairs(round_two) == [('p1', 'p2'), ('p3', 'p4')]

    @pytest.mark.parametrize("count", [5, 7, 9])
    def test_no_repeat_byes_while_avoidable(self, count):
        players = make_players(count)
        matches = _run_rounds(players, 4, SwissConfig(4))
        bye_players = [m.player1_id for m in matches if m.is_bye]
        assert len(bye_players) == len(set(bye_players)) == 4

    @pytest.mark.parametrize("count", [6, 7, 10])
    def test_nobody_twice_in_a_round(self, count):
        players = make_players(count)
        matches = _run_rounds(players, 4, SwissConfig(4))
        for round_num in range(1, 5):
            seen = [p for m in matches if m.round == round_num for p in m.players if p is not None]
            assert len(seen) == len(set(seen)) == count


class TestPairPlayers:
    """Tests for the backtracking pairer."""

    def test_backtracks_around_rematch(self):
        players = make_players(4)
        played = {frozenset(('p1', 'p2')), frozenset(('p3', 'p4'))}
        pairs = pair_players(players, played)
        assert [(a.id, b.id) for a, b in pairs] == [('p1', 'p3'), ('p2', 'p4')]

    def test_returns_none_when_impossible(self):
        players = make_players(2)
        assert pair_players(players, {frozenset(('p1', 'p2'))}) is None

    def test_allows_rematch_when_asked(self):
        players = make_players(2)
        pairs = pair_players(players, {frozenset(('p1', 'p2'))}, allow_rematch=True)
        assert len(pairs) == 1


class TestQualification:
    """Tests for Swiss qualification mode."""

    def test_qualified_players_keep_playing(self):
        players = make_players(8)
        config = SwissQualificationConfig(wins_to_qualify=2, qualifying_players=4)
        matches = _run_rounds(players, 2, config)
        round_three = generate_next_round(players, matches, 2, config)
        in_round = {p for m in round_three for p in m.players}
        assert {'p1', 'p3'} <= in_round
        assert len(in_round) == 8

    @pytest.mark.parametrize("count,rounds", [(3, 2), (4, 3)])
    def test_whole_field_can_qualify(self, count, rounds):
        """With qualifyingPlayers equal to the field, rounds keep coming until the last player wins."""
        players = make_players(count)
        config = SwissQualificationConfig(wins_to_qualify=1, qualifying_players=count)
        matches = play_out(generate_first_round(players), pick=_slot_two_wins)
        for completed in range(1, rounds):
            assert not is_qualification_complete(players, matches, config)
            new_round = generate_next_round(players, matches, completed, config)
            assert sorted(p for m in new_round for p in m.players if p) == [p.id for p in players]
            matches = play_out(matches + new_round, pick=_slot_two_wins)
        assert is_qualification_complete(players, matches, config)
        assert len(select_qualifiers(players, matches, config)) == count

    def test_qualification_complete(self):
        players = make_players(8)
        config = SwissQualificationConfig(wins_to_qualify=2, qualifying_players=2)
        matches = _run_rounds(players, 2, config)
        assert is_qualification_complete(players, matches, config)
        with pytest.raises(IncompletePrecondition):
            generate_next_round(players, matches, 2, config)

    def test_select_qualifiers(self):
        players = make_players(8)
        config = SwissQualificationConfig(wins_to_qualify=2, qualifying_players=2)
        matches = _run_rounds(players, 2, config)
        qualifiers = select_qualifiers(players, matches, config)
        assert [p.id for p in qualifiers] == ['p1', 'p3']
        assert [p.seed for p in qualifiers] == [1, 2]

    def test_select_qualifiers_too_early(self):
        players = make_players(8)
        config = SwissQualificationConfig(wins_to_qualify=3, qualifying_players=2)
        matches = _run_rounds(players, 1, config)
        with pytest.raises(IncompletePrecondition):
            select_qualifiers(players, matches, config)
