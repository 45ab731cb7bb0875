"""
Tests for the group stage and the knockout seeded from it.
"""
import pytest

from conftest import make_players, play_out, by_id

from bracket_engine.errors import IncompletePrecondition, InsufficientPlayers, InvalidFormatConfig
from bracket_engine.formats import GroupKnockoutConfig
from bracket_engine.graph import check_graph_integrity
from bracket_engine.groups import (
    assign_groups,
    generate_group_stage,
    generate_knockout_stage,
    group_name,
    seed_from_groups,
)
from bracket_engine.models import GROUP, GRAND_FINALS, DOUBLE_ELIMINATION


def better_seed_wins(match):
    """Slot whose player has the lower seed number (ids are p<seed>)."""
    return 1 if int(match.player1_id[1:]) < int(match.player2_id[1:]) else 2


def _grouped(count, group_count=2):
    players = make_players(count)
    assignments = assign_groups(players, group_count)
    for player in players:
        player.group_id = assignments[player.id]
    return players


class TestAssignGroups:
    """Tests for the snake draft."""

    def test_snake_draft_two_groups(self):
        assignments = assign_groups(make_players(8), 2)
        group_a = sorted(pid for pid, gid in assignments.items() if gid == 'A')
        group_b = sorted(pid for pid, gid in assignments.items() if gid == 'B')
        assert group_a == ['p1', 'p4', 'p5', 'p8']
        assert group_b == ['p2', 'p3', 'p6', 'p7']

    def test_snake_draft_three_groups(self):
        assignments = assign_groups(make_players(6), 3)
        assert [assignments[f'p{i}'] for i in range(1, 7)] == ['A', 'B', 'C', 'C', 'B', 'A']

    def test_uneven_groups(self):
        assignments = assign_groups(make_players(7), 2)
        sizes = sorted(list(assignments.values()).count(g) for g in ('A', 'B'))
        assert sizes == [3, 4]

    def test_group_names(self):
        assert group_name(0) == 'A'
        assert group_name(25) == 'Z'
        assert group_name(26) == 'G27'


class TestGroupStage:
    """Tests for group stage generation."""

    def test_round_robin_per_group(self):
        config = GroupKnockoutConfig(group_count=2, advance_per_group=2)
        matches = generate_group_stage(_grouped(8), config)
        assert len(matches) == 12
        assert all(m.bracket == GROUP for m in matches)
        assert {m.group_id for m in matches} == {"A", "B"}

    def test_matches_stay_inside_their_group(self):
        players = _grouped(8)
        group_of = {p.id: p.group_id for p in players}
        matches = generate_group_stage(players, GroupKnockoutConfig())
        for match in matches:
            assert group_of[match.player1_id] == match.group_id
            assert group_of[match.player2_id] == match.group_id

    def test_ungrouped_players_are_drafted(self):
        matches = generate_group_stage(make_players(8), GroupKnockoutConfig())
        assert matches[0].id == 'GA-R1-M1'
        check_graph_integrity(matches)

    def test_minimum_players(self):
        with pytest.raises(InsufficientPlayers):
            generate_group_stage(make_players(3), GroupKnockoutConfig())

    def test_single_player_group_rejected(self):
        with pytest.raises(InvalidFormatConfig):
            generate_group_stage(make_players(4), GroupKnockoutConfig(group_count=3))


class TestKnockoutSeeding:
    """Tests for seeding the knockout from group standings."""

    def test_group_stage_must_be_complete(self):
        players = _grouped(8)
        matches = generate_group_stage(players, GroupKnockoutConfig())
        with pytest.raises(IncompletePrecondition):
            seed_from_groups(players, matches, GroupKnockoutConfig())

    def test_winners_then_runners_up(self):
        players = _grouped(8)
        config = GroupKnockoutConfig(group_count=2, advance_per_group=2)
        matches = play_out(generate_group_stage(players, config), pick=better_seed_wins)
        qualifiers = seed_from_groups(players, matches, config)
        assert [p.id for p in qualifiers] == ['p1', 'p2', 'p4', 'p3']
        assert [p.seed for p in qualifiers] == [1, 2, 3, 4]

    def test_input_players_keep_their_seed(self):
        players = _grouped(8)
        config = GroupKnockoutConfig()
        matches = play_out(generate_group_stage(players, config), pick=better_seed_wins)
        seed_from_groups(players, matches, config)
        assert players[2].seed == 3

    def test_knockout_bracket(self):
        players = _grouped(8)
        config = GroupKnockoutConfig()
        matches = play_out(generate_group_stage(players, config), pick=better_seed_wins)
        knockout = by_id(generate_knockout_stage(seed_from_groups(players, matches, config)))
        assert knockout['KW1-M1'].players == ['p1', 'p3']
        assert knockout['KW1-M2'].players == ['p2', 'p4']

    def test_double_elimination_knockout(self):
        players = _grouped(8)
        config = GroupKnockoutConfig(knockout_format=DOUBLE_ELIMINATION)
        matches = play_out(generate_group_stage(players, config), pick=better_seed_wins)
        knockout = generate_knockout_stage(seed_from_groups(players, matches, config), DOUBLE_ELIMINATION)
        assert {m.id for m in knockout if m.bracket == GRAND_FINALS} == {'KGF-1', 'KGF-2'}
        check_graph_integrity(matches + knockout)
