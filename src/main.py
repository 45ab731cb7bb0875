# Command line entry point: generate a bracket from a YAML roster and print it

import argparse
import logging
import sys
import yaml

from bracket_engine import engine
from bracket_engine.errors import BracketError
from bracket_engine.formats import parse_format_config
from bracket_engine.models import Player, Tournament, TOURNAMENT_FORMATS, SINGLE_ELIMINATION


def load_players(file_path):
    """Roster file: a list of names, a list of {id, name, seed}, or {'players': [...]}"""
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('players', [])
    players = []
    for index, entry in enumerate(data):
        if isinstance(entry, str):
            entry = {'name': entry}
        players.append(Player(
            id=str(entry.get('id') or f'p{index + 1}'),
            name=entry['name'],
            seed=int(entry.get('seed') or index + 1),
        ))
    return players


def load_config(file_path):
    if not file_path:
        return {}
    with open(file_path, mode='r', encoding='utf-8') as file:
        return yaml.safe_load(file) or {}


def print_matches(tournament):
    names = {p.id: p.name for p in tournament.players}
    sections = {}
    for match in tournament.matches:
        label = f"{match.bracket} {match.group_id}" if match.group_id else match.bracket
        sections.setdefault((label, match.round), []).append(match)

    first_section = True
    for (label, round_num), matches in sections.items():
        if not first_section:
            print()
        print(f"# {label} round {round_num}")
        for match in sorted(matches, key=lambda m: m.position):
            player1 = names.get(match.player1_id, 'TBD')
            player2 = names.get(match.player2_id, 'TBD')
            if match.is_bye and match.winner_id:
                print(f"{match.id}: {names.get(match.winner_id)} (bye)")
            else:
                print(f"{match.id}: {player1} vs {player2}")
        first_section = False


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate a tournament bracket from a YAML roster.')
    parser.add_argument('roster', help='YAML file listing the players in seed order')
    parser.add_argument('--config', help='YAML file with the format configuration')
    parser.add_argument('--format', dest='format', choices=TOURNAMENT_FORMATS, default=SINGLE_ELIMINATION)
    parser.add_argument('--name', default='Tournament')
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    players = load_players(args.roster)
    if not players:
        print(f"No players loaded. Check {args.roster}")
        return 1

    try:
        format_config = parse_format_config(args.format, load_config(args.config), len(players))
    except BracketError as e:
        print(f"Invalid configuration: {e.message}")
        return 1

    tournament = Tournament(id='cli', name=args.name, format=args.format,
                            format_config=format_config, players=players)
    result = engine.generate(tournament)
    if not result.success:
        print(f"Could not generate bracket: {result.message}")
        return 1

    print_matches(result.tournament)
    return 0


if __name__ == '__main__':
    sys.exit(main())
