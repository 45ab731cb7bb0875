from datetime import datetime
from typing import Dict, List, Optional

# Bracket tags
WINNERS = 'winners'
LOSERS = 'losers'
GRAND_FINALS = 'grand-finals'
ROUND_ROBIN = 'round-robin'
SWISS = 'swiss'
GROUP = 'group'

BRACKET_TYPES = (WINNERS, LOSERS, GRAND_FINALS, ROUND_ROBIN, SWISS, GROUP)
ELIMINATION_BRACKETS = (WINNERS, LOSERS, GRAND_FINALS)

# Tournament formats
SINGLE_ELIMINATION = 'single-elimination'
DOUBLE_ELIMINATION = 'double-elimination'
ROUND_ROBIN_FORMAT = 'round-robin'
SWISS_FORMAT = 'swiss'
GROUP_KNOCKOUT = 'group-knockout'

TOURNAMENT_FORMATS = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, ROUND_ROBIN_FORMAT, SWISS_FORMAT, GROUP_KNOCKOUT)

# Tournament status
DRAFT = 'draft'
ACTIVE = 'active'
COMPLETED = 'completed'


class Player:
    def __init__(self, id, name, seed, wins=0, losses=0, group_id=None):
        self.id = id
        self.name = name
        self.seed = seed
        self.wins = wins
        self.losses = losses
        self.group_id = group_id

    def copy(self) -> 'Player':
        return Player(self.id, self.name, self.seed, self.wins, self.losses, self.group_id)

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'name': self.name,
            'seed': self.seed,
            'wins': self.wins,
            'losses': self.losses,
        }
        if self.group_id is not None:
            data['groupId'] = self.group_id
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'Player':
        return cls(
            id=data['id'],
            name=data['name'],
            seed=data['seed'],
            wins=data.get('wins') or 0,
            losses=data.get('losses') or 0,
            group_id=data.get('groupId'),
        )

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, seed={self.seed})"


class Match:
    """
    One node of the match graph.

    next_match_slot / loser_next_match_slot name the slot (1 or 2) of the
    target match that the winner / loser is designated for.
    """

    def __init__(self, id, bracket, round, position, player1_id=None, player2_id=None,
                 player1_score=None, player2_score=None, winner_id=None,
                 next_match_id=None, next_match_slot=None,
                 loser_next_match_id=None, loser_next_match_slot=None,
                 group_id=None, is_bye=False, is_forfeited=False, notes=None):
        self.id = id
        self.bracket = bracket
        self.round = round
        self.position = position
        self.player1_id = player1_id
        self.player2_id = player2_id
        self.player1_score = player1_score
        self.player2_score = player2_score
        self.winner_id = winner_id
        self.next_match_id = next_match_id
        self.next_match_slot = next_match_slot
        self.loser_next_match_id = loser_next_match_id
        self.loser_next_match_slot = loser_next_match_slot
        self.group_id = group_id
        self.is_bye = is_bye
        self.is_forfeited = is_forfeited
        self.notes = notes

    @property
    def players(self) -> List[Optional[str]]:
        return [self.player1_id, self.player2_id]

    @property
    def has_result(self) -> bool:
        """True once a winner is known or a draw has been recorded."""
        if self.winner_id is not None:
            return True
        return self.player1_score is not None and self.player2_score is not None

    @property
    def loser_id(self) -> Optional[str]:
        if self.winner_id is None:
            return None
        if self.winner_id == self.player1_id:
            return self.player2_id
        return self.player1_id

    def get_slot(self, slot: int) -> Optional[str]:
        return self.player1_id if slot == 1 else self.player2_id

    def set_slot(self, slot: int, player_id: Optional[str]):
        if slot == 1:
            self.player1_id = player_id
        else:
            self.player2_id = player_id

    def slot_of(self, player_id: str) -> Optional[int]:
        if player_id is None:
            return None
        if self.player1_id == player_id:
            return 1
        if self.player2_id == player_id:
            return 2
        return None

    def clear_result(self):
        self.player1_score = None
        self.player2_score = None
        self.winner_id = None
        self.is_forfeited = False

    def copy(self) -> 'Match':
        return Match(**self._fields())

    def _fields(self) -> Dict:
        return {
            'id': self.id,
            'bracket': self.bracket,
            'round': self.round,
            'position': self.position,
            'player1_id': self.player1_id,
            'player2_id': self.player2_id,
            'player1_score': self.player1_score,
            'player2_score': self.player2_score,
            'winner_id': self.winner_id,
            'next_match_id': self.next_match_id,
            'next_match_slot': self.next_match_slot,
            'loser_next_match_id': self.loser_next_match_id,
            'loser_next_match_slot': self.loser_next_match_slot,
            'group_id': self.group_id,
            'is_bye': self.is_bye,
            'is_forfeited': self.is_forfeited,
            'notes': self.notes,
        }

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'bracket': self.bracket,
            'round': self.round,
            'position': self.position,
            'player1Id': self.player1_id,
            'player2Id': self.player2_id,
            'player1Score': self.player1_score,
            'player2Score': self.player2_score,
            'winnerId': self.winner_id,
            'nextMatchId': self.next_match_id,
            'nextMatchSlot': self.next_match_slot,
            'loserNextMatchId': self.loser_next_match_id,
            'loserNextMatchSlot': self.loser_next_match_slot,
            'groupId': self.group_id,
            'isBye': self.is_bye,
            'isForfeited': self.is_forfeited,
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        return cls(
            id=data['id'],
            bracket=data['bracket'],
            round=data['round'],
            position=data['position'],
            player1_id=data.get('player1Id'),
            player2_id=data.get('player2Id'),
            player1_score=data.get('player1Score'),
            player2_score=data.get('player2Score'),
            winner_id=data.get('winnerId'),
            next_match_id=data.get('nextMatchId'),
            next_match_slot=data.get('nextMatchSlot'),
            loser_next_match_id=data.get('loserNextMatchId'),
            loser_next_match_slot=data.get('loserNextMatchSlot'),
            group_id=data.get('groupId'),
            is_bye=bool(data.get('isBye', False)),
            is_forfeited=bool(data.get('isForfeited', False)),
            notes=data.get('notes'),
        )

    def __eq__(self, other):
        if not isinstance(other, Match):
            return NotImplemented
        return self._fields() == other._fields()

    def __repr__(self):
        return (f"Match(id={self.id}, bracket={self.bracket}, round={self.round}, "
                f"position={self.position}, players=({self.player1_id}, {self.player2_id}), "
                f"winner={self.winner_id})")


class Tournament:
    def __init__(self, id, name, format, format_config=None, status=DRAFT, players=None,
                 matches=None, current_swiss_round=None, group_stage_complete=False,
                 swiss_qualification_complete=False, created_at=None, completed_at=None):
        self.id = id
        self.name = name
        self.format = format
        self.format_config = format_config
        self.status = status
        self.players = players if players else []
        self.matches = matches if matches else []
        self.current_swiss_round = current_swiss_round
        self.group_stage_complete = group_stage_complete
        self.swiss_qualification_complete = swiss_qualification_complete
        self.created_at = created_at if created_at else datetime.now()
        self.completed_at = completed_at

    def copy(self) -> 'Tournament':
        return Tournament(
            id=self.id,
            name=self.name,
            format=self.format,
            format_config=self.format_config,
            status=self.status,
            players=[p.copy() for p in self.players],
            matches=[m.copy() for m in self.matches],
            current_swiss_round=self.current_swiss_round,
            group_stage_complete=self.group_stage_complete,
            swiss_qualification_complete=self.swiss_qualification_complete,
            created_at=self.created_at,
            completed_at=self.completed_at,
        )

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'format': self.format,
            'formatConfig': self.format_config.to_dict() if self.format_config else {},
            'status': self.status,
            'players': [p.to_dict() for p in self.players],
            'matches': [m.to_dict() for m in self.matches],
            'currentSwissRound': self.current_swiss_round,
            'groupStageComplete': self.group_stage_complete,
            'swissQualificationComplete': self.swiss_qualification_complete,
            'createdAt': self.created_at.isoformat(),
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        from .formats import parse_format_config

        players = [Player.from_dict(p) for p in data.get('players') or []]
        created_at = data.get('createdAt')
        completed_at = data.get('completedAt')
        return cls(
            id=data['id'],
            name=data['name'],
            format=data['format'],
            format_config=parse_format_config(data['format'], data.get('formatConfig') or {}, len(players)),
            status=data.get('status', DRAFT),
            players=players,
            matches=[Match.from_dict(m) for m in data.get('matches') or []],
            current_swiss_round=data.get('currentSwissRound'),
            group_stage_complete=bool(data.get('groupStageComplete', False)),
            swiss_qualification_complete=bool(data.get('swissQualificationComplete', False)),
            created_at=_parse_datetime(created_at),
            completed_at=_parse_datetime(completed_at) if completed_at else None,
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, format={self.format}, status={self.status})"


def _parse_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def seed_players(players: List[Player]) -> List[Player]:
    """Return players ordered by seed (1 first)."""
    return sorted(players, key=lambda p: p.seed)
