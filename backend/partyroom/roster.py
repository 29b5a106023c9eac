"""Room membership: identities, colors and connection state."""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .cards import Card
from .errors import GameError, NAME_TAKEN, PLAYER_NOT_FOUND, ROOM_FULL

PLAYER_COLORS = ('red', 'blue', 'green', 'yellow')


@dataclass
class Player:
    id: str
    name: str
    color: str
    is_first_player: bool = False
    connected: bool = True
    score: int = 0
    hand: List[Card] = field(default_factory=list)
    joined_at: float = field(default_factory=time.time)

    @property
    def card_count(self) -> int:
        return len(self.hand)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'color': self.color,
            'cardCount': self.card_count,
            'isFirstPlayer': self.is_first_player,
            'connected': self.connected,
            'score': self.score,
        }


class PlayerRoster:
    """Players of one room in seat (join) order."""

    def __init__(self, max_players: int = 4):
        self.max_players = min(max_players, len(PLAYER_COLORS))
        self._players: Dict[str, Player] = {}

    def __len__(self):
        return len(self._players)

    def __contains__(self, player_id):
        return player_id in self._players

    def __iter__(self):
        return iter(list(self._players.values()))

    def get(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def require(self, player_id: str) -> Player:
        player = self._players.get(player_id)
        if not player:
            raise GameError(PLAYER_NOT_FOUND, 'You are not a player in this room')
        return player

    def find_by_name(self, name: str) -> Optional[Player]:
        for p in self._players.values():
            if p.name.lower() == name.lower():
                return p
        return None

    def next_color(self) -> Optional[str]:
        taken = {p.color for p in self._players.values()}
        for color in PLAYER_COLORS:
            if color not in taken:
                return color
        return None

    def add(self, player_id: str, name: str) -> Player:
        if len(self._players) >= self.max_players:
            raise GameError(ROOM_FULL, 'Room is full')
        if self.find_by_name(name):
            raise GameError(NAME_TAKEN, 'Name already taken')
        color = self.next_color()
        if color is None:
            raise GameError(ROOM_FULL, 'No colors available')
        player = Player(
            id=player_id,
            name=name,
            color=color,
            is_first_player=not self._players,
        )
        self._players[player_id] = player
        return player

    def remove(self, player_id: str) -> Optional[Player]:
        """Drop a player entirely, freeing their color.

        If the first player leaves, the next one in seat order inherits the flag.
        """
        player = self._players.pop(player_id, None)
        if player and player.is_first_player and self._players:
            next(iter(self._players.values())).is_first_player = True
        return player

    def mark_disconnected(self, player_id: str) -> Optional[Player]:
        player = self._players.get(player_id)
        if player:
            player.connected = False
        return player

    def reconnect(self, player: Player, new_id: str) -> Player:
        """Hand a disconnected seat to a new client id, keeping its position."""
        self._players = {
            (new_id if pid == player.id else pid): p for pid, p in self._players.items()
        }
        player.id = new_id
        player.connected = True
        return player

    def all(self) -> List[Player]:
        return list(self._players.values())

    def connected(self) -> List[Player]:
        return [p for p in self._players.values() if p.connected]

    def summary(self) -> List[dict]:
        return [p.to_dict() for p in self._players.values()]
