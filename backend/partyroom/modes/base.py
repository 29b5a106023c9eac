import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import GameError, UNSUPPORTED_ACTION
from ..roster import PlayerRoster
from ..settings import GameSettings


@dataclass
class LockRequest:
    """Ask the room to hold its animation lock for the display."""
    reason: str
    duration_ms: int


@dataclass
class StageTimer:
    """Ask the room to fire on_timer(stage) after delay_sec, if still in that stage and round."""
    stage: str
    round_number: int
    delay_sec: float


@dataclass
class ActionResult:
    """What an accepted action did, for settlement and broadcasting.

    `event` is the outbound event name; `data` its payload minus the views.
    `followups` are further results the same action produced, published in order.
    """
    event: str
    player_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    lock: Optional[LockRequest] = None
    timer: Optional[StageTimer] = None
    winner_id: Optional[str] = None
    followups: List["ActionResult"] = field(default_factory=list)


class GameMode(ABC):
    """Strategy for one game mode, selected once when a room starts a game."""

    name = ''

    def __init__(self, roster: PlayerRoster, settings: GameSettings, rng: Optional[random.Random] = None):
        self.roster = roster
        self.settings = settings
        self.rng = rng or random.Random()
        self.phase = 'lobby'

    @abstractmethod
    def start(self) -> ActionResult:
        """Initialise fresh game state for the current roster."""

    def handlers(self) -> Dict[type, Callable[[str, Any], ActionResult]]:
        """Map inbound event types to the method applying them."""
        return {}

    def apply_action(self, player_id: str, action) -> ActionResult:
        handler = self.handlers().get(type(action))
        if handler is None:
            raise GameError(UNSUPPORTED_ACTION, f"{type(action).__name__} is not part of {self.name}")
        return handler(player_id, action)

    def allowed_while_locked(self, player_id: str, action) -> bool:
        return False

    @property
    def is_finished(self) -> bool:
        return self.phase == 'game-over'

    @abstractmethod
    def public_view(self) -> Dict[str, Any]:
        """Mode state everyone, including the display, may see."""

    def private_view(self, player_id: str) -> Dict[str, Any]:
        return {}

    def on_animation_released(self) -> None:
        pass

    def on_winner_sequence_complete(self) -> None:
        pass

    def on_timer(self, stage: str) -> Optional[ActionResult]:
        return None

    def on_player_disconnected(self, player_id: str) -> Optional[ActionResult]:
        return None

    def on_player_reconnected(self, old_id: str, new_id: str) -> None:
        pass

    def standings(self):
        return [p.to_dict() for p in self.roster.all()]
