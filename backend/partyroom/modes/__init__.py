"""Game modes: one strategy per game, chosen when a room starts."""

from ..errors import GameError, UNKNOWN_MODE
from .base import ActionResult, GameMode, LockRequest, StageTimer
from .crazy_eights import CrazyEightsMode
from .over_under import OverUnderMode

MODES = {
    CrazyEightsMode.name: CrazyEightsMode,
    OverUnderMode.name: OverUnderMode,
}


def create_mode(name, roster, settings, rng=None) -> GameMode:
    mode_class = MODES.get(name)
    if mode_class is None:
        raise GameError(UNKNOWN_MODE, f"Unknown game mode: {name}")
    return mode_class(roster, settings, rng)


__all__ = [
    'ActionResult', 'CrazyEightsMode', 'GameMode', 'LockRequest', 'MODES', 'OverUnderMode',
    'StageTimer', 'create_mode',
]
