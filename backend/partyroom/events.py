"""
Inbound Socket.IO payload models and validation.
"""

import json
from typing import Any, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError, field_validator

from .cards import COLORS, RANKS, Card
from .errors import PayloadError

MODES = ('crazy-eights', 'over-under')


class BaseEvent(BaseModel):
    """Base event model."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class RoomEvent(BaseEvent):
    """Any event scoped to a room code."""
    code: str = Field(..., min_length=4, max_length=8, alias='roomCode')

    @field_validator('code')
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return v.strip().upper()


class OptionalRoomEvent(BaseEvent):
    """Display signals where the room code may be omitted."""
    code: Optional[str] = Field(None, max_length=8, alias='roomCode')

    @field_validator('code')
    @classmethod
    def _upper_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


class CardPayload(BaseEvent):
    color: Literal[COLORS]
    rank: str

    @field_validator('rank', mode='before')
    @classmethod
    def _rank_as_text(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if v not in RANKS:
            raise ValueError(f"rank must be one of {', '.join(RANKS)}")
        return v

    def to_card(self) -> Card:
        return Card(self.color, self.rank)


class CreateRoomEvent(BaseEvent):
    """Create room event (display)."""
    mode: Optional[Literal[MODES]] = None


class JoinRoomEvent(RoomEvent):
    """Join room event (phone)."""
    name: str = Field(..., min_length=1, max_length=20, alias='playerName')

    @field_validator('name')
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('name must not be blank')
        return v


class HostJoinRoomEvent(RoomEvent):
    """A display taking over a room created over REST."""
    host_id: str = Field(..., min_length=1, alias='hostId')


class StartGameEvent(RoomEvent):
    """Start game event."""
    mode: Optional[Literal[MODES]] = None


class PlayCardEvent(RoomEvent):
    """Play card event; chosen_color completes a wild play."""
    card: CardPayload
    chosen_color: Optional[Literal[COLORS]] = Field(None, alias='chosenColor')


class DrawCardEvent(RoomEvent):
    """Draw card event."""


class ChooseColorEvent(RoomEvent):
    """Color choice after a wild card."""
    color: Literal[COLORS]


class AnimationCompleteEvent(OptionalRoomEvent):
    """Generic animation-finished signal from the display."""


class FirstCardFlipCompleteEvent(OptionalRoomEvent):
    """Start-card flip finished on the display."""


class WinnerAnimationCompleteEvent(RoomEvent):
    """Winner sequence finished on the display."""
    winner: str = Field(..., min_length=1)


class RestartGameEvent(RoomEvent):
    """Restart with the same players."""


class RequestNewRoomEvent(RoomEvent):
    """Close this room and open a fresh one for new players."""


class RoomStatusEvent(RoomEvent):
    """Room status lookup."""


class SubmitAnswerEvent(RoomEvent):
    """Over/under: the answerer's numeric guess."""
    answer: Union[StrictInt, StrictFloat]


class SubmitVoteEvent(RoomEvent):
    """Over/under: a vote on the answerer's guess."""
    vote: Literal['over', 'under']


class CreateRoomRequest(BaseEvent):
    """REST body for room creation."""
    host_id: Optional[str] = Field(None, min_length=1, max_length=64, alias='hostId')
    mode: Optional[Literal[MODES]] = None


E = TypeVar('E', bound=BaseEvent)


def parse_event(model: Type[E], data: Any) -> E:
    """
    Parse raw event data into the given event model.

    The display sometimes sends its payloads as JSON text, and may send a
    bare room code for room-scoped signals; both are accepted.

    Raises:
        PayloadError: if the data is missing, malformed or fails validation
    """
    room_scoped = issubclass(model, (RoomEvent, OptionalRoomEvent))
    if isinstance(data, bytes):
        data = data.decode('utf-8', errors='replace')
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            if not room_scoped:
                raise PayloadError('Payload is not valid JSON')
            data = {'code': data}
        if isinstance(data, str) and room_scoped:
            data = {'code': data}
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise PayloadError('Payload must be an object')
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = '; '.join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in e.errors()
        )
        raise PayloadError(f"Invalid {model.__name__}: {problems}")
