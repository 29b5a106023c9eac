"""Typed failures raised by the room and game engines."""


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

    def to_dict(self):
        return {'success': False, 'error': self.message, 'code': self.code}


class PayloadError(GameError):
    """A malformed inbound payload."""
    def __init__(self, message: str):
        super().__init__(INVALID_PAYLOAD, message)


# Room / roster
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
ROOM_FULL = "ROOM_FULL"
NAME_TAKEN = "NAME_TAKEN"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
NOT_AUTHORIZED = "NOT_AUTHORIZED"
ALREADY_IN_ROOM = "ALREADY_IN_ROOM"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
UNKNOWN_MODE = "UNKNOWN_MODE"

# Game flow
WRONG_PHASE = "WRONG_PHASE"
ANIMATION_IN_PROGRESS = "ANIMATION_IN_PROGRESS"
UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"

# Crazy eights
NOT_YOUR_TURN = "NOT_YOUR_TURN"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
ILLEGAL_PLAY = "ILLEGAL_PLAY"
COLOR_CHOICE_PENDING = "COLOR_CHOICE_PENDING"
NO_COLOR_CHOICE_PENDING = "NO_COLOR_CHOICE_PENDING"
INVALID_COLOR = "INVALID_COLOR"
MUST_PLAY = "MUST_PLAY"

# Over/under
NOT_ANSWERER = "NOT_ANSWERER"
ANSWER_ALREADY_SUBMITTED = "ANSWER_ALREADY_SUBMITTED"
VOTING_CLOSED = "VOTING_CLOSED"
ANSWERER_CANNOT_VOTE = "ANSWERER_CANNOT_VOTE"
ALREADY_VOTED = "ALREADY_VOTED"

INVALID_PAYLOAD = "INVALID_PAYLOAD"

