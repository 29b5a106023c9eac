import logging
from typing import Any, Dict, List, Optional

from flask import request
from flask_socketio import emit, join_room

from partyroom import registry, socketio
from partyroom.errors import GameError
from partyroom.events import (
    AnimationCompleteEvent, ChooseColorEvent, CreateRoomEvent, DrawCardEvent,
    FirstCardFlipCompleteEvent, HostJoinRoomEvent, JoinRoomEvent, PlayCardEvent, RequestNewRoomEvent,
    RestartGameEvent, RoomStatusEvent, StartGameEvent, SubmitAnswerEvent, SubmitVoteEvent,
    WinnerAnimationCompleteEvent, parse_event,
)
from partyroom.projection import project_private, project_public
from partyroom.registry import RegistryListener

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'


def _channel(code: str) -> str:
    return f"room:{code}"


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


class SocketBroadcaster(RegistryListener):
    """Fans registry events out to the room's sockets.

    Events go to the whole room channel; state goes out per recipient so the
    display only ever sees the public view and each phone its own hand.
    """

    def _emit(self, event: str, data: Dict[str, Any], to: str) -> None:
        socketio.emit(event, data, to=to, namespace=NAMESPACE)

    def push_state(self, room) -> None:
        self._emit('game_state_updated', project_public(room), room.host_id)
        for p in room.roster.connected():
            self._emit('game_state_updated', project_private(room, p.id), p.id)

    def on_action_applied(self, room, result) -> None:
        payload = dict(result.data)
        payload['roomCode'] = room.code
        payload['gameState'] = project_public(room)
        self._emit(result.event, payload, _channel(room.code))
        self.push_state(room)

    def on_winner_detected(self, room, winner, standings) -> None:
        # Only the display plays the winner sequence
        self._emit('winner_detected', {
            'roomCode': room.code,
            'winner': winner.name if winner else None,
            'winnerColor': winner.color if winner else None,
            'winningEight': getattr(room.mode, 'winning_eight', False),
            'standings': standings,
        }, room.host_id)

    def on_lock_released(self, room, reason, expired) -> None:
        if expired:
            logger.warning(f"[lock-expired] room={room.code} reason={reason} display never confirmed")
        self.push_state(room)

    def on_game_over(self, room, winner, standings) -> None:
        self._emit('game_over', {
            'roomCode': room.code,
            'winner': winner.name if winner else None,
            'finalScores': standings,
            'gameState': project_public(room),
        }, _channel(room.code))
        self.push_state(room)

    def on_player_left(self, room, player) -> None:
        self._emit('player_left', {
            'roomCode': room.code,
            'playerName': player.name,
            'playerColor': player.color,
            'players': room.roster.summary(),
        }, _channel(room.code))
        self.push_state(room)

    def on_room_closed(self, code: str, reason: str, member_ids: List[str]) -> None:
        self._emit('room_closed', {'roomCode': code, 'reason': reason}, _channel(code))
        socketio.close_room(_channel(code), namespace=NAMESPACE)


broadcaster = SocketBroadcaster()


def _reject(exc: GameError) -> Dict[str, Any]:
    logger.info(f"[rejected] sid={_get_sid()} code={exc.code} message={exc.message}")
    emit('room_error', exc.to_dict())
    return exc.to_dict()


def _push_state(code: str) -> None:
    with registry.locked(code) as room:
        broadcaster.push_state(room)


def _private_state(code: str, player_id: str) -> Dict[str, Any]:
    with registry.locked(code) as room:
        return project_private(room, player_id)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws', 'sid': _get_sid()})


def handle_disconnect(reason=None):
    result = registry.handle_disconnect(_get_sid())
    if result is not None:
        logger.info(f"[disconnect] sid={_get_sid()} room={result.code} closed={result.room_closed}")


# ---- display ----

def handle_create_room(data=None):
    try:
        event = parse_event(CreateRoomEvent, data)
        code = registry.create_room(_get_sid(), event.mode)
        state = registry.public_view(code)
    except GameError as e:
        return _reject(e)
    join_room(_channel(code))
    payload = {'success': True, 'roomCode': code, 'gameState': state}
    emit('room_created', payload)
    return payload


def handle_host_join_room(data=None):
    try:
        event = parse_event(HostJoinRoomEvent, data)
        room = registry.claim_host(event.code, _get_sid(), event.host_id)
        state = registry.public_view(room.code)
    except GameError as e:
        return _reject(e)
    join_room(_channel(room.code))
    payload = {'success': True, 'roomCode': room.code, 'gameState': state}
    emit('room_created', payload)
    return payload


def handle_animation_complete(data=None):
    try:
        event = parse_event(AnimationCompleteEvent, data)
        released = registry.animation_complete(_get_sid(), event.code)
    except GameError as e:
        return _reject(e)
    return {'success': True, 'released': released}


def handle_first_card_flip_complete(data=None):
    try:
        event = parse_event(FirstCardFlipCompleteEvent, data)
        released = registry.first_card_flip_complete(_get_sid(), event.code)
    except GameError as e:
        return _reject(e)
    return {'success': True, 'released': released}


def handle_winner_animation_complete(data=None):
    try:
        event = parse_event(WinnerAnimationCompleteEvent, data)
        state = registry.winner_animation_complete(_get_sid(), event.code, event.winner)
    except GameError as e:
        return _reject(e)
    return {'success': True, 'gameState': state}


def handle_request_new_room(data=None):
    try:
        event = parse_event(RequestNewRoomEvent, data)
        room = registry.get_room(event.code)
        host_id = room.host_id if room else None
        new_code = registry.request_new_room(event.code, _get_sid())
        state = registry.public_view(new_code)
    except GameError as e:
        return _reject(e)
    payload = {
        'success': True, 'oldRoomCode': event.code, 'newCode': new_code, 'roomCode': new_code, 'gameState': state,
    }
    # The display may not be the requester; move it to the new channel either way
    socketio.server.enter_room(host_id, _channel(new_code), namespace=NAMESPACE)
    socketio.emit('new_room_created', payload, to=host_id, namespace=NAMESPACE)
    return payload


# ---- players ----

def handle_join_room(data=None):
    try:
        event = parse_event(JoinRoomEvent, data)
        result = registry.join_room(event.code, _get_sid(), event.name)
    except GameError as e:
        return _reject(e)
    join_room(_channel(event.code))
    payload = {
        'success': True,
        'roomCode': event.code,
        'player': result.player.to_dict(),
        'reconnected': result.reconnected,
        'players': result.snapshot['players'],
    }
    emit('player_joined', payload, to=_channel(event.code))
    _push_state(event.code)
    return dict(payload, gameState=_private_state(event.code, _get_sid()))


def handle_start_game(data=None):
    try:
        event = parse_event(StartGameEvent, data)
        result = registry.start_game(event.code, _get_sid(), event.mode)
    except GameError as e:
        return _reject(e)
    return {'success': True, 'event': result.event}


def handle_restart_game(data=None):
    try:
        event = parse_event(RestartGameEvent, data)
        result = registry.restart_game(event.code, _get_sid())
    except GameError as e:
        return _reject(e)
    return {'success': True, 'event': result.event}


def _apply(model, data) -> Dict[str, Any]:
    try:
        event = parse_event(model, data)
        result = registry.apply_action(event.code, _get_sid(), event)
    except GameError as e:
        return _reject(e)
    return {'success': True, 'event': result.event}


def handle_play_card(data=None):
    return _apply(PlayCardEvent, data)


def handle_draw_card(data=None):
    return _apply(DrawCardEvent, data)


def handle_choose_color(data=None):
    return _apply(ChooseColorEvent, data)


def handle_submit_answer(data=None):
    return _apply(SubmitAnswerEvent, data)


def handle_submit_vote(data=None):
    return _apply(SubmitVoteEvent, data)


def handle_get_room_status(data=None):
    try:
        event = parse_event(RoomStatusEvent, data)
        room = registry.get_room(event.code)
        if room is not None and room.roster.get(_get_sid()) is not None:
            state = _private_state(event.code, _get_sid())
        else:
            state = registry.public_view(event.code)
    except GameError as e:
        return _reject(e)
    emit('game_state_updated', state)
    return {'success': True, 'gameState': state}


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'create_room': handle_create_room,
    'host_join_room': handle_host_join_room,
    'join_room': handle_join_room,
    'start_game': handle_start_game,
    'play_card': handle_play_card,
    'draw_card': handle_draw_card,
    'choose_color': handle_choose_color,
    'animation_complete': handle_animation_complete,
    'first_card_flip_complete': handle_first_card_flip_complete,
    'winner_animation_complete': handle_winner_animation_complete,
    'restart_game': handle_restart_game,
    'request_new_room': handle_request_new_room,
    'submit_answer': handle_submit_answer,
    'submit_vote': handle_submit_vote,
    'get_room_status': handle_get_room_status,
}


def register_socketio_handlers(testing: bool = False, namespaces: Optional[List[str]] = None) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = namespaces or ([NAMESPACE, '/'] if testing else [NAMESPACE])
    for namespace in namespaces:
        for name, handler in HANDLERS.items():
            socketio.on_event(name, handler, namespace=namespace)
