import uuid

from flask import Blueprint, current_app, jsonify, request

from partyroom import registry
from partyroom.errors import GameError, ROOM_NOT_FOUND
from partyroom.events import CreateRoomRequest, parse_event

rooms = Blueprint('rooms', __name__)


def _error(exc: GameError, status: int = 400):
    if exc.code == ROOM_NOT_FOUND:
        status = 404
    return jsonify(exc.to_dict()), status


@rooms.route('', methods=['POST'])
def create_room():
    """Open a room for a display that will claim it over Socket.IO."""
    try:
        body = parse_event(CreateRoomRequest, request.get_json(silent=True))
        host_id = body.host_id or uuid.uuid4().hex
        code = registry.create_room(host_id, body.mode)
    except GameError as e:
        return _error(e)
    current_app.logger.info(f"[rest-create] room={code} host={host_id}")
    return jsonify({
        'success': True,
        'roomCode': code,
        'hostId': host_id,
        'room': registry.public_view(code),
    }), 201


@rooms.route('', methods=['GET'])
def list_rooms():
    return jsonify({'rooms': registry.list_rooms()})


@rooms.route('/<code>', methods=['GET'])
def get_room(code):
    try:
        view = registry.public_view(code)
    except GameError as e:
        return _error(e)
    return jsonify({'success': True, 'room': view})
