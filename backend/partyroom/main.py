import time

from flask import Blueprint, jsonify

from partyroom import registry
from partyroom.modes import MODES

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Party room server is running', 'modes': sorted(MODES)})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(registry.list_rooms()), 'time': time.time()})
