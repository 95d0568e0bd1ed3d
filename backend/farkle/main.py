from flask import Blueprint, jsonify
from farkle import get_room_manager
from farkle.errors import RoomNotFound

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Farkle table server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'game': 'farkle', 'rooms': len(get_room_manager())})

@main.route('/api/rooms/<string:code>', methods=['GET'])
def get_room_state(code):
    """
    Returns the same snapshot the table broadcasts over Socket.IO.
    """
    try:
        room = get_room_manager().get_room(code)
    except RoomNotFound as exc:
        return jsonify({'error': exc.message}), 404
    with room.lock:
        return jsonify(room.to_dict()), 200
