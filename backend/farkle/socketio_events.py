from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from farkle import get_room_manager
from farkle.errors import FarkleError, RoomNotFound
from farkle.services.turns import parse_intent


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _snapshot(room):
    with room.lock:
        return room.to_dict()


def _broadcast(room) -> None:
    emit('room:update', _snapshot(room), to=room.code)


def _reject(event: str, exc: FarkleError) -> None:
    """Tell only the caller; the room is not rebroadcast."""
    current_app.logger.info(f"[reject] sid={_get_sid()} event={event} kind={exc.kind} message={exc.message!r}")
    emit('error', exc.to_dict())


def _display_name(data) -> str:
    return data.get('display_name') or data.get('name') or ''


def _seated(room, seat: int, previous) -> None:
    """Subscribe the caller to its table and announce the new seating."""
    if previous and previous.code != room.code:
        leave_room(previous.code)
        try:
            _broadcast(get_room_manager().get_room(previous.code))
        except RoomNotFound:
            pass
    join_room(room.code)
    emit('room:joined', {'code': room.code, 'seat_index': seat, 'name': room.seats[seat].name})
    _broadcast(room)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to the Farkle table server'})


def handle_disconnect(reason=None):
    # The seat stays reserved; the player can come back under the same name
    for room in get_room_manager().disconnect(_get_sid()):
        current_app.logger.info(f"[disconnect] sid={_get_sid()} room={room.code}")
        _broadcast(room)


def handle_create_room(data=None):
    data = data if isinstance(data, dict) else {}
    manager = get_room_manager()
    previous = manager.session_for(_get_sid())
    room, seat = manager.create_room(_display_name(data), _get_sid())
    current_app.logger.info(f"[room:create] sid={_get_sid()} room={room.code}")
    _seated(room, seat, previous)


def _bind_seat(event: str, data, reconnect: bool) -> None:
    data = data if isinstance(data, dict) else {}
    manager = get_room_manager()
    previous = manager.session_for(_get_sid())
    bind = manager.reconnect if reconnect else manager.join_room
    try:
        room, seat = bind(data.get('code'), _display_name(data), _get_sid())
    except FarkleError as exc:
        _reject(event, exc)
        return
    current_app.logger.info(f"[{event}] sid={_get_sid()} room={room.code} seat={seat}")
    _seated(room, seat, previous)


def handle_join_room(data=None):
    _bind_seat('room:join', data, reconnect=False)


def handle_reconnect(data=None):
    _bind_seat('room:reconnect', data, reconnect=True)


def handle_sync(data=None):
    manager = get_room_manager()
    session = manager.session_for(_get_sid())
    if session is None:
        _reject('room:sync', RoomNotFound('Join a table first.'))
        return
    room = manager.get_room(session.code)
    join_room(room.code)
    emit('room:update', _snapshot(room))


def _dispatch(event: str, data) -> None:
    try:
        intent = parse_intent(event, data)
        result = get_room_manager().dispatch(_get_sid(), intent)
    except FarkleError as exc:
        _reject(event, exc)
        return
    room = result.room
    _broadcast(room)
    for out in result.events:
        emit(out.name, dict(out.payload, code=room.code), to=room.code)


def handle_roll(data=None):
    _dispatch('turn:roll', data)


def handle_keep(data=None):
    _dispatch('turn:keep', data)


def handle_bank(data=None):
    _dispatch('turn:bank', data)


def handle_new_game(data=None):
    _dispatch('game:new', data)


HANDLERS = (
    ('connect', handle_connect),
    ('disconnect', handle_disconnect),
    ('room:create', handle_create_room),
    ('room:join', handle_join_room),
    ('room:reconnect', handle_reconnect),
    ('room:sync', handle_sync),
    ('turn:roll', handle_roll),
    ('turn:keep', handle_keep),
    ('turn:bank', handle_bank),
    ('game:new', handle_new_game),
)


def register_socketio_handlers(namespace: str = '/ws', testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on ``namespace``. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from farkle import socketio

    for event, handler in HANDLERS:
        socketio.on_event(event, handler, namespace=namespace)

    if testing and namespace != '/':
        for event, handler in HANDLERS:
            socketio.on_event(event, handler, namespace='/')
