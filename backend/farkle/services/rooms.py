"""Room/Seat manager.

Owns the live rooms keyed by code, the two seats of each room and the
session map ``{connection_id -> (room code, seat index)}``. Every intent
enters through :meth:`RoomManager.dispatch`, which resolves the caller's seat
and applies the turn engine under the room's lock.
"""

import logging
import random
import threading
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from farkle.errors import NameCollision, RoomFull, RoomNotFound
from farkle.models import Room, Seat
from .turns import Event, Intent, TurnRules, apply_intent, roll_die, start_if_ready

logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes can be read aloud and typed
CODE_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'


def generate_room_code(length: int = 5, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return ''.join(rng.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(code) -> str:
    return code.strip().upper() if isinstance(code, str) else ''


class Session(NamedTuple):
    code: str
    seat: int


class Dispatch(NamedTuple):
    room: Room
    seat: int
    events: List[Event]


class RoomManager:
    def __init__(
        self,
        rules: TurnRules = TurnRules(),
        code_length: int = 5,
        name_max_length: int = 20,
        default_name: str = 'Captain',
        roll: Callable[[], int] = roll_die,
        code_factory: Optional[Callable[[int], str]] = None,
    ) -> None:
        self.rules = rules
        self.code_length = code_length
        self.name_max_length = name_max_length
        self.default_name = default_name
        self.roll = roll
        self._code_factory = code_factory or generate_room_code
        self._rooms: Dict[str, Room] = {}
        self._sessions: Dict[str, Session] = {}  # connection_id -> Session
        self._lock = threading.Lock()  # guards _rooms and _sessions

    @classmethod
    def from_config(cls, config) -> 'RoomManager':
        return cls(
            rules=TurnRules.from_config(config),
            code_length=int(config.get('ROOM_CODE_LENGTH', 5)),
            name_max_length=int(config.get('NAME_MAX_LENGTH', 20)),
            default_name=config.get('DEFAULT_PLAYER_NAME', 'Captain'),
        )

    # ---- lookups ----

    @property
    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def get_room(self, code) -> Room:
        room = self._rooms.get(normalize_code(code))
        if room is None:
            raise RoomNotFound()
        return room

    def session_for(self, connection_id: str) -> Optional[Session]:
        return self._sessions.get(connection_id)

    def clean_name(self, name) -> str:
        if not isinstance(name, str):
            name = ''
        return name.strip()[:self.name_max_length].strip() or self.default_name

    # ---- seat binding ----

    def create_room(self, display_name, connection_id: str) -> Tuple[Room, int]:
        name = self.clean_name(display_name)
        self._release(connection_id)
        with self._lock:
            code = self._code_factory(self.code_length)
            while code in self._rooms:
                code = self._code_factory(self.code_length)
            room = Room(code, self.rules.winning_score)
            room.seats[0] = Seat(name, connection_id)
            room.game.record(f'{name} created the table. Waiting for an opponent…', self.rules.log_limit)
            self._rooms[code] = room
            self._sessions[connection_id] = Session(code, 0)
        logger.info(f"[create] room={code} seat=0 name={name!r}")
        return room, 0

    def join_room(self, code, display_name, connection_id: str) -> Tuple[Room, int]:
        """Take a seat at ``code``.

        A returning player (same name, seat offline) gets their old seat
        back. A name that is online at the table is refused; so is a third
        distinct name.
        """
        return self._bind(code, display_name, connection_id, allow_new_seat=True)

    def reconnect(self, code, display_name, connection_id: str) -> Tuple[Room, int]:
        return self._bind(code, display_name, connection_id, allow_new_seat=False)

    def _bind(self, code, display_name, connection_id: str, allow_new_seat: bool) -> Tuple[Room, int]:
        room = self.get_room(code)
        name = self.clean_name(display_name)
        current = self.session_for(connection_id)

        with room.lock:
            if current and current.code == room.code:
                seat = room.seats[current.seat]
                if seat is not None and seat.matches(name):
                    return room, current.seat

            index = room.find_seat(name)
            if index is not None:
                seat = room.seats[index]
                if seat.online:
                    raise NameCollision()
                seat.connection_id = connection_id
                message = f'{seat.name} rejoined.'
            elif not allow_new_seat:
                raise RoomNotFound(f'No seat is reserved for {name} at table {room.code}.')
            elif room.is_full:
                raise RoomFull()
            else:
                index = room.seats.index(None)
                room.seats[index] = Seat(name, connection_id)
                message = f'{name} joined the table.'
            room.game.record(message, self.rules.log_limit)
            start_if_ready(room.game, room.seat_names(), self.rules.log_limit)
            with self._lock:
                self._sessions[connection_id] = Session(room.code, index)
        # A connection holds one seat at a time
        if current:
            self._mark_offline(current, connection_id)
        logger.info(f"[join] room={room.code} seat={index} name={name!r}")
        return room, index

    def disconnect(self, connection_id: str) -> List[Room]:
        """Mark the caller's seat offline. Name, score and game are kept."""
        room = self._release(connection_id)
        return [room] if room else []

    def _release(self, connection_id: str) -> Optional[Room]:
        with self._lock:
            session = self._sessions.pop(connection_id, None)
        if session is None:
            return None
        return self._mark_offline(session, connection_id)

    def _mark_offline(self, session: Session, connection_id: str) -> Optional[Room]:
        room = self._rooms.get(session.code)
        if room is None:
            return None
        with room.lock:
            seat = room.seats[session.seat]
            if seat is None or seat.connection_id != connection_id:
                return None
            seat.connection_id = None
            room.game.record(f'{seat.name} disconnected.', self.rules.log_limit)
        logger.info(f"[offline] room={room.code} seat={session.seat} name={seat.name!r}")
        return room

    # ---- intents ----

    def dispatch(self, connection_id: str, intent: Intent) -> Dispatch:
        """Apply ``intent`` for the seat bound to ``connection_id``.

        Raises a FarkleError without touching the room when the intent is
        rejected.
        """
        session = self.session_for(connection_id)
        if session is None:
            raise RoomNotFound('Join a table first.')
        room = self.get_room(session.code)
        with room.lock:
            seat = room.seats[session.seat]
            if seat is None or seat.connection_id != connection_id:
                raise RoomNotFound('Join a table first.')
            transition = apply_intent(
                room.game, session.seat, intent, room.seat_names(),
                rules=self.rules, roll=self.roll,
            )
            room.game = transition.game
        logger.info(f"[{intent.event}] room={room.code} seat={session.seat} phase={room.game.phase}")
        return Dispatch(room, session.seat, transition.events)

    def remove_room(self, code) -> Optional[Room]:
        """Forget a room and every session bound to it."""
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.pop(code, None)
            for cid in [c for c, s in self._sessions.items() if s.code == code]:
                del self._sessions[cid]
        return room

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
