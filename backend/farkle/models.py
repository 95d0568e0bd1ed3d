import threading
from typing import List, Optional

# Game phases
WAITING = 'WAITING'
MUST_ROLL = 'MUST_ROLL'
SELECTING = 'SELECTING'
GAME_OVER = 'GAME_OVER'

DICE_COUNT = 6
UNROLLED = 0  # face value shown for a die that hasn't been rolled this turn


class Seat:
    def __init__(self, name: str, connection_id: Optional[str] = None):
        self.name = name
        self.connection_id = connection_id

    @property
    def online(self) -> bool:
        return self.connection_id is not None

    def matches(self, name: str) -> bool:
        return self.name.casefold() == name.casefold()

    def to_dict(self, score: int = 0):
        return {
            'name': self.name,
            'score': score,
            'online': self.online,
        }


class Game:
    """Mutable state of the one game played at a table.

    Scores are indexed by seat. The turn engine never mutates a Game it was
    handed; it works on a :meth:`copy` and the room manager commits it.
    """

    def __init__(self, winning_score: int = 10000):
        self.phase = WAITING
        self.active_seat = 0
        self.dice: List[int] = [UNROLLED] * DICE_COUNT
        self.kept: List[bool] = [False] * DICE_COUNT
        self.turn_points = 0
        self.scores: List[int] = [0, 0]
        self.winner: Optional[int] = None
        self.winning_score = winning_score
        self.log: List[str] = []

    @property
    def in_progress(self) -> bool:
        return self.phase in (MUST_ROLL, SELECTING)

    @property
    def last_action(self) -> str:
        return self.log[-1] if self.log else '—'

    def copy(self) -> 'Game':
        other = Game(self.winning_score)
        other.phase = self.phase
        other.active_seat = self.active_seat
        other.dice = list(self.dice)
        other.kept = list(self.kept)
        other.turn_points = self.turn_points
        other.scores = list(self.scores)
        other.winner = self.winner
        other.log = list(self.log)
        return other

    def record(self, message: str, limit: int = 20) -> None:
        self.log.append(message)
        if limit and len(self.log) > limit:
            del self.log[:-limit]

    def reset_turn(self) -> None:
        self.turn_points = 0
        self.dice = [UNROLLED] * DICE_COUNT
        self.kept = [False] * DICE_COUNT

    def unkept_indices(self) -> List[int]:
        return [i for i, k in enumerate(self.kept) if not k]

    def to_dict(self):
        return {
            'phase': self.phase,
            'active_seat': self.active_seat,
            'dice': list(self.dice),
            'kept': list(self.kept),
            'turn_points': self.turn_points,
            'winner': self.winner,
            'winning_score': self.winning_score,
            'last_action': self.last_action,
            'log': list(self.log),
        }


class Room:
    def __init__(self, code: str, winning_score: int = 10000):
        self.code = code
        self.seats: List[Optional[Seat]] = [None, None]
        self.game = Game(winning_score)
        # Serializes every mutation of this room
        self.lock = threading.Lock()

    @property
    def is_full(self) -> bool:
        return all(s is not None for s in self.seats)

    def seat_names(self):
        return tuple(s.name if s else None for s in self.seats)

    def find_seat(self, name: str) -> Optional[int]:
        for i, seat in enumerate(self.seats):
            if seat is not None and seat.matches(name):
                return i
        return None

    def to_dict(self):
        """Snapshot broadcast to both seats. Connection ids are never included."""
        return {
            'code': self.code,
            'seats': [
                s.to_dict(self.game.scores[i]) if s else None
                for i, s in enumerate(self.seats)
            ],
            'game': self.game.to_dict(),
        }
