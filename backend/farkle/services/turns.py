"""Turn engine: intents and the roll / keep / bank state machine.

``apply_intent`` is a pure transition: it takes the current Game, the seat
sending the intent and the intent itself, and returns a new Game plus the
events to broadcast. A rejected intent raises a :class:`FarkleError` and
leaves the Game it was given untouched.
"""

import random
from typing import Callable, List, NamedTuple, Optional, Sequence

from farkle.errors import (
    IllegalPhaseForIntent,
    InvalidSelection,
    NotYourTurn,
    NothingToBank,
)
from farkle.models import DICE_COUNT, GAME_OVER, MUST_ROLL, SELECTING, UNROLLED, WAITING, Game
from .scoring import has_scoring_option, score_selection, selectable_indices

_sysrand = random.SystemRandom()


def roll_die() -> int:
    return _sysrand.randint(1, 6)


class TurnRules(NamedTuple):
    winning_score: int = 10000
    # While a seat has banked nothing yet, a bank needs at least this many
    # turn points. 0 disables the rule.
    min_entry_score: int = 0
    log_limit: int = 20

    @classmethod
    def from_config(cls, config) -> 'TurnRules':
        return cls(
            winning_score=int(config.get('WINNING_SCORE', 10000)),
            min_entry_score=int(config.get('MIN_ENTRY_SCORE', 0)),
            log_limit=int(config.get('LOG_MAX_ENTRIES', 20)),
        )


class Event(NamedTuple):
    name: str
    payload: dict


class Transition(NamedTuple):
    game: Game
    events: List[Event]


# ---- Intents ----

class Intent:
    event = ''

    def __eq__(self, other):
        return type(self) is type(other) and vars(self) == vars(other)

    def __repr__(self):
        return f'{type(self).__name__}({vars(self)})'


class Roll(Intent):
    event = 'turn:roll'


class Keep(Intent):
    event = 'turn:keep'

    def __init__(self, indices: Sequence[int]):
        self.indices = tuple(indices)


class Bank(Intent):
    event = 'turn:bank'


class NewGame(Intent):
    event = 'game:new'


def parse_intent(event: str, payload: Optional[dict] = None) -> Intent:
    """Build an intent from a wire event name and its payload."""
    if not isinstance(payload, dict):
        if event == Keep.event:
            raise InvalidSelection('Send the kept dice as {"selected_indices": [...]}.')
        payload = {}
    if event == Roll.event:
        return Roll()
    if event == Bank.event:
        return Bank()
    if event == NewGame.event:
        return NewGame()
    if event == Keep.event:
        raw = payload.get('selected_indices')
        if not isinstance(raw, (list, tuple)):
            raise InvalidSelection('selected_indices must be a list of dice indices.')
        # bool is an int subclass but never a die index
        if any(isinstance(i, bool) or not isinstance(i, int) for i in raw):
            raise InvalidSelection('Dice indices must be whole numbers.')
        return Keep(raw)
    raise IllegalPhaseForIntent(f'Unknown action {event!r}.')


# ---- Transitions ----

def start_if_ready(game: Game, names: Sequence[Optional[str]], log_limit: int = 20) -> bool:
    """Move a waiting game into play once both seats are filled. Seat 0 starts."""
    if game.phase != WAITING or not all(names):
        return False
    game.reset_turn()
    game.active_seat = 0
    game.phase = MUST_ROLL
    game.record(f'Both players joined. {names[0]} to roll.', log_limit)
    return True


def _pass_turn(game: Game) -> None:
    game.reset_turn()
    game.active_seat = 1 - game.active_seat
    game.phase = MUST_ROLL


def _notice(kind: str, title: str, body: str, **extra) -> Event:
    return Event('game:notice', dict(kind=kind, title=title, body=body, **extra))


def _roll(game: Game, names, rules: TurnRules, roll: Callable[[], int]) -> Transition:
    if game.phase != MUST_ROLL:
        raise IllegalPhaseForIntent('Keep scoring dice or bank before rolling again.')

    seat = game.active_seat
    name = names[seat]
    rolled = game.unkept_indices()
    for i in rolled:
        game.dice[i] = roll()
    faces = [game.dice[i] for i in rolled]

    if not has_scoring_option(faces):
        lost = game.turn_points
        dice = list(game.dice)
        game.record(f'{name} rolled {", ".join(map(str, faces))}. Farkle! Turn passed.', rules.log_limit)
        _pass_turn(game)
        return Transition(game, [
            _notice(
                'farkle', 'Farkle!',
                f'No scoring dice. {name} loses {lost} turn points.',
                seat=seat, dice=dice, lost=lost,
            ),
        ])

    game.phase = SELECTING
    flags, combo = selectable_indices(faces)
    selectable = [False] * DICE_COUNT
    for i, flag in zip(rolled, flags):
        selectable[i] = flag
    game.record(f'{name} rolled {", ".join(map(str, faces))}.', rules.log_limit)
    return Transition(game, [
        Event('roll:selectable', {'selectable': selectable, 'combo': combo}),
    ])


def _keep(game: Game, indices: Sequence[int], names, rules: TurnRules) -> Transition:
    if game.phase != SELECTING:
        raise IllegalPhaseForIntent('Roll before keeping dice.')
    if not indices:
        raise InvalidSelection('Select scoring dice first.')
    if any(not 0 <= i < DICE_COUNT for i in indices):
        raise InvalidSelection(f'Dice indices must be between 0 and {DICE_COUNT - 1}.')
    if len(set(indices)) != len(indices):
        raise InvalidSelection('The same die was selected twice.')
    if any(game.kept[i] for i in indices):
        raise InvalidSelection('You selected a die that is already kept.')

    scored = score_selection([game.dice[i] for i in indices])
    if not scored.valid:
        raise InvalidSelection(scored.breakdown)

    name = names[game.active_seat]
    for i in indices:
        game.kept[i] = True
    game.turn_points += scored.points
    game.phase = MUST_ROLL

    if all(game.kept):
        # Hot dice: the turn goes on with a fresh set of six
        game.kept = [False] * DICE_COUNT
        game.dice = [UNROLLED] * DICE_COUNT
        game.record(
            f'{name} kept {scored.points} ({scored.breakdown}). HOT DICE! Roll all 6.',
            rules.log_limit,
        )
        return Transition(game, [
            _notice(
                'hot_dice', 'Hot Dice!',
                f'All 6 dice scored. {name} rolls all 6 again with {game.turn_points} turn points.',
                seat=game.active_seat, points=scored.points,
            ),
        ])

    game.record(
        f'{name} kept {scored.points} ({scored.breakdown}). Turn points: {game.turn_points}.',
        rules.log_limit,
    )
    return Transition(game, [])


def _bank(game: Game, names, rules: TurnRules) -> Transition:
    seat = game.active_seat
    if game.turn_points <= 0:
        raise NothingToBank()
    if rules.min_entry_score and game.scores[seat] == 0 and game.turn_points < rules.min_entry_score:
        raise NothingToBank(
            f'You need {rules.min_entry_score} points in one turn to get on the board.'
        )

    name = names[seat]
    banked = game.turn_points
    game.scores[seat] += banked
    game.reset_turn()

    if game.scores[seat] >= game.winning_score:
        game.phase = GAME_OVER
        game.winner = seat
        game.record(f'{name} banked {banked} and wins with {game.scores[seat]}!', rules.log_limit)
        return Transition(game, [
            _notice(
                'game_over', 'Game Over',
                f'{name} wins! Final score: {game.scores[0]} - {game.scores[1]}',
                seat=seat, scores=list(game.scores),
            ),
        ])

    game.active_seat = 1 - seat
    game.phase = MUST_ROLL
    game.record(f'{name} banked {banked}. Turn passed.', rules.log_limit)
    return Transition(game, [
        _notice(
            'banked', 'Banked',
            f'{name} banked {banked} points. Turn passes to the other player.',
            seat=seat, points=banked,
        ),
    ])


def _new_game(names, rules: TurnRules) -> Transition:
    game = Game(rules.winning_score)
    game.record('New game started.', rules.log_limit)
    start_if_ready(game, names, rules.log_limit)
    return Transition(game, [])


def apply_intent(
    game: Game,
    actor: int,
    intent: Intent,
    names: Sequence[Optional[str]],
    rules: TurnRules = TurnRules(),
    roll: Callable[[], int] = roll_die,
) -> Transition:
    """Validate ``intent`` from seat ``actor`` and apply it to a copy of ``game``.

    ``names`` holds the display name of each seat, ``None`` for an empty
    seat. ``roll`` returns one die face; tests pass scripted dice.
    """
    if isinstance(intent, NewGame):
        return _new_game(names, rules)

    if not game.in_progress:
        if game.phase == WAITING:
            raise IllegalPhaseForIntent('Waiting for an opponent to join.')
        raise IllegalPhaseForIntent('The game is over. Start a new game.')
    if actor != game.active_seat:
        raise NotYourTurn()

    game = game.copy()
    if isinstance(intent, Roll):
        return _roll(game, names, rules, roll)
    if isinstance(intent, Keep):
        return _keep(game, intent.indices, names, rules)
    if isinstance(intent, Bank):
        return _bank(game, names, rules)
    raise IllegalPhaseForIntent(f'Unknown action {intent!r}.')
