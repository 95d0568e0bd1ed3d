from collections import Counter
from typing import List, NamedTuple, Optional, Sequence, Tuple

FACES = range(1, 7)
DICE_PER_ROLL = 6


class SelectionScore(NamedTuple):
    valid: bool
    points: int
    breakdown: str


# Whole-roll combinations, checked in order; the first match wins.
def _is_straight(counts: Counter) -> bool:
    return all(counts[f] == 1 for f in FACES)


def _is_three_pairs(counts: Counter) -> bool:
    return sorted(n for n in counts.values() if n) == [2, 2, 2]


def _is_two_triplets(counts: Counter) -> bool:
    return sorted(n for n in counts.values() if n) == [3, 3]


def _is_four_plus_pair(counts: Counter) -> bool:
    return sorted(n for n in counts.values() if n) == [2, 4]


SPECIAL_COMBOS = (
    ('Straight (1-6)', _is_straight, 1500),
    ('Three pairs', _is_three_pairs, 1500),
    ('Two triplets', _is_two_triplets, 2500),
    ('Four of a kind + a pair', _is_four_plus_pair, 1500),
)


def special_combo(counts: Counter) -> Optional[Tuple[str, int]]:
    """Return (name, points) of the whole-roll combination, if any."""
    for name, matches, points in SPECIAL_COMBOS:
        if matches(counts):
            return name, points
    return None


def n_of_a_kind_points(face: int, count: int) -> int:
    """Three of a kind is worth 1000 for ones and face x 100 otherwise.

    Each die past the third doubles it: 4 -> x2, 5 -> x4, 6 -> x8.
    """
    if count < 3:
        return 0
    base = 1000 if face == 1 else face * 100
    return base * 2 ** (count - 3)


def score_selection(faces: Sequence[int], whole_roll: Optional[bool] = None) -> SelectionScore:
    """Score a set of dice a player wants to keep.

    The selection must be made entirely of scoring dice: a single lone 2, 3,
    4 or 6 rejects the whole selection, there is no partial credit.
    ``whole_roll`` says whether the selection uses all six dice at once and
    defaults to ``len(faces) == 6``; only then are the special combinations
    (straight, three pairs, two triplets, four + pair) considered.
    """
    if not faces:
        return SelectionScore(False, 0, 'No dice selected.')
    if any(f not in FACES for f in faces):
        return SelectionScore(False, 0, 'Dice must show 1 to 6.')
    if whole_roll is None:
        whole_roll = len(faces) == DICE_PER_ROLL

    counts = Counter(faces)

    if whole_roll:
        combo = special_combo(counts)
        if combo:
            name, points = combo
            return SelectionScore(True, points, f'{name} = {points}')

    points = 0
    parts: List[str] = []
    for face in FACES:
        n = counts[face]
        if n >= 3:
            p = n_of_a_kind_points(face, n)
            points += p
            parts.append(f'{n}x{face} = {p}')
            counts[face] = 0

    if any(counts[f] for f in (2, 3, 4, 6)):
        return SelectionScore(False, 0, 'Selection contains non-scoring dice.')

    if counts[1]:
        p = counts[1] * 100
        points += p
        parts.append(f'{counts[1]}x1 = {p}')
    if counts[5]:
        p = counts[5] * 50
        points += p
        parts.append(f'{counts[5]}x5 = {p}')

    return SelectionScore(True, points, ' + '.join(parts))


def has_scoring_option(faces: Sequence[int]) -> bool:
    """True if at least one non-empty subset of ``faces`` would score.

    Called after every roll with only the dice that were just rolled.
    """
    counts = Counter(faces)
    if counts[1] or counts[5]:
        return True
    if any(n >= 3 for n in counts.values()):
        return True
    return len(faces) == DICE_PER_ROLL and special_combo(counts) is not None


def selectable_indices(faces: Sequence[int]) -> Tuple[List[bool], Optional[str]]:
    """Mark which of the rolled dice can be part of some scoring keep.

    Used by clients to highlight dice; keeps are still validated with
    :func:`score_selection`. Returns the per-die flags and the name of the
    whole-roll combination when one applies.
    """
    counts = Counter(faces)
    if len(faces) == DICE_PER_ROLL:
        combo = special_combo(counts)
        if combo:
            return [True] * len(faces), combo[0]
    flags = [f in (1, 5) or counts[f] >= 3 for f in faces]
    return flags, None
