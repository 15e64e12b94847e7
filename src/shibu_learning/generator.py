"""Procedural question and puzzle generation.

Every generator is a pure function of ``(level, tier, rng, vocabulary)``. Passing
a seeded :class:`random.Random` (or a ``seed``) to :func:`generate` makes the
produced :class:`ActivityInstance` reproducible.
"""

from __future__ import annotations

import logging
import operator
import random
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .catalog import Vocabulary
from .schemas import ActivityInstance, ActivityType, DifficultyTier, Grid


logger = logging.getLogger(__name__)

BLANK_CELL = "⚪"
ART_PALETTE = ("🔴", "🔵", "🟢", "🟡", "🟠", "🟣", "⚫", "⚪")
PATTERN_SHAPES = ("🔴", "🔵", "🟢", "🟡")
PATTERN_FILLERS = ("🟠", "🟣")
COLOR_PALETTE = (
    ("#FF0000", "Red"),
    ("#00FF00", "Green"),
    ("#0000FF", "Blue"),
    ("#FFFF00", "Yellow"),
    ("#FF00FF", "Pink"),
    ("#00FFFF", "Cyan"),
    ("#FFA500", "Orange"),
    ("#800080", "Purple"),
    ("#FFC0CB", "Light Pink"),
    ("#90EE90", "Light Green"),
    ("#87CEEB", "Sky Blue"),
    ("#F0E68C", "Khaki"),
)
SHAPES = ("circle", "square", "triangle", "star", "heart", "diamond")
SHAPE_COLORS = ("#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7", "#DDA0DD")
MEMORY_EMOJIS = ("🐶", "🐱", "🐸", "🦋", "🌟", "🎈", "🍎", "🌈", "🚗", "⚽", "🎨", "🎵")
COUNT_EMOJIS = ("🍎", "🌟", "🎈", "🐶", "🚗", "🎾", "🍌", "🦋", "🌸", "🎁")

MAX_MEMORY_PAIRS = 8
MAX_SHAPES = len(SHAPES)

ARITHMETIC_OPERATORS: Dict[DifficultyTier, Tuple[str, ...]] = {
    DifficultyTier.EASY: ("+", "-"),
    DifficultyTier.MEDIUM: ("+", "-", "×"),
    DifficultyTier.HARD: ("+", "-", "×", "÷"),
}
_APPLY: Dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "×": operator.mul,
    "÷": operator.floordiv,
}
ART_GRID_SIZES = {
    DifficultyTier.EASY: 4,
    DifficultyTier.MEDIUM: 5,
    DifficultyTier.HARD: 6,
}


@lru_cache(maxsize=1)
def bundled_vocabulary() -> Vocabulary:
    return Vocabulary.bundled()


def _options(answer: Any, distractors: Sequence[Any], rng: random.Random) -> Tuple[Any, ...]:
    """Answer first, then unique distractors, shuffled together."""

    options: List[Any] = [answer]
    for candidate in distractors:
        if candidate not in options:
            options.append(candidate)
    rng.shuffle(options)
    return tuple(options)


# arithmetic -----------------------------------------------------------


def _arithmetic(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    if tier is DifficultyTier.EASY:
        left, right = rng.randint(1, 10), rng.randint(1, 10)
        symbol = "+" if rng.random() < 0.7 else "-"
    elif tier is DifficultyTier.MEDIUM:
        left, right = rng.randint(1, 20), rng.randint(1, 10)
        symbol = rng.choice(ARITHMETIC_OPERATORS[tier])
    else:
        left, right = rng.randint(1, 50), rng.randint(1, 12)
        symbol = rng.choice(ARITHMETIC_OPERATORS[tier])

    if symbol == "-" and right > left:
        left, right = right, left
    if symbol == "÷":
        # build the dividend from the quotient so the result is exact
        quotient = rng.randint(1, 12)
        left = quotient * right

    answer = _APPLY[symbol](left, right)
    return ActivityInstance(
        activity_type=ActivityType.ARITHMETIC,
        level=level,
        tier=tier,
        prompt=f"{left} {symbol} {right} = ?",
        payload={"left": left, "right": right, "operator": symbol},
        answer=answer,
    )


# words ----------------------------------------------------------------


def scramble(word: str, rng: random.Random) -> str:
    """Shuffle letters until the result differs from ``word``."""

    if len(set(word)) < 2:
        raise ValueError(f"Word {word!r} cannot be scrambled")
    letters = list(word)
    while True:
        rng.shuffle(letters)
        scrambled = "".join(letters)
        if scrambled != word:
            return scrambled


def _word_unscramble(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    entries = vocabulary.for_tier(tier)
    if not entries:
        raise ValueError(f"No vocabulary for tier {tier.value}")
    entry = rng.choice(entries)
    scrambled = scramble(entry.word, rng)
    return ActivityInstance(
        activity_type=ActivityType.WORD_UNSCRAMBLE,
        level=level,
        tier=tier,
        prompt=f"Unscramble: {scrambled.upper()}",
        payload={"scrambled": scrambled, "hint": entry.hint},
        answer=entry.word,
    )


# patterns -------------------------------------------------------------


def _cycle(symbols: Sequence[str], length: int) -> Tuple[List[str], str]:
    sequence = [symbols[i % len(symbols)] for i in range(length)]
    return sequence, symbols[length % len(symbols)]


def _pattern_shape_cycle(rng: random.Random) -> Tuple[List[str], str, Tuple[str, ...]]:
    sequence, answer = _cycle(("🔺", "🔸"), 4)
    return sequence, answer, ("🔸", "🔴", "🔵")


def _pattern_letter_cycle(rng: random.Random) -> Tuple[List[str], str, Tuple[str, ...]]:
    sequence, answer = _cycle(("A", "B", "C"), 4)
    return sequence, answer, ("C", "A", "D")


def _pattern_squares(rng: random.Random) -> Tuple[List[str], str, Tuple[str, ...]]:
    sequence = [str(n * n) for n in range(1, 5)]
    answer = 5 * 5
    return sequence, str(answer), (str(answer - 5), str(answer - 1), str(6 * 6))


HARD_PATTERNS = (_pattern_shape_cycle, _pattern_letter_cycle, _pattern_squares)


def _pattern_sequence(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    if tier is DifficultyTier.EASY:
        symbols = PATTERN_SHAPES[:2]
        sequence, answer = _cycle(symbols, 4)
        distractors: Sequence[str] = (*symbols, *PATTERN_FILLERS)
        rule = "alternating"
    elif tier is DifficultyTier.MEDIUM:
        start, step = rng.randint(1, 5), rng.randint(1, 3)
        sequence = [str(start + i * step) for i in range(4)]
        answer = str(start + 4 * step)
        distractors = tuple(str(start + n * step) for n in (3, 5, 6))
        rule = "arithmetic"
    else:
        builder = rng.choice(HARD_PATTERNS)
        sequence, answer, distractors = builder(rng)
        rule = builder.__name__.removeprefix("_pattern_")

    return ActivityInstance(
        activity_type=ActivityType.PATTERN_SEQUENCE,
        level=level,
        tier=tier,
        prompt="What comes next? " + " ".join(sequence) + " ?",
        payload={"sequence": tuple(sequence), "rule": rule},
        answer=answer,
        options=_options(answer, distractors, rng),
    )


# colors ---------------------------------------------------------------


def _color_match(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    available = COLOR_PALETTE[: min(4 + level * 2, len(COLOR_PALETTE))]
    target_hex, target_name = rng.choice(available)
    wrong = rng.sample([color for color in available if color[1] != target_name], 3)
    swatches = {name: hex_code for hex_code, name in [(target_hex, target_name), *wrong]}
    return ActivityInstance(
        activity_type=ActivityType.COLOR_MATCH,
        level=level,
        tier=tier,
        prompt="Which color is this?",
        payload={"target_hex": target_hex, "swatches": swatches},
        answer=target_name,
        options=_options(target_name, [name for _, name in wrong], rng),
    )


# manipulation activities ----------------------------------------------


def _shape_match(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    count = min(3 + level, MAX_SHAPES)
    pieces = [
        {"id": f"shape-{index}", "shape": shape, "color": SHAPE_COLORS[index % len(SHAPE_COLORS)]}
        for index, shape in enumerate(SHAPES[:count])
    ]
    slots = [{"id": f"slot-{index}", "shape": shape} for index, shape in enumerate(SHAPES[:count])]
    rng.shuffle(pieces)
    rng.shuffle(slots)
    slot_by_shape = {slot["shape"]: slot["id"] for slot in slots}
    answer = tuple(sorted((piece["id"], slot_by_shape[piece["shape"]]) for piece in pieces))
    return ActivityInstance(
        activity_type=ActivityType.SHAPE_MATCH,
        level=level,
        tier=tier,
        prompt="Drag each shape into its matching slot!",
        payload={"pieces": tuple(pieces), "slots": tuple(slots), "count": count},
        answer=answer,
    )


def _memory_match(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    pairs = min(4 + level, MAX_MEMORY_PAIRS)
    deck = list(MEMORY_EMOJIS[:pairs]) * 2
    rng.shuffle(deck)
    positions: Dict[str, List[int]] = {}
    for index, card in enumerate(deck):
        positions.setdefault(card, []).append(index)
    answer = tuple(sorted(tuple(found) for found in positions.values()))
    return ActivityInstance(
        activity_type=ActivityType.MEMORY_MATCH,
        level=level,
        tier=tier,
        prompt="Find all the matching pairs!",
        payload={"cards": tuple(deck), "pairs": pairs},
        answer=answer,
    )


def blank_grid(size: int) -> Grid:
    return tuple(tuple(BLANK_CELL for _ in range(size)) for _ in range(size))


def _layout_cross(size: int) -> Grid:
    center = size // 2
    return tuple(
        tuple("🔴" if row == center or col == center else BLANK_CELL for col in range(size))
        for row in range(size)
    )


def _layout_checkerboard(size: int) -> Grid:
    return tuple(
        tuple("🔵" if (row + col) % 2 == 0 else BLANK_CELL for col in range(size))
        for row in range(size)
    )


def _layout_border(size: int) -> Grid:
    edge = size - 1
    return tuple(
        tuple("🟢" if row in (0, edge) or col in (0, edge) else BLANK_CELL for col in range(size))
        for row in range(size)
    )


ART_LAYOUTS = {
    DifficultyTier.EASY: ("cross", _layout_cross),
    DifficultyTier.MEDIUM: ("checkerboard", _layout_checkerboard),
    DifficultyTier.HARD: ("border", _layout_border),
}


def _art_recreate(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    size = ART_GRID_SIZES[tier]
    layout, build = ART_LAYOUTS[tier]
    return ActivityInstance(
        activity_type=ActivityType.ART_RECREATE,
        level=level,
        tier=tier,
        prompt="Copy the picture onto your canvas!",
        payload={"canvas": blank_grid(size), "palette": ART_PALETTE, "size": size, "layout": layout},
        answer=build(size),
    )


# counting -------------------------------------------------------------


def _count_learn(level: int, tier: DifficultyTier, rng: random.Random, vocabulary: Vocabulary) -> ActivityInstance:
    if tier is DifficultyTier.EASY:
        kind = "count"
        low, high = 1, 10
    elif tier is DifficultyTier.MEDIUM:
        kind = "count" if rng.random() < 0.7 else "add"
        low, high = (5, 15) if kind == "count" else (1, 10)
    else:
        roll = rng.random()
        if roll < 0.4:
            kind, low, high = "count", 10, 20
        elif roll < 0.7:
            kind, low, high = "add", 1, 15
        else:
            kind, low, high = "subtract", 5, 15

    emoji = rng.choice(COUNT_EMOJIS)
    if kind == "count":
        count = rng.randint(low, high)
        objects: Tuple[str, ...] = (emoji,) * count
        answer = count
        prompt = f"How many {emoji} do you see?"
    elif kind == "add":
        first, second = rng.randint(low, high), rng.randint(low, high)
        other = rng.choice(COUNT_EMOJIS)
        objects = (emoji,) * first + ("➕",) + (other,) * second
        answer = first + second
        prompt = "How many objects are there altogether?"
    else:
        total = rng.randint(low, high) + 5
        removed = rng.randint(low, min(total, high))
        objects = (emoji,) * total + ("➖",) + ("❌",) * removed
        answer = total - removed
        prompt = f"How many {emoji} are left?"

    return ActivityInstance(
        activity_type=ActivityType.COUNT_LEARN,
        level=level,
        tier=tier,
        prompt=prompt,
        payload={"kind": kind, "objects": objects},
        answer=answer,
    )


Generator = Callable[[int, DifficultyTier, random.Random, Vocabulary], ActivityInstance]

_GENERATORS: Dict[ActivityType, Generator] = {
    ActivityType.ARITHMETIC: _arithmetic,
    ActivityType.WORD_UNSCRAMBLE: _word_unscramble,
    ActivityType.PATTERN_SEQUENCE: _pattern_sequence,
    ActivityType.COLOR_MATCH: _color_match,
    ActivityType.SHAPE_MATCH: _shape_match,
    ActivityType.MEMORY_MATCH: _memory_match,
    ActivityType.ART_RECREATE: _art_recreate,
    ActivityType.COUNT_LEARN: _count_learn,
}

_missing = set(ActivityType) - set(_GENERATORS)
if _missing:
    raise RuntimeError(f"No generator registered for {sorted(t.value for t in _missing)}")


def generate(
    activity_type: ActivityType | str,
    level: int,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
    vocabulary: Optional[Vocabulary] = None,
) -> Optional[ActivityInstance]:
    """Produce one activity instance for ``activity_type`` at ``level``.

    Unknown activity tags produce no instance and return ``None``.
    """

    try:
        activity_type = ActivityType(activity_type)
    except ValueError:
        logger.warning("No generator for activity %r", activity_type)
        return None
    level = max(1, int(level))
    if rng is None:
        rng = random.Random(seed)
    tier = DifficultyTier.for_level(level)
    instance = _GENERATORS[activity_type](level, tier, rng, vocabulary or bundled_vocabulary())
    logger.debug("Generated %s level %d: %s", activity_type.value, level, instance.prompt)
    return instance


__all__ = [
    "generate",
    "scramble",
    "blank_grid",
    "bundled_vocabulary",
    "ART_PALETTE",
    "BLANK_CELL",
    "COLOR_PALETTE",
    "MAX_MEMORY_PAIRS",
]
