"""Answer checking and star ratings for a level attempt."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import SessionCompleteError, SessionIncompleteError
from .schemas import ActivityInstance, ActivityType, Grid, SessionState


QUESTION_COUNTS: Dict[ActivityType, int] = {
    ActivityType.ARITHMETIC: 5,
    ActivityType.WORD_UNSCRAMBLE: 5,
    ActivityType.PATTERN_SEQUENCE: 5,
    ActivityType.COLOR_MATCH: 8,
    ActivityType.COUNT_LEARN: 6,
}

# (minimum correct for 3 stars, minimum correct for 2 stars)
CORRECT_THRESHOLDS: Dict[ActivityType, Tuple[int, int]] = {
    ActivityType.ARITHMETIC: (4, 3),
    ActivityType.WORD_UNSCRAMBLE: (4, 3),
    ActivityType.PATTERN_SEQUENCE: (4, 3),
    ActivityType.COLOR_MATCH: (7, 5),
    ActivityType.COUNT_LEARN: (5, 3),
}

# moves allowed beyond the ideal for (3 stars, 2 stars)
EFFICIENCY_SLACK: Dict[ActivityType, Tuple[int, int]] = {
    ActivityType.MEMORY_MATCH: (2, 4),
    ActivityType.SHAPE_MATCH: (0, 2),
}


@dataclass(slots=True)
class Verdict:
    correct: bool
    counts: bool = True
    key: Any = None


@dataclass(slots=True)
class ResponseResult:
    is_correct: bool
    state: SessionState


def star_rating(activity_type: ActivityType, score: int, total: int) -> int:
    """Map a tally to 1-3 stars.

    ``score`` is the correct count for quiz activities and the number of moves
    or attempts for manipulation activities; ``total`` is the question count or
    the ideal number of moves.
    """

    if activity_type is ActivityType.ART_RECREATE:
        return 3
    if activity_type in EFFICIENCY_SLACK:
        three, two = EFFICIENCY_SLACK[activity_type]
        if score <= total + three:
            return 3
        return 2 if score <= total + two else 1
    three, two = CORRECT_THRESHOLDS[activity_type]
    if score >= three:
        return 3
    return 2 if score >= two else 1


# answer checks --------------------------------------------------------


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _as_grid(value: Any) -> Optional[Grid]:
    try:
        return tuple(tuple(str(cell) for cell in row) for row in value)
    except TypeError:
        return None


def _check_numeric(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    return Verdict(_as_int(answer) == instance.answer)


def _check_word(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    if answer is None:
        return Verdict(False)
    return Verdict(str(answer).strip().lower() == instance.answer.lower())


def _check_choice(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    return Verdict(answer == instance.answer)


def _check_canvas(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    grid = _as_grid(answer)
    target = instance.answer
    # only a canvas with the target's dimensions may replace the current one
    if (
        grid is None
        or len(grid) != len(target)
        or any(len(row) != len(goal) for row, goal in zip(grid, target))
    ):
        return Verdict(False, counts=False)
    correct = grid == target
    return Verdict(correct, key="canvas" if correct else None)


def _check_memory_flip(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    if isinstance(answer, str):
        return Verdict(False, counts=False)
    try:
        first, second = (int(position) for position in answer)
    except (TypeError, ValueError):
        return Verdict(False, counts=False)
    cards = instance.payload["cards"]
    matched = {position for pair in state.matched for position in pair}
    if (
        first == second
        or not 0 <= first < len(cards)
        or not 0 <= second < len(cards)
        or first in matched
        or second in matched
    ):
        return Verdict(False, counts=False)
    return Verdict(cards[first] == cards[second], key=tuple(sorted((first, second))))


def _check_shape_drop(instance: ActivityInstance, answer: Any, state: SessionState) -> Verdict:
    try:
        piece_id, slot_id = answer
    except (TypeError, ValueError):
        return Verdict(False, counts=False)
    pieces = {piece["id"]: piece["shape"] for piece in instance.payload["pieces"]}
    slots = {slot["id"]: slot["shape"] for slot in instance.payload["slots"]}
    placed = {placed_piece for placed_piece, _ in state.matched}
    filled = {filled_slot for _, filled_slot in state.matched}
    if piece_id not in pieces or slot_id not in slots or piece_id in placed or slot_id in filled:
        return Verdict(False, counts=False)
    return Verdict(pieces[piece_id] == slots[slot_id], key=(piece_id, slot_id))


Checker = Callable[[ActivityInstance, Any, SessionState], Verdict]

_CHECKERS: Dict[ActivityType, Checker] = {
    ActivityType.ARITHMETIC: _check_numeric,
    ActivityType.WORD_UNSCRAMBLE: _check_word,
    ActivityType.PATTERN_SEQUENCE: _check_choice,
    ActivityType.COLOR_MATCH: _check_choice,
    ActivityType.SHAPE_MATCH: _check_shape_drop,
    ActivityType.MEMORY_MATCH: _check_memory_flip,
    ActivityType.ART_RECREATE: _check_canvas,
    ActivityType.COUNT_LEARN: _check_numeric,
}

_unrated = set(ActivityType) - set(QUESTION_COUNTS) - set(EFFICIENCY_SLACK) - {ActivityType.ART_RECREATE}
_unchecked = set(ActivityType) - set(_CHECKERS)
if _unrated or _unchecked:
    raise RuntimeError(f"Scoring rules missing for {sorted(t.value for t in _unrated | _unchecked)}")


def is_correct(instance: ActivityInstance, answer: Any, state: Optional[SessionState] = None) -> bool:
    """Check ``answer`` against ``instance`` without touching any tally."""

    state = state or start_session(instance.activity_type, instance)
    return _CHECKERS[instance.activity_type](instance, answer, state).correct


# session lifecycle ----------------------------------------------------


def start_session(activity_type: ActivityType, instance: Optional[ActivityInstance] = None) -> SessionState:
    activity_type = ActivityType(activity_type)
    if activity_type in QUESTION_COUNTS:
        return SessionState(activity_type=activity_type, total_questions=QUESTION_COUNTS[activity_type])
    if instance is None:
        raise ValueError(f"{activity_type.value} sessions are sized from their puzzle instance")
    if activity_type is ActivityType.MEMORY_MATCH:
        return SessionState(activity_type=activity_type, total_questions=instance.payload["pairs"])
    if activity_type is ActivityType.SHAPE_MATCH:
        return SessionState(activity_type=activity_type, total_questions=instance.payload["count"])
    return SessionState(
        activity_type=activity_type,
        total_questions=1,
        canvas=instance.payload["canvas"],
    )


def record_response(state: SessionState, answer: Any, instance: ActivityInstance) -> ResponseResult:
    """Score one response and return the advanced session state."""

    if state.activity_type is not instance.activity_type:
        raise ValueError(
            f"Instance {instance.activity_type.value} does not belong to a "
            f"{state.activity_type.value} session"
        )
    if state.is_complete:
        raise SessionCompleteError("Session already complete")

    verdict = _CHECKERS[state.activity_type](instance, answer, state)

    if not state.activity_type.is_manipulation:
        return ResponseResult(
            verdict.correct,
            replace(
                state,
                index=state.index + 1,
                attempted=state.attempted + 1,
                correct=state.correct + int(verdict.correct),
            ),
        )

    if not verdict.counts:
        return ResponseResult(False, state)

    updated = replace(
        state,
        index=state.index + 1,
        attempted=state.attempted + 1,
        correct=state.correct + int(verdict.correct),
        matched=(state.matched | {verdict.key}) if verdict.correct else state.matched,
    )
    if state.activity_type is ActivityType.ART_RECREATE:
        updated = replace(updated, canvas=_as_grid(answer))
    return ResponseResult(verdict.correct, updated)


def finalize(state: SessionState) -> int:
    """Return the star rating for a finished session."""

    if not state.is_complete:
        raise SessionIncompleteError(
            f"{state.activity_type.value} session finished {state.attempted} of "
            f"{state.total_questions}"
        )
    if state.activity_type.is_manipulation:
        return star_rating(state.activity_type, state.attempted, state.total_questions)
    return star_rating(state.activity_type, state.correct, state.total_questions)


__all__ = [
    "QUESTION_COUNTS",
    "ResponseResult",
    "finalize",
    "is_correct",
    "record_response",
    "star_rating",
    "start_session",
]
