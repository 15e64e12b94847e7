import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from shibu_learning.errors import SessionCompleteError, SessionIncompleteError
from shibu_learning.generator import blank_grid, generate
from shibu_learning.schemas import ActivityInstance, ActivityType, DifficultyTier
from shibu_learning.scoring import (
    finalize,
    is_correct,
    record_response,
    star_rating,
    start_session,
)


def _quiz(activity_type, answer, options=()):
    return ActivityInstance(
        activity_type=activity_type,
        level=1,
        tier=DifficultyTier.EASY,
        prompt="?",
        payload={},
        answer=answer,
        options=options,
    )


def _play_quiz(activity_type, outcomes):
    instance = _quiz(activity_type, 7)
    state = start_session(activity_type)
    for good in outcomes:
        state = record_response(state, 7 if good else 8, instance).state
    return state


@pytest.mark.parametrize(
    "correct, stars",
    [(5, 3), (4, 3), (3, 2), (2, 1), (0, 1)],
)
def test_five_question_thresholds(correct, stars):
    state = _play_quiz(ActivityType.ARITHMETIC, [True] * correct + [False] * (5 - correct))
    assert state.is_complete
    assert state.correct == correct
    assert finalize(state) == stars


def test_color_match_uses_its_own_thresholds():
    assert star_rating(ActivityType.COLOR_MATCH, 7, 8) == 3
    assert star_rating(ActivityType.COLOR_MATCH, 5, 8) == 2
    assert star_rating(ActivityType.COLOR_MATCH, 4, 8) == 1
    assert star_rating(ActivityType.COUNT_LEARN, 5, 6) == 3
    assert star_rating(ActivityType.COUNT_LEARN, 3, 6) == 2


def test_efficiency_ratings():
    assert star_rating(ActivityType.MEMORY_MATCH, 7, 6) == 3
    assert star_rating(ActivityType.MEMORY_MATCH, 10, 6) == 2
    assert star_rating(ActivityType.MEMORY_MATCH, 11, 6) == 1
    assert star_rating(ActivityType.SHAPE_MATCH, 4, 4) == 3
    assert star_rating(ActivityType.SHAPE_MATCH, 6, 4) == 2
    assert star_rating(ActivityType.SHAPE_MATCH, 7, 4) == 1
    assert star_rating(ActivityType.ART_RECREATE, 40, 1) == 3


def test_numeric_answers_tolerate_whitespace_and_reject_text():
    instance = _quiz(ActivityType.ARITHMETIC, 12)
    assert is_correct(instance, 12)
    assert is_correct(instance, " 12 ")
    assert not is_correct(instance, "twelve")
    assert not is_correct(instance, "")
    assert not is_correct(instance, None)
    assert not is_correct(_quiz(ActivityType.ARITHMETIC, 1), True)


def test_word_answers_ignore_case_and_padding():
    instance = _quiz(ActivityType.WORD_UNSCRAMBLE, "house")
    assert is_correct(instance, "  HoUsE ")
    assert not is_correct(instance, "horse")
    assert not is_correct(instance, None)


def test_choice_answers_must_match_exactly():
    instance = _quiz(ActivityType.COLOR_MATCH, "Red", ("Red", "Blue", "Green", "Pink"))
    assert is_correct(instance, "Red")
    assert not is_correct(instance, "red")


def test_wrong_answer_still_advances_quiz():
    instance = _quiz(ActivityType.PATTERN_SEQUENCE, "B", ("A", "B", "C", "D"))
    state = start_session(ActivityType.PATTERN_SEQUENCE)
    result = record_response(state, "A", instance)
    assert not result.is_correct
    assert result.state.index == 1
    assert result.state.attempted == 1
    assert result.state.correct == 0
    assert state.index == 0


def test_finalize_before_last_question_raises():
    state = _play_quiz(ActivityType.WORD_UNSCRAMBLE, [True, True])
    with pytest.raises(SessionIncompleteError):
        finalize(state)


def test_responses_after_completion_raise():
    state = _play_quiz(ActivityType.ARITHMETIC, [True] * 5)
    with pytest.raises(SessionCompleteError):
        record_response(state, 7, _quiz(ActivityType.ARITHMETIC, 7))


def test_mismatched_instance_rejected():
    state = start_session(ActivityType.ARITHMETIC)
    with pytest.raises(ValueError):
        record_response(state, "cat", _quiz(ActivityType.WORD_UNSCRAMBLE, "cat"))


def test_manipulation_sessions_need_an_instance():
    with pytest.raises(ValueError):
        start_session(ActivityType.MEMORY_MATCH)


def test_memory_game_six_pairs_in_seven_moves():
    instance = generate(ActivityType.MEMORY_MATCH, 2, seed=9)
    pairs = list(instance.answer)
    state = start_session(ActivityType.MEMORY_MATCH, instance)
    assert state.total_questions == 6

    # one mismatched flip between two different pairs
    miss = record_response(state, (pairs[0][0], pairs[1][0]), instance)
    assert not miss.is_correct
    state = miss.state
    for first, second in pairs:
        state = record_response(state, (first, second), instance).state

    assert state.is_complete
    assert state.attempted == 7
    assert finalize(state) == 3


def test_memory_flips_on_matched_or_invalid_cards_do_not_count():
    instance = generate(ActivityType.MEMORY_MATCH, 1, seed=2)
    first, second = instance.answer[0]
    state = record_response(start_session(ActivityType.MEMORY_MATCH, instance), (first, second), instance).state
    assert state.attempted == 1

    for flip in [(first, second), (first, first), (0, 99), ("a", "b"), "12", None]:
        result = record_response(state, flip, instance)
        assert not result.is_correct
        assert result.state is state


def test_shape_drops():
    instance = generate(ActivityType.SHAPE_MATCH, 1, seed=4)
    state = start_session(ActivityType.SHAPE_MATCH, instance)
    pieces = {piece["id"]: piece["shape"] for piece in instance.payload["pieces"]}
    slots = {slot["id"]: slot["shape"] for slot in instance.payload["slots"]}
    piece_id, slot_id = instance.answer[0]
    wrong_slot = next(slot for slot, shape in slots.items() if shape != pieces[piece_id])

    state = record_response(state, (piece_id, wrong_slot), instance).state
    assert state.attempted == 1 and not state.matched
    state = record_response(state, (piece_id, slot_id), instance).state
    assert (piece_id, slot_id) in state.matched

    # an already placed piece cannot be dropped again
    repeat = record_response(state, (piece_id, slot_id), instance)
    assert repeat.state is state

    for drop in instance.answer[1:]:
        state = record_response(state, drop, instance).state
    assert state.is_complete
    assert finalize(state) == 3


def test_art_canvas_must_match_target_exactly():
    instance = generate(ActivityType.ART_RECREATE, 1)
    state = start_session(ActivityType.ART_RECREATE, instance)
    assert state.canvas == blank_grid(4)

    near = [list(row) for row in instance.answer]
    near[0][0] = "🟣"
    result = record_response(state, near, instance)
    assert not result.is_correct
    assert not result.state.is_complete

    target = [list(row) for row in instance.answer]
    done = record_response(result.state, target, instance)
    assert done.is_correct
    assert done.state.canvas == instance.answer
    assert finalize(done.state) == 3


def test_art_submissions_with_wrong_dimensions_do_not_count():
    instance = generate(ActivityType.ART_RECREATE, 3)
    state = start_session(ActivityType.ART_RECREATE, instance)
    size = len(instance.answer)
    ragged = [list(row) for row in instance.answer]
    ragged[-1] = ragged[-1][:-1]

    for bad in ["hello", ragged, [list(row) for row in instance.answer][:-1], None]:
        result = record_response(state, bad, instance)
        assert not result.is_correct
        assert result.state is state
    assert state.canvas == blank_grid(size)
