import random
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from shibu_learning import LearningEngine, Settings
from shibu_learning.errors import NoActiveLevelError
from shibu_learning.events import SOUND_CUES, GameEvent
from shibu_learning.generator import BLANK_CELL
from shibu_learning.schemas import ActivityType


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _engine(tmp_path: Path, seed: int = 1):
    clock = FakeClock()
    engine = LearningEngine(
        settings=Settings(database_path=tmp_path / "test.sqlite"),
        rng=random.Random(seed),
        clock=clock,
    )
    return engine, clock


def _collect(engine):
    seen = []
    engine.events.subscribe(lambda event, payload: seen.append((event, payload)))
    return seen


def test_full_math_level(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("math")
    assert view.activity_type is ActivityType.ARITHMETIC
    assert view.dialogue
    assert view.total_questions == 5

    for number in range(1, 6):
        view = engine.current_activity()
        assert view.question_number == number
        feedback = engine.submit_answer(view.activity.answer)
        assert feedback.is_correct
        assert feedback.correct_answer is None

        waiting = engine.submit_answer(view.activity.answer)
        assert waiting.feedback_text.startswith("Hold on")

        clock.now += 1.0
        assert engine.pump() == 0
        clock.now += 1.0
        assert engine.pump() == 1

    assert engine.current_activity() is None
    result = engine.last_result
    assert result.stars == 3
    assert result.correct == 5

    summary = engine.get_progress()
    assert summary.total_stars == 3
    assert summary.levels_completed == 1
    assert summary.worlds["math"]["levelsCompleted"] == 1
    assert summary.current_level == 2


def test_wrong_answers_reveal_solution_and_still_finish(tmp_path):
    engine, clock = _engine(tmp_path)
    seen = _collect(engine)
    engine.start_level("math", 2)

    for _ in range(5):
        view = engine.current_activity()
        feedback = engine.submit_answer(view.activity.answer + 1)
        assert not feedback.is_correct
        assert feedback.correct_answer == view.activity.answer
        assert str(view.activity.answer) in feedback.feedback_text
        clock.now += 2.0
        engine.pump()

    assert engine.last_result.stars == 1
    events = [event for event, _ in seen]
    assert events.count(GameEvent.ANSWER_INCORRECT) == 5
    assert events[-2:] == [GameEvent.LEVEL_COMPLETED, GameEvent.STAR_AWARDED]


def test_leaving_level_drops_pending_transition(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("word")
    engine.submit_answer(view.activity.answer)
    engine.leave_level()

    clock.now += 10.0
    assert engine.pump() == 0
    assert engine.current_activity() is None
    assert engine.get_progress().total_stars == 0


def test_restarting_level_ignores_old_timer(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("puzzle")
    engine.submit_answer(view.activity.answer)

    fresh = engine.start_level("puzzle")
    clock.now += 10.0
    assert engine.pump() == 0
    assert engine.current_activity().question_number == 1

    feedback = engine.submit_answer(fresh.activity.answer)
    assert feedback.is_correct
    assert feedback.question_number == 1


def test_unknown_world_has_no_content(tmp_path):
    engine, _ = _engine(tmp_path)
    assert engine.start_level("space") is None
    with pytest.raises(NoActiveLevelError):
        engine.submit_answer("42")


def test_memory_level_through_engine(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("minigames", 3)
    assert view.activity_type is ActivityType.MEMORY_MATCH
    pairs = view.activity.answer
    assert view.total_questions == len(pairs) == 7

    assert engine.submit_answer(("x", "y")).feedback_text == "Try a different one!"

    for first, second in pairs[:-1]:
        feedback = engine.submit_answer((first, second))
        assert feedback.is_correct
        assert not feedback.level_complete
    feedback = engine.submit_answer(pairs[-1])
    assert feedback.level_complete

    clock.now += 1.0
    assert engine.pump() == 1
    assert engine.last_result.activity_type is ActivityType.MEMORY_MATCH
    assert engine.last_result.stars == 3
    assert engine.get_progress().worlds["minigames"]["stars"] == 3


def test_art_level_painted_cell_by_cell(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("art")
    target = view.activity.answer

    assert not engine.paint_cell(0, 0, "🦄").is_correct
    assert not engine.paint_cell(9, 0, "🔴").is_correct

    cells = [
        (row, col, color)
        for row, line in enumerate(target)
        for col, color in enumerate(line)
        if color != BLANK_CELL
    ]
    for row, col, color in cells[:-1]:
        assert not engine.paint_cell(row, col, color).is_correct
    assert engine.current_activity().canvas[cells[0][0]][cells[0][1]] == cells[0][2]

    row, col, color = cells[-1]
    assert engine.paint_cell(row, col, color).is_correct

    clock.now += 2.0
    engine.pump()
    assert engine.last_result.stars == 3


def test_paint_outside_art_level_rejected(tmp_path):
    engine, _ = _engine(tmp_path)
    engine.start_level("math")
    with pytest.raises(NoActiveLevelError):
        engine.paint_cell(0, 0, "🔴")


def test_finishing_world_awards_badges(tmp_path):
    engine, clock = _engine(tmp_path)
    progress = engine.progress_store.progress
    progress.world_progress["math"].levels_completed = 4
    engine.progress_store.save(progress)
    seen = _collect(engine)

    engine.start_level("math", 5)
    for _ in range(5):
        engine.submit_answer(engine.current_activity().activity.answer)
        clock.now += 2.0
        engine.pump()

    assert engine.last_result.new_badges == ["first-steps", "math-master"]
    earned = [payload["badge"] for event, payload in seen if event is GameEvent.BADGE_EARNED]
    assert earned == ["first-steps", "math-master"]
    assert engine.get_progress().badges == ["first-steps", "math-master"]
    assert [event for event, _ in seen].count(GameEvent.STAR_AWARDED) == 3


def test_failing_listener_does_not_break_flow(tmp_path):
    engine, clock = _engine(tmp_path)

    def broken(event, payload):
        raise RuntimeError("speaker unplugged")

    engine.events.subscribe(broken)
    view = engine.start_level("math")
    assert engine.submit_answer(view.activity.answer).is_correct


def test_tool_discovery_and_dispatch(tmp_path):
    engine, _ = _engine(tmp_path)
    names = [tool["name"] for tool in engine.list_tools()["tools"]]
    assert "start_level" in names and "submit_answer" in names

    view = engine.call_tool("start_level", {"world": "puzzle", "level": 5})
    assert view.activity_type is ActivityType.PATTERN_SEQUENCE
    with pytest.raises(ValueError):
        engine.call_tool("delete_everything", {})


def test_reset_progress(tmp_path):
    engine, clock = _engine(tmp_path)
    engine.progress_store.apply_level_result("word", 2, 3)
    summary = engine.reset_progress()
    assert summary.total_stars == 0
    assert summary.badges == []


def test_fresh_player_clears_math_level_five_with_one_miss(tmp_path):
    engine, clock = _engine(tmp_path)
    engine.start_level("math", 5)
    for number in range(5):
        answer = engine.current_activity().activity.answer
        engine.submit_answer(answer if number else answer + 1)
        clock.now += 2.0
        engine.pump()

    assert engine.last_result.correct == 4
    assert engine.last_result.stars == 3
    summary = engine.get_progress()
    assert summary.worlds["math"] == {"levelsCompleted": 5, "totalLevels": 5, "stars": 3}
    assert summary.total_stars == 3
    assert "math-master" in engine.last_result.new_badges


def test_every_event_has_a_sound_cue():
    assert set(SOUND_CUES) == set(GameEvent)
    assert SOUND_CUES[GameEvent.ANSWER_INCORRECT].waveform == "square"
    assert SOUND_CUES[GameEvent.ANSWER_CORRECT].frequency == 600


def test_unsubscribed_listener_stops_receiving(tmp_path):
    engine, _ = _engine(tmp_path)
    seen = []
    unsubscribe = engine.events.subscribe(lambda event, payload: seen.append(event))
    view = engine.start_level("math")
    engine.submit_answer(view.activity.answer)
    unsubscribe()
    engine.events.publish(GameEvent.ANSWER_CORRECT, {})
    assert seen == [GameEvent.ANSWER_CORRECT]


def test_malformed_canvas_leaves_art_level_playable(tmp_path):
    engine, clock = _engine(tmp_path)
    view = engine.start_level("art")
    blank = view.canvas
    size = len(blank)

    malformed = [
        "hello",
        [[BLANK_CELL]] * size,
        [[BLANK_CELL] * size] * (size - 1),
        [[BLANK_CELL] * size] * (size - 1) + [[BLANK_CELL]],
        None,
        7,
    ]
    for bad in malformed:
        assert not engine.submit_answer(bad).is_correct
        assert engine.current_activity().canvas == blank
    assert not engine.paint_cell(0, size, "🔴").is_correct
    assert not engine.paint_cell(-1, 0, "🔴").is_correct

    cells = [
        (row, col, color)
        for row, line in enumerate(view.activity.answer)
        for col, color in enumerate(line)
        if color != BLANK_CELL
    ]
    for row, col, color in cells:
        engine.paint_cell(row, col, color)

    clock.now += 2.0
    engine.pump()
    assert engine.last_result.stars == 3
    assert engine.last_result.attempted == len(cells)
