"""Learning engine orchestrating levels, scoring, progress and badges."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from . import achievements
from .catalog import Vocabulary, activity_for, greeting_for
from .config import Settings
from .db import SQLiteStore
from .errors import NoActiveLevelError
from .events import EventBus, GameEvent
from .generator import bundled_vocabulary, generate
from .progress import ProgressStore
from .scheduler import Clock, TransitionScheduler
from .schemas import (
    ActivityInstance,
    ActivityType,
    Feedback,
    LevelResult,
    LevelView,
    ProgressSummary,
    SessionState,
)
from .scoring import finalize, record_response, start_session


logger = logging.getLogger(__name__)


TOOL_DESCRIPTIONS = {
    "start_level": "Begin a level in a world and return its first activity.",
    "current_activity": "Return the activity currently on screen.",
    "submit_answer": "Score an answer for the current activity.",
    "paint_cell": "Paint one canvas cell during an art level.",
    "leave_level": "Abandon the current level without recording it.",
    "pump": "Run timed transitions that are due.",
    "get_progress": "Summarise stars, levels and badges.",
    "badge_board": "List every badge with its earned flag.",
    "reset_progress": "Clear saved progress and restore the default catalog.",
}


def _tool_input_schema(name: str) -> dict:
    if name == "start_level":
        return {
            "type": "object",
            "required": ["world"],
            "properties": {
                "world": {
                    "type": "string",
                    "enum": ["math", "word", "puzzle", "art", "minigames"],
                },
                "level": {"type": "integer", "minimum": 1, "default": 1},
            },
        }
    if name == "submit_answer":
        return {
            "type": "object",
            "required": ["answer"],
            "properties": {"answer": {"description": "Typed value, option, flip or drop"}},
        }
    if name == "paint_cell":
        return {
            "type": "object",
            "required": ["row", "col", "color"],
            "properties": {
                "row": {"type": "integer", "minimum": 0},
                "col": {"type": "integer", "minimum": 0},
                "color": {"type": "string"},
            },
        }
    if name == "pump":
        return {
            "type": "object",
            "properties": {"now": {"type": "number"}},
        }
    if name in TOOL_DESCRIPTIONS:
        return {"type": "object", "properties": {}}
    raise KeyError(f"Unknown tool {name}")


@dataclass(slots=True)
class ActiveLevel:
    world: str
    level: int
    activity_type: ActivityType
    session: SessionState
    instance: ActivityInstance
    awaiting: bool = False


class LearningEngine:
    """Single-session facade the presentation layer drives."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        progress_store: Optional[ProgressStore] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Clock] = None,
        events: Optional[EventBus] = None,
        vocabulary: Optional[Vocabulary] = None,
    ) -> None:
        self.settings = settings or Settings.load()
        self.progress_store = progress_store or ProgressStore(
            SQLiteStore(self.settings.database_path),
            key=self.settings.progress_key,
        )
        if vocabulary is None and self.settings.vocabulary_path:
            vocabulary = Vocabulary.from_json(self.settings.vocabulary_path)
        self.vocabulary = vocabulary or bundled_vocabulary()
        self.rng = rng or random.Random()
        self.scheduler = TransitionScheduler(clock) if clock else TransitionScheduler()
        self.events = events or EventBus()
        self.last_result: Optional[LevelResult] = None
        self._active: Optional[ActiveLevel] = None

    # ------------------------------------------------------------------
    # Public tool methods

    def start_level(self, world: str, level: int = 1) -> Optional[LevelView]:
        activity_type = activity_for(world, level)
        if activity_type is None:
            logger.warning("No activities for world %r", world)
            return None

        self.scheduler.invalidate()
        instance = self._generate(activity_type, level)
        self._active = ActiveLevel(
            world=world,
            level=level,
            activity_type=activity_type,
            session=start_session(activity_type, instance),
            instance=instance,
        )
        logger.info("Starting %s level %d (%s)", world, level, activity_type.value)
        return self._view()

    def current_activity(self) -> Optional[LevelView]:
        if self._active is None:
            return None
        return self._view()

    def submit_answer(self, answer: Any) -> Feedback:
        active = self._require_active()
        if active.awaiting:
            return self._feedback(active, "Hold on, here comes the next one!", False)

        before = active.session
        result = record_response(before, answer, active.instance)
        active.session = result.state

        if active.activity_type is ActivityType.ART_RECREATE:
            return self._after_paint(active, result.is_correct)
        if active.activity_type.is_manipulation:
            return self._after_move(active, before, result.is_correct)
        return self._after_question(active, answer, result.is_correct)

    def paint_cell(self, row: int, col: int, color: str) -> Feedback:
        active = self._require_active()
        if active.activity_type is not ActivityType.ART_RECREATE:
            raise NoActiveLevelError("No art level is being played")
        if active.awaiting:
            return self._feedback(active, "Your picture is already finished!", True)

        canvas = [list(cells) for cells in active.session.canvas or ()]
        palette = active.instance.payload["palette"]
        if not (0 <= row < len(canvas) and 0 <= col < len(canvas[row])) or color not in palette:
            return self._feedback(active, "Pick a color and a square on the canvas.", False)
        canvas[row][col] = color
        return self.submit_answer(canvas)

    def leave_level(self) -> None:
        self.scheduler.invalidate()
        if self._active is not None:
            logger.info("Left %s level %d", self._active.world, self._active.level)
        self._active = None

    def pump(self, now: Optional[float] = None) -> int:
        return self.scheduler.run_due(now)

    def get_progress(self) -> ProgressSummary:
        progress = self.progress_store.progress
        return ProgressSummary(
            total_stars=progress.total_stars,
            levels_completed=progress.levels_completed,
            total_levels=progress.total_levels,
            badges=sorted(progress.badges),
            worlds={world: data.to_dict() for world, data in progress.world_progress.items()},
            current_level=progress.current_level,
        )

    def badge_board(self) -> List[dict]:
        return achievements.badge_board(self.progress_store.progress)

    def reset_progress(self) -> ProgressSummary:
        self.leave_level()
        self.progress_store.reset()
        self.last_result = None
        return self.get_progress()

    # ------------------------------------------------------------------
    # Transport helpers

    def list_tools(self) -> dict:
        """Return tool metadata for discovery."""

        tools = []
        for name, description in TOOL_DESCRIPTIONS.items():
            tools.append(
                {
                    "name": name,
                    "description": description,
                    "input_schema": _tool_input_schema(name),
                }
            )
        return {"tools": tools}

    def call_tool(self, name: str, arguments: Dict[str, object]) -> object:
        """Invoke a public tool method in a transport-friendly fashion."""

        if name not in TOOL_DESCRIPTIONS:
            raise ValueError(f"Unknown tool: {name}")
        method = getattr(self, name)
        return method(**arguments)

    # ------------------------------------------------------------------
    # Internal helpers

    def _require_active(self) -> ActiveLevel:
        if self._active is None:
            raise NoActiveLevelError("No level is being played")
        return self._active

    def _generate(self, activity_type: ActivityType, level: int) -> ActivityInstance:
        return generate(activity_type, level, rng=self.rng, vocabulary=self.vocabulary)

    def _view(self) -> LevelView:
        active = self._require_active()
        session = active.session
        return LevelView(
            world=active.world,
            level=active.level,
            activity_type=active.activity_type,
            question_number=min(session.index + 1, session.total_questions)
            if not active.activity_type.is_manipulation
            else len(session.matched),
            total_questions=session.total_questions,
            activity=active.instance,
            dialogue=greeting_for(active.world),
            matched=session.matched,
            canvas=session.canvas,
        )

    def _feedback(self, active: ActiveLevel, text: str, is_correct: bool, correct_answer: Any = None) -> Feedback:
        session = active.session
        return Feedback(
            feedback_text=text,
            is_correct=is_correct,
            question_number=session.index,
            total_questions=session.total_questions,
            level_complete=session.is_complete,
            correct_answer=correct_answer,
        )

    def _after_question(self, active: ActiveLevel, answer: Any, is_correct: bool) -> Feedback:
        instance = active.instance
        self.events.publish(
            GameEvent.ANSWER_CORRECT if is_correct else GameEvent.ANSWER_INCORRECT,
            {"world": active.world, "level": active.level, "question": active.session.index},
        )
        active.awaiting = True
        self.scheduler.schedule(self.settings.feedback_delay, self._advance, label="advance")
        return self._feedback(
            active,
            self._build_feedback(instance, answer, is_correct),
            is_correct,
            correct_answer=None if is_correct else instance.answer,
        )

    def _after_move(self, active: ActiveLevel, before: SessionState, is_correct: bool) -> Feedback:
        if active.session is before:
            return self._feedback(active, "Try a different one!", False)
        self.events.publish(
            GameEvent.ANSWER_CORRECT if is_correct else GameEvent.ANSWER_INCORRECT,
            {"world": active.world, "level": active.level, "moves": active.session.attempted},
        )
        if active.session.is_complete:
            active.awaiting = True
            self.scheduler.schedule(self.settings.completion_delay, self._complete_level, label="complete")
            return self._feedback(active, "🎉 You matched them all!", True)
        if is_correct:
            return self._feedback(active, "✨ It's a match!", True)
        return self._feedback(active, "Not a match, keep looking!", False)

    def _after_paint(self, active: ActiveLevel, is_correct: bool) -> Feedback:
        if not is_correct:
            return self._feedback(active, "Keep painting!", False)
        self.events.publish(GameEvent.ANSWER_CORRECT, {"world": active.world, "level": active.level})
        active.awaiting = True
        self.scheduler.schedule(self.settings.feedback_delay, self._complete_level, label="complete")
        return self._feedback(active, "🎨 Amazing artwork! You recreated the pattern perfectly!", True)

    def _advance(self) -> None:
        active = self._active
        if active is None:
            return
        if active.session.is_complete:
            self._complete_level()
            return
        active.instance = self._generate(active.activity_type, active.level)
        active.awaiting = False

    def _complete_level(self) -> None:
        active = self._active
        if active is None:
            return
        stars = finalize(active.session)
        progress = self.progress_store.apply_level_result(active.world, active.level, stars)
        new_badges = achievements.evaluate(progress)
        if new_badges:
            self.progress_store.save(progress)

        self._active = None
        self.last_result = LevelResult(
            world=active.world,
            level=active.level,
            activity_type=active.activity_type,
            stars=stars,
            correct=active.session.correct,
            attempted=active.session.attempted,
            new_badges=sorted(new_badges),
        )
        self.events.publish(
            GameEvent.LEVEL_COMPLETED,
            {"world": active.world, "level": active.level, "stars": stars},
        )
        for star in range(1, stars + 1):
            self.events.publish(GameEvent.STAR_AWARDED, {"star": star})
        for badge_id in sorted(new_badges):
            badge = achievements.BADGES[badge_id]
            self.events.publish(
                GameEvent.BADGE_EARNED,
                {"badge": badge_id, "name": badge.name, "description": badge.description},
            )

    def _build_feedback(self, instance: ActivityInstance, answer: Any, is_correct: bool) -> str:
        activity_type = instance.activity_type
        if activity_type is ActivityType.WORD_UNSCRAMBLE:
            if is_correct:
                return "🎉 Perfect! You unscrambled it!"
            return f"💡 The word was \"{instance.answer}\". Keep practicing!"
        if activity_type is ActivityType.PATTERN_SEQUENCE:
            if is_correct:
                return "🧩 Excellent! You found the pattern!"
            return f"🤔 The answer was \"{instance.answer}\". Great effort!"
        if activity_type is ActivityType.COLOR_MATCH:
            if is_correct:
                return f"🎉 Correct! That's {instance.answer}!"
            return f"💡 That's {answer}. The correct answer was {instance.answer}!"
        if activity_type is ActivityType.COUNT_LEARN:
            if is_correct:
                return f"🎉 Correct! The answer is {instance.answer}!"
            return f"💡 Not quite! The correct answer is {instance.answer}. Keep trying!"
        if is_correct:
            return "🎉 Correct! Great job!"
        return f"😊 Not quite! The answer is {instance.answer}. Keep trying!"


__all__ = ["LearningEngine", "TOOL_DESCRIPTIONS"]
