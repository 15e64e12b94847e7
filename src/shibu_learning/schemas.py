"""Dataclasses describing activities, sessions and progress payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class ActivityType(str, Enum):
    ARITHMETIC = "arithmetic"
    WORD_UNSCRAMBLE = "word_unscramble"
    PATTERN_SEQUENCE = "pattern_sequence"
    COLOR_MATCH = "color_match"
    SHAPE_MATCH = "shape_match"
    MEMORY_MATCH = "memory_match"
    ART_RECREATE = "art_recreate"
    COUNT_LEARN = "count_learn"

    @property
    def is_manipulation(self) -> bool:
        """Manipulation activities are one puzzle scored by efficiency."""

        return self in MANIPULATION_TYPES


MANIPULATION_TYPES = frozenset(
    {ActivityType.SHAPE_MATCH, ActivityType.MEMORY_MATCH, ActivityType.ART_RECREATE}
)


class DifficultyTier(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def for_level(cls, level: int) -> "DifficultyTier":
        if level <= 2:
            return cls.EASY
        if level <= 4:
            return cls.MEDIUM
        return cls.HARD


Grid = Tuple[Tuple[str, ...], ...]


@dataclass(frozen=True, slots=True)
class ActivityInstance:
    """One generated question or puzzle. Never mutated after generation."""

    activity_type: ActivityType
    level: int
    tier: DifficultyTier
    prompt: str
    payload: Dict[str, Any]
    answer: Any
    options: Tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class SessionState:
    """Running tally for a single level attempt."""

    activity_type: ActivityType
    total_questions: int
    index: int = 0
    correct: int = 0
    attempted: int = 0
    matched: frozenset = frozenset()
    canvas: Optional[Grid] = None

    @property
    def is_complete(self) -> bool:
        if self.activity_type.is_manipulation:
            return len(self.matched) >= self.total_questions
        return self.attempted >= self.total_questions


DEFAULT_TOTAL_LEVELS = 5


@dataclass(slots=True)
class WorldProgress:
    levels_completed: int = 0
    total_levels: int = DEFAULT_TOTAL_LEVELS
    stars: int = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any], total_levels: int = DEFAULT_TOTAL_LEVELS) -> "WorldProgress":
        return cls(
            levels_completed=int(payload.get("levelsCompleted", 0)),
            total_levels=int(payload.get("totalLevels", total_levels)),
            stars=int(payload.get("stars", 0)),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "levelsCompleted": self.levels_completed,
            "totalLevels": self.total_levels,
            "stars": self.stars,
        }


@dataclass(slots=True)
class GameProgress:
    """The sole persisted aggregate."""

    total_stars: int = 0
    world_progress: Dict[str, WorldProgress] = field(default_factory=dict)
    badges: Set[str] = field(default_factory=set)
    current_level: int = 1

    @property
    def levels_completed(self) -> int:
        return sum(world.levels_completed for world in self.world_progress.values())

    @property
    def total_levels(self) -> int:
        return sum(world.total_levels for world in self.world_progress.values())

    def copy(self) -> "GameProgress":
        return GameProgress(
            total_stars=self.total_stars,
            world_progress={
                world: WorldProgress(
                    levels_completed=data.levels_completed,
                    total_levels=data.total_levels,
                    stars=data.stars,
                )
                for world, data in self.world_progress.items()
            },
            badges=set(self.badges),
            current_level=self.current_level,
        )

    @classmethod
    def from_dict(
        cls,
        payload: Dict[str, Any],
        catalog: Optional[Dict[str, WorldProgress]] = None,
    ) -> "GameProgress":
        """Read a saved snapshot; ``catalog`` supplies worlds and sizes the record lacks."""

        catalog = catalog or {}
        worlds = {
            world: WorldProgress.from_dict(
                data,
                catalog[world].total_levels if world in catalog else DEFAULT_TOTAL_LEVELS,
            )
            for world, data in payload.get("worldProgress", {}).items()
        }
        for world, default in catalog.items():
            worlds.setdefault(world, default)
        return cls(
            total_stars=int(payload.get("totalStars", 0)),
            world_progress=worlds,
            badges=set(payload.get("badges", [])),
            current_level=int(payload.get("currentLevel", 1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalStars": self.total_stars,
            "worldProgress": {
                world: data.to_dict() for world, data in self.world_progress.items()
            },
            "badges": sorted(self.badges),
            "currentLevel": self.current_level,
        }


@dataclass(slots=True)
class LevelView:
    world: str
    level: int
    activity_type: ActivityType
    question_number: int
    total_questions: int
    activity: ActivityInstance
    dialogue: str = ""
    matched: frozenset = frozenset()
    canvas: Optional[Grid] = None


@dataclass(slots=True)
class LevelResult:
    world: str
    level: int
    activity_type: ActivityType
    stars: int
    correct: int
    attempted: int
    new_badges: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Feedback:
    feedback_text: str
    is_correct: bool
    question_number: int
    total_questions: int
    level_complete: bool = False
    correct_answer: Optional[Any] = None


@dataclass(slots=True)
class ProgressSummary:
    total_stars: int
    levels_completed: int
    total_levels: int
    badges: List[str]
    worlds: Dict[str, Dict[str, int]]
    current_level: int


__all__ = [
    "ActivityType",
    "DifficultyTier",
    "ActivityInstance",
    "SessionState",
    "WorldProgress",
    "GameProgress",
    "LevelView",
    "LevelResult",
    "Feedback",
    "ProgressSummary",
    "MANIPULATION_TYPES",
    "Grid",
]
