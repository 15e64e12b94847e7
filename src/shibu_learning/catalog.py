"""World catalog and vocabulary loading."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .schemas import ActivityType, DifficultyTier, WorldProgress


DEFAULT_VOCABULARY_PATH = Path(__file__).resolve().parent / "vocabulary.json"


@dataclass(frozen=True, slots=True)
class World:
    world_id: str
    name: str
    emoji: str
    total_levels: int
    activities: Sequence[ActivityType]
    dialogues: Sequence[str] = ()

    def activity_for_level(self, level: int) -> ActivityType:
        """Rotate through the world's activities as levels increase."""

        return self.activities[(max(level, 1) - 1) % len(self.activities)]


WORLDS: Dict[str, World] = {
    "math": World(
        world_id="math",
        name="Math World",
        emoji="🔢",
        total_levels=5,
        activities=(ActivityType.ARITHMETIC,),
        dialogues=(
            "Let's solve some fun math problems!",
            "Numbers are everywhere!",
            "You're great at math!",
        ),
    ),
    "word": World(
        world_id="word",
        name="Word World",
        emoji="📚",
        total_levels=5,
        activities=(ActivityType.WORD_UNSCRAMBLE,),
        dialogues=(
            "Time for word adventures!",
            "Reading is so much fun!",
            "You're becoming a great reader!",
        ),
    ),
    "puzzle": World(
        world_id="puzzle",
        name="Puzzle World",
        emoji="🧩",
        total_levels=5,
        activities=(ActivityType.PATTERN_SEQUENCE,),
        dialogues=(
            "Let's solve puzzles together!",
            "Think carefully and you'll get it!",
            "Your brain is amazing!",
        ),
    ),
    "art": World(
        world_id="art",
        name="Art World",
        emoji="🎨",
        total_levels=5,
        activities=(ActivityType.ART_RECREATE,),
        dialogues=(
            "Time to be creative!",
            "Colors make everything beautiful!",
            "You're such a talented artist!",
        ),
    ),
    "minigames": World(
        world_id="minigames",
        name="Mini Games",
        emoji="🎮",
        total_levels=8,
        activities=(
            ActivityType.COLOR_MATCH,
            ActivityType.SHAPE_MATCH,
            ActivityType.MEMORY_MATCH,
            ActivityType.COUNT_LEARN,
        ),
        dialogues=("Let's play some quick games!",),
    ),
}

DEFAULT_DIALOGUE = "Let's have fun learning!"


def default_world_progress() -> Dict[str, WorldProgress]:
    return {
        world_id: WorldProgress(levels_completed=0, total_levels=world.total_levels, stars=0)
        for world_id, world in WORLDS.items()
    }


def activity_for(world_id: str, level: int) -> Optional[ActivityType]:
    world = WORLDS.get(world_id)
    if world is None:
        return None
    return world.activity_for_level(level)


def greeting_for(world_id: str) -> str:
    world = WORLDS.get(world_id)
    if world is None or not world.dialogues:
        return DEFAULT_DIALOGUE
    return world.dialogues[0]


@dataclass(frozen=True, slots=True)
class VocabularyEntry:
    word: str
    hint: str
    tier: DifficultyTier


class Vocabulary:
    """Word lists bundled per difficulty tier."""

    def __init__(self, entries: Iterable[VocabularyEntry]):
        self._entries: List[VocabularyEntry] = list(entries)

    @classmethod
    def from_json(cls, path: Path) -> "Vocabulary":
        data = json.loads(path.read_text(encoding="utf-8"))
        entries: List[VocabularyEntry] = []
        for tier_name, tier_entries in data.get("tiers", {}).items():
            tier = DifficultyTier(tier_name)
            for entry in tier_entries:
                word = entry["word"].strip().lower()
                # a word needs two distinct letters to have a scramble
                if len(set(word)) < 2:
                    raise ValueError(f"Word {word!r} cannot be scrambled")
                entries.append(VocabularyEntry(word=word, hint=entry.get("hint", ""), tier=tier))
        return cls(entries)

    @classmethod
    def bundled(cls) -> "Vocabulary":
        return cls.from_json(DEFAULT_VOCABULARY_PATH)

    def for_tier(self, tier: DifficultyTier) -> List[VocabularyEntry]:
        return [entry for entry in self._entries if entry.tier == tier]


__all__ = [
    "World",
    "WORLDS",
    "Vocabulary",
    "VocabularyEntry",
    "activity_for",
    "default_world_progress",
    "greeting_for",
]
