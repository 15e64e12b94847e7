"""Badge rules evaluated after every level completion."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Set

from .schemas import GameProgress


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Badge:
    badge_id: str
    name: str
    description: str
    emoji: str
    check: Callable[[GameProgress], bool]


def _world_mastered(world: str) -> Callable[[GameProgress], bool]:
    def check(progress: GameProgress) -> bool:
        data = progress.world_progress.get(world)
        return data is not None and data.total_levels > 0 and data.levels_completed >= data.total_levels

    return check


BADGES: Dict[str, Badge] = {
    badge.badge_id: badge
    for badge in (
        Badge(
            "first-steps",
            "First Steps",
            "Complete 5 levels",
            "👣",
            lambda progress: progress.levels_completed >= 5,
        ),
        Badge(
            "star-collector",
            "Star Collector",
            "Earn 50 stars",
            "⭐",
            lambda progress: progress.total_stars >= 50,
        ),
        Badge("math-master", "Math Master", "Complete all Math World levels", "🔢", _world_mastered("math")),
        Badge("word-wizard", "Word Wizard", "Complete all Word World levels", "📚", _world_mastered("word")),
        Badge("puzzle-pro", "Puzzle Pro", "Complete all Puzzle World levels", "🧩", _world_mastered("puzzle")),
        Badge("art-star", "Art Star", "Complete all Art World levels", "🎨", _world_mastered("art")),
        Badge("minigame-champ", "Mini Game Champ", "Complete all Mini Games", "🎮", _world_mastered("minigames")),
    )
}


def evaluate(progress: GameProgress) -> Set[str]:
    """Claim every badge that is earned but not yet held.

    Newly earned ids are added to ``progress.badges`` and returned, so running
    this again on the same snapshot reports nothing.
    """

    earned = {
        badge_id
        for badge_id, badge in BADGES.items()
        if badge_id not in progress.badges and badge.check(progress)
    }
    if earned:
        progress.badges.update(earned)
        logger.info("Badges earned: %s", ", ".join(sorted(earned)))
    return earned


def badge_board(progress: GameProgress) -> List[dict]:
    return [
        {
            "id": badge.badge_id,
            "name": badge.name,
            "description": badge.description,
            "emoji": badge.emoji,
            "earned": badge.badge_id in progress.badges,
        }
        for badge in BADGES.values()
    ]


__all__ = ["Badge", "BADGES", "evaluate", "badge_board"]
