"""Durable record of world completion, stars and badges."""

from __future__ import annotations

import json
import logging
import sqlite3
import time

from .catalog import default_world_progress
from .config import DEFAULT_PROGRESS_KEY
from .db import SQLiteStore
from .schemas import GameProgress


logger = logging.getLogger(__name__)


def default_progress() -> GameProgress:
    return GameProgress(world_progress=default_world_progress())


class ProgressStore:
    """Owns the single :class:`GameProgress` snapshot and keeps it persisted.

    The snapshot is read once at construction. Every update works on a copy,
    writes it to the key-value slot and only then replaces the held snapshot,
    so callers never observe a half-applied result.
    """

    def __init__(self, store: SQLiteStore, key: str = DEFAULT_PROGRESS_KEY) -> None:
        self.store = store
        self.key = key
        self._progress = self.load()

    @property
    def progress(self) -> GameProgress:
        return self._progress.copy()

    def load(self) -> GameProgress:
        """Read the saved snapshot, falling back to the default catalog."""

        try:
            row = self.store.get_slot(self.key)
            if row is None:
                logger.info("No saved progress under %r; starting fresh", self.key)
                return default_progress()
            payload = json.loads(row.value_json)
            if not isinstance(payload, dict):
                raise ValueError(f"expected an object, got {type(payload).__name__}")
            return GameProgress.from_dict(payload, catalog=default_world_progress())
        except (sqlite3.Error, ValueError, TypeError, AttributeError) as exc:
            logger.warning("Could not read saved progress (%s); using defaults", exc)
            return default_progress()

    def save(self, progress: GameProgress) -> GameProgress:
        snapshot = progress.copy()
        self.store.put_slot(self.key, snapshot.to_dict(), int(time.time()))
        self._progress = snapshot
        return snapshot.copy()

    def apply_level_result(self, world: str, level: int, stars_earned: int) -> GameProgress:
        """Record one completed level and return the new snapshot.

        Replays never move ``levels_completed`` backwards but always add their
        stars to both the world and the running total.
        """

        if stars_earned < 0:
            raise ValueError(f"stars_earned must be non-negative, got {stars_earned}")

        updated = self._progress.copy()
        world_progress = updated.world_progress.get(world)
        if world_progress is None:
            logger.warning("Unknown world %r; only total stars updated", world)
        else:
            world_progress.levels_completed = min(
                max(world_progress.levels_completed, level),
                world_progress.total_levels,
            )
            world_progress.stars += stars_earned
        updated.total_stars += stars_earned
        updated.current_level = level + 1
        logger.info(
            "Level %s/%d completed with %d stars (total %d)",
            world,
            level,
            stars_earned,
            updated.total_stars,
        )
        return self.save(updated)

    def reset(self) -> GameProgress:
        self.store.delete_slot(self.key)
        self._progress = default_progress()
        logger.info("Progress under %r reset", self.key)
        return self.progress


__all__ = ["ProgressStore", "default_progress", "DEFAULT_PROGRESS_KEY"]
