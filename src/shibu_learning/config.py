"""Configuration helpers for the Shibu learning engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_DATABASE_PATH = Path("data/shibu_learning.sqlite")
DEFAULT_PROGRESS_KEY = "shibu-kuttan-progress"
DEFAULT_FEEDBACK_DELAY = 2.0
DEFAULT_COMPLETION_DELAY = 1.0


@dataclass(slots=True)
class Settings:
    """Runtime settings with environment overrides."""

    database_path: Path = DEFAULT_DATABASE_PATH
    progress_key: str = DEFAULT_PROGRESS_KEY
    feedback_delay: float = DEFAULT_FEEDBACK_DELAY
    completion_delay: float = DEFAULT_COMPLETION_DELAY
    vocabulary_path: Optional[Path] = None

    @classmethod
    def load(cls) -> "Settings":
        """Construct settings from environment variables when available."""

        vocabulary = os.environ.get("SHIBU_VOCABULARY_PATH")
        return cls(
            database_path=Path(
                os.environ.get("SHIBU_DATABASE_PATH", DEFAULT_DATABASE_PATH.as_posix())
            ),
            progress_key=os.environ.get("SHIBU_PROGRESS_KEY", DEFAULT_PROGRESS_KEY),
            feedback_delay=float(
                os.environ.get("SHIBU_FEEDBACK_DELAY", str(DEFAULT_FEEDBACK_DELAY))
            ),
            completion_delay=float(
                os.environ.get("SHIBU_COMPLETION_DELAY", str(DEFAULT_COMPLETION_DELAY))
            ),
            vocabulary_path=Path(vocabulary) if vocabulary else None,
        )


__all__ = ["Settings", "DEFAULT_PROGRESS_KEY"]
