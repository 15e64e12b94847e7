"""Shibu Kuttan learning activity engine."""

from .achievements import BADGES, evaluate
from .config import Settings
from .engine import LearningEngine
from .generator import generate
from .progress import ProgressStore
from .schemas import ActivityType, DifficultyTier, GameProgress
from .scoring import finalize, record_response, start_session

__all__ = [
    "BADGES",
    "ActivityType",
    "DifficultyTier",
    "GameProgress",
    "LearningEngine",
    "ProgressStore",
    "Settings",
    "evaluate",
    "finalize",
    "generate",
    "record_response",
    "start_session",
]
