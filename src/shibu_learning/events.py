"""Discrete events the engine signals to presentation collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List


logger = logging.getLogger(__name__)


class GameEvent(str, Enum):
    ANSWER_CORRECT = "answer.correct"
    ANSWER_INCORRECT = "answer.incorrect"
    LEVEL_COMPLETED = "level.completed"
    STAR_AWARDED = "star.awarded"
    BADGE_EARNED = "badge.earned"


@dataclass(frozen=True, slots=True)
class ToneCue:
    frequency: float
    duration: float
    waveform: str = "sine"


# tones an audio collaborator may synthesise for each event
SOUND_CUES: Dict[GameEvent, ToneCue] = {
    GameEvent.ANSWER_CORRECT: ToneCue(600, 0.3),
    GameEvent.ANSWER_INCORRECT: ToneCue(200, 0.2, "square"),
    GameEvent.LEVEL_COMPLETED: ToneCue(523.25, 0.5),
    GameEvent.STAR_AWARDED: ToneCue(880, 0.2, "triangle"),
    GameEvent.BADGE_EARNED: ToneCue(659.25, 0.4),
}

Listener = Callable[[GameEvent, Dict[str, Any]], None]


@dataclass(slots=True)
class EventBus:
    """Fan events out to subscribed listeners."""

    _listeners: List[Listener] = field(default_factory=list)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: GameEvent, payload: Dict[str, Any]) -> None:
        logger.debug("Event %s: %s", event.value, payload)
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event.value)


__all__ = ["GameEvent", "EventBus", "SOUND_CUES", "ToneCue", "Listener"]
