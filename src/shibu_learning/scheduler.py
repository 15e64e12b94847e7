"""Delayed transitions guarded by a generation counter."""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(order=True, slots=True)
class ScheduledTransition:
    due_at: float
    sequence: int
    generation: int = field(compare=False)
    action: Callable[[], None] = field(compare=False)
    label: str = field(default="", compare=False)


class TransitionScheduler:
    """Queue of fire-and-forget transitions.

    Each transition captures the generation that was live when it was
    scheduled. :meth:`invalidate` bumps the generation, and a transition whose
    captured generation is no longer current is dropped when it comes due.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self.clock = clock
        self.generation = 0
        self._queue: List[ScheduledTransition] = []
        self._sequence = itertools.count()

    def invalidate(self) -> int:
        self.generation += 1
        return self.generation

    def schedule(self, delay: float, action: Callable[[], None], label: str = "") -> ScheduledTransition:
        transition = ScheduledTransition(
            due_at=self.clock() + max(delay, 0.0),
            sequence=next(self._sequence),
            generation=self.generation,
            action=action,
            label=label,
        )
        heapq.heappush(self._queue, transition)
        return transition

    def next_due(self) -> Optional[float]:
        return self._queue[0].due_at if self._queue else None

    def run_due(self, now: Optional[float] = None) -> int:
        """Fire every transition due by ``now``; return how many actually ran."""

        now = self.clock() if now is None else now
        fired = 0
        while self._queue and self._queue[0].due_at <= now:
            transition = heapq.heappop(self._queue)
            if transition.generation != self.generation:
                logger.debug("Dropping stale transition %s", transition.label or transition.sequence)
                continue
            transition.action()
            fired += 1
        return fired

    def __len__(self) -> int:
        return len(self._queue)


__all__ = ["TransitionScheduler", "ScheduledTransition", "Clock"]
