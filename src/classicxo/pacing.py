"""Delayed actions at the UI boundary (computer move, post-game reset)."""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class PacedEvent:
    due: float
    seq: int
    label: str = field(compare=False)
    action: Callable[[], None] = field(compare=False, repr=False)


@dataclass
class PacingQueue:
    """Time-ordered queue of callables.

    Nothing runs on its own: the owner calls ``run_due`` whenever it gets
    control (a request, a background task) and every event whose time has
    come runs in due order. Events due at the same moment keep the order in
    which they were scheduled.
    """

    clock: Callable[[], float] = time.monotonic
    _heap: List[PacedEvent] = field(default_factory=list, repr=False)
    _counter: "itertools.count[int]" = field(
        default_factory=itertools.count, repr=False
    )

    def schedule(self, delay: float, action: Callable[[], None], label: str) -> None:
        if delay < 0:
            raise ValueError("Delay must not be negative")
        event = PacedEvent(
            due=self.clock() + delay, seq=next(self._counter), label=label, action=action
        )
        heapq.heappush(self._heap, event)
        logger.debug("Scheduled %s in %.2fs", label, delay)

    def run_due(self) -> int:
        ran = 0
        while self._heap and self._heap[0].due <= self.clock():
            event = heapq.heappop(self._heap)
            event.action()
            ran += 1
        return ran

    def next_delay(self) -> Optional[float]:
        if not self._heap:
            return None
        return max(0.0, self._heap[0].due - self.clock())

    def cancel_all(self) -> None:
        self._heap.clear()

    @property
    def pending(self) -> List[str]:
        return [event.label for event in sorted(self._heap)]
