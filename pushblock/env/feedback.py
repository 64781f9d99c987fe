"""Timed, self-reverting visual feedback.

The effect is applied synchronously; the revert is a continuation with a
deadline on the sequencer's own sim clock, run by `advance(dt)` from the tick
driver. Nothing here blocks or spawns threads.

One live token per channel: a new trigger supersedes the pending one (last
write wins), so an earlier timer can never switch the surface back while a
newer effect is still meant to be showing.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class SurfaceSlot:
    """Opaque visual state holder (e.g. the ground material)."""

    def __init__(self, default: Any = "default") -> None:
        self.default = default
        self.current = default

    def get(self) -> Any:
        return self.current

    def set(self, state: Any) -> None:
        self.current = state

    def restore_default(self) -> None:
        self.current = self.default


@dataclass
class FeedbackToken:
    channel: str
    generation: int
    deadline_s: float
    revert: Callable[[], None]
    stale: bool = False
    done: bool = False

    @property
    def pending(self) -> bool:
        return not (self.stale or self.done)


class FeedbackSequencer:
    def __init__(self) -> None:
        self.time_s = 0.0
        self._generation = 0
        self._live: dict[str, FeedbackToken] = {}
        self._queue: list[FeedbackToken] = []

    def trigger_timed_effect(
        self,
        apply_effect: Callable[[], None],
        revert_effect: Callable[[], None],
        duration_s: float,
        *,
        channel: str = "ground",
    ) -> FeedbackToken:
        if not (math.isfinite(duration_s) and duration_s >= 0.0):
            raise ValueError(f"duration_s must be a finite number >= 0, got {duration_s}")

        self.cancel(channel)
        apply_effect()

        self._generation += 1
        token = FeedbackToken(
            channel=channel,
            generation=self._generation,
            deadline_s=self.time_s + float(duration_s),
            revert=revert_effect,
        )
        self._live[channel] = token
        self._queue.append(token)
        return token

    def flash(self, slot: SurfaceSlot, state: Any, duration_s: float, *, channel: str = "ground") -> FeedbackToken:
        return self.trigger_timed_effect(
            lambda: slot.set(state),
            slot.restore_default,
            duration_s,
            channel=channel,
        )

    def advance(self, dt: float) -> int:
        """Move the clock forward and run due reverts. Returns how many ran."""
        if dt < 0.0:
            raise ValueError(f"dt must be >= 0, got {dt}")
        self.time_s += float(dt)

        due = [t for t in self._queue if t.deadline_s <= self.time_s]
        if not due:
            return 0
        self._queue = [t for t in self._queue if t.deadline_s > self.time_s]

        ran = 0
        for token in sorted(due, key=lambda t: (t.deadline_s, t.generation)):
            if token.stale:
                logger.debug(f"Dropping stale feedback revert on {token.channel} (gen {token.generation})")
                continue
            token.done = True
            if self._live.get(token.channel) is token:
                del self._live[token.channel]
            token.revert()
            ran += 1
        return ran

    def cancel(self, channel: str) -> bool:
        token = self._live.pop(channel, None)
        if token is None:
            return False
        token.stale = True
        return True

    def invalidate_all(self) -> int:
        n = 0
        for channel in list(self._live):
            n += int(self.cancel(channel))
        return n

    def pending(self) -> list[FeedbackToken]:
        return [t for t in self._live.values() if t.pending]
