from __future__ import annotations


class PushBlockError(Exception):
    """Base class for recoverable episode-control failures."""


class InvalidRosterState(PushBlockError):
    """An agent expected in the roster is no longer usable (destroyed)."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id!r} is no longer valid")
        self.agent_id = agent_id


class SpawnSearchExhausted(PushBlockError):
    """No free spawn position was found within the attempt budget."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"No free spawn position after {attempts} attempts")
        self.attempts = attempts
