"""Team reward fan-out.

Design:
- TeamRoster: the agents that share a reward signal. Entries persist for the
  process lifetime; agents are deactivated or destroyed, never removed.
- TeamRewardBroadcaster: delivers one scalar to every usable member. Rewards
  are accumulated additively by the agents, so delivery order does not matter.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterator

from ..errors import InvalidRosterState
from ..sim.entity import AgentEntity

logger = logging.getLogger(__name__)


class TeamRoster:
    def __init__(self, name: str = "team") -> None:
        self.name = name
        self._members: dict[str, AgentEntity] = {}

    def register(self, agent: AgentEntity) -> None:
        if agent.entity_id in self._members:
            raise ValueError(f"Agent {agent.entity_id!r} already registered with roster {self.name!r}")
        self._members[agent.entity_id] = agent
        agent.set_team(self)

    def get(self, agent_id: str) -> AgentEntity | None:
        return self._members.get(agent_id)

    def members(self) -> list[AgentEntity]:
        return list(self._members.values())

    def active_members(self) -> list[AgentEntity]:
        return [a for a in self._members.values() if a.is_valid and a.active]

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[AgentEntity]:
        return iter(list(self._members.values()))

    def __contains__(self, agent: object) -> bool:
        if isinstance(agent, AgentEntity):
            return self._members.get(agent.entity_id) is agent
        return agent in self._members


class TeamRewardBroadcaster:
    """Fan a scalar reward out to every active member of a roster."""

    def __init__(self) -> None:
        self.total_broadcast: dict[str, float] = {}

    def broadcast(self, roster: TeamRoster, amount: float) -> int:
        amount = float(amount)
        if not math.isfinite(amount):
            raise ValueError(f"reward amount must be finite, got {amount}")

        rewarded = 0
        for agent in roster:
            if not agent.is_valid:
                logger.debug(f"Skipping reward for destroyed agent {agent.entity_id}")
                continue
            if not agent.active:
                continue
            try:
                agent.add_reward(amount)
            except InvalidRosterState as e:
                # Destroyed between the check and the call; the rest of the team still gets paid.
                logger.warning(f"Reward delivery skipped: {e}")
                continue
            rewarded += 1

        self.total_broadcast[roster.name] = self.total_broadcast.get(roster.name, 0.0) + amount
        return rewarded
