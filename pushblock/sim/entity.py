from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from ..errors import InvalidRosterState

if TYPE_CHECKING:
    from ..env.rewards import TeamRoster


def _vec3(values) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float32).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"expected 3 components, got shape {arr.shape}")
    return arr.copy()


@dataclass
class Body:
    """Kinematic state owned by the physics collaborator."""

    pos: np.ndarray  # float32[3], arena units, center of AABB
    yaw: float = 0.0  # radians, about +z
    vel: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float32))
    ang_vel: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.float32))
    half_size: np.ndarray = field(default_factory=lambda: np.full(3, 0.5, dtype=np.float32))

    def __post_init__(self) -> None:
        self.pos = _vec3(self.pos)
        self.vel = _vec3(self.vel)
        self.ang_vel = _vec3(self.ang_vel)
        self.half_size = _vec3(self.half_size)

    def aabb(self) -> tuple[np.ndarray, np.ndarray]:
        return self.pos - self.half_size, self.pos + self.half_size

    def zero_velocity(self) -> None:
        self.vel[:] = 0.0
        self.ang_vel[:] = 0.0


class ResettableEntity:
    """Shared reset contract for agents and blocks."""

    kind = "entity"

    def __init__(self, entity_id: str, body: Body) -> None:
        self.entity_id = entity_id
        self.body = body
        self.active = True
        self.starting_pos: np.ndarray | None = None
        self.starting_yaw: float | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entity_id!r}, active={self.active})"

    @property
    def pose_captured(self) -> bool:
        return self.starting_pos is not None

    def capture_initial_pose(self) -> None:
        if self.pose_captured:
            raise RuntimeError(f"Initial pose of {self.entity_id!r} already captured")
        self.starting_pos = self.body.pos.copy()
        self.starting_yaw = float(self.body.yaw)

    def reset_to(self, position: np.ndarray, yaw: float) -> None:
        self.body.pos[:] = np.asarray(position, dtype=np.float32)
        self.body.yaw = float(yaw)
        self.body.zero_velocity()

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False


class BlockEntity(ResettableEntity):
    kind = "block"


class AgentEntity(ResettableEntity):
    """A team member. Rewards survive episode resets; only the episode tally is cleared."""

    kind = "agent"

    def __init__(self, entity_id: str, body: Body) -> None:
        super().__init__(entity_id, body)
        self.team: TeamRoster | None = None
        self.destroyed = False
        self.episode_reward = 0.0
        self.total_reward = 0.0
        self.completed_episodes = 0
        self.episode_returns: list[float] = []

    @property
    def is_valid(self) -> bool:
        return not self.destroyed

    def destroy(self) -> None:
        self.destroyed = True
        self.active = False

    def _require_valid(self) -> None:
        if self.destroyed:
            raise InvalidRosterState(self.entity_id)

    def set_team(self, roster: TeamRoster) -> None:
        self.team = roster

    def add_reward(self, amount: float) -> None:
        self._require_valid()
        self.episode_reward += float(amount)
        self.total_reward += float(amount)

    def end_episode(self) -> None:
        self._require_valid()
        self.episode_returns.append(self.episode_reward)
        self.episode_reward = 0.0
        self.completed_episodes += 1

    def reset_to(self, position: np.ndarray, yaw: float) -> None:
        self._require_valid()
        super().reset_to(position, yaw)
