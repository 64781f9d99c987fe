from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ArenaConfig:
    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    half_extents: tuple[float, float] = (12.5, 12.5)  # horizontal (x, y)
    # Fraction of the half-extents usable for spawning (keeps spawns off the walls).
    spawn_margin_multiplier: float = 0.5
    spawn_height: float = 1.0  # above the arena plane
    probe_half_extents: tuple[float, float, float] = (2.5, 2.5, 0.01)

    def __post_init__(self) -> None:
        if len(self.center) != 3:
            raise ValueError(f"center must have 3 components, got {self.center!r}")
        if len(self.half_extents) != 2 or any(e <= 0.0 for e in self.half_extents):
            raise ValueError(f"half_extents must be two positive values, got {self.half_extents!r}")
        if not 0.0 < self.spawn_margin_multiplier <= 1.0:
            raise ValueError(f"spawn_margin_multiplier must be in (0, 1], got {self.spawn_margin_multiplier}")
        if len(self.probe_half_extents) != 3 or any(e < 0.0 for e in self.probe_half_extents):
            raise ValueError(f"probe_half_extents must be three non-negative values, got {self.probe_half_extents!r}")


@dataclass(frozen=True)
class EnvConfig:
    arena: ArenaConfig = field(default_factory=ArenaConfig)
    # Reset once the step counter goes past this budget.
    max_environment_steps: int = 25000
    dt: float = 0.02  # sim seconds per tick

    use_random_agent_rotation: bool = True
    use_random_agent_position: bool = True
    use_random_block_rotation: bool = True
    use_random_block_position: bool = True

    # Ground flash on every scored block.
    goal_scored_state: Any = "goal_scored"
    goal_feedback_duration_s: float = 0.5

    spawn_max_attempts: int = 1000
    spawn_grid_resolution: int = 16

    # True: a destroyed agent aborts the rest of the reset (legacy behaviour).
    # False: destroyed agents are skipped and everyone else is reset.
    strict_roster: bool = False
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_environment_steps <= 0:
            raise ValueError(f"max_environment_steps must be positive, got {self.max_environment_steps}")
        if not (math.isfinite(self.dt) and self.dt > 0.0):
            raise ValueError(f"dt must be a positive finite number, got {self.dt}")
        if not (math.isfinite(self.goal_feedback_duration_s) and self.goal_feedback_duration_s >= 0.0):
            raise ValueError(f"goal_feedback_duration_s must be a finite number >= 0, got {self.goal_feedback_duration_s}")
        if self.spawn_max_attempts <= 0:
            raise ValueError(f"spawn_max_attempts must be positive, got {self.spawn_max_attempts}")
        if self.spawn_grid_resolution < 0:
            raise ValueError(f"spawn_grid_resolution must be >= 0, got {self.spawn_grid_resolution}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EnvConfig:
        """Build a config from plain data (e.g. a parsed JSON file)."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown EnvConfig keys: {sorted(unknown)}")

        kwargs = dict(data)
        arena = kwargs.get("arena")
        if isinstance(arena, Mapping):
            arena_known = {f.name for f in dataclasses.fields(ArenaConfig)}
            arena_unknown = set(arena) - arena_known
            if arena_unknown:
                raise ValueError(f"Unknown ArenaConfig keys: {sorted(arena_unknown)}")
            # JSON has no tuples.
            kwargs["arena"] = ArenaConfig(**{k: tuple(v) if isinstance(v, list) else v for k, v in arena.items()})
        return cls(**kwargs)
