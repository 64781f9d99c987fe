from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import numpy as np

from ..config import ArenaConfig
from .entity import ResettableEntity

# (position, half_extents) -> True when the probe box overlaps something.
OccupancyTest = Callable[[np.ndarray, np.ndarray], bool]


@dataclass
class Arena:
    """Rectangular arena footprint. Only the rotation changes after construction."""

    center: np.ndarray  # float32[3]
    half_extents: np.ndarray  # float32[2], horizontal
    spawn_margin_multiplier: float
    spawn_height: float
    probe_half_extents: np.ndarray  # float32[3]
    quarter_turns: int = 0

    @classmethod
    def from_config(cls, config: ArenaConfig) -> Arena:
        return cls(
            center=np.asarray(config.center, dtype=np.float32),
            half_extents=np.asarray(config.half_extents, dtype=np.float32),
            spawn_margin_multiplier=float(config.spawn_margin_multiplier),
            spawn_height=float(config.spawn_height),
            probe_half_extents=np.asarray(config.probe_half_extents, dtype=np.float32),
        )

    @property
    def rotation_deg(self) -> float:
        return float(self.quarter_turns * 90)

    @property
    def spawn_half_extents(self) -> np.ndarray:
        return self.half_extents * np.float32(self.spawn_margin_multiplier)

    def rotate(self, quarter_turns: int) -> None:
        # Additive on top of whatever orientation the arena already has.
        self.quarter_turns = (self.quarter_turns + int(quarter_turns)) % 4

    def in_spawn_area(self, pos: np.ndarray, tol: float = 1e-4) -> bool:
        lim = self.spawn_half_extents
        dx = abs(float(pos[0]) - float(self.center[0]))
        dy = abs(float(pos[1]) - float(self.center[1]))
        return dx <= float(lim[0]) + tol and dy <= float(lim[1]) + tol


def _boxes_overlap(a_min: np.ndarray, a_max: np.ndarray, b_min: np.ndarray, b_max: np.ndarray) -> bool:
    return bool(
        a_min[0] < b_max[0]
        and a_max[0] > b_min[0]
        and a_min[1] < b_max[1]
        and a_max[1] > b_min[1]
        and a_min[2] < b_max[2]
        and a_max[2] > b_min[2]
    )


class BoxOccupancy:
    """
    In-process stand-in for a physics overlap query.

    Tests a probe box against the live AABBs of active entities plus any
    static obstacle boxes. Inactive entities never occupy space.
    """

    def __init__(self, entities: Iterable[ResettableEntity] = (), obstacles: Iterable[tuple] = ()) -> None:
        self.entities: list[ResettableEntity] = list(entities)
        self.obstacles: list[tuple[np.ndarray, np.ndarray]] = []
        for lo, hi in obstacles:
            self.add_obstacle(lo, hi)

    def track(self, entity: ResettableEntity) -> None:
        if entity not in self.entities:
            self.entities.append(entity)

    def add_obstacle(self, aabb_min, aabb_max) -> None:
        lo = np.asarray(aabb_min, dtype=np.float32)
        hi = np.asarray(aabb_max, dtype=np.float32)
        if np.any(hi < lo):
            raise ValueError(f"obstacle max {hi} is below min {lo}")
        self.obstacles.append((lo, hi))

    def is_occupied(
        self,
        position: np.ndarray,
        half_extents: np.ndarray,
        ignore: ResettableEntity | None = None,
    ) -> bool:
        pos = np.asarray(position, dtype=np.float32)
        hs = np.asarray(half_extents, dtype=np.float32)
        a_min = pos - hs
        a_max = pos + hs
        for lo, hi in self.obstacles:
            if _boxes_overlap(a_min, a_max, lo, hi):
                return True
        for ent in self.entities:
            if ent is ignore or not ent.active:
                continue
            b_min, b_max = ent.body.aabb()
            if _boxes_overlap(a_min, a_max, b_min, b_max):
                return True
        return False

    def __call__(self, position: np.ndarray, half_extents: np.ndarray) -> bool:
        return self.is_occupied(position, half_extents)
