"""Spawn point search over the arena footprint.

Rejection sampling is bounded: after `max_attempts` random draws the search
falls back to a coarse grid scan of the same rectangle, and only then gives
up with `SpawnSearchExhausted`. The caller decides what to do on failure.
"""

from __future__ import annotations

import math

import numpy as np

from ..errors import SpawnSearchExhausted
from ..sim.world import Arena, OccupancyTest


def random_yaw(rng: np.random.Generator) -> float:
    return float(rng.uniform(0.0, 2.0 * math.pi))


def _grid_candidates(arena: Arena, resolution: int, rng: np.random.Generator) -> np.ndarray:
    lim = arena.spawn_half_extents
    xs = np.linspace(-float(lim[0]), float(lim[0]), resolution, dtype=np.float32)
    ys = np.linspace(-float(lim[1]), float(lim[1]), resolution, dtype=np.float32)
    gx, gy = np.meshgrid(xs, ys, indexing="xy")
    offsets = np.stack([gx.ravel(), gy.ravel()], axis=1)
    # Shuffled so repeated fallbacks don't stack everything in one corner.
    rng.shuffle(offsets)
    return offsets


def find_spawn_position(
    arena: Arena,
    occupancy_test: OccupancyTest,
    rng: np.random.Generator,
    *,
    max_attempts: int = 1000,
    grid_resolution: int = 16,
) -> np.ndarray:
    if max_attempts <= 0:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    lim = arena.spawn_half_extents
    cx, cy, cz = (float(v) for v in arena.center)
    z = cz + arena.spawn_height
    probe = arena.probe_half_extents

    for _ in range(max_attempts):
        x = float(rng.uniform(-float(lim[0]), float(lim[0])))
        y = float(rng.uniform(-float(lim[1]), float(lim[1])))
        pos = np.asarray([cx + x, cy + y, z], dtype=np.float32)
        if not occupancy_test(pos, probe):
            return pos

    attempts = max_attempts
    if grid_resolution > 0:
        for dx, dy in _grid_candidates(arena, grid_resolution, rng):
            attempts += 1
            pos = np.asarray([cx + float(dx), cy + float(dy), z], dtype=np.float32)
            if not occupancy_test(pos, probe):
                return pos

    raise SpawnSearchExhausted(attempts)


class SpawnPointFinder:
    """`find_spawn_position` with the arena, rng and limits bound once."""

    def __init__(
        self,
        arena: Arena,
        rng: np.random.Generator,
        *,
        max_attempts: int = 1000,
        grid_resolution: int = 16,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.arena = arena
        self.rng = rng
        self.max_attempts = int(max_attempts)
        self.grid_resolution = int(grid_resolution)

    def find(self, occupancy_test: OccupancyTest) -> np.ndarray:
        return find_spawn_position(
            self.arena,
            occupancy_test,
            self.rng,
            max_attempts=self.max_attempts,
            grid_resolution=self.grid_resolution,
        )

    def random_yaw(self) -> float:
        return random_yaw(self.rng)
