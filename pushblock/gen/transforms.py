from __future__ import annotations

from typing import Literal

import numpy as np

RotationType = Literal["rot0", "rot90", "rot180", "rot270"]

_QUARTER_TURNS: dict[RotationType, int] = {"rot0": 0, "rot90": 1, "rot180": 2, "rot270": 3}


def list_rotations() -> tuple[RotationType, ...]:
    return ("rot0", "rot90", "rot180", "rot270")


def quarter_turns(rotation: RotationType) -> int:
    out = _QUARTER_TURNS.get(rotation)
    if out is None:
        raise ValueError(f"Unknown rotation: {rotation!r}")
    return out


def sample_rotation(rng: np.random.Generator) -> RotationType:
    """Uniform draw over the four cardinal orientations."""
    return list_rotations()[int(rng.integers(0, 4))]
