from .spawn import SpawnPointFinder, find_spawn_position, random_yaw
from .transforms import list_rotations, quarter_turns, sample_rotation

__all__ = [
    "SpawnPointFinder",
    "find_spawn_position",
    "list_rotations",
    "quarter_turns",
    "random_yaw",
    "sample_rotation",
]
