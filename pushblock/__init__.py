from .config import ArenaConfig, EnvConfig
from .env.controller import ControllerPhase, EpisodeController, EpisodeState
from .errors import InvalidRosterState, PushBlockError, SpawnSearchExhausted
from .sim.entity import AgentEntity, BlockEntity, Body

__all__ = [
    "AgentEntity",
    "ArenaConfig",
    "BlockEntity",
    "Body",
    "ControllerPhase",
    "EnvConfig",
    "EpisodeController",
    "EpisodeState",
    "InvalidRosterState",
    "PushBlockError",
    "SpawnSearchExhausted",
]
