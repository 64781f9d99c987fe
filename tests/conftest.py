import numpy as np
import pytest

from pushblock.config import EnvConfig
from pushblock.env.controller import EpisodeController
from pushblock.sim.entity import AgentEntity, BlockEntity, Body


@pytest.fixture
def make_agents():
    def _make(count: int = 4) -> list[AgentEntity]:
        return [
            AgentEntity(f"agent_{i}", Body(pos=np.array([-9.0 + 3.0 * i, -11.0, 1.0]), yaw=0.25 * i))
            for i in range(count)
        ]

    return _make


@pytest.fixture
def make_blocks():
    def _make(count: int = 3) -> list[BlockEntity]:
        return [
            BlockEntity(f"block_{i}", Body(pos=np.array([-9.0 + 3.0 * i, 11.0, 1.0]), half_size=[1.0, 1.0, 0.5]))
            for i in range(count)
        ]

    return _make


@pytest.fixture
def make_controller(make_agents, make_blocks):
    def _make(num_agents: int = 4, num_blocks: int = 3, **cfg_kwargs) -> EpisodeController:
        cfg_kwargs.setdefault("seed", 0)
        cfg = EnvConfig(**cfg_kwargs)
        return EpisodeController(cfg, make_agents(num_agents), make_blocks(num_blocks))

    return _make
