import numpy as np
from hypothesis import settings
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, initialize, invariant, rule

from pushblock.config import EnvConfig
from pushblock.env.controller import ControllerPhase, EpisodeController
from pushblock.sim.entity import AgentEntity, BlockEntity, Body


def _scene(num_agents: int, num_blocks: int) -> tuple[list[AgentEntity], list[BlockEntity]]:
    agents = [AgentEntity(f"agent_{i}", Body(pos=[-9.0 + 3.0 * i, -11.0, 1.0])) for i in range(num_agents)]
    blocks = [BlockEntity(f"block_{i}", Body(pos=[-9.0 + 3.0 * i, 11.0, 1.0])) for i in range(num_blocks)]
    return agents, blocks


class ControllerStateMachine(RuleBasedStateMachine):
    def __init__(self):
        super().__init__()
        self.ctrl: EpisodeController | None = None
        self.expected_reward: dict[str, float] = {}

    @initialize(
        num_agents=st.integers(min_value=1, max_value=4),
        num_blocks=st.integers(min_value=1, max_value=3),
        budget=st.integers(min_value=1, max_value=8),
        seed=st.integers(min_value=0, max_value=2**16),
    )
    def init_controller(self, num_agents, num_blocks, budget, seed):
        agents, blocks = _scene(num_agents, num_blocks)
        cfg = EnvConfig(max_environment_steps=budget, seed=seed, spawn_max_attempts=200)
        self.ctrl = EpisodeController(cfg, agents, blocks)
        self.expected_reward = {a.entity_id: 0.0 for a in agents}

    @rule()
    def tick(self):
        self.ctrl.tick()

    @rule(idx=st.integers(min_value=0, max_value=2), score=st.floats(min_value=-1.0, max_value=1.0))
    def score_goal(self, idx, score):
        if idx >= len(self.ctrl.blocks):
            return
        block = self.ctrl.blocks[idx]
        members = self.ctrl.roster.active_members()
        if self.ctrl.on_goal_scored(block, score):
            for agent in members:
                self.expected_reward[agent.entity_id] += score

    @rule(idx=st.integers(min_value=0, max_value=3))
    def destroy_agent(self, idx):
        if idx < len(self.ctrl.agents):
            aid = self.ctrl.agents[idx].entity_id
            self.ctrl.agents[idx].destroy()
            # Destroyed agents keep what they had.
            self.expected_reward[aid] = self.ctrl.agents[idx].total_reward

    @rule()
    def force_reset(self):
        self.ctrl.reset_scene()
        assert self.ctrl.elapsed_steps == 0
        assert self.ctrl.remaining_blocks == len(self.ctrl.blocks)
        assert all(b.active for b in self.ctrl.blocks)
        for ent in (*self.ctrl.agents, *self.ctrl.blocks):
            if ent.active:
                assert not np.any(ent.body.vel)
                assert not np.any(ent.body.ang_vel)

    @invariant()
    def counters_bounded(self):
        if self.ctrl is None:
            return
        st_ = self.ctrl.state
        assert 0 <= st_.elapsed_steps <= st_.max_environment_steps
        assert 0 <= st_.remaining_blocks <= len(self.ctrl.blocks)
        assert self.ctrl.phase is ControllerPhase.RUNNING

    @invariant()
    def remaining_matches_active_blocks(self):
        if self.ctrl is None:
            return
        assert self.ctrl.remaining_blocks == sum(b.active for b in self.ctrl.blocks)

    @invariant()
    def rewards_accumulate(self):
        if self.ctrl is None:
            return
        for agent in self.ctrl.agents:
            assert abs(agent.total_reward - self.expected_reward[agent.entity_id]) < 1e-6


ControllerStateMachine.TestCase.settings = settings(max_examples=50, stateful_step_count=40, deadline=None)
TestController = ControllerStateMachine.TestCase
