from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..config import EnvConfig
from ..errors import InvalidRosterState, SpawnSearchExhausted
from ..gen.spawn import SpawnPointFinder
from ..gen.transforms import quarter_turns, sample_rotation
from ..sim.entity import AgentEntity, BlockEntity, ResettableEntity
from ..sim.world import Arena, BoxOccupancy
from .feedback import FeedbackSequencer, SurfaceSlot
from .rewards import TeamRewardBroadcaster, TeamRoster

logger = logging.getLogger(__name__)


class ControllerPhase(Enum):
    RUNNING = "running"
    RESETTING = "resetting"


@dataclass
class EpisodeState:
    max_environment_steps: int
    initial_blocks: int
    elapsed_steps: int = 0
    remaining_blocks: int = 0
    arena_quarter_turns: int = 0
    episode_index: int = 0
    goals_scored: int = 0
    team_reward: float = 0.0


class EpisodeController:
    """
    Owns the entity lists, the step timer and the remaining-block counter for
    one arena, and runs the reset protocol.

    Driven from outside: call `tick()` once per fixed step and
    `on_goal_scored()` whenever the trigger collaborator reports a block in
    the goal. Reset is synchronous, so nothing observes a half-reset scene
    between calls.
    """

    def __init__(
        self,
        config: EnvConfig,
        agents: Sequence[AgentEntity],
        blocks: Sequence[BlockEntity],
        *,
        occupancy: BoxOccupancy | None = None,
        surface: SurfaceSlot | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.arena = Arena.from_config(config.arena)

        self.agents: list[AgentEntity] = list(agents)
        self.blocks: list[BlockEntity] = list(blocks)
        ids = [e.entity_id for e in (*self.agents, *self.blocks)]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"Duplicate entity ids: {dupes}")

        self.occupancy = occupancy if occupancy is not None else BoxOccupancy()
        for ent in (*self.agents, *self.blocks):
            self.occupancy.track(ent)

        self.spawner = SpawnPointFinder(
            self.arena,
            self.rng,
            max_attempts=config.spawn_max_attempts,
            grid_resolution=config.spawn_grid_resolution,
        )
        self.surface = surface if surface is not None else SurfaceSlot()
        self.feedback = FeedbackSequencer()
        self.broadcaster = TeamRewardBroadcaster()

        # Starting poses are the fallback for fixed placement and failed spawns.
        for ent in (*self.blocks, *self.agents):
            ent.capture_initial_pose()

        self.roster = TeamRoster()
        for agent in self.agents:
            self.roster.register(agent)

        self.phase = ControllerPhase.RUNNING
        self._state = EpisodeState(
            max_environment_steps=config.max_environment_steps,
            initial_blocks=len(self.blocks),
        )
        self._events: list[dict] = []
        self.last_outcome: dict | None = None

        self.reset_scene(reason="initial")

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def state(self) -> EpisodeState:
        return dataclasses.replace(self._state)

    @property
    def elapsed_steps(self) -> int:
        return self._state.elapsed_steps

    @property
    def remaining_blocks(self) -> int:
        return self._state.remaining_blocks

    def drain_events(self) -> list[dict]:
        events, self._events = self._events, []
        return events

    # ------------------------------------------------------------------
    # Inbound

    def tick(self) -> bool:
        """Advance one fixed step. Returns True if the step budget forced a reset."""
        self._state.elapsed_steps += 1
        self.feedback.advance(self.config.dt)
        if self._state.elapsed_steps > self._state.max_environment_steps:
            self.reset_scene(reason="timeout")
            return True
        return False

    def on_goal_scored(self, block: BlockEntity, score: float) -> bool:
        """
        Handle a block reaching its goal. Returns False if the event was ignored.

        Events for unknown or already scored blocks, and non-finite scores, are
        dropped before any state changes. When this goal clears the last block
        the scene resets in the same call, so that goal's ground flash is
        cleared along with every other pending effect and is never visible.
        """
        if not math.isfinite(score):
            logger.warning(f"Goal event with non-finite score {score!r} ignored")
            return False
        if not any(b is block for b in self.blocks):
            logger.warning(f"Goal event for unknown block {getattr(block, 'entity_id', block)!r} ignored")
            return False
        if not block.active:
            # Already scored this episode; a second trigger must not double count.
            logger.warning(f"Goal event for inactive block {block.entity_id} ignored")
            return False

        self._state.remaining_blocks = max(0, self._state.remaining_blocks - 1)
        done = self._state.remaining_blocks == 0
        block.deactivate()

        rewarded = self.broadcaster.broadcast(self.roster, score)
        self._state.goals_scored += 1
        self._state.team_reward += float(score)

        self.feedback.flash(self.surface, self.config.goal_scored_state, self.config.goal_feedback_duration_s)

        self._events.append(
            {
                "type": "goal_scored",
                "block": block.entity_id,
                "score": float(score),
                "rewarded": rewarded,
                "remaining": self._state.remaining_blocks,
                "step": self._state.elapsed_steps,
            }
        )

        if done:
            self.reset_scene(reason="goals_complete")
        return True

    # ------------------------------------------------------------------
    # Placement helpers

    def get_random_spawn_pos(self, entity: ResettableEntity | None = None) -> np.ndarray:
        """Free position in the spawn area. Raises SpawnSearchExhausted when the arena is saturated."""

        def probe(pos: np.ndarray, half_extents: np.ndarray) -> bool:
            return self.occupancy.is_occupied(pos, half_extents, ignore=entity)

        return self.spawner.find(probe)

    def get_random_yaw(self) -> float:
        return self.spawner.random_yaw()

    def _place(self, entity: ResettableEntity, random_position: bool, random_rotation: bool) -> None:
        assert entity.starting_pos is not None and entity.starting_yaw is not None
        pos = entity.starting_pos
        if random_position:
            try:
                pos = self.get_random_spawn_pos(entity)
            except SpawnSearchExhausted as e:
                logger.warning(f"{e}; placing {entity.entity_id} at its starting position")
                self._events.append({"type": "spawn_fallback", "entity": entity.entity_id, "attempts": e.attempts})
        yaw = self.get_random_yaw() if random_rotation else entity.starting_yaw
        entity.reset_to(pos, yaw)

    def reset_block(self, block: BlockEntity) -> None:
        """Move a single block to a fresh spawn position and stop it."""
        try:
            pos = self.get_random_spawn_pos(block)
        except SpawnSearchExhausted as e:
            logger.warning(f"{e}; block {block.entity_id} left in place")
            self._events.append({"type": "spawn_fallback", "entity": block.entity_id, "attempts": e.attempts})
            block.body.zero_velocity()
            return
        block.body.pos[:] = pos
        block.body.zero_velocity()

    # ------------------------------------------------------------------
    # Reset protocol

    def reset_scene(self, reason: str = "manual") -> None:
        self.phase = ControllerPhase.RESETTING
        try:
            self._reset_scene(reason)
        finally:
            self.phase = ControllerPhase.RUNNING

    def _reset_scene(self, reason: str) -> None:
        cfg = self.config
        st = self._state
        finished_steps = st.elapsed_steps

        st.elapsed_steps = 0

        rotation = sample_rotation(self.rng)
        self.arena.rotate(quarter_turns(rotation))
        st.arena_quarter_turns = self.arena.quarter_turns

        try:
            # Intentionally no end_episode() on the construction-time reset.
            live_agents = self._end_agent_episodes(signal=reason != "initial")
        except InvalidRosterState as e:
            # Legacy strict mode: abandon the rest of the reset, leave the tick loop running.
            logger.error(f"Reset aborted ({reason}): {e}")
            self._events.append({"type": "reset_aborted", "reason": reason, "agent": e.agent_id})
            return

        for agent in live_agents:
            self._place(agent, cfg.use_random_agent_position, cfg.use_random_agent_rotation)

        for block in self.blocks:
            self._place(block, cfg.use_random_block_position, cfg.use_random_block_rotation)
            block.activate()

        st.remaining_blocks = len(self.blocks)

        # The scene is authoritative again: drop any pending revert and show the default state.
        self.feedback.invalidate_all()
        self.surface.restore_default()

        outcome = None
        if reason != "initial":
            outcome = self.last_outcome = {
                "episode": st.episode_index,
                "reason": reason,
                "steps": finished_steps,
                "goals_scored": st.goals_scored,
                "team_reward": st.team_reward,
            }
            st.episode_index += 1
        st.goals_scored = 0
        st.team_reward = 0.0

        self._events.append(
            {
                "type": "episode_reset",
                "reason": reason,
                "episode": st.episode_index,
                "rotation_deg": self.arena.rotation_deg,
                "outcome": dict(outcome) if outcome is not None else None,
            }
        )
        logger.info(f"Episode reset ({reason}); starting episode {st.episode_index} at {self.arena.rotation_deg:.0f} deg")

    def _end_agent_episodes(self, signal: bool) -> list[AgentEntity]:
        live: list[AgentEntity] = []
        for agent in self.agents:
            if not agent.is_valid:
                if self.config.strict_roster:
                    raise InvalidRosterState(agent.entity_id)
                logger.warning(f"Agent {agent.entity_id} is no longer valid; skipping it during reset")
                self._events.append({"type": "roster_skip", "agent": agent.entity_id})
                continue
            live.append(agent)
        if signal:
            # Nothing has run yet on the initial reset, so there is no episode to end.
            for agent in live:
                agent.end_episode()
        return live
