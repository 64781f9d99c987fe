# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pushblock import AgentEntity, BlockEntity, Body, EnvConfig, EpisodeController


def build_scene(num_agents: int, num_blocks: int) -> tuple[list[AgentEntity], list[BlockEntity]]:
    # Authored layout: agents along one wall, blocks along the other.
    agents = [
        AgentEntity(f"agent_{i}", Body(pos=[-8.0 + 4.0 * i, -10.0, 1.0], half_size=[0.5, 0.5, 0.5]))
        for i in range(num_agents)
    ]
    blocks = [
        BlockEntity(f"block_{i}", Body(pos=[-8.0 + 4.0 * i, 10.0, 1.0], half_size=[1.0, 1.0, 0.5]))
        for i in range(num_blocks)
    ]
    return agents, blocks


def run(controller: EpisodeController, ticks: int, goal_prob: float, score: float, rng: np.random.Generator) -> dict:
    outcomes = []
    goals = 0
    for _ in range(ticks):
        # Stand-in for the goal trigger collaborator.
        for block in list(controller.blocks):
            if block.active and rng.random() < goal_prob and controller.on_goal_scored(block, score):
                goals += 1
        controller.tick()
        for event in controller.drain_events():
            if event["type"] == "episode_reset" and event["outcome"] is not None:
                outcomes.append(event["outcome"])
    return {"ticks": ticks, "goals": goals, "episodes": outcomes}


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", type=str, default=None, help="JSON file with EnvConfig fields")
    parser.add_argument("--ticks", type=int, default=2000)
    parser.add_argument("--agents", type=int, default=4)
    parser.add_argument("--blocks", type=int, default=3)
    parser.add_argument("--max-steps", type=int, default=500, help="Step budget per episode")
    parser.add_argument("--goal-prob", type=float, default=0.002, help="Per-tick chance a block scores")
    parser.add_argument("--score", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--log-level", type=str, default="INFO")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.config:
        cfg = EnvConfig.from_dict(json.loads(Path(args.config).read_text(encoding="utf-8")))
    else:
        cfg = EnvConfig(max_environment_steps=args.max_steps, seed=args.seed)

    agents, blocks = build_scene(args.agents, args.blocks)
    controller = EpisodeController(cfg, agents, blocks)
    result = run(controller, args.ticks, args.goal_prob, args.score, np.random.default_rng(args.seed))

    for ep in result["episodes"]:
        print(f"episode {ep['episode']}: {ep}")

    reasons: dict[str, int] = {}
    for ep in result["episodes"]:
        reasons[ep["reason"]] = reasons.get(ep["reason"], 0) + 1
    rewards = {a.entity_id: round(a.total_reward, 3) for a in agents}
    print(f"summary: ticks={result['ticks']} goals={result['goals']} resets={reasons} rewards={rewards}")


if __name__ == "__main__":
    main()
