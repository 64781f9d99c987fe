import pytest

from pushblock.config import ArenaConfig, EnvConfig


def test_defaults_match_reference_scene():
    cfg = EnvConfig()
    assert cfg.max_environment_steps == 25000
    assert cfg.goal_feedback_duration_s == pytest.approx(0.5)
    assert cfg.use_random_agent_position and cfg.use_random_agent_rotation
    assert cfg.use_random_block_position and cfg.use_random_block_rotation
    assert cfg.strict_roster is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_environment_steps": 0},
        {"dt": 0.0},
        {"dt": float("nan")},
        {"goal_feedback_duration_s": -0.1},
        {"goal_feedback_duration_s": float("nan")},
        {"goal_feedback_duration_s": float("inf")},
        {"spawn_max_attempts": 0},
        {"spawn_grid_resolution": -1},
    ],
)
def test_env_config_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        EnvConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"spawn_margin_multiplier": 0.0},
        {"spawn_margin_multiplier": 1.5},
        {"half_extents": (0.0, 5.0)},
        {"center": (0.0, 0.0)},
        {"probe_half_extents": (1.0, -1.0, 0.0)},
    ],
)
def test_arena_config_rejects_bad_values(kwargs):
    with pytest.raises(ValueError):
        ArenaConfig(**kwargs)


def test_config_is_frozen():
    cfg = EnvConfig()
    with pytest.raises(AttributeError):
        cfg.max_environment_steps = 10  # type: ignore[misc]


def test_from_dict_builds_nested_arena():
    cfg = EnvConfig.from_dict(
        {
            "max_environment_steps": 50,
            "use_random_agent_rotation": False,
            "arena": {"half_extents": [10.0, 8.0], "spawn_margin_multiplier": 0.8},
        }
    )
    assert cfg.max_environment_steps == 50
    assert cfg.use_random_agent_rotation is False
    assert cfg.arena.half_extents == (10.0, 8.0)
    assert cfg.arena.spawn_margin_multiplier == pytest.approx(0.8)


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Unknown EnvConfig keys"):
        EnvConfig.from_dict({"max_steps": 10})
    with pytest.raises(ValueError, match="Unknown ArenaConfig keys"):
        EnvConfig.from_dict({"arena": {"radius": 3.0}})
