"""Tests for SimulationConfig validation."""
import logging

import pytest

from config import SimulationConfig
from constants import DEFAULT_HALF_EXTENT, DEFAULT_PARTICLE_COUNT, FRICTION_PER_PAIR
from interaction import ParticleType


def test_defaults_match_reference_run():
    config = SimulationConfig()
    assert config.particle_count == DEFAULT_PARTICLE_COUNT
    assert config.particle_types == 3
    assert config.half_extent == DEFAULT_HALF_EXTENT
    assert config.distance_max == 100.0
    assert config.force_multiplier == 50.0
    assert config.friction_half_life == pytest.approx(0.02)
    assert config.interaction_matrix is None


def test_from_params_fills_missing_keys():
    config = SimulationConfig.from_params({"particle_count": 12, "friction_mode": FRICTION_PER_PAIR})
    assert config.particle_count == 12
    assert config.friction_mode == FRICTION_PER_PAIR
    assert config.distance_max == 100.0


def test_from_params_warns_on_unknown_keys(caplog):
    with caplog.at_level(logging.WARNING):
        config = SimulationConfig.from_params({"max_velocity": 5.0})
    assert config.particle_count == DEFAULT_PARTICLE_COUNT
    assert "max_velocity" in caplog.text


def test_config_is_frozen():
    config = SimulationConfig()
    with pytest.raises(AttributeError):
        config.particle_count = 10


@pytest.mark.parametrize("overrides", [
    {"particle_count": -1},
    {"particle_types": 0},
    {"distance_max": 0.0},
    {"friction_half_life": -0.5},
    {"half_extent": float("inf")},
    {"time_step": 0.0},
    {"spawn_extent": 500.0, "half_extent": 450.0},
    {"friction_mode": "sticky"},
    {"interaction_matrix": [[0.0, 0.0], [0.0, 0.0]]},
    {"symmetric_overrides": [["RED", "BLUE"]]},
    {"symmetric_overrides": [["RED", "BLUE", 1.5]]},
    {"symmetric_overrides": [5]},
    {"symmetric_overrides": 5},
    {"symmetric_overrides": [["RED", "PURPLE", 0.5]]},
    {"symmetric_overrides": [["RED", "BLUE", "strong"]]},
    {"particle_types": 2, "symmetric_overrides": [["RED", "BLUE", 0.5]]},
    {"particle_types": 2, "interaction_matrix": [[0.0, 2.0], [0.0, 0.0]]},
    {"particle_types": 2, "interaction_matrix": [[0.0, "x"], [0.0, 0.0]]},
    {"particle_types": 2, "interaction_matrix": [[0.0, float("nan")], [0.0, 0.0]]},
    {"interaction_matrix": 7},
])
def test_invalid_values_raise_and_log(overrides, caplog):
    with caplog.at_level(logging.CRITICAL):
        with pytest.raises(ValueError):
            SimulationConfig(**overrides)
    assert "Configuration error" in caplog.text


def test_interaction_matrix_is_normalised_to_tuples():
    config = SimulationConfig(particle_types=2, interaction_matrix=[[1, 0], [0, -1]])
    assert config.interaction_matrix == ((1.0, 0.0), (0.0, -1.0))
    assert config.as_dict()["interaction_matrix"] == ((1.0, 0.0), (0.0, -1.0))


def test_overrides_accept_names_and_indices():
    config = SimulationConfig(symmetric_overrides=[["blue", 0, 1], (ParticleType.GREEN, "RED", -0.5)])
    assert config.symmetric_overrides == (("blue", 0, 1.0), (ParticleType.GREEN, "RED", -0.5))
