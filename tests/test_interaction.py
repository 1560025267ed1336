"""Tests for particle types, the interaction matrix and the rule factory."""
import threading

import numpy as np
import pytest

from config import SimulationConfig
from interaction import InteractionMatrix, ParticleType, RuleSetFactory, format_matrix


def test_particle_type_indices_are_bijective():
    indices = [t.index() for t in ParticleType]
    assert indices == [0, 1, 2]
    assert ParticleType.parse("blue") == 2
    assert ParticleType.parse(ParticleType.GREEN) == 1
    assert ParticleType.parse(0) == 0


def test_particle_type_parse_rejects_unknown_names():
    with pytest.raises(ValueError):
        ParticleType.parse("PURPLE")
    with pytest.raises(ValueError):
        ParticleType.parse(1.5)


def test_new_matrix_is_zero():
    matrix = InteractionMatrix(3)
    assert matrix.shape == (3, 3)
    assert matrix.to_list() == [[0.0] * 3] * 3


def test_set_and_get_are_asymmetric():
    matrix = InteractionMatrix(3)
    matrix.set(ParticleType.RED, ParticleType.GREEN, 0.75)
    matrix.set(1, 0, -0.25)
    assert matrix.get(0, 1) == pytest.approx(0.75)
    assert matrix.get(ParticleType.GREEN, ParticleType.RED) == pytest.approx(-0.25)


def test_set_symmetric_writes_both_entries():
    matrix = InteractionMatrix(3)
    matrix.set_symmetric(ParticleType.BLUE, ParticleType.RED, 1.0)
    assert matrix.get(2, 0) == 1.0
    assert matrix.get(0, 2) == 1.0


@pytest.mark.parametrize("value", [1.01, -1.5, float("nan"), float("inf")])
def test_set_rejects_out_of_range_values(value):
    matrix = InteractionMatrix(2)
    with pytest.raises(ValueError):
        matrix.set(0, 1, value)
    with pytest.raises(ValueError):
        matrix.set_symmetric(0, 1, value)
    assert matrix.get(0, 1) == 0.0


@pytest.mark.parametrize("i, j", [(3, 0), (0, 3), (-1, 0), (0, -1)])
def test_out_of_range_index_fails_fast(i, j):
    matrix = InteractionMatrix(3)
    with pytest.raises(IndexError):
        matrix.get(i, j)
    with pytest.raises(IndexError):
        matrix.set(i, j, 0.5)


def test_nudge_clamps_into_range():
    matrix = InteractionMatrix(2)
    assert matrix.nudge(0, 0, 0.05) == pytest.approx(0.05)
    assert matrix.nudge(0, 0, 5.0) == 1.0
    assert matrix.nudge(0, 0, -7.0) == -1.0


def test_reset_zero_fills():
    matrix = InteractionMatrix.from_values([[0.5, -0.5], [1.0, -1.0]])
    matrix.reset()
    assert not np.any(matrix.snapshot())


def test_randomize_with_fixed_seed_stays_in_range():
    matrix = InteractionMatrix(5)
    matrix.randomize(np.random.default_rng(7))
    values = matrix.snapshot()
    assert values.shape == (5, 5)
    assert np.all(values >= -1.0)
    assert np.all(values <= 1.0)
    # Not all equal: each cell is drawn independently.
    assert len(np.unique(values)) > 1


def test_randomize_is_reproducible():
    first = InteractionMatrix(3)
    second = InteractionMatrix(3)
    first.randomize(np.random.default_rng(123))
    second.randomize(np.random.default_rng(123))
    assert np.array_equal(first.snapshot(), second.snapshot())


def test_snapshot_is_read_only_copy():
    matrix = InteractionMatrix(2)
    values = matrix.snapshot()
    with pytest.raises(ValueError):
        values[0, 0] = 0.5
    matrix.set(0, 0, 0.5)
    assert values[0, 0] == 0.0


def test_from_values_validates_shape_and_range():
    with pytest.raises(ValueError):
        InteractionMatrix.from_values([[0.0, 0.1]])
    with pytest.raises(ValueError):
        InteractionMatrix.from_values([[2.0]])
    with pytest.raises(ValueError):
        InteractionMatrix.from_values([])


def test_invalid_type_count_raises_error():
    with pytest.raises(ValueError):
        InteractionMatrix(0)


def test_concurrent_edits_keep_matrix_valid():
    matrix = InteractionMatrix(3)

    def editor():
        for k in range(500):
            matrix.set_symmetric(0, 2, 1.0 if k % 2 else -1.0)

    thread = threading.Thread(target=editor)
    thread.start()
    for _ in range(500):
        values = matrix.snapshot()
        # A symmetric edit is never observed half-applied.
        assert values[0, 2] == values[2, 0]
    thread.join()


def test_factory_default_is_zero():
    matrix = RuleSetFactory().default()
    assert matrix.num_types == len(ParticleType)
    assert not np.any(matrix.snapshot())


def test_factory_applies_override_after_randomizing():
    factory = RuleSetFactory(3).with_symmetric_override(ParticleType.BLUE, ParticleType.RED, 1.0)
    for seed in range(5):
        matrix = factory.randomize(np.random.default_rng(seed))
        assert matrix.get(ParticleType.BLUE, ParticleType.RED) == 1.0
        assert matrix.get(ParticleType.RED, ParticleType.BLUE) == 1.0


def test_factory_rejects_bad_override():
    with pytest.raises(ValueError):
        RuleSetFactory(3).with_symmetric_override("RED", "GREEN", 3.0)
    with pytest.raises(IndexError):
        RuleSetFactory(2).with_symmetric_override("RED", "BLUE", 0.5)


def test_factory_from_config_uses_explicit_matrix():
    config = SimulationConfig(
        particle_types=2,
        interaction_matrix=[[0.1, 0.2], [0.3, 0.4]],
        symmetric_overrides=[[0, 1, -1.0]],
    )
    matrix = RuleSetFactory(2).from_config(config)
    assert matrix.get(0, 0) == pytest.approx(0.1)
    assert matrix.get(1, 1) == pytest.approx(0.4)
    assert matrix.get(0, 1) == -1.0
    assert matrix.get(1, 0) == -1.0


def test_factory_from_config_randomizes_from_seed():
    config = SimulationConfig(seed=9)
    first = RuleSetFactory().from_config(config)
    second = RuleSetFactory().from_config(config)
    assert np.array_equal(first.snapshot(), second.snapshot())


def test_format_matrix_renders_rows():
    text = format_matrix([[1.0, -0.5], [0.0, 0.25]])
    assert text.splitlines() == ["+1.000 -0.500", "+0.000 +0.250"]


def test_replace_swaps_whole_matrix():
    matrix = InteractionMatrix(2)
    matrix.replace([[0.5, -0.5], [1.0, -1.0]])
    assert matrix.to_list() == [[0.5, -0.5], [1.0, -1.0]]


@pytest.mark.parametrize("values", [[[0.0]], [[0.0, 2.0], [0.0, 0.0]], [[0.0, float("nan")], [0.0, 0.0]]])
def test_replace_rejects_bad_values(values):
    matrix = InteractionMatrix.from_values([[0.1, 0.2], [0.3, 0.4]])
    with pytest.raises(ValueError):
        matrix.replace(values)
    assert matrix.get(0, 1) == pytest.approx(0.2)


def test_factory_reroll_updates_live_matrix_and_keeps_pins():
    factory = RuleSetFactory(3).with_symmetric_override("GREEN", "BLUE", -1.0)
    matrix = factory.default()

    returned = factory.reroll(matrix, np.random.default_rng(8))

    assert returned is matrix
    assert matrix.get(ParticleType.GREEN, ParticleType.BLUE) == -1.0
    assert matrix.get(ParticleType.BLUE, ParticleType.GREEN) == -1.0
    expected = factory.randomize(np.random.default_rng(8)).snapshot()
    assert np.array_equal(matrix.snapshot(), expected)


def test_reroll_is_never_observed_without_pins():
    factory = RuleSetFactory(3).with_symmetric_override("BLUE", "RED", 1.0)
    matrix = factory.randomize(np.random.default_rng(0))

    def editor():
        rng = np.random.default_rng(1)
        for _ in range(300):
            factory.reroll(matrix, rng)

    thread = threading.Thread(target=editor)
    thread.start()
    for _ in range(300):
        values = matrix.snapshot()
        assert values[2, 0] == 1.0
        assert values[0, 2] == 1.0
    thread.join()
