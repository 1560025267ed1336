# config.py
"""
Experimental configuration for a simulation run.

This module defines SimulationConfig, the immutable set of scalar
parameters read from the "simulation_parameters" section of config.json.
Missing keys fall back to the defaults in constants.py.
"""
import logging
import math
import numbers
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional, Tuple

from constants import (
    COEFFICIENT_MAX, COEFFICIENT_MIN,
    DEFAULT_DISTANCE_MAX, DEFAULT_FORCE_MULTIPLIER, DEFAULT_FRICTION_HALF_LIFE,
    DEFAULT_FRICTION_MODE, DEFAULT_HALF_EXTENT, DEFAULT_PARTICLE_COUNT,
    DEFAULT_PARTICLE_SIZE, DEFAULT_SEED, DEFAULT_SPAWN_EXTENT,
    DEFAULT_TIME_STEP, FRICTION_MODES
)
from interaction import ParticleType

# --- Data Contracts ---
#
# class SimulationConfig (frozen dataclass):
#   - from_params(params: Dict[str, Any]) -> SimulationConfig
#     - Inputs: the "simulation_parameters" dictionary from config.json.
#     - Outputs: a validated, read-only configuration.
#     - Side Effects: Logs unknown keys at WARNING and validation failures
#       at CRITICAL.
#     - Invariants:
#       - particle_count >= 0 and particle_types >= 1.
#       - particle_size, force_multiplier, distance_max,
#         friction_half_life, half_extent and time_step are finite and > 0.
#       - 0 <= spawn_extent <= half_extent.
#       - friction_mode is one of constants.FRICTION_MODES.
#       - interaction_matrix is None or particle_types x particle_types.
#       - Every matrix entry and override value is a number in
#         [COEFFICIENT_MIN, COEFFICIENT_MAX]; override types name a type
#         below particle_types.


def _fail(msg: str) -> None:
    logging.critical(msg)
    raise ValueError(msg)


def _coefficient(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        _fail(f"Configuration error: {where} must be a number, got {value!r}.")
    value = float(value)
    if not math.isfinite(value) or not COEFFICIENT_MIN <= value <= COEFFICIENT_MAX:
        _fail(
            f"Configuration error: {where} = {value} is outside "
            f"[{COEFFICIENT_MIN}, {COEFFICIENT_MAX}]."
        )
    return value


@dataclass(frozen=True)
class SimulationConfig:
    """Scalar constants fixed for the lifetime of a simulation."""
    seed: Optional[int] = DEFAULT_SEED
    particle_count: int = DEFAULT_PARTICLE_COUNT
    particle_types: int = len(ParticleType)
    particle_size: float = DEFAULT_PARTICLE_SIZE
    force_multiplier: float = DEFAULT_FORCE_MULTIPLIER
    distance_max: float = DEFAULT_DISTANCE_MAX
    friction_half_life: float = DEFAULT_FRICTION_HALF_LIFE
    half_extent: float = DEFAULT_HALF_EXTENT
    spawn_extent: float = DEFAULT_SPAWN_EXTENT
    time_step: float = DEFAULT_TIME_STEP
    friction_mode: str = DEFAULT_FRICTION_MODE
    interaction_matrix: Optional[Tuple[Tuple[float, ...], ...]] = None
    symmetric_overrides: Tuple[Tuple[Any, Any, float], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if isinstance(self.particle_count, bool) or not isinstance(self.particle_count, int) or self.particle_count < 0:
            _fail(f"Configuration error: particle_count must be a non-negative integer, got {self.particle_count!r}.")
        if isinstance(self.particle_types, bool) or not isinstance(self.particle_types, int) or self.particle_types < 1:
            _fail(f"Configuration error: particle_types must be a positive integer, got {self.particle_types!r}.")

        for name in ("particle_size", "force_multiplier", "distance_max",
                     "friction_half_life", "half_extent", "time_step"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                _fail(f"Configuration error: {name} must be a positive number, got {value!r}.")

        if not 0 <= self.spawn_extent <= self.half_extent:
            _fail(
                f"Configuration error: spawn_extent ({self.spawn_extent}) must lie "
                f"within [0, half_extent ({self.half_extent})]."
            )
        if self.friction_mode not in FRICTION_MODES:
            _fail(
                f"Configuration error: unknown friction_mode '{self.friction_mode}'. "
                f"Expected one of {list(FRICTION_MODES)}."
            )

        if self.interaction_matrix is not None:
            # Normalise nested lists from JSON into hashable tuples.
            try:
                rows = tuple(tuple(row) for row in self.interaction_matrix)
            except TypeError:
                _fail(f"Configuration error: interaction_matrix must be a list of rows, got {self.interaction_matrix!r}.")
            shape = (len(rows), len(rows[0]) if rows else 0)
            if len(rows) != self.particle_types or any(len(row) != self.particle_types for row in rows):
                _fail(
                    f"Configuration error: Interaction matrix shape {shape} "
                    f"does not match particle_types ({self.particle_types}). The matrix must be square "
                    f"and its dimensions must equal the number of particle types."
                )
            rows = tuple(
                tuple(_coefficient(v, f"interaction_matrix[{i}][{j}]") for j, v in enumerate(row))
                for i, row in enumerate(rows)
            )
            object.__setattr__(self, "interaction_matrix", rows)

        if not isinstance(self.symmetric_overrides, (list, tuple)):
            _fail(f"Configuration error: symmetric_overrides must be a list, got {self.symmetric_overrides!r}.")
        overrides = []
        for entry in self.symmetric_overrides:
            if isinstance(entry, (str, bytes)) or not isinstance(entry, (list, tuple)) or len(entry) != 3:
                _fail(f"Configuration error: symmetric override {entry!r} must be [type_a, type_b, value].")
            type_a, type_b, value = entry
            for label in (type_a, type_b):
                try:
                    index = ParticleType.parse(label)
                except ValueError as e:
                    _fail(f"Configuration error: symmetric override {entry!r}: {e}")
                if not 0 <= index < self.particle_types:
                    _fail(
                        f"Configuration error: symmetric override {entry!r} names type {index}, "
                        f"outside 0..{self.particle_types - 1}."
                    )
            overrides.append((type_a, type_b, _coefficient(value, f"symmetric override {list(entry)!r}")))
        object.__setattr__(self, "symmetric_overrides", tuple(overrides))

    @classmethod
    def from_params(cls, params: Dict[str, Any]) -> "SimulationConfig":
        """
        Builds a configuration from the simulation_parameters dictionary.

        Unknown keys are ignored with a warning so that older config files
        keep loading.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            logging.warning(f"Ignoring unknown simulation parameters: {unknown}")
        return cls(**{key: value for key, value in params.items() if key in known})

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
