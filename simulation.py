# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the Simulation class, which is responsible for
advancing the state of the particle system by one time step. It computes
inter-particle forces, applies friction, integrates positions and
reflects particles off the walls of the square arena.
"""
import logging
import math
import time
import numpy as np
from dataclasses import dataclass
from typing import Optional
from numba import jit, prange

from config import SimulationConfig
from constants import FRICTION_PER_PAIR, TICK_RATE_SMOOTHING
from force import force
from interaction import InteractionMatrix, RuleSetFactory
from particle import ParticleSystem

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, matrix: InteractionMatrix,
#              config: SimulationConfig, rules: Optional[RuleSetFactory] = None,
#              rng: Optional[np.random.Generator] = None):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - matrix: The shared InteractionMatrix. The simulation reads it
#         once per tick; an external editor may write it between ticks.
#       - config: Scalar constants for the run.
#       - rules: Factory holding the symmetric pins, reused for rerolls.
#       - rng: Generator for rerolls. Defaults to one seeded from
#         config.seed.
#     - Side Effects: Stores references to particles, matrix and config.
#     - Invariants: matrix.num_types == particles.particle_types ==
#       config.particle_types.
#
#   - apply_forces(self, dt: float) -> None:
#     - Side Effects: Damps and updates particle velocities. Positions are
#       only read.
#
#   - apply_movement(self, dt: float) -> None:
#     - Side Effects: Integrates positions, reflects at the boundary,
#       advances the step counter and elapsed time, and updates the
#       smoothed wall-clock tick rate.
#     - Invariants: Particle count remains constant. Every coordinate
#       lies in [-half_extent, half_extent] afterwards.
#
#   - step(self, dt: Optional[float] = None) -> None:
#     - apply_forces then apply_movement, with config.time_step by default.
#
#   - randomize_interaction_matrix(self, rng=None) -> None:
#     - Rerolls the shared matrix through the factory, so pins survive.
#
#   - snapshot(self) -> SimulationSnapshot:
#     - Read-only copies of the current state for display code.
#
# Complexity: apply_forces is O(n^2) in the particle count. Every ordered
# pair of distinct particles is visited once per tick.


@jit(nopython=True, parallel=True)
def _accumulate_forces_numba(
    positions, velocities, types, interaction_matrix,
    dt, distance_max, force_scale, pair_decay
):
    """
    Numba-jitted all-pairs force pass.

    Each particle i sums the pull of every other particle j using the
    coefficient interaction_matrix[type_i, type_j], and only its own
    velocity is changed. The pair (j, i) is evaluated separately with its
    own coefficient, so interactions are asymmetric and Newton's third
    law does not hold.

    Iterations over i are independent: positions are read-only here and
    row i of velocities is written only by iteration i, in a fixed j order.
    """
    particle_count = positions.shape[0]

    for i in prange(particle_count):
        pos_x = positions[i, 0]
        pos_y = positions[i, 1]
        type_i = types[i]
        vel_x = velocities[i, 0]
        vel_y = velocities[i, 1]

        for j in range(particle_count):
            if i == j:
                continue

            dx = positions[j, 0] - pos_x
            dy = positions[j, 1] - pos_y
            distance = math.hypot(dx, dy)

            # Coincident particles have no direction and are skipped.
            if distance > 0.0 and distance < distance_max:
                coefficient = interaction_matrix[type_i, types[j]]
                magnitude = force(distance / distance_max, coefficient) * force_scale

                # pair_decay is 1.0 unless friction compounds per pair.
                vel_x *= pair_decay
                vel_y *= pair_decay
                vel_x += dx / distance * magnitude * dt
                vel_y += dy / distance * magnitude * dt

        velocities[i, 0] = vel_x
        velocities[i, 1] = vel_y


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view of the simulation for telemetry and display."""
    step_count: int
    elapsed_time: float
    positions: np.ndarray
    velocities: np.ndarray
    types: np.ndarray
    interaction_matrix: np.ndarray
    ticks_per_second: float = 0.0

    @property
    def average_speed(self) -> float:
        if len(self.velocities) == 0:
            return 0.0
        return float(np.mean(np.linalg.norm(self.velocities, axis=1)))


def _frozen_copy(array: np.ndarray) -> np.ndarray:
    copy = array.copy()
    copy.setflags(write=False)
    return copy


class Simulation:
    """
    Advances a ParticleSystem under an InteractionMatrix, one tick at a time.
    """
    def __init__(
        self,
        particles: ParticleSystem,
        matrix: InteractionMatrix,
        config: SimulationConfig,
        rules: Optional[RuleSetFactory] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleSystem): The particle system to simulate.
            matrix (InteractionMatrix): Shared, live-editable interaction rules.
            config (SimulationConfig): Simulation parameters.
            rules (RuleSetFactory): Pins re-applied whenever the matrix is
                rerolled. Defaults to a factory without pins.
            rng: Generator for rerolls. Defaults to one seeded from config.seed.
        """
        self.particles = particles
        self.interaction_matrix = matrix
        self.config = config
        self.rules = rules if rules is not None else RuleSetFactory(matrix.num_types)
        # Rule 12: All randomness is controlled by a single master seed.
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

        self.distance_max = float(config.distance_max)
        self.force_multiplier = float(config.force_multiplier)
        self.friction_half_life = float(config.friction_half_life)
        self.half_extent = float(config.half_extent)
        self.friction_per_pair = config.friction_mode == FRICTION_PER_PAIR

        # Rule 11: Performance - the force vector is scaled by both constants,
        # so combine them once instead of inside the hot loop.
        self.force_scale = self.distance_max * self.force_multiplier

        self.step_count = 0
        self.elapsed_time = 0.0

        # Wall-clock tick rate, smoothed like a frame-rate counter.
        self.clock = time.perf_counter
        self._last_tick_wall: Optional[float] = None
        self._smoothed_interval: Optional[float] = None

        # Rule 7: Enforce data contracts. Validate dimensions on initialization.
        num_types = self.particles.particle_types
        if matrix.num_types != num_types or config.particle_types != num_types or self.rules.num_types != num_types:
            msg = (
                f"Configuration error: Interaction matrix shape {matrix.shape} "
                f"does not match particle_types ({num_types}, configured "
                f"{config.particle_types}). The matrix must be square "
                f"and its dimensions must equal the number of particle types."
            )
            logging.critical(msg)
            raise ValueError(msg)

        logging.info("Simulation logic initialized and configuration validated.")
        logging.info(
            f"All-pairs force pass over {self.particles.particle_count} particles, "
            f"cutoff {self.distance_max:.1f}, friction mode '{config.friction_mode}'."
        )

    @classmethod
    def from_config(cls, config: SimulationConfig) -> "Simulation":
        """
        Builds particles and rules from a configuration.

        A single generator seeded from config.seed drives both the spawn
        and the matrix, so equal seeds reproduce a run exactly.
        """
        rng = np.random.default_rng(config.seed)
        particles = ParticleSystem.spawn(config, rng)
        rules = RuleSetFactory(config.particle_types)
        matrix = rules.from_config(config, rng)
        return cls(particles, matrix, config, rules=rules, rng=rng)

    def _check_dt(self, dt: Optional[float]) -> float:
        if dt is None:
            return float(self.config.time_step)
        dt = float(dt)
        if not math.isfinite(dt) or dt < 0.0:
            raise ValueError(f"Time step must be finite and non-negative, got {dt}.")
        return dt

    def apply_forces(self, dt: Optional[float] = None) -> None:
        """
        Runs the friction and pairwise force pass for one tick.

        Velocities change; positions are read from the pre-tick state.
        """
        dt = self._check_dt(dt)
        # One consistent copy of the rules per tick, however the editor
        # changes them meanwhile.
        interaction_matrix = np.array(self.interaction_matrix.snapshot(), dtype=np.float64)

        # Exponential friction with the configured half-life.
        decay = 0.5 ** (dt / self.friction_half_life)
        if self.friction_per_pair:
            pair_decay = decay
        else:
            self.particles.velocities *= decay
            pair_decay = 1.0

        _accumulate_forces_numba(
            self.particles.positions, self.particles.velocities,
            self.particles.types, interaction_matrix,
            dt, self.distance_max, self.force_scale, pair_decay
        )

    def apply_movement(self, dt: Optional[float] = None) -> None:
        """
        Integrates positions and reflects particles off the arena walls.
        """
        dt = self._check_dt(dt)
        pos = self.particles.positions
        vel = self.particles.velocities

        # Explicit Euler step, each axis handled independently.
        pos += vel * dt

        # Handle boundary conditions (elastic reflection).
        limit = self.half_extent
        for axis in (0, 1):
            over = pos[:, axis] > limit
            pos[over, axis] = limit
            vel[over, axis] *= -1.0

            under = pos[:, axis] < -limit
            pos[under, axis] = -limit
            vel[under, axis] *= -1.0

        self.step_count += 1
        self.elapsed_time += dt
        self._record_tick()

    def _record_tick(self) -> None:
        now = self.clock()
        if self._last_tick_wall is not None:
            interval = now - self._last_tick_wall
            if self._smoothed_interval is None:
                self._smoothed_interval = interval
            else:
                self._smoothed_interval += TICK_RATE_SMOOTHING * (interval - self._smoothed_interval)
        self._last_tick_wall = now

    @property
    def ticks_per_second(self) -> float:
        """
        Smoothed number of completed ticks per wall-clock second.

        Zero until two ticks have completed.
        """
        if not self._smoothed_interval or self._smoothed_interval <= 0.0:
            return 0.0
        return 1.0 / self._smoothed_interval

    def step(self, dt: Optional[float] = None) -> None:
        """
        Executes one time step of the simulation.

        Args:
            dt: Elapsed time for this step. Defaults to config.time_step.
        """
        dt = self._check_dt(dt)
        self.apply_forces(dt)
        self.apply_movement(dt)

    def randomize_interaction_matrix(self, rng: Optional[np.random.Generator] = None) -> None:
        """
        Replaces the current interaction matrix with random values between -1.0 and 1.0.

        Symmetric pins recorded on the rule factory are applied on top, and
        the draw comes from the simulation's seeded generator unless rng is
        given.
        """
        if rng is None:
            rng = self.rng
        self.rules.reroll(self.interaction_matrix, rng)

    def snapshot(self) -> SimulationSnapshot:
        """Returns read-only copies of the particle and matrix state."""
        return SimulationSnapshot(
            step_count=self.step_count,
            elapsed_time=self.elapsed_time,
            positions=_frozen_copy(self.particles.positions),
            velocities=_frozen_copy(self.particles.velocities),
            types=_frozen_copy(self.particles.types),
            interaction_matrix=self.interaction_matrix.snapshot(),
            ticks_per_second=self.ticks_per_second,
        )
