# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, type)
in contiguous NumPy arrays.
"""
import logging
import numpy as np
from typing import Optional

from config import SimulationConfig

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, positions, velocities, types, particle_types: int):
#     - Inputs:
#       - positions: array-like of shape (N, 2).
#       - velocities: array-like of shape (N, 2).
#       - types: array-like of shape (N,) with values in 0..particle_types-1.
#       - particle_types: int, number of particle types (>= 1).
#     - Outputs: None
#     - Side Effects: Copies the inputs into owned arrays.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.types is a NumPy array of shape (N,) of dtype int32.
#       - N never changes after construction. A particle's handle is its
#         row index.
#
#   - spawn(config: SimulationConfig, rng=None) -> ParticleSystem:
#     - Draws config.particle_count particles with uniform random types,
#       positions uniform in [-spawn_extent, spawn_extent) on both axes,
#       and zero velocity. Uses rng, or one seeded from config.seed.


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, positions, velocities, types, particle_types: int):
        """
        Initializes the particle system from explicit state.

        Args:
            positions: Initial positions, shape (N, 2).
            velocities: Initial velocities, shape (N, 2).
            types: Type index per particle, shape (N,).
            particle_types (int): Number of particle types.

        Raises:
            ValueError: If shapes disagree or a type index is out of range.
        """
        self.positions = np.array(positions, dtype=np.float64).reshape(-1, 2)
        self.velocities = np.array(velocities, dtype=np.float64).reshape(-1, 2)
        self.types = np.array(types, dtype=np.int32).reshape(-1)
        self.particle_types = int(particle_types)
        self.particle_count = self.positions.shape[0]

        if self.particle_types < 1:
            raise ValueError(f"particle_types must be at least 1, got {self.particle_types}.")
        if self.velocities.shape != self.positions.shape or self.types.shape != (self.particle_count,):
            msg = (
                f"Particle arrays disagree: positions {self.positions.shape}, "
                f"velocities {self.velocities.shape}, types {self.types.shape}."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if self.particle_count and (self.types.min() < 0 or self.types.max() >= self.particle_types):
            msg = (
                f"Particle type indices must lie in 0..{self.particle_types - 1}, "
                f"got range {self.types.min()}..{self.types.max()}."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if not (np.all(np.isfinite(self.positions)) and np.all(np.isfinite(self.velocities))):
            raise ValueError("Particle positions and velocities must be finite.")

        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Types shape: {self.types.shape}"
        )

    @classmethod
    def from_arrays(cls, positions, velocities, types, particle_types: int) -> "ParticleSystem":
        """Accepts a population built by an external spawner."""
        return cls(positions, velocities, types, particle_types)

    @classmethod
    def spawn(cls, config: SimulationConfig, rng: Optional[np.random.Generator] = None) -> "ParticleSystem":
        """
        Creates the initial population described by the configuration.

        Args:
            config (SimulationConfig): Supplies count, types and spawn extent.
            rng: Random generator. Defaults to one seeded from config.seed.
        """
        # Rule 12: All randomness is controlled by a single master seed.
        if rng is None:
            rng = np.random.default_rng(config.seed)

        count = config.particle_count
        extent = config.spawn_extent
        types = rng.integers(
            low=0,
            high=config.particle_types,
            size=count,
            dtype=np.int32
        )
        positions = rng.uniform(
            low=-extent,
            high=extent,
            size=(count, 2)
        )
        velocities = np.zeros((count, 2), dtype=np.float64)

        system = cls(positions, velocities, types, config.particle_types)
        logging.info(
            f"ParticleSystem initialized with {count} "
            f"particles of {config.particle_types} types."
        )
        return system

    def __len__(self) -> int:
        return self.particle_count

    def speeds(self) -> np.ndarray:
        """Returns the speed of every particle, shape (N,)."""
        return np.linalg.norm(self.velocities, axis=1)

    def type_counts(self) -> np.ndarray:
        """Returns how many particles there are of each type."""
        return np.bincount(self.types, minlength=self.particle_types)
