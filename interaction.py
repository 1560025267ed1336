# interaction.py
"""
Particle types and the rules that govern how they interact.

This module defines the ParticleType enumeration, the InteractionMatrix
holding one signed coefficient per ordered pair of types, and the
RuleSetFactory used to build the matrix at start-up.
"""
import logging
import math
import threading
from enum import IntEnum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from constants import COEFFICIENT_MAX, COEFFICIENT_MIN

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from config import SimulationConfig

# --- Data Contracts ---
#
# class ParticleType(IntEnum):
#   - RED = 0, GREEN = 1, BLUE = 2
#   - index(self) -> int: row/column of this type in an InteractionMatrix.
#
# class InteractionMatrix:
#   - __init__(self, num_types: int):
#     - Inputs: num_types >= 1.
#     - Side Effects: Allocates a zero (num_types, num_types) float32 array.
#     - Invariants:
#       - Every entry lies within [COEFFICIENT_MIN, COEFFICIENT_MAX].
#       - The shape is fixed for the lifetime of the object.
#   - get / set / set_symmetric / nudge / reset / randomize / replace /
#     snapshot
#     - Index arguments may be ints or ParticleType members. An index
#       outside 0..num_types-1 raises IndexError; it is never clamped.
#     - set and set_symmetric raise ValueError for values out of range.
#     - All reads of the whole matrix go through snapshot(), which copies
#       under the same lock that guards writes.
#
# class RuleSetFactory:
#   - default() -> InteractionMatrix            (all zeros)
#   - randomize(rng) -> InteractionMatrix       (uniform, then overrides)
#   - reroll(matrix, rng) -> InteractionMatrix  (same, in place, one update)
#   - with_symmetric_override(a, b, value) -> RuleSetFactory
#   - from_config(config, rng) -> InteractionMatrix

TypeIndex = Union[int, "ParticleType"]


class ParticleType(IntEnum):
    """The fixed set of particle tags."""
    RED = 0
    GREEN = 1
    BLUE = 2

    def index(self) -> int:
        """Returns the matrix row/column addressed by this type."""
        return int(self.value)

    @classmethod
    def parse(cls, value: Any) -> int:
        """
        Resolves a type given by name ("BLUE", case-insensitive) or by
        index into a plain integer index.
        """
        if isinstance(value, str):
            try:
                return cls[value.upper()].index()
            except KeyError:
                raise ValueError(
                    f"Unknown particle type '{value}'. "
                    f"Available: {[t.name for t in cls]}"
                ) from None
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ValueError(f"Particle type must be a name or an index, got {value!r}.")
        return int(value)


def _check_coefficient(value: float) -> float:
    value = float(value)
    if not math.isfinite(value) or not COEFFICIENT_MIN <= value <= COEFFICIENT_MAX:
        raise ValueError(
            f"Interaction coefficient {value} is outside "
            f"[{COEFFICIENT_MIN}, {COEFFICIENT_MAX}]."
        )
    return value


class InteractionMatrix:
    """
    A square table of coefficients, one per ordered pair of particle types.

    Entry (i, j) is the coefficient applied to a particle of type i when it
    interacts with a particle of type j. The table is not required to be
    symmetric: type i may be drawn to type j while j flees from i.
    """
    def __init__(self, num_types: int):
        if isinstance(num_types, bool) or not isinstance(num_types, (int, np.integer)) or num_types < 1:
            raise ValueError(f"An interaction matrix needs at least one type, got {num_types!r}.")
        self.num_types = int(num_types)
        self._values = np.zeros((self.num_types, self.num_types), dtype=np.float32)
        self._lock = threading.Lock()

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[float]]) -> "InteractionMatrix":
        """
        Builds a matrix from nested rows, validating shape and range.

        Raises:
            ValueError: If the rows are not square or any value is out of range.
        """
        values = np.asarray(rows, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1] or values.shape[0] == 0:
            raise ValueError(
                f"Interaction matrix must be square and non-empty, got shape {values.shape}."
            )
        matrix = cls(values.shape[0])
        matrix.replace(values)
        return matrix

    def __repr__(self) -> str:
        return f"InteractionMatrix(num_types={self.num_types}, values={self.to_list()})"

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    def _index(self, value: TypeIndex) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise IndexError(f"Particle type index must be an integer, got {value!r}.")
        index = int(value)
        if not 0 <= index < self.num_types:
            raise IndexError(
                f"Particle type index {index} is out of range for "
                f"{self.num_types} types."
            )
        return index

    def get(self, i: TypeIndex, j: TypeIndex) -> float:
        """Returns the coefficient type i feels towards type j."""
        return float(self._values[self._index(i), self._index(j)])

    def set(self, i: TypeIndex, j: TypeIndex, value: float) -> None:
        """
        Sets a single coefficient.

        Raises:
            IndexError: If either index is out of range.
            ValueError: If value lies outside the coefficient range.
        """
        row, col = self._index(i), self._index(j)
        value = _check_coefficient(value)
        with self._lock:
            self._values[row, col] = value
        logging.debug(f"Interaction matrix updated at ({row}, {col}) to {value:.3f}.")

    def set_symmetric(self, i: TypeIndex, j: TypeIndex, value: float) -> None:
        """Sets (i, j) and (j, i) to the same value in one update."""
        row, col = self._index(i), self._index(j)
        value = _check_coefficient(value)
        with self._lock:
            self._values[row, col] = value
            self._values[col, row] = value
        logging.debug(f"Interaction matrix pinned symmetrically at ({row}, {col}) to {value:.3f}.")

    def nudge(self, i: TypeIndex, j: TypeIndex, delta: float) -> float:
        """
        Adds delta to a coefficient and clamps the result into range.

        This is the incremental edit an interactive editor performs (for
        example one scroll-wheel notch). Returns the new value.
        """
        row, col = self._index(i), self._index(j)
        with self._lock:
            old_value = float(self._values[row, col])
            new_value = float(np.clip(old_value + float(delta), COEFFICIENT_MIN, COEFFICIENT_MAX))
            self._values[row, col] = new_value
        logging.debug(
            f"Interaction matrix updated at ({row}, {col}). "
            f"Value changed from {old_value:.3f} to {new_value:.3f}."
        )
        return new_value

    def reset(self) -> None:
        """Sets every coefficient to zero."""
        with self._lock:
            self._values.fill(0.0)
        logging.info("Interaction matrix reset to all zeros.")

    def randomize(self, rng: np.random.Generator) -> None:
        """
        Replaces every coefficient with an independent uniform draw
        from [-1.0, 1.0].
        """
        values = rng.uniform(COEFFICIENT_MIN, COEFFICIENT_MAX, size=self.shape)
        with self._lock:
            self._values[:] = values
        logging.info("Interaction matrix randomized.")

    def replace(self, values) -> None:
        """
        Overwrites the whole matrix in one locked update.

        Raises:
            ValueError: If the shape differs or any value is out of range.
        """
        values = np.asarray(values, dtype=np.float64)
        if values.shape != self.shape:
            raise ValueError(f"Expected a matrix of shape {self.shape}, got {values.shape}.")
        if not np.all(np.isfinite(values)) or np.any(values < COEFFICIENT_MIN) or np.any(values > COEFFICIENT_MAX):
            raise ValueError(
                f"Interaction matrix entries must lie in "
                f"[{COEFFICIENT_MIN}, {COEFFICIENT_MAX}]."
            )
        with self._lock:
            self._values[:] = values

    def snapshot(self) -> np.ndarray:
        """
        Returns a read-only copy of the whole matrix.

        The copy is taken under the write lock, so it never mixes values
        from before and after a concurrent edit.
        """
        with self._lock:
            values = self._values.copy()
        values.setflags(write=False)
        return values

    def to_list(self) -> List[List[float]]:
        """Returns the coefficients as nested Python lists (JSON friendly)."""
        return self.snapshot().tolist()


class RuleSetFactory:
    """
    Builds interaction matrices for a fixed number of particle types.

    Symmetric overrides are recorded on the factory and always applied
    after randomization, so a pinned relationship survives any reroll.
    """
    def __init__(self, num_types: int = len(ParticleType)):
        self.num_types = num_types
        self.overrides: List[Tuple[int, int, float]] = []

    def default(self) -> InteractionMatrix:
        """Returns a matrix with every coefficient at zero."""
        return InteractionMatrix(self.num_types)

    def with_symmetric_override(self, type_a: Any, type_b: Any, value: float) -> "RuleSetFactory":
        """
        Pins (type_a, type_b) and (type_b, type_a) to value.

        Types may be ParticleType members, names or indices. The pin is
        checked immediately so that bad configuration fails at start-up.
        """
        a, b = ParticleType.parse(type_a), ParticleType.parse(type_b)
        scratch = InteractionMatrix(self.num_types)
        scratch.set_symmetric(a, b, value)
        self.overrides.append((a, b, float(value)))
        return self

    def apply_overrides(self, matrix: InteractionMatrix) -> InteractionMatrix:
        for a, b, value in self.overrides:
            matrix.set_symmetric(a, b, value)
        return matrix

    def randomize(self, rng: np.random.Generator) -> InteractionMatrix:
        """Returns a random matrix with the recorded overrides applied on top."""
        matrix = InteractionMatrix(self.num_types)
        matrix.randomize(rng)
        return self.apply_overrides(matrix)

    def reroll(self, matrix: InteractionMatrix, rng: np.random.Generator) -> InteractionMatrix:
        """
        Randomizes a live matrix in place and re-applies the pins.

        The new values are built aside and swapped in with one locked
        update, so a tick never reads the matrix between the draw and
        the pins.
        """
        matrix.replace(self.randomize(rng).snapshot())
        return matrix

    def from_config(self, config: "SimulationConfig", rng: Optional[np.random.Generator] = None) -> InteractionMatrix:
        """
        Builds the start-up matrix described by a SimulationConfig.

        An explicit interaction_matrix is used as given. Otherwise the
        matrix is randomized from rng, or from a generator seeded with
        config.seed. Configured symmetric overrides are applied last.
        """
        for type_a, type_b, value in config.symmetric_overrides:
            self.with_symmetric_override(type_a, type_b, value)

        if config.interaction_matrix is not None:
            matrix = InteractionMatrix.from_values(config.interaction_matrix)
            if matrix.num_types != self.num_types:
                raise ValueError(
                    f"Interaction matrix shape {matrix.shape} does not match "
                    f"particle_types ({self.num_types})."
                )
            logging.info("Interaction matrix loaded from configuration.")
            return self.apply_overrides(matrix)

        if rng is None:
            rng = np.random.default_rng(config.seed)
        return self.randomize(rng)


def format_matrix(values: Iterable[Iterable[float]]) -> str:
    """Renders a matrix as aligned rows, one row per line."""
    return "\n".join(" ".join(f"{value:+.3f}" for value in row) for row in values)
