# force.py
"""
The scalar force profile shared by every pair of particles.

force() is compiled with Numba so the pairwise pass in simulation.py can
call it from nopython code; it remains an ordinary callable from Python.
"""
from numba import jit

from constants import FORCE_BETA

# --- Data Contracts ---
#
# force(r: float, coefficient: float) -> float:
#   - Inputs:
#     - r: distance normalized by the cutoff radius, r >= 0.
#     - coefficient: interaction matrix entry in [-1.0, 1.0].
#   - Outputs: signed scalar. Positive pulls the first particle towards
#     the second, negative pushes it away.
#   - Invariants:
#     - force(r, c) == 0 for r >= 1 and at r == FORCE_BETA.
#     - force(r, -c) == -force(r, c) for FORCE_BETA <= r < 1.


@jit(nopython=True)
def force(r, coefficient):
    """
    Piecewise force profile.

    Below beta every pair repels linearly, from -1 at contact up to 0 at
    beta, whatever the coefficient. Between beta and 1 the force is a tent
    peaking at `coefficient` halfway through the band. Beyond 1 there is
    no interaction.
    """
    beta = FORCE_BETA
    if r < beta:
        return r / beta - 1.0
    elif r < 1.0:
        return coefficient * (1.0 - abs(2.0 * r - 1.0 - beta) / (1.0 - beta))
    return 0.0
