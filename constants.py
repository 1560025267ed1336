# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as the shape
of the force profile or the fallback values used when the configuration
file leaves a parameter out.
"""

# --- Force Profile ---
# Normalized distance below which every pair repels, regardless of the
# interaction matrix. Must lie strictly between 0 and 1.
FORCE_BETA = 0.3

# Coefficients in the interaction matrix are confined to this range.
COEFFICIENT_MIN = -1.0
COEFFICIENT_MAX = 1.0

# --- Simulation Defaults ---
# Used by SimulationConfig.from_params when config.json omits a key.
DEFAULT_SEED = 42
DEFAULT_PARTICLE_COUNT = 500
DEFAULT_PARTICLE_SIZE = 10.0
DEFAULT_FORCE_MULTIPLIER = 50.0
DEFAULT_DISTANCE_MAX = 100.0
DEFAULT_FRICTION_HALF_LIFE = 0.02
# The arena is a square of side 2 * half_extent centred on the origin.
DEFAULT_HALF_EXTENT = 450.0
# Particles spawn uniformly inside [-spawn_extent, spawn_extent) on each axis.
DEFAULT_SPAWN_EXTENT = 400.0
# Fixed step of 64 Hz.
DEFAULT_TIME_STEP = 1.0 / 64.0

# "per_tick" damps each velocity once per step. "per_pair" compounds the
# damping once per in-range neighbour, matching the legacy behaviour.
FRICTION_PER_TICK = "per_tick"
FRICTION_PER_PAIR = "per_pair"
FRICTION_MODES = (FRICTION_PER_TICK, FRICTION_PER_PAIR)
DEFAULT_FRICTION_MODE = FRICTION_PER_TICK

# --- Run Control Defaults ---
DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_MAX_STEPS = 5000
DEFAULT_LOG_THROTTLE_STEPS = 100
DEFAULT_LOG_FILE = "logs/simulation.log"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
# Number of rows printed from the profiler report.
PROFILE_TOP_N = 20

# Weight of the newest tick interval in the smoothed tick rate (0 < w <= 1).
TICK_RATE_SMOOTHING = 0.1
