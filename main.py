# main.py
"""
Main entry point for the Particle Life simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Sets up the particles and the interaction rules.
4. Drives the simulation with a fixed time step.
5. Handles clean shutdown.

Rendering is left to an external front end, which can poll
Simulation.snapshot() and edit Simulation.interaction_matrix between ticks.
"""
import logging
import sys
from typing import Optional
from utils import setup_logging, load_config
from constants import (
    DEFAULT_CONFIG_PATH, DEFAULT_LOG_THROTTLE_STEPS, DEFAULT_MAX_STEPS,
    PROFILE_TOP_N
)
import cProfile
import pstats
import io


def run(sim, max_steps: int, log_throttle: int, dt: Optional[float] = None) -> int:
    """
    Runs the fixed-step tick loop until max_steps is reached.

    Returns the number of steps executed.
    """
    step_num = 0
    while step_num < max_steps:
        sim.step(dt)
        step_num += 1

        # Rule 2.4: Hot loops must throttle logs
        if log_throttle > 0 and step_num % log_throttle == 0:
            snapshot = sim.snapshot()
            logging.info(
                f"Simulation step {step_num}/{max_steps} | "
                f"{snapshot.ticks_per_second:.1f} ticks/s"
            )

            # Example of an aggregated metric for DEBUG logging
            avg_velocity = snapshot.average_speed
            logging.debug(f"Step {step_num} | Average Velocity: {avg_velocity:.4f}")

    logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
    return step_num


def main(config_path: str = DEFAULT_CONFIG_PATH) -> int:
    """
    The main function to run the simulation.
    """
    # Load configuration from the JSON file first.
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return 1

    # Set up the logging system based on the loaded configuration.
    setup_logging(config)

    logging.info("--- Particle Life Simulation Starting ---")

    # Rule 7 (DIP): Depend on abstractions. We get config sections.
    sim_params = config['simulation_parameters']
    run_params = config['run_control']

    from config import SimulationConfig
    from interaction import format_matrix
    from simulation import Simulation

    # --- Component Initialization ---
    sim_config = SimulationConfig.from_params(sim_params)
    sim = Simulation.from_config(sim_config)
    logging.info(f"Interaction matrix:\n{format_matrix(sim.interaction_matrix.to_list())}")

    log_throttle = run_params.get('log_throttle_steps', DEFAULT_LOG_THROTTLE_STEPS)
    max_steps = run_params.get('max_steps', DEFAULT_MAX_STEPS)

    # --- Profiler Setup (Rule 11) ---
    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    if profiler:
        profiler.enable()
    try:
        run(sim, max_steps, log_throttle)
    finally:
        if profiler:
            profiler.disable()
    logging.info("Simulation loop finished.")

    if profiler:
        # --- Performance Profile Output (Rule 11 & 2) ---
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(PROFILE_TOP_N)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Life Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    sys.exit(main(*sys.argv[1:2]))
