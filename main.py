# main.py

import pygame
import constants
import logging
import logger_setup
import numpy as np
from particle_system import ParticleSystem

# Get the application's dedicated logger
logger = logging.getLogger("heart_swarm")


def run_simulation_loop(particle_system, screen, clock):
    """
    The main loop: one simulation step and one render pass per frame until
    the window is closed. Returns the number of frames rendered.
    """
    running = True
    tick = 0
    start_ms = pygame.time.get_ticks()

    while running:
        # Event handling
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

        # --- Physics Update ---
        particle_system.update()

        # --- Logging (throttled) ---
        if tick % constants.LOG_INTERVAL_TICKS == 0:
            logger.debug(
                f"Tick={tick}, "
                f"Phase={particle_system.phase:.2f}, "
                f"Heartbeat={particle_system.get_heartbeat():.3f}, "
                f"MeanSpeed={particle_system.get_mean_speed():.3f}, "
                f"MaxTargetDistance={particle_system.get_max_target_distance():.2f}, "
                f"FPS={clock.get_fps():.1f}"
            )

        # --- Drawing ---
        elapsed_time = (pygame.time.get_ticks() - start_ms) / 1000.0
        particle_system.draw(screen, elapsed_time)
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

    return tick


def main(config_path='config.json'):
    """
    Main function to initialize and run the heart swarm.
    """
    # --- Setup ---
    logger_setup.setup_logging(config_path)
    config = logger_setup.load_config(config_path)

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG).
    # A null seed draws fresh entropy from the OS.
    seed = config.get('master_seed')
    rng = np.random.default_rng(seed)
    logger.info(f"Master RNG initialized with seed: {seed}")

    # --- Initialization ---
    pygame.init()
    try:
        screen = pygame.display.set_mode((constants.WIDTH, constants.HEIGHT))
    except pygame.error as e:
        # No headless fallback for a purely visual program.
        logger.critical(f"Could not create the display surface: {e}")
        pygame.quit()
        raise
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    particle_system = ParticleSystem(rng, num_particles=constants.PARTICLE_COUNT)

    try:
        frames = run_simulation_loop(particle_system, screen, clock)
        logger.info(f"Window closed after {frames} frames.")
    finally:
        logger.info("Application shutting down.")
        pygame.quit()


if __name__ == "__main__":
    main()
