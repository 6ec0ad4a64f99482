# main.py

import json
import logging

import numpy as np
import pygame

import constants
import logger_setup
from particle_system import ParticleSystem
from surface import PygameSurface

# Get the application's dedicated logger
logger = logging.getLogger(constants.LOGGER_NAME)

STATUS_LOG_INTERVAL = 100  # Frames between status lines


def run_animation_loop(particle_system, drawing_surface, clock, driver_config):
    """
    Drives the particle system once per display frame until the window closes.

    Controls:
    - Left mouse button (held): moves the emitter to the cursor.
    - Space: toggles automatic spawning.
    - C: drops every live particle.
    - Escape: quits.
    """
    running = True
    frame = 0
    auto_spawn = driver_config.get('auto_spawn', True)
    spawn_per_frame = driver_config.get('spawn_per_frame', 4)
    max_frames = driver_config.get('max_frames')
    retired_since_log = 0

    while running:
        # Event handling
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_SPACE:
                    auto_spawn = not auto_spawn
                    logger.info(f"Auto spawn {'enabled' if auto_spawn else 'disabled'}.")
                elif event.key == pygame.K_c:
                    particle_system.clear()
                    logger.info("Cleared all particles.")
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                particle_system.spawn_origin = event.pos
            elif event.type == pygame.MOUSEMOTION and event.buttons[0]:
                particle_system.spawn_origin = event.pos

        # --- Spawn & Update ---
        if auto_spawn:
            particle_system.spawn(spawn_per_frame)

        if not particle_system.auto_clear:
            drawing_surface.clear_region(0, 0, drawing_surface.width, drawing_surface.height)

        retired_since_log += particle_system.advance_frame()

        # --- Logging (throttled) ---
        if frame % STATUS_LOG_INTERVAL == 0:
            logger.debug(
                f"Frame={frame}, "
                f"Live={particle_system.particle_count}, "
                f"Retired={retired_since_log}, "
                f"DirtyRegion={particle_system.dirty_region}, "
                f"FPS={clock.get_fps():.1f}"
            )
            retired_since_log = 0

        pygame.display.flip()
        clock.tick(particle_system.target_fps)
        frame += 1

        if max_frames is not None and frame >= max_frames:
            running = False

    return frame


def main():
    """
    Main function to initialize and run the fire effect.
    """
    # --- Setup ---
    logger_setup.setup_logging()

    with open('config.json', 'r') as f:
        config = json.load(f)
    display_config = config.get('display', {})
    driver_config = config.get('driver', {})

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config['master_seed'])
    logger.info(f"Master RNG initialized with seed: {config['master_seed']}")

    # --- Initialization ---
    pygame.init()
    width = display_config.get('width', constants.WIDTH)
    height = display_config.get('height', constants.HEIGHT)
    screen = pygame.display.set_mode((width, height))
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    background = display_config.get('background', constants.BLACK)
    screen.fill(background)
    drawing_surface = PygameSurface(screen, background=background)

    particle_system = ParticleSystem(
        drawing_surface,
        config=config.get('particle_system', {}),
        rng=rng
    )

    try:
        frames = run_animation_loop(particle_system, drawing_surface, clock, driver_config)
        logger.info(f"Animation stopped after {frames} frames.")
    finally:
        logger.info("Application shutting down.")
        pygame.quit()


if __name__ == "__main__":
    main()
