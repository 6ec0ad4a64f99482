# constants.py

"""
Application Constants

This module defines static configuration values for the fire effect.
Values here are defaults; the 'particle_system' section of config.json
overrides any of the particle tuning values per run.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions
WIDTH = 800  # Pixels
HEIGHT = 600  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)

# Window Title
TITLE = "Fire Particles"

# Name of the application's dedicated logger
LOGGER_NAME = "fire_particles"

# --- Particle System Defaults (fire preset) ---
UNIVERSE_GRAVITY = 0.0005  # Added to velocity_y per nominal frame
UNIVERSE_FRICTION = 0.02   # Fraction of velocity lost per nominal frame (0-1)
PARTICLE_MASS_MIN = 30     # Also the rendered diameter, in pixels
PARTICLE_MASS_MAX = 60
PARTICLE_BURN_RATE = 0.97  # Alpha multiplier per nominal frame
PARTICLE_SHARPNESS = 0.2   # 0 = soft glow, 1 = solid core
PARTICLE_VELOCITY_X_MIN = -0.055
PARTICLE_VELOCITY_X_MAX = 0.055
PARTICLE_VELOCITY_Y_MIN = -0.18
PARTICLE_VELOCITY_Y_MAX = 0.0
SPAWN_COLOR = (255, 155, 0)  # RGB

# Configured velocities are pixels per unit of mass per nominal frame.
# Displacement per frame is velocity * mass * frame_multiplier * VELOCITY_SCALE.
VELOCITY_SCALE = 1.0

# Particles at or below this alpha are retired.
ALPHA_RETIRE_THRESHOLD = 0.1

# Outer gradient stop: fades to a transparent dark red.
GRADIENT_OUTER_COLOR = "rgba(50,0,30,0)"

# Compositing mode set on the surface so overlapping glows add up.
COMPOSITE_OPERATION = "lighter"

# Default emitter position as a fraction of the surface extent.
SPAWN_ORIGIN_Y_FRACTION = 0.8
