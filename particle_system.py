# particle_system.py

import logging
import math
import time

import numba
import numpy as np

import constants
from particle import Particle

logger = logging.getLogger(constants.LOGGER_NAME)


class ConfigurationError(ValueError):
    """Raised when a ParticleSystem is constructed with an unusable configuration."""


# --- JIT-Compiled Physics Kernel ---
# Kept outside the ParticleSystem class and restricted to NumPy arrays and
# scalars, as required by Numba's nopython mode.

# Column layout of the state array handed to the kernel.
_X, _Y, _VELOCITY_X, _VELOCITY_Y, _ALPHA = range(5)
_STATE_COLUMNS = 5


@numba.jit(nopython=True)
def _integrate_particles_jit(state, masses, burn_rates, gravity, friction, m, velocity_scale):
    """
    Advances every particle in the (n, 5) state array by m nominal frames, in place.

    Position is integrated with the pre-update velocity. Friction and burn rate
    are per-frame decay factors raised to the power m, so the result does not
    depend on how the elapsed time was split into calls.
    """
    friction_factor = (1.0 - friction) ** m
    for i in range(state.shape[0]):
        step = masses[i] * m * velocity_scale
        state[i, _X] += state[i, _VELOCITY_X] * step
        state[i, _Y] += state[i, _VELOCITY_Y] * step

        state[i, _VELOCITY_X] *= friction_factor
        state[i, _VELOCITY_Y] *= friction_factor
        state[i, _VELOCITY_Y] += gravity * m

        state[i, _ALPHA] *= burn_rates[i] ** m


class DirtyRegion:
    """
    Bounding box of every live particle position seen since the last clear.

    After reset() the box is inverted (min at the surface extent, max at zero)
    so the first include() snaps it onto that position.
    """
    __slots__ = ['x_min', 'x_max', 'y_min', 'y_max']

    def __init__(self):
        self.x_min = 0.0
        self.x_max = 0.0
        self.y_min = 0.0
        self.y_max = 0.0

    def reset(self, width, height):
        self.x_min = width
        self.x_max = 0
        self.y_min = height
        self.y_max = 0

    def include(self, x, y):
        if x > self.x_max:
            self.x_max = x
        if x < self.x_min:
            self.x_min = x
        if y > self.y_max:
            self.y_max = y
        if y < self.y_min:
            self.y_min = y

    def inflated(self, margin):
        """Returns (x, y, width, height) of the box grown by margin on every side."""
        return (
            self.x_min - margin,
            self.y_min - margin,
            self.x_max - self.x_min + margin * 2,
            self.y_max - self.y_min + margin * 2,
        )

    def __repr__(self):
        return (f"DirtyRegion(x=[{self.x_min}, {self.x_max}], "
                f"y=[{self.y_min}, {self.y_max}])")


# Every key the 'particle_system' config section understands, with its default.
# spawn_origin is also accepted; its default depends on the surface extent.
_CONFIG_DEFAULTS = {
    'universe_gravity': constants.UNIVERSE_GRAVITY,
    'universe_friction': constants.UNIVERSE_FRICTION,
    'particle_mass_min': constants.PARTICLE_MASS_MIN,
    'particle_mass_max': constants.PARTICLE_MASS_MAX,
    'particle_burn_rate': constants.PARTICLE_BURN_RATE,
    'particle_sharpness': constants.PARTICLE_SHARPNESS,
    'particle_velocity_x_min': constants.PARTICLE_VELOCITY_X_MIN,
    'particle_velocity_x_max': constants.PARTICLE_VELOCITY_X_MAX,
    'particle_velocity_y_min': constants.PARTICLE_VELOCITY_Y_MIN,
    'particle_velocity_y_max': constants.PARTICLE_VELOCITY_Y_MAX,
    'target_fps': constants.FPS,
    'spawn_color': constants.SPAWN_COLOR,
    'auto_clear': True,
}
_KNOWN_CONFIG_KEYS = set(_CONFIG_DEFAULTS) | {'spawn_origin'}


def _is_finite_number(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def _require_range(config, low_key, high_key):
    if config[high_key] < config[low_key]:
        raise ConfigurationError(
            f"'{high_key}' ({config[high_key]}) must not be less than '{low_key}' ({config[low_key]})"
        )


def _validate_config(config: dict):
    """
    Checks a fully-defaulted particle system configuration.

    Raises ConfigurationError for anything that would put NaN or infinity
    into the simulation or make a spawn range meaningless.
    """
    numeric_keys = [
        'universe_gravity', 'universe_friction', 'particle_mass_min', 'particle_mass_max',
        'particle_burn_rate', 'particle_sharpness',
        'particle_velocity_x_min', 'particle_velocity_x_max',
        'particle_velocity_y_min', 'particle_velocity_y_max', 'target_fps',
    ]
    for key in numeric_keys:
        value = config[key]
        if not _is_finite_number(value):
            raise ConfigurationError(f"'{key}' must be a finite number, got {value!r}")

    _require_range(config, 'particle_mass_min', 'particle_mass_max')
    _require_range(config, 'particle_velocity_x_min', 'particle_velocity_x_max')
    _require_range(config, 'particle_velocity_y_min', 'particle_velocity_y_max')

    if config['particle_mass_min'] <= 0:
        raise ConfigurationError(f"'particle_mass_min' must be positive, got {config['particle_mass_min']}")
    if config['target_fps'] <= 0:
        raise ConfigurationError(f"'target_fps' must be positive, got {config['target_fps']}")
    if not 0 <= config['universe_friction'] < 1:
        raise ConfigurationError(f"'universe_friction' must be in [0, 1), got {config['universe_friction']}")
    if not 0 < config['particle_burn_rate'] <= 1:
        raise ConfigurationError(f"'particle_burn_rate' must be in (0, 1], got {config['particle_burn_rate']}")
    if not 0 <= config['particle_sharpness'] <= 1:
        raise ConfigurationError(f"'particle_sharpness' must be in [0, 1], got {config['particle_sharpness']}")

    color = config['spawn_color']
    if not isinstance(color, (list, tuple)) or len(color) != 3 or any(
            isinstance(channel, bool) or not isinstance(channel, int) or not 0 <= channel <= 255
            for channel in color):
        raise ConfigurationError(f"'spawn_color' must be three integer channels in 0-255, got {color!r}")

    origin = config['spawn_origin']
    if not isinstance(origin, (list, tuple)) or len(origin) != 2 or not all(
            _is_finite_number(value) for value in origin):
        raise ConfigurationError(f"'spawn_origin' must be a finite (x, y) pair, got {origin!r}")

    if not isinstance(config['auto_clear'], bool):
        raise ConfigurationError(f"'auto_clear' must be true or false, got {config['auto_clear']!r}")


class ParticleSystem:
    """
    Spawns, advances, renders and retires fire particles on a drawing surface.

    Data Contract:
    - Inputs:
        - surface (DrawingSurface): The injected drawing capability. Its extent
          bounds the visible area; it is drawn on but not owned.
        - config (dict): The 'particle_system' section of the config file. Every
          key is optional and falls back to the defaults in constants.py.
        - rng (np.random.Generator): Random source for spawn-time properties.
        - clock (callable): Returns the current time in seconds.
    - Outputs: None. This class modifies its internal state and the surface.
    - Side Effects: Sets the surface's composite operation to additive blending.
    - Invariants:
        - Every particle in self.particles has alpha above the retire threshold
          and a position inside [0, width] x [0, height] as of the last frame
          (particles spawned since then sit at the spawn origin).
        - With auto_clear on, dirty_region bounds every live position observed
          since the last clear.
    - Thread Safety: None. Callers must serialize spawn and advance_frame.
    """
    def __init__(self, surface, config: dict = None, rng: np.random.Generator = None, clock=time.perf_counter):
        config = dict(config or {})
        self.surface = surface
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock

        unknown_keys = sorted(set(config) - _KNOWN_CONFIG_KEYS)
        if unknown_keys:
            logger.warning(f"Ignoring unknown particle system config key(s): {', '.join(unknown_keys)}")

        for key, default in _CONFIG_DEFAULTS.items():
            config.setdefault(key, default)
        config.setdefault('spawn_origin', (surface.width >> 1, surface.height * constants.SPAWN_ORIGIN_Y_FRACTION))

        try:
            _validate_config(config)
        except ConfigurationError as e:
            logger.error(f"Invalid particle system configuration: {e}")
            raise
        self.config = config

        self.gravity = float(config['universe_gravity'])
        self.friction = float(config['universe_friction'])
        self.mass_min = float(config['particle_mass_min'])
        self.mass_max = float(config['particle_mass_max'])
        self.burn_rate = float(config['particle_burn_rate'])
        self.sharpness = float(config['particle_sharpness'])
        self.velocity_x_range = (float(config['particle_velocity_x_min']), float(config['particle_velocity_x_max']))
        self.velocity_y_range = (float(config['particle_velocity_y_min']), float(config['particle_velocity_y_max']))
        self.target_fps = float(config['target_fps'])
        self.frame_interval = 1.0 / self.target_fps  # Seconds per nominal frame
        self.spawn_color = tuple(config['spawn_color'])
        self.spawn_origin = (float(config['spawn_origin'][0]), float(config['spawn_origin'][1]))
        self.auto_clear = config['auto_clear']

        # Twice the largest diameter covers the full glow of any particle.
        self.clear_margin = self.mass_max * 2

        self.particles = []
        self.last_frame_time = None
        self.dirty_region = DirtyRegion()

        # Overlapping glows should brighten, not occlude each other.
        self.surface.set_composite_operation(constants.COMPOSITE_OPERATION)

        logger.info(
            f"ParticleSystem created on a {surface.width}x{surface.height} surface. "
            f"Spawn origin: {self.spawn_origin}, target FPS: {self.target_fps}, auto_clear: {self.auto_clear}."
        )

    @property
    def particle_count(self) -> int:
        return len(self.particles)

    def spawn(self, n: int):
        """
        Appends n new particles at the spawn origin.

        Velocity, mass and alpha are drawn uniformly from their configured
        ranges; burn rate, sharpness and color are copied from configuration.
        """
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise ValueError(f"Spawn count must be an integer, got {n!r}")
        if n < 0:
            raise ValueError(f"Spawn count must be non-negative, got {n}")

        origin_x, origin_y = self.spawn_origin
        for _ in range(n):
            p = Particle(origin_x, origin_y)
            p.velocity_x = self.rng.uniform(*self.velocity_x_range)
            p.velocity_y = self.rng.uniform(*self.velocity_y_range)
            p.mass = self.rng.uniform(self.mass_min, self.mass_max)
            p.alpha = self.rng.random()
            p.burn_rate = self.burn_rate
            p.sharpness = self.sharpness
            p.color = self.spawn_color
            self.particles.append(p)

        if n:
            logger.debug(f"Spawned {n} particle(s). Live count: {len(self.particles)}.")

    def clear(self):
        """Drops every live particle. The surface is cleared lazily on the next frame."""
        self.particles = []

    def _frame_multiplier(self) -> float:
        """Records the current time and returns elapsed time in nominal frames."""
        now = self.clock()
        elapsed = now - self.last_frame_time if self.last_frame_time is not None else 0.0
        self.last_frame_time = now

        if elapsed == 0:
            return 1.0
        return elapsed / self.frame_interval

    def advance_frame(self) -> int:
        """
        Runs one update, render and cull pass over every live particle.

        Returns the number of particles retired during this frame.
        """
        m = self._frame_multiplier()
        width = self.surface.width
        height = self.surface.height

        if self.auto_clear:
            self.surface.clear_region(*self.dirty_region.inflated(self.clear_margin))
            self.dirty_region.reset(width, height)

        # Integration only reads each particle's own state, so the whole batch
        # is advanced in one kernel call before the draw and cull pass.
        state = np.array(
            [(p.x, p.y, p.velocity_x, p.velocity_y, p.alpha) for p in self.particles],
            dtype=float
        ).reshape(-1, _STATE_COLUMNS)
        masses = np.array([p.mass for p in self.particles], dtype=float)
        burn_rates = np.array([p.burn_rate for p in self.particles], dtype=float)
        _integrate_particles_jit(state, masses, burn_rates, self.gravity, self.friction,
                                 m, constants.VELOCITY_SCALE)

        survivors = []
        for p, row in zip(self.particles, state.tolist()):
            p.x, p.y, p.velocity_x, p.velocity_y, p.alpha = row

            p.draw(self.surface)

            # Edge-exact positions are still visible
            if (p.alpha <= constants.ALPHA_RETIRE_THRESHOLD
                    or p.x < 0 or p.x > width or p.y < 0 or p.y > height):
                continue

            survivors.append(p)
            if self.auto_clear:
                self.dirty_region.include(p.x, p.y)

        retired = len(self.particles) - len(survivors)
        self.particles = survivors
        return retired
