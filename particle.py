# particle.py

import constants

class Particle:
    """
    Represents a single glowing element of the fire effect.

    Data Contract:
    - Inputs: x, y (float) - Spawn position in surface coordinates.
    - Invariants:
        - mass is fixed after spawn and doubles as the rendered diameter.
        - alpha only ever decreases once the particle is live.
        - color is an (R, G, B) tuple of 8-bit channels fixed at spawn.
    """
    __slots__ = ['x', 'y', 'velocity_x', 'velocity_y', 'mass', 'alpha',
                 'burn_rate', 'sharpness', 'color']

    def __init__(self, x: float, y: float):
        self.x = x
        self.y = y
        self.velocity_x = 0.0
        self.velocity_y = 0.0
        self.mass = 0.0
        self.alpha = 0.0
        self.burn_rate = 0.0
        self.sharpness = 0.0
        self.color = (0, 0, 0)

    def compute_color(self) -> str:
        """Returns the particle's color and current alpha as an 'rgba(...)' string."""
        red, green, blue = self.color
        return f"rgba({red},{green},{blue},{self.alpha})"

    def draw(self, surface):
        """
        Fills the particle's bounding square with a radial gradient.

        The gradient is centred on the square; its solid core spans
        sharpness * half the size and fades to transparent at the edge.
        """
        size = self.mass
        half_size = int(size) // 2
        x = int(self.x)
        y = int(self.y)
        inner_radius = half_size * self.sharpness

        surface.fill_rect_with_radial_gradient(
            x, y, size, size,
            inner_radius, half_size,
            x + half_size, y + half_size,
            self.compute_color(),
            constants.GRADIENT_OUTER_COLOR
        )

    def __repr__(self):
        return (f"Particle(x={self.x:.1f}, y={self.y:.1f}, "
                f"v=({self.velocity_x:.3f}, {self.velocity_y:.3f}), "
                f"mass={self.mass:.1f}, alpha={self.alpha:.3f})")
