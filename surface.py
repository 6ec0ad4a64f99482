# surface.py

import logging
import math
import re
from typing import Protocol, Tuple, runtime_checkable

import numpy as np
import pygame

from constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

# rgba(R,G,B,A) with 0-255 channels and a 0-1 alpha (alpha may be in exponent form)
_RGBA_PATTERN = re.compile(
    r"^\s*rgba\(\s*(\d+(?:\.\d*)?)\s*,\s*(\d+(?:\.\d*)?)\s*,\s*(\d+(?:\.\d*)?)\s*,"
    r"\s*([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)\s*\)\s*$"
)

# Compositing modes understood by PygameSurface.
COMPOSITE_MODES = ('lighter', 'source-over')


def parse_rgba(color: str) -> Tuple[float, float, float, float]:
    """
    Parses an 'rgba(R,G,B,A)' string into a (R, G, B, A) tuple of floats.
    Channels are clamped to 0-255 and alpha to 0-1.
    """
    match = _RGBA_PATTERN.match(color)
    if match is None:
        raise ValueError(f"Malformed rgba color string: {color!r}")
    red, green, blue, alpha = (float(group) for group in match.groups())
    return (
        min(red, 255.0),
        min(green, 255.0),
        min(blue, 255.0),
        min(max(alpha, 0.0), 1.0),
    )


@runtime_checkable
class DrawingSurface(Protocol):
    """
    The narrow drawing capability the particle engine renders through.

    Data Contract:
    - width, height: read-only surface extent in pixels.
    - set_composite_operation(name): selects how draws blend with existing pixels.
    - clear_region(x, y, width, height): erases a rectangle. Negative extents
      describe the same rectangle measured from the other corner.
    - fill_rect_with_radial_gradient(...): fills a rectangle with a radial
      gradient between two 'rgba(...)' color stops.
    """
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def set_composite_operation(self, name: str) -> None: ...

    def clear_region(self, x: float, y: float, width: float, height: float) -> None: ...

    def fill_rect_with_radial_gradient(self, x: float, y: float, width: float, height: float,
                                       inner_radius: float, outer_radius: float,
                                       center_x: float, center_y: float,
                                       inner_color: str, outer_color: str) -> None: ...


def _pixel_span(start: float, extent: float):
    """Returns the integer pixel range [first, last) covered by a possibly negative extent."""
    low = min(start, start + extent)
    high = max(start, start + extent)
    return int(math.floor(low)), int(math.ceil(high))


def _radial_gradient_rgba(left, top, width_px, height_px, center_x, center_y,
                          inner_radius, outer_radius, inner_rgba, outer_rgba):
    """
    Computes the gradient for a block of pixels as a (width, height, 4) float array
    indexed [x, y], matching pygame.surfarray's layout.

    Pixels inside the inner radius take the inner color, pixels beyond the outer
    radius take the outer color, and the band between is linearly interpolated.
    Equal radii produce a hard edge.
    """
    xs = np.arange(width_px, dtype=float) + left + 0.5
    ys = np.arange(height_px, dtype=float) + top + 0.5
    distance = np.hypot(xs[:, np.newaxis] - center_x, ys[np.newaxis, :] - center_y)

    span = outer_radius - inner_radius
    if span > 0:
        t = np.clip((distance - inner_radius) / span, 0.0, 1.0)
    else:
        t = (distance > outer_radius).astype(float)

    inner = np.asarray(inner_rgba, dtype=float)
    outer = np.asarray(outer_rgba, dtype=float)
    t = t[..., np.newaxis]
    return inner * (1.0 - t) + outer * t


class PygameSurface:
    """
    DrawingSurface implementation backed by a pygame.Surface.

    In 'lighter' mode each gradient's color, weighted by its alpha, is added to
    the pixels underneath (BLEND_RGB_ADD), so overlapping glows brighten. In
    'source-over' mode gradients are alpha-blended normally.

    Data Contract:
    - Inputs:
        - target (pygame.Surface): The surface to draw on. Not owned.
        - background (tuple): RGB color that clear_region paints.
    - Side Effects: Mutates the target surface's pixels.
    """
    def __init__(self, target: pygame.Surface, background=(0, 0, 0)):
        self.target = target
        self.background = tuple(background)
        self.composite_operation = 'source-over'

    @property
    def width(self) -> int:
        return self.target.get_width()

    @property
    def height(self) -> int:
        return self.target.get_height()

    def set_composite_operation(self, name: str):
        if name not in COMPOSITE_MODES:
            raise ValueError(f"Unsupported composite operation {name!r}; expected one of {COMPOSITE_MODES}")
        self.composite_operation = name
        logger.debug(f"Surface composite operation set to '{name}'.")

    def clear_region(self, x, y, width, height):
        left, right = _pixel_span(x, width)
        top, bottom = _pixel_span(y, height)
        if right <= left or bottom <= top:
            return
        self.target.fill(self.background, pygame.Rect(left, top, right - left, bottom - top))

    def fill_rect_with_radial_gradient(self, x, y, width, height,
                                       inner_radius, outer_radius,
                                       center_x, center_y,
                                       inner_color, outer_color):
        left, right = _pixel_span(x, width)
        top, bottom = _pixel_span(y, height)
        width_px = right - left
        height_px = bottom - top
        if width_px <= 0 or height_px <= 0:
            return

        rgba = _radial_gradient_rgba(
            left, top, width_px, height_px, center_x, center_y,
            inner_radius, outer_radius, parse_rgba(inner_color), parse_rgba(outer_color)
        )

        if self.composite_operation == 'lighter':
            # Additive: premultiply by alpha and add onto the destination.
            rgb = rgba[..., :3] * rgba[..., 3:4]
            patch = pygame.surfarray.make_surface(np.clip(rgb, 0, 255).astype(np.uint8))
            self.target.blit(patch, (left, top), special_flags=pygame.BLEND_RGB_ADD)
        else:
            patch = pygame.Surface((width_px, height_px), pygame.SRCALPHA)
            pixels = pygame.surfarray.pixels3d(patch)
            pixels[...] = np.clip(rgba[..., :3], 0, 255).astype(np.uint8)
            del pixels  # Release the surface lock
            alpha = pygame.surfarray.pixels_alpha(patch)
            alpha[...] = np.clip(rgba[..., 3] * 255.0, 0, 255).astype(np.uint8)
            del alpha
            self.target.blit(patch, (left, top))
