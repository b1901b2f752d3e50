"""
Coordinate space of the Mandelbrot set.

A ComplexPlane is an immutable value describing the visible rectangle of the
complex plane together with the pixel dimensions it is drawn into. Panning,
zooming and fitting to a window all return new planes.

All distances used by the transforms are expressed in pixels, converted with
pixel_size(), which keeps pixels square (1:1 aspect) even when the plane
rectangle and the pixel rectangle have different aspect ratios.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ComplexPlane:
    """Visible region of the complex plane plus target size in pixels."""

    min_re: float = -2.0
    min_im: float = -1.2
    max_re: float = 0.8
    max_im: float = 1.2
    width: int = 1000
    height: int = 1000

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Plane dimensions must be positive, got {self.width}x{self.height}"
            )
        bounds = (self.min_re, self.min_im, self.max_re, self.max_im)
        if not all(math.isfinite(b) for b in bounds):
            raise ValueError(f"Plane bounds must be finite, got {bounds}")
        if self.max_re <= self.min_re or self.max_im <= self.min_im:
            raise ValueError(f"Plane bounds are degenerate: {bounds}")

    # --- Math ---

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_re + self.max_re) / 2.0, (self.min_im + self.max_im) / 2.0

    def pixel_size(self) -> float:
        """Size of one (square) pixel in complex-plane units."""
        pixel_width = (self.max_re - self.min_re) / self.width
        pixel_height = (self.max_im - self.min_im) / self.height
        return max(pixel_width, pixel_height)

    def uniform_value(self) -> tuple[float, float, float, float]:
        """Bounds packed as (min.re, min.im, max.re, max.im)."""
        return (self.min_re, self.min_im, self.max_re, self.max_im)

    # --- Events ---

    def fit_to_screen(self, width: int, height: int) -> tuple[ComplexPlane, float]:
        """
        Resize the plane to new pixel dimensions without stretching it.

        Returns the adjusted plane and its pixel size.
        """
        resized = replace(self, width=width, height=height)
        # Same math as a no-op zoom; pixel_size() picks the binding axis.
        fitted = resized.zoom(1.0)
        return fitted, fitted.pixel_size()

    def move_left(self, pixels: float) -> ComplexPlane:
        """Negative pixels move the view to the right."""
        offset = pixels * self.pixel_size()
        return replace(self, min_re=self.min_re - offset, max_re=self.max_re - offset)

    def move_down(self, pixels: float) -> ComplexPlane:
        """Negative pixels move the view up."""
        offset = pixels * self.pixel_size()
        return replace(self, min_im=self.min_im - offset, max_im=self.max_im - offset)

    def zoom(self, factor: float) -> ComplexPlane:
        """
        Zoom in (factor < 1) or out (factor > 1) around the center.

        factor == 1 re-normalizes the bounds to the pixel aspect ratio.
        """
        new_pixel_size = factor * self.pixel_size()
        center_re, center_im = self.center
        radius_re = self.width * new_pixel_size / 2.0
        radius_im = self.height * new_pixel_size / 2.0
        return ComplexPlane(
            min_re=center_re - radius_re,
            min_im=center_im - radius_im,
            max_re=center_re + radius_re,
            max_im=center_im + radius_im,
            width=self.width,
            height=self.height,
        )
