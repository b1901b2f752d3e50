"""
Color scheme definitions for Mandelbrot visualization.

Escaped cells are colored by hue: the iteration count is squashed into a
saturating percentage (1 - 1/(n/K + 1)) so that hue changes quickly near the
set boundary and flattens out for deep escapes, then mapped onto the hue
wheel and converted from HSL to RGB. Cells inside the set are black.

Each scheme is a tuple (K, hue_max, saturation, lightness). The conversion
functions are JIT-compiled so the compute kernels can color cells directly.

To add a new scheme:
1. Pick its four parameters
2. Add it to the COLOR_SCHEMES dictionary at the bottom of this file
"""

import numpy as np
from numba import jit


INSIDE_COLOR = (0, 0, 0)

ITERATION_SCALE = 10.0  # K
HUE_MAX = 270.0
SATURATION = 1.0
LIGHTNESS = 0.7


@jit(nopython=True, cache=True)
def iteration_percent(iteration_count, k):
    """Map an iteration count onto [0, 1), saturating for large counts."""
    return 1.0 - 1.0 / (iteration_count / k + 1.0)


@jit(nopython=True, cache=True)
def _hue_to_channel(p, q, t):
    if t < 0.0:
        t += 1.0
    elif t > 1.0:
        t -= 1.0
    if t < 1.0 / 6.0:
        return p + (q - p) * 6.0 * t
    if t < 1.0 / 2.0:
        return q
    if t < 2.0 / 3.0:
        return p + (q - p) * (2.0 / 3.0 - t) * 6.0
    return p


@jit(nopython=True, cache=True)
def _to_byte(value):
    # Round half away from zero; value is always in [0, 1]
    return int(np.floor(value * 255.0 + 0.5))


@jit(nopython=True, cache=True)
def hsl_to_rgb(h, s, l):
    """
    Convert an HSL color to 8-bit RGB.

    Args:
        h: Hue in degrees
        s, l: Saturation and lightness in [0, 1]

    Returns:
        (r, g, b) tuple of ints in [0, 255]
    """
    if s == 0.0:
        grey = _to_byte(l)
        return grey, grey, grey

    hue = h / 360.0
    if l < 0.5:
        q = l * (1.0 + s)
    else:
        q = l + s - l * s
    p = 2.0 * l - q
    return (_to_byte(_hue_to_channel(p, q, hue + 1.0 / 3.0)),
            _to_byte(_hue_to_channel(p, q, hue)),
            _to_byte(_hue_to_channel(p, q, hue - 1.0 / 3.0)))


@jit(nopython=True, cache=True)
def escape_color(iteration_count, k, hue_max, saturation, lightness):
    """RGB for a cell that escaped after iteration_count iterations."""
    percent = iteration_percent(iteration_count, k)
    return hsl_to_rgb(hue_max * (1.0 - percent), saturation, lightness)


# Registry of all available color schemes.
# Keys are display names, values are (K, hue_max, saturation, lightness).
COLOR_SCHEMES = {
    'Spectrum': (ITERATION_SCALE, HUE_MAX, SATURATION, LIGHTNESS),
    'Pastel': (ITERATION_SCALE, HUE_MAX, 0.6, 0.8),
    'Ember': (25.0, 60.0, 1.0, 0.5),
    'Glacier': (40.0, 240.0, 0.8, 0.6),
    'Sunset': (ITERATION_SCALE, 120.0, 0.9, 0.6),
}

DEFAULT_COLOR_SCHEME = 'Spectrum'


def get_color_scheme(name):
    """
    Get a color scheme by name.

    Raises:
        KeyError if name not found
    """
    return COLOR_SCHEMES[name]


def list_color_scheme_names():
    """Get list of available color scheme names."""
    return list(COLOR_SCHEMES.keys())


def color_for(iteration_count, scheme=DEFAULT_COLOR_SCHEME):
    """
    Color of an escaped cell, or INSIDE_COLOR when iteration_count is None.

    The same iteration count always yields the same color.
    """
    if iteration_count is None:
        return INSIDE_COLOR
    k, hue_max, saturation, lightness = get_color_scheme(scheme)
    r, g, b = escape_color(float(iteration_count), k, hue_max, saturation, lightness)
    return int(r), int(g), int(b)
