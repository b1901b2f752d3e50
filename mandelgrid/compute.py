"""
Escape-time computation functions using Numba JIT compilation.

This module contains all the performance-critical functions behind the
grid engine. Cell state lives in a structure-of-arrays arena: one slot per
pixel, indexed by pixel index, plus an array of active slot indices that is
compacted in place as cells resolve. These functions handle:
- Seeding the arena from a plane (with interior short-circuiting)
- Advancing active cells by a bounded iteration budget
- Coloring resolved cells into an RGBA frame and compacting the active set

Cell states:
- 0: unresolved (still iterating)
- 1: escaped outside (|z|² > 4)
- 2: proven inside (main cardioid or period-2 bulb, no iteration needed)
- 3: presumed inside (reached the iteration ceiling without escaping)
"""

import numpy as np
from numba import jit, prange

from .colormaps import escape_color


UNRESOLVED = 0
ESCAPED = 1
PROVEN_INSIDE = 2
PRESUMED_INSIDE = 3

ESCAPE_RADIUS_SQ = 4.0
CHANNELS = 4  # RGBA


@jit(nopython=True, cache=True)
def in_main_cardioid(cr, ci):
    """Closed-form membership test for the main cardioid."""
    xq = cr - 0.25
    q = xq * xq + ci * ci
    return q * (q + xq) < 0.25 * ci * ci


@jit(nopython=True, cache=True)
def in_period2_bulb(cr, ci):
    """Closed-form membership test for the disc centered on -1."""
    xb = cr + 1.0
    return xb * xb + ci * ci < 0.0625


@jit(nopython=True, parallel=True, cache=True)
def seed_cells(center_re, center_im, pixel_size, width, height,
               cr, ci, zr, zi, iterations, state):
    """
    Fill the arena for a width x height grid, row-major.

    Pixel (x, y) represents c = ((x - width//2) * pixel_size + center_re,
    (y - height//2) * pixel_size + center_im). Every z starts at 0 with no
    iterations; interior cells are proven inside right away.
    """
    half_w = width // 2
    half_h = height // 2
    for i in prange(width * height):
        px = i % width
        py = i // width
        c_re = (px - half_w) * pixel_size + center_re
        c_im = (py - half_h) * pixel_size + center_im
        cr[i] = c_re
        ci[i] = c_im
        zr[i] = 0.0
        zi[i] = 0.0
        iterations[i] = 0
        if in_main_cardioid(c_re, c_im) or in_period2_bulb(c_re, c_im):
            state[i] = PROVEN_INSIDE
        else:
            state[i] = UNRESOLVED


@jit(nopython=True, parallel=True, cache=True)
def advance_cells(active, n_active, cr, ci, zr, zi, iterations, state,
                  batch_size, max_iter):
    """
    Run up to batch_size iterations of z <- z² + c on each active cell.

    Every cell is touched by exactly one loop iteration, so no synchronization
    is needed. max_iter <= 0 disables the iteration ceiling.
    """
    for k in prange(n_active):
        i = active[k]
        if state[i] == UNRESOLVED:
            budget = batch_size
            if max_iter > 0:
                budget = min(batch_size, max_iter - iterations[i])

            x = zr[i]
            y = zi[i]
            c_re = cr[i]
            c_im = ci[i]
            n = 0
            escaped = False
            while n < budget:
                x, y = x * x - y * y + c_re, 2.0 * x * y + c_im
                n += 1
                if x * x + y * y > ESCAPE_RADIUS_SQ:
                    escaped = True
                    break

            zr[i] = x
            zi[i] = y
            iterations[i] += n
            if escaped:
                state[i] = ESCAPED
            elif max_iter > 0 and iterations[i] >= max_iter:
                state[i] = PRESUMED_INSIDE


@jit(nopython=True, cache=True)
def retire_cells(active, n_active, iterations, state, frame,
                 k, hue_max, saturation, lightness):
    """
    Color resolved cells and compact the active index array in place.

    Only RGB is written (at pixel_index * 4); alpha is left alone.

    Returns:
        Number of cells still active
    """
    kept = 0
    for j in range(n_active):
        i = active[j]
        s = state[i]
        if s == UNRESOLVED:
            active[kept] = i
            kept += 1
            continue

        offset = i * CHANNELS
        if s == ESCAPED:
            r, g, b = escape_color(iterations[i], k, hue_max, saturation, lightness)
            frame[offset] = r
            frame[offset + 1] = g
            frame[offset + 2] = b
        else:
            frame[offset] = 0
            frame[offset + 1] = 0
            frame[offset + 2] = 0
    return kept


@jit(nopython=True, cache=True)
def paint_inside(active, n_active, frame):
    """Paint every active cell with the inside color (black)."""
    for j in range(n_active):
        offset = active[j] * CHANNELS
        frame[offset] = 0
        frame[offset + 1] = 0
        frame[offset + 2] = 0


@jit(nopython=True, parallel=True, cache=True)
def paint_counts(counts, escaped, frame, k, hue_max, saturation, lightness):
    """
    Color a flat array of final iteration counts into an RGBA frame.

    Used by the shader engine so both engines share one color mapping.
    """
    for i in prange(counts.shape[0]):
        offset = i * CHANNELS
        if escaped[i]:
            r, g, b = escape_color(counts[i], k, hue_max, saturation, lightness)
            frame[offset] = r
            frame[offset + 1] = g
            frame[offset + 2] = b
        else:
            frame[offset] = 0
            frame[offset + 1] = 0
            frame[offset + 2] = 0


def warmup_jit():
    """
    Warm up JIT compilation with small dummy arrays.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on the first frame.
    """
    n = 16
    cr = np.empty(n, dtype=np.float64)
    ci = np.empty(n, dtype=np.float64)
    zr = np.empty(n, dtype=np.float64)
    zi = np.empty(n, dtype=np.float64)
    iterations = np.empty(n, dtype=np.int64)
    state = np.empty(n, dtype=np.int8)
    active = np.arange(n, dtype=np.int64)
    frame = np.zeros(n * CHANNELS, dtype=np.uint8)

    seed_cells(-0.6, 0.0, 0.7, 4, 4, cr, ci, zr, zi, iterations, state)
    advance_cells(active, n, cr, ci, zr, zi, iterations, state, 10, 100)
    kept = retire_cells(active, n, iterations, state, frame, 10.0, 270.0, 1.0, 0.7)
    paint_inside(active, kept, frame)
    paint_counts(iterations, state == ESCAPED, frame, 10.0, 270.0, 1.0, 0.7)
