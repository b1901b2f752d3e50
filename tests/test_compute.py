import numpy as np
import pytest

from mandelgrid.colormaps import color_for, get_color_scheme
from mandelgrid.compute import (
    ESCAPED,
    PRESUMED_INSIDE,
    PROVEN_INSIDE,
    UNRESOLVED,
    advance_cells,
    in_main_cardioid,
    in_period2_bulb,
    paint_counts,
    retire_cells,
    seed_cells,
)


def make_cells(points):
    """Arena for a list of c values, all active and unresolved."""
    n = len(points)
    cr = np.array([p.real for p in points], dtype=np.float64)
    ci = np.array([p.imag for p in points], dtype=np.float64)
    zr = np.zeros(n, dtype=np.float64)
    zi = np.zeros(n, dtype=np.float64)
    iterations = np.zeros(n, dtype=np.int64)
    state = np.full(n, UNRESOLVED, dtype=np.int8)
    active = np.arange(n, dtype=np.int64)
    return active, cr, ci, zr, zi, iterations, state


@pytest.mark.parametrize("c", [0j, -0.5 + 0j, 0.2 + 0j, -0.1 + 0.5j, 0.24 + 0j])
def test_main_cardioid_members(c):
    assert in_main_cardioid(c.real, c.imag)


@pytest.mark.parametrize("c", [0.3 + 0j, -0.8 + 0j, 2 + 2j, 0.1 + 0.7j, -1.0 + 0j])
def test_main_cardioid_non_members(c):
    assert not in_main_cardioid(c.real, c.imag)


def test_period2_bulb():
    assert in_period2_bulb(-1.0, 0.0)
    assert in_period2_bulb(-1.2, 0.1)
    assert not in_period2_bulb(-1.3, 0.0)
    assert not in_period2_bulb(0.0, 0.0)


def test_seed_cells_maps_pixels_row_major():
    # Default framing at 4x4: pixel size 0.7, center (-0.6, 0)
    width, height = 4, 4
    n = width * height
    cr, ci, zr, zi = (np.empty(n) for _ in range(4))
    iterations = np.empty(n, dtype=np.int64)
    state = np.empty(n, dtype=np.int8)

    seed_cells(-0.6, 0.0, 0.7, width, height, cr, ci, zr, zi, iterations, state)

    assert cr[:4] == pytest.approx([-2.0, -1.3, -0.6, 0.1])
    assert ci[::4] == pytest.approx([-1.4, -0.7, 0.0, 0.7])
    assert np.all(zr == 0.0)
    assert np.all(zi == 0.0)
    assert np.all(iterations == 0)
    assert list(np.flatnonzero(state == PROVEN_INSIDE)) == [10, 11]
    assert np.all(state[state != PROVEN_INSIDE] == UNRESOLVED)


def test_far_point_escapes_on_first_iteration():
    active, cr, ci, zr, zi, iterations, state = make_cells([2 + 2j])
    advance_cells(active, 1, cr, ci, zr, zi, iterations, state, 10, 0)
    assert state[0] == ESCAPED
    assert iterations[0] == 1


def test_budget_bounds_work_per_step():
    # c = -2 never escapes: z goes -2, 2, 2, ...
    active, cr, ci, zr, zi, iterations, state = make_cells([-2 + 0j])
    advance_cells(active, 1, cr, ci, zr, zi, iterations, state, 10, 0)
    assert state[0] == UNRESOLVED
    assert iterations[0] == 10
    advance_cells(active, 1, cr, ci, zr, zi, iterations, state, 10, 0)
    assert iterations[0] == 20
    assert (zr[0], zi[0]) == (2.0, 0.0)


def test_escape_count_accumulates_across_steps():
    # c = 0.3 escapes slowly, after more than one batch of 5
    active, cr, ci, zr, zi, iterations, state = make_cells([0.3 + 0j])
    steps = 0
    while state[0] == UNRESOLVED:
        advance_cells(active, 1, cr, ci, zr, zi, iterations, state, 5, 0)
        steps += 1
    assert steps > 1

    z = 0j
    expected = 0
    while abs(z) ** 2 <= 4.0:
        z = z * z + 0.3
        expected += 1
    assert iterations[0] == expected


def test_iteration_ceiling_presumes_inside():
    active, cr, ci, zr, zi, iterations, state = make_cells([-2 + 0j, 2 + 2j])
    advance_cells(active, 2, cr, ci, zr, zi, iterations, state, 10, 15)
    assert list(state) == [UNRESOLVED, ESCAPED]
    advance_cells(active, 2, cr, ci, zr, zi, iterations, state, 10, 15)
    assert state[0] == PRESUMED_INSIDE
    assert iterations[0] == 15
    # Resolved cells are never touched again
    assert iterations[1] == 1


def test_resolved_cells_are_skipped():
    active, cr, ci, zr, zi, iterations, state = make_cells([0j])
    state[0] = PROVEN_INSIDE
    advance_cells(active, 1, cr, ci, zr, zi, iterations, state, 10, 0)
    assert iterations[0] == 0
    assert state[0] == PROVEN_INSIDE


def test_retire_cells_colors_and_compacts():
    active = np.arange(4, dtype=np.int64)
    iterations = np.array([5, 1, 0, 7], dtype=np.int64)
    state = np.array([UNRESOLVED, ESCAPED, PROVEN_INSIDE, UNRESOLVED], dtype=np.int8)
    frame = np.full(16, 7, dtype=np.uint8)

    kept = retire_cells(active, 4, iterations, state, frame,
                        *get_color_scheme('Spectrum'))

    assert kept == 2
    assert list(active[:kept]) == [0, 3]
    assert tuple(frame[4:7]) == color_for(1)
    assert tuple(frame[8:11]) == (0, 0, 0)
    # Unresolved pixels and alpha are left alone
    assert list(frame[0:4]) == [7, 7, 7, 7]
    assert list(frame[12:16]) == [7, 7, 7, 7]
    assert frame[7] == 7
    assert frame[11] == 7


def test_retire_presumed_inside_is_black():
    active = np.array([0], dtype=np.int64)
    iterations = np.array([1000], dtype=np.int64)
    state = np.array([PRESUMED_INSIDE], dtype=np.int8)
    frame = np.full(4, 9, dtype=np.uint8)
    assert retire_cells(active, 1, iterations, state, frame, *get_color_scheme('Spectrum')) == 0
    assert list(frame) == [0, 0, 0, 9]


def test_paint_counts_shares_color_mapping():
    counts = np.array([3, 1000, 12], dtype=np.int64)
    escaped = np.array([True, False, True])
    frame = np.full(12, 255, dtype=np.uint8)
    paint_counts(counts, escaped, frame, *get_color_scheme('Spectrum'))
    assert tuple(frame[0:3]) == color_for(3)
    assert tuple(frame[4:7]) == (0, 0, 0)
    assert tuple(frame[8:11]) == color_for(12)
    assert list(frame[3::4]) == [255, 255, 255]
