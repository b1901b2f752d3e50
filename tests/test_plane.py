import dataclasses
import math

import pytest

from mandelgrid.plane import ComplexPlane


def bounds(plane):
    return plane.uniform_value()


def assert_bounds_close(a, b, rel=1e-12, abs_=1e-12):
    assert bounds(a) == pytest.approx(bounds(b), rel=rel, abs=abs_)
    assert (a.width, a.height) == (b.width, b.height)


@pytest.fixture
def fitted():
    plane, _ = ComplexPlane().fit_to_screen(1280, 800)
    return plane


def test_default_framing():
    plane = ComplexPlane()
    assert bounds(plane) == (-2.0, -1.2, 0.8, 1.2)
    assert (plane.width, plane.height) == (1000, 1000)
    assert plane.pixel_size() == pytest.approx(0.0028)


def test_pixel_size_uses_binding_axis():
    plane = ComplexPlane(-2.0, -1.0, 2.0, 1.0, width=100, height=10)
    # re: 4/100, im: 2/10
    assert plane.pixel_size() == pytest.approx(0.2)


@pytest.mark.parametrize("kwargs", [
    dict(width=0),
    dict(height=0),
    dict(width=-5),
    dict(min_re=1.0, max_re=1.0),
    dict(min_im=2.0),
    dict(max_re=float('nan')),
    dict(min_im=float('-inf')),
])
def test_invalid_planes_fail_fast(kwargs):
    with pytest.raises(ValueError):
        ComplexPlane(**kwargs)


def test_plane_is_immutable():
    plane = ComplexPlane()
    with pytest.raises(dataclasses.FrozenInstanceError):
        plane.width = 10


@pytest.mark.parametrize("size", [(1280, 800), (800, 1280), (640, 640), (3, 1), (1, 7)])
def test_fit_to_screen_matches_binding_dimension(size):
    plane, pixel_size = ComplexPlane().fit_to_screen(*size)
    re_span = plane.max_re - plane.min_re
    im_span = plane.max_im - plane.min_im

    assert (plane.width, plane.height) == size
    assert pixel_size == pytest.approx(plane.pixel_size())
    assert (math.isclose(plane.width * pixel_size, re_span, rel_tol=1e-9)
            or math.isclose(plane.height * pixel_size, im_span, rel_tol=1e-9))


def test_fit_to_screen_keeps_center_and_whole_set_visible():
    original = ComplexPlane()
    plane, pixel_size = original.fit_to_screen(1280, 800)

    assert plane.center == pytest.approx(original.center)
    # Height binds: 2.4 / 800
    assert pixel_size == pytest.approx(0.003)
    assert plane.min_im == pytest.approx(-1.2)
    assert plane.max_im == pytest.approx(1.2)
    assert plane.min_re <= -2.0
    assert plane.max_re >= 0.8


def test_fit_to_screen_does_not_mutate():
    original = ComplexPlane()
    original.fit_to_screen(10, 20)
    assert bounds(original) == (-2.0, -1.2, 0.8, 1.2)


def test_zoom_one_is_idempotent():
    once = ComplexPlane().zoom(1.0)
    twice = once.zoom(1.0)
    assert_bounds_close(once, twice)


def test_zoom_round_trip(fitted):
    assert_bounds_close(fitted.zoom(0.5).zoom(2.0), fitted)


def test_zoom_in_shrinks_around_center(fitted):
    zoomed = fitted.zoom(0.5)
    assert zoomed.center == pytest.approx(fitted.center)
    assert zoomed.pixel_size() == pytest.approx(fitted.pixel_size() * 0.5)
    assert zoomed.max_re - zoomed.min_re == pytest.approx((fitted.max_re - fitted.min_re) / 2)


@pytest.mark.parametrize("factor", [0.0, -1.0])
def test_degenerate_zoom_is_rejected(fitted, factor):
    with pytest.raises(ValueError):
        fitted.zoom(factor)


def test_move_left_sign_convention(fitted):
    moved = fitted.move_left(10)
    offset = 10 * fitted.pixel_size()
    assert moved.min_re == pytest.approx(fitted.min_re - offset)
    assert moved.max_re == pytest.approx(fitted.max_re - offset)
    assert (moved.min_im, moved.max_im) == (fitted.min_im, fitted.max_im)


def test_move_down_sign_convention(fitted):
    moved = fitted.move_down(10)
    offset = 10 * fitted.pixel_size()
    assert moved.min_im == pytest.approx(fitted.min_im - offset)
    assert moved.max_im == pytest.approx(fitted.max_im - offset)
    assert (moved.min_re, moved.max_re) == (fitted.min_re, fitted.max_re)


def test_translation_is_reversible_exactly():
    plane = ComplexPlane(-2.0, -1.0, 2.0, 1.0, width=4, height=2)
    assert plane.move_left(3).move_left(-3) == plane
    assert plane.move_down(-5).move_down(5) == plane


def test_translation_is_reversible(fitted):
    assert_bounds_close(fitted.move_left(25).move_left(-25), fitted)
    assert_bounds_close(fitted.move_down(-25).move_down(25), fitted)


def test_uniform_value_layout():
    plane = ComplexPlane(-1.5, -0.5, 0.5, 1.0, width=8, height=6)
    assert plane.uniform_value() == (-1.5, -0.5, 0.5, 1.0)
