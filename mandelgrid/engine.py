"""
Fractal engines: turn a view of the complex plane into colored pixels.

Two interchangeable engines implement the FractalEngine interface:
- GridEngine: CPU-parallel, incremental. Keeps per-pixel iteration state
  between frames, advances unresolved cells by a fixed budget per frame and
  drops cells from the working set as soon as they resolve, so the cost of
  a frame shrinks to the boundary region after the first few frames.
- ShaderEngine: evaluates the whole frame from three uniforms
  (max_iterations, complex_plane, pixel_size), fragment-shader style.

Both write RGB into an external RGBA8 frame buffer of width * height * 4
bytes and never touch alpha. The view is passed in on every call as a
FrameContext, so engines hold no global state and can be driven by tests
without a window.

Usage:
    engine = create_engine('grid')
    context = FrameContext(plane)
    frame = np.zeros(plane.width * plane.height * 4, dtype=np.uint8)

    # In your frame loop:
    if engine.update(context, frame):
        present(frame)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .colormaps import DEFAULT_COLOR_SCHEME, get_color_scheme
from .compute import (
    CHANNELS,
    PROVEN_INSIDE,
    advance_cells,
    paint_counts,
    paint_inside,
    retire_cells,
    seed_cells,
    warmup_jit,
)
from .compute_gpu import get_fragment_shader, should_default_to_gpu
from .plane import ComplexPlane


logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 1000
DEFAULT_BATCH_SIZE = 10


@dataclass(frozen=True)
class FrameContext:
    """Everything an engine needs to know about the current view."""

    plane: ComplexPlane
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    batch_size: int = DEFAULT_BATCH_SIZE
    color_scheme: str = DEFAULT_COLOR_SCHEME

    def __post_init__(self):
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.max_iterations is not None and self.max_iterations <= 0:
            raise ValueError(
                f"max_iterations must be positive or None, got {self.max_iterations}"
            )
        get_color_scheme(self.color_scheme)

    def view_key(self):
        """Part of the context that invalidates already-colored pixels."""
        return (self.plane, self.max_iterations, self.color_scheme)


def shader_uniforms(context):
    """Uniform values for a fragment-shader evaluation of the context."""
    plane = context.plane
    max_iterations = context.max_iterations or DEFAULT_MAX_ITERATIONS
    return {
        'max_iterations': int(max_iterations),
        'complex_plane': plane.uniform_value(),
        'pixel_size': plane.pixel_size(),
    }


def as_context(context):
    """Accept a bare plane wherever a FrameContext is expected."""
    if isinstance(context, ComplexPlane):
        return FrameContext(context)
    return context


def as_frame_buffer(frame, plane):
    """
    View a frame buffer as a flat writable uint8 array.

    Accepts a numpy array or any writable buffer (e.g. bytearray).
    """
    if isinstance(frame, np.ndarray):
        buf = frame.reshape(-1)
        if buf.dtype != np.uint8:
            raise ValueError(f"Frame buffer must be uint8, got {buf.dtype}")
    else:
        buf = np.frombuffer(frame, dtype=np.uint8)
    expected = plane.width * plane.height * CHANNELS
    if buf.shape[0] != expected:
        raise ValueError(
            f"Frame buffer has {buf.shape[0]} bytes, expected {expected} "
            f"for {plane.width}x{plane.height} RGBA"
        )
    return buf


class FractalEngine(ABC):
    """Common interface of the grid and shader engines."""

    name = None

    @abstractmethod
    def reseed(self, context):
        """Discard all progress and start over for the context's view."""

    @abstractmethod
    def update(self, context, frame):
        """
        Advance one frame of work for the context and write into frame.

        Returns:
            True if any pixel of frame was written
        """

    @property
    @abstractmethod
    def pending(self):
        """Number of pixels that still have no final color."""

    @property
    def done(self):
        return self.pending == 0

    def finish(self, frame):
        """Give every pixel without a final color the inside color."""

    def warmup(self):
        """Pre-compile or pre-allocate whatever the first frame needs."""


class GridEngine(FractalEngine):
    """
    Incremental CPU engine over an arena of per-pixel cells.

    Cell state is kept in flat arrays indexed by pixel index (row-major).
    The working set is the prefix active[:n_active] of an index array that
    is compacted in place after each step; arrays are only reallocated when
    the grid size changes.

    Attributes:
        plane: Plane of the current view session (None before first reseed)
        n_active: Size of the working set
    """

    name = 'grid'

    def __init__(self):
        self.plane = None
        self.view_key = None
        self.scheme = get_color_scheme(DEFAULT_COLOR_SCHEME)
        self.max_iter = 0
        self.size = 0

        self.cr = None
        self.ci = None
        self.zr = None
        self.zi = None
        self.iterations = None
        self.state = None
        self.active = None
        self.n_active = 0

    def _allocate(self, size):
        self.cr = np.empty(size, dtype=np.float64)
        self.ci = np.empty(size, dtype=np.float64)
        self.zr = np.empty(size, dtype=np.float64)
        self.zi = np.empty(size, dtype=np.float64)
        self.iterations = np.empty(size, dtype=np.int64)
        self.state = np.empty(size, dtype=np.int8)
        self.active = np.empty(size, dtype=np.int64)
        self.size = size

    def reseed(self, context):
        context = as_context(context)
        plane = context.plane
        size = plane.width * plane.height
        if size != self.size:
            self._allocate(size)

        center_re, center_im = plane.center
        seed_cells(center_re, center_im, plane.pixel_size(),
                   plane.width, plane.height,
                   self.cr, self.ci, self.zr, self.zi,
                   self.iterations, self.state)

        # Interior cells stay in the working set so the first compaction
        # paints them.
        self.active[:] = np.arange(size, dtype=np.int64)
        self.n_active = size

        self.plane = plane
        self.view_key = context.view_key()
        self.scheme = get_color_scheme(context.color_scheme)
        self.max_iter = context.max_iterations or 0
        logger.debug("Reseeded %dx%d grid, %d cells proven inside",
                     plane.width, plane.height, self.proven_inside_count())

    def proven_inside_count(self):
        if self.state is None:
            return 0
        return int(np.count_nonzero(self.state == PROVEN_INSIDE))

    def step(self, batch_size):
        """Advance every unresolved cell by up to batch_size iterations."""
        if self.n_active:
            advance_cells(self.active, self.n_active,
                          self.cr, self.ci, self.zr, self.zi,
                          self.iterations, self.state,
                          batch_size, self.max_iter)

    def compact(self, frame):
        """
        Color resolved cells into frame and drop them from the working set.

        Returns:
            Number of cells that were retired
        """
        before = self.n_active
        k, hue_max, saturation, lightness = self.scheme
        self.n_active = retire_cells(self.active, self.n_active,
                                     self.iterations, self.state, frame,
                                     k, hue_max, saturation, lightness)
        return before - self.n_active

    def update(self, context, frame):
        if self.view_key != context.view_key():
            self.reseed(context)
        if not self.n_active:
            return False
        buf = as_frame_buffer(frame, self.plane)
        self.step(context.batch_size)
        return self.compact(buf) > 0

    @property
    def pending(self):
        return self.n_active

    def working_set(self):
        """Pixel indices of the cells that are still unresolved."""
        return self.active[:self.n_active].copy()

    def finish(self, frame):
        if not self.n_active:
            return
        buf = as_frame_buffer(frame, self.plane)
        paint_inside(self.active, self.n_active, buf)
        self.n_active = 0

    def warmup(self):
        warmup_jit()


class ShaderEngine(FractalEngine):
    """
    Engine that evaluates each frame from shader uniforms in one pass.

    A frame is only evaluated when its uniforms (or size / color scheme)
    change; otherwise update() does nothing.
    """

    name = 'shader'

    def __init__(self, shader=None):
        self.shader = shader or get_fragment_shader()
        if not self.shader.available:
            raise RuntimeError("PyTorch not available")
        self.view_key = None
        self.uniforms = None
        self._pending = 0

    def reseed(self, context):
        context = as_context(context)
        self.view_key = None
        self._pending = context.plane.width * context.plane.height

    def update(self, context, frame):
        if self.view_key == context.view_key():
            return False
        plane = context.plane
        buf = as_frame_buffer(frame, plane)
        uniforms = shader_uniforms(context)
        counts, escaped = self.shader.evaluate(uniforms, plane.width, plane.height)

        k, hue_max, saturation, lightness = get_color_scheme(context.color_scheme)
        paint_counts(counts, escaped, buf, k, hue_max, saturation, lightness)

        self.uniforms = uniforms
        self.view_key = context.view_key()
        self._pending = 0
        logger.debug("Shader pass over %dx%d with %d iterations",
                     plane.width, plane.height, uniforms['max_iterations'])
        return True

    @property
    def pending(self):
        return self._pending

    def warmup(self):
        self.shader.warmup()


ENGINES = {
    'grid': GridEngine,
    'shader': ShaderEngine,
}


def list_engine_names():
    return ['auto'] + list(ENGINES.keys())


def create_engine(name='auto'):
    """
    Create an engine by name.

    'auto' picks the shader engine only on CUDA GPUs and the grid engine
    everywhere else.

    Raises:
        ValueError if name is unknown
    """
    if name == 'auto':
        name = 'shader' if should_default_to_gpu() else 'grid'
    try:
        engine_class = ENGINES[name]
    except KeyError:
        raise ValueError(
            f"Unknown engine {name!r}, expected one of {list_engine_names()}"
        ) from None
    logger.info("Using %s engine", name)
    return engine_class()
