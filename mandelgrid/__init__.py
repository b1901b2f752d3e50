"""
Mandelbrot Set Explorer Package

An interactive Mandelbrot set explorer using Pygame for display and
Numba for JIT-compiled, incrementally refined computation.

Quick Start:
    from mandelgrid import run
    run()

Or from command line:
    python -m mandelgrid

Package Structure:
    - plane.py: Immutable view of the complex plane (pan, zoom, fit)
    - compute.py: JIT-compiled escape-time kernels over a cell arena
    - compute_gpu.py: PyTorch fragment-shader style evaluator
    - colormaps.py: Iteration count to color mapping and color schemes
    - engine.py: Grid and shader engines behind one interface
    - controls.py: Key binding table and view commands
    - settings.py: settings.json loading
    - app.py: Main application and event loop

Controls (see settings.json):
    - W/A/S/D, arrows: Pan
    - R / F: Zoom in / out
    - [ / ]: Fewer / more iterations
    - Home: Reset to default view
    - ESC: Quit
"""

from .plane import ComplexPlane
from .colormaps import COLOR_SCHEMES, color_for, get_color_scheme, list_color_scheme_names
from .engine import (
    FractalEngine,
    FrameContext,
    GridEngine,
    ShaderEngine,
    create_engine,
    shader_uniforms,
)
from .controls import Command, apply_command, parse_bindings
from .app import run, MandelbrotApp

__version__ = "1.0.0"
__all__ = [
    "run",
    "MandelbrotApp",
    "ComplexPlane",
    "FrameContext",
    "FractalEngine",
    "GridEngine",
    "ShaderEngine",
    "create_engine",
    "shader_uniforms",
    "COLOR_SCHEMES",
    "color_for",
    "get_color_scheme",
    "list_color_scheme_names",
    "Command",
    "apply_command",
    "parse_bindings",
]
