"""
Main application module for the Mandelbrot visualizer.

Contains the MandelbrotApp class which handles:
- Window setup and main loop (paced at 60 Hz)
- Translating key presses into commands via the key binding table
- Driving the fractal engine one frame at a time
- Presenting the engine's RGBA frame buffer
"""

import logging

import numpy as np
import pygame

from .compute import CHANNELS
from .controls import apply_command, parse_bindings
from .engine import FrameContext, create_engine
from .plane import ComplexPlane
from .settings import load_settings


logger = logging.getLogger(__name__)


class MandelbrotApp:
    """
    Main application class for the Mandelbrot visualizer.

    Owns the current FrameContext, the engine and the frame buffer, and
    is the only place that touches pygame.
    """

    # Default configuration
    DEFAULT_WIDTH = 1280
    DEFAULT_HEIGHT = 800
    FPS = 60

    def __init__(self, width=None, height=None, max_iter=None, batch_size=None,
                 engine=None, color_scheme=None, settings=None):
        """
        Initialize the application.

        Explicit arguments override settings.json, which overrides the
        class defaults.

        Args:
            width, height: Window size in pixels
            max_iter: Iteration ceiling
            batch_size: Iterations per cell per frame (grid engine)
            engine: 'auto', 'grid' or 'shader'
            color_scheme: Name from colormaps.COLOR_SCHEMES
            settings: Settings dict (default: load_settings())
        """
        self.settings = settings if settings is not None else load_settings()
        window = self.settings['window']

        self.width = width if width is not None else window.get('width', self.DEFAULT_WIDTH)
        self.height = height if height is not None else window.get('height', self.DEFAULT_HEIGHT)
        self.engine_name = engine or self.settings['engine']
        self.bindings = parse_bindings(self.settings['key_bindings'])

        plane, _ = ComplexPlane().fit_to_screen(self.width, self.height)
        self.context = FrameContext(
            plane,
            max_iterations=max_iter if max_iter is not None else self.settings['max_iterations'],
            batch_size=batch_size if batch_size is not None else self.settings['batch_size'],
            color_scheme=color_scheme or self.settings['color_scheme'],
        )

        # Pygame state (initialized in run())
        self.screen = None
        self.clock = None
        self.key_codes = {}

        self.engine = None
        self.frame = None
        self.current_surface = None
        self.caption = None

        self.running = False

    def run(self):
        """Run the application main loop."""
        self._init_pygame()
        self._init_components()

        self.running = True
        while self.running:
            self._handle_events()
            if self.engine.update(self.context, self.frame):
                self._present()
            self._update_caption()
            self._draw()

            self.clock.tick(self.FPS)

        self.engine.finish(self.frame)
        pygame.quit()

    def _init_pygame(self):
        """Initialize pygame and create window."""
        pygame.init()
        self.screen = pygame.display.set_mode(
            (self.width, self.height),
            pygame.RESIZABLE
        )
        pygame.display.set_caption("Mandelbrot Set")
        self.clock = pygame.time.Clock()
        self.key_codes = self._resolve_key_codes()

    def _resolve_key_codes(self):
        """Map pygame key codes to the commands of the binding table."""
        key_codes = {}
        for name, command in self.bindings.items():
            try:
                key_codes[pygame.key.key_code(name)] = command
            except ValueError:
                logger.warning("Ignoring binding for unknown key %r", name)
        return key_codes

    def _init_components(self):
        """Create the engine and warm it up."""
        self.engine = create_engine(self.engine_name)
        pygame.display.set_caption("Compiling (first run only)...")
        self.engine.warmup()
        self._allocate_frame()
        logger.info("Rendering %dx%d with the %s engine",
                    self.width, self.height, self.engine.name)

    def _allocate_frame(self):
        self.frame = np.zeros(self.width * self.height * CHANNELS, dtype=np.uint8)
        self.frame[3::CHANNELS] = 255
        self.current_surface = None

    def _handle_events(self):
        """Process all pending pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.VIDEORESIZE:
                self._handle_resize(event.w, event.h)
            elif event.type == pygame.KEYDOWN:
                self._handle_key(event)

    def _handle_resize(self, width, height):
        """Refit the plane to the new window size."""
        if width <= 0 or height <= 0:
            return
        self.width, self.height = width, height
        plane, _ = self.context.plane.fit_to_screen(width, height)
        self.context = FrameContext(
            plane,
            max_iterations=self.context.max_iterations,
            batch_size=self.context.batch_size,
            color_scheme=self.context.color_scheme,
        )
        self._allocate_frame()
        logger.debug("Resized to %dx%d", width, height)

    def _handle_key(self, event):
        """Look the key up in the binding table and apply its command."""
        command = self.key_codes.get(event.key)
        if command is None:
            return
        if command.name == 'quit':
            self.running = False
            return
        try:
            self.context = apply_command(self.context, command)
        except ValueError as e:
            # Past float64 resolution; keep the last representable view
            logger.warning("Ignoring %s: %s", command.name, e)

    def _present(self):
        """Turn the RGBA frame buffer into a surface, imaginary axis up."""
        rgba = self.frame.reshape(self.height, self.width, CHANNELS)
        rgb = np.flipud(rgba[:, :, :3])
        self.current_surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))

    def _update_caption(self):
        pending = self.engine.pending
        if pending:
            caption = f"Mandelbrot Set - resolving {pending} pixels..."
        else:
            caption = "Mandelbrot Set - WASD to pan, R/F to zoom, Home to reset"
        if caption != self.caption:
            self.caption = caption
            pygame.display.set_caption(caption)

    def _draw(self):
        """Draw the current frame."""
        if self.current_surface is None:
            self.screen.fill((0, 0, 0))
        else:
            self.screen.blit(self.current_surface, (0, 0))
        pygame.display.flip()


def run(width=None, height=None, max_iter=None, batch_size=None, engine=None,
        color_scheme=None):
    """
    Run the Mandelbrot visualizer.

    Args:
        width, height: Window size (default from settings.json)
        max_iter: Iteration ceiling (default 1000)
        batch_size: Iterations per cell per frame (default 10)
        engine: 'auto', 'grid' or 'shader'
        color_scheme: Name of a color scheme
    """
    app = MandelbrotApp(width, height, max_iter, batch_size, engine, color_scheme)
    try:
        app.run()
    except KeyboardInterrupt:
        pygame.quit()
