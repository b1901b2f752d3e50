"""
Keyboard controls for the Mandelbrot visualizer.

Keys are bound to commands through a declarative table (see the
'key_bindings' entry of settings.json), for example:

    "w": ["pan", "up", 10.0]
    "r": ["zoom", 0.5]
    "escape": ["quit"]

Commands:
- pan <direction> <pixels>: direction is left, right, up or down
- zoom <factor>: factor < 1 zooms in, factor > 1 zooms out
- reset: back to the default framing, fitted to the window
- iterations <scale>: multiply the iteration ceiling by scale
- quit: close the window

Applying a command never mutates anything: apply_command() returns a new
FrameContext.
"""

from collections import namedtuple
from dataclasses import replace

from .plane import ComplexPlane


Command = namedtuple('Command', ['name', 'args'])

# direction -> (plane method, sign of the pixel offset)
PAN_DIRECTIONS = {
    'left': ('move_left', 1.0),
    'right': ('move_left', -1.0),
    'down': ('move_down', 1.0),
    'up': ('move_down', -1.0),
}

# command name -> number of arguments
COMMANDS = {
    'pan': 2,
    'zoom': 1,
    'reset': 0,
    'iterations': 1,
    'quit': 0,
}

MIN_ITERATIONS = 16


def parse_command(entry):
    """
    Build a Command from a binding entry like ["pan", "up", 10.0].

    Raises:
        ValueError for unknown commands, wrong arity or bad arguments
    """
    if isinstance(entry, str):
        entry = [entry]
    if not entry:
        raise ValueError("Empty command")

    name, args = entry[0], tuple(entry[1:])
    if name not in COMMANDS:
        raise ValueError(f"Unknown command {name!r}, expected one of {sorted(COMMANDS)}")
    if len(args) != COMMANDS[name]:
        raise ValueError(f"Command {name!r} takes {COMMANDS[name]} argument(s), got {len(args)}")

    if name == 'pan':
        direction, pixels = args
        if direction not in PAN_DIRECTIONS:
            raise ValueError(f"Unknown pan direction {direction!r}")
        args = (direction, float(pixels))
    elif name in ('zoom', 'iterations'):
        value = float(args[0])
        if value <= 0:
            raise ValueError(f"Command {name!r} needs a positive factor, got {value}")
        args = (value,)
    return Command(name, args)


def parse_bindings(table):
    """Turn a {key name: binding entry} table into {key name: Command}."""
    return {key.lower(): parse_command(entry) for key, entry in table.items()}


def pan(plane, direction, pixels):
    """Move the view by a number of pixels in the given direction."""
    method, sign = PAN_DIRECTIONS[direction]
    return getattr(plane, method)(sign * pixels)


def apply_command(context, command):
    """
    Return the FrameContext that results from applying command.

    'quit' is left to the caller and returns the context unchanged.
    """
    plane = context.plane
    if command.name == 'pan':
        return replace(context, plane=pan(plane, *command.args))
    if command.name == 'zoom':
        return replace(context, plane=plane.zoom(command.args[0]))
    if command.name == 'reset':
        fitted, _ = ComplexPlane().fit_to_screen(plane.width, plane.height)
        return replace(context, plane=fitted)
    if command.name == 'iterations':
        current = context.max_iterations
        if current is None:
            return context
        scaled = max(MIN_ITERATIONS, int(round(current * command.args[0])))
        return replace(context, max_iterations=scaled)
    return context
