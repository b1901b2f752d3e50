"""
Settings for the Mandelbrot visualizer.

Defaults live in settings.json next to this file. A missing or unreadable
file is not fatal: the built-in DEFAULT_SETTINGS are used instead. Values
of the wrong type or range raise ValueError.
"""

import copy
import json
import logging
import os


logger = logging.getLogger(__name__)

SETTINGS_PATH = os.path.join(os.path.dirname(__file__), 'settings.json')

DEFAULT_SETTINGS = {
    'window': {'width': 1280, 'height': 800},
    'max_iterations': 1000,
    'batch_size': 10,
    'color_scheme': 'Spectrum',
    'engine': 'auto',
    'key_bindings': {
        'w': ['pan', 'up', 10.0],
        's': ['pan', 'down', 10.0],
        'a': ['pan', 'left', 10.0],
        'd': ['pan', 'right', 10.0],
        'r': ['zoom', 0.5],
        'f': ['zoom', 2.0],
        'escape': ['quit'],
    },
}


def load_settings(path=None):
    """
    Load settings from a JSON file, layered over DEFAULT_SETTINGS.

    Top-level keys present in the file replace the defaults; 'window' is
    merged key by key.
    """
    settings_path = path or SETTINGS_PATH
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    try:
        with open(settings_path, 'r') as f:
            loaded = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not load %s: %s", settings_path, e)
        return settings

    if not isinstance(loaded, dict):
        logger.warning("Ignoring %s: expected a JSON object", settings_path)
        return settings

    for key, value in loaded.items():
        if key == 'window' and isinstance(value, dict):
            settings['window'].update(value)
        else:
            settings[key] = value

    _check_count(settings, 'batch_size')
    _check_count(settings, 'max_iterations', allow_none=True)
    _check_count(settings['window'], 'width')
    _check_count(settings['window'], 'height')
    return settings


def _check_count(section, key, allow_none=False):
    """Raise ValueError unless section[key] is a positive integer."""
    value = section[key]
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"Setting {key!r} must be a positive integer, got {value!r}")
