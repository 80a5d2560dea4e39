# oildrop/utils.py
"""General utility functions for the simulation backend."""

import importlib
import math

import numpy as np


def dynamic_import(module_name, class_name):
    """Dynamically imports a class from a specified module."""
    try:
        module = importlib.import_module(module_name)
        imported_class = getattr(module, class_name)
        return imported_class
    except ImportError:
        print(f"ERROR: Module '{module_name}' not found.")
        raise
    except AttributeError:
        print(f"ERROR: Class '{class_name}' not found in module '{module_name}'.")
        raise


def clamp(value, lo, hi):
    return min(max(value, lo), hi)


def sanitize_float(value, fallback=0.0):
    """float(value) if finite, else fallback. Accepts numeric strings from the UI."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return fallback
    return result if math.isfinite(result) else fallback


_TRUE_STRINGS = ('true', '1', 'yes', 'on')
_FALSE_STRINGS = ('false', '0', 'no', 'off', '')


def parse_flag(value) -> bool:
    """bool from a UI toggle value; raises ValueError for anything that is not a recognizable on/off."""
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, float, np.number)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS: return True
        if text in _FALSE_STRINGS: return False
    raise ValueError(f"Invalid flag value: {value!r}")


def format_value_scientific(value, precision=2):
    """Formats a number into scientific notation string, handling non-finite values."""
    if value is None or not isinstance(value, (int, float, np.number)) or not np.isfinite(value):
        return "-"
    if abs(value) < 1e-30:
        return "0.0e+00"
    return f"{value:.{precision}e}"
