"""Public API for the Mandelbrot escape-time engine."""

from .escape import escape_counts, evaluate
from .navigation import NavigationSettings, Navigator, apply_pan, apply_zoom, is_quit_key
from .palette import MAX_ITERATIONS, build_palette, palette_color
from .renderer import MandelbrotEngine, RowBand, partition_rows, resolve_worker_count
from .viewport import (
    ViewportParameters,
    imag_axis,
    pixel_to_complex,
    real_axis,
    validate_viewport,
)

__all__ = [
    "MAX_ITERATIONS",
    "MandelbrotEngine",
    "NavigationSettings",
    "Navigator",
    "RowBand",
    "ViewportParameters",
    "apply_pan",
    "apply_zoom",
    "build_palette",
    "escape_counts",
    "evaluate",
    "imag_axis",
    "is_quit_key",
    "palette_color",
    "partition_rows",
    "pixel_to_complex",
    "real_axis",
    "resolve_worker_count",
    "validate_viewport",
]
