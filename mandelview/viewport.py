"""Mapping between pixel indices and the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ViewportParameters:
    """Affine map from pixel space to the complex plane.

    ``zoom`` is the width of one pixel in plane units, so smaller values
    magnify. The center of the pixel grid maps to ``(center_x, center_y)``.
    """

    zoom: float
    center_x: float
    center_y: float


def validate_viewport(viewport: ViewportParameters) -> ViewportParameters:
    if not math.isfinite(viewport.zoom) or viewport.zoom <= 0.0:
        raise ValueError(f"zoom must be a finite positive number, got {viewport.zoom!r}.")
    if not (math.isfinite(viewport.center_x) and math.isfinite(viewport.center_y)):
        raise ValueError(
            f"center must be finite, got ({viewport.center_x!r}, {viewport.center_y!r})."
        )
    return viewport


def pixel_to_complex(
    px: float,
    py: float,
    zoom: float,
    center_x: float,
    center_y: float,
    width: int,
    height: int,
) -> tuple[float, float]:
    c_real = (px - width / 2) * zoom + center_x
    c_imag = (py - height / 2) * zoom + center_y
    return c_real, c_imag


def real_axis(viewport: ViewportParameters, width: int) -> np.ndarray:
    """Real coordinate of every column, identical to :func:`pixel_to_complex`."""

    columns = np.arange(width, dtype=np.float64)
    return (columns - np.float64(width / 2)) * np.float64(viewport.zoom) + np.float64(viewport.center_x)


def imag_axis(viewport: ViewportParameters, height: int) -> np.ndarray:
    """Imaginary coordinate of every row, identical to :func:`pixel_to_complex`."""

    rows = np.arange(height, dtype=np.float64)
    return (rows - np.float64(height / 2)) * np.float64(viewport.zoom) + np.float64(viewport.center_y)
