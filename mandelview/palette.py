"""Iteration-count to color lookup table."""

from __future__ import annotations

import numpy as np

MAX_ITERATIONS = 1000


def build_palette(max_iterations: int = MAX_ITERATIONS) -> np.ndarray:
    """Build the read-only ``(max_iterations + 1, 3)`` RGB table.

    Each channel is a Bernstein-like polynomial of ``t = i / max_iterations``
    that vanishes at both ends, so escape count 0 and the iteration cap are
    both near black with a bright band in between.
    """

    if max_iterations <= 0:
        raise ValueError("max_iterations must be positive.")

    t = np.arange(max_iterations + 1, dtype=np.float64) / np.float64(max_iterations)
    s = 1.0 - t
    red = 9.0 * s * t ** 3
    green = 15.0 * s ** 2 * t ** 2
    blue = 8.5 * s ** 3 * t

    rgb = np.stack((red, green, blue), axis=-1) * 255.0
    palette = np.clip(np.trunc(rgb), 0, 255).astype(np.uint8)
    palette.flags.writeable = False
    return palette


def palette_color(palette: np.ndarray, iterations: int) -> tuple[int, int, int]:
    r, g, b = palette[iterations]
    return int(r), int(g), int(b)
