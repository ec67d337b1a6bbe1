"""Parallel row-band rendering of Mandelbrot frames."""

from __future__ import annotations

import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .escape import escape_counts
from .palette import MAX_ITERATIONS, build_palette
from .viewport import ViewportParameters, imag_axis, real_axis, validate_viewport


@dataclass(frozen=True)
class RowBand:
    """Half-open range of grid rows owned by one worker."""

    min_row: int
    max_row: int

    def __len__(self) -> int:
        return self.max_row - self.min_row


def resolve_worker_count(workers: Optional[int] = None) -> int:
    """Use ``workers`` when given, otherwise the hardware parallelism (or 1)."""

    if workers is not None:
        if workers <= 0:
            raise ValueError(f"workers must be positive, got {workers}.")
        return int(workers)
    return os.cpu_count() or 1


def partition_rows(height: int, workers: int) -> list[RowBand]:
    """Split ``[0, height)`` into contiguous bands of ``ceil(height / workers)`` rows."""

    if height <= 0:
        raise ValueError(f"height must be positive, got {height}.")
    if workers <= 0:
        raise ValueError(f"workers must be positive, got {workers}.")

    step = math.ceil(height / workers)
    return [RowBand(row, min(row + step, height)) for row in range(0, height, step)]


class MandelbrotEngine:
    """Render escape-time images of a fixed size into caller-owned grids.

    The palette is built once and shared read-only by all renders. Each call
    to :meth:`render` forks one thread per row band and joins them before
    returning. Calls on the same grid must not overlap.
    """

    def __init__(self, width: int, height: int, *, workers: Optional[int] = None) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"grid dimensions must be positive, got {width}x{height}.")
        self.width = int(width)
        self.height = int(height)
        self.workers = workers
        self.max_iterations = MAX_ITERATIONS
        self.palette = build_palette(self.max_iterations)

    @property
    def shape(self) -> tuple[int, int, int]:
        return self.height, self.width, 3

    def new_grid(self) -> np.ndarray:
        return np.zeros(self.shape, dtype=np.uint8)

    def render(self, zoom: float, center_x: float, center_y: float, grid: np.ndarray) -> None:
        viewport = validate_viewport(ViewportParameters(float(zoom), float(center_x), float(center_y)))
        self._check_grid(grid)

        bands = partition_rows(self.height, resolve_worker_count(self.workers))
        real = real_axis(viewport, self.width)
        imag = imag_axis(viewport, self.height)

        with ThreadPoolExecutor(max_workers=len(bands), thread_name_prefix="mandelview-band") as pool:
            futures = [pool.submit(self._render_band, band, real, imag, grid) for band in bands]
        for future in futures:
            future.result()

    def render_viewport(self, viewport: ViewportParameters, grid: np.ndarray) -> None:
        self.render(viewport.zoom, viewport.center_x, viewport.center_y, grid)

    def _render_band(self, band: RowBand, real: np.ndarray, imag: np.ndarray, grid: np.ndarray) -> None:
        c_real, c_imag = np.meshgrid(real, imag[band.min_row:band.max_row])
        counts = escape_counts(c_real, c_imag, self.max_iterations)
        grid[band.min_row:band.max_row] = self.palette[counts]

    def _check_grid(self, grid: np.ndarray) -> None:
        if not isinstance(grid, np.ndarray):
            raise ValueError(f"grid must be a numpy array, got {type(grid).__name__}.")
        if grid.shape != self.shape:
            raise ValueError(f"grid shape {grid.shape} does not match engine shape {self.shape}.")
        if grid.dtype != np.uint8:
            raise ValueError(f"grid dtype must be uint8, got {grid.dtype}.")
        if not grid.flags.writeable:
            raise ValueError("grid must be writeable.")
