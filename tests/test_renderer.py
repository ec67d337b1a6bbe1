import os
import threading

import numpy as np
import pytest

from mandelview import (
    MAX_ITERATIONS,
    MandelbrotEngine,
    RowBand,
    evaluate,
    partition_rows,
    pixel_to_complex,
    resolve_worker_count,
)

# Never produced by the palette: every channel peaks below 245.
SENTINEL = 255


class RecordingEngine(MandelbrotEngine):
    """Engine that counts how often each row is written during a render."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lock = threading.Lock()
        self.row_writes = np.zeros(self.height, dtype=np.int64)
        self.threads = set()

    def _render_band(self, band, real, imag, grid):
        with self.lock:
            self.row_writes[band.min_row:band.max_row] += 1
            self.threads.add(threading.get_ident())
        super()._render_band(band, real, imag, grid)


def test_partition_for_reference_resolution():
    bands = partition_rows(540, 4)
    assert bands == [RowBand(0, 135), RowBand(135, 270), RowBand(270, 405), RowBand(405, 540)]
    assert all(abs(len(band) - 135) <= 1 for band in bands)


@pytest.mark.parametrize("height", [1, 2, 3, 7, 64, 540, 541, 1001])
@pytest.mark.parametrize("workers", [1, 2, 3, 4, 8, 16, 1024])
def test_partition_is_exact_cover(height, workers):
    bands = partition_rows(height, workers)
    covered = np.zeros(height, dtype=np.int64)
    for band in bands:
        assert 0 <= band.min_row < band.max_row <= height
        covered[band.min_row:band.max_row] += 1

    assert np.all(covered == 1)
    assert bands[0].min_row == 0
    assert bands[-1].max_row == height
    assert all(a.max_row == b.min_row for a, b in zip(bands, bands[1:]))
    assert len(bands) <= workers


def test_partition_with_fewer_rows_than_workers():
    assert partition_rows(3, 8) == [RowBand(0, 1), RowBand(1, 2), RowBand(2, 3)]


@pytest.mark.parametrize("height, workers", [(0, 4), (-1, 4), (10, 0)])
def test_partition_rejects_degenerate_input(height, workers):
    with pytest.raises(ValueError):
        partition_rows(height, workers)


def test_worker_count_prefers_explicit_value(monkeypatch):
    monkeypatch.setattr(os, "cpu_count", lambda: 12)
    assert resolve_worker_count(3) == 3
    assert resolve_worker_count() == 12


def test_worker_count_falls_back_to_one(monkeypatch):
    monkeypatch.setattr(os, "cpu_count", lambda: None)
    assert resolve_worker_count() == 1


def test_worker_count_rejects_non_positive():
    with pytest.raises(ValueError):
        resolve_worker_count(0)


@pytest.mark.parametrize("width, height, workers", [(24, 7, 1), (24, 7, 3), (24, 7, 10), (5, 1, 4), (13, 17, 4)])
def test_every_cell_written_exactly_once(width, height, workers):
    engine = RecordingEngine(width, height, workers=workers)
    grid = np.full(engine.shape, SENTINEL, dtype=np.uint8)

    engine.render(0.1, -0.5, 0.0, grid)

    assert np.all(engine.row_writes == 1)
    assert not np.any(np.all(grid == SENTINEL, axis=-1))
    assert len(engine.threads) <= min(workers, height)


def test_render_is_deterministic_across_worker_counts():
    grids = []
    for workers in (1, 2, 3, 7, 36):
        engine = MandelbrotEngine(64, 36, workers=workers)
        grid = engine.new_grid()
        engine.render(0.05, -0.75, 0.1, grid)
        grids.append(grid)

    for grid in grids[1:]:
        np.testing.assert_array_equal(grid, grids[0])


def test_repeated_render_is_identical():
    engine = MandelbrotEngine(48, 30, workers=4)
    first, second = engine.new_grid(), engine.new_grid()
    engine.render(0.01, -0.745, 0.113, first)
    engine.render(0.01, -0.745, 0.113, second)
    assert first.tobytes() == second.tobytes()


def test_pixels_match_scalar_composition():
    width, height, zoom, cx, cy = 16, 9, 0.25, -0.5, 0.0
    engine = MandelbrotEngine(width, height, workers=3)
    grid = engine.new_grid()
    engine.render(zoom, cx, cy, grid)

    for y in range(height):
        for x in range(width):
            count = evaluate(*pixel_to_complex(x, y, zoom, cx, cy, width, height))
            assert tuple(grid[y, x]) == tuple(engine.palette[count])


def test_reference_view_end_to_end():
    engine = MandelbrotEngine(960, 540)
    grid = engine.new_grid()
    engine.render(0.004, -0.7, 0.0, grid)

    assert pixel_to_complex(480, 270, 0.004, -0.7, 0.0, 960, 540) == (-0.7, 0.0)
    assert evaluate(-0.7, 0.0) == MAX_ITERATIONS
    assert tuple(grid[270, 480]) == tuple(engine.palette[MAX_ITERATIONS])
    assert grid.max() > 100


def test_render_viewport_delegates_to_render():
    from mandelview import ViewportParameters

    engine = MandelbrotEngine(20, 10, workers=2)
    a, b = engine.new_grid(), engine.new_grid()
    engine.render(0.2, -0.5, 0.0, a)
    engine.render_viewport(ViewportParameters(0.2, -0.5, 0.0), b)
    np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("zoom", [0.0, -0.004, float("inf"), float("nan")])
def test_render_rejects_bad_zoom(zoom):
    engine = MandelbrotEngine(8, 4)
    with pytest.raises(ValueError):
        engine.render(zoom, 0.0, 0.0, engine.new_grid())


@pytest.mark.parametrize(
    "grid",
    [
        np.zeros((4, 8), dtype=np.uint8),
        np.zeros((8, 4, 3), dtype=np.uint8),
        np.zeros((4, 8, 3), dtype=np.float32),
        [[0] * 8] * 4,
    ],
)
def test_render_rejects_mismatched_grid(grid):
    engine = MandelbrotEngine(8, 4)
    with pytest.raises(ValueError):
        engine.render(0.1, 0.0, 0.0, grid)


@pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 5)])
def test_engine_rejects_empty_grid(width, height):
    with pytest.raises(ValueError):
        MandelbrotEngine(width, height)


def test_engine_propagates_worker_errors():
    class FailingEngine(MandelbrotEngine):
        def _render_band(self, band, real, imag, grid):
            if band.min_row == 0:
                raise RuntimeError("band failed")
            super()._render_band(band, real, imag, grid)

    engine = FailingEngine(8, 8, workers=4)
    with pytest.raises(RuntimeError, match="band failed"):
        engine.render(0.1, 0.0, 0.0, engine.new_grid())
