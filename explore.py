import os
import sys
import warnings
from timeit import default_timer as timer

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np
import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

import matplotlib.pyplot as plt

from mandelview import (
    MAX_ITERATIONS,
    MandelbrotEngine,
    NavigationSettings,
    Navigator,
    ViewportParameters,
    is_quit_key,
    resolve_worker_count,
    validate_viewport,
)
from mandelview.navigation import PAN_KEYS, QUIT_KEYS, ZOOM_IN_KEYS, ZOOM_OUT_KEYS

from argparse import ArgumentParser

_BOUND_KEYS = set(PAN_KEYS) | ZOOM_IN_KEYS | ZOOM_OUT_KEYS | QUIT_KEYS


def build_parser():
    parser = ArgumentParser(description="Interactive Mandelbrot explorer.")

    parser.add_argument('--width', type=int,
                        dest='width', help='number of pixel columns in the rendered grid',
                        metavar='WIDTH', default=960)

    parser.add_argument('--height', type=int,
                        dest='height', help='number of pixel rows in the rendered grid',
                        metavar='HEIGHT', default=540)

    parser.add_argument('--zoom', type=float,
                        dest='zoom', help='width of one pixel in the complex plane; smaller values magnify',
                        metavar='ZOOM', default=0.004)

    parser.add_argument('--x-center', type=float,
                        dest='x_center', help='real coordinate of the viewport center',
                        metavar='X_CENTER', default=-0.7)

    parser.add_argument('--y-center', type=float,
                        dest='y_center', help='imaginary coordinate of the viewport center',
                        metavar='Y_CENTER', default=0.0)

    parser.add_argument('--zoom-factor', type=float,
                        dest='zoom_factor', help='factor applied to the zoom per zoom-in step (between 0 and 1)',
                        metavar='ZOOM_FACTOR', default=0.9)

    parser.add_argument('--pan-step', type=int,
                        dest='pan_step', help='number of pixels the view moves per pan key press',
                        metavar='PAN_STEP', default=40)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of row bands rendered in parallel (default: CPU count)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--no-window', dest='no_window', action='store_true',
                        help='Render the initial viewport once, report timing and exit.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics and render timings.')

    return parser


def describe_viewport(viewport: ViewportParameters) -> str:
    return f"zoom={viewport.zoom:.6g} center=({viewport.center_x:.6g}, {viewport.center_y:.6g})"


def timed_render(engine: MandelbrotEngine, viewport: ViewportParameters, grid: np.ndarray) -> float:
    """Render ``viewport`` into ``grid`` and return the elapsed seconds."""

    start = timer()
    engine.render_viewport(viewport, grid)
    elapsed = timer() - start
    log("rendered %s in %.3f s" % (describe_viewport(viewport), elapsed))
    return elapsed


def cap_colored_fraction(engine: MandelbrotEngine, grid: np.ndarray) -> float:
    """Fraction of pixels that carry the color of the iteration cap."""

    cap_color = engine.palette[MAX_ITERATIONS]
    return float(np.all(grid == cap_color, axis=-1).mean())


class Explorer:
    """Matplotlib window presenting the engine's grid and forwarding input."""

    def __init__(self, engine: MandelbrotEngine, navigator: Navigator):
        self.engine = engine
        self.navigator = navigator
        self.grid = engine.new_grid()

        # Drop matplotlib's default bindings for keys used for navigation.
        for name in [key for key in plt.rcParams if key.startswith("keymap.")]:
            plt.rcParams[name] = [key for key in plt.rcParams[name] if key not in _BOUND_KEYS]

        dpi = 100
        self.fig = plt.figure(figsize=(engine.width / dpi, engine.height / dpi), dpi=dpi)
        self.ax = self.fig.add_axes([0.0, 0.0, 1.0, 1.0])
        self.ax.set_axis_off()
        self.image = self.ax.imshow(self.grid, interpolation="nearest")

        self.fig.canvas.mpl_connect("key_press_event", self._on_key)
        self.fig.canvas.mpl_connect("scroll_event", self._on_scroll)
        self.refresh()

    def refresh(self) -> bool:
        """Re-render if the navigator has a pending viewport."""

        viewport = self.navigator.consume()
        if viewport is None:
            return False
        timed_render(self.engine, viewport, self.grid)
        self.image.set_data(self.grid)
        manager = self.fig.canvas.manager
        if manager is not None:
            manager.set_window_title("Mandelbrot  " + describe_viewport(viewport))
        self.fig.canvas.draw_idle()
        return True

    def _on_key(self, event):
        if is_quit_key(event.key):
            plt.close(self.fig)
            return
        if self.navigator.handle_key(event.key):
            self.refresh()

    def _on_scroll(self, event):
        if self.navigator.handle_scroll(event.step):
            self.refresh()

    def run(self):
        plt.show()


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose) or VERBOSE

    try:
        viewport = validate_viewport(ViewportParameters(opt.zoom, opt.x_center, opt.y_center))
        settings = NavigationSettings(zoom_factor=opt.zoom_factor, pan_step=opt.pan_step)
        workers = resolve_worker_count(opt.workers)
        engine = MandelbrotEngine(opt.width, opt.height, workers=workers)
    except ValueError as exc:
        parser.error(str(exc))

    log("TensorFlow version: %s" % tf.__version__)
    log("Rendering %dx%d with %d worker(s)" % (engine.width, engine.height, workers))

    navigator = Navigator(viewport, settings)

    if opt.no_window:
        grid = engine.new_grid()
        elapsed = timed_render(engine, navigator.consume(), grid)
        print("rendered {0}x{1} in {2:.3f} s, {3:.1%} of pixels at the iteration cap color".format(
            engine.width, engine.height, elapsed, cap_colored_fraction(engine, grid)))
        return 0

    Explorer(engine, navigator).run()
    return 0


if __name__ == '__main__':
    sys.exit(main())
