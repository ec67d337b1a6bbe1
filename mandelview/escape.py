"""Escape-time evaluation of the Mandelbrot recurrence."""

from __future__ import annotations

import numpy as np
import tensorflow as tf

from .palette import MAX_ITERATIONS

HORIZON_SQUARED = 4.0


def evaluate(c_real: float, c_imag: float, max_iterations: int = MAX_ITERATIONS) -> int:
    """Return the number of iterations after which ``c`` is proven to diverge.

    The orbit starts at ``z0 = c``. Points that stay inside the radius-2 disk
    for ``max_iterations`` steps are reported as ``max_iterations``.
    """

    z_real = c_real
    z_imag = c_imag
    for counter in range(max_iterations):
        r2 = z_real * z_real
        i2 = z_imag * z_imag
        if r2 + i2 > HORIZON_SQUARED:
            return counter
        z_imag = 2.0 * z_real * z_imag + c_imag
        z_real = r2 - i2 + c_real
    return max_iterations


_FLOAT_SPEC = tf.TensorSpec(shape=None, dtype=tf.float64)
_COUNT_SPEC = tf.TensorSpec(shape=None, dtype=tf.int32)
_ACTIVE_SPEC = tf.TensorSpec(shape=None, dtype=tf.bool)


@tf.function(input_signature=[_FLOAT_SPEC, _FLOAT_SPEC, _FLOAT_SPEC, _FLOAT_SPEC, _COUNT_SPEC, _ACTIVE_SPEC])
def _escape_step(
    z_real: tf.Tensor,
    z_imag: tf.Tensor,
    c_real: tf.Tensor,
    c_imag: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for points that have not escaped yet."""

    r2 = z_real * z_real
    i2 = z_imag * z_imag
    horizon = tf.constant(HORIZON_SQUARED, dtype=tf.float64)
    active = tf.logical_and(active, tf.logical_not(r2 + i2 > horizon))
    z_imag = tf.where(active, 2.0 * z_real * z_imag + c_imag, z_imag)
    z_real = tf.where(active, r2 - i2 + c_real, z_real)
    ns = ns + tf.cast(active, tf.int32)
    return z_real, z_imag, ns, active


@tf.function(input_signature=[_FLOAT_SPEC, _FLOAT_SPEC, tf.TensorSpec(shape=[], dtype=tf.int32)])
def _escape_run(c_real: tf.Tensor, c_imag: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate every point until it escapes or the cap is reached."""

    i = tf.constant(0, dtype=tf.int32)
    ns = tf.zeros_like(c_real, dtype=tf.int32)
    active = tf.ones_like(c_real, dtype=tf.bool)

    def cond(i, z_real, z_imag, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, z_real, z_imag, ns, active):
        z_real, z_imag, ns, active = _escape_step(z_real, z_imag, c_real, c_imag, ns, active)
        return i + 1, z_real, z_imag, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, c_real, c_imag, ns, active))
    return ns


def escape_counts(c_real: np.ndarray, c_imag: np.ndarray, max_iterations: int = MAX_ITERATIONS) -> np.ndarray:
    """Vectorized :func:`evaluate` over two equally shaped float64 arrays."""

    c_real = np.asarray(c_real, dtype=np.float64)
    c_imag = np.asarray(c_imag, dtype=np.float64)
    if c_real.shape != c_imag.shape:
        raise ValueError(f"coordinate arrays differ in shape: {c_real.shape} != {c_imag.shape}.")

    with tf.device("/CPU:0"):
        ns = _escape_run(
            tf.convert_to_tensor(c_real, dtype=tf.float64),
            tf.convert_to_tensor(c_imag, dtype=tf.float64),
            tf.constant(max_iterations, dtype=tf.int32),
        )
    return ns.numpy()
