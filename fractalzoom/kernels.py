"""TensorFlow kernels evaluating the escape-time recurrence over a whole frame."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

HORIZON = 2.0


@tf.function
def _escape_step(
    z_re: tf.Tensor,
    z_im: tf.Tensor,
    c_re: tf.Tensor,
    c_im: tf.Tensor,
    ns: tf.Tensor,
    escaped: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Apply z <- z^2 + c to the points that are still iterating."""

    re_new = z_re * z_re - z_im * z_im + c_re
    im_new = 2.0 * z_re * z_im + c_im
    z_re = tf.where(active, re_new, z_re)
    z_im = tf.where(active, im_new, z_im)
    ns = ns + tf.cast(active, ns.dtype)
    magnitude = tf.sqrt(z_re * z_re + z_im * z_im)
    escaped = tf.logical_or(escaped, tf.logical_and(active, magnitude > HORIZON))
    return z_re, z_im, ns, escaped


@tf.function
def _escape_run(
    z_re: tf.Tensor,
    z_im: tf.Tensor,
    c_re: tf.Tensor,
    c_im: tf.Tensor,
    ns: tf.Tensor,
    limit: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Iterate every point until it escapes or its counter reaches ``limit``."""

    limit = tf.cast(limit, ns.dtype)
    escaped = tf.zeros_like(ns, tf.bool)

    def iterating(ns: tf.Tensor, escaped: tf.Tensor) -> tf.Tensor:
        return tf.logical_and(tf.logical_not(escaped), tf.less(ns, limit))

    def cond(z_re: tf.Tensor, z_im: tf.Tensor, ns: tf.Tensor, escaped: tf.Tensor) -> tf.Tensor:
        return tf.reduce_any(iterating(ns, escaped))

    def body(z_re: tf.Tensor, z_im: tf.Tensor, ns: tf.Tensor, escaped: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
        return _escape_step(z_re, z_im, c_re, c_im, ns, escaped, iterating(ns, escaped))

    return tf.while_loop(cond, body, (z_re, z_im, ns, escaped))


def escape_time(
    z0: np.ndarray,
    c: np.ndarray | complex,
    start: np.ndarray,
    limit: int,
    *,
    device: Optional[str] = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Run the escape-time recurrence for every element of ``z0``.

    ``start`` holds the number of iterations already applied to each starting
    value. Returns the final values, the iteration counters and the mask of
    escaped points. An escaped point's 0-based escape iteration is its counter
    minus one.
    """

    z0 = np.asarray(z0, dtype=np.complex128)
    c = np.broadcast_to(np.asarray(c, dtype=np.complex128), z0.shape)
    start = np.asarray(start, dtype=np.int64)

    with tf.device(device if device is not None else "/CPU:0"):
        z_re = tf.convert_to_tensor(np.ascontiguousarray(z0.real), dtype=tf.float64)
        z_im = tf.convert_to_tensor(np.ascontiguousarray(z0.imag), dtype=tf.float64)
        c_re = tf.convert_to_tensor(np.ascontiguousarray(c.real), dtype=tf.float64)
        c_im = tf.convert_to_tensor(np.ascontiguousarray(c.imag), dtype=tf.float64)
        ns = tf.convert_to_tensor(start, dtype=tf.int64)

        z_re, z_im, ns, escaped = _escape_run(z_re, z_im, c_re, c_im, ns, tf.constant(limit, dtype=tf.int64))

    z = np.empty(z0.shape, dtype=np.complex128)
    z.real = z_re.numpy()
    z.imag = z_im.numpy()
    return z, ns.numpy(), escaped.numpy()
