"""Hue to RGB colorization."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from matplotlib import colormaps

BLACK = (0, 0, 0)


def hue_to_rgb(hue: float) -> tuple[int, int, int]:
    """Map ``hue`` in [0, 1] onto the red, yellow, green, cyan, blue, magenta wheel."""

    x = 6 * min(max(float(hue), 0.0), 1.0)
    if x <= 1:
        return 255, int(255 * x), 0
    if x <= 2:
        return int(255 * (2 - x)), 255, 0
    if x <= 3:
        return 0, 255, int(255 * (x - 2))
    if x <= 4:
        return 0, int(255 * (4 - x)), 255
    if x <= 5:
        return int(255 * (x - 4)), 0, 255
    return 255, 0, int(255 * (6 - x))


def colorize(hues: np.ndarray) -> np.ndarray:
    """Vectorized :func:`hue_to_rgb`, returning a uint8 array of shape ``hues.shape + (3,)``."""

    x = 6 * np.clip(np.asarray(hues, dtype=np.float64), 0.0, 1.0)
    full = np.full(x.shape, 255.0)
    none = np.zeros(x.shape)
    segments = [x <= 1, x <= 2, x <= 3, x <= 4, x <= 5]
    red = np.select(segments, [full, 255 * (2 - x), none, none, 255 * (x - 4)], default=full)
    green = np.select(segments, [255 * x, full, full, 255 * (4 - x), none], default=none)
    blue = np.select(segments, [none, none, 255 * (x - 2), full, full], default=255 * (6 - x))
    return np.stack((red, green, blue), axis=-1).astype(np.uint8)


@dataclass(frozen=True)
class ColormapPalette:
    """Colorize hues through a matplotlib colormap instead of the hue wheel."""

    name: str
    invert: bool = False

    def __call__(self, hues: np.ndarray) -> np.ndarray:
        cmap = colormaps[self.name]
        values = np.clip(np.asarray(hues, dtype=np.float64), 0.0, 1.0)
        if self.invert:
            values = 1.0 - values
        rgba = np.array(cmap(values), copy=True)
        return np.uint8(np.clip(rgba[..., :3] * 255, 0, 255))
