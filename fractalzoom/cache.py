"""Carried escape-time state shared between consecutive frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .complex_plane import Complex


@dataclass(frozen=True)
class Carried:
    """Per-pixel view of the cache for one frame.

    ``hit`` marks pixels whose coordinate has a cached value; ``z`` and
    ``iterations`` are only meaningful where ``hit`` is set.
    """

    hit: np.ndarray
    z: np.ndarray
    iterations: np.ndarray

    @classmethod
    def empty(cls, shape: tuple[int, ...]) -> Carried:
        return cls(
            hit=np.zeros(shape, dtype=bool),
            z=np.zeros(shape, dtype=np.complex128),
            iterations=np.zeros(shape, dtype=np.int64),
        )


class ResumeCache:
    """Unresolved values keyed by their plane coordinate.

    Keys are stored sorted so a whole frame can be looked up with a single
    ``searchsorted``. Reads and writes happen once per frame.
    """

    def __init__(self) -> None:
        self._keys = np.empty(0, dtype=np.complex128)
        self._z = np.empty(0, dtype=np.complex128)
        self._iterations = np.empty(0, dtype=np.int64)

    def __len__(self) -> int:
        return int(self._keys.size)

    def __contains__(self, coordinate: Complex) -> bool:
        return self.get(coordinate) is not None

    def get(self, coordinate: Complex) -> Optional[tuple[Complex, int]]:
        carried = self.lookup(np.array([complex(coordinate)], dtype=np.complex128))
        if not carried.hit[0]:
            return None
        return Complex.from_complex(carried.z[0]), int(carried.iterations[0])

    def lookup(self, coordinates: np.ndarray) -> Carried:
        coordinates = np.asarray(coordinates, dtype=np.complex128)
        if self._keys.size == 0:
            return Carried.empty(coordinates.shape)

        flat = coordinates.ravel()
        index = np.searchsorted(self._keys, flat)
        index = np.minimum(index, self._keys.size - 1)
        hit = self._keys[index] == flat
        z = np.where(hit, self._z[index], 0)
        iterations = np.where(hit, self._iterations[index], 0)
        return Carried(
            hit=hit.reshape(coordinates.shape),
            z=z.astype(np.complex128, copy=False).reshape(coordinates.shape),
            iterations=iterations.astype(np.int64, copy=False).reshape(coordinates.shape),
        )

    def update(self, coordinates: np.ndarray, unresolved: np.ndarray, z: np.ndarray, iterations: np.ndarray) -> None:
        """Record the outcome of a frame.

        The cache afterwards holds exactly the frame's unresolved coordinates.
        Resolved coordinates and coordinates outside the frame are dropped, so
        the cache never outgrows one frame.
        """

        mask = np.asarray(unresolved, dtype=bool).ravel()
        keys = np.asarray(coordinates, dtype=np.complex128).ravel()[mask]
        values = np.asarray(z, dtype=np.complex128).ravel()[mask]
        counts = np.asarray(iterations, dtype=np.int64).ravel()[mask]

        keys, first = np.unique(keys, return_index=True)
        self._keys = keys
        self._z = values[first]
        self._iterations = counts[first]

    def clear(self) -> None:
        self._keys = self._keys[:0]
        self._z = self._z[:0]
        self._iterations = self._iterations[:0]
