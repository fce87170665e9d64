"""Evaluators turning a plane coordinate into a color decision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .cache import Carried
from .complex_plane import Complex, Frame

HORIZON = 2.0


@dataclass(frozen=True)
class Hue:
    """The pixel's color is decided, as a position on the hue wheel."""

    value: float


@dataclass(frozen=True)
class Unresolved:
    """No color decision was reached; ``z`` is the value after ``iteration`` steps."""

    z: Complex
    iteration: int


Value = Union[Hue, Unresolved]


@dataclass(frozen=True)
class GridValues:
    """Evaluation results for every pixel of a frame."""

    hue: np.ndarray
    unresolved: np.ndarray
    z: np.ndarray
    iterations: np.ndarray

    @classmethod
    def resolved(cls, hue: np.ndarray) -> GridValues:
        hue = np.clip(np.asarray(hue, dtype=np.float64), 0.0, 1.0)
        return cls(
            hue=hue,
            unresolved=np.zeros(hue.shape, dtype=bool),
            z=np.zeros(hue.shape, dtype=np.complex128),
            iterations=np.zeros(hue.shape, dtype=np.int64),
        )


def _clamp(hue: float) -> float:
    return min(max(hue, 0.0), 1.0)


class Function:
    """Base class of the evaluators.

    :meth:`value` evaluates a single coordinate; :meth:`evaluate_grid`
    evaluates a whole frame of coordinates at once.
    """

    def value(self, coordinate: Complex, limit: int, frame: Frame, carried: Optional[Unresolved] = None) -> Value:
        raise NotImplementedError

    def evaluate_grid(
        self,
        coordinates: np.ndarray,
        limit: int,
        frame: Frame,
        carried: Optional[Carried] = None,
        *,
        device: Optional[str] = None,
    ) -> GridValues:
        raise NotImplementedError


class _EscapeTime(Function):
    """Shared iteration of z <- z^2 + c for the Mandelbrot family."""

    resumes = True

    def start(self, coordinate: Complex) -> Complex:
        raise NotImplementedError

    def constant(self, coordinate: Complex) -> Complex:
        raise NotImplementedError

    def start_grid(self, coordinates: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def constant_grid(self, coordinates: np.ndarray) -> np.ndarray | complex:
        raise NotImplementedError

    def _escaped(self, z: Complex, iteration: int, limit: int) -> Value:
        return Hue(_clamp(iteration / limit))

    def _bounded(self, z: Complex, limit: int) -> Value:
        return Unresolved(z, limit)

    def value(self, coordinate: Complex, limit: int, frame: Frame, carried: Optional[Unresolved] = None) -> Value:
        z = self.start(coordinate)
        c = self.constant(coordinate)
        first = 0
        if self.resumes and carried is not None and carried.iteration <= limit:
            z = carried.z
            first = carried.iteration

        for iteration in range(first, limit):
            z = z.square() + c
            if abs(z) > HORIZON:
                return self._escaped(z, iteration, limit)
        return self._bounded(z, limit)

    def evaluate_grid(
        self,
        coordinates: np.ndarray,
        limit: int,
        frame: Frame,
        carried: Optional[Carried] = None,
        *,
        device: Optional[str] = None,
    ) -> GridValues:
        from .kernels import escape_time

        coordinates = np.asarray(coordinates, dtype=np.complex128)
        z0 = self.start_grid(coordinates)
        start = np.zeros(coordinates.shape, dtype=np.int64)
        if self.resumes and carried is not None:
            resume = np.logical_and(carried.hit, carried.iterations <= limit)
            z0 = np.where(resume, carried.z, z0)
            start = np.where(resume, carried.iterations, start)

        z, iterations, escaped = escape_time(z0, self.constant_grid(coordinates), start, limit, device=device)
        return self._classify_grid(z, iterations, escaped, limit)

    def _classify_grid(self, z: np.ndarray, iterations: np.ndarray, escaped: np.ndarray, limit: int) -> GridValues:
        hue = np.where(escaped, (iterations - 1) / max(limit, 1), 0.0)
        return GridValues(
            hue=np.clip(hue, 0.0, 1.0),
            unresolved=np.logical_not(escaped),
            z=z,
            iterations=iterations,
        )


class Mandelbrot(_EscapeTime):
    """Classic escape time with z0 = 0 and c = coordinate."""

    def start(self, coordinate: Complex) -> Complex:
        return Complex(0.0, 0.0)

    def constant(self, coordinate: Complex) -> Complex:
        return coordinate

    def start_grid(self, coordinates: np.ndarray) -> np.ndarray:
        return np.zeros(coordinates.shape, dtype=np.complex128)

    def constant_grid(self, coordinates: np.ndarray) -> np.ndarray:
        return coordinates

    def __repr__(self) -> str:
        return "Mandelbrot()"


class InverseMandelbrot(Mandelbrot):
    """Mandelbrot with the roles of escaping and bounded points swapped.

    Escaping points stay unresolved; bounded points are colored by the
    imaginary part of their final value.
    """

    resumes = False

    def _escaped(self, z: Complex, iteration: int, limit: int) -> Value:
        return Unresolved(z, iteration + 1)

    def _bounded(self, z: Complex, limit: int) -> Value:
        return Hue(_clamp(abs(z.imaginary) / 2))

    def _classify_grid(self, z: np.ndarray, iterations: np.ndarray, escaped: np.ndarray, limit: int) -> GridValues:
        hue = np.where(escaped, 0.0, np.abs(z.imag) / 2)
        return GridValues(
            hue=np.clip(hue, 0.0, 1.0),
            unresolved=escaped,
            z=z,
            iterations=iterations,
        )

    def __repr__(self) -> str:
        return "InverseMandelbrot()"


class Julia(_EscapeTime):
    """Escape time with z0 = coordinate and a fixed ``c``."""

    def __init__(self, c: Complex):
        self.c = c

    def start(self, coordinate: Complex) -> Complex:
        return coordinate

    def constant(self, coordinate: Complex) -> Complex:
        return self.c

    def start_grid(self, coordinates: np.ndarray) -> np.ndarray:
        return coordinates

    def constant_grid(self, coordinates: np.ndarray) -> complex:
        return complex(self.c)

    def __repr__(self) -> str:
        return f"Julia(c={self.c!r})"


class Gradient(Function):
    """Horizontal position across the frame. Useful to check the plane mapping."""

    def value(self, coordinate: Complex, limit: int, frame: Frame, carried: Optional[Unresolved] = None) -> Value:
        return Hue(_clamp((coordinate.real - frame.origin.real) / frame.width))

    def evaluate_grid(
        self,
        coordinates: np.ndarray,
        limit: int,
        frame: Frame,
        carried: Optional[Carried] = None,
        *,
        device: Optional[str] = None,
    ) -> GridValues:
        coordinates = np.asarray(coordinates, dtype=np.complex128)
        return GridValues.resolved((coordinates.real - frame.origin.real) / frame.width)

    def __repr__(self) -> str:
        return "Gradient()"


def _quadratic_bound(frame: Frame) -> float:
    # |re * im| is bilinear, so its maximum over the frame sits on a corner.
    return max(abs(corner.real * corner.imaginary) for corner in frame.corners)


class Quadratic(Function):
    """|re * im| relative to its largest value inside the frame."""

    def value(self, coordinate: Complex, limit: int, frame: Frame, carried: Optional[Unresolved] = None) -> Value:
        bound = _quadratic_bound(frame)
        if bound == 0:
            return Hue(0.0)
        return Hue(_clamp(abs(coordinate.real * coordinate.imaginary) / bound))

    def evaluate_grid(
        self,
        coordinates: np.ndarray,
        limit: int,
        frame: Frame,
        carried: Optional[Carried] = None,
        *,
        device: Optional[str] = None,
    ) -> GridValues:
        coordinates = np.asarray(coordinates, dtype=np.complex128)
        bound = _quadratic_bound(frame)
        if bound == 0:
            return GridValues.resolved(np.zeros(coordinates.shape))
        return GridValues.resolved(np.abs(coordinates.real * coordinates.imag) / bound)

    def __repr__(self) -> str:
        return "Quadratic()"
