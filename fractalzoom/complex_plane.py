"""Complex numbers and viewport frames on the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real


@dataclass(frozen=True)
class Complex:
    """An immutable point (or vector) on the complex plane."""

    real: float
    imaginary: float = 0.0

    @classmethod
    def from_complex(cls, value: complex) -> Complex:
        return cls(float(value.real), float(value.imag))

    def __complex__(self) -> complex:
        return complex(self.real, self.imaginary)

    @property
    def conjugate(self) -> Complex:
        return Complex(self.real, -self.imaginary)

    @property
    def norm(self) -> float:
        """Squared magnitude."""

        return self.real * self.real + self.imaginary * self.imaginary

    def __abs__(self) -> float:
        return math.sqrt(self.norm)

    def square(self) -> Complex:
        """Return ``self * self`` using the dedicated squaring formula."""

        return Complex(
            self.real * self.real - self.imaginary * self.imaginary,
            2 * self.real * self.imaginary,
        )

    def __neg__(self) -> Complex:
        return Complex(-self.real, -self.imaginary)

    def __add__(self, other: Complex) -> Complex:
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(self.real + other.real, self.imaginary + other.imaginary)

    def __sub__(self, other: Complex) -> Complex:
        if not isinstance(other, Complex):
            return NotImplemented
        return Complex(self.real - other.real, self.imaginary - other.imaginary)

    def __mul__(self, other: Complex | float) -> Complex:
        if isinstance(other, Complex):
            return Complex(
                self.real * other.real - self.imaginary * other.imaginary,
                self.real * other.imaginary + self.imaginary * other.real,
            )
        if isinstance(other, Real):
            return Complex(self.real * other, self.imaginary * other)
        return NotImplemented

    __rmul__ = __mul__

    def __truediv__(self, other: Complex | float) -> Complex:
        # A zero divisor raises ZeroDivisionError from the float division.
        if isinstance(other, Complex):
            if other.imaginary == 0:
                return self / other.real
            return self * other.conjugate / other.norm
        if isinstance(other, Real):
            return Complex(self.real / other, self.imaginary / other)
        return NotImplemented


@dataclass(frozen=True)
class Frame:
    """The square region of the plane visible in a rendered image."""

    origin: Complex
    width: float
    height: float

    @classmethod
    def around(cls, center: Complex, depth: float) -> Frame:
        return cls(origin=center - Complex(depth, depth) / 2, width=depth, height=depth)

    @property
    def corners(self) -> tuple[Complex, Complex, Complex, Complex]:
        x_min = self.origin.real
        y_min = self.origin.imaginary
        x_max = x_min + self.width
        y_max = y_min + self.height
        return (
            Complex(x_min, y_min),
            Complex(x_min, y_max),
            Complex(x_max, y_min),
            Complex(x_max, y_max),
        )
