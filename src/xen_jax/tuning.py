"""Pitch primitives: equal-tempered intervals, cents, frequency ratios and frequencies.

These classes carry the numeric algebra the language builds on.  They never look at
list values or host numbers beyond plain scalars; type dispatch over mixed operands
lives in :mod:`xen_jax.coercion`.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Final, Union

from .errors import XenDomainError

_MAX_DENOMINATOR: Final[int] = max(1, int(os.environ.get("XEN_JAX_MAX_DENOMINATOR", "100000")))
# Integer powers above this are approximated instead of computed exactly.
_MAX_EXACT_POWER: Final[int] = max(1, int(os.environ.get("XEN_JAX_MAX_EXACT_POWER", "64")))

A4_HZ: Final[float] = 440.0
A4_MIDI: Final[float] = 69.0
MIDDLE_C_HZ: Final[float] = 261.63


def log2(x: float) -> float:
    return math.log2(x)


def log(x: float, base: float = math.e) -> float:
    """Logarithm of ``x`` in ``base`` (natural log by default)."""
    return math.log(x) / math.log(base)


def freq_to_et(hz: float, base: float = 12) -> float:
    """MIDI-style step number of ``hz`` in a ``base``-division octave (A4 = 69 * base / 12)."""
    return (A4_MIDI + 12 * log2(hz / A4_HZ)) * base / 12


def et_to_freq(steps: float, base: float = 12) -> float:
    return A4_HZ * 2 ** ((steps * 12 / base - A4_MIDI) / 12)


def _is_integral(x: float) -> bool:
    return float(x).is_integer()


def _mod(x: float, m: float) -> float:
    """Floored modulo; a remainder within rounding error of ``m`` wraps to zero."""
    r = x % m
    return 0.0 if math.isclose(r, m, rel_tol=1e-12) else r


@dataclass(frozen=True)
class ETInterval:
    """``n`` steps of a ``d``-division equal temperament."""

    n: float
    d: float = 12

    def __post_init__(self) -> None:
        if not (math.isfinite(self.d) and self.d > 0):
            raise XenDomainError(f"ET base must be a positive number, not {self.d}.")
        if not math.isfinite(self.n):
            raise XenDomainError(f"ET step count must be finite, not {self.n}.")

    def cents(self) -> float:
        return self.n / self.d * 1200

    def decimal(self) -> float:
        return 2 ** (self.n / self.d)

    def as_et(self, base: float = 12) -> "ETInterval":
        return ETInterval(self.n * base / self.d, base)

    def as_ratio(self) -> "FreqRatio":
        return FreqRatio.from_decimal(self.decimal())

    def inverse(self) -> "ETInterval":
        return ETInterval(-self.n, self.d)

    def add(self, other: "Interval") -> "ETInterval":
        return ETInterval(self.n + to_et(other, self.d).n, self.d)

    def multiply(self, k: float) -> "ETInterval":
        return ETInterval(self.n * k, self.d)

    def divide(self, k: float) -> "ETInterval":
        if k == 0:
            raise XenDomainError("Cannot divide an interval by zero.")
        return ETInterval(self.n / k, self.d)

    def mod(self, other: "Interval") -> "ETInterval":
        divisor = to_et(other, self.d).n
        if divisor == 0:
            raise XenDomainError("Cannot take an interval modulo a zero interval.")
        return ETInterval(_mod(self.n, divisor), self.d)


@dataclass(frozen=True)
class Cents:
    """An interval measured in cents (hundredths of a 12-ET semitone)."""

    value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise XenDomainError(f"Cents value must be finite, not {self.value}.")

    @property
    def steps(self) -> float:
        return self.value / 100

    def cents(self) -> float:
        return self.value

    def decimal(self) -> float:
        return 2 ** (self.value / 1200)

    def as_et(self, base: float = 12) -> ETInterval:
        return ETInterval(self.steps, 12).as_et(base)

    def as_ratio(self) -> "FreqRatio":
        return FreqRatio.from_decimal(self.decimal())

    def inverse(self) -> "Cents":
        return Cents(-self.value)

    def add(self, other: "Interval") -> "Cents":
        return Cents(self.value + other.cents())

    def multiply(self, k: float) -> "Cents":
        return Cents(self.value * k)

    def divide(self, k: float) -> "Cents":
        if k == 0:
            raise XenDomainError("Cannot divide an interval by zero.")
        return Cents(self.value / k)

    def mod(self, other: "Interval") -> "Cents":
        divisor = other.cents()
        if divisor == 0:
            raise XenDomainError("Cannot take an interval modulo a zero interval.")
        return Cents(_mod(self.value, divisor))


@dataclass(frozen=True)
class FreqRatio:
    """Frequency ratio ``n:d`` between two pitches.  Not reduced unless simplified."""

    n: int
    d: int = 1

    def __post_init__(self) -> None:
        if not (self.n > 0 and self.d > 0):
            raise XenDomainError(f"Ratio terms must be positive, not {self.n}:{self.d}.")

    @classmethod
    def of(cls, n: float, d: float = 1) -> "FreqRatio":
        """Build a ratio from two positive numbers, approximating non-integer terms."""
        if not (n > 0 and d > 0):
            raise XenDomainError(f"Ratio terms must be positive, not {n}:{d}.")
        if _is_integral(n) and _is_integral(d):
            return cls(int(n), int(d))
        return cls.from_decimal(n / d)

    @classmethod
    def from_decimal(cls, x: float) -> "FreqRatio":
        if not (math.isfinite(x) and x > 0):
            raise XenDomainError(f"Cannot express {x} as a frequency ratio.")
        approx = Fraction(x).limit_denominator(_MAX_DENOMINATOR)
        if approx.numerator <= 0:
            raise XenDomainError(f"Cannot express {x} as a frequency ratio.")
        return cls(approx.numerator, approx.denominator)

    def reduced(self) -> "FreqRatio":
        g = math.gcd(self.n, self.d)
        return FreqRatio(self.n // g, self.d // g)

    def cents(self) -> float:
        return 1200 * log2(self.n / self.d)

    def decimal(self) -> float:
        return self.n / self.d

    def as_et(self, base: float = 12) -> ETInterval:
        return ETInterval(base * log2(self.decimal()), base)

    def as_ratio(self) -> "FreqRatio":
        return self

    def inverse(self) -> "FreqRatio":
        return FreqRatio(self.d, self.n)

    def add(self, other: "Interval") -> "Interval":
        if isinstance(other, FreqRatio):
            return FreqRatio(self.n * other.n, self.d * other.d).reduced()
        base = other.d if isinstance(other, ETInterval) else 12
        return self.as_et(base).add(other)

    def multiply(self, k: float) -> "FreqRatio":
        if _is_integral(k) and abs(k) <= _MAX_EXACT_POWER:
            power = int(k)
            if power >= 0:
                return FreqRatio(self.n**power, self.d**power)
            return FreqRatio(self.d ** (-power), self.n ** (-power))
        try:
            value = self.decimal() ** k
        except OverflowError:
            raise XenDomainError(f"{self.n}:{self.d} raised to {k} is too large for a frequency ratio.") from None
        return FreqRatio.from_decimal(value)

    def divide(self, k: float) -> "FreqRatio":
        if k == 0:
            raise XenDomainError("Cannot divide an interval by zero.")
        return FreqRatio.from_decimal(self.decimal() ** (1 / k))

    def mod(self, other: "Interval") -> ETInterval:
        return self.as_et(12).mod(other)


@dataclass(frozen=True)
class Frequency:
    """A pitch in Hz.  Always strictly positive."""

    hz: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.hz) and self.hz > 0):
            raise XenDomainError(f"Frequencies must be positive, not {self.hz}hz.")

    def cents(self) -> float:
        return freq_to_et(self.hz, 12) * 100

    def note_above(self, interval: "Interval") -> "Frequency":
        return Frequency(self.hz * interval.decimal())

    def as_et(self, base: float = 12) -> ETInterval:
        return ETInterval(freq_to_et(self.hz, base), base)


Interval = Union[ETInterval, Cents, FreqRatio]


def to_et(interval: Interval, base: float = 12) -> ETInterval:
    return interval.as_et(base)


# Just-intonation constants.
FIFTH: Final[FreqRatio] = FreqRatio(3, 2)
THIRD: Final[FreqRatio] = FreqRatio(5, 4)
SEVENTH: Final[FreqRatio] = FreqRatio(7, 4)
OCTAVE: Final[FreqRatio] = FreqRatio(2, 1)
