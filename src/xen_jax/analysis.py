"""Tuning analysis: ratio simplification, nearest ETs/ratios, harmonic fitting and consistency.

The search-style functions evaluate every candidate at once with ``jax.numpy`` and only
drop back to Python to build the resulting xen values.
"""

from __future__ import annotations

import math
import os
from typing import Final

import jax.numpy as jnp

from . import coercion
from .errors import XenArityError, XenDomainError, XenTypeCoercionError
from .tuning import Cents, ETInterval, FreqRatio, Frequency
from .values import XenList, display_type, is_interval, is_list, is_number

_CLOSEST_MAX_BASE: Final[int] = max(2, int(os.environ.get("XEN_JAX_CLOSEST_MAX_BASE", "53")))
_MAX_PARTIAL: Final[int] = max(1, int(os.environ.get("XEN_JAX_MAX_PARTIAL", "64")))
_MAX_DENOMINATOR: Final[int] = max(1, int(os.environ.get("XEN_JAX_MAX_DENOMINATOR", "100000")))

_DENOMINATOR_CHUNK: Final[int] = 256
_EDO_CHUNK: Final[int] = 256
_SIMPLIFY_MAX_TERMS: Final[int] = 64
# Errors closer than this many cents rank as ties (then the smaller base wins).
_ERROR_RESOLUTION: Final[int] = 3
# Largest deviation (cents) for a chord tone to count as sitting on a harmonic.
PARTIAL_TOLERANCE_CENTS: Final[float] = 20.0
DEFAULT_SIMPLIFY_ERROR: Final[Cents] = Cents(5)
DEFAULT_CLOSEST_ERROR: Final[Cents] = Cents(30)
DEFAULT_CLOSEST_COUNT: Final[int] = 5
CONSISTENCY_LIMIT_MAX: Final[int] = 50


def _round_half_up(x):
    return jnp.floor(x + 0.5)


def coprime(a: int, b: int) -> bool:
    """True when ``a`` and ``b`` share no factor other than 1."""
    if not (is_number(a) and is_number(b)) or not (float(a).is_integer() and float(b).is_integer()):
        raise XenTypeCoercionError("coprime() expects two integers.", a, b)
    a, b = int(a), int(b)
    if not ((a | b) & 1):
        return False
    return math.gcd(a, b) == 1


def coprime_mask(a, b):
    a = jnp.asarray(a, dtype=jnp.int32)
    b = jnp.asarray(b, dtype=jnp.int32)
    both_even = ((a | b) & 1) == 0
    return jnp.logical_and(jnp.logical_not(both_even), jnp.gcd(a, b) == 1)


@coercion.map_list
def simplify(interval: object, err: object = None) -> FreqRatio:
    """Continued-fraction approximation of ``interval`` within ``err`` (default 5 cents)."""
    err = DEFAULT_SIMPLIFY_ERROR if err is None else err
    if not is_interval(interval) or not is_interval(err):
        raise XenTypeCoercionError("Incompatible type(s) for simplify().", interval, err)
    target = interval.as_ratio()
    d = target.d
    x = target.decimal()
    tolerance = (err.decimal() - 1) * x

    a = math.floor(x)
    h1, k1 = 1, 0
    h, k = a, 1
    for _ in range(_SIMPLIFY_MAX_TERMS):
        if not x - a > tolerance * k * k:
            break
        x = 1 / (x - a)
        a = math.floor(x)
        h2, h1 = h1, h
        k2, k1 = k1, k
        # next convergent reproduces the unsimplified ratio
        if k2 + a * k1 == d:
            break
        h = h2 + a * h1
        k = k2 + a * k1
    return FreqRatio(h, k)


def closest_ets(interval: object, count: int = DEFAULT_CLOSEST_COUNT) -> XenList:
    """ETs (bases 1 .. max) nearest to ``interval``, ranked by error then base."""
    cents = interval.cents()
    bases = jnp.arange(1, _CLOSEST_MAX_BASE, dtype=jnp.float32)
    steps = _round_half_up(cents / 1200 * bases)
    error = jnp.round(jnp.abs(steps / bases * 1200 - cents), _ERROR_RESOLUTION)
    order = jnp.lexsort((bases, error))[: int(count)]
    return XenList(ETInterval(int(steps[i]), int(bases[i])) for i in order.tolist())


def closest_ratios(interval: object, max_err: object = DEFAULT_CLOSEST_ERROR, count: int = DEFAULT_CLOSEST_COUNT) -> XenList:
    """The first ``count`` reduced ratios (by denominator) within ``max_err`` of ``interval``."""
    target = interval.decimal()
    tolerance = (max_err.decimal() - 1) * target
    found: list[FreqRatio] = []
    for start in range(1, _MAX_DENOMINATOR + 1, _DENOMINATOR_CHUNK):
        d = jnp.arange(start, min(start + _DENOMINATOR_CHUNK, _MAX_DENOMINATOR + 1), dtype=jnp.int32)
        n = _round_half_up(target * d).astype(jnp.int32)
        ok = (jnp.abs(target - n / d) <= tolerance) & (n > 0) & coprime_mask(n, d)
        for n_i, d_i in zip(n[ok].tolist(), d[ok].tolist()):
            found.append(FreqRatio(n_i, d_i))
            if len(found) >= count:
                return XenList(found)
    if found:
        return XenList(found)
    raise XenDomainError(f"No ratio with denominator up to {_MAX_DENOMINATOR} lies within the given error.")


def best_fit_ets(intervals: list, count: int = DEFAULT_CLOSEST_COUNT) -> XenList:
    """ET bases whose nearest steps best approximate every interval of a chord."""
    flat = _flatten(intervals)
    if not flat or not all(is_interval(item) for item in flat):
        raise XenTypeCoercionError("closest() of a list requires a list of intervals.", intervals)
    cents = jnp.asarray([item.cents() for item in flat], dtype=jnp.float32)
    bases = jnp.arange(1, _CLOSEST_MAX_BASE, dtype=jnp.float32)
    scaled = cents[None, :] / 1200 * bases[:, None]
    error = jnp.abs(_round_half_up(scaled) - scaled) * 1200 / bases[:, None]
    total = jnp.round(error.sum(axis=1), _ERROR_RESOLUTION)
    order = jnp.lexsort((bases, total))[: int(count)]
    return XenList(int(bases[i]) for i in order.tolist())


def closest(interval: object, max_err: object = None, count: object = None) -> XenList:
    """Nearest ETs (for a ratio or chord) or nearest ratios (for any other interval).

    A plain number in the second position is taken as the result count, so both
    ``closest(x, 3)`` and ``closest(x, 10c, 3)`` work.
    """
    if is_number(max_err):
        if count is not None and not is_interval(count):
            raise XenTypeCoercionError("Incompatible type(s) for closest().", interval, max_err, count)
        max_err, count = count, max_err
    count = count or DEFAULT_CLOSEST_COUNT
    max_err = max_err or DEFAULT_CLOSEST_ERROR
    if not is_number(count) or not is_interval(max_err):
        raise XenTypeCoercionError("Incompatible type(s) for closest().", interval, max_err, count)
    if is_list(interval):
        return best_fit_ets(interval, int(count))
    if isinstance(interval, FreqRatio):
        return closest_ets(interval, int(count))
    if is_interval(interval):
        return closest_ratios(interval, max_err, int(count))
    raise XenTypeCoercionError("Incompatible type(s) for closest().", interval, max_err, count)


def _flatten(values) -> list:
    flat: list = []
    for value in values:
        if is_list(value):
            flat.extend(_flatten(value))
        else:
            flat.append(value)
    return flat


def approxpartials(*args: object) -> XenList:
    """Fit the given pitches onto one harmonic series: ``'(fundamental, '(k1:1, k2:1, ...))``."""
    freqs = [coercion.freq(value).hz for value in _flatten(args)]
    if not freqs:
        raise XenArityError("approxpartials() expected at least 1 argument, got 0.")
    hz = jnp.asarray(freqs, dtype=jnp.float32)
    harmonics = jnp.arange(1, _MAX_PARTIAL + 1, dtype=jnp.float32)
    fundamentals = jnp.min(hz) / harmonics
    partials = jnp.maximum(_round_half_up(hz[None, :] / fundamentals[:, None]), 1)
    deviation = jnp.abs(1200 * jnp.log2(hz[None, :] / (partials * fundamentals[:, None])))
    worst = deviation.max(axis=1)
    fits = worst <= PARTIAL_TOLERANCE_CENTS
    best = int(jnp.argmax(fits)) if bool(fits.any()) else int(jnp.argmin(worst))
    fundamental = Frequency(float(fundamentals[best]))
    ratios = XenList(FreqRatio(int(p), 1) for p in partials[best].tolist())
    return XenList([fundamental, ratios])


_CONVERTERS = {
    "et": coercion.et,
    "cents": coercion.cents,
    "freq": coercion.freq,
    "number": coercion.number,
}


def just(*args: object) -> XenList | None:
    """Retune a chord onto the nearest harmonic-series partials, keeping the input's type."""
    values = _flatten(args)
    if not values:
        return None
    kind = display_type(values[0])
    if kind == "ratio":
        # ratios are fitted as pitches above an explicit unison, then re-expressed against it
        pitches = [coercion.et(value) for value in values] + [ETInterval(0)]
        _, partials = approxpartials(*pitches)
        unison = partials[-1]
        return XenList(coercion.subtract(partial, unison) for partial in partials[:-1])
    convert = _CONVERTERS.get(kind)
    if convert is None:
        raise XenTypeCoercionError("Incompatible type(s) for just().", *values)
    fundamental, partials = approxpartials(*values)
    return XenList(convert(coercion.add(partial, fundamental)) for partial in partials)


def _odd_triples(limit: int):
    odds = jnp.arange(1, limit + 1, 2, dtype=jnp.float32)
    a, b, c = jnp.meshgrid(odds, odds, odds, indexing="ij")
    keep = (a < b) & (b < c)
    return a[keep], b[keep], c[keep]


def _consistency(limit: int, edos) -> "jnp.ndarray":
    a, b, c = _odd_triples(limit)
    edos = jnp.asarray(edos, dtype=jnp.float32)[:, None]
    lower = _round_half_up(edos * jnp.log2(b / a))
    upper = _round_half_up(edos * jnp.log2(c / b))
    outer = _round_half_up(edos * jnp.log2(c / a))
    return jnp.all(lower + upper == outer, axis=1)


def consistent(limit: object, edo: object) -> bool:
    """Whether ``edo`` maps every odd-limit triad up to ``limit`` consistently."""
    if not is_number(limit) or not is_number(edo):
        raise XenTypeCoercionError("consistent() expects two numbers.", limit, edo)
    if limit < 5:
        return True
    return bool(_consistency(int(limit), [edo])[0])


def smallest_consistent(limit: object) -> int:
    if not is_number(limit):
        raise XenTypeCoercionError("smallest_consistent() expects a number.", limit)
    if limit >= CONSISTENCY_LIMIT_MAX:
        raise XenDomainError(
            f"This operation is too complex to be performed with the given value (limit {limit} >= {CONSISTENCY_LIMIT_MAX})."
        )
    if limit < 5:
        return 1
    start = 1
    while True:
        edos = jnp.arange(start, start + _EDO_CHUNK, dtype=jnp.float32)
        ok = _consistency(int(limit), edos)
        if bool(ok.any()):
            return start + int(jnp.argmax(ok))
        start += _EDO_CHUNK
