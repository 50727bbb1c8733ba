"""Type-dispatched arithmetic, conversion and comparison over xen runtime values.

Every scalar function here is an explicit case switch over operand kinds.  List
operands are handled by the :func:`map_list` / :func:`element_wise` combinators, which
wrap the scalar functions the same way for every operator.
"""

from __future__ import annotations

import functools
import math
import operator
from typing import Callable

from .errors import XenDomainError, XenElementwiseSizeError, XenTypeCoercionError, given_values
from .tuning import (
    OCTAVE,
    Cents,
    ETInterval,
    FreqRatio,
    Frequency,
    et_to_freq,
    freq_to_et,
)
from .values import (
    Hole,
    XenList,
    is_function,
    is_interval,
    is_list,
    is_note,
    is_number,
)


def map_list(fn: Callable[..., object]) -> Callable[..., object]:
    """Distribute ``fn`` over a list in its first argument, else over a list in its second."""

    @functools.wraps(fn)
    def mapped(first: object = None, *rest: object) -> object:
        if is_list(first):
            return XenList(fn(item, *rest) for item in first)
        if rest and is_list(rest[0]):
            return XenList(fn(first, item, *rest[1:]) for item in rest[0])
        return fn(first, *rest)

    return mapped


def element_wise(fn: Callable[..., object]) -> Callable[..., object]:
    """Apply ``fn`` pairwise when both leading arguments are lists of equal length."""

    @functools.wraps(fn)
    def paired(first: object = None, *rest: object) -> object:
        if is_list(first) and rest and is_list(rest[0]):
            second = rest[0]
            if len(first) != len(second):
                raise XenElementwiseSizeError(
                    "Elementwise operations require that all inputs be lists of the same size.\n"
                    + given_values(first, second)
                )
            return XenList(fn(x, y, *rest[1:]) for x, y in zip(first, second))
        return fn(first, *rest)

    return paired


def truthy(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    return True


def _js_round(x: float) -> float:
    return math.floor(x + 0.5)


# ---------------------------------------------------------------------------
# conversions


@map_list
def number(a: object) -> float:
    if is_number(a):
        return a
    if isinstance(a, ETInterval):
        return a.as_et(12).n
    if isinstance(a, Cents):
        return a.value
    if isinstance(a, FreqRatio):
        return a.n / a.d
    if isinstance(a, Frequency):
        return a.hz
    raise XenTypeCoercionError("Unable to convert to number.", a)


@element_wise
@map_list
def ratio(a: object, b: object = None) -> FreqRatio:
    if is_number(b) and not is_number(a):
        raise XenTypeCoercionError("Incompatible type(s) for ratio constructor.", a, b)
    if is_number(a):
        if b is not None and not is_number(b):
            raise XenTypeCoercionError("Incompatible type(s) for ratio constructor.", a, b)
        return FreqRatio.of(a, 1 if b is None else b)
    if isinstance(a, (ETInterval, Cents)):
        return a.as_ratio()
    if isinstance(a, FreqRatio):
        return a
    raise XenTypeCoercionError("Incompatible type(s) for ratio constructor.", a, b)


def colon(a: object, b: object = None) -> object:
    """``a:b``; a ratio or list of ratios on the left extends into a compound ratio."""
    if is_number(b) and isinstance(a, FreqRatio):
        return XenList([a.inverse(), FreqRatio.of(b, a.n)])
    if is_number(b) and is_list(a) and a and isinstance(a[0], FreqRatio):
        if not all(isinstance(item, FreqRatio) for item in a):
            raise XenTypeCoercionError("Unable to create compound ratio.", a, b)
        return XenList([*a, FreqRatio.of(b, a[0].d)])
    return ratio(a, b)


@element_wise
@map_list
def et(a: object, b: object = None, c: object = None) -> ETInterval:
    base = 12 if b is None else b
    if is_interval(c) and is_number(base):
        base = base * math.log(2) / math.log(c.decimal())
    if not is_number(base):
        raise XenTypeCoercionError("Incompatible type(s) for et constructor.", a, b)
    if is_number(a):
        return ETInterval(a, base)
    if isinstance(a, (ETInterval, Cents, FreqRatio)):
        return a.as_et(base)
    if isinstance(a, Frequency):
        return ETInterval(freq_to_et(a.hz, base), base)
    raise XenTypeCoercionError("Incompatible type(s) for et constructor.", a, b)


@map_list
def cents(a: object) -> Cents:
    if is_number(a):
        return Cents(a)
    if isinstance(a, Cents):
        return a
    if isinstance(a, (ETInterval, FreqRatio, Frequency)):
        return Cents(a.cents())
    raise XenTypeCoercionError("Unable to convert to cents.", a)


@map_list
def mtof(a: object) -> Frequency:
    if is_number(a):
        return Frequency(et_to_freq(a))
    if isinstance(a, ETInterval):
        return Frequency(et_to_freq(a.as_et(12).n))
    if isinstance(a, Cents):
        return Frequency(et_to_freq(a.value / 100))
    raise XenTypeCoercionError("Incompatible type for mtof().", a)


@map_list
def ftom(a: object, b: object = None) -> ETInterval:
    base = 12 if b is None else b
    if not is_number(base):
        raise XenTypeCoercionError("Incompatible type(s) for ftom().", a, b)
    if is_number(a):
        return ETInterval(freq_to_et(Frequency(a).hz, base), base)
    if isinstance(a, Frequency):
        return ETInterval(freq_to_et(a.hz, base), base)
    raise XenTypeCoercionError("Incompatible type(s) for ftom().", a, b)


@map_list
def freq(a: object) -> Frequency:
    if is_number(a):
        return Frequency(a)
    if isinstance(a, Frequency):
        return a
    if isinstance(a, (ETInterval, Cents)):
        return mtof(a)
    raise XenTypeCoercionError("Unable to convert to Hz.", a)


def make_list(*args: object) -> XenList:
    for arg in args:
        if isinstance(arg, Hole):
            raise XenTypeCoercionError("Cannot create a list containing '...'.", *args)
        if is_function(arg):
            raise XenTypeCoercionError("Cannot create a list of functions.", *args)
    return XenList(args)


def get_index(items: object, index: object) -> object:
    if not is_list(items) or not is_number(index):
        raise XenTypeCoercionError("Indexing requires a list and a number.", items, index)
    if not float(index).is_integer() or not 0 <= index < len(items):
        raise XenDomainError(f"Index {index} is out of range for a list of {len(items)} element(s).")
    return items[int(index)]


def null(a: object = None, b: object = None) -> None:
    return None


# ---------------------------------------------------------------------------
# arithmetic


@map_list
def inverse(a: object) -> object:
    if is_number(a):
        return -a
    if is_interval(a):
        return a.inverse()
    if isinstance(a, Frequency):
        raise XenDomainError("Frequencies cannot be negative.\n" + given_values(a))
    raise XenTypeCoercionError("Unable to invert.", a)


@element_wise
@map_list
def add(a: object, b: object = None) -> object:
    if b is None:
        return number(a)
    if is_number(a) and is_number(b):
        return a + b
    if isinstance(b, Frequency) and is_interval(a):
        return b.note_above(a)
    if isinstance(a, Frequency) and is_interval(b):
        return a.note_above(b)
    if isinstance(a, Frequency) and isinstance(b, Frequency):
        return Frequency(a.hz + b.hz)
    if is_interval(a) and is_interval(b):
        if isinstance(a, ETInterval) or isinstance(b, ETInterval):
            base = a.d if isinstance(a, ETInterval) else b.d
            return a.as_et(base).add(b)
        if isinstance(a, Cents) or isinstance(b, Cents):
            return Cents(a.cents() + b.cents())
        return a.add(b)
    raise XenTypeCoercionError("Ambiguous or incorrect call to +.", a, b)


@element_wise
@map_list
def subtract(a: object, b: object = None) -> object:
    if b is None:
        return inverse(a)
    if isinstance(a, Frequency) and isinstance(b, Frequency):
        return Frequency(a.hz - b.hz)
    return add(a, inverse(b))


@element_wise
@map_list
def multiply(a: object, b: object) -> object:
    if is_number(a) and is_number(b):
        return a * b
    if is_number(a) and not is_number(b):
        value, k = b, a
    elif is_number(b):
        value, k = a, b
    else:
        raise XenTypeCoercionError("At least one argument to * must be a number.", a, b)
    if isinstance(value, Frequency):
        return Frequency(value.hz * k)
    if is_interval(value):
        return value.multiply(k)
    raise XenTypeCoercionError("Ambiguous or incorrect call to *.", a, b)


def _divide_by_interval(a: object, b: object) -> float:
    divisor = b.cents()
    if divisor == 0:
        raise XenDomainError("Cannot divide by a zero interval.")
    return a.cents() / divisor


@element_wise
@map_list
def divide(a: object, b: object) -> object:
    if is_number(a) and is_number(b):
        if b == 0:
            raise XenDomainError("Division by zero.")
        return a / b
    if isinstance(a, Frequency):
        if is_number(b):
            if b == 0:
                raise XenDomainError("Division by zero.")
            return Frequency(a.hz / b)
        if isinstance(b, (ETInterval, Cents)):
            return _divide_by_interval(a.as_et(12), b)
        if isinstance(b, Frequency):
            return a.hz / b.hz
    elif is_interval(a):
        if is_interval(b):
            return _divide_by_interval(a, b)
        if is_number(b):
            return a.divide(b)
    raise XenTypeCoercionError("Incompatible types for /.", a, b)


@element_wise
@map_list
def mod(a: object, b: object) -> object:
    if is_number(a) and is_number(b):
        if b == 0:
            raise XenDomainError("Modulo by zero.")
        return a % b
    if isinstance(a, Frequency) and isinstance(b, Frequency):
        return freq(a.hz % b.hz)
    if is_interval(a) and is_interval(b):
        if isinstance(a, FreqRatio):
            # ET-space modulo keeps ratio results from drifting
            return a.as_et(12).mod(b).as_ratio()
        return a.mod(b)
    raise XenTypeCoercionError("Incompatible types for %.", a, b)


def _check_numbers(name: str, *args: object) -> None:
    for arg in args:
        if not is_number(arg):
            raise XenTypeCoercionError(f"Type mismatch for {name}().\nExpect: number", *args)


def numeric(fn: Callable[..., float], name: str) -> Callable[..., float]:
    """Wrap a plain float function so it only accepts numbers and reports domain failures."""

    @functools.wraps(fn)
    def checked(*args: object) -> float:
        _check_numbers(name, *args)
        try:
            return fn(*args)
        except (ValueError, OverflowError, ZeroDivisionError) as exc:
            raise XenDomainError(f"{name}() is undefined here.\n" + given_values(*args)) from exc

    return checked


power = element_wise(map_list(numeric(math.pow, "pow")))


@map_list
def normalize(a: object) -> object:
    return mod(a, OCTAVE)


@map_list
def absolute(a: object) -> object:
    if is_number(a):
        return abs(a)
    if isinstance(a, ETInterval):
        return ETInterval(abs(a.n), a.d)
    if isinstance(a, Cents):
        return Cents(abs(a.value))
    if isinstance(a, FreqRatio):
        return a.inverse() if a.n < a.d else a
    return a


def _rounded(a: object, fn: Callable[[float], float]) -> object:
    if is_number(a):
        return fn(a)
    if isinstance(a, ETInterval):
        return ETInterval(fn(a.n), a.d)
    if isinstance(a, Cents):
        return Cents(fn(a.value))
    if isinstance(a, FreqRatio):
        return ETInterval(fn(a.as_et(12).n), 12)
    if isinstance(a, Frequency):
        return Frequency(fn(a.hz))
    return a


@map_list
def round_(a: object) -> object:
    return _rounded(a, _js_round)


@map_list
def ceil(a: object) -> object:
    return _rounded(a, math.ceil)


@map_list
def floor(a: object) -> object:
    return _rounded(a, math.floor)


# ---------------------------------------------------------------------------
# comparison and logic


def _compare(op: Callable[[object, object], bool]) -> Callable[[object, object], object]:
    @element_wise
    @map_list
    def compare(a: object, b: object) -> bool:
        if (is_interval(a) and is_interval(b)) or (is_note(a) and is_note(b)):
            return op(a.cents(), b.cents())
        if any(is_interval(x) or is_note(x) for x in (a, b)):
            raise XenTypeCoercionError("Cannot compare the given values.", a, b)
        try:
            return op(a, b)
        except TypeError as exc:
            raise XenTypeCoercionError("Cannot compare the given values.", a, b) from exc

    return compare


greater_than = _compare(operator.gt)
less_than = _compare(operator.lt)
greater_than_or_equal = _compare(operator.ge)
less_than_or_equal = _compare(operator.le)
_equal = _compare(operator.eq)


def equal(a: object, b: object) -> object:
    """``==``; incomparable operands are simply unequal."""
    try:
        return _equal(a, b)
    except (XenTypeCoercionError, XenElementwiseSizeError):
        return False


def _negate(value: object) -> object:
    if is_list(value):
        return XenList(_negate(item) for item in value)
    return not truthy(value)


def not_equal(a: object, b: object) -> object:
    return _negate(equal(a, b))


def logical_and(a: object, b: object) -> object:
    return b if truthy(a) else a


def logical_or(a: object, b: object) -> object:
    return a if truthy(a) else b


def logical_not(a: object) -> bool:
    return not truthy(a)
