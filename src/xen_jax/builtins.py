"""Builtin functions and constants visible to every xen program."""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING, Callable

from . import analysis, coercion, playback
from .errors import XenTypeCoercionError
from .tuning import FIFTH, OCTAVE, SEVENTH, THIRD, log
from .values import HOLE, BuiltinFunction, Waveshape, XenList, is_number

if TYPE_CHECKING:
    from .evaluator import Interpreter


CONSTANTS: dict[str, object] = {
    "true": True,
    "false": False,
    "pi": math.pi,
    "e": math.e,
    "fifth": FIFTH,
    "third": THIRD,
    "seventh": SEVENTH,
    "octave": OCTAVE,
    "sawtooth": Waveshape.SAWTOOTH,
    "saw": Waveshape.SAWTOOTH,
    "triangle": Waveshape.TRIANGLE,
    "tri": Waveshape.TRIANGLE,
    "sine": Waveshape.SINE,
    "square": Waveshape.SQUARE,
    "rect": Waveshape.SQUARE,
    "...": HOLE,
}


def _numeric(fn: Callable[..., float], name: str, *, mapped: bool = True) -> Callable[..., float]:
    checked = coercion.numeric(fn, name)
    return coercion.map_list(checked) if mapped else checked


def random_values(n: object = None) -> object:
    if not n:
        return random.random()
    if not is_number(n):
        raise XenTypeCoercionError("random() expects a number.", n)
    return XenList(random.random() for _ in range(int(n)))


def inclusive_range(n: object, m: object = None) -> XenList:
    """``range(n)`` counts 0..n; ``range(n, m)`` counts n..m in either direction, inclusive."""
    if not is_number(n) or (m is not None and not is_number(m)):
        raise XenTypeCoercionError("range() expects numbers.", n, m)
    if m is None:
        n, m = 0, n
    result = XenList()
    if n < m:
        while n <= m:
            result.append(n)
            n += 1
    else:
        while n >= m:
            result.append(n)
            n -= 1
    return result


def builtin_functions(interp: "Interpreter") -> dict[str, BuiltinFunction]:
    """Functions bound to ``interp`` (``print`` and ``play`` reach its collaborators)."""

    def _print(*args: object) -> None:
        playback.print_values(interp.printer, *args)

    def _play(*args: object) -> None:
        playback.play(interp.playback, *args)

    table: list[tuple[str, Callable[..., object], int]] = [
        # arithmetic
        ("add", coercion.add, 1),
        ("subtract", coercion.subtract, 1),
        ("multiply", coercion.multiply, 2),
        ("divide", coercion.divide, 2),
        ("mod", coercion.mod, 2),
        ("pow", coercion.power, 2),
        ("inverse", coercion.inverse, 1),
        ("normalize", coercion.normalize, 1),
        ("abs", coercion.absolute, 1),
        ("round", coercion.round_, 1),
        ("ceil", coercion.ceil, 1),
        ("floor", coercion.floor, 1),
        # conversion
        ("ratio", coercion.ratio, 1),
        ("et", coercion.et, 1),
        ("cents", coercion.cents, 1),
        ("freq", coercion.freq, 1),
        ("hertz", coercion.freq, 1),
        ("number", coercion.number, 1),
        ("mtof", coercion.mtof, 1),
        ("ftom", coercion.ftom, 1),
        ("list", coercion.make_list, 0),
        ("'", coercion.make_list, 0),
        ("getIndex", coercion.get_index, 2),
        # numeric
        ("sin", _numeric(math.sin, "sin"), 1),
        ("cos", _numeric(math.cos, "cos"), 1),
        ("tan", _numeric(math.tan, "tan"), 1),
        ("asin", _numeric(math.asin, "asin"), 1),
        ("acos", _numeric(math.acos, "acos"), 1),
        ("atan", _numeric(math.atan, "atan"), 1),
        ("log", _numeric(log, "log"), 1),
        ("exp", _numeric(math.exp, "exp"), 1),
        ("sqrt", _numeric(math.sqrt, "sqrt"), 1),
        ("max", _numeric(lambda *xs: max(xs), "max", mapped=False), 1),
        ("min", _numeric(lambda *xs: min(xs), "min", mapped=False), 1),
        ("random", random_values, 0),
        ("range", inclusive_range, 1),
        # logic and comparison
        ("and", coercion.logical_and, 2),
        ("or", coercion.logical_or, 2),
        ("not", coercion.logical_not, 1),
        ("equal", coercion.equal, 2),
        ("notEqual", coercion.not_equal, 2),
        ("greaterThan", coercion.greater_than, 2),
        ("lessThan", coercion.less_than, 2),
        ("greaterThanOrEqual", coercion.greater_than_or_equal, 2),
        ("lessThanOrEqual", coercion.less_than_or_equal, 2),
        # analysis
        ("simplify", analysis.simplify, 1),
        ("closest", analysis.closest, 1),
        ("coprime", analysis.coprime, 2),
        ("approxpartials", analysis.approxpartials, 1),
        ("just", analysis.just, 0),
        ("consistent", analysis.consistent, 2),
        ("smallest_consistent", analysis.smallest_consistent, 1),
        # collaborators
        ("print", _print, 0),
        ("play", _play, 0),
    ]
    functions = {name: BuiltinFunction(name, fn, min_args) for name, fn, min_args in table}
    functions["getIndex"] = BuiltinFunction("getIndex", coercion.get_index, 2, accepts_functions=True)
    return functions


def builtin_scope(interp: "Interpreter") -> dict[str, object]:
    scope: dict[str, object] = dict(CONSTANTS)
    scope.update(builtin_functions(interp))
    return scope
