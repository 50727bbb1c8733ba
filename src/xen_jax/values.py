"""Runtime value model and display helpers for the xen evaluator."""

from __future__ import annotations

import math
import numbers
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, Final

from .tuning import Cents, ETInterval, FreqRatio, Frequency

_DISPLAY_PRECISION: Final[int] = max(0, int(os.environ.get("XEN_JAX_DISPLAY_PRECISION", "2")))


class XenList(list):
    """Explicit container type for xen lists."""

    def __str__(self) -> str:
        return format_value(self)


class Waveshape(str, Enum):
    SAWTOOTH = "sawtooth"
    TRIANGLE = "triangle"
    SINE = "sine"
    SQUARE = "square"


class Hole:
    """The ``...`` placeholder used to build partial functions."""

    _instance: ClassVar["Hole | None"] = None

    def __new__(cls) -> "Hole":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "..."


HOLE: Final[Hole] = Hole()


@dataclass(frozen=True, eq=False)
class BuiltinFunction:
    """Native function exposed to xen code."""

    name: str
    fn: Callable[..., object]
    min_args: int = 0
    accepts_functions: bool = False
    _xen_operation_kind: ClassVar[str] = "builtin"

    def __call__(self, *args: object) -> object:
        from .errors import XenArityError

        defined = [arg for arg in args if arg is not None]
        if len(defined) < self.min_args:
            raise XenArityError(
                f"{self.name}() expected {self.min_args} argument(s), got {len(defined)}."
            )
        return self.fn(*args)


@dataclass(frozen=True, eq=False)
class UserFunction:
    """Function defined in xen code; ``invoke`` is bound by the interpreter."""

    name: str
    params: tuple[str, ...]
    invoke: Callable[..., object] = field(repr=False)
    accepts_functions: ClassVar[bool] = True
    _xen_operation_kind: ClassVar[str] = "user"

    def __call__(self, *args: object) -> object:
        return self.invoke(*args)


@dataclass(frozen=True, eq=False)
class PartialFunction:
    """A call or operator application with unresolved ``...`` slots."""

    target: Callable[..., object] = field(repr=False)
    args: tuple[object, ...]
    display: str
    resolve: Callable[..., object] = field(repr=False)
    _xen_operation_kind: ClassVar[str] = "partial"

    @property
    def hole_count(self) -> int:
        return sum(count_holes(arg) for arg in self.args)

    def __call__(self, *given: object) -> object:
        return self.resolve(self, given)


def count_holes(value: object) -> int:
    if isinstance(value, Hole):
        return 1
    if isinstance(value, PartialFunction):
        return value.hole_count
    return 0


def is_partially_evaluated(value: object) -> bool:
    return isinstance(value, (Hole, PartialFunction))


def is_function(value: object) -> bool:
    return bool(getattr(value, "_xen_operation_kind", None))


def is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def is_interval(value: object) -> bool:
    return isinstance(value, (ETInterval, Cents, FreqRatio))


def is_note(value: object) -> bool:
    return isinstance(value, (ETInterval, Cents, Frequency))


def is_list(value: object) -> bool:
    return isinstance(value, list)


_TYPE_TAGS: Final[tuple[tuple[type, str], ...]] = (
    (bool, "bool"),
    (ETInterval, "et"),
    (FreqRatio, "ratio"),
    (Cents, "cents"),
    (Frequency, "freq"),
    (list, "list"),
    (Waveshape, "waveshape"),
    (Hole, "hole"),
    (PartialFunction, "partial function"),
    (BuiltinFunction, "function"),
    (UserFunction, "function"),
)


def display_type(value: object) -> str:
    """Type tag shown next to evaluation results."""
    if value is None:
        return "undefined"
    for cls, tag in _TYPE_TAGS:
        if isinstance(value, cls):
            return tag
    if is_number(value):
        return "number"
    return f"python.{type(value).__name__}"


def _round(x: float) -> float:
    return round(float(x), _DISPLAY_PRECISION)


def format_number(x: float) -> str:
    """Render a scalar the way the console shows numbers (``5``, ``1.25``, ``-3``)."""
    x = float(x)
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0:
        return "0"
    if x.is_integer() and abs(x) < 1e21:
        return str(int(x))
    return repr(x)


def format_value(value: object) -> str:
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, ETInterval):
        return f"{format_number(_round(value.n))}#{format_number(_round(value.d))}"
    if isinstance(value, Cents):
        return f"{format_number(_round(value.value))}c"
    if isinstance(value, FreqRatio):
        return f"{value.n}:{value.d}"
    if isinstance(value, Frequency):
        return f"{format_number(_round(value.hz))}hz"
    if isinstance(value, list):
        return "'(" + ",".join(format_value(item) for item in value) + ")"
    if isinstance(value, Waveshape):
        return value.value
    if isinstance(value, Hole):
        return "..."
    if isinstance(value, PartialFunction):
        return value.display
    if isinstance(value, (BuiltinFunction, UserFunction)):
        return value.name
    if is_number(value):
        return format_number(_round(value))
    return str(value)


@dataclass(frozen=True)
class XenResult:
    """One entry of the evaluation output: a value paired with its type tag."""

    value: object
    type: str

    @classmethod
    def of(cls, value: object) -> "XenResult":
        return cls(value=value, type=display_type(value))

    def __str__(self) -> str:
        return f"{format_value(self.value)} ({self.type})"
