"""Tree-walking evaluator for xen programs.

An :class:`Interpreter` owns all mutable language state: the operator registry, the macro
table, the builtin scope, user variables and the call-frame stack.  Operators and macros
defined while one input is evaluated become part of the grammar for the next input.
"""

from __future__ import annotations

import os
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Final, Iterator, overload

from .ast import Assign, Call, Expr, FunctionDef, Infix, Macro, Name, NumberLit, Postfix, Prefix
from .builtins import builtin_scope
from .coercion import truthy
from .errors import XenArityError, XenRuntimeError, XenUndefinedNameError
from .macros import MacroHandler, MacroTable, install_builtin_macros
from .operators import INFIX, POSTFIX, PREFIX, GrammarSnapshot, OperatorRegistry, install_builtin_operators
from .parser import parse_program
from .playback import Playback, Printer, unsupported_playback, unsupported_printer
from .values import (
    BuiltinFunction,
    Hole,
    PartialFunction,
    UserFunction,
    XenResult,
    format_value,
    is_function,
    is_partially_evaluated,
)

_FUNCTIONS_AS_DATA: Final[bool] = os.environ.get("XEN_JAX_FUNCTIONS_AS_DATA", "0").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
FUNCTIONS_AS_DATA_VARIABLE: Final[str] = "__functionsAsData"
ANSWER_VARIABLE: Final[str] = "ans"


class Scope(MutableMapping[str, object]):
    """Name bindings with lookup falling through to ``parent``; writes stay local."""

    def __init__(
        self,
        data: MutableMapping[str, object] | None = None,
        parent: "Scope | None" = None,
        *,
        read_only: bool = False,
    ) -> None:
        self.data: dict[str, object] = {} if data is None else dict(data)
        self.parent = parent
        self.read_only = read_only

    def __getitem__(self, key: str) -> object:
        scope: Scope | None = self
        while scope is not None:
            if key in scope.data:
                return scope.data[key]
            scope = scope.parent
        raise KeyError(key)

    def __setitem__(self, key: str, value: object) -> None:
        if self.read_only:
            raise XenRuntimeError(f"Cannot assign to {key!r} in a read-only scope.")
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        if self.read_only:
            raise XenRuntimeError(f"Cannot delete {key!r} from a read-only scope.")
        del self.data[key]

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        scope: Scope | None = self
        while scope is not None:
            for key in scope.data:
                if key not in seen:
                    seen.add(key)
                    yield key
            scope = scope.parent

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass
class _Control:
    """``break``/``return`` state for one running input."""

    broken: bool = False
    returned: bool = False
    value: object = None

    def return_with(self, value: object) -> None:
        self.returned = True
        self.broken = True
        self.value = value


def _show_partial_arg(arg: object) -> str:
    if arg is None:
        return ""
    return format_value(arg)


def _partial_display(name: str, args: tuple[object, ...], fixity: str | None) -> str:
    if fixity == PREFIX:
        return f"({name}{_show_partial_arg(args[0])})"
    if fixity == POSTFIX:
        return f"({_show_partial_arg(args[0])} {name})"
    if fixity == INFIX:
        return f"({_show_partial_arg(args[0])} {name} {_show_partial_arg(args[1])})"
    return f"{name}({', '.join(_show_partial_arg(arg) for arg in args)})"


class Interpreter:
    """One independent xen session."""

    def __init__(
        self,
        *,
        playback: Playback | None = None,
        printer: Printer | None = None,
        functions_as_data: bool | None = None,
    ) -> None:
        self.playback: Playback = playback or unsupported_playback
        self.printer: Printer = printer or unsupported_printer
        self._functions_as_data = _FUNCTIONS_AS_DATA if functions_as_data is None else functions_as_data
        self.operators = install_builtin_operators(OperatorRegistry())
        self.macros = MacroTable()
        self.builtins = Scope(builtin_scope(self), read_only=True)
        self.variables = Scope(parent=self.builtins)
        self.scope = self.variables
        self._controls: list[_Control] = []
        install_builtin_macros(self)

    # -- public surface ---------------------------------------------------

    @property
    def functions_as_data(self) -> bool:
        if self._functions_as_data:
            return True
        return truthy(self.variables.data.get(FUNCTIONS_AS_DATA_VARIABLE))

    @property
    def control(self) -> _Control:
        if not self._controls:
            raise XenRuntimeError("break/return used outside of a running program.")
        return self._controls[-1]

    def grammar(self) -> GrammarSnapshot:
        return self.operators.snapshot(self.macros.names())

    def evaluate(self, source: str) -> list[XenResult]:
        """Evaluate every statement of ``source`` and return the defined values with their types."""
        values = self._run(source, top_level=True)
        return [XenResult.of(value) for value in values]

    def eval_source(self, source: str) -> object:
        """Evaluate nested source and return its last defined value (or its returned value)."""
        values = self._run(source, top_level=False)
        return values[-1] if values else None

    def register_native(
        self,
        name: str,
        fn: Callable[..., object],
        *,
        min_args: int = 0,
        accepts_functions: bool = False,
    ) -> BuiltinFunction:
        native = BuiltinFunction(name, fn, min_args, accepts_functions=accepts_functions)
        self.builtins.data[name] = native
        return native

    def register_macro(self, name: str, handler: MacroHandler) -> None:
        self.macros.register(name, handler)

    def call_with_frame(
        self,
        name: str,
        params: tuple[str, ...],
        args: tuple[object, ...],
        body: Callable[[], object],
    ) -> object:
        """Run ``body`` with ``params`` bound to ``args`` in a frame on top of the current scope."""
        if len(args) < len(params):
            raise XenArityError(f"{name}() expected {len(params)} argument(s), got {len(args)}.")
        caller = self.scope
        self.scope = Scope(dict(zip(params, args)), parent=caller)
        try:
            return body()
        finally:
            self.scope = caller

    # -- evaluation -------------------------------------------------------

    def _run(self, source: str, *, top_level: bool) -> list[object]:
        program = parse_program(source, self.grammar())
        control = _Control()
        self._controls.append(control)
        values: list[object] = []
        try:
            for statement in program.statements:
                value = self._eval(statement)
                if control.returned:
                    if control.value is None:
                        return []
                    if top_level:
                        self.variables[ANSWER_VARIABLE] = control.value
                    return [control.value]
                if control.broken:
                    break
                if value is None:
                    continue
                if top_level:
                    self.variables[ANSWER_VARIABLE] = value
                values.append(value)
        finally:
            self._controls.pop()
        return values

    def _eval(self, node: Expr) -> object:
        if self._controls and self.control.broken:
            return None
        if isinstance(node, NumberLit):
            return node.value
        if isinstance(node, Name):
            return self._lookup(node.value)
        if isinstance(node, Call):
            return self._eval_call(node)
        if isinstance(node, Prefix):
            operand = self._eval(node.right)
            return self._call(self._operator(PREFIX, node.op), (operand,), node.op, PREFIX)
        if isinstance(node, Infix):
            left = self._eval(node.left)
            right = self._eval(node.right)
            return self._call(self._operator(INFIX, node.op), (left, right), node.op, INFIX)
        if isinstance(node, Postfix):
            operand = self._eval(node.left)
            return self._call(self._operator(POSTFIX, node.op), (operand,), node.op, POSTFIX)
        if isinstance(node, Assign):
            self.variables[node.name] = self._eval(node.value)
            return None
        if isinstance(node, FunctionDef):
            self.variables[node.name] = self._define(node)
            return None
        if isinstance(node, Macro):
            handler = self.macros.get(node.macro_id)
            if handler is None:
                return None
            return handler(node.pre, node.block)
        raise XenRuntimeError(f"Unknown AST node type: {type(node).__name__}")

    def _lookup(self, name: str) -> object:
        try:
            value = self.scope[name]
        except KeyError:
            raise XenUndefinedNameError(f"{name} is undefined") from None
        if is_function(value) and not self.functions_as_data:
            raise XenRuntimeError(f"Missing parentheses in call to {name}()")
        return value

    def _operator(self, fixity: str, symbol: str) -> Callable[..., object]:
        entry = self.operators.lookup(fixity, symbol)
        if entry is None:
            raise XenUndefinedNameError(f"The {fixity} operator {symbol!r} is undefined")
        return entry.handler

    def _eval_call(self, node: Call) -> object:
        args = tuple(self._eval(arg) for arg in node.args)
        fn = self.scope.get(node.name)
        if fn is None or not is_function(fn):
            raise XenUndefinedNameError(f"{node.name}() is undefined")
        return self._call(fn, args, node.name)

    def _define(self, node: FunctionDef) -> UserFunction:
        return UserFunction(
            name=node.name,
            params=node.params,
            invoke=lambda *args: self.call_with_frame(node.name, node.params, args, lambda: self._eval(node.body)),
        )

    # -- currying ---------------------------------------------------------

    def _call(
        self,
        fn: Callable[..., object],
        args: tuple[object, ...],
        name: str,
        fixity: str | None = None,
    ) -> object:
        if not any(is_partially_evaluated(arg) for arg in args):
            return fn(*args)
        if not getattr(fn, "accepts_functions", False):
            return self._partial(fn, args, name, fixity)
        try:
            return fn(*args)
        except XenRuntimeError:
            return self._partial(fn, args, name, fixity)

    def _partial(
        self,
        fn: Callable[..., object],
        args: tuple[object, ...],
        name: str,
        fixity: str | None,
    ) -> PartialFunction:
        return PartialFunction(
            target=fn,
            args=args,
            display=_partial_display(name, args, fixity),
            resolve=lambda partial, given: self._call(fn, _fill(partial.args, given), name, fixity),
        )


def _fill(args: tuple[object, ...], given: tuple[object, ...]) -> tuple[object, ...]:
    """Fill holes left to right; a nested partial consumes as many arguments as it has holes."""
    filled = list(args)
    j = 0
    for i, arg in enumerate(filled):
        if j >= len(given) or given[j] is None:
            break
        if isinstance(arg, Hole):
            filled[i] = given[j]
            j += 1
        elif isinstance(arg, PartialFunction):
            n = arg.hole_count
            filled[i] = arg(*given[j : j + n])
            j += n
    return tuple(filled)


@dataclass(frozen=True)
class StatefulEvaluate:
    """Callable wrapper that evaluates source on one persistent interpreter."""

    interpreter: Interpreter = field(default_factory=Interpreter)

    def __call__(self, source: str) -> list[XenResult]:
        return self.interpreter.evaluate(source)


@lru_cache(maxsize=1)
def default_interpreter() -> Interpreter:
    """Process-wide interpreter used by the one-argument ``evaluate(source)`` form."""
    return Interpreter()


@overload
def evaluate(source: str) -> list[XenResult]:
    ...


@overload
def evaluate(source: str, interpreter: Interpreter) -> list[XenResult]:
    ...


@overload
def evaluate(interpreter: Interpreter) -> StatefulEvaluate:
    ...


def evaluate(source_or_interpreter: str | Interpreter, interpreter: Interpreter | None = None):
    """Evaluate xen source, or bind an interpreter into a reusable callable."""
    if isinstance(source_or_interpreter, str):
        return (interpreter or default_interpreter()).evaluate(source_or_interpreter)

    if interpreter is not None:
        raise TypeError("evaluate(interpreter) form takes exactly one argument")

    if isinstance(source_or_interpreter, Interpreter):
        return StatefulEvaluate(source_or_interpreter)

    raise TypeError(
        "evaluate() expects source text or an Interpreter, "
        f"got {type(source_or_interpreter).__name__}"
    )
