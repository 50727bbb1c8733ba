"""Operator registry: prefix/infix/postfix tables shared by the lexer, parser and evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final, Iterable

from . import coercion
from .errors import XenDomainError

PREFIX: Final[str] = "prefix"
INFIX: Final[str] = "infix"
POSTFIX: Final[str] = "postfix"
FIXITIES: Final[tuple[str, ...]] = (PREFIX, INFIX, POSTFIX)

DEFAULT_BINDING_POWER: Final[dict[str, float]] = {
    PREFIX: 6.5,
    INFIX: 4,
    POSTFIX: 6.8,
}

# Characters that may form operator runs in source text.
OPERATOR_CHARS: Final[frozenset[str]] = frozenset("+-*/^%=(),:;<>&|!#~[]")
# Punctuation that always lexes as a single token and never joins a run.
STANDALONE_CHARS: Final[frozenset[str]] = frozenset("()[],")
# Words lexed as postfix operators rather than identifiers (case-insensitive).
UNIT_WORDS: Final[frozenset[str]] = frozenset({"c", "hz"})


@dataclass(frozen=True)
class OperatorEntry:
    symbol: str
    fixity: str
    binding_power: float
    handler: Callable[..., object]
    writable: bool = False


@dataclass(frozen=True)
class GrammarSnapshot:
    """Hashable view of the grammar-relevant registry state at one point in time.

    Handlers are deliberately absent: the parser only needs symbols and binding powers,
    and the evaluator resolves handlers against the live registry.
    """

    prefix: tuple[tuple[str, float], ...]
    infix: tuple[tuple[str, float], ...]
    postfix: tuple[tuple[str, float], ...]
    macros: frozenset[str] = frozenset()

    @property
    def symbols(self) -> frozenset[str]:
        return frozenset(symbol for table in (self.prefix, self.infix, self.postfix) for symbol, _ in table)

    def is_operator(self, text: str) -> bool:
        return text in self.symbols

    def is_macro(self, name: str) -> bool:
        return name in self.macros


class OperatorRegistry:
    """Mutable operator tables owned by one interpreter."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[str, OperatorEntry]] = {fixity: {} for fixity in FIXITIES}

    def add(
        self,
        fixity: str,
        symbol: str,
        handler: Callable[..., object],
        binding_power: float | None = None,
        *,
        writable: bool = False,
    ) -> OperatorEntry:
        if fixity not in self._tables:
            raise ValueError(f"Unknown operator fixity {fixity!r}")
        table = self._tables[fixity]
        existing = table.get(symbol)
        if existing is not None and not existing.writable:
            raise XenDomainError(f"The {fixity} operator {symbol!r} is built in and cannot be redefined.")
        entry = OperatorEntry(
            symbol=symbol,
            fixity=fixity,
            binding_power=binding_power or DEFAULT_BINDING_POWER[fixity],
            handler=handler,
            writable=writable,
        )
        table[symbol] = entry
        return entry

    def add_prefix(self, symbol: str, handler: Callable[..., object], binding_power: float | None = None, *, writable: bool = False) -> OperatorEntry:
        return self.add(PREFIX, symbol, handler, binding_power, writable=writable)

    def add_infix(self, symbol: str, handler: Callable[..., object], binding_power: float | None = None, *, writable: bool = False) -> OperatorEntry:
        return self.add(INFIX, symbol, handler, binding_power, writable=writable)

    def add_postfix(self, symbol: str, handler: Callable[..., object], binding_power: float | None = None, *, writable: bool = False) -> OperatorEntry:
        return self.add(POSTFIX, symbol, handler, binding_power, writable=writable)

    def lookup(self, fixity: str, symbol: str) -> OperatorEntry | None:
        return self._tables[fixity].get(symbol)

    def __contains__(self, symbol: object) -> bool:
        return any(symbol in table for table in self._tables.values())

    def snapshot(self, macros: Iterable[str] = ()) -> GrammarSnapshot:
        def _pairs(fixity: str) -> tuple[tuple[str, float], ...]:
            return tuple((entry.symbol, entry.binding_power) for entry in self._tables[fixity].values())

        return GrammarSnapshot(
            prefix=_pairs(PREFIX),
            infix=_pairs(INFIX),
            postfix=_pairs(POSTFIX),
            macros=frozenset(macros),
        )


def install_builtin_operators(registry: OperatorRegistry) -> OperatorRegistry:
    """Register the read-only operators every interpreter starts with."""
    # interval constructors
    registry.add_infix(":", coercion.colon, 7.5)
    registry.add_infix("#", coercion.et, 7.3)
    registry.add_prefix("#", coercion.et, 7)
    registry.add_prefix(":", coercion.colon, 7)
    # unary
    registry.add_prefix("-", coercion.subtract, 6.5)
    registry.add_prefix("+", coercion.add, 6.5)
    registry.add_prefix("!", coercion.logical_not, 6.5)
    # units
    registry.add_postfix("c", coercion.cents, 6.8)
    registry.add_postfix("hz", coercion.freq, 6.8)

    registry.add_infix("^", coercion.power, 6)
    registry.add_infix("*", coercion.multiply, 4)
    registry.add_infix("/", coercion.divide, 4)
    registry.add_infix("%", coercion.mod, 4)
    registry.add_infix("+", coercion.add, 3)
    registry.add_infix("-", coercion.subtract, 3)

    registry.add_infix(">", coercion.greater_than, 2.80)
    registry.add_infix("<", coercion.less_than, 2.80)
    registry.add_infix(">=", coercion.greater_than_or_equal, 2.80)
    registry.add_infix("<=", coercion.less_than_or_equal, 2.80)
    registry.add_infix("==", coercion.equal, 2.70)
    registry.add_infix("!=", coercion.not_equal, 2.70)
    registry.add_infix("&&", coercion.logical_and, 2.65)
    registry.add_infix("||", coercion.logical_or, 2.60)

    registry.add_postfix(";", coercion.null, 0.5)
    return registry
