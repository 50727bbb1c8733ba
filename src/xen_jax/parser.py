"""Pratt parser for xen.

The symbol table is rebuilt for every parse from a grammar snapshot, so operators added
while one input runs only take effect for the inputs parsed after it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Final

from .ast import Assign, Call, Expr, FunctionDef, Infix, Macro, Name, NumberLit, Postfix, Prefix, Program
from .errors import XenParseError
from .lexer import QUOTE, Token, tokenize
from .operators import GrammarSnapshot, OperatorRegistry, install_builtin_operators

_PARSE_CACHE_MAX: Final[int] = max(1, int(os.environ.get("XEN_JAX_PARSE_CACHE_MAX", "256")))

# Arguments, grouped expressions and assignment bodies stop below the comma/``=`` level.
ARGUMENT_BP: Final[float] = 2
SUBSCRIPT_BP: Final[float] = 8
ASSIGN_BP: Final[float] = 1

_KIND_SYMBOLS: Final[dict[str, str]] = {
    "NUMBER": "(number)",
    "NAME": "(name)",
    "MACRO": "(macro)",
    "EOF": "(end)",
}


@dataclass
class _Symbol:
    lbp: float = 0
    nud: Callable[[Token], Expr] | None = None
    led: Callable[[Token, Expr], Expr] | None = None


@dataclass
class _Parser:
    tokens: list[Token]
    grammar: GrammarSnapshot
    index: int = 0
    symbols: dict[str, _Symbol] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for symbol in (",", ")", "]", "(end)"):
            self._symbol(symbol)
        for op, bp in self.grammar.prefix:
            self._prefix(op, bp)
        for op, bp in self.grammar.infix:
            self._infix(op, bp)
        for op, bp in self.grammar.postfix:
            self._postfix(op, bp)
        self._symbol("(number)", nud=lambda tok: NumberLit(tok.value))
        self._symbol("(name)", nud=self._name_or_call)
        self._symbol("[", SUBSCRIPT_BP, led=self._subscript)
        self._symbol("[", nud=self._list_literal)
        self._symbol("(macro)", nud=lambda tok: Macro(tok.value.macro_id, tok.value.pre, tok.value.block))
        self._symbol("(", nud=self._group)
        self._symbol("=", ASSIGN_BP, led=self._assignment)

    # -- symbol table -----------------------------------------------------

    def _symbol(
        self,
        symbol_id: str,
        lbp: float = 0,
        *,
        nud: Callable[[Token], Expr] | None = None,
        led: Callable[[Token, Expr], Expr] | None = None,
    ) -> _Symbol:
        sym = self.symbols.setdefault(symbol_id, _Symbol())
        if nud is not None:
            sym.nud = nud
        if led is not None:
            sym.led = led
        if lbp:
            sym.lbp = lbp
        return sym

    def _prefix(self, op: str, rbp: float) -> None:
        self._symbol(op, nud=lambda tok: Prefix(op, self.expression(rbp)))

    def _infix(self, op: str, bp: float) -> None:
        self._symbol(op, bp, led=lambda tok, left: Infix(op, left, self.expression(bp)))

    def _postfix(self, op: str, bp: float) -> None:
        self._symbol(op, bp, led=lambda tok, left: Postfix(op, left))

    def _lookup(self, tok: Token) -> _Symbol:
        symbol_id = tok.text if tok.kind == "OP" else _KIND_SYMBOLS[tok.kind]
        return self.symbols.get(symbol_id) or _Symbol()

    # -- token stream -----------------------------------------------------

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        tok = self.tokens[self.index]
        if tok.kind != "EOF":
            self.index += 1
        return tok

    def _at(self, text: str) -> bool:
        tok = self._peek()
        return tok.kind == "OP" and tok.text == text

    def _expect(self, text: str, message: str) -> Token:
        if not self._at(text):
            self._error(self._peek(), message=message, expected=(text,))
        return self._advance()

    def _error(self, tok: Token, *, message: str = "Unexpected token", expected: tuple[str, ...] = ()) -> None:
        if tok.kind == "EOF":
            found = "EOF"
        else:
            found = f"{tok.kind}({tok.text})"
        raise XenParseError(message, tok.pos, tok.end, expected=expected, found=found)

    # -- grammar ----------------------------------------------------------

    def parse_program(self) -> Program:
        statements: list[Expr] = []
        while self._peek().kind != "EOF":
            statements.append(self.expression(0))
        return Program(statements=tuple(statements))

    def expression(self, rbp: float) -> Expr:
        tok = self._advance()
        sym = self._lookup(tok)
        if sym.nud is None:
            self._error(tok)
        left = sym.nud(tok)
        while rbp < self._lookup(self._peek()).lbp:
            tok = self._advance()
            sym = self._lookup(tok)
            if sym.led is None:
                self._error(tok)
            left = sym.led(tok, left)
        return left

    def _arguments(self, closing: str) -> tuple[Expr, ...]:
        args: list[Expr] = []
        if self._at(closing):
            self._advance()
            return ()
        while True:
            args.append(self.expression(ARGUMENT_BP))
            if not self._at(","):
                break
            self._advance()
        self._expect(closing, f"Expected closing {'parenthesis' if closing == ')' else 'bracket'} '{closing}'")
        return tuple(args)

    def _name_or_call(self, tok: Token) -> Expr:
        if self._at("("):
            self._advance()
            args = self._arguments(")")
            name = "list" if tok.text == QUOTE else tok.text
            return Call(name, args)
        return Name(tok.text)

    def _group(self, tok: Token) -> Expr:
        value = self.expression(ARGUMENT_BP)
        self._expect(")", "Expected closing parenthesis ')'")
        return value

    def _list_literal(self, tok: Token) -> Expr:
        return Call("list", self._arguments("]"))

    def _subscript(self, tok: Token, left: Expr) -> Expr:
        index = self.expression(ARGUMENT_BP)
        self._expect("]", "Expected closing bracket ']'")
        return Call("getIndex", (left, index))

    def _assignment(self, tok: Token, left: Expr) -> Expr:
        if isinstance(left, Call):
            params: list[str] = []
            for arg in left.args:
                if not isinstance(arg, Name):
                    self._error(tok, message="Invalid argument name")
                params.append(arg.value)
            return FunctionDef(left.name, tuple(params), self.expression(ARGUMENT_BP))
        if isinstance(left, Name):
            return Assign(left.value, self.expression(ARGUMENT_BP))
        self._error(tok, message="Invalid lvalue")


@lru_cache(maxsize=1)
def default_grammar() -> GrammarSnapshot:
    """Grammar of a freshly started interpreter."""
    from .macros import BUILTIN_MACRO_NAMES

    return install_builtin_operators(OperatorRegistry()).snapshot(BUILTIN_MACRO_NAMES)


@lru_cache(maxsize=_PARSE_CACHE_MAX)
def _parse_program_cached(source: str, grammar: GrammarSnapshot) -> Program:
    return _Parser(tokens=tokenize(source, grammar), grammar=grammar).parse_program()


def parse_program(source: str, grammar: GrammarSnapshot | None = None) -> Program:
    return _parse_program_cached(source, grammar or default_grammar())


def parse(source: str, grammar: GrammarSnapshot | None = None) -> Expr:
    """Parse source holding exactly one top-level expression."""
    program = parse_program(source, grammar)
    if len(program.statements) != 1:
        raise XenParseError(
            f"Expected exactly one expression, found {len(program.statements)}",
            0,
            len(source),
        )
    return program.statements[0]
