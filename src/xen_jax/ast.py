"""AST nodes for the xen language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NumberLit:
    value: float


@dataclass(frozen=True)
class Name:
    value: str


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Expr", ...]


@dataclass(frozen=True)
class Assign:
    name: str
    value: "Expr"


@dataclass(frozen=True)
class FunctionDef:
    name: str
    params: tuple[str, ...]
    body: "Expr"


@dataclass(frozen=True)
class Prefix:
    op: str
    right: "Expr"


@dataclass(frozen=True)
class Infix:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Postfix:
    op: str
    left: "Expr"


@dataclass(frozen=True)
class Macro:
    """A macro invocation kept as raw text until evaluation."""

    macro_id: str
    pre: str
    block: str


Expr = Union[
    NumberLit,
    Name,
    Call,
    Assign,
    FunctionDef,
    Prefix,
    Infix,
    Postfix,
    Macro,
]


@dataclass(frozen=True)
class Program:
    statements: tuple[Expr, ...]
