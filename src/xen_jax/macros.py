"""Macro table and the builtin macros.

A macro receives the raw text after its name (``pre``) and the contents of an optional
brace-balanced block (``block``).  Macros run at evaluation time; the words they add to
the table are only recognized by inputs lexed afterwards.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Final, Iterator

from .errors import XenDomainError, XenParseError, XenUnsupportedError
from .tuning import Cents, FreqRatio
from .values import UserFunction, XenList

if TYPE_CHECKING:
    from .evaluator import Interpreter

MacroHandler = Callable[[str, str], object]

BUILTIN_MACRO_NAMES: Final[tuple[str, ...]] = (
    "js",
    "@",
    "comment",
    "scl",
    "function",
    "macro",
    "operator",
    "return",
    "break",
)

_MACRO_NAME = re.compile(r"^[^\W\d]\w*$")
_FUNCTION_HEADER = re.compile(r"^(?P<name>\w*)\((?P<args>[\w\s,]*)\)$")
_OPERATOR_HEADER = re.compile(
    r"(\(\s*)?(?P<a>\w+)?\s*(?P<op>[+\-*/^%=,:;<>&|!#~]+)\s*(?P<b>\w+)?(\s*\))?(\s+(?P<bp>[\d.]+))?"
)
_SCL_CENTS = re.compile(r"(-?(?:\d+\.\d*|\.\d+))")
_SCL_RATIO = re.compile(r"(\d+)\s*(?:/\s*(\d+))?")


class MacroTable:
    """Named macro handlers; ``None`` marks a word that lexes as a macro but does nothing."""

    def __init__(self) -> None:
        self._handlers: dict[str, MacroHandler | None] = {}
        self._builtin: set[str] = set()

    def register(self, name: str, handler: MacroHandler | None, *, builtin: bool = False) -> None:
        if name in self._builtin:
            raise XenDomainError(f"The macro {name!r} is built in and cannot be redefined.")
        self._handlers[name] = handler
        if builtin:
            self._builtin.add(name)

    def get(self, name: str) -> MacroHandler | None:
        return self._handlers.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)


@dataclass(frozen=True)
class ScaleInfo:
    """Everything read from a Scala ``.scl`` description."""

    description: str
    notes_per_octave: int
    scale: XenList


def parse_scl(content: str) -> ScaleInfo:
    lines = content.split("\n")
    i = 0
    while i < len(lines) and (lines[i].strip() == "" or lines[i].lstrip().startswith("!")):
        i += 1
    if i + 1 >= len(lines):
        raise XenParseError("Error in .scl file format: missing description or note count.", 0, len(content))
    description = lines[i].strip()
    try:
        notes_per_octave = int(lines[i + 1].split()[0])
    except (IndexError, ValueError) as exc:
        raise XenParseError(f"Error in .scl file format: bad note count {lines[i + 1]!r}.", 0, len(content)) from exc

    scale = XenList()
    for line in lines[i + 2 :]:
        if line.strip() == "" or line.lstrip().startswith("!"):
            continue
        cents = _SCL_CENTS.search(line)
        if cents is not None:
            scale.append(Cents(float(cents.group(1))))
            continue
        ratio = _SCL_RATIO.search(line)
        if ratio is None:
            raise XenParseError(f"Error in .scl file format: {line!r}.", 0, len(content))
        scale.append(FreqRatio.of(int(ratio.group(1)), int(ratio.group(2) or 1)))
    return ScaleInfo(description=description, notes_per_octave=notes_per_octave, scale=scale)


def _substitute(template: str, pre: str, block: str) -> str:
    def _wrap(text: str) -> str:
        return f"({text})" if text else ""

    body = re.sub(r"\bpre\b", lambda _: _wrap(pre), template)
    return re.sub(r"\bcontent\b", lambda _: _wrap(block), body)


def install_builtin_macros(interp: "Interpreter") -> MacroTable:
    table = interp.macros

    def js(pre: str, block: str) -> object:
        raise XenUnsupportedError(
            "js blocks are not supported in this implementation; register a native function instead."
        )

    def scl(pre: str, block: str) -> object:
        info = parse_scl(block)
        return info if pre == "*" else info.scale

    def function(pre: str, block: str) -> object:
        match = _FUNCTION_HEADER.match(pre)
        if match is None:
            raise XenParseError("Incorrect function syntax.", 0, len(pre), expected=("name(arg, ...)",), found=pre)
        name = match.group("name")
        params = tuple(arg.strip() for arg in match.group("args").split(",") if arg.strip())
        fn = UserFunction(
            name=f"{name}({','.join(params)})",
            params=params,
            invoke=lambda *args: interp.call_with_frame(name or "function", params, args, lambda: interp.eval_source(block)),
        )
        if name:
            interp.variables[name] = fn
        return fn

    def macro(pre: str, block: str) -> object:
        if not pre:
            raise XenParseError("Block definitions must be given a name.", 0, 0)
        if _MACRO_NAME.match(pre) is None:
            raise XenParseError(
                f"Invalid macro name {pre!r}.", 0, len(pre), expected=("a single word",), found=pre
            )

        def expand(inner_pre: str, inner_block: str) -> object:
            return interp.eval_source(_substitute(block, inner_pre, inner_block))

        table.register(pre, expand)
        return None

    def operator(pre: str, block: str) -> object:
        match = _OPERATOR_HEADER.search(pre)
        if match is None or not (match.group("a") or match.group("b")):
            raise XenParseError("Incorrect operator syntax.", 0, len(pre), expected=("a op b [bp]",), found=pre)
        a, b, op = match.group("a"), match.group("b"), match.group("op")
        bp = float(match.group("bp")) if match.group("bp") else None
        params = tuple(name for name in (a, b) if name)
        handler = UserFunction(
            name=op,
            params=params,
            invoke=lambda *args: interp.call_with_frame(op, params, args, lambda: interp.eval_source(block)),
        )
        if not a:
            interp.operators.add_prefix(op, handler, bp, writable=True)
        elif not b:
            interp.operators.add_postfix(op, handler, bp, writable=True)
        else:
            interp.operators.add_infix(op, handler, bp, writable=True)
        return None

    def return_(pre: str, block: str) -> object:
        value = interp.eval_source(pre)
        interp.control.return_with(value)
        return value

    def break_(pre: str, block: str) -> object:
        interp.control.broken = True
        return None

    handlers: dict[str, MacroHandler | None] = {
        "js": js,
        "@": None,
        "comment": None,
        "scl": scl,
        "function": function,
        "macro": macro,
        "operator": operator,
        "return": return_,
        "break": break_,
    }
    for name in BUILTIN_MACRO_NAMES:
        table.register(name, handlers[name], builtin=True)
    return table
