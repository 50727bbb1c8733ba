"""Tokenization for xen source text.

Operator runs and macro words depend on the grammar in force when the text is lexed,
so :func:`tokenize` takes a :class:`~xen_jax.operators.GrammarSnapshot`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import XenLexError
from .operators import OPERATOR_CHARS, STANDALONE_CHARS, UNIT_WORDS, GrammarSnapshot

MACRO_SIGIL = "@"
QUOTE = "'"
_UNRECOGNIZED = frozenset('{}"')


@dataclass(frozen=True)
class MacroInvocation:
    macro_id: str
    pre: str
    block: str


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int
    value: object = None


def _is_identifier_char(ch: str) -> bool:
    return not (
        ch in OPERATOR_CHARS
        or ch.isdigit()
        or ch.isspace()
        or ch == MACRO_SIGIL
        or ch == QUOTE
        or ch in _UNRECOGNIZED
    )


def _scan_number(source: str, start: int) -> tuple[float, int]:
    i = start
    while i < len(source) and source[i].isdigit():
        i += 1
    if i < len(source) and source[i] == ".":
        i += 1
        while i < len(source) and source[i].isdigit():
            i += 1
    value = float(source[start:i])
    if not math.isfinite(value):
        raise XenLexError("Number is too large or too small for a 64-bit double", start, i)
    return value, i


def _split_operator_run(run: str, grammar: GrammarSnapshot) -> list[str]:
    """A run is one token only if the whole run is registered; otherwise it falls apart into characters."""
    if grammar.is_operator(run):
        return [run]
    return list(run)


def _scan_macro(source: str, start: int, macro_id: str, word_start: int) -> tuple[Token, int]:
    i = start
    pre_chars: list[str] = []
    block = ""
    while i < len(source) and source[i] != "\n":
        if source[i] == "{":
            block, i = _scan_block(source, i)
            break
        pre_chars.append(source[i])
        i += 1
    pre = "".join(pre_chars).strip().rstrip(";").strip()
    invocation = MacroInvocation(macro_id=macro_id, pre=pre, block=block.strip())
    return Token("MACRO", macro_id, word_start, i, invocation), i


def _scan_block(source: str, open_pos: int) -> tuple[str, int]:
    depth = 1
    i = open_pos + 1
    while i < len(source):
        ch = source[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return source[open_pos + 1 : i], i + 1
        i += 1
    raise XenLexError("Incomplete block.", open_pos, len(source))


def tokenize(source: str, grammar: GrammarSnapshot) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    while i < len(source):
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch in STANDALONE_CHARS:
            tokens.append(Token("OP", ch, i, i + 1))
            i += 1
            continue

        if ch in OPERATOR_CHARS:
            start = i
            while i < len(source) and source[i] in OPERATOR_CHARS and source[i] not in STANDALONE_CHARS:
                i += 1
            run = source[start:i]
            if run.startswith("//"):
                while i < len(source) and source[i] != "\n":
                    i += 1
                continue
            pos = start
            for part in _split_operator_run(run, grammar):
                tokens.append(Token("OP", part, pos, pos + len(part)))
                pos += len(part)
            continue

        if ch.isdigit():
            value, end = _scan_number(source, i)
            tokens.append(Token("NUMBER", source[i:end], i, end, value))
            i = end
            continue

        if ch == QUOTE:
            tokens.append(Token("NAME", ch, i, i + 1))
            i += 1
            continue

        if ch == MACRO_SIGIL or _is_identifier_char(ch):
            start = i
            i += 1
            if ch != MACRO_SIGIL:
                while i < len(source) and (_is_identifier_char(source[i]) or source[i].isdigit()):
                    i += 1
            word = source[start:i]
            if grammar.is_macro(word):
                token, i = _scan_macro(source, i, word, start)
                tokens.append(token)
            elif word.lower() in UNIT_WORDS:
                tokens.append(Token("OP", word.lower(), start, i))
            else:
                tokens.append(Token("NAME", word, start, i))
            continue

        raise XenLexError(f"Unrecognized token {ch!r}", i, i + 1)

    tokens.append(Token("EOF", "", len(source), len(source)))
    return tokens
