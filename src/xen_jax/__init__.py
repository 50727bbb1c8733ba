"""xen-jax public API."""

from .parser import parse, parse_program
from .errors import (
    XenArityError,
    XenDomainError,
    XenElementwiseSizeError,
    XenError,
    XenLexError,
    XenParseError,
    XenRuntimeError,
    XenTypeCoercionError,
    XenUndefinedNameError,
    XenUnsupportedError,
)
from .lexer import tokenize
from .tuning import Cents, ETInterval, FreqRatio, Frequency
from .values import HOLE, Waveshape, XenList, XenResult, display_type, format_value

try:
    from .evaluator import Interpreter, StatefulEvaluate, evaluate
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def evaluate(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for evaluate(). Install runtime deps first."
            ) from _jax_import_error

        class Interpreter:  # pragma: no cover - import-time fallback
            def __init__(self, *_args, **_kwargs) -> None:
                raise ModuleNotFoundError(
                    "jax is required for Interpreter(). Install runtime deps first."
                ) from _jax_import_error

        class StatefulEvaluate:  # pragma: no cover - import-time fallback
            def __init__(self, *_args, **_kwargs) -> None:
                raise ModuleNotFoundError(
                    "jax is required for StatefulEvaluate(). Install runtime deps first."
                ) from _jax_import_error

    else:
        raise

__all__ = [
    "parse",
    "parse_program",
    "tokenize",
    "evaluate",
    "Interpreter",
    "StatefulEvaluate",
    "XenResult",
    "XenList",
    "Waveshape",
    "HOLE",
    "ETInterval",
    "Cents",
    "FreqRatio",
    "Frequency",
    "display_type",
    "format_value",
    "XenError",
    "XenLexError",
    "XenParseError",
    "XenRuntimeError",
    "XenArityError",
    "XenTypeCoercionError",
    "XenUndefinedNameError",
    "XenElementwiseSizeError",
    "XenDomainError",
    "XenUnsupportedError",
]
