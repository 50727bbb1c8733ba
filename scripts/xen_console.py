"""Evaluate xen source from files or stdin and print each result as ``value (type)``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from xen_jax import Interpreter, XenError, XenResult


def _print_results(*results: XenResult) -> None:
    for result in results:
        print(result)


def _run(interp: Interpreter, source: str) -> bool:
    try:
        results = interp.evaluate(source)
    except XenError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return False
    _print_results(*results)
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "files",
        nargs="*",
        help="xen source files to evaluate in order (stdin when omitted)",
    )
    parser.add_argument(
        "--lines",
        action="store_true",
        help="evaluate stdin one line at a time so operators and macros defined on one line apply to the next",
    )
    parser.add_argument(
        "--functions-as-data",
        action="store_true",
        help="allow bare function names as values",
    )
    args = parser.parse_args()

    interp = Interpreter(printer=_print_results, functions_as_data=args.functions_as_data or None)
    ok = True
    if args.files:
        for path in args.files:
            ok = _run(interp, Path(path).read_text(encoding="utf-8")) and ok
    elif args.lines:
        for line in sys.stdin:
            if line.strip():
                ok = _run(interp, line) and ok
    else:
        ok = _run(interp, sys.stdin.read())
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
