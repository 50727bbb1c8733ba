from __future__ import annotations

import importlib.util
import unittest

from xen_jax.errors import XenParseError
from xen_jax.macros import parse_scl


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


def _shown(results) -> list[str]:
    from xen_jax import format_value

    return [format_value(result.value) for result in results]


SCALE = """! meantone.scl
!
Quarter-comma meantone fragment
 3
!
 193.157
 5/4
 2/1
"""


class SclParsingTests(unittest.TestCase):
    def test_reads_description_count_and_notes(self) -> None:
        from xen_jax.tuning import Cents, FreqRatio

        info = parse_scl(SCALE)
        self.assertEqual(info.description, "Quarter-comma meantone fragment")
        self.assertEqual(info.notes_per_octave, 3)
        self.assertEqual(list(info.scale), [Cents(193.157), FreqRatio(5, 4), FreqRatio(2, 1)])

    def test_missing_header_is_a_format_error(self) -> None:
        with self.assertRaises(XenParseError):
            parse_scl("! only comments\n")

    def test_bad_note_count_is_a_format_error(self) -> None:
        with self.assertRaises(XenParseError):
            parse_scl("name\nmany\n1/1\n")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class BuiltinMacroTests(unittest.TestCase):
    def test_comment_macros_produce_nothing(self) -> None:
        from xen_jax import Interpreter

        self.assertEqual(_shown(Interpreter().evaluate("@ a note to self\ncomment ignored too\n5")), ["5"])

    def test_scl_block_returns_scale_or_record(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        self.assertEqual(_shown(interp.evaluate("scl {\nsteps\n2\n700.0\n2/1\n}")), ["'(700c,2:1)"])
        info = interp.eval_source("scl * {\nsteps\n2\n700.0\n2/1\n}")
        self.assertEqual((info.description, info.notes_per_octave), ("steps", 2))

    def test_function_macro_defines_named_function(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        results = interp.evaluate("function avg(a, b) { (a + b) / 2 }\navg(3, 5)")
        self.assertEqual([r.type for r in results], ["function", "number"])
        self.assertEqual(_shown(results), ["avg(a,b)", "4"])

    def test_anonymous_function_macro_value(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.evaluate("inc = function (x) { x + 1 }")
        self.assertEqual(_shown(interp.evaluate("inc(2)")), ["3"])

    def test_function_macro_rejects_bad_header(self) -> None:
        from xen_jax import Interpreter

        with self.assertRaises(XenParseError) as ctx:
            Interpreter().evaluate("function oops { 1 }")
        self.assertEqual(ctx.exception.message, "Incorrect function syntax.")

    def test_user_macro_substitutes_pre_and_content(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        self.assertEqual(interp.evaluate("macro twice { pre * 2 }"), [])
        self.assertEqual(_shown(interp.evaluate("twice 21")), ["42"])
        interp.evaluate("macro wrap { content + pre }")
        self.assertEqual(_shown(interp.evaluate("wrap 1 { 2 }")), ["3"])

    def test_user_macro_needs_a_name(self) -> None:
        from xen_jax import Interpreter

        with self.assertRaises(XenParseError):
            Interpreter().evaluate("macro { 1 }")

    def test_user_macro_name_must_be_a_single_word(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        for source in ("macro two words { 1 }", "macro a-b { 1 }", "macro 2x { 1 }"):
            with self.subTest(source=source):
                with self.assertRaises(XenParseError):
                    interp.evaluate(source)
        self.assertNotIn("two words", interp.macros)

    def test_builtin_macros_cannot_be_redefined(self) -> None:
        from xen_jax import Interpreter, XenDomainError

        with self.assertRaises(XenDomainError):
            Interpreter().evaluate("macro scl { 1 }")

    def test_js_blocks_are_unsupported(self) -> None:
        from xen_jax import Interpreter, XenUnsupportedError

        with self.assertRaises(XenUnsupportedError):
            Interpreter().evaluate("js { return 1 }")

    def test_register_native_macro(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.register_macro("thrice", lambda pre, block: interp.eval_source(pre) * 3)
        self.assertEqual(_shown(interp.evaluate("thrice 1 + 1")), ["6"])


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class OperatorMacroTests(unittest.TestCase):
    def test_infix_operator_available_from_next_input(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        self.assertEqual(interp.evaluate("operator a ~ b { a * b + 1 }"), [])
        self.assertEqual(_shown(interp.evaluate("3 ~ 4")), ["13"])
        self.assertEqual(_shown(interp.evaluate("2 + 3 ~ 4")), ["15"])

    def test_operator_is_not_visible_in_defining_input(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        with self.assertRaises(XenParseError):
            interp.evaluate("operator a ~ b { a }\n1 ~ 2")
        self.assertNotIn("~", interp.operators)

    def test_explicit_binding_power(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.evaluate("operator (a <> b) 2.9 { a - b }")
        self.assertEqual(interp.operators.lookup("infix", "<>").binding_power, 2.9)
        self.assertEqual(_shown(interp.evaluate("10 <> 1 + 2")), ["7"])

    def test_prefix_and_postfix_operators(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.evaluate("operator ~~ b { b + 100 }")
        interp.evaluate("operator a !! { a * 2 }")
        self.assertEqual(_shown(interp.evaluate("~~1")), ["101"])
        self.assertEqual(_shown(interp.evaluate("5!!")), ["10"])

    def test_user_operator_can_be_redefined(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.evaluate("operator a ~ b { a }")
        interp.evaluate("operator a ~ b { b }")
        self.assertEqual(_shown(interp.evaluate("1 ~ 2")), ["2"])

    def test_builtin_operator_is_read_only(self) -> None:
        from xen_jax import Interpreter, XenDomainError

        with self.assertRaises(XenDomainError):
            Interpreter().evaluate("operator a + b { a }")

    def test_user_operator_with_hole_composes(self) -> None:
        from xen_jax import Interpreter

        interp = Interpreter()
        interp.evaluate("operator a ~ b { a * b + 1 }")
        interp.evaluate("f = ... ~ 2")
        self.assertEqual(interp.variables["f"].display, "((... * 2) + 1)")
        self.assertEqual(_shown(interp.evaluate("f(3)")), ["7"])

    def test_interpreters_do_not_share_operators(self) -> None:
        from xen_jax import Interpreter

        first = Interpreter()
        first.evaluate("operator a ~ b { a }")
        with self.assertRaises(XenParseError):
            Interpreter().evaluate("1 ~ 2")

    def test_bad_operator_header(self) -> None:
        from xen_jax import Interpreter

        with self.assertRaises(XenParseError):
            Interpreter().evaluate("operator ~ { 1 }")


if __name__ == "__main__":
    unittest.main()
