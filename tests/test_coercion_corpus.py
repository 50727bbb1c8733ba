from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None

# (source, displayed value) pairs; ``None`` marks inputs that must raise a runtime error.
ADD_CASES = [
    ("2#12+19#19", "14#12"),
    ("4#19+12#12", "23#19"),
    ("5:4+0#12", "3.86#12"),
    ("200c+2#12", "4#12"),
    ("200c+5:4", "586.31c"),
    ("5:4+100hz", "125hz"),
    ("261.63hz+#4", "329.63hz"),
    ("261.63hz+4", None),
    ("+19#19", "12"),
    ("+'(1hz, 2c, 3#12)", "'(1,2,3)"),
]

SUBTRACT_CASES = [
    ("3:2-5:4", "6:5"),
    ("200c-4:5", "586.31c"),
    ("5:4-100hz", None),
    ("-5:4", "4:5"),
    ("-100hz", None),
]

MULTIPLY_CASES = [
    ("200hz*-4", None),
    ("#4*4", "16#12"),
    ("3:2*2", "9:4"),
    ("5:4*3:2", None),
]

DIVIDE_CASES = [
    ("12#12/19#19", "1"),
    ("5:4/4:5", "-1"),
    ("12#12/5:4", "3.11"),
    ("261.63hz/100c", "60"),
    ("500hz/5:4", None),
    ("4/#4", None),
    ("9:4/2", "3:2"),
]

MOD_CASES = [
    ("12#12%19#19", "0#12"),
    ("38#19%12#12", "0#19"),
    ("9:1 % #12", "9:8"),
    ("2:1%3:2", "4:3"),
    ("5:4%4:5", "1:1"),
    ("12#12%5:4", "0.41#12"),
    ("1200c%5:4", "41.06c"),
    ("100hz%40hz", "20hz"),
    ("#4 % 4", None),
    ("'(5, 8, 19) % '(1, 3, 3)", "'(0,2,1)"),
]

RATIO_CASES = [
    ("ratio(8,6)", "8:6"),
    ("ratio(0,6)", None),
    ("ratio(8:5,6)", None),
    ("ratio(5,'(2, 4, 6))", "'(5:2,5:4,5:6)"),
    ("4:5:6:7", "'(5:4,6:4,7:4)"),
    ("4:(5:6)", None),
    ("#8:6", "4.98#12"),
    (":2c", "1200c"),
    (":19#19", "2:1"),
]

ET_CASES = [
    ("et(261.63hz)", "60#12"),
    ("et(5:4,19)", "6.12#19"),
    ("et(1,13,3:1)", "1#8.2"),
    ("et(4,12,2400c)", "4#6"),
    ("et(4,12,100hz)", "4#12"),
    ("19#4:3", None),
    ("69#12hz", "440hz"),
    ("#'(12, 19, 31)", "'(12#12,19#12,31#12)"),
]

UNIT_CASES = [
    ("freq(6900c)", "440hz"),
    ("400 HZ", "400hz"),
    ("cents(440hz)", "6900c"),
    ("400 C", "400c"),
    ("mtof(69)", "440hz"),
    ("ftom(880)", "81#12"),
]


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class CoercionCorpusTests(unittest.TestCase):
    def _check(self, cases) -> None:
        from xen_jax import Interpreter, XenRuntimeError, format_value

        for source, expected in cases:
            with self.subTest(source=source):
                interp = Interpreter()
                if expected is None:
                    with self.assertRaises(XenRuntimeError):
                        interp.evaluate(source)
                    continue
                results = interp.evaluate(source)
                self.assertEqual(len(results), 1)
                self.assertEqual(format_value(results[0].value), expected)

    def test_add_unit_and_number(self) -> None:
        self._check(ADD_CASES)

    def test_subtract_and_inverse(self) -> None:
        self._check(SUBTRACT_CASES)

    def test_multiply(self) -> None:
        self._check(MULTIPLY_CASES)

    def test_divide(self) -> None:
        self._check(DIVIDE_CASES)

    def test_mod(self) -> None:
        self._check(MOD_CASES)

    def test_ratio_and_colon(self) -> None:
        self._check(RATIO_CASES)

    def test_et_and_hash(self) -> None:
        self._check(ET_CASES)

    def test_freq_hz_and_cents(self) -> None:
        self._check(UNIT_CASES)

    def test_result_type_tags(self) -> None:
        from xen_jax import Interpreter

        results = Interpreter().evaluate("3:2\n7#12\n700c\n440hz\n'(1)\n1 < 2\n5")
        self.assertEqual([r.type for r in results], ["ratio", "et", "cents", "freq", "list", "bool", "number"])

    def test_elementwise_size_mismatch(self) -> None:
        from xen_jax import Interpreter, XenElementwiseSizeError

        with self.assertRaises(XenElementwiseSizeError) as ctx:
            Interpreter().evaluate("'(1, 2) + '(1, 2, 3)")
        self.assertIn("Given: '(1,2) (list), '(1,2,3) (list)", str(ctx.exception))

    def test_scalar_broadcasts_over_list(self) -> None:
        from xen_jax import Interpreter, format_value

        (result,) = Interpreter().evaluate("'(1, 2, 3) * 2")
        self.assertEqual(format_value(result.value), "'(2,4,6)")
        (result,) = Interpreter().evaluate("2 * '(1, 2, 3)")
        self.assertEqual(format_value(result.value), "'(2,4,6)")

    def test_comparisons_and_logic(self) -> None:
        from xen_jax import Interpreter, format_value

        interp = Interpreter()
        shown = [format_value(r.value) for r in interp.evaluate("3:2 > 700c\n5:4 == 5:4\n5:4 == 440hz\n'(1, 5) >= 3\n!0\n0 || 7\n1 && 0")]
        self.assertEqual(shown, ["true", "true", "false", "'(false,true)", "true", "7", "0"])

    def test_rounding_family(self) -> None:
        from xen_jax import Interpreter, format_value

        interp = Interpreter()
        shown = [format_value(r.value) for r in interp.evaluate("round(2.5)\nfloor(3.86#12)\nceil(3:2)\nabs(4:5)\nnormalize(3:1)")]
        self.assertEqual(shown, ["3", "3#12", "8#12", "5:4", "3:2"])

    def test_numeric_domain_errors(self) -> None:
        from xen_jax import Interpreter, XenDomainError, XenTypeCoercionError

        with self.assertRaises(XenDomainError):
            Interpreter().evaluate("pow(-1, 0.5)")
        with self.assertRaises(XenDomainError):
            Interpreter().evaluate("1 / 0")
        with self.assertRaises(XenTypeCoercionError):
            Interpreter().evaluate("sqrt(3:2)")


NUMBER_OPERATORS = ("+", "-", "*", "/", "%", "^", ">", "<", ">=", "<=", "==", "!=")

# (operator, scalar, list items) combinations valid in both operand orders
INTERVAL_BROADCASTS = [
    ("+", "9:8", ("5:4", "3:2", "7:4")),
    ("-", "9:8", ("5:4", "3:2", "7:4")),
    ("%", "2:1", ("5:4", "3:2", "7:4")),
    ("+", "100c", ("2#12", "7#12", "3:2")),
    ("*", "2", ("5:4", "7#12", "100hz")),
    ("<", "9:8", ("5:4", "3:2", "7:4")),
    ("==", "3:2", ("5:4", "3:2", "7:4")),
]


class EtFrequencyRoundTripTests(unittest.TestCase):
    def test_et_survives_conversion_to_hz_and_back(self) -> None:
        from xen_jax.coercion import et, freq
        from xen_jax.tuning import ETInterval

        for base in (5, 12, 19, 22, 31, 53):
            for steps in (-7, 0, 3, 7.5, 19, 72, 140):
                with self.subTest(base=base, steps=steps):
                    back = et(freq(ETInterval(steps, base)), base)
                    self.assertEqual(back.d, base)
                    self.assertAlmostEqual(back.n, steps, places=9)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for evaluator tests")
class BroadcastPropertyTests(unittest.TestCase):
    def _shown(self, interp, source: str) -> str:
        from xen_jax import format_value

        (result,) = interp.evaluate(source)
        return format_value(result.value)

    def _check_broadcast(self, op: str, scalar: str, items: tuple[str, ...]) -> None:
        from xen_jax import Interpreter, format_value

        interp = Interpreter()
        listed = "'(" + ", ".join(items) + ")"
        (left,) = interp.evaluate(f"{scalar} {op} {listed}")
        (right,) = interp.evaluate(f"{listed} {op} {scalar}")
        self.assertEqual(len(left.value), len(items))
        self.assertEqual(len(right.value), len(items))
        for i, item in enumerate(items):
            self.assertEqual(format_value(left.value[i]), self._shown(interp, f"{scalar} {op} {item}"))
            self.assertEqual(format_value(right.value[i]), self._shown(interp, f"{item} {op} {scalar}"))

    def test_number_operators_map_over_either_operand(self) -> None:
        for op in NUMBER_OPERATORS:
            with self.subTest(op=op):
                self._check_broadcast(op, "5", ("1", "2", "3"))

    def test_interval_operators_map_over_either_operand(self) -> None:
        for op, scalar, items in INTERVAL_BROADCASTS:
            with self.subTest(op=op, scalar=scalar):
                self._check_broadcast(op, scalar, items)

    def test_equal_length_lists_apply_pairwise(self) -> None:
        from xen_jax import Interpreter, format_value

        interp = Interpreter()
        left, right = ("6", "9:8", "700c"), ("2", "5:4", "3:2")
        for op in ("+", "-", "<", "=="):
            with self.subTest(op=op):
                (result,) = interp.evaluate(f"'({', '.join(left)}) {op} '({', '.join(right)})")
                expected = [self._shown(interp, f"{a} {op} {b}") for a, b in zip(left, right)]
                self.assertEqual([format_value(v) for v in result.value], expected)


if __name__ == "__main__":
    unittest.main()
