from __future__ import annotations

import importlib.util
import math
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for analysis tests")
class CoprimeTests(unittest.TestCase):
    def test_matches_gcd_on_small_grid(self) -> None:
        from xen_jax.analysis import coprime

        for a in range(1, 31):
            for b in range(1, 31):
                with self.subTest(a=a, b=b):
                    self.assertEqual(coprime(a, b), math.gcd(a, b) == 1)

    def test_vectorised_mask_agrees_with_scalar(self) -> None:
        import jax.numpy as jnp

        from xen_jax.analysis import coprime, coprime_mask

        a, b = jnp.meshgrid(jnp.arange(1, 25), jnp.arange(1, 25), indexing="ij")
        mask = coprime_mask(a.ravel(), b.ravel())
        expected = [coprime(int(x), int(y)) for x, y in zip(a.ravel().tolist(), b.ravel().tolist())]
        self.assertEqual([bool(v) for v in mask.tolist()], expected)

    def test_rejects_non_integers(self) -> None:
        from xen_jax.analysis import coprime
        from xen_jax.errors import XenTypeCoercionError

        with self.assertRaises(XenTypeCoercionError):
            coprime(2.5, 3)


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for analysis tests")
class ApproximationTests(unittest.TestCase):
    def _shown(self, source: str) -> list[str]:
        from xen_jax import Interpreter, format_value

        return [format_value(result.value) for result in Interpreter().evaluate(source)]

    def test_closest_ets_for_a_ratio(self) -> None:
        self.assertEqual(self._shown("closest(3:2, 3)"), ["'(24#41,17#29,7#12)"])

    def test_closest_ratio_for_other_intervals(self) -> None:
        self.assertEqual(self._shown("closest(700c, 1)"), ["'(3:2)"])
        self.assertEqual(self._shown("closest(7#12, 10c, 1)"), ["'(3:2)"])

    def test_best_fit_ets_for_a_chord(self) -> None:
        from xen_jax import Interpreter

        (result,) = Interpreter().evaluate("closest('(5:4, 3:2), 4)")
        self.assertEqual(len(result.value), 4)
        self.assertTrue(all(isinstance(base, int) and 1 <= base < 53 for base in result.value))

    def test_closest_type_errors(self) -> None:
        from xen_jax import Interpreter, XenTypeCoercionError

        with self.assertRaises(XenTypeCoercionError):
            Interpreter().evaluate("closest(440hz)")

    def test_simplify_finds_simple_ratio_within_tolerance(self) -> None:
        self.assertEqual(self._shown("simplify(7#12)"), ["3:2"])
        self.assertEqual(self._shown("simplify('(7#12, 4#12), 20c)"), ["'(3:2,5:4)"])

    def test_simplify_stops_before_reproducing_the_input_ratio(self) -> None:
        self.assertEqual(self._shown("simplify(3:2)"), ["1:1"])
        self.assertEqual(self._shown("simplify(5:4, 1c)"), ["1:1"])
        self.assertEqual(self._shown("simplify(9:8)"), ["1:1"])

    def test_simplify_type_errors(self) -> None:
        from xen_jax import Interpreter, XenTypeCoercionError

        with self.assertRaises(XenTypeCoercionError):
            Interpreter().evaluate("simplify(440hz)")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for analysis tests")
class HarmonicFittingTests(unittest.TestCase):
    def test_approxpartials_finds_common_fundamental(self) -> None:
        from xen_jax import Interpreter, format_value

        (result,) = Interpreter().evaluate("approxpartials(200hz, 300hz, 500hz)")
        self.assertEqual(format_value(result.value), "'(100hz,'(2:1,3:1,5:1))")

    def test_just_snaps_frequencies_to_harmonics(self) -> None:
        from xen_jax import Interpreter, format_value

        (result,) = Interpreter().evaluate("just(200hz, 301hz, 499hz)")
        self.assertEqual(format_value(result.value), "'(200hz,300hz,500hz)")

    def test_just_rejects_unsupported_input(self) -> None:
        from xen_jax import Interpreter, XenTypeCoercionError

        with self.assertRaises(XenTypeCoercionError):
            Interpreter().evaluate("just(saw)")


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for analysis tests")
class ConsistencyTests(unittest.TestCase):
    def test_consistent(self) -> None:
        from xen_jax.analysis import consistent

        self.assertTrue(consistent(5, 12))
        self.assertFalse(consistent(5, 2))
        self.assertTrue(consistent(3, 2))

    def test_smallest_consistent(self) -> None:
        from xen_jax.analysis import smallest_consistent

        self.assertEqual(smallest_consistent(5), 3)
        self.assertEqual(smallest_consistent(3), 1)

    def test_limit_too_large(self) -> None:
        from xen_jax.analysis import smallest_consistent
        from xen_jax.errors import XenDomainError

        with self.assertRaises(XenDomainError):
            smallest_consistent(51)


if __name__ == "__main__":
    unittest.main()
