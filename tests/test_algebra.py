from __future__ import annotations

import unittest


def _ref(name: str, offset: int = 0):
    from pil_jax.algebra import ColumnReference
    from pil_jax.columns import ColumnId

    return ColumnReference(ColumnId("Main", name), offset)


class SmartConstructorTests(unittest.TestCase):
    def test_constants_fold(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        x = _ref("x")
        self.assertEqual(algebra.add(algebra.Constant(2), algebra.Constant(3), GOLDILOCKS), algebra.Constant(5))
        self.assertEqual(algebra.sub(algebra.Constant(0), algebra.Constant(1), GOLDILOCKS), algebra.Constant(GOLDILOCKS.modulus - 1))
        self.assertIs(algebra.mul(algebra.Constant(1), x, GOLDILOCKS), x)
        self.assertEqual(algebra.mul(x, algebra.Constant(0), GOLDILOCKS), algebra.Constant(0))
        self.assertIs(algebra.neg(algebra.neg(x, GOLDILOCKS), GOLDILOCKS), x)
        self.assertEqual(algebra.power(x, 0, GOLDILOCKS), algebra.Constant(1))


class PolynomialTests(unittest.TestCase):
    def test_cancellation(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        x, y = _ref("x"), _ref("y")
        # (x + y) * (x - y) - (x*x - y*y)
        lhs = algebra.mul(algebra.add(x, y, GOLDILOCKS), algebra.sub(x, y, GOLDILOCKS), GOLDILOCKS)
        rhs = algebra.sub(algebra.power(x, 2, GOLDILOCKS), algebra.mul(y, y, GOLDILOCKS), GOLDILOCKS)
        self.assertTrue(algebra.is_zero(algebra.sub(lhs, rhs, GOLDILOCKS), GOLDILOCKS))
        self.assertFalse(algebra.is_zero(lhs, GOLDILOCKS))

    def test_offsets_are_distinct_variables(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        diff = algebra.sub(_ref("x", 1), _ref("x"), GOLDILOCKS)
        self.assertEqual(len(algebra.to_polynomial(diff, GOLDILOCKS)), 2)

    def test_shared_subtrees(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        x = _ref("x")
        y = algebra.add(x, algebra.Constant(1), GOLDILOCKS)
        doubled = algebra.add(y, y, GOLDILOCKS)
        self.assertEqual(algebra.to_polynomial(doubled, GOLDILOCKS), {((x, 1),): 2, (): 2})
        square = algebra.mul(y, y, GOLDILOCKS)
        self.assertEqual(algebra.to_polynomial(square, GOLDILOCKS), {((x, 2),): 1, ((x, 1),): 2, (): 1})
        self.assertTrue(algebra.is_zero(algebra.sub(y, y, GOLDILOCKS), GOLDILOCKS))

    def test_boolean_forcing_detection(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        s = _ref("s")
        one = algebra.Constant(1)
        forced = algebra.mul(s, algebra.sub(one, s, GOLDILOCKS), GOLDILOCKS)
        self.assertEqual(algebra.boolean_forced_reference(forced, GOLDILOCKS), s)
        scaled = algebra.mul(algebra.Constant(3), algebra.sub(algebra.mul(s, s, GOLDILOCKS), s, GOLDILOCKS), GOLDILOCKS)
        self.assertEqual(algebra.boolean_forced_reference(scaled, GOLDILOCKS), s)
        self.assertIsNone(algebra.boolean_forced_reference(algebra.mul(s, s, GOLDILOCKS), GOLDILOCKS))


class TraversalTests(unittest.TestCase):
    def test_shift_composes(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        expr = algebra.add(_ref("a"), _ref("b", 1), GOLDILOCKS)
        shifted = algebra.shift(algebra.shift(expr, 1), 2)
        self.assertEqual(algebra.references(shifted), [_ref("a", 3), _ref("b", 4)])

    def test_deep_trees_are_traversed_iteratively(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        expr = _ref("x")
        for _ in range(20000):
            expr = algebra.add(expr, _ref("x"), GOLDILOCKS)
        self.assertEqual(algebra.degree(expr), 1)
        self.assertEqual(list(algebra.to_polynomial(expr, GOLDILOCKS).values()), [20001])
        self.assertEqual(algebra.references(algebra.shift(expr, 1)), [_ref("x", 1)])

    def test_render(self) -> None:
        from pil_jax import algebra
        from pil_jax.field import GOLDILOCKS

        expr = algebra.mul(algebra.sub(_ref("x", 1), _ref("x"), GOLDILOCKS), algebra.neg(_ref("y", 2), GOLDILOCKS), GOLDILOCKS)
        self.assertEqual(algebra.render(expr, GOLDILOCKS), "(Main::x' - Main::x) * -Main::y@2")
        self.assertEqual(algebra.render(algebra.Constant(GOLDILOCKS.modulus - 1), GOLDILOCKS), "-1")


class RowTests(unittest.TestCase):
    def test_wrap_row_is_cyclic(self) -> None:
        from pil_jax.rows import wrap_row

        self.assertEqual(wrap_row(3, 1, 4), 0)
        self.assertEqual(wrap_row(0, -1, 4), 3)
        self.assertEqual(wrap_row(1, 9, 4), 2)

    def test_next_row_requires_column(self) -> None:
        from pil_jax.errors import TypeMismatchError
        from pil_jax.rows import next_row
        from pil_jax.values import Integer

        with self.assertRaises(TypeMismatchError):
            next_row(Integer(1))


if __name__ == "__main__":
    unittest.main()
