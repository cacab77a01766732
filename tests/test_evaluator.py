from __future__ import annotations

import unittest


def _session(degree: int = 8, **config):
    """An elaborator with one open namespace ``Main``, for evaluating expressions directly."""
    from pil_jax.config import ElaborationConfig
    from pil_jax.elaborator import Elaborator

    elaborator = Elaborator(ElaborationConfig(**config))
    elaborator.env.open_namespace("Main", degree)
    elaborator.evaluator.current_namespace = "Main"
    return elaborator


def _define(session, name, value) -> None:
    from pil_jax.builder import expr

    session.env.define("Main", name, expr(value))


def _eval(session, expr):
    return session.evaluator.evaluate(expr, "Main")


class ArrayConstructionTests(unittest.TestCase):
    def test_new_calls_function_per_index(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Array, Integer

        session = _session()
        out = _eval(session, b.call("std::array::new", 4, b.lam("i", b.mul("i", "i"))))
        self.assertEqual(out, Array(tuple(Integer(i * i) for i in range(4))))

    def test_new_with_zero_length_never_calls(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import PanicError
        from pil_jax.values import Array

        session = _session()
        exploding = b.lam("i", b.call("panic", b.string("called")))
        self.assertEqual(_eval(session, b.call("std::array::new", 0, exploding)), Array(()))
        with self.assertRaises(PanicError):
            _eval(session, b.call("std::array::new", 1, exploding))

    def test_new_with_witness_length(self) -> None:
        from pil_jax import builder as b
        from pil_jax.columns import ColumnKind
        from pil_jax.errors import NonConstantLengthError

        session = _session()
        session._declare("Main", "w", ColumnKind.WITNESS, None)
        with self.assertRaises(NonConstantLengthError):
            _eval(session, b.call("std::array::new", "w", b.lam("i", "i")))

    def test_len_and_map(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Array, Integer

        session = _session()
        _define(session, "xs", b.array(1, 2, 3))
        self.assertEqual(_eval(session, b.call("len", "xs")), Integer(3))
        self.assertEqual(
            _eval(session, b.call("std::array::map", "xs", b.lam("x", b.add("x", 10)))),
            Array((Integer(11), Integer(12), Integer(13))),
        )


class AccumulationTests(unittest.TestCase):
    def test_sum(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        self.assertEqual(_eval(session, b.call("sum", 3, b.lam("i", b.add("i", 1)))), Integer(6))
        self.assertEqual(_eval(session, b.call("sum", 0, b.lam("i", b.call("panic", b.string("no"))))), Integer(0))

    def test_fold(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        # 1 * 2 * 3 * 4
        factorial = b.call("fold", 4, b.lam("i", b.add("i", 1)), 1, b.lam(("acc", "x"), b.mul("acc", "x")))
        self.assertEqual(_eval(session, factorial), Integer(24))

    def test_long_sum_of_columns(self) -> None:
        from pil_jax import algebra
        from pil_jax import builder as b
        from pil_jax.columns import ColumnKind
        from pil_jax.values import Symbolic

        session = _session()
        session._declare("Main", "x", ColumnKind.WITNESS, None)
        out = _eval(session, b.call("sum", 10000, b.lam("i", "x")))
        self.assertIsInstance(out, Symbolic)
        poly = algebra.to_polynomial(out.expression, session.field)
        self.assertEqual(list(poly.values()), [10000])


class FunctionTests(unittest.TestCase):
    def test_zero_padded_accessor(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        _define(session, "arr", b.array(10, 20, 30))
        in_range = b.binop("&&", b.binop(">=", "i", 0), b.binop("<", "i", b.call("len", "arr")))
        _define(session, "get", b.lam("i", b.if_else(in_range, b.index("arr", "i"), 0)))

        self.assertEqual(_eval(session, b.call("get", 1)), Integer(20))
        self.assertEqual(_eval(session, b.call("get", b.neg(1))), Integer(0))
        self.assertEqual(_eval(session, b.call("get", 5)), Integer(0))

    def test_shift(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        _define(session, "f", b.lam("i", b.mul("i", "i")))
        _define(session, "shift", b.lam(("f", "k"), b.lam("i", b.call("f", b.sub("i", "k")))))

        for i in range(3, 9):
            with self.subTest(i=i):
                shifted = _eval(session, b.call(b.call("shift", "f", 3), i))
                self.assertEqual(shifted, _eval(session, b.call("f", i - 3)))

    def test_product_is_convolution(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        _define(session, "a", b.lam("i", b.add("i", 1)))
        _define(session, "c", b.lam("i", b.mul(2, "i")))
        term = b.mul(b.call("x", "i"), b.call("y", b.sub("n", "i")))
        _define(session, "product", b.lam(("x", "y"), b.lam("n", b.call("sum", b.add("n", 1), b.lam("i", term)))))

        for n in range(5):
            expected = sum((i + 1) * 2 * (n - i) for i in range(n + 1))
            with self.subTest(n=n):
                self.assertEqual(_eval(session, b.call(b.call("product", "a", "c"), n)), Integer(expected))

    def test_partial_application(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Closure, Integer

        session = _session()
        _define(session, "add3", b.lam(("x", "y", "z"), b.add(b.add("x", "y"), "z")))
        partial = _eval(session, b.call("add3", 1))
        self.assertIsInstance(partial, Closure)
        self.assertEqual(partial.params, ("y", "z"))
        self.assertEqual(_eval(session, b.call(b.call(b.call("add3", 1), 2), 3)), Integer(6))
        self.assertEqual(_eval(session, b.call(b.call("fold", 3, b.lam("i", "i")), 0, b.lam(("a", "x"), b.add("a", "x")))), Integer(3))

    def test_too_many_arguments(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import ArityMismatchError

        session = _session()
        with self.assertRaises(ArityMismatchError):
            _eval(session, b.call(b.lam("x", "x"), 1, 2))
        with self.assertRaises(ArityMismatchError):
            _eval(session, b.call("len", b.array(), b.array()))

    def test_calling_a_number(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import TypeMismatchError

        with self.assertRaises(TypeMismatchError):
            _eval(_session(), b.call(5, 1))

    def test_closures_capture_definition_scope(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        _define(session, "adder", b.lam("k", b.lam("x", b.add("x", "k"))))
        _define(session, "k", 100)
        self.assertEqual(_eval(session, b.call(b.call("adder", 1), 2)), Integer(3))

    def test_short_circuit(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import FALSE, TRUE

        session = _session()
        boom = b.binop("==", b.call("panic", b.string("evaluated")), 0)
        self.assertEqual(_eval(session, b.binop("||", b.binop("==", 1, 1), boom)), TRUE)
        self.assertEqual(_eval(session, b.binop("&&", b.binop("==", 1, 2), boom)), FALSE)


class RecursionTests(unittest.TestCase):
    def test_deep_recursion_does_not_use_python_stack(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        body = b.if_else(b.binop("==", "n", 0), 0, b.add(1, b.call("down", b.sub("n", 1))))
        _define(session, "down", b.lam("n", body))
        self.assertEqual(_eval(session, b.call("down", 5000)), Integer(5000))

    def test_runaway_recursion_hits_step_limit(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import ErrorKind, RecursionLimitExceededError

        session = _session(max_steps=10_000)
        _define(session, "loop", b.lam("n", b.call("loop", b.add("n", 1))))
        with self.assertRaises(RecursionLimitExceededError) as ctx:
            _eval(session, b.call("loop", 0))
        self.assertEqual(ctx.exception.kind, ErrorKind.RECURSION_LIMIT_EXCEEDED)

    def test_depth_limit(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import RecursionLimitExceededError

        session = _session(max_depth=200)
        body = b.if_else(b.binop("==", "n", 0), 0, b.add(1, b.call("down", b.sub("n", 1))))
        _define(session, "down", b.lam("n", body))
        with self.assertRaises(RecursionLimitExceededError):
            _eval(session, b.call("down", 1000))

    def test_cyclic_definition(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import RecursionLimitExceededError

        session = _session()
        _define(session, "a", b.add("b", 1))
        _define(session, "b", b.add("a", 1))
        with self.assertRaises(RecursionLimitExceededError):
            _eval(session, b.ref("a"))

    def test_binding_without_definition(self) -> None:
        from pil_jax.env import Binding, BindingKind
        from pil_jax.errors import UnresolvedReferenceError

        session = _session()
        with self.assertRaises(UnresolvedReferenceError):
            session.evaluator.force(Binding("ghost", "Main", BindingKind.VALUE))

    def test_forcing_restores_degree_context(self) -> None:
        from pil_jax import builder as b
        from pil_jax.elaborator import Elaborator
        from pil_jax.errors import InvalidDegreeError
        from pil_jax.values import Integer

        session = Elaborator()
        session.env.open_namespace("Lib", None)
        session.env.define("Lib", "n", b.call("degree"))
        session.env.open_namespace("Main", 8)
        session.evaluator.current_namespace = "Main"
        with self.assertRaises(InvalidDegreeError):
            _eval(session, b.ref("Lib::n"))
        self.assertEqual(session.evaluator.current_namespace, "Main")
        self.assertEqual(_eval(session, b.call("degree")), Integer(8))


class MatchTests(unittest.TestCase):
    def test_first_matching_arm(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import Integer

        session = _session()
        expr = b.match(2, (1, 10), (2, 20), (None, 99))
        self.assertEqual(_eval(session, expr), Integer(20))
        self.assertEqual(_eval(session, b.match(7, (1, 10), (None, 99))), Integer(99))

    def test_non_exhaustive(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import NonExhaustiveMatchError

        with self.assertRaises(NonExhaustiveMatchError):
            _eval(_session(), b.match(5, (1, 10), (2, 20)))

    def test_condition_must_be_bool(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import TypeMismatchError

        with self.assertRaises(TypeMismatchError):
            _eval(_session(), b.if_else(1, 2, 3))


class IndexTests(unittest.TestCase):
    def test_out_of_bounds(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import IndexOutOfBoundsError

        session = _session()
        for position in (3, b.neg(1)):
            with self.subTest(position=position):
                with self.assertRaises(IndexOutOfBoundsError):
                    _eval(session, b.index(b.array(1, 2, 3), position))

    def test_tuple_index(self) -> None:
        from pil_jax import builder as b
        from pil_jax.values import String

        self.assertEqual(_eval(_session(), b.index(b.tuple_(1, b.string("a")), 1)), String("a"))


class BuiltinTests(unittest.TestCase):
    def test_conversions_and_modulus(self) -> None:
        from pil_jax import builder as b
        from pil_jax.field import GOLDILOCKS
        from pil_jax.values import FieldElement, Integer

        session = _session()
        self.assertEqual(_eval(session, b.call("fe", b.neg(1))), FieldElement(GOLDILOCKS.modulus - 1))
        self.assertEqual(_eval(session, b.call("int", b.call("fe", b.neg(1)))), Integer(GOLDILOCKS.modulus - 1))
        self.assertEqual(_eval(session, b.call("modulus")), Integer(GOLDILOCKS.modulus))
        self.assertEqual(_eval(session, b.call("degree")), Integer(8))

    def test_assert(self) -> None:
        from pil_jax import builder as b
        from pil_jax.errors import ErrorKind, PanicError
        from pil_jax.values import UNIT

        session = _session()
        self.assertEqual(_eval(session, b.call("assert", b.binop("<", 1, 2), b.string("ok"))), UNIT)
        with self.assertRaises(PanicError) as ctx:
            _eval(session, b.call("assert", b.binop("<", 2, 1), b.string("ordering")))
        self.assertEqual(ctx.exception.kind, ErrorKind.PANIC)
        self.assertIn("ordering", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
