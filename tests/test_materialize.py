from __future__ import annotations

import importlib.util
import unittest


JAX_AVAILABLE = importlib.util.find_spec("jax") is not None


def _spec(field_name: str = "goldilocks"):
    from pil_jax import builder as b
    from pil_jax.config import ElaborationConfig
    from pil_jax.elaborator import elaborate
    from pil_jax.field import field_by_name

    program = b.program(
        b.namespace(
            "Main",
            4,
            b.witness("x"),
            b.fixed("L", b.lam("i", b.mul("i", 2))),
            b.fixed("M", b.lam("i", b.neg(1))),
        )
    )
    return elaborate(program, ElaborationConfig(field=field_by_name(field_name)))


@unittest.skipUnless(JAX_AVAILABLE, "jax is required for materialization tests")
class MaterializeTests(unittest.TestCase):
    def test_fixed_columns_become_limb_arrays(self) -> None:
        import jax.numpy as jnp

        from pil_jax import limbs_to_ints, materialize_fixed_columns

        spec = _spec()
        arrays = materialize_fixed_columns(spec)

        self.assertEqual(sorted(arrays), ["Main::L", "Main::M"])
        self.assertEqual(arrays["Main::L"].shape, (4, 2))
        self.assertEqual(arrays["Main::L"].dtype, jnp.dtype("uint32"))
        self.assertEqual(limbs_to_ints(arrays["Main::L"]), [0, 2, 4, 6])

    def test_minus_one_splits_into_limbs(self) -> None:
        from pil_jax import limbs_to_ints, materialize_fixed_columns

        spec = _spec()
        minus_one = materialize_fixed_columns(spec)["Main::M"]
        self.assertEqual(minus_one[0].tolist(), [0, 0xFFFFFFFF])
        self.assertEqual(limbs_to_ints(minus_one), [spec.field.modulus - 1] * 4)

    def test_limb_count_follows_field(self) -> None:
        from pil_jax.field import BABYBEAR, BN254
        from pil_jax.materialize import limb_count, stack_namespace

        self.assertEqual(limb_count(BABYBEAR), 1)
        self.assertEqual(limb_count(BN254), 8)

        stacked = stack_namespace(_spec("babybear"), "Main")
        self.assertEqual(stacked.shape, (2, 4, 1))
        self.assertEqual(stack_namespace(_spec("babybear"), "Other").shape, (0, 0, 1))


if __name__ == "__main__":
    unittest.main()
