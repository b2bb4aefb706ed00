from __future__ import annotations

import sys
from pathlib import Path
import unittest

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from bfp_common import BfpError
from bfp_decoder import decode_block
from bfp_encoder import encode_block
from bfp_ops import add_blocks, div_blocks, mul_blocks, rcp_blocks, sub_blocks
from bfp_types import CFG_B, CFG_C, BfpConfig, Block


def _enc(values, cfg=CFG_B) -> Block:
    return encode_block(np.asarray(values, dtype=np.float32), cfg)


class TestAddSub(unittest.TestCase):
    def setUp(self) -> None:
        self.positive = np.arange(1, 17, dtype=np.float32)
        self.blk_p = _enc(self.positive)
        self.blk_n = _enc(-self.positive)

    def test_additive_inverse_is_canonical_zero(self) -> None:
        out = add_blocks(self.blk_p, self.blk_n)
        self.assertEqual(out, Block.zeros(CFG_B))
        np.testing.assert_array_equal(decode_block(out), np.zeros(16))

    def test_sub_of_negation_doubles(self) -> None:
        out = sub_blocks(self.blk_p, self.blk_n)
        # 4k peaks at 64 > 63, so the block renormalises once.
        self.assertEqual(out.exp_shared, self.blk_p.exp_shared + 1)
        np.testing.assert_array_equal(out.delta, np.zeros(16))
        np.testing.assert_array_equal(out.sign, np.zeros(16))
        np.testing.assert_array_equal(decode_block(out), 2 * self.positive)

    def test_overflow_raises_shared_exponent(self) -> None:
        blk = _enc(np.full(16, 15.0))
        out = add_blocks(blk, blk)
        self.assertGreater(out.exp_shared, blk.exp_shared)
        np.testing.assert_array_equal(out.mant, np.full(16, 60))
        np.testing.assert_array_equal(decode_block(out), np.full(16, 30.0))

    def test_cancellation_fills_up_precision(self) -> None:
        a = _enc([3.0, 2.0] * 8)
        b = _enc([2.75, 1.0] * 8)
        out = sub_blocks(a, b)
        self.assertEqual(out.exp_shared, 7)
        np.testing.assert_array_equal(out.mant, [8, 32] * 8)
        np.testing.assert_array_equal(decode_block(out), [0.25, 1.0] * 8)

    def test_alignment_to_larger_exponent(self) -> None:
        a = _enc([8.0] * 16)
        b = _enc([1.0] * 16)
        out = add_blocks(a, b)
        self.assertEqual(out.exp_real, 3)
        np.testing.assert_array_equal(decode_block(out), np.full(16, 9.0))
        self.assertEqual(add_blocks(b, a), out)

    def test_mixed_signs(self) -> None:
        a = _enc([4.0, -4.0, 2.0, -2.0] * 4)
        b = _enc([-1.0, 1.0, 1.0, -1.0] * 4)
        out = add_blocks(a, b)
        np.testing.assert_array_equal(out.sign, [0, 1, 0, 1] * 4)
        np.testing.assert_array_equal(decode_block(out), [3.0, -3.0, 3.0, -3.0] * 4)

    def test_config_mismatch(self) -> None:
        with self.assertRaises(BfpError):
            add_blocks(self.blk_p, _enc(np.ones(16), CFG_C))
        with self.assertRaises(BfpError):
            sub_blocks(self.blk_p, Block.zeros(BfpConfig(we=4, wm=5, block_size=8)))


class TestMul(unittest.TestCase):
    def test_exponents_add(self) -> None:
        a = _enc([1.5, 1.0, -1.25, 0.0] * 4)
        b = _enc([2.0] * 16)
        out = mul_blocks(a, b)
        self.assertEqual(out.exp_real, a.exp_real + b.exp_real)
        np.testing.assert_array_equal(decode_block(out), [3.0, 2.0, -2.5, 0.0] * 4)
        np.testing.assert_array_equal(out.sign, [0, 0, 1, 0] * 4)

    def test_product_overflow_renormalises(self) -> None:
        blk = _enc([1.5] * 16)
        out = mul_blocks(blk, blk)
        self.assertEqual(out.exp_real, 1)
        np.testing.assert_array_equal(out.mant, np.full(16, 36))
        np.testing.assert_array_equal(decode_block(out), np.full(16, 2.25))

    def test_small_products_clamp_exponent(self) -> None:
        values = np.zeros(16, dtype=np.float32)
        values[:2] = [0.01, 0.02]
        blk = _enc(values)
        out = mul_blocks(blk, blk)
        self.assertEqual(out.exp_shared, 0)
        self.assertEqual(out.lane(0), (0, 12, 0))
        self.assertEqual(out.lane(1), (0, 53, 0))

    def test_zero_times_anything(self) -> None:
        out = mul_blocks(Block.zeros(CFG_B), _enc(np.arange(16)))
        self.assertEqual(out, Block.zeros(CFG_B))


class TestRcpDiv(unittest.TestCase):
    def test_reciprocal_of_zero_saturates(self) -> None:
        divisor = np.array(
            [0.0, 2.0, 3.0, 0.0, 2.5, 3.5, 0.0, 2.0, 3.0, 2.5, 0.0, 3.5, 2.0, 3.0, 2.5, 3.5],
            dtype=np.float32,
        )
        out = rcp_blocks(_enc(divisor))
        zero = divisor == 0
        np.testing.assert_array_equal(out.mant[zero], np.full(4, CFG_B.mant_max))
        np.testing.assert_array_equal(out.sign[zero], np.zeros(4))
        self.assertEqual(out.exp_real, -1)
        np.testing.assert_array_equal(out.mant[:3], [63, 32, 21])
        np.testing.assert_array_equal(out.mant[4:6], [26, 18])

        decoded = decode_block(out)
        self.assertTrue(np.all(np.isposinf(decoded[zero])))
        self.assertEqual(decoded[1], 0.5)

    def test_reciprocal_of_powers_of_two(self) -> None:
        out = rcp_blocks(_enc([4.0] * 16, CFG_C))
        np.testing.assert_array_equal(decode_block(out), np.full(16, 0.25))

    def test_negative_reciprocal(self) -> None:
        out = rcp_blocks(_enc([-2.0, 2.0] * 8))
        np.testing.assert_array_equal(out.sign, [1, 0] * 8)
        np.testing.assert_array_equal(decode_block(out), [-0.5, 0.5] * 8)

    def test_division_tracks_float_quotient(self) -> None:
        a = np.array(
            [1.0, 1.5, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 7.0, 6.0, 5.0, 4.0, 3.0, 2.0, 1.5, 1.0],
            dtype=np.float32,
        )
        b = np.array([2.0, 2.5, 3.0, 3.5] * 4, dtype=np.float32)
        out = div_blocks(_enc(a, CFG_C), _enc(b, CFG_C))
        decoded = decode_block(out)
        self.assertTrue(np.all(np.isfinite(decoded)))
        np.testing.assert_allclose(decoded, a / b, atol=0.05)
        np.testing.assert_array_equal(out.delta, np.zeros(16))

    def test_division_equals_multiply_by_reciprocal(self) -> None:
        a = _enc(np.linspace(1.0, 4.0, 16), CFG_C)
        b = _enc(np.linspace(2.0, 3.0, 16), CFG_C)
        self.assertEqual(div_blocks(a, b), mul_blocks(a, rcp_blocks(b)))
