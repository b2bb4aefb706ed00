"""Arithmetic on BFP blocks.

Every kernel consumes already-encoded blocks of one configuration and returns
a fresh block whose deltas are all zero. Numeric edge cases never raise:
magnitude overflow renormalises the whole block, exponent overflow and
underflow saturate, and reciprocals of zero saturate to ``mant_max``.
"""
from __future__ import annotations

import logging

import numpy as np

from bfp_common import BfpError, WIDE_BITS, clamp_exponent, msb_index, round_shift_array
from bfp_types import BfpConfig, Block

logger = logging.getLogger(__name__)


def _common_config(a: Block, b: Block) -> BfpConfig:
    if not isinstance(a, Block) or not isinstance(b, Block):
        raise BfpError("Operands must be Block instances")
    if a.cfg != b.cfg:
        raise BfpError(f"Cannot combine {a.cfg.name}x{len(a)} with {b.cfg.name}x{len(b)}")
    return a.cfg


def _renormalize(mag: np.ndarray, sign: np.ndarray, e_real: int, cfg: BfpConfig, overflow: bool, op: str) -> Block:
    """Fit raw lane magnitudes back into ``wm + 1`` bits and build the result block.

    On overflow the exponent goes up by one and every lane is halved with RNE.
    Otherwise, when the largest lane sits below bit ``wm``, all lanes are shifted
    up until it reaches full precision and the exponent drops accordingly.
    """
    mag = np.asarray(mag, dtype=np.uint64)
    if overflow:
        e_real += 1
        mag = np.minimum(round_shift_array(mag, 1, width=WIDE_BITS), cfg.mant_max)
        logger.debug("%s overflow: exponent raised to %d", op, e_real)
    else:
        max_mag = int(mag.max()) if mag.size else 0
        if max_mag == 0:
            return Block.zeros(cfg)
        msb = msb_index(max_mag)
        if msb < cfg.wm:
            shl = cfg.wm - msb
            e_real -= shl
            mag = np.minimum(mag << np.uint64(shl), cfg.mant_max)
            logger.debug("%s fill-up: shifted lanes by %d, exponent now %d", op, shl, e_real)

    if not np.any(mag):
        return Block.zeros(cfg)
    sign = np.where(mag == 0, 0, sign)
    exp_shared = clamp_exponent(e_real, cfg)
    delta = np.zeros(cfg.block_size, dtype=np.uint32)
    return Block(cfg, exp_shared, sign, mag, delta)


def add_blocks(a: Block, b: Block) -> Block:
    """Lane-wise ``a + b``, aligned to the larger shared exponent."""
    cfg = _common_config(a, b)
    ea = a.exp_real
    eb = b.exp_real
    e_base = max(ea, eb)

    ma = round_shift_array(a.mant, e_base - ea).astype(np.int64)
    mb = round_shift_array(b.mant, e_base - eb).astype(np.int64)
    sa = np.where(a.sign == 1, -ma, ma)
    sb = np.where(b.sign == 1, -mb, mb)
    total = sa + sb

    sign = (total < 0).astype(np.uint32)
    mag = np.abs(total).astype(np.uint64)
    overflow = bool(np.any(mag > cfg.mant_max))
    return _renormalize(mag, sign, e_base, cfg, overflow, "add")


def sub_blocks(a: Block, b: Block) -> Block:
    """Lane-wise ``a - b`` as ``a + (-b)``."""
    _common_config(a, b)
    return add_blocks(a, b.negate())


def mul_blocks(a: Block, b: Block) -> Block:
    """Lane-wise ``a * b``; the result exponent is ``Ea + Eb``."""
    cfg = _common_config(a, b)
    e_real = a.exp_real + b.exp_real
    sign = a.sign ^ b.sign
    product = a.mant.astype(np.uint64) * b.mant.astype(np.uint64)
    mag = round_shift_array(product, cfg.wm, width=WIDE_BITS)
    overflow = bool(np.any(mag > cfg.mant_max))
    return _renormalize(mag, sign, e_real, cfg, overflow, "mul")


def rcp_blocks(b: Block) -> Block:
    """Lane-wise ``1 / b``.

    A zero lane saturates to ``mant_max`` with the lane's own sign; there is no
    separate infinity result.
    """
    if not isinstance(b, Block):
        raise BfpError("Operand must be a Block instance")
    cfg = b.cfg
    e_real = -b.exp_real
    num = np.int64(1 << (2 * cfg.wm))
    den = b.mant.astype(np.int64)
    zero = den == 0
    safe = np.where(zero, 1, den)

    q = num // safe
    rem = num % safe
    twice = rem << 1
    round_up = (twice > safe) | ((twice == safe) & ((q & 1) == 1))
    q = q + round_up.astype(np.int64)

    mag = np.where(zero, cfg.mant_max, q).astype(np.uint64)
    sign = np.where(mag == 0, 0, b.sign)
    overflow = bool(np.any(mag > cfg.mant_max))
    return _renormalize(mag, sign, e_real, cfg, overflow, "rcp")


def div_blocks(a: Block, b: Block) -> Block:
    """Lane-wise ``a / b`` as ``a * (1 / b)``."""
    _common_config(a, b)
    return mul_blocks(a, rcp_blocks(b))
