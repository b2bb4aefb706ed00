"""Decode BFP blocks back to float32."""
from __future__ import annotations

import numpy as np

from bfp_common import BfpError, round_shift
from bfp_numeric import CANONICAL_NAN_BITS, NEG_INF_BITS, POS_INF_BITS, fp32_scalar
from bfp_types import Block


def decode_lane(blk: Block, index: int) -> np.float32:
    """Reconstruct one lane as float32.

    ``delta == 0`` with a mantissa of ``mant_max`` or ``mant_max - 1`` is the
    infinity or NaN sentinel. Otherwise the mantissa is shifted back up by its
    delta and scaled by ``2^(exp_shared - bias - delta - wm)``.
    """
    sign, mant, delta = blk.lane(index)
    cfg = blk.cfg
    if delta == 0 and mant == cfg.mant_max:
        return fp32_scalar(NEG_INF_BITS if sign else POS_INF_BITS)
    if delta == 0 and mant == cfg.mant_max - 1:
        return fp32_scalar(CANONICAL_NAN_BITS)
    if blk.exp_shared == 0 and mant == 0:
        return np.float32(0.0)

    exp_real = blk.exp_shared - cfg.bias - delta
    unshifted = round_shift(mant, -delta)
    with np.errstate(over="ignore", under="ignore"):
        mant_val = np.float32(unshifted) / np.float32(1 << cfg.wm)
        value = np.float32(np.ldexp(mant_val, np.int32(exp_real)))
    return -value if sign else value


def decode_block(blk: Block) -> np.ndarray:
    """Reconstruct every lane of a block as a float32 array."""
    if not isinstance(blk, Block):
        raise BfpError(f"Expected Block, got {type(blk)}")
    return np.array([decode_lane(blk, i) for i in range(len(blk))], dtype=np.float32)
