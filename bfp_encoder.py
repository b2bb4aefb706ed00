"""Encode float32 lanes into a BFP block."""
from __future__ import annotations

import logging
from typing import Sequence, Union

import numpy as np

from bfp_common import BfpError, WORD_BITS, clamp_exponent, round_shift
from bfp_numeric import FP32_BIAS, FP32_IMPLICIT_ONE, FP32_MANT_BITS, is_special, split_fp32
from bfp_types import BfpConfig, Block

logger = logging.getLogger(__name__)


def _quantize_lane(frac: int, delta: int, cfg: BfpConfig) -> int:
    """Reduce a 24-bit significand to ``wm`` bits aligned to the block maximum."""
    mant24 = frac | FP32_IMPLICIT_ONE
    shift = (FP32_MANT_BITS - cfg.wm) + delta
    if shift >= WORD_BITS - 1:
        return 0
    return min(round_shift(mant24, shift), cfg.mant_max)


def encode_block(xs: Union[np.ndarray, Sequence[float]], cfg: BfpConfig) -> Block:
    """Encode ``cfg.block_size`` float32 values into one BFP block.

    The shared exponent is the largest true exponent among nonzero normal lanes
    (infinities and NaNs included), biased and clamped to ``we`` bits. Each lane
    keeps its sign, its RNE-rounded mantissa aligned to that exponent, and its
    exponent distance ``delta`` from the block maximum. Zeros and subnormals
    encode as canonical zero lanes. Infinity encodes as ``mant_max`` and NaN as
    ``mant_max - 1``, both with ``delta == 0``.
    """
    values = np.asarray(xs, dtype=np.float32)
    if values.shape != (cfg.block_size,):
        raise BfpError(f"Expected {cfg.block_size} values, got shape {values.shape}")

    sign, exp_field, frac = split_fp32(values)
    normal = exp_field != 0
    if not np.any(normal):
        return Block.zeros(cfg)

    emax = int(np.max(exp_field[normal])) - FP32_BIAS
    exp_shared = clamp_exponent(emax, cfg)

    out_sign = np.zeros(cfg.block_size, dtype=np.uint32)
    out_mant = np.zeros(cfg.block_size, dtype=np.uint32)
    out_delta = np.zeros(cfg.block_size, dtype=np.uint32)
    special = is_special(exp_field)

    for i in range(cfg.block_size):
        if not normal[i]:
            continue
        if special[i]:
            out_sign[i] = sign[i]
            out_mant[i] = cfg.mant_max if frac[i] == 0 else cfg.mant_max - 1
            continue
        delta = emax - (int(exp_field[i]) - FP32_BIAS)
        mant = _quantize_lane(int(frac[i]), delta, cfg)
        out_delta[i] = delta
        if mant == 0:
            logger.debug("lane %d lost to underflow (delta=%d, %s)", i, delta, cfg.name)
            continue
        out_sign[i] = sign[i]
        out_mant[i] = mant

    return Block(cfg, exp_shared, out_sign, out_mant, out_delta)
