"""Common helpers for the block floating-point (BFP) format."""
from __future__ import annotations

import logging
from typing import Union

import numpy as np

logger = logging.getLogger(__name__)

WORD_BITS = 32
WIDE_BITS = 64


class BfpError(ValueError):
    """Raised when a BFP block, configuration or operation is misused."""


def round_shift(x: int, shift: int, width: int = WORD_BITS) -> int:
    """Shift an unsigned integer right by ``shift`` bits, rounding ties to even.

    A zero or negative shift is a left shift truncated to ``width`` bits; a
    left shift of ``width`` bits or more yields 0. A right shift of ``width``
    bits or more discards everything and also yields 0.
    """
    mask = (1 << width) - 1
    x = int(x) & mask
    if shift <= 0:
        s = -shift
        if s >= width:
            return 0
        return (x << s) & mask
    if shift >= width:
        return 0
    q = x >> shift
    rem = x & ((1 << shift) - 1)
    half = 1 << (shift - 1)
    if rem > half or (rem == half and q & 1):
        q += 1
    return q


def round_shift_array(
    values: Union[np.ndarray, list],
    shift: int,
    width: int = WORD_BITS,
) -> np.ndarray:
    """Vectorised :func:`round_shift` with one shift amount for every element."""
    arr = np.asarray(values).astype(np.uint64)
    mask = np.uint64((1 << width) - 1)
    arr = arr & mask
    if shift <= 0:
        s = -shift
        if s >= width:
            return np.zeros_like(arr)
        return (arr << np.uint64(s)) & mask
    if shift >= width:
        return np.zeros_like(arr)
    q = arr >> np.uint64(shift)
    rem = arr & np.uint64((1 << shift) - 1)
    half = np.uint64(1 << (shift - 1))
    odd = (q & np.uint64(1)) == np.uint64(1)
    round_up = (rem > half) | ((rem == half) & odd)
    return q + round_up.astype(np.uint64)


def clamp_exponent(e_real: int, cfg) -> int:
    """Bias a true exponent and saturate it into ``[0, 2^we - 1]``."""
    biased = int(e_real) + cfg.bias
    if biased < 0:
        logger.debug("exponent %d below range for %s, clamped to 0", e_real, cfg.name)
        return 0
    if biased > cfg.exp_max:
        logger.debug("exponent %d above range for %s, clamped to %d", e_real, cfg.name, cfg.exp_max)
        return cfg.exp_max
    return biased


def msb_index(value: int) -> int:
    """Return the position of the most significant set bit, or -1 for zero."""
    return int(value).bit_length() - 1
