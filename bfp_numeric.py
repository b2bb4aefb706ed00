"""IEEE-754 single-precision field helpers."""
from __future__ import annotations

from typing import Tuple, Union

import numpy as np

FP32_BIAS = 127
FP32_MANT_BITS = 23
FP32_EXP_MASK = 0xFF
FP32_MANT_MASK = 0x7FFFFF
FP32_IMPLICIT_ONE = 1 << FP32_MANT_BITS

POS_INF_BITS = 0x7F800000
NEG_INF_BITS = 0xFF800000
CANONICAL_NAN_BITS = 0x7FC00000


def fp32_bits(values: Union[np.ndarray, list, float]) -> np.ndarray:
    """Reinterpret float32 values as their raw ``uint32`` bit patterns."""
    arr = np.ascontiguousarray(values, dtype=np.float32)
    return arr.view(np.uint32)


def fp32_from_bits(bits: Union[np.ndarray, int]) -> np.ndarray:
    """Reinterpret raw ``uint32`` bit patterns as float32 values."""
    arr = np.ascontiguousarray(bits, dtype=np.uint32)
    return arr.view(np.float32)


def fp32_scalar(bits: int) -> np.float32:
    """Build a single float32 from a raw bit pattern."""
    return fp32_from_bits(np.array([bits], dtype=np.uint32))[0]


def split_fp32(values: Union[np.ndarray, list]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split float32 values into sign bit, biased exponent field and fraction field."""
    bits = fp32_bits(values).astype(np.int64)
    sign = (bits >> 31) & 1
    exp = (bits >> FP32_MANT_BITS) & FP32_EXP_MASK
    frac = bits & FP32_MANT_MASK
    return sign, exp, frac


def is_special(exp_field: Union[np.ndarray, int]) -> Union[np.ndarray, bool]:
    """True where the exponent field marks an infinity or NaN."""
    return np.asarray(exp_field) == FP32_EXP_MASK
