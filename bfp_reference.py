"""Float32 reference results for the BFP arithmetic operations."""
from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from bfp_batch import OP_NAME, BfpOp
from bfp_common import BfpError

ArrayLike = Union[np.ndarray, Sequence[float]]


def reference_op(op: int, a: ArrayLike, b: Optional[ArrayLike] = None) -> np.ndarray:
    """Compute ``op`` directly in float32.

    Division by zero yields an infinity carrying the numerator's sign.
    """
    fa = np.asarray(a, dtype=np.float32).reshape(-1)
    if op == BfpOp.RCP:
        with np.errstate(divide="ignore"):
            return np.float32(1.0) / fa
    if op in (BfpOp.ENCODE, BfpOp.DECODE):
        return fa.copy()
    if op not in OP_NAME:
        raise BfpError(f"Unknown operation code {op}")
    if b is None:
        raise BfpError(f"{OP_NAME[op].upper()} needs two operands")
    fb = np.asarray(b, dtype=np.float32).reshape(-1)
    if fb.size != fa.size:
        raise BfpError(f"Operand sizes differ: {fa.size} != {fb.size}")
    if op == BfpOp.ADD:
        return fa + fb
    if op == BfpOp.SUB:
        return fa - fb
    if op == BfpOp.MUL:
        return fa * fb
    with np.errstate(divide="ignore", invalid="ignore"):
        quotient = fa / fb
    signed_inf = np.copysign(np.float32(np.inf), fa).astype(np.float32)
    return np.where(fb == 0, signed_inf, quotient).astype(np.float32)
