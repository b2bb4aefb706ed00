"""Apply BFP operations to float arrays of any length, one block at a time."""
from __future__ import annotations

from typing import List, Optional, Sequence, Union

import numpy as np

from bfp_common import BfpError
from bfp_decoder import decode_block
from bfp_encoder import encode_block
from bfp_ops import add_blocks, div_blocks, mul_blocks, rcp_blocks, sub_blocks
from bfp_types import BfpConfig, Block


class BfpOp:
    """Operation codes understood by :func:`run_op` and :func:`apply_op`."""
    ENCODE = 0
    DECODE = 1
    ADD = 2
    SUB = 3
    MUL = 4
    DIV = 5
    RCP = 6


OP_NAME = {
    BfpOp.ENCODE: "encode",
    BfpOp.DECODE: "decode",
    BfpOp.ADD: "add",
    BfpOp.SUB: "sub",
    BfpOp.MUL: "mul",
    BfpOp.DIV: "div",
    BfpOp.RCP: "rcp",
}

BINARY_OPS = {
    BfpOp.ADD: add_blocks,
    BfpOp.SUB: sub_blocks,
    BfpOp.MUL: mul_blocks,
    BfpOp.DIV: div_blocks,
}

ARITHMETIC_OPS = (BfpOp.ADD, BfpOp.SUB, BfpOp.MUL, BfpOp.DIV, BfpOp.RCP)


def op_from_name(name: Optional[str]) -> Optional[int]:
    """Resolve an operation name such as ``"add"`` to its code."""
    if not isinstance(name, str):
        return None
    key = name.strip().lower()
    for code, op_name in OP_NAME.items():
        if op_name == key:
            return code
    return None


def split_blocks(values: Union[np.ndarray, Sequence[float]], cfg: BfpConfig) -> List[np.ndarray]:
    """Cut a 1-D float array into ``block_size`` chunks, zero padding the last."""
    flat = np.asarray(values, dtype=np.float32).reshape(-1)
    n_blocks = (flat.size + cfg.block_size - 1) // cfg.block_size
    padded = np.zeros(n_blocks * cfg.block_size, dtype=np.float32)
    padded[: flat.size] = flat
    return [padded[i * cfg.block_size : (i + 1) * cfg.block_size] for i in range(n_blocks)]


def encode_array(values: Union[np.ndarray, Sequence[float]], cfg: BfpConfig) -> List[Block]:
    """Encode a float array of any length into consecutive blocks."""
    return [encode_block(chunk, cfg) for chunk in split_blocks(values, cfg)]


def decode_array(blocks: Sequence[Block], count: Optional[int] = None) -> np.ndarray:
    """Decode consecutive blocks, optionally trimming the padding to ``count`` values."""
    if not blocks:
        return np.zeros(0, dtype=np.float32)
    out = np.concatenate([decode_block(blk) for blk in blocks])
    if count is not None:
        if count > out.size:
            raise BfpError(f"Requested {count} values from {out.size} decoded lanes")
        out = out[:count]
    return out


def run_op(op: int, a, b: Optional[Block] = None, cfg: Optional[BfpConfig] = None):
    """Execute one operation on a single block (or float chunk for ENCODE)."""
    if op == BfpOp.ENCODE:
        if cfg is None:
            raise BfpError("ENCODE needs a configuration")
        return encode_block(a, cfg)
    if op == BfpOp.DECODE:
        return decode_block(a)
    if op == BfpOp.RCP:
        return rcp_blocks(a)
    if op in BINARY_OPS:
        if b is None:
            raise BfpError(f"{OP_NAME[op].upper()} needs two operands")
        return BINARY_OPS[op](a, b)
    raise BfpError(f"Unknown operation code {op}")


def quantize_array(values: Union[np.ndarray, Sequence[float]], cfg: BfpConfig) -> np.ndarray:
    """Round-trip a float array through the BFP format."""
    flat = np.asarray(values, dtype=np.float32).reshape(-1)
    return decode_array(encode_array(flat, cfg), flat.size)


def apply_op(
    op: int,
    a: Union[np.ndarray, Sequence[float]],
    b: Optional[Union[np.ndarray, Sequence[float]]] = None,
    cfg: Optional[BfpConfig] = None,
) -> np.ndarray:
    """Encode float arrays, apply ``op`` block by block and decode the result.

    ENCODE and DECODE both return the plain round trip of ``a``. RCP is unary
    and ignores ``b``.
    """
    if cfg is None:
        raise BfpError("apply_op needs a configuration")
    flat_a = np.asarray(a, dtype=np.float32).reshape(-1)
    if op in (BfpOp.ENCODE, BfpOp.DECODE):
        return quantize_array(flat_a, cfg)
    blocks_a = encode_array(flat_a, cfg)
    if op == BfpOp.RCP:
        result = [rcp_blocks(blk) for blk in blocks_a]
        return decode_array(result, flat_a.size)
    if op not in BINARY_OPS:
        raise BfpError(f"Unknown operation code {op}")
    if b is None:
        raise BfpError(f"{OP_NAME[op].upper()} needs two operands")
    flat_b = np.asarray(b, dtype=np.float32).reshape(-1)
    if flat_b.size != flat_a.size:
        raise BfpError(f"Operand sizes differ: {flat_a.size} != {flat_b.size}")
    blocks_b = encode_array(flat_b, cfg)
    result = [run_op(op, blk_a, blk_b) for blk_a, blk_b in zip(blocks_a, blocks_b)]
    return decode_array(result, flat_a.size)
