"""Measure and print BFP accuracy against float32 references."""
from __future__ import annotations

import math
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from bfp_batch import ARITHMETIC_OPS, OP_NAME, BfpOp, apply_op, encode_array, quantize_array
from bfp_common import BfpError
from bfp_decoder import decode_block
from bfp_format import format_block, format_values, histogram_string
from bfp_reference import reference_op
from bfp_types import BfpConfig, Block

ArrayLike = Union[np.ndarray, Sequence[float]]


def error_stats(result: ArrayLike, reference: ArrayLike) -> Dict[str, Any]:
    """Absolute error statistics over lanes where both values are finite."""
    res = np.asarray(result, dtype=np.float64).reshape(-1)
    ref = np.asarray(reference, dtype=np.float64).reshape(-1)
    if res.shape != ref.shape:
        raise BfpError(f"Result and reference sizes differ: {res.size} != {ref.size}")
    finite = np.isfinite(res) & np.isfinite(ref)
    err = np.abs(res[finite] - ref[finite])
    if err.size == 0:
        return {"numel": int(res.size), "compared": 0, "nonfinite": int(res.size), "mae": math.nan, "max_err": math.nan}
    return {
        "numel": int(res.size),
        "compared": int(err.size),
        "nonfinite": int(res.size - err.size),
        "mae": float(np.mean(err)),
        "max_err": float(np.max(err)),
    }


def block_error(blk: Block, source: ArrayLike) -> Dict[str, Any]:
    """Reconstruction error of one encoded block against its source lanes."""
    return error_stats(decode_block(blk), source)


def compare_ops(a: ArrayLike, b: ArrayLike, cfg: BfpConfig) -> Dict[str, Dict[str, Any]]:
    """Run every arithmetic operation in BFP and in float32 and collect the errors.

    RCP is evaluated on ``b``, matching the divisor used by DIV.
    """
    report: Dict[str, Dict[str, Any]] = {}
    for op in ARITHMETIC_OPS:
        if op == BfpOp.RCP:
            result = apply_op(op, b, cfg=cfg)
            reference = reference_op(op, b)
        else:
            result = apply_op(op, a, b, cfg=cfg)
            reference = reference_op(op, a, b)
        entry = error_stats(result, reference)
        entry["result"] = result
        entry["reference"] = reference
        report[OP_NAME[op]] = entry
    return report


def _print_stats(label: str, stats: Dict[str, Any]) -> None:
    print(f"{label}: MAE={stats['mae']:.6g}  MAX_ERR={stats['max_err']:.6g}  non-finite={stats['nonfinite']}")


def print_report(a: ArrayLike, b: ArrayLike, cfg: BfpConfig, title: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """Print encoded inputs, their reconstruction error and every operation's accuracy."""
    fa = np.asarray(a, dtype=np.float32).reshape(-1)
    fb = np.asarray(b, dtype=np.float32).reshape(-1)
    if title:
        print(f"==== {title} ====")
    print(f"Configuration: WE={cfg.we}, WM={cfg.wm}, N={cfg.block_size}")
    print()

    for label, values in (("A", fa), ("B", fb)):
        blocks = encode_array(values, cfg)
        for idx, blk in enumerate(blocks):
            chunk = values[idx * cfg.block_size : (idx + 1) * cfg.block_size]
            source = np.zeros(cfg.block_size, dtype=np.float32)
            source[: chunk.size] = chunk
            print(f"=== {label} block {idx} ===")
            print(format_block(blk, source))
            _print_stats(f"CHECK {label}[{idx}]", block_error(blk, source))
            print()
        _print_stats(f"ROUND TRIP {label}", error_stats(quantize_array(values, cfg), values))
        print()

    report = compare_ops(fa, fb, cfg)
    for name, entry in report.items():
        print(f"=========== {name.upper()} ===========")
        print(f"bfp = {format_values(entry['result'])}")
        print(f"ref = {format_values(entry['reference'])}")
        print(f"- hist: {histogram_string(entry['result'])}")
        _print_stats(name.upper(), entry)
        print()
    return report
