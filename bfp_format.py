"""Pretty-print helpers for BFP blocks and accuracy reports."""
from __future__ import annotations

import math
from typing import Optional

import numpy as np

from bfp_decoder import decode_block
from bfp_types import Block


def format_scalar(value: object) -> str:
    """Format a scalar value for display."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if math.isnan(value):
            return "nan"
        if math.isinf(value):
            return "-inf" if value < 0 else "inf"
        return f"{value:.6g}"
    return str(value)


def format_values(values: np.ndarray, limit: int = 10) -> str:
    """Format a 1-D array, eliding the middle past ``limit`` entries."""
    flat = np.asarray(values).reshape(-1)
    if flat.size <= limit:
        items = [format_scalar(v.item()) for v in flat]
    else:
        head = limit // 2
        items = [format_scalar(v.item()) for v in flat[:head]]
        items.append("...")
        items.extend(format_scalar(v.item()) for v in flat[-head:])
    return "{ " + ", ".join(items) + " }"


def histogram_string(values: np.ndarray, bins: int = 10) -> str:
    """Build a compact histogram of the finite entries; non-finite ones are counted apart."""
    flat = np.asarray(values, dtype=np.float64).reshape(-1)
    if flat.size == 0:
        return "{(empty)}"
    finite = flat[np.isfinite(flat)]
    entries = []
    if finite.size:
        vmin = float(np.min(finite))
        vmax = float(np.max(finite))
        if vmin == vmax:
            entries.append(f"([{vmin:.6g}, {vmax:.6g}], {finite.size})")
        else:
            hist, edges = np.histogram(finite, bins=bins, range=(vmin, vmax))
            for i in range(bins):
                if hist[i]:
                    entries.append(f"([{edges[i]:.6g}, {edges[i + 1]:.6g}], {int(hist[i])})")
    nonfinite = flat.size - finite.size
    if nonfinite:
        entries.append(f"(non-finite, {nonfinite})")
    return "{" + ", ".join(entries) + "}"


def format_block_header(blk: Block) -> str:
    """Describe the shared exponent of a block."""
    width = blk.cfg.we
    return f"exp_shared: dec={blk.exp_shared} bin={blk.exp_shared:0{width}b} | Exp(real)={blk.exp_real}"


def format_block(blk: Block, source: Optional[np.ndarray] = None) -> str:
    """Tabulate every lane: source value, sign, mantissa, delta and reconstruction."""
    cfg = blk.cfg
    rebuilt = decode_block(blk)
    lines = [format_block_header(blk)]
    for i in range(len(blk)):
        sign, mant, delta = blk.lane(i)
        src = "" if source is None else f"  FP32={format_scalar(float(source[i])):>10}"
        lines.append(
            f"i={i:2d}{src} | sign={sign} mant(dec)={mant:6d} "
            f"mant(bin)={mant:0{cfg.wm + 1}b}  D={delta:3d}  rec={format_scalar(rebuilt[i]):>10}"
        )
    return "\n".join(lines)
