"""Format configuration and block value type for BFP numbers."""
from __future__ import annotations

import dataclasses
import re
from typing import Annotated, Dict, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import Field
from pydantic.dataclasses import dataclass as pydantic_dataclass

from bfp_common import BfpError

DEFAULT_BLOCK_SIZE = 16


@pydantic_dataclass(frozen=True)
class BfpConfig:
    """Exponent width, mantissa width and lane count of one BFP number system.

    Blocks only combine with blocks of an equal configuration. The mantissa
    width is capped so that products and ``2^(2*wm)`` reciprocal numerators
    stay inside 64-bit integers.
    """

    we: Annotated[int, Field(ge=1, le=16)]
    wm: Annotated[int, Field(ge=1, le=30)]
    block_size: Annotated[int, Field(ge=1)] = DEFAULT_BLOCK_SIZE

    @property
    def bias(self) -> int:
        """Exponent bias, ``2^(we-1) - 1``."""
        return (1 << (self.we - 1)) - 1

    @property
    def mant_max(self) -> int:
        """Largest lane magnitude, ``2^(wm+1) - 1``."""
        return (1 << (self.wm + 1)) - 1

    @property
    def exp_max(self) -> int:
        """Largest biased shared exponent, ``2^we - 1``."""
        return (1 << self.we) - 1

    @property
    def name(self) -> str:
        return f"e{self.we}m{self.wm}"


# Profiles used by the reference test bench.
CFG_A = BfpConfig(we=3, wm=4)
CFG_B = BfpConfig(we=4, wm=5)
CFG_C = BfpConfig(we=5, wm=7)

PROFILES: Dict[str, BfpConfig] = {
    "a": CFG_A,
    "b": CFG_B,
    "c": CFG_C,
}

ALIAS_RE = re.compile(r"^e(\d+)m(\d+)$")


def config_from_alias(alias: Optional[str], block_size: int = DEFAULT_BLOCK_SIZE) -> Optional[BfpConfig]:
    """Resolve a profile name or ``eXmY`` string to a configuration."""
    if alias is None or not isinstance(alias, str):
        return None
    key = alias.strip().lower()
    if key in PROFILES:
        base = PROFILES[key]
        return BfpConfig(we=base.we, wm=base.wm, block_size=block_size)
    match = ALIAS_RE.match(key)
    if match is None:
        return None
    return BfpConfig(we=int(match.group(1)), wm=int(match.group(2)), block_size=block_size)


def _lane_array(values: Union[np.ndarray, Sequence[int]], name: str, count: int) -> np.ndarray:
    arr = np.asarray(values)
    if arr.shape != (count,):
        raise BfpError(f"{name} must have {count} lanes, got shape {arr.shape}")
    if arr.size and np.any(arr < 0):
        raise BfpError(f"{name} must be non-negative")
    out = arr.astype(np.uint32)
    out.flags.writeable = False
    return out


@dataclasses.dataclass(frozen=True, eq=False)
class Block:
    """One BFP block: a shared biased exponent plus per-lane sign, mantissa and delta.

    Lane arrays are read-only ``uint32`` vectors of ``cfg.block_size`` entries.
    Every operation returns a new block.
    """

    cfg: BfpConfig
    exp_shared: int
    sign: np.ndarray
    mant: np.ndarray
    delta: np.ndarray

    def __post_init__(self) -> None:
        cfg = self.cfg
        if not isinstance(cfg, BfpConfig):
            raise BfpError(f"Block config must be BfpConfig, got {type(cfg)}")
        count = cfg.block_size
        sign = _lane_array(self.sign, "sign", count)
        mant = _lane_array(self.mant, "mant", count)
        delta = _lane_array(self.delta, "delta", count)
        exp_shared = int(self.exp_shared)
        if not 0 <= exp_shared <= cfg.exp_max:
            raise BfpError(f"exp_shared {exp_shared} outside [0, {cfg.exp_max}]")
        if np.any(sign > 1):
            raise BfpError("sign lanes must be 0 or 1")
        if np.any(mant > cfg.mant_max):
            raise BfpError(f"mantissa above {cfg.mant_max} for {cfg.name}")
        if np.any((mant == 0) & (sign == 1)):
            raise BfpError("zero lanes must carry a positive sign")
        if not np.any(mant) and exp_shared != 0:
            raise BfpError("all-zero block must have exp_shared 0")
        object.__setattr__(self, "exp_shared", exp_shared)
        object.__setattr__(self, "sign", sign)
        object.__setattr__(self, "mant", mant)
        object.__setattr__(self, "delta", delta)

    @classmethod
    def zeros(cls, cfg: BfpConfig) -> "Block":
        """Return the canonical all-zero block."""
        empty = np.zeros(cfg.block_size, dtype=np.uint32)
        return cls(cfg, 0, empty, empty, empty)

    @classmethod
    def from_fields(
        cls,
        cfg: BfpConfig,
        exp_shared: int,
        sign: Sequence[int],
        mant: Sequence[int],
        delta: Optional[Sequence[int]] = None,
    ) -> "Block":
        """Build a block from raw logical fields; ``delta`` defaults to zeros."""
        if delta is None:
            delta = np.zeros(cfg.block_size, dtype=np.uint32)
        return cls(cfg, exp_shared, sign, mant, delta)

    def __len__(self) -> int:
        return self.cfg.block_size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Block):
            return NotImplemented
        return (
            self.cfg == other.cfg
            and self.exp_shared == other.exp_shared
            and np.array_equal(self.sign, other.sign)
            and np.array_equal(self.mant, other.mant)
            and np.array_equal(self.delta, other.delta)
        )

    __hash__ = None

    @property
    def exp_real(self) -> int:
        """Unbiased shared exponent."""
        return self.exp_shared - self.cfg.bias

    def is_zero(self) -> bool:
        return not np.any(self.mant)

    def lane(self, index: int) -> Tuple[int, int, int]:
        """Return ``(sign, mant, delta)`` for one lane."""
        if not 0 <= index < self.cfg.block_size:
            raise BfpError(f"Lane {index} out of range for {self.cfg.block_size} lanes")
        return int(self.sign[index]), int(self.mant[index]), int(self.delta[index])

    def negate(self) -> "Block":
        """Flip the sign of every nonzero lane."""
        flipped = np.where(self.mant == 0, 0, self.sign ^ 1)
        return Block(self.cfg, self.exp_shared, flipped, self.mant, self.delta)

    def __repr__(self) -> str:
        return (
            f"Block({self.cfg.name}, exp_shared={self.exp_shared}, "
            f"sign={self.sign.tolist()}, mant={self.mant.tolist()}, delta={self.delta.tolist()})"
        )
