from __future__ import annotations
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

import numpy as np

from .errors import RangeStoreError

# --- Configuration ---
U64_MAX: int = (1 << 64) - 1  # largest key the store can hold

V = TypeVar("V")
V_co = TypeVar("V_co", covariant=True)


class Ranged(Protocol[V_co]):
    """Anything with inclusive ``min``/``max`` bounds and a value"""

    @property
    def min(self) -> int: ...

    @property
    def max(self) -> int: ...

    @property
    def value(self) -> V_co: ...


class Weighted(Protocol[V_co]):
    """Anything with a ``weight`` and a value"""

    @property
    def weight(self) -> int: ...

    @property
    def value(self) -> V_co: ...


def check_u64(val: int, name: str = "value") -> int:
    """Make sure an integer fits in the unsigned 64 bit domain"""
    if not isinstance(val, (int, np.integer)) or isinstance(val, bool):
        raise TypeError(f"{name} must be an integer, got {type(val).__name__}")
    val = int(val)
    if val < 0 or val > U64_MAX:
        raise ValueError(f"{name} {val} is outside the unsigned 64 bit range")
    return val


@dataclass(frozen=True)
class RangedValue(Generic[V]):
    """An inclusive [min, max] range of keys bound to a value"""

    min: int
    max: int
    value: V

    def __post_init__(self):
        object.__setattr__(self, "min", check_u64(self.min, "min"))
        object.__setattr__(self, "max", check_u64(self.max, "max"))

    @property
    def length(self) -> int:
        return range_length(self)


@dataclass(frozen=True)
class WeightedValue(Generic[V]):
    """A value that should own ``weight`` keys of the store"""

    weight: int
    value: V

    def __post_init__(self):
        object.__setattr__(self, "weight", check_u64(self.weight, "weight"))


def add_u64(a: int, b: int) -> int:
    """Add two unsigned 64 bit integers, raising instead of wrapping"""
    total = a + b
    if total > U64_MAX:
        raise RangeStoreError.overflow(a, b)
    return total


def range_length(item: Ranged) -> int:
    """The number of keys in a range, computed with unsigned 64 bit wraparound

    An inverted range like [5, 4] has a length of zero.
    """
    return (int(item.max) - int(item.min) + 1) & U64_MAX


def _zcs(ary: list[int]) -> np.ndarray:
    """Zero-prefixed cumulative sum"""
    ret = np.zeros(len(ary) + 1, dtype=np.uint64)
    np.cumsum(np.array(ary, dtype=np.uint64), out=ret[1:])
    return ret


def scan_sorted(
    items: Sequence[Ranged], check: bool = True
) -> tuple[int, np.ndarray, np.ndarray]:
    """Walk a sorted range sequence once, validating it and summing its key mass

    Args:
        items: The ranges, ascending by ``min``
        check: Whether to look for gaps and overlaps between neighbors.
            Overflow of the running total is always checked

    Returns:
        int: The ``min`` of the first range
        np.ndarray: The ``min`` of every range (uint64)
        np.ndarray: The zero-prefixed running total of range lengths (uint64),
            so the key mass of ``items[lo:hi]`` is ``offsets[hi] - offsets[lo]``

    Raises:
        RangeStoreError: EMPTY_INPUT, DISCONTINUITY, OVERLAP or INTEGER_OVERFLOW
    """
    if not items:
        raise RangeStoreError.empty_input()

    mins: list[int] = []
    lengths: list[int] = []
    total = 0
    prev_max = None
    for item in items:
        curr = int(item.min)
        if check and prev_max is not None:
            if curr > prev_max + 1:
                raise RangeStoreError.discontinuity(prev_max, curr)
            if curr < prev_max + 1:
                raise RangeStoreError.overlap(prev_max, curr)
        length = range_length(item)
        # The sum is checked here, so the cumsum in _zcs can't wrap
        total = add_u64(total, length)
        mins.append(curr)
        lengths.append(length)
        prev_max = int(item.max)

    return mins[0], np.array(mins, dtype=np.uint64), _zcs(lengths)
