from __future__ import annotations
from collections.abc import Sequence
import logging
from typing import TypeVar

from .errors import RangeStoreError
from .ranges import RangedValue, Weighted, add_u64, check_u64

logger = logging.getLogger(__name__)

V = TypeVar("V")


def weighted_to_ranges(items: Sequence[Weighted[V]]) -> list[RangedValue[V]]:
    """Lay weighted values end to end as contiguous ranges

    The first value owns keys [1, weight], the next one starts right after,
    and so on in the given order. A weight of 0 makes an empty range that no
    key will ever land in.

    Args:
        items: The weighted values, in the order their ranges should appear

    Returns:
        list[RangedValue]: One range per item, ready for building a store

    Raises:
        RangeStoreError: EMPTY_INPUT, or INTEGER_OVERFLOW if the weights add
            up past the unsigned 64 bit range
    """
    if not items:
        raise RangeStoreError.empty_input()

    total = 0
    ranges: list[RangedValue[V]] = []
    for item in items:
        weight = check_u64(item.weight, "weight")
        end = add_u64(total, weight)
        ranges.append(RangedValue(add_u64(total, 1), end, item.value))
        total = end

    logger.debug("Converted %d weighted values covering %d keys", len(ranges), total)
    return ranges
