from __future__ import annotations
from collections.abc import Sequence
import logging
from typing import Generic, Optional, TypeVar, Union

import numpy as np

from .errors import ErrorKind, RangeStoreError
from .ranges import Ranged, Weighted, check_u64, scan_sorted
from .weighted import weighted_to_ranges

logger = logging.getLogger(__name__)

# --- Configuration ---
INDENT: str = " "  # one level of indentation in the formatted tree
LEFT_MARKER: str = "|"  # marks a left child in the formatted tree
RIGHT_MARKER: str = "!"  # marks a right child in the formatted tree

V = TypeVar("V")
T = TypeVar("T")

_MISSING = object()


class Node(Generic[V]):
    """One range of the store

    ``max`` is the upper bound of this node's own range. Every range in the
    left subtree lies below this range, and every range in the right subtree
    lies above it.
    """

    __slots__: tuple[str, ...] = ("max", "value", "left", "right")

    def __init__(
        self,
        max: int,
        value: V,
        left: Optional[Node[V]] = None,
        right: Optional[Node[V]] = None,
    ):
        self.max: int
        self.value: V
        self.left: Optional[Node[V]]
        self.right: Optional[Node[V]]
        object.__setattr__(self, "max", max)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "right", right)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"Node is read-only, cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Node is read-only, cannot delete {name!r}")

    def search(self, key: int) -> V:
        """Find the value of the range holding ``key`` in this subtree

        There is no lower bound check: a key below the lowest range of the
        subtree gets the lowest range's value.

        Raises:
            RangeStoreError: OUT_OF_RANGE if ``key`` is above every range
        """
        # The closest ancestor whose range could still hold the key
        fallback: Optional[Node[V]] = None
        node: Optional[Node[V]] = self
        while node is not None:
            if key > node.max:
                node = node.right
            else:
                fallback = node
                node = node.left
        if fallback is None:
            raise RangeStoreError.out_of_range(key)
        return fallback.value

    def format(self, prefix: str = "") -> str:
        """Render the subtree as indented text, one node per line"""
        lines: list[str] = []
        stack: list[tuple[Node[V], str]] = [(self, prefix)]
        while stack:
            node, pfx = stack.pop()
            lines.append(f"{pfx}-{node.value} [max: {node.max}]\n")
            # Push right first so left is rendered first
            if node.right is not None:
                stack.append((node.right, pfx + INDENT + RIGHT_MARKER))
            if node.left is not None:
                stack.append((node.left, pfx + INDENT + LEFT_MARKER))
        return "".join(lines)

    def flatten(self) -> list[tuple[int, V]]:
        """Get every (max, value) pair in ascending key order"""
        ret: list[tuple[int, V]] = []
        stack: list[Node[V]] = []
        node: Optional[Node[V]] = self
        while stack or node is not None:
            if node is not None:
                stack.append(node)
                node = node.left
            else:
                node = stack.pop()
                ret.append((node.max, node.value))
                node = node.right
        return ret

    def count(self) -> int:
        """The number of nodes in this subtree"""
        return self._walk()[0]

    def height(self) -> int:
        """The number of nodes on the longest path down from here"""
        return self._walk()[1]

    def _walk(self) -> tuple[int, int]:
        count = 0
        height = 0
        stack: list[tuple[Node[V], int]] = [(self, 1)]
        while stack:
            node, depth = stack.pop()
            count += 1
            height = max(height, depth)
            if node.left is not None:
                stack.append((node.left, depth + 1))
            if node.right is not None:
                stack.append((node.right, depth + 1))
        return count, height

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        stack: list[tuple[Optional[Node], Optional[Node]]] = [(self, other)]
        while stack:
            a, b = stack.pop()
            if a is None or b is None:
                if a is not b:
                    return False
                continue
            if a.max != b.max or a.value != b.value:
                return False
            stack.append((a.left, b.left))
            stack.append((a.right, b.right))
        return True

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self):
        return f"<Node {self.value!r} max: {self.max}>"


def _pivot_index(mins: np.ndarray, offsets: np.ndarray, lo: int, hi: int) -> int:
    """Pick the range of items[lo:hi] that splits its key mass in half

    This is Mehlhorn's approximation: the pivot is the last range starting
    below ``start + total // 2``.
    """
    start = int(mins[lo])
    total = int(offsets[hi]) - int(offsets[lo])
    target = np.uint64(start + total // 2)
    idx = int(np.searchsorted(mins[lo:hi], target, "left")) - 1 + lo
    # Only possible when the slice holds no keys at all
    return max(idx, lo)


def build_tree(items: Sequence[Ranged[V]], check: bool = True) -> Node[V]:
    """Build a tree from sorted, contiguous ranges

    For the computation of optimality, we assume that every key in the
    aggregate ranges is equally likely to be looked up. Pivots are then
    chosen so that roughly equal amounts of *keys* (not ranges) end up in
    each subtree. With ranges like A [0,2], B [3,5], C [6,29] the tree is

        -C [max: 29]
         |-A [max: 2]
         | !-B [max: 5]

    which is degenerate by node count, but 80% of lookups stop at the root.

    Pivots are computed with floor division, so the result approaches, but
    isn't always exactly, optimal.

    Args:
        items: Ranges ascending by ``min``, each starting right after the
            previous one ends
        check: Whether to check for gaps and overlaps

    Returns:
        Node: The root of the tree

    Raises:
        RangeStoreError: EMPTY_INPUT, DISCONTINUITY, OVERLAP or INTEGER_OVERFLOW
    """
    if not items:
        raise RangeStoreError.empty_input()
    if len(items) == 1:
        return Node(int(items[0].max), items[0].value)

    _start, mins, offsets = scan_sorted(items, check)

    # Sub-slices of a scanned sequence are already known to be valid, so they
    # just get split, never re-scanned. Pivots are picked top down in
    # pre-order, then nodes are built in reverse so children exist first
    splits: list[tuple[int, int, int]] = []  # (lo, hi, pivot)
    stack: list[tuple[int, int]] = [(0, len(items))]
    while stack:
        lo, hi = stack.pop()
        idx = _pivot_index(mins, offsets, lo, hi) if hi - lo > 1 else lo
        splits.append((lo, hi, idx))
        if idx + 1 < hi:
            stack.append((idx + 1, hi))
        if lo < idx:
            stack.append((lo, idx))

    built: dict[tuple[int, int], Node[V]] = {}
    for lo, hi, idx in reversed(splits):
        left = built.pop((lo, idx)) if lo < idx else None
        right = built.pop((idx + 1, hi)) if idx + 1 < hi else None
        item = items[idx]
        built[(lo, hi)] = Node(int(item.max), item.value, left, right)

    return built[(0, len(items))]


# --- Main Store Class ---
class RangeStore(Generic[V]):
    """Immutable map from unsigned 64 bit keys to the value of the range holding them"""

    __slots__: tuple[str, ...] = ("_root",)

    def __init__(self, root: Node[V]):
        self._root: Node[V]
        object.__setattr__(self, "_root", root)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("RangeStore is read-only")

    @classmethod
    def from_sorted(cls, items: Sequence[Ranged[V]]) -> RangeStore[V]:
        """Build a store from ranges sorted ascending, with no gaps or overlaps

        Raises:
            RangeStoreError: EMPTY_INPUT, DISCONTINUITY, OVERLAP or INTEGER_OVERFLOW
        """
        try:
            root = build_tree(items, check=True)
        except RangeStoreError as e:
            logger.debug("Rejected %d ranges: %s", len(items), e)
            raise
        store = cls(root)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Built range store with %d ranges, height %d",
                len(items),
                store.height(),
            )
        return store

    @classmethod
    def from_weighted(cls, items: Sequence[Weighted[V]]) -> RangeStore[V]:
        """Build a store where each value owns ``weight`` consecutive keys, starting at 1

        Raises:
            RangeStoreError: EMPTY_INPUT or INTEGER_OVERFLOW
        """
        return cls.from_sorted(weighted_to_ranges(items))

    # --- Public API ---
    @property
    def root(self) -> Node[V]:
        return self._root

    @property
    def max_key(self) -> int:
        """The largest key the store can answer for"""
        node = self._root
        while node.right is not None:
            node = node.right
        return node.max

    def search(self, key: int) -> V:
        """Get the value of the range holding ``key``

        Keys below the lowest range are not detected, and get the lowest
        range's value.

        Raises:
            RangeStoreError: OUT_OF_RANGE if ``key`` is above every range
        """
        return self._root.search(check_u64(key, "key"))

    def get(self, key: int, default: Union[V, T, None] = None) -> Union[V, T, None]:
        """Get the value of the range holding ``key``, or ``default``"""
        try:
            return self.search(key)
        except RangeStoreError as e:
            if e.kind is not ErrorKind.OUT_OF_RANGE:
                raise
            return default

    def __getitem__(self, key: int) -> V:
        return self.search(key)

    def __contains__(self, key: object) -> bool:
        try:
            key = check_u64(key, "key")  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return self._root.count()

    def height(self) -> int:
        """The number of nodes on the longest root to leaf path"""
        return self._root.height()

    def to_list(self) -> list[tuple[int, V]]:
        """Return every (max, value) pair in ascending key order"""
        return self._root.flatten()

    def format(self) -> str:
        """Render the tree as indented text. Left children are marked with
        LEFT_MARKER, right children with RIGHT_MARKER
        """
        return self._root.format()

    def __str__(self):
        return self.format()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RangeStore):
            return NotImplemented
        return self._root == other._root

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self):
        return f"<RangeStore ranges: {len(self)} max_key: {self.max_key}>"


def from_sorted(items: Sequence[Ranged[V]]) -> RangeStore[V]:
    """Build a store from sorted ranges. See RangeStore.from_sorted"""
    return RangeStore.from_sorted(items)


def from_weighted(items: Sequence[Weighted[V]]) -> RangeStore[V]:
    """Build a store from weighted values. See RangeStore.from_weighted"""
    return RangeStore.from_weighted(items)
