"""Tests for building a RangeStore from weighted values."""

import logging
from collections import namedtuple

import pytest
from rangestore import (
    U64_MAX,
    ErrorKind,
    RangedValue,
    RangeStore,
    RangeStoreError,
    WeightedValue,
    from_weighted,
    weighted_to_ranges,
)


@pytest.fixture
def abc_weights():
    return [
        WeightedValue(9, "A"),
        WeightedValue(10, "B"),
        WeightedValue(10, "C"),
    ]


class TestWeightedToRanges:
    """Test laying weighted values out as ranges."""

    def test_ranges(self, abc_weights):
        """Test that ranges start at 1 and follow each other."""
        assert weighted_to_ranges(abc_weights) == [
            RangedValue(1, 9, "A"),
            RangedValue(10, 19, "B"),
            RangedValue(20, 29, "C"),
        ]

    def test_zero_weight(self):
        """Test that a zero weight makes an empty range."""
        ranges = weighted_to_ranges([WeightedValue(5, "A"), WeightedValue(0, "Z")])
        assert ranges[1] == RangedValue(6, 5, "Z")
        assert ranges[1].length == 0

    def test_empty(self):
        """Test that an empty list is rejected."""
        with pytest.raises(RangeStoreError) as exc:
            weighted_to_ranges([])
        assert exc.value.kind is ErrorKind.EMPTY_INPUT

    def test_logged(self, abc_weights, caplog):
        """Test that the conversion is logged."""
        with caplog.at_level(logging.DEBUG, logger="rangestore"):
            weighted_to_ranges(abc_weights)
        assert "Converted 3 weighted values covering 29 keys" in caplog.text


class TestRangeStoreFromWeighted:
    """Test building stores from weights."""

    def test_basic(self, abc_weights):
        """Test the shape of a store built from weights."""
        root = RangeStore.from_weighted(abc_weights).root
        assert root.value == "B"
        assert root.max == 19
        assert root.left.value == "A"
        assert root.left.max == 9
        assert root.right.value == "C"
        assert root.right.max == 29

        assert root.left.left is None
        assert root.left.right is None
        assert root.right.left is None
        assert root.right.right is None

    def test_same_as_ranges(self, abc_weights):
        """Test that weights build the same tree as the equivalent ranges."""
        ranges = [
            RangedValue(1, 9, "A"),
            RangedValue(10, 19, "B"),
            RangedValue(20, 29, "C"),
        ]
        assert RangeStore.from_weighted(abc_weights) == RangeStore.from_sorted(ranges)

    def test_lookup(self, abc_weights):
        """Test that every key lands on the value owning it."""
        store = from_weighted(abc_weights)
        assert [store[k] for k in (1, 9, 10, 19, 20, 29)] == list("AABBCC")
        assert store.get(30) is None

    def test_zero_weight_never_found(self):
        """Test that a value with no weight is never looked up."""
        store = RangeStore.from_weighted(
            [WeightedValue(5, "A"), WeightedValue(0, "Z"), WeightedValue(5, "B")]
        )
        found = [store[k] for k in range(1, 11)]
        assert found == ["A"] * 5 + ["B"] * 5
        assert len(store) == 3

    def test_many_zero_weights(self):
        """Test a long run of zero weights."""
        items = [WeightedValue(1, "A")] + [WeightedValue(0, i) for i in range(2000)]
        store = RangeStore.from_weighted(items)
        assert store[1] == "A"
        with pytest.raises(RangeStoreError) as exc:
            store.search(2)
        assert exc.value.kind is ErrorKind.OUT_OF_RANGE

    def test_heavy_value_at_root(self):
        """Test that a heavy weight wins the root wherever it sits."""
        store = RangeStore.from_weighted(
            [WeightedValue(1, "a"), WeightedValue(100, "big"), WeightedValue(1, "b")]
        )
        assert store.root.value == "big"

    def test_duck_typed_weights(self):
        """Test that objects with weight and value attributes work."""
        Pick = namedtuple("Pick", "weight value")
        store = RangeStore.from_weighted([Pick(3, "x"), Pick(3, "y")])
        assert store[3] == "x"
        assert store[4] == "y"

    def test_empty(self):
        """Test that an empty list is rejected."""
        with pytest.raises(RangeStoreError) as exc:
            RangeStore.from_weighted([])
        assert exc.value.kind is ErrorKind.EMPTY_INPUT
        assert str(exc.value) == "Input list is empty"

    def test_overflow(self):
        """Test that weights adding past the unsigned 64 bit range are rejected."""
        items = [WeightedValue(1 << 63, "A"), WeightedValue(1 << 63, "B")]
        with pytest.raises(RangeStoreError) as exc:
            RangeStore.from_weighted(items)
        assert exc.value.kind is ErrorKind.INTEGER_OVERFLOW
        assert exc.value.operands == (1 << 63, 1 << 63)
        assert (
            str(exc.value)
            == "Overflow adding 9223372036854775808 + 9223372036854775808"
        )

    def test_zero_weight_past_end(self):
        """Test a zero weight after every key is taken."""
        items = [WeightedValue(U64_MAX, "A"), WeightedValue(0, "B")]
        with pytest.raises(RangeStoreError) as exc:
            RangeStore.from_weighted(items)
        assert exc.value.kind is ErrorKind.INTEGER_OVERFLOW
        assert exc.value.operands == (U64_MAX, 1)

    def test_whole_domain(self):
        """Test weights that use every key but zero."""
        store = RangeStore.from_weighted(
            [WeightedValue(1 << 63, "A"), WeightedValue((1 << 63) - 1, "B")]
        )
        assert store[1] == "A"
        assert store[1 << 63] == "A"
        assert store[(1 << 63) + 1] == "B"
        assert store[U64_MAX] == "B"

    def test_bad_weight(self):
        """Test that negative weights are refused."""
        Pick = namedtuple("Pick", "weight value")
        with pytest.raises(ValueError):
            RangeStore.from_weighted([Pick(-1, "x")])
