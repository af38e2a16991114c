from .errors import ErrorKind, RangeStoreError
from .ranges import U64_MAX, Ranged, RangedValue, Weighted, WeightedValue
from .rangestore import Node, RangeStore, from_sorted, from_weighted
from .weighted import weighted_to_ranges

__all__ = [
    "ErrorKind",
    "Node",
    "RangeStore",
    "RangeStoreError",
    "Ranged",
    "RangedValue",
    "U64_MAX",
    "Weighted",
    "WeightedValue",
    "from_sorted",
    "from_weighted",
    "weighted_to_ranges",
]
