from __future__ import annotations
from enum import Enum


class ErrorKind(Enum):
    """Every way building or querying a range store can fail"""

    EMPTY_INPUT = "empty_input"
    INTEGER_OVERFLOW = "integer_overflow"
    DISCONTINUITY = "discontinuity"
    OVERLAP = "overlap"
    OUT_OF_RANGE = "out_of_range"


_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_INPUT: "Input list is empty",
    ErrorKind.INTEGER_OVERFLOW: "Overflow adding {} + {}",
    ErrorKind.DISCONTINUITY: "Discontinuity detected from {} -> {}",
    ErrorKind.OVERLAP: "Overlap detected between {} -> {}",
    ErrorKind.OUT_OF_RANGE: "Value {} is out of range",
}


class RangeStoreError(ValueError):
    """The single error type raised by the range store

    The ``kind`` says what went wrong, and ``operands`` holds the values
    involved, in the order they appear in the message:

    * EMPTY_INPUT: ()
    * INTEGER_OVERFLOW: (running_total, addend)
    * DISCONTINUITY: (previous_max, current_min)
    * OVERLAP: (previous_max, current_min)
    * OUT_OF_RANGE: (key,)
    """

    def __init__(self, kind: ErrorKind, *operands: int):
        self.kind: ErrorKind = kind
        self.operands: tuple[int, ...] = operands
        super().__init__(_MESSAGES[kind].format(*operands))

    @classmethod
    def empty_input(cls) -> RangeStoreError:
        return cls(ErrorKind.EMPTY_INPUT)

    @classmethod
    def overflow(cls, a: int, b: int) -> RangeStoreError:
        return cls(ErrorKind.INTEGER_OVERFLOW, a, b)

    @classmethod
    def discontinuity(cls, prev_max: int, curr_min: int) -> RangeStoreError:
        return cls(ErrorKind.DISCONTINUITY, prev_max, curr_min)

    @classmethod
    def overlap(cls, prev_max: int, curr_min: int) -> RangeStoreError:
        return cls(ErrorKind.OVERLAP, prev_max, curr_min)

    @classmethod
    def out_of_range(cls, key: int) -> RangeStoreError:
        return cls(ErrorKind.OUT_OF_RANGE, key)

    def __reduce__(self):
        return (self.__class__, (self.kind, *self.operands))

    def __repr__(self):
        return f"<RangeStoreError {self.kind.name} {self.operands}>"
