"""
Interval Index
==============
Map of pairwise-disjoint closed integer ranges to values.

Ranges are kept sorted by their right bound so lookups are a single
bisect. An insertion that would overlap any existing range is rejected
with RangeOverlapError and leaves the index untouched.
"""
from bisect import bisect_left
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from diffscan.core.errors import RangeOverlapError

V = TypeVar("V")


class IntervalIndex(Generic[V]):

    def __init__(self) -> None:
        self._lefts: List[int] = []
        self._rights: List[int] = []
        self._values: List[Any] = []

    def __len__(self) -> int:
        return len(self._rights)

    def ranges(self) -> List[Tuple[int, int, V]]:
        return list(zip(self._lefts, self._rights, self._values))

    def find(self, key: int) -> Tuple[bool, Optional[V], int]:
        """
        Locate the range containing ``key``.

        Returns
        -------
        (exists, value, insert_at)
            ``insert_at`` is the index of the first range whose right bound
            is >= key, i.e. where a range starting at ``key`` would go.
        """
        i = bisect_left(self._rights, key)
        if i < len(self._rights) and self._lefts[i] <= key:
            return True, self._values[i], i
        return False, None, i

    def add_range(self, left: int, right: int, value: V) -> None:
        """Insert [left, right] → value, or raise RangeOverlapError."""
        if left > right:
            raise ValueError(f"left bound {left} is greater than right bound {right}")

        left_exists, _, insert_left = self.find(left)
        if left_exists:
            raise RangeOverlapError(f"range [{left}, {right}] overlaps at {left}")
        right_exists, _, insert_right = self.find(right)
        if right_exists:
            raise RangeOverlapError(f"range [{left}, {right}] overlaps at {right}")
        # A whole range sits strictly between left and right
        if insert_left != insert_right:
            raise RangeOverlapError(f"range [{left}, {right}] encloses an existing range")

        self._lefts.insert(insert_right, left)
        self._rights.insert(insert_right, right)
        self._values.insert(insert_right, value)

    def get(self, key: int, default: Optional[V] = None) -> Optional[V]:
        exists, value, _ = self.find(key)
        return value if exists else default
