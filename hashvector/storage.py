r"""
hashvector: Open-Addressed Sparse Store
---------------------------------------
Provides ``OpenAddressHashArray``, a fixed-length logical array whose entries
are kept in an open-addressed hash table. Absent indices read as a configurable
default value.

Layout
------
Two parallel slot arrays of equal capacity (always a power of two):

- ``index[s]``: logical index stored in slot ``s`` or ``-1`` when inactive.
- ``data[s]``: value stored in slot ``s`` (meaningless when inactive).

Collisions are resolved by linear probing from a Fibonacci hash of the logical
index. When ``active_size * MAX_LOAD_DEN > capacity * MAX_LOAD_NUM`` the table
doubles and every active entry is reinserted, so slot order (and therefore the
order of ``active_iterator``) is not stable across writes.

Notes
-----
- A write always activates its slot, including writes of the default value.
- Slots are never deactivated; there is no removal.
"""

from operator import index as op_index
from typing import Any, Iterator, Optional, Tuple

import numpy as np

from .errors import IndexOutOfRangeError
from .kinds import DOUBLE, ElementKind

__all__ = [
    "OpenAddressHashArray",
    "DEFAULT_INITIAL_SIZE",
]

DEFAULT_INITIAL_SIZE = 16
"""Initial slot capacity requested by new stores (rounded up to a power of two)."""

MAX_LOAD_NUM = 3
MAX_LOAD_DEN = 4
"""Maximum load factor ``MAX_LOAD_NUM / MAX_LOAD_DEN`` before the table grows."""

_MIN_CAPACITY = 4
_FIB_MULT = 0x9E3779B97F4A7C15
_MASK64 = (1 << 64) - 1


def _capacity_for(requested: int) -> int:
    """Smallest power of two ``>= max(requested, _MIN_CAPACITY)``."""
    cap = _MIN_CAPACITY
    while cap < requested:
        cap <<= 1
    return cap


class OpenAddressHashArray:
    """Open-addressed hash table presenting a logical array of ``length`` slots.

    Parameters
    ----------
    length : int
        Logical length. Valid indices are ``0 <= i < length``.
    kind : ElementKind, optional
        Element kind of the stored values (default ``DOUBLE``).
    default : scalar, optional
        Value read at inactive indices. Defaults to ``kind.zero``.
    initial_size : int, optional
        Requested initial slot capacity.

    Raises
    ------
    ValueError
        If ``length`` or ``initial_size`` is negative.
    """

    __slots__ = ("_length", "_kind", "_default", "_index", "_data", "_load", "_bits")

    def __init__(self, length: int, kind: ElementKind = DOUBLE,
                 default: Any = None, initial_size: int = DEFAULT_INITIAL_SIZE) -> None:
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}.")
        if initial_size < 0:
            raise ValueError(f"initial_size must be non-negative, got {initial_size}.")
        self._length = int(length)
        self._kind = kind
        self._default = kind.zero if default is None else kind.cast(default)
        self._allocate(_capacity_for(initial_size))

    def _allocate(self, capacity: int) -> None:
        self._index = np.full(capacity, -1, dtype=np.int64)
        self._data = np.full(capacity, self._default, dtype=self._kind.dtype)
        self._load = 0
        self._bits = capacity.bit_length() - 1

    # ---- Slot lookup ----
    def _slot_hash(self, i: int) -> int:
        return ((i * _FIB_MULT) & _MASK64) >> (64 - self._bits)

    def _locate(self, i: int) -> int:
        """Slot holding ``i``, or the inactive slot where ``i`` would go."""
        mask = self._index.shape[0] - 1
        index = self._index
        slot = self._slot_hash(i)
        while index[slot] != i and index[slot] >= 0:
            slot = (slot + 1) & mask
        return slot

    def _check(self, i: int) -> int:
        try:
            i = op_index(i)
        except TypeError:
            raise TypeError(f"Vector indices must be integers, not {type(i).__name__}.") from None
        if i < 0 or i >= self._length:
            raise IndexOutOfRangeError(i, self._length)
        return i

    def _grow(self) -> None:
        old_index = self._index
        old_data = self._data
        self._allocate(old_index.shape[0] * 2)
        for slot in np.flatnonzero(old_index >= 0):
            self._insert(int(old_index[slot]), old_data[slot])

    def _insert(self, i: int, v: Any) -> None:
        slot = self._locate(i)
        if self._index[slot] == i:
            self._data[slot] = v
            return
        if (self._load + 1) * MAX_LOAD_DEN > self._index.shape[0] * MAX_LOAD_NUM:
            self._grow()
            slot = self._locate(i)
        self._index[slot] = i
        self._data[slot] = v
        self._load += 1

    # ---- Element access ----
    def get(self, i: int) -> Any:
        """Value at logical index ``i`` (the default when inactive)."""
        i = self._check(i)
        slot = self._locate(i)
        if self._index[slot] == i:
            return self._data[slot]
        return self._default

    def set(self, i: int, v: Any) -> None:
        """Store ``v`` at logical index ``i``, growing the table if needed."""
        i = self._check(i)
        self._insert(i, self._kind.cast(v))

    __getitem__ = get
    __setitem__ = set

    def contains(self, i: int) -> bool:
        """Whether logical index ``i`` is active."""
        i = self._check(i)
        return bool(self._index[self._locate(i)] == i)

    # ---- Introspection ----
    @property
    def length(self) -> int:
        return self._length

    def __len__(self) -> int:
        return self._length

    @property
    def kind(self) -> ElementKind:
        return self._kind

    @property
    def default(self) -> Any:
        return self._default

    @property
    def active_size(self) -> int:
        """Number of active slots."""
        return self._load

    @property
    def iterable_size(self) -> int:
        """Upper bound on slot positions (the current capacity)."""
        return self._index.shape[0]

    @property
    def data(self) -> np.ndarray:
        """Slot values (parallel to :attr:`index`). Mutating it bypasses checks."""
        return self._data

    @property
    def index(self) -> np.ndarray:
        """Logical index per slot, ``-1`` for inactive slots."""
        return self._index

    def is_active(self, slot: int) -> bool:
        """Whether slot position ``slot`` holds an entry."""
        return bool(self._index[slot] >= 0)

    def active_slots(self) -> np.ndarray:
        """Positions of all active slots, in slot order."""
        return np.flatnonzero(self._index >= 0)

    # ---- Iteration ----
    def active_iterator(self) -> Iterator[Tuple[int, Any]]:
        """One-shot iterator over ``(index, value)`` of active slots, slot order."""
        for slot in self.active_slots():
            yield int(self._index[slot]), self._data[slot]

    def active_keys(self) -> Iterator[int]:
        for slot in self.active_slots():
            yield int(self._index[slot])

    def active_values(self) -> Iterator[Any]:
        for slot in self.active_slots():
            yield self._data[slot]

    # ---- Copying ----
    def copy(self) -> "OpenAddressHashArray":
        """Deep copy with independent slot arrays."""
        out = OpenAddressHashArray.__new__(OpenAddressHashArray)
        out._length = self._length
        out._kind = self._kind
        out._default = self._default
        out._index = self._index.copy()
        out._data = self._data.copy()
        out._load = self._load
        out._bits = self._bits
        return out

    def __copy__(self) -> "OpenAddressHashArray":
        return self.copy()

    def __repr__(self) -> str:
        return (f"OpenAddressHashArray(length={self._length}, active={self._load}, "
                f"capacity={self.iterable_size}, kind={self._kind.name})")

    @classmethod
    def from_pairs(cls, length: int, pairs, kind: ElementKind = DOUBLE,
                   default: Optional[Any] = None) -> "OpenAddressHashArray":
        """Build a store of ``length`` from ``(index, value)`` pairs."""
        out = cls(length, kind, default)
        for i, v in pairs:
            out.set(i, v)
        return out
