r"""
hashvector: Sparse Hash Vector
------------------------------
``HashVector`` is a fixed-length vector whose entries live in an
:class:`~hashvector.storage.OpenAddressHashArray`. Indices never written read as
the store's default value (the element kind's zero for every constructor in
this module).

Public API
----------
- ``HashVector``: the vector type.
- ``HashVector.zeros``, ``HashVector.from_values``, ``HashVector.fill``,
  ``HashVector.tabulate``, ``HashVector.from_pairs``: constructors.
- ``HashVector.to_sparse`` / ``HashVector.from_sparse``: SciPy interop.

Notes
-----
- Equality compares effective values: two vectors are equal when their lengths
  match and every index reads the same value, whichever slots were written.
- Hashing follows equality. Only indices whose effective value differs from
  the kind's zero contribute, whatever the store default is. Each contributes
  ``mix(mix(seed, hash(v)), i)`` with the 32-bit MurmurHash3 mixing step.
  Contributions are summed modulo ``2**32`` so slot order does not matter, and
  the sum is finalized with the number of contributing entries.
- Vectors are mutable; do not mutate one while it is a key in a dict or set.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple
import warnings

import numpy as np
from scipy.sparse import coo_matrix, csc_matrix, issparse

from .arith import VectorArithmetic
from .dense import DenseVector
from .kinds import BIGINT, DOUBLE, ElementKind, kind_of
from .storage import OpenAddressHashArray

__all__ = ["HashVector", "DENSE_MATERIALIZATION_WARNING"]

DENSE_MATERIALIZATION_WARNING = 1_000_000
"""Vector length above which materializing every index emits a ``RuntimeWarning``."""

# --------- MurmurHash3 (32-bit) helpers ---------
_M32 = 0xFFFFFFFF
_HASH_SEED = 47


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _M32


def _mix(h: int, data: int) -> int:
    k = (data * 0xCC9E2D51) & _M32
    k = _rotl(k, 15)
    k = (k * 0x1B873593) & _M32
    h ^= k
    h = _rotl(h, 13)
    return (h * 5 + 0xE6546B64) & _M32


def _finalize(h: int, length: int) -> int:
    h = (h ^ length) & _M32
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _M32
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _M32
    h ^= h >> 16
    return h


# --------- Core vector class ---------
@dataclass(eq=False)
class HashVector(VectorArithmetic):
    """Sparse vector backed by an open-addressed hash table.

    Parameters
    ----------
    array : OpenAddressHashArray
        Backing store, owned exclusively by the vector.

    Notes
    -----
    - ``array`` is exposed for kernels that walk slots directly; writing to
      ``array.data`` / ``array.index`` bypasses every check.
    - Use the ``zeros`` / ``from_values`` / ``tabulate`` / ``from_pairs``
      constructors rather than building stores by hand.
    """

    array: OpenAddressHashArray

    def __post_init__(self) -> None:
        if not isinstance(self.array, OpenAddressHashArray):
            raise TypeError(
                f"HashVector requires an OpenAddressHashArray, got {type(self.array).__name__}."
            )

    # ---- Element access ----
    def __getitem__(self, i) -> Any:
        return self.array.get(i)

    def __setitem__(self, i, v: Any) -> None:
        self.array.set(i, v)

    def get(self, i) -> Any:
        """Value at ``i``; the default when ``i`` was never written."""
        return self.array.get(i)

    def set(self, i, v: Any) -> None:
        """Write ``v`` at ``i``, activating the slot."""
        self.array.set(i, v)

    def __iter__(self) -> Iterator[Any]:
        for i in range(self.length):
            yield self.array.get(i)

    # ---- Active entries ----
    def active_iterator(self) -> Iterator[Tuple[int, Any]]:
        """``(index, value)`` of active entries, in store order (not sorted)."""
        return self.array.active_iterator()

    def active_keys_iterator(self) -> Iterator[int]:
        return self.array.active_keys()

    def active_values_iterator(self) -> Iterator[Any]:
        return self.array.active_values()

    def active_slots(self) -> np.ndarray:
        return self.array.active_slots()

    @property
    def active_size(self) -> int:
        return self.array.active_size

    @property
    def iterable_size(self) -> int:
        return self.array.iterable_size

    def is_active(self, slot: int) -> bool:
        return self.array.is_active(slot)

    @property
    def data(self) -> np.ndarray:
        return self.array.data

    @property
    def index(self) -> np.ndarray:
        return self.array.index

    @property
    def default(self) -> Any:
        return self.array.default

    @property
    def kind(self) -> ElementKind:
        return self.array.kind

    @property
    def length(self) -> int:
        return self.array.length

    def __len__(self) -> int:
        return self.array.length

    @property
    def all_visitable_indices_active(self) -> bool:
        """Always ``False``: inactive indices are skipped by slot walks."""
        return False

    # ---- Copying ----
    def copy(self) -> "HashVector":
        """Deep copy with an independent store."""
        return HashVector(self.array.copy())

    def __copy__(self) -> "HashVector":
        return self.copy()

    # ---- Equality and hashing ----
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashVector):
            return NotImplemented
        if self.length != other.length:
            return False
        for i, v in self.active_iterator():
            if other[i] != v:
                return False
        for i, v in other.active_iterator():
            if self[i] != v:
                return False
        if self.default != other.default:
            # an index inactive in both reads as two different defaults
            touched = set(self.active_keys_iterator()) | set(other.active_keys_iterator())
            return len(touched) == self.length
        return True

    def __hash__(self) -> int:
        zero = self.kind.zero
        if self.default == zero:
            entries = self.active_iterator()
        else:
            # inactive indices read the non-zero default and take part too
            entries = enumerate(np.asarray(self))
        acc = 0
        count = 0
        for i, v in entries:
            if v != zero:
                entry = _mix(_mix(_HASH_SEED, hash(v) & _M32), i)
                acc = (acc + entry) & _M32
                count += 1
        return _finalize(acc, count)

    # ---- NumPy / SciPy interop ----
    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        """Materialize every index into a NumPy array (optionally cast)."""
        arr = np.full(self.length, self.default, dtype=self.kind.dtype)
        slots = self.active_slots()
        arr[self.index[slots]] = self.data[slots]
        return arr.astype(dtype) if dtype is not None else arr

    def to_dense(self) -> DenseVector:
        """Return a compact ``DenseVector`` with the same effective values."""
        return DenseVector(np.asarray(self))

    def to_sparse(self) -> csc_matrix:
        """Return the active entries as a SciPy CSC column of shape ``(length, 1)``.

        Raises
        ------
        TypeError
            For ``BIGINT`` vectors (SciPy has no object dtype) and vectors with
            a non-zero default, which a sparse matrix cannot represent.
        """
        if self.kind is BIGINT:
            raise TypeError("scipy.sparse does not support arbitrary-precision integers.")
        if self.default != self.kind.zero:
            raise TypeError("Only vectors with a zero default convert to scipy.sparse.")
        slots = self.active_slots()
        rows = self.index[slots]
        cols = np.zeros(len(slots), dtype=int)
        return coo_matrix((self.data[slots], (rows, cols)),
                          shape=(self.length, 1), dtype=self.kind.dtype).tocsc()

    @staticmethod
    def from_sparse(mat) -> "HashVector":
        """Build a vector from a SciPy sparse row or column vector.

        Only explicitly stored entries become active. Duplicate entries are
        summed first.
        """
        if not issparse(mat):
            raise TypeError(f"Expected a scipy.sparse matrix, got {type(mat).__name__}.")
        rows, cols = mat.shape
        if cols == 1:
            length, transpose = rows, False
        elif rows == 1:
            length, transpose = cols, True
        else:
            raise ValueError(f"Expected a row or column vector, got shape {mat.shape}.")
        csc = csc_matrix(mat)
        csc.sum_duplicates()
        coo = csc.tocoo()
        kind = kind_of(coo.dtype)
        out = OpenAddressHashArray(length, kind, initial_size=coo.nnz * 2)
        indices = coo.col if transpose else coo.row
        for i, v in zip(indices, coo.data):
            out.set(int(i), v)
        return HashVector(out)

    # ---- Representation ----
    def __repr__(self) -> str:
        """Compact string representation with length, active count and kind."""
        return f"HashVector(length={self.length}, active={self.active_size}, kind={self.kind.name})"

    def __str__(self) -> str:
        return "HashVector(" + ", ".join(f"({i}, {v})" for i, v in self.active_iterator()) + ")"

    # ---- Construction ----
    @staticmethod
    def zeros(size: int, kind: ElementKind = DOUBLE) -> "HashVector":
        """Return a vector of ``size`` inactive slots reading as ``kind.zero``."""
        return HashVector(OpenAddressHashArray(size, kind))

    @staticmethod
    def from_values(values: Iterable[Any], kind: Optional[ElementKind] = None) -> "HashVector":
        """Return a vector holding ``values``; every index is written (and active)."""
        values = list(values)
        if kind is None:
            kind = kind_of(np.asarray(values)) if values else DOUBLE
        out = OpenAddressHashArray(len(values), kind, initial_size=len(values))
        for i, v in enumerate(values):
            out.set(i, v)
        return HashVector(out)

    @staticmethod
    def fill(size: int, value: Any, kind: Optional[ElementKind] = None) -> "HashVector":
        """Return a vector with ``value`` written at every index."""
        return HashVector.from_values([value] * size, kind)

    @staticmethod
    def tabulate(size: int, fn: Callable[[int], Any],
                 kind: Optional[ElementKind] = None) -> "HashVector":
        """Return a vector with ``fn(i)`` written at every index ``i``."""
        if size > DENSE_MATERIALIZATION_WARNING:
            warnings.warn(f"Tabulating {size} entries materializes every slot.",
                          RuntimeWarning, stacklevel=2)
        return HashVector.from_values([fn(i) for i in range(size)], kind)

    @staticmethod
    def from_pairs(size: int, pairs: Iterable[Tuple[int, Any]],
                   kind: Optional[ElementKind] = None) -> "HashVector":
        """Return a vector of ``size`` with only the given ``(index, value)`` pairs set."""
        pairs = list(pairs)
        if kind is None:
            kind = kind_of(np.asarray([v for _, v in pairs])) if pairs else DOUBLE
        return HashVector(OpenAddressHashArray.from_pairs(size, pairs, kind))
