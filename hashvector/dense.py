"""
hashvector: Dense Vectors
-------------------------
``DenseVector`` is a strided view over a one-dimensional NumPy array. It is the
dense counterpart that ``HashVector`` interoperates with through the operator
registry; its own arithmetic is limited to what the registry provides.

Layout
------
Element ``i`` lives at ``data[offset + i * stride]`` for ``0 <= i < length``.
``stride`` may be negative, which lets a vector walk its buffer backwards, and
several vectors may share one buffer (e.g. every other element).
"""

from dataclasses import dataclass, field
from operator import index as op_index
from typing import Any, Optional

import numpy as np

from .arith import VectorArithmetic
from .errors import IndexOutOfRangeError
from .kinds import DOUBLE, ElementKind, kind_of

__all__ = ["DenseVector"]


@dataclass(eq=False)
class DenseVector(VectorArithmetic):
    """Strided dense vector over a 1-D NumPy array.

    Parameters
    ----------
    data : numpy.ndarray or sequence
        Backing buffer. Sequences are converted with ``numpy.asarray``; arrays
        are used as-is, so the vector is a live view of the caller's array.
    offset : int, optional
        Position of element 0 in ``data`` (default 0).
    stride : int, optional
        Distance between consecutive elements (default 1, must be non-zero).
    length : int, optional
        Number of elements. Defaults to every position reachable from
        ``offset`` with ``stride``.

    Raises
    ------
    ValueError
        If ``data`` is not one-dimensional, ``stride`` is zero, or the view
        addresses positions outside ``data``.
    TypeError
        If the dtype of ``data`` has no element kind.
    """

    data: np.ndarray
    offset: int = 0
    stride: int = 1
    length: Optional[int] = None
    _kind: ElementKind = field(default=DOUBLE, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate the buffer and the view bounds."""
        if not isinstance(self.data, np.ndarray):
            self.data = np.asarray(self.data)
        if self.data.ndim != 1:
            raise ValueError(f"Expected 1D array, got {self.data.ndim}D.")
        self._kind = kind_of(self.data.dtype)
        self.offset = op_index(self.offset)
        self.stride = op_index(self.stride)
        if self.stride == 0:
            raise ValueError("stride must be non-zero.")
        n = self.data.shape[0]
        if self.length is None:
            if self.offset >= n or self.offset < 0:
                self.length = 0
            elif self.stride > 0:
                self.length = (n - self.offset + self.stride - 1) // self.stride
            else:
                self.length = self.offset // -self.stride + 1
        self.length = op_index(self.length)
        if self.length < 0:
            raise ValueError(f"length must be non-negative, got {self.length}.")
        if self.length > 0:
            last = self.offset + self.stride * (self.length - 1)
            if not (0 <= self.offset < n and 0 <= last < n):
                raise ValueError(
                    f"View (offset={self.offset}, stride={self.stride}, length={self.length}) "
                    f"exceeds buffer of size {n}."
                )

    # ---- Construction ----
    @staticmethod
    def zeros(size: int, kind: ElementKind = DOUBLE) -> "DenseVector":
        """Return a compact vector of ``size`` zeros of ``kind``."""
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}.")
        return DenseVector(kind.empty(size))

    @staticmethod
    def from_values(values, kind: Optional[ElementKind] = None) -> "DenseVector":
        """Return a compact vector holding ``values`` (cast to ``kind`` if given)."""
        if kind is None:
            return DenseVector(np.array(values))
        if kind.dtype == np.dtype(object):
            arr = np.empty(len(values), dtype=object)
            arr[:] = [kind.cast(v) for v in values]
            return DenseVector(arr)
        return DenseVector(np.asarray(values, dtype=kind.dtype).copy())

    # ---- Layout ----
    @property
    def kind(self) -> ElementKind:
        return self._kind

    def __len__(self) -> int:
        return self.length

    def positions(self) -> np.ndarray:
        """Absolute buffer positions of elements ``0 .. length-1``."""
        return self.offset + self.stride * np.arange(self.length, dtype=np.int64)

    def values(self) -> np.ndarray:
        """Compact copy of the elements."""
        return self.data[self.positions()]

    def copy(self) -> "DenseVector":
        """Deep copy with a compact (offset 0, stride 1) buffer."""
        return DenseVector(self.values())

    def __copy__(self) -> "DenseVector":
        return self.copy()

    # ---- Element access ----
    def _position(self, i) -> int:
        i = op_index(i)
        if i < 0 or i >= self.length:
            raise IndexOutOfRangeError(i, self.length)
        return self.offset + self.stride * i

    def __getitem__(self, i) -> Any:
        return self.data[self._position(i)]

    def __setitem__(self, i, v: Any) -> None:
        self.data[self._position(i)] = self._kind.cast(v)

    def __iter__(self):
        for pos in self.positions():
            yield self.data[pos]

    # ---- NumPy interop ----
    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        """Return the elements as a compact NumPy array (optionally cast)."""
        arr = self.values()
        return arr.astype(dtype) if dtype is not None else arr

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DenseVector):
            return NotImplemented
        return self.length == other.length and bool(np.array_equal(self.values(), other.values()))

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        """Compact string representation with logical length and kind."""
        return f"DenseVector(length={self.length}, kind={self._kind.name})"

    def __str__(self) -> str:
        return "DenseVector(" + ", ".join(str(v) for v in self) + ")"
