r"""
hashvector: Operator Registry
-----------------------------
Process-wide tables of operator implementations between ``HashVector`` and
``DenseVector``, keyed by operator kind, operand types and element kind. The
tables are filled once at import by :func:`_init_operator_table` and are
read-only afterwards, so callers may resolve an implementation once and keep
calling it.

Tables
------
- binary: ``(op, left_type, right_type, kind) -> fn(a, b) -> result``
- update: ``(op, left_type, right_type, kind) -> fn(a, b) -> None`` (mutates ``a``)
- unary:  ``(op, operand_type, kind) -> fn(v, *args) -> result``

Scalar operands are keyed by ``numbers.Number``.

Registered entries
------------------
- ``DenseVector op= HashVector`` for ``MUL_SCALAR, DIV, SET, MOD, POW``: strided
  scan of the dense operand against every index of the sparse one.
- ``DenseVector op= HashVector`` for ``ADD, SUB``: walks only the active slots
  of the sparse operand when its default is zero, otherwise every index.
- ``DenseVector op HashVector -> DenseVector``: :func:`pure_from_update` of the
  above.
- ``HashVector op= DenseVector`` and ``HashVector op DenseVector -> DenseVector``
  for all seven elementwise ops; the pure form materializes a dense result.
- ``MUL_INNER`` (dot) in both operand orders, accumulated over active slots
  (over every index when the sparse default is not zero).
- ``HashVector * scalar`` / ``HashVector / scalar``, ``NEG`` derived from the
  scaling entry, ``COPY``, the four map ops and ``ZIP_MAP_VALUES``.

``MOD`` is not registered for ``COMPLEX`` and ``POW`` is not registered for
``BIGINT``; looking them up raises :class:`UnsupportedOperatorError`.

Notes
-----
- Length checks run before any operand is touched, and update kernels compute
  their full result before writing it back, so a failing call leaves the
  recipient unchanged.
- Scaling an integral vector by a scalar the kind cannot represent exactly
  raises ``TypeError``.
- Dot products do not conjugate complex operands.
"""

from enum import Enum
from numbers import Number
from types import MappingProxyType
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from .dense import DenseVector
from .errors import DimensionMismatchError, UnsupportedOperatorError
from .kinds import ELEMENT_KINDS, ElementKind, Kernel
from .storage import OpenAddressHashArray
from .vector import HashVector

__all__ = [
    "OpKind",
    "BINARY_OPS",
    "UPDATE_OPS",
    "UNARY_OPS",
    "binary_op_for",
    "update_op_for",
    "unary_op_for",
    "register_binary",
    "register_update",
    "register_unary",
    "registered_operators",
    "pure_from_update",
    "apply_binary",
    "apply_update",
    "dot",
    "negate",
    "copy_vector",
    "map_values",
    "map_pairs",
    "zip_map_values",
]


class OpKind(Enum):
    """Operator kinds addressable in the registry."""

    ADD = "add"
    SUB = "sub"
    MUL_SCALAR = "mul"
    DIV = "div"
    SET = "set"
    MOD = "mod"
    POW = "pow"
    MUL_INNER = "dot"
    NEG = "neg"
    COPY = "copy"
    MAP_VALUES = "map_values"
    MAP_ACTIVE_VALUES = "map_active_values"
    MAP_PAIRS = "map_pairs"
    MAP_ACTIVE_PAIRS = "map_active_pairs"
    ZIP_MAP_VALUES = "zip_map_values"


ELEMENTWISE_OPS: Tuple[OpKind, ...] = (
    OpKind.ADD, OpKind.SUB, OpKind.MUL_SCALAR, OpKind.DIV,
    OpKind.SET, OpKind.MOD, OpKind.POW,
)
"""Operators with an elementwise kernel on every :class:`ElementKind`."""

ZERO_IDEMPOTENT_OPS: Tuple[OpKind, ...] = (OpKind.ADD, OpKind.SUB)
"""Operators for which combining with the zero default is a no-op."""

BinaryFn = Callable[..., Any]
UpdateFn = Callable[[Any, Any], None]
UnaryFn = Callable[..., Any]

_binary_ops: Dict[Tuple[OpKind, type, type, ElementKind], BinaryFn] = {}
_update_ops: Dict[Tuple[OpKind, type, type, ElementKind], UpdateFn] = {}
_unary_ops: Dict[Tuple[OpKind, type, ElementKind], UnaryFn] = {}
_frozen = False

BINARY_OPS = MappingProxyType(_binary_ops)
"""Read-only view of the binary operator table."""

UPDATE_OPS = MappingProxyType(_update_ops)
"""Read-only view of the in-place operator table."""

UNARY_OPS = MappingProxyType(_unary_ops)
"""Read-only view of the unary operator table."""


# --------- Registration ---------
def _check_open(key) -> None:
    if _frozen:
        raise RuntimeError(f"Operator table is read-only after initialization; cannot register {key}.")


def register_binary(op: OpKind, left: type, right: type, kind: ElementKind, fn: BinaryFn) -> None:
    """Register ``fn`` as the binary ``op`` for ``(left, right, kind)``."""
    key = (op, left, right, kind)
    _check_open(key)
    _binary_ops[key] = fn


def register_update(op: OpKind, left: type, right: type, kind: ElementKind, fn: UpdateFn) -> None:
    """Register ``fn`` as the in-place ``op`` for ``(left, right, kind)``."""
    key = (op, left, right, kind)
    _check_open(key)
    _update_ops[key] = fn


def register_unary(op: OpKind, operand: type, kind: ElementKind, fn: UnaryFn) -> None:
    """Register ``fn`` as the unary ``op`` for ``(operand, kind)``."""
    key = (op, operand, kind)
    _check_open(key)
    _unary_ops[key] = fn


# --------- Lookup ---------
def _type_name(t: type) -> str:
    return "scalar" if t is Number else t.__name__


def binary_op_for(op: OpKind, left: type, right: type, kind: ElementKind) -> BinaryFn:
    """Return the binary implementation of ``op`` for the given operand types.

    Raises
    ------
    UnsupportedOperatorError
        If no implementation is registered.
    """
    try:
        return _binary_ops[(op, left, right, kind)]
    except KeyError:
        raise UnsupportedOperatorError(
            f"No {op.name} operator for {_type_name(left)} and {_type_name(right)} "
            f"of kind {kind.name}."
        ) from None


def update_op_for(op: OpKind, left: type, right: type, kind: ElementKind) -> UpdateFn:
    """Return the in-place implementation of ``op`` for the given operand types.

    Raises
    ------
    UnsupportedOperatorError
        If no implementation is registered.
    """
    try:
        return _update_ops[(op, left, right, kind)]
    except KeyError:
        raise UnsupportedOperatorError(
            f"No in-place {op.name} operator for {_type_name(left)} and {_type_name(right)} "
            f"of kind {kind.name}."
        ) from None


def unary_op_for(op: OpKind, operand: type, kind: ElementKind) -> UnaryFn:
    """Return the unary implementation of ``op`` for ``(operand, kind)``.

    Raises
    ------
    UnsupportedOperatorError
        If no implementation is registered.
    """
    try:
        return _unary_ops[(op, operand, kind)]
    except KeyError:
        raise UnsupportedOperatorError(
            f"No {op.name} operator for {_type_name(operand)} of kind {kind.name}."
        ) from None


def registered_operators():
    """Sorted list of ``(table, op, type names..., kind)`` describing every entry."""
    out = []
    for (op, left, right, kind) in _binary_ops:
        out.append(("binary", op.name, _type_name(left), _type_name(right), kind.name))
    for (op, left, right, kind) in _update_ops:
        out.append(("update", op.name, _type_name(left), _type_name(right), kind.name))
    for (op, operand, kind) in _unary_ops:
        out.append(("unary", op.name, _type_name(operand), "", kind.name))
    return sorted(out)


# --------- Dispatch helpers ---------
def _operand_type(x) -> type:
    if isinstance(x, HashVector):
        return HashVector
    if isinstance(x, DenseVector):
        return DenseVector
    if np.isscalar(x) or isinstance(x, np.generic):
        return Number
    raise UnsupportedOperatorError(f"Unsupported operand type {type(x).__name__}.")


def _common_kind(a, b) -> ElementKind:
    kind = a.kind
    if not isinstance(b, (HashVector, DenseVector)):
        return kind
    if b.kind is not kind:
        raise UnsupportedOperatorError(
            f"Operands have different element kinds: {kind.name} and {b.kind.name}."
        )
    return kind


def apply_binary(op: OpKind, a, b, *args) -> Any:
    """Resolve the binary ``op`` for the operands' types and apply it."""
    if _operand_type(a) is Number:
        raise UnsupportedOperatorError(f"No {op.name} operator with a scalar left operand.")
    fn = binary_op_for(op, _operand_type(a), _operand_type(b), _common_kind(a, b))
    return fn(a, b, *args)


def apply_update(op: OpKind, a, b) -> None:
    """Resolve the in-place ``op`` for the operands' types and apply it to ``a``."""
    if _operand_type(a) is Number:
        raise UnsupportedOperatorError(f"No in-place {op.name} operator on a scalar.")
    fn = update_op_for(op, _operand_type(a), _operand_type(b), _common_kind(a, b))
    fn(a, b)


def dot(a, b) -> Any:
    """Dot product of a ``HashVector`` and a ``DenseVector`` (either order)."""
    return apply_binary(OpKind.MUL_INNER, a, b)


def negate(v) -> Any:
    """Return ``-v``."""
    return unary_op_for(OpKind.NEG, _operand_type(v), v.kind)(v)


def copy_vector(v) -> Any:
    """Return a deep copy of ``v``."""
    return unary_op_for(OpKind.COPY, _operand_type(v), v.kind)(v)


def map_values(v: HashVector, fn: Callable[[Any], Any], *, active: bool = False,
               kind: Optional[ElementKind] = None) -> HashVector:
    """Apply ``fn`` to the values of ``v``.

    Parameters
    ----------
    v : HashVector
        Source vector.
    fn : callable
        Value mapping.
    active : bool, optional
        If ``True`` only active slots are mapped and the result has the same
        active indices; otherwise every index is mapped and written (O(length)).
    kind : ElementKind, optional
        Element kind of the result (default: that of ``v``).
    """
    op = OpKind.MAP_ACTIVE_VALUES if active else OpKind.MAP_VALUES
    return unary_op_for(op, _operand_type(v), v.kind)(v, fn, kind)


def map_pairs(v: HashVector, fn: Callable[[int, Any], Any], *, active: bool = False,
              kind: Optional[ElementKind] = None) -> HashVector:
    """Like :func:`map_values`, but ``fn`` receives ``(index, value)``."""
    op = OpKind.MAP_ACTIVE_PAIRS if active else OpKind.MAP_PAIRS
    return unary_op_for(op, _operand_type(v), v.kind)(v, fn, kind)


def zip_map_values(a: HashVector, b: HashVector, fn: Callable[[Any, Any], Any], *,
                   kind: Optional[ElementKind] = None) -> HashVector:
    """Return the vector of ``fn(a[i], b[i])`` over every index."""
    return apply_binary(OpKind.ZIP_MAP_VALUES, a, b, fn, kind)


# --------- Implementation builders ---------
def _require_same_length(a, b) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))


def pure_from_update(update: UpdateFn) -> BinaryFn:
    """Derive a value-returning operator from an in-place one.

    The left operand is copied and the copy updated, so ``a`` is never mutated.
    """
    def apply(a, b):
        result = a.copy()
        update(result, b)
        return result
    return apply


def _dv_hv_update(kernel: Kernel) -> UpdateFn:
    """``DenseVector op= HashVector`` over every index of the dense view."""
    def apply(a: DenseVector, b: HashVector) -> None:
        _require_same_length(a, b)
        pos = a.positions()
        a.data[pos] = kernel(a.data[pos], np.asarray(b))
    return apply


def _zero_default(v: HashVector) -> bool:
    # NaN defaults compare unequal and take the full-scan path
    return bool(v.default == v.kind.zero)


def _dv_hv_update_active(kernel: Kernel) -> UpdateFn:
    """``DenseVector op= HashVector`` over the active slots of ``b`` only.

    Falls back to the full scan when ``b`` reads a non-zero default at its
    inactive indices.
    """
    full_scan = _dv_hv_update(kernel)

    def apply(a: DenseVector, b: HashVector) -> None:
        _require_same_length(a, b)
        if not _zero_default(b):
            full_scan(a, b)
            return
        slots = b.active_slots()
        pos = a.offset + a.stride * b.index[slots]
        a.data[pos] = kernel(a.data[pos], b.data[slots])
    return apply


def _dv_hv_dot(kind: ElementKind) -> BinaryFn:
    def apply(a: DenseVector, b: HashVector) -> Any:
        _require_same_length(a, b)
        if _zero_default(b):
            slots = b.active_slots()
            pos = a.offset + a.stride * b.index[slots]
            products = a.data[pos] * b.data[slots]
        else:
            products = a.values() * np.asarray(b)
        return products.sum(dtype=kind.dtype, initial=kind.zero)
    return apply


def _hv_dv_dot(dv_hv: BinaryFn) -> BinaryFn:
    def apply(a: HashVector, b: DenseVector) -> Any:
        _require_same_length(a, b)
        return dv_hv(b, a)
    return apply


def _hv_dv_update(kernel: Kernel) -> UpdateFn:
    """``HashVector op= DenseVector``; every index of ``a`` is written."""
    def apply(a: HashVector, b: DenseVector) -> None:
        _require_same_length(a, b)
        result = kernel(np.asarray(a), b.values())
        for i, v in enumerate(result):
            a[i] = v
    return apply


def _hv_dv_op(kernel: Kernel, kind: ElementKind) -> BinaryFn:
    """``HashVector op DenseVector -> DenseVector``."""
    def apply(a: HashVector, b: DenseVector) -> DenseVector:
        _require_same_length(a, b)
        result = DenseVector.zeros(len(a), kind)
        result.data[:] = kernel(np.asarray(a), b.values())
        return result
    return apply


def _hv_scale(kernel: Kernel, kind: ElementKind) -> BinaryFn:
    """``HashVector op scalar -> HashVector``, applied to active values and the default."""
    def apply(a: HashVector, s: Any) -> HashVector:
        scalar = kind.cast(s)
        if kind.integral and scalar != s:
            raise TypeError(f"Cannot scale a {kind.name} vector by {s!r} without truncation.")
        s = scalar
        out = OpenAddressHashArray(a.length, kind, default=kernel(a.default, s),
                                   initial_size=a.iterable_size)
        slots = a.active_slots()
        for i, v in zip(a.index[slots], kernel(a.data[slots], s)):
            out.set(int(i), v)
        return HashVector(out)
    return apply


def _neg_from_scale(scale: BinaryFn, kind: ElementKind) -> UnaryFn:
    minus_one = kind.negate(kind.one)

    def apply(v: HashVector) -> HashVector:
        return scale(v, minus_one)
    return apply


def _hv_map_values(kind: ElementKind) -> UnaryFn:
    def apply(v: HashVector, fn, out_kind: Optional[ElementKind] = None) -> HashVector:
        return HashVector.tabulate(v.length, lambda i: fn(v[i]), out_kind or kind)
    return apply


def _hv_map_active_values(kind: ElementKind) -> UnaryFn:
    def apply(v: HashVector, fn, out_kind: Optional[ElementKind] = None) -> HashVector:
        out = OpenAddressHashArray(v.length, out_kind or kind, initial_size=v.iterable_size)
        for slot in v.active_slots():
            out.set(int(v.index[slot]), fn(v.data[slot]))
        return HashVector(out)
    return apply


def _hv_map_pairs(kind: ElementKind) -> UnaryFn:
    def apply(v: HashVector, fn, out_kind: Optional[ElementKind] = None) -> HashVector:
        return HashVector.tabulate(v.length, lambda i: fn(i, v[i]), out_kind or kind)
    return apply


def _hv_map_active_pairs(kind: ElementKind) -> UnaryFn:
    def apply(v: HashVector, fn, out_kind: Optional[ElementKind] = None) -> HashVector:
        out = OpenAddressHashArray(v.length, out_kind or kind, initial_size=v.iterable_size)
        for slot in v.active_slots():
            i = int(v.index[slot])
            out.set(i, fn(i, v.data[slot]))
        return HashVector(out)
    return apply


def _hv_zip_map_values(kind: ElementKind) -> BinaryFn:
    def apply(a: HashVector, b: HashVector, fn,
              out_kind: Optional[ElementKind] = None) -> HashVector:
        _require_same_length(a, b)
        result = HashVector.zeros(a.length, out_kind or kind)
        for i in range(a.length):
            result[i] = fn(a[i], b[i])
        return result
    return apply


# --------- Table population ---------
def _init_operator_table() -> None:
    """Populate every table for every element kind, then freeze them."""
    global _frozen
    for kind in ELEMENT_KINDS:
        for op in ELEMENTWISE_OPS:
            kernel = kind.kernel(op.value)
            if kernel is None:
                continue
            if op in ZERO_IDEMPOTENT_OPS:
                dv_hv = _dv_hv_update_active(kernel)
            else:
                dv_hv = _dv_hv_update(kernel)
            register_update(op, DenseVector, HashVector, kind, dv_hv)
            register_binary(op, DenseVector, HashVector, kind, pure_from_update(dv_hv))
            register_update(op, HashVector, DenseVector, kind, _hv_dv_update(kernel))
            register_binary(op, HashVector, DenseVector, kind, _hv_dv_op(kernel, kind))

        dv_hv_dot = _dv_hv_dot(kind)
        register_binary(OpKind.MUL_INNER, DenseVector, HashVector, kind, dv_hv_dot)
        register_binary(OpKind.MUL_INNER, HashVector, DenseVector, kind, _hv_dv_dot(dv_hv_dot))

        scale = _hv_scale(kind.kernel("mul"), kind)
        register_binary(OpKind.MUL_SCALAR, HashVector, Number, kind, scale)
        register_binary(OpKind.DIV, HashVector, Number, kind, _hv_scale(kind.kernel("div"), kind))
        register_unary(OpKind.NEG, HashVector, kind, _neg_from_scale(scale, kind))

        register_unary(OpKind.COPY, HashVector, kind, HashVector.copy)
        register_unary(OpKind.COPY, DenseVector, kind, DenseVector.copy)
        register_unary(OpKind.MAP_VALUES, HashVector, kind, _hv_map_values(kind))
        register_unary(OpKind.MAP_ACTIVE_VALUES, HashVector, kind, _hv_map_active_values(kind))
        register_unary(OpKind.MAP_PAIRS, HashVector, kind, _hv_map_pairs(kind))
        register_unary(OpKind.MAP_ACTIVE_PAIRS, HashVector, kind, _hv_map_active_pairs(kind))
        register_binary(OpKind.ZIP_MAP_VALUES, HashVector, HashVector, kind, _hv_zip_map_values(kind))
    _frozen = True


_init_operator_table()
