"""
hashvector: Operator Overloads
------------------------------
Mixin giving ``HashVector`` and ``DenseVector`` the Python arithmetic
operators. Every overload resolves its implementation from the operator
registry in :mod:`hashvector.operators`; nothing here computes values.

Operand handling
----------------
- ``HashVector`` / ``DenseVector`` operands are passed through.
- One-dimensional NumPy arrays and sequences are wrapped as ``DenseVector``.
- Scalars are accepted where the registry has a scalar entry (``*`` and ``/``
  on ``HashVector``).
"""

from typing import Any

import numpy as np

__all__ = ["VectorArithmetic"]


class VectorArithmetic:
    """Arithmetic operator overloads backed by the operator registry."""

    # NumPy must hand mixed expressions back to us instead of broadcasting
    __array_priority__ = 1000
    __array_ufunc__ = None

    # ---- Helpers ----
    @staticmethod
    def _is_scalar(x) -> bool:
        """Return True if ``x`` is a scalar (Python or NumPy scalar)."""
        return np.isscalar(x) or isinstance(x, (np.generic,))

    @staticmethod
    def _as_operand(x) -> Any:
        """Coerce ``x`` to a vector or scalar operand, or return ``None``."""
        from .dense import DenseVector
        from .vector import HashVector

        if isinstance(x, (HashVector, DenseVector)):
            return x
        if VectorArithmetic._is_scalar(x):
            return x
        try:
            arr = np.asarray(x)
        except Exception:
            return None
        if arr.ndim != 1:
            return None
        try:
            return DenseVector(arr)
        except TypeError:
            return None

    def _binary(self, op: str, other, reflected: bool = False):
        from .operators import OpKind, apply_binary

        op = OpKind[op]
        operand = self._as_operand(other)
        if operand is None:
            return NotImplemented
        if reflected:
            return apply_binary(op, operand, self)
        return apply_binary(op, self, operand)

    def _update(self, op: str, other):
        from .operators import OpKind, apply_update

        op = OpKind[op]
        operand = self._as_operand(other)
        # scalars have no in-place entries; let Python fall back to the binary form
        if operand is None or self._is_scalar(operand):
            return NotImplemented
        apply_update(op, self, operand)
        return self

    # ---- Arithmetic operators ----
    def __add__(self, other):
        return self._binary("ADD", other)

    def __radd__(self, other):
        return self._binary("ADD", other, reflected=True)

    def __sub__(self, other):
        return self._binary("SUB", other)

    def __rsub__(self, other):
        return self._binary("SUB", other, reflected=True)

    def __mul__(self, other):
        return self._binary("MUL_SCALAR", other)

    def __rmul__(self, other):
        # scalar * v scales like v * scalar
        if self._is_scalar(other):
            return self._binary("MUL_SCALAR", other)
        return self._binary("MUL_SCALAR", other, reflected=True)

    def __truediv__(self, other):
        return self._binary("DIV", other)

    def __rtruediv__(self, other):
        return self._binary("DIV", other, reflected=True)

    def __mod__(self, other):
        return self._binary("MOD", other)

    def __rmod__(self, other):
        return self._binary("MOD", other, reflected=True)

    def __pow__(self, other):
        return self._binary("POW", other)

    def __rpow__(self, other):
        return self._binary("POW", other, reflected=True)

    def __matmul__(self, other):
        return self._binary("MUL_INNER", other)

    def __rmatmul__(self, other):
        return self._binary("MUL_INNER", other, reflected=True)

    def __neg__(self):
        from .operators import negate
        return negate(self)

    # ---- In-place operators (mutating) ----
    def __iadd__(self, other):
        return self._update("ADD", other)

    def __isub__(self, other):
        return self._update("SUB", other)

    def __imul__(self, other):
        return self._update("MUL_SCALAR", other)

    def __itruediv__(self, other):
        return self._update("DIV", other)

    def __imod__(self, other):
        return self._update("MOD", other)

    def __ipow__(self, other):
        return self._update("POW", other)

    def assign(self, other):
        """Overwrite every element with the corresponding one of ``other``."""
        result = self._update("SET", other)
        if result is NotImplemented:
            raise TypeError(f"Cannot assign {type(other).__name__} to {type(self).__name__}.")
        return result
