"""
hashvector: Element Kinds
-------------------------
Descriptors for the numeric element kinds supported by ``HashVector`` and
``DenseVector``. Each kind fixes the NumPy dtype used for storage, the ring
constants ``zero`` / ``one`` and the elementwise kernels used by the operator
registry.

Public API
----------
- ``ElementKind``: frozen descriptor of a single kind.
- ``INT``, ``LONG``, ``FLOAT``, ``DOUBLE``, ``BIGINT``, ``COMPLEX``
- ``ELEMENT_KINDS``: all kinds, in registration order.
- ``kind_of``: infer the kind of a dtype, array or scalar.

Notes
-----
- ``BIGINT`` stores Python ``int`` objects in ``object`` arrays so values never
  overflow. NumPy ufuncs dispatch to the Python operators for such arrays.
- Integral kinds divide with floor division and raise ``ZeroDivisionError`` for
  a zero divisor in ``DIV`` or ``MOD``; floating and complex kinds use true
  division and follow IEEE semantics.
- ``MOD`` is not defined for ``COMPLEX`` and ``POW`` is not defined for
  ``BIGINT``; the corresponding kernels are ``None``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

__all__ = [
    "ElementKind",
    "INT",
    "LONG",
    "FLOAT",
    "DOUBLE",
    "BIGINT",
    "COMPLEX",
    "ELEMENT_KINDS",
    "kind_of",
]

Kernel = Callable[[np.ndarray, np.ndarray], np.ndarray]


def _assign(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Kernel for ``SET``: the right operand replaces the left one."""
    return np.array(b, copy=True)


def _integer_kernel(ufunc: np.ufunc) -> Kernel:
    """Wrap an integer division ufunc so a zero divisor raises ``ZeroDivisionError``."""
    def apply(a, b):
        with np.errstate(divide="raise"):
            try:
                return ufunc(a, b)
            except FloatingPointError as exc:
                raise ZeroDivisionError(f"integer {ufunc.__name__} by zero") from exc
    return apply


@dataclass(frozen=True)
class ElementKind:
    """Numeric element kind with its storage dtype and ring structure.

    Parameters
    ----------
    name : str
        Short identifier (``"int"``, ``"double"``, ...).
    dtype : numpy.dtype
        Storage dtype for arrays of this kind.
    integral : bool
        Whether division is floor division.
    supports_mod, supports_pow : bool
        Whether ``MOD`` / ``POW`` are defined for this kind.
    """

    name: str
    dtype: np.dtype
    integral: bool
    supports_mod: bool = True
    supports_pow: bool = True
    kernels: Dict[str, Optional[Kernel]] = field(default_factory=dict, init=False,
                                                 repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        # frozen dataclass: populate the kernel table through object.__setattr__
        div, mod = ((_integer_kernel(np.floor_divide), _integer_kernel(np.remainder))
                    if self.integral else (np.true_divide, np.remainder))
        table: Dict[str, Optional[Kernel]] = {
            "add": np.add,
            "sub": np.subtract,
            "mul": np.multiply,
            "div": div,
            "set": _assign,
            "mod": mod if self.supports_mod else None,
            "pow": np.power if self.supports_pow else None,
        }
        object.__setattr__(self, "kernels", table)

    # ---- Ring structure ----
    @property
    def zero(self) -> Any:
        """Additive identity, also the default value of sparse slots."""
        return self.cast(0)

    @property
    def one(self) -> Any:
        """Multiplicative identity."""
        return self.cast(1)

    def negate(self, value: Any) -> Any:
        """Additive inverse of ``value`` in this kind."""
        return self.cast(-value)

    def cast(self, value: Any) -> Any:
        """Convert ``value`` to a scalar of this kind.

        Raises
        ------
        TypeError
            If ``value`` cannot be represented (e.g. a complex number for a
            real kind).
        """
        if self.dtype == np.dtype(object):
            if isinstance(value, (complex, np.complexfloating)):
                raise TypeError(f"Cannot store {value!r} in a {self.name} vector.")
            return int(value)
        if np.iscomplexobj(value) and not np.issubdtype(self.dtype, np.complexfloating):
            raise TypeError(f"Cannot store {value!r} in a {self.name} vector.")
        return self.dtype.type(value)

    def kernel(self, name: str) -> Optional[Kernel]:
        """Return the elementwise kernel ``name`` or ``None`` if undefined."""
        return self.kernels[name]

    def empty(self, n: int) -> np.ndarray:
        """Return a length-``n`` array of this kind filled with ``zero``."""
        return np.full(n, self.zero, dtype=self.dtype)

    def __repr__(self) -> str:
        return f"ElementKind({self.name})"


INT = ElementKind("int", np.dtype(np.int32), integral=True)
LONG = ElementKind("long", np.dtype(np.int64), integral=True)
FLOAT = ElementKind("float", np.dtype(np.float32), integral=False)
DOUBLE = ElementKind("double", np.dtype(np.float64), integral=False)
BIGINT = ElementKind("bigint", np.dtype(object), integral=True, supports_pow=False)
COMPLEX = ElementKind("complex", np.dtype(np.complex128), integral=False, supports_mod=False)

ELEMENT_KINDS: Tuple[ElementKind, ...] = (INT, DOUBLE, FLOAT, LONG, BIGINT, COMPLEX)

_KIND_BY_DTYPE: Dict[np.dtype, ElementKind] = {k.dtype: k for k in ELEMENT_KINDS}


def kind_of(obj: Any) -> ElementKind:
    """Infer the element kind of a dtype, an array or a scalar.

    Python ``int`` maps to ``LONG`` unless it does not fit in 64 bits, in which
    case it maps to ``BIGINT``. Python ``float`` maps to ``DOUBLE`` and
    ``complex`` to ``COMPLEX``.

    Raises
    ------
    TypeError
        For booleans and dtypes with no matching kind.
    """
    if isinstance(obj, ElementKind):
        return obj
    if isinstance(obj, bool) or isinstance(obj, np.bool_):
        raise TypeError("Boolean values have no element kind.")
    if isinstance(obj, int):
        if np.iinfo(np.int64).min <= obj <= np.iinfo(np.int64).max:
            return LONG
        return BIGINT
    if isinstance(obj, np.dtype):
        dtype = obj
    elif isinstance(obj, type) and issubclass(obj, np.generic):
        dtype = np.dtype(obj)
    else:
        dtype = np.asarray(obj).dtype
    kind = _KIND_BY_DTYPE.get(dtype)
    if kind is None:
        raise TypeError(f"Unsupported element dtype {dtype}.")
    return kind
