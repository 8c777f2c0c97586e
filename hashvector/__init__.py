"""hashvector - Sparse hash-backed vectors with dense-vector operators
==================================================================
`hashvector` provides `HashVector`, a fixed-length sparse vector stored in an
open-addressed hash table, and a registry of arithmetic operators between it
and `DenseVector`, a strided view over a NumPy array. Operators are resolved
by (operator kind, operand types, element kind), once, and then called
directly.

License : MIT
Version : 0.1.0
"""

from .dense import (
    DenseVector,
)
from .errors import (
    DimensionMismatchError,
    IndexOutOfRangeError,
    UnsupportedOperatorError,
)
from .kinds import (
    BIGINT,
    COMPLEX,
    DOUBLE,
    ELEMENT_KINDS,
    FLOAT,
    INT,
    LONG,
    ElementKind,
    kind_of,
)
from .operators import (
    OpKind,
    apply_binary,
    apply_update,
    binary_op_for,
    copy_vector,
    dot,
    map_pairs,
    map_values,
    negate,
    pure_from_update,
    registered_operators,
    unary_op_for,
    update_op_for,
    zip_map_values,
)
from .storage import (
    OpenAddressHashArray,
)
from .vector import (
    HashVector,
)

__all__ = [
    "HashVector",
    "DenseVector",
    "OpenAddressHashArray",
    "ElementKind",
    "INT",
    "LONG",
    "FLOAT",
    "DOUBLE",
    "BIGINT",
    "COMPLEX",
    "ELEMENT_KINDS",
    "kind_of",
    "OpKind",
    "binary_op_for",
    "update_op_for",
    "unary_op_for",
    "apply_binary",
    "apply_update",
    "pure_from_update",
    "registered_operators",
    "dot",
    "negate",
    "copy_vector",
    "map_values",
    "map_pairs",
    "zip_map_values",
    "IndexOutOfRangeError",
    "DimensionMismatchError",
    "UnsupportedOperatorError",
]
