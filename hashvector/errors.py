"""
hashvector: Exceptions
----------------------
Contract violations reported by vectors and the operator registry. Each class
subclasses the builtin exception NumPy-style code already expects, so callers
catching ``IndexError`` / ``ValueError`` / ``TypeError`` keep working.
"""

__all__ = [
    "IndexOutOfRangeError",
    "DimensionMismatchError",
    "UnsupportedOperatorError",
]


class IndexOutOfRangeError(IndexError):
    """Index outside ``[0, length)``."""

    def __init__(self, index: int, length: int) -> None:
        super().__init__(f"Index {index} out of range for vector of length {length}.")
        self.index = index
        self.length = length


class DimensionMismatchError(ValueError):
    """Two operands of a length-sensitive operator have different lengths."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have the same length: {left} vs {right}.")
        self.left = left
        self.right = right


class UnsupportedOperatorError(TypeError):
    """No operator is registered for the requested combination."""
