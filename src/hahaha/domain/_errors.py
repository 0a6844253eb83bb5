"""
Error taxonomy for hahaha.

Every failure raised by the tensor core derives from `HahahaError` and from the
closest builtin exception, so calling code can either catch the whole family
or keep using the builtin it already expects (e.g. `ValueError` for shape
problems, `IndexError` for element access).

All of these are local, synchronous failures: the operation that raised did
not mutate its operands, and the caller decides whether to abort, skip, or
log-and-continue.
"""

from __future__ import annotations

from typing import Sequence


class HahahaError(Exception):
    """
    Base class for all errors raised by the tensor and autograd core.
    """


class ShapeError(HahahaError, ValueError):
    """
    Raised when operand shapes are incompatible for the requested operation.

    Typical causes are elementwise operations on different shapes, a matmul
    inner-dimension mismatch, transpose/matmul on non-2D operands, or a
    reshape whose total size differs from the source.

    Attributes
    ----------
    op : str
        Name of the operation that rejected the shapes.
    shapes : tuple[tuple[int, ...], ...]
        The offending shapes, in operand order.
    """

    def __init__(self, op: str, message: str, *shapes: Sequence[int]) -> None:
        """
        Initialize the ShapeError.

        Parameters
        ----------
        op : str
            Operation name (e.g., "add", "matmul", "reshape").
        message : str
            Human-readable reason.
        *shapes : Sequence[int]
            Shapes involved in the failed operation.
        """
        super().__init__(f"{op}: {message}")
        self.op = op
        self.shapes = tuple(tuple(int(d) for d in s) for s in shapes)


class TensorIndexError(HahahaError, IndexError):
    """
    Raised when multi-index element access has the wrong arity or an
    out-of-range component.
    """


class DivisionByZeroError(HahahaError, ZeroDivisionError):
    """
    Raised when an elementwise division meets an exact-zero divisor.

    Attributes
    ----------
    index : int
        Flat (row-major) index of the first zero divisor.
    """

    def __init__(self, index: int) -> None:
        super().__init__(f"Division by zero at flat index {index}")
        self.index = int(index)


class OwnershipError(HahahaError, RuntimeError):
    """
    Raised when a `SharedTensorHandle` role is claimed twice or released
    while not held.

    Attributes
    ----------
    role : str
        Either "variable" or "node".
    """

    def __init__(self, role: str, message: str) -> None:
        super().__init__(f"[{role}] {message}")
        self.role = role


class GraphConstructionError(HahahaError, ValueError):
    """
    Raised when a derived graph node is constructed with the `Operator.NONE`
    sentinel, or a leaf is given parents.
    """


class DeviceNotSupportedError(HahahaError, RuntimeError):
    """
    Raised when a tensor operation is requested on a device backend
    that is not implemented.

    Attributes
    ----------
    op : str
        The name of the operation that was attempted (e.g., "add", "mul").
    device : str
        String representation of the device on which the operation
        was attempted.
    """

    def __init__(self, op: str, device: str) -> None:
        super().__init__(f"{op} is not implemented for device '{device}'.")
        self.op = op
        self.device = device


class DeviceMismatchError(HahahaError, RuntimeError):
    """
    Raised when an operation is attempted between buffers on different devices.
    """

    def __init__(self, device_a: str, device_b: str) -> None:
        super().__init__(f"Device mismatch: '{device_a}' vs '{device_b}'.")
        self.device_a = device_a
        self.device_b = device_b
