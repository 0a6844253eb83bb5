"""
Dense N-dimensional tensor storage (NumPy CPU backend).

`TensorBuffer` is a pure value type: a flat, row-major, C-contiguous NumPy
array of a fixed dtype together with a shape and its derived stride. It knows
nothing about computation graphs; the graph layer wraps buffers in
`SharedTensorHandle`s and `GraphNode`s.

Design notes
------------
- Storage is always 1-D. Shape/stride are metadata, so reshape only swaps
  metadata over a copy of the same flat data.
- Binary elementwise operations require equal shapes. The only implicit
  expansion is the single-element path: a buffer with exactly one element
  combines with every element of the other operand. Different shapes with
  the same element count are rejected with `ShapeError`.
- Every operation validates before it allocates or mutates, so a failed call
  leaves both operands untouched.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from ...domain._errors import (
    DeviceMismatchError,
    DeviceNotSupportedError,
    DivisionByZeroError,
    ShapeError,
    TensorIndexError,
)
from ...domain._tensor import ITensorBuffer
from ...domain.device._device import Device
from ._shape import (
    flatten_nested,
    infer_nested_shape,
    normalize_shape,
    numel,
    resolve_reshape,
    row_major_stride,
)

Number = Union[int, float]


def _check_dtype(dtype: Any) -> np.dtype:
    dt = np.dtype(dtype)
    if dt == np.bool_ or not (
        np.issubdtype(dt, np.floating) or np.issubdtype(dt, np.integer)
    ):
        raise TypeError(f"TensorBuffer supports integer and floating dtypes, got {dt}")
    return dt


def _check_device(device: Optional[Device], op: str) -> Device:
    d = device if device is not None else Device("cpu")
    if not d.is_supported:
        raise DeviceNotSupportedError(op=op, device=str(d))
    return d


class TensorBuffer(ITensorBuffer):
    """
    Dense row-major tensor of a single numeric dtype.

    Parameters
    ----------
    shape : int | Sequence[int], optional
        Tensor shape. `()` (the default) is a one-element scalar.
    fill : Number, optional
        Initial value of every element. Defaults to 0.
    dtype : numpy dtype, optional
        Element type. Defaults to float32.
    device : Device, optional
        Placement. Only CPU is implemented.

    Notes
    -----
    - `len(flat data) == numel(shape)` and `stride == row_major_stride(shape)`
      hold for every instance.
    - Copying (`copy()`, `copy.copy`, `copy.deepcopy`) duplicates the data.
      `move()` hands the storage to a new buffer and resets this one.
    """

    def __init__(
        self,
        shape: Union[int, Sequence[int]] = (),
        *,
        fill: Number = 0,
        dtype: Any = np.float32,
        device: Optional[Device] = None,
    ) -> None:
        self._device = _check_device(device, "allocate")
        self._dtype = _check_dtype(dtype)
        self._shape = normalize_shape(shape)
        self._stride = row_major_stride(self._shape)
        self._data = np.full(numel(self._shape), fill, dtype=self._dtype)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def _wrap(
        cls, flat: np.ndarray, shape: tuple[int, ...], device: Device
    ) -> "TensorBuffer":
        """
        Adopt an already-validated flat array without copying.
        """
        obj = cls.__new__(cls)
        obj._device = device
        obj._dtype = flat.dtype
        obj._shape = shape
        obj._stride = row_major_stride(shape)
        obj._data = flat
        return obj

    @classmethod
    def from_flat(
        cls,
        shape: Union[int, Sequence[int]],
        flat: Sequence[Number],
        *,
        dtype: Any = np.float32,
        device: Optional[Device] = None,
    ) -> "TensorBuffer":
        """
        Build a buffer from a shape and row-major flat data.

        Raises
        ------
        ShapeError
            If `len(flat) != numel(shape)`.
        """
        dev = _check_device(device, "from_flat")
        dt = _check_dtype(dtype)
        shp = normalize_shape(shape)
        arr = np.array(flat, dtype=dt).reshape(-1)
        if arr.size != numel(shp):
            raise ShapeError(
                "from_flat",
                f"got {arr.size} elements for shape {shp} ({numel(shp)} expected)",
                shp,
            )
        return cls._wrap(np.ascontiguousarray(arr), shp, dev)

    @classmethod
    def scalar(
        cls, value: Number, *, dtype: Any = np.float32, device: Optional[Device] = None
    ) -> "TensorBuffer":
        """
        Build a zero-dimensional buffer holding `value`.
        """
        return cls((), fill=value, dtype=dtype, device=device)

    @classmethod
    def from_nested(
        cls,
        literal: Any,
        *,
        dtype: Any = np.float32,
        device: Optional[Device] = None,
    ) -> "TensorBuffer":
        """
        Build a buffer from a nested list/tuple literal, inferring the shape.

        Raises
        ------
        ShapeError
            If the literal is jagged.
        """
        shape = infer_nested_shape(literal)
        return cls.from_flat(shape, flatten_nested(literal), dtype=dtype, device=device)

    @classmethod
    def from_numpy(
        cls, arr: Any, *, dtype: Any = None, device: Optional[Device] = None
    ) -> "TensorBuffer":
        """
        Copy a NumPy array (or array-like) into a new buffer.
        """
        a = np.asarray(arr)
        dt = _check_dtype(dtype if dtype is not None else a.dtype)
        return cls.from_flat(a.shape, a.reshape(-1), dtype=dt, device=device)

    @classmethod
    def zeros(cls, shape, *, dtype: Any = np.float32, device=None) -> "TensorBuffer":
        return cls(shape, fill=0, dtype=dtype, device=device)

    @classmethod
    def ones(cls, shape, *, dtype: Any = np.float32, device=None) -> "TensorBuffer":
        return cls(shape, fill=1, dtype=dtype, device=device)

    @classmethod
    def full(
        cls, shape, value: Number, *, dtype: Any = np.float32, device=None
    ) -> "TensorBuffer":
        return cls(shape, fill=value, dtype=dtype, device=device)

    def zeros_like(self) -> "TensorBuffer":
        return TensorBuffer(self._shape, fill=0, dtype=self._dtype, device=self._device)

    def ones_like(self) -> "TensorBuffer":
        return TensorBuffer(self._shape, fill=1, dtype=self._dtype, device=self._device)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def stride(self) -> tuple[int, ...]:
        return self._stride

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def device(self) -> Device:
        return self._device

    @property
    def is_floating(self) -> bool:
        return bool(np.issubdtype(self._dtype, np.floating))

    def dim(self) -> int:
        return len(self._shape)

    def size(self) -> int:
        return int(self._data.size)

    def __len__(self) -> int:
        if not self._shape:
            raise TypeError("len() of a 0-d TensorBuffer")
        return self._shape[0]

    def __repr__(self) -> str:
        return (
            f"TensorBuffer(shape={self._shape}, dtype={self._dtype}, "
            f"device={self._device})"
        )

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------
    def _offset(self, indices: Sequence[int]) -> int:
        """
        Compute the flat offset of a multi-index as `sum(index * stride)`.

        Raises
        ------
        TensorIndexError
            On arity mismatch or an out-of-range component.
        """
        if isinstance(indices, (int, np.integer)):
            indices = (indices,)
        idx = tuple(indices)
        if len(idx) != len(self._shape):
            raise TensorIndexError(
                f"Dimension mismatch: expected {len(self._shape)} indices, "
                f"got {len(idx)}"
            )
        offset = 0
        for axis, (i, extent, step) in enumerate(zip(idx, self._shape, self._stride)):
            if isinstance(i, bool) or not isinstance(i, (int, np.integer)):
                raise TensorIndexError(f"Index {i!r} at dimension {axis} is not an int")
            if i < 0 or i >= extent:
                raise TensorIndexError(
                    f"Index {i} out of bounds at dimension {axis} (extent {extent})"
                )
            offset += int(i) * step
        return offset

    def at(self, indices: Sequence[int]) -> Number:
        """
        Return the element at a full multi-index as a Python number.
        """
        return self._data[self._offset(indices)].item()

    def set(self, indices: Sequence[int], value: Number) -> None:
        """
        Write the element at a full multi-index.
        """
        self._data[self._offset(indices)] = value

    def item(self) -> Number:
        """
        Return the single element of a one-element buffer.
        """
        if self._data.size != 1:
            raise ShapeError("item", "buffer must hold exactly one element", self._shape)
        return self._data[0].item()

    # ------------------------------------------------------------------
    # Read-only access for collaborators
    # ------------------------------------------------------------------
    def flat_view(self) -> np.ndarray:
        """
        Return a non-writeable view over the flat, row-major data.
        """
        view = self._data.view()
        view.flags.writeable = False
        return view

    def to_numpy(self) -> np.ndarray:
        """
        Return a shaped copy of the data.
        """
        return self._data.reshape(self._shape).copy()

    def tolist(self) -> Any:
        return self._data.reshape(self._shape).tolist()

    # ------------------------------------------------------------------
    # Copy / move
    # ------------------------------------------------------------------
    def copy(self) -> "TensorBuffer":
        """
        Return a deep duplicate of this buffer.
        """
        return TensorBuffer._wrap(self._data.copy(), self._shape, self._device)

    __copy__ = copy

    def __deepcopy__(self, memo: dict) -> "TensorBuffer":
        return self.copy()

    def move(self) -> "TensorBuffer":
        """
        Transfer the storage to a new buffer and reset this one to the
        default zero scalar.
        """
        moved = TensorBuffer._wrap(self._data, self._shape, self._device)
        self._shape = ()
        self._stride = ()
        self._data = np.zeros(1, dtype=self._dtype)
        return moved

    # ------------------------------------------------------------------
    # In-place mutation
    # ------------------------------------------------------------------
    def fill(self, value: Number) -> None:
        self._data[...] = value

    def clear(self) -> None:
        """
        Zero all elements in place.
        """
        self._data[...] = 0

    def _inplace_operand(self, other: Any, op: str) -> Any:
        if isinstance(other, TensorBuffer):
            self._check_same_device(other)
            if other._shape != self._shape:
                raise ShapeError(op, "shapes must match", self._shape, other._shape)
            return other._data
        if isinstance(other, (int, float, np.number)):
            return other
        raise TypeError(f"Unsupported operand type for {op}: {type(other)!r}")

    def add_(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        rhs = self._inplace_operand(other, "add_")
        self._data[...] = self._data + rhs
        return self

    def sub_(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        rhs = self._inplace_operand(other, "sub_")
        self._data[...] = self._data - rhs
        return self

    def mul_(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        rhs = self._inplace_operand(other, "mul_")
        self._data[...] = self._data * rhs
        return self

    def axpy(self, alpha: Number, x: "TensorBuffer") -> None:
        """
        In-place `self += alpha * x` (the optimizer update primitive).
        """
        rhs = self._inplace_operand(x, "axpy")
        self._data[...] = self._data + alpha * rhs

    def copy_from(self, other: "TensorBuffer") -> None:
        """
        Overwrite this buffer's elements with `other`'s (same shape).
        """
        rhs = self._inplace_operand(other, "copy_from")
        self._data[...] = rhs

    # ------------------------------------------------------------------
    # Elementwise binary arithmetic
    # ------------------------------------------------------------------
    def _check_same_device(self, other: "TensorBuffer") -> None:
        if other._device != self._device:
            raise DeviceMismatchError(str(self._device), str(other._device))

    def _broadcast_operands(
        self, other: Union["TensorBuffer", Number], op: str
    ) -> tuple[Any, Any, tuple[int, ...]]:
        """
        Resolve the operands of an elementwise op and the result shape.

        Returns flat left/right operands (arrays or Python scalars) and the
        result shape.
        """
        if isinstance(other, (int, float, np.number)) and not isinstance(other, bool):
            return self._data, other, self._shape
        if not isinstance(other, TensorBuffer):
            raise TypeError(f"Unsupported operand type for {op}: {type(other)!r}")

        self._check_same_device(other)
        if self._shape == other._shape:
            return self._data, other._data, self._shape
        if other.size() == 1:
            keep_self = self.size() != 1 or self.dim() >= other.dim()
            shape = self._shape if keep_self else other._shape
            return self._data, other._data[0], shape
        if self.size() == 1:
            return self._data[0], other._data, other._shape
        raise ShapeError(
            op, "tensors must have the same shape", self._shape, other._shape
        )

    def _result(self, flat: Any, shape: tuple[int, ...]) -> "TensorBuffer":
        arr = np.asarray(flat).astype(self._dtype, copy=False).reshape(-1)
        if arr.size != numel(shape):
            arr = np.broadcast_to(arr, (numel(shape),))
        return TensorBuffer._wrap(np.ascontiguousarray(arr).copy(), shape, self._device)

    def _elementwise(
        self,
        other: Union["TensorBuffer", Number],
        op: str,
        kernel: Callable[[Any, Any], Any],
    ) -> "TensorBuffer":
        lhs, rhs, shape = self._broadcast_operands(other, op)
        return self._result(kernel(lhs, rhs), shape)

    def add(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        return self._elementwise(other, "add", np.add)

    def subtract(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        return self._elementwise(other, "subtract", np.subtract)

    def multiply(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        return self._elementwise(other, "multiply", np.multiply)

    def _divide_kernel(self, lhs: Any, rhs: Any) -> Any:
        zeros = np.flatnonzero(np.asarray(rhs).reshape(-1) == 0)
        if zeros.size:
            raise DivisionByZeroError(int(zeros[0]))
        if self.is_floating:
            return np.true_divide(lhs, rhs)
        # integer element types truncate toward zero
        return np.trunc(np.true_divide(lhs, rhs))

    def divide(self, other: Union["TensorBuffer", Number]) -> "TensorBuffer":
        """
        Elementwise division.

        Raises
        ------
        DivisionByZeroError
            If any divisor element is exactly zero.
        """
        return self._elementwise(other, "divide", self._divide_kernel)

    def subtract_from(self, scalar: Number) -> "TensorBuffer":
        """
        Return `scalar - self`.
        """
        return self._result(scalar - self._data, self._shape)

    def divide_into(self, scalar: Number) -> "TensorBuffer":
        """
        Return `scalar / self`.
        """
        return self._result(self._divide_kernel(scalar, self._data), self._shape)

    def __add__(self, other):
        return self.add(other)

    def __radd__(self, other):
        return self.add(other)

    def __sub__(self, other):
        return self.subtract(other)

    def __rsub__(self, other):
        return self.subtract_from(other)

    def __mul__(self, other):
        return self.multiply(other)

    def __rmul__(self, other):
        return self.multiply(other)

    def __truediv__(self, other):
        return self.divide(other)

    def __rtruediv__(self, other):
        return self.divide_into(other)

    def __neg__(self) -> "TensorBuffer":
        return self._result(-self._data, self._shape)

    def __matmul__(self, other: "TensorBuffer") -> "TensorBuffer":
        return self.matmul(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TensorBuffer):
            return NotImplemented
        return self.equals(other)

    __hash__ = None  # mutable value type

    def equals(self, other: "TensorBuffer") -> bool:
        """
        Exact equality of shape and data.
        """
        return self._shape == other._shape and bool(
            np.array_equal(self._data, other._data)
        )

    def allclose(
        self, other: "TensorBuffer", *, rtol: float = 1e-5, atol: float = 1e-6
    ) -> bool:
        return self._shape == other._shape and bool(
            np.allclose(self._data, other._data, rtol=rtol, atol=atol)
        )

    # ------------------------------------------------------------------
    # Elementwise unary kernels
    # ------------------------------------------------------------------
    def exp(self) -> "TensorBuffer":
        return self._result(np.exp(self._data), self._shape)

    def log(self) -> "TensorBuffer":
        if np.any(self._data <= 0):
            raise ValueError("log requires strictly positive elements")
        return self._result(np.log(self._data), self._shape)

    def tanh(self) -> "TensorBuffer":
        return self._result(np.tanh(self._data), self._shape)

    def sigmoid(self) -> "TensorBuffer":
        x = self._data.astype(np.float64)
        return self._result(1.0 / (1.0 + np.exp(-x)), self._shape)

    def relu(self) -> "TensorBuffer":
        return self._result(np.maximum(self._data, 0), self._shape)

    def relu_mask(self) -> "TensorBuffer":
        """
        Return 1 where the element is positive, else 0.
        """
        return self._result((self._data > 0).astype(self._dtype), self._shape)

    def square(self) -> "TensorBuffer":
        return self._result(self._data * self._data, self._shape)

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------
    def sum(self) -> Number:
        return self._data.sum(dtype=self._dtype).item()

    def mean(self) -> float:
        if self._data.size == 0:
            raise ShapeError("mean", "mean of an empty buffer", self._shape)
        return float(self._data.mean())

    def dot(self, other: "TensorBuffer") -> Number:
        """
        Return the sum of elementwise products of two equally shaped buffers.
        """
        self._check_same_device(other)
        if self._shape != other._shape:
            raise ShapeError("dot", "shapes must match", self._shape, other._shape)
        return np.dot(self._data, other._data).item()

    # ------------------------------------------------------------------
    # Structural ops
    # ------------------------------------------------------------------
    def reshape(self, new_shape: Union[int, Sequence[int]]) -> "TensorBuffer":
        """
        Return a copy with the same row-major data under a new shape.

        Raises
        ------
        ShapeError
            If the new shape's element count differs from `size()`.
        """
        resolved = resolve_reshape(self._shape, new_shape)
        return TensorBuffer._wrap(self._data.copy(), resolved, self._device)

    def matmul(self, other: "TensorBuffer") -> "TensorBuffer":
        """
        Dense 2-D matrix product: `out[i][j] = sum_k self[i][k] * other[k][j]`.

        Raises
        ------
        ShapeError
            If either operand is not 2-D or the inner dimensions differ.
        """
        if not isinstance(other, TensorBuffer):
            raise TypeError(f"matmul expects a TensorBuffer, got {type(other)!r}")
        self._check_same_device(other)
        if self.dim() != 2 or other.dim() != 2:
            raise ShapeError(
                "matmul", "only implemented for 2D tensors", self._shape, other._shape
            )
        rows, inner = self._shape
        inner_b, cols = other._shape
        if inner != inner_b:
            raise ShapeError(
                "matmul",
                f"matrix dimensions mismatch: ({rows}x{inner}) and ({inner_b}x{cols})",
                self._shape,
                other._shape,
            )
        out = self._data.reshape(rows, inner) @ other._data.reshape(inner, cols)
        return self._result(out, (rows, cols))

    def transpose(self) -> "TensorBuffer":
        """
        Swap the two axes of a 2-D buffer.

        Raises
        ------
        ShapeError
            If the buffer is not 2-D.
        """
        if self.dim() != 2:
            raise ShapeError("transpose", "requires a 2D tensor", self._shape)
        rows, cols = self._shape
        out = self._data.reshape(rows, cols).T
        return self._result(np.ascontiguousarray(out), (cols, rows))

    @property
    def T(self) -> "TensorBuffer":
        return self.transpose()
