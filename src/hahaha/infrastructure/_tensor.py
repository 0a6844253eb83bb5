"""
User-facing differentiable tensor.

`Tensor` combines a `SharedTensorHandle` (variable-side role) with a
`GraphNode` that shares the same handle (node-side role). Arithmetic goes
through the operator library and wraps each resulting node in a new facade.

Because a leaf facade and its node share one buffer, in-place updates made
through `Tensor.data` (as optimizers do) are seen by every graph built from
that tensor afterwards.
"""

from __future__ import annotations

import weakref
from typing import Any, Optional, Sequence, Union

import numpy as np

from ..domain._errors import OwnershipError
from .graph import ops
from .graph._graph_node import GraphNode
from .tensor._shared_handle import SharedTensorHandle
from .tensor._tensor_buffer import TensorBuffer

Number = Union[int, float]


def _to_buffer(data: Any, shape: Optional[Sequence[int]], dtype: Any) -> TensorBuffer:
    if data is None:
        return TensorBuffer(() if shape is None else shape, dtype=dtype)
    if isinstance(data, TensorBuffer):
        buf = data.copy()
    elif isinstance(data, np.ndarray):
        buf = TensorBuffer.from_numpy(data, dtype=dtype)
    else:
        buf = TensorBuffer.from_nested(data, dtype=dtype)
    if shape is not None:
        buf = buf.reshape(shape)
    return buf


class Tensor:
    """
    Differentiable tensor facade.

    Parameters
    ----------
    data : number | nested list | numpy.ndarray | TensorBuffer, optional
        Initial contents. A `TensorBuffer` is copied. When omitted, a
        zero-filled tensor of `shape` is created.
    shape : Sequence[int], optional
        Shape of a zero-filled tensor, or the shape to reshape `data` into.
    requires_grad : bool, optional
        Whether gradients should be accumulated for this tensor.
    dtype : numpy dtype, optional
        Element type. Defaults to float32.
    """

    def __init__(
        self,
        data: Any = None,
        *,
        shape: Optional[Sequence[int]] = None,
        requires_grad: bool = False,
        dtype: Any = np.float32,
    ) -> None:
        buf = _to_buffer(data, shape, dtype)
        handle = SharedTensorHandle(buf)
        node = GraphNode.leaf(handle, requires_grad=requires_grad)
        self._attach(handle, node)

    def _attach(self, handle: SharedTensorHandle, node: GraphNode) -> None:
        handle.ref_by_var()
        self._handle = handle
        self._node = node
        self._released = False
        self._finalizer = weakref.finalize(self, handle.unref_by_var)

    @classmethod
    def from_node(cls, node: GraphNode) -> "Tensor":
        """
        Wrap an existing graph node, claiming the variable-side role of its
        value handle.
        """
        obj = cls.__new__(cls)
        obj._attach(node.handle, node)
        return obj

    # ------------------------------------------------------------------
    # Storage and metadata
    # ------------------------------------------------------------------
    @property
    def node(self) -> GraphNode:
        return self._node

    @property
    def data(self) -> TensorBuffer:
        """
        The live buffer behind this tensor.

        Raises
        ------
        OwnershipError
            If the tensor has been released.
        """
        if self._released:
            raise OwnershipError("variable", "data accessed after release")
        return self._handle.buffer

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    @property
    def device(self):
        return self.data.device

    def dim(self) -> int:
        return self.data.dim()

    @property
    def size(self) -> int:
        return self.data.size()

    def at(self, indices: Sequence[int]) -> Number:
        return self.data.at(indices)

    def item(self) -> Number:
        return self.data.item()

    def to_numpy(self) -> np.ndarray:
        return self.data.to_numpy()

    def tolist(self) -> Any:
        return self.data.tolist()

    def __repr__(self) -> str:
        if self._released:
            return "Tensor(released)"
        return (
            f"Tensor(shape={self.shape}, dtype={self.dtype}, "
            f"requires_grad={self.requires_grad}, operator={self._node.operator})"
        )

    # ------------------------------------------------------------------
    # Autograd
    # ------------------------------------------------------------------
    @property
    def requires_grad(self) -> bool:
        return self._node.requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._node.requires_grad = value

    @property
    def grad(self) -> Optional["Tensor"]:
        """
        A new non-differentiable tensor holding a copy of the accumulated
        gradient, or None.
        """
        g = self._node.grad
        if g is None:
            return None
        return Tensor(g)

    def grad_buffer(self) -> Optional[TensorBuffer]:
        """
        The live accumulated gradient buffer, or None.
        """
        return self._node.grad

    def backward(self, grad: Optional[Union["Tensor", TensorBuffer]] = None) -> None:
        """
        Run reverse-mode differentiation from this tensor.

        Parameters
        ----------
        grad : Tensor | TensorBuffer, optional
            Seed gradient; defaults to ones shaped like this tensor.
        """
        if isinstance(grad, Tensor):
            grad = grad.data
        self._node.backward(grad)

    def clear_grad(self) -> None:
        """
        Reset gradients of this tensor and everything it was computed from.
        """
        self._node.clear_grad()

    def release(self) -> None:
        """
        Give up the variable-side role on the buffer handle. Idempotent.
        """
        if not self._released:
            self._released = True
            self._finalizer()

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------
    @staticmethod
    def _operand(other: Any) -> Any:
        """
        Graph-side form of `other`, or NotImplemented for unsupported types.
        """
        if isinstance(other, Tensor):
            return other._node
        if ops.is_number(other):
            return other
        return NotImplemented

    def _wrap(self, node: GraphNode) -> "Tensor":
        return Tensor.from_node(node)

    def _binary(self, fn, other: Any, *, reflected: bool = False):
        rhs = self._operand(other)
        if rhs is NotImplemented:
            return NotImplemented
        if reflected:
            return self._wrap(fn(rhs, self._node))
        return self._wrap(fn(self._node, rhs))

    def __add__(self, other) -> "Tensor":
        return self._binary(ops.add, other)

    def __radd__(self, other) -> "Tensor":
        return self._binary(ops.add, other, reflected=True)

    def __sub__(self, other) -> "Tensor":
        return self._binary(ops.sub, other)

    def __rsub__(self, other) -> "Tensor":
        return self._binary(ops.sub, other, reflected=True)

    def __mul__(self, other) -> "Tensor":
        return self._binary(ops.mul, other)

    def __rmul__(self, other) -> "Tensor":
        return self._binary(ops.mul, other, reflected=True)

    def __truediv__(self, other) -> "Tensor":
        return self._binary(ops.div, other)

    def __rtruediv__(self, other) -> "Tensor":
        return self._binary(ops.div, other, reflected=True)

    def __neg__(self) -> "Tensor":
        return self._wrap(ops.neg(self._node))

    def __matmul__(self, other: "Tensor") -> "Tensor":
        if not isinstance(other, Tensor):
            return NotImplemented
        return self.matmul(other)

    def matmul(self, other: "Tensor") -> "Tensor":
        if not isinstance(other, Tensor):
            raise TypeError(f"matmul expects a Tensor, got {type(other).__name__}")
        return self._wrap(ops.matmul(self._node, other._node))

    def reshape(self, *shape) -> "Tensor":
        if len(shape) == 1 and isinstance(shape[0], (tuple, list)):
            shape = tuple(shape[0])
        return self._wrap(ops.reshape(self._node, shape))

    def flatten(self) -> "Tensor":
        return self._wrap(ops.flatten(self._node))

    def transpose(self) -> "Tensor":
        return self._wrap(ops.transpose(self._node))

    @property
    def T(self) -> "Tensor":
        return self.transpose()

    def sum(self) -> "Tensor":
        return self._wrap(ops.sum(self._node))

    def mean(self) -> "Tensor":
        return self._wrap(ops.mean(self._node))

    def exp(self) -> "Tensor":
        return self._wrap(ops.exp(self._node))

    def log(self) -> "Tensor":
        return self._wrap(ops.log(self._node))

    def tanh(self) -> "Tensor":
        return self._wrap(ops.tanh(self._node))

    def sigmoid(self) -> "Tensor":
        return self._wrap(ops.sigmoid(self._node))

    def relu(self) -> "Tensor":
        return self._wrap(ops.relu(self._node))
