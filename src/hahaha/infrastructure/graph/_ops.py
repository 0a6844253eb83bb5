"""
Differentiable operator library.

Every function here takes `GraphNode` operands, computes the forward value
with the matching `TensorBuffer` method (whose errors propagate unchanged) and
returns a new `GraphNode` carrying the operator tag and a gradient closure.

Binary operators also accept a plain number on either side. The number is
first materialized as a zero-dimensional, non-differentiable leaf on the same
device and dtype as the tensor operand, so every graph edge joins two nodes.

Gradient rules (`g` is the gradient flowing into the output `z`)
-----------------------------------------------------------------
- add:       dx = g,            dy = g
- sub:       dx = g,            dy = -g
- mul:       dx = g * y,        dy = g * x
- div:       dx = g / y,        dy = -g * x / y^2
- matmul:    dX = g @ Y^T,      dY = X^T @ g
- reshape / flatten: dx = reshape(g, x.shape)
- transpose: dx = g^T
- sum:       dx = g broadcast to x.shape
- mean:      dx = g / n broadcast to x.shape
- exp:       dx = g * z
- log:       dx = g / x
- tanh:      dx = g * (1 - z^2)
- sigmoid:   dx = g * z * (1 - z)
- relu:      dx = g * [x > 0]

When one operand of an elementwise op holds a single element, its
contribution is reduced with `sum()`, since that element was combined with
every element of the other operand.
"""

from __future__ import annotations

import weakref
from typing import Optional, Sequence, Union

import numpy as np

from ...domain._errors import ShapeError
from ...domain._operator import Operator
from ..tensor._tensor_buffer import TensorBuffer
from ._graph_node import GraphNode

Number = Union[int, float]
Operand = Union[GraphNode, Number]


def create_scalar_node(value: Number, like: GraphNode) -> GraphNode:
    """
    Materialize a number as a 0-d constant leaf matching `like`'s dtype and
    device.
    """
    ref = like.value
    buf = TensorBuffer.scalar(value, dtype=ref.dtype, device=ref.device)
    return GraphNode.leaf(buf, requires_grad=False)


def _operands(x: Operand, y: Operand, op: str) -> tuple[GraphNode, GraphNode]:
    x_is_node = isinstance(x, GraphNode)
    y_is_node = isinstance(y, GraphNode)
    if x_is_node and y_is_node:
        return x, y
    if x_is_node and is_number(y):
        return x, create_scalar_node(y, x)
    if y_is_node and is_number(x):
        return create_scalar_node(x, y), y
    raise TypeError(
        f"{op} expects GraphNode operands (one side may be a number), "
        f"got {type(x).__name__} and {type(y).__name__}"
    )


def is_number(v: object) -> bool:
    """Plain numeric literal; bools are excluded."""
    return isinstance(v, (int, float, np.number)) and not isinstance(v, bool)


def _reduce_to(parent: GraphNode, g: TensorBuffer) -> TensorBuffer:
    """
    Fit a gradient contribution to `parent`'s shape.
    """
    shape = parent.value.shape
    if g.shape == shape:
        return g
    if parent.value.size() == 1:
        return TensorBuffer.full(shape, g.sum(), dtype=g.dtype, device=g.device)
    raise ShapeError(
        "backward", "cannot reduce gradient to operand shape", shape, g.shape
    )


def _needs(node: GraphNode) -> bool:
    return node.requires_grad


# ----------------------------------------------------------------------
# Elementwise binary
# ----------------------------------------------------------------------
def add(x: Operand, y: Operand) -> GraphNode:
    a, b = _operands(x, y, "add")
    out = a.value.add(b.value)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (
            _reduce_to(a, g) if _needs(a) else None,
            _reduce_to(b, g) if _needs(b) else None,
        )

    return GraphNode.binary(a, b, out, Operator.ADD, grad_fn)


def sub(x: Operand, y: Operand) -> GraphNode:
    a, b = _operands(x, y, "sub")
    out = a.value.subtract(b.value)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (
            _reduce_to(a, g) if _needs(a) else None,
            _reduce_to(b, -g) if _needs(b) else None,
        )

    return GraphNode.binary(a, b, out, Operator.SUB, grad_fn)


def mul(x: Operand, y: Operand) -> GraphNode:
    a, b = _operands(x, y, "mul")
    out = a.value.multiply(b.value)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (
            _reduce_to(a, g.multiply(b.value)) if _needs(a) else None,
            _reduce_to(b, g.multiply(a.value)) if _needs(b) else None,
        )

    return GraphNode.binary(a, b, out, Operator.MUL, grad_fn)


def div(x: Operand, y: Operand) -> GraphNode:
    """
    Elementwise quotient.

    Raises
    ------
    DivisionByZeroError
        If any element of the divisor is exactly zero.
    """
    a, b = _operands(x, y, "div")
    out = a.value.divide(b.value)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        ga = gb = None
        if _needs(a):
            ga = _reduce_to(a, g.divide(b.value))
        if _needs(b):
            gb = _reduce_to(b, -(g.multiply(a.value).divide(b.value.square())))
        return ga, gb

    return GraphNode.binary(a, b, out, Operator.DIV, grad_fn)


def neg(x: GraphNode) -> GraphNode:
    """
    Negation, recorded as multiplication by -1.
    """
    return mul(x, -1)


# ----------------------------------------------------------------------
# Matrix / structural
# ----------------------------------------------------------------------
def matmul(x: GraphNode, y: GraphNode) -> GraphNode:
    """
    2-D matrix product.

    Raises
    ------
    ShapeError
        If either operand is not 2-D or the inner dimensions differ.
    """
    a, b = _operands(x, y, "matmul")
    out = a.value.matmul(b.value)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (
            g.matmul(b.value.transpose()) if _needs(a) else None,
            a.value.transpose().matmul(g) if _needs(b) else None,
        )

    return GraphNode.binary(a, b, out, Operator.MATMUL, grad_fn)


def _reshape_as(x: GraphNode, shape, operator: Operator) -> GraphNode:
    src_shape = x.value.shape
    out = x.value.reshape(shape)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (g.reshape(src_shape),)

    return GraphNode.unary(x, out, operator, grad_fn)


def reshape(x: GraphNode, shape) -> GraphNode:
    """
    Reinterpret `x` under a new shape with the same element count.
    """
    return _reshape_as(x, shape, Operator.RESHAPE)


def flatten(x: GraphNode) -> GraphNode:
    """
    Reshape `x` to one dimension.
    """
    return _reshape_as(x, (x.value.size(),), Operator.FLATTEN)


def transpose(x: GraphNode) -> GraphNode:
    out = x.value.transpose()

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (g.transpose(),)

    return GraphNode.unary(x, out, Operator.TRANSPOSE, grad_fn)


# ----------------------------------------------------------------------
# Reductions
# ----------------------------------------------------------------------
def sum(x: GraphNode) -> GraphNode:  # noqa: A001
    """
    Sum of all elements as a 0-d node.
    """
    src = x.value
    shape = src.shape
    out = TensorBuffer.scalar(src.sum(), dtype=src.dtype, device=src.device)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (TensorBuffer.full(shape, g.item(), dtype=g.dtype, device=g.device),)

    return GraphNode.unary(x, out, Operator.SUM, grad_fn)


def mean(x: GraphNode) -> GraphNode:
    """
    Arithmetic mean of all elements as a 0-d node.
    """
    src = x.value
    shape, n = src.shape, src.size()
    out = TensorBuffer.scalar(src.mean(), dtype=src.dtype, device=src.device)

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (
            TensorBuffer.full(shape, g.item() / n, dtype=g.dtype, device=g.device),
        )

    return GraphNode.unary(x, out, Operator.MEAN, grad_fn)


# ----------------------------------------------------------------------
# Elementwise unary
# ----------------------------------------------------------------------
def exp(x: GraphNode) -> GraphNode:
    out_ref: Optional[weakref.ref] = None

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (g.multiply(out_ref().value),)

    node = GraphNode.unary(x, x.value.exp(), Operator.EXP, grad_fn)
    out_ref = weakref.ref(node)
    return node


def log(x: GraphNode) -> GraphNode:
    """
    Natural logarithm.

    Raises
    ------
    ValueError
        If any element of `x` is not strictly positive.
    """
    out = x.value.log()

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (g.divide(x.value),)

    return GraphNode.unary(x, out, Operator.LOG, grad_fn)


def tanh(x: GraphNode) -> GraphNode:
    out_ref: Optional[weakref.ref] = None

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        z = out_ref().value
        return (g.multiply(z.square().subtract_from(1)),)

    node = GraphNode.unary(x, x.value.tanh(), Operator.TANH, grad_fn)
    out_ref = weakref.ref(node)
    return node


def sigmoid(x: GraphNode) -> GraphNode:
    out_ref: Optional[weakref.ref] = None

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        z = out_ref().value
        return (g.multiply(z).multiply(z.subtract_from(1)),)

    node = GraphNode.unary(x, x.value.sigmoid(), Operator.SIGMOID, grad_fn)
    out_ref = weakref.ref(node)
    return node


def relu(x: GraphNode) -> GraphNode:
    out = x.value.relu()

    def grad_fn(g: TensorBuffer) -> Sequence[Optional[TensorBuffer]]:
        return (g.multiply(x.value.relu_mask()),)

    return GraphNode.unary(x, out, Operator.RELU, grad_fn)
