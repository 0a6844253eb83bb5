"""
Computation-graph node and reverse-mode backward dispatch.

A `GraphNode` records one step of a forward computation: the value it
produced, the operator that produced it, the parent nodes it consumed and a
gradient closure. Leaves (inputs and parameters) carry `Operator.NONE`, no
parents and no closure.

Gradient closures follow a single contract: given the gradient flowing into the
node, return one gradient per parent, in parent order, or None for a parent
that does not need one. The closure never touches parent state itself; the
dispatch loop in `backward()` validates and accumulates what it returns.
"""

from __future__ import annotations

import logging
import weakref
from typing import Callable, List, Optional, Sequence, Union

from ...domain._errors import GraphConstructionError, OwnershipError, ShapeError
from ...domain._operator import Operator
from ..tensor._shared_handle import SharedTensorHandle
from ..tensor._tensor_buffer import TensorBuffer
from ._topo_sort import to_topo_list

logger = logging.getLogger(__name__)

GradFn = Callable[[TensorBuffer], Sequence[Optional[TensorBuffer]]]


class GraphNode:
    """
    One node of a dynamic computation graph.

    Parameters
    ----------
    value : TensorBuffer | SharedTensorHandle
        Forward value. A buffer is wrapped in a new handle; a handle is shared
        (for example with the `Tensor` facade that created a leaf).
    operator : Operator, optional
        Producing operation. `Operator.NONE` marks a leaf.
    parents : Sequence[GraphNode], optional
        Ordered operands. Empty for leaves.
    grad_fn : GradFn, optional
        Gradient closure. Required for derived nodes, forbidden on leaves.
    requires_grad : bool, optional
        Only meaningful for leaves. Derived nodes take the OR of their parents.

    Raises
    ------
    GraphConstructionError
        If a derived node is tagged `Operator.NONE`, a leaf is given parents or
        a closure, or a derived node has no parents.

    Notes
    -----
    The node claims the node-side role of its handle on construction and
    releases it on `release()` or when the node is garbage collected.
    """

    def __init__(
        self,
        value: Union[TensorBuffer, SharedTensorHandle],
        *,
        operator: Operator = Operator.NONE,
        parents: Sequence["GraphNode"] = (),
        grad_fn: Optional[GradFn] = None,
        requires_grad: bool = False,
    ) -> None:
        parents = tuple(parents)
        if operator.is_leaf:
            if parents or grad_fn is not None:
                raise GraphConstructionError(
                    "A node tagged Operator.NONE cannot have parents or a gradient "
                    "function"
                )
        else:
            if not parents:
                raise GraphConstructionError(
                    f"Derived node '{operator}' requires at least one parent"
                )
            if grad_fn is None:
                raise GraphConstructionError(
                    f"Derived node '{operator}' requires a gradient function"
                )
            for p in parents:
                if not isinstance(p, GraphNode):
                    raise TypeError(f"parents must be GraphNode, got {type(p)!r}")

        handle = (
            value
            if isinstance(value, SharedTensorHandle)
            else SharedTensorHandle(value)
        )
        handle.ref_by_node()

        self._handle = handle
        self._operator = operator
        self._parents = parents
        self._grad_fn = grad_fn
        self._grad: Optional[TensorBuffer] = None
        self._released = False
        if operator.is_leaf:
            self._requires_grad = bool(requires_grad)
        else:
            self._requires_grad = any(p.requires_grad for p in parents)
        self._finalizer = weakref.finalize(self, handle.unref_by_node)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def leaf(
        cls,
        value: Union[TensorBuffer, SharedTensorHandle],
        *,
        requires_grad: bool = False,
    ) -> "GraphNode":
        """
        Create an input/parameter node.
        """
        return cls(value, requires_grad=requires_grad)

    @classmethod
    def binary(
        cls,
        lhs: "GraphNode",
        rhs: "GraphNode",
        value: TensorBuffer,
        operator: Operator,
        grad_fn: GradFn,
    ) -> "GraphNode":
        """
        Create a node produced by a two-operand operation.
        """
        return cls(value, operator=operator, parents=(lhs, rhs), grad_fn=grad_fn)

    @classmethod
    def unary(
        cls,
        parent: "GraphNode",
        value: TensorBuffer,
        operator: Operator,
        grad_fn: GradFn,
    ) -> "GraphNode":
        """
        Create a node produced by a one-operand operation.
        """
        return cls(value, operator=operator, parents=(parent,), grad_fn=grad_fn)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def value(self) -> TensorBuffer:
        """
        Forward value of this node.

        Raises
        ------
        OwnershipError
            If the node has been released.
        """
        if self._released:
            raise OwnershipError("node", "value accessed after release")
        return self._handle.buffer

    @property
    def handle(self) -> SharedTensorHandle:
        return self._handle

    @property
    def shape(self) -> tuple[int, ...]:
        return self.value.shape

    @property
    def operator(self) -> Operator:
        return self._operator

    @property
    def parents(self) -> tuple["GraphNode", ...]:
        return self._parents

    @property
    def is_leaf(self) -> bool:
        return self._operator.is_leaf

    @property
    def grad_fn(self) -> Optional[GradFn]:
        return self._grad_fn

    @property
    def grad(self) -> Optional[TensorBuffer]:
        """
        Accumulated gradient, or None before the first accumulation.
        """
        return self._grad

    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        if not self.is_leaf:
            raise GraphConstructionError(
                "requires_grad can only be set on leaf nodes; derived nodes "
                "inherit it from their parents"
            )
        self._requires_grad = bool(value)

    def __repr__(self) -> str:
        shape = None if self._handle.is_null else self._handle.buffer.shape
        return (
            f"GraphNode(operator={self._operator}, shape={shape}, "
            f"requires_grad={self._requires_grad})"
        )

    # ------------------------------------------------------------------
    # Graph traversal helpers
    # ------------------------------------------------------------------
    def nodes(self) -> List["GraphNode"]:
        """
        Return all nodes reachable from this one in topological order.
        """
        return to_topo_list(self)

    def __len__(self) -> int:
        return len(to_topo_list(self))

    # ------------------------------------------------------------------
    # Gradients
    # ------------------------------------------------------------------
    def accumulate_grad(self, incoming: TensorBuffer) -> None:
        """
        Add `incoming` to the stored gradient.

        The first accumulation stores a copy, so later mutation of the caller's
        buffer never reaches this node.

        Raises
        ------
        ShapeError
            If `incoming.shape` differs from the value shape.
        """
        if not isinstance(incoming, TensorBuffer):
            raise TypeError(
                f"accumulate_grad expects a TensorBuffer, got {type(incoming)!r}"
            )
        if incoming.shape != self.value.shape:
            raise ShapeError(
                "accumulate_grad",
                "gradient shape must match value shape",
                self.value.shape,
                incoming.shape,
            )
        if self._grad is None:
            self._grad = incoming.copy()
        else:
            self._grad = self._grad.add(incoming)

    def clear_grad(self) -> None:
        """
        Reset the gradient of this node and of every ancestor.
        """
        for node in to_topo_list(self):
            node._grad = None

    def backward(self, grad: Optional[TensorBuffer] = None) -> None:
        """
        Propagate gradients from this node to every ancestor that requires them.

        Parameters
        ----------
        grad : TensorBuffer, optional
            Seed gradient for this node; must match the value shape. When
            omitted and no gradient is stored yet, the seed is a buffer of ones
            shaped like the value.

        Notes
        -----
        - No-op when the node does not require gradients.
        - Nodes are processed in reverse topological order, so a node shared
          by several consumers has received every contribution before it
          propagates further.
        - Repeated calls without `clear_grad()` do not simply add one more
          pass: the root keeps its stored gradient, and every intermediate
          node propagates its whole accumulated gradient again, including
          contributions from earlier calls. For `z = (a * 2) * 3`, two calls
          leave `a.grad == 18`, not 12. Call `clear_grad()` between passes.
          A graph with a single operation adds exactly one pass per call.
        """
        if not self._requires_grad:
            return

        if grad is not None:
            if not isinstance(grad, TensorBuffer):
                raise TypeError(f"grad must be a TensorBuffer, got {type(grad)!r}")
            if grad.shape != self.value.shape:
                raise ShapeError(
                    "backward",
                    "seed gradient shape must match value shape",
                    self.value.shape,
                    grad.shape,
                )
            self._grad = grad.copy()
        elif self._grad is None:
            self._grad = self.value.ones_like()

        topo = to_topo_list(self)
        logger.debug("backward from %s over %d nodes", self._operator, len(topo))

        for node in reversed(topo):
            if node._grad_fn is None or node._grad is None:
                continue
            contributions = node._grad_fn(node._grad)
            if len(contributions) != len(node._parents):
                raise RuntimeError(
                    "grad_fn must return one gradient per parent. "
                    f"Got {len(contributions)} for {len(node._parents)} parents."
                )
            for parent, g in zip(node._parents, contributions):
                if g is None or not parent._requires_grad:
                    continue
                parent.accumulate_grad(g)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def release(self) -> None:
        """
        Give up the node-side role on the value handle. Idempotent.
        """
        if not self._released:
            self._released = True
            self._finalizer()
