"""
Operator tags for computation-graph nodes.

Every `GraphNode` records which operation produced it. Leaf nodes (inputs and
parameters) carry the `Operator.NONE` sentinel; constructing a derived node
with that tag is rejected by the graph layer.
"""

from enum import Enum


class Operator(Enum):
    """
    Closed set of operations that can appear in a computation graph.
    """

    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MATMUL = "matmul"
    RESHAPE = "reshape"
    FLATTEN = "flatten"
    TRANSPOSE = "transpose"
    SUM = "sum"
    MEAN = "mean"
    EXP = "exp"
    LOG = "log"
    TANH = "tanh"
    SIGMOID = "sigmoid"
    RELU = "relu"
    NONE = "none"

    @property
    def is_leaf(self) -> bool:
        """True for the leaf sentinel."""
        return self is Operator.NONE

    def __str__(self) -> str:
        return self.value
