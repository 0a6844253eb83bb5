from ._graph_node import GradFn, GraphNode
from ._topo_sort import to_topo_list
from . import _ops as ops
from ._ops import create_scalar_node

__all__ = [
    "GradFn",
    "GraphNode",
    "to_topo_list",
    "ops",
    "create_scalar_node",
]
