from .tensor import SharedTensorHandle, TensorBuffer
from .graph import GraphNode, to_topo_list
from ._tensor import Tensor
from ._parameter import Parameter
from ._module import Module
from ._linear import Linear
from ._activations import Activation, ActivationLayer
from ._losses import (
    CrossEntropyLoss,
    MSELoss,
    SSELoss,
    cross_entropy_loss,
    mse_loss,
    sse_loss,
)
from .optimizers import SGD, Optimizer
from .models import History, LinearRegression, Sequential

__all__ = [
    "SharedTensorHandle",
    "TensorBuffer",
    "GraphNode",
    "to_topo_list",
    "Tensor",
    "Parameter",
    "Module",
    "Linear",
    "Activation",
    "ActivationLayer",
    "CrossEntropyLoss",
    "MSELoss",
    "SSELoss",
    "cross_entropy_loss",
    "mse_loss",
    "sse_loss",
    "SGD",
    "Optimizer",
    "History",
    "LinearRegression",
    "Sequential",
]
