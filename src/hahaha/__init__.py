"""
hahaha: a small tensor library with reverse-mode automatic differentiation.
"""

from .domain import (
    Device,
    DeviceMismatchError,
    DeviceNotSupportedError,
    DeviceType,
    DivisionByZeroError,
    GraphConstructionError,
    HahahaError,
    Operator,
    OwnershipError,
    ShapeError,
    TensorIndexError,
)
from .infrastructure import (
    SGD,
    Activation,
    ActivationLayer,
    GraphNode,
    History,
    Linear,
    LinearRegression,
    Module,
    CrossEntropyLoss,
    MSELoss,
    Optimizer,
    Parameter,
    Sequential,
    SharedTensorHandle,
    SSELoss,
    Tensor,
    TensorBuffer,
    cross_entropy_loss,
    mse_loss,
    sse_loss,
    to_topo_list,
)
from .infrastructure.graph import ops
from .infrastructure.utils import (
    LoggerConfig,
    LogLevel,
    configure_logging,
    log,
    shutdown_logging,
)

__version__ = "0.1.0"

__all__ = [
    "Device",
    "DeviceMismatchError",
    "DeviceNotSupportedError",
    "DeviceType",
    "DivisionByZeroError",
    "GraphConstructionError",
    "HahahaError",
    "Operator",
    "OwnershipError",
    "ShapeError",
    "TensorIndexError",
    "SGD",
    "Activation",
    "ActivationLayer",
    "GraphNode",
    "History",
    "Linear",
    "LinearRegression",
    "Module",
    "CrossEntropyLoss",
    "MSELoss",
    "Optimizer",
    "Parameter",
    "Sequential",
    "SharedTensorHandle",
    "SSELoss",
    "Tensor",
    "TensorBuffer",
    "cross_entropy_loss",
    "mse_loss",
    "sse_loss",
    "to_topo_list",
    "ops",
    "LoggerConfig",
    "LogLevel",
    "configure_logging",
    "log",
    "shutdown_logging",
]
