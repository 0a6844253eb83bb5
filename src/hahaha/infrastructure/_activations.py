"""
Activation functions.

The activation set is closed, so it is modelled as an enum with a single
`apply` dispatch instead of one class per function. `ActivationLayer` wraps
a member as a stateless `Module` for use inside `Sequential`.
"""

from __future__ import annotations

from enum import Enum

from ._module import Module
from ._tensor import Tensor


class Activation(Enum):
    """
    Supported elementwise activations.
    """

    RELU = "relu"
    SIGMOID = "sigmoid"
    TANH = "tanh"
    IDENTITY = "identity"

    def apply(self, x: Tensor) -> Tensor:
        """
        Apply this activation to `x` as a differentiable operation.
        """
        if self is Activation.RELU:
            return x.relu()
        if self is Activation.SIGMOID:
            return x.sigmoid()
        if self is Activation.TANH:
            return x.tanh()
        if self is Activation.IDENTITY:
            return x
        raise ValueError(f"Unsupported activation: {self!r}")


class ActivationLayer(Module):
    """
    Stateless module applying an `Activation`.

    Parameters
    ----------
    activation : Activation | str
        The activation, or its name (e.g. "relu").
    """

    def __init__(self, activation) -> None:
        super().__init__()
        self.activation = Activation(activation)

    def forward(self, x: Tensor) -> Tensor:
        return self.activation.apply(x)

    def __repr__(self) -> str:
        return f"ActivationLayer({self.activation.value})"
