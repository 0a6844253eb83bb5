"""
Concrete trainable parameter implementation.

A `Parameter` is a leaf `Tensor` intended to be updated by an optimizer. It
differs from a plain `Tensor` only in defaulting to `requires_grad=True` and in
being the type `Module` auto-registers.
"""

from __future__ import annotations

from ..domain._parameter import IParameter
from ._tensor import Tensor


class Parameter(Tensor, IParameter):
    """
    Trainable tensor.

    Parameters
    ----------
    *args
        Positional arguments forwarded to the `Tensor` constructor.
    requires_grad : bool, optional
        Whether this parameter should accumulate gradients. Defaults to True.
    **kwargs
        Keyword arguments forwarded to the `Tensor` constructor.
    """

    def __init__(self, *args, requires_grad: bool = True, **kwargs) -> None:
        super().__init__(*args, requires_grad=requires_grad, **kwargs)

    def zero_grad(self) -> None:
        """
        Clear the accumulated gradient of this parameter.
        """
        self._node.clear_grad()

    def __repr__(self) -> str:
        return f"Parameter(shape={self.shape}, requires_grad={self.requires_grad})"
