"""
Layer/model contract.

A module maps an input tensor to an output tensor with `forward` and exposes
the trainable tensors that mapping depends on.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from ._parameter import IParameter


@runtime_checkable
class IModule(Protocol):
    def forward(self, x: Any) -> Any:
        ...

    def parameters(self) -> Iterable[IParameter]:
        """
        Trainable tensors of this module and of every nested module.
        """
        ...
