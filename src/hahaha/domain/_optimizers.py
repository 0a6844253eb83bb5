"""
Optimizer contract.

An optimizer owns a list of `IParameter` objects and turns their accumulated
gradients into in-place value updates. It never runs the backward pass itself.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from ._parameter import IParameter


@runtime_checkable
class IOptimizer(Protocol):
    """
    Structural contract shared by every optimizer.

    Notes
    -----
    ``step()`` must skip frozen parameters and parameters whose gradient is
    still absent, so a partially connected model can be trained.
    """

    @property
    def params(self) -> Iterable[IParameter]:
        ...

    def step(self) -> None:
        """
        Update every managed parameter from its current gradient.
        """
        ...

    def zero_grad(self) -> None:
        """
        Drop the accumulated gradient of every managed parameter.
        """
        ...
