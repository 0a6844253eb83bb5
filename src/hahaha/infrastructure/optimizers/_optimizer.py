"""
Optimizer base class.

`Optimizer` holds the managed parameters and the learning rate. Concrete
optimizers implement `step()` using only the read-gradient / write-value
primitives parameters expose: `grad_buffer()` and in-place updates of `data`.
"""

from __future__ import annotations

from typing import Iterable, List

from ...domain._optimizers import IOptimizer
from ...domain._parameter import IParameter


class Optimizer(IOptimizer):
    """
    Base class for parameter-update algorithms.

    Parameters
    ----------
    params : Iterable[IParameter]
        Parameters to optimize. The iterable is consumed and stored.
    lr : float
        Learning rate. Must be > 0.

    Raises
    ------
    ValueError
        If `lr <= 0`.
    """

    def __init__(self, params: Iterable[IParameter], *, lr: float) -> None:
        self._params: List[IParameter] = list(params)
        self.lr = lr

    @property
    def params(self) -> List[IParameter]:
        return self._params

    @property
    def lr(self) -> float:
        return self._lr

    @lr.setter
    def lr(self, value: float) -> None:
        value = float(value)
        if value <= 0.0:
            raise ValueError(f"lr must be > 0, got {value}")
        self._lr = value

    def add_parameter(self, param: IParameter) -> None:
        """
        Start managing another parameter.
        """
        self._params.append(param)

    def zero_grad(self) -> None:
        """
        Clear gradients for all managed parameters.
        """
        for p in self._params:
            p.zero_grad()

    def step(self) -> None:
        raise NotImplementedError
