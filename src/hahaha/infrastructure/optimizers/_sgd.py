"""
Stochastic Gradient Descent (SGD) optimizer.

Parameters are updated in place through `TensorBuffer.axpy`, so graph nodes
that share a parameter's buffer observe the new values without rebuilding
anything.

Design notes
------------
- Parameters without a gradient, or with `requires_grad=False`, are skipped.
- Weight decay is classical (coupled) L2 regularization.
- Momentum and Nesterov variants are not implemented.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ...domain._parameter import IParameter
from ._optimizer import Optimizer

logger = logging.getLogger(__name__)


class SGD(Optimizer):
    """
    Stochastic Gradient Descent.

    Update rule
    -----------
    For each parameter ``p`` with gradient ``g``:

    - If ``weight_decay > 0``: ``g <- g + weight_decay * p``
    - ``p <- p - lr * g``

    Parameters
    ----------
    params : Iterable[IParameter]
        Parameters to be optimized.
    lr : float, optional
        Learning rate. Must be positive. Defaults to 1e-3.
    weight_decay : float, optional
        L2 coefficient. Must be non-negative. Defaults to 0.0.

    Raises
    ------
    ValueError
        If ``lr <= 0`` or ``weight_decay < 0``.
    """

    def __init__(
        self,
        params: Iterable[IParameter],
        *,
        lr: float = 1e-3,
        weight_decay: float = 0.0,
    ) -> None:
        super().__init__(params, lr=lr)
        self.weight_decay = float(weight_decay)
        if self.weight_decay < 0.0:
            raise ValueError(f"weight_decay must be >= 0, got {self.weight_decay}")

    def step(self) -> None:
        """
        Apply one SGD update to every managed parameter that has a gradient.
        """
        updated = 0
        for p in self._params:
            if not p.requires_grad:
                continue
            g = p.grad_buffer()
            if g is None:
                continue

            data = p.data
            if self.weight_decay != 0.0:
                data.axpy(-self.lr * self.weight_decay, data.copy())
            data.axpy(-self.lr, g)
            updated += 1

        logger.debug("SGD step updated %d/%d parameters", updated, len(self._params))

    def __repr__(self) -> str:
        return (
            f"SGD(n_params={len(self._params)}, lr={self.lr}, "
            f"weight_decay={self.weight_decay})"
        )
