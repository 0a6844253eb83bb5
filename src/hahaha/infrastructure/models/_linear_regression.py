"""
Linear regression trained with the autograd engine.

The model is a single `Linear` layer fitted by full-batch gradient descent on
the mean squared error. Inputs may be 1-D (one feature per sample), in which
case they are reshaped to ``(n, 1)``; targets are reshaped to
``(n, out_features)``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from ...domain._optimizers import IOptimizer
from .._linear import Linear
from .._losses import mse_loss
from .._module import Module
from .._tensor import Tensor
from ..optimizers._sgd import SGD
from ._history import History

logger = logging.getLogger(__name__)


def _as_2d(data: Any, columns: int) -> Tensor:
    if isinstance(data, Tensor):
        t = data
    else:
        t = Tensor(np.asarray(data, dtype=np.float32))
    if t.dim() == 1:
        t = Tensor(t.data.reshape((t.shape[0], columns)))
    return t


class LinearRegression(Module):
    """
    Ordinary least-squares regression ``y = x @ W + b``.

    Parameters
    ----------
    in_features : int
        Number of input features.
    out_features : int, optional
        Number of regression targets. Defaults to 1.
    seed : int, optional
        Seed for weight initialization.
    """

    def __init__(
        self, in_features: int, out_features: int = 1, *, seed: Optional[int] = None
    ) -> None:
        super().__init__()
        self.linear = Linear(in_features, out_features, seed=seed)

    @property
    def in_features(self) -> int:
        return self.linear.in_features

    @property
    def out_features(self) -> int:
        return self.linear.out_features

    def model_name(self) -> str:
        return "LinearRegression"

    def parameter_count(self) -> int:
        return sum(p.size for p in self.parameters())

    def forward(self, x: Tensor) -> Tensor:
        return self.linear(x)

    def predict(self, x: Any) -> Tensor:
        """
        Predict targets for `x` of shape ``(n, in_features)`` or ``(n,)``.
        """
        return self.forward(_as_2d(x, self.in_features))

    def train_step(self, x: Any, y: Any, optimizer: IOptimizer) -> float:
        """
        Run one forward/backward/update cycle and return the loss value.
        """
        x2 = _as_2d(x, self.in_features)
        y2 = _as_2d(y, self.out_features)

        optimizer.zero_grad()
        loss = mse_loss(y2, self.forward(x2))
        loss.backward()
        optimizer.step()
        return float(loss.item())

    def fit(self, x: Any, y: Any, *, epochs: int = 100, lr: float = 0.01) -> History:
        """
        Fit the model with full-batch SGD.

        Parameters
        ----------
        x : array-like | Tensor
            Features, ``(n, in_features)`` or ``(n,)``.
        y : array-like | Tensor
            Targets, ``(n, out_features)`` or ``(n,)``.
        epochs : int, optional
            Number of passes over the data. Must be positive.
        lr : float, optional
            Learning rate.

        Returns
        -------
        History
            Per-epoch ``"loss"`` values.
        """
        if epochs <= 0:
            raise ValueError(f"epochs must be > 0, got {epochs}")

        x2 = _as_2d(x, self.in_features)
        y2 = _as_2d(y, self.out_features)
        optimizer = SGD(self.parameters(), lr=lr)
        history = History()

        for epoch in range(int(epochs)):
            loss = self.train_step(x2, y2, optimizer)
            history.append_epoch(epoch, {"loss": loss})
            logger.debug("epoch %d loss=%.6f", epoch, loss)

        logger.info(
            "fit finished after %d epochs, loss=%.6f (best %.6f)",
            epochs,
            loss,
            history.best("loss"),
        )
        return history

    def __repr__(self) -> str:
        return (
            f"LinearRegression(in_features={self.in_features}, "
            f"out_features={self.out_features})"
        )
