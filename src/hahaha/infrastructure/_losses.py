"""
Loss functions built from differentiable tensor operations.

Each loss returns a 0-d `Tensor` connected to the computation graph, so
`loss.backward()` reaches every parameter that contributed to `y_pred`.
Shapes of `y_true` and `y_pred` must match exactly.

- `sse_loss` / `mse_loss`: regression targets.
- `cross_entropy_loss`: one-hot targets against predicted probabilities
  (for example the output of a sigmoid layer).
"""

from __future__ import annotations

from ..domain._errors import ShapeError
from ._tensor import Tensor

CROSS_ENTROPY_EPS = 1e-7


def _check_shapes(y_true: Tensor, y_pred: Tensor, op: str) -> None:
    if y_true.shape != y_pred.shape:
        raise ShapeError(
            op,
            "y_true and y_pred must have the same shape",
            y_true.shape,
            y_pred.shape,
        )


def _squared_error(y_true: Tensor, y_pred: Tensor, op: str) -> Tensor:
    _check_shapes(y_true, y_pred, op)
    diff = y_true - y_pred
    return diff * diff


def sse_loss(y_true: Tensor, y_pred: Tensor) -> Tensor:
    """
    Sum of squared errors: ``sum((y_true - y_pred)^2)``.
    """
    return _squared_error(y_true, y_pred, "sse_loss").sum()


def mse_loss(y_true: Tensor, y_pred: Tensor) -> Tensor:
    """
    Mean squared error: ``mean((y_true - y_pred)^2)``.

    Raises
    ------
    ShapeError
        If the shapes of `y_true` and `y_pred` differ.
    """
    return _squared_error(y_true, y_pred, "mse_loss").mean()


def cross_entropy_loss(
    y_true: Tensor, y_pred: Tensor, *, eps: float = CROSS_ENTROPY_EPS
) -> Tensor:
    """
    Cross entropy averaged over all elements:
    ``-sum(y_true * log(y_pred + eps)) / n``.

    Parameters
    ----------
    y_true : Tensor
        Target distribution, typically one-hot rows.
    y_pred : Tensor
        Predicted probabilities, same shape as `y_true`.
    eps : float, optional
        Added to `y_pred` before the logarithm so exact zeros stay finite.

    Raises
    ------
    ShapeError
        If the shapes of `y_true` and `y_pred` differ.
    ValueError
        If some ``y_pred + eps`` is not strictly positive.
    """
    _check_shapes(y_true, y_pred, "cross_entropy_loss")
    n = y_pred.size
    log_p = (y_pred + eps).log()
    return (y_true * log_p).sum() * (-1.0 / n)


class SSELoss:
    """
    Callable wrapper around `sse_loss`.
    """

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return sse_loss(y_true, y_pred)


class MSELoss:
    """
    Callable wrapper around `mse_loss`.
    """

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return mse_loss(y_true, y_pred)


class CrossEntropyLoss:
    """
    Callable wrapper around `cross_entropy_loss`.

    Parameters
    ----------
    eps : float, optional
        Stabilizer added to the predictions before the logarithm.
    """

    def __init__(self, eps: float = CROSS_ENTROPY_EPS) -> None:
        self.eps = float(eps)

    def __call__(self, y_true: Tensor, y_pred: Tensor) -> Tensor:
        return cross_entropy_loss(y_true, y_pred, eps=self.eps)
