"""
Linear (fully-connected) layer.

Computes an affine projection of 2-D, batch-major inputs:

    y = x @ W + b

Shape conventions
-----------------
- x : (batch, in_features)
- W : (in_features, out_features)
- b : (1, out_features)  (omitted if bias=False)
- y : (batch, out_features)

Elementwise ops require equal shapes, so the bias is expanded to
(batch, out_features) with a ones-column matmul: ``ones(batch, 1) @ b``. The
matmul gradient rule then sums the bias gradient over the batch.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..domain._errors import ShapeError
from ._module import Module
from ._parameter import Parameter
from ._tensor import Tensor
from .tensor._tensor_buffer import TensorBuffer


class Linear(Module):
    """
    Fully-connected layer.

    Parameters
    ----------
    in_features : int
        Size of each input row.
    out_features : int
        Size of each output row.
    bias : bool, optional
        Whether to learn an additive bias. Defaults to True.
    seed : int, optional
        Seed for weight initialization.

    Raises
    ------
    ValueError
        If either feature count is not positive.
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        *,
        bias: bool = True,
        seed: Optional[int] = None,
    ) -> None:
        super().__init__()
        if in_features <= 0 or out_features <= 0:
            raise ValueError(
                "in_features and out_features must be positive, got "
                f"{in_features} and {out_features}"
            )
        self.in_features = int(in_features)
        self.out_features = int(out_features)
        self._rng = np.random.default_rng(seed)

        self.weight = Parameter(shape=(self.in_features, self.out_features))
        self.bias = Parameter(shape=(1, self.out_features)) if bias else None
        self._reset_parameters()

    def _reset_parameters(self) -> None:
        """
        Xavier/Glorot uniform weights, zero bias.
        """
        limit = np.sqrt(6.0 / (self.in_features + self.out_features))
        w = self._rng.uniform(-limit, limit, size=(self.in_features, self.out_features))
        self.weight.data.copy_from(TensorBuffer.from_numpy(w, dtype=self.weight.dtype))
        if self.bias is not None:
            self.bias.data.clear()

    def forward(self, x: Tensor) -> Tensor:
        if x.dim() != 2 or x.shape[1] != self.in_features:
            raise ShapeError(
                "linear",
                f"expected input of shape (batch, {self.in_features})",
                x.shape,
            )
        out = x @ self.weight
        if self.bias is not None:
            ones = Tensor(shape=(x.shape[0], 1), dtype=self.bias.dtype)
            ones.data.fill(1)
            out = out + ones @ self.bias
        return out

    def __repr__(self) -> str:
        return (
            f"Linear(in_features={self.in_features}, "
            f"out_features={self.out_features}, bias={self.bias is not None})"
        )
