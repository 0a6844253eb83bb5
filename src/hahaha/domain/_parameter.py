"""
What an optimizer needs from a trainable tensor.

The update contract is deliberately small: check whether the tensor is
trainable, read its accumulated gradient buffer and write new values into its
live storage. Anything satisfying these members can be handed to an optimizer,
whether or not it derives from the concrete `Parameter` class.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ._tensor import ITensorBuffer


@runtime_checkable
class IParameter(Protocol):
    """
    Structural contract for optimizer-managed tensors.
    """

    @property
    def requires_grad(self) -> bool:
        """False for frozen tensors, which optimizers leave untouched."""
        ...

    @property
    def data(self) -> ITensorBuffer:
        """
        Storage updated in place by ``step()``. Writes must be visible to any
        graph built from this tensor afterwards.
        """
        ...

    def grad_buffer(self) -> Optional[ITensorBuffer]:
        ...

    def zero_grad(self) -> None:
        ...
