"""
Tensor buffer interface definitions.

This module defines the domain-level contract for dense tensor storage using
structural typing. Collaborators outside the autograd core (dataset loaders,
visualizers, optimizers) type against this protocol instead of the concrete
numpy-backed implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Union, runtime_checkable

Number = Union[int, float]


@runtime_checkable
class ITensorBuffer(Protocol):
    """
    Dense, row-major tensor storage.

    Notes
    -----
    - `shape` and `stride` are tuples; `stride` is always the row-major
      derivation of `shape`.
    - `flat_view()` is read-only; mutation goes through `set`, `fill`,
      `clear` and the in-place arithmetic methods.
    """

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the buffer.
        """
        ...

    @property
    def stride(self) -> tuple[int, ...]:
        """
        Return the row-major stride of the buffer.
        """
        ...

    def dim(self) -> int:
        """
        Return the number of dimensions.
        """
        ...

    def size(self) -> int:
        """
        Return the total number of elements (1 for a scalar).
        """
        ...

    def at(self, indices: Sequence[int]) -> Any:
        """
        Return the element at a full multi-index.
        """
        ...

    def set(self, indices: Sequence[int], value: Number) -> None:
        """
        Write the element at a full multi-index.
        """
        ...

    def flat_view(self) -> Any:
        """
        Return a read-only view over the flat, row-major data.
        """
        ...

    def axpy(self, alpha: Number, x: "ITensorBuffer") -> None:
        """
        In-place `self += alpha * x`.
        """
        ...
