"""
Dual-role ownership handle for a single `TensorBuffer` allocation.

A `SharedTensorHandle` lets one buffer be held at the same time by a
user-facing variable (the `Tensor` facade) and by a graph node. Each role is a
single-owner slot: a role can be claimed once, and claiming it again while it
is held is an `OwnershipError`. The buffer reference is dropped exactly when
both roles have been released.

Handles are move-only. `move()` transfers the live buffer and role state to a
new handle and leaves the source in the null state, where releasing a role is
a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...domain._errors import OwnershipError
from ._tensor_buffer import TensorBuffer

VARIABLE = "variable"
NODE = "node"


@dataclass
class HandleState:
    """
    Role bookkeeping of a `SharedTensorHandle`.

    Attributes
    ----------
    held_by_var : bool
        True while a variable facade holds the buffer.
    held_by_node : bool
        True while a graph node holds the buffer.
    """

    held_by_var: bool = False
    held_by_node: bool = False

    def is_free(self) -> bool:
        return not (self.held_by_var or self.held_by_node)


class SharedTensorHandle:
    """
    Move-only holder of one `TensorBuffer` with variable-side and node-side
    roles.

    Parameters
    ----------
    buffer : TensorBuffer
        The buffer to own. The handle does not copy it.

    Notes
    -----
    A freshly constructed handle holds its buffer with no role claimed; the
    buffer is dropped the first time a release leaves both roles clear.
    """

    def __init__(self, buffer: TensorBuffer) -> None:
        if not isinstance(buffer, TensorBuffer):
            raise TypeError(
                f"SharedTensorHandle expects a TensorBuffer, got {type(buffer)!r}"
            )
        self._buffer: Optional[TensorBuffer] = buffer
        self._state: Optional[HandleState] = HandleState()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def is_null(self) -> bool:
        """
        True after the handle was moved from or its buffer was freed.
        """
        return self._state is None

    @property
    def held_by_var(self) -> bool:
        return self._state is not None and self._state.held_by_var

    @property
    def held_by_node(self) -> bool:
        return self._state is not None and self._state.held_by_node

    @property
    def buffer(self) -> TensorBuffer:
        """
        Return the owned buffer.

        Raises
        ------
        OwnershipError
            If the handle is null.
        """
        if self._buffer is None:
            raise OwnershipError("handle", "buffer accessed through a null handle")
        return self._buffer

    def __repr__(self) -> str:
        if self._state is None:
            return "SharedTensorHandle(null)"
        return (
            f"SharedTensorHandle(shape={self._buffer.shape}, "
            f"held_by_var={self._state.held_by_var}, "
            f"held_by_node={self._state.held_by_node})"
        )

    # ------------------------------------------------------------------
    # Role claims
    # ------------------------------------------------------------------
    def _require_live(self, role: str) -> HandleState:
        if self._state is None:
            raise OwnershipError(role, "cannot claim a null handle")
        return self._state

    def ref_by_var(self) -> None:
        """
        Claim the variable-side role.

        Raises
        ------
        OwnershipError
            If the role is already held or the handle is null.
        """
        state = self._require_live(VARIABLE)
        if state.held_by_var:
            raise OwnershipError(VARIABLE, "handle already referenced by a variable")
        state.held_by_var = True

    def ref_by_node(self) -> None:
        """
        Claim the node-side role.

        Raises
        ------
        OwnershipError
            If the role is already held or the handle is null.
        """
        state = self._require_live(NODE)
        if state.held_by_node:
            raise OwnershipError(NODE, "handle already referenced by a node")
        state.held_by_node = True

    # ------------------------------------------------------------------
    # Role releases
    # ------------------------------------------------------------------
    def unref_by_var(self) -> None:
        """
        Release the variable-side role. No-op on a null handle.

        Raises
        ------
        OwnershipError
            If the role is not currently held.
        """
        if self._state is None:
            return
        if not self._state.held_by_var:
            raise OwnershipError(VARIABLE, "handle is not referenced by a variable")
        self._state.held_by_var = False
        self._free_if_unheld()

    def unref_by_node(self) -> None:
        """
        Release the node-side role. No-op on a null handle.

        Raises
        ------
        OwnershipError
            If the role is not currently held.
        """
        if self._state is None:
            return
        if not self._state.held_by_node:
            raise OwnershipError(NODE, "handle is not referenced by a node")
        self._state.held_by_node = False
        self._free_if_unheld()

    def _free_if_unheld(self) -> None:
        if self._state is not None and self._state.is_free():
            self._buffer = None
            self._state = None

    # ------------------------------------------------------------------
    # Move-only semantics
    # ------------------------------------------------------------------
    def move(self) -> "SharedTensorHandle":
        """
        Transfer the buffer and role state to a new handle.

        The source becomes null. Moving a null handle yields another null
        handle.
        """
        moved = SharedTensorHandle.__new__(SharedTensorHandle)
        moved._buffer = self._buffer
        moved._state = self._state
        self._buffer = None
        self._state = None
        return moved

    def __copy__(self):
        raise TypeError("SharedTensorHandle cannot be copied; use move()")

    def __deepcopy__(self, memo):
        raise TypeError("SharedTensorHandle cannot be copied; use move()")

    def __reduce_ex__(self, protocol):
        raise TypeError("SharedTensorHandle cannot be pickled")
