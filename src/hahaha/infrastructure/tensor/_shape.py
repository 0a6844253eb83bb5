"""
Shape and stride helpers for row-major tensor storage.

Shapes are plain tuples of non-negative ints. The empty shape `()` denotes a
scalar and has one element. Strides are always derived, never stored
independently of the shape they describe.
"""

from __future__ import annotations

from numbers import Number
from typing import Any, Sequence

import numpy as np

from ...domain._errors import ShapeError


def normalize_shape(shape: Any) -> tuple[int, ...]:
    """
    Coerce a shape-like value into a tuple of non-negative ints.

    Parameters
    ----------
    shape : int | Sequence[int]
        A single extent or a sequence of extents.

    Returns
    -------
    tuple[int, ...]
        The normalized shape.

    Raises
    ------
    ShapeError
        If any extent is negative or not integral.
    """
    if isinstance(shape, (int, np.integer)):
        shape = (shape,)
    dims = []
    for d in tuple(shape):
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)):
            raise ShapeError("shape", f"extent {d!r} is not an integer", ())
        if d < 0:
            raise ShapeError("shape", f"extent {d} is negative", tuple(shape))
        dims.append(int(d))
    return tuple(dims)


def numel(shape: Sequence[int]) -> int:
    """
    Return the number of elements described by `shape` (1 for `()`).
    """
    n = 1
    for d in shape:
        n *= int(d)
    return n


def row_major_stride(shape: Sequence[int]) -> tuple[int, ...]:
    """
    Derive the row-major stride of `shape`.

    The last dimension has stride 1 and every preceding stride is the product
    of all following extents.

    Examples
    --------
    >>> row_major_stride((2, 3, 4))
    (12, 4, 1)
    >>> row_major_stride(())
    ()
    """
    stride = [1] * len(shape)
    for i in range(len(shape) - 2, -1, -1):
        stride[i] = stride[i + 1] * int(shape[i + 1])
    return tuple(stride)


def resolve_reshape(src_shape: Sequence[int], new_shape: Any) -> tuple[int, ...]:
    """
    Validate a reshape target, inferring at most one `-1` extent.

    Raises
    ------
    ShapeError
        If the target has more than one `-1`, or its element count differs
        from the source.
    """
    if isinstance(new_shape, (int, np.integer)):
        new_shape = (new_shape,)
    dims = []
    for d in tuple(new_shape):
        if isinstance(d, bool) or not isinstance(d, (int, np.integer)):
            raise ShapeError("reshape", f"extent {d!r} is not an integer", ())
        dims.append(int(d))
    total = numel(src_shape)

    if dims.count(-1) > 1:
        raise ShapeError("reshape", "only one dimension can be inferred", dims)
    if -1 in dims:
        known = numel([d for d in dims if d != -1])
        if known == 0 or total % known != 0:
            raise ShapeError(
                "reshape", f"cannot infer extent for size {total}", src_shape, dims
            )
        dims[dims.index(-1)] = total // known

    resolved = normalize_shape(dims)
    if numel(resolved) != total:
        raise ShapeError(
            "reshape",
            f"new shape total size ({numel(resolved)}) must match "
            f"current size ({total})",
            src_shape,
            resolved,
        )
    return resolved


def _is_scalar_leaf(x: Any) -> bool:
    return isinstance(x, (Number, np.number)) and not isinstance(x, (list, tuple))


def infer_nested_shape(literal: Any) -> tuple[int, ...]:
    """
    Infer the shape of a nested list/tuple literal.

    Parameters
    ----------
    literal : number | nested list/tuple of numbers
        The literal. A bare number has shape `()`.

    Returns
    -------
    tuple[int, ...]
        One extent per nesting level.

    Raises
    ------
    ShapeError
        If sibling sub-lists at any level have differing shapes (jagged data),
        or a leaf is not a number.
    """
    if _is_scalar_leaf(literal):
        return ()
    if not isinstance(literal, (list, tuple)):
        raise ShapeError(
            "from_nested", f"unsupported element of type {type(literal)!r}", ()
        )
    if len(literal) == 0:
        return (0,)

    first = infer_nested_shape(literal[0])
    for i, item in enumerate(literal[1:], start=1):
        sub = infer_nested_shape(item)
        if sub != first:
            raise ShapeError(
                "from_nested",
                f"irregular nesting: element {i} has shape {sub}, expected {first}",
                first,
                sub,
            )
    return (len(literal),) + first


def flatten_nested(literal: Any) -> list:
    """
    Flatten a (regular) nested literal into row-major order.
    """
    if not isinstance(literal, (list, tuple)):
        return [literal]
    out: list = []
    for item in literal:
        out.extend(flatten_nested(item))
    return out
