"""
Device descriptor for tensor storage.

Every `TensorBuffer` records the device its flat storage lives on. The numpy
backend only ever allocates on the host, so `Device("cpu")` is the one
supported placement. Accelerator strings of the form ``"cuda:<index>"`` are
still understood, which lets the storage layer reject them with a
`DeviceNotSupportedError` naming the requested device rather than failing
while parsing.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Tuple


class DeviceType(Enum):
    """
    Device categories a descriptor can name.
    """

    CPU = "cpu"
    CUDA = "cuda"


_ACCELERATOR = re.compile(r"cuda:(\d+)")


def _parse(text: str) -> Tuple[DeviceType, Optional[int]]:
    if text == DeviceType.CPU.value:
        return DeviceType.CPU, None
    m = _ACCELERATOR.fullmatch(text)
    if m is None:
        raise ValueError(
            f"Unrecognized device {text!r}; use 'cpu' or 'cuda:<index>'"
        )
    return DeviceType.CUDA, int(m.group(1))


class Device:
    """
    Immutable placement of a tensor buffer.

    Parameters
    ----------
    device : str, optional
        ``"cpu"`` (the default) or ``"cuda:<index>"``.

    Raises
    ------
    ValueError
        If `device` is neither form.
    """

    __slots__ = ("_type", "_index")

    def __init__(self, device: str = "cpu") -> None:
        self._type, self._index = _parse(device)

    @property
    def type(self) -> DeviceType:
        return self._type

    @property
    def index(self) -> Optional[int]:
        """Accelerator ordinal; None on the host."""
        return self._index

    @property
    def is_supported(self) -> bool:
        """
        Whether the numpy backend can allocate storage on this device.
        """
        return self._type is DeviceType.CPU

    def is_cpu(self) -> bool:
        return self._type is DeviceType.CPU

    def is_cuda(self) -> bool:
        return self._type is DeviceType.CUDA

    def _key(self) -> Tuple[DeviceType, Optional[int]]:
        return (self._type, self._index)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self._index is None:
            return self._type.value
        return f"{self._type.value}:{self._index}"

    def __repr__(self) -> str:
        return f"Device('{self}')"
