from ._errors import (
    HahahaError,
    ShapeError,
    TensorIndexError,
    DivisionByZeroError,
    OwnershipError,
    GraphConstructionError,
    DeviceNotSupportedError,
    DeviceMismatchError,
)
from ._operator import Operator
from .device import Device, DeviceType

__all__ = [
    "HahahaError",
    "ShapeError",
    "TensorIndexError",
    "DivisionByZeroError",
    "OwnershipError",
    "GraphConstructionError",
    "DeviceNotSupportedError",
    "DeviceMismatchError",
    "Operator",
    "Device",
    "DeviceType",
]
