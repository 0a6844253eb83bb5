from ._tensor_buffer import TensorBuffer
from ._shared_handle import HandleState, SharedTensorHandle
from ._shape import infer_nested_shape, numel, row_major_stride

__all__ = [
    "TensorBuffer",
    "HandleState",
    "SharedTensorHandle",
    "infer_nested_shape",
    "numel",
    "row_major_stride",
]
