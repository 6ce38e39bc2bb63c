"""
vlcore: device-agnostic tensors, scratch-memory contexts and 2D pooling on
NumPy (CPU) and CuPy (GPU).
"""

from .domain import (
    ErrorCode,
    get_error_message,
    VLError,
    IllegalArgumentError,
    DeviceNotSupportedError,
    DeviceType,
    DataType,
    get_data_type_size_in_bytes,
    TensorShape,
    ITensor,
    PoolingMethod,
    IPooling,
    PoolingImplementation,
)
from .infrastructure import (
    RuntimeConfig,
    Buffer,
    GpuHelper,
    Context,
    Tensor,
    are_compatible,
    Pooling,
    divide_and_round_up,
    gcd,
    randn,
    get_time,
)

__all__ = [
    ErrorCode.__name__,
    get_error_message.__name__,
    VLError.__name__,
    IllegalArgumentError.__name__,
    DeviceNotSupportedError.__name__,
    DeviceType.__name__,
    DataType.__name__,
    get_data_type_size_in_bytes.__name__,
    TensorShape.__name__,
    ITensor.__name__,
    PoolingMethod.__name__,
    IPooling.__name__,
    PoolingImplementation.__name__,
    RuntimeConfig.__name__,
    Buffer.__name__,
    GpuHelper.__name__,
    Context.__name__,
    Tensor.__name__,
    are_compatible.__name__,
    Pooling.__name__,
    divide_and_round_up.__name__,
    gcd.__name__,
    randn.__name__,
    get_time.__name__,
]
