from ._errors import (
    ErrorCode,
    get_error_message,
    VLError,
    IllegalArgumentError,
    DeviceNotSupportedError,
)
from ._device import DeviceType, DataType, get_data_type_size_in_bytes
from ._tensor_shape import TensorShape
from ._tensor import ITensor
from ._pooling import PoolingMethod, IPooling, PoolingImplementation

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
]
