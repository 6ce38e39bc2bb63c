from ._pooling import Pooling
from ._native import NativePooling
from ._cudnn import CudnnPooling

__all__ = [
    Pooling.__name__,
    NativePooling.__name__,
    CudnnPooling.__name__,
]
