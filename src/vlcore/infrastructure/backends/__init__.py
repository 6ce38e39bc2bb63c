from ._base import ArrayBackend, typed_view, as_block
from ._cpu import CpuBackend
from ._gpu import GpuBackend

__all__ = [
    ArrayBackend.__name__,
    typed_view.__name__,
    as_block.__name__,
    CpuBackend.__name__,
    GpuBackend.__name__,
]
