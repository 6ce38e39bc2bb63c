from ._buffer import Buffer
from ._gpu_helper import GpuHelper, CudnnBindings, load_cudnn_bindings
from ._context import Context

__all__ = [
    Buffer.__name__,
    GpuHelper.__name__,
    CudnnBindings.__name__,
    load_cudnn_bindings.__name__,
    Context.__name__,
]
