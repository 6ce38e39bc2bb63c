from ._config import RuntimeConfig
from .backends import ArrayBackend, CpuBackend, GpuBackend
from .memory import Buffer, GpuHelper, Context
from .tensor import Tensor, are_compatible
from .pooling import Pooling
from .utils import divide_and_round_up, gcd, randn, get_time

__all__ = [
    RuntimeConfig.__name__,
    ArrayBackend.__name__,
    CpuBackend.__name__,
    GpuBackend.__name__,
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
