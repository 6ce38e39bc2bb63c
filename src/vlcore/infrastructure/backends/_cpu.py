"""
NumPy-backed host memory.
"""

from __future__ import annotations

import ctypes
from typing import Any

import numpy as np

from ...domain._device import DeviceType
from ...domain._errors import ErrorCode
from ._base import ArrayBackend


class CpuBackend(ArrayBackend):
    """
    Host backend built on NumPy.

    Blocks are plain ``numpy.uint8`` arrays; they are returned to the
    allocator when the last reference is dropped, so `reclaim` is a no-op.
    """

    device_type = DeviceType.CPU
    out_of_memory_code = ErrorCode.OUT_OF_MEMORY

    @property
    def xp(self) -> Any:
        return np

    def is_available(self) -> bool:
        return True

    def allocate(self, nbytes: int) -> np.ndarray:
        return np.empty(int(nbytes), dtype=np.uint8)

    def wrap_pointer(self, address: int, nbytes: int) -> np.ndarray:
        nbytes = int(nbytes)
        if nbytes == 0:
            return np.empty(0, dtype=np.uint8)
        buf = (ctypes.c_uint8 * nbytes).from_address(int(address))
        return np.frombuffer(buf, dtype=np.uint8)

    @staticmethod
    def owns(array: Any) -> bool:
        return isinstance(array, np.ndarray)
