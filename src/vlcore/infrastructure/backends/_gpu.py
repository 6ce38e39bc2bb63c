"""
CuPy-backed CUDA device memory.

CuPy is imported lazily: importing vlcore never requires a GPU stack, and
every GPU entry point raises `DeviceNotSupportedError` (code
``UNSUPPORTED``) when CuPy is missing.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...domain._device import DeviceType
from ...domain._errors import DeviceNotSupportedError, ErrorCode
from ._base import ArrayBackend

logger = logging.getLogger(__name__)


def _import_cupy(op: str) -> Any:
    try:
        import cupy
    except ImportError as e:
        raise DeviceNotSupportedError(op, str(DeviceType.GPU)) from e
    return cupy


class GpuBackend(ArrayBackend):
    """
    CUDA backend built on CuPy.

    Parameters
    ----------
    device_index : int, optional
        CUDA device every allocation and kernel launch is bound to.

    Notes
    -----
    Blocks are ``cupy.uint8`` arrays served by CuPy's default memory pool.
    `reclaim` releases the pool's unused blocks back to the driver, which is
    how clearing a GPU buffer actually returns memory.
    """

    device_type = DeviceType.GPU
    out_of_memory_code = ErrorCode.OUT_OF_GPU_MEMORY

    def __init__(self, device_index: int = 0) -> None:
        self.device_index = int(device_index)

    @property
    def xp(self) -> Any:
        return _import_cupy("gpu array namespace")

    def device(self) -> Any:
        """Return the ``cupy.cuda.Device`` context manager for this backend."""
        return self.xp.cuda.Device(self.device_index)

    def activate(self) -> Any:
        return self.device()

    def device_count(self) -> int:
        """
        Number of visible CUDA devices, 0 when CuPy or the driver is missing.
        """
        try:
            cupy = _import_cupy("device_count")
            return int(cupy.cuda.runtime.getDeviceCount())
        except DeviceNotSupportedError:
            return 0
        except RuntimeError as e:
            # CUDARuntimeError when no driver is installed
            logger.debug("CUDA device query failed: %s", e)
            return 0

    def is_available(self) -> bool:
        return self.device_index < self.device_count()

    def allocate(self, nbytes: int) -> Any:
        cupy = _import_cupy("allocate")
        try:
            with cupy.cuda.Device(self.device_index):
                return cupy.empty(int(nbytes), dtype=cupy.uint8)
        except cupy.cuda.memory.OutOfMemoryError as e:
            raise MemoryError(str(e)) from e

    def wrap_pointer(self, address: int, nbytes: int) -> Any:
        cupy = _import_cupy("wrap_pointer")
        nbytes = int(nbytes)
        mem = cupy.cuda.UnownedMemory(int(address), nbytes, None, self.device_index)
        ptr = cupy.cuda.MemoryPointer(mem, 0)
        return cupy.ndarray((nbytes,), dtype=cupy.uint8, memptr=ptr)

    def reclaim(self) -> None:
        try:
            cupy = _import_cupy("reclaim")
        except DeviceNotSupportedError:
            return
        cupy.get_default_memory_pool().free_all_blocks()

    def synchronize(self) -> None:
        self.device().synchronize()

    def translate_error(self, exc: BaseException) -> Optional[ErrorCode]:
        code = super().translate_error(exc)
        if code is not None:
            return code
        try:
            cupy = _import_cupy("translate_error")
        except DeviceNotSupportedError:
            return None

        if isinstance(exc, cupy.cuda.memory.OutOfMemoryError):
            return ErrorCode.OUT_OF_GPU_MEMORY
        if isinstance(
            exc, (cupy.cuda.runtime.CUDARuntimeError, cupy.cuda.driver.CUDADriverError)
        ):
            return ErrorCode.CUDA
        cublas_error = _cublas_error_type()
        if cublas_error is not None and isinstance(exc, cublas_error):
            return ErrorCode.CUBLAS
        return None

    @staticmethod
    def owns(array: Any) -> bool:
        """True if `array` is a CuPy array (checked without importing CuPy)."""
        module = type(array).__module__ or ""
        return module.split(".", 1)[0] == "cupy"


def _cublas_error_type() -> Optional[type]:
    try:
        from cupy_backends.cuda.libs.cublas import CUBLASError
    except ImportError:
        return None
    return CUBLASError
