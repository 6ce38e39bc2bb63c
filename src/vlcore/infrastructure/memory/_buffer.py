"""
Reusable, lazily grown device memory.

A `Buffer` owns at most one raw byte block on one device. Requests that fit
the current block are served without reallocating; anything else frees the
block and allocates a new one. The buffer counts its reallocations so
callers (and tests) can observe that steady-state reuse allocates nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ...domain._device import DataType, DeviceType
from ...domain._errors import ErrorCode, VLError
from ..backends._base import ArrayBackend

logger = logging.getLogger(__name__)

BackendResolver = Callable[[DeviceType], ArrayBackend]


class Buffer:
    """
    Owned, reusable byte block on one device.

    Parameters
    ----------
    resolve_backend : Callable[[DeviceType], ArrayBackend]
        Maps a device type to the backend that allocates for it; normally
        `Context.get_backend`.

    Notes
    -----
    A fresh buffer is (CPU, CHAR, 0 bytes, no memory). A request for zero
    bytes with a matching device and type is therefore satisfied without an
    allocation and leaves `get_memory()` at None.
    """

    def __init__(self, resolve_backend: BackendResolver) -> None:
        self._resolve_backend = resolve_backend
        self._device_type = DeviceType.CPU
        self._data_type = DataType.CHAR
        self._size = 0
        self._memory: Optional[Any] = None
        self._num_reallocations = 0

    @property
    def device_type(self) -> DeviceType:
        return self._device_type

    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def size(self) -> int:
        """Capacity of the current block in bytes."""
        return self._size

    @property
    def num_reallocations(self) -> int:
        """Number of times a new block has been allocated."""
        return self._num_reallocations

    def get_memory(self) -> Optional[Any]:
        """Return the current block (a flat ``uint8`` array) or None."""
        return self._memory

    def init(self, device_type: DeviceType, data_type: DataType, size: int) -> ErrorCode:
        """
        Make sure the buffer holds at least `size` bytes of `data_type` on
        `device_type`.

        The existing block is kept when device and data type match and its
        capacity is at least `size`; otherwise it is cleared and a new block
        of exactly `size` bytes is allocated.

        Returns
        -------
        ErrorCode
            ``SUCCESS``, the backend's out-of-memory code, or
            ``UNSUPPORTED`` if the device backend is unavailable. On failure
            the buffer is left empty.
        """
        device_type = DeviceType.parse(device_type)
        data_type = DataType(data_type)
        size = int(size)

        if (
            self._device_type is device_type
            and self._data_type is data_type
            and self._size >= size
        ):
            return ErrorCode.SUCCESS

        self.clear()
        backend = self._resolve_backend(device_type)
        try:
            memory = backend.allocate(size)
        except MemoryError as e:
            logger.debug("Buffer allocation of %d bytes on %s failed: %s", size, device_type, e)
            return backend.out_of_memory_code
        except VLError as e:
            logger.debug("Buffer allocation on %s unavailable: %s", device_type, e)
            return e.code

        self._memory = memory
        self._device_type = device_type
        self._data_type = data_type
        self._size = size
        self._num_reallocations += 1
        logger.debug(
            "Buffer reallocated: %d bytes of %s on %s (reallocation #%d)",
            size,
            data_type.name,
            device_type,
            self._num_reallocations,
        )
        return ErrorCode.SUCCESS

    def clear(self) -> None:
        """Release the block. Idempotent; device and data type are kept."""
        if self._memory is not None:
            self._memory = None
            self._resolve_backend(self._device_type).reclaim()
        self._size = 0

    def invalidate_gpu(self) -> None:
        """
        Forget a GPU block without releasing it.

        Used after the device has been reset, when the block is no longer
        valid and must not be handed back to the allocator. CPU buffers are
        left untouched.
        """
        if self._device_type is DeviceType.GPU:
            self._memory = None
            self._size = 0

    def __repr__(self) -> str:
        return (
            f"Buffer(device_type={self._device_type}, data_type={self._data_type.name}, "
            f"size={self._size}, num_reallocations={self._num_reallocations})"
        )
