"""
Array backend abstraction.

An `ArrayBackend` is the only place where vlcore touches a concrete array
library. Every memory block handed around by buffers and tensors is a flat,
one-dimensional ``uint8`` array owned by the backend's library (NumPy on
the CPU, CuPy on the GPU); typed views over such blocks are produced with
`typed_view`, which relies only on methods that NumPy and CuPy arrays share.

Layout
------
Typed views are column-major (Fortran order): the first dimension varies
fastest in memory, matching the (height, width, channels, cardinality)
convention of `TensorShape`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import nullcontext
from typing import Any, ContextManager, Optional, Sequence

from ...domain._device import DeviceType
from ...domain._errors import ErrorCode


def typed_view(
    block: Any, shape: Sequence[int], dtype_name: str, offset: int = 0
) -> Any:
    """
    Reinterpret part of a byte block as a column-major typed array.

    Parameters
    ----------
    block : Any
        One-dimensional, contiguous ``uint8`` array (NumPy or CuPy).
    shape : Sequence[int]
        Shape of the view.
    dtype_name : str
        Element dtype name, e.g. ``"float32"``.
    offset : int, optional
        Byte offset of the first element inside `block`.

    Returns
    -------
    Any
        A Fortran-ordered view sharing memory with `block`.

    Raises
    ------
    ValueError
        If the view does not fit inside `block`.
    """
    shape = tuple(int(d) for d in shape)
    count = 1
    for d in shape:
        count *= d
    itemsize = _itemsize(dtype_name)
    nbytes = count * itemsize
    if offset < 0 or offset + nbytes > int(block.size):
        raise ValueError(
            f"view of {nbytes} bytes at offset {offset} exceeds block of {int(block.size)} bytes"
        )
    return block[offset : offset + nbytes].view(dtype_name).reshape(shape, order="F")


def as_block(array: Any) -> Any:
    """
    Return the flat ``uint8`` block aliasing a contiguous array.

    Raises
    ------
    ValueError
        If `array` is not contiguous in column-major order (strided 1-D
        slices included; flattening those would copy).
    """
    if not array.flags.f_contiguous:
        raise ValueError(
            "vlcore tensors are contiguous and column-major; pass a Fortran-ordered "
            "array (e.g. numpy.asfortranarray)"
        )
    return array.ravel(order="F").view("uint8")


_ITEMSIZES = {"int8": 1, "uint8": 1, "float32": 4, "float64": 8}


def _itemsize(dtype_name: str) -> int:
    try:
        return _ITEMSIZES[dtype_name]
    except KeyError as e:
        raise TypeError(f"Unsupported dtype name {dtype_name!r}") from e


class ArrayBackend(ABC):
    """
    Abstract memory/compute backend for one `DeviceType`.

    Subclasses provide allocation, the array namespace used by the native
    kernels (`xp`), synchronization, and translation of library exceptions
    into `ErrorCode` values.
    """

    device_type: DeviceType
    out_of_memory_code: ErrorCode = ErrorCode.OUT_OF_MEMORY

    @property
    @abstractmethod
    def xp(self) -> Any:
        """Array namespace (``numpy`` or ``cupy``)."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """True if the backend can allocate and compute in this process."""
        ...

    @abstractmethod
    def allocate(self, nbytes: int) -> Any:
        """
        Allocate an uninitialized byte block.

        Raises
        ------
        MemoryError
            If the allocation cannot be satisfied.
        DeviceNotSupportedError
            If the backend is not available.
        """
        ...

    @abstractmethod
    def wrap_pointer(self, address: int, nbytes: int) -> Any:
        """Wrap externally owned memory at `address` as a byte block."""
        ...

    def activate(self) -> ContextManager[Any]:
        """Context manager making this backend's device current."""
        return nullcontext()

    def reclaim(self) -> None:
        """Return cached, unreferenced memory to the system (optional)."""
        return None

    def synchronize(self) -> None:
        """Block until all queued work on the device has completed."""
        return None

    def translate_error(self, exc: BaseException) -> Optional[ErrorCode]:
        """
        Map a library exception to an `ErrorCode`.

        Returns
        -------
        ErrorCode or None
            None when the exception is not a known backend failure and
            should propagate.
        """
        if isinstance(exc, MemoryError):
            return self.out_of_memory_code
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(device_type={self.device_type})"
