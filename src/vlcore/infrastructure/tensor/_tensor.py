"""
Concrete tensor view.

`Tensor` is a `TensorShape` plus a data type, a device type and a borrowed
memory block. It never allocates or frees: the block belongs to whoever
created it (a NumPy/CuPy array, a `Context` buffer, or external code that
handed over a raw address). Typed, column-major array views over the block
are produced on demand with `as_array`.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

from ...domain._device import DataType, DeviceType
from ...domain._tensor_shape import ShapeLike, TensorShape
from ..backends._base import as_block, typed_view
from ..backends._cpu import CpuBackend
from ..backends._gpu import GpuBackend


class Tensor(TensorShape):
    """
    Shape, element type, device and borrowed memory of an N-D array.

    Parameters
    ----------
    shape : TensorShape or Sequence[int], optional
        Dimensions (height, width, channels, cardinality, ...). Defaults to
        the empty shape.
    data_type : DataType, optional
        Element type (default `DataType.FLOAT`).
    device_type : DeviceType, optional
        Where `memory` lives (default `DeviceType.CPU`).
    memory : Any, optional
        Flat ``uint8`` block on `device_type`, or None for a null tensor.
    memory_size : int, optional
        Usable bytes of `memory`; defaults to the whole block.

    Raises
    ------
    ValueError
        If the block is smaller than the elements it must hold.
    """

    __slots__ = ("_data_type", "_device_type", "_memory", "_memory_size")

    def __init__(
        self,
        shape: Optional[ShapeLike] = None,
        data_type: DataType = DataType.FLOAT,
        device_type: DeviceType = DeviceType.CPU,
        memory: Optional[Any] = None,
        memory_size: Optional[int] = None,
    ) -> None:
        super().__init__(shape if shape is not None else ())
        self._data_type = DataType(data_type)
        self._device_type = DeviceType.parse(device_type)
        self._memory: Optional[Any] = None
        self._memory_size = 0
        self.set_memory(memory, memory_size)

    # ---------------------------------------------------------------------
    # Construction helpers
    # ---------------------------------------------------------------------
    @classmethod
    def from_array(cls, array: Any) -> "Tensor":
        """
        Borrow the memory of a column-major NumPy or CuPy array.

        Writes through the tensor are visible in `array` and vice versa.

        Raises
        ------
        ValueError
            If `array` is multi-dimensional and not Fortran-contiguous, or
            has more than `MAX_NUM_DIMENSIONS` dimensions.
        TypeError
            If the array type or dtype is not supported.
        """
        if CpuBackend.owns(array):
            device_type = DeviceType.CPU
        elif GpuBackend.owns(array):
            device_type = DeviceType.GPU
        else:
            raise TypeError(
                f"Tensor.from_array expects a numpy or cupy array, got {type(array).__name__}"
            )
        data_type = DataType.from_numpy(array.dtype)
        shape = tuple(array.shape) if array.ndim > 0 else (1,)
        block = as_block(array)
        return cls(shape, data_type, device_type, block, int(block.size))

    @classmethod
    def from_pointer(
        cls,
        address: int,
        shape: ShapeLike,
        data_type: DataType = DataType.FLOAT,
        device_type: DeviceType = DeviceType.CPU,
        memory_size: Optional[int] = None,
        device_index: int = 0,
    ) -> "Tensor":
        """
        Wrap externally owned memory given by its raw address.

        The caller keeps ownership and must keep the memory alive for as
        long as the tensor is used.

        Parameters
        ----------
        address : int
            Host address (CPU) or CUDA device pointer (GPU).
        shape : TensorShape or Sequence[int]
            Dimensions of the data at `address`.
        data_type : DataType, optional
            Element type.
        device_type : DeviceType, optional
            Where `address` points.
        memory_size : int, optional
            Bytes available at `address`; defaults to the exact data size.
        device_index : int, optional
            CUDA device owning a GPU pointer.
        """
        device_type = DeviceType.parse(device_type)
        data_type = DataType(data_type)
        shape = TensorShape(shape)
        if memory_size is None:
            memory_size = shape.num_elements * data_type.size_in_bytes
        if device_type is DeviceType.CPU:
            block = CpuBackend().wrap_pointer(address, memory_size)
        else:
            block = GpuBackend(device_index).wrap_pointer(address, memory_size)
        return cls(shape, data_type, device_type, block, memory_size)

    # ---------------------------------------------------------------------
    # Memory
    # ---------------------------------------------------------------------
    @property
    def data_type(self) -> DataType:
        return self._data_type

    @property
    def device_type(self) -> DeviceType:
        return self._device_type

    @property
    def memory_size(self) -> int:
        """Usable bytes of the memory block."""
        return self._memory_size

    def get_memory(self) -> Optional[Any]:
        return self._memory

    def set_memory(self, memory: Optional[Any], memory_size: Optional[int] = None) -> None:
        """
        Point the tensor at another borrowed block (or None).

        Raises
        ------
        ValueError
            If the block is smaller than the elements of the tensor.
        """
        if memory is None:
            self._memory = None
            self._memory_size = 0
            return
        size = int(memory.size) if memory_size is None else int(memory_size)
        required = self.num_elements * self._data_type.size_in_bytes
        if size < required:
            raise ValueError(
                f"memory block of {size} bytes cannot hold {self} of {self._data_type.name} "
                f"({required} bytes)"
            )
        self._memory = memory
        self._memory_size = size

    def is_null(self) -> bool:
        """True if the tensor has no memory block."""
        return self._memory is None

    def __bool__(self) -> bool:
        return not self.is_null()

    def as_array(self, shape: Optional[Union[ShapeLike, Sequence[int]]] = None) -> Any:
        """
        Return a typed, column-major array view of the tensor's memory.

        Parameters
        ----------
        shape : TensorShape or Sequence[int], optional
            Alternative shape with the same number of elements (for example
            ``(height, width, planes)``). Defaults to the tensor's own
            dimensions.

        Raises
        ------
        ValueError
            If the tensor is null or `shape` has a different element count.
        """
        if self._memory is None:
            raise ValueError("cannot view the memory of a null tensor")
        if shape is None:
            dims = self.dimensions if self.num_dimensions > 0 else (0,)
        else:
            dims = TensorShape(shape).dimensions
            count = 1
            for d in dims:
                count *= d
            if count != self.num_elements:
                raise ValueError(
                    f"cannot view {self} ({self.num_elements} elements) as {tuple(dims)}"
                )
        return typed_view(self._memory, dims, self._data_type.dtype_name)

    # ---------------------------------------------------------------------
    # Copy / display
    # ---------------------------------------------------------------------
    def _copy_into(self, other: "TensorShape") -> None:
        super()._copy_into(other)
        other._data_type = self._data_type
        other._device_type = self._device_type
        other._memory = self._memory
        other._memory_size = self._memory_size

    def __repr__(self) -> str:
        state = "null" if self.is_null() else f"{self._memory_size} bytes"
        return (
            f"Tensor({list(self.dimensions)}, data_type={self._data_type.name}, "
            f"device_type={self._device_type}, memory={state})"
        )


def are_compatible(a: Tensor, b: Tensor) -> bool:
    """
    True if `a` and `b` may be combined in one operation.

    Null or empty tensors are compatible with anything; otherwise device
    type and data type must both match.
    """
    if a.is_null() or a.is_empty() or b.is_null() or b.is_empty():
        return True
    return a.device_type is b.device_type and a.data_type is b.data_type
