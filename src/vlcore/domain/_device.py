"""
Device and data-type abstractions.

This module defines the two tags every tensor and buffer carries:

- `DeviceType`: where the memory lives (CPU or GPU)
- `DataType`: how the bytes are interpreted (char, single, double)

Both are plain enumerations with no backend dependency; the NumPy dtype of
a `DataType` is exposed by name so the domain layer never imports NumPy.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DeviceType(Enum):
    """
    Enumeration of supported device categories.

    Attributes
    ----------
    CPU : DeviceType
        Host memory, NumPy backend.
    GPU : DeviceType
        CUDA device memory, CuPy backend.
    """

    CPU = "cpu"
    GPU = "gpu"

    @classmethod
    def parse(cls, device: "DeviceType | str") -> "DeviceType":
        """
        Normalize a device identifier.

        Parameters
        ----------
        device : DeviceType or str
            Either an existing `DeviceType` or one of ``"cpu"``, ``"gpu"``,
            ``"cuda"`` (case-insensitive). A trailing ``":<index>"`` is
            accepted and ignored.

        Returns
        -------
        DeviceType

        Raises
        ------
        ValueError
            If the identifier is not recognised.
        """
        if isinstance(device, DeviceType):
            return device
        name = str(device).strip().lower().split(":", 1)[0]
        if name == "cpu":
            return cls.CPU
        if name in ("gpu", "cuda"):
            return cls.GPU
        raise ValueError(f"Invalid device '{device}'. Expected 'cpu' or 'gpu'")

    def __str__(self) -> str:
        return self.value


class DataType(Enum):
    """
    Element type of a tensor or buffer.

    The value of each member is its NumPy dtype name.
    """

    CHAR = "int8"
    FLOAT = "float32"
    DOUBLE = "float64"

    @property
    def size_in_bytes(self) -> int:
        """Size of one element in bytes."""
        return _DATA_TYPE_SIZES[self]

    @property
    def dtype_name(self) -> str:
        """NumPy/CuPy dtype name for this data type."""
        return self.value

    @classmethod
    def from_numpy(cls, dtype: Any) -> "DataType":
        """
        Map a NumPy-like dtype (or its name) to a `DataType`.

        Parameters
        ----------
        dtype : Any
            A ``numpy.dtype`` (or any dtype-like object exposing a string
            ``.name``) or a dtype name such as ``"float32"``.

        Returns
        -------
        DataType

        Raises
        ------
        TypeError
            If the dtype has no vlcore counterpart.
        """
        name = getattr(dtype, "name", None)
        if not isinstance(name, str):
            # scalar types such as numpy.float64
            name = getattr(dtype, "__name__", None)
        if not isinstance(name, str):
            name = str(dtype)
        if name == "char":
            return cls.CHAR
        for member in cls:
            if member.value == name:
                return member
        raise TypeError(f"Unsupported dtype for vlcore tensors: {dtype!r}")


_DATA_TYPE_SIZES = {
    DataType.CHAR: 1,
    DataType.FLOAT: 4,
    DataType.DOUBLE: 8,
}


def get_data_type_size_in_bytes(data_type: DataType) -> int:
    """
    Return the element size of `data_type` in bytes.

    Parameters
    ----------
    data_type : DataType
        Element type.

    Returns
    -------
    int
        1 for `CHAR`, 4 for `FLOAT`, 8 for `DOUBLE`.
    """
    return DataType(data_type).size_in_bytes
