"""
Tensor interface definitions.

This module defines the domain-level contract of a tensor *view*: a shape,
a data type, a device type and a borrowed memory block. Concrete tensors
live in the infrastructure layer; operators and domain protocols type
against `ITensor` so they never depend on NumPy or CuPy directly.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from ._device import DataType, DeviceType
from ._tensor_shape import TensorShape


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor view interface.

    Notes
    -----
    - The memory block is borrowed: an `ITensor` never allocates or frees.
    - Shape accessors (`height`, `width`, `num_elements`, ...) come from
      `TensorShape`, which every concrete tensor extends.
    """

    @property
    def device_type(self) -> DeviceType: ...

    @property
    def data_type(self) -> DataType: ...

    @property
    def memory_size(self) -> int: ...

    @property
    def num_elements(self) -> int: ...

    def get_memory(self) -> Optional[Any]: ...

    def get_shape(self) -> TensorShape: ...

    def is_null(self) -> bool: ...

    def is_empty(self) -> bool: ...
