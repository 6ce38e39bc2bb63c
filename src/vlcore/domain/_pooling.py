"""
Pooling operator interfaces for vlcore.

This module defines the **domain-level contracts** of the 2D pooling
operator:

- `PoolingMethod`: the reduction applied over each window
- `IPooling`: the structural contract of a configured pooling operator
- `PoolingImplementation`: the pluggable execution strategy behind an
  operator (native reference code, or a vendor-accelerated library)

Shape semantics
---------------
Tensors are laid out as (height, width, channels, cardinality, ...). For a
window of `pool_height x pool_width`, strides `(stride_y, stride_x)` and
padding `(pad_top, pad_bottom, pad_left, pad_right)`:

    out_height = (height + pad_top + pad_bottom - pool_height) // stride_y + 1
    out_width  = (width + pad_left + pad_right - pool_width) // stride_x + 1

Every other dimension is preserved.

Notes
-----
This module contains no NumPy or backend-specific logic and is safe to
depend on from any layer of the architecture.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol, Tuple, runtime_checkable

from ._errors import ErrorCode
from ._tensor import ITensor
from ._tensor_shape import TensorShape


class PoolingMethod(Enum):
    """
    Reduction applied over a pooling window.

    Attributes
    ----------
    MAX : PoolingMethod
        Maximum of the real (non-padded) cells of the window.
    AVERAGE : PoolingMethod
        Sum of the real cells divided by the nominal window area.
    """

    MAX = "max"
    AVERAGE = "avg"

    @classmethod
    def parse(cls, method: "PoolingMethod | str") -> "PoolingMethod":
        """
        Normalize a method identifier (``"max"``, ``"avg"`` or ``"average"``).

        Raises
        ------
        ValueError
            If the identifier is not recognised.
        """
        if isinstance(method, PoolingMethod):
            return method
        name = str(method).strip().lower()
        if name == "max":
            return cls.MAX
        if name in ("avg", "average"):
            return cls.AVERAGE
        raise ValueError(f"Unknown pooling method {method!r}")


@runtime_checkable
class IPooling(Protocol):
    """
    Protocol for a configured 2D pooling operator.

    Design constraints
    ------------------
    - Parameters are immutable after construction.
    - `forward` and `backward` are pure functions of (parameters, tensors);
      scratch memory comes from the operator's context.
    - Failures are reported as `ErrorCode` values, never as partial writes.
    """

    @property
    def pool_shape(self) -> Tuple[int, int]:
        """Window size as (pool_height, pool_width)."""

    @property
    def stride(self) -> Tuple[int, int]:
        """Stride as (stride_y, stride_x)."""

    @property
    def padding(self) -> Tuple[int, int, int, int]:
        """Padding as (pad_top, pad_bottom, pad_left, pad_right)."""

    @property
    def method(self) -> PoolingMethod:
        """Reduction method."""

    def forward_shape(self, input_shape: TensorShape) -> TensorShape:
        """Return the output shape produced for `input_shape`."""

    def forward(self, output: ITensor, input: ITensor) -> ErrorCode:
        """Write the pooled `input` into the pre-sized `output`."""

    def backward(
        self, der_input: ITensor, input: ITensor, der_output: ITensor
    ) -> ErrorCode:
        """Accumulate the input gradient into `der_input`."""


class PoolingImplementation(ABC):
    """
    Abstract execution strategy for the pooling operator.

    A pooling operator always owns a native implementation that is correct
    on every supported device; vendor-accelerated implementations are
    optional overrides tried first when `is_enabled` says so.

    Notes
    -----
    - Implementations receive tensors that already passed the operator's
      argument validation.
    - Returning `ErrorCode.UNSUPPORTED` means "this implementation cannot
      handle the request"; the operator then falls back to the next one.
    """

    name: str = "pooling"

    @abstractmethod
    def is_enabled(self, op: IPooling, tensor: ITensor) -> bool:
        """
        Report whether this implementation should be tried for `tensor`.

        Parameters
        ----------
        op : IPooling
            Operator being executed (gives access to parameters/context).
        tensor : ITensor
            The input tensor of the call; selects the device.
        """
        ...

    @abstractmethod
    def forward(self, op: IPooling, output: ITensor, input: ITensor) -> ErrorCode:
        """Compute the forward reduction into `output`."""
        ...

    @abstractmethod
    def backward(
        self, op: IPooling, der_input: ITensor, input: ITensor, der_output: ITensor
    ) -> ErrorCode:
        """Accumulate the gradient with respect to `input` into `der_input`."""
        ...
