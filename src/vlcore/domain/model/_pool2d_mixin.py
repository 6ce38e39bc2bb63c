"""
Configuration mixin for pooling operators.

This module defines `PoolingConfigMixin`, a lightweight mixin that exposes
the immutable hyperparameters of a pooling operator as a JSON-friendly
dict and rebuilds an operator from such a dict.

Design notes
------------
- Only structural hyperparameters are exported; tensors and context state
  are never part of a configuration.
- Uses plain Python types (lists, ints, str) to ensure JSON compatibility.
- Assumes the host class exposes `pool_shape`, `stride`, `padding` and
  `method`, and accepts the matching keyword arguments plus a leading
  context argument in its constructor.
"""

from typing import Any, Dict, Type, TypeVar

from .._pooling import PoolingMethod

T = TypeVar("T", bound="PoolingConfigMixin")


class PoolingConfigMixin:
    """
    Mixin providing JSON serialization hooks for pooling operators.

    The host class is expected to expose:
    - pool_shape : tuple[int, int]
    - stride     : tuple[int, int]
    - padding    : tuple[int, int, int, int]
    - method     : PoolingMethod
    """

    # ---------------------------------------------------------------------
    # JSON serialization
    # ---------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return JSON-serializable configuration for this pooling operator.
        """
        pool_h, pool_w = self.pool_shape
        stride_y, stride_x = self.stride
        pad_top, pad_bottom, pad_left, pad_right = self.padding

        return {
            "pool": [int(pool_h), int(pool_w)],
            "stride": [int(stride_y), int(stride_x)],
            "pad": [int(pad_top), int(pad_bottom), int(pad_left), int(pad_right)],
            "method": PoolingMethod(self.method).value,
        }

    @classmethod
    def from_config(cls: Type[T], context: Any, cfg: Dict[str, Any]) -> T:
        """
        Reconstruct the operator from a configuration dict, bound to `context`.
        """
        pool_h, pool_w = cfg["pool"]
        stride_y, stride_x = cfg["stride"]
        pad_top, pad_bottom, pad_left, pad_right = cfg["pad"]
        return cls(
            context,
            pool_height=int(pool_h),
            pool_width=int(pool_w),
            stride_y=int(stride_y),
            stride_x=int(stride_x),
            pad_top=int(pad_top),
            pad_bottom=int(pad_bottom),
            pad_left=int(pad_left),
            pad_right=int(pad_right),
            method=PoolingMethod.parse(cfg["method"]),
        )
