"""
cuDNN-accelerated pooling for GPU tensors.

The column-major ``(height, width, planes)`` layout of a vlcore tensor is,
byte for byte, the row-major array ``(planes, 1, width, height)``, which is
what cuDNN consumes as NCHW. Height and width therefore swap roles when the
window, stride and padding are handed to cuDNN.

cuDNN only pads symmetrically; asymmetric padding is reported as
``UNSUPPORTED`` so the operator falls back to the native kernels.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ...domain._device import DeviceType
from ...domain._errors import ErrorCode
from ...domain._pooling import PoolingImplementation, PoolingMethod
from ..memory._gpu_helper import CudnnBindings
from ..tensor._tensor import Tensor

logger = logging.getLogger(__name__)


def _as_nchw(tensor: Tensor) -> Any:
    h, w = tensor.height, tensor.width
    planes = tensor.num_elements // (h * w)
    # transpose of a Fortran (h, w, planes) view is a C-contiguous view
    return tensor.as_array((h, w, planes)).T.reshape(planes, 1, w, h)


class CudnnPooling(PoolingImplementation):
    """
    Pooling through ``cupyx.cudnn``.

    Enabled only for GPU tensors when the context's `GpuHelper` reports
    cuDNN as active.
    """

    name = "cudnn"

    def is_enabled(self, op, tensor: Tensor) -> bool:
        if tensor.device_type is not DeviceType.GPU:
            return False
        return op.context.get_gpu_helper().is_cudnn_active()

    def _bindings(self, op) -> Optional[CudnnBindings]:
        pad_top, pad_bottom, pad_left, pad_right = op.padding
        if pad_top != pad_bottom or pad_left != pad_right:
            logger.debug("cuDNN pooling skipped: asymmetric padding %s", op.padding)
            return None
        return op.context.get_gpu_helper().get_cudnn()

    @staticmethod
    def _geometry(op, cudnn: CudnnBindings):
        pool_h, pool_w = op.pool_shape
        stride_y, stride_x = op.stride
        pad_top, _, pad_left, _ = op.padding
        if op.method is PoolingMethod.MAX:
            mode = cudnn.lib.CUDNN_POOLING_MAX
        else:
            mode = cudnn.lib.CUDNN_POOLING_AVERAGE_COUNT_INCLUDE_PADDING
        return (pool_w, pool_h), (stride_x, stride_y), (pad_left, pad_top), mode

    def forward(self, op, output: Tensor, input: Tensor) -> ErrorCode:
        cudnn = self._bindings(op)
        if cudnn is None:
            return ErrorCode.UNSUPPORTED
        ksize, stride, pad, mode = self._geometry(op, cudnn)
        try:
            cudnn.ops.pooling_forward(
                _as_nchw(input), _as_nchw(output), ksize, stride, pad, mode
            )
        except cudnn.error_type as e:
            return op.context.set_error(ErrorCode.CUDNN, f"cudnn pooling forward: {e}")
        return ErrorCode.SUCCESS

    def backward(self, op, der_input: Tensor, input: Tensor, der_output: Tensor) -> ErrorCode:
        cudnn = self._bindings(op)
        if cudnn is None:
            return ErrorCode.UNSUPPORTED
        ksize, stride, pad, mode = self._geometry(op, cudnn)
        xp = op.context.get_backend(DeviceType.GPU).xp
        x = _as_nchw(input)
        gy = _as_nchw(der_output)
        try:
            # cuDNN needs the forward output to locate the selected cells
            y = xp.empty(gy.shape, dtype=gy.dtype)
            cudnn.ops.pooling_forward(x, y, ksize, stride, pad, mode)
            gx = cudnn.ops.pooling_backward(x, y, gy, ksize, stride, pad, mode)
        except cudnn.error_type as e:
            return op.context.set_error(ErrorCode.CUDNN, f"cudnn pooling backward: {e}")
        dx = _as_nchw(der_input)
        dx += gx
        return ErrorCode.SUCCESS
