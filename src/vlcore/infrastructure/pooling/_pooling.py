"""
2D pooling operator.

`Pooling` binds a fixed set of hyperparameters (window, stride, padding,
method) to a `Context` and exposes three operations:

- `forward_shape`: output shape for a given input shape
- `forward`: pooled output into a caller-allocated tensor
- `backward`: input gradient accumulated into a caller-allocated tensor

Dispatch
--------
Arguments are validated first; nothing is written when validation fails.
The accelerated implementations registered for the input's device are then
tried in order while they report themselves enabled; an implementation that
answers ``UNSUPPORTED`` hands over to the next one, and the native
implementation runs last. GPU work is synchronized before returning.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from ...domain._device import DataType, DeviceType
from ...domain._errors import ErrorCode, IllegalArgumentError, VLError
from ...domain._pooling import PoolingImplementation, PoolingMethod
from ...domain._tensor_shape import TensorShape
from ...domain.model._pool2d_mixin import PoolingConfigMixin
from ..memory._context import Context
from ..tensor._tensor import Tensor, are_compatible
from ._cudnn import CudnnPooling
from ._native import NativePooling

logger = logging.getLogger(__name__)

_SUPPORTED_DATA_TYPES = (DataType.FLOAT, DataType.DOUBLE)

_NATIVE: PoolingImplementation = NativePooling()

# Vendor implementations tried before the native one, per device.
_ACCELERATED: Dict[DeviceType, Tuple[PoolingImplementation, ...]] = {
    DeviceType.CPU: (),
    DeviceType.GPU: (CudnnPooling(),),
}


class Pooling(PoolingConfigMixin):
    """
    Configured 2D max/average pooling operator.

    Parameters
    ----------
    context : Context
        Supplies scratch memory and records errors.
    pool_height, pool_width : int
        Window size (> 0).
    stride_y, stride_x : int, optional
        Window step (>= 1). Default 1.
    pad_top, pad_bottom, pad_left, pad_right : int, optional
        Implicit padding (>= 0), each strictly smaller than the window
        extent along its axis. Default 0.
    method : PoolingMethod or str, optional
        ``"max"`` (default) or ``"avg"``.

    Raises
    ------
    IllegalArgumentError
        If a parameter is out of range. ``ILLEGAL_ARGUMENT`` is also
        recorded on `context`.
    """

    def __init__(
        self,
        context: Context,
        pool_height: int,
        pool_width: int,
        stride_y: int = 1,
        stride_x: int = 1,
        pad_top: int = 0,
        pad_bottom: int = 0,
        pad_left: int = 0,
        pad_right: int = 0,
        method: PoolingMethod | str = PoolingMethod.MAX,
    ) -> None:
        self._context = context
        self._pool = (int(pool_height), int(pool_width))
        self._stride = (int(stride_y), int(stride_x))
        self._padding = (int(pad_top), int(pad_bottom), int(pad_left), int(pad_right))
        try:
            self._method = PoolingMethod.parse(method)
        except ValueError as e:
            self._reject(str(e))

        problem = self._check_parameters()
        if problem is not None:
            self._reject(problem)

    def _check_parameters(self) -> Optional[str]:
        pool_h, pool_w = self._pool
        stride_y, stride_x = self._stride
        pad_top, pad_bottom, pad_left, pad_right = self._padding
        if pool_h <= 0 or pool_w <= 0:
            return f"pool size must be positive, got {self._pool}"
        if stride_y < 1 or stride_x < 1:
            return f"stride must be at least 1, got {self._stride}"
        if min(self._padding) < 0:
            return f"padding must be non-negative, got {self._padding}"
        if pad_top >= pool_h or pad_bottom >= pool_h:
            return f"vertical padding must be smaller than pool height {pool_h}, got {self._padding}"
        if pad_left >= pool_w or pad_right >= pool_w:
            return f"horizontal padding must be smaller than pool width {pool_w}, got {self._padding}"
        return None

    def _reject(self, message: str) -> None:
        self._context.set_error(ErrorCode.ILLEGAL_ARGUMENT, f"Pooling: {message}")
        raise IllegalArgumentError(message)

    # ---------------------------------------------------------------------
    # Parameters
    # ---------------------------------------------------------------------
    @property
    def context(self) -> Context:
        return self._context

    @property
    def pool_shape(self) -> Tuple[int, int]:
        return self._pool

    @property
    def stride(self) -> Tuple[int, int]:
        return self._stride

    @property
    def padding(self) -> Tuple[int, int, int, int]:
        return self._padding

    @property
    def method(self) -> PoolingMethod:
        return self._method

    # ---------------------------------------------------------------------
    # Shape inference
    # ---------------------------------------------------------------------
    def _window_fits(self, shape: TensorShape) -> bool:
        pool_h, pool_w = self._pool
        pad_top, pad_bottom, pad_left, pad_right = self._padding
        return (
            shape.height + pad_top + pad_bottom >= pool_h
            and shape.width + pad_left + pad_right >= pool_w
        )

    def _input_problem(self, shape: TensorShape) -> Optional[str]:
        if not self._window_fits(shape):
            return f"padded input {shape} is smaller than the pooling window {self._pool}"
        planes = 1
        for d in shape.dimensions[2:]:
            planes *= d
        # windows made of padding alone have no defined value
        if planes > 0 and shape.num_elements == 0:
            return f"input {shape} is empty but its pooled output would not be"
        return None

    def forward_shape(self, input_shape: TensorShape) -> TensorShape:
        """
        Return the output shape for `input_shape`.

        Height and width follow
        ``(extent + pad_before + pad_after - pool) // stride + 1``; every
        other dimension is copied.

        Raises
        ------
        IllegalArgumentError
            If the padded input is smaller than the window, or the input is
            empty while the output would not be.
            ``ILLEGAL_ARGUMENT`` is also recorded on the context.
        """
        input_shape = TensorShape(input_shape)
        problem = self._input_problem(input_shape)
        if problem is not None:
            self._reject(problem)
        pool_h, pool_w = self._pool
        stride_y, stride_x = self._stride
        pad_top, pad_bottom, pad_left, pad_right = self._padding

        output_shape = input_shape.get_shape()
        output_shape.set_height((input_shape.height + pad_top + pad_bottom - pool_h) // stride_y + 1)
        output_shape.set_width((input_shape.width + pad_left + pad_right - pool_w) // stride_x + 1)
        return output_shape

    # ---------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------
    def _fail(self, error: ErrorCode, message: str) -> ErrorCode:
        return self._context.set_error(error, f"Pooling: {message}")

    def _validate(self, tensors: Dict[str, Tensor]) -> ErrorCode:
        for name, tensor in tensors.items():
            if tensor.is_null() and not tensor.is_empty():
                return self._fail(ErrorCode.ILLEGAL_ARGUMENT, f"{name} has no memory")

        names = list(tensors)
        for i, a in enumerate(names):
            for b in names[i + 1 :]:
                if not are_compatible(tensors[a], tensors[b]):
                    return self._fail(
                        ErrorCode.ILLEGAL_ARGUMENT,
                        f"{a} ({tensors[a].device_type}, {tensors[a].data_type.name}) and "
                        f"{b} ({tensors[b].device_type}, {tensors[b].data_type.name}) "
                        "are not compatible",
                    )

        for name, tensor in tensors.items():
            if tensor.data_type not in _SUPPORTED_DATA_TYPES:
                return self._fail(
                    ErrorCode.UNSUPPORTED, f"{name} data type {tensor.data_type.name} is not supported"
                )

        problem = self._input_problem(tensors["input"].get_shape())
        if problem is not None:
            return self._fail(ErrorCode.ILLEGAL_ARGUMENT, problem)
        return ErrorCode.SUCCESS

    # ---------------------------------------------------------------------
    # Operations
    # ---------------------------------------------------------------------
    def forward(self, output: Tensor, input: Tensor) -> ErrorCode:
        """
        Pool `input` into `output`, which must already have
        `forward_shape(input)` and the same device and data type.

        Returns
        -------
        ErrorCode
            ``SUCCESS`` or the failing code (also recorded on the context).
        """
        error = self._validate({"output": output, "input": input})
        if error.failed:
            return error
        expected = self.forward_shape(input)
        if output.get_shape() != expected:
            return self._fail(
                ErrorCode.ILLEGAL_ARGUMENT,
                f"output shape {output.get_shape()} does not match {expected}",
            )
        if input.is_empty():
            return ErrorCode.SUCCESS
        return self._dispatch("forward", input, output, input)

    def backward(self, der_input: Tensor, input: Tensor, der_output: Tensor) -> ErrorCode:
        """
        Add the gradient of the pooling with respect to `input` into
        `der_input`.

        `der_input` must have the shape of `input` and `der_output` the
        shape `forward_shape(input)`. Existing values of `der_input` are
        accumulated into, not overwritten.

        Returns
        -------
        ErrorCode
            ``SUCCESS`` or the failing code (also recorded on the context).
        """
        error = self._validate(
            {"der_input": der_input, "input": input, "der_output": der_output}
        )
        if error.failed:
            return error
        expected = self.forward_shape(input)
        if der_output.get_shape() != expected:
            return self._fail(
                ErrorCode.ILLEGAL_ARGUMENT,
                f"der_output shape {der_output.get_shape()} does not match {expected}",
            )
        if der_input.get_shape() != input.get_shape():
            return self._fail(
                ErrorCode.ILLEGAL_ARGUMENT,
                f"der_input shape {der_input.get_shape()} does not match input {input.get_shape()}",
            )
        if input.is_empty():
            return ErrorCode.SUCCESS
        return self._dispatch("backward", input, der_input, input, der_output)

    # ---------------------------------------------------------------------
    # Dispatch
    # ---------------------------------------------------------------------
    def _dispatch(self, direction: str, input: Tensor, *tensors: Tensor) -> ErrorCode:
        device_type = input.device_type
        for impl in _ACCELERATED.get(device_type, ()):
            if not impl.is_enabled(self, input):
                continue
            error = self._run(getattr(impl, direction), device_type, self, *tensors)
            if error is not ErrorCode.UNSUPPORTED:
                return self._context.pass_error(error, f"Pooling {direction} ({impl.name})")
            logger.debug(
                "Pooling %s: %s declined, falling back to the next implementation",
                direction,
                impl.name,
            )
        error = self._run(getattr(_NATIVE, direction), device_type, self, *tensors)
        return self._context.pass_error(error, f"Pooling {direction}")

    def _run(self, fn, device_type: DeviceType, *args) -> ErrorCode:
        """
        Call `fn` and translate backend failures into recorded error codes.

        Exceptions the backend cannot classify propagate.
        """
        backend = self._context.get_backend(device_type)
        try:
            with backend.activate():
                error = fn(*args)
                if not error.failed:
                    backend.synchronize()
            return error
        except VLError as e:
            return self._context.set_error(e.code, e.message)
        except Exception as e:
            code = backend.translate_error(e)
            if code is None:
                raise
            return self._context.set_error(code, f"{type(e).__name__}: {e}")

    def __repr__(self) -> str:
        return (
            f"Pooling(pool={self._pool}, stride={self._stride}, "
            f"padding={self._padding}, method={self._method.value})"
        )
