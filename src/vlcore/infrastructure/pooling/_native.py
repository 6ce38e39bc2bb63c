"""
Native 2D pooling kernels (NumPy on the CPU, CuPy on the GPU).

The kernels are written once against the array namespace `xp` of the
tensor's backend and operate on column-major ``(height, width, planes)``
views, where ``planes`` folds every dimension past the second one
(channels, cardinality, ...).

Algorithm
---------
The input is staged into a padded scratch array taken from the context
workspace. The output is then built by sweeping the kernel offsets
``(ky, kx)`` in row-major order and combining the strided slab

    padded[ky : ky + sy*(oh-1) + 1 : sy, kx : kx + sx*(ow-1) + 1 : sx, :]

into the result, which keeps every step a vectorized array expression.

Padding semantics
-----------------
- Max pooling pads with ``-inf`` and only selects cells inside the input:
  the first such cell of each window replaces a padded pick, after which
  ties keep the first maximal cell in row-major window order (strict
  ``>`` update).
- Average pooling pads with zeros and divides by the nominal window area
  ``pool_height * pool_width``, padded cells included.
"""

from __future__ import annotations

from typing import Any, Tuple

from ...domain._errors import ErrorCode
from ...domain._pooling import PoolingImplementation, PoolingMethod
from ..backends._base import typed_view
from ..tensor._tensor import Tensor


# ---------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------
def _planes_view(tensor: Tensor) -> Any:
    """View `tensor` as (height, width, planes)."""
    h, w = tensor.height, tensor.width
    planes = tensor.num_elements // (h * w)
    return tensor.as_array((h, w, planes))


def _window(a: Any, ky: int, kx: int, out_hw: Tuple[int, int], stride: Tuple[int, int]) -> Any:
    """Strided slab of `a` read by kernel offset (ky, kx) for every output cell."""
    oh, ow = out_hw
    sy, sx = stride
    return a[ky : ky + sy * (oh - 1) + 1 : sy, kx : kx + sx * (ow - 1) + 1 : sx, :]


def _inside(
    xp: Any,
    ky: int,
    kx: int,
    out_hw: Tuple[int, int],
    stride: Tuple[int, int],
    padding: Tuple[int, int, int, int],
    extent: Tuple[int, int],
) -> Any:
    """(oh, ow, 1) mask of the output cells whose (ky, kx) cell is not padding."""
    oh, ow = out_hw
    sy, sx = stride
    pad_top, _, pad_left, _ = padding
    h, w = extent
    rows = ky + sy * xp.arange(oh) - pad_top
    cols = kx + sx * xp.arange(ow) - pad_left
    row_ok = (rows >= 0) & (rows < h)
    col_ok = (cols >= 0) & (cols < w)
    return row_ok[:, None, None] & col_ok[None, :, None]


def _stage_padded(x: Any, padded: Any, padding: Tuple[int, int, int, int], fill: float) -> None:
    pad_top, _, pad_left, _ = padding
    h, w = x.shape[0], x.shape[1]
    padded.fill(fill)
    padded[pad_top : pad_top + h, pad_left : pad_left + w, :] = x


# ---------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------
def max_pool_forward(
    xp: Any,
    padded: Any,
    y: Any,
    pool: Tuple[int, int],
    stride: Tuple[int, int],
    padding: Tuple[int, int, int, int],
) -> Any:
    """
    Max-reduce the windows of `padded` into `y` (in place).

    Padded cells are never selected while their window holds an input
    cell, even one equal to ``-inf``.

    Returns
    -------
    Any
        ``int32`` array shaped like `y` holding the row-major window offset
        ``ky * pool_width + kx`` of the selected cell.
    """
    pool_h, pool_w = pool
    pad_top, pad_bottom, pad_left, pad_right = padding
    out_hw = (y.shape[0], y.shape[1])
    extent = (padded.shape[0] - pad_top - pad_bottom, padded.shape[1] - pad_left - pad_right)

    y[...] = _window(padded, 0, 0, out_hw, stride)
    argmax = xp.zeros(y.shape, dtype=xp.int32)
    chosen = _inside(xp, 0, 0, out_hw, stride, padding, extent)
    for k in range(1, pool_h * pool_w):
        ky, kx = divmod(k, pool_w)
        candidate = _window(padded, ky, kx, out_hw, stride)
        inside = _inside(xp, ky, kx, out_hw, stride, padding, extent)
        better = (candidate > y) | (inside & ~chosen)
        y[...] = xp.where(better, candidate, y)
        argmax[better] = k
        chosen |= inside
    return argmax


def max_pool_backward(
    xp: Any,
    padded: Any,
    grad_padded: Any,
    dy: Any,
    pool: Tuple[int, int],
    stride: Tuple[int, int],
    padding: Tuple[int, int, int, int],
) -> None:
    """
    Route each `dy` entry to the selected cell of its window.

    The selection is recomputed from `padded` with the forward tie-break;
    contributions of overlapping windows are summed into `grad_padded`,
    which must be zeroed by the caller.
    """
    pool_h, pool_w = pool
    out_hw = (dy.shape[0], dy.shape[1])

    best = xp.empty(dy.shape, dtype=dy.dtype)
    argmax = max_pool_forward(xp, padded, best, pool, stride, padding)
    zero = xp.zeros((), dtype=dy.dtype)
    for k in range(pool_h * pool_w):
        ky, kx = divmod(k, pool_w)
        slab = _window(grad_padded, ky, kx, out_hw, stride)
        slab += xp.where(argmax == k, dy, zero)


def avg_pool_forward(
    xp: Any,
    padded: Any,
    y: Any,
    pool: Tuple[int, int],
    stride: Tuple[int, int],
) -> None:
    """Average the windows of `padded` into `y` over the full window area."""
    pool_h, pool_w = pool
    out_hw = (y.shape[0], y.shape[1])

    y.fill(0)
    for k in range(pool_h * pool_w):
        ky, kx = divmod(k, pool_w)
        y += _window(padded, ky, kx, out_hw, stride)
    y /= pool_h * pool_w


def avg_pool_backward(
    xp: Any,
    grad_padded: Any,
    dy: Any,
    pool: Tuple[int, int],
    stride: Tuple[int, int],
) -> None:
    """Spread each `dy` entry evenly over its window in `grad_padded`."""
    pool_h, pool_w = pool
    out_hw = (dy.shape[0], dy.shape[1])

    share = dy / (pool_h * pool_w)
    for k in range(pool_h * pool_w):
        ky, kx = divmod(k, pool_w)
        slab = _window(grad_padded, ky, kx, out_hw, stride)
        slab += share


# ---------------------------------------------------------------------
# Implementation
# ---------------------------------------------------------------------
class NativePooling(PoolingImplementation):
    """
    Reference pooling implementation, correct on every device.

    Scratch arrays (padded input, padded gradient) are carved out of the
    operator context's workspace for the tensor's device, so steady-state
    calls of the same size allocate nothing but small temporaries.
    """

    name = "native"

    def is_enabled(self, op, tensor: Tensor) -> bool:
        return True

    def _workspace(self, op, tensor: Tensor, count: int) -> Tuple[Any, Tuple[int, int, int]]:
        """
        Reserve room for `count` padded copies of `tensor`.

        Returns ``(block, shape)``; on failure `block` is None and the error
        is already recorded on the context.
        """
        pad_top, pad_bottom, pad_left, pad_right = op.padding
        h, w = tensor.height, tensor.width
        planes = tensor.num_elements // (h * w)
        shape = (h + pad_top + pad_bottom, w + pad_left + pad_right, planes)
        nbytes = shape[0] * shape[1] * shape[2] * tensor.data_type.size_in_bytes
        block = op.context.get_workspace(tensor.device_type, count * nbytes)
        return block, shape

    def forward(self, op, output: Tensor, input: Tensor) -> ErrorCode:
        xp = op.context.get_backend(input.device_type).xp
        dtype_name = input.data_type.dtype_name

        block, shape = self._workspace(op, input, 1)
        if block is None:
            return op.context.get_last_error()
        padded = typed_view(block, shape, dtype_name)

        x = _planes_view(input)
        y = _planes_view(output)
        if op.method is PoolingMethod.MAX:
            _stage_padded(x, padded, op.padding, float("-inf"))
            max_pool_forward(xp, padded, y, op.pool_shape, op.stride, op.padding)
        else:
            _stage_padded(x, padded, op.padding, 0.0)
            avg_pool_forward(xp, padded, y, op.pool_shape, op.stride)
        return ErrorCode.SUCCESS

    def backward(self, op, der_input: Tensor, input: Tensor, der_output: Tensor) -> ErrorCode:
        xp = op.context.get_backend(input.device_type).xp
        dtype_name = input.data_type.dtype_name
        pad_top, _, pad_left, _ = op.padding

        # max pooling also needs the padded input next to the padded gradient
        is_max = op.method is PoolingMethod.MAX
        block, shape = self._workspace(op, input, 2 if is_max else 1)
        if block is None:
            return op.context.get_last_error()
        region = shape[0] * shape[1] * shape[2] * input.data_type.size_in_bytes
        grad_padded = typed_view(block, shape, dtype_name, offset=0)
        grad_padded.fill(0)

        dy = _planes_view(der_output)
        if is_max:
            padded = typed_view(block, shape, dtype_name, offset=region)
            _stage_padded(_planes_view(input), padded, op.padding, float("-inf"))
            max_pool_backward(xp, padded, grad_padded, dy, op.pool_shape, op.stride, op.padding)
        else:
            avg_pool_backward(xp, grad_padded, dy, op.pool_shape, op.stride)

        dx = _planes_view(der_input)
        h, w = dx.shape[0], dx.shape[1]
        dx += grad_padded[pad_top : pad_top + h, pad_left : pad_left + w, :]
        return ErrorCode.SUCCESS
