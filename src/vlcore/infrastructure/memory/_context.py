"""
Execution context.

A `Context` is the per-caller bundle of reusable scratch memory and error
state that operators are bound to:

- one workspace `Buffer` per device (untyped scratch bytes)
- one all-ones `Buffer` per device (typed vector of ones)
- the last error code and message
- a lazily created `GpuHelper`

Contexts are not thread-safe; use one per thread of execution.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ...domain._device import DataType, DeviceType
from ...domain._errors import (
    ErrorCode,
    IllegalArgumentError,
    VLError,
    get_error_message,
)
from .._config import RuntimeConfig
from ..backends._base import ArrayBackend, typed_view
from ..backends._cpu import CpuBackend
from ..backends._gpu import GpuBackend
from ._buffer import Buffer
from ._gpu_helper import GpuHelper

logger = logging.getLogger(__name__)


class Context:
    """
    Scratch memory and error state shared by the operators of one caller.

    Parameters
    ----------
    config : RuntimeConfig, optional
        Runtime settings. Defaults to `RuntimeConfig.from_env()`.

    Notes
    -----
    Usable as a context manager; leaving the ``with`` block calls `clear`.
    """

    def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
        self._config = config if config is not None else RuntimeConfig.from_env()
        self._backends: Dict[DeviceType, ArrayBackend] = {
            DeviceType.CPU: CpuBackend(),
            DeviceType.GPU: GpuBackend(device_index=self._config.gpu_device),
        }
        self._workspace = {device: Buffer(self.get_backend) for device in DeviceType}
        self._all_ones = {device: Buffer(self.get_backend) for device in DeviceType}
        self._gpu_helper: Optional[GpuHelper] = None
        self._last_error = ErrorCode.SUCCESS
        self._last_error_message = ""

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    def get_backend(self, device_type: DeviceType) -> ArrayBackend:
        """Return the array backend serving `device_type`."""
        return self._backends[DeviceType.parse(device_type)]

    # ---------------------------------------------------------------------
    # Scratch memory
    # ---------------------------------------------------------------------
    def get_workspace(self, device_type: DeviceType, size: int) -> Optional[Any]:
        """
        Return a scratch block of at least `size` bytes on `device_type`.

        The block is only valid until the next call that may reallocate the
        workspace of the same device.

        Returns
        -------
        Any or None
            The block (flat ``uint8`` array), or None on failure, in which
            case the error is recorded on the context.
        """
        device_type = DeviceType.parse(device_type)
        error = self._workspace[device_type].init(device_type, DataType.CHAR, size)
        if error.failed:
            self.set_error(error, "get_workspace")
            return None
        return self._workspace[device_type].get_memory()

    def clear_workspace(self, device_type: DeviceType) -> None:
        self._workspace[DeviceType.parse(device_type)].clear()

    def get_all_ones(
        self, device_type: DeviceType, data_type: DataType, size: int
    ) -> Optional[Any]:
        """
        Return a block holding at least `size` elements of `data_type`, all
        equal to one.

        The block is refilled only when the underlying buffer had to be
        reallocated.

        Returns
        -------
        Any or None
            The block, or None on failure (error recorded on the context).
        """
        device_type = DeviceType.parse(device_type)
        data_type = DataType(data_type)
        size = int(size)
        buffer = self._all_ones[device_type]
        before = buffer.num_reallocations
        error = buffer.init(device_type, data_type, size * data_type.size_in_bytes)
        if error.failed:
            self.set_error(error, "get_all_ones")
            return None
        memory = buffer.get_memory()
        if buffer.num_reallocations != before:
            typed_view(memory, (size,), data_type.dtype_name).fill(1)
        return memory

    def clear_all_ones(self, device_type: DeviceType) -> None:
        self._all_ones[DeviceType.parse(device_type)].clear()

    # ---------------------------------------------------------------------
    # GPU state
    # ---------------------------------------------------------------------
    def get_gpu_helper(self) -> GpuHelper:
        """Return the GPU helper, creating it on first use."""
        if self._gpu_helper is None:
            self._gpu_helper = GpuHelper(self._config, self._backends[DeviceType.GPU])
        return self._gpu_helper

    def invalidate_gpu(self) -> None:
        """
        Forget every GPU block without freeing it and mark the GPU helper
        for re-initialization. Call after the device has been reset.
        """
        self._workspace[DeviceType.GPU].invalidate_gpu()
        self._all_ones[DeviceType.GPU].invalidate_gpu()
        self.get_gpu_helper().invalidate()
        logger.debug("Context GPU state invalidated")

    def clear(self) -> None:
        """Free every buffer and discard the GPU helper. Error state is kept."""
        for device in DeviceType:
            self.clear_workspace(device)
            self.clear_all_ones(device)
        if self._gpu_helper is not None:
            self._gpu_helper.clear()
            self._gpu_helper = None

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.clear()

    # ---------------------------------------------------------------------
    # Error state
    # ---------------------------------------------------------------------
    def set_error(self, error: ErrorCode, message: Optional[str] = None) -> ErrorCode:
        """
        Record `error` as the last error and return it.

        The stored message is `get_error_message(error)`, prefixed by
        `message` when given (``"<message> [<code message>]"``). A successful
        code leaves the error state unchanged.
        """
        error = ErrorCode(error)
        if error.failed:
            text = get_error_message(error)
            if message:
                text = f"{message} [{text}]"
            self._last_error = error
            self._last_error_message = text
            logger.debug("Context error set: %s: %s", error.name, text)
        return error

    def pass_error(self, error: ErrorCode, message: Optional[str] = None) -> ErrorCode:
        """
        Forward an error produced by a lower layer and return it unchanged.

        If the lower layer already recorded `error`, its message is kept and
        `message` is prepended (``"<message>: <previous>"``); otherwise the
        code is recorded first.
        """
        error = ErrorCode(error)
        if error.failed:
            if self._last_error is not error or not self._last_error_message:
                self._last_error = error
                self._last_error_message = get_error_message(error)
            if message:
                self._last_error_message = f"{message}: {self._last_error_message}"
        return error

    def reset_last_error(self) -> None:
        self._last_error = ErrorCode.SUCCESS
        self._last_error_message = ""

    def get_last_error(self) -> ErrorCode:
        return self._last_error

    def get_last_error_message(self) -> str:
        return self._last_error_message

    def raise_for_error(self, error: ErrorCode) -> None:
        """
        Raise the exception matching a failing `error`; no-op on success.

        Raises
        ------
        IllegalArgumentError
            For ``ILLEGAL_ARGUMENT``.
        VLError
            For every other failing code.
        """
        error = ErrorCode(error)
        if not error.failed:
            return
        message = self._last_error_message if self._last_error is error else None
        if error is ErrorCode.ILLEGAL_ARGUMENT:
            raise IllegalArgumentError(message)
        raise VLError(error, message)

    def __repr__(self) -> str:
        return (
            f"Context(last_error={self._last_error.name}, "
            f"workspace={self._workspace}, all_ones={self._all_ones})"
        )
