"""
Per-context GPU capability handle.

`GpuHelper` answers "is there a usable GPU?" and "may the cuDNN path be
used?", and caches the vendor bindings it loads. After a device reset the
helper is invalidated so the next query re-initializes it.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Optional

from .._config import RuntimeConfig
from ..backends._gpu import GpuBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CudnnBindings:
    """
    Loaded cuDNN entry points.

    Attributes
    ----------
    ops : module
        High-level ``cupyx.cudnn`` helpers (pooling forward/backward).
    lib : module
        Low-level ``cupy.cuda.cudnn`` module (mode constants).
    error_type : type
        Exception class raised by cuDNN calls.
    """

    ops: Any
    lib: Any
    error_type: type


def load_cudnn_bindings() -> CudnnBindings:
    """
    Import the cuDNN bindings shipped with CuPy.

    Raises
    ------
    ImportError
        If CuPy or its cuDNN support is not installed.
    OSError
        If the cuDNN shared library cannot be loaded.
    """
    from cupy.cuda import cudnn as libcudnn
    from cupyx import cudnn as cudnn_ops

    return CudnnBindings(ops=cudnn_ops, lib=libcudnn, error_type=libcudnn.CuDNNError)


class GpuHelper:
    """
    Lazily initialized view of the GPU and cuDNN state of a context.

    Parameters
    ----------
    config : RuntimeConfig
        Supplies the initial cuDNN toggle.
    backend : GpuBackend
        Backend used to query devices.
    """

    def __init__(self, config: RuntimeConfig, backend: GpuBackend) -> None:
        self._config = config
        self._backend = backend
        self._cudnn_enabled = bool(config.cudnn_enabled)
        self._needs_initialization = True
        self._device_count = 0
        self._cudnn: Optional[CudnnBindings] = None
        self._cudnn_probed = False

    # ---------------------------------------------------------------------
    # Device queries
    # ---------------------------------------------------------------------
    @property
    def needs_initialization(self) -> bool:
        return self._needs_initialization

    def _initialize(self) -> None:
        if not self._needs_initialization:
            return
        self._device_count = self._backend.device_count()
        self._needs_initialization = False
        logger.debug("GpuHelper initialized: %d CUDA device(s)", self._device_count)

    def get_device_count(self) -> int:
        self._initialize()
        return self._device_count

    def get_device_index(self) -> int:
        return self._backend.device_index

    def is_gpu_available(self) -> bool:
        return self.get_device_index() < self.get_device_count()

    # ---------------------------------------------------------------------
    # cuDNN
    # ---------------------------------------------------------------------
    def get_cudnn_enabled(self) -> bool:
        return self._cudnn_enabled

    def set_cudnn_enabled(self, active: bool) -> None:
        self._cudnn_enabled = bool(active)

    def get_cudnn(self) -> Optional[CudnnBindings]:
        """
        Return the cached cuDNN bindings, loading them on first use.

        Returns None when they cannot be loaded. If the vendor path is
        enabled, the failure is reported once (per initialization) with a
        ``RuntimeWarning``.
        """
        self._initialize()
        if not self._cudnn_probed:
            self._cudnn_probed = True
            try:
                self._cudnn = load_cudnn_bindings()
            except (ImportError, OSError) as e:
                self._cudnn = None
                if self._cudnn_enabled:
                    warnings.warn(
                        f"cuDNN bindings unavailable; falling back to native pooling. ({e})",
                        RuntimeWarning,
                        stacklevel=2,
                    )
        return self._cudnn

    def is_cudnn_available(self) -> bool:
        return self.get_cudnn() is not None

    def is_cudnn_active(self) -> bool:
        """True if cuDNN is enabled, a GPU is present and the bindings load."""
        return (
            self._cudnn_enabled and self.is_gpu_available() and self.is_cudnn_available()
        )

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------
    def invalidate(self) -> None:
        """Drop cached handles; the next query re-initializes."""
        self._cudnn = None
        self._cudnn_probed = False
        self._needs_initialization = True
        logger.debug("GpuHelper invalidated")

    def clear(self) -> None:
        """Invalidate and restore the configured cuDNN toggle."""
        self.invalidate()
        self._cudnn_enabled = bool(self._config.cudnn_enabled)
