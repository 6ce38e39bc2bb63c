"""
Runtime configuration read from the process environment.

Environment variables
---------------------
VLCORE_CUDNN : str, optional
    ``"0"``, ``"false"``, ``"off"`` or ``"no"`` disable the cuDNN pooling
    path by default. Any other value (or unset) leaves it enabled; it is
    only used when the bindings can actually be loaded.
VLCORE_GPU_DEVICE : str, optional
    Index of the CUDA device used by GPU buffers and kernels (default 0).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_FALSE_VALUES = frozenset({"0", "false", "off", "no"})


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Frozen snapshot of the environment-driven settings of a `Context`.

    Attributes
    ----------
    cudnn_enabled : bool
        Initial value of the vendor-path toggle on the GPU helper.
    gpu_device : int
        CUDA device index for the GPU backend.
    """

    cudnn_enabled: bool = True
    gpu_device: int = 0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RuntimeConfig":
        """
        Build a configuration from `environ` (defaults to ``os.environ``).

        Raises
        ------
        ValueError
            If ``VLCORE_GPU_DEVICE`` is not a non-negative integer.
        """
        env = os.environ if environ is None else environ

        cudnn_raw = env.get("VLCORE_CUDNN", "").strip().lower()
        cudnn_enabled = cudnn_raw not in _FALSE_VALUES

        device_raw = env.get("VLCORE_GPU_DEVICE", "").strip()
        gpu_device = 0
        if device_raw:
            try:
                gpu_device = int(device_raw)
            except ValueError as e:
                raise ValueError(
                    f"VLCORE_GPU_DEVICE must be an integer, got {device_raw!r}"
                ) from e
            if gpu_device < 0:
                raise ValueError(
                    f"VLCORE_GPU_DEVICE must be non-negative, got {gpu_device}"
                )

        return cls(cudnn_enabled=cudnn_enabled, gpu_device=gpu_device)
