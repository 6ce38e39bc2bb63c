"""
Error codes and exceptions for vlcore.

This module defines the flat `ErrorCode` enumeration shared by every layer
of the library, the short machine string associated with each code, and a
small exception family for callers that prefer exceptions over codes.

Propagation model
-----------------
- Leaf operations (allocation, device dispatch) produce an `ErrorCode`.
- Intermediate layers forward the code unchanged through
  `Context.pass_error` or record a new one through `Context.set_error`.
- Operators return the final code to the caller; adapters that want
  exceptions can convert a failing code into a `VLError`.

The module is backend-free and safe to import from any layer.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """
    Flat enumeration of every error condition reported by vlcore.

    Notes
    -----
    The integer values are stable (0..12) so codes can cross process or
    language boundaries as plain integers.
    """

    SUCCESS = 0
    UNSUPPORTED = 1
    CUDA = 2
    CUDNN = 3
    CUBLAS = 4
    OUT_OF_MEMORY = 5
    OUT_OF_GPU_MEMORY = 6
    ILLEGAL_ARGUMENT = 7
    UNKNOWN = 8
    TIMEOUT = 9
    NO_DATA = 10
    ILLEGAL_MESSAGE = 11
    INTERRUPTED = 12

    @property
    def failed(self) -> bool:
        """True for every code except `SUCCESS`."""
        return self is not ErrorCode.SUCCESS


_ERROR_MESSAGES = {
    ErrorCode.SUCCESS: "success",
    ErrorCode.UNSUPPORTED: "unsupported error",
    ErrorCode.CUDA: "CUDA error",
    ErrorCode.CUDNN: "cuDNN error",
    ErrorCode.CUBLAS: "cuBLAS error",
    ErrorCode.OUT_OF_MEMORY: "out of memory error",
    ErrorCode.OUT_OF_GPU_MEMORY: "out of GPU memory error",
    ErrorCode.ILLEGAL_ARGUMENT: "illegal argument error",
    ErrorCode.UNKNOWN: "unknown error",
    ErrorCode.TIMEOUT: "timeout error",
    ErrorCode.NO_DATA: "no data error",
    ErrorCode.ILLEGAL_MESSAGE: "illegal message error",
    ErrorCode.INTERRUPTED: "interrupted error",
}


def get_error_message(error: ErrorCode | int) -> str:
    """
    Return the short machine string describing an error code.

    Parameters
    ----------
    error : ErrorCode or int
        Error code to describe. Plain integers are accepted for codes that
        crossed a boundary as raw values.

    Returns
    -------
    str
        Short description. Integers outside the enumeration map to
        ``"unknown error"``.
    """
    try:
        return _ERROR_MESSAGES[ErrorCode(error)]
    except ValueError:
        return _ERROR_MESSAGES[ErrorCode.UNKNOWN]


class VLError(RuntimeError):
    """
    Exception carrying an `ErrorCode`.

    Attributes
    ----------
    code : ErrorCode
        The failing code.
    message : str
        Human-readable message (defaults to `get_error_message(code)`).
    """

    def __init__(self, code: ErrorCode, message: Optional[str] = None) -> None:
        code = ErrorCode(code)
        self.code = code
        self.message = message if message else get_error_message(code)
        super().__init__(f"[{code.name}] {self.message}")


class IllegalArgumentError(VLError, ValueError):
    """
    Raised when an operator is configured or invoked with invalid arguments.

    Being a `ValueError` as well, it can be caught by generic argument
    validation code that knows nothing about vlcore codes.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(ErrorCode.ILLEGAL_ARGUMENT, message)


class DeviceNotSupportedError(VLError):
    """
    Raised when an operation is requested on a device backend that is not
    available in the current process (e.g. GPU without CuPy).

    Attributes
    ----------
    op : str
        The name of the operation that was attempted.
    device : str
        String representation of the device on which the operation
        was attempted.
    """

    def __init__(self, op: str, device: str) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED, f"{op} is not implemented for device '{device}'."
        )
        self.op = op
        self.device = device

