"""
Small numeric helpers shared by kernels and tests.
"""

from __future__ import annotations

import time
from typing import Optional, Tuple

import numpy as np


def divide_and_round_up(a: int, b: int) -> int:
    """
    Return ``ceil(a / b)`` for non-negative `a` and positive `b`.

    Typically used to size launch grids or chunk counts.

    Raises
    ------
    ValueError
        If `b` is not positive.
    """
    if b <= 0:
        raise ValueError(f"divisor must be positive, got {b}")
    return (a + b - 1) // b


def gcd(a: int, b: int) -> Tuple[int, int, int]:
    """
    Extended Euclid on non-negative integers.

    Returns
    -------
    tuple[int, int, int]
        ``(g, u, v)`` with ``g = gcd(a, b)`` and Bezout coefficients
        satisfying ``a*u + b*v == g``.

    Raises
    ------
    ValueError
        If `a` or `b` is negative.
    """
    a, b = int(a), int(b)
    if a < 0 or b < 0:
        raise ValueError(f"gcd expects non-negative integers, got ({a}, {b})")
    u0, v0, u1, v1 = 1, 0, 0, 1
    while b != 0:
        q, r = divmod(a, b)
        a, b = b, r
        u0, u1 = u1, u0 - q * u1
        v0, v1 = v1, v0 - q * v1
    return a, u0, v0


_rng: Optional[np.random.Generator] = None


def randn() -> float:
    """Draw one standard-normal scalar from a process-wide generator."""
    global _rng
    if _rng is None:
        _rng = np.random.default_rng()
    return float(_rng.standard_normal())


def get_time() -> int:
    """Monotonic clock in microseconds."""
    return time.monotonic_ns() // 1000
