"""Shared argparse type validators for CLI parameter bounds checking.

These validators produce clear error messages when users pass invalid
values (e.g., ``--n-random 0``, ``--n-universe -5``).  They are
intended to be used as the ``type=`` argument in ``add_argument()``.
"""

from __future__ import annotations

import argparse


def _positive_int(value: str) -> int:
    """argparse type for positive integers (> 0)."""
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive integer")
    return ivalue


def _nonzero_int(value: str) -> int:
    """argparse type for joblib-style job counts (-1 = all cores, 0 invalid)."""
    ivalue = int(value)
    if ivalue == 0:
        raise argparse.ArgumentTypeError(f"{value} is not a valid job count (use >= 1 or -1)")
    return ivalue


def _nonnegative_float(value: str) -> float:
    """argparse type for non-negative floats (>= 0)."""
    fvalue = float(value)
    if fvalue < 0:
        raise argparse.ArgumentTypeError(f"{value} is not a non-negative number")
    return fvalue
