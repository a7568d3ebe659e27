"""Rounding helpers."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity.

    Python's ``round`` uses banker's rounding, which would score 2.5 as 2.

    >>> round_half_up(2.5), round_half_up(-2.5)
    (3, -2)
    """
    return math.floor(value + 0.5)
