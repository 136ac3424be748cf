#!/usr/bin/env python3
"""Utility functions for summary computation."""

import math
from typing import Any, Optional


def round_statistic(value: Any, precision: int) -> Optional[float]:
    """
    Round a computed statistic to a fixed number of decimal places.
    Undefined results (None, NaN, infinities) come back as None.
    """
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return round(value, precision)


def format_cell(value: Any) -> str:
    """Render a summary cell for reports; absent values show as an empty marker."""
    if value is None:
        return '<empty>'
    if isinstance(value, float) and value.is_integer():
        return f"{value:.1f}"
    return str(value)
