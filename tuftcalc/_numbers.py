# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""Coercion of loosely-typed parameter values (form fields, JSON) to numbers."""

from __future__ import annotations

import math
from typing import Any, Optional


def finite_or(value: Any, default: float) -> float:
    """Return ``value`` as a finite float, or ``default`` if it is not one."""
    number = optional_finite(value)
    return default if number is None else number


def optional_finite(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None for missing/blank/non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def optional_positive(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float > 0, or None."""
    number = optional_finite(value)
    return number if number is not None and number > 0 else None


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))
