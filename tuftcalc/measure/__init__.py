# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Color clustering core for tuftcalc.

Deterministic, pixel-based grouping of an image into yarn colors.
"""

from tuftcalc.measure.clustering import (
    ClusterConfig,
    MinAreaKind,
    MinAreaPolicy,
    analyze_image,
    tolerance_to_delta_e,
)
from tuftcalc.measure.pixels import as_rgba

__all__ = [
    "analyze_image",
    "ClusterConfig",
    "MinAreaPolicy",
    "MinAreaKind",
    "tolerance_to_delta_e",
    "as_rgba",
]
