# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Yarn model for tuftcalc.

Turns physical area per color into yarn length, weight and cost.
Depends only on cluster areas, never on pixels.
"""

from tuftcalc.yarn.constants import (
    DensityMode,
    PileType,
    YarnParams,
    compute_yarn_constants,
    resolve_mass_per_length,
)
from tuftcalc.yarn.merge import merge_records, rename_record
from tuftcalc.yarn.pricing import Pricing, resolve_price
from tuftcalc.yarn.usage import compute_yarn_for_clusters

__all__ = [
    "YarnParams",
    "DensityMode",
    "PileType",
    "compute_yarn_constants",
    "resolve_mass_per_length",
    "Pricing",
    "resolve_price",
    "compute_yarn_for_clusters",
    "merge_records",
    "rename_record",
]
