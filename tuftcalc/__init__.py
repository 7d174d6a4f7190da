# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
tuftcalc -- Yarn estimation for tufted rugs.

Groups the pixels of a rug design into perceptually distinct colors and
turns each color's area into yarn length, weight and cost.

Quick start::

    from tuftcalc import estimate, ClusterConfig, YarnParams, Pricing

    e = estimate(
        rgba_pixels,
        ClusterConfig(width_cm=120, height_cm=80, tolerance=40),
        YarnParams(pile_type="cut", pile_height_mm=12, strands=2),
        Pricing(skein_mass_g=100, skein_price=4.5),
    )
    e.yarn.totals.weight_with_waste_g
    e.to_json()

Logging goes through loguru and is disabled by default; call
``logger.enable("tuftcalc")`` to see it.
"""

from __future__ import annotations

__version__ = "1.0.0"

from loguru import logger

from tuftcalc.estimate import estimate
from tuftcalc.measure import ClusterConfig, MinAreaPolicy, analyze_image
from tuftcalc.schema import (
    ClusterAnalysis,
    ClusterResult,
    Estimate,
    YarnConstants,
    YarnEstimate,
    YarnRecord,
)
from tuftcalc.yarn import (
    Pricing,
    YarnParams,
    compute_yarn_constants,
    compute_yarn_for_clusters,
)

logger.disable("tuftcalc")

__all__ = [
    # Core API
    "estimate",
    "analyze_image",
    "compute_yarn_constants",
    "compute_yarn_for_clusters",
    # Parameters
    "ClusterConfig",
    "MinAreaPolicy",
    "YarnParams",
    "Pricing",
    # Results
    "Estimate",
    "ClusterAnalysis",
    "ClusterResult",
    "YarnConstants",
    "YarnRecord",
    "YarnEstimate",
    # Version
    "__version__",
]
