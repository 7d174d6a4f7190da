# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Schema definitions for yarn estimates.

All types in this module are immutable (frozen dataclasses).
Derived figures are recomputed from their inputs, never edited in place.
"""

from tuftcalc.schema.yarn_estimate import (
    SCHEMA_VERSION,
    ClusterAnalysis,
    ClusterResult,
    ClusterTotals,
    DensityPath,
    Estimate,
    Provenance,
    ResolvedValue,
    YarnConstants,
    YarnEstimate,
    YarnRecord,
    YarnTotals,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Resolved parameters
    "Provenance",
    "ResolvedValue",
    "DensityPath",
    # Clustering results
    "ClusterResult",
    "ClusterTotals",
    "ClusterAnalysis",
    # Yarn results
    "YarnConstants",
    "YarnRecord",
    "YarnTotals",
    "YarnEstimate",
    # Top-level container
    "Estimate",
]
