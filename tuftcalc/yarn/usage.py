# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Per-color yarn length, weight and cost.

Only the area of each cluster is used; any object with the ClusterResult
fields will do, so areas can come from somewhere other than clustering.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from tuftcalc.schema import ClusterResult, YarnConstants, YarnEstimate, YarnRecord
from tuftcalc.yarn.pricing import Pricing, cost_of, resolve_price


def compute_yarn_for_clusters(
    clusters: Iterable[ClusterResult],
    constants: YarnConstants,
    pricing: Optional[Pricing] = None,
) -> YarnEstimate:
    """
    Apply yarn constants to every cluster.

    Per cluster:
        length_single     = area_cm2 × m_per_cm2_single
        length_all        = length_single × strands
        weight            = length_all × g_per_m_single
        weight_with_waste = weight × (1 + wastage)
        cost              = weight_with_waste in kg × price per kg, or None

    Args:
        clusters: Kept clusters (order is preserved)
        constants: Output of compute_yarn_constants
        pricing: Optional cost inputs

    Returns:
        YarnEstimate whose totals are the sums of its records.
    """
    price = resolve_price(pricing)
    if price is None:
        logger.debug("No price information, costs left unset")
    else:
        logger.debug("Price {:.4f}/kg ({})", price.value, price.source.value)

    records = []
    for c in clusters:
        area = max(0.0, float(c.area_cm2 or 0.0))
        length_single = area * constants.m_per_cm2_single
        length_all = length_single * constants.strands
        weight = length_all * constants.g_per_m_single
        weight_with_waste = weight * (1.0 + constants.wastage)

        records.append(YarnRecord(
            id=c.id,
            rgb=c.rgb,
            hex=c.hex,
            pixel_count=c.pixel_count,
            percent_valid=c.percent_valid,
            area_cm2=area,
            yarn_length_m_single=length_single,
            yarn_length_m=length_all,
            yarn_weight_g=weight,
            yarn_weight_with_waste_g=weight_with_waste,
            cost=cost_of(weight_with_waste, price),
        ))

    return YarnEstimate(records=tuple(records), constants=constants, price=price)
