# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Main estimation API.

Runs the fixed pipeline: pixels → color clusters (with areas) → yarn
length, weight and cost.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from tuftcalc.schema import Estimate
from tuftcalc.measure.clustering import ClusterConfig, analyze_image
from tuftcalc.measure.pixels import PixelBuffer
from tuftcalc.yarn.constants import YarnParams, compute_yarn_constants
from tuftcalc.yarn.pricing import Pricing
from tuftcalc.yarn.usage import compute_yarn_for_clusters


def estimate(
    pixels: PixelBuffer,
    cluster_config: Optional[ClusterConfig] = None,
    yarn_params: Optional[YarnParams] = None,
    pricing: Optional[Pricing] = None,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    with_labels: bool = True,
) -> Estimate:
    """
    Estimate yarn needs for a rug design.

    Args:
        pixels: Decoded RGBA pixels; an (H, W, 4) or (H, W, 3) uint8
            array, or raw RGBA bytes with ``width`` and ``height``
        cluster_config: Clustering parameters, including the physical rug
            size in cm. Without a size, areas and yarn figures are zero.
        yarn_params: Pile geometry and yarn specification
        pricing: Optional price per kg or skein mass + price
        width: Raster width, for raw byte buffers
        height: Raster height, for raw byte buffers
        with_labels: Include the per-pixel label map in the analysis

    Returns:
        Estimate with the cluster analysis and yarn figures for the kept
        clusters. Degenerate input gives an empty estimate (check
        ``is_empty``), not an exception.

    Example:
        >>> img = np.zeros((2, 2, 4), dtype=np.uint8)
        >>> img[0] = (255, 0, 0, 255)
        >>> img[1] = (0, 0, 255, 255)
        >>> e = estimate(img, ClusterConfig(tolerance=0, width_cm=2, height_cm=2),
        ...              YarnParams(pile_height_mm=12, strands=2))
        >>> [(r.hex, round(r.yarn_length_m, 2)) for r in e.yarn.records]
        [('#FF0000', 0.48), ('#0000FF', 0.48)]
    """
    cfg = cluster_config or ClusterConfig()
    if cfg.width_cm <= 0 or cfg.height_cm <= 0:
        logger.debug("Rug size unknown, areas will be zero")

    analysis = analyze_image(
        pixels,
        cfg,
        width=width,
        height=height,
        with_labels=with_labels,
    )

    constants = compute_yarn_constants(yarn_params)
    yarn = compute_yarn_for_clusters(analysis.clusters, constants, pricing)

    return Estimate(analysis=analysis, yarn=yarn)
