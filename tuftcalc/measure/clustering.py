# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Tolerance-based online color clustering in CIE L*a*b*.

Pixels are visited once, in row-major raster order. Each opaque pixel
joins the nearest existing cluster (ΔE76 to the cluster's running Lab
mean) if that cluster is within the admission threshold; otherwise it
seeds a new cluster. The running mean is updated on every admission, so
later pixels see centroids shaped by earlier ones.

This makes the result order-dependent: the same image scanned in another
order can split near-threshold pixels differently. The raster order is
therefore part of the output contract, and the scan is never
parallelized or iterated to convergence. Only the per-pixel Lab
conversion, which has no ordering dependency, is vectorized.

Clusters are never merged or destroyed during the scan. Cost is
O(valid_pixels × clusters), which is fine for the tens of clusters a rug
design produces.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np
from loguru import logger
from numpy.typing import NDArray

from tuftcalc._numbers import clamp, finite_or, round_half_up
from tuftcalc.schema import ClusterAnalysis, ClusterResult, ClusterTotals
from tuftcalc.measure.colorspace import delta_e_76, rgb_to_hex, srgb_uint8_to_lab
from tuftcalc.measure.pixels import PixelBuffer, as_rgba


# ΔE76 admission threshold at tolerance 0 and tolerance 100
DELTA_E_MIN = 3.0
DELTA_E_MAX = 50.0


# =============================================================================
# Configuration
# =============================================================================


class MinAreaKind(Enum):
    """Unit of a minimum-area threshold."""
    PERCENT = "percent"  # percent of valid pixels
    AREA = "area"        # absolute physical area in cm²


@dataclass(frozen=True, slots=True)
class MinAreaPolicy:
    """
    Minimum size a cluster must reach to be kept.

    Build with ``MinAreaPolicy.percent(0.5)`` or ``MinAreaPolicy.area(2.0)``.
    Both forms reduce to a pixel-count threshold; a cluster is kept when
    its pixel count is at least that threshold.
    """
    kind: MinAreaKind = MinAreaKind.PERCENT
    value: float = 0.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", MinAreaKind(self.kind))
        object.__setattr__(self, "value", max(0.0, finite_or(self.value, 0.0)))

    @classmethod
    def percent(cls, value: float) -> MinAreaPolicy:
        return cls(MinAreaKind.PERCENT, value)

    @classmethod
    def area(cls, value_cm2: float) -> MinAreaPolicy:
        return cls(MinAreaKind.AREA, value_cm2)

    def min_pixels(self, pixels_valid: int, area_per_pixel: float) -> float:
        """
        Pixel-count threshold for this policy.

        An area policy cannot exclude anything while the physical size is
        unknown (area_per_pixel == 0).
        """
        if self.kind is MinAreaKind.PERCENT:
            return self.value / 100.0 * pixels_valid
        if area_per_pixel > 0:
            return self.value / area_per_pixel
        return 0.0

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True, slots=True)
class ClusterConfig:
    """
    Parameters for one clustering run.

    Values are normalized on construction: non-numeric input falls back to
    the default and out-of-range input is clamped, so every config is
    usable.

    Attributes:
        alpha_threshold: Pixels with alpha <= this value are ignored (0-255)
        tolerance: 0-100 slider, mapped linearly onto ΔE 3-50
        min_area: Minimum-area policy for keeping a cluster
        width_cm: Physical rug width covered by the full raster
        height_cm: Physical rug height covered by the full raster
    """
    alpha_threshold: int = 10
    tolerance: float = 40.0
    min_area: MinAreaPolicy = field(default_factory=MinAreaPolicy)
    width_cm: float = 0.0
    height_cm: float = 0.0

    def __post_init__(self) -> None:
        if self.min_area is None:
            object.__setattr__(self, "min_area", MinAreaPolicy())
        elif not isinstance(self.min_area, MinAreaPolicy):
            raise TypeError(
                f"min_area must be a MinAreaPolicy, got {type(self.min_area).__name__}; "
                "use MinAreaPolicy.percent(...) or MinAreaPolicy.area(...)"
            )
        alpha = clamp(round_half_up(finite_or(self.alpha_threshold, 10)), 0, 255)
        object.__setattr__(self, "alpha_threshold", int(alpha))
        object.__setattr__(self, "tolerance", clamp(finite_or(self.tolerance, 40.0), 0.0, 100.0))
        object.__setattr__(self, "width_cm", max(0.0, finite_or(self.width_cm, 0.0)))
        object.__setattr__(self, "height_cm", max(0.0, finite_or(self.height_cm, 0.0)))

    @property
    def delta_e_threshold(self) -> float:
        return tolerance_to_delta_e(self.tolerance)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterConfig:
        """
        Build a config from loosely-typed settings.

        Accepts ``min_area_percent`` or ``min_area_cm2`` (the latter wins
        when both are given) alongside the plain field names. Missing or
        unparseable values take the defaults.
        """
        if data.get("min_area_cm2") not in (None, ""):
            min_area = MinAreaPolicy.area(data["min_area_cm2"])
        elif data.get("min_area_percent") not in (None, ""):
            min_area = MinAreaPolicy.percent(data["min_area_percent"])
        else:
            min_area = MinAreaPolicy()
        return cls(
            alpha_threshold=data.get("alpha_threshold", 10),
            tolerance=data.get("tolerance", 40.0),
            min_area=min_area,
            width_cm=data.get("width_cm", 0.0),
            height_cm=data.get("height_cm", 0.0),
        )

    def to_dict(self) -> dict:
        return {
            "alpha_threshold": self.alpha_threshold,
            "tolerance": self.tolerance,
            "min_area": self.min_area.to_dict(),
            "width_cm": self.width_cm,
            "height_cm": self.height_cm,
        }


def tolerance_to_delta_e(tolerance: float) -> float:
    """Map the 0-100 tolerance slider onto a ΔE76 admission threshold."""
    t = clamp(finite_or(tolerance, 40.0), 0.0, 100.0)
    return DELTA_E_MIN + (DELTA_E_MAX - DELTA_E_MIN) * (t / 100.0)


# =============================================================================
# Online accumulator
# =============================================================================


class _ClusterAccumulator:
    """
    Running sums for the clusters of a single scan.

    Entry i of every list is cluster id i, in creation order. Sums and
    means are plain Python numbers: the scan touches one pixel at a time,
    where per-call NumPy overhead dominates the arithmetic.
    """

    def __init__(self) -> None:
        self.counts: list[int] = []
        self.rgb_sums: list[list[int]] = []
        self.lab_sums: list[list[float]] = []
        self.lab_means: list[tuple[float, float, float]] = []

    @property
    def k(self) -> int:
        return len(self.counts)

    def admit(self, cluster_id: int, rgb: list[int], lab: list[float]) -> None:
        count = self.counts[cluster_id] + 1
        self.counts[cluster_id] = count
        rgb_sum = self.rgb_sums[cluster_id]
        rgb_sum[0] += rgb[0]
        rgb_sum[1] += rgb[1]
        rgb_sum[2] += rgb[2]
        lab_sum = self.lab_sums[cluster_id]
        lab_sum[0] += lab[0]
        lab_sum[1] += lab[1]
        lab_sum[2] += lab[2]
        self.lab_means[cluster_id] = (lab_sum[0] / count, lab_sum[1] / count, lab_sum[2] / count)

    def create(self, rgb: list[int], lab: list[float]) -> int:
        self.counts.append(1)
        self.rgb_sums.append(list(rgb))
        self.lab_sums.append(list(lab))
        self.lab_means.append((lab[0], lab[1], lab[2]))
        return len(self.counts) - 1

    def nearest(self, lab: list[float]) -> tuple[int, float]:
        """Closest cluster and its distance; the earliest cluster wins ties."""
        best, best_distance = -1, math.inf
        for cluster_id, mean in enumerate(self.lab_means):
            distance = delta_e_76(lab, mean)
            if distance < best_distance:
                best, best_distance = cluster_id, distance
        return best, best_distance

    def scan(
        self,
        rgb_pixels: NDArray[np.uint8],
        lab_pixels: NDArray[np.float64],
        threshold: float,
    ) -> NDArray[np.int64]:
        """
        Assign every pixel, in order, and return its cluster id.

        Ties on distance go to the earliest-created cluster.

        A pixel repeating the previous one skips the full search when its
        distance to the previous winner has not grown. Only that cluster's
        mean moved since, so it is still the nearest, with the same tie
        order and still within the threshold.
        """
        assigned = np.empty(len(lab_pixels), dtype=np.int64)
        prev_rgb: Optional[list[int]] = None
        prev_id = -1
        prev_distance = 0.0

        for i, (rgb, lab) in enumerate(zip(rgb_pixels.tolist(), lab_pixels.tolist())):
            if rgb == prev_rgb:
                distance = delta_e_76(lab, self.lab_means[prev_id])
                if distance <= prev_distance:
                    self.admit(prev_id, rgb, lab)
                    assigned[i] = prev_id
                    prev_distance = distance
                    continue

            best, distance = self.nearest(lab)
            if best >= 0 and distance <= threshold:
                self.admit(best, rgb, lab)
            else:
                best, distance = self.create(rgb, lab), 0.0

            assigned[i] = best
            prev_rgb, prev_id, prev_distance = rgb, best, distance
        return assigned


# =============================================================================
# Public API
# =============================================================================


def analyze_image(
    pixels: PixelBuffer,
    config: Optional[ClusterConfig] = None,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    with_labels: bool = True,
) -> ClusterAnalysis:
    """
    Group the opaque pixels of an image into perceptually distinct colors.

    Args:
        pixels: RGBA pixel buffer, see ``as_rgba`` for accepted forms
        config: Clustering parameters (defaults if None)
        width: Raster width, required for raw byte buffers
        height: Raster height, required for raw byte buffers
        with_labels: Also return the per-pixel kept-cluster index map

    Returns:
        ClusterAnalysis. A zero-sized raster or an image with no opaque
        pixels yields an empty analysis with zero totals.

    Example:
        >>> img = np.zeros((2, 2, 4), dtype=np.uint8)
        >>> img[0] = (255, 0, 0, 255)
        >>> img[1] = (0, 0, 255, 255)
        >>> a = analyze_image(img, ClusterConfig(tolerance=0, width_cm=2, height_cm=2))
        >>> [c.hex for c in a.clusters]
        ['#FF0000', '#0000FF']
    """
    cfg = config or ClusterConfig()
    rgba = as_rgba(pixels, width, height)
    h, w = rgba.shape[:2]
    threshold = cfg.delta_e_threshold

    if h == 0 or w == 0:
        logger.debug("Empty raster ({}x{}), nothing to cluster", w, h)
        return ClusterAnalysis(width=w, height=h, delta_e_threshold=threshold)

    pixels_total = h * w
    flat = rgba.reshape(-1, 4)

    valid_idx = np.flatnonzero(flat[:, 3] > cfg.alpha_threshold)
    rgb_valid = flat[valid_idx, :3]
    lab_valid = srgb_uint8_to_lab(rgb_valid)
    pixels_valid = len(valid_idx)

    logger.debug(
        "Clustering {} of {} pixels at ΔE threshold {:.2f}",
        pixels_valid, pixels_total, threshold,
    )

    acc = _ClusterAccumulator()
    raw_labels = acc.scan(rgb_valid, lab_valid, threshold)

    box_area_cm2 = cfg.width_cm * cfg.height_cm
    area_per_pixel = box_area_cm2 / pixels_total
    min_pixels = cfg.min_area.min_pixels(pixels_valid, area_per_pixel)

    detailed = [
        _cluster_result(
            cluster_id,
            int(acc.counts[cluster_id]),
            acc.rgb_sums[cluster_id],
            pixels_valid,
            area_per_pixel,
        )
        for cluster_id in range(acc.k)
    ]

    kept = [c for c in detailed if c.pixel_count >= min_pixels]
    dropped = [c for c in detailed if c.pixel_count < min_pixels]
    # Stable: equal counts stay in creation order
    kept.sort(key=lambda c: c.pixel_count, reverse=True)

    pixels_kept = sum(c.pixel_count for c in kept)
    totals = ClusterTotals(
        pixels_total=pixels_total,
        pixels_valid=pixels_valid,
        pixels_kept=pixels_kept,
        pixels_dropped=pixels_valid - pixels_kept,
        area_cm2=sum(c.area_cm2 for c in kept),
        box_area_cm2=box_area_cm2,
        area_per_pixel=area_per_pixel,
        dropped_count=len(dropped),
    )

    logger.debug(
        "Found {} clusters: kept {}, dropped {} (min {:.1f} px)",
        acc.k, len(kept), len(dropped), min_pixels,
    )

    labels = None
    if with_labels:
        labels = _label_map(raw_labels, valid_idx, kept, acc.k, h, w)

    return ClusterAnalysis(
        clusters=tuple(kept),
        dropped=tuple(dropped),
        totals=totals,
        width=w,
        height=h,
        delta_e_threshold=threshold,
        labels=labels,
    )


def _cluster_result(
    cluster_id: int,
    count: int,
    rgb_sum: list[int],
    pixels_valid: int,
    area_per_pixel: float,
) -> ClusterResult:
    # Half-up rounding of the mean swatch color
    r, g, b = (round_half_up(s / count) for s in rgb_sum)
    return ClusterResult(
        id=cluster_id,
        rgb=(r, g, b),
        hex=rgb_to_hex(r, g, b),
        pixel_count=count,
        percent_valid=100.0 * count / pixels_valid,
        area_cm2=count * area_per_pixel,
    )


def _label_map(
    raw_labels: NDArray[np.int64],
    valid_idx: NDArray[np.intp],
    kept: list[ClusterResult],
    n_clusters: int,
    height: int,
    width: int,
) -> NDArray[np.int64]:
    """Translate creation ids to kept-order indices; -1 for everything else."""
    id_to_kept = np.full(n_clusters, -1, dtype=np.int64)
    for index, cluster in enumerate(kept):
        id_to_kept[cluster.id] = index

    labels = np.full(height * width, -1, dtype=np.int64)
    if len(valid_idx):
        labels[valid_idx] = id_to_kept[raw_labels]
    return labels.reshape(height, width)
