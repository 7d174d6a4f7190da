# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
YarnEstimate v1.0 — Canonical schema for rug yarn estimation.

Design principles:
- Immutable: All types are frozen dataclasses
- Deterministic: Same pixels + parameters → same estimate
- Numeric: Every field is a plain number in one fixed unit system;
  formatting, unit conversion and currency symbols belong to the caller
- Serializable: JSON-ready via to_dict()/to_json()

Unit system:
- Physical lengths: cm        - Area: cm²
- Yarn length: m              - Yarn mass: g
- Mass per length: g/m        - Price: currency per kg

Totals are never stored alongside the records they summarize. They are
recomputed from the records on access, so a merged or renamed estimate
can never report stale sums.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

import numpy as np
from numpy.typing import NDArray


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0"


# =============================================================================
# Resolved Values (value + provenance)
# =============================================================================


class Provenance(Enum):
    """Where a resolved parameter value came from."""
    EXPLICIT = "explicit"  # supplied directly in the canonical form
    DERIVED = "derived"    # computed from the equivalent alternate form
    DEFAULT = "default"    # documented fallback constant


@dataclass(frozen=True, slots=True)
class ResolvedValue:
    """
    A parameter value together with the rule that produced it.

    Used wherever a quantity may be given in one of two equivalent forms
    (g/m or m/kg, price per kg or skein price) so that the winning form
    is visible to callers and tests rather than buried in a conditional.
    """
    value: float
    source: Provenance

    def __post_init__(self) -> None:
        if not math.isfinite(self.value) or self.value < 0.0:
            raise ValueError(f"Resolved value must be finite and >= 0, got {self.value}")

    def to_dict(self) -> dict:
        return {"value": self.value, "source": self.source.value}

    @classmethod
    def from_dict(cls, data: dict) -> ResolvedValue:
        return cls(value=data["value"], source=Provenance(data["source"]))


class DensityPath(Enum):
    """Which length-per-area model produced the yarn constants."""
    PRESET = "preset"      # baseline calibration scaled by preset tier
    MEASURED = "measured"  # lines/cm × stitches/cm geometry


# =============================================================================
# Cluster Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class ClusterResult:
    """
    Post-clustering view of one color group.

    Attributes:
        id: Creation index of the cluster during the raster scan
        rgb: Rounded mean RGB of every pixel assigned to the cluster
        hex: rgb as "#RRGGBB"
        pixel_count: Number of pixels assigned
        percent_valid: pixel_count as a percentage of valid (opaque) pixels
        area_cm2: Physical area covered, pixel_count × area_per_pixel
    """
    id: int
    rgb: tuple[int, int, int]
    hex: str
    pixel_count: int
    percent_valid: float
    area_cm2: float

    def __post_init__(self) -> None:
        """Validate cluster statistics."""
        if len(self.rgb) != 3 or not all(0 <= v <= 255 for v in self.rgb):
            raise ValueError(f"rgb must be three values in 0-255, got {self.rgb}")
        if self.pixel_count < 0:
            raise ValueError(f"pixel_count must be >= 0, got {self.pixel_count}")
        if self.area_cm2 < 0.0:
            raise ValueError(f"area_cm2 must be >= 0, got {self.area_cm2}")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "rgb": list(self.rgb),
            "hex": self.hex,
            "pixel_count": self.pixel_count,
            "percent_valid": self.percent_valid,
            "area_cm2": self.area_cm2,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ClusterResult:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            rgb=tuple(data["rgb"]),
            hex=data["hex"],
            pixel_count=data["pixel_count"],
            percent_valid=data["percent_valid"],
            area_cm2=data["area_cm2"],
        )


@dataclass(frozen=True, slots=True)
class ClusterTotals:
    """
    Pixel and area bookkeeping for one clustering run.

    Attributes:
        pixels_total: width × height, transparent pixels included
        pixels_valid: Pixels with alpha above the threshold
        pixels_kept: Valid pixels belonging to kept clusters
        pixels_dropped: Valid pixels belonging to dropped clusters
        area_cm2: Sum of kept cluster areas
        box_area_cm2: Physical bounding box, width_cm × height_cm
        area_per_pixel: box_area_cm2 / pixels_total (0 when unknown)
        dropped_count: Number of clusters below the minimum-area policy
    """
    pixels_total: int = 0
    pixels_valid: int = 0
    pixels_kept: int = 0
    pixels_dropped: int = 0
    area_cm2: float = 0.0
    box_area_cm2: float = 0.0
    area_per_pixel: float = 0.0
    dropped_count: int = 0

    def __post_init__(self) -> None:
        """Validate pixel bookkeeping."""
        if self.pixels_valid > self.pixels_total:
            raise ValueError(
                f"pixels_valid ({self.pixels_valid}) exceeds "
                f"pixels_total ({self.pixels_total})"
            )
        if self.pixels_kept + self.pixels_dropped != self.pixels_valid:
            raise ValueError(
                f"Kept ({self.pixels_kept}) + dropped ({self.pixels_dropped}) "
                f"pixels must equal valid pixels ({self.pixels_valid})"
            )

    @property
    def pixels_invalid(self) -> int:
        """Pixels excluded by the alpha threshold."""
        return self.pixels_total - self.pixels_valid

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "pixels_total": self.pixels_total,
            "pixels_valid": self.pixels_valid,
            "pixels_kept": self.pixels_kept,
            "pixels_dropped": self.pixels_dropped,
            "area_cm2": self.area_cm2,
            "box_area_cm2": self.box_area_cm2,
            "area_per_pixel": self.area_per_pixel,
            "dropped_count": self.dropped_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ClusterTotals:
        """Deserialize from dictionary."""
        return cls(**{k: data[k] for k in (
            "pixels_total", "pixels_valid", "pixels_kept", "pixels_dropped",
            "area_cm2", "box_area_cm2", "area_per_pixel", "dropped_count",
        )})


@dataclass(frozen=True, slots=True)
class ClusterAnalysis:
    """
    Complete result of clustering one pixel buffer.

    An empty analysis (no kept clusters, zero totals) is the defined
    output for degenerate input such as a zero-sized raster or a fully
    transparent image; callers check ``is_empty`` instead of catching
    exceptions.

    Attributes:
        clusters: Kept clusters, most pixels first (ties in creation order)
        dropped: Clusters below the minimum-area policy, in creation order
        totals: Pixel and area bookkeeping
        width: Raster width in pixels
        height: Raster height in pixels
        delta_e_threshold: ΔE76 admission threshold derived from tolerance
        labels: Optional (height, width) array; each entry is the index of
            the pixel's kept cluster in ``clusters``, or -1 for transparent
            pixels and pixels of dropped clusters
    """
    clusters: tuple[ClusterResult, ...] = ()
    dropped: tuple[ClusterResult, ...] = ()
    totals: ClusterTotals = field(default_factory=ClusterTotals)
    width: int = 0
    height: int = 0
    delta_e_threshold: float = 0.0
    labels: Optional[NDArray[np.int64]] = field(default=None, compare=False, repr=False)

    @property
    def is_empty(self) -> bool:
        """True when no cluster survived (degenerate or fully filtered input)."""
        return not self.clusters

    def to_dict(self) -> dict:
        """
        Serialize to dictionary.

        The label map is omitted; it is an in-process overlay aid, not data
        meant for transport.
        """
        return {
            "width": self.width,
            "height": self.height,
            "delta_e_threshold": self.delta_e_threshold,
            "clusters": [c.to_dict() for c in self.clusters],
            "dropped": [c.to_dict() for c in self.dropped],
            "totals": self.totals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ClusterAnalysis:
        """Deserialize from dictionary (without label map)."""
        return cls(
            clusters=tuple(ClusterResult.from_dict(c) for c in data["clusters"]),
            dropped=tuple(ClusterResult.from_dict(c) for c in data.get("dropped", [])),
            totals=ClusterTotals.from_dict(data["totals"]),
            width=data.get("width", 0),
            height=data.get("height", 0),
            delta_e_threshold=data.get("delta_e_threshold", 0.0),
        )


# =============================================================================
# Yarn Types
# =============================================================================


@dataclass(frozen=True, slots=True)
class YarnConstants:
    """
    Project-wide yarn constants derived from the pile model.

    Attributes:
        g_per_m_single: Mass per meter of a single strand
        strands: Strands tufted together (>= 1)
        wastage: Wastage as a fraction (0.15 = 15%)
        m_per_cm2_single: Single-strand yarn length per cm² of rug
        mass_source: How g_per_m_single was resolved
        density_path: Which length-per-area model was used
    """
    g_per_m_single: float
    strands: int
    wastage: float
    m_per_cm2_single: float
    mass_source: Provenance = Provenance.DEFAULT
    density_path: DensityPath = DensityPath.PRESET

    def __post_init__(self) -> None:
        """Validate constants are usable."""
        if self.g_per_m_single <= 0.0:
            raise ValueError(f"g_per_m_single must be > 0, got {self.g_per_m_single}")
        if self.strands < 1:
            raise ValueError(f"strands must be >= 1, got {self.strands}")
        if self.wastage < 0.0:
            raise ValueError(f"wastage must be >= 0, got {self.wastage}")
        if not math.isfinite(self.m_per_cm2_single) or self.m_per_cm2_single < 0.0:
            raise ValueError(
                f"m_per_cm2_single must be finite and >= 0, got {self.m_per_cm2_single}"
            )

    @property
    def m_per_kg_single(self) -> float:
        """Single-strand yarn grist expressed as meters per kilogram."""
        return 1000.0 / self.g_per_m_single

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "g_per_m_single": self.g_per_m_single,
            "strands": self.strands,
            "wastage": self.wastage,
            "m_per_cm2_single": self.m_per_cm2_single,
            "mass_source": self.mass_source.value,
            "density_path": self.density_path.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> YarnConstants:
        """Deserialize from dictionary."""
        return cls(
            g_per_m_single=data["g_per_m_single"],
            strands=data["strands"],
            wastage=data["wastage"],
            m_per_cm2_single=data["m_per_cm2_single"],
            mass_source=Provenance(data.get("mass_source", "default")),
            density_path=DensityPath(data.get("density_path", "preset")),
        )


@dataclass(frozen=True, slots=True)
class YarnRecord:
    """
    Per-color yarn figures: a kept cluster augmented with derived yarn fields.

    Attributes:
        id, rgb, hex, pixel_count, percent_valid, area_cm2: From ClusterResult
        yarn_length_m_single: Length of a single strand
        yarn_length_m: Length of all strands together
        yarn_weight_g: Mass before wastage
        yarn_weight_with_waste_g: Mass including wastage
        cost: Cost of yarn_weight_with_waste_g, or None when no price is known.
            0.0 is a real cost (free yarn), None means "not priced".
        name: Optional user label for the color
    """
    id: int
    rgb: tuple[int, int, int]
    hex: str
    pixel_count: int
    percent_valid: float
    area_cm2: float
    yarn_length_m_single: float
    yarn_length_m: float
    yarn_weight_g: float
    yarn_weight_with_waste_g: float
    cost: Optional[float] = None
    name: Optional[str] = None

    @property
    def cluster(self) -> ClusterResult:
        """The cluster fields of this record."""
        return ClusterResult(
            id=self.id,
            rgb=self.rgb,
            hex=self.hex,
            pixel_count=self.pixel_count,
            percent_valid=self.percent_valid,
            area_cm2=self.area_cm2,
        )

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        d = {
            "id": self.id,
            "rgb": list(self.rgb),
            "hex": self.hex,
            "pixel_count": self.pixel_count,
            "percent_valid": self.percent_valid,
            "area_cm2": self.area_cm2,
            "yarn_length_m_single": self.yarn_length_m_single,
            "yarn_length_m": self.yarn_length_m,
            "yarn_weight_g": self.yarn_weight_g,
            "yarn_weight_with_waste_g": self.yarn_weight_with_waste_g,
            "cost": self.cost,
        }
        if self.name is not None:
            d["name"] = self.name
        return d

    @classmethod
    def from_dict(cls, data: dict) -> YarnRecord:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            rgb=tuple(data["rgb"]),
            hex=data["hex"],
            pixel_count=data["pixel_count"],
            percent_valid=data["percent_valid"],
            area_cm2=data["area_cm2"],
            yarn_length_m_single=data["yarn_length_m_single"],
            yarn_length_m=data["yarn_length_m"],
            yarn_weight_g=data["yarn_weight_g"],
            yarn_weight_with_waste_g=data["yarn_weight_with_waste_g"],
            cost=data.get("cost"),
            name=data.get("name"),
        )


@dataclass(frozen=True, slots=True)
class YarnTotals:
    """
    Elementwise sums over a set of yarn records.

    ``cost`` is None when any record is unpriced, matching how a merge
    treats cost. With no records it is 0.0 if a price is known and None
    otherwise.
    """
    area_cm2: float = 0.0
    length_m: float = 0.0
    weight_g: float = 0.0
    weight_with_waste_g: float = 0.0
    cost: Optional[float] = None

    @classmethod
    def from_records(cls, records: tuple[YarnRecord, ...], priced: bool = False) -> YarnTotals:
        """Sum the records. Always computed, never cached."""
        if not records:
            cost = 0.0 if priced else None
        elif any(r.cost is None for r in records):
            cost = None
        else:
            cost = sum(r.cost for r in records)
        return cls(
            area_cm2=sum(r.area_cm2 for r in records),
            length_m=sum(r.yarn_length_m for r in records),
            weight_g=sum(r.yarn_weight_g for r in records),
            weight_with_waste_g=sum(r.yarn_weight_with_waste_g for r in records),
            cost=cost,
        )

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "area_cm2": self.area_cm2,
            "length_m": self.length_m,
            "weight_g": self.weight_g,
            "weight_with_waste_g": self.weight_with_waste_g,
            "cost": self.cost,
        }


@dataclass(frozen=True, slots=True)
class YarnEstimate:
    """
    Yarn figures for every kept color, plus the constants that produced them.

    Attributes:
        records: One YarnRecord per kept cluster, in cluster order
        constants: Yarn constants applied to every record
        price: Resolved price per kg, or None when unpriced
    """
    records: tuple[YarnRecord, ...]
    constants: YarnConstants
    price: Optional[ResolvedValue] = None

    @property
    def totals(self) -> YarnTotals:
        """Aggregate sums, recomputed from the current records."""
        return YarnTotals.from_records(self.records, priced=self.price is not None)

    def merge(self, *indices: int) -> YarnEstimate:
        """
        Merge the records at ``indices`` into the first of them.

        Returns a new estimate; this one is unchanged.
        """
        # Import here to avoid circular imports
        from tuftcalc.yarn.merge import merge_records
        return replace(self, records=merge_records(self.records, indices))

    def rename(self, index: int, name: Optional[str]) -> YarnEstimate:
        """Return a new estimate with the record at ``index`` labelled ``name``."""
        from tuftcalc.yarn.merge import rename_record
        return replace(self, records=rename_record(self.records, index, name))

    def to_dict(self) -> dict:
        """Serialize to dictionary, including the derived totals."""
        return {
            "constants": self.constants.to_dict(),
            "price": self.price.to_dict() if self.price is not None else None,
            "records": [r.to_dict() for r in self.records],
            "totals": self.totals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> YarnEstimate:
        """Deserialize from dictionary. Totals are recomputed, not read."""
        return cls(
            records=tuple(YarnRecord.from_dict(r) for r in data["records"]),
            constants=YarnConstants.from_dict(data["constants"]),
            price=ResolvedValue.from_dict(data["price"]) if data.get("price") else None,
        )


# =============================================================================
# Top-Level Container
# =============================================================================


@dataclass(frozen=True, slots=True)
class Estimate:
    """
    Complete estimate for a rug design: clustering plus yarn figures.

    Attributes:
        analysis: Color clustering result (clusters, dropped, totals, labels)
        yarn: Yarn figures for the kept clusters
        version: Schema version
    """
    analysis: ClusterAnalysis
    yarn: YarnEstimate
    version: str = field(default=SCHEMA_VERSION)

    @property
    def is_empty(self) -> bool:
        return self.analysis.is_empty

    def to_dict(self) -> dict:
        """Serialize to dictionary for JSON output."""
        return {
            "version": self.version,
            "analysis": self.analysis.to_dict(),
            "yarn": self.yarn.to_dict(),
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> Estimate:
        """Deserialize from dictionary."""
        return cls(
            version=data.get("version", SCHEMA_VERSION),
            analysis=ClusterAnalysis.from_dict(data["analysis"]),
            yarn=YarnEstimate.from_dict(data["yarn"]),
        )

    @classmethod
    def from_json(cls, json_str: str) -> Estimate:
        """Deserialize from JSON string."""
        return cls.from_dict(json.loads(json_str))
