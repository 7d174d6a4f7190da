# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Yarn constants from a geometric model of tufted pile.

Two models give the single-strand yarn length needed per cm² of rug:

A) Measured: from the tufting density the maker actually uses.
       L = backing + pile
         = 0.01 m × lines/cm
           + (2 × pile height × loop factor) × lines/cm × stitches/cm
   Each stitch is a U of yarn, two pile heights long; the backing term
   covers the run of yarn along each line.

B) Preset: a calibrated baseline of 1200 m/m² for medium-density cut pile
   at 12 mm, scaled by a density tier (low 0.8, medium 1.0, high 1.25),
   by pile height relative to 12 mm, and by the loop factor.

Loop pile uses a factor of 0.95 against cut pile. It is a modeling
approximation, kept as a tunable constant.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from loguru import logger

from tuftcalc._numbers import finite_or, optional_finite, optional_positive, round_half_up
from tuftcalc.schema import DensityPath, Provenance, ResolvedValue, YarnConstants


# Single-strand mass used when neither g/m nor m/kg is known (typical acrylic)
DEFAULT_G_PER_M = 0.5

LOOP_FACTOR = 0.95

BACKING_M_PER_LINE = 0.01

BASELINE_M_PER_M2 = 1200.0
REFERENCE_PILE_HEIGHT_M = 0.012

PRESET_MULTIPLIERS = {
    "low": 0.8,
    "medium": 1.0,
    "high": 1.25,
}

_CM2_PER_M2 = 10_000.0


class DensityMode(Enum):
    """How tufting density is specified."""
    PRESET = "preset"
    MEASURED = "measured"


class PileType(Enum):
    CUT = "cut"
    LOOP = "loop"


_MODE_ALIASES = {
    "preset": DensityMode.PRESET,
    "beginner": DensityMode.PRESET,
    "measured": DensityMode.MEASURED,
    "advanced": DensityMode.MEASURED,
}


def _parse_mode(value: Any) -> DensityMode:
    if isinstance(value, DensityMode):
        return value
    return _MODE_ALIASES.get(str(value).strip().lower(), DensityMode.PRESET)


def _parse_pile_type(value: Any) -> PileType:
    if isinstance(value, PileType):
        return value
    return PileType.LOOP if str(value).strip().lower() == "loop" else PileType.CUT


@dataclass(frozen=True, slots=True)
class YarnParams:
    """
    Pile geometry and yarn specification for a project.

    Values are normalized on construction: unknown modes fall back to the
    preset model, missing numbers take their defaults, and negative
    quantities are clamped to zero.

    Attributes:
        mode: "preset" (alias "beginner") or "measured" (alias "advanced")
        density_preset: "low", "medium" or "high" (preset model)
        lines_per_cm: Tufting lines per cm (measured model)
        stitches_per_cm: Stitches per cm along a line (measured model)
        pile_type: "cut" or "loop"
        pile_height_mm: Pile height in millimeters
        strands: Yarn ends tufted together, rounded to an integer >= 1
        wastage_percent: Extra yarn for trimming and offcuts, >= 0
        yarn_g_per_m: Single-strand mass per meter, if known
        yarn_m_per_kg: Single-strand length per kilogram, if known
    """
    mode: DensityMode = DensityMode.PRESET
    density_preset: str = "medium"
    lines_per_cm: Optional[float] = None
    stitches_per_cm: Optional[float] = None
    pile_type: PileType = PileType.CUT
    pile_height_mm: float = 12.0
    strands: int = 2
    wastage_percent: float = 15.0
    yarn_g_per_m: Optional[float] = None
    yarn_m_per_kg: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", _parse_mode(self.mode))
        object.__setattr__(self, "pile_type", _parse_pile_type(self.pile_type))
        preset = str(self.density_preset or "medium").strip().lower()
        object.__setattr__(self, "density_preset", preset)
        object.__setattr__(self, "lines_per_cm", optional_finite(self.lines_per_cm))
        object.__setattr__(self, "stitches_per_cm", optional_finite(self.stitches_per_cm))
        object.__setattr__(self, "pile_height_mm", max(0.0, finite_or(self.pile_height_mm, 12.0)))
        # 2.5 strands means 3
        object.__setattr__(self, "strands", max(1, round_half_up(finite_or(self.strands, 2.0))))
        object.__setattr__(self, "wastage_percent", max(0.0, finite_or(self.wastage_percent, 15.0)))
        object.__setattr__(self, "yarn_g_per_m", optional_positive(self.yarn_g_per_m))
        object.__setattr__(self, "yarn_m_per_kg", optional_positive(self.yarn_m_per_kg))

    @property
    def uses_measured_density(self) -> bool:
        """True when the measured model applies: requested and both densities > 0."""
        return (
            self.mode is DensityMode.MEASURED
            and self.lines_per_cm is not None and self.lines_per_cm > 0
            and self.stitches_per_cm is not None and self.stitches_per_cm > 0
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> YarnParams:
        """Build params from loosely-typed settings; missing keys take defaults."""
        defaults = cls()
        return cls(**{
            name: data.get(name, getattr(defaults, name))
            for name in cls.__dataclass_fields__
        })

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "density_preset": self.density_preset,
            "lines_per_cm": self.lines_per_cm,
            "stitches_per_cm": self.stitches_per_cm,
            "pile_type": self.pile_type.value,
            "pile_height_mm": self.pile_height_mm,
            "strands": self.strands,
            "wastage_percent": self.wastage_percent,
            "yarn_g_per_m": self.yarn_g_per_m,
            "yarn_m_per_kg": self.yarn_m_per_kg,
        }


def resolve_mass_per_length(params: YarnParams) -> ResolvedValue:
    """
    Resolve single-strand g/m.

    Order: explicit g/m, else 1000 / (m/kg), else DEFAULT_G_PER_M.
    """
    if params.yarn_g_per_m is not None:
        return ResolvedValue(params.yarn_g_per_m, Provenance.EXPLICIT)
    if params.yarn_m_per_kg is not None:
        # 1 kg spread over m_per_kg meters
        return ResolvedValue(1000.0 / params.yarn_m_per_kg, Provenance.DERIVED)
    return ResolvedValue(DEFAULT_G_PER_M, Provenance.DEFAULT)


def loop_factor(pile_type: PileType) -> float:
    return LOOP_FACTOR if pile_type is PileType.LOOP else 1.0


def compute_yarn_constants(params: Optional[YarnParams] = None) -> YarnConstants:
    """
    Derive the project's yarn constants.

    Exactly one density model is used: the measured model when the params
    request it and carry positive line and stitch densities, the preset
    model otherwise.

    Args:
        params: Pile and yarn parameters (defaults if None)

    Returns:
        YarnConstants with single-strand g/m, strands, wastage fraction and
        single-strand m per cm².
    """
    p = params or YarnParams()
    pile_h_m = p.pile_height_mm / 1000.0
    loop = loop_factor(p.pile_type)
    mass = resolve_mass_per_length(p)

    if p.uses_measured_density:
        backing = BACKING_M_PER_LINE * p.lines_per_cm
        stitches_per_cm2 = p.lines_per_cm * p.stitches_per_cm
        pile = 2.0 * pile_h_m * loop * stitches_per_cm2
        m_per_cm2 = backing + pile
        path = DensityPath.MEASURED
    else:
        preset_mul = PRESET_MULTIPLIERS.get(p.density_preset, 1.0)
        height_mul = pile_h_m / REFERENCE_PILE_HEIGHT_M if pile_h_m > 0 else 1.0
        m_per_m2 = BASELINE_M_PER_M2 * preset_mul * height_mul * loop
        m_per_cm2 = m_per_m2 / _CM2_PER_M2
        path = DensityPath.PRESET

    logger.debug(
        "Yarn constants: {} path, {:.5f} m/cm² single strand, {:.3f} g/m ({})",
        path.value, m_per_cm2, mass.value, mass.source.value,
    )

    return YarnConstants(
        g_per_m_single=mass.value,
        strands=p.strands,
        wastage=p.wastage_percent / 100.0,
        m_per_cm2_single=m_per_cm2,
        mass_source=mass.source,
        density_path=path,
    )
