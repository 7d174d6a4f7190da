# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Yarn price resolution.

A price is given either directly per kilogram or as a skein (mass in
grams and price per skein). The direct form wins; with neither, the
estimate is unpriced and every cost is None rather than 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from tuftcalc._numbers import optional_finite, optional_positive
from tuftcalc.schema import Provenance, ResolvedValue


_G_PER_KG = 1000.0


@dataclass(frozen=True, slots=True)
class Pricing:
    """
    Cost inputs.

    Attributes:
        price_per_kg: Price of one kilogram of yarn (0 is allowed: free yarn)
        skein_mass_g: Mass of one purchasable skein, in grams
        skein_price: Price of one skein
    """
    price_per_kg: Optional[float] = None
    skein_mass_g: Optional[float] = None
    skein_price: Optional[float] = None

    def __post_init__(self) -> None:
        price = optional_finite(self.price_per_kg)
        object.__setattr__(self, "price_per_kg", price if price is not None and price >= 0 else None)
        object.__setattr__(self, "skein_mass_g", optional_positive(self.skein_mass_g))
        object.__setattr__(self, "skein_price", optional_positive(self.skein_price))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Pricing:
        return cls(
            price_per_kg=data.get("price_per_kg"),
            skein_mass_g=data.get("skein_mass_g"),
            skein_price=data.get("skein_price"),
        )

    def to_dict(self) -> dict:
        return {
            "price_per_kg": self.price_per_kg,
            "skein_mass_g": self.skein_mass_g,
            "skein_price": self.skein_price,
        }


def resolve_price(pricing: Optional[Pricing]) -> Optional[ResolvedValue]:
    """
    Resolve the price per kilogram.

    Order: explicit price_per_kg, else skein_price / skein_mass_g scaled to
    a kilogram, else None.
    """
    if pricing is None:
        return None
    if pricing.price_per_kg is not None:
        return ResolvedValue(pricing.price_per_kg, Provenance.EXPLICIT)
    if pricing.skein_mass_g is not None and pricing.skein_price is not None:
        per_kg = pricing.skein_price / pricing.skein_mass_g * _G_PER_KG
        return ResolvedValue(per_kg, Provenance.DERIVED)
    return None


def cost_of(weight_g: float, price: Optional[ResolvedValue]) -> Optional[float]:
    """Cost of ``weight_g`` grams at ``price`` per kg; None when unpriced."""
    if price is None:
        return None
    return weight_g / _G_PER_KG * price.value
