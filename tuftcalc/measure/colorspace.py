# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Color space conversions.

Conversion chain: sRGB → Linear RGB → CIE XYZ (D65) → CIE L*a*b*

Color difference is ΔE76: plain Euclidean distance in L*a*b*, with no
weighting terms. On this scale ΔE ≈ 2.3 is a just-noticeable difference
and ΔE > 50 separates unrelated hues.

All conversions are pure NumPy so the whole buffer can be converted at once.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray


# =============================================================================
# sRGB ↔ Linear RGB
# =============================================================================


def srgb_to_linear(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB values [0,1] to linear RGB.

    sRGB uses a piecewise gamma curve:
    - For values <= 0.04045: linear/12.92
    - For values > 0.04045: ((value + 0.055) / 1.055) ^ 2.4
    """
    srgb = np.asarray(srgb, dtype=np.float64)
    linear = np.where(
        srgb <= 0.04045,
        srgb / 12.92,
        np.power((srgb + 0.055) / 1.055, 2.4)
    )
    return linear


# =============================================================================
# Linear RGB → XYZ → Lab
# =============================================================================

# Linear sRGB to CIE XYZ (D65)
_RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
], dtype=np.float64)

# D65 reference white
_WHITE = np.array([0.95047, 1.00000, 1.08883], dtype=np.float64)

_DELTA = 6.0 / 29.0


def linear_rgb_to_xyz(rgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert linear RGB to CIE XYZ.

    Args:
        rgb: Array of shape (..., 3) with linear RGB values

    Returns:
        Array of shape (..., 3) with XYZ values (Y of white = 1.0)
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    return np.einsum('...j,ij->...i', rgb, _RGB_TO_XYZ)


def _f_lab(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return np.where(
        t > _DELTA ** 3,
        np.cbrt(t),
        t / (3 * _DELTA * _DELTA) + 4.0 / 29.0,
    )


def xyz_to_lab(xyz: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert CIE XYZ to CIE L*a*b* relative to the D65 white.

    Args:
        xyz: Array of shape (..., 3) with XYZ values

    Returns:
        Array of shape (..., 3) with Lab values (L in [0, 100])
    """
    xyz = np.asarray(xyz, dtype=np.float64)
    f = _f_lab(xyz / _WHITE)

    fx = f[..., 0]
    fy = f[..., 1]
    fz = f[..., 2]

    L = 116.0 * fy - 16.0
    a = 500.0 * (fx - fy)
    b = 200.0 * (fy - fz)

    return np.stack([L, a, b], axis=-1)


# =============================================================================
# Convenience: sRGB → Lab (full chain)
# =============================================================================


def srgb_to_lab(srgb: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Convert sRGB [0,1] to CIE L*a*b*.

    Full chain: sRGB → Linear RGB → XYZ → Lab

    Args:
        srgb: Array of shape (..., 3) with sRGB values [0, 1]

    Returns:
        Array of shape (..., 3) with Lab values
        - L: Lightness [0, 100]
        - a: green (-) to red (+)
        - b: blue (-) to yellow (+)
    """
    linear = srgb_to_linear(srgb)
    xyz = linear_rgb_to_xyz(linear)
    return xyz_to_lab(xyz)


def srgb_uint8_to_lab(pixels: NDArray[np.uint8]) -> NDArray[np.float64]:
    """
    Convert uint8 sRGB pixels [0,255] to Lab.

    Convenience wrapper for common image format.

    Args:
        pixels: Array of shape (..., 3) with uint8 sRGB values [0, 255]

    Returns:
        Array of shape (..., 3) with Lab values
    """
    srgb_float = np.asarray(pixels).astype(np.float64) / 255.0
    return srgb_to_lab(srgb_float)


def rgb_to_lab(r: int, g: int, b: int) -> tuple[float, float, float]:
    """Convert a single 0-255 RGB triple to an (L, a, b) tuple."""
    lab = srgb_uint8_to_lab(np.array([r, g, b], dtype=np.uint8))
    return float(lab[0]), float(lab[1]), float(lab[2])


# =============================================================================
# Hex helpers
# =============================================================================


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """
    Format an RGB triple as a hex color string.

    Returns:
        Hex string like "#3941C8"
    """
    return f"#{int(r):02X}{int(g):02X}{int(b):02X}"


# =============================================================================
# ΔE Distance (Perceptual Color Difference)
# =============================================================================


def delta_e_76(
    lab1: tuple[float, float, float] | NDArray[np.float64],
    lab2: tuple[float, float, float] | NDArray[np.float64],
) -> float:
    """
    Calculate the CIE76 color difference between two Lab colors.

    Reference thresholds (Lab scale, 0-100 lightness):
    - ΔE ≈ 2.3: just noticeable difference
    - ΔE ≈ 10: clearly different shades
    - ΔE ≈ 50+: unrelated colors

    Args:
        lab1: First color as (L, a, b)
        lab2: Second color as (L, a, b)

    Returns:
        ΔE value (lower = more similar)
    """
    dL = lab1[0] - lab2[0]
    da = lab1[1] - lab2[1]
    db = lab1[2] - lab2[2]
    return math.sqrt(dL * dL + da * da + db * db)
