# Copyright (c) 2026 Coriro
# SPDX-License-Identifier: MIT

"""
Pixel buffer normalization.

The caller owns decoding; this module only accepts already-decoded pixels
and presents them as an (H, W, 4) uint8 RGBA array without copying when
the input is already in that form.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

PixelBuffer = Union[NDArray[np.uint8], bytes, bytearray, memoryview]


def as_rgba(
    pixels: PixelBuffer,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> NDArray[np.uint8]:
    """
    Validate a pixel buffer and view it as RGBA.

    Args:
        pixels: One of:
            - NumPy uint8 array of shape (H, W, 4) with RGBA values
            - NumPy uint8 array of shape (H, W, 3); treated as fully opaque
            - Raw RGBA bytes (e.g. canvas ImageData) of length W*H*4,
              in which case ``width`` and ``height`` are required
        width: Raster width, for raw byte buffers
        height: Raster height, for raw byte buffers

    Returns:
        Array of shape (H, W, 4), dtype uint8. Zero-sized rasters are
        returned as (H, W, 4) arrays with H or W equal to 0.
    """
    if isinstance(pixels, (bytes, bytearray, memoryview)):
        if width is None or height is None:
            raise ValueError("width and height are required for raw byte buffers")
        w = max(0, int(width))
        h = max(0, int(height))
        flat = np.frombuffer(pixels, dtype=np.uint8)
        if flat.size != w * h * 4:
            raise ValueError(
                f"Expected {w * h * 4} bytes for a {w}x{h} RGBA buffer, "
                f"got {flat.size}"
            )
        return flat.reshape(h, w, 4)

    if isinstance(pixels, np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(
                f"Expected (H, W, 3) or (H, W, 4) array, got shape {pixels.shape}"
            )

        if pixels.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 array, got {pixels.dtype}"
            )

        if pixels.shape[2] == 3:
            h, w = pixels.shape[:2]
            alpha = np.full((h, w, 1), 255, dtype=np.uint8)
            return np.concatenate([pixels, alpha], axis=2)

        return pixels

    raise TypeError(
        f"Expected numpy array or RGBA bytes, got {type(pixels)}"
    )
