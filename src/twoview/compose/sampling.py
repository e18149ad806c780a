"""
Pure, vectorized sampling helpers for inverse warping.

Nothing here allocates shared state, so the per-pixel work can be split into
independent chunks.
"""

from __future__ import annotations

import numpy as np

from ..ransac.types import FloatArray, BoolArray


def inside(xs: np.ndarray, ys: np.ndarray, width: int, height: int) -> BoolArray:
    """
    True where (x, y) can be bilinearly sampled from a (height, width) image:

        0 <= x <= width - 1  and  0 <= y <= height - 1

    Non-finite coordinates are outside.
    """
    with np.errstate(invalid="ignore"):
        return (
            np.isfinite(xs) & np.isfinite(ys)
            & (xs >= 0.0) & (xs <= width - 1)
            & (ys >= 0.0) & (ys <= height - 1)
        )


def bilinear_sample(image: np.ndarray, xs: np.ndarray, ys: np.ndarray) -> FloatArray:
    """
    Bilinear interpolation of image at float coordinates.

    image: (H, W) or (H, W, C)
    xs, ys: (N,) coordinates, all inside the image (see inside())

    Returns (N, C) float64 values ((N, 1) for grayscale).

    Bounds are the caller's job: coordinates must already pass inside().
    """
    img = image if image.ndim == 3 else image[:, :, np.newaxis]
    h, w = img.shape[:2]

    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)

    # Integer corners; x1/y1 stay on the last row/column at the border
    x0 = np.clip(np.floor(xs).astype(np.int64), 0, w - 1)
    y0 = np.clip(np.floor(ys).astype(np.int64), 0, h - 1)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    fx = (xs - x0)[:, np.newaxis]
    fy = (ys - y0)[:, np.newaxis]

    I00 = img[y0, x0].astype(np.float64)
    I01 = img[y1, x0].astype(np.float64)
    I10 = img[y0, x1].astype(np.float64)
    I11 = img[y1, x1].astype(np.float64)

    return (
        (1.0 - fx) * (1.0 - fy) * I00
        + (1.0 - fx) * fy * I01
        + fx * (1.0 - fy) * I10
        + fx * fy * I11
    )
