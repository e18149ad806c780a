"""
Coordinate normalization for the linear (DLT / 8-point) solvers.

Pixel coordinates are in the hundreds, so products like x*x' reach 1e5-1e6 and
the linear systems become badly conditioned. Both estimators move the points
into a small, centered range first and undo the transform on the result.

Two flavours:
- isotropic: translate the centroid to the origin and scale so the mean
  distance from the origin is sqrt(2)
- fixed scale: diag(s, s, 1), e.g. s = 1e-3 for pixel-range inputs
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .types import Points2D, Mat3x3, as_homogeneous


def isotropic_transform(pts: Points2D) -> Mat3x3:
    """
    Similarity transform T with T @ [x, y, 1] centered on the centroid and
    mean distance sqrt(2) from the origin.

    Coincident points (zero spread) get unit scale.
    """
    if pts.ndim != 2 or pts.shape[1] != 2 or pts.shape[0] == 0:
        raise ValueError(f"Expected non-empty (N,2) points, got {pts.shape}")

    centroid = pts.mean(axis=0)
    mean_dist = float(np.mean(np.linalg.norm(pts - centroid, axis=1)))
    if mean_dist < 1e-12:
        mean_dist = np.sqrt(2.0)

    s = np.sqrt(2.0) / mean_dist
    return np.array(
        [
            [s, 0.0, -s * centroid[0]],
            [0.0, s, -s * centroid[1]],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def scale_transform(scale: float) -> Mat3x3:
    """
    Fixed isotropic scaling diag(scale, scale, 1).
    """
    if not np.isfinite(scale) or scale <= 0.0:
        raise ValueError(f"scale must be a positive finite number, got {scale}")
    return np.diag([float(scale), float(scale), 1.0]).astype(np.float64)


def normalization_transform(pts: Points2D, scale: Optional[float] = None) -> Mat3x3:
    """
    Pick the normalization: fixed scale when given, isotropic otherwise.
    """
    if scale is not None:
        return scale_transform(scale)
    return isotropic_transform(pts)


def transform_points(T: Mat3x3, pts: Points2D) -> Points2D:
    """
    Apply an affine 3x3 transform (last row [0, 0, 1]) to (N,2) points.
    """
    ph = as_homogeneous(pts) @ T.T
    return ph[:, :2] / ph[:, 2:3]
