"""
Fundamental matrix utilities (8-point algorithm).

Convention: for a correspondence p1 = [x1, y1, 1] (image 1) and
p2 = [x2, y2, 1] (image 2),

    p1^T @ F @ p2 = 0

so F^T @ p1 is the epipolar line of p1 in image 2 and F @ p2 is the
epipolar line of p2 in image 1.

Estimation steps, each a pure function over arrays:
    1) normalize coordinates of both images (normalization.py)
    2) stack one bilinear constraint row per correspondence, SVD, take the
       right singular vector of the smallest singular value
    3) enforce rank 2 with a second SVD (zero the smallest singular value)
    4) undo the normalization
"""

from __future__ import annotations

from typing import Literal, Optional

import numpy as np

from .errors import DegenerateSampleError
from .normalization import normalization_transform, transform_points
from .types import Points2D, Mat3x3, FloatArray, as_homogeneous, is_valid_mat3x3


# ---------- Linear system ----------
def build_epipolar_system(p1: Points2D, p2: Points2D) -> FloatArray:
    """
    One row per correspondence:

        [x1*x2, x1*y2, x1, y1*x2, y1*y2, y1, x2, y2, 1]

    so that row @ f = p1^T F p2 with f = F.reshape(9) (row-major).

    With exactly 8 correspondences the 8x9 system is padded with a zero row
    to a square 9x9 matrix.
    """
    if p1.shape != p2.shape or p1.ndim != 2 or p1.shape[1] != 2:
        raise ValueError(f"Expected matching (N,2) arrays, got {p1.shape} vs {p2.shape}")

    x1, y1 = p1[:, 0], p1[:, 1]
    x2, y2 = p2[:, 0], p2[:, 1]
    ones = np.ones_like(x1)

    A = np.stack([x1 * x2, x1 * y2, x1, y1 * x2, y1 * y2, y1, x2, y2, ones], axis=1)

    if A.shape[0] < 9:
        A = np.vstack([A, np.zeros((9 - A.shape[0], 9), dtype=np.float64)])
    return A.astype(np.float64)


def solve_nullspace(A: FloatArray, *, rank_tol: float = 1e-9) -> Mat3x3:
    """
    Solve A @ f = 0 (||f|| = 1) by SVD and reshape f into a 3x3 matrix.

    F has 8 degrees of freedom (up to scale), so A must have rank >= 8.
    If the 8th singular value is tiny relative to the largest, the null space
    is more than one-dimensional: the sample is degenerate (duplicated or
    coincident points, too few distinct constraints).
    """
    if A.ndim != 2 or A.shape[1] != 9:
        raise ValueError(f"Expected (N,9) constraint matrix, got {A.shape}")

    try:
        _, S, Vt = np.linalg.svd(A)
    except np.linalg.LinAlgError as exc:
        raise DegenerateSampleError("SVD of the epipolar constraint matrix failed") from exc

    if S.shape[0] < 8 or S[0] <= 0.0 or S[7] < rank_tol * S[0]:
        raise DegenerateSampleError("epipolar constraint matrix has rank < 8")

    return Vt[-1].reshape(3, 3)


def enforce_rank2(F: Mat3x3) -> Mat3x3:
    """
    Closest rank-2 matrix (Frobenius norm): zero the smallest singular value.

        F = U diag(s1, s2, s3) Vt  ->  U diag(s1, s2, 0) Vt
    """
    if F.shape != (3, 3):
        raise ValueError(f"Expected F shape (3,3), got {F.shape}")

    U, S, Vt = np.linalg.svd(F)
    S[2] = 0.0
    return U @ np.diag(S) @ Vt


def denormalize_fundamental(Fn: Mat3x3, T1: Mat3x3, T2: Mat3x3) -> Mat3x3:
    """
    Undo the normalization p1' = T1 p1, p2' = T2 p2:

        p1'^T Fn p2' = p1^T (T1^T Fn T2) p2  ->  F = T1^T Fn T2

    The result is scaled to unit Frobenius norm.
    """
    F = T1.T @ Fn @ T2
    norm = float(np.linalg.norm(F))
    if not np.isfinite(norm) or norm < 1e-15:
        raise DegenerateSampleError("fundamental matrix vanished after denormalization")
    return F / norm


# ---------- Fundamental Fitting ----------
def _fit_fundamental(
        pts0: Points2D,
        pts1: Points2D,
        *,
        scale: Optional[float],
        rank_tol: float,
) -> Mat3x3:
    T1 = normalization_transform(pts0, scale)
    T2 = normalization_transform(pts1, scale)

    A = build_epipolar_system(transform_points(T1, pts0), transform_points(T2, pts1))
    Fn = solve_nullspace(A, rank_tol=rank_tol)
    Fn = enforce_rank2(Fn)

    F = denormalize_fundamental(Fn, T1, T2)
    if not is_valid_mat3x3(F):
        raise DegenerateSampleError("fundamental solve produced non-finite values")
    return F


def fit_fundamental_8point(
        pts0: Points2D,
        pts1: Points2D,
        *,
        scale: Optional[float] = None,
        rank_tol: float = 1e-9,
) -> Mat3x3:
    """
    Fit F from exactly 8 correspondences.

    scale:
      - None: isotropic normalization computed from each image's point spread
      - float: fixed scaling diag(scale, scale, 1), e.g. 1e-3 for pixel inputs

    Raises DegenerateSampleError when the 8 points do not determine F.
    """
    if pts0.shape != (8, 2) or pts1.shape != (8, 2):
        raise ValueError(f"fit_fundamental_8point expects (8,2) inputs, got {pts0.shape} and {pts1.shape}")
    return _fit_fundamental(pts0, pts1, scale=scale, rank_tol=rank_tol)


def fit_fundamental_least_squares(
        pts0: Points2D,
        pts1: Points2D,
        *,
        scale: Optional[float] = None,
        rank_tol: float = 1e-9,
) -> Mat3x3:
    """
    Fit F from N >= 8 correspondences (total least squares on the constraint rows).
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts0.shape}")
    if pts0.shape[0] < 8:
        raise DegenerateSampleError(f"fundamental matrix needs 8 correspondences, got {pts0.shape[0]}")
    return _fit_fundamental(pts0, pts1, scale=scale, rank_tol=rank_tol)


# ---------- Epipolar lines + distances ----------
def epipolar_lines(F: Mat3x3, pts: Points2D, *, source: Literal[1, 2] = 1) -> FloatArray:
    """
    Epipolar lines (a, b, c) in the *other* image, one row per point.

    source=1: points in image 1, lines in image 2:  l2 = F^T p1
    source=2: points in image 2, lines in image 1:  l1 = F p2
    """
    if F.shape != (3, 3):
        raise ValueError(f"Expected F shape (3,3), got {F.shape}")

    ph = as_homogeneous(pts)
    if source == 1:
        # row form of F^T p1
        return ph @ F
    if source == 2:
        return ph @ F.T
    raise ValueError(f"source must be 1 or 2, got {source}")


def point_line_distances(lines: FloatArray, pts: Points2D) -> FloatArray:
    """
    Perpendicular distance from each point to its line:

        d = |a*x + b*y + c| / sqrt(a^2 + b^2)

    A line with a = b = 0 (no direction) gives an infinite distance.
    """
    ph = as_homogeneous(pts)
    numerator = np.abs(np.sum(lines * ph, axis=1))
    denominator = np.hypot(lines[:, 0], lines[:, 1])

    out = np.full(numerator.shape, np.inf, dtype=np.float64)
    ok = denominator > 1e-15
    out[ok] = numerator[ok] / denominator[ok]
    return out


def epipolar_distances(F: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Distance (pixels) of each point 2 from the epipolar line F^T p1 of its
    partner in image 1. Shape: (N,).
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    return point_line_distances(epipolar_lines(F, pts0, source=1), pts1)
