"""
Homography model utilities.

We estimate a projective transform H mapping image 1 into image 2:

    [x', y', w']^T  =  H @ [x, y, 1]^T,      (x'/w', y'/w') ≈ (x2, y2)

where:

    H = [[h11, h12, h13],
         [h21, h22, h23],
         [h31, h32,   1]]

The bottom-right entry is fixed to 1, leaving 8 unknowns. Each correspondence
gives 2 linear equations (cross-multiplying by the homogeneous scale), so
4 points determine H exactly and more points give a least-squares fit.
"""

from __future__ import annotations

from itertools import combinations

import numpy as np

from .errors import DegenerateSampleError, SingularTransformError
from .normalization import isotropic_transform, transform_points
from .types import (
    Points2D, Mat3x3, FloatArray,
    as_homogeneous, is_valid_mat3x3)


# ---------- Degeneracy Check Helpers ----------
def _triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    """
    Return 2x the triangle area formed by (p1, p2, p3).

        area2 = |(p2 - p1) x (p3 - p1)|

    If area2 is near 0, the three points are collinear (or coincident).
    """
    u = p2 - p1
    v = p3 - p1
    return float(abs(u[0] * v[1] - u[1] * v[0]))


def _has_collinear_triplet(pts: Points2D, eps_area: float) -> bool:
    """
    True if any 3 of the given points are (nearly) collinear.

    A homography maps lines to lines, so 4 points with a collinear triplet
    cannot pin down the remaining degrees of freedom.
    """
    for i, j, k in combinations(range(pts.shape[0]), 3):
        if _triangle_area(pts[i], pts[j], pts[k]) < eps_area:
            return True
    return False


# ---------- DLT system ----------
def _build_dlt_system(src: Points2D, dst: Points2D) -> tuple[FloatArray, FloatArray]:
    """
    Build A (2N x 8) and b (2N,) such that A @ theta = b with
    theta = [h11, h12, h13, h21, h22, h23, h31, h32].

    For each correspondence (x, y) -> (x', y'):
        x' * (h31*x + h32*y + 1) = h11*x + h12*y + h13
        y' * (h31*x + h32*y + 1) = h21*x + h22*y + h23
    """
    n = src.shape[0]
    A = np.zeros((2 * n, 8), dtype=np.float64)
    b_vec = np.zeros((2 * n,), dtype=np.float64)

    for i in range(n):
        x, y = float(src[i, 0]), float(src[i, 1])
        x_prime, y_prime = float(dst[i, 0]), float(dst[i, 1])

        A[2 * i + 0, :] = [x, y, 1.0, 0.0, 0.0, 0.0, -x * x_prime, -y * x_prime]
        b_vec[2 * i + 0] = x_prime

        A[2 * i + 1, :] = [0.0, 0.0, 0.0, x, y, 1.0, -x * y_prime, -y * y_prime]
        b_vec[2 * i + 1] = y_prime

    return A, b_vec


def _theta_to_mat3x3(theta: np.ndarray) -> Mat3x3:
    H = np.ones((9,), dtype=np.float64)
    H[:8] = theta
    return H.reshape(3, 3)


def _denormalize(Hn: Mat3x3, T_src: Mat3x3, T_dst: Mat3x3) -> Mat3x3:
    """
    Undo the point normalization: H = T_dst^-1 @ Hn @ T_src, rescaled so H[2,2] = 1.
    """
    H = np.linalg.inv(T_dst) @ Hn @ T_src
    if abs(H[2, 2]) < 1e-12:
        raise DegenerateSampleError("homography has a vanishing bottom-right entry")
    H = H / H[2, 2]
    if not is_valid_mat3x3(H):
        raise DegenerateSampleError("homography solve produced non-finite values")
    return H


# ---------- Homography Fitting ----------
def fit_homography_minimal(
        pts0: Points2D,
        pts1: Points2D,
        *,
        eps_area: float = 1e-6,
        max_cond: float = 1e10,
) -> Mat3x3:
    """
    Fit a homography from exactly 4 point correspondences.

    pts0: (4,2) points in image 1
    pts1: (4,2) points in image 2

    Raises DegenerateSampleError if three points of either set are collinear
    or coincident, or if the 8x8 system is singular / ill-conditioned.
    """
    if pts0.shape != (4, 2) or pts1.shape != (4, 2):
        raise ValueError(f"fit_homography_minimal expects (4,2) inputs, got {pts0.shape} and {pts1.shape}")

    if _has_collinear_triplet(pts0, eps_area) or _has_collinear_triplet(pts1, eps_area):
        raise DegenerateSampleError("collinear or coincident points in homography sample")

    T_src = isotropic_transform(pts0)
    T_dst = isotropic_transform(pts1)
    A, b_vec = _build_dlt_system(transform_points(T_src, pts0), transform_points(T_dst, pts1))

    # A is square (8x8): exact solution when it is well conditioned.
    cond = float(np.linalg.cond(A))
    if not np.isfinite(cond) or cond > max_cond:
        raise DegenerateSampleError(f"homography system is ill-conditioned (cond={cond:.3g})")

    try:
        theta = np.linalg.solve(A, b_vec)
    except np.linalg.LinAlgError as exc:
        raise DegenerateSampleError("homography system is singular") from exc

    return _denormalize(_theta_to_mat3x3(theta), T_src, T_dst)


def fit_homography_least_squares(
        pts0: Points2D,
        pts1: Points2D,
        *,
        max_cond: float = 1e10,
) -> Mat3x3:
    """
    Fit a homography from N >= 4 correspondences using least squares.

    This is used after RANSAC picks inliers (refit with all inliers), and for
    hand-paired points where every pair is trusted.

    Uses np.linalg.lstsq(A, b): finds theta that minimizes ||A theta - b||^2
    on normalized coordinates.
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    if pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts0.shape}")
    if pts0.shape[0] < 4:
        raise DegenerateSampleError(f"homography needs 4 correspondences, got {pts0.shape[0]}")

    T_src = isotropic_transform(pts0)
    T_dst = isotropic_transform(pts1)
    A, b_vec = _build_dlt_system(transform_points(T_src, pts0), transform_points(T_dst, pts1))

    try:
        theta, _, rank, singular_vals = np.linalg.lstsq(A, b_vec, rcond=None)
    except np.linalg.LinAlgError as exc:
        raise DegenerateSampleError("homography least-squares solve failed") from exc

    # 8 unknowns: fewer independent constraints means collinear / repeated points.
    if rank < 8:
        raise DegenerateSampleError(f"homography system is rank deficient (rank={rank})")

    cond = float(singular_vals[0] / singular_vals[-1])
    if not np.isfinite(cond) or cond > max_cond:
        raise DegenerateSampleError(f"homography system is ill-conditioned (cond={cond:.3g})")

    return _denormalize(_theta_to_mat3x3(theta), T_src, T_dst)


# ---------- Apply transform + residuals ----------
def apply_homography(H: Mat3x3, pts: Points2D) -> Points2D:
    """
    Apply a 3x3 homography to (N,2) points, returning (N,2) points.

        [x', y', w']^T = H @ [x, y, 1]^T  ->  (x'/w', y'/w')

    Points mapped to infinity (w' == 0) come back as inf/nan.
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected pts shape (N,2), got {pts.shape}")
    if H.shape != (3, 3):
        raise ValueError(f"Expected H shape (3,3), got {H.shape}")

    ph_t = as_homogeneous(pts) @ H.T
    with np.errstate(divide="ignore", invalid="ignore"):
        out = ph_t[:, :2] / ph_t[:, 2:3]
    return out.astype(np.float64)


def reprojection_residuals(H: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
    """
    Per-point reprojection distance in pixels:

        e_i = || H(pts0[i]) - pts1[i] ||_2

    Returns shape (N,). Points mapped to infinity get an infinite error.
    """
    if pts0.shape != pts1.shape:
        raise ValueError(f"pts0 and pts1 must have same shape, got {pts0.shape} vs {pts1.shape}")
    predicted = apply_homography(H, pts0)
    err = np.linalg.norm(predicted - pts1.astype(np.float64), axis=1)
    err[~np.isfinite(err)] = np.inf
    return err.astype(np.float64)


def invert_homography(H: Mat3x3, *, max_cond: float = 1e12) -> Mat3x3:
    """
    Inverse homography, rescaled so its bottom-right entry is 1 when non-zero.

    Raises SingularTransformError when H is not finite or (nearly) singular.
    """
    if not is_valid_mat3x3(H):
        raise SingularTransformError("homography must be a finite 3x3 matrix")

    cond = float(np.linalg.cond(H))
    if not np.isfinite(cond) or cond > max_cond:
        raise SingularTransformError(f"homography is not invertible (cond={cond:.3g})")

    try:
        H_inv = np.linalg.inv(H)
    except np.linalg.LinAlgError as exc:
        raise SingularTransformError("homography is not invertible") from exc

    if abs(H_inv[2, 2]) > 1e-12:
        H_inv = H_inv / H_inv[2, 2]
    return H_inv
