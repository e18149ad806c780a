"""
Shared typed primitives for two-view robust estimation.

Defines:
- Typed NumPy aliases for geometry
    - Points are (N,2) float arrays
    - Models are 3x3 homogeneous matrices (homography or fundamental matrix)
- The correspondence record (Match) and conversions to/from point arrays
- Generic model protocol for RANSAC
- Random source protocol (injected into RANSAC for reproducible sampling)
- Structured RANSAC result container (model + inliers + stats)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeVar, Generic, Optional, Sequence, TypeAlias

import numpy as np
import numpy.typing as npt

# ---------- Numpy typing aliases ----------
# - float64 for geometry / matrices (more stable for linear algebra)
# - bool_ for masks

FloatArray: TypeAlias = npt.NDArray[np.float64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]
IntArray: TypeAlias = npt.NDArray[np.int64]

# Points in 2D image coordinates.
Points2D: TypeAlias = FloatArray      # shape: (N, 2)

# Homogeneous points [x, y, 1].
PointsHomog: TypeAlias = FloatArray   # shape: (N, 3)

# Boolean inlier mask: True as inlier, False as outlier
Mask2D: TypeAlias = BoolArray         # shape: (N,)

# 3x3 matrix: homography (full rank) or fundamental matrix (rank 2).
Mat3x3: TypeAlias = FloatArray        # shape: (3, 3)

M = TypeVar("M")


# ---------- Correspondences ----------
@dataclass(frozen=True)
class Match:
    """
    One point correspondence: (x1, y1) in image 1 and (x2, y2) in image 2.
    """
    x1: float
    y1: float
    x2: float
    y2: float


def matches_to_points(matches: Sequence[Match]) -> tuple[Points2D, Points2D]:
    """
    Split a list of matches into two (N,2) float64 arrays (pts0, pts1).
    """
    if len(matches) == 0:
        empty = np.zeros((0, 2), dtype=np.float64)
        return empty, empty.copy()

    arr = np.array([(m.x1, m.y1, m.x2, m.y2) for m in matches], dtype=np.float64)
    return arr[:, :2].copy(), arr[:, 2:].copy()


def points_to_matches(pts0: Points2D, pts1: Points2D) -> list[Match]:
    """
    Zip two (N,2) arrays back into a list of matches.
    """
    pts0 = np.asarray(pts0, dtype=np.float64)
    pts1 = np.asarray(pts1, dtype=np.float64)
    if pts0.shape != pts1.shape or pts0.ndim != 2 or pts0.shape[1] != 2:
        raise ValueError(f"Expected matching (N,2) arrays, got {pts0.shape} vs {pts1.shape}")

    return [
        Match(float(p[0]), float(p[1]), float(q[0]), float(q[1]))
        for p, q in zip(pts0, pts1)
    ]


# ---------- Protocols ----------
class ModelFitter(Protocol[M]):
    """
    Interface that a model must implement to be usable by the generic RANSAC implementation.

    RANSAC steps:
    1) Fit a model from a minimal sample
    2) Score all correspondences with a per-point distance
    3) Refit a better model from all inliers (least squares)

    Both fit methods raise DegenerateSampleError when the input does not
    determine a model (coincident / collinear points, rank-deficient system).
    """

    min_samples: int

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> M:
        ...

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> M:
        ...

    def residuals(self, model: M, pts0: Points2D, pts1: Points2D) -> FloatArray:
        """
        Return one geometric distance (pixels) per correspondence. Shape: (N,).
        """
        ...


class RandomSource(Protocol):
    """
    Source of random sample indices. numpy.random.Generator satisfies this.
    """

    def integers(self, low: int, high: Optional[int] = None, size=None) -> np.ndarray:
        ...


# ---------- RANSAC output container ----------
@dataclass(frozen=True)
class RansacResult(Generic[M]):
    model: M                            # accepted model (refit on inliers when requested)
    inliers: Mask2D                     # best consensus set
    num_inliers: int                    # count of True values in inliers
    rms_error: float                    # RMS distance of inliers under the final model
    iterations: int                     # how many RANSAC iterations were actually run
    threshold: float                    # the inlier threshold tau used
    budget_history: tuple[int, ...] = ()  # adaptive budget: initial cap, then after each improvement

    @property
    def inlier_indices(self) -> IntArray:
        return np.flatnonzero(self.inliers).astype(np.int64)

    @property
    def inlier_ratio(self) -> float:
        n = int(self.inliers.shape[0])
        return self.num_inliers / float(n) if n else 0.0


# ---------- Helper Function ----------
def as_points(pts) -> Points2D:
    """
    Convert any (N,2) array-like to float64, validating the shape.
    """
    arr = np.asarray(pts, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {arr.shape}")
    return arr


def as_homogeneous(pts: Points2D) -> PointsHomog:
    """
    Convert (N,2) points -> (N,3) homogeneous points: [x, y, 1].
    """
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Expected points shape (N, 2) but got {pts.shape}")

    ones = np.ones((pts.shape[0], 1), dtype=np.float64)
    return np.hstack([pts.astype(np.float64), ones])


def is_valid_mat3x3(T: Mat3x3) -> bool:
    """
    Verify a 3x3 matrix. Used for rejecting failed fits.
    """
    return isinstance(T, np.ndarray) and T.shape == (3, 3) and bool(np.isfinite(T).all())
