"""
RANSAC package

This module provides:
- A reusable generic RANSAC implementation
- Typed geometry primitives and the correspondence record
- Model interface definitions
- Homography and fundamental matrix models
"""

from .types import (
    FloatArray, BoolArray, Points2D, PointsHomog, Mask2D, Mat3x3,
    Match, matches_to_points, points_to_matches,
    ModelFitter, RandomSource, RansacResult, as_homogeneous, is_valid_mat3x3,
)

from .errors import (
    TwoViewError, DegenerateSampleError, InsufficientCorrespondencesError,
    NoConsensusError, SingularTransformError,
)

from .homography import (
    fit_homography_minimal, fit_homography_least_squares,
    apply_homography, reprojection_residuals, invert_homography,
)

from .homography_fitter import HomographyFitter

from .fundamental import (
    fit_fundamental_8point, fit_fundamental_least_squares,
    build_epipolar_system, solve_nullspace, enforce_rank2, denormalize_fundamental,
    epipolar_lines, epipolar_distances,
)

from .fundamental_fitter import FundamentalFitter

from .core import ransac, robust_fit, required_iterations

__all__ = [
    "FloatArray", "BoolArray", "Points2D", "PointsHomog", "Mask2D", "Mat3x3",
    "Match", "matches_to_points", "points_to_matches",
    "ModelFitter", "RandomSource", "RansacResult", "as_homogeneous", "is_valid_mat3x3",
    "TwoViewError", "DegenerateSampleError", "InsufficientCorrespondencesError",
    "NoConsensusError", "SingularTransformError",
    "fit_homography_minimal", "fit_homography_least_squares",
    "apply_homography", "reprojection_residuals", "invert_homography",
    "HomographyFitter",
    "fit_fundamental_8point", "fit_fundamental_least_squares",
    "build_epipolar_system", "solve_nullspace", "enforce_rank2", "denormalize_fundamental",
    "epipolar_lines", "epipolar_distances",
    "FundamentalFitter",
    "ransac", "robust_fit", "required_iterations",
]
