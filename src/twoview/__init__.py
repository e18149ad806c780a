"""
twoview: two-view geometry from noisy point correspondences.

- ransac: homography / fundamental matrix estimators and the generic RANSAC loop
- compose: panorama composition by inverse warping
- stereo: epipolar line queries
- matching, viz: OpenCV glue (SIFT matches, drawing)
"""

from .ransac import (
    Match, RansacResult,
    TwoViewError, DegenerateSampleError, InsufficientCorrespondencesError,
    NoConsensusError, SingularTransformError,
    HomographyFitter, FundamentalFitter, ransac, robust_fit,
)
from .compose import CompositeParams, Panorama, compose_panorama
from .stereo import EpipolarSegment, screen_epipolar_segment
from .pipeline import RansacConfig, estimate_homography, estimate_fundamental, stitch_pair

__version__ = "0.1.0"

__all__ = [
    "Match", "RansacResult",
    "TwoViewError", "DegenerateSampleError", "InsufficientCorrespondencesError",
    "NoConsensusError", "SingularTransformError",
    "HomographyFitter", "FundamentalFitter", "ransac", "robust_fit",
    "CompositeParams", "Panorama", "compose_panorama",
    "EpipolarSegment", "screen_epipolar_segment",
    "RansacConfig", "estimate_homography", "estimate_fundamental", "stitch_pair",
]
