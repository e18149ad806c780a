"""
Errors raised by the estimators, the RANSAC loop and the compositor.

DegenerateSampleError is recovered inside RANSAC by drawing a new sample.
The others are surfaced to the caller.
"""

from __future__ import annotations


class TwoViewError(Exception):
    """Base class for all two-view geometry errors."""


class DegenerateSampleError(TwoViewError):
    """The correspondences do not determine a model (singular or ill-conditioned system)."""


class InsufficientCorrespondencesError(TwoViewError):
    """Fewer correspondences than the model's minimal sample size."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"need at least {required} correspondences, got {available}"
        )
        self.required = required
        self.available = available


class NoConsensusError(TwoViewError):
    """RANSAC ran out of iterations without any model reaching the minimal inlier count."""

    def __init__(self, iterations: int, min_inliers: int) -> None:
        super().__init__(
            f"no model reached {min_inliers} inliers in {iterations} iterations"
        )
        self.iterations = iterations
        self.min_inliers = min_inliers


class SingularTransformError(TwoViewError):
    """A homography cannot be inverted or maps a finite point to infinity."""
