"""
Adapter: makes the homography functions conform to the ModelFitter Protocol.

This keeps ransac/core.py generic and reusable.
"""

from __future__ import annotations

from dataclasses import dataclass

from .types import Points2D, Mat3x3, FloatArray
from .types import ModelFitter
from .homography import fit_homography_minimal, fit_homography_least_squares, reprojection_residuals


@dataclass(frozen=True)
class HomographyFitter(ModelFitter[Mat3x3]):
    eps_area: float = 1e-6
    max_cond: float = 1e10
    min_samples: int = 4

    def fit_minimal(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_homography_minimal(pts0, pts1, eps_area=self.eps_area, max_cond=self.max_cond)

    def fit_least_squares(self, pts0: Points2D, pts1: Points2D) -> Mat3x3:
        return fit_homography_least_squares(pts0, pts1, max_cond=self.max_cond)

    def residuals(self, model: Mat3x3, pts0: Points2D, pts1: Points2D) -> FloatArray:
        return reprojection_residuals(model, pts0, pts1)
