"""
Adapter class for the 8-point fundamental matrix model to match the ModelFitter protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .types import Points2D, Mat3x3, FloatArray, ModelFitter

from .fundamental import (
    fit_fundamental_8point,
    fit_fundamental_least_squares,
    epipolar_distances,
)


@dataclass(frozen=True)
class FundamentalFitter(ModelFitter[Mat3x3]):
    """
    Fundamental matrix model for RANSAC.

    scale:
      None -> isotropic normalization from the point spread
      float -> fixed normalization diag(scale, scale, 1)
    rank_tol:
      relative threshold on the 8th singular value of the constraint matrix
    """
    scale: Optional[float] = None
    rank_tol: float = 1e-9
    min_samples: int = 8

    def fit_minimal(
        self,
        pts0: Points2D,
        pts1: Points2D
    ) -> Mat3x3:
        """
        Called by RANSAC during hypothesis generation (8-point algorithm).
        """
        return fit_fundamental_8point(pts0, pts1, scale=self.scale, rank_tol=self.rank_tol)

    def fit_least_squares(
        self,
        pts0: Points2D,
        pts1: Points2D
    ) -> Mat3x3:
        return fit_fundamental_least_squares(pts0, pts1, scale=self.scale, rank_tol=self.rank_tol)

    def residuals(
        self,
        model: Mat3x3,
        pts0: Points2D,
        pts1: Points2D
    ) -> FloatArray:
        """
        Epipolar distance of each point 2 from the line F^T p1.
        """
        return epipolar_distances(model, pts0, pts1)
