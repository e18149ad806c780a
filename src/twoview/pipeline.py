"""
End-to-end two-view workflows:
    (1) correspondences (external: SIFT, hand-paired clicks, files)
    (2) robust model estimation (RANSAC) -> accepted model + inliers
    (3) consumer: panorama composition (homography) or epipolar queries
        (fundamental matrix)

The correspondence list passed to the estimators is filtered in place to the
inliers of the accepted model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .compose.compositor import CompositeParams, Panorama, compose_panorama
from .ransac.core import robust_fit
from .ransac.errors import InsufficientCorrespondencesError
from .ransac.fundamental_fitter import FundamentalFitter
from .ransac.homography_fitter import HomographyFitter
from .ransac.types import Mat3x3, Match, RandomSource, RansacResult, matches_to_points

logger = logging.getLogger(__name__)


# Configuration
@dataclass(frozen=True)
class RansacConfig:
    """
    RANSAC settings shared by both models.

    - tau: inlier distance threshold in pixels. (default: 1.5px)
    - beta: accepted probability of missing an all-inlier sample. (default: 0.01)
    - max_iters: initial iteration cap; the adaptive budget only shrinks it.
    - seed: seed for the default random source (None = fresh entropy).
    - refit: least-squares refit on the final inliers.
    """
    tau: float = 1.5
    beta: float = 0.01
    max_iters: int = 100_000
    seed: Optional[int] = None
    refit: bool = True


def _ransac_kwargs(cfg: RansacConfig, rng: Optional[RandomSource]) -> dict:
    return dict(
        tau=cfg.tau,
        beta=cfg.beta,
        max_iters=cfg.max_iters,
        rng=rng,
        seed=cfg.seed,
        refit=cfg.refit,
    )


def estimate_homography(
        matches: list[Match],
        *,
        robust: bool = True,
        cfg: RansacConfig = RansacConfig(),
        rng: Optional[RandomSource] = None,
        fitter: HomographyFitter = HomographyFitter(),
) -> tuple[Mat3x3, Optional[RansacResult[Mat3x3]]]:
    """
    Homography mapping image 1 into image 2.

    robust=True: RANSAC; matches is filtered in place to the inliers.
    robust=False: plain least squares on every match (hand-paired points);
                  matches is left as is and no RansacResult is returned.
    """
    if not robust:
        if len(matches) < fitter.min_samples:
            raise InsufficientCorrespondencesError(required=fitter.min_samples, available=len(matches))
        pts0, pts1 = matches_to_points(matches)
        H = fitter.fit_least_squares(pts0, pts1)
        logger.info("Least-squares homography from %d matches", len(matches))
        return H, None

    result = robust_fit(fitter, matches, **_ransac_kwargs(cfg, rng))
    return result.model, result


def estimate_fundamental(
        matches: list[Match],
        *,
        cfg: RansacConfig = RansacConfig(),
        rng: Optional[RandomSource] = None,
        fitter: FundamentalFitter = FundamentalFitter(),
) -> RansacResult[Mat3x3]:
    """
    Fundamental matrix (p1^T F p2 = 0) by RANSAC over 8-point samples.

    matches is filtered in place to the inliers.
    """
    return robust_fit(fitter, matches, **_ransac_kwargs(cfg, rng))


def stitch_pair(
        img1: np.ndarray,
        img2: np.ndarray,
        matches: list[Match],
        *,
        robust: bool = True,
        cfg: RansacConfig = RansacConfig(),
        params: CompositeParams = CompositeParams(),
        rng: Optional[RandomSource] = None,
) -> tuple[Panorama, Mat3x3]:
    """
    Estimate the homography image 1 -> image 2 and compose the panorama.
    """
    H, result = estimate_homography(matches, robust=robust, cfg=cfg, rng=rng)
    if result is not None:
        logger.info("Homography inliers: %d (%.1f%%)", result.num_inliers, 100.0 * result.inlier_ratio)
    return compose_panorama(img1, img2, H, params=params), H


__all__ = ["RansacConfig", "estimate_homography", "estimate_fundamental", "stitch_pair"]
