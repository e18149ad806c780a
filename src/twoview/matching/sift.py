"""
SIFT keypoints + descriptor matching via OpenCV.

Produces the correspondence list consumed by RANSAC. Matching is
brute-force L2 with Lowe's ratio test, so the list still contains outliers;
cleaning them up is RANSAC's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import cv2
import numpy as np

from ..ransac.types import Match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SiftParams:
    """
    Parameters for SIFT detection and matching.

    nfeatures:
      - Keep the best n features per image (0 = all).
    ratio:
      - Lowe's ratio test: keep a match when best < ratio * second best.
    contrastThreshold / edgeThreshold:
      - Passed to cv2.SIFT_create.
    """
    nfeatures: int = 0
    ratio: float = 0.75
    contrastThreshold: float = 0.04
    edgeThreshold: float = 10.0


def _to_gray(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        gray = img
    else:
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    if gray.dtype != np.uint8:
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return gray


def sift_matches(
        img1: np.ndarray,
        img2: np.ndarray,
        *,
        params: SiftParams = SiftParams(),
) -> list[Match]:
    """
    Detect SIFT features in both images and match them.

    Input:
      img1, img2: BGR or grayscale images
    Output:
      list of Match (x1, y1) in img1 -> (x2, y2) in img2
    """
    if img1 is None or img2 is None or img1.size == 0 or img2.size == 0:
        raise ValueError("sift_matches received empty image(s).")

    sift = cv2.SIFT_create(
        nfeatures=params.nfeatures,
        contrastThreshold=params.contrastThreshold,
        edgeThreshold=params.edgeThreshold,
    )

    kp1, des1 = sift.detectAndCompute(_to_gray(img1), None)
    kp2, des2 = sift.detectAndCompute(_to_gray(img2), None)
    logger.info("SIFT keypoints: im1=%d im2=%d", len(kp1), len(kp2))

    if des1 is None or des2 is None or len(kp1) < 2 or len(kp2) < 2:
        return []

    matcher = cv2.BFMatcher(cv2.NORM_L2)
    knn = matcher.knnMatch(des1, des2, k=2)

    matches: list[Match] = []
    for pair in knn:
        if len(pair) < 2:
            continue
        best, second = pair
        if best.distance < params.ratio * second.distance:
            x1, y1 = kp1[best.queryIdx].pt
            x2, y2 = kp2[best.trainIdx].pt
            matches.append(Match(float(x1), float(y1), float(x2), float(y2)))

    logger.info("SIFT matches after ratio test: %d", len(matches))
    return matches
