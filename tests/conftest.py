"""
Shared synthetic data for the tests.

- a planted homography with exact correspondences
- a synthetic two-camera scene with exact correspondences and its true F
  (convention p1^T F p2 = 0)
"""

from __future__ import annotations

import numpy as np
import pytest

from twoview.ransac.homography import apply_homography


H_TRUE = np.array(
    [[0.95, 0.05, 40.0],
     [-0.03, 1.02, -12.0],
     [2e-5, -1e-5, 1.0]],
    dtype=np.float64,
)


def _skew(t: np.ndarray) -> np.ndarray:
    return np.array(
        [[0.0, -t[2], t[1]],
         [t[2], 0.0, -t[0]],
         [-t[1], t[0], 0.0]],
        dtype=np.float64,
    )


def _rot_y(theta: float) -> np.ndarray:
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]], dtype=np.float64)


def _project(K: np.ndarray, X: np.ndarray) -> np.ndarray:
    x = X @ K.T
    return x[:, :2] / x[:, 2:3]


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)


@pytest.fixture
def planted_homography(rng):
    """
    H_TRUE plus 40 exact correspondences spread over a 640x480 image.
    """
    pts0 = rng.uniform([0, 0], [640, 480], size=(40, 2))
    pts1 = apply_homography(H_TRUE, pts0)
    return H_TRUE.copy(), pts0, pts1


@pytest.fixture
def stereo_scene(rng):
    """
    Two pinhole cameras looking at a non-planar point cloud.

    Returns (F_true, pts0, pts1) with p1^T F_true p2 = 0 for every row.
    """
    K = np.array([[800.0, 0.0, 320.0], [0.0, 800.0, 240.0], [0.0, 0.0, 1.0]])
    R = _rot_y(0.12)
    t = np.array([-1.0, 0.1, 0.05])

    n = 60
    X = np.column_stack([
        rng.uniform(-2.0, 2.0, n),
        rng.uniform(-1.5, 1.5, n),
        rng.uniform(5.0, 10.0, n),
    ])

    pts0 = _project(K, X)
    pts1 = _project(K, X @ R.T + t)

    # Standard form x2^T F x1 = 0; transpose for the p1^T F p2 convention
    K_inv = np.linalg.inv(K)
    F_std = K_inv.T @ _skew(t) @ R @ K_inv
    F_true = F_std.T / np.linalg.norm(F_std)
    return F_true, pts0, pts1
