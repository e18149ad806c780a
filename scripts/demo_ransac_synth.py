"""
Synthetic RANSAC run: planted homography, Gaussian noise and random outliers.
"""

import logging

import numpy as np

from twoview.ransac.core import ransac
from twoview.ransac.homography import apply_homography
from twoview.ransac.homography_fitter import HomographyFitter


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    rng = np.random.default_rng(0)

    # True homography
    H_true = np.array(
        [[0.95, 0.05, 40.0],
         [-0.03, 1.02, -12.0],
         [2e-5, -1e-5, 1.0]],
        dtype=np.float64,
    )

    # Generate inlier points
    n_in = 200
    pts0 = rng.uniform([0, 0], [640, 480], size=(n_in, 2)).astype(np.float64)
    pts1 = apply_homography(H_true, pts0)

    # Add Gaussian noise (pixel noise)
    pts1 += rng.normal(0.0, 0.5, size=pts1.shape)

    # Add outliers (wrong matches)
    n_out = 300
    o0 = rng.uniform([0, 0], [640, 480], size=(n_out, 2)).astype(np.float64)
    o1 = rng.uniform([0, 0], [640, 480], size=(n_out, 2)).astype(np.float64)

    pts0_all = np.vstack([pts0, o0]).astype(np.float64)
    pts1_all = np.vstack([pts1, o1]).astype(np.float64)

    res = ransac(
        HomographyFitter(),
        pts0_all,
        pts1_all,
        tau=1.5,
        beta=0.01,
        rng=np.random.default_rng(42),
    )

    np.set_printoptions(precision=5, suppress=True)
    print("H_true:\n", H_true)
    print("H_est:\n", res.model)
    print("num_inliers:", res.num_inliers, "/", pts0_all.shape[0])
    print("rms_error:", res.rms_error)
    print("iterations:", res.iterations)
    print("budget:", res.budget_history)


if __name__ == "__main__":
    main()
