"""
Estimate the fundamental matrix between two views and explore epipolar lines.

1) SIFT matches -> RANSAC (8-point) -> F, matches filtered to inliers
2) side-by-side view with the inliers
3) click a point in either image: its epipolar line is drawn in the other one
   (left click = query, right click / q / ESC = quit)

Usage:
    python scripts/demo_fundamental.py im1.jpg im2.jpg [--out-dir outputs] [--no-show]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from twoview import TwoViewError
from twoview.matching import SiftParams, clean_matches, sift_matches
from twoview.pipeline import RansacConfig, estimate_fundamental
from twoview.ransac.fundamental_fitter import FundamentalFitter
from twoview.stereo import screen_epipolar_segment
from twoview.viz import (
    draw_epipolar_segment, draw_matches, draw_status_text,
    make_side_by_side, resize_for_display, save_image,
)

logger = logging.getLogger("demo_fundamental")

WINDOW = "Epipolar lines (image 1 | image 2)"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RANSAC fundamental matrix + epipolar lines")
    parser.add_argument("image1", type=Path)
    parser.add_argument("image2", type=Path)
    parser.add_argument("--out-dir", type=Path, default=None, help="save overlays here")
    parser.add_argument("--tau", type=float, default=1.5, help="epipolar distance threshold (px)")
    parser.add_argument("--beta", type=float, default=0.01)
    parser.add_argument("--max-iters", type=int, default=100_000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--fixed-scale", type=float, default=None,
                        help="fixed normalization factor (e.g. 1e-3) instead of isotropic")
    parser.add_argument("--display-scale", type=float, default=1.0)
    parser.add_argument("--no-show", action="store_true")
    return parser.parse_args(argv)


def interactive_epipolar(sbs: np.ndarray, F: np.ndarray, size1: tuple[int, int], size2: tuple[int, int],
                         display_scale: float) -> None:
    (width1, height1), (width2, height2) = size1, size2
    state = {"vis": sbs}

    def on_mouse(event, x, y, flags, param) -> None:
        if event != cv2.EVENT_LBUTTONDOWN:
            return
        sx, sy = x / display_scale, y / display_scale
        if sx >= width1 + width2:
            return
        seg = screen_epipolar_segment(
            F, sx, sy, width1=width1, width2=width2, height1=height1, height2=height2,
        )
        logger.info("line in image %d: %s", seg.target, np.array2string(seg.line, precision=5))
        state["vis"] = draw_epipolar_segment(state["vis"], seg, clicked=(sx, sy))

    cv2.namedWindow(WINDOW)
    cv2.setMouseCallback(WINDOW, on_mouse)
    while True:
        cv2.imshow(WINDOW, resize_for_display(state["vis"], display_scale))
        key = cv2.waitKey(30) & 0xFF
        if key in (27, ord("q")):
            break
        if cv2.getWindowProperty(WINDOW, cv2.WND_PROP_VISIBLE) < 1:
            break
    cv2.destroyAllWindows()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    img1 = cv2.imread(str(args.image1), cv2.IMREAD_COLOR)
    img2 = cv2.imread(str(args.image2), cv2.IMREAD_COLOR)
    if img1 is None or img2 is None:
        logger.error("Unable to load images")
        return 1

    matches = clean_matches(sift_matches(img1, img2, params=SiftParams()))
    logger.info("matches: %d", len(matches))

    cfg = RansacConfig(tau=args.tau, beta=args.beta, max_iters=args.max_iters, seed=args.seed)
    try:
        result = estimate_fundamental(matches, cfg=cfg, fitter=FundamentalFitter(scale=args.fixed_scale))
    except TwoViewError as exc:
        logger.error("Fundamental matrix estimation failed: %s", exc)
        return 2

    F = result.model
    np.set_printoptions(precision=6, suppress=False)
    logger.info("F=\n%s", F)
    logger.info("singular values: %s", np.linalg.svd(F, compute_uv=False))
    logger.info("iterations: %d, inliers: %d", result.iterations, result.num_inliers)

    w1, w2 = img1.shape[1], img2.shape[1]
    sbs = make_side_by_side(img1, img2)
    with_inliers = draw_matches(sbs, matches, width1=w1)
    with_inliers = draw_status_text(with_inliers, [f"inliers: {result.num_inliers}"])

    if args.out_dir is not None:
        save_image(args.out_dir / "fundamental_inliers.png", with_inliers)

    if not args.no_show:
        cv2.imshow("Inliers", resize_for_display(with_inliers, args.display_scale))
        cv2.waitKey(0)
        cv2.destroyAllWindows()
        interactive_epipolar(sbs, F, (w1, img1.shape[0]), (w2, img2.shape[0]), args.display_scale)
    return 0


if __name__ == "__main__":
    sys.exit(main())
