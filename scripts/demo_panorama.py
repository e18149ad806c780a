"""
Stitch two images into a panorama.

Correspondences come from SIFT matching, or from a text file with one
"x1 y1 x2 y2" match per line (e.g. hand-picked points).

Usage:
    python scripts/demo_panorama.py image1.jpg image2.jpg -o outputs/panorama.png
    python scripts/demo_panorama.py image1.jpg image2.jpg --matches pts.txt --no-ransac
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from twoview import TwoViewError
from twoview.compose import CompositeParams
from twoview.matching import SiftParams, clean_matches, sift_matches
from twoview.pipeline import RansacConfig, stitch_pair
from twoview.ransac.types import Match, points_to_matches
from twoview.viz import draw_matches, make_side_by_side, save_image

logger = logging.getLogger("demo_panorama")


def load_matches(path: Path) -> list[Match]:
    data = np.loadtxt(path, dtype=np.float64, ndmin=2)
    if data.shape[1] != 4:
        raise ValueError(f"{path}: expected 4 columns (x1 y1 x2 y2), got {data.shape[1]}")
    return points_to_matches(data[:, :2], data[:, 2:])


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Two-image panorama from a RANSAC homography")
    parser.add_argument("image1", type=Path, help="image warped onto image2's frame")
    parser.add_argument("image2", type=Path, help="reference image")
    parser.add_argument("-o", "--output", type=Path, default=Path("outputs/panorama.png"))
    parser.add_argument("--matches", type=Path, default=None,
                        help="text file of x1 y1 x2 y2 rows instead of SIFT")
    parser.add_argument("--no-ransac", action="store_true",
                        help="least squares on all matches (hand-paired points)")
    parser.add_argument("--tau", type=float, default=1.5, help="inlier threshold in pixels")
    parser.add_argument("--beta", type=float, default=0.01, help="RANSAC failure probability")
    parser.add_argument("--max-iters", type=int, default=100_000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--blend", choices=["mean", "first", "second"], default="mean")
    parser.add_argument("--ratio", type=float, default=0.75, help="SIFT ratio test")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    img1 = cv2.imread(str(args.image1), cv2.IMREAD_COLOR)
    img2 = cv2.imread(str(args.image2), cv2.IMREAD_COLOR)
    if img1 is None or img2 is None:
        logger.error("Unable to load the images")
        return 1

    if args.matches is not None:
        matches = load_matches(args.matches)
    else:
        matches = sift_matches(img1, img2, params=SiftParams(ratio=args.ratio))
    matches = clean_matches(matches)
    logger.info("%d matches", len(matches))

    cfg = RansacConfig(tau=args.tau, beta=args.beta, max_iters=args.max_iters, seed=args.seed)
    try:
        pano, H = stitch_pair(
            img1, img2, matches,
            robust=not args.no_ransac,
            cfg=cfg,
            params=CompositeParams(blend=args.blend),
        )
    except TwoViewError as exc:
        logger.error("Stitching failed: %s", exc)
        return 2

    np.set_printoptions(precision=5, suppress=True)
    logger.info("H=\n%s", H)
    logger.info("canvas x0 x1 y0 y1 = %.1f %.1f %.1f %.1f",
                pano.extent.x0, pano.extent.x1, pano.extent.y0, pano.extent.y1)

    save_image(args.output, pano.image)
    sbs = draw_matches(make_side_by_side(img1, img2), matches, width1=img1.shape[1])
    save_image(args.output.with_name(args.output.stem + "_inliers.png"), sbs)
    return 0


if __name__ == "__main__":
    sys.exit(main())
