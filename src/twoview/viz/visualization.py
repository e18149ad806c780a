"""
Visualization utilities for two-view results.
  - building visualization images (side-by-side pairs, matches, epipolar lines)
  - scaling them for a window and writing them to disk

All drawing goes through OpenCV; images are BGR uint8.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import cv2
import numpy as np

from ..ransac.types import Match
from ..stereo.epipolar import EpipolarSegment

logger = logging.getLogger(__name__)


# ---------- Display ----------
def resize_for_display(img: np.ndarray, scale: float) -> np.ndarray:
    """
    Scale an image for an on-screen window (side-by-side pairs and panoramas
    are often wider than the screen). Mouse coordinates read from the window
    must be divided by the same scale.
    """
    if scale <= 0.0:
        raise ValueError(f"display scale must be > 0, got {scale}")
    if img is None or img.size == 0 or scale == 1.0:
        return img

    height, width = img.shape[:2]
    size = (max(1, int(width * scale)), max(1, int(height * scale)))
    interp = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR
    return cv2.resize(img, size, interpolation=interp)


def make_side_by_side(img1_bgr: np.ndarray, img2_bgr: np.ndarray) -> np.ndarray:
    """
    Create a side-by-side image: [ image 1 | image 2 ].

    The shorter image is padded with black at the bottom, so screen x < width1
    is image 1 and x - width1 is the column in image 2.
    """
    if img1_bgr is None or img2_bgr is None:
        raise ValueError("make_side_by_side received None image(s).")
    if img1_bgr.size == 0 or img2_bgr.size == 0:
        raise ValueError("make_side_by_side received empty image(s).")

    a = img1_bgr if img1_bgr.ndim == 3 else cv2.cvtColor(img1_bgr, cv2.COLOR_GRAY2BGR)
    b = img2_bgr if img2_bgr.ndim == 3 else cv2.cvtColor(img2_bgr, cv2.COLOR_GRAY2BGR)

    h = max(a.shape[0], b.shape[0])
    a = cv2.copyMakeBorder(a, 0, h - a.shape[0], 0, 0, cv2.BORDER_CONSTANT, value=(0, 0, 0))
    b = cv2.copyMakeBorder(b, 0, h - b.shape[0], 0, 0, cv2.BORDER_CONSTANT, value=(0, 0, 0))
    return np.concatenate([a, b], axis=1)


def draw_matches(
        sbs_bgr: np.ndarray,
        matches: Sequence[Match],
        *,
        width1: int,
        radius: int = 2,
        seed: Optional[int] = None,
) -> np.ndarray:
    """
    Draw each match as two dots of the same random color on a side-by-side image.
    """
    vis = sbs_bgr.copy()
    rng = np.random.default_rng(seed)

    for m in matches:
        color = tuple(int(c) for c in rng.integers(0, 256, size=3))
        cv2.circle(vis, (int(round(m.x1)), int(round(m.y1))), radius, color, -1)
        cv2.circle(vis, (int(round(m.x2 + width1)), int(round(m.y2))), radius, color, -1)
    return vis


def _screen_int(p: tuple[float, float], limit: float = 1e6) -> tuple[int, int]:
    # cv2 takes C ints; far-away endpoints are clamped before clipping
    x = float(np.clip(p[0], -limit, limit))
    y = float(np.clip(p[1], -limit, limit))
    return int(round(x)), int(round(y))


def draw_epipolar_segment(
        sbs_bgr: np.ndarray,
        segment: EpipolarSegment,
        *,
        clicked: Optional[tuple[float, float]] = None,
        color: tuple[int, int, int] = (0, 0, 255),
        thickness: int = 2,
) -> np.ndarray:
    """
    Draw an epipolar segment on a side-by-side image, clipped to the target
    image, and optionally mark the clicked screen point.
    """
    vis = sbs_bgr.copy()

    p0 = _screen_int(segment.start)
    p1 = _screen_int(segment.end)

    # Clip in the target image's frame, then shift to the screen
    ok, c0, c1 = cv2.clipLine((0, 0, int(segment.width), int(segment.height)), p0, p1)
    if ok:
        dx = int(segment.offset_x)
        cv2.line(vis, (c0[0] + dx, c0[1]), (c1[0] + dx, c1[1]), color, thickness)

    if clicked is not None:
        cv2.circle(vis, (int(round(clicked[0])), int(round(clicked[1]))), 4, (0, 255, 0), 2)
    return vis


def draw_status_text(
        img_bgr: np.ndarray,
        lines: list[str],
        *,
        origin: tuple[int, int] = (10, 25),
        line_height: int = 30,
        color: tuple[int, int, int] = (0, 215, 255),
) -> np.ndarray:
    """
    Write a few lines of text (inlier counts, the clicked point, ...) in the
    top-left corner, outlined in black so it stays readable on any image.
    """
    if img_bgr is None or img_bgr.size == 0:
        return img_bgr

    out = img_bgr.copy()
    font = cv2.FONT_HERSHEY_SIMPLEX
    for row, text in enumerate(lines):
        pos = (origin[0], origin[1] + row * line_height)
        cv2.putText(out, text, pos, font, 0.6, (0, 0, 0), 3, cv2.LINE_AA)
        cv2.putText(out, text, pos, font, 0.6, color, 2, cv2.LINE_AA)
    return out


def save_image(path: str | Path, img_bgr: np.ndarray) -> Path:
    """
    Write an image, creating the parent directory.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), img_bgr):
        raise OSError(f"Could not write image to {path}")
    logger.info("saved %s", path)
    return path
