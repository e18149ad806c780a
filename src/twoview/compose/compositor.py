"""
Two-image panorama composition by inverse warping.

Given image 1, image 2 and a homography H mapping image 1 into image 2's
frame:

1) canvas extent = image 2's rectangle grown by image 1's mapped corners
2) allocate the canvas, fill it with the background color
3) for every canvas pixel (in image 2's frame after adding the origin offset):
     - sample image 2 directly if the point is inside image 2
     - map the point through H^-1 and sample image 1 if inside image 1
     - blend when both exist, otherwise keep the one that exists

Every pixel is independent; the canvas is processed in row chunks to bound
memory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

import numpy as np

from ..ransac.homography import apply_homography, invert_homography
from ..ransac.types import Mat3x3
from .extent import CanvasExtent, panorama_extent
from .sampling import bilinear_sample, inside

logger = logging.getLogger(__name__)

BlendMode = Literal["mean", "first", "second"]

# Coverage bits
FROM_IMAGE1 = 1
FROM_IMAGE2 = 2


# ---------- Composite parameters ----------
@dataclass(frozen=True)
class CompositeParams:
    """
    Parameters:
    - background:
      Color of canvas pixels no source covers. None means white
      (255 for integer images, 1.0 for float images).
    - blend:
      Overlap policy.
        - "mean": per-channel arithmetic mean of both sources
        - "first": image 1 wins
        - "second": image 2 wins
    - max_canvas_pixels:
      Optional guard against near-degenerate homographies blowing up the
      canvas. None means no limit.
    - rows_per_chunk:
      How many canvas rows are warped at once.
    """
    background: Optional[Sequence[float]] = None
    blend: BlendMode = "mean"
    max_canvas_pixels: Optional[int] = None
    rows_per_chunk: int = 256


@dataclass(frozen=True)
class Panorama:
    image: np.ndarray           # (H, W) or (H, W, C), same dtype as the inputs
    extent: CanvasExtent        # canvas box in image 2's frame
    coverage: np.ndarray        # (H, W) uint8: FROM_IMAGE1 | FROM_IMAGE2 bits

    @property
    def origin(self) -> tuple[float, float]:
        """Offset to add to canvas pixel coordinates to get image 2 coordinates."""
        return self.extent.origin


def _background_color(dtype: np.dtype, channels: int, background: Optional[Sequence[float]]) -> np.ndarray:
    if background is None:
        value = float(np.iinfo(dtype).max) if np.issubdtype(dtype, np.integer) else 1.0
        return np.full((channels,), value, dtype=np.float64)

    color = np.asarray(background, dtype=np.float64).reshape(-1)
    if color.shape[0] == 1:
        return np.full((channels,), color[0], dtype=np.float64)
    if color.shape[0] != channels:
        raise ValueError(f"background has {color.shape[0]} values, images have {channels} channels")
    return color


def _to_output(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return values.astype(dtype)


def compose_panorama(
        img1: np.ndarray,
        img2: np.ndarray,
        H: Mat3x3,
        *,
        params: CompositeParams = CompositeParams(),
) -> Panorama:
    """
    Stitch img1 onto img2's frame using the homography H (image 1 -> image 2).

    - img1, img2:
      (H x W x C) color or (H x W) grayscale images with the same channel
      count and dtype.
    - H:
      3x3 homography mapping image 1 coordinates into image 2.

    Raises SingularTransformError if H cannot be inverted or sends a corner of
    image 1 to infinity.
    """
    # ---------- Basic validation ----------
    if img1 is None or img2 is None or img1.size == 0 or img2.size == 0:
        raise ValueError("compose_panorama received empty image(s).")
    if img1.ndim != img2.ndim or img1.shape[2:] != img2.shape[2:]:
        raise ValueError(f"Images must have the same channel layout, got {img1.shape} vs {img2.shape}")
    if img1.dtype != img2.dtype:
        raise ValueError(f"Images must have the same dtype, got {img1.dtype} vs {img2.dtype}")
    if params.blend not in ("mean", "first", "second"):
        raise ValueError(f"Unknown blend mode: {params.blend}")

    h1, w1 = img1.shape[:2]
    h2, w2 = img2.shape[:2]
    channels = 1 if img1.ndim == 2 else img1.shape[2]

    # ---------- Canvas ----------
    H_inv = invert_homography(H)
    extent = panorama_extent(H, (w1, h1), (w2, h2))
    out_w, out_h = max(1, extent.width), max(1, extent.height)

    if params.max_canvas_pixels is not None and out_w * out_h > params.max_canvas_pixels:
        raise ValueError(
            f"Canvas {out_w}x{out_h} exceeds max_canvas_pixels={params.max_canvas_pixels}"
        )

    logger.info("Composing %dx%d canvas, origin=(%.2f, %.2f)", out_w, out_h, extent.x0, extent.y0)

    canvas = np.empty((out_h, out_w, channels), dtype=np.float64)
    canvas[:] = _background_color(img1.dtype, channels, params.background)
    coverage = np.zeros((out_h, out_w), dtype=np.uint8)

    xs_row = np.arange(out_w, dtype=np.float64) + extent.x0
    step = max(1, int(params.rows_per_chunk))

    # ---------- Inverse warp, chunk by chunk ----------
    for r0 in range(0, out_h, step):
        r1 = min(out_h, r0 + step)
        ys_col = np.arange(r0, r1, dtype=np.float64) + extent.y0
        gx, gy = np.meshgrid(xs_row, ys_col)
        xs, ys = gx.ravel(), gy.ravel()

        in2 = inside(xs, ys, w2, h2)

        src1 = apply_homography(H_inv, np.stack([xs, ys], axis=1))
        in1 = inside(src1[:, 0], src1[:, 1], w1, h1)

        values = canvas[r0:r1].reshape(-1, channels)
        cov = coverage[r0:r1].reshape(-1)

        samples2 = bilinear_sample(img2, xs[in2], ys[in2])
        samples1 = bilinear_sample(img1, src1[in1, 0], src1[in1, 1])

        only2 = in2 & ~in1
        only1 = in1 & ~in2
        both = in1 & in2

        # Position of each covered pixel inside samples1 / samples2
        idx2 = np.cumsum(in2) - 1
        idx1 = np.cumsum(in1) - 1

        values[only2] = samples2[idx2[only2]]
        values[only1] = samples1[idx1[only1]]

        if params.blend == "mean":
            values[both] = 0.5 * (samples1[idx1[both]] + samples2[idx2[both]])
        elif params.blend == "first":
            values[both] = samples1[idx1[both]]
        else:
            values[both] = samples2[idx2[both]]

        cov[in1] |= FROM_IMAGE1
        cov[in2] |= FROM_IMAGE2

        canvas[r0:r1] = values.reshape(r1 - r0, out_w, channels)
        coverage[r0:r1] = cov.reshape(r1 - r0, out_w)

    out = _to_output(canvas, img1.dtype)
    if img1.ndim == 2:
        out = out[:, :, 0]

    return Panorama(image=out, extent=extent, coverage=coverage)
