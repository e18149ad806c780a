"""
Canvas extent for two-image panoramas.

The canvas lives in image 2's coordinate frame. It starts as image 2's own
rectangle and grows to include image 1's four corners mapped through the
homography (image 1 -> image 2).
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..ransac.errors import SingularTransformError
from ..ransac.homography import apply_homography
from ..ransac.types import Mat3x3, Points2D


@dataclass
class CanvasExtent:
    """
    Axis-aligned box (x0, y0) - (x1, y1). Invariant: x0 <= x1, y0 <= y1.
    """
    x0: float
    y0: float
    x1: float
    y1: float

    def __post_init__(self) -> None:
        if self.x0 > self.x1 or self.y0 > self.y1:
            raise ValueError(f"Invalid extent: {self}")

    @classmethod
    def from_size(cls, width: int, height: int) -> "CanvasExtent":
        return cls(0.0, 0.0, float(width), float(height))

    def grow_to(self, x: float, y: float) -> None:
        """
        Grow the box (never shrink) so that it contains (x, y).
        """
        if not (np.isfinite(x) and np.isfinite(y)):
            raise ValueError(f"Cannot grow extent to non-finite point ({x}, {y})")
        self.x0 = min(self.x0, float(x))
        self.y0 = min(self.y0, float(y))
        self.x1 = max(self.x1, float(x))
        self.y1 = max(self.y1, float(y))

    def contains(self, x: float, y: float, *, tol: float = 1e-9) -> bool:
        return (self.x0 - tol <= x <= self.x1 + tol) and (self.y0 - tol <= y <= self.y1 + tol)

    @property
    def origin(self) -> tuple[float, float]:
        """Offset of the canvas' top-left pixel relative to image 2's frame."""
        return self.x0, self.y0

    @property
    def width(self) -> int:
        return int(round(self.x1 - self.x0))

    @property
    def height(self) -> int:
        return int(round(self.y1 - self.y0))


def image_corners(width: int, height: int) -> Points2D:
    """
    Corners (0,0), (w,0), (w,h), (0,h) as a (4,2) array.
    """
    return np.array(
        [
            [0.0, 0.0],
            [float(width), 0.0],
            [float(width), float(height)],
            [0.0, float(height)],
        ],
        dtype=np.float64,
    )


def panorama_extent(
        H: Mat3x3,
        size1: tuple[int, int],
        size2: tuple[int, int],
) -> CanvasExtent:
    """
    Bounding box covering image 2 and image 1 mapped through H.

    size1, size2: (width, height) of image 1 and image 2.

    Raises SingularTransformError if a corner of image 1 is mapped to infinity.
    """
    extent = CanvasExtent.from_size(*size2)

    mapped = apply_homography(H, image_corners(*size1))
    if not np.isfinite(mapped).all():
        raise SingularTransformError("homography maps a corner of image 1 to infinity")

    for x, y in mapped:
        extent.grow_to(x, y)
    return extent
