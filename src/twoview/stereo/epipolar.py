"""
Epipolar line queries for a stereo pair related by a fundamental matrix F.

Convention (see ransac/fundamental.py): p1^T F p2 = 0.
  - point in image 1 -> line F^T p1 in image 2
  - point in image 2 -> line F p2 in image 1

The screen helper mirrors a side-by-side display [ image 1 | image 2 ]: a
clicked screen point is resolved to the image it falls in, and the segment
to draw is returned in screen coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

import numpy as np

from ..ransac.fundamental import epipolar_lines
from ..ransac.types import FloatArray, Mat3x3

Point = tuple[float, float]


@dataclass(frozen=True)
class EpipolarSegment:
    """
    Visible part of an epipolar line.

    target:   image the line lives in (1 or 2)
    line:     (a, b, c) with a*x + b*y + c = 0 in the target image's frame
    start/end: endpoints in the target image's frame
    width/height: size of the target image
    offset_x: horizontal offset of the target image on the screen
    """
    target: Literal[1, 2]
    line: FloatArray
    start: Point
    end: Point
    width: float
    height: float
    offset_x: float = 0.0

    @property
    def screen_start(self) -> Point:
        return self.start[0] + self.offset_x, self.start[1]

    @property
    def screen_end(self) -> Point:
        return self.end[0] + self.offset_x, self.end[1]


def epipolar_line(F: Mat3x3, point: Point, *, source: Literal[1, 2]) -> FloatArray:
    """
    Line (a, b, c) in the other image for a point in image `source`.
    """
    pts = np.array([[float(point[0]), float(point[1])]], dtype=np.float64)
    return epipolar_lines(F, pts, source=source)[0]


def line_endpoints(line: FloatArray, width: float, height: float) -> tuple[Point, Point]:
    """
    Two endpoints of the line a*x + b*y + c = 0 for drawing in a
    (width x height) image.

    Mostly horizontal lines are cut at x = 0 and x = width; mostly vertical
    lines at y = 0 and y = height. The endpoints may fall outside the image
    (the drawing layer clips).
    """
    a, b, c = (float(v) for v in line)
    if abs(a) < 1e-15 and abs(b) < 1e-15:
        raise ValueError("line has no direction (a = b = 0)")

    if abs(b) >= abs(a):
        return (0.0, -c / b), (float(width), -(c + a * width) / b)
    return (-c / a, 0.0), (-(c + b * height) / a, float(height))


def epipolar_segment(
        F: Mat3x3,
        point: Point,
        *,
        source: Literal[1, 2],
        width: float,
        height: float,
) -> EpipolarSegment:
    """
    Epipolar segment in the other image (of size width x height) for a point
    in image `source`.
    """
    line = epipolar_line(F, point, source=source)
    start, end = line_endpoints(line, width, height)
    target: Literal[1, 2] = 2 if source == 1 else 1
    return EpipolarSegment(
        target=target, line=line, start=start, end=end, width=float(width), height=float(height),
    )


def screen_epipolar_segment(
        F: Mat3x3,
        x: float,
        y: float,
        *,
        width1: int,
        width2: int,
        height1: int,
        height2: int,
) -> EpipolarSegment:
    """
    Resolve a point on a side-by-side screen [ image 1 | image 2 ] and return
    the epipolar segment to draw, with offset_x set for screen coordinates.

    - x < width1: point in image 1, segment across image 2 (offset width1)
    - otherwise: point in image 2 (x - width1), segment across image 1

    Each image keeps its own height; the shorter one is padded below on the
    screen, so segments are cut at the target image's height, not the
    screen's.
    """
    if x < 0 or x >= width1 + width2:
        raise ValueError(f"x={x} is outside the side-by-side screen of width {width1 + width2}")

    if x < width1:
        seg = epipolar_segment(F, (x, y), source=1, width=width2, height=height2)
        offset = float(width1)
    else:
        seg = epipolar_segment(F, (x - width1, y), source=2, width=width1, height=height1)
        offset = 0.0

    return replace(seg, offset_x=offset)
