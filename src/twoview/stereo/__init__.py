from .epipolar import (
    EpipolarSegment, epipolar_line, line_endpoints, epipolar_segment, screen_epipolar_segment,
)

__all__ = [
    "EpipolarSegment", "epipolar_line", "line_endpoints", "epipolar_segment",
    "screen_epipolar_segment",
]
