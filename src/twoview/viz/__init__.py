from .visualization import (
    resize_for_display, make_side_by_side,
    draw_matches, draw_epipolar_segment,
    draw_status_text, save_image,
)

__all__ = [
    "resize_for_display", "make_side_by_side",
    "draw_matches", "draw_epipolar_segment",
    "draw_status_text", "save_image",
]
