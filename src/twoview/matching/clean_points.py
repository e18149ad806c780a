"""
Utilities for cleaning correspondence sets before robust estimation.

Remove:
- NaNs/Infs
- exact duplicates (they only make RANSAC samples degenerate)
- extreme displacement outliers (optional)
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..ransac.types import Match, matches_to_points


def clean_matches(
    matches: list[Match],
    *,
    max_motion_px: Optional[float] = None,
) -> list[Match]:
    """
    Return a new list with bad matches removed; order is preserved.
    """
    if not matches:
        return []

    pts0, pts1 = matches_to_points(matches)
    mask = np.ones((pts0.shape[0],), dtype=bool)

    # Check if points are finite
    mask &= np.isfinite(pts0).all(axis=1)
    mask &= np.isfinite(pts1).all(axis=1)

    # big-jump pruning
    if max_motion_px is not None:
        with np.errstate(invalid="ignore"):
            motion = np.linalg.norm(pts1 - pts0, axis=1)
            mask &= motion <= float(max_motion_px)

    seen: set[Match] = set()
    kept: list[Match] = []
    for m, ok in zip(matches, mask):
        if ok and m not in seen:
            seen.add(m)
            kept.append(m)
    return kept
