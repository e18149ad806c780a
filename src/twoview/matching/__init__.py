"""
Matching package: correspondence producers for the estimators.
"""
from .sift import sift_matches, SiftParams
from .clean_points import clean_matches

__all__ = [
    "sift_matches", "SiftParams",
    "clean_matches",
]
