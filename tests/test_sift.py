import cv2
import numpy as np

from twoview.matching.sift import SiftParams, sift_matches


def test_sift_recovers_shift():
    rng = np.random.default_rng(0)
    noise = rng.integers(0, 256, size=(320, 320), dtype=np.uint8)
    big = cv2.GaussianBlur(noise, (0, 0), 2.0)
    big = cv2.normalize(big, None, 0, 255, cv2.NORM_MINMAX)
    img1 = big[0:200, 0:200]
    img2 = big[5:205, 10:210]

    matches = sift_matches(img1, img2, params=SiftParams(ratio=0.7))

    assert len(matches) >= 10
    dx = np.median([m.x1 - m.x2 for m in matches])
    dy = np.median([m.y1 - m.y2 for m in matches])
    assert abs(dx - 10.0) < 0.5
    assert abs(dy - 5.0) < 0.5


def test_sift_on_flat_images_finds_nothing():
    flat = np.full((100, 100, 3), 128, dtype=np.uint8)

    assert sift_matches(flat, flat) == []
