import numpy as np
import pytest

from twoview.compose.compositor import (
    FROM_IMAGE1,
    FROM_IMAGE2,
    CompositeParams,
    compose_panorama,
)
from twoview.compose.extent import CanvasExtent, image_corners, panorama_extent
from twoview.compose.sampling import bilinear_sample, inside
from twoview.ransac.errors import SingularTransformError
from twoview.ransac.homography import apply_homography


def _translation(dx, dy):
    return np.array([[1.0, 0.0, dx], [0.0, 1.0, dy], [0.0, 0.0, 1.0]])


def _flat(value, height=100, width=100, channels=3, dtype=np.uint8):
    return np.full((height, width, channels), value, dtype=dtype)


# ---------- Extent ----------
def test_extent_for_translation():
    extent = panorama_extent(_translation(10.0, 5.0), (100, 100), (100, 100))

    assert (extent.x0, extent.y0, extent.x1, extent.y1) == (0.0, 0.0, 110.0, 105.0)
    assert extent.width == 110
    assert extent.height == 105
    assert extent.origin == (0.0, 0.0)


def test_extent_contains_both_images(rng):
    for _ in range(20):
        H = np.eye(3) + rng.normal(0.0, [[0.05, 0.05, 20.0], [0.05, 0.05, 20.0], [1e-5, 1e-5, 0.0]])
        extent = panorama_extent(H, (320, 240), (400, 300))

        for x, y in image_corners(400, 300):
            assert extent.contains(x, y)
        for x, y in apply_homography(H, image_corners(320, 240)):
            assert extent.contains(x, y)


def test_extent_rejects_corner_at_infinity():
    H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-0.01, 0.0, 1.0]])

    # corner (100, 0) lands on the line at infinity
    with pytest.raises(SingularTransformError):
        panorama_extent(H, (100, 100), (100, 100))


def test_canvas_extent_validation_and_growth():
    with pytest.raises(ValueError):
        CanvasExtent(10.0, 0.0, 0.0, 5.0)

    extent = CanvasExtent.from_size(50, 40)
    extent.grow_to(-5.5, 60.0)
    extent.grow_to(10.0, 10.0)

    assert (extent.x0, extent.y0, extent.x1, extent.y1) == (-5.5, 0.0, 50.0, 60.0)
    with pytest.raises(ValueError):
        extent.grow_to(np.inf, 0.0)


# ---------- Sampling ----------
def test_bilinear_sample():
    image = np.array([[0.0, 10.0], [20.0, 30.0]])

    values = bilinear_sample(image, np.array([0.5, 1.0, 0.0, 1.0]), np.array([0.5, 1.0, 0.0, 0.5]))

    assert values.shape == (4, 1)
    np.testing.assert_allclose(values[:, 0], [15.0, 30.0, 0.0, 20.0])


def test_bilinear_sample_color():
    image = np.zeros((3, 3, 3), dtype=np.uint8)
    image[:, :, 2] = 200

    values = bilinear_sample(image, np.array([1.3]), np.array([0.7]))

    np.testing.assert_allclose(values, [[0.0, 0.0, 200.0]])


def test_inside_boundaries():
    xs = np.array([0.0, 9.0, 9.01, -0.01, 5.0, np.nan])
    ys = np.array([0.0, 4.0, 1.0, 1.0, 4.5, 1.0])

    np.testing.assert_array_equal(inside(xs, ys, 10, 5), [True, True, False, False, False, False])


# ---------- Composition ----------
def test_compose_translation_pixels():
    img1 = _flat(100)
    img2 = _flat(200)

    pano = compose_panorama(img1, img2, _translation(10.0, 5.0))

    assert pano.image.shape == (105, 110, 3)
    assert pano.image.dtype == np.uint8
    # overlap: mean of both sources
    np.testing.assert_array_equal(pano.image[50, 50], [150, 150, 150])
    assert pano.coverage[50, 50] == FROM_IMAGE1 | FROM_IMAGE2
    # image 1 only
    np.testing.assert_array_equal(pano.image[50, 105], [100, 100, 100])
    assert pano.coverage[50, 105] == FROM_IMAGE1
    # image 2 only
    np.testing.assert_array_equal(pano.image[2, 50], [200, 200, 200])
    assert pano.coverage[2, 50] == FROM_IMAGE2
    # neither: white background
    np.testing.assert_array_equal(pano.image[102, 5], [255, 255, 255])
    assert pano.coverage[102, 5] == 0


@pytest.mark.parametrize("blend, expected", [("first", 100), ("second", 200), ("mean", 150)])
def test_blend_modes(blend, expected):
    pano = compose_panorama(_flat(100), _flat(200), _translation(10.0, 5.0),
                            params=CompositeParams(blend=blend))

    assert int(pano.image[50, 50, 0]) == expected


def test_custom_background():
    pano = compose_panorama(_flat(100), _flat(200), _translation(10.0, 5.0),
                            params=CompositeParams(background=(1, 2, 3)))

    np.testing.assert_array_equal(pano.image[102, 5], [1, 2, 3])


def test_float_images_use_unit_background():
    img1 = _flat(0.25, dtype=np.float32)
    img2 = _flat(0.75, dtype=np.float32)

    pano = compose_panorama(img1, img2, _translation(10.0, 5.0))

    assert pano.image.dtype == np.float32
    assert pano.image[102, 5, 0] == pytest.approx(1.0)
    assert pano.image[50, 50, 0] == pytest.approx(0.5)


def test_grayscale_output_is_2d():
    img1 = np.full((60, 80), 40, dtype=np.uint8)
    img2 = np.full((60, 80), 80, dtype=np.uint8)

    pano = compose_panorama(img1, img2, _translation(20.0, 0.0))

    assert pano.image.shape == (60, 100)
    assert int(pano.image[30, 40]) == 60


def test_negative_origin():
    pano = compose_panorama(_flat(100), _flat(200), _translation(-10.0, 0.0))

    assert pano.origin == (-10.0, 0.0)
    assert pano.image.shape == (100, 110, 3)
    # canvas column 0 is x = -10 in image 2's frame: image 1 only
    assert pano.coverage[50, 0] == FROM_IMAGE1
    assert int(pano.image[50, 0, 0]) == 100


def test_singular_homography():
    H = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [0.0, 0.0, 1.0]])

    with pytest.raises(SingularTransformError):
        compose_panorama(_flat(100), _flat(200), H)


def test_corner_at_infinity():
    H = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-0.01, 0.0, 1.0]])

    with pytest.raises(SingularTransformError):
        compose_panorama(_flat(100), _flat(200), H)


def test_canvas_size_guard():
    with pytest.raises(ValueError):
        compose_panorama(_flat(100), _flat(200), _translation(10.0, 5.0),
                         params=CompositeParams(max_canvas_pixels=1000))


def test_rejects_mismatched_images():
    with pytest.raises(ValueError):
        compose_panorama(_flat(100), np.full((100, 100), 200, dtype=np.uint8), np.eye(3))
    with pytest.raises(ValueError):
        compose_panorama(_flat(100), _flat(200, dtype=np.float32), np.eye(3))


def test_chunking_does_not_change_result(rng):
    img1 = rng.integers(0, 256, size=(40, 50, 3), dtype=np.uint8)
    img2 = rng.integers(0, 256, size=(45, 55, 3), dtype=np.uint8)
    H = np.array([[0.98, 0.03, 12.0], [-0.02, 1.01, 4.0], [1e-4, 0.0, 1.0]])

    a = compose_panorama(img1, img2, H, params=CompositeParams(rows_per_chunk=7))
    b = compose_panorama(img1, img2, H, params=CompositeParams(rows_per_chunk=1000))

    np.testing.assert_array_equal(a.image, b.image)
    np.testing.assert_array_equal(a.coverage, b.coverage)
