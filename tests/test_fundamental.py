import numpy as np
import pytest

from twoview.ransac.errors import DegenerateSampleError
from twoview.ransac.fundamental import (
    build_epipolar_system,
    denormalize_fundamental,
    enforce_rank2,
    epipolar_distances,
    epipolar_lines,
    fit_fundamental_8point,
    fit_fundamental_least_squares,
    solve_nullspace,
)
from twoview.ransac.fundamental_fitter import FundamentalFitter
from twoview.ransac.normalization import isotropic_transform, scale_transform, transform_points


# Rectified pair: corresponding points share the same row (y2 == y1)
F_RECTIFIED = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, -1.0], [0.0, 1.0, 0.0]])


def _assert_rank2(F, eps=1e-4):
    s = np.linalg.svd(F, compute_uv=False)
    assert s[2] <= eps * s[0]
    assert s[1] > eps * s[0]


def test_eight_point_exact_scene(stereo_scene):
    _, pts0, pts1 = stereo_scene

    F = fit_fundamental_8point(pts0[:8], pts1[:8])

    _assert_rank2(F)
    assert np.linalg.norm(F) == pytest.approx(1.0)
    # every point of the scene, not just the sample, satisfies the constraint
    assert float(np.max(epipolar_distances(F, pts0, pts1))) < 1e-6


def test_eight_point_matches_true_matrix_up_to_sign(stereo_scene):
    F_true, pts0, pts1 = stereo_scene

    F = fit_fundamental_8point(pts0[:8], pts1[:8])

    if np.sum(F * F_true) < 0:
        F = -F
    np.testing.assert_allclose(F, F_true, atol=1e-6)


def test_eight_point_fixed_scale(stereo_scene):
    _, pts0, pts1 = stereo_scene

    F = fit_fundamental_8point(pts0[:8], pts1[:8], scale=1e-3)

    _assert_rank2(F)
    assert float(np.max(epipolar_distances(F, pts0, pts1))) < 1e-4


def test_eight_point_duplicated_sample_is_degenerate(stereo_scene):
    _, pts0, pts1 = stereo_scene
    idx = np.array([0, 1, 2, 3, 4, 5, 6, 6])

    with pytest.raises(DegenerateSampleError):
        fit_fundamental_8point(pts0[idx], pts1[idx])


def test_eight_point_requires_eight_points(stereo_scene):
    _, pts0, pts1 = stereo_scene

    with pytest.raises(ValueError):
        fit_fundamental_8point(pts0[:7], pts1[:7])


def test_least_squares_with_noise(stereo_scene, rng):
    _, pts0, pts1 = stereo_scene
    noisy = pts1 + rng.normal(0.0, 0.2, size=pts1.shape)

    F = fit_fundamental_least_squares(pts0, noisy)

    _assert_rank2(F)
    assert float(np.median(epipolar_distances(F, pts0, noisy))) < 0.5


def test_least_squares_needs_eight_points(stereo_scene):
    _, pts0, pts1 = stereo_scene

    with pytest.raises(DegenerateSampleError):
        fit_fundamental_least_squares(pts0[:5], pts1[:5])


def test_epipolar_system_rows_evaluate_constraint(rng):
    F = rng.normal(size=(3, 3))
    p1 = rng.uniform(0, 100, size=(12, 2))
    p2 = rng.uniform(0, 100, size=(12, 2))

    A = build_epipolar_system(p1, p2)

    h1 = np.column_stack([p1, np.ones(12)])
    h2 = np.column_stack([p2, np.ones(12)])
    expected = np.einsum("ni,ij,nj->n", h1, F, h2)
    assert A.shape == (12, 9)
    np.testing.assert_allclose(A @ F.reshape(9), expected, rtol=1e-10)


def test_epipolar_system_pads_eight_rows(rng):
    A = build_epipolar_system(rng.uniform(size=(8, 2)), rng.uniform(size=(8, 2)))

    assert A.shape == (9, 9)
    np.testing.assert_array_equal(A[8], np.zeros(9))


def test_solve_nullspace_rejects_low_rank():
    A = np.zeros((9, 9))
    A[:5] = np.eye(9)[:5]

    with pytest.raises(DegenerateSampleError):
        solve_nullspace(A)


def test_enforce_rank2_zeroes_smallest_singular_value(rng):
    M = rng.normal(size=(3, 3))
    s_before = np.linalg.svd(M, compute_uv=False)

    F = enforce_rank2(M)

    s_after = np.linalg.svd(F, compute_uv=False)
    np.testing.assert_allclose(s_after[:2], s_before[:2], rtol=1e-10)
    assert s_after[2] == pytest.approx(0.0, abs=1e-12)


def test_denormalize_undoes_normalization(stereo_scene):
    F_true, pts0, pts1 = stereo_scene
    T1 = isotropic_transform(pts0)
    T2 = isotropic_transform(pts1)
    # F in normalized coordinates: p1'^T Fn p2' = p1^T F p2
    Fn = np.linalg.inv(T1).T @ F_true @ np.linalg.inv(T2)

    F = denormalize_fundamental(Fn, T1, T2)

    np.testing.assert_allclose(F, F_true, atol=1e-10)


def test_isotropic_transform_centers_and_scales(rng):
    pts = rng.uniform(100, 600, size=(30, 2))

    out = transform_points(isotropic_transform(pts), pts)

    np.testing.assert_allclose(out.mean(axis=0), 0.0, atol=1e-10)
    assert np.mean(np.linalg.norm(out, axis=1)) == pytest.approx(np.sqrt(2.0))


def test_scale_transform_rejects_bad_scale():
    with pytest.raises(ValueError):
        scale_transform(0.0)


def test_distance_is_perpendicular_pixel_distance():
    pts0 = np.array([[10.0, 20.0]])
    pts1 = np.array([[50.0, 23.0]])

    # line in image 2 is y = 20
    np.testing.assert_allclose(epipolar_lines(F_RECTIFIED, pts0, source=1), [[0.0, 1.0, -20.0]])
    assert epipolar_distances(F_RECTIFIED, pts0, pts1)[0] == pytest.approx(3.0)


def test_distance_is_scale_invariant():
    pts0 = np.array([[10.0, 20.0]])
    pts1 = np.array([[50.0, 23.0]])

    d = epipolar_distances(1e-3 * F_RECTIFIED, pts0, pts1)

    assert d[0] == pytest.approx(3.0)


def test_line_without_direction_gives_infinite_distance():
    F = np.zeros((3, 3))
    F[0, 2] = 1.0  # F^T p1 = (0, 0, x1)

    d = epipolar_distances(F, np.array([[4.0, 2.0]]), np.array([[1.0, 1.0]]))

    assert np.isinf(d[0])


def test_lines_from_image2(stereo_scene):
    F_true, pts0, pts1 = stereo_scene

    lines1 = epipolar_lines(F_true, pts1, source=2)

    h0 = np.column_stack([pts0, np.ones(len(pts0))])
    residual = np.abs(np.sum(lines1 * h0, axis=1)) / np.hypot(lines1[:, 0], lines1[:, 1])
    assert float(np.max(residual)) < 1e-6


def test_fitter_adapter(stereo_scene):
    _, pts0, pts1 = stereo_scene
    fitter = FundamentalFitter()

    assert fitter.min_samples == 8
    F = fitter.fit_minimal(pts0[10:18], pts1[10:18])
    assert float(np.max(fitter.residuals(F, pts0, pts1))) < 1e-6
