import unittest

import numpy as np

from panostitch.errors import DegenerateHomography
from panostitch.geometry.homography import (
    apply_homography,
    compute_homography,
    is_degenerate,
    reprojection_error,
)
from panostitch.geometry.ransac import estimate_homography, ransac_homography
from panostitch.matching.correspondences import Correspondence

H_TRUE = np.array([
    [0.95,  0.05,  40.0],
    [-0.03, 1.02,  -12.0],
    [1e-4,  -5e-5, 1.0],
])


def _correspondences(src, dst):
    return [Correspondence(tuple(s), tuple(d), 0.0) for s, d in zip(src, dst)]


class HomographyTests(unittest.TestCase):
    def test_four_points_are_fitted_exactly(self):
        src = np.array([[0, 0], [100, 0], [100, 80], [0, 80]], dtype=float)
        H = compute_homography(src, apply_homography(H_TRUE, src))
        np.testing.assert_allclose(H, H_TRUE, atol=1e-8)
        self.assertAlmostEqual(H[2, 2], 1.0)

    def test_apply_homography_translation(self):
        T = np.array([[1, 0, 5], [0, 1, -2], [0, 0, 1]], dtype=float)
        out = apply_homography(T, np.array([[0.0, 0.0], [3.0, 4.0]]))
        np.testing.assert_allclose(out, [[5, -2], [8, 2]])

    def test_needs_four_pairs(self):
        with self.assertRaises(ValueError):
            compute_homography(np.zeros((3, 2)), np.zeros((3, 2)))

    def test_is_degenerate(self):
        self.assertTrue(is_degenerate(None))
        self.assertTrue(is_degenerate(np.zeros((3, 3))))
        self.assertTrue(is_degenerate(np.array([[1, 0, np.nan], [0, 1, 0], [0, 0, 1]])))
        self.assertFalse(is_degenerate(H_TRUE))


class RansacTests(unittest.TestCase):
    def test_recovers_transform_despite_outliers(self):
        rng = np.random.default_rng(3)
        src = rng.uniform([0, 0], [400, 300], size=(120, 2))
        dst = apply_homography(H_TRUE, src) + rng.normal(0, 0.5, size=(120, 2))
        all_src = np.vstack([src, rng.uniform([0, 0], [400, 300], size=(30, 2))])
        all_dst = np.vstack([dst, rng.uniform([0, 0], [400, 300], size=(30, 2))])

        H, inliers = estimate_homography(_correspondences(all_src, all_dst))

        errors = reprojection_error(H, src, apply_homography(H_TRUE, src))
        self.assertGreaterEqual(np.mean(errors < 5.0), 0.9)
        self.assertEqual(inliers.shape, (150,))
        self.assertGreater(inliers[:120].mean(), 0.9)
        self.assertAlmostEqual(H[2, 2], 1.0)

    def test_deterministic_for_a_seed(self):
        rng = np.random.default_rng(4)
        src = rng.uniform(0, 300, size=(40, 2))
        dst = apply_homography(H_TRUE, src)
        dst[::4] += 50
        H1, m1 = ransac_homography(src, dst, seed=7)
        H2, m2 = ransac_homography(src, dst, seed=7)
        np.testing.assert_array_equal(H1, H2)
        np.testing.assert_array_equal(m1, m2)

    def test_too_few_correspondences_is_degenerate(self):
        src = np.array([[0, 0], [10, 0], [0, 10]], dtype=float)
        with self.assertRaises(DegenerateHomography):
            estimate_homography(_correspondences(src, src))

    def test_collinear_points_are_degenerate(self):
        xs = np.linspace(0, 100, 20)
        pts = np.column_stack([xs, 2 * xs])
        with self.assertRaises(DegenerateHomography):
            estimate_homography(_correspondences(pts, pts + 3))


if __name__ == "__main__":
    unittest.main()
