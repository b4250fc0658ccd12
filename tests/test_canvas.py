import unittest

import numpy as np

from panostitch.errors import DegenerateCanvas, DegenerateHomography
from panostitch.stitching.canvas import (
    LEFT,
    RIGHT,
    TOP_LEFT,
    TOP_RIGHT,
    composite,
    compute_layout,
    image_corners,
    place_image,
    warp_image,
)
from panostitch.utils.config import StitchParams
from support import make_texture

SHAPE = (80, 100, 3)


def _translation(tx, ty):
    return np.array([[1, 0, tx], [0, 1, ty], [0, 0, 1]], dtype=float)


class LayoutTests(unittest.TestCase):
    def test_image_corners_order(self):
        corners = image_corners(100, 80)
        np.testing.assert_array_equal(corners[TOP_LEFT], [0, 0])
        np.testing.assert_array_equal(corners[TOP_RIGHT], [100, 0])

    def test_right_extension(self):
        layout = compute_layout(SHAPE, SHAPE, _translation(60, 0))
        self.assertEqual(layout.side, RIGHT)
        self.assertEqual((layout.width, layout.height), (160, 80))
        self.assertEqual(layout.offset, (0, 0))
        self.assertEqual((layout.tx, layout.ty), (0.0, 0.0))

    def test_left_extension(self):
        layout = compute_layout(SHAPE, SHAPE, _translation(-60, 10))
        self.assertEqual(layout.side, LEFT)
        self.assertEqual((layout.width, layout.height), (160, 90))
        self.assertEqual(layout.offset, (60, 0))
        np.testing.assert_allclose(layout.translation @ _translation(-60, 10),
                                   _translation(0, 10))

    def test_upward_shift_moves_fixed_image_down(self):
        layout = compute_layout(SHAPE, SHAPE, _translation(50, -7))
        self.assertEqual(layout.side, RIGHT)
        self.assertEqual(layout.height, 87)
        self.assertEqual(layout.offset, (0, 7))

    def test_mirrored_homography_gives_degenerate_canvas(self):
        with self.assertRaises(DegenerateCanvas):
            compute_layout(SHAPE, SHAPE, np.diag([-1.0, 1.0, 1.0]))

    def test_corner_at_infinity_is_degenerate(self):
        H = np.array([[1, 0, 0], [0, 1, 0], [-0.01, 0, 1]], dtype=float)
        with self.assertRaises(DegenerateHomography):
            compute_layout(SHAPE, SHAPE, H)

    def test_fixed_offset_rounds_half_up(self):
        layout = compute_layout(SHAPE, SHAPE, _translation(-60.5, -2.5))
        self.assertEqual(layout.side, LEFT)
        self.assertEqual((layout.tx, layout.ty), (60.5, 2.5))
        self.assertEqual(layout.offset, (61, 3))

    def test_oversized_canvas_rejected(self):
        with self.assertRaises(DegenerateCanvas):
            compute_layout(SHAPE, SHAPE, _translation(60, 0), max_pixels=1000)


class WarpTests(unittest.TestCase):
    def test_missing_data_is_transparent(self):
        moving = make_texture(80, 100, seed=5)
        warped = warp_image(moving, _translation(60, 0), (80, 160))

        self.assertEqual(warped.shape, (80, 160, 4))
        self.assertTrue(np.all(warped[:, :59, 3] == 0))
        self.assertTrue(np.all(warped[:, 61:159, 3] == 255))
        np.testing.assert_array_equal(warped[:, 61:159, :3], moving[:, 1:99])

    def test_black_pixels_stay_opaque(self):
        black = np.zeros((20, 30, 3), dtype=np.uint8)
        warped = warp_image(black, _translation(0, 0), (20, 30))
        self.assertTrue(np.all(warped[2:-2, 2:-2, 3] == 255))
        self.assertTrue(np.all(warped[..., :3] == 0))


class PlacementTests(unittest.TestCase):
    def test_place_image_clips_to_canvas(self):
        img = np.full((10, 10, 3), 50, dtype=np.uint8)
        canvas = place_image(img, (12, 12), 5, -3)
        self.assertEqual(canvas.shape, (12, 12, 3))
        self.assertTrue(np.all(canvas[0:7, 5:12] == 50))
        self.assertTrue(np.all(canvas[7:, :] == 0))
        self.assertTrue(np.all(canvas[:, :5] == 0))

    def test_place_image_drops_alpha(self):
        img = np.full((4, 4, 4), 9, dtype=np.uint8)
        self.assertEqual(place_image(img, (4, 4), 0, 0).shape, (4, 4, 3))

    def test_composite_outputs_share_canvas_size(self):
        fixed = make_texture(80, 100, seed=6)
        moving = make_texture(80, 100, seed=7)
        warped, placed, layout = composite(fixed, moving, _translation(60, 0),
                                           StitchParams())
        self.assertEqual(warped.shape, (80, 160, 4))
        self.assertEqual(placed.shape, (80, 160, 3))
        np.testing.assert_array_equal(placed[:, :100], fixed)
        self.assertTrue(np.all(placed[:, 100:] == 0))
        self.assertEqual(layout.width, 160)


if __name__ == "__main__":
    unittest.main()
