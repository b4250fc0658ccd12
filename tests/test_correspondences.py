import unittest

import numpy as np

from panostitch.errors import InsufficientFeatures, InsufficientMatches
from panostitch.matching.correspondences import (
    correspondence_arrays,
    extract_correspondences,
)
from panostitch.utils.progress import ProgressLog
from support import TEXTURE, strip_images


class ExtractCorrespondencesTests(unittest.TestCase):
    def setUp(self):
        self.a, self.b, _ = strip_images()

    def test_identical_images_match_onto_themselves(self):
        correspondences = extract_correspondences(self.a, self.a)
        self.assertGreaterEqual(len(correspondences), 4)
        src, dst = correspondence_arrays(correspondences)
        np.testing.assert_allclose(src, dst, atol=1e-6)

    def test_extraction_is_deterministic(self):
        first = extract_correspondences(self.a, self.b)
        second = extract_correspondences(self.a, self.b)
        self.assertEqual(first, second)

    def test_translated_images_give_consistent_offsets(self):
        src, dst = correspondence_arrays(extract_correspondences(self.a, self.b))
        # moving x + 300 == fixed x for the bulk of the matches
        near = np.abs((dst - src)[:, 0] - 300) < 3
        self.assertGreater(near.mean(), 0.5)

    def test_non_overlapping_images_have_no_matches(self):
        with self.assertRaises(InsufficientMatches):
            extract_correspondences(TEXTURE[:, :400], TEXTURE[:, 600:])

    def test_flat_image_has_no_features(self):
        flat = np.full((300, 400, 3), 128, dtype=np.uint8)
        with self.assertRaises(InsufficientFeatures):
            extract_correspondences(self.a, flat)

    def test_reports_progress(self):
        progress = ProgressLog()
        extract_correspondences(self.a, self.b, progress=progress)
        self.assertEqual(progress.stages(), ["features", "matching"])
        self.assertIn("keypoints", progress.events[0].detail)
        self.assertIn("NNDR range", progress.events[1].detail)

    def test_correspondence_arrays_empty(self):
        src, dst = correspondence_arrays([])
        self.assertEqual(src.shape, (0, 2))
        self.assertEqual(dst.shape, (0, 2))


if __name__ == "__main__":
    unittest.main()
