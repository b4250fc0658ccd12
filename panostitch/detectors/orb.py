"""
ORB keypoint detection.

FAST corners are detected on a Gaussian image pyramid, ranked by their
Harris response, assigned an intensity-centroid orientation and described
with a 256-bit rotated BRIEF string.  Binary descriptors are compared with
the Hamming distance.
"""

from typing import NamedTuple

import numpy as np
from skimage.feature import ORB


class Keypoints(NamedTuple):
    """Keypoints detected in one image.

    ``points`` is an N x 2 float array of (x, y) full-resolution locations,
    ``descriptors`` the matching N x 256 boolean array and ``responses``
    the Harris response used for ranking.
    """
    points: np.ndarray
    descriptors: np.ndarray
    responses: np.ndarray

    def __len__(self):
        return self.points.shape[0]


def _empty() -> Keypoints:
    return Keypoints(np.empty((0, 2)), np.empty((0, 256), dtype=bool),
                     np.empty((0,)))


def detect_orb(gray: np.ndarray, n_keypoints: int = 2000,
               fast_threshold: float = 0.08, n_scales: int = 3,
               downscale: float = 2.0) -> Keypoints:
    """Detect and describe up to *n_keypoints* ORB features.

    Parameters
    ----------
    gray : np.ndarray
        H x W float intensity image in [0, 1].
    n_keypoints : int
        Feature budget.  When more candidates are found, the strongest
        responses are kept.
    fast_threshold : float
        FAST intensity threshold.
    n_scales : int
        Number of pyramid octaves searched.
    downscale : float
        Scale factor between octaves.  Keypoints found on octave *o* are
        reported at ``downscale ** o`` times their octave position, so an
        integer factor keeps every location on the full-resolution grid.

    Returns
    -------
    Keypoints
        Points sorted by descending response; ties keep detection order, so
        identical input always yields identical output.
    """
    orb = ORB(n_keypoints=n_keypoints, fast_threshold=fast_threshold,
              n_scales=n_scales, downscale=downscale)
    try:
        orb.detect_and_extract(gray)
    except RuntimeError:
        # raised by scikit-image when no octave produces a single corner
        return _empty()

    if orb.keypoints.shape[0] == 0:
        return _empty()

    order = np.argsort(-orb.responses, kind="stable")
    points = orb.keypoints[order][:, ::-1].astype(float)   # (row, col) → (x, y)
    return Keypoints(points, orb.descriptors[order], orb.responses[order])
