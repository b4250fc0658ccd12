"""
Feature correspondences between the fixed image and the next moving image.
"""

from typing import List, NamedTuple, Optional

import numpy as np

from panostitch.detectors.orb import detect_orb
from panostitch.errors import InsufficientFeatures, InsufficientMatches
from panostitch.matching.nndr import match_features
from panostitch.utils.config import StitchParams
from panostitch.utils.image_io import to_grayscale
from panostitch.utils.progress import ProgressLog

MIN_POINTS = 4


class Correspondence(NamedTuple):
    """A matched point pair.

    ``src`` lies in the moving image, ``dst`` in the fixed image; both are
    (x, y) pixel coordinates.  ``distance`` is the descriptor distance of
    the accepted match.
    """
    src: tuple
    dst: tuple
    distance: float


def correspondence_arrays(correspondences: List[Correspondence]):
    """Split correspondences into N x 2 source and destination arrays."""
    if not correspondences:
        return np.empty((0, 2)), np.empty((0, 2))
    src = np.array([c.src for c in correspondences], dtype=float)
    dst = np.array([c.dst for c in correspondences], dtype=float)
    return src, dst


def _ratio_range(all_ratios: np.ndarray) -> str:
    finite = all_ratios[np.isfinite(all_ratios)]
    if finite.size == 0:
        return "no NNDR values"
    return f"NNDR range [{finite.min():.3f}, {finite.max():.3f}]"


def extract_correspondences(fixed: np.ndarray, moving: np.ndarray,
                            params: Optional[StitchParams] = None,
                            progress: Optional[ProgressLog] = None
                            ) -> List[Correspondence]:
    """Detect ORB features in both images and match them.

    Moving-image descriptors are queried against the fixed-image
    descriptors, so every correspondence maps a moving point onto the fixed
    frame.

    Raises
    ------
    InsufficientFeatures
        If either image yields fewer than four keypoints.
    InsufficientMatches
        If fewer than four matches survive the ratio test.
    """
    params = params or StitchParams()

    kp_fixed = detect_orb(to_grayscale(fixed), params.n_keypoints,
                          params.fast_threshold, params.n_scales,
                          params.downscale)
    kp_moving = detect_orb(to_grayscale(moving), params.n_keypoints,
                           params.fast_threshold, params.n_scales,
                           params.downscale)
    if progress is not None:
        progress.emit("features", f"found {len(kp_fixed)} and "
                                  f"{len(kp_moving)} keypoints")

    if len(kp_fixed) < MIN_POINTS or len(kp_moving) < MIN_POINTS:
        raise InsufficientFeatures(
            f"not enough features detected ({len(kp_fixed)} fixed, "
            f"{len(kp_moving)} moving; need {MIN_POINTS})")

    matches, all_ratios = match_features(kp_moving.descriptors,
                                         kp_fixed.descriptors,
                                         threshold=params.ratio,
                                         metric="hamming")
    if progress is not None:
        progress.emit("matching", f"{len(matches)} good matches "
                                  f"(ratio {params.ratio}, "
                                  f"{_ratio_range(all_ratios)})")

    if len(matches) < MIN_POINTS:
        raise InsufficientMatches(
            f"not enough good matches ({len(matches)}) - check image overlap")

    return [
        Correspondence(tuple(kp_moving.points[i]), tuple(kp_fixed.points[j]), d)
        for i, j, d in matches
    ]
