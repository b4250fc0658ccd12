"""
RANSAC-based robust homography estimation.

Random Sample Consensus (RANSAC) handles outliers in feature matches by
repeatedly drawing minimal subsets, fitting a homography, and counting
geometrically consistent inliers.  The hypothesis with the highest inlier
count is refitted on all of its inliers and returned.
"""

import itertools
from typing import List, Optional

import numpy as np

from panostitch.errors import DegenerateHomography
from panostitch.geometry.homography import (
    compute_homography,
    is_degenerate,
    reprojection_error,
)
from panostitch.matching.correspondences import (
    Correspondence,
    correspondence_arrays,
)
from panostitch.utils.config import StitchParams
from panostitch.utils.progress import ProgressLog

_TRIPLES = list(itertools.combinations(range(4), 3))


def _is_collinear_sample(pts: np.ndarray, eps: float = 1e-6) -> bool:
    """True if any three of the four sampled points are (nearly) collinear."""
    for i, j, k in _TRIPLES:
        a, b, c = pts[i], pts[j], pts[k]
        area = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
        if abs(area) < eps:
            return True
    return False


def count_inliers(H: np.ndarray, pts1: np.ndarray, pts2: np.ndarray,
                  threshold: float = 5.0) -> np.ndarray:
    """Boolean mask of pairs consistent with homography *H*.

    A pair is an inlier when the reprojection error ``||H * p1 - p2||₂``
    is below *threshold* pixels.
    """
    with np.errstate(invalid="ignore"):
        return reprojection_error(H, pts1, pts2) < threshold


def ransac_homography(pts1: np.ndarray, pts2: np.ndarray,
                      num_iterations: int = 2000, threshold: float = 5.0,
                      seed: int = 0):
    """Estimate a robust homography via RANSAC.

    Parameters
    ----------
    pts1, pts2 : np.ndarray
        N x 2 arrays of (x, y) source and destination coordinates.
    num_iterations : int
        Maximum number of RANSAC iterations.
    threshold : float
        Inlier reprojection error threshold (pixels).
    seed : int
        Seed for the sampling generator; identical inputs and seed give
        identical results.

    Returns
    -------
    best_H : np.ndarray or None
        Best-scoring 3 x 3 homography, or *None* if estimation failed.
    best_inliers : np.ndarray
        Boolean inlier mask over the N pairs for *best_H*.
    """
    n = pts1.shape[0]
    best_H = None
    best_inliers = np.zeros(n, dtype=bool)
    if n < 4:
        return best_H, best_inliers

    rng = np.random.default_rng(seed)

    for _ in range(num_iterations):
        sample = rng.choice(n, 4, replace=False)
        if _is_collinear_sample(pts1[sample]) or _is_collinear_sample(pts2[sample]):
            continue

        try:
            H = compute_homography(pts1[sample], pts2[sample])
        except np.linalg.LinAlgError:
            continue

        inliers = count_inliers(H, pts1, pts2, threshold)
        if inliers.sum() > best_inliers.sum():
            best_H = H
            best_inliers = inliers

        # Early exit when a dominant consensus is found
        if best_inliers.sum() > 0.8 * n:
            break

    # Refit on the full consensus set, keep it only if it does not lose support
    if best_H is not None and best_inliers.sum() >= 4:
        try:
            refined = compute_homography(pts1[best_inliers], pts2[best_inliers])
        except np.linalg.LinAlgError:
            refined = None
        if refined is not None:
            refined_inliers = count_inliers(refined, pts1, pts2, threshold)
            if refined_inliers.sum() >= best_inliers.sum():
                best_H, best_inliers = refined, refined_inliers

    return best_H, best_inliers


def estimate_homography(correspondences: List[Correspondence],
                        params: Optional[StitchParams] = None,
                        progress: Optional[ProgressLog] = None):
    """Fit the homography mapping moving-image points onto the fixed image.

    Returns
    -------
    H : np.ndarray
        3 x 3 matrix with ``H[2, 2] == 1``.
    inlier_mask : np.ndarray
        Boolean mask over *correspondences*, for diagnostics only.

    Raises
    ------
    DegenerateHomography
        If fewer than ``params.min_inliers`` inliers support the best
        transform, or the transform is singular.
    """
    params = params or StitchParams()
    src, dst = correspondence_arrays(correspondences)

    if progress is not None:
        progress.emit("homography", f"RANSAC ({params.ransac_iterations} "
                                    f"iterations, threshold "
                                    f"{params.ransac_threshold}px)")

    H, inliers = ransac_homography(src, dst,
                                   num_iterations=params.ransac_iterations,
                                   threshold=params.ransac_threshold,
                                   seed=params.seed)
    n_in = int(inliers.sum())

    if progress is not None:
        progress.emit("homography", f"inliers: {n_in}/{len(correspondences)}")

    if H is None or n_in < params.min_inliers:
        raise DegenerateHomography(
            f"only {n_in} inliers; need at least {params.min_inliers}")
    if is_degenerate(H):
        raise DegenerateHomography("estimated homography is not invertible")
    return H, inliers
