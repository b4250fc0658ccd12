"""
Homography estimation from point correspondences.

A planar homography (projective transformation) maps points in one image to
corresponding points in another when the scene is planar or the camera
undergoes pure rotation.  The 3x3 matrix is estimated via the normalised
Direct Linear Transform (DLT) and solved with SVD.
"""

import numpy as np

# Conditioning limit beyond which a matrix is treated as non-invertible
_MAX_CONDITION = 1e12


def _normalise(points: np.ndarray):
    """Translate *points* to their centroid and scale to mean distance √2."""
    centroid = points.mean(axis=0)
    mean_dist = np.sqrt(((points - centroid) ** 2).sum(axis=1)).mean()
    scale = np.sqrt(2.0) / mean_dist if mean_dist > 0 else 1.0
    T = np.array([
        [scale, 0,     -scale * centroid[0]],
        [0,     scale, -scale * centroid[1]],
        [0,     0,      1                  ],
    ])
    return apply_homography(T, points), T


def compute_homography(pts1: np.ndarray, pts2: np.ndarray) -> np.ndarray:
    """Estimate a 3x3 homography from four or more point correspondences.

    Each correspondence contributes two linear equations in the nine
    homography entries.  With four points the system is exactly determined
    (up to scale); with more it is solved in the least-squares sense.

    Parameters
    ----------
    pts1 : np.ndarray
        N x 2 array of (x, y) source coordinates, N >= 4.
    pts2 : np.ndarray
        N x 2 array of (x, y) destination coordinates.

    Returns
    -------
    H : np.ndarray
        3 x 3 homography matrix (normalised so H[2, 2] == 1) such that
        ``pts2 ≈ H @ pts1`` in homogeneous coordinates.

    Raises
    ------
    np.linalg.LinAlgError
        If the solution cannot be normalised (H[2, 2] ≈ 0).
    """
    if pts1.shape[0] < 4 or pts1.shape != pts2.shape:
        raise ValueError("need at least four matching (x, y) point pairs")

    n1, T1 = _normalise(pts1)
    n2, T2 = _normalise(pts2)
    x1, y1 = n1[:, 0], n1[:, 1]
    x2, y2 = n2[:, 0], n2[:, 1]
    zeros, ones = np.zeros_like(x1), np.ones_like(x1)

    A = np.empty((2 * len(x1), 9))
    A[0::2] = np.column_stack([-x1, -y1, -ones, zeros, zeros, zeros,
                               x2 * x1, x2 * y1, x2])
    A[1::2] = np.column_stack([zeros, zeros, zeros, -x1, -y1, -ones,
                               y2 * x1, y2 * y1, y2])

    _, _, Vt = np.linalg.svd(A)
    H = np.linalg.inv(T2) @ Vt[-1].reshape(3, 3) @ T1
    if abs(H[2, 2]) < 1e-12:
        raise np.linalg.LinAlgError("homography cannot be normalised")
    return H / H[2, 2]


def apply_homography(H: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply a homography to a set of (x, y) coordinates.

    Parameters
    ----------
    H : np.ndarray
        3 x 3 homography matrix.
    points : np.ndarray
        N x 2 array of (x, y) coordinates.

    Returns
    -------
    np.ndarray
        N x 2 array of transformed coordinates.  Points sent to infinity
        come back as ``inf``/``nan``.
    """
    homog = np.column_stack([points, np.ones(points.shape[0])]) @ H.T
    with np.errstate(divide="ignore", invalid="ignore"):
        return homog[:, :2] / homog[:, 2:3]


def reprojection_error(H: np.ndarray, pts1: np.ndarray,
                       pts2: np.ndarray) -> np.ndarray:
    """Euclidean distance between ``H(pts1)`` and *pts2* for every pair."""
    diff = apply_homography(H, pts1) - pts2
    return np.sqrt((diff ** 2).sum(axis=1))


def is_degenerate(H) -> bool:
    """True when *H* is missing, non-finite or numerically singular."""
    if H is None or not np.all(np.isfinite(H)):
        return True
    with np.errstate(divide="ignore", invalid="ignore"):
        cond = np.linalg.cond(H)
    return bool(not np.isfinite(cond) or cond > _MAX_CONDITION)
