"""
Nearest-Neighbour Distance Ratio (NNDR) feature matching.

Implements Lowe's ratio test: a match is accepted only when the distance to
the best candidate is significantly smaller than the distance to the second-
best candidate, ensuring distinctiveness.
"""

import numpy as np
from scipy.spatial.distance import cdist


def match_features(desc1: np.ndarray, desc2: np.ndarray,
                   threshold: float = 0.75, metric: str = "hamming"):
    """Match descriptors from two images using Lowe's ratio test.

    For each descriptor in *desc1*, the two nearest neighbours in *desc2* are
    found.  The match is kept only if
    ``dist(1NN) < threshold * dist(2NN)``.

    Parameters
    ----------
    desc1 : np.ndarray
        M x D query descriptor matrix.
    desc2 : np.ndarray
        N x D train descriptor matrix.
    threshold : float
        Ratio threshold in (0, 1].  Lower values are more selective.
    metric : str
        Any :func:`scipy.spatial.distance.cdist` metric; ``"hamming"`` for
        binary descriptors, ``"euclidean"`` for float ones.

    Returns
    -------
    matches : list of (int, int, float)
        Each entry is ``(idx1, idx2, distance)``: indices into *desc1* /
        *desc2* and the best-candidate distance.
    all_ratios : np.ndarray
        ``dist(1NN) / dist(2NN)`` for every descriptor in *desc1* (useful for
        diagnostics; ``nan`` where both distances are zero).
    """
    if desc1.shape[0] == 0 or desc2.shape[0] < 2:
        return [], np.empty((0,))

    distances = cdist(desc1, desc2, metric=metric)

    # Stable sort keeps the lower train index first on ties
    nearest = np.argsort(distances, axis=1, kind="stable")[:, :2]
    rows = np.arange(desc1.shape[0])
    dist1 = distances[rows, nearest[:, 0]]
    dist2 = distances[rows, nearest[:, 1]]

    with np.errstate(divide="ignore", invalid="ignore"):
        all_ratios = dist1 / dist2

    accepted = np.flatnonzero(dist1 < threshold * dist2)
    matches = [(int(i), int(nearest[i, 0]), float(dist1[i])) for i in accepted]
    return matches, all_ratios
