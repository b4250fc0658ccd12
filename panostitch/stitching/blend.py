"""
Distance-weighted feathering of two composited canvases.

Each source gets a coverage mask; the masks are eroded slightly to drop the
resampled border, turned into Euclidean distance-to-edge fields and
smoothed.  In the overlap every pixel is the distance-weighted mean of the
two sources, elsewhere the single covering source is copied.  All per-pixel
work is vectorised over the whole canvas.
"""

from typing import NamedTuple, Optional

import numpy as np
from scipy.ndimage import binary_erosion, distance_transform_edt, gaussian_filter

from panostitch.utils.config import StitchParams
from panostitch.utils.progress import ProgressLog

# Below this summed distance both weights fall back to 0.5
_MIN_TOTAL_DISTANCE = 0.01


class BlendWeights(NamedTuple):
    mask_fixed: np.ndarray
    mask_moving: np.ndarray
    overlap: np.ndarray
    w_fixed: np.ndarray
    w_moving: np.ndarray


def coverage_masks(placed_fixed: np.ndarray, warped_moving: np.ndarray,
                   threshold: int = 10):
    """Boolean masks of canvas pixels with data from each source.

    A fixed pixel counts when its RGB sum exceeds *threshold*; a moving
    pixel when its alpha does.
    """
    mask_fixed = placed_fixed[..., :3].astype(np.int32).sum(axis=2) > threshold
    mask_moving = warped_moving[..., 3] > threshold
    return mask_fixed, mask_moving


def erode_mask(mask: np.ndarray, size: int = 3) -> np.ndarray:
    """Erode *mask* with a ``size`` x ``size`` square.

    Pixels beyond the canvas edge count as covered, so only boundaries
    against uncovered pixels shrink.
    """
    structure = np.ones((size, size), dtype=bool)
    return binary_erosion(mask, structure=structure, border_value=1)


def distance_field(mask: np.ndarray, blur_size: int = 11) -> np.ndarray:
    """Smoothed distance from each covered pixel to the nearest uncovered one.

    The blur is the Gaussian an ``blur_size`` x ``blur_size`` kernel gets
    when its sigma is derived from the size, with mirrored borders.
    """
    if not mask.any():
        return np.zeros(mask.shape, dtype=np.float64)
    if mask.all():
        # No uncovered pixel: every point is as interior as the canvas allows
        return np.full(mask.shape, float(np.hypot(*mask.shape)))

    dist = distance_transform_edt(mask)
    radius = (blur_size - 1) / 2
    sigma = 0.3 * (radius - 1) + 0.8
    return gaussian_filter(dist, sigma=sigma, mode="mirror",
                           truncate=radius / sigma)


def blend_weights(placed_fixed: np.ndarray, warped_moving: np.ndarray,
                  params: Optional[StitchParams] = None) -> BlendWeights:
    """Compute eroded coverage masks and per-pixel feathering weights."""
    params = params or StitchParams()
    mask_fixed, mask_moving = coverage_masks(placed_fixed, warped_moving,
                                             params.coverage_threshold)
    overlap = mask_fixed & mask_moving

    mask_fixed = erode_mask(mask_fixed, params.erosion_size)
    mask_moving = erode_mask(mask_moving, params.erosion_size)
    overlap = erode_mask(overlap, params.erosion_size)

    d_fixed = distance_field(mask_fixed, params.blur_size)
    d_moving = distance_field(mask_moving, params.blur_size)
    total = d_fixed + d_moving

    usable = total >= _MIN_TOTAL_DISTANCE
    safe_total = np.where(usable, total, 1.0)
    w_fixed = np.where(usable, d_fixed / safe_total, 0.5)
    w_moving = np.where(usable, d_moving / safe_total, 0.5)
    return BlendWeights(mask_fixed, mask_moving, overlap, w_fixed, w_moving)


def feather_blend(placed_fixed: np.ndarray, warped_moving: np.ndarray,
                  params: Optional[StitchParams] = None,
                  progress: Optional[ProgressLog] = None) -> np.ndarray:
    """Blend the placed fixed canvas with the warped moving canvas.

    Parameters
    ----------
    placed_fixed : np.ndarray
        H x W x 3 uint8 canvas holding the fixed image.
    warped_moving : np.ndarray
        H x W x 4 uint8 canvas holding the warped moving image.

    Returns
    -------
    np.ndarray
        H x W x 3 uint8 panorama; pixels covered by neither source are black.
    """
    params = params or StitchParams()
    weights = blend_weights(placed_fixed, warped_moving, params)

    fixed_rgb = placed_fixed[..., :3].astype(np.float64)
    moving_rgb = warped_moving[..., :3].astype(np.float64)
    blended = (fixed_rgb * weights.w_fixed[..., np.newaxis] +
               moving_rgb * weights.w_moving[..., np.newaxis])
    blended = np.clip(np.floor(blended + 0.5), 0, 255).astype(np.uint8)

    only_fixed = weights.mask_fixed & ~weights.overlap
    only_moving = (weights.mask_moving & ~weights.mask_fixed & ~weights.overlap &
                   (warped_moving[..., 3] > params.coverage_threshold))

    pano = np.zeros(placed_fixed.shape[:2] + (3,), dtype=np.uint8)
    pano[weights.overlap] = blended[weights.overlap]
    pano[only_fixed] = placed_fixed[only_fixed, :3]
    pano[only_moving] = warped_moving[only_moving, :3]

    if progress is not None:
        progress.emit("blend", f"feathered {int(weights.overlap.sum())} "
                               f"overlap pixels")
    return pano
