"""
Sequential panorama construction.

Images are folded left to right in the order given: the panorama built so
far is the fixed image and the next input is warped onto it.  Each pairwise
stitch runs feature matching, RANSAC homography estimation, canvas
compositing, feathering and cropping; the cropped result becomes the fixed
image for the next pair.  Any failure aborts the whole run.
"""

import threading
from typing import Callable, List, NamedTuple, Optional

import numpy as np

from panostitch.errors import (
    DegenerateHomography,
    InsufficientFeatures,
    InsufficientMatches,
    StitchCancelled,
    TooFewImages,
)
from panostitch.geometry.ransac import estimate_homography
from panostitch.matching.correspondences import extract_correspondences
from panostitch.stitching.blend import feather_blend
from panostitch.stitching.canvas import CanvasLayout, composite
from panostitch.stitching.crop import crop_panorama
from panostitch.utils.config import StitchParams
from panostitch.utils.image_io import validate_image
from panostitch.utils.progress import ProgressEvent, ProgressLog

# Failures a larger feature budget may fix
RETRYABLE = (InsufficientFeatures, InsufficientMatches, DegenerateHomography)


class PairResult(NamedTuple):
    panorama: np.ndarray
    correspondences: list
    inlier_mask: np.ndarray
    layout: CanvasLayout


class StitchResult(NamedTuple):
    panorama: np.ndarray
    events: List[ProgressEvent]


def stitch_pair(fixed: np.ndarray, moving: np.ndarray,
                params: Optional[StitchParams] = None,
                progress: Optional[ProgressLog] = None) -> PairResult:
    """Warp *moving* onto *fixed* and return the blended, cropped panorama.

    Parameters
    ----------
    fixed : np.ndarray
        Panorama so far (or the first image), H x W x 3/4 uint8.
    moving : np.ndarray
        Next image to add, H x W x 3/4 uint8.
    params : StitchParams, optional
        Pipeline constants; defaults when omitted.
    progress : ProgressLog, optional
        Receives one event per stage.

    Returns
    -------
    PairResult
        The RGB panorama plus the correspondences, RANSAC inlier mask and
        canvas layout that produced it.
    """
    params = params or StitchParams()

    correspondences = extract_correspondences(fixed, moving, params, progress)
    H, inlier_mask = estimate_homography(correspondences, params, progress)

    warped_moving, placed_fixed, layout = composite(fixed, moving, H,
                                                    params, progress)
    blended = feather_blend(placed_fixed, warped_moving, params, progress)
    del warped_moving, placed_fixed

    panorama = crop_panorama(blended, fixed.shape[0], layout.corners_src,
                             progress)
    return PairResult(panorama, correspondences, inlier_mask, layout)


def _stitch_pair_with_retry(fixed, moving, params, progress):
    budgets = [params.n_keypoints] + [b for b in params.retry_budgets
                                      if b > params.n_keypoints]
    for attempt, budget in enumerate(budgets):
        try:
            return stitch_pair(fixed, moving, params.with_budget(budget), progress)
        except RETRYABLE as exc:
            if attempt == len(budgets) - 1:
                raise
            progress.emit("retry", f"{exc}; retrying with "
                                   f"{budgets[attempt + 1]} features")


def stitch_all(images: List[np.ndarray],
               params: Optional[StitchParams] = None,
               progress: Optional[ProgressLog] = None,
               cancel: Optional[threading.Event] = None,
               on_pair: Optional[Callable[[int, PairResult], None]] = None,
               min_count: int = 2) -> StitchResult:
    """Fold an ordered list of images into one panorama.

    Parameters
    ----------
    images : list of np.ndarray
        Overlapping photographs in stitching order.
    params : StitchParams, optional
        Pipeline constants.
    progress : ProgressLog, optional
        Event sink; a fresh one is created when omitted.
    cancel : threading.Event, optional
        Checked before every pair; once set the run stops with
        :class:`StitchCancelled`.
    on_pair : callable, optional
        Called as ``on_pair(index, pair_result)`` after each pair, where
        *index* is the position of the moving image in *images*.
    min_count : int
        Minimum number of images.

    Returns
    -------
    StitchResult
        Final RGB panorama and the ordered progress events.

    Raises
    ------
    TooFewImages
        Before any processing when fewer than *min_count* images are given.
    StitchError
        Whatever error aborted a pair, unchanged.
    """
    params = params or StitchParams()
    progress = progress if progress is not None else ProgressLog()

    if len(images) < max(min_count, 2):
        raise TooFewImages(f"need at least {max(min_count, 2)} images, "
                           f"got {len(images)}")
    for idx, img in enumerate(images):
        validate_image(img, name=f"image {idx + 1}")

    progress.emit("stitch", f"stitching {len(images)} images")
    panorama = images[0][..., :3].copy()

    for i in range(1, len(images)):
        if cancel is not None and cancel.is_set():
            raise StitchCancelled(f"cancelled before image {i + 1}")

        progress.emit("pair", f"processing image pair {i}")
        result = _stitch_pair_with_retry(panorama, images[i], params, progress)
        panorama = result.panorama
        if on_pair is not None:
            on_pair(i, result)
        progress.emit("pair", f"stitched pair {i}")

    progress.emit("stitch", f"complete, final size "
                            f"{panorama.shape[1]}x{panorama.shape[0]}px")
    return StitchResult(panorama, list(progress.events))
