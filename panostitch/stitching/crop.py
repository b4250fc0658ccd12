"""
Trim a composited panorama back to its valid content window.
"""

import logging
import math
from typing import Optional

import numpy as np

from panostitch.stitching.canvas import (
    BOTTOM_RIGHT,
    LEFT,
    TOP_LEFT,
    TOP_RIGHT,
    extension_side,
)
from panostitch.utils.progress import ProgressLog

logger = logging.getLogger(__name__)


def crop_window(shape: tuple, fixed_height: int, corners_src: np.ndarray):
    """Return ``(x0, y0, x1, y1)`` of the crop, clamped to *shape*.

    Vertically the window spans the fixed image's rows.  Horizontally a
    left extension trims the left edge by the width of the moving image's
    projected top edge; a right extension trims the right edge at the
    nearer of the moving image's right corners.
    """
    rows, cols = shape[:2]
    min_x = math.floor(corners_src[:, 0].min())
    min_y = math.floor(corners_src[:, 1].min())
    t_y = -min_y

    x0, x1 = 0, cols
    y0, y1 = t_y, min(t_y + fixed_height, rows)

    if extension_side(corners_src) == LEFT:
        n = abs(corners_src[TOP_RIGHT, 0] - corners_src[TOP_LEFT, 0])
        x0 = max(0, math.floor(n))
    else:
        end_x = min(corners_src[BOTTOM_RIGHT, 0], corners_src[TOP_RIGHT, 0])
        x1 = min(cols, math.ceil(end_x))

    if min_x < 0:
        x0 = max(x0, -min_x)

    return max(0, x0), max(0, y0), min(cols, x1), min(rows, y1)


def crop_panorama(panorama: np.ndarray, fixed_height: int,
                  corners_src: np.ndarray,
                  progress: Optional[ProgressLog] = None) -> np.ndarray:
    """Crop *panorama* to the window from :func:`crop_window`.

    A window with no area is not an error: the panorama is returned
    uncropped and a warning is logged.
    """
    x0, y0, x1, y1 = crop_window(panorama.shape, fixed_height, corners_src)
    if x1 - x0 <= 0 or y1 - y0 <= 0:
        logger.warning("crop window %dx%d is empty; keeping %dx%d panorama",
                       x1 - x0, y1 - y0, panorama.shape[1], panorama.shape[0])
        if progress is not None:
            progress.emit("crop", "empty crop window, panorama left uncropped")
        return panorama

    if progress is not None:
        progress.emit("crop", f"{x1 - x0}x{y1 - y0}px")
    return panorama[y0:y1, x0:x1].copy()
