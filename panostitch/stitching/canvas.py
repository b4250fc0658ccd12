"""
Canvas layout and compositing for one image pair.

The moving image's corners are projected into the fixed image's frame to
size the output canvas.  Whether the moving image extends the panorama to
the left or to the right decides the canvas width and where the fixed image
lands.  The moving image is then inverse-warped with bilinear interpolation
into an RGBA canvas whose alpha marks valid samples, and the fixed image is
copied into an opaque RGB canvas of the same size.
"""

import math
from typing import NamedTuple, Optional

import numpy as np
from skimage.transform import ProjectiveTransform, warp

from panostitch.errors import DegenerateCanvas, DegenerateHomography
from panostitch.geometry.homography import apply_homography
from panostitch.utils.config import StitchParams
from panostitch.utils.image_io import with_alpha
from panostitch.utils.progress import ProgressLog

# Corner order used for every 4 x 2 corner array
TOP_LEFT, BOTTOM_LEFT, BOTTOM_RIGHT, TOP_RIGHT = range(4)

LEFT = "left"
RIGHT = "right"


def image_corners(width: float, height: float) -> np.ndarray:
    """Corners of a ``width`` x ``height`` image as a 4 x 2 (x, y) array."""
    return np.array([
        [0,     0     ],
        [0,     height],
        [width, height],
        [width, 0     ],
    ], dtype=float)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def extension_side(corners_src: np.ndarray) -> str:
    """``LEFT`` if the moving image's top-left corner lies left of x = 0."""
    return LEFT if corners_src[TOP_LEFT, 0] < 0 else RIGHT


class CanvasLayout(NamedTuple):
    width: int
    height: int
    tx: float
    ty: float
    side: str
    offset: tuple          # (x, y) of the fixed image on the canvas
    corners_src: np.ndarray

    @property
    def translation(self) -> np.ndarray:
        return np.array([
            [1, 0, self.tx],
            [0, 1, self.ty],
            [0, 0, 1      ],
        ], dtype=float)


class Composite(NamedTuple):
    warped_moving: np.ndarray   # H x W x 4, alpha 0 where there is no data
    placed_fixed: np.ndarray    # H x W x 3
    layout: CanvasLayout


def compute_layout(fixed_shape: tuple, moving_shape: tuple, H: np.ndarray,
                   max_pixels: Optional[int] = None) -> CanvasLayout:
    """Work out the canvas that holds the fixed image and the warped moving one.

    Parameters
    ----------
    fixed_shape, moving_shape : tuple
        Array shapes of the fixed and moving images.
    H : np.ndarray
        3 x 3 homography mapping moving-image coordinates to the fixed frame.
    max_pixels : int, optional
        Largest canvas area accepted.

    Raises
    ------
    DegenerateHomography
        If a moving-image corner projects to infinity.
    DegenerateCanvas
        If the canvas has a non-positive side or exceeds *max_pixels*.
    """
    h_dst, w_dst = fixed_shape[:2]
    h_src, w_src = moving_shape[:2]

    corners_src = apply_homography(H, image_corners(w_src, h_src))
    if not np.all(np.isfinite(corners_src)):
        raise DegenerateHomography("homography sends an image corner to infinity")
    corners_dst = image_corners(w_dst, h_dst)

    all_corners = np.vstack([corners_src, corners_dst])
    min_x, min_y = all_corners.min(axis=0)
    max_y = all_corners[:, 1].max()

    tx, ty = -min_x, -min_y
    side = extension_side(corners_src)

    if side == LEFT:
        width = math.ceil(w_dst + tx)
        offset = (_round_half_up(tx), _round_half_up(ty))
    else:
        width = math.ceil(corners_src[TOP_RIGHT, 0])
        offset = (0, _round_half_up(ty))
    height = math.ceil(max_y - min_y)

    if width <= 0 or height <= 0:
        raise DegenerateCanvas(f"canvas would be {width}x{height}px")
    if max_pixels is not None and width * height > max_pixels:
        raise DegenerateCanvas(
            f"canvas {width}x{height}px exceeds {max_pixels} pixels")

    return CanvasLayout(width, height, float(tx), float(ty), side, offset,
                        corners_src)


def warp_image(img: np.ndarray, H: np.ndarray, output_shape: tuple) -> np.ndarray:
    """Warp *img* into a new RGBA canvas using inverse homography mapping.

    Every output pixel is mapped back through H⁻¹ and sampled with bilinear
    interpolation.  Pixels that map outside the source image get alpha 0,
    which keeps "no data" apart from genuinely black pixels.

    Parameters
    ----------
    img : np.ndarray
        H x W x 3 or H x W x 4 uint8 source image.
    H : np.ndarray
        3 x 3 homography mapping *img* coordinates to output coordinates.
    output_shape : tuple of (int, int)
        (height, width) of the destination canvas.

    Returns
    -------
    np.ndarray
        Warped uint8 image of shape (*output_shape*, 4).
    """
    inverse = ProjectiveTransform(matrix=np.linalg.inv(H))
    warped = warp(with_alpha(img), inverse, output_shape=output_shape,
                  order=1, mode="constant", cval=0, preserve_range=True)
    return np.clip(np.floor(warped + 0.5), 0, 255).astype(np.uint8)


def place_image(img: np.ndarray, output_shape: tuple, x: int, y: int) -> np.ndarray:
    """Copy the RGB channels of *img* into a black canvas at offset (x, y).

    Parts of *img* that fall outside the canvas are clipped.
    """
    h_out, w_out = output_shape
    canvas = np.zeros((h_out, w_out, 3), dtype=np.uint8)
    h, w = img.shape[:2]

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, w_out), min(y + h, h_out)
    if x1 > x0 and y1 > y0:
        canvas[y0:y1, x0:x1] = img[y0 - y:y1 - y, x0 - x:x1 - x, :3]
    return canvas


def composite(fixed: np.ndarray, moving: np.ndarray, H: np.ndarray,
              params: Optional[StitchParams] = None,
              progress: Optional[ProgressLog] = None) -> Composite:
    """Lay out the canvas, warp *moving* onto it and place *fixed*."""
    params = params or StitchParams()
    layout = compute_layout(fixed.shape, moving.shape, H,
                            max_pixels=params.max_canvas_pixels)
    if progress is not None:
        progress.emit("canvas", f"{layout.width}x{layout.height}px "
                                f"(side: {layout.side})")

    shape = (layout.height, layout.width)
    warped_moving = warp_image(moving, layout.translation @ H, shape)
    placed_fixed = place_image(fixed, shape, *layout.offset)
    return Composite(warped_moving, placed_fixed, layout)
