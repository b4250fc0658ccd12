"""
Image buffer helpers.

Images travel through the pipeline as ``H x W x C`` uint8 numpy arrays with
three (RGB) or four (RGBA) channels.  These wrappers around PIL and
scikit-image keep loading, validation and colour conversion consistent
across the stages.
"""

import os
import numpy as np
from PIL import Image
from skimage.color import rgb2gray


def validate_image(img: np.ndarray, name: str = "image") -> np.ndarray:
    """Check that *img* is a usable RGB/RGBA raster and return it.

    Raises
    ------
    ValueError
        If *img* is not a non-empty ``H x W x 3`` or ``H x W x 4`` uint8
        array.
    """
    if not isinstance(img, np.ndarray):
        raise ValueError(f"{name} must be a numpy array, got {type(img).__name__}")
    if img.dtype != np.uint8:
        raise ValueError(f"{name} must be uint8, got {img.dtype}")
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise ValueError(f"{name} must be H x W x 3 or H x W x 4, got shape {img.shape}")
    if img.shape[0] == 0 or img.shape[1] == 0:
        raise ValueError(f"{name} is empty")
    return img


def image_size(img: np.ndarray):
    """Return ``(width, height)`` of *img*."""
    return img.shape[1], img.shape[0]


def load_image(path: str, keep_alpha: bool = False) -> np.ndarray:
    """Load an image file as a uint8 RGB (or RGBA) array.

    Parameters
    ----------
    path : str
        File path to the image.
    keep_alpha : bool
        Return an RGBA array instead of dropping transparency.

    Returns
    -------
    np.ndarray
        H x W x 3 (or H x W x 4) uint8 array.
    """
    with Image.open(path) as im:
        return np.array(im.convert("RGBA" if keep_alpha else "RGB"))


def save_image(img: np.ndarray, path: str) -> None:
    """Write *img* to *path*; the format follows the file extension."""
    validate_image(img)
    Image.fromarray(img).save(path)


def to_grayscale(img: np.ndarray) -> np.ndarray:
    """Convert a uint8 RGB/RGBA image to a float64 intensity image in [0, 1].

    Any alpha channel is dropped before conversion.
    """
    return rgb2gray(img[..., :3])


def with_alpha(img: np.ndarray) -> np.ndarray:
    """Return an RGBA copy of *img*; RGB input gets a fully opaque alpha."""
    if img.shape[2] == 4:
        return img.copy()
    alpha = np.full(img.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([img, alpha], axis=2)


def drop_alpha(img: np.ndarray) -> np.ndarray:
    """Return an RGB copy of *img*."""
    return np.ascontiguousarray(img[..., :3])


def ensure_output_dir(name: str, base: str = "results") -> str:
    """Create ``base/name`` if needed and return its path."""
    path = os.path.join(base, name)
    os.makedirs(path, exist_ok=True)
    return path
