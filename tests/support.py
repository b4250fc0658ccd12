import numpy as np
from scipy.ndimage import gaussian_filter


def make_texture(height, width, seed=0):
    """Smoothed-noise RGB texture with enough corners for ORB."""
    rng = np.random.default_rng(seed)
    base = gaussian_filter(rng.random((height, width)), sigma=1.5)
    lo, hi = np.percentile(base, [1, 99])
    base = np.clip((base - lo) / (hi - lo), 0, 1)
    gray = 30 + 180 * base
    rgb = np.stack([gray, 0.85 * gray + 20, 0.7 * gray + 40], axis=2)
    return np.round(rgb).astype(np.uint8)


# One 1000x300 scene shared by the end-to-end tests
TEXTURE = make_texture(300, 1000)


def strip_images():
    """Three 400x300 crops of TEXTURE, each overlapping the next by 100px."""
    return [TEXTURE[:, 0:400].copy(),
            TEXTURE[:, 300:700].copy(),
            TEXTURE[:, 600:1000].copy()]
