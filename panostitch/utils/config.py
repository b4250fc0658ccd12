"""
Pipeline configuration.

All tunable constants live in :class:`StitchParams`.  The YAML file groups
them by stage; :func:`params_from_config` flattens those sections and falls
back to the defaults for anything left out.
"""

from dataclasses import dataclass, replace
from typing import Tuple

import yaml


@dataclass(frozen=True)
class StitchParams:
    # Feature extraction
    n_keypoints: int = 2000
    fast_threshold: float = 0.08
    n_scales: int = 3
    downscale: float = 2.0
    # Matching
    ratio: float = 0.75
    # Homography
    ransac_threshold: float = 5.0
    ransac_iterations: int = 2000
    min_inliers: int = 4
    seed: int = 0
    # Blending
    coverage_threshold: int = 10
    erosion_size: int = 3
    blur_size: int = 11
    # Canvas
    max_canvas_pixels: int = 100_000_000
    # Feature budgets tried, in order, after a failed pair
    retry_budgets: Tuple[int, ...] = ()

    def __post_init__(self):
        if self.n_keypoints < 4:
            raise ValueError("n_keypoints must be at least 4")
        if self.n_scales < 1:
            raise ValueError("n_scales must be at least 1")
        if self.downscale <= 1.0:
            raise ValueError("downscale must be greater than 1")
        if not 0.0 < self.ratio <= 1.0:
            raise ValueError("ratio must lie in (0, 1]")
        if self.ransac_threshold <= 0:
            raise ValueError("ransac_threshold must be positive")
        if self.ransac_iterations < 1:
            raise ValueError("ransac_iterations must be positive")
        if self.min_inliers < 4:
            raise ValueError("min_inliers must be at least 4")
        for name in ("erosion_size", "blur_size"):
            size = getattr(self, name)
            if size < 1 or size % 2 == 0:
                raise ValueError(f"{name} must be a positive odd integer")
        if self.max_canvas_pixels < 1:
            raise ValueError("max_canvas_pixels must be positive")
        object.__setattr__(self, "retry_budgets",
                           tuple(int(b) for b in self.retry_budgets))

    def with_budget(self, n_keypoints: int) -> "StitchParams":
        """Return a copy with a different feature budget."""
        return replace(self, n_keypoints=n_keypoints)


# YAML section -> {yaml key: StitchParams field}
_SECTIONS = {
    "features": {"n_keypoints": "n_keypoints",
                 "fast_threshold": "fast_threshold",
                 "n_scales": "n_scales",
                 "downscale": "downscale"},
    "matching": {"ratio": "ratio"},
    "ransac": {"inlier_threshold": "ransac_threshold",
               "num_iterations": "ransac_iterations",
               "min_inliers": "min_inliers",
               "seed": "seed"},
    "blending": {"coverage_threshold": "coverage_threshold",
                 "erosion_size": "erosion_size",
                 "blur_size": "blur_size"},
    "canvas": {"max_pixels": "max_canvas_pixels"},
    "retry": {"feature_budgets": "retry_budgets"},
}


def load_config(path: str) -> dict:
    with open(path, "r") as fh:
        return yaml.safe_load(fh) or {}


def params_from_config(cfg: dict) -> StitchParams:
    """Build :class:`StitchParams` from a parsed configuration mapping."""
    kwargs = {}
    for section, keys in _SECTIONS.items():
        values = cfg.get(section) or {}
        for yaml_key, field in keys.items():
            if yaml_key in values and values[yaml_key] is not None:
                kwargs[field] = values[yaml_key]
    return StitchParams(**kwargs)
