"""
Diagnostic figures for the stitching pipeline.

All functions save figures to disk rather than displaying them interactively,
making the module suitable for headless execution.
"""

import numpy as np
import matplotlib
matplotlib.use("Agg")          # non-interactive backend
import matplotlib.pyplot as plt


# ---------------------------------------------------------------------------
# Feature matching
# ---------------------------------------------------------------------------

def save_match_lines(fixed: np.ndarray, moving: np.ndarray,
                     correspondences: list, inlier_mask: np.ndarray,
                     path: str, n: int = 50) -> None:
    """Save a side-by-side image with lines joining the best *n* matches.

    The moving image is drawn on the left.  RANSAC inliers are green,
    outliers red.
    """
    order = sorted(range(len(correspondences)),
                   key=lambda k: correspondences[k].distance)[:n]

    h1, w1 = moving.shape[:2]
    h2, w2 = fixed.shape[:2]
    combined = np.zeros((max(h1, h2), w1 + w2, 3), dtype=np.uint8)
    combined[:h1, :w1] = moving[..., :3]
    combined[:h2, w1:w1 + w2] = fixed[..., :3]

    fig, ax = plt.subplots(figsize=(16, 8))
    ax.imshow(combined)

    for k in order:
        (x1, y1), (x2, y2) = correspondences[k].src, correspondences[k].dst
        colour = "g" if inlier_mask[k] else "r"
        ax.plot([x1, x2 + w1], [y1, y2], colour + "-", linewidth=1, alpha=0.6)
        ax.plot(x1, y1, colour + "o", markersize=3)
        ax.plot(x2 + w1, y2, colour + "o", markersize=3)

    n_in = int(np.sum(inlier_mask))
    ax.set_title(f"Matches – best {len(order)} of {len(correspondences)}  |  "
                 f"{n_in} inliers")
    ax.axis("off")
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)


# ---------------------------------------------------------------------------
# Panorama
# ---------------------------------------------------------------------------

def save_panorama(panorama: np.ndarray, path: str, title: str = "") -> None:
    """Save the stitched panorama as a titled figure."""
    fig = plt.figure(figsize=(20, 10))
    plt.imshow(panorama)
    plt.title(title or f"panorama {panorama.shape[1]}×{panorama.shape[0]}")
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
