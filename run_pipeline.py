#!/usr/bin/env python3
"""
run_pipeline.py – Sequential Panorama Stitching Pipeline

Loads configuration from configs/default.yaml (or a user-specified file),
stitches every image sequence defined in the config into one panorama, and
writes the results (plus optional diagnostic figures) to the results
directory.

Usage
-----
    python run_pipeline.py
    python run_pipeline.py --config configs/default.yaml
    python run_pipeline.py --sequences lobby
    python run_pipeline.py --images left.jpg middle.jpg right.jpg
    python run_pipeline.py --diagnostics
"""

import argparse
import logging
import os
import sys
import time

# Ensure the project root is on the Python path when invoked directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from panostitch.errors import StitchError
from panostitch.stitching.panorama import stitch_all
from panostitch.utils.config import load_config, params_from_config
from panostitch.utils.image_io import ensure_output_dir, load_image, save_image
from panostitch.utils.progress import ProgressLog


# ──────────────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────────────

def banner(text: str) -> None:
    width = 60
    print("\n" + "─" * width)
    print(f"  {text}")
    print("─" * width)


def print_event(event) -> None:
    print(f"  {event}")


# ──────────────────────────────────────────────────────────────────────────────
# Per-sequence pipeline
# ──────────────────────────────────────────────────────────────────────────────

def run_sequence(seq_cfg: dict, params, results_dir: str,
                 diagnostics: bool) -> dict:
    """Stitch one image sequence and return summary metrics."""
    name = seq_cfg["name"]
    banner(f"Sequence: {name}")
    out_dir = ensure_output_dir(name, base=results_dir)

    images = [load_image(p) for p in seq_cfg["images"]]
    for path, img in zip(seq_cfg["images"], images):
        print(f"  Loaded {os.path.basename(path)}  {img.shape[1]}×{img.shape[0]}")

    metrics = {"name": name, "inputs": len(images), "size": None, "status": "ok"}

    on_pair = None
    if diagnostics:
        from panostitch.utils.visualization import save_match_lines, save_panorama

        fixed_inputs = [images[0]]

        def on_pair(index, result):
            save_match_lines(fixed_inputs[index - 1], images[index],
                             result.correspondences, result.inlier_mask,
                             os.path.join(out_dir, f"pair{index}_matches.jpg"))
            save_panorama(result.panorama,
                          os.path.join(out_dir, f"pair{index}_panorama.jpg"),
                          f"{name} – after image {index + 1}")
            fixed_inputs.append(result.panorama)

    try:
        result = stitch_all(images, params, ProgressLog(print_event),
                            on_pair=on_pair)
    except StitchError as exc:
        print(f"  [ERROR] {type(exc).__name__}: {exc}")
        metrics["status"] = type(exc).__name__
        return metrics

    pano = result.panorama
    save_image(pano, os.path.join(out_dir, "panorama.png"))
    print(f"  Saved panorama → {os.path.join(out_dir, 'panorama.png')}")
    metrics["size"] = f"{pano.shape[1]}×{pano.shape[0]}"
    return metrics


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Sequential panorama stitching pipeline"
    )
    p.add_argument(
        "--config", default="configs/default.yaml",
        help="Path to YAML configuration file (default: configs/default.yaml)",
    )
    p.add_argument(
        "--sequences", nargs="*", default=None,
        help="Subset of sequence names to process (default: all in config)",
    )
    p.add_argument(
        "--images", nargs="+", default=None,
        help="Stitch these images, in order, instead of the config sequences",
    )
    p.add_argument(
        "--output", default=None,
        help="Results directory (overrides results_dir from the config)",
    )
    p.add_argument(
        "--diagnostics", action="store_true",
        help="Save match and intermediate panorama figures for every pair",
    )
    p.add_argument(
        "--verbose", action="store_true",
        help="Enable debug logging",
    )
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Load configuration
    if not os.path.exists(args.config):
        print(f"[ERROR] Config file not found: {args.config}")
        sys.exit(1)
    cfg = load_config(args.config)
    try:
        params = params_from_config(cfg)
    except (TypeError, ValueError) as exc:
        print(f"[ERROR] Invalid configuration: {exc}")
        sys.exit(1)

    results_dir = args.output or cfg.get("results_dir", "results")

    if args.images:
        sequences = [{"name": "adhoc", "images": args.images}]
    else:
        sequences = cfg.get("sequences") or []
        # Optionally restrict to a subset of sequences
        if args.sequences:
            sequences = [s for s in sequences if s["name"] in args.sequences]
            if not sequences:
                print(f"[ERROR] No matching sequences found for: {args.sequences}")
                sys.exit(1)

    if not sequences:
        print("[ERROR] Nothing to stitch: no sequences in config and no --images")
        sys.exit(1)

    # Validate that image files exist
    for seq in sequences:
        for path in seq["images"]:
            if not os.path.exists(path):
                print(f"[ERROR] Image not found: {path}")
                sys.exit(1)

    banner("Sequential Panorama Stitching Pipeline")
    print(f"  Config   : {args.config}")
    print(f"  Sequences: {[s['name'] for s in sequences]}")
    print(f"  Features : {params.n_keypoints} ORB, ratio {params.ratio}")
    print(f"  Output   : {results_dir}/")

    t0 = time.time()
    all_metrics = [run_sequence(seq, params, results_dir, args.diagnostics)
                   for seq in sequences]

    # ── Summary table ──────────────────────────────────────────────────────
    banner("Results Summary")
    header = f"{'Sequence':<16} {'Inputs':>7} {'Panorama':>12}  {'Status'}"
    print(header)
    print("─" * len(header))
    for m in all_metrics:
        size = m["size"] or "–"
        print(f"{m['name']:<16} {m['inputs']:>7} {size:>12}  {m['status']}")

    elapsed = time.time() - t0
    print(f"\nPipeline complete in {elapsed:.1f}s")
    print(f"Results saved to: {os.path.abspath(results_dir)}/")

    if any(m["status"] != "ok" for m in all_metrics):
        sys.exit(1)


if __name__ == "__main__":
    main()
