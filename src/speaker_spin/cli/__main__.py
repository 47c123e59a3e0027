# src/speaker_spin/cli/__main__.py

"""
Batch scoring of a directory of measurement archives.

Archives are expected at ``<speaker>/<measurement>.zip`` below the given
directory. Every archive is read as a full spin when possible, otherwise as
a pre-computed CEA2034 set, and its scores are written out as JSON.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from speaker_spin import config
from speaker_spin.core.scores import get_scores
from speaker_spin.core.cea2034 import compute_cea2034
from speaker_spin.eq_control.apply import apply_eq
from speaker_spin.eq_control.iir import BiquadChain
from speaker_spin.errors import SpinError
from speaker_spin.loaders.loader import load_measurement

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="speaker-spin",
        description="Compute CEA2034 preference scores for a directory of measurement archives.",
    )
    parser.add_argument("measurements_dir", help="Directory searched recursively for .zip archives.")
    parser.add_argument("-o", "--output", help="Write the JSON result here instead of stdout.")
    parser.add_argument("--eq", help="Equalizer APO configuration to simulate on every full spin.")
    parser.add_argument("--sample-rate", type=float, default=config.EQ_SAMPLE_RATE,
                        help=f"Sampling rate the EQ is designed for (default: {config.EQ_SAMPLE_RATE}).")
    parser.add_argument("--plot-dir", help="Save a CEA2034 PNG per archive in this directory.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output.")
    return parser.parse_args(argv)


def find_archives(root: Path):
    return sorted(p for p in root.rglob("*.zip") if p.is_file())


def measurement_ids(root: Path, path: Path):
    """(speaker id, measurement id) from ``<speaker>/<measurement>.zip``."""
    parts = path.relative_to(root).with_suffix("").parts
    speaker = parts[0]
    measurement = "/".join(parts[1:]) or speaker
    return speaker, measurement


def score_archive(path: Path, chain=None, plot_path=None):
    """
    Scores of one archive.

    Returns:
        (entry, is_busted) where entry holds ``scores`` and, when an EQ was
        simulated on a full spin, ``scoresEq``.
    """
    cea2034, spins = load_measurement(path.read_bytes())
    scores = get_scores(cea2034)
    entry = {"scores": scores.to_dict()}

    if chain is not None and spins is not None:
        eq_scores = get_scores(compute_cea2034(*apply_eq(*spins, chain)))
        entry["scoresEq"] = eq_scores.to_dict()

    if plot_path is not None:
        from speaker_spin.plotting import plot_cea2034
        plot_cea2034(cea2034, plot_path, title=path.stem, scores=scores)
    return entry, cea2034.is_busted


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=config.LOG_FORMAT)

    root = Path(args.measurements_dir)
    if not root.is_dir():
        logger.error("Not a directory: %s", root)
        return 1

    chain = None
    if args.eq:
        try:
            chain = BiquadChain.from_apo_config(Path(args.eq).read_text(), args.sample_rate)
        except (OSError, SpinError) as e:
            logger.error("Unable to load EQ %s: %s", args.eq, e)
            return 1
        logger.info("Simulating %d filters at %.0f Hz", chain.biquad_count, chain.sample_rate)

    if args.plot_dir:
        os.makedirs(args.plot_dir, exist_ok=True)

    files = find_archives(root)
    result = {}
    count = 0
    busted_count = 0
    for path in files:
        speaker, measurement = measurement_ids(root, path)
        plot_path = None
        if args.plot_dir:
            plot_path = os.path.join(args.plot_dir, f"{speaker} - {measurement.replace('/', '_')}.png")
        try:
            entry, is_busted = score_archive(path, chain, plot_path)
        except (OSError, SpinError) as e:
            logger.warning("Unable to process %s: %s", path, e)
            continue
        result.setdefault(speaker, {"measurements": {}})["measurements"][measurement] = entry
        count += 1
        if is_busted:
            busted_count += 1

    total = len(files)
    logger.info("Read %d / %d (%.1f %%), %d were busted (%.1f %%)",
                count, total, 100 * count / total if total else 0.0,
                busted_count, 100 * busted_count / total if total else 0.0)

    text = json.dumps(result, indent=2)
    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
