# src/speaker_spin/loaders/klippel.py

"""
Klippel NFS export: ``SPL Horizontal.txt`` and ``SPL Vertical.txt``.

Each file is a tab separated collection of datasets stored in adjacent
column pairs. There are three header rows: a title, the dataset names
(a name starts each pair, the cell after it is empty) and column labels.
Data rows hold (Hz, SPL) for every dataset, in U.S. number format with
thousands separators, e.g. ``1,234.56``.
"""

from typing import List, Tuple

from ..core.spin import Angle, Curve, RawSpin
from ..errors import MalformedRecordError
from .archive import FileTable
from .text_table import parse_number

HORIZONTAL = "SPL Horizontal.txt"
VERTICAL = "SPL Vertical.txt"


def matches(files: FileTable) -> bool:
    return HORIZONTAL in files and VERTICAL in files


def _cells(line: str) -> List[str]:
    return [cell.strip() for cell in line.replace('"', "").split("\t")]


def read_klippel_one(text: str, source: str = "<klippel>") -> RawSpin:
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 3:
        raise MalformedRecordError(f"{source}: expected 3 header rows")
    datasets = _cells(lines[1])

    angles = {}
    for i in range(0, len(datasets), 2):
        if i + 1 < len(datasets) and datasets[i + 1]:
            raise MalformedRecordError(f"{source}: unexpected dataset name at index {i + 1}")
        if not datasets[i]:
            continue
        angles[i] = Angle.from_label(datasets[i])

    pairs = {angle: [] for angle in angles.values()}
    for line in lines[3:]:
        row = _cells(line)
        if not row[0]:
            continue
        freq = parse_number(row[0].replace(",", ""), source, row)
        for i, angle in angles.items():
            if i + 1 >= len(row):
                raise MalformedRecordError(f"{source}: row too short for dataset {angle.label}: {row!r}")
            if parse_number(row[i].replace(",", ""), source, row) != freq:
                raise MalformedRecordError(f"{source}: Inconsistent frequency data: {freq} vs {row[i]}")
            pairs[angle].append((freq, parse_number(row[i + 1].replace(",", ""), source, row)))

    spin = {}
    for angle, values in pairs.items():
        if values:
            spin[angle] = Curve.from_pairs(values)
    return spin


def parse(files: FileTable) -> Tuple[RawSpin, RawSpin]:
    return (
        read_klippel_one(files.text(HORIZONTAL), HORIZONTAL),
        read_klippel_one(files.text(VERTICAL), VERTICAL),
    )
