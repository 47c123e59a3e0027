# src/speaker_spin/loaders/text_table.py

"""
Reader for the plain numeric tables most measurement software exports:
one (frequency, SPL[, phase]) row per line, separated by tabs or spaces.
"""

import re
from typing import Iterator, List

from ..core.spin import Curve
from ..errors import MalformedRecordError

SKIP_PREFIXES = ("Freq", "Data", "Display", "Magnitude", "*")
_SEPARATOR = re.compile(r"[\t ]+")


def split_row(line: str) -> List[str]:
    """Split a row into cells: quotes dropped, thousands separators removed."""
    line = line.replace('"', "").strip()
    if not line:
        return []
    return [cell.replace(",", "") for cell in _SEPARATOR.split(line)]


def _rows(text: str) -> Iterator[List[str]]:
    for line in text.splitlines():
        stripped = line.replace('"', "").strip()
        if not stripped or stripped.startswith(SKIP_PREFIXES):
            continue
        yield split_row(stripped)


def parse_number(cell: str, source: str, row) -> float:
    try:
        return float(cell)
    except ValueError:
        raise MalformedRecordError(f"{source}: unable to process row {row!r}") from None


def read_curve(text: str, source: str = "<text>") -> Curve:
    """
    Parse a two (or more) column table into a Curve.

    Header and comment rows are skipped; a row whose first cell is not a
    positive frequency is an error.
    """
    pairs = []
    for row in _rows(text):
        freq = parse_number(row[0], source, row)
        if not freq > 0:
            raise MalformedRecordError(f"{source}: unable to process row {row!r}")
        if len(row) < 2:
            raise MalformedRecordError(f"{source}: missing SPL value in row {row!r}")
        pairs.append((freq, parse_number(row[1], source, row)))
    if not pairs:
        raise MalformedRecordError(f"{source}: no data rows")
    return Curve.from_pairs(pairs)
